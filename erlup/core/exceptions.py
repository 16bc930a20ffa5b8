"""
Centralized exception hierarchy for erlup.

Every fatal condition in the core is raised as one of these exceptions and
handled once, at the top of the CLI, where it is turned into an error message
and a non-zero exit code.
"""

from typing import Optional


# ============================================================================
# Base Exceptions
# ============================================================================


class ErlupError(Exception):
    """Base exception for all erlup errors."""

    def __init__(self, message: str, hint: Optional[str] = None):
        self.hint = hint
        super().__init__(message)


# ============================================================================
# Configuration Exceptions
# ============================================================================


class ConfigError(ErlupError):
    """Base exception for configuration errors."""

    pass


class ConfigKeyMissingError(ConfigError):
    """Raised when a required configuration key is absent."""

    def __init__(self, section: str, key: str, message: str = "", hint=None):
        self.section = section
        self.key = key
        super().__init__(
            message or f"Missing configuration setting {section}.{key}", hint
        )


class ConfigLockTimeout(ConfigError):
    """Raised when the config file lock cannot be acquired within timeout."""

    pass


class RepoNotFoundError(ConfigError):
    """Raised when a repo name is not present in the catalog."""

    def __init__(self, repo: str):
        self.repo = repo
        super().__init__(
            f"Repo {repo} not found in config",
            hint="To add a repo: erlup repo add <name> <url>",
        )


# ============================================================================
# Toolchain-related Exceptions
# ============================================================================


class ToolchainError(ErlupError):
    """Base exception for toolchain-related errors."""

    pass


class ToolchainNotFoundError(ToolchainError, ConfigError):
    """Raised when an id has no entry in the toolchain registry."""

    def __init__(self, toolchain_id: str, message: str = "", hint=None):
        self.toolchain_id = toolchain_id
        super().__init__(
            message or f"{toolchain_id} is not a configured Erlang install",
            hint or "Run `erlup list` to see installed ids",
        )


class ToolchainSelectionError(ToolchainError, ConfigError):
    """Raised when no active toolchain can be resolved for the caller."""

    pass


class ToolchainExistsError(ToolchainError):
    """Raised when building an id whose install directory already exists."""

    def __init__(self, toolchain_id: str, install_dir):
        self.toolchain_id = toolchain_id
        self.install_dir = install_dir
        super().__init__(
            f"Directory for {toolchain_id} already exists: {install_dir}",
            hint=(
                "If this is incorrect remove that directory, "
                "provide a different id with --id <id>, or rebuild with --force."
            ),
        )


# ============================================================================
# Version Control Exceptions
# ============================================================================


class VCSError(ErlupError):
    """Base exception for version control failures."""

    pass


class GitNotFoundError(VCSError):
    """Raised when the git executable cannot be spawned."""

    pass


class GitCommandError(VCSError):
    """Raised when a git command exits with non-zero status."""

    def __init__(self, args, returncode: int, stderr: str = ""):
        self.args_list = list(args)
        self.returncode = returncode
        self.stderr = stderr
        message = f"git {' '.join(self.args_list)} failed with exit code {returncode}"
        if stderr.strip():
            message += f": {stderr.strip()}"
        super().__init__(message)


# ============================================================================
# Build Exceptions
# ============================================================================


class BuildError(ErlupError):
    """Base exception for build pipeline errors."""

    pass


class ConfigureOptionsError(BuildError):
    """Raised when the configure option string cannot be tokenized."""

    pass


class BuildStepSpawnError(BuildError):
    """Raised when a build step's executable cannot be started at all."""

    pass


class InstallGateError(BuildError):
    """Raised when the install gate refuses to let installation proceed."""

    pass


class InstallStepError(BuildError):
    """Raised when an install step fails after the install gate let it run."""

    def __init__(self, toolchain_id: str, install_dir):
        self.toolchain_id = toolchain_id
        self.install_dir = install_dir
        super().__init__(
            f"Installing {toolchain_id} into {install_dir} failed; "
            "it was not registered",
            hint="Fix the failing step and rebuild with --force",
        )


# ============================================================================
# Dispatch Exceptions
# ============================================================================


class DispatchError(ErlupError):
    """Base exception for multi-call dispatch errors."""

    pass


class UnknownCommandError(DispatchError):
    """Raised when the executable is invoked under an unrecognized name."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"No such command: {name}")


class BinaryNotInstalledError(DispatchError):
    """Raised when the active toolchain has no binary for the invoked alias."""

    def __init__(self, alias: str, toolchain_id: str, path):
        self.alias = alias
        self.toolchain_id = toolchain_id
        self.path = path
        super().__init__(
            f"{alias} is not available in Erlang {toolchain_id} ({path} not found)",
            hint="Rebuild that release with the application enabled, or switch "
            "to another one with `erlup switch <id>`",
        )


class BinaryLaunchError(DispatchError):
    """Raised when a proxied binary cannot be started."""

    def __init__(self, executable, reason: str):
        self.executable = executable
        super().__init__(f"could not run {executable}: {reason}")
