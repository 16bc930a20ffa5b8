"""
Core functionality for erlup.

This package contains the foundational modules that other components depend on.
"""

from .config import ConfigFile
from .directory import (
    get_config_dir,
    get_config_file,
    get_default_cache_dir,
    get_local_config_file,
    ensure_default_config,
    DirectoryError,
)
from .exceptions import (
    ErlupError,
    ConfigError,
    ConfigKeyMissingError,
    ConfigLockTimeout,
    RepoNotFoundError,
    ToolchainError,
    ToolchainNotFoundError,
    ToolchainSelectionError,
    ToolchainExistsError,
    VCSError,
    GitNotFoundError,
    GitCommandError,
    BuildError,
    ConfigureOptionsError,
    BuildStepSpawnError,
    InstallGateError,
    InstallStepError,
    DispatchError,
    UnknownCommandError,
    BinaryNotInstalledError,
    BinaryLaunchError,
)

__all__ = [
    "ConfigFile",
    "get_config_dir",
    "get_config_file",
    "get_default_cache_dir",
    "get_local_config_file",
    "ensure_default_config",
    "DirectoryError",
    "ErlupError",
    "ConfigError",
    "ConfigKeyMissingError",
    "ConfigLockTimeout",
    "RepoNotFoundError",
    "ToolchainError",
    "ToolchainNotFoundError",
    "ToolchainSelectionError",
    "ToolchainExistsError",
    "VCSError",
    "GitNotFoundError",
    "GitCommandError",
    "BuildError",
    "ConfigureOptionsError",
    "BuildStepSpawnError",
    "InstallGateError",
    "InstallStepError",
    "DispatchError",
    "UnknownCommandError",
    "BinaryNotInstalledError",
    "BinaryLaunchError",
]
