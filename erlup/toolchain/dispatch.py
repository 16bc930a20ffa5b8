"""
Multi-call dispatch.

The erlup executable is installed under its own name and linked under every
toolchain alias. The name it was invoked as decides, once per process,
whether it runs the management CLI or proxies to the real binary of the
active toolchain.
"""

import logging
import os
import signal
import subprocess
from abc import ABC, abstractmethod
from enum import Enum
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence

from erlup.core.exceptions import (
    BinaryLaunchError,
    BinaryNotInstalledError,
    UnknownCommandError,
)
from erlup.toolchain.binaries import MANAGEMENT_COMMAND, is_binary_alias
from erlup.toolchain.models import ActiveSelection
from erlup.toolchain.registry import ToolchainRegistry

logger = logging.getLogger(__name__)


class DispatchMode(Enum):
    MANAGEMENT = "management"
    PROXY = "proxy"


# ============================================================================
# Process Launchers
# ============================================================================


class ProcessLauncher(ABC):
    """Hands control of the current invocation to another executable."""

    @abstractmethod
    def launch(self, executable: Path, args: Sequence[str], env: Dict[str, str]) -> int:
        """
        Run ``executable`` with ``args`` and ``env``.

        Returns:
            Exit code to terminate with (implementations that replace the
            process image never return on success)

        Raises:
            BinaryLaunchError: If the executable cannot be started
        """
        pass


class ExecLauncher(ProcessLauncher):
    """Replaces the current process image (POSIX ``execve``)."""

    def launch(self, executable: Path, args: Sequence[str], env: Dict[str, str]) -> int:
        try:
            os.execve(str(executable), [str(executable), *args], env)
        except OSError as e:
            raise BinaryLaunchError(executable, e.strerror or str(e)) from e
        return 0  # unreachable


class SpawnLauncher(ProcessLauncher):
    """
    Spawns the executable, waits, and propagates its exit status.

    Used where in-place process replacement is not native. A child killed by
    a signal re-raises that signal on this process, so callers observe the
    same termination.
    """

    def launch(self, executable: Path, args: Sequence[str], env: Dict[str, str]) -> int:
        try:
            result = subprocess.run([str(executable), *args], env=env)
        except OSError as e:
            raise BinaryLaunchError(executable, e.strerror or str(e)) from e
        if result.returncode < 0 and os.name != "nt":
            sig = -result.returncode
            signal.signal(sig, signal.SIG_DFL)
            os.kill(os.getpid(), sig)
        return result.returncode


def default_launcher() -> ProcessLauncher:
    return SpawnLauncher() if os.name == "nt" else ExecLauncher()


# ============================================================================
# Dispatcher
# ============================================================================


def invocation_name(argv0: str) -> str:
    """Basename of argv[0], without a Windows executable suffix."""
    name = Path(argv0).name
    if os.name == "nt" and name.lower().endswith(".exe"):
        name = name[:-4]
    return name


class MultiCallDispatcher:
    """
    Routes one process invocation to management mode or proxy mode.

    Args:
        management: Callable running the management CLI with the remaining
            arguments; its return value is the exit code
        registry_factory: Callable returning the ToolchainRegistry (only
            called in proxy mode)
        launcher: How proxied binaries are started
        cwd: Directory used to resolve the active toolchain
    """

    def __init__(
        self,
        management: Callable[[List[str]], int],
        registry_factory: Callable[[], ToolchainRegistry],
        launcher: Optional[ProcessLauncher] = None,
        cwd: Optional[Path] = None,
    ):
        self.management = management
        self.registry_factory = registry_factory
        self.launcher = launcher or default_launcher()
        self.cwd = cwd

    def mode_for(self, name: str) -> DispatchMode:
        """
        Raises:
            UnknownCommandError: If ``name`` is neither erlup nor an alias
        """
        if name == MANAGEMENT_COMMAND:
            return DispatchMode.MANAGEMENT
        if is_binary_alias(name):
            return DispatchMode.PROXY
        raise UnknownCommandError(name)

    def active_selection(self) -> ActiveSelection:
        registry = self.registry_factory()
        return registry.resolve_active(self.cwd or Path.cwd())

    def binary_path(self, alias: str) -> Path:
        """
        Path of the real binary for ``alias`` in the active toolchain.

        Raises:
            ToolchainSelectionError: If no toolchain is selected or registered
            BinaryNotInstalledError: If the active toolchain lacks the binary
        """
        selection = self.active_selection()
        path = selection.record.bin_dir / alias
        if not path.exists():
            raise BinaryNotInstalledError(alias, selection.id, path)
        return path

    def dispatch(self, argv: Sequence[str]) -> int:
        """
        Dispatch based on ``argv[0]``.

        Returns:
            Exit code
        """
        name = invocation_name(argv[0])
        args = list(argv[1:])

        if self.mode_for(name) is DispatchMode.MANAGEMENT:
            return self.management(args)

        cmd = self.binary_path(name)
        logger.debug(f"running {cmd}")
        return self.launcher.launch(cmd, args, dict(os.environ))
