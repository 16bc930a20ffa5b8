"""
Shared utilities for CLI commands.

Provides common functionality used across multiple CLI commands to
eliminate duplication and ensure consistent behavior.
"""

import logging
import os
import shutil
import sys
from pathlib import Path
from typing import Optional

from erlup.core.config import ConfigFile
from erlup.core.directory import ensure_default_config
from erlup.core.exceptions import ErlupError
from erlup.toolchain.binaries import MANAGEMENT_COMMAND
from erlup.toolchain.registry import ToolchainRegistry

logger = logging.getLogger(__name__)

CHECKMARK = "✓"
WARNING_MARK = "⚠"
CROSS = "✗"


# ============================================================================
# Configuration Management
# ============================================================================


def load_config(config_file: Optional[Path] = None) -> ConfigFile:
    """
    Open the config named on the command line, or the user config.

    The user config is created with defaults on first use. An explicit
    ``--config`` path that does not exist falls back to the user config.
    """
    if config_file is not None and Path(config_file).exists():
        logger.debug(f"config_file: {config_file}")
        return ConfigFile(Path(config_file))

    if config_file is not None:
        logger.debug(f"Config file not found: {config_file}, using default")

    path = ensure_default_config()
    logger.debug(f"config_file: {path}")
    return ConfigFile(path)


def get_registry(args) -> ToolchainRegistry:
    return ToolchainRegistry(load_config(getattr(args, "config", None)))


def current_executable() -> Path:
    """
    Locate the erlup executable the global alias links should point at.

    Raises:
        ErlupError: If no erlup executable can be found
    """
    argv0 = Path(sys.argv[0])
    if argv0.name == MANAGEMENT_COMMAND and argv0.exists():
        return argv0.absolute()

    found = shutil.which(MANAGEMENT_COMMAND)
    if found:
        return Path(found)

    raise ErlupError(
        "failed to get current bin path",
        hint="Make sure the erlup executable is on your PATH",
    )


# ============================================================================
# User Interface / Output Formatting
# ============================================================================


def format_duration(seconds: float) -> str:
    """
    Format a duration for humans.

    Example:
        >>> format_duration(75)
        '1 minute 15 seconds'
    """
    seconds = int(round(seconds))
    if seconds < 1:
        return "less than a second"

    parts = []
    for unit, size in (("hour", 3600), ("minute", 60), ("second", 1)):
        count, seconds = divmod(seconds, size)
        if count:
            parts.append(f"{count} {unit}{'s' if count != 1 else ''}")
    return " ".join(parts[:2])


def safe_print(message: str, file=None):
    """
    Print message with safe encoding handling for limited consoles.

    Falls back to ASCII-safe characters if the marks can't be encoded.

    Args:
        message: Message to print
        file: Output file (default: stdout)
    """
    try:
        print(message, file=file)
    except UnicodeEncodeError:
        safe_message = (
            message.replace(CHECKMARK, "[OK]")
            .replace(WARNING_MARK, "[WARN]")
            .replace(CROSS, "[FAIL]")
        )
        print(safe_message, file=file)


def debug_enabled() -> bool:
    """True if the DEBUG environment variable is set."""
    return "DEBUG" in os.environ
