"""
Directory structure management for erlup.

This module resolves where erlup keeps its user configuration and its cache,
and bootstraps a default configuration on first use.

Directory Structure:
    Config ($XDG_CONFIG_HOME/erlup or ~/.config/erlup):
        - config.yaml     : repos, installed toolchains, default selection

    Cache ($XDG_CACHE_HOME/erlup or ~/.cache/erlup, configurable as erlup.dir):
        - repos/<name>/   : local clones of configured repositories
        - otps/<id>/      : one installation per id, with dist/ and alias links
        - bin/            : global alias links pointing at the erlup executable

    Project-local (<cwd>/erlup.yaml):
        - directory-scoped toolchain selection
"""

import logging
import os
from pathlib import Path
from typing import Optional

import yaml

from erlup.core.exceptions import ErlupError
from erlup.core.filesystem import atomic_write

logger = logging.getLogger(__name__)

CONFIG_FILE_NAME = "config.yaml"
LOCAL_CONFIG_FILE_NAME = "erlup.yaml"
DEFAULT_REPO_URL = "https://github.com/erlang/otp"


class DirectoryError(ErlupError):
    """Base exception for directory-related errors."""

    pass


def _xdg_dir(env_var: str, fallback: str) -> Path:
    value = os.environ.get(env_var)
    if value:
        return Path(value)
    try:
        return Path.home() / fallback
    except RuntimeError as e:
        raise DirectoryError(f"no home directory available: {e}") from e


def get_config_dir() -> Path:
    """
    Get the directory holding the user configuration.

    Returns:
        Path: $XDG_CONFIG_HOME/erlup, or ~/.config/erlup when unset.
    """
    return _xdg_dir("XDG_CONFIG_HOME", ".config") / "erlup"


def get_default_cache_dir() -> Path:
    """
    Get the default cache root used when a new config is created.

    Returns:
        Path: $XDG_CACHE_HOME/erlup, or ~/.cache/erlup when unset.
    """
    return _xdg_dir("XDG_CACHE_HOME", ".cache") / "erlup"


def get_config_file() -> Path:
    """Get the path of the user config file."""
    return get_config_dir() / CONFIG_FILE_NAME


def get_local_config_file(cwd: Optional[Path] = None) -> Path:
    """Get the path of the directory-scoped selection file."""
    return (cwd or Path.cwd()) / LOCAL_CONFIG_FILE_NAME


def ensure_default_config(config_file: Optional[Path] = None) -> Path:
    """
    Create the user config with default settings if it does not exist.

    The default config points the cache at the default cache dir and
    registers the upstream OTP repository as the ``default`` repo.

    Args:
        config_file: Config path (default: user config file)

    Returns:
        Path to the config file.

    Raises:
        DirectoryError: If the config or cache directory cannot be created.
    """
    config_file = Path(config_file) if config_file else get_config_file()
    cache_dir = get_default_cache_dir()

    try:
        config_file.parent.mkdir(parents=True, exist_ok=True)
        cache_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise DirectoryError(f"Failed to create erlup directories: {e}") from e

    if not config_file.exists():
        data = {
            "erlup": {"dir": str(cache_dir)},
            "repos": {"default": DEFAULT_REPO_URL},
        }
        atomic_write(config_file, yaml.safe_dump(data, default_flow_style=False))
        logger.info(f"Created a default config at {config_file}")

    return config_file


def repos_dir(cache_dir: Path) -> Path:
    return Path(cache_dir) / "repos"


def installs_dir(cache_dir: Path) -> Path:
    return Path(cache_dir) / "otps"


def links_dir(cache_dir: Path) -> Path:
    return Path(cache_dir) / "bin"
