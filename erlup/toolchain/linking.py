"""
erlup/toolchain/linking.py

Symlink management for toolchain entry points.

Two independent link sets are maintained, both rebuildable at any time:

- the global farm in ``<cache>/bin``: one link per alias, all pointing at the
  erlup executable, which dispatches to the active toolchain;
- the per-installation farm at the root of ``<cache>/otps/<id>``: one link per
  alias, pointing at the real binary under ``dist``.
"""

import glob
import os
from pathlib import Path
from typing import Iterable, List, Optional
import logging

from erlup.toolchain.binaries import BINARY_ALIASES

logger = logging.getLogger(__name__)


class ShimFarmManager:
    """Creates and refreshes alias symlinks."""

    def __init__(self, aliases: Iterable[str] = BINARY_ALIASES):
        """
        Initialize link manager.

        Args:
            aliases: Alias names to manage (default: all known binaries)
        """
        self.aliases = tuple(aliases)

    def create_link(self, link_path: Path, target_path: Path) -> Path:
        """
        Create or replace a symlink.

        Args:
            link_path: Path where link should be created
            target_path: Path that link should point to

        Returns:
            The link path

        Raises:
            OSError: If link creation fails
        """
        self.remove_link(link_path)
        link_path.parent.mkdir(parents=True, exist_ok=True)

        try:
            os.symlink(target_path, link_path)
        except OSError as e:
            logger.error(f"Failed to create link {link_path} -> {target_path}: {e}")
            raise

        logger.debug(f"linking {link_path} to {target_path}")
        return link_path

    def remove_link(self, link_path: Path) -> bool:
        """
        Remove a link if present; a missing link is not an error.

        Returns:
            True if something was removed
        """
        try:
            link_path.unlink()
            return True
        except FileNotFoundError:
            return False

    def resolve_link(self, link_path: Path) -> Optional[Path]:
        """Return the raw target of a symlink, or None if not a symlink."""
        if not link_path.is_symlink():
            return None
        return Path(os.readlink(link_path))

    def refresh_global(self, executable: Path, links_dir: Path) -> List[Path]:
        """
        Point every alias in ``links_dir`` at the erlup executable.

        Args:
            executable: The management executable
            links_dir: Shared directory expected on the user's PATH

        Returns:
            Created links
        """
        links_dir.mkdir(parents=True, exist_ok=True)
        return [
            self.create_link(links_dir / alias, Path(executable))
            for alias in self.aliases
        ]

    def find_binary(self, install_dir: Path, alias: str) -> Optional[Path]:
        """
        Locate the real binary for ``alias`` under ``install_dir/dist/bin``.

        A pattern match is used so a platform-dependent path segment can be
        absorbed; the last match wins.
        """
        pattern = str(install_dir / "dist" / "bin" / alias)
        matches = sorted(glob.glob(pattern))
        return Path(matches[-1]) if matches else None

    def refresh_installation(self, install_dir: Path) -> List[Path]:
        """
        Create alias links at the root of one installation.

        Aliases without a matching binary are skipped.

        Args:
            install_dir: Installation root (parent of ``dist``)

        Returns:
            Created links
        """
        links = []
        for alias in self.aliases:
            binary = self.find_binary(install_dir, alias)
            if binary is None:
                logger.debug(f"file to link not found: {alias}")
                continue
            links.append(self.create_link(install_dir / alias, binary))
        return links
