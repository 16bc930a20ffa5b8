"""
Repository catalog: repo name -> remote URL, stored in the ``repos`` section.
"""

import logging
from pathlib import Path
from typing import List

from erlup.core.config import ConfigFile
from erlup.core.directory import repos_dir
from erlup.core.exceptions import RepoNotFoundError
from erlup.toolchain.models import RepoDescriptor

logger = logging.getLogger(__name__)

REPOS_SECTION = "repos"
DEFAULT_REPO = "default"


class RepoCatalog:
    """Lookup and edit of configured source repositories."""

    def __init__(self, config: ConfigFile):
        self.config = config

    def get(self, name: str = DEFAULT_REPO) -> RepoDescriptor:
        """
        Look up a repo by name.

        Raises:
            RepoNotFoundError: If no repo with that name is configured
        """
        url = self.config.get(REPOS_SECTION, name)
        if url is None:
            raise RepoNotFoundError(name)
        return RepoDescriptor(name=name, url=url)

    def list(self) -> List[RepoDescriptor]:
        return [
            RepoDescriptor(name=name, url=url)
            for name, url in self.config.section(REPOS_SECTION).items()
        ]

    def add(self, name: str, url: str) -> RepoDescriptor:
        self.config.set(REPOS_SECTION, name, url)
        logger.info(f"Added repo {name} -> {url}")
        return RepoDescriptor(name=name, url=url)

    def remove(self, name: str):
        """
        Remove a repo entry. The local clone, if any, is left on disk.

        Raises:
            RepoNotFoundError: If no repo with that name is configured
        """
        if not self.config.delete(REPOS_SECTION, name):
            raise RepoNotFoundError(name)
        logger.info(f"Removed repo {name}")

    @staticmethod
    def checkout_dir(cache_dir: Path, name: str) -> Path:
        return repos_dir(cache_dir) / name
