"""
Tags command implementation.

Lists the tags of a configured repository, cloning it first if needed.
"""

import logging

from erlup.cli.utils import get_registry
from erlup.toolchain.catalog import RepoCatalog
from erlup.toolchain.git import GitClient

logger = logging.getLogger(__name__)


def local_checkout(args, git: GitClient):
    """Return the local clone of ``args.repo``, cloning it if absent."""
    registry = get_registry(args)
    repo = RepoCatalog(registry.config).get(args.repo)
    repo_dir = RepoCatalog.checkout_dir(registry.cache_dir(), repo.name)

    if not repo_dir.exists():
        git.clone(repo.url, repo_dir)

    return repo_dir


def run(args) -> int:
    git = GitClient()
    for tag in git.list_tags(local_checkout(args, git)):
        print(tag)
    return 0
