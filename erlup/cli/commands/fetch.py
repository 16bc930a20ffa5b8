"""
Fetch command implementation.

Clones the repository if needed and fetches new tags and branches.
"""

import logging
import time

from erlup.cli.utils import CHECKMARK, format_duration, get_registry, safe_print
from erlup.toolchain.catalog import RepoCatalog
from erlup.toolchain.git import GitClient

logger = logging.getLogger(__name__)


def run(args) -> int:
    """
    Run the fetch command.

    Args:
        args: Parsed command-line arguments with ``repo``

    Returns:
        Exit code (0 for success)
    """
    started = time.monotonic()
    registry = get_registry(args)
    repo = RepoCatalog(registry.config).get(args.repo)
    repo_dir = RepoCatalog.checkout_dir(registry.cache_dir(), repo.name)
    git = GitClient()

    if not repo_dir.exists():
        git.clone(repo.url, repo_dir)
        safe_print(f" {CHECKMARK} Cloning repo {repo.url} to {repo_dir}")

    git.fetch(repo_dir)
    safe_print(f" {CHECKMARK} Fetching tags from {repo.url}")

    print(f"Finished fetch in {format_duration(time.monotonic() - started)}")
    return 0
