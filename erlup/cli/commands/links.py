"""
Update-links command implementation.

Recreates the global alias links pointing at the erlup executable.
"""

import logging

from erlup.cli.utils import current_executable, get_registry
from erlup.core.directory import links_dir
from erlup.toolchain.linking import ShimFarmManager

logger = logging.getLogger(__name__)


def run(args) -> int:
    registry = get_registry(args)
    target = links_dir(registry.cache_dir())
    links = ShimFarmManager().refresh_global(current_executable(), target)
    logger.info(f"Updated {len(links)} links in {target}")
    return 0
