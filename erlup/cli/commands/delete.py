"""
Delete command implementation.

Removes an installed toolchain from disk and from the registry.
"""

import logging

from erlup.cli.utils import get_registry

logger = logging.getLogger(__name__)


def run(args) -> int:
    """
    Run the delete command.

    Args:
        args: Parsed command-line arguments with ``id``

    Returns:
        Exit code (0 for success)
    """
    get_registry(args).delete(args.id)
    return 0
