"""
Default command implementation.

Sets the toolchain used wherever no directory selection exists.
"""

from erlup.cli.utils import get_registry


def run(args) -> int:
    get_registry(args).set_default(args.id)
    return 0
