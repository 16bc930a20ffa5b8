"""
Switch command implementation.

Selects a toolchain for the current directory.
"""

from pathlib import Path

from erlup.cli.utils import get_registry


def run(args) -> int:
    get_registry(args).switch(args.id, Path.cwd())
    return 0
