"""
List command implementation.
"""

from erlup.cli.utils import get_registry


def run(args) -> int:
    """Print every installed toolchain as ``id -> path``."""
    records = get_registry(args).list()
    if not records:
        print("No Erlang releases installed.")
        return 0

    for record in records:
        print(f"{record.id} -> {record.install_path}")
    return 0
