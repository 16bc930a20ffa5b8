"""
Branches command implementation.
"""

from erlup.cli.commands.tags import local_checkout
from erlup.toolchain.git import GitClient


def run(args) -> int:
    """List local and remote-tracking branches of a configured repository."""
    git = GitClient()
    for branch in git.list_branches(local_checkout(args, git)):
        print(branch)
    return 0
