"""
Repo command implementation.

Manages the catalog of source repositories (add, rm, ls).
"""

import logging

from erlup.cli.utils import get_registry
from erlup.toolchain.catalog import RepoCatalog

logger = logging.getLogger(__name__)


def _catalog(args) -> RepoCatalog:
    return RepoCatalog(get_registry(args).config)


def run_add(args) -> int:
    """Add or replace a repo entry."""
    _catalog(args).add(args.name, args.url)
    return 0


def run_rm(args) -> int:
    """Remove a repo entry; the local clone is kept."""
    _catalog(args).remove(args.name)
    return 0


def run_ls(args) -> int:
    """Print every configured repo as ``name -> url``."""
    for repo in _catalog(args).list():
        print(f"{repo.name} -> {repo.url}")
    return 0
