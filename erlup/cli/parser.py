"""
erlup CLI argument parser and process entry point.

This module implements the management command-line interface using argparse,
and ``main()``, which routes each invocation either to that interface or to a
proxied toolchain binary depending on the name erlup was invoked as.
"""

import argparse
import importlib
import logging
import sys
from pathlib import Path
from typing import List, Optional

from erlup.cli.utils import debug_enabled, load_config
from erlup.core.exceptions import ErlupError
from erlup.toolchain.catalog import DEFAULT_REPO
from erlup.toolchain.dispatch import MultiCallDispatcher
from erlup.toolchain.registry import ToolchainRegistry

try:
    from importlib.metadata import version

    __version__ = version("erlup")
except Exception:
    __version__ = "0.1.0"

logger = logging.getLogger(__name__)


class CLI:
    """erlup command-line interface."""

    # Command module mapping (aliases map to the same module)
    COMMANDS = {
        "fetch": "erlup.cli.commands.fetch",
        "tags": "erlup.cli.commands.tags",
        "list-tags": "erlup.cli.commands.tags",
        "branches": "erlup.cli.commands.branches",
        "list-branches": "erlup.cli.commands.branches",
        "build": "erlup.cli.commands.build",
        "switch": "erlup.cli.commands.switch",
        "default": "erlup.cli.commands.default",
        "set-default": "erlup.cli.commands.default",
        "delete": "erlup.cli.commands.delete",
        "update-links": "erlup.cli.commands.links",
        "update_links": "erlup.cli.commands.links",
        "list": "erlup.cli.commands.installed",
    }

    def __init__(self):
        """Initialize CLI with argument parser."""
        self.parser = self._create_parser()

    def _create_parser(self) -> argparse.ArgumentParser:
        """
        Create argument parser with all subcommands.

        Returns:
            Configured ArgumentParser instance
        """
        parser = argparse.ArgumentParser(
            prog="erlup",
            description="erlup - Erlang/OTP version manager",
            epilog='Use "erlup COMMAND --help" for command-specific help',
            formatter_class=argparse.RawDescriptionHelpFormatter,
        )

        # Global options
        parser.add_argument(
            "--version", action="version", version=f"erlup {__version__}"
        )
        parser.add_argument(
            "--verbose", "-v", action="store_true", help="Enable verbose output"
        )
        parser.add_argument(
            "--quiet",
            "-q",
            action="store_true",
            help="Enable minimal output (errors only)",
        )
        parser.add_argument(
            "--config",
            "-c",
            type=Path,
            metavar="PATH",
            help="Path to configuration file (default: ~/.config/erlup/config.yaml)",
        )

        subparsers = parser.add_subparsers(
            dest="command", help="Available commands", metavar="COMMAND"
        )

        self._add_repo_commands(subparsers)
        self._add_build_command(subparsers)
        self._add_selection_commands(subparsers)
        self._add_repo_management_command(subparsers)

        subparsers.add_parser(
            "update-links",
            aliases=["update_links"],
            help="Recreate the alias links in the cache bin directory",
        )
        subparsers.add_parser("list", help="List installed Erlang releases")

        return parser

    def _add_repo_option(self, parser):
        parser.add_argument(
            "--repo",
            "-r",
            default=DEFAULT_REPO,
            metavar="NAME",
            help=f"Repo to use (default: {DEFAULT_REPO})",
        )

    def _add_repo_commands(self, subparsers):
        """Add 'fetch', 'tags' and 'branches' subcommands."""
        parser = subparsers.add_parser(
            "fetch",
            help="Fetch latest tags and branches for a repo",
            description="Clone the repo if needed, then fetch from its remote",
        )
        self._add_repo_option(parser)

        parser = subparsers.add_parser(
            "tags", aliases=["list-tags"], help="List tags of a repo"
        )
        self._add_repo_option(parser)

        parser = subparsers.add_parser(
            "branches", aliases=["list-branches"], help="List branches of a repo"
        )
        self._add_repo_option(parser)

    def _add_build_command(self, subparsers):
        """Add 'build' subcommand."""
        parser = subparsers.add_parser(
            "build",
            help="Build and install an Erlang/OTP release",
            description=(
                "Build a git reference of a repo and register the result.\n"
                "Configure options come from $ERLUP_CONFIGURE_OPTIONS, or from\n"
                "erlup.default_configure_options in the config file."
            ),
        )
        parser.add_argument(
            "version",
            metavar="VSN",
            help='Tag, branch or commit to build, or "latest" for the newest tag',
        )
        parser.add_argument(
            "--id", "-i", metavar="ID", help="Id to register the build as"
        )
        self._add_repo_option(parser)
        parser.add_argument(
            "--force",
            "-f",
            action="store_true",
            help="Rebuild even if an installation with this id exists",
        )

    def _add_selection_commands(self, subparsers):
        """Add 'switch', 'default' and 'delete' subcommands."""
        parser = subparsers.add_parser(
            "switch",
            help="Use an installed release in the current directory",
            description="Write ./erlup.yaml selecting an installed release",
        )
        parser.add_argument("id", metavar="ID", help="Installed release id")

        parser = subparsers.add_parser(
            "default",
            aliases=["set-default"],
            help="Set the release used when no directory selection exists",
        )
        parser.add_argument("id", metavar="ID", help="Installed release id")

        parser = subparsers.add_parser(
            "delete",
            help="Delete an installed release",
            description="Remove an installed release from disk and from the config",
        )
        parser.add_argument("id", metavar="ID", help="Installed release id")

    def _add_repo_management_command(self, subparsers):
        """Add 'repo' subcommand with sub-subcommands."""
        parser = subparsers.add_parser(
            "repo",
            help="Manage repos",
            description="Manage source repositories (add, rm, ls)",
        )

        repo_subparsers = parser.add_subparsers(
            dest="repo_command", help="Repo management commands", metavar="COMMAND"
        )

        add_parser = repo_subparsers.add_parser("add", help="Add a repo")
        add_parser.add_argument("name", metavar="NAME", help="Repo name")
        add_parser.add_argument("url", metavar="URL", help="Git URL of the repo")

        rm_parser = repo_subparsers.add_parser("rm", help="Remove a repo")
        rm_parser.add_argument("name", metavar="NAME", help="Repo name")

        repo_subparsers.add_parser("ls", help="List repos")

    def parse_args(self, args: Optional[List[str]] = None):
        """
        Parse command-line arguments.

        Args:
            args: Arguments to parse (uses sys.argv if None)

        Returns:
            Parsed arguments namespace
        """
        return self.parser.parse_args(args)

    def run(self, args: Optional[List[str]] = None) -> int:
        """
        Run CLI with given arguments.

        Args:
            args: Arguments to parse (uses sys.argv if None)

        Returns:
            Exit code (0 for success, non-zero for error)
        """
        parsed_args = self.parse_args(args)

        self._configure_logging(parsed_args)

        if not parsed_args.command:
            self.parser.print_help()
            return 1

        try:
            return self._dispatch_command(parsed_args)
        except KeyboardInterrupt:
            logger.info("Operation cancelled by user")
            return 130
        except ErlupError as e:
            report_error(e)
            return 1
        except Exception as e:
            logger.error(f"Error: {e}")
            if parsed_args.verbose:
                import traceback

                traceback.print_exc()
            return 1

    def _configure_logging(self, args):
        """
        Configure logging based on verbose/quiet flags and $DEBUG.

        Args:
            args: Parsed arguments with verbose/quiet flags
        """
        configure_logging(verbose=args.verbose or debug_enabled(), quiet=args.quiet)

    def _dispatch_command(self, args) -> int:
        """
        Dispatch to appropriate command handler.

        Args:
            args: Parsed arguments with command field

        Returns:
            Exit code from command handler
        """
        if args.command == "repo":
            return self._dispatch_repo_command(args)

        module_name = self.COMMANDS.get(args.command)
        if not module_name:
            logger.error(f"Unknown command: {args.command}")
            return 1

        module = importlib.import_module(module_name)
        return module.run(args)

    def _dispatch_repo_command(self, args) -> int:
        """
        Dispatch repo sub-commands.

        Args:
            args: Parsed arguments with repo_command field

        Returns:
            Exit code from command handler
        """
        if not getattr(args, "repo_command", None):
            logger.error(
                "Bad command: `repo` command must be given subcommand "
                "`add`, `rm` or `ls`"
            )
            return 1

        from erlup.cli.commands import repo

        repo_command_map = {
            "add": repo.run_add,
            "rm": repo.run_rm,
            "ls": repo.run_ls,
        }

        return repo_command_map[args.repo_command](args)


def configure_logging(verbose: bool = False, quiet: bool = False):
    if verbose:
        level = logging.DEBUG
        format_str = "%(levelname)s [%(name)s] %(message)s"
    elif quiet:
        level = logging.ERROR
        format_str = "%(levelname)s: %(message)s"
    else:
        level = logging.INFO
        format_str = "%(message)s"

    logging.basicConfig(
        level=level,
        format=format_str,
        force=True,  # Reconfigure if already configured
    )


def report_error(error: ErlupError):
    logger.error(str(error))
    if error.hint:
        logger.error(error.hint)


def _proxy_registry() -> ToolchainRegistry:
    return ToolchainRegistry(load_config())


def main(argv: Optional[List[str]] = None):
    """
    Main entry point.

    Runs the management CLI when invoked as ``erlup`` and proxies to the
    active toolchain when invoked under a binary alias.
    """
    argv = list(sys.argv if argv is None else argv)
    configure_logging(verbose=debug_enabled())
    dispatcher = MultiCallDispatcher(
        management=lambda args: CLI().run(args),
        registry_factory=_proxy_registry,
    )

    try:
        exit_code = dispatcher.dispatch(argv)
    except ErlupError as e:
        report_error(e)
        exit_code = 1

    sys.exit(exit_code)


def run_management(argv: Optional[List[str]] = None):
    """Entry point for ``python -m erlup``: always management mode."""
    sys.exit(CLI().run(argv))


if __name__ == "__main__":
    main()
