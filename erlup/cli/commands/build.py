"""
Build command implementation.

Builds an Erlang/OTP release from a configured repository and registers it.
"""

import logging
import time

from erlup.cli.utils import (
    CHECKMARK,
    CROSS,
    WARNING_MARK,
    current_executable,
    format_duration,
    get_registry,
    safe_print,
)
from erlup.core.exceptions import BuildError, ErlupError
from erlup.toolchain.builder import ToolchainBuilder
from erlup.toolchain.pipeline import StepStatus

logger = logging.getLogger(__name__)

_MARKS = {
    StepStatus.SUCCESS: CHECKMARK,
    StepStatus.WARNING: WARNING_MARK,
    StepStatus.FAIL: CROSS,
}


def show_progress(phase: str, step, record):
    """Print one line per finished step with its duration."""
    if phase != "done":
        logger.debug(f"Running {step.name}")
        return

    mark = _MARKS[record.outcome.status]
    safe_print(f" {mark} {step.name} (done in {format_duration(record.duration)})")
    if record.outcome.status is StepStatus.WARNING:
        safe_print(f"   {record.outcome.message}")


def _global_links_target():
    """The erlup executable, or None when it cannot be located."""
    try:
        return current_executable()
    except ErlupError as e:
        logger.warning(f"{e}; global links not updated")
        logger.warning("Run `erlup update-links` from an installed erlup later")
        return None


def run(args) -> int:
    """
    Run the build command.

    Args:
        args: Parsed command-line arguments with:
            - version: Git reference or "latest"
            - id: Registry id (default: the reference)
            - repo: Repo catalog name
            - force: Rebuild an existing id

    Returns:
        Exit code (0 for success, non-zero for error)
    """
    started = time.monotonic()
    registry = get_registry(args)
    builder = ToolchainBuilder(registry, progress_callback=show_progress)

    try:
        result = builder.build(
            args.version,
            toolchain_id=args.id,
            repo=args.repo,
            force=args.force,
            executable=_global_links_target(),
        )
    except BuildError as e:
        report = getattr(e, "report", None)
        if report is not None and report.failed_steps:
            logger.error("Failed steps:")
            for name in report.failed_steps:
                logger.error(f"  {name}")
        raise

    safe_print(f" {CHECKMARK} Setting up symlinks")
    print(
        f"Finished build of {result.record.id} in "
        f"{format_duration(time.monotonic() - started)}"
    )
    return 0
