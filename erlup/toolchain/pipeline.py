"""
Build pipeline for compiling and installing Erlang/OTP from a source tree.

The pipeline is a fixed, ordered table of steps. ``ExecStep`` runs an external
command and only its exit status is observed; ``CheckStep`` is a decision over
the ``BuildContext``. Exec failures are accumulated into the context status
and never stop the sequence on their own: only a check step can halt it. The
install gate is the check that refuses to touch the install directory once any
earlier step has failed.
"""

import logging
import os
import shlex
import subprocess
import time
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence, Tuple, Type, Union

from erlup.core.exceptions import (
    BuildError,
    BuildStepSpawnError,
    ConfigureOptionsError,
    InstallGateError,
)
from erlup.core.filesystem import is_empty_directory, safe_rmtree

logger = logging.getLogger(__name__)


# ============================================================================
# Outcomes and Context
# ============================================================================


class StepStatus(Enum):
    """Result of a single step."""

    SUCCESS = "success"
    WARNING = "warning"
    FAIL = "fail"


@dataclass(frozen=True)
class StepOutcome:
    status: StepStatus
    message: str = ""

    @classmethod
    def success(cls) -> "StepOutcome":
        return cls(StepStatus.SUCCESS)

    @classmethod
    def warning(cls, message: str) -> "StepOutcome":
        return cls(StepStatus.WARNING, message)

    @classmethod
    def fail(cls, message: str) -> "StepOutcome":
        return cls(StepStatus.FAIL, message)

    @property
    def failed(self) -> bool:
        return self.status is StepStatus.FAIL


class BuildStatus(Enum):
    """Cumulative status of a build. Once FAIL, it stays FAIL."""

    SUCCESS = "success"
    FAIL = "fail"


@dataclass
class BuildContext:
    """
    State shared by the steps of one build.

    Attributes:
        checkout_dir: Scratch source tree the steps run in
        install_dir: Installation root (``dist`` lives below it)
        status: Cumulative status, see ``record_failure``
    """

    checkout_dir: Path
    install_dir: Path
    status: BuildStatus = BuildStatus.SUCCESS

    def record_failure(self):
        self.status = BuildStatus.FAIL

    @property
    def failed(self) -> bool:
        return self.status is BuildStatus.FAIL

    @property
    def dist_dir(self) -> Path:
        return self.install_dir / "dist"


# ============================================================================
# Steps
# ============================================================================


@dataclass(frozen=True)
class ExecStep:
    """
    External command run in the checkout directory.

    ``env`` is the complete environment of the child; nothing is inherited.
    """

    command: str
    args: Tuple[str, ...] = ()
    env: Dict[str, str] = field(default_factory=dict, compare=False)

    @property
    def name(self) -> str:
        return " ".join([self.command, *self.args])


@dataclass(frozen=True)
class CheckStep:
    """Decision over the build context; a FAIL outcome halts the pipeline."""

    name: str
    predicate: Callable[[BuildContext], StepOutcome]
    error: Type[BuildError] = BuildError


BuildStep = Union[ExecStep, CheckStep]


@dataclass
class StepRecord:
    step: BuildStep
    outcome: StepOutcome
    duration: float


@dataclass
class BuildReport:
    """Per-step outcomes and timings of one pipeline run."""

    records: List[StepRecord] = field(default_factory=list)

    @property
    def warnings(self) -> List[str]:
        return [
            r.outcome.message
            for r in self.records
            if r.outcome.status is StepStatus.WARNING
        ]

    @property
    def failed_steps(self) -> List[str]:
        return [r.step.name for r in self.records if r.outcome.failed]

    @property
    def duration(self) -> float:
        return sum(r.duration for r in self.records)


# ============================================================================
# Step Execution
# ============================================================================


def run_exec_step(step: ExecStep, cwd: Path) -> StepOutcome:
    """
    Run one exec step and map its exit status to an outcome.

    Args:
        step: Step to run
        cwd: Directory to run it in

    Returns:
        SUCCESS on exit status 0, FAIL otherwise

    Raises:
        BuildStepSpawnError: If the command could not be started
    """
    cmd = [step.command, *step.args]
    logger.debug(f"Running {step.name} in {cwd}")

    try:
        result = subprocess.run(
            cmd,
            cwd=str(cwd),
            env=dict(step.env),
            capture_output=True,
            text=True,
            errors="replace",
        )
    except OSError as e:
        raise BuildStepSpawnError(f"build failed: could not run {step.name}: {e}") from e

    logger.debug(f"stdout: {result.stdout}")
    logger.debug(f"stderr: {result.stderr}")

    if result.returncode != 0:
        return StepOutcome.fail(f"{step.name} exited with status {result.returncode}")
    return StepOutcome.success()


# ============================================================================
# Checks
# ============================================================================


def check_disabled_applications(context: BuildContext) -> StepOutcome:
    """
    Warn about OTP applications configure decided to skip.

    configure leaves a ``lib/<app>/SKIP`` file (usually containing the reason)
    for every application it will not build. This check never fails.
    """
    markers = sorted(context.checkout_dir.glob("lib/*/SKIP"))
    if not markers:
        return StepOutcome.success()

    messages = []
    for marker in markers:
        app = marker.parent.name
        try:
            reason = marker.read_text(errors="replace").strip()
        except OSError:
            reason = ""
        message = f"{app} will not be built and will be non-functional"
        if reason:
            message += f" ({reason})"
        messages.append(message)

    return StepOutcome.warning("; ".join(messages))


def check_install_gate(context: BuildContext) -> StepOutcome:
    """
    Decide whether installation may proceed.

    A failed build never touches the install directory, so a previous good
    installation survives. A successful build clears a stale, non-empty
    install directory before the install steps run.
    """
    install_dir = context.install_dir

    if context.failed:
        return StepOutcome.fail(
            f"Build failed, not installing; {install_dir} left untouched"
        )

    if install_dir.exists() and not install_dir.is_dir():
        return StepOutcome.fail(f"Install path is not a directory: {install_dir}")

    if install_dir.is_dir() and not is_empty_directory(install_dir):
        logger.info(f"Removing stale install directory {install_dir}")
        safe_rmtree(install_dir)

    install_dir.mkdir(parents=True, exist_ok=True)
    return StepOutcome.success()


# ============================================================================
# Pipeline
# ============================================================================


def parse_configure_options(options: str) -> List[str]:
    """
    Split a configure option string the way a POSIX shell would.

    Example:
        >>> parse_configure_options('--without-wx CFLAGS="-g -O2"')
        ['--without-wx', 'CFLAGS=-g -O2']

    Raises:
        ConfigureOptionsError: If the string cannot be tokenized
    """
    try:
        return shlex.split(options or "")
    except ValueError as e:
        raise ConfigureOptionsError(f"bad configure options {options}\n\t{e}") from e


def build_steps(
    dist_dir: Path, configure_options: Sequence[str], jobs: Optional[int] = None
) -> List[BuildStep]:
    """
    Return the fixed step table for one OTP build.

    ``--prefix <dist_dir>`` always comes first in the configure arguments.
    """
    jobs = str(jobs or os.cpu_count() or 1)
    return [
        ExecStep("./otp_build", ("autoconf",)),
        ExecStep("./configure", ("--prefix", str(dist_dir), *configure_options)),
        CheckStep("Checking disabled applications", check_disabled_applications),
        ExecStep("make", ("-j", jobs)),
        ExecStep("make", ("-j", jobs, "docs", "DOC_TARGETS=chunks")),
        CheckStep("Checking install gate", check_install_gate, InstallGateError),
        ExecStep("make", ("-j", jobs, "install")),
        ExecStep("make", ("-j", jobs, "install-docs")),
    ]


class BuildPipeline:
    """
    Runs a step table against a build context.

    Args:
        steps: Ordered steps
        runner: Exec step runner (default: ``run_exec_step``)
        progress_callback: Optional callback(phase, step, record); phase is
            "start" (record is None) or "done"
    """

    def __init__(
        self,
        steps: Sequence[BuildStep],
        runner: Callable[[ExecStep, Path], StepOutcome] = run_exec_step,
        progress_callback: Optional[Callable] = None,
    ):
        self.steps = list(steps)
        self.runner = runner
        self.progress_callback = progress_callback

    def _notify(self, phase: str, step: BuildStep, record: Optional[StepRecord]):
        if self.progress_callback:
            self.progress_callback(phase, step, record)

    def run(self, context: BuildContext) -> BuildReport:
        """
        Execute every step in order.

        Returns:
            Report of every executed step

        Raises:
            BuildError: The check step's error type when a check fails; the
                partial report is attached as ``report``
            BuildStepSpawnError: If an exec step cannot be started
        """
        report = BuildReport()

        for step in self.steps:
            self._notify("start", step, None)
            started = time.monotonic()

            if isinstance(step, ExecStep):
                outcome = self.runner(step, context.checkout_dir)
                if outcome.failed:
                    logger.debug(f"Step failed: {outcome.message}")
                    context.record_failure()
            else:
                outcome = step.predicate(context)

            record = StepRecord(step, outcome, time.monotonic() - started)
            report.records.append(record)
            self._notify("done", step, record)

            if outcome.status is StepStatus.WARNING:
                logger.warning(outcome.message)

            if isinstance(step, CheckStep) and outcome.failed:
                error = step.error(outcome.message)
                error.report = report
                raise error

        return report
