"""
tests/toolchain/test_pipeline.py

Unit tests for the build step table and the pipeline that runs it.
"""

import sys
import pytest
from pathlib import Path

from erlup.core.exceptions import (
    BuildError,
    BuildStepSpawnError,
    ConfigureOptionsError,
    InstallGateError,
)
from erlup.toolchain.pipeline import (
    BuildContext,
    BuildPipeline,
    BuildStatus,
    CheckStep,
    ExecStep,
    StepOutcome,
    StepStatus,
    build_steps,
    check_disabled_applications,
    check_install_gate,
    parse_configure_options,
    run_exec_step,
)
from tests.fixtures.fakes import FakeRunner, fails_at

JOBS = 2


@pytest.fixture
def context(tmp_path) -> BuildContext:
    checkout = tmp_path / "scratch"
    checkout.mkdir()
    return BuildContext(checkout_dir=checkout, install_dir=tmp_path / "otps" / "v1")


def pipeline_for(context, runner, options=()):
    return BuildPipeline(build_steps(context.dist_dir, list(options), JOBS), runner)


# ==============================================================================
# Step Table
# ==============================================================================


@pytest.mark.unit
class TestBuildSteps:
    def test_fixed_order(self, tmp_path):
        dist = tmp_path / "otps" / "v1" / "dist"
        names = [step.name for step in build_steps(dist, [], JOBS)]

        assert names == [
            "./otp_build autoconf",
            f"./configure --prefix {dist}",
            "Checking disabled applications",
            "make -j 2",
            "make -j 2 docs DOC_TARGETS=chunks",
            "Checking install gate",
            "make -j 2 install",
            "make -j 2 install-docs",
        ]

    def test_prefix_precedes_user_options(self, tmp_path):
        dist = tmp_path / "dist"
        configure = build_steps(dist, ["--without-wx", "--prefix", "/x"], JOBS)[1]

        assert configure.command == "./configure"
        assert configure.args[:2] == ("--prefix", str(dist))
        assert configure.args[2:] == ("--without-wx", "--prefix", "/x")

    def test_jobs_default_to_cpu_count(self, tmp_path, monkeypatch):
        monkeypatch.setattr("erlup.toolchain.pipeline.os.cpu_count", lambda: 6)
        make = build_steps(tmp_path, [])[3]
        assert make.args == ("-j", "6")

    def test_exec_steps_have_empty_environment(self, tmp_path):
        for step in build_steps(tmp_path, [], JOBS):
            if isinstance(step, ExecStep):
                assert step.env == {}

    def test_gate_raises_install_gate_error(self, tmp_path):
        gate = build_steps(tmp_path, [], JOBS)[5]
        assert isinstance(gate, CheckStep)
        assert gate.error is InstallGateError


@pytest.mark.unit
class TestConfigureOptions:
    def test_empty(self):
        assert parse_configure_options("") == []
        assert parse_configure_options(None) == []

    def test_shell_quoting(self):
        options = '--without-wx --enable-jit CFLAGS="-g -O2"'
        assert parse_configure_options(options) == [
            "--without-wx",
            "--enable-jit",
            "CFLAGS=-g -O2",
        ]

    def test_unbalanced_quote(self):
        with pytest.raises(ConfigureOptionsError, match="bad configure options"):
            parse_configure_options('--with-ssl="/opt/ssl')


# ==============================================================================
# Checks
# ==============================================================================


@pytest.mark.unit
class TestDisabledApplications:
    def test_no_markers(self, context):
        assert check_disabled_applications(context).status is StepStatus.SUCCESS

    def test_warns_for_every_marker(self, context):
        for app, reason in (("wx", "wxWidgets not found"), ("odbc", "")):
            app_dir = context.checkout_dir / "lib" / app
            app_dir.mkdir(parents=True)
            (app_dir / "SKIP").write_text(reason)

        outcome = check_disabled_applications(context)

        assert outcome.status is StepStatus.WARNING
        assert "odbc will not be built and will be non-functional" in outcome.message
        assert (
            "wx will not be built and will be non-functional (wxWidgets not found)"
            in outcome.message
        )


@pytest.mark.unit
class TestInstallGate:
    def test_creates_install_dir(self, context):
        assert check_install_gate(context).status is StepStatus.SUCCESS
        assert context.install_dir.is_dir()

    def test_keeps_empty_install_dir(self, context):
        context.install_dir.mkdir(parents=True)
        assert check_install_gate(context).status is StepStatus.SUCCESS
        assert context.install_dir.is_dir()

    def test_clears_stale_install_dir(self, context):
        stale = context.install_dir / "dist" / "bin" / "erl"
        stale.parent.mkdir(parents=True)
        stale.write_text("old")

        assert check_install_gate(context).status is StepStatus.SUCCESS
        assert context.install_dir.is_dir()
        assert not stale.exists()

    def test_refuses_after_failure(self, context):
        previous = context.install_dir / "dist" / "bin" / "erl"
        previous.parent.mkdir(parents=True)
        previous.write_text("old")
        context.record_failure()

        outcome = check_install_gate(context)

        assert outcome.failed
        assert "not installing" in outcome.message
        assert previous.read_text() == "old"

    def test_refuses_non_directory(self, context):
        context.install_dir.parent.mkdir(parents=True)
        context.install_dir.write_text("not a dir")

        outcome = check_install_gate(context)

        assert outcome.failed
        assert context.install_dir.read_text() == "not a dir"


# ==============================================================================
# Pipeline
# ==============================================================================


@pytest.mark.unit
class TestBuildPipeline:
    def test_all_steps_succeed(self, context):
        runner = FakeRunner()
        report = pipeline_for(context, runner).run(context)

        assert len(report.records) == 8
        assert runner.steps[-1] == "make -j 2 install-docs"
        assert context.status is BuildStatus.SUCCESS
        assert report.failed_steps == []
        assert (context.dist_dir / "bin" / "erl").exists()

    def test_exec_failure_does_not_stop_later_exec_steps(self, context):
        runner = FakeRunner(fail_on=fails_at("./configure"))

        with pytest.raises(InstallGateError) as exc_info:
            pipeline_for(context, runner).run(context)

        # The docs build still ran after configure failed.
        assert runner.steps == [
            "./otp_build autoconf",
            f"./configure --prefix {context.dist_dir}",
            "make -j 2",
            "make -j 2 docs DOC_TARGETS=chunks",
        ]
        report = exc_info.value.report
        assert report.failed_steps == [
            f"./configure --prefix {context.dist_dir}",
            "Checking install gate",
        ]
        assert context.failed

    def test_failure_never_reaches_install(self, context):
        previous = context.install_dir / "dist" / "bin" / "erl"
        previous.parent.mkdir(parents=True)
        previous.write_text("old")
        runner = FakeRunner(fail_on=fails_at("docs"))

        with pytest.raises(InstallGateError):
            pipeline_for(context, runner).run(context)

        assert not any(name.endswith("install") for name in runner.steps)
        assert previous.read_text() == "old"

    def test_status_stays_failed(self, context):
        calls = []

        def runner(step, cwd):
            calls.append(step.name)
            if len(calls) == 1:
                return StepOutcome.fail("first step failed")
            return StepOutcome.success()

        steps = [ExecStep("a"), ExecStep("b"), ExecStep("c")]
        report = BuildPipeline(steps, runner).run(context)

        assert calls == ["a", "b", "c"]
        assert context.status is BuildStatus.FAIL
        assert report.failed_steps == ["a"]

    def test_post_install_failure_is_reported(self, context):
        runner = FakeRunner(fail_on=fails_at("install-docs"))
        report = pipeline_for(context, runner).run(context)

        assert report.failed_steps == ["make -j 2 install-docs"]
        assert context.failed

    def test_warning_is_collected(self, context, caplog):
        runner = FakeRunner(skip_apps={"wx": "wxWidgets not found"})

        with caplog.at_level("WARNING"):
            report = pipeline_for(context, runner).run(context)

        assert len(report.warnings) == 1
        assert "wx will not be built" in report.warnings[0]
        assert "wx will not be built" in caplog.text
        assert context.status is BuildStatus.SUCCESS

    def test_check_failure_uses_step_error(self, context):
        def refuse(ctx):
            return StepOutcome.fail("nope")

        pipeline = BuildPipeline([CheckStep("refuse", refuse), ExecStep("never")])
        with pytest.raises(BuildError, match="nope") as exc_info:
            pipeline.run(context)
        assert [r.step.name for r in exc_info.value.report.records] == ["refuse"]

    def test_spawn_error_propagates(self, context):
        def runner(step, cwd):
            raise BuildStepSpawnError(f"could not run {step.name}")

        with pytest.raises(BuildStepSpawnError):
            BuildPipeline([ExecStep("missing")], runner).run(context)

    def test_steps_run_in_checkout_dir(self, context):
        seen = []

        def runner(step, cwd):
            seen.append(cwd)
            return StepOutcome.success()

        BuildPipeline([ExecStep("pwd")], runner).run(context)
        assert seen == [context.checkout_dir]

    def test_progress_callback(self, context):
        events = []
        pipeline = BuildPipeline(
            [ExecStep("a")],
            FakeRunner(),
            progress_callback=lambda phase, step, record: events.append(
                (phase, step.name, record is None)
            ),
        )
        report = pipeline.run(context)

        assert events == [("start", "a", True), ("done", "a", False)]
        assert report.duration >= 0


# ==============================================================================
# Step Runner
# ==============================================================================


@pytest.mark.unit
class TestRunExecStep:
    def test_success(self, tmp_path):
        step = ExecStep(sys.executable, ("-c", "pass"))
        assert run_exec_step(step, tmp_path).status is StepStatus.SUCCESS

    def test_nonzero_exit(self, tmp_path):
        step = ExecStep(sys.executable, ("-c", "raise SystemExit(3)"))
        outcome = run_exec_step(step, tmp_path)
        assert outcome.failed
        assert "exited with status 3" in outcome.message

    def test_environment_is_not_inherited(self, tmp_path, monkeypatch):
        monkeypatch.setenv("ERLUP_LEAK_CHECK", "1")
        step = ExecStep(
            sys.executable,
            ("-c", "import os, sys; sys.exit('ERLUP_LEAK_CHECK' in os.environ)"),
        )
        assert run_exec_step(step, tmp_path).status is StepStatus.SUCCESS

    def test_runs_in_cwd(self, tmp_path):
        step = ExecStep(sys.executable, ("-c", "open('marker', 'w').close()"))
        run_exec_step(step, tmp_path)
        assert (tmp_path / "marker").exists()

    def test_missing_command(self, tmp_path):
        step = ExecStep(str(tmp_path / "no-such-command"))
        with pytest.raises(BuildStepSpawnError, match="could not run"):
            run_exec_step(step, tmp_path)
