"""
Tests for the management commands, run through the CLI.
"""

import functools
import pytest
import yaml

from erlup.cli.parser import CLI
from erlup.core.config import ConfigFile
from erlup.core.exceptions import ErlupError
from erlup.toolchain.binaries import BINARY_ALIASES
from erlup.toolchain.builder import ToolchainBuilder
from tests.fixtures.directories import TEST_REPO_URL
from tests.fixtures.fakes import FakeRunner, fails_at

pytestmark = pytest.mark.usefixtures("quiet_logging_config")


@pytest.fixture
def run_cli(user_config):
    """Run the CLI against the test user config."""

    def _run(*args):
        return CLI().run(["--config", str(user_config.path), *args])

    return _run


@pytest.fixture
def executable(tmp_path, monkeypatch):
    exe = tmp_path / "bin" / "erlup"
    exe.parent.mkdir()
    exe.write_text("#!/bin/sh\n")
    monkeypatch.setattr("erlup.cli.commands.build.current_executable", lambda: exe)
    monkeypatch.setattr("erlup.cli.commands.links.current_executable", lambda: exe)
    return exe


@pytest.fixture
def use_fake_git(monkeypatch, fake_git):
    for module in ("fetch", "tags", "branches"):
        monkeypatch.setattr(
            f"erlup.cli.commands.{module}.GitClient", lambda: fake_git
        )
    return fake_git


def use_fake_builder(monkeypatch, fake_git, runner):
    monkeypatch.setattr(
        "erlup.cli.commands.build.ToolchainBuilder",
        functools.partial(ToolchainBuilder, git=fake_git, runner=runner, jobs=2),
    )


# ==============================================================================
# Repo Commands
# ==============================================================================


class TestRepoCommands:
    def test_repo_add_and_ls(self, run_cli, capsys, user_config):
        assert run_cli("repo", "add", "fork", "git@example.com:me/otp.git") == 0
        capsys.readouterr()

        assert run_cli("repo", "ls") == 0

        out = capsys.readouterr().out.splitlines()
        assert out == [
            f"default -> {TEST_REPO_URL}",
            "fork -> git@example.com:me/otp.git",
        ]

    def test_repo_rm(self, run_cli, user_config):
        run_cli("repo", "add", "fork", "url")
        assert run_cli("repo", "rm", "fork") == 0
        assert ConfigFile(user_config.path).get("repos", "fork") is None

    def test_repo_rm_unknown(self, run_cli, caplog):
        assert run_cli("repo", "rm", "fork") == 1
        assert "Repo fork not found in config" in caplog.text

    def test_fetch_clones_then_fetches(self, run_cli, use_fake_git, cache_dir, capsys):
        assert run_cli("fetch") == 0

        repo_dir = cache_dir / "repos" / "default"
        assert use_fake_git.calls == [
            ("clone", TEST_REPO_URL, repo_dir),
            ("fetch", repo_dir),
        ]
        out = capsys.readouterr().out
        assert f"Fetching tags from {TEST_REPO_URL}" in out
        assert "Finished fetch in" in out

    def test_fetch_existing_clone(self, run_cli, use_fake_git, cache_dir):
        (cache_dir / "repos" / "default").mkdir(parents=True)
        assert run_cli("fetch") == 0
        assert [call[0] for call in use_fake_git.calls] == ["fetch"]

    def test_fetch_unknown_repo(self, run_cli, use_fake_git, caplog):
        assert run_cli("fetch", "--repo", "fork") == 1
        assert "Repo fork not found in config" in caplog.text
        assert use_fake_git.calls == []

    def test_tags(self, run_cli, use_fake_git, capsys):
        assert run_cli("tags") == 0
        assert capsys.readouterr().out.splitlines() == ["OTP-25.3", "OTP-26.2"]

    def test_branches(self, run_cli, use_fake_git, capsys):
        assert run_cli("list-branches") == 0
        assert "maint" in capsys.readouterr().out.splitlines()


# ==============================================================================
# Build
# ==============================================================================


class TestBuildCommand:
    def test_build(
        self, run_cli, monkeypatch, fake_git, fake_runner, executable, capsys, registry
    ):
        use_fake_builder(monkeypatch, fake_git, fake_runner)

        assert run_cli("build", "OTP-26.2", "--id", "26") == 0

        out = capsys.readouterr().out
        assert " ./otp_build autoconf (done in" in out
        assert "Setting up symlinks" in out
        assert "Finished build of 26 in" in out
        cache_dir = registry.cache_dir()
        saved = ConfigFile(registry.config.path).get("erlangs", "26")
        assert saved == str(cache_dir / "otps" / "26" / "dist")
        for alias in BINARY_ALIASES:
            assert (cache_dir / "bin" / alias).resolve() == executable.resolve()

    def test_build_shows_warnings(
        self, run_cli, monkeypatch, fake_git, executable, capsys
    ):
        runner = FakeRunner(skip_apps={"wx": "wxWidgets not found"})
        use_fake_builder(monkeypatch, fake_git, runner)

        assert run_cli("build", "v1") == 0
        assert "wx will not be built" in capsys.readouterr().out

    def test_build_twice_without_force(
        self, run_cli, monkeypatch, fake_git, fake_runner, executable, caplog
    ):
        use_fake_builder(monkeypatch, fake_git, fake_runner)
        assert run_cli("build", "v1") == 0

        assert run_cli("build", "v1") == 1
        assert "Directory for v1 already exists" in caplog.text
        assert "--force" in caplog.text

    def test_failed_build(self, run_cli, monkeypatch, fake_git, executable, caplog):
        runner = FakeRunner(fail_on=fails_at("./configure"))
        use_fake_builder(monkeypatch, fake_git, runner)

        assert run_cli("build", "v1") == 1
        assert "Failed steps:" in caplog.text
        assert "./configure --prefix" in caplog.text
        assert "not installing" in caplog.text

    def test_failed_install(
        self, run_cli, monkeypatch, fake_git, executable, registry, caplog
    ):
        runner = FakeRunner(fail_on=fails_at("install"))
        use_fake_builder(monkeypatch, fake_git, runner)

        assert run_cli("build", "v1") == 1
        assert "make -j 2 install" in caplog.text
        assert "was not registered" in caplog.text
        assert ConfigFile(registry.config.path).get("erlangs", "v1") is None

    def test_build_without_locatable_executable(
        self, run_cli, monkeypatch, fake_git, fake_runner, registry, caplog
    ):
        def not_found():
            raise ErlupError("failed to get current bin path")

        monkeypatch.setattr("erlup.cli.commands.build.current_executable", not_found)
        use_fake_builder(monkeypatch, fake_git, fake_runner)

        assert run_cli("build", "v1") == 0

        assert "global links not updated" in caplog.text
        assert not (registry.cache_dir() / "bin").exists()
        assert ConfigFile(registry.config.path).get("erlangs", "v1") is not None


# ==============================================================================
# Selection Commands
# ==============================================================================


class TestSelectionCommands:
    def test_list_empty(self, run_cli, capsys):
        assert run_cli("list") == 0
        assert capsys.readouterr().out == "No Erlang releases installed.\n"

    def test_list(self, run_cli, make_install, capsys):
        record = make_install("26.2")
        assert run_cli("list") == 0
        assert capsys.readouterr().out == f"26.2 -> {record.install_path}\n"

    def test_default(self, run_cli, make_install, registry):
        make_install("26.2")
        assert run_cli("default", "26.2") == 0
        assert ConfigFile(registry.config.path).get("erlup", "default") == "26.2"

    def test_default_unknown(self, run_cli, caplog):
        assert run_cli("set-default", "26.2") == 1
        assert "can't set it to default" in caplog.text

    def test_switch(self, run_cli, make_install, project_dir):
        make_install("26.2")
        assert run_cli("switch", "26.2") == 0

        data = yaml.safe_load((project_dir / "erlup.yaml").read_text())
        assert data == {"config": {"erlang": "26.2"}}

    def test_switch_unknown(self, run_cli, project_dir, caplog):
        assert run_cli("switch", "26.2") == 1
        assert not (project_dir / "erlup.yaml").exists()

    def test_delete(self, run_cli, make_install, registry):
        record = make_install("26.2")
        assert run_cli("delete", "26.2") == 0
        assert not record.install_path.parent.exists()
        assert ConfigFile(registry.config.path).get("erlangs", "26.2") is None

    def test_update_links(self, run_cli, executable, cache_dir):
        assert run_cli("update_links") == 0
        assert sorted(p.name for p in (cache_dir / "bin").iterdir()) == sorted(
            BINARY_ALIASES
        )
