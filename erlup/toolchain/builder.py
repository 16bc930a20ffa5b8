"""
Toolchain build orchestration.

``ToolchainBuilder`` turns a repository reference into a registered
installation: it resolves the repository and id, guards against overwriting
an existing installation, materializes the sources into a scratch directory,
runs the build pipeline, refreshes alias links and records the result.
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional

from erlup.core.exceptions import InstallStepError, ToolchainExistsError
from erlup.core.directory import links_dir
from erlup.core.filesystem import temporary_directory
from erlup.toolchain.catalog import DEFAULT_REPO, RepoCatalog
from erlup.toolchain.git import GitClient
from erlup.toolchain.linking import ShimFarmManager
from erlup.toolchain.models import ToolchainRecord
from erlup.toolchain.pipeline import (
    BuildContext,
    BuildPipeline,
    BuildReport,
    build_steps,
    parse_configure_options,
    run_exec_step,
)
from erlup.toolchain.registry import ERLUP_SECTION, ToolchainRegistry

logger = logging.getLogger(__name__)

CONFIGURE_OPTIONS_ENV = "ERLUP_CONFIGURE_OPTIONS"
LATEST = "latest"


@dataclass
class BuildResult:
    record: ToolchainRecord
    report: BuildReport
    version: str


class ToolchainBuilder:
    """
    Builds and registers toolchains.

    Args:
        registry: Toolchain registry (its config also holds the repo catalog)
        git: Version control client
        shims: Link manager
        runner: Exec step runner handed to the pipeline
        progress_callback: Passed through to the pipeline
    """

    def __init__(
        self,
        registry: ToolchainRegistry,
        git: Optional[GitClient] = None,
        shims: Optional[ShimFarmManager] = None,
        runner: Callable = run_exec_step,
        progress_callback: Optional[Callable] = None,
        jobs: Optional[int] = None,
    ):
        self.registry = registry
        self.catalog = RepoCatalog(registry.config)
        self.git = git or GitClient()
        self.shims = shims or ShimFarmManager()
        self.runner = runner
        self.progress_callback = progress_callback
        self.jobs = jobs

    def configure_options(self) -> str:
        """Configure options from the environment, else from config."""
        options = os.environ.get(CONFIGURE_OPTIONS_ENV)
        if options is not None:
            return options
        return self.registry.config.get_with_default(
            ERLUP_SECTION, "default_configure_options", ""
        )

    def ensure_checkout(self, url: str, repo_dir: Path):
        if not repo_dir.is_dir():
            self.git.clone(url, repo_dir)

    def build_installation(
        self,
        repo_url: str,
        repo_dir: Path,
        install_dir: Path,
        version: str,
        configure_options: str,
    ) -> BuildReport:
        """
        Produce an installation in ``install_dir`` from ``version``.

        The scratch checkout is removed on every exit path. A build that
        fails before the install gate leaves ``install_dir`` exactly as it was.

        Returns:
            Pipeline report

        Raises:
            ConfigureOptionsError: Malformed option string (nothing is run)
            VCSError: Clone or archive failure
            InstallGateError: A step failed before installation
            InstallStepError: An install step failed; nothing is linked
            BuildStepSpawnError: A step's command could not be started
        """
        user_options = parse_configure_options(configure_options)
        self.ensure_checkout(repo_url, repo_dir)

        with temporary_directory(prefix="erlup_") as scratch:
            logger.debug(f"temp dir: {scratch}")
            logger.info(f"Checking out {version}")
            self.git.checkout(repo_dir, version, scratch)

            context = BuildContext(checkout_dir=scratch, install_dir=install_dir)
            steps = build_steps(context.dist_dir, user_options, self.jobs)
            pipeline = BuildPipeline(steps, self.runner, self.progress_callback)
            report = pipeline.run(context)

        if context.failed:
            error = InstallStepError(install_dir.name, install_dir)
            error.report = report
            raise error

        self.shims.refresh_installation(install_dir)
        return report

    def build(
        self,
        version: str,
        toolchain_id: Optional[str] = None,
        repo: str = DEFAULT_REPO,
        force: bool = False,
        executable: Optional[Path] = None,
    ) -> BuildResult:
        """
        Build ``version`` from ``repo`` and register it as ``toolchain_id``.

        Args:
            version: Git reference, or "latest" for the newest tag
            toolchain_id: Registry id (default: the resolved reference)
            repo: Repo catalog name
            force: Rebuild even if the install directory already exists
            executable: erlup executable for the global alias links; links
                are left alone when None

        Raises:
            RepoNotFoundError: Unknown repo
            ToolchainExistsError: Install directory exists and not forced
            BuildError: Any pipeline failure; the id is not registered
        """
        repo_url = self.catalog.get(repo).url
        cache_dir = self.registry.cache_dir()
        repo_dir = RepoCatalog.checkout_dir(cache_dir, repo)
        options = self.configure_options()

        if version == LATEST:
            self.ensure_checkout(repo_url, repo_dir)
            version = self.git.latest_tag(repo_dir)

        toolchain_id = toolchain_id or version
        install_dir = self.registry.install_dir(toolchain_id)

        if install_dir.exists() and not force:
            raise ToolchainExistsError(toolchain_id, install_dir)

        logger.debug(f"building {toolchain_id}:")
        logger.debug(f"    repo url: {repo_url}")
        logger.debug(f"    repo dir: {repo_dir}")
        logger.debug(f"    install: {install_dir}")
        logger.debug(f"    version: {version}")
        logger.debug(f"    options: {options}")

        report = self.build_installation(
            repo_url, repo_dir, install_dir, version, options
        )

        if executable is not None:
            self.shims.refresh_global(executable, links_dir(cache_dir))

        record = self.registry.register(toolchain_id, install_dir / "dist")
        return BuildResult(record=record, report=report, version=version)
