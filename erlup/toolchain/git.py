"""
Git operations used to materialize OTP sources.

git is driven as an external command; any non-zero exit is raised as
``GitCommandError`` and nothing is retried.
"""

import logging
import subprocess
from pathlib import Path
from typing import List, Sequence

from erlup.core.exceptions import GitCommandError, GitNotFoundError
from erlup.core.filesystem import extract_tar

logger = logging.getLogger(__name__)


class GitClient:
    """Thin wrapper over the ``git`` executable."""

    def __init__(self, git: str = "git"):
        self.git = git

    def _run(self, args: Sequence[str], cwd: Path = None) -> str:
        cmd = [self.git, *args]
        logger.debug(f"Running {' '.join(cmd)} in {cwd or Path.cwd()}")

        try:
            result = subprocess.run(
                cmd, capture_output=True, text=True, cwd=str(cwd) if cwd else None
            )
        except OSError as e:
            raise GitNotFoundError(f"git command failed: {e}") from e

        if result.returncode != 0:
            raise GitCommandError(args, result.returncode, result.stderr)

        return result.stdout

    def clone(self, url: str, dest: Path):
        """Clone ``url`` into ``dest`` (parent directories are created)."""
        dest = Path(dest)
        dest.parent.mkdir(parents=True, exist_ok=True)
        logger.info(f"Cloning repo {url} to {dest}")
        self._run(["clone", url, str(dest)])

    def fetch(self, repo_dir: Path):
        self._run(["fetch"], cwd=repo_dir)

    def list_tags(self, repo_dir: Path) -> List[str]:
        return self._lines(self._run(["tag"], cwd=repo_dir))

    def list_branches(self, repo_dir: Path) -> List[str]:
        output = self._run(
            ["branch", "--all", "--format=%(refname:short)"], cwd=repo_dir
        )
        return self._lines(output)

    def latest_tag(self, repo_dir: Path) -> str:
        """
        Describe the most recently created tag reachable from any tag ref.

        Raises:
            GitCommandError: If the repo has no tags or git fails
        """
        rev = self._run(["rev-list", "--tags", "--max-count=1"], cwd=repo_dir).strip()
        if not rev:
            raise GitCommandError(
                ["rev-list", "--tags", "--max-count=1"], 0, f"no tags in {repo_dir}"
            )
        return self._run(["describe", "--tags", rev], cwd=repo_dir).strip()

    def archive(self, repo_dir: Path, ref: str, output: Path) -> Path:
        """Write a tar archive of ``ref`` to ``output``."""
        logger.debug(f"Archiving {ref} from {repo_dir} to {output}")
        self._run(["archive", "--format=tar", "-o", str(output), ref], cwd=repo_dir)
        return Path(output)

    def extract(self, archive: Path, target_dir: Path):
        extract_tar(archive, target_dir)

    def checkout(self, repo_dir: Path, ref: str, target_dir: Path):
        """Materialize ``ref`` of ``repo_dir`` as plain files in ``target_dir``."""
        archive = self.archive(repo_dir, ref, Path(target_dir) / "otp.tar")
        self.extract(archive, target_dir)
        archive.unlink()

    @staticmethod
    def _lines(output: str) -> List[str]:
        return [line.strip() for line in output.splitlines() if line.strip()]
