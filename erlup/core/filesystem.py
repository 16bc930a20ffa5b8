"""
File system utilities for erlup.

This module provides the filesystem operations the build pipeline and the
config store depend on:
- Safe file operations (atomic writes, safe deletion)
- Tar extraction with path validation
- Scoped temporary directories whose removal failures are surfaced
"""

import os
import shutil
import sys
import tarfile
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Union

from erlup.core.exceptions import ErlupError

IS_WINDOWS = os.name == "nt"


class FilesystemError(ErlupError):
    """Base exception for filesystem operations."""

    pass


class ArchiveExtractionError(FilesystemError):
    """Failed to extract an archive."""

    pass


class InsecureArchiveError(ArchiveExtractionError):
    """Archive contains paths that would escape the destination."""

    pass


# ============================================================================
# Path Utilities
# ============================================================================


def is_relative_to(path: Path, parent: Path) -> bool:
    """
    Check if path is relative to parent.

    Args:
        path: Path to check
        parent: Potential parent path

    Returns:
        True if path is under parent
    """
    try:
        path.relative_to(parent)
        return True
    except ValueError:
        return False


def is_empty_directory(path: Union[str, Path]) -> bool:
    """
    Check if a directory is empty.

    Args:
        path: Directory path

    Returns:
        True if directory exists and is empty
    """
    path = Path(path)

    if not path.is_dir():
        return False

    return not any(path.iterdir())


# ============================================================================
# Archive Extraction
# ============================================================================


def _validate_archive_path(path: str, destination: Path) -> None:
    """
    Validate that an archive member path is safe to extract.

    Raises:
        InsecureArchiveError: If path attempts directory traversal
    """
    member_path = (destination / path).resolve()

    if not is_relative_to(member_path, destination.resolve()):
        raise InsecureArchiveError(
            f"Archive member '{path}' attempts directory traversal. "
            "This is a security risk and extraction has been blocked."
        )


def extract_tar(archive_path: Union[str, Path], destination: Union[str, Path]) -> None:
    """
    Extract an uncompressed or compressed tar archive into destination.

    All member paths are validated before anything is written.

    Args:
        archive_path: Path to the tar file
        destination: Directory to extract into (created if missing)

    Raises:
        ArchiveExtractionError: If the archive is missing or unreadable
        InsecureArchiveError: If the archive contains escaping paths
    """
    archive_path = Path(archive_path)
    destination = Path(destination)

    if not archive_path.exists():
        raise ArchiveExtractionError(f"Archive not found: {archive_path}")

    destination.mkdir(parents=True, exist_ok=True)

    try:
        with tarfile.open(archive_path, "r:*") as tar:
            for member in tar.getmembers():
                _validate_archive_path(member.name, destination)

            # otp_build and configure must keep their executable bits.
            if sys.version_info >= (3, 12):
                tar.extractall(destination, filter="tar")
            else:
                tar.extractall(destination)
    except InsecureArchiveError:
        raise
    except (tarfile.TarError, OSError) as e:
        raise ArchiveExtractionError(f"Failed to extract {archive_path}: {e}")


# ============================================================================
# Safe File Operations
# ============================================================================


def atomic_write(
    file_path: Union[str, Path], content: Union[str, bytes], encoding: str = "utf-8"
) -> None:
    """
    Write file atomically using temp file + rename.

    If the write fails, the original file (if any) remains unchanged.

    Args:
        file_path: Path to write to
        content: Content to write (string or bytes)
        encoding: Text encoding (used only for string content)
    """
    file_path = Path(file_path)
    file_path.parent.mkdir(parents=True, exist_ok=True)

    temp_fd, temp_path_str = tempfile.mkstemp(
        dir=file_path.parent, prefix=f".{file_path.name}.", suffix=".tmp"
    )
    temp_path = Path(temp_path_str)

    try:
        if isinstance(content, str):
            with open(temp_fd, "w", encoding=encoding) as f:
                f.write(content)
        else:
            with open(temp_fd, "wb") as f:
                f.write(content)

        temp_path.replace(file_path)

    except Exception:
        temp_path.unlink(missing_ok=True)
        raise


def safe_rmtree(
    path: Union[str, Path], require_prefix: Union[str, Path, None] = None
) -> None:
    """
    Remove a directory tree, refusing paths outside ``require_prefix``.

    Args:
        path: Directory to remove
        require_prefix: If specified, path must be under this directory

    Raises:
        ValueError: If path is not under require_prefix
        FilesystemError: If path is not a directory or deletion fails

    Example:
        >>> safe_rmtree('/tmp/build', require_prefix='/tmp')
    """
    path = Path(path).resolve()

    if require_prefix is not None:
        require_prefix = Path(require_prefix).resolve()
        if not is_relative_to(path, require_prefix):
            raise ValueError(
                f"Refusing to delete '{path}': not under required prefix '{require_prefix}'"
            )

    if not path.exists():
        return

    if not path.is_dir():
        raise FilesystemError(f"Path is not a directory: {path}")

    try:
        if IS_WINDOWS:

            def handle_remove_readonly(func, failed_path, exc):
                if not os.access(failed_path, os.W_OK):
                    os.chmod(failed_path, 0o777)
                    func(failed_path)
                else:
                    raise

            shutil.rmtree(path, onerror=handle_remove_readonly)
        else:
            shutil.rmtree(path)

    except Exception as e:
        raise FilesystemError(f"Failed to remove directory '{path}': {e}")


# ============================================================================
# Temporary Directory Management
# ============================================================================


@contextmanager
def temporary_directory(prefix: str = "erlup_"):
    """
    Context manager for a temporary directory that is always removed.

    Unlike ``tempfile.TemporaryDirectory`` a failure to remove the directory
    is raised as ``FilesystemError`` instead of being ignored.

    Yields:
        Path to temporary directory
    """
    temp_dir = Path(tempfile.mkdtemp(prefix=prefix))

    try:
        yield temp_dir
    finally:
        if temp_dir.exists():
            safe_rmtree(temp_dir)


__all__ = [
    "FilesystemError",
    "ArchiveExtractionError",
    "InsecureArchiveError",
    "is_relative_to",
    "is_empty_directory",
    "extract_tar",
    "atomic_write",
    "safe_rmtree",
    "temporary_directory",
]
