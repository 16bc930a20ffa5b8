"""
Plain data records shared by the catalog, registry and dispatcher.
"""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path


@dataclass(frozen=True)
class RepoDescriptor:
    """A configured source repository."""

    name: str
    url: str


@dataclass(frozen=True)
class ToolchainRecord:
    """An installed toolchain: id and the ``dist`` directory it was installed to."""

    id: str
    install_path: Path

    @property
    def bin_dir(self) -> Path:
        return self.install_path / "bin"


class SelectionSource(Enum):
    """Where the active toolchain id came from."""

    DIRECTORY = "directory"
    GLOBAL_DEFAULT = "default"


@dataclass(frozen=True)
class ActiveSelection:
    """The toolchain in effect for a working directory."""

    record: ToolchainRecord
    source: SelectionSource

    @property
    def id(self) -> str:
        return self.record.id

    @property
    def install_path(self) -> Path:
        return self.record.install_path
