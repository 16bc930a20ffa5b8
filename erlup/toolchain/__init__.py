"""
Toolchain management: catalog, registry, build pipeline, links and dispatch.
"""

from .binaries import BINARY_ALIASES, MANAGEMENT_COMMAND
from .builder import ToolchainBuilder, BuildResult
from .catalog import RepoCatalog
from .dispatch import MultiCallDispatcher, ExecLauncher, SpawnLauncher
from .git import GitClient
from .linking import ShimFarmManager
from .models import ActiveSelection, RepoDescriptor, SelectionSource, ToolchainRecord
from .pipeline import BuildContext, BuildPipeline, BuildReport, build_steps
from .registry import ToolchainRegistry

__all__ = [
    "BINARY_ALIASES",
    "MANAGEMENT_COMMAND",
    "ToolchainBuilder",
    "BuildResult",
    "RepoCatalog",
    "MultiCallDispatcher",
    "ExecLauncher",
    "SpawnLauncher",
    "GitClient",
    "ShimFarmManager",
    "ActiveSelection",
    "RepoDescriptor",
    "SelectionSource",
    "ToolchainRecord",
    "BuildContext",
    "BuildPipeline",
    "BuildReport",
    "build_steps",
    "ToolchainRegistry",
]
