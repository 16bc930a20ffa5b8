"""
Toolchain registry for tracking installed Erlang/OTP builds.

Installed toolchains live in the ``erlangs`` section of the user config
(id -> ``<cache>/otps/<id>/dist``). The active toolchain for a working
directory is chosen by a directory-scoped ``erlup.yaml`` when present, and
otherwise by the global ``erlup.default`` id.

Example:
    >>> registry = ToolchainRegistry(ConfigFile(get_config_file()))
    >>> registry.register("26.2", Path("/home/user/.cache/erlup/otps/26.2/dist"))
    >>> registry.set_default("26.2")
    >>> registry.resolve_active(Path.cwd()).install_path
    PosixPath('/home/user/.cache/erlup/otps/26.2/dist')
"""

import logging
from pathlib import Path
from typing import List, Optional, Tuple

from erlup.core.config import ConfigFile
from erlup.core.directory import get_local_config_file, installs_dir
from erlup.core.exceptions import ToolchainNotFoundError, ToolchainSelectionError
from erlup.core.filesystem import safe_rmtree
from erlup.toolchain.models import ActiveSelection, SelectionSource, ToolchainRecord

logger = logging.getLogger(__name__)

ERLUP_SECTION = "erlup"
TOOLCHAINS_SECTION = "erlangs"
LOCAL_SECTION = "config"
LOCAL_KEY = "erlang"


class ToolchainRegistry:
    """
    Manages installed toolchains and the active selection.

    Args:
        config: User config handle
    """

    def __init__(self, config: ConfigFile):
        self.config = config

    # ------------------------------------------------------------------
    # Cache layout
    # ------------------------------------------------------------------

    def cache_dir(self) -> Path:
        return Path(
            self.config.require(
                ERLUP_SECTION,
                "dir",
                f"The config file {self.config.path} is missing the erlup.dir "
                "setting used for storing repos and built Erlang versions",
            )
        ).expanduser()

    def install_dir(self, toolchain_id: str) -> Path:
        return installs_dir(self.cache_dir()) / toolchain_id

    # ------------------------------------------------------------------
    # Records
    # ------------------------------------------------------------------

    def register(self, toolchain_id: str, install_path: Path) -> ToolchainRecord:
        self.config.set(TOOLCHAINS_SECTION, toolchain_id, str(install_path))
        logger.debug(f"Registered toolchain {toolchain_id} -> {install_path}")
        return ToolchainRecord(id=toolchain_id, install_path=Path(install_path))

    def find(self, toolchain_id: str) -> Optional[ToolchainRecord]:
        path = self.config.get(TOOLCHAINS_SECTION, toolchain_id)
        if path is None:
            return None
        return ToolchainRecord(id=toolchain_id, install_path=Path(path))

    def get(self, toolchain_id: str) -> ToolchainRecord:
        """
        Look up an installed toolchain.

        Raises:
            ToolchainNotFoundError: If the id is not registered
        """
        record = self.find(toolchain_id)
        if record is None:
            raise ToolchainNotFoundError(toolchain_id)
        return record

    def list(self) -> List[ToolchainRecord]:
        return [
            ToolchainRecord(id=toolchain_id, install_path=Path(path))
            for toolchain_id, path in self.config.section(TOOLCHAINS_SECTION).items()
        ]

    def delete(self, toolchain_id: str) -> Path:
        """
        Remove a toolchain's installation tree and its registry entry.

        The tree removed is the installation root (the parent of ``dist``).
        If the deleted id was the global default, the default is cleared.

        Returns:
            The directory that was removed.

        Raises:
            ToolchainNotFoundError: If the id is not registered or its
                installation directory no longer exists
        """
        record = self.get(toolchain_id)
        root = record.install_path
        if root.name == "dist":
            root = root.parent

        if not root.is_dir():
            raise ToolchainNotFoundError(
                toolchain_id,
                f"Directory for {toolchain_id} does not exist: {root}",
                f"Remove the '{toolchain_id}' entry under '{TOOLCHAINS_SECTION}' "
                f"in {self.config.path} by hand",
            )

        safe_rmtree(root)

        with self.config.edit() as data:
            data.get(TOOLCHAINS_SECTION, {}).pop(toolchain_id, None)
            erlup = data.get(ERLUP_SECTION, {})
            if erlup.get("default") == toolchain_id:
                del erlup["default"]
                logger.warning(f"{toolchain_id} was the default; no default is set now")

        logger.info(f"Deleted {toolchain_id} ({root})")
        return root

    # ------------------------------------------------------------------
    # Selection
    # ------------------------------------------------------------------

    def default_id(self) -> Optional[str]:
        return self.config.get(ERLUP_SECTION, "default")

    def set_default(self, toolchain_id: str):
        """
        Make ``toolchain_id`` the global default.

        Raises:
            ToolchainNotFoundError: If the id is not registered
        """
        if self.find(toolchain_id) is None:
            raise ToolchainNotFoundError(
                toolchain_id,
                f"{toolchain_id} is not a configured Erlang install, "
                "can't set it to default",
            )
        self.config.set(ERLUP_SECTION, "default", toolchain_id)
        logger.info(f"Default Erlang now {toolchain_id}")

    def switch(self, toolchain_id: str, directory: Path) -> Path:
        """
        Select ``toolchain_id`` for ``directory`` by writing its erlup.yaml.

        Returns:
            Path of the written selection file.

        Raises:
            ToolchainNotFoundError: If the id is not registered
        """
        self.get(toolchain_id)
        local_file = get_local_config_file(Path(directory))
        local = ConfigFile(local_file, use_lock=False)
        local.set(LOCAL_SECTION, LOCAL_KEY, toolchain_id)
        logger.info(f"Switched Erlang used in this directory to {toolchain_id}")
        logger.info(f"Wrote setting to file {local_file}")
        return local_file

    def selected_id(self, directory: Path) -> Tuple[str, SelectionSource]:
        """
        Return the id in effect for ``directory`` and where it came from.

        Raises:
            ToolchainSelectionError: If the directory file lacks an entry, or
                no directory file exists and no default is set
        """
        local_file = get_local_config_file(Path(directory))
        if local_file.exists():
            logger.debug(f"Found {local_file}")
            toolchain_id = ConfigFile(local_file).get(LOCAL_SECTION, LOCAL_KEY)
            if toolchain_id is None:
                raise ToolchainSelectionError(
                    f"No Erlang entry found in {local_file}",
                    hint="Delete or update the config file",
                )
            return toolchain_id, SelectionSource.DIRECTORY

        logger.debug(f"No {local_file} found, going to default")
        toolchain_id = self.default_id()
        if toolchain_id is None:
            raise ToolchainSelectionError(
                "No default Erlang set", hint="Use `erlup default <id>`"
            )
        return toolchain_id, SelectionSource.GLOBAL_DEFAULT

    def resolve_active(self, directory: Path) -> ActiveSelection:
        """
        Resolve the installed toolchain in effect for ``directory``.

        Raises:
            ToolchainSelectionError: If nothing is selected or the selected id
                has no registry entry
        """
        toolchain_id, source = self.selected_id(directory)
        logger.debug(f"Using Erlang with id {toolchain_id}")

        record = self.find(toolchain_id)
        if record is None:
            raise ToolchainSelectionError(
                f"No directory found for Erlang with id {toolchain_id} in config",
                hint="Run `erlup list` to see installed ids",
            )
        return ActiveSelection(record=record, source=source)
