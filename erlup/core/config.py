"""
YAML-backed configuration store.

A ``ConfigFile`` wraps one sectioned YAML document (section -> key -> value)
and is the explicit handle passed to the repo catalog and the toolchain
registry. Edits are serialized through a file lock and written atomically.

Example:
    >>> config = ConfigFile(Path("~/.config/erlup/config.yaml").expanduser())
    >>> config.get("repos", "default")
    'https://github.com/erlang/otp'
    >>> with config.edit() as data:
    ...     data.setdefault("repos", {})["mine"] = "git@example.com:me/otp.git"
"""

import logging
from contextlib import contextmanager, nullcontext
from pathlib import Path
from typing import Dict, Optional

import yaml
from filelock import FileLock, Timeout

from erlup.core.exceptions import ConfigError, ConfigKeyMissingError, ConfigLockTimeout
from erlup.core.filesystem import atomic_write

logger = logging.getLogger(__name__)


class ConfigFile:
    """
    Sectioned key/value configuration persisted as YAML.

    Attributes:
        path: Location of the YAML file
        lock_path: Location of the lock file guarding edits
    """

    def __init__(self, path: Path, lock_timeout: int = 30, use_lock: bool = True):
        """
        Initialize config handle.

        Args:
            path: Path to the YAML file (need not exist yet)
            lock_timeout: Timeout in seconds for acquiring the edit lock
            use_lock: Guard edits with a lock file next to the config
        """
        self.path = Path(path)
        self.lock_path = self.path.parent / f".{self.path.name}.lock"
        self.lock_timeout = lock_timeout
        self.use_lock = use_lock
        self._data: Optional[dict] = None

    def _load(self) -> dict:
        if not self.path.exists():
            logger.debug(f"Config file not found: {self.path}")
            return {}

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {self.path}: {e}") from e
        except OSError as e:
            raise ConfigError(f"Failed to read {self.path}: {e}") from e

        data = data or {}
        if not isinstance(data, dict) or not all(
            values is None or isinstance(values, dict) for values in data.values()
        ):
            raise ConfigError(f"Invalid config format in {self.path}")

        # Keys such as version ids must stay strings even when YAML sees numbers.
        return {
            str(section): {
                str(k): str(v) for k, v in (values or {}).items() if v is not None
            }
            for section, values in data.items()
        }

    def _save(self, data: dict):
        content = yaml.safe_dump(data, default_flow_style=False, sort_keys=True)
        try:
            atomic_write(self.path, content)
        except OSError as e:
            raise ConfigError(f"Failed to write {self.path}: {e}") from e
        logger.debug(f"Saved config to {self.path}")

    @property
    def data(self) -> dict:
        if self._data is None:
            self._data = self._load()
        return self._data

    def reload(self):
        self._data = self._load()

    def section(self, name: str) -> Dict[str, str]:
        """Return a copy of a section (empty dict if absent)."""
        return dict(self.data.get(name, {}))

    def get(self, section: str, key: str) -> Optional[str]:
        logger.debug(f"reading section '{section}' key '{key}'")
        return self.data.get(section, {}).get(key)

    def get_with_default(self, section: str, key: str, default: str) -> str:
        value = self.get(section, key)
        return default if value is None else value

    def require(
        self, section: str, key: str, message: str = "", hint: Optional[str] = None
    ) -> str:
        """
        Look up a key that must be present.

        Raises:
            ConfigKeyMissingError: If the section or key is absent
        """
        value = self.get(section, key)
        if value is None:
            raise ConfigKeyMissingError(section, key, message, hint)
        return value

    @contextmanager
    def edit(self):
        """
        Lock, reload, yield the mutable data, then save atomically.

        Raises:
            ConfigLockTimeout: If the lock cannot be acquired within timeout
        """
        self.path.parent.mkdir(parents=True, exist_ok=True)
        if self.use_lock:
            lock = FileLock(str(self.lock_path), timeout=self.lock_timeout)
        else:
            lock = nullcontext()

        try:
            with lock:
                data = self._load()
                yield data
                self._save(data)
                self._data = data
        except Timeout as e:
            raise ConfigLockTimeout(
                f"Could not acquire config lock within {self.lock_timeout} seconds"
            ) from e

    def set(self, section: str, key: str, value: str):
        with self.edit() as data:
            data.setdefault(section, {})[key] = str(value)

    def delete(self, section: str, key: str) -> bool:
        """Remove a key. Returns False if it was not present."""
        with self.edit() as data:
            values = data.get(section, {})
            if key not in values:
                return False
            del values[key]
            return True
