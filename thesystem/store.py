"""Handles persistent data storage for THE SYSTEM.

Each store is one JSON file inside a storage directory, wrapped in a small
envelope ({version, key, data}). The state document and the UI settings live
in two stores keyed STORAGE_KEY and STORAGE_KEY_SETTINGS.
"""

from __future__ import annotations

from collections.abc import Callable
import json
import os
from pathlib import Path
import tempfile
from typing import Any

from . import const
from .data_builders import build_default_state
from .helpers import backup_helpers


class SystemStore:
    """Handles persistent storage operations for one JSON document.

    Thin wrapper around a file on disk with an in-memory cache. Reads accept
    both the envelope format and a bare document (a raw state dump
    copied into the storage directory).
    """

    def __init__(
        self,
        storage_dir: str | os.PathLike[str],
        storage_key: str = const.STORAGE_KEY,
        default_factory: Callable[[], dict[str, Any]] | None = None,
    ) -> None:
        """Initialize the store.

        Args:
            storage_dir: Directory holding the store file and its backups.
            storage_key: File name of the store (default: const.STORAGE_KEY).
            default_factory: Builds the structure used when no file exists
                (default: a fresh state document).

        """
        self.storage_dir = os.fspath(storage_dir)
        self.storage_key = storage_key
        self._default_factory = default_factory or SystemStore.get_default_structure
        self._data: dict[str, Any] = {}

    @staticmethod
    def get_default_structure() -> dict[str, Any]:
        """Return the canonical document of a fresh installation."""
        return dict(build_default_state())

    def get_storage_path(self) -> str:
        """Get the storage file path."""
        return os.path.join(self.storage_dir, self.storage_key)

    def load(self) -> dict[str, Any] | None:
        """Read the stored document without touching the cache.

        Returns:
            The document, or None when no file exists.

        Raises:
            ValueError: The file is not valid JSON or not an object.
        """
        path = Path(self.get_storage_path())
        if not path.exists():
            return None

        raw = json.loads(path.read_text(encoding=const.STORAGE_FILE_ENCODING))
        if not isinstance(raw, dict):
            raise ValueError(f"Store file {path} does not hold a JSON object")

        if const.DATA_STORE_KEY in raw and const.DATA_STORE_DATA in raw:
            version = raw.get(const.DATA_STORE_VERSION)
            if version != const.STORAGE_VERSION:
                const.LOGGER.warning(
                    "WARNING: Store %s has version %s, expected %s",
                    self.storage_key,
                    version,
                    const.STORAGE_VERSION,
                )
            data = raw[const.DATA_STORE_DATA]
            if not isinstance(data, dict):
                raise ValueError(f"Store file {path} has no data object")
            return data

        const.LOGGER.debug("DEBUG: Store %s holds a bare document", self.storage_key)
        return raw

    def initialize(self) -> bool:
        """Load data from storage during startup.

        If no data exists, initializes with the default structure. A corrupt
        file is copied to a 'recovery' backup first, then replaced by
        defaults on the next save.

        Returns:
            True when existing data was loaded from disk.
        """
        const.LOGGER.debug("DEBUG: SystemStore: Loading data from %s", self.get_storage_path())
        try:
            existing_data = self.load()
        except (OSError, ValueError) as err:
            const.LOGGER.error(
                "ERROR: Store %s is unreadable (%s). Saving a recovery backup and "
                "starting from defaults",
                self.storage_key,
                err,
            )
            backup_helpers.create_timestamped_backup(self, const.BACKUP_TAG_RECOVERY)
            existing_data = None
            loaded = False
        else:
            loaded = existing_data is not None

        if existing_data is None:
            const.LOGGER.info("INFO: No existing storage found. Initializing new data")
            self._data = self._default_factory()
        else:
            self._data = existing_data
            const.LOGGER.debug(
                "DEBUG: Loaded existing data from storage: %s keys", len(self._data)
            )
        return loaded

    @property
    def data(self) -> dict[str, Any]:
        """Retrieve the in-memory data cache."""
        return self._data

    def set_data(self, new_data: dict[str, Any]) -> None:
        """Replace the entire in-memory data structure."""
        const.LOGGER.debug(
            "DEBUG: Store %s set_data called with %s keys", self.storage_key, len(new_data)
        )
        self._data = new_data

    def save(self) -> bool:
        """Write the in-memory data to disk atomically.

        Errors are logged but do not stop execution.

        Returns:
            True when the file was written.
        """
        envelope = {
            const.DATA_STORE_VERSION: const.STORAGE_VERSION,
            const.DATA_STORE_KEY: self.storage_key,
            const.DATA_STORE_DATA: self._data,
        }
        tmp_path: str | None = None
        try:
            content = json.dumps(envelope, indent=2, ensure_ascii=False)
            os.makedirs(self.storage_dir, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(
                dir=self.storage_dir, prefix=f".{self.storage_key}.", suffix=".tmp"
            )
            with os.fdopen(fd, "w", encoding=const.STORAGE_FILE_ENCODING) as handle:
                handle.write(content)
            os.replace(tmp_path, self.get_storage_path())
            tmp_path = None
            const.LOGGER.debug("DEBUG: Data saved successfully to %s", self.storage_key)
            return True
        except OSError as err:
            const.LOGGER.error(
                "ERROR: Failed to save storage due to file system error: %s. "
                "Check disk space and file permissions for %s",
                err,
                self.get_storage_path(),
            )
        except TypeError as err:
            const.LOGGER.error(
                "ERROR: Failed to save storage due to non-serializable data: %s. "
                "Data contains types that cannot be converted to JSON",
                err,
            )
        except ValueError as err:
            const.LOGGER.error(
                "ERROR: Failed to save storage due to invalid data format: %s. "
                "Data structure may be corrupted",
                err,
            )
        finally:
            if tmp_path is not None and os.path.exists(tmp_path):
                os.remove(tmp_path)
        return False

    def clear_data(self) -> None:
        """Clear all stored data and reset to the default structure."""
        const.LOGGER.warning("WARNING: Clearing all data of store %s", self.storage_key)
        self._data = self._default_factory()
        self.save()

    def delete_storage(self) -> None:
        """Clear in-memory data and remove the store file from disk."""
        self._data = self._default_factory()
        try:
            os.remove(self.get_storage_path())
            const.LOGGER.info(
                "INFO: Storage file removed successfully: %s", self.get_storage_path()
            )
        except FileNotFoundError:
            const.LOGGER.debug("DEBUG: No storage file to remove for %s", self.storage_key)
        except OSError as err:
            const.LOGGER.error(
                "ERROR: Failed to remove storage file %s: %s. Check file permissions",
                self.get_storage_path(),
                err,
            )
