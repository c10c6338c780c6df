"""Backup utilities for THE SYSTEM.

Handles export/import documents plus creating, discovering, validating, and
cleaning up timestamped copies of the store file.
"""

from __future__ import annotations

from collections.abc import Mapping
import copy
import datetime
import json
import os
from pathlib import Path
import shutil
from typing import TYPE_CHECKING, Any

from .. import const
from ..migration import migrate_document
from ..utils.dt_utils import dt_iso_date, dt_now_iso, dt_now_utc
from .validation_helpers import (
    StateValidationError,
    validate_export_envelope,
    validate_settings,
    validate_state_document,
)

if TYPE_CHECKING:
    from ..store import SystemStore
    from ..type_defs import ExportDocument, SettingsData, StateDocument


class BackupValidationError(Exception):
    """Raised when an import document cannot be applied.

    Attributes:
        errors: Human-readable error strings
    """

    def __init__(self, message: str, errors: list[str] | None = None) -> None:
        """Initialize BackupValidationError."""
        self.errors = errors or [message]
        super().__init__(message)


# ==============================================================================
# Export / Import
# ==============================================================================


def build_export_document(
    state: StateDocument,
    settings: Mapping[str, Any] | None = None,
    *,
    now: str | None = None,
) -> ExportDocument:
    """Wrap the state document and exported settings for download.

    Only tabOrder and soundEnabled travel with an export.
    """
    settings = settings or {}
    data: dict[str, Any] = copy.deepcopy(dict(state))
    data[const.DATA_SETTINGS] = {
        key: copy.deepcopy(settings.get(key, const.DEFAULT_SETTINGS[key]))
        for key in const.EXPORTED_SETTINGS
    }
    return {
        const.DATA_EXPORT_VERSION: const.EXPORT_VERSION,
        const.DATA_EXPORT_EXPORTED_AT: now or dt_now_iso(),
        const.DATA_EXPORT_APP_NAME: const.APP_NAME,
        const.DATA_EXPORT_DATA: data,
    }


def export_filename(day: datetime.date | str | None = None) -> str:
    """Download name for an export, e.g. 'the-system-backup-2025-01-15.json'."""
    iso_day = dt_iso_date(day) if day is not None else None
    if iso_day is None:
        iso_day = dt_iso_date(dt_now_utc())
    return f"{const.EXPORT_FILENAME_PREFIX}-{iso_day}.json"


def parse_import_document(
    document: Mapping[str, Any] | str,
) -> tuple[StateDocument, SettingsData]:
    """Validate an export document and split it into state and settings.

    The state goes through the same migration as a loaded store file, so
    exports from older versions import cleanly.

    Returns:
        (state, settings) where settings only holds keys present in the file

    Raises:
        BackupValidationError: Malformed JSON, wrong appName, missing data,
            or state that fails validation
    """
    if isinstance(document, str):
        try:
            document = json.loads(document)
        except json.JSONDecodeError as err:
            raise BackupValidationError(f"Invalid JSON: {err.msg}") from err

    try:
        envelope = validate_export_envelope(document)
    except StateValidationError as err:
        raise BackupValidationError(str(err), err.errors) from err

    app_name = envelope[const.DATA_EXPORT_APP_NAME]
    if app_name != const.APP_NAME:
        const.LOGGER.warning("Rejected import from unknown app '%s'", app_name)
        raise BackupValidationError(f"Not a {const.APP_NAME} backup: {app_name!r}")

    data = dict(envelope[const.DATA_EXPORT_DATA])
    raw_settings = data.pop(const.DATA_SETTINGS, None) or {}

    try:
        state = validate_state_document(migrate_document(data))
        settings = validate_settings(raw_settings)
    except StateValidationError as err:
        raise BackupValidationError(str(err), err.errors) from err

    const.LOGGER.info(
        "INFO: Parsed import (version %s, exported %s)",
        envelope[const.DATA_EXPORT_VERSION],
        envelope.get(const.DATA_EXPORT_EXPORTED_AT),
    )
    return state, settings


# ==============================================================================
# Timestamped Backups
# ==============================================================================


def _backup_prefix(store: SystemStore) -> str:
    return f"{store.storage_key}_"


def create_timestamped_backup(
    store: SystemStore,
    tag: str,
    max_backups: int = const.DEFAULT_BACKUPS_MAX_RETAINED,
) -> str | None:
    """Create a timestamped copy of the store file with the specified tag.

    Args:
        store: Store whose file is copied
        tag: Backup tag (e.g., 'recovery', 'reset', 'pre-migration', 'manual')
        max_backups: Retention per tag; 0 disables backups

    Returns:
        Filename of created backup (e.g., 'theSystem_2025-12-18_14-30-22_reset')
        or None if backup creation failed or backups are disabled.

    File naming format: <storage_key>_YYYY-MM-DD_HH-MM-SS_<tag>
    """
    if max_backups == 0:
        const.LOGGER.debug("Backups disabled (max_backups=0), skipping %s backup", tag)
        cleanup_old_backups(store, max_backups)
        return None

    try:
        timestamp = dt_now_utc().strftime("%Y-%m-%d_%H-%M-%S")
        filename = f"{_backup_prefix(store)}{timestamp}_{tag}"

        storage_path = store.get_storage_path()
        if not os.path.exists(storage_path):
            const.LOGGER.warning("Storage file does not exist, cannot create backup")
            return None

        backup_path = os.path.join(store.storage_dir, filename)
        shutil.copy2(storage_path, backup_path)
        const.LOGGER.debug("Created backup: %s", filename)

        cleanup_old_backups(store, max_backups)
        return filename

    except (OSError, ValueError) as ex:
        const.LOGGER.error("Failed to create backup with tag %s: %s", tag, ex)
        return None


def cleanup_old_backups(
    store: SystemStore, max_backups: int = const.DEFAULT_BACKUPS_MAX_RETAINED
) -> None:
    """Delete old backups beyond max_backups limit per tag.

    Behavior:
        - If max_backups is 0, deletes ALL backups (backups disabled)
        - Keeps newest N backups per tag (e.g., 5 manual, 5 reset, etc.)
        - Logs warnings for deletion failures but continues processing
    """
    max_backups = int(max_backups)
    backups_list = discover_backups(store)

    if max_backups == 0:
        const.LOGGER.info(
            "Backups disabled (max_backups=0), deleting all %d existing backups",
            len(backups_list),
        )

    backups_by_tag: dict[str, list[dict[str, Any]]] = {}
    for backup in backups_list:
        backups_by_tag.setdefault(backup["tag"], []).append(backup)

    for tag, tag_backups in backups_by_tag.items():
        # discover_backups() already returns newest first
        backups_to_delete = tag_backups[max_backups:]
        const.LOGGER.debug(
            "Tag '%s': keeping %d newest, deleting %d oldest (max_backups=%d)",
            tag,
            min(len(tag_backups), max_backups),
            len(backups_to_delete),
            max_backups,
        )
        for backup in backups_to_delete:
            try:
                os.remove(os.path.join(store.storage_dir, backup["filename"]))
                const.LOGGER.info("Cleaned up old %s backup: %s", tag, backup["filename"])
            except OSError as ex:
                const.LOGGER.warning(
                    "Failed to delete backup %s: %s", backup["filename"], ex
                )


def discover_backups(store: SystemStore) -> list[dict[str, Any]]:
    """Scan the storage directory for backup files and return metadata.

    Returns:
        List of backup metadata dictionaries, newest first, with keys:
        - filename: str (e.g., 'theSystem_2025-12-18_14-30-22_reset')
        - tag: str (e.g., 'recovery', 'reset', 'pre-migration', 'manual')
        - timestamp: datetime (UTC, parsed from filename)
        - age_hours: float (hours since backup creation)
        - size_bytes: int (file size in bytes)

    Invalid filenames are skipped with debug log.
    """
    backups_list: list[dict[str, Any]] = []
    storage_dir = store.storage_dir
    prefix = _backup_prefix(store)

    try:
        if not os.path.exists(storage_dir):
            const.LOGGER.warning("Storage directory does not exist: %s", storage_dir)
            return backups_list

        for filename in os.listdir(storage_dir):
            if not filename.startswith(prefix):
                continue

            # Format: YYYY-MM-DD_HH-MM-SS_<tag>
            try:
                parts = filename[len(prefix) :].rsplit("_", 1)
                if len(parts) != 2:
                    const.LOGGER.debug("Skipping invalid backup filename: %s", filename)
                    continue

                timestamp_str, tag = parts
                timestamp = datetime.datetime.strptime(
                    timestamp_str, "%Y-%m-%d_%H-%M-%S"
                ).replace(tzinfo=datetime.UTC)
                age_hours = (dt_now_utc() - timestamp).total_seconds() / 3600
                size_bytes = os.path.getsize(os.path.join(storage_dir, filename))

                backups_list.append(
                    {
                        "filename": filename,
                        "tag": tag,
                        "timestamp": timestamp,
                        "age_hours": age_hours,
                        "size_bytes": size_bytes,
                    }
                )

            except (ValueError, OSError) as ex:
                const.LOGGER.debug("Skipping invalid backup file %s: %s", filename, ex)
                continue

    except OSError as ex:
        const.LOGGER.error("Failed to scan storage directory: %s", ex)

    backups_list.sort(key=lambda b: b["timestamp"], reverse=True)
    return backups_list


def read_backup(store: SystemStore, filename: str) -> dict[str, Any]:
    """Load the state document held in a backup file.

    Raises:
        BackupValidationError: Unknown file, unreadable file or invalid content
    """
    if os.path.basename(filename) != filename or not filename.startswith(
        _backup_prefix(store)
    ):
        raise BackupValidationError(f"Not a backup of this store: {filename}")

    try:
        content = Path(store.storage_dir, filename).read_text(
            encoding=const.STORAGE_FILE_ENCODING
        )
    except OSError as ex:
        raise BackupValidationError(f"Cannot read backup {filename}: {ex}") from ex

    if not validate_backup_json(content):
        raise BackupValidationError(f"Backup {filename} is not a valid state file")

    data = json.loads(content)
    if const.DATA_EXPORT_APP_NAME in data:
        data = data[const.DATA_EXPORT_DATA]
    elif const.DATA_STORE_KEY in data and const.DATA_STORE_DATA in data:
        data = data[const.DATA_STORE_DATA]
    return data


def format_backup_age(age_hours: float) -> str:
    """Convert hours to human-readable age string.

    Precision:
        - < 1 hour: minutes (at least 1)
        - < 24 hours: hours
        - < 7 days: days
        - >= 7 days: weeks
    """
    if age_hours < 1:
        minutes = max(1, int(age_hours * 60))
        return f"{minutes} minute{'s' if minutes != 1 else ''} ago"

    if age_hours < 24:
        hours = int(age_hours)
        return f"{hours} hour{'s' if hours != 1 else ''} ago"

    if age_hours < 168:  # 7 days
        days = int(age_hours / 24)
        return f"{days} day{'s' if days != 1 else ''} ago"

    weeks = int(age_hours / 168)
    return f"{weeks} week{'s' if weeks != 1 else ''} ago"


def validate_backup_json(json_str: str) -> bool:
    """Check that a JSON string looks like a restorable state file.

    Supported formats:
        1. Export format:
            {"version": "1.0", "appName": "THE SYSTEM", "data": {...}}

        2. Store format (version 1):
            {"version": 1, "key": "theSystem", "data": {...}}

        3. Bare state document:
            {"player": {...}, "quests": [...], ...}

    Minimum requirements:
        - Valid JSON syntax with a top-level object
        - Store format must be version 1
        - The unwrapped document holds at least one state section
    """
    try:
        data = json.loads(json_str)

        if not isinstance(data, dict):
            const.LOGGER.debug("Backup JSON is not a dictionary")
            return False

        if const.DATA_EXPORT_APP_NAME in data:
            if data[const.DATA_EXPORT_APP_NAME] != const.APP_NAME:
                const.LOGGER.debug("Export from another app: %s", data[const.DATA_EXPORT_APP_NAME])
                return False
            data = data.get(const.DATA_EXPORT_DATA)

        elif const.DATA_STORE_KEY in data:
            store_version = data.get(const.DATA_STORE_VERSION)
            if store_version != const.STORAGE_VERSION:
                const.LOGGER.warning(
                    "Unsupported Store version %s - only version %s is supported",
                    store_version,
                    const.STORAGE_VERSION,
                )
                return False
            data = data.get(const.DATA_STORE_DATA)

        if not isinstance(data, dict):
            const.LOGGER.debug("Backup JSON 'data' is not a dictionary")
            return False

        section_keys = {
            const.DATA_PLAYER,
            const.DATA_QUESTS,
            const.DATA_QUEST_LOG,
            const.DATA_HABITS,
            const.DATA_REWARDS,
        }
        if not any(key in data for key in section_keys):
            const.LOGGER.debug("Backup JSON missing all state section keys")
            return False

        return True

    except json.JSONDecodeError as ex:
        const.LOGGER.debug("Invalid JSON in backup: %s", ex)
        return False
