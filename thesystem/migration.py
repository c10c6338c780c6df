"""Schema migration for persisted and imported state documents.

Runs once at load (and on every import) before validation. Documents written
before schema versioning carry no meta section (schema version 0): terminal
quests were removed from the quest list, failed log entries only had
`completed: false`, and the quest log could contain duplicates.

Every step is idempotent - running the migrator on an already migrated
document changes nothing.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
import copy
from typing import Any

from . import const
from .data_builders import build_default_state, build_player
from .engines.quest_engine import QuestEngine
from .helpers.validation_helpers import dedupe_quest_log
from .utils.dt_utils import dt_now_iso

MIGRATION_DOCUMENT_STRUCTURE = "document_structure"
MIGRATION_PLAYER_DEFAULTS = "player_defaults"
MIGRATION_QUEST_LOG_DEDUP = "quest_log_dedup"
MIGRATION_QUEST_FIELDS = "quest_fields"
MIGRATION_QUEST_LOG_ENTRIES = "quest_log_entries"
MIGRATION_TERMINAL_QUESTS = "terminal_quests"
MIGRATION_HABIT_LOG = "habit_log"
MIGRATION_HABIT_STREAKS = "habit_streaks"


def schema_version_of(data: Mapping[str, Any]) -> int:
    """Return the document's schema version (0 when there is no meta section)."""
    meta = data.get(const.DATA_META)
    if not isinstance(meta, Mapping):
        return const.SCHEMA_VERSION_LEGACY
    version = meta.get(const.DATA_META_SCHEMA_VERSION, const.SCHEMA_VERSION_LEGACY)
    return version if isinstance(version, int) else const.SCHEMA_VERSION_LEGACY


def needs_migration(data: Mapping[str, Any]) -> bool:
    """True when the document is older than SCHEMA_VERSION_CURRENT."""
    return schema_version_of(data) < const.SCHEMA_VERSION_CURRENT


class SchemaMigrator:
    """Upgrades a state document to SCHEMA_VERSION_CURRENT.

    Works on a deep copy; the caller's document is never modified.

    Attributes:
        data: The document being migrated
        applied: Names of the steps run by this migrator
    """

    def __init__(self, data: Mapping[str, Any]) -> None:
        """Initialize the migrator with a copy of the document."""
        self.data: dict[str, Any] = copy.deepcopy(dict(data))
        self.applied: list[str] = []

    def run_all_migrations(self) -> dict[str, Any]:
        """Execute all migrations in order and return the migrated document."""
        from_version = schema_version_of(self.data)
        if from_version >= const.SCHEMA_VERSION_CURRENT:
            const.LOGGER.debug(
                "DEBUG: Schema version %s is current, no migration needed", from_version
            )
            return self.data

        const.LOGGER.info(
            "INFO: Migrating state document from schema %s to %s",
            from_version,
            const.SCHEMA_VERSION_CURRENT,
        )

        steps: list[tuple[str, Callable[[], None]]] = [
            # Schema 1: structure, player defaults, deduplicated log
            (MIGRATION_DOCUMENT_STRUCTURE, self._ensure_document_structure),
            (MIGRATION_PLAYER_DEFAULTS, self._fill_player_defaults),
            (MIGRATION_QUEST_LOG_DEDUP, self._dedupe_quest_log),
            # Schema 2: terminal quests stay listed, applied amounts recorded
            (MIGRATION_QUEST_FIELDS, self._normalize_quest_fields),
            (MIGRATION_QUEST_LOG_ENTRIES, self._upgrade_quest_log_entries),
            (MIGRATION_QUEST_LOG_DEDUP, self._dedupe_quest_log),
            (MIGRATION_TERMINAL_QUESTS, self._restore_terminal_quests),
            (MIGRATION_HABIT_LOG, self._normalize_habit_log),
            (MIGRATION_HABIT_STREAKS, self._sync_habit_streaks),
        ]
        for name, step in steps:
            step()
            if name not in self.applied:
                self.applied.append(name)

        self._finalize_migration_meta()
        return self.data

    # -------------------------------------------------------------------------
    # Schema 1
    # -------------------------------------------------------------------------

    def _ensure_document_structure(self) -> None:
        """Add any missing top-level section with its fresh-install default."""
        defaults = build_default_state()
        for key in (
            const.DATA_ONBOARDED,
            const.DATA_PLAYER,
            const.DATA_QUESTS,
            const.DATA_QUEST_LOG,
            const.DATA_HABITS,
            const.DATA_HABIT_LOG,
            const.DATA_HABIT_STREAKS,
            const.DATA_REWARDS,
            const.DATA_VISION,
        ):
            if not isinstance(self.data.get(key), type(defaults[key])):
                if key in self.data:
                    const.LOGGER.warning(
                        "Replacing malformed '%s' section with defaults", key
                    )
                self.data[key] = copy.deepcopy(defaults[key])

        vision = self.data[const.DATA_VISION]
        vision.setdefault(const.DATA_VISION_FUEL, "")
        vision.setdefault(const.DATA_VISION_FEAR, "")

    def _fill_player_defaults(self) -> None:
        """Add player fields introduced after the first release."""
        player = self.data[const.DATA_PLAYER]
        for key, default in build_player().items():
            if player.get(key) is None and default is not None:
                player[key] = default
            else:
                player.setdefault(key, default)

        health = player[const.DATA_PLAYER_HEALTH]
        if isinstance(health, (int, float)) and not isinstance(health, bool):
            player[const.DATA_PLAYER_HEALTH] = int(
                max(const.MIN_HEALTH, min(health, const.MAX_HEALTH))
            )

    def _dedupe_quest_log(self) -> None:
        """Collapse entries sharing (id, completedAt)."""
        self.data[const.DATA_QUEST_LOG] = dedupe_quest_log(self.data[const.DATA_QUEST_LOG])

    # -------------------------------------------------------------------------
    # Schema 2
    # -------------------------------------------------------------------------

    @staticmethod
    def _fill_quest_defaults(quest: dict[str, Any]) -> None:
        """Give a quest dict every field of the current quest shape."""
        if quest.get(const.DATA_QUEST_ID) is not None:
            quest[const.DATA_QUEST_ID] = str(quest[const.DATA_QUEST_ID])
        rank = str(quest.get(const.DATA_QUEST_RANK) or const.DEFAULT_QUEST_RANK).upper()
        quest[const.DATA_QUEST_RANK] = (
            rank if rank in const.QUEST_RANKS else const.DEFAULT_QUEST_RANK
        )

        reward, gold, penalty = QuestEngine.compute_amounts(quest[const.DATA_QUEST_RANK])
        for key, default in (
            (const.DATA_QUEST_REWARD, reward),
            (const.DATA_QUEST_GOLD_REWARD, gold),
            (const.DATA_QUEST_PENALTY, penalty),
        ):
            if quest.get(key) is None:
                quest[key] = default

        quest[const.DATA_QUEST_COMPLETED] = bool(quest.get(const.DATA_QUEST_COMPLETED))
        quest[const.DATA_QUEST_FAILED] = bool(quest.get(const.DATA_QUEST_FAILED))
        for key in (
            const.DATA_QUEST_DUE_DATE,
            const.DATA_QUEST_CREATED_AT,
            const.DATA_QUEST_COMPLETED_AT,
            const.DATA_QUEST_FAIL_REASON,
        ):
            if quest.get(key) == "":
                quest[key] = None
            quest.setdefault(key, None)

    def _normalize_quest_fields(self) -> None:
        """Fill missing quest fields; amounts come from the rank table."""
        quests = [q for q in self.data[const.DATA_QUESTS] if isinstance(q, dict)]
        for quest in quests:
            self._fill_quest_defaults(quest)
        self.data[const.DATA_QUESTS] = quests

    def _upgrade_quest_log_entries(self) -> None:
        """Convert log entries to the current terminal snapshot shape.

        Entries without completedAt cannot be keyed and are dropped. A legacy
        entry with completed=false is a failure: flag it and record the
        penalty it applied (health was not tracked, so 0 is restored on undo).
        """
        upgraded: list[dict[str, Any]] = []
        for entry in self.data[const.DATA_QUEST_LOG]:
            if not entry.get(const.DATA_QUEST_COMPLETED_AT):
                const.LOGGER.warning(
                    "Dropping quest log entry without completedAt: %s",
                    entry.get(const.DATA_QUEST_ID),
                )
                continue
            self._fill_quest_defaults(entry)
            if entry[const.DATA_QUEST_COMPLETED]:
                entry[const.DATA_QUEST_FAILED] = False
                entry.setdefault(
                    const.DATA_QUEST_LOG_XP_APPLIED, entry[const.DATA_QUEST_REWARD]
                )
                entry.setdefault(
                    const.DATA_QUEST_LOG_GOLD_APPLIED, entry[const.DATA_QUEST_GOLD_REWARD]
                )
            else:
                entry[const.DATA_QUEST_FAILED] = True
                if entry.get(const.DATA_QUEST_FAIL_REASON) not in const.FAIL_REASONS:
                    entry[const.DATA_QUEST_FAIL_REASON] = const.FAIL_REASON_MANUAL
                entry.setdefault(
                    const.DATA_QUEST_LOG_PENALTY_APPLIED, entry[const.DATA_QUEST_PENALTY]
                )
                entry.setdefault(const.DATA_QUEST_LOG_HEALTH_APPLIED, const.DEFAULT_ZERO)
            upgraded.append(entry)
        self.data[const.DATA_QUEST_LOG] = upgraded

    def _restore_terminal_quests(self) -> None:
        """Put logged quests missing from the quest list back, flagged terminal.

        Uses the most recent log entry per id so undo has a live quest to
        reactivate.
        """
        listed = {q.get(const.DATA_QUEST_ID) for q in self.data[const.DATA_QUESTS]}
        latest: dict[str, dict[str, Any]] = {}
        for entry in self.data[const.DATA_QUEST_LOG]:
            quest_id = entry[const.DATA_QUEST_ID]
            if quest_id in listed:
                continue
            current = latest.get(quest_id)
            if current is None or str(entry[const.DATA_QUEST_COMPLETED_AT]) >= str(
                current[const.DATA_QUEST_COMPLETED_AT]
            ):
                latest[quest_id] = entry

        for entry in latest.values():
            quest = {
                key: value
                for key, value in copy.deepcopy(entry).items()
                if key
                not in (
                    const.DATA_QUEST_LOG_XP_APPLIED,
                    const.DATA_QUEST_LOG_GOLD_APPLIED,
                    const.DATA_QUEST_LOG_PENALTY_APPLIED,
                    const.DATA_QUEST_LOG_HEALTH_APPLIED,
                )
            }
            self.data[const.DATA_QUESTS].append(quest)
        if latest:
            const.LOGGER.info("INFO: Restored %d terminal quest(s) from the log", len(latest))

    def _normalize_habit_log(self) -> None:
        """Habit log dates hold lists of string ids without duplicates."""
        normalized: dict[str, list[str]] = {}
        for day, ids in self.data[const.DATA_HABIT_LOG].items():
            if not isinstance(ids, list):
                const.LOGGER.warning("Dropping malformed habit log entry for %s", day)
                continue
            normalized[str(day)] = list(dict.fromkeys(str(habit_id) for habit_id in ids))
        self.data[const.DATA_HABIT_LOG] = normalized

    def _sync_habit_streaks(self) -> None:
        """One streak per existing habit; orphaned streaks are dropped."""
        for habit in self.data[const.DATA_HABITS]:
            if isinstance(habit, dict) and habit.get(const.DATA_HABIT_ID) is not None:
                habit[const.DATA_HABIT_ID] = str(habit[const.DATA_HABIT_ID])
                habit.setdefault(const.DATA_HABIT_ICON, const.DEFAULT_HABIT_ICON)
        habit_ids = [
            h.get(const.DATA_HABIT_ID)
            for h in self.data[const.DATA_HABITS]
            if isinstance(h, dict)
        ]
        streaks = self.data[const.DATA_HABIT_STREAKS]
        self.data[const.DATA_HABIT_STREAKS] = {
            habit_id: streaks.get(habit_id, const.DEFAULT_ZERO)
            for habit_id in habit_ids
            if habit_id is not None
        }

    # -------------------------------------------------------------------------
    # Meta
    # -------------------------------------------------------------------------

    def _finalize_migration_meta(self) -> None:
        """Stamp the meta section. MUST run after all other steps succeed."""
        meta = self.data.get(const.DATA_META)
        previous = (
            list(meta.get(const.DATA_META_MIGRATIONS_APPLIED, []))
            if isinstance(meta, Mapping)
            else []
        )
        self.data[const.DATA_META] = {
            const.DATA_META_SCHEMA_VERSION: const.SCHEMA_VERSION_CURRENT,
            const.DATA_META_LAST_MIGRATION_DATE: dt_now_iso(),
            const.DATA_META_MIGRATIONS_APPLIED: previous
            + [name for name in self.applied if name not in previous],
        }
        const.LOGGER.debug(
            "DEBUG: Migration meta finalized: schema_version=%s",
            const.SCHEMA_VERSION_CURRENT,
        )


def migrate_document(data: Mapping[str, Any]) -> dict[str, Any]:
    """Convenience wrapper: migrate a document and return the result."""
    return SchemaMigrator(data).run_all_migrations()
