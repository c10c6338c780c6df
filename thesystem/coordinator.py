"""Coordinator for THE SYSTEM.

Owns the session around the pure reducers: loads (and migrates) the stored
document, runs the start-of-day reducers, applies actions, persists accepted
results and dispatches the events they produced to listeners.

Reducers never do I/O; every write to disk happens here.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
import copy
from datetime import date
import os
from typing import Any

from . import const
from .data_builders import build_default_state
from .engines.progression_engine import ProgressionEngine
from .engines.statistics_engine import StatisticsEngine
from .helpers import backup_helpers
from .helpers.validation_helpers import (
    StateValidationError,
    validate_settings,
    validate_state_document,
)
from .migration import SchemaMigrator, needs_migration
from .reducers import (
    ReducerResult,
    add_habit,
    add_quest,
    add_reward,
    buy_reward,
    claim_login_reward,
    complete_onboarding,
    complete_quest,
    delete_habit,
    delete_quest,
    delete_reward,
    fail_overdue_quests,
    fail_quest,
    process_day_rollover,
    refresh_habit_streaks,
    rename_player,
    reset_system,
    toggle_habit,
    undo_quest,
    update_vision,
)
from .store import SystemStore
from .utils.dt_utils import dt_today_local

EventCallback = Callable[[dict[str, Any]], None]


def _default_settings() -> dict[str, Any]:
    return copy.deepcopy(dict(const.DEFAULT_SETTINGS))


class SystemCoordinator:
    """Single-writer session over one storage directory.

    Listeners registered with listen() receive each event as one payload
    dict that also carries the event name under "event".
    """

    def __init__(
        self,
        storage_dir: str | os.PathLike[str],
        *,
        max_backups: int = const.DEFAULT_BACKUPS_MAX_RETAINED,
    ) -> None:
        """Initialize the coordinator (nothing is read until initialize())."""
        self.store = SystemStore(storage_dir, const.STORAGE_KEY)
        self.settings_store = SystemStore(
            storage_dir, const.STORAGE_KEY_SETTINGS, default_factory=_default_settings
        )
        self.max_backups = max_backups
        self._listeners: dict[str, list[EventCallback]] = {}

    # -------------------------------------------------------------------------------------
    # Startup
    # -------------------------------------------------------------------------------------

    def initialize(self, *, today: date | str | None = None) -> list[ReducerResult]:
        """Load state, migrate it, and run the start-of-day reducers.

        Returns:
            Results of the rollover, overdue and streak refresh reducers, in
            the order they ran.
        """
        loaded = self.store.initialize()
        self.settings_store.initialize()
        data = self.store.data

        if loaded and needs_migration(data):
            backup_helpers.create_timestamped_backup(
                self.store, const.BACKUP_TAG_PRE_MIGRATION, self.max_backups
            )
            data = SchemaMigrator(data).run_all_migrations()

        try:
            state = validate_state_document(data)
        except StateValidationError as err:
            const.LOGGER.error(
                "ERROR: Stored state is invalid (%s). Saving a recovery backup and "
                "starting from defaults",
                err,
            )
            backup_helpers.create_timestamped_backup(
                self.store, const.BACKUP_TAG_RECOVERY, self.max_backups
            )
            state = build_default_state()
        self.store.set_data(state)

        try:
            settings = validate_settings(self.settings_store.data)
        except StateValidationError as err:
            const.LOGGER.warning(
                "Stored settings are invalid (%s), using default settings", err
            )
            settings = {}
        self.settings_store.set_data({**_default_settings(), **settings})

        results = self.start_new_day(today=today)
        # Persist the migrated/normalized document even when no reducer changed it
        self.store.save()
        self.settings_store.save()
        return results

    def start_new_day(self, *, today: date | str | None = None) -> list[ReducerResult]:
        """Run the day rollover, fail overdue quests and refresh streaks."""
        current = today or dt_today_local()
        return [
            self._apply(process_day_rollover, today=current),
            self._apply(fail_overdue_quests, today=current),
            self._apply(refresh_habit_streaks, today=current),
        ]

    # -------------------------------------------------------------------------------------
    # State Access
    # -------------------------------------------------------------------------------------

    @property
    def state(self) -> dict[str, Any]:
        """The current state document (treat as read-only)."""
        return self.store.data

    @property
    def settings(self) -> dict[str, Any]:
        """Current UI settings."""
        return self.settings_store.data

    def progress(self) -> dict[str, Any]:
        """Rank, XP progress and power level for the dashboard."""
        player = self.state[const.DATA_PLAYER]
        total_xp = player[const.DATA_PLAYER_TOTAL_XP]
        return {
            "rank": ProgressionEngine.rank_for(total_xp),
            "next_rank": ProgressionEngine.next_rank_for(total_xp),
            "xp_progress": ProgressionEngine.xp_progress(total_xp),
            "power_level": ProgressionEngine.power_level(
                total_xp, self.state[const.DATA_HABIT_STREAKS]
            ),
        }

    def statistics(self, *, today: date | None = None) -> dict[str, Any]:
        """Habit and quest aggregates for the statistics views."""
        current = today or dt_today_local()
        return {
            "habits": StatisticsEngine.habit_stats(self.state, current),
            "quests": StatisticsEngine.quest_stats(self.state),
            "week": StatisticsEngine.period_stats(
                self.state, StatisticsEngine.week_dates(current)
            ),
            "heatmap": StatisticsEngine.heatmap(self.state[const.DATA_HABIT_LOG], current),
        }

    # -------------------------------------------------------------------------------------
    # Events
    # -------------------------------------------------------------------------------------

    def listen(self, event: str, callback: EventCallback) -> Callable[[], None]:
        """Register a callback for an event name (EVENT_ANY for all events).

        Returns:
            A function that unregisters the callback.
        """
        self._listeners.setdefault(event, []).append(callback)

        def unsubscribe() -> None:
            callbacks = self._listeners.get(event, [])
            if callback in callbacks:
                callbacks.remove(callback)

        return unsubscribe

    def _dispatch(self, result: ReducerResult) -> None:
        for name, payload in result.events:
            message = {"event": name, **payload}
            for callback in [
                *self._listeners.get(name, []),
                *self._listeners.get(const.EVENT_ANY, []),
            ]:
                try:
                    callback(message)
                except Exception:  # pylint: disable=broad-exception-caught
                    const.LOGGER.exception("Error in listener for event '%s'", name)

    # -------------------------------------------------------------------------------------
    # Actions
    # -------------------------------------------------------------------------------------

    def _apply(
        self, reducer_fn: Callable[..., ReducerResult], *args: Any, **kwargs: Any
    ) -> ReducerResult:
        """Run a reducer on the current state, persist and dispatch if accepted."""
        result = reducer_fn(self.state, *args, **kwargs)
        if not result.ok:
            return result
        if result.state != self.state:
            self.store.set_data(result.state)
            self.store.save()
        self._dispatch(result)
        return result

    def add_quest(self, draft: Mapping[str, Any]) -> ReducerResult:
        """Create a quest."""
        return self._apply(add_quest, draft)

    def complete_quest(self, quest: Mapping[str, Any] | str) -> ReducerResult:
        """Complete an active quest."""
        return self._apply(complete_quest, quest)

    def fail_quest(
        self, quest: Mapping[str, Any] | str, reason: str = const.FAIL_REASON_MANUAL
    ) -> ReducerResult:
        """Fail an active quest."""
        return self._apply(fail_quest, quest, reason)

    def delete_quest(self, quest: Mapping[str, Any] | str) -> ReducerResult:
        """Delete a quest."""
        return self._apply(delete_quest, quest)

    def undo_quest(
        self, log_entry: Mapping[str, Any], *, today: date | str | None = None
    ) -> ReducerResult:
        """Undo a completion or failure."""
        return self._apply(undo_quest, log_entry, today=today)

    def add_habit(self, draft: Mapping[str, Any]) -> ReducerResult:
        """Create a habit."""
        return self._apply(add_habit, draft)

    def delete_habit(self, habit: Mapping[str, Any] | str) -> ReducerResult:
        """Delete a habit."""
        return self._apply(delete_habit, habit)

    def toggle_habit(
        self, habit: Mapping[str, Any] | str, day: date | str | None = None
    ) -> ReducerResult:
        """Toggle a habit for a day (today by default)."""
        return self._apply(toggle_habit, habit, day)

    def add_reward(self, draft: Mapping[str, Any]) -> ReducerResult:
        """Add a shop reward."""
        return self._apply(add_reward, draft)

    def delete_reward(self, reward: Mapping[str, Any] | str) -> ReducerResult:
        """Remove a shop reward."""
        return self._apply(delete_reward, reward)

    def buy_reward(self, reward: Mapping[str, Any] | str) -> ReducerResult:
        """Buy a shop reward."""
        return self._apply(buy_reward, reward)

    def claim_login_reward(self, *, today: date | str | None = None) -> ReducerResult:
        """Claim the daily login XP."""
        return self._apply(claim_login_reward, today=today)

    def complete_onboarding(
        self,
        name: str | None,
        track_id: str | None = const.DEFAULT_TRACK,
        vision: Mapping[str, Any] | None = None,
    ) -> ReducerResult:
        """Finish onboarding with a name, track and vision."""
        return self._apply(complete_onboarding, name, track_id, vision)

    def update_vision(
        self, fuel: str | None = None, fear: str | None = None
    ) -> ReducerResult:
        """Update the vision statements."""
        return self._apply(update_vision, fuel, fear)

    def rename_player(self, name: str) -> ReducerResult:
        """Rename the player."""
        return self._apply(rename_player, name)

    def reset_system(self) -> ReducerResult:
        """Back up the store, then wipe everything back to a fresh install."""
        backup_helpers.create_timestamped_backup(
            self.store, const.BACKUP_TAG_RESET, self.max_backups
        )
        return self._apply(reset_system)

    # -------------------------------------------------------------------------------------
    # Settings
    # -------------------------------------------------------------------------------------

    def update_settings(self, **changes: Any) -> dict[str, Any]:
        """Validate and persist settings changes.

        Raises:
            StateValidationError: A value has the wrong type
        """
        valid = validate_settings(changes)
        ignored = set(changes) - set(valid)
        if ignored:
            const.LOGGER.warning("Ignoring unknown settings: %s", sorted(ignored))
        self.settings_store.set_data({**self.settings, **valid})
        self.settings_store.save()
        return self.settings

    # -------------------------------------------------------------------------------------
    # Export / Import / Backups
    # -------------------------------------------------------------------------------------

    def export_data(self, *, now: str | None = None) -> dict[str, Any]:
        """Build the export document for the current state and settings."""
        return backup_helpers.build_export_document(self.state, self.settings, now=now)

    def import_data(self, document: Mapping[str, Any] | str) -> None:
        """Replace state (and exported settings) with an import document.

        Nothing changes when the document is rejected.

        Raises:
            BackupValidationError: The document cannot be imported
        """
        state, settings = backup_helpers.parse_import_document(document)
        backup_helpers.create_timestamped_backup(
            self.store, const.BACKUP_TAG_PRE_IMPORT, self.max_backups
        )
        self.store.set_data(state)
        self.store.save()
        if settings:
            self.settings_store.set_data({**self.settings, **settings})
            self.settings_store.save()
        const.LOGGER.info(
            "INFO: Imported state for '%s'",
            state[const.DATA_PLAYER][const.DATA_PLAYER_NAME],
        )

    def create_backup(self, tag: str = const.BACKUP_TAG_MANUAL) -> str | None:
        """Create a timestamped copy of the current store file."""
        self.store.save()
        return backup_helpers.create_timestamped_backup(self.store, tag, self.max_backups)

    def list_backups(self) -> list[dict[str, Any]]:
        """Backups of the state store, newest first."""
        return backup_helpers.discover_backups(self.store)

    def restore_backup(self, filename: str) -> None:
        """Replace the state with a backup file's document.

        Raises:
            BackupValidationError: The backup cannot be read or validated
        """
        data = backup_helpers.read_backup(self.store, filename)
        try:
            state = validate_state_document(SchemaMigrator(data).run_all_migrations())
        except StateValidationError as err:
            raise backup_helpers.BackupValidationError(str(err), err.errors) from err
        backup_helpers.create_timestamped_backup(
            self.store, const.BACKUP_TAG_PRE_IMPORT, self.max_backups
        )
        self.store.set_data(state)
        self.store.save()
        const.LOGGER.info("INFO: Restored state from backup %s", filename)
