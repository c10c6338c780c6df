"""Quest lifecycle reducers.

States: active → completed, active → failed, completed/failed → active (undo),
any → deleted.

Terminal quests stay in the quests list (flagged completed/failed) and a
snapshot is appended to the quest log. Undo works from the log entry and
reverses exactly what the transition applied.
"""

from __future__ import annotations

from collections.abc import Mapping
import copy
from datetime import date
from typing import TYPE_CHECKING, Any

from .. import const
from ..data_builders import build_quest
from ..engines.economy_engine import EconomyEngine
from ..engines.quest_engine import (
    QUEST_ACTION_COMPLETE,
    QUEST_ACTION_FAIL,
    QUEST_ACTION_UNDO,
    QuestEngine,
)
from .base_reducer import (
    ActionRejectedError,
    ReducerResult,
    entity_id_of,
    reducer,
    resolve_now,
    resolve_today,
)

if TYPE_CHECKING:
    from ..type_defs import QuestData, QuestLogEntry


# =============================================================================
# INTERNAL HELPERS
# =============================================================================


def log_key(entry: Mapping[str, Any]) -> tuple[str, str | None]:
    """Quest log dedup key: (id, completedAt)."""
    return str(entry.get(const.DATA_QUEST_ID)), entry.get(const.DATA_QUEST_COMPLETED_AT)


def _find_quest(state: Mapping[str, Any], quest_id: str) -> QuestData | None:
    for quest in state[const.DATA_QUESTS]:
        if quest[const.DATA_QUEST_ID] == quest_id:
            return quest
    return None


def _require_active_quest(state: Mapping[str, Any], quest_ref: Any) -> QuestData:
    quest_id = entity_id_of(quest_ref, const.DATA_QUEST_ID)
    quest = _find_quest(state, quest_id)
    if quest is None:
        raise ActionRejectedError(
            const.REJECT_QUEST_NOT_FOUND, f"Quest {quest_id} not found", quest_id=quest_id
        )
    if not QuestEngine.is_active(quest):
        raise ActionRejectedError(
            const.REJECT_QUEST_NOT_ACTIVE,
            f"Quest {quest_id} is already {QuestEngine.quest_state(quest)}",
            quest_id=quest_id,
        )
    return quest


def _append_log_entry(state: dict[str, Any], entry: QuestLogEntry) -> None:
    """Append a snapshot, replacing an entry with the same (id, completedAt)."""
    quest_log: list[QuestLogEntry] = state[const.DATA_QUEST_LOG]
    key = log_key(entry)
    for index, existing in enumerate(quest_log):
        if log_key(existing) == key:
            quest_log[index] = entry
            return
    quest_log.append(entry)


def _apply_fail(result: ReducerResult, quest: QuestData, reason: str, now: str) -> None:
    """Fail an active quest in place: XP penalty and health damage, both floored."""
    player = result.state[const.DATA_PLAYER]
    effect = QuestEngine.calculate_effect(QUEST_ACTION_FAIL, quest)

    player[const.DATA_PLAYER_TOTAL_XP], xp_applied = EconomyEngine.deduct_floored(
        player[const.DATA_PLAYER_TOTAL_XP], -effect.xp
    )
    player[const.DATA_PLAYER_HEALTH], health_applied = EconomyEngine.damage_health(
        player[const.DATA_PLAYER_HEALTH], -effect.health
    )

    quest[const.DATA_QUEST_FAILED] = True
    quest[const.DATA_QUEST_COMPLETED_AT] = now
    quest[const.DATA_QUEST_FAIL_REASON] = reason

    entry: QuestLogEntry = copy.deepcopy(quest)  # type: ignore[assignment]
    entry[const.DATA_QUEST_LOG_PENALTY_APPLIED] = xp_applied
    entry[const.DATA_QUEST_LOG_HEALTH_APPLIED] = health_applied
    _append_log_entry(result.state, entry)

    const.LOGGER.debug(
        "Quest '%s' failed (%s): -%d XP, -%d health",
        quest[const.DATA_QUEST_NAME],
        reason,
        xp_applied,
        health_applied,
    )
    result.emit(
        const.EVENT_QUEST_FAILED,
        quest_id=quest[const.DATA_QUEST_ID],
        quest_name=quest[const.DATA_QUEST_NAME],
        reason=reason,
        xp_penalty=xp_applied,
        health_penalty=health_applied,
    )


# =============================================================================
# REDUCERS
# =============================================================================


@reducer
def add_quest(
    result: ReducerResult, draft: Mapping[str, Any], *, now: str | None = None
) -> None:
    """Create an active quest; reward/gold/penalty are fixed at this point."""
    quest = build_quest(draft, now=resolve_now(now))
    if _find_quest(result.state, quest[const.DATA_QUEST_ID]) is not None:
        raise ActionRejectedError(
            const.REJECT_DUPLICATE_ID,
            f"Quest id {quest[const.DATA_QUEST_ID]} already exists",
            quest_id=quest[const.DATA_QUEST_ID],
        )
    result.state[const.DATA_QUESTS].append(quest)
    result.emit(
        const.EVENT_QUEST_ADDED,
        quest_id=quest[const.DATA_QUEST_ID],
        quest_name=quest[const.DATA_QUEST_NAME],
        rank=quest[const.DATA_QUEST_RANK],
    )


@reducer
def complete_quest(
    result: ReducerResult,
    quest: Mapping[str, Any] | str,
    *,
    now: str | None = None,
) -> None:
    """Complete an active quest using the reward values stored on it."""
    live = _require_active_quest(result.state, quest)
    player = result.state[const.DATA_PLAYER]
    effect = QuestEngine.calculate_effect(QUEST_ACTION_COMPLETE, live)

    player[const.DATA_PLAYER_TOTAL_XP] = EconomyEngine.credit(
        player[const.DATA_PLAYER_TOTAL_XP], effect.xp
    )
    player[const.DATA_PLAYER_GOLD] = EconomyEngine.credit(
        player[const.DATA_PLAYER_GOLD], effect.gold
    )
    player[const.DATA_PLAYER_TOTAL_QUESTS_COMPLETED] += effect.quests_completed

    live[const.DATA_QUEST_COMPLETED] = True
    live[const.DATA_QUEST_COMPLETED_AT] = resolve_now(now)

    entry: QuestLogEntry = copy.deepcopy(live)  # type: ignore[assignment]
    entry[const.DATA_QUEST_LOG_XP_APPLIED] = effect.xp
    entry[const.DATA_QUEST_LOG_GOLD_APPLIED] = effect.gold
    _append_log_entry(result.state, entry)

    result.emit(
        const.EVENT_QUEST_COMPLETED,
        quest_id=live[const.DATA_QUEST_ID],
        quest_name=live[const.DATA_QUEST_NAME],
        xp=effect.xp,
        gold=effect.gold,
    )


@reducer
def fail_quest(
    result: ReducerResult,
    quest: Mapping[str, Any] | str,
    reason: str = const.FAIL_REASON_MANUAL,
    *,
    now: str | None = None,
) -> None:
    """Fail an active quest: XP penalty (floored at 0) and health damage."""
    if reason not in const.FAIL_REASONS:
        raise ActionRejectedError(
            const.REJECT_INVALID_INPUT, f"Unknown fail reason: {reason}", reason=reason
        )
    live = _require_active_quest(result.state, quest)
    _apply_fail(result, live, reason, resolve_now(now))


@reducer
def fail_overdue_quests(
    result: ReducerResult,
    *,
    today: date | str | None = None,
    now: str | None = None,
) -> None:
    """Fail every active quest whose due date is before today."""
    stamp = resolve_now(now)
    overdue = QuestEngine.find_overdue(result.state[const.DATA_QUESTS], resolve_today(today))
    for quest in overdue:
        _apply_fail(result, quest, const.FAIL_REASON_OVERDUE, stamp)
    if overdue:
        const.LOGGER.info("INFO: Failed %d overdue quest(s)", len(overdue))


@reducer
def delete_quest(result: ReducerResult, quest: Mapping[str, Any] | str) -> None:
    """Remove a quest in any state. The quest log and economy are untouched."""
    quest_id = entity_id_of(quest, const.DATA_QUEST_ID)
    live = _find_quest(result.state, quest_id)
    if live is None:
        raise ActionRejectedError(
            const.REJECT_QUEST_NOT_FOUND, f"Quest {quest_id} not found", quest_id=quest_id
        )
    result.state[const.DATA_QUESTS] = [
        q for q in result.state[const.DATA_QUESTS] if q[const.DATA_QUEST_ID] != quest_id
    ]
    result.emit(
        const.EVENT_QUEST_DELETED,
        quest_id=quest_id,
        quest_name=live[const.DATA_QUEST_NAME],
    )


@reducer
def undo_quest(
    result: ReducerResult,
    log_entry: Mapping[str, Any],
    *,
    today: date | str | None = None,
) -> None:
    """Reverse a completion or failure recorded in the quest log.

    Allowed while the entry has no due date or its due date is today or later.
    The stored entry (not the caller's copy) decides what is reversed. When
    the live quest was deleted in the meantime the economy is still reversed
    but the quest is not recreated.
    """
    key = log_key(log_entry)
    quest_log: list[QuestLogEntry] = result.state[const.DATA_QUEST_LOG]
    stored = next((entry for entry in quest_log if log_key(entry) == key), None)
    if stored is None:
        raise ActionRejectedError(
            const.REJECT_LOG_ENTRY_NOT_FOUND,
            f"No log entry for quest {key[0]} at {key[1]}",
            quest_id=key[0],
        )
    if not QuestEngine.can_undo(stored, resolve_today(today)):
        raise ActionRejectedError(
            const.REJECT_UNDO_WINDOW_CLOSED,
            f"Quest {key[0]} was due {stored.get(const.DATA_QUEST_DUE_DATE)}",
            quest_id=key[0],
        )

    player = result.state[const.DATA_PLAYER]
    effect = QuestEngine.calculate_effect(QUEST_ACTION_UNDO, stored)

    if effect.xp >= 0:
        player[const.DATA_PLAYER_TOTAL_XP] = EconomyEngine.credit(
            player[const.DATA_PLAYER_TOTAL_XP], effect.xp
        )
    else:
        player[const.DATA_PLAYER_TOTAL_XP], _ = EconomyEngine.deduct_floored(
            player[const.DATA_PLAYER_TOTAL_XP], -effect.xp
        )
    player[const.DATA_PLAYER_GOLD], _ = EconomyEngine.deduct_floored(
        player[const.DATA_PLAYER_GOLD], -effect.gold
    )
    player[const.DATA_PLAYER_HEALTH] = EconomyEngine.heal(
        player[const.DATA_PLAYER_HEALTH], effect.health
    )
    player[const.DATA_PLAYER_TOTAL_QUESTS_COMPLETED] = max(
        const.DEFAULT_ZERO,
        player[const.DATA_PLAYER_TOTAL_QUESTS_COMPLETED] + effect.quests_completed,
    )

    result.state[const.DATA_QUEST_LOG] = [
        entry for entry in quest_log if log_key(entry) != key
    ]

    live = _find_quest(result.state, key[0])
    if live is None:
        const.LOGGER.warning(
            "Undo for deleted quest %s: economy reversed, quest not restored", key[0]
        )
    else:
        live[const.DATA_QUEST_COMPLETED] = False
        live[const.DATA_QUEST_FAILED] = False
        live[const.DATA_QUEST_COMPLETED_AT] = None
        live[const.DATA_QUEST_FAIL_REASON] = None

    result.emit(
        const.EVENT_QUEST_UNDONE,
        quest_id=key[0],
        quest_name=stored.get(const.DATA_QUEST_NAME),
        previous_state=QuestEngine.quest_state(stored),
        xp=effect.xp,
        gold=effect.gold,
        health=effect.health,
        restored=live is not None,
    )


# =============================================================================
# ACCESSORS
# =============================================================================


def active_quests(state: Mapping[str, Any]) -> list[QuestData]:
    """Active quests in display order (dated first, by due date, then rank)."""
    return QuestEngine.sort_active_quests(state.get(const.DATA_QUESTS, []))


def completed_quests(state: Mapping[str, Any]) -> list[QuestLogEntry]:
    """Completed log entries, most recent first."""
    return _log_entries(state, completed=True)


def failed_quests(state: Mapping[str, Any]) -> list[QuestLogEntry]:
    """Failed log entries, most recent first."""
    return _log_entries(state, completed=False)


def _log_entries(state: Mapping[str, Any], *, completed: bool) -> list[QuestLogEntry]:
    entries = [
        entry
        for entry in state.get(const.DATA_QUEST_LOG, [])
        if bool(entry.get(const.DATA_QUEST_COMPLETED)) is completed
    ]
    return sorted(
        entries,
        key=lambda entry: entry.get(const.DATA_QUEST_COMPLETED_AT) or "",
        reverse=True,
    )
