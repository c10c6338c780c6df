"""Habit lifecycle reducers.

The completion log ({date: [habit ids]}) is the source of truth; streaks are
recomputed from it on every toggle and at day rollover.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import date
from typing import Any

from .. import const
from ..data_builders import build_habit
from ..engines.economy_engine import EconomyEngine
from ..engines.streak_engine import StreakEngine
from .base_reducer import (
    ActionRejectedError,
    ReducerResult,
    entity_id_of,
    reducer,
    resolve_today,
)


def _find_habit(state: Mapping[str, Any], habit_id: str) -> dict[str, Any]:
    for habit in state[const.DATA_HABITS]:
        if habit[const.DATA_HABIT_ID] == habit_id:
            return habit
    raise ActionRejectedError(
        const.REJECT_HABIT_NOT_FOUND, f"Habit {habit_id} not found", habit_id=habit_id
    )


@reducer
def add_habit(result: ReducerResult, draft: Mapping[str, Any]) -> None:
    """Add a habit (no log entries, streak starts at 0)."""
    habit = build_habit(draft)
    habit_id = habit[const.DATA_HABIT_ID]
    if any(h[const.DATA_HABIT_ID] == habit_id for h in result.state[const.DATA_HABITS]):
        raise ActionRejectedError(
            const.REJECT_DUPLICATE_ID,
            f"Habit id {habit_id} already exists",
            habit_id=habit_id,
        )
    result.state[const.DATA_HABITS].append(habit)
    result.state[const.DATA_HABIT_STREAKS][habit_id] = const.DEFAULT_ZERO


@reducer
def delete_habit(result: ReducerResult, habit: Mapping[str, Any] | str) -> None:
    """Remove a habit, its streak and its id from every log date."""
    habit_id = entity_id_of(habit, const.DATA_HABIT_ID)
    _find_habit(result.state, habit_id)

    state = result.state
    state[const.DATA_HABITS] = [
        h for h in state[const.DATA_HABITS] if h[const.DATA_HABIT_ID] != habit_id
    ]
    state[const.DATA_HABIT_LOG] = {
        day: [logged for logged in ids if logged != habit_id]
        for day, ids in state[const.DATA_HABIT_LOG].items()
    }
    state[const.DATA_HABIT_STREAKS].pop(habit_id, None)


@reducer
def toggle_habit(
    result: ReducerResult,
    habit: Mapping[str, Any] | str,
    day: date | str | None = None,
) -> None:
    """Mark a habit done (or not done) for a day, today by default.

    Marking done: +1 habit completion, +HABIT_GOLD_REWARD gold, streak
    recomputed and HABIT_XP_PER_STREAK_DAY × streak XP awarded.
    Un-marking: the id is removed and the streak recomputed; rewards already
    granted are kept. The date key may remain as an empty list.
    """
    habit_id = entity_id_of(habit, const.DATA_HABIT_ID)
    habit_data = _find_habit(result.state, habit_id)
    target_day = resolve_today(day)
    day_key = target_day.isoformat()

    state = result.state
    player = state[const.DATA_PLAYER]
    habit_log: dict[str, list[str]] = state[const.DATA_HABIT_LOG]
    streaks: dict[str, int] = state[const.DATA_HABIT_STREAKS]
    old_streak = streaks.get(habit_id, const.DEFAULT_ZERO)
    logged = habit_log.setdefault(day_key, [])

    if habit_id in logged:
        logged.remove(habit_id)
        new_streak = StreakEngine.calculate_streak(habit_log, habit_id, target_day)
        streaks[habit_id] = new_streak
        result.emit(
            const.EVENT_HABIT_UNCOMPLETED,
            habit_id=habit_id,
            habit_name=habit_data[const.DATA_HABIT_NAME],
            date=day_key,
            streak=new_streak,
        )
        return

    logged.append(habit_id)
    new_streak = StreakEngine.calculate_streak(habit_log, habit_id, target_day)
    streaks[habit_id] = new_streak
    xp = const.HABIT_XP_PER_STREAK_DAY * new_streak

    player[const.DATA_PLAYER_TOTAL_HABITS_COMPLETED] += 1
    player[const.DATA_PLAYER_GOLD] = EconomyEngine.credit(
        player[const.DATA_PLAYER_GOLD], const.HABIT_GOLD_REWARD
    )
    player[const.DATA_PLAYER_TOTAL_XP] = EconomyEngine.credit(
        player[const.DATA_PLAYER_TOTAL_XP], xp
    )
    player[const.DATA_PLAYER_LONGEST_STREAK] = max(
        player[const.DATA_PLAYER_LONGEST_STREAK], new_streak
    )

    result.emit(
        const.EVENT_HABIT_COMPLETED,
        habit_id=habit_id,
        habit_name=habit_data[const.DATA_HABIT_NAME],
        date=day_key,
        streak=new_streak,
        xp=xp,
        gold=const.HABIT_GOLD_REWARD,
    )
    for milestone in StreakEngine.milestones_crossed(old_streak, new_streak):
        result.emit(
            const.EVENT_STREAK_MILESTONE,
            habit_id=habit_id,
            habit_name=habit_data[const.DATA_HABIT_NAME],
            streak=new_streak,
            milestone=milestone,
        )


@reducer
def refresh_habit_streaks(
    result: ReducerResult, *, today: date | str | None = None
) -> None:
    """Recompute every habit's streak as of today (broken streaks drop to 0)."""
    state = result.state
    habit_ids = [h[const.DATA_HABIT_ID] for h in state[const.DATA_HABITS]]
    state[const.DATA_HABIT_STREAKS] = StreakEngine.calculate_all_streaks(
        state[const.DATA_HABIT_LOG], habit_ids, resolve_today(today)
    )


def is_completed_on(state: Mapping[str, Any], habit_id: str, day: date) -> bool:
    """True when the habit is logged for the day."""
    return StreakEngine.is_logged(state.get(const.DATA_HABIT_LOG, {}), habit_id, day)
