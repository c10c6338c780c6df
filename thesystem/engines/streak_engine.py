"""Streak Engine - Pure logic for habit streaks.

Streaks are always recomputed from the habit completion log rather than
adjusted incrementally, so toggling a past day on or off can never leave a
stored counter out of step with the log.

A streak "ends" at the anchor date (normally today) or, when the anchor has
no completion yet, at the day before it. This keeps yesterday's streak
visible until the day is over.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from datetime import date

from .. import const
from ..utils.dt_utils import add_days


class StreakEngine:
    """Pure logic engine for habit streak calculation.

    All methods are static - no instance state.
    """

    @staticmethod
    def is_logged(
        habit_log: Mapping[str, Iterable[str]], habit_id: str, day: date
    ) -> bool:
        """Return True when habit_id appears in the log entry for day."""
        return habit_id in habit_log.get(day.isoformat(), ())

    @staticmethod
    def calculate_streak(
        habit_log: Mapping[str, Iterable[str]], habit_id: str, anchor: date
    ) -> int:
        """Count consecutive logged days ending at anchor (or the day before).

        Args:
            habit_log: {ISO date: [habit ids]} completion log
            habit_id: Habit to count
            anchor: The day the streak is evaluated for (normally today)

        Returns:
            Number of consecutive logged days, 0 if the chain is broken

        Examples:
            log = {"2026-01-16": ["h"], "2026-01-17": ["h"], "2026-01-18": ["h"]}
            calculate_streak(log, "h", date(2026, 1, 18)) → 3
            calculate_streak(log, "h", date(2026, 1, 19)) → 3  # today not done yet
            calculate_streak(log, "h", date(2026, 1, 20)) → 0
        """
        day = anchor
        if not StreakEngine.is_logged(habit_log, habit_id, day):
            day = add_days(day, -1)

        streak = 0
        while StreakEngine.is_logged(habit_log, habit_id, day):
            streak += 1
            day = add_days(day, -1)
        return streak

    @staticmethod
    def calculate_all_streaks(
        habit_log: Mapping[str, Iterable[str]],
        habit_ids: Iterable[str],
        anchor: date,
    ) -> dict[str, int]:
        """Recompute streaks for every habit id."""
        return {
            habit_id: StreakEngine.calculate_streak(habit_log, habit_id, anchor)
            for habit_id in habit_ids
        }

    @staticmethod
    def milestones_crossed(
        old_streak: int,
        new_streak: int,
        milestones: Iterable[int] = const.STREAK_MILESTONES,
    ) -> list[int]:
        """Return milestones reached by going from old_streak to new_streak.

        Example:
            milestones_crossed(6, 7) → [7]
            milestones_crossed(7, 7) → []
        """
        return [m for m in milestones if old_streak < m <= new_streak]

    @staticmethod
    def best_streak(habit_streaks: Mapping[str, int]) -> int:
        """Highest current streak across all habits (0 when there are none)."""
        return max(habit_streaks.values(), default=0)
