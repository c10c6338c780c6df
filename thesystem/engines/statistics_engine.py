"""Statistics Engine - Read-only aggregates for the dashboard and habits pages.

This engine derives display statistics from a state document:
- Calendar ranges (Sunday-start weeks, whole months)
- Activity totals for a range of days (habits, quests completed/failed)
- Habit heatmap cells with capped intensity
- Habit page summary (average per logged day, best current streak)
- Quest lifecycle totals

Design Principles:
    - Stateless: operates on the passed document, never mutates it
    - Calendar-based: quest log timestamps are mapped to local dates so they
      line up with habit log keys
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from datetime import date
from typing import TYPE_CHECKING, Any

from dateutil.relativedelta import relativedelta

from .. import const
from ..utils.dt_utils import add_days, dt_local_date_of
from ..utils.math_utils import calculate_percentage
from .quest_engine import QuestEngine
from .streak_engine import StreakEngine

if TYPE_CHECKING:
    from ..type_defs import HabitStats, HeatmapCell, PeriodStats, QuestStats


class StatisticsEngine:
    """Stateless aggregates over a state document."""

    # ────────────────────────────────────────────────────────────────
    # Calendar Ranges
    # ────────────────────────────────────────────────────────────────

    @staticmethod
    def week_dates(today: date, week_offset: int = 0) -> list[date]:
        """Return the 7 dates of a Sunday-start week.

        Args:
            today: Reference day
            week_offset: 0 for the current week, 1 for last week, ...

        Example:
            week_dates(date(2026, 1, 21)) → [2026-01-18 (Sun) .. 2026-01-24 (Sat)]
        """
        days_since_sunday = (today.weekday() + 1) % 7
        start = add_days(today, -days_since_sunday - week_offset * 7)
        return [add_days(start, i) for i in range(7)]

    @staticmethod
    def month_dates(today: date, month_offset: int = 0) -> list[date]:
        """Return every date of the month containing today shifted by month_offset."""
        first = today.replace(day=1) + relativedelta(months=month_offset)
        last = first + relativedelta(months=1, days=-1)
        return [add_days(first, i) for i in range((last - first).days + 1)]

    # ────────────────────────────────────────────────────────────────
    # Activity Totals
    # ────────────────────────────────────────────────────────────────

    @staticmethod
    def habits_on(state: Mapping[str, Any], day: date) -> int:
        """Number of habit completions logged on a day."""
        return len(state.get(const.DATA_HABIT_LOG, {}).get(day.isoformat(), ()))

    @staticmethod
    def period_stats(state: Mapping[str, Any], dates: Iterable[date]) -> PeriodStats:
        """Totals for a set of calendar days.

        A day counts as active when at least one habit was completed on it.
        Quest log entries are attributed to the local date of completedAt.
        """
        day_set = set(dates)
        habits_completed = 0
        days_active = 0
        for day in day_set:
            count = StatisticsEngine.habits_on(state, day)
            habits_completed += count
            if count > 0:
                days_active += 1

        quests_completed = 0
        quests_failed = 0
        for entry in state.get(const.DATA_QUEST_LOG, []):
            entry_day = dt_local_date_of(entry.get(const.DATA_QUEST_COMPLETED_AT))
            if entry_day is None or entry_day not in day_set:
                continue
            if entry.get(const.DATA_QUEST_COMPLETED):
                quests_completed += 1
            else:
                quests_failed += 1

        return {
            "habits_completed": habits_completed,
            "quests_completed": quests_completed,
            "quests_failed": quests_failed,
            "days_active": days_active,
        }

    @staticmethod
    def active_days(state: Mapping[str, Any]) -> int:
        """Distinct days with any habit completion or quest log entry."""
        active: set[str] = {
            day for day, ids in state.get(const.DATA_HABIT_LOG, {}).items() if ids
        }
        for entry in state.get(const.DATA_QUEST_LOG, []):
            entry_day = dt_local_date_of(entry.get(const.DATA_QUEST_COMPLETED_AT))
            if entry_day is not None:
                active.add(entry_day.isoformat())
        return len(active)

    # ────────────────────────────────────────────────────────────────
    # Habits
    # ────────────────────────────────────────────────────────────────

    @staticmethod
    def heatmap(
        habit_log: Mapping[str, Iterable[str]],
        today: date,
        weeks: int = const.HEATMAP_DEFAULT_WEEKS,
    ) -> list[list[HeatmapCell]]:
        """Completion counts for the last `weeks` weeks, ending today.

        Returns a list of weeks (oldest first), each holding 7 cells (oldest
        first). Intensity is the count capped at HEATMAP_MAX_INTENSITY.
        """
        grid: list[list[HeatmapCell]] = []
        for week in range(weeks - 1, -1, -1):
            row: list[HeatmapCell] = []
            for day in range(7):
                cell_date = add_days(today, -(week * 7 + (6 - day)))
                key = cell_date.isoformat()
                count = len(list(habit_log.get(key, ())))
                row.append(
                    {
                        "date": key,
                        "count": count,
                        "intensity": min(const.HEATMAP_MAX_INTENSITY, count),
                    }
                )
            grid.append(row)
        return grid

    @staticmethod
    def habit_stats(state: Mapping[str, Any], today: date) -> HabitStats:
        """Summary numbers for the habits page.

        avg_per_day averages over days present in the log (including emptied
        ones), rounded to one decimal.
        """
        habit_log = state.get(const.DATA_HABIT_LOG, {})
        total_completed = sum(len(ids) for ids in habit_log.values())
        avg_per_day = (
            round(total_completed / len(habit_log), 1) if habit_log else 0.0
        )
        return {
            "total_habits": len(state.get(const.DATA_HABITS, [])),
            "completed_today": len(habit_log.get(today.isoformat(), ())),
            "avg_per_day": avg_per_day,
            "best_streak": StreakEngine.best_streak(
                state.get(const.DATA_HABIT_STREAKS, {})
            ),
        }

    # ────────────────────────────────────────────────────────────────
    # Quests
    # ────────────────────────────────────────────────────────────────

    @staticmethod
    def quest_stats(state: Mapping[str, Any]) -> QuestStats:
        """Lifecycle totals; success rate is completed / (completed + failed)."""
        active = sum(
            1 for quest in state.get(const.DATA_QUESTS, []) if QuestEngine.is_active(quest)
        )
        completed = 0
        failed = 0
        for entry in state.get(const.DATA_QUEST_LOG, []):
            if entry.get(const.DATA_QUEST_COMPLETED):
                completed += 1
            else:
                failed += 1
        return {
            "active": active,
            "completed": completed,
            "failed": failed,
            "success_rate": calculate_percentage(completed, completed + failed, 1),
        }
