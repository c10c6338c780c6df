"""Tests for StatisticsEngine aggregates."""

from __future__ import annotations

from datetime import date
from typing import Any

from tests.conftest import TODAY
from thesystem import const
from thesystem.engines.statistics_engine import StatisticsEngine


def _log_entry(quest_id: str, completed_at: str, *, completed: bool) -> dict[str, Any]:
    return {
        "id": quest_id,
        "name": quest_id,
        "completed": completed,
        "failed": not completed,
        "completedAt": completed_at,
    }


# =============================================================================
# Calendar ranges
# =============================================================================


class TestCalendarRanges:
    """Tests for week and month ranges."""

    def test_week_starts_on_sunday(self) -> None:
        """A Thursday maps to the surrounding Sunday..Saturday."""
        week = StatisticsEngine.week_dates(TODAY)
        assert week[0] == date(2026, 1, 11)
        assert week[-1] == date(2026, 1, 17)
        assert len(week) == 7

    def test_sunday_is_first_day(self) -> None:
        """On a Sunday the week starts that day."""
        assert StatisticsEngine.week_dates(date(2026, 1, 18))[0] == date(2026, 1, 18)

    def test_previous_week(self) -> None:
        """An offset of 1 returns the week before."""
        assert StatisticsEngine.week_dates(TODAY, 1)[0] == date(2026, 1, 4)

    def test_month_dates(self) -> None:
        """February 2028 has 29 days."""
        days = StatisticsEngine.month_dates(date(2028, 2, 10))
        assert days[0] == date(2028, 2, 1)
        assert days[-1] == date(2028, 2, 29)

    def test_previous_month(self) -> None:
        """Month offsets cross year boundaries."""
        days = StatisticsEngine.month_dates(TODAY, -1)
        assert days[0] == date(2025, 12, 1)
        assert len(days) == 31


# =============================================================================
# Activity
# =============================================================================


class TestPeriodStats:
    """Tests for period totals."""

    def test_counts_habits_and_quests(self, base_state: dict[str, Any]) -> None:
        """Habits per day and quest log entries by local completion date."""
        base_state[const.DATA_HABIT_LOG] = {
            "2026-01-12": ["h1", "h2"],
            "2026-01-13": [],
            "2026-01-20": ["h1"],
        }
        base_state[const.DATA_QUEST_LOG] = [
            _log_entry("q1", "2026-01-12T09:00:00+00:00", completed=True),
            _log_entry("q2", "2026-01-14T09:00:00+00:00", completed=False),
            _log_entry("q3", "2026-01-19T09:00:00+00:00", completed=True),
        ]

        stats = StatisticsEngine.period_stats(base_state, StatisticsEngine.week_dates(TODAY))

        assert stats == {
            "habits_completed": 2,
            "quests_completed": 1,
            "quests_failed": 1,
            "days_active": 1,
        }

    def test_active_days(self, base_state: dict[str, Any]) -> None:
        """Habit days and quest days are merged."""
        base_state[const.DATA_HABIT_LOG] = {"2026-01-12": ["h1"], "2026-01-13": []}
        base_state[const.DATA_QUEST_LOG] = [
            _log_entry("q1", "2026-01-12T20:00:00+00:00", completed=True),
            _log_entry("q2", "2026-01-14T09:00:00+00:00", completed=True),
        ]
        assert StatisticsEngine.active_days(base_state) == 2


# =============================================================================
# Habits and quests
# =============================================================================


class TestHeatmap:
    """Tests for the habit heatmap grid."""

    def test_grid_shape_and_order(self) -> None:
        """Weeks oldest first; the last cell is today."""
        grid = StatisticsEngine.heatmap({}, TODAY, weeks=4)

        assert len(grid) == 4
        assert all(len(row) == 7 for row in grid)
        assert grid[-1][-1]["date"] == "2026-01-15"
        assert grid[0][0]["date"] == "2025-12-19"

    def test_intensity_capped(self) -> None:
        """Counts above 5 keep their count but cap intensity."""
        log = {"2026-01-15": [f"h{i}" for i in range(8)], "2026-01-14": ["h1"]}
        grid = StatisticsEngine.heatmap(log, TODAY, weeks=1)

        assert grid[0][-1] == {"date": "2026-01-15", "count": 8, "intensity": 5}
        assert grid[0][-2]["intensity"] == 1


class TestSummaries:
    """Tests for habit and quest page summaries."""

    def test_habit_stats(self, state_with_habit: dict[str, Any]) -> None:
        """Average is over logged days, including emptied ones."""
        state_with_habit[const.DATA_HABIT_LOG] = {
            "2026-01-13": ["h1"],
            "2026-01-14": [],
            "2026-01-15": ["h1"],
        }
        state_with_habit[const.DATA_HABIT_STREAKS] = {"h1": 1}

        stats = StatisticsEngine.habit_stats(state_with_habit, TODAY)

        assert stats == {
            "total_habits": 1,
            "completed_today": 1,
            "avg_per_day": 0.7,
            "best_streak": 1,
        }

    def test_habit_stats_empty(self, base_state: dict[str, Any]) -> None:
        """No log means zeros."""
        stats = StatisticsEngine.habit_stats(base_state, TODAY)
        assert stats["avg_per_day"] == 0.0
        assert stats["best_streak"] == 0

    def test_quest_stats(self, state_with_quest: dict[str, Any]) -> None:
        """Success rate is completed over terminal entries."""
        state_with_quest[const.DATA_QUEST_LOG] = [
            _log_entry("a", "2026-01-10T09:00:00+00:00", completed=True),
            _log_entry("b", "2026-01-11T09:00:00+00:00", completed=True),
            _log_entry("c", "2026-01-12T09:00:00+00:00", completed=False),
        ]
        stats = StatisticsEngine.quest_stats(state_with_quest)

        assert stats == {"active": 1, "completed": 2, "failed": 1, "success_rate": 66.7}

    def test_quest_stats_no_history(self, base_state: dict[str, Any]) -> None:
        """No terminal quests gives a 0 success rate."""
        assert StatisticsEngine.quest_stats(base_state)["success_rate"] == 0.0
