"""Unit tests for ProgressionEngine - XP to rank/level derivation.

Test Categories:
- Rank lookup at and around thresholds
- Progress through the current rank (including the top rank)
- Rank change detection
- Power level
"""

from __future__ import annotations

import pytest

from thesystem import const
from thesystem.engines.progression_engine import ProgressionEngine

CUSTOM_RANKS = (
    {const.RANK_NAME: "Silver", const.RANK_LEVEL: 1, const.RANK_MIN_XP: 0},
    {const.RANK_NAME: "Gold", const.RANK_LEVEL: 2, const.RANK_MIN_XP: 500},
    {const.RANK_NAME: "Platinum", const.RANK_LEVEL: 3, const.RANK_MIN_XP: 1500},
)


# =============================================================================
# Test: rank_for / next_rank_for
# =============================================================================


class TestRankLookup:
    """Tests for resolving ranks from total XP."""

    @pytest.mark.parametrize(
        ("total_xp", "expected"),
        [
            (0, "Silver"),
            (499, "Silver"),
            (500, "Gold"),
            (1499, "Gold"),
            (1500, "Platinum"),
            (4000, "Diamond"),
            (10000, "Immortal"),
            (25000, "Radiant"),
            (999999, "Radiant"),
        ],
    )
    def test_rank_for_default_table(self, total_xp: int, expected: str) -> None:
        """Highest rank whose threshold is at or below total XP."""
        assert ProgressionEngine.rank_for(total_xp)[const.RANK_NAME] == expected

    def test_next_rank(self) -> None:
        """Next rank is the first threshold above total XP."""
        assert ProgressionEngine.next_rank_for(0)[const.RANK_NAME] == "Gold"
        assert ProgressionEngine.next_rank_for(500)[const.RANK_NAME] == "Platinum"

    def test_no_next_rank_at_top(self) -> None:
        """The top rank has no successor."""
        assert ProgressionEngine.next_rank_for(25000) is None

    def test_custom_table(self) -> None:
        """A caller-provided table is used instead of the default one."""
        assert ProgressionEngine.rank_for(1499, CUSTOM_RANKS)[const.RANK_NAME] == "Gold"
        assert (
            ProgressionEngine.next_rank_for(1499, CUSTOM_RANKS)[const.RANK_NAME]
            == "Platinum"
        )

    def test_level_for(self) -> None:
        """Level number follows the rank."""
        assert ProgressionEngine.level_for(0) == 1
        assert ProgressionEngine.level_for(4000) == 4


# =============================================================================
# Test: xp_progress
# =============================================================================


class TestXpProgress:
    """Tests for progress through the current rank."""

    def test_progress_one_xp_below_threshold(self) -> None:
        """1499 XP in the custom table is 999 of 1000 towards Platinum."""
        progress = ProgressionEngine.xp_progress(1499, CUSTOM_RANKS)

        assert progress["current"] == 999
        assert progress["total"] == 1000
        assert progress["percent"] == pytest.approx(99.9)

    def test_progress_at_start(self) -> None:
        """Fresh player has no progress."""
        assert ProgressionEngine.xp_progress(0) == {
            "current": 0,
            "total": 500,
            "percent": 0.0,
        }

    def test_progress_halfway(self) -> None:
        """1000 XP is halfway through Gold."""
        progress = ProgressionEngine.xp_progress(1000)
        assert progress["current"] == 500
        assert progress["total"] == 1000
        assert progress["percent"] == 50.0

    def test_progress_at_top_rank(self) -> None:
        """Top rank always reports 100 percent and total 0."""
        progress = ProgressionEngine.xp_progress(30000)
        assert progress == {"current": 5000, "total": 0, "percent": 100}


# =============================================================================
# Test: rank_delta / power_level
# =============================================================================


class TestRankDelta:
    """Tests for rank change detection."""

    def test_same_rank_returns_none(self) -> None:
        """No change inside one rank."""
        assert ProgressionEngine.rank_delta(100, 499) is None

    def test_rank_up(self) -> None:
        """Crossing a threshold upwards returns old and new rank."""
        old_rank, new_rank = ProgressionEngine.rank_delta(450, 500)
        assert old_rank[const.RANK_NAME] == "Silver"
        assert new_rank[const.RANK_NAME] == "Gold"

    def test_rank_down(self) -> None:
        """Penalties can drop a rank."""
        old_rank, new_rank = ProgressionEngine.rank_delta(520, 480)
        assert old_rank[const.RANK_LEVEL] == 2
        assert new_rank[const.RANK_LEVEL] == 1


class TestPowerLevel:
    """Tests for the dashboard power level."""

    def test_adds_streak_bonus(self) -> None:
        """Each streak day adds STREAK_POWER_BONUS."""
        assert ProgressionEngine.power_level(100, {"a": 3, "b": 2}) == 100 + 5 * 10

    def test_no_streaks(self) -> None:
        """Without streaks power level equals total XP."""
        assert ProgressionEngine.power_level(42, {}) == 42
