"""Progression Engine - Pure logic for XP → rank/level derivation.

This engine provides stateless functions for:
- Resolving the current and next rank for a total XP value
- Progress through the current rank (for progress bars)
- Detecting rank changes between two XP values (rank_up / rank_down events)
- The dashboard "power level"

ARCHITECTURE: All functions are static methods. Each accepts an optional rank
table so callers (and tests) can evaluate against a custom table; the default
is const.RANKS, which is ordered by strictly increasing minXp starting at 0.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING, Any

from .. import const
from ..utils.math_utils import calculate_percentage

if TYPE_CHECKING:
    from ..type_defs import XpProgress

RankTable = Sequence[Mapping[str, Any]]


class ProgressionEngine:
    """Pure logic engine for player progression.

    All methods are static - no instance state.
    """

    @staticmethod
    def rank_for(total_xp: int, ranks: RankTable | None = None) -> Mapping[str, Any]:
        """Return the highest rank whose minXp is at or below total_xp.

        Scans from the end of the table; falls back to the first rank for
        values below every threshold.
        """
        table = ranks or const.RANKS
        for rank in reversed(table):
            if total_xp >= rank[const.RANK_MIN_XP]:
                return rank
        return table[0]

    @staticmethod
    def next_rank_for(
        total_xp: int, ranks: RankTable | None = None
    ) -> Mapping[str, Any] | None:
        """Return the first rank whose minXp is above total_xp, or None at the top."""
        table = ranks or const.RANKS
        for rank in table:
            if rank[const.RANK_MIN_XP] > total_xp:
                return rank
        return None

    @staticmethod
    def xp_progress(total_xp: int, ranks: RankTable | None = None) -> XpProgress:
        """Return progress through the current rank.

        Examples (default table):
            xp_progress(0) → {"current": 0, "total": 500, "percent": 0.0}
            xp_progress(1000) → {"current": 500, "total": 1000, "percent": 50.0}
            xp_progress(30000) → {"current": 5000, "total": 0, "percent": 100}
        """
        current_rank = ProgressionEngine.rank_for(total_xp, ranks)
        next_rank = ProgressionEngine.next_rank_for(total_xp, ranks)
        current = total_xp - current_rank[const.RANK_MIN_XP]

        if next_rank is None:
            return {"current": current, "total": 0, "percent": 100}

        total = next_rank[const.RANK_MIN_XP] - current_rank[const.RANK_MIN_XP]
        return {
            "current": current,
            "total": total,
            "percent": calculate_percentage(current, total),
        }

    @staticmethod
    def level_for(total_xp: int, ranks: RankTable | None = None) -> int:
        """Return the level number of the rank for total_xp."""
        return int(ProgressionEngine.rank_for(total_xp, ranks)[const.RANK_LEVEL])

    @staticmethod
    def rank_delta(
        before_xp: int, after_xp: int, ranks: RankTable | None = None
    ) -> tuple[Mapping[str, Any], Mapping[str, Any]] | None:
        """Return (old_rank, new_rank) when the level changed, else None."""
        old_rank = ProgressionEngine.rank_for(before_xp, ranks)
        new_rank = ProgressionEngine.rank_for(after_xp, ranks)
        if old_rank[const.RANK_LEVEL] == new_rank[const.RANK_LEVEL]:
            return None
        return old_rank, new_rank

    @staticmethod
    def power_level(total_xp: int, habit_streaks: Mapping[str, int]) -> int:
        """Dashboard power level: total XP plus a bonus per active streak day."""
        streak_days = sum(max(0, streak) for streak in habit_streaks.values())
        return total_xp + streak_days * const.STREAK_POWER_BONUS
