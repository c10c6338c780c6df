"""Engine modules for THE SYSTEM.

Contains pure computation engines (no state document ownership):
- progression_engine: XP → rank/level, progress, power level
- streak_engine: Habit streaks recomputed from the completion log
- quest_engine: Quest lifecycle rules, reward multipliers, ordering
- economy_engine: Gold/XP/health arithmetic and NSF checks
- statistics_engine: Dashboard and habit page aggregates
"""

from .economy_engine import EconomyEngine, InsufficientFundsError
from .progression_engine import ProgressionEngine
from .quest_engine import (
    QUEST_ACTION_COMPLETE,
    QUEST_ACTION_FAIL,
    QUEST_ACTION_UNDO,
    QuestEffect,
    QuestEngine,
)
from .statistics_engine import StatisticsEngine
from .streak_engine import StreakEngine

__all__ = [
    "QUEST_ACTION_COMPLETE",
    "QUEST_ACTION_FAIL",
    "QUEST_ACTION_UNDO",
    "EconomyEngine",
    "InsufficientFundsError",
    "ProgressionEngine",
    "QuestEffect",
    "QuestEngine",
    "StatisticsEngine",
    "StreakEngine",
]
