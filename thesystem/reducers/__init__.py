"""State reducers for THE SYSTEM.

Every reducer takes the state document first and returns a ReducerResult;
the input document is never mutated.
"""

from .base_reducer import ActionRejectedError, ReducerResult, Rejection, reducer
from .habit_reducer import (
    add_habit,
    delete_habit,
    is_completed_on,
    refresh_habit_streaks,
    toggle_habit,
)
from .login_reducer import claim_login_reward, process_day_rollover
from .player_reducer import (
    complete_onboarding,
    rename_player,
    reset_system,
    update_vision,
)
from .quest_reducer import (
    active_quests,
    add_quest,
    complete_quest,
    completed_quests,
    delete_quest,
    fail_overdue_quests,
    fail_quest,
    failed_quests,
    undo_quest,
)
from .reward_reducer import add_reward, buy_reward, delete_reward

__all__ = [
    "ActionRejectedError",
    "ReducerResult",
    "Rejection",
    "active_quests",
    "add_habit",
    "add_quest",
    "add_reward",
    "buy_reward",
    "claim_login_reward",
    "complete_onboarding",
    "complete_quest",
    "completed_quests",
    "delete_habit",
    "delete_quest",
    "delete_reward",
    "fail_overdue_quests",
    "fail_quest",
    "failed_quests",
    "is_completed_on",
    "process_day_rollover",
    "reducer",
    "refresh_habit_streaks",
    "rename_player",
    "reset_system",
    "toggle_habit",
    "undo_quest",
]
