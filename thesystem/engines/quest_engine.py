"""Quest Engine - Pure logic for quest lifecycle rules and calculations.

This engine provides stateless, pure Python functions for:
- Lifecycle state derivation and transition validation
- Reward/penalty amounts from the threat-rank multiplier table
- QuestEffect planning (what a transition does to the player's meters)
- Overdue detection, undo window and active-list ordering

ARCHITECTURE: All functions are static methods that operate on passed-in
quest dicts. The quest reducer owns the state document and applies effects.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import date
from typing import TYPE_CHECKING, Any

from .. import const
from ..utils.dt_utils import dt_parse_date
from ..utils.math_utils import apply_multiplier

if TYPE_CHECKING:
    from ..type_defs import QuestData


# =============================================================================
# QUEST ACTION CONSTANTS
# =============================================================================

QUEST_ACTION_COMPLETE = "complete"
QUEST_ACTION_FAIL = "fail"
QUEST_ACTION_UNDO = "undo"


# =============================================================================
# QUEST EFFECT DATA STRUCTURE
# =============================================================================


@dataclass
class QuestEffect:
    """Effect of a quest transition on the player.

    Returned by QuestEngine.calculate_effect(). Deductions are requested
    amounts; the reducer floors them and records what was actually applied.

    Attributes:
        new_state: Target lifecycle state
        xp: XP to award (positive) or deduct (negative)
        gold: Gold to award (positive) or deduct (negative)
        health: Health to restore (positive) or remove (negative)
        quests_completed: Change to totalQuestsCompleted
    """

    new_state: str
    xp: int = 0
    gold: int = 0
    health: int = 0
    quests_completed: int = 0


# =============================================================================
# QUEST ENGINE
# =============================================================================


class QuestEngine:
    """Pure logic engine for quest lifecycle rules.

    All methods are static - no instance state.
    """

    # Valid state transitions matrix (delete is allowed from every state)
    VALID_TRANSITIONS: dict[str, list[str]] = {
        const.QUEST_STATE_ACTIVE: [
            const.QUEST_STATE_COMPLETED,
            const.QUEST_STATE_FAILED,
        ],
        # Terminal states only re-enter active through undo
        const.QUEST_STATE_COMPLETED: [const.QUEST_STATE_ACTIVE],
        const.QUEST_STATE_FAILED: [const.QUEST_STATE_ACTIVE],
    }

    # =========================================================================
    # STATE LOGIC
    # =========================================================================

    @staticmethod
    def quest_state(quest: Mapping[str, Any]) -> str:
        """Derive the lifecycle state from the completed/failed flags."""
        if quest.get(const.DATA_QUEST_COMPLETED):
            return const.QUEST_STATE_COMPLETED
        if quest.get(const.DATA_QUEST_FAILED):
            return const.QUEST_STATE_FAILED
        return const.QUEST_STATE_ACTIVE

    @staticmethod
    def is_active(quest: Mapping[str, Any]) -> bool:
        """Return True when the quest is neither completed nor failed."""
        return QuestEngine.quest_state(quest) == const.QUEST_STATE_ACTIVE

    @staticmethod
    def can_transition(current_state: str, target_state: str) -> bool:
        """Check if a state transition is valid."""
        return target_state in QuestEngine.VALID_TRANSITIONS.get(current_state, [])

    @staticmethod
    def calculate_effect(action: str, quest: Mapping[str, Any]) -> QuestEffect:
        """Plan the meter changes for a lifecycle action.

        Args:
            action: QUEST_ACTION_COMPLETE / QUEST_ACTION_FAIL / QUEST_ACTION_UNDO
            quest: The quest for complete/fail, the log entry for undo

        Raises:
            ValueError: Unknown action
        """
        if action == QUEST_ACTION_COMPLETE:
            return QuestEffect(
                new_state=const.QUEST_STATE_COMPLETED,
                xp=int(quest[const.DATA_QUEST_REWARD]),
                gold=int(quest[const.DATA_QUEST_GOLD_REWARD]),
                quests_completed=1,
            )
        if action == QUEST_ACTION_FAIL:
            return QuestEffect(
                new_state=const.QUEST_STATE_FAILED,
                xp=-int(quest[const.DATA_QUEST_PENALTY]),
                health=-const.FAIL_HEALTH_PENALTY,
            )
        if action == QUEST_ACTION_UNDO:
            return QuestEngine._plan_undo_effect(quest)
        raise ValueError(f"Unknown quest action: {action}")

    @staticmethod
    def _plan_undo_effect(entry: Mapping[str, Any]) -> QuestEffect:
        """Reverse whatever the logged transition actually applied.

        Entries written before applied amounts were recorded fall back to the
        quest's nominal reward/penalty.
        """
        if QuestEngine.quest_state(entry) == const.QUEST_STATE_COMPLETED:
            return QuestEffect(
                new_state=const.QUEST_STATE_ACTIVE,
                xp=-int(
                    entry.get(
                        const.DATA_QUEST_LOG_XP_APPLIED,
                        entry.get(const.DATA_QUEST_REWARD, 0),
                    )
                ),
                gold=-int(
                    entry.get(
                        const.DATA_QUEST_LOG_GOLD_APPLIED,
                        entry.get(const.DATA_QUEST_GOLD_REWARD, 0),
                    )
                ),
                quests_completed=-1,
            )
        return QuestEffect(
            new_state=const.QUEST_STATE_ACTIVE,
            xp=int(
                entry.get(
                    const.DATA_QUEST_LOG_PENALTY_APPLIED,
                    entry.get(const.DATA_QUEST_PENALTY, 0),
                )
            ),
            health=int(entry.get(const.DATA_QUEST_LOG_HEALTH_APPLIED, 0)),
        )

    # =========================================================================
    # REWARD CALCULATION
    # =========================================================================

    @staticmethod
    def rank_multiplier(rank: str) -> float:
        """Return the multiplier for a threat rank (B/1.0 for unknown ranks)."""
        rank_info = const.QUEST_RANKS.get(rank, const.QUEST_RANKS[const.QUEST_RANK_B])
        return float(rank_info[const.QUEST_RANK_MULTIPLIER])  # type: ignore[arg-type]

    @staticmethod
    def compute_amounts(
        rank: str,
        base_reward: int = const.DEFAULT_QUEST_BASE_REWARD,
        base_gold: int = const.DEFAULT_QUEST_BASE_GOLD,
        base_penalty: int = const.DEFAULT_QUEST_BASE_PENALTY,
    ) -> tuple[int, int, int]:
        """Scale base values by the rank multiplier, rounded half-up.

        Returns:
            Tuple of (reward, gold_reward, penalty)

        Examples:
            compute_amounts("S") → (100, 100, 50)
            compute_amounts("C") → (38, 38, 19)
        """
        multiplier = QuestEngine.rank_multiplier(rank)
        return (
            apply_multiplier(base_reward, multiplier),
            apply_multiplier(base_gold, multiplier),
            apply_multiplier(base_penalty, multiplier),
        )

    # =========================================================================
    # DUE DATE LOGIC
    # =========================================================================

    @staticmethod
    def is_overdue(quest: Mapping[str, Any], today: date) -> bool:
        """Active quest whose due date is strictly before today."""
        if not QuestEngine.is_active(quest):
            return False
        due = dt_parse_date(quest.get(const.DATA_QUEST_DUE_DATE))
        return due is not None and due < today

    @staticmethod
    def find_overdue(quests: Iterable[QuestData], today: date) -> list[QuestData]:
        """Return every active quest past its due date."""
        return [quest for quest in quests if QuestEngine.is_overdue(quest, today)]

    @staticmethod
    def can_undo(entry: Mapping[str, Any], today: date) -> bool:
        """Undo is allowed when the entry has no due date or it is not before today."""
        due = dt_parse_date(entry.get(const.DATA_QUEST_DUE_DATE))
        return due is None or due >= today

    # =========================================================================
    # ORDERING
    # =========================================================================

    @staticmethod
    def sort_key(quest: Mapping[str, Any]) -> tuple[int, str, int]:
        """Dated before undated, then ascending due date, then rank S<A<B<C."""
        due = dt_parse_date(quest.get(const.DATA_QUEST_DUE_DATE))
        rank_info = const.QUEST_RANKS.get(quest.get(const.DATA_QUEST_RANK, ""), {})
        order = int(rank_info.get(const.QUEST_RANK_ORDER, len(const.QUEST_RANKS)))  # type: ignore[call-overload]
        if due is None:
            return (1, "", order)
        return (0, due.isoformat(), order)

    @staticmethod
    def sort_active_quests(quests: Iterable[QuestData]) -> list[QuestData]:
        """Active quests in display order (stable for equal keys)."""
        active = [quest for quest in quests if QuestEngine.is_active(quest)]
        return sorted(active, key=QuestEngine.sort_key)
