"""Entity building helpers.

This module is the SINGLE SOURCE OF TRUTH for:
- Entity field defaults
- Field-level validation of drafts
- Complete entity structure building (ids, timestamps, stored amounts)
- The default (fresh install) state document

### Build Functions
Each entity type has a `build_<entity>()` function that:
- Takes a draft dict with DATA_* keys (may have missing fields)
- Uses the draft id when one is given, otherwise generates a UUID
- Sets timestamps
- Applies field defaults
- Returns the complete entity dict ready for the state document

Build functions raise EntityValidationError for bad fields; reducers turn it
into an `invalid_input` rejection.

Consumers:
- reducers/*.py (add_quest, add_habit, add_reward, onboarding)
- store.py and reducers/player_reducer.py (default document)
- migration.py (field defaults for legacy documents)
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import date
from typing import Any
import uuid

from . import const
from .engines.quest_engine import QuestEngine
from .type_defs import HabitData, PlayerData, QuestData, RewardData, StateDocument
from .utils.dt_utils import dt_iso_date, dt_now_iso, dt_today_local

# ==============================================================================
# EXCEPTIONS
# ==============================================================================


class EntityValidationError(Exception):
    """Validation error with field-specific information.

    Attributes:
        field: The DATA_* key of the field that failed
        error_key: The ERROR_* constant describing the failure
        placeholders: Optional dict with details for the message

    Example:
        raise EntityValidationError(
            field=const.DATA_REWARD_COST,
            error_key=const.ERROR_INVALID_COST,
            placeholders={"value": str(cost)},
        )
    """

    def __init__(
        self,
        field: str,
        error_key: str,
        placeholders: dict[str, str] | None = None,
    ) -> None:
        """Initialize EntityValidationError."""
        self.field = field
        self.error_key = error_key
        self.placeholders = placeholders or {}
        super().__init__(f"{error_key}: {field}")


# ==============================================================================
# HELPER FUNCTIONS FOR FIELD NORMALIZATION
# ==============================================================================


def _require_name(draft: Mapping[str, Any], key: str) -> str:
    """Return the stripped name or raise when it is empty."""
    raw_name = draft.get(key, "")
    name = str(raw_name).strip() if raw_name else ""
    if not name:
        raise EntityValidationError(field=key, error_key=const.ERROR_INVALID_NAME)
    return name


def _entity_id(draft: Mapping[str, Any], key: str) -> str:
    """Use the draft's id when given (starter tracks, imports), else a new UUID."""
    raw_id = draft.get(key)
    if raw_id is None or raw_id == "":
        return str(uuid.uuid4())
    if isinstance(raw_id, bool) or not isinstance(raw_id, (str, int)):
        raise EntityValidationError(
            field=key,
            error_key=const.ERROR_INVALID_ID,
            placeholders={"value": str(raw_id)},
        )
    return str(raw_id)


def _non_negative_int(
    draft: Mapping[str, Any],
    key: str,
    default: int,
    *,
    error_key: str = const.ERROR_INVALID_AMOUNT,
    minimum: int = 0,
) -> int:
    """Coerce an integer field, rejecting values below minimum and non-numbers."""
    value = draft.get(key)
    if value is None:
        value = default
    if isinstance(value, bool):
        raise EntityValidationError(
            field=key, error_key=error_key, placeholders={"value": str(value)}
        )
    try:
        number = float(value)
    except (TypeError, ValueError) as err:
        raise EntityValidationError(
            field=key, error_key=error_key, placeholders={"value": str(value)}
        ) from err
    if not number.is_integer() or number < minimum:
        raise EntityValidationError(
            field=key, error_key=error_key, placeholders={"value": str(value)}
        )
    return int(number)


# ==============================================================================
# QUESTS
# ==============================================================================


def build_quest(draft: Mapping[str, Any], *, now: str | None = None) -> QuestData:
    """Build a new active quest.

    Amounts are computed here, once, and stored on the quest:
    - explicit reward/goldReward/penalty in the draft are kept as given
      (starter tracks ship pre-scaled values)
    - otherwise baseReward/baseGold/basePenalty (default 50/50/25) are scaled
      by the rank multiplier and rounded half-up

    Args:
        draft: Quest fields with DATA_QUEST_* keys
        now: createdAt override (ISO timestamp)

    Raises:
        EntityValidationError: Empty name, unknown rank, bad amount or due date

    Examples:
        build_quest({"name": "Ship it", "rank": "S"})["reward"] → 100
        build_quest({"name": "Read", "rank": "C"})["penalty"] → 19
    """
    name = _require_name(draft, const.DATA_QUEST_NAME)

    rank = str(draft.get(const.DATA_QUEST_RANK) or const.DEFAULT_QUEST_RANK).upper()
    if rank not in const.QUEST_RANKS:
        raise EntityValidationError(
            field=const.DATA_QUEST_RANK,
            error_key=const.ERROR_INVALID_RANK,
            placeholders={"value": rank},
        )

    reward, gold_reward, penalty = QuestEngine.compute_amounts(
        rank,
        _non_negative_int(
            draft, const.DATA_QUEST_BASE_REWARD, const.DEFAULT_QUEST_BASE_REWARD
        ),
        _non_negative_int(
            draft, const.DATA_QUEST_BASE_GOLD, const.DEFAULT_QUEST_BASE_GOLD
        ),
        _non_negative_int(
            draft, const.DATA_QUEST_BASE_PENALTY, const.DEFAULT_QUEST_BASE_PENALTY
        ),
    )
    if const.DATA_QUEST_REWARD in draft:
        reward = _non_negative_int(draft, const.DATA_QUEST_REWARD, reward)
    if const.DATA_QUEST_GOLD_REWARD in draft:
        gold_reward = _non_negative_int(draft, const.DATA_QUEST_GOLD_REWARD, gold_reward)
    if const.DATA_QUEST_PENALTY in draft:
        penalty = _non_negative_int(draft, const.DATA_QUEST_PENALTY, penalty)
    if reward <= 0:
        raise EntityValidationError(
            field=const.DATA_QUEST_REWARD,
            error_key=const.ERROR_INVALID_AMOUNT,
            placeholders={"value": str(reward)},
        )

    raw_due = draft.get(const.DATA_QUEST_DUE_DATE)
    due_date = dt_iso_date(raw_due)
    if raw_due not in (None, "") and due_date is None:
        raise EntityValidationError(
            field=const.DATA_QUEST_DUE_DATE,
            error_key=const.ERROR_INVALID_DUE_DATE,
            placeholders={"value": str(raw_due)},
        )

    return QuestData(
        id=_entity_id(draft, const.DATA_QUEST_ID),
        name=name,
        rank=rank,
        reward=reward,
        goldReward=gold_reward,
        penalty=penalty,
        dueDate=due_date,
        createdAt=now or dt_now_iso(),
        completed=False,
        failed=False,
        completedAt=None,
        failReason=None,
    )


# ==============================================================================
# HABITS
# ==============================================================================


def build_habit(draft: Mapping[str, Any]) -> HabitData:
    """Build a habit. Icon defaults to DEFAULT_HABIT_ICON.

    Raises:
        EntityValidationError: Empty name
    """
    return HabitData(
        id=_entity_id(draft, const.DATA_HABIT_ID),
        name=_require_name(draft, const.DATA_HABIT_NAME),
        icon=str(draft.get(const.DATA_HABIT_ICON) or const.DEFAULT_HABIT_ICON),
    )


# ==============================================================================
# REWARDS
# ==============================================================================


def build_reward(draft: Mapping[str, Any]) -> RewardData:
    """Build a shop reward.

    Raises:
        EntityValidationError: Empty name, cost not a positive integer, or
            a tier outside REWARD_TIERS
    """
    name = _require_name(draft, const.DATA_REWARD_NAME)
    cost = _non_negative_int(
        draft,
        const.DATA_REWARD_COST,
        const.DEFAULT_ZERO,
        error_key=const.ERROR_INVALID_COST,
        minimum=1,
    )

    tier = draft.get(const.DATA_REWARD_TIER)
    if tier is not None and tier not in const.REWARD_TIERS:
        raise EntityValidationError(
            field=const.DATA_REWARD_TIER,
            error_key=const.ERROR_INVALID_TIER,
            placeholders={"value": str(tier)},
        )

    return RewardData(
        id=_entity_id(draft, const.DATA_REWARD_ID),
        name=name,
        cost=cost,
        icon=str(draft.get(const.DATA_REWARD_ICON) or const.DEFAULT_REWARD_ICON),
        tier=tier,
    )


# ==============================================================================
# PLAYER & DOCUMENT
# ==============================================================================


def build_player(today: date | None = None) -> PlayerData:
    """Fresh player record."""
    return PlayerData(
        name=const.DEFAULT_PLAYER_NAME,
        track=const.DEFAULT_TRACK,
        totalXp=const.DEFAULT_ZERO,
        gold=const.DEFAULT_PLAYER_GOLD,
        health=const.MAX_HEALTH,
        lastLoginDate=None,
        checkedInToday=False,
        createdAt=(today or dt_today_local()).isoformat(),
        totalQuestsCompleted=const.DEFAULT_ZERO,
        totalHabitsCompleted=const.DEFAULT_ZERO,
        longestStreak=const.DEFAULT_ZERO,
    )


def build_default_state(today: date | None = None) -> StateDocument:
    """Return the document of a fresh install (also the result of a reset)."""
    return StateDocument(
        meta={
            const.DATA_META_SCHEMA_VERSION: const.SCHEMA_VERSION_CURRENT,
            const.DATA_META_LAST_MIGRATION_DATE: None,
            const.DATA_META_MIGRATIONS_APPLIED: [],
        },
        onboarded=False,
        player=build_player(today),
        quests=[],
        questLog=[],
        habits=[],
        habitLog={},
        habitStreaks={},
        rewards=[build_reward(reward) for reward in const.DEFAULT_REWARDS],
        vision={const.DATA_VISION_FUEL: "", const.DATA_VISION_FEAR: ""},
    )
