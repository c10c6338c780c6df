"""Type definitions for THE SYSTEM data structures.

ARCHITECTURE DECISION: TypedDict for the persisted document
===========================================================

The state document is plain JSON, so every entity is a TypedDict rather than a
class: reducers copy and return dicts, the store writes them untouched, and
export/import can pass them through without conversion.

Field names are the camelCase wire keys of the persisted document. The same
strings exist in const.py as DATA_* constants; runtime code indexes with the
constants, these definitions are for static analysis.

IMPORTANT: This file must NOT import from reducers, engines or the coordinator
to avoid circular dependencies. Only typing machinery is imported here.

NOTE: TypedDict is STATIC ANALYSIS ONLY. Runtime shape checks happen in
helpers/validation_helpers.py at the load/import boundary.
"""

from typing import Any, NotRequired, TypedDict

# =============================================================================
# Type Aliases (for readability)
# =============================================================================

QuestId = str
HabitId = str
RewardId = str
ISODatetime = str  # ISO 8601 datetime string "2026-01-18T12:30:00+00:00"
ISODate = str  # ISO 8601 date string (no time) "2026-01-18"


# =============================================================================
# Static reference tables
# =============================================================================


class RankInfo(TypedDict):
    """Player rank table entry."""

    name: str
    level: int
    minXp: int
    color: str
    title: str
    icon: str


class XpProgress(TypedDict):
    """Progress through the current rank."""

    current: int
    total: int
    percent: float


# =============================================================================
# Entities
# =============================================================================


class PlayerData(TypedDict):
    """Type definition for the single player record."""

    name: str
    track: str
    totalXp: int
    gold: int
    health: int
    lastLoginDate: ISODate | None
    checkedInToday: bool
    createdAt: ISODate
    totalQuestsCompleted: int
    totalHabitsCompleted: int
    longestStreak: int


class QuestData(TypedDict):
    """Type definition for a quest.

    reward/goldReward/penalty are computed once at creation and never
    recomputed from the rank multiplier table.
    """

    id: QuestId
    name: str
    rank: str
    reward: int
    goldReward: int
    penalty: int
    dueDate: ISODate | None
    createdAt: ISODatetime
    completed: bool
    failed: bool
    completedAt: ISODatetime | None
    failReason: str | None


class QuestLogEntry(QuestData):
    """Terminal quest snapshot stored in the quest log.

    Deduplicated by (id, completedAt). The *Applied fields record what the
    transition actually changed so undo can reverse it exactly.
    """

    xpApplied: NotRequired[int]
    goldApplied: NotRequired[int]
    penaltyApplied: NotRequired[int]
    healthApplied: NotRequired[int]


class HabitData(TypedDict):
    """Type definition for a habit."""

    id: HabitId
    name: str
    icon: str


class RewardData(TypedDict):
    """Type definition for a shop reward."""

    id: RewardId
    name: str
    cost: int
    icon: str
    tier: str | None


class VisionData(TypedDict):
    """Motivational statements captured during onboarding."""

    fuel: str
    fear: str


class MetaData(TypedDict):
    """Schema bookkeeping for the persisted document."""

    schemaVersion: int
    lastMigrationDate: ISODatetime | None
    migrationsApplied: list[str]


class StateDocument(TypedDict):
    """The whole persisted state document."""

    meta: MetaData
    onboarded: bool
    player: PlayerData
    quests: list[QuestData]
    questLog: list[QuestLogEntry]
    habits: list[HabitData]
    habitLog: dict[ISODate, list[HabitId]]
    habitStreaks: dict[HabitId, int]
    rewards: list[RewardData]
    vision: VisionData


class SettingsData(TypedDict):
    """UI preferences stored apart from the state document."""

    tabOrder: list[str]
    soundEnabled: bool
    hapticsEnabled: NotRequired[bool]


class ExportDocument(TypedDict):
    """Shape of an exported backup file."""

    version: str
    exportedAt: ISODatetime
    appName: str
    data: dict[str, Any]


# =============================================================================
# Starter tracks
# =============================================================================


class TrackQuestData(TypedDict):
    """Quest template with pre-scaled values."""

    name: str
    rank: str
    reward: int
    goldReward: int
    penalty: int


class TrackData(TypedDict):
    """Starter track offered during onboarding."""

    id: str
    name: str
    icon: str
    description: str
    color: str
    habits: list[HabitData]
    quests: list[TrackQuestData]
    rewards: list[dict[str, Any]]


# =============================================================================
# Statistics
# =============================================================================


class HabitStats(TypedDict):
    """Aggregates shown on the habits page."""

    total_habits: int
    completed_today: int
    avg_per_day: float
    best_streak: int


class HeatmapCell(TypedDict):
    """One day of the habit heatmap."""

    date: ISODate
    count: int
    intensity: int


class PeriodStats(TypedDict):
    """Activity totals for a set of calendar days."""

    habits_completed: int
    quests_completed: int
    quests_failed: int
    days_active: int


class QuestStats(TypedDict):
    """Quest lifecycle totals."""

    active: int
    completed: int
    failed: int
    success_rate: float


# =============================================================================
# Event payloads (dispatched by the coordinator, see const.EVENT_*)
# =============================================================================


class QuestCompletedEvent(TypedDict, total=False):
    """Payload for EVENT_QUEST_COMPLETED."""

    quest_id: QuestId
    quest_name: str
    xp: int
    gold: int


class QuestFailedEvent(TypedDict, total=False):
    """Payload for EVENT_QUEST_FAILED."""

    quest_id: QuestId
    quest_name: str
    reason: str
    xp_penalty: int
    health_penalty: int


class HabitCompletedEvent(TypedDict, total=False):
    """Payload for EVENT_HABIT_COMPLETED."""

    habit_id: HabitId
    habit_name: str
    date: ISODate
    streak: int
    xp: int
    gold: int


class StreakMilestoneEvent(TypedDict, total=False):
    """Payload for EVENT_STREAK_MILESTONE."""

    habit_id: HabitId
    habit_name: str
    streak: int
    milestone: int


class RankChangedEvent(TypedDict, total=False):
    """Payload for EVENT_RANK_UP / EVENT_RANK_DOWN."""

    old_rank: str
    new_rank: str
    old_level: int
    new_level: int
    title: str


class MissedDaysPenaltyEvent(TypedDict, total=False):
    """Payload for EVENT_MISSED_DAYS_PENALTY."""

    days_missed: int
    xp_penalty: int
    health_penalty: int
