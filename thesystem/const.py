# File: const.py
"""Constants for THE SYSTEM.

This file centralizes storage keys, defaults, game balance values, the static
rank tables, event names and rejection reason codes for consistency across the
package. Persisted document keys use a camelCase wire format shared with
export files, so every key string lives here as a DATA_* constant.
"""

import logging

# ------------------------------------------------------------------------------------------------
# General / Application Information
# ------------------------------------------------------------------------------------------------
# Application Name (also the literal checked on import)
APP_NAME = "THE SYSTEM"

# Logger
LOGGER = logging.getLogger(__package__)

# Storage and Versioning
STORAGE_KEY = "theSystem"
STORAGE_KEY_SETTINGS = "theSystemSettings"
STORAGE_VERSION = 1
STORAGE_FILE_ENCODING = "utf-8"

# Document schema versions
# 0/absent = document saved before the meta section existed
# 1 = meta section present, quest log deduplicated
# 2 = terminal quests stay in the quest list, failed flag and applied amounts stored
SCHEMA_VERSION_LEGACY = 0
SCHEMA_VERSION_META = 1
SCHEMA_VERSION_CURRENT = 2

# Export format
EXPORT_VERSION = "1.0"
EXPORT_FILENAME_PREFIX = "the-system-backup"

# Backups
BACKUP_TAG_MANUAL = "manual"
BACKUP_TAG_PRE_IMPORT = "pre-import"
BACKUP_TAG_PRE_MIGRATION = "pre-migration"
BACKUP_TAG_RECOVERY = "recovery"
BACKUP_TAG_RESET = "reset"
DEFAULT_BACKUPS_MAX_RETAINED = 5

# ------------------------------------------------------------------------------------------------
# Game Balance
# ------------------------------------------------------------------------------------------------
DAILY_LOGIN_XP = 50
MISSED_DAY_PENALTY = 100
MISSED_DAY_GRACE_DAYS = 1
MISSED_DAYS_HEALTH_PENALTY = 10
FAIL_HEALTH_PENALTY = 5
MAX_HEALTH = 100
MIN_HEALTH = 0

# Quest base values (scaled by the threat rank multiplier at creation)
DEFAULT_QUEST_BASE_REWARD = 50
DEFAULT_QUEST_BASE_GOLD = 50
DEFAULT_QUEST_BASE_PENALTY = 25

# Habits
HABIT_GOLD_REWARD = 5
HABIT_XP_PER_STREAK_DAY = 10
STREAK_MILESTONES: tuple[int, ...] = (7, 14, 30, 50, 100)
STREAK_POWER_BONUS = 10

# Statistics
HEATMAP_DEFAULT_WEEKS = 5
HEATMAP_MAX_INTENSITY = 5

# ------------------------------------------------------------------------------------------------
# Document Keys
# ------------------------------------------------------------------------------------------------
DATA_META = "meta"
DATA_META_SCHEMA_VERSION = "schemaVersion"
DATA_META_LAST_MIGRATION_DATE = "lastMigrationDate"
DATA_META_MIGRATIONS_APPLIED = "migrationsApplied"

DATA_ONBOARDED = "onboarded"
DATA_PLAYER = "player"
DATA_QUESTS = "quests"
DATA_QUEST_LOG = "questLog"
DATA_HABITS = "habits"
DATA_HABIT_LOG = "habitLog"
DATA_HABIT_STREAKS = "habitStreaks"
DATA_REWARDS = "rewards"
DATA_VISION = "vision"

# Player
DATA_PLAYER_NAME = "name"
DATA_PLAYER_TRACK = "track"
DATA_PLAYER_TOTAL_XP = "totalXp"
DATA_PLAYER_GOLD = "gold"
DATA_PLAYER_HEALTH = "health"
DATA_PLAYER_LAST_LOGIN_DATE = "lastLoginDate"
DATA_PLAYER_CHECKED_IN_TODAY = "checkedInToday"
DATA_PLAYER_CREATED_AT = "createdAt"
DATA_PLAYER_TOTAL_QUESTS_COMPLETED = "totalQuestsCompleted"
DATA_PLAYER_TOTAL_HABITS_COMPLETED = "totalHabitsCompleted"
DATA_PLAYER_LONGEST_STREAK = "longestStreak"

# Quest
DATA_QUEST_ID = "id"
DATA_QUEST_NAME = "name"
DATA_QUEST_RANK = "rank"
DATA_QUEST_REWARD = "reward"
DATA_QUEST_GOLD_REWARD = "goldReward"
DATA_QUEST_PENALTY = "penalty"
DATA_QUEST_DUE_DATE = "dueDate"
DATA_QUEST_CREATED_AT = "createdAt"
DATA_QUEST_COMPLETED = "completed"
DATA_QUEST_FAILED = "failed"
DATA_QUEST_COMPLETED_AT = "completedAt"
DATA_QUEST_FAIL_REASON = "failReason"

# Quest draft-only keys (never stored on the quest)
DATA_QUEST_BASE_REWARD = "baseReward"
DATA_QUEST_BASE_GOLD = "baseGold"
DATA_QUEST_BASE_PENALTY = "basePenalty"

# Quest log entry extras (amounts actually applied)
DATA_QUEST_LOG_XP_APPLIED = "xpApplied"
DATA_QUEST_LOG_GOLD_APPLIED = "goldApplied"
DATA_QUEST_LOG_PENALTY_APPLIED = "penaltyApplied"
DATA_QUEST_LOG_HEALTH_APPLIED = "healthApplied"

# Habit
DATA_HABIT_ID = "id"
DATA_HABIT_NAME = "name"
DATA_HABIT_ICON = "icon"

# Reward
DATA_REWARD_ID = "id"
DATA_REWARD_NAME = "name"
DATA_REWARD_COST = "cost"
DATA_REWARD_ICON = "icon"
DATA_REWARD_TIER = "tier"

# Vision
DATA_VISION_FUEL = "fuel"
DATA_VISION_FEAR = "fear"

# Settings (persisted apart from the document)
DATA_SETTINGS = "settings"
DATA_SETTINGS_TAB_ORDER = "tabOrder"
DATA_SETTINGS_SOUND_ENABLED = "soundEnabled"
DATA_SETTINGS_HAPTICS_ENABLED = "hapticsEnabled"

# Export envelope
DATA_EXPORT_VERSION = "version"
DATA_EXPORT_EXPORTED_AT = "exportedAt"
DATA_EXPORT_APP_NAME = "appName"
DATA_EXPORT_DATA = "data"

# Store envelope
DATA_STORE_VERSION = "version"
DATA_STORE_KEY = "key"
DATA_STORE_DATA = "data"

# ------------------------------------------------------------------------------------------------
# Defaults
# ------------------------------------------------------------------------------------------------
DEFAULT_ZERO = 0
DEFAULT_PLAYER_NAME = "Hunter"
DEFAULT_TRACK = "custom"
DEFAULT_PLAYER_GOLD = 100
DEFAULT_HABIT_ICON = "star"
DEFAULT_REWARD_ICON = "gift"
DEFAULT_QUEST_RANK = "B"

DEFAULT_TAB_ORDER: tuple[str, ...] = ("home", "habits", "quests", "shop", "awakening")

DEFAULT_SETTINGS: dict[str, object] = {
    DATA_SETTINGS_TAB_ORDER: list(DEFAULT_TAB_ORDER),
    DATA_SETTINGS_SOUND_ENABLED: True,
    DATA_SETTINGS_HAPTICS_ENABLED: True,
}

# Settings carried inside an export file
EXPORTED_SETTINGS: tuple[str, ...] = (DATA_SETTINGS_TAB_ORDER, DATA_SETTINGS_SOUND_ENABLED)

# Shop contents of a fresh install
DEFAULT_REWARDS: tuple[dict[str, object], ...] = (
    {DATA_REWARD_ID: "1", DATA_REWARD_NAME: "1 Episode Netflix", DATA_REWARD_COST: 200},
    {DATA_REWARD_ID: "2", DATA_REWARD_NAME: "Snack Break", DATA_REWARD_COST: 100},
    {DATA_REWARD_ID: "3", DATA_REWARD_NAME: "30min Gaming", DATA_REWARD_COST: 300},
)

# ------------------------------------------------------------------------------------------------
# Rank Table (player progression)
# ------------------------------------------------------------------------------------------------
RANK_NAME = "name"
RANK_LEVEL = "level"
RANK_MIN_XP = "minXp"
RANK_COLOR = "color"
RANK_TITLE = "title"
RANK_ICON = "icon"

RANKS: tuple[dict[str, object], ...] = (
    {
        RANK_NAME: "Silver",
        RANK_LEVEL: 1,
        RANK_MIN_XP: 0,
        RANK_COLOR: "#c0c0c0",
        RANK_TITLE: "The Journey Begins",
        RANK_ICON: "Silver_1_Rank.png",
    },
    {
        RANK_NAME: "Gold",
        RANK_LEVEL: 2,
        RANK_MIN_XP: 500,
        RANK_COLOR: "#ffd700",
        RANK_TITLE: "Rising Hunter",
        RANK_ICON: "Gold_1_Rank.png",
    },
    {
        RANK_NAME: "Platinum",
        RANK_LEVEL: 3,
        RANK_MIN_XP: 1500,
        RANK_COLOR: "#00ff88",
        RANK_TITLE: "Proven Warrior",
        RANK_ICON: "Platinum_1_Rank.png",
    },
    {
        RANK_NAME: "Diamond",
        RANK_LEVEL: 4,
        RANK_MIN_XP: 4000,
        RANK_COLOR: "#00ffff",
        RANK_TITLE: "Elite Discipline",
        RANK_ICON: "Diamond_1_Rank.png",
    },
    {
        RANK_NAME: "Immortal",
        RANK_LEVEL: 5,
        RANK_MIN_XP: 10000,
        RANK_COLOR: "#9d4edd",
        RANK_TITLE: "Unbreakable Will",
        RANK_ICON: "Immortal_1_Rank.png",
    },
    {
        RANK_NAME: "Radiant",
        RANK_LEVEL: 6,
        RANK_MIN_XP: 25000,
        RANK_COLOR: "#ff6600",
        RANK_TITLE: "Shadow Monarch",
        RANK_ICON: "Radiant_Rank.png",
    },
)

# ------------------------------------------------------------------------------------------------
# Quest Threat Ranks
# ------------------------------------------------------------------------------------------------
QUEST_RANK_S = "S"
QUEST_RANK_A = "A"
QUEST_RANK_B = "B"
QUEST_RANK_C = "C"

QUEST_RANK_LABEL = "label"
QUEST_RANK_MULTIPLIER = "multiplier"
QUEST_RANK_ORDER = "order"

QUEST_RANKS: dict[str, dict[str, object]] = {
    QUEST_RANK_S: {QUEST_RANK_LABEL: "CRITICAL", QUEST_RANK_MULTIPLIER: 2.0, QUEST_RANK_ORDER: 0},
    QUEST_RANK_A: {QUEST_RANK_LABEL: "HIGH", QUEST_RANK_MULTIPLIER: 1.5, QUEST_RANK_ORDER: 1},
    QUEST_RANK_B: {QUEST_RANK_LABEL: "NORMAL", QUEST_RANK_MULTIPLIER: 1.0, QUEST_RANK_ORDER: 2},
    QUEST_RANK_C: {QUEST_RANK_LABEL: "LOW", QUEST_RANK_MULTIPLIER: 0.75, QUEST_RANK_ORDER: 3},
}

# Quest lifecycle states (derived from the completed/failed flags)
QUEST_STATE_ACTIVE = "active"
QUEST_STATE_COMPLETED = "completed"
QUEST_STATE_FAILED = "failed"

FAIL_REASON_MANUAL = "manual"
FAIL_REASON_OVERDUE = "overdue"
FAIL_REASONS: tuple[str, ...] = (FAIL_REASON_MANUAL, FAIL_REASON_OVERDUE)

# Reward tiers
REWARD_TIER_MICRO = "micro"
REWARD_TIER_MEDIUM = "medium"
REWARD_TIER_PREMIUM = "premium"
REWARD_TIER_LEGENDARY = "legendary"
REWARD_TIERS: tuple[str, ...] = (
    REWARD_TIER_MICRO,
    REWARD_TIER_MEDIUM,
    REWARD_TIER_PREMIUM,
    REWARD_TIER_LEGENDARY,
)

# ------------------------------------------------------------------------------------------------
# Events (dispatched to listeners by the coordinator)
# ------------------------------------------------------------------------------------------------
EVENT_QUEST_ADDED = "quest_added"
EVENT_QUEST_COMPLETED = "quest_completed"
EVENT_QUEST_FAILED = "quest_failed"
EVENT_QUEST_DELETED = "quest_deleted"
EVENT_QUEST_UNDONE = "quest_undone"
EVENT_HABIT_COMPLETED = "habit_completed"
EVENT_HABIT_UNCOMPLETED = "habit_uncompleted"
EVENT_STREAK_MILESTONE = "streak_milestone"
EVENT_REWARD_PURCHASED = "reward_purchased"
EVENT_LOGIN_CLAIMED = "login_claimed"
EVENT_MISSED_DAYS_PENALTY = "missed_days_penalty"
EVENT_RANK_UP = "rank_up"
EVENT_RANK_DOWN = "rank_down"
EVENT_SYSTEM_RESET = "system_reset"
EVENT_ONBOARDED = "onboarded"

# Wildcard listener key
EVENT_ANY = "*"

# ------------------------------------------------------------------------------------------------
# Rejection Reason Codes
# ------------------------------------------------------------------------------------------------
REJECT_INSUFFICIENT_GOLD = "insufficient_gold"
REJECT_ALREADY_CHECKED_IN = "already_checked_in"
REJECT_QUEST_NOT_FOUND = "quest_not_found"
REJECT_QUEST_NOT_ACTIVE = "quest_not_active"
REJECT_LOG_ENTRY_NOT_FOUND = "log_entry_not_found"
REJECT_UNDO_WINDOW_CLOSED = "undo_window_closed"
REJECT_HABIT_NOT_FOUND = "habit_not_found"
REJECT_REWARD_NOT_FOUND = "reward_not_found"
REJECT_DUPLICATE_ID = "duplicate_id"
REJECT_INVALID_INPUT = "invalid_input"
REJECT_UNKNOWN_TRACK = "unknown_track"

# ------------------------------------------------------------------------------------------------
# Entity Validation Error Keys (EntityValidationError.error_key)
# ------------------------------------------------------------------------------------------------
ERROR_INVALID_NAME = "invalid_name"
ERROR_INVALID_RANK = "invalid_rank"
ERROR_INVALID_AMOUNT = "invalid_amount"
ERROR_INVALID_DUE_DATE = "invalid_due_date"
ERROR_INVALID_COST = "invalid_cost"
ERROR_INVALID_TIER = "invalid_tier"
ERROR_INVALID_ID = "invalid_id"
