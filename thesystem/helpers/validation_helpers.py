"""Schema validation for documents crossing the load/import boundary.

Reducers trust the document they are given; everything read from disk or from
an import file goes through validate_state_document() first (after
migration has filled in legacy gaps). Validation returns a normalized copy:
whole-number floats become ints and calendar dates are normalized to
"YYYY-MM-DD".
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import voluptuous as vol

from .. import const
from ..utils.dt_utils import dt_iso_date, dt_to_utc


class StateValidationError(Exception):
    """Raised when a document does not match the expected schema.

    Attributes:
        errors: Human-readable error strings, one per failing path
    """

    def __init__(self, message: str, errors: list[str] | None = None) -> None:
        """Initialize StateValidationError."""
        self.errors = errors or [message]
        super().__init__(message)


# ==============================================================================
# Field Validators
# ==============================================================================


def whole_number(value: Any) -> int:
    """Accept ints and integral floats (JSON may carry 100.0); reject bools."""
    if isinstance(value, bool):
        raise vol.Invalid("expected a whole number, got a boolean")
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    raise vol.Invalid(f"expected a whole number, got {value!r}")


def calendar_date(value: Any) -> str:
    """Normalize a calendar date (or timestamp) to "YYYY-MM-DD"."""
    if not isinstance(value, str):
        raise vol.Invalid(f"expected a date string, got {value!r}")
    normalized = dt_iso_date(value)
    if normalized is None:
        raise vol.Invalid(f"invalid date: {value!r}")
    return normalized


def timestamp(value: Any) -> str:
    """Validate an ISO 8601 timestamp, keeping the stored string untouched."""
    if not isinstance(value, str) or dt_to_utc(value) is None:
        raise vol.Invalid(f"invalid timestamp: {value!r}")
    return value


def entity_id(value: Any) -> str:
    """Ids are strings; numeric ids from older exports are converted."""
    if isinstance(value, bool) or not isinstance(value, (str, int)):
        raise vol.Invalid(f"invalid id: {value!r}")
    text = str(value)
    if not text:
        raise vol.Invalid("empty id")
    return text


NON_NEGATIVE = vol.All(whole_number, vol.Range(min=0))
HEALTH = vol.All(whole_number, vol.Range(min=const.MIN_HEALTH, max=const.MAX_HEALTH))


def _unique_ids(entity_name: str):
    """Validator rejecting lists whose items share an id."""

    def validator(items: list[Mapping[str, Any]]) -> list[Mapping[str, Any]]:
        seen: set[str] = set()
        for item in items:
            item_id = item["id"]
            if item_id in seen:
                raise vol.Invalid(f"duplicate {entity_name} id: {item_id}")
            seen.add(item_id)
        return items

    return validator


# ==============================================================================
# Entity Schemas
# ==============================================================================

PLAYER_SCHEMA = vol.Schema(
    {
        vol.Required(const.DATA_PLAYER_NAME): str,
        vol.Required(const.DATA_PLAYER_TRACK): str,
        vol.Required(const.DATA_PLAYER_TOTAL_XP): NON_NEGATIVE,
        vol.Required(const.DATA_PLAYER_GOLD): NON_NEGATIVE,
        vol.Required(const.DATA_PLAYER_HEALTH): HEALTH,
        vol.Required(const.DATA_PLAYER_LAST_LOGIN_DATE): vol.Any(None, calendar_date),
        vol.Required(const.DATA_PLAYER_CHECKED_IN_TODAY): bool,
        vol.Required(const.DATA_PLAYER_CREATED_AT): vol.Any(None, str),
        vol.Required(const.DATA_PLAYER_TOTAL_QUESTS_COMPLETED): NON_NEGATIVE,
        vol.Required(const.DATA_PLAYER_TOTAL_HABITS_COMPLETED): NON_NEGATIVE,
        vol.Required(const.DATA_PLAYER_LONGEST_STREAK): NON_NEGATIVE,
    },
    extra=vol.ALLOW_EXTRA,
)

_QUEST_FIELDS = {
    vol.Required(const.DATA_QUEST_ID): entity_id,
    vol.Required(const.DATA_QUEST_NAME): str,
    vol.Required(const.DATA_QUEST_RANK): vol.In(list(const.QUEST_RANKS)),
    vol.Required(const.DATA_QUEST_REWARD): NON_NEGATIVE,
    vol.Required(const.DATA_QUEST_GOLD_REWARD): NON_NEGATIVE,
    vol.Required(const.DATA_QUEST_PENALTY): NON_NEGATIVE,
    vol.Required(const.DATA_QUEST_DUE_DATE): vol.Any(None, calendar_date),
    vol.Required(const.DATA_QUEST_CREATED_AT): vol.Any(None, timestamp),
    vol.Required(const.DATA_QUEST_COMPLETED): bool,
    vol.Required(const.DATA_QUEST_FAILED): bool,
    vol.Required(const.DATA_QUEST_COMPLETED_AT): vol.Any(None, timestamp),
    vol.Required(const.DATA_QUEST_FAIL_REASON): vol.Any(None, vol.In(const.FAIL_REASONS)),
}


def _single_terminal_state(quest: Mapping[str, Any]) -> Mapping[str, Any]:
    """A quest is never both completed and failed."""
    if quest[const.DATA_QUEST_COMPLETED] and quest[const.DATA_QUEST_FAILED]:
        raise vol.Invalid(f"quest {quest[const.DATA_QUEST_ID]} is completed and failed")
    return quest


QUEST_SCHEMA = vol.All(
    vol.Schema(_QUEST_FIELDS, extra=vol.ALLOW_EXTRA), _single_terminal_state
)

QUEST_LOG_ENTRY_SCHEMA = vol.All(
    vol.Schema(
        {
            **_QUEST_FIELDS,
            # A log entry always records when it became terminal
            vol.Required(const.DATA_QUEST_COMPLETED_AT): timestamp,
            vol.Optional(const.DATA_QUEST_LOG_XP_APPLIED): NON_NEGATIVE,
            vol.Optional(const.DATA_QUEST_LOG_GOLD_APPLIED): NON_NEGATIVE,
            vol.Optional(const.DATA_QUEST_LOG_PENALTY_APPLIED): NON_NEGATIVE,
            vol.Optional(const.DATA_QUEST_LOG_HEALTH_APPLIED): NON_NEGATIVE,
        },
        extra=vol.ALLOW_EXTRA,
    ),
    _single_terminal_state,
)

HABIT_SCHEMA = vol.Schema(
    {
        vol.Required(const.DATA_HABIT_ID): entity_id,
        vol.Required(const.DATA_HABIT_NAME): str,
        vol.Optional(const.DATA_HABIT_ICON, default=const.DEFAULT_HABIT_ICON): str,
    },
    extra=vol.ALLOW_EXTRA,
)

REWARD_SCHEMA = vol.Schema(
    {
        vol.Required(const.DATA_REWARD_ID): entity_id,
        vol.Required(const.DATA_REWARD_NAME): str,
        vol.Required(const.DATA_REWARD_COST): vol.All(whole_number, vol.Range(min=1)),
        vol.Optional(const.DATA_REWARD_ICON, default=const.DEFAULT_REWARD_ICON): str,
        vol.Optional(const.DATA_REWARD_TIER, default=None): vol.Any(
            None, vol.In(const.REWARD_TIERS)
        ),
    },
    extra=vol.ALLOW_EXTRA,
)

META_SCHEMA = vol.Schema(
    {
        vol.Required(const.DATA_META_SCHEMA_VERSION): whole_number,
        vol.Optional(const.DATA_META_LAST_MIGRATION_DATE, default=None): vol.Any(
            None, timestamp
        ),
        vol.Optional(const.DATA_META_MIGRATIONS_APPLIED, default=list): [str],
    },
    extra=vol.ALLOW_EXTRA,
)

VISION_SCHEMA = vol.Schema(
    {
        vol.Optional(const.DATA_VISION_FUEL, default=""): str,
        vol.Optional(const.DATA_VISION_FEAR, default=""): str,
    },
    extra=vol.ALLOW_EXTRA,
)

STATE_DOCUMENT_SCHEMA = vol.Schema(
    {
        vol.Required(const.DATA_META): META_SCHEMA,
        vol.Required(const.DATA_ONBOARDED): bool,
        vol.Required(const.DATA_PLAYER): PLAYER_SCHEMA,
        vol.Required(const.DATA_QUESTS): vol.All([QUEST_SCHEMA], _unique_ids("quest")),
        vol.Required(const.DATA_QUEST_LOG): [QUEST_LOG_ENTRY_SCHEMA],
        vol.Required(const.DATA_HABITS): vol.All([HABIT_SCHEMA], _unique_ids("habit")),
        vol.Required(const.DATA_HABIT_LOG): {calendar_date: [entity_id]},
        vol.Required(const.DATA_HABIT_STREAKS): {entity_id: NON_NEGATIVE},
        vol.Required(const.DATA_REWARDS): vol.All(
            [REWARD_SCHEMA], _unique_ids("reward")
        ),
        vol.Required(const.DATA_VISION): VISION_SCHEMA,
    },
    extra=vol.ALLOW_EXTRA,
)

SETTINGS_SCHEMA = vol.Schema(
    {
        vol.Optional(const.DATA_SETTINGS_TAB_ORDER): [str],
        vol.Optional(const.DATA_SETTINGS_SOUND_ENABLED): bool,
        vol.Optional(const.DATA_SETTINGS_HAPTICS_ENABLED): bool,
    },
    extra=vol.REMOVE_EXTRA,
)

EXPORT_DOCUMENT_SCHEMA = vol.Schema(
    {
        vol.Required(const.DATA_EXPORT_VERSION): vol.Coerce(str),
        vol.Optional(const.DATA_EXPORT_EXPORTED_AT): vol.Any(None, str),
        vol.Required(const.DATA_EXPORT_APP_NAME): str,
        vol.Required(const.DATA_EXPORT_DATA): dict,
    },
    extra=vol.ALLOW_EXTRA,
)


# ==============================================================================
# Public API
# ==============================================================================


def _format_invalid(err: vol.Invalid) -> list[str]:
    errors = err.errors if isinstance(err, vol.MultipleInvalid) else [err]
    return [
        f"{'.'.join(str(part) for part in error.path) or '<root>'}: {error.msg}"
        for error in errors
    ]


def validate_with(schema: vol.Schema | vol.All, data: Any, label: str) -> Any:
    """Run a schema, converting voluptuous errors into StateValidationError."""
    try:
        return schema(data)
    except vol.Invalid as err:
        errors = _format_invalid(err)
        const.LOGGER.warning("Invalid %s: %s", label, "; ".join(errors))
        raise StateValidationError(f"Invalid {label}: {errors[0]}", errors) from err


def dedupe_quest_log(entries: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Collapse log entries sharing (id, completedAt).

    The first position is kept, holding the last duplicate's content.
    """
    unique: dict[tuple[str, Any], dict[str, Any]] = {}
    for entry in entries:
        if not isinstance(entry, dict):
            continue
        key = (
            str(entry.get(const.DATA_QUEST_ID)),
            entry.get(const.DATA_QUEST_COMPLETED_AT),
        )
        unique[key] = entry
    removed = len(entries) - len(unique)
    if removed:
        const.LOGGER.info("INFO: Removed %d duplicate quest log entries", removed)
    return list(unique.values())


def validate_state_document(data: Any) -> dict[str, Any]:
    """Validate and normalize a (migrated) state document.

    A habit log date listing the same id twice is collapsed to one entry, and
    quest log entries sharing (id, completedAt) are collapsed by
    dedupe_quest_log().

    Raises:
        StateValidationError: The document does not match the schema
    """
    if not isinstance(data, Mapping):
        raise StateValidationError("State document must be an object")
    validated = validate_with(STATE_DOCUMENT_SCHEMA, dict(data), "state document")
    validated[const.DATA_HABIT_LOG] = {
        day: list(dict.fromkeys(ids))
        for day, ids in validated[const.DATA_HABIT_LOG].items()
    }
    validated[const.DATA_QUEST_LOG] = dedupe_quest_log(validated[const.DATA_QUEST_LOG])
    return validated


def validate_settings(settings: Any) -> dict[str, Any]:
    """Validate settings, keeping only known keys.

    Raises:
        StateValidationError: A known key has the wrong type
    """
    if not isinstance(settings, Mapping):
        raise StateValidationError("Settings must be an object")
    return validate_with(SETTINGS_SCHEMA, dict(settings), "settings")


def validate_export_envelope(document: Any) -> dict[str, Any]:
    """Validate the outer shape of an export file (not its data)."""
    if not isinstance(document, Mapping):
        raise StateValidationError("Export document must be an object")
    return validate_with(EXPORT_DOCUMENT_SCHEMA, dict(document), "export document")
