"""Player and whole-document reducers: onboarding, vision, rename and reset."""

from __future__ import annotations

from collections.abc import Mapping
from datetime import date
from typing import Any

from .. import const
from ..data_builders import (
    EntityValidationError,
    build_default_state,
    build_habit,
    build_quest,
    build_reward,
)
from ..tracks import get_track
from .base_reducer import (
    ActionRejectedError,
    ReducerResult,
    reducer,
    resolve_now,
    resolve_today,
)


def _clean_text(value: Any) -> str:
    return str(value).strip() if value else ""


def _player_name(name: Any) -> str:
    """Stripped name; blank names fall back to the default."""
    return _clean_text(name) or const.DEFAULT_PLAYER_NAME


@reducer
def complete_onboarding(
    result: ReducerResult,
    name: str | None,
    track_id: str | None = const.DEFAULT_TRACK,
    vision: Mapping[str, Any] | None = None,
    *,
    now: str | None = None,
) -> None:
    """Finish onboarding: name the player, seed the chosen track, store the vision.

    Track habits keep their fixed ids (already-present ids are skipped); quests
    and rewards get fresh ids. Track rewards are added after the existing shop.
    """
    chosen = track_id or const.DEFAULT_TRACK
    track = get_track(chosen)
    if track is None:
        raise ActionRejectedError(
            const.REJECT_UNKNOWN_TRACK, f"Unknown track: {chosen}", track_id=chosen
        )

    state = result.state
    stamp = resolve_now(now)
    player = state[const.DATA_PLAYER]
    player[const.DATA_PLAYER_NAME] = _player_name(name)
    player[const.DATA_PLAYER_TRACK] = chosen

    existing_habits = {h[const.DATA_HABIT_ID] for h in state[const.DATA_HABITS]}
    for template in track["habits"]:
        habit = build_habit(template)
        if habit[const.DATA_HABIT_ID] in existing_habits:
            const.LOGGER.debug("Habit %s already present, skipping", habit[const.DATA_HABIT_ID])
            continue
        state[const.DATA_HABITS].append(habit)
        state[const.DATA_HABIT_STREAKS].setdefault(habit[const.DATA_HABIT_ID], 0)

    for template in track["quests"]:
        state[const.DATA_QUESTS].append(build_quest(template, now=stamp))

    for template in track["rewards"]:
        state[const.DATA_REWARDS].append(build_reward(template))

    state[const.DATA_VISION] = {
        const.DATA_VISION_FUEL: _clean_text((vision or {}).get(const.DATA_VISION_FUEL)),
        const.DATA_VISION_FEAR: _clean_text((vision or {}).get(const.DATA_VISION_FEAR)),
    }
    state[const.DATA_ONBOARDED] = True

    const.LOGGER.info(
        "INFO: Onboarded '%s' on track '%s' (%d habits, %d quests, %d rewards)",
        player[const.DATA_PLAYER_NAME],
        chosen,
        len(track["habits"]),
        len(track["quests"]),
        len(track["rewards"]),
    )
    result.emit(
        const.EVENT_ONBOARDED,
        name=player[const.DATA_PLAYER_NAME],
        track_id=chosen,
    )


@reducer
def update_vision(
    result: ReducerResult, fuel: str | None = None, fear: str | None = None
) -> None:
    """Replace the provided vision statements (None leaves a field unchanged)."""
    vision = result.state[const.DATA_VISION]
    if fuel is not None:
        vision[const.DATA_VISION_FUEL] = _clean_text(fuel)
    if fear is not None:
        vision[const.DATA_VISION_FEAR] = _clean_text(fear)


@reducer
def rename_player(result: ReducerResult, name: str) -> None:
    """Rename the player. Blank names are rejected."""
    cleaned = _clean_text(name)
    if not cleaned:
        raise EntityValidationError(
            field=const.DATA_PLAYER_NAME, error_key=const.ERROR_INVALID_NAME
        )
    result.state[const.DATA_PLAYER][const.DATA_PLAYER_NAME] = cleaned


@reducer(track_rank=False)
def reset_system(result: ReducerResult, *, today: date | str | None = None) -> None:
    """Replace the whole document with a fresh install."""
    previous_xp = result.state[const.DATA_PLAYER][const.DATA_PLAYER_TOTAL_XP]
    result.state = build_default_state(resolve_today(today))
    const.LOGGER.warning("WARNING: System reset (discarded %d XP)", previous_xp)
    result.emit(const.EVENT_SYSTEM_RESET, previous_xp=previous_xp)
