"""Shared fixtures for THE SYSTEM tests."""

from __future__ import annotations

from collections.abc import Iterator
from datetime import UTC, date
from typing import Any

import pytest

from thesystem import const
from thesystem.data_builders import build_default_state, build_habit, build_quest
from thesystem.utils import dt_utils

TODAY = date(2026, 1, 15)
NOW = "2026-01-15T12:00:00+00:00"


@pytest.fixture(autouse=True)
def utc_timezone() -> Iterator[None]:
    """Pin calendar-date interpretation to UTC for deterministic tests."""
    previous = dt_utils.get_default_timezone()
    dt_utils.set_default_timezone(UTC)
    yield
    dt_utils.set_default_timezone(previous)


@pytest.fixture
def base_state() -> dict[str, Any]:
    """Fresh document: 0 XP, 100 gold, full health, default shop."""
    state = dict(build_default_state(TODAY))
    state[const.DATA_ONBOARDED] = True
    return state


@pytest.fixture
def quest_b() -> dict[str, Any]:
    """Undated B-rank quest worth 50 XP / 50 gold / 25 penalty."""
    return dict(build_quest({"id": "q1", "name": "Write report"}, now=NOW))


@pytest.fixture
def state_with_quest(base_state: dict[str, Any], quest_b: dict[str, Any]) -> dict[str, Any]:
    """Base state holding one active quest (q1)."""
    base_state[const.DATA_QUESTS].append(quest_b)
    return base_state


@pytest.fixture
def state_with_habit(base_state: dict[str, Any]) -> dict[str, Any]:
    """Base state holding one habit (h1) with an empty log."""
    base_state[const.DATA_HABITS].append(dict(build_habit({"id": "h1", "name": "Read"})))
    base_state[const.DATA_HABIT_STREAKS]["h1"] = 0
    return base_state


def set_player(state: dict[str, Any], **fields: Any) -> dict[str, Any]:
    """Overwrite player fields in place and return the state."""
    state[const.DATA_PLAYER].update(fields)
    return state
