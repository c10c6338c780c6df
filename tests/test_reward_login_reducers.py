"""Tests for the shop and daily login reducers."""

from __future__ import annotations

from typing import Any

import pytest

from tests.conftest import set_player
from thesystem import const
from thesystem.reducers import (
    add_reward,
    buy_reward,
    claim_login_reward,
    delete_reward,
    process_day_rollover,
)

# =============================================================================
# Test: Shop
# =============================================================================


class TestBuyReward:
    """Tests for spending gold."""

    def test_exact_balance_leaves_zero(self, base_state: dict[str, Any]) -> None:
        """Snack Break costs 100; a 100 gold player ends at 0."""
        result = buy_reward(base_state, "2")

        assert result.ok
        assert result.state[const.DATA_PLAYER][const.DATA_PLAYER_GOLD] == 0
        name, payload = result.events[0]
        assert name == const.EVENT_REWARD_PURCHASED
        assert payload["cost"] == 100
        assert payload["gold_remaining"] == 0

    def test_insufficient_gold(self, base_state: dict[str, Any]) -> None:
        """Buying above the balance is refused without touching the state."""
        result = buy_reward(base_state, "1")

        assert result.rejection.reason == const.REJECT_INSUFFICIENT_GOLD
        assert result.rejection.placeholders["shortfall"] == "100"
        assert result.state is base_state

    def test_stored_cost_is_used(self, base_state: dict[str, Any]) -> None:
        """A caller-supplied cost on the reward dict is ignored."""
        result = buy_reward(base_state, {"id": "1", "cost": 1})
        assert result.rejection.reason == const.REJECT_INSUFFICIENT_GOLD

    def test_rewards_are_reusable(self, base_state: dict[str, Any]) -> None:
        """Buying does not remove the reward from the shop."""
        set_player(base_state, gold=300)
        state = buy_reward(base_state, "2").state
        result = buy_reward(state, "2")

        assert result.ok
        assert len(result.state[const.DATA_REWARDS]) == 3
        assert result.state[const.DATA_PLAYER][const.DATA_PLAYER_GOLD] == 100

    def test_unknown_reward(self, base_state: dict[str, Any]) -> None:
        """Missing rewards are reported."""
        assert buy_reward(base_state, "x").rejection.reason == const.REJECT_REWARD_NOT_FOUND


class TestManageRewards:
    """Tests for adding and removing shop rewards."""

    def test_add_reward(self, base_state: dict[str, Any]) -> None:
        """Rewards get the default icon and no tier unless given."""
        result = add_reward(base_state, {"name": "Nap", "cost": 80})

        reward = result.state[const.DATA_REWARDS][-1]
        assert reward[const.DATA_REWARD_COST] == 80
        assert reward[const.DATA_REWARD_ICON] == const.DEFAULT_REWARD_ICON
        assert reward[const.DATA_REWARD_TIER] is None

    @pytest.mark.parametrize("cost", [0, -5, 2.5, "abc", True])
    def test_invalid_cost(self, base_state: dict[str, Any], cost: Any) -> None:
        """Cost must be a positive whole number."""
        result = add_reward(base_state, {"name": "Bad", "cost": cost})
        assert result.rejection.reason == const.REJECT_INVALID_INPUT

    def test_duplicate_id(self, base_state: dict[str, Any]) -> None:
        """Reward ids are unique."""
        result = add_reward(base_state, {"id": "1", "name": "Dup", "cost": 5})
        assert result.rejection.reason == const.REJECT_DUPLICATE_ID

    def test_delete_reward(self, base_state: dict[str, Any]) -> None:
        """Deleting removes only that reward."""
        result = delete_reward(base_state, "1")
        assert [r["id"] for r in result.state[const.DATA_REWARDS]] == ["2", "3"]


# =============================================================================
# Test: Daily login
# =============================================================================


class TestClaimLoginReward:
    """Tests for the once-a-day bonus."""

    def test_claim_once_per_day(self, base_state: dict[str, Any]) -> None:
        """First claim awards 50 XP; a second claim the same day is refused."""
        first = claim_login_reward(base_state, today="2026-01-15")
        second = claim_login_reward(first.state, today="2026-01-15")

        player = first.state[const.DATA_PLAYER]
        assert player[const.DATA_PLAYER_TOTAL_XP] == const.DAILY_LOGIN_XP
        assert player[const.DATA_PLAYER_CHECKED_IN_TODAY] is True
        assert player[const.DATA_PLAYER_LAST_LOGIN_DATE] == "2026-01-15"
        assert second.rejection.reason == const.REJECT_ALREADY_CHECKED_IN

    def test_next_day_after_rollover(self, base_state: dict[str, Any]) -> None:
        """After the rollover the bonus can be claimed again."""
        state = claim_login_reward(base_state, today="2026-01-15").state
        state = process_day_rollover(state, today="2026-01-16").state
        result = claim_login_reward(state, today="2026-01-16")

        assert result.ok
        assert result.state[const.DATA_PLAYER][const.DATA_PLAYER_TOTAL_XP] == 100


class TestDayRollover:
    """Tests for the missed-day penalty."""

    def test_consecutive_day_no_penalty(self, base_state: dict[str, Any]) -> None:
        """A one day gap only resets the check-in flag."""
        set_player(base_state, lastLoginDate="2026-01-14", checkedInToday=True, totalXp=300)
        result = process_day_rollover(base_state, today="2026-01-15")

        player = result.state[const.DATA_PLAYER]
        assert player[const.DATA_PLAYER_TOTAL_XP] == 300
        assert player[const.DATA_PLAYER_CHECKED_IN_TODAY] is False
        assert player[const.DATA_PLAYER_LAST_LOGIN_DATE] == "2026-01-15"
        assert result.events == []

    def test_missed_days_penalty(self, base_state: dict[str, Any]) -> None:
        """Three day gap: two missed days, -200 XP and -10 health."""
        set_player(base_state, lastLoginDate="2026-01-12", totalXp=300)
        result = process_day_rollover(base_state, today="2026-01-15")

        player = result.state[const.DATA_PLAYER]
        assert player[const.DATA_PLAYER_TOTAL_XP] == 100
        assert player[const.DATA_PLAYER_HEALTH] == 90
        name, payload = result.events[0]
        assert name == const.EVENT_MISSED_DAYS_PENALTY
        assert payload == {"days_missed": 2, "xp_penalty": 200, "health_penalty": 10}

    def test_penalty_floored(self, base_state: dict[str, Any]) -> None:
        """XP never goes below zero."""
        set_player(base_state, lastLoginDate="2026-01-01", totalXp=150)
        result = process_day_rollover(base_state, today="2026-01-15")
        assert result.state[const.DATA_PLAYER][const.DATA_PLAYER_TOTAL_XP] == 0

    def test_penalty_can_drop_rank(self, base_state: dict[str, Any]) -> None:
        """Losing XP across a threshold emits rank_down."""
        set_player(base_state, lastLoginDate="2026-01-13", totalXp=550)
        result = process_day_rollover(base_state, today="2026-01-15")
        assert result.event_names() == [const.EVENT_MISSED_DAYS_PENALTY, const.EVENT_RANK_DOWN]

    @pytest.mark.parametrize("last_login", [None, "2026-01-15", "2026-01-20"])
    def test_no_op_cases(self, base_state: dict[str, Any], last_login: str | None) -> None:
        """No last login, same day or a future date change nothing."""
        set_player(base_state, lastLoginDate=last_login, checkedInToday=True)
        result = process_day_rollover(base_state, today="2026-01-15")

        assert result.state == base_state
        assert result.events == []
