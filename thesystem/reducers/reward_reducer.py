"""Shop reducers. Rewards are never consumed; buying only spends gold."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from .. import const
from ..data_builders import build_reward
from ..engines.economy_engine import EconomyEngine
from .base_reducer import ActionRejectedError, ReducerResult, entity_id_of, reducer


def _find_reward(state: Mapping[str, Any], reward_id: str) -> dict[str, Any]:
    for reward in state[const.DATA_REWARDS]:
        if reward[const.DATA_REWARD_ID] == reward_id:
            return reward
    raise ActionRejectedError(
        const.REJECT_REWARD_NOT_FOUND,
        f"Reward {reward_id} not found",
        reward_id=reward_id,
    )


@reducer
def add_reward(result: ReducerResult, draft: Mapping[str, Any]) -> None:
    """Add a reward to the shop."""
    reward = build_reward(draft)
    reward_id = reward[const.DATA_REWARD_ID]
    if any(r[const.DATA_REWARD_ID] == reward_id for r in result.state[const.DATA_REWARDS]):
        raise ActionRejectedError(
            const.REJECT_DUPLICATE_ID,
            f"Reward id {reward_id} already exists",
            reward_id=reward_id,
        )
    result.state[const.DATA_REWARDS].append(reward)


@reducer
def delete_reward(result: ReducerResult, reward: Mapping[str, Any] | str) -> None:
    """Remove a reward from the shop."""
    reward_id = entity_id_of(reward, const.DATA_REWARD_ID)
    _find_reward(result.state, reward_id)
    result.state[const.DATA_REWARDS] = [
        r for r in result.state[const.DATA_REWARDS] if r[const.DATA_REWARD_ID] != reward_id
    ]


@reducer
def buy_reward(result: ReducerResult, reward: Mapping[str, Any] | str) -> None:
    """Spend gold on a reward at its stored cost.

    Rejected with insufficient_gold when gold < cost; gold == cost succeeds
    and leaves 0.
    """
    stored = _find_reward(result.state, entity_id_of(reward, const.DATA_REWARD_ID))
    player = result.state[const.DATA_PLAYER]
    cost = int(stored[const.DATA_REWARD_COST])

    player[const.DATA_PLAYER_GOLD] = EconomyEngine.withdraw(
        player[const.DATA_PLAYER_GOLD], cost
    )
    result.emit(
        const.EVENT_REWARD_PURCHASED,
        reward_id=stored[const.DATA_REWARD_ID],
        reward_name=stored[const.DATA_REWARD_NAME],
        cost=cost,
        gold_remaining=player[const.DATA_PLAYER_GOLD],
    )
