"""Reducer plumbing shared by every state transition.

A reducer takes the current state document plus an action payload and returns
a ReducerResult: the new document, the events the transition produced, and a
rejection when the action was refused. Reducers never mutate their input and
never raise for business-rule failures.

Writing a reducer:

    @reducer
    def buy_reward(result: ReducerResult, reward_id: str) -> None:
        player = result.state[const.DATA_PLAYER]
        ...
        result.emit(const.EVENT_REWARD_PURCHASED, reward_id=reward_id)

Callers invoke it with the document as the first argument:

    result = buy_reward(state, "1")
    if result.ok:
        state = result.state

The decorator deep-copies the input into `result.state`, turns
ActionRejectedError / InsufficientFundsError / EntityValidationError into a
Rejection (returning the untouched input document), and appends rank_up /
rank_down events when total XP crossed a rank threshold.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
import copy
from dataclasses import dataclass, field
from datetime import date
import functools
from typing import TYPE_CHECKING, Any, Concatenate, ParamSpec, overload

from .. import const
from ..data_builders import EntityValidationError
from ..engines.economy_engine import InsufficientFundsError
from ..engines.progression_engine import ProgressionEngine
from ..utils.dt_utils import dt_now_iso, dt_parse_date, dt_today_local

if TYPE_CHECKING:
    from ..type_defs import StateDocument

P = ParamSpec("P")


# =============================================================================
# RESULT STRUCTURES
# =============================================================================


@dataclass
class Rejection:
    """Why an action was refused.

    Attributes:
        reason: REJECT_* code from const.py
        message: Human-readable description
        placeholders: Details for the message (ids, amounts)
    """

    reason: str
    message: str
    placeholders: dict[str, str] = field(default_factory=dict)


@dataclass
class ReducerResult:
    """Outcome of a reducer call.

    Attributes:
        state: The new document (the unchanged input when rejected)
        events: (event_name, payload) pairs in emission order
        rejection: Set when the action was refused
    """

    state: StateDocument
    events: list[tuple[str, dict[str, Any]]] = field(default_factory=list)
    rejection: Rejection | None = None

    @property
    def ok(self) -> bool:
        """True when the action was accepted."""
        return self.rejection is None

    def emit(self, suffix: str, **payload: Any) -> None:
        """Record an event for the caller to dispatch.

        Example:
            result.emit(
                const.EVENT_QUEST_COMPLETED,
                quest_id=quest_id,
                xp=100,
                gold=100,
            )
        """
        const.LOGGER.debug(
            "Recording event '%s' with payload keys: %s", suffix, list(payload.keys())
        )
        self.events.append((suffix, payload))

    def event_names(self) -> list[str]:
        """Names of the recorded events, in order."""
        return [name for name, _ in self.events]


class ActionRejectedError(Exception):
    """Raised inside a reducer to refuse an action.

    Attributes:
        reason: REJECT_* code from const.py
        placeholders: Details for the message
    """

    def __init__(self, reason: str, message: str | None = None, **placeholders: Any) -> None:
        """Initialize ActionRejectedError."""
        self.reason = reason
        self.placeholders = {key: str(value) for key, value in placeholders.items()}
        self.message = message or reason
        super().__init__(self.message)


# =============================================================================
# CLOCK HELPERS
# =============================================================================


def resolve_today(today: date | str | None) -> date:
    """Return the calendar day a reducer should treat as today."""
    if today is None:
        return dt_today_local()
    parsed = dt_parse_date(today)
    if parsed is None:
        raise ActionRejectedError(
            const.REJECT_INVALID_INPUT, f"Invalid date: {today}", date=today
        )
    return parsed


def resolve_now(now: str | None) -> str:
    """Return the ISO timestamp a reducer should stamp on records."""
    return now or dt_now_iso()


def entity_id_of(value: Mapping[str, Any] | str, id_key: str = "id") -> str:
    """Accept either an entity dict or its id."""
    if isinstance(value, Mapping):
        return str(value.get(id_key, ""))
    return str(value)


# =============================================================================
# DECORATOR
# =============================================================================


def _rejection_from(err: Exception) -> Rejection:
    """Map a reducer exception to a Rejection."""
    if isinstance(err, ActionRejectedError):
        return Rejection(err.reason, err.message, err.placeholders)
    if isinstance(err, InsufficientFundsError):
        return Rejection(
            const.REJECT_INSUFFICIENT_GOLD,
            str(err),
            {
                "balance": str(err.current_balance),
                "cost": str(err.requested_amount),
                "shortfall": str(err.shortfall),
            },
        )
    if isinstance(err, EntityValidationError):
        return Rejection(
            const.REJECT_INVALID_INPUT,
            str(err),
            {"field": err.field, "error": err.error_key, **err.placeholders},
        )
    raise TypeError(f"Unexpected rejection type: {type(err).__name__}")


def _emit_rank_change(result: ReducerResult, before_xp: int) -> None:
    """Append rank_up / rank_down when the level changed."""
    after_xp = result.state[const.DATA_PLAYER][const.DATA_PLAYER_TOTAL_XP]
    delta = ProgressionEngine.rank_delta(before_xp, after_xp)
    if delta is None:
        return
    old_rank, new_rank = delta
    event = (
        const.EVENT_RANK_UP
        if new_rank[const.RANK_LEVEL] > old_rank[const.RANK_LEVEL]
        else const.EVENT_RANK_DOWN
    )
    result.emit(
        event,
        old_rank=old_rank[const.RANK_NAME],
        new_rank=new_rank[const.RANK_NAME],
        old_level=old_rank[const.RANK_LEVEL],
        new_level=new_rank[const.RANK_LEVEL],
        title=new_rank[const.RANK_TITLE],
    )


Reducer = Callable[Concatenate[Mapping[str, Any], P], ReducerResult]
ReducerBody = Callable[Concatenate[ReducerResult, P], None]


@overload
def reducer(func: ReducerBody[P], /) -> Reducer[P]: ...


@overload
def reducer(
    *, track_rank: bool = True
) -> Callable[[ReducerBody[P]], Reducer[P]]: ...


def reducer(
    func: ReducerBody[P] | None = None, /, *, track_rank: bool = True
) -> Reducer[P] | Callable[[ReducerBody[P]], Reducer[P]]:
    """Turn a body that edits `result.state` into a pure reducer.

    Args:
        func: Body receiving a ReducerResult holding a deep copy of the state
        track_rank: Emit rank_up / rank_down events (off for full reset)
    """

    def decorate(body: ReducerBody[P]) -> Reducer[P]:
        @functools.wraps(body)
        def wrapper(
            state: Mapping[str, Any], *args: P.args, **kwargs: P.kwargs
        ) -> ReducerResult:
            result = ReducerResult(state=copy.deepcopy(state))  # type: ignore[arg-type]
            before_xp = state[const.DATA_PLAYER][const.DATA_PLAYER_TOTAL_XP]
            try:
                body(result, *args, **kwargs)
            except (
                ActionRejectedError,
                InsufficientFundsError,
                EntityValidationError,
            ) as err:
                rejection = _rejection_from(err)
                const.LOGGER.debug(
                    "Action '%s' rejected: %s (%s)",
                    body.__name__,
                    rejection.reason,
                    rejection.message,
                )
                return ReducerResult(state=state, rejection=rejection)  # type: ignore[arg-type]

            if track_rank:
                _emit_rank_change(result, before_xp)
            return result

        return wrapper

    if func is not None:
        return decorate(func)
    return decorate
