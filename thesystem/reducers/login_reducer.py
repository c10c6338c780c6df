"""Daily login reducers: the once-a-day XP bonus and the missed-day penalty."""

from __future__ import annotations

from datetime import date

from .. import const
from ..engines.economy_engine import EconomyEngine
from ..utils.dt_utils import days_between, dt_parse_date
from .base_reducer import ActionRejectedError, ReducerResult, reducer, resolve_today


@reducer
def claim_login_reward(
    result: ReducerResult, *, today: date | str | None = None
) -> None:
    """Award DAILY_LOGIN_XP once per calendar day."""
    player = result.state[const.DATA_PLAYER]
    today_iso = resolve_today(today).isoformat()

    if (
        player[const.DATA_PLAYER_CHECKED_IN_TODAY]
        and player[const.DATA_PLAYER_LAST_LOGIN_DATE] == today_iso
    ):
        raise ActionRejectedError(
            const.REJECT_ALREADY_CHECKED_IN,
            f"Daily reward already claimed for {today_iso}",
            date=today_iso,
        )

    player[const.DATA_PLAYER_TOTAL_XP] = EconomyEngine.credit(
        player[const.DATA_PLAYER_TOTAL_XP], const.DAILY_LOGIN_XP
    )
    player[const.DATA_PLAYER_CHECKED_IN_TODAY] = True
    player[const.DATA_PLAYER_LAST_LOGIN_DATE] = today_iso
    result.emit(const.EVENT_LOGIN_CLAIMED, date=today_iso, xp=const.DAILY_LOGIN_XP)


@reducer
def process_day_rollover(
    result: ReducerResult, *, today: date | str | None = None
) -> None:
    """Start a new day: reset the check-in flag and punish missed days.

    A gap of N days since the last login means N - 1 missed days, each worth
    MISSED_DAY_PENALTY XP (floored at 0), plus a flat
    MISSED_DAYS_HEALTH_PENALTY health loss. No-op when there is no last login,
    it is today, or it lies in the future.
    """
    player = result.state[const.DATA_PLAYER]
    current = resolve_today(today)
    last_login = dt_parse_date(player.get(const.DATA_PLAYER_LAST_LOGIN_DATE))
    if last_login is None or last_login >= current:
        return

    gap = days_between(last_login, current)
    if gap > const.MISSED_DAY_GRACE_DAYS:
        days_missed = gap - const.MISSED_DAY_GRACE_DAYS
        player[const.DATA_PLAYER_TOTAL_XP], xp_applied = EconomyEngine.deduct_floored(
            player[const.DATA_PLAYER_TOTAL_XP], const.MISSED_DAY_PENALTY * days_missed
        )
        player[const.DATA_PLAYER_HEALTH], health_applied = EconomyEngine.damage_health(
            player[const.DATA_PLAYER_HEALTH], const.MISSED_DAYS_HEALTH_PENALTY
        )
        const.LOGGER.info(
            "INFO: Missed %d day(s): -%d XP, -%d health",
            days_missed,
            xp_applied,
            health_applied,
        )
        result.emit(
            const.EVENT_MISSED_DAYS_PENALTY,
            days_missed=days_missed,
            xp_penalty=xp_applied,
            health_penalty=health_applied,
        )

    player[const.DATA_PLAYER_LAST_LOGIN_DATE] = current.isoformat()
    player[const.DATA_PLAYER_CHECKED_IN_TODAY] = False
