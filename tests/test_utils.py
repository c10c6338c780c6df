"""Tests for the pure utility modules (math_utils, dt_utils)."""

from __future__ import annotations

from datetime import UTC, date, datetime, timedelta, timezone

from freezegun import freeze_time
import pytest

from thesystem.utils import dt_utils
from thesystem.utils.math_utils import (
    apply_multiplier,
    calculate_percentage,
    clamp,
    floored_subtract,
    round_half_up,
)

# =============================================================================
# math_utils
# =============================================================================


class TestRounding:
    """Tests for half-up rounding."""

    @pytest.mark.parametrize(
        ("value", "expected"), [(37.5, 38), (18.75, 19), (12.5, 13), (12.49, 12)]
    )
    def test_round_half_up(self, value: float, expected: int) -> None:
        """Halves always round up, unlike round()."""
        assert round_half_up(value) == expected

    def test_apply_multiplier(self) -> None:
        """Multiplier results are whole points."""
        assert apply_multiplier(50, 0.75) == 38
        assert apply_multiplier(25, 1.5) == 38


class TestPercentage:
    """Tests for calculate_percentage."""

    def test_full_precision_by_default(self) -> None:
        """No rounding without a precision."""
        assert calculate_percentage(999, 1000) == pytest.approx(99.9)

    def test_precision(self) -> None:
        """Rounded when a precision is given."""
        assert calculate_percentage(1, 3, 2) == 33.33

    def test_zero_target(self) -> None:
        """Division by zero protection."""
        assert calculate_percentage(5, 0) == 0.0


class TestBounds:
    """Tests for clamp and floored_subtract."""

    def test_clamp(self) -> None:
        """Values are bounded."""
        assert clamp(150, 0, 100) == 100
        assert clamp(-10, 0, 100) == 0
        assert clamp(50, 0, 100) == 50

    def test_floored_subtract(self) -> None:
        """Result never goes below the floor."""
        assert floored_subtract(10, 40) == (0, 10)
        assert floored_subtract(100, 40) == (60, 40)

    def test_negative_amount_is_ignored(self) -> None:
        """A negative deduction changes nothing."""
        assert floored_subtract(10, -5) == (10, 0)


# =============================================================================
# dt_utils
# =============================================================================


class TestParseDate:
    """Tests for calendar date parsing."""

    def test_iso_date(self) -> None:
        """Plain ISO dates parse directly."""
        assert dt_utils.dt_parse_date("2026-01-18") == date(2026, 1, 18)

    def test_date_passthrough(self) -> None:
        """Date objects are returned unchanged."""
        assert dt_utils.dt_parse_date(date(2026, 1, 18)) == date(2026, 1, 18)

    def test_timestamp_uses_local_date(self) -> None:
        """A timestamp maps to its calendar date in the configured timezone."""
        dt_utils.set_default_timezone(timezone(timedelta(hours=5)))
        assert dt_utils.dt_parse_date("2026-01-18T22:00:00+00:00") == date(2026, 1, 19)

    @pytest.mark.parametrize("value", [None, "", "not a date", "2026-13-45"])
    def test_invalid_returns_none(self, value: str | None) -> None:
        """Unparseable input returns None."""
        assert dt_utils.dt_parse_date(value) is None

    def test_iso_date_normalizes(self) -> None:
        """dt_iso_date returns YYYY-MM-DD strings."""
        assert dt_utils.dt_iso_date("2026-01-18T10:00:00Z") == "2026-01-18"
        assert dt_utils.dt_iso_date("garbage") is None


class TestTimestamps:
    """Tests for timestamp helpers."""

    def test_to_utc(self) -> None:
        """ISO strings become aware UTC datetimes."""
        assert dt_utils.dt_to_utc("2026-01-18T14:30:00Z") == datetime(
            2026, 1, 18, 14, 30, tzinfo=UTC
        )
        assert dt_utils.dt_to_utc("nope") is None

    @freeze_time("2026-01-18 23:30:00")
    def test_now_and_today(self) -> None:
        """Now is stored in UTC; today follows the configured timezone."""
        assert dt_utils.dt_now_iso().startswith("2026-01-18T23:30:00")
        assert dt_utils.dt_today_iso() == "2026-01-18"
        assert dt_utils.dt_today_local(timezone(timedelta(hours=1))) == date(2026, 1, 19)

    def test_local_date_of(self) -> None:
        """Stored timestamps map to local calendar dates."""
        assert dt_utils.dt_local_date_of("2026-01-18T10:00:00+00:00") == date(2026, 1, 18)
        assert dt_utils.dt_local_date_of(None) is None


class TestDayArithmetic:
    """Tests for calendar-day arithmetic."""

    def test_days_between(self) -> None:
        """Counts calendar days, negative when reversed."""
        assert dt_utils.days_between(date(2026, 1, 1), date(2026, 1, 4)) == 3
        assert dt_utils.days_between(date(2026, 1, 4), date(2026, 1, 1)) == -3

    def test_add_days_across_month(self) -> None:
        """Shifting crosses month boundaries."""
        assert dt_utils.add_days(date(2026, 1, 31), 1) == date(2026, 2, 1)
