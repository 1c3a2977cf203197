"""Unit tests for timezone resolution and display.

Run with: pytest tests/test_timezones.py -v
"""

from dataclasses import replace
from datetime import date, datetime, time, timezone

import pytest

from scheduling.domain.errors import TimezoneResolutionFailure
from scheduling.domain.timezones import (
    COMMON_TIMEZONES,
    describe_conflict,
    format_instant,
    format_slot,
    get_zone,
    resolve_local_timezone,
    timezone_info,
    timezone_options,
)
from tests.factories import NEW_YORK, make_slot

WINTER = date(2024, 1, 9)
SUMMER = date(2024, 7, 9)


class TestResolveLocalTimezone:
    """Tests for resolve_local_timezone."""

    def test_first_valid_candidate_wins(self):
        """The first resolvable candidate is returned as-is."""
        resolved = resolve_local_timezone("Europe/Paris", NEW_YORK)
        assert resolved.name == "Europe/Paris"
        assert resolved.fallback is False

    def test_skips_missing_and_unknown_candidates(self):
        """Empty and unknown names are passed over."""
        resolved = resolve_local_timezone(None, "", "Nowhere/Special", NEW_YORK)
        assert resolved.name == NEW_YORK
        assert resolved.fallback is False

    def test_falls_back_to_utc(self):
        """With nothing usable the result is UTC flagged as a fallback."""
        resolved = resolve_local_timezone("Nowhere/Special")
        assert resolved.name == "UTC"
        assert resolved.fallback is True

    def test_no_candidates_falls_back(self):
        """No candidates at all still resolves."""
        assert resolve_local_timezone().fallback is True

    def test_get_zone_raises_for_unknown(self):
        """get_zone raises the internal resolution failure."""
        with pytest.raises(TimezoneResolutionFailure):
            get_zone("Nowhere/Special")


class TestFormatSlot:
    """Tests for format_slot."""

    def test_without_zone_label(self):
        """14:00 renders as 2:00 PM."""
        assert format_slot(time(14, 0), NEW_YORK, with_zone_label=False) == "2:00 PM"

    def test_with_standard_time_label(self):
        """In January New York is EST."""
        assert format_slot(time(14, 0), NEW_YORK, on=WINTER) == "2:00 PM EST"

    def test_with_daylight_time_label(self):
        """In July New York is EDT."""
        assert format_slot(time(14, 0), NEW_YORK, on=SUMMER) == "2:00 PM EDT"

    @pytest.mark.parametrize(
        "hour, expected",
        [(9, "9:00 AM"), (11, "11:00 AM"), (12, "12:00 PM"), (19, "7:00 PM")],
    )
    def test_twelve_hour_clock(self, hour, expected):
        """Hours render on a 12-hour clock."""
        assert format_slot(time(hour, 0), "UTC", with_zone_label=False) == expected


class TestFormatInstant:
    """Tests for format_instant."""

    def test_renders_local_wall_clock(self):
        """A UTC instant renders in the slot's zone."""
        instant = datetime(2024, 3, 5, 19, 0, tzinfo=timezone.utc)
        assert format_instant(instant, NEW_YORK) == "Mar 5, 2024 at 2:00 PM EST"


class TestTimezoneInfo:
    """Tests for the timezone picker data."""

    def test_negative_offset(self):
        """New York in winter is GMT-05:00."""
        info = timezone_info(NEW_YORK, on=WINTER)
        assert info.offset == "GMT-05:00"
        assert info.abbreviation == "EST"
        assert info.display_name == "New York (EST)"

    def test_half_hour_offset(self):
        """Kolkata is GMT+05:30."""
        assert timezone_info("Asia/Kolkata", on=WINTER).offset == "GMT+05:30"

    def test_options_cover_common_zones(self):
        """Every common zone is offered."""
        assert [info.name for info in timezone_options(WINTER)] == list(COMMON_TIMEZONES)


class TestDescribeConflict:
    """Tests for describe_conflict."""

    def test_same_day_and_time(self):
        """Two slots on the same day and time produce a message."""
        first = make_slot(day_of_week=2, hour=14)
        second = make_slot(day_of_week=2, hour=14)
        assert (
            describe_conflict(first, second, WINTER)
            == "You have more than one session on Tuesday at 2:00 PM EST"
        )

    def test_different_times(self):
        """Different times do not conflict."""
        assert describe_conflict(make_slot(hour=14), make_slot(hour=15), WINTER) is None

    def test_same_slot(self):
        """A slot never conflicts with itself."""
        slot = make_slot()
        assert describe_conflict(slot, replace(slot, enabled=False), WINTER) is None

    def test_same_instant_in_different_zones(self):
        """Slots naming the same UTC weekly instant conflict."""
        new_york = make_slot(day_of_week=2, hour=14, tz=NEW_YORK)
        utc = make_slot(day_of_week=2, hour=19, tz="UTC")
        assert describe_conflict(new_york, utc, WINTER) is not None

    def test_same_wall_clock_in_different_zones(self):
        """Equal day and time in two zones are different moments."""
        new_york = make_slot(day_of_week=2, hour=14, tz=NEW_YORK)
        los_angeles = make_slot(day_of_week=2, hour=14, tz="America/Los_Angeles")
        assert describe_conflict(new_york, los_angeles, WINTER) is None
