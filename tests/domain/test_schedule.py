"""Tests for due-time calculation."""

from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest

from alarmhook.domain.schedule import (
    WEEKDAYS,
    ensure_utc,
    is_due,
    isoformat_z,
    next_due,
    parse_repeat_days,
    parse_timestamp,
)

UTC = timezone.utc
# 2025-08-30 is a Saturday
SATURDAY_10 = datetime(2025, 8, 30, 10, 0, tzinfo=UTC)
ANCHOR_0900 = datetime(2025, 8, 1, 9, 0, tzinfo=UTC)


class TestParseRepeatDays:
    def test_filters_unknown_tags(self):
        assert parse_repeat_days(["monday", "funday", "friday"]) == ("monday", "friday")

    def test_only_invalid_is_empty(self):
        assert parse_repeat_days(["funday"]) == ()

    def test_case_whitespace_and_order(self):
        assert parse_repeat_days([" Friday", "MONDAY", "monday"]) == ("monday", "friday")

    def test_non_strings_ignored(self):
        assert parse_repeat_days(["sunday", 3, None]) == ("sunday",)

    def test_none(self):
        assert parse_repeat_days(None) == ()


class TestNextDueOneTime:
    def test_future_is_returned(self):
        now = datetime(2025, 8, 27, 15, 0, tzinfo=UTC)
        at = datetime(2025, 8, 27, 15, 30, tzinfo=UTC)
        assert next_due(at, [], now) == at

    def test_past_is_none(self):
        now = datetime(2025, 8, 27, 15, 0, tzinfo=UTC)
        assert next_due(now - timedelta(seconds=1), [], now) is None

    def test_exactly_now_is_none(self):
        now = datetime(2025, 8, 27, 15, 0, tzinfo=UTC)
        assert next_due(now, [], now) is None


class TestNextDueRecurring:
    def test_saturday_to_monday(self):
        due = next_due(ANCHOR_0900, ["monday", "friday"], SATURDAY_10)
        assert due == datetime(2025, 9, 1, 9, 0, tzinfo=UTC)

    def test_later_today(self):
        monday_8 = datetime(2025, 9, 1, 8, 0, tzinfo=UTC)
        assert next_due(ANCHOR_0900, ["monday"], monday_8) == datetime(2025, 9, 1, 9, 0, tzinfo=UTC)

    def test_exactly_at_anchor_moves_a_week(self):
        monday_9 = datetime(2025, 9, 1, 9, 0, tzinfo=UTC)
        assert next_due(ANCHOR_0900, ["monday"], monday_9) == datetime(2025, 9, 8, 9, 0, tzinfo=UTC)

    def test_friday_to_monday_gap(self):
        friday_9 = datetime(2025, 8, 29, 9, 0, 0, 1, tzinfo=UTC)
        assert next_due(ANCHOR_0900, ["monday", "friday"], friday_9) == datetime(
            2025, 9, 1, 9, 0, tzinfo=UTC
        )

    def test_seconds_kept_microseconds_dropped(self):
        anchor = datetime(2025, 1, 1, 7, 15, 42, 999000, tzinfo=UTC)
        due = next_due(anchor, ["saturday"], SATURDAY_10)
        assert due == datetime(2025, 9, 6, 7, 15, 42, tzinfo=UTC)

    def test_invalid_only_is_unschedulable(self):
        future = SATURDAY_10 + timedelta(days=3)
        assert next_due(future, ["funday"], SATURDAY_10) is None

    def test_property_strictly_future_and_listed_weekday(self):
        anchor = datetime(2024, 3, 3, 23, 59, 59, tzinfo=UTC)
        for days in (["monday"], ["sunday", "wednesday"], list(WEEKDAYS)):
            for hours in range(0, 24 * 8, 7):
                now = SATURDAY_10 + timedelta(hours=hours, minutes=13)
                due = next_due(anchor, days, now)
                assert due > now
                assert due - now <= timedelta(days=7)
                assert WEEKDAYS[due.weekday()] in days
                assert (due.hour, due.minute, due.second) == (23, 59, 59)

    def test_timezone_anchor(self):
        tz = ZoneInfo("America/New_York")
        # 13:00Z on a summer day is 09:00 in New York
        anchor = datetime(2025, 7, 1, 13, 0, tzinfo=UTC)
        due = next_due(anchor, ["monday"], SATURDAY_10, tz=tz)
        assert due.astimezone(tz).hour == 9
        assert due.astimezone(tz).weekday() == 0

    def test_timezone_keeps_wall_clock_across_dst(self):
        tz = ZoneInfo("Europe/Berlin")
        # 07:00Z in summer is 09:00 Berlin; after the October switch 09:00 is 08:00Z
        anchor = datetime(2025, 7, 1, 7, 0, tzinfo=UTC)
        now = datetime(2025, 10, 25, 12, 0, tzinfo=UTC)  # Saturday before the switch
        due = next_due(anchor, ["monday"], now, tz=tz)
        assert due == datetime(2025, 10, 27, 8, 0, tzinfo=UTC)


class TestIsDue:
    def test_one_time(self):
        at = datetime(2025, 8, 27, 15, 30, tzinfo=UTC)
        assert is_due(at, [], at) is True
        assert is_due(at, [], at - timedelta(seconds=1)) is False

    def test_recurring_on_listed_day_after_anchor(self):
        monday = datetime(2025, 9, 1, 9, 0, 1, tzinfo=UTC)
        assert is_due(ANCHOR_0900, ["monday"], monday) is True

    def test_recurring_before_anchor(self):
        monday = datetime(2025, 9, 1, 8, 59, tzinfo=UTC)
        assert is_due(ANCHOR_0900, ["monday"], monday) is False

    def test_recurring_unlisted_day(self):
        assert is_due(ANCHOR_0900, ["monday"], SATURDAY_10) is False

    def test_recurring_already_fired_today(self):
        monday = datetime(2025, 9, 1, 9, 5, tzinfo=UTC)
        fired = datetime(2025, 9, 1, 9, 0, tzinfo=UTC)
        assert is_due(ANCHOR_0900, ["monday"], monday, last_triggered_at=fired) is False
        last_week = fired - timedelta(days=7)
        assert is_due(ANCHOR_0900, ["monday"], monday, last_triggered_at=last_week) is True

    def test_recurring_invalid_days(self):
        assert is_due(ANCHOR_0900, ["funday"], SATURDAY_10) is False


class TestTimestamps:
    def test_isoformat_z(self):
        dt = datetime(2025, 8, 27, 15, 30, tzinfo=UTC)
        assert isoformat_z(dt) == "2025-08-27T15:30:00.000Z"

    def test_isoformat_z_converts_offset(self):
        dt = datetime(2025, 8, 27, 17, 30, tzinfo=ZoneInfo("Europe/Berlin"))
        assert isoformat_z(dt) == "2025-08-27T15:30:00.000Z"

    def test_parse_z_suffix(self):
        assert parse_timestamp("2025-08-27T15:30:00.000Z") == datetime(2025, 8, 27, 15, 30, tzinfo=UTC)

    def test_parse_naive_is_utc(self):
        assert parse_timestamp("2025-08-27T15:30:00") == datetime(2025, 8, 27, 15, 30, tzinfo=UTC)

    def test_parse_invalid(self):
        with pytest.raises(ValueError):
            parse_timestamp("not a date")

    def test_ensure_utc_naive(self):
        assert ensure_utc(datetime(2025, 1, 1)).tzinfo == UTC
