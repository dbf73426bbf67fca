"""Unit tests for date range resolution and calendar-date normalization."""

from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo

import pytest

from wellness_dashboard.core.exceptions import APIException, ErrorCode
from wellness_dashboard.services.date_range import DateRange, resolve_date_range, to_calendar_date

KL = ZoneInfo("Asia/Kuala_Lumpur")
UTC = ZoneInfo("UTC")


@pytest.mark.unit
class TestDateRange:
    """Test cases for DateRange."""

    def test_single_day_range(self):
        day = date(2024, 3, 1)
        date_range = DateRange(day, day)

        assert date_range.days == 1
        assert list(date_range.iter_days()) == [day]

    def test_iter_days_is_contiguous_and_ascending(self):
        date_range = DateRange(date(2024, 2, 27), date(2024, 3, 2))

        days = list(date_range.iter_days())

        # 2024 is a leap year
        assert days == [
            date(2024, 2, 27),
            date(2024, 2, 28),
            date(2024, 2, 29),
            date(2024, 3, 1),
            date(2024, 3, 2),
        ]
        assert date_range.days == len(days)

    def test_start_after_end_is_rejected(self):
        with pytest.raises(APIException) as exc_info:
            DateRange(date(2024, 1, 5), date(2024, 1, 1))

        assert exc_info.value.error_code == ErrorCode.INVALID_DATE
        assert exc_info.value.status_code == 422
        assert exc_info.value.field == "startDate"

    def test_contains_is_inclusive(self):
        date_range = DateRange(date(2024, 1, 1), date(2024, 1, 3))

        assert date(2024, 1, 1) in date_range
        assert date(2024, 1, 3) in date_range
        assert date(2024, 1, 4) not in date_range
        assert None not in date_range


@pytest.mark.unit
class TestResolveDateRange:
    """Test cases for resolve_date_range."""

    def test_explicit_range_is_used_as_given(self):
        resolved = resolve_date_range(
            date(2024, 1, 1), date(2024, 1, 10), latest=date(2024, 6, 1), window_days=30, today=date(2024, 7, 1)
        )

        assert resolved == DateRange(date(2024, 1, 1), date(2024, 1, 10))

    def test_default_window_ends_at_latest_data(self):
        resolved = resolve_date_range(None, None, latest=date(2024, 3, 31), window_days=30, today=date(2024, 7, 1))

        assert resolved.end == date(2024, 3, 31)
        assert resolved.start == date(2024, 3, 2)
        assert resolved.days == 30

    def test_default_window_ends_today_without_data(self):
        resolved = resolve_date_range(None, None, latest=None, window_days=14, today=date(2024, 7, 1))

        assert resolved.end == date(2024, 7, 1)
        assert resolved.days == 14

    def test_lone_bound_falls_back_to_default_window(self):
        resolved = resolve_date_range(date(2024, 1, 1), None, latest=date(2024, 3, 31), window_days=7, today=date(2024, 7, 1))

        assert resolved == DateRange(date(2024, 3, 25), date(2024, 3, 31))

    def test_explicit_range_in_wrong_order_is_rejected(self):
        with pytest.raises(APIException):
            resolve_date_range(date(2024, 2, 1), date(2024, 1, 1), latest=None, window_days=30, today=date(2024, 7, 1))

    def test_window_must_be_positive(self):
        with pytest.raises(ValueError, match="window_days"):
            resolve_date_range(None, None, latest=None, window_days=0, today=date(2024, 7, 1))


@pytest.mark.unit
class TestToCalendarDate:
    """Test cases for timestamp normalization."""

    def test_plain_date_passes_through(self):
        assert to_calendar_date(date(2024, 1, 1), UTC, KL) == date(2024, 1, 1)

    def test_naive_timestamp_is_read_in_store_timezone(self):
        # 20:00 UTC is 04:00 the next day in Kuala Lumpur
        assert to_calendar_date(datetime(2024, 1, 1, 20, 0), UTC, KL) == date(2024, 1, 2)

    def test_same_timezone_keeps_late_evening_on_its_day(self):
        assert to_calendar_date(datetime(2024, 1, 1, 23, 59), KL, KL) == date(2024, 1, 1)

    def test_aware_timestamp_is_converted(self):
        value = datetime(2024, 1, 1, 17, 0, tzinfo=timezone.utc)

        assert to_calendar_date(value, KL, KL) == date(2024, 1, 2)

    def test_iso_strings_are_parsed(self):
        assert to_calendar_date("2024-01-05", KL, KL) == date(2024, 1, 5)
        assert to_calendar_date("2024-01-05T20:00:00", UTC, KL) == date(2024, 1, 6)

    @pytest.mark.parametrize("value", [None, "", "   ", "not-a-date", 12345])
    def test_unusable_values_normalize_to_none(self, value):
        assert to_calendar_date(value, KL, KL) is None
