"""Calendar-date handling: report windows and timestamp normalization."""

from collections.abc import Iterator
from dataclasses import dataclass
from datetime import date, datetime, timedelta, tzinfo

from wellness_dashboard.core.exceptions import ErrorCode, ValidationException
from wellness_dashboard.core.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class DateRange:
    """Inclusive range of calendar dates in the report timezone."""

    start: date
    end: date

    def __post_init__(self) -> None:
        if self.start > self.end:
            raise ValidationException(
                "Start date must be on or before end date",
                field="startDate",
                context={"start": self.start.isoformat(), "end": self.end.isoformat()},
                error_code=ErrorCode.INVALID_DATE,
            )

    @property
    def days(self) -> int:
        return (self.end - self.start).days + 1

    def __contains__(self, day: object) -> bool:
        return isinstance(day, date) and self.start <= day <= self.end

    def iter_days(self) -> Iterator[date]:
        current = self.start
        while current <= self.end:
            yield current
            current += timedelta(days=1)

    def as_dict(self) -> dict[str, str]:
        return {"start": self.start.isoformat(), "end": self.end.isoformat()}


def resolve_date_range(
    start: date | None,
    end: date | None,
    latest: date | None,
    window_days: int,
    today: date,
) -> DateRange:
    """Return the explicit range, or a window ending at the latest data.

    Both bounds must be given for an explicit range; a lone bound is ignored.
    With no data at all the window ends today.
    """
    if window_days < 1:
        raise ValueError("window_days must be at least 1")

    if start is not None and end is not None:
        return DateRange(start, end)

    anchor = latest if latest is not None else today
    resolved = DateRange(anchor - timedelta(days=window_days - 1), anchor)
    logger.debug(
        "Resolved default date range",
        start=resolved.start.isoformat(),
        end=resolved.end.isoformat(),
        anchored_on="latest_data" if latest is not None else "today",
    )
    return resolved


def today_in(tz: tzinfo) -> date:
    """Current calendar date in the given civil timezone."""
    return datetime.now(tz).date()


def to_calendar_date(value: object, store_tz: tzinfo, report_tz: tzinfo) -> date | None:
    """Normalize a raw store value to a calendar date in ``report_tz``.

    Naive timestamps are read as ``store_tz`` local time; aware ones are
    converted. Plain dates pass through untouched. ISO strings are parsed.
    Returns None for anything that cannot be interpreted.
    """
    if value is None:
        return None
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            if len(text) == 10:
                return date.fromisoformat(text)
            value = datetime.fromisoformat(text)
        except ValueError:
            return None
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=store_tz)
        return value.astimezone(report_tz).date()
    if isinstance(value, date):
        return value
    return None
