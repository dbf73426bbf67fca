"""Immutable transaction records handed from the data store to the core."""

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from datetime import date, tzinfo
from types import MappingProxyType
from typing import Any

from wellness_dashboard.services.date_range import to_calendar_date

UNKNOWN_CATEGORY = "N/A"


def is_known_category(category: str | None) -> bool:
    """True for a usable category key (not null, blank or the N/A sentinel)."""
    return bool(category) and category.strip() != "" and category != UNKNOWN_CATEGORY


@dataclass(frozen=True)
class TransactionRecord:
    """One billable or clinical event.

    ``occurred_on`` is the calendar date after timezone normalization and is
    the only date the core looks at; ``occurred_at`` is the raw store value,
    kept for deterministic ordering of same-day records.
    """

    record_id: str
    entity_id: str | None
    occurred_on: date | None
    occurred_at: Any = None
    amount: float = 0.0
    category: str | None = None
    cross_reference_key: str | None = None
    details: Mapping[str, Any] = field(default_factory=dict, compare=False, hash=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "details", MappingProxyType(dict(self.details)))

    @property
    def sort_key(self) -> tuple:
        """Chronological order with stable tie-breaks."""
        return (
            self.occurred_on or date.max,
            _orderable(self.occurred_at),
            str(self.record_id),
        )

    def with_category(self, category: str | None, **details: Any) -> "TransactionRecord":
        """Copy of this record re-keyed to another category."""
        return replace(self, category=category, details={**self.details, **details})


def _orderable(value: Any) -> tuple:
    # None sorts last; everything else compares by its ISO/str form
    if value is None:
        return (1, "")
    if hasattr(value, "isoformat"):
        return (0, value.isoformat())
    return (0, str(value))


def make_record(
    record_id: Any,
    entity_id: Any,
    raw_date: Any,
    store_tz: tzinfo,
    report_tz: tzinfo,
    amount: Any = None,
    category: str | None = None,
    cross_reference_key: Any = None,
    **details: Any,
) -> TransactionRecord:
    """Build a record from a store row, normalizing its date exactly once."""
    return TransactionRecord(
        record_id=str(record_id),
        entity_id=None if entity_id is None else str(entity_id),
        occurred_on=to_calendar_date(raw_date, store_tz, report_tz),
        occurred_at=raw_date,
        amount=_to_float(amount),
        category=category,
        cross_reference_key=None if cross_reference_key in (None, "") else str(cross_reference_key),
        details=details,
    )


def _to_float(value: Any) -> float:
    if value is None:
        return 0.0
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0
