"""Daily bucketing of transaction records over a date range."""

from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field
from datetime import date

from wellness_dashboard.core.exceptions import report_malformed
from wellness_dashboard.core.logging import get_logger
from wellness_dashboard.services.date_range import DateRange
from wellness_dashboard.services.records import TransactionRecord, is_known_category

logger = get_logger(__name__)

CategoryFn = Callable[[TransactionRecord], str | None]


def record_category(record: TransactionRecord) -> str | None:
    return record.category


@dataclass
class DateBucket:
    """One calendar day of aggregated activity.

    ``counts`` has an open key set: every category seen in the input plus any
    pinned by the caller, so empty days still report 0 for known keys.
    ``total`` and ``amount`` include records whose category is unknown.
    """

    date: date
    counts: dict[str, int] = field(default_factory=dict)
    total: int = 0
    amount: float = 0.0

    def count(self, category: str) -> int:
        return self.counts.get(category, 0)


def category_keys(
    records: Iterable[TransactionRecord],
    category_of: CategoryFn = record_category,
    pinned_categories: Iterable[str] = (),
) -> list[str]:
    """Sorted union of known categories in ``records`` and the pinned ones."""
    keys = {c for c in pinned_categories if is_known_category(c)}
    keys.update(c for c in map(category_of, records) if is_known_category(c))
    return sorted(keys)


def aggregate_by_day(
    records: Sequence[TransactionRecord],
    date_range: DateRange,
    category_of: CategoryFn = record_category,
    pinned_categories: Iterable[str] = (),
) -> list[DateBucket]:
    """Fold records into one bucket per day of ``date_range``, ascending.

    Records without a usable date are logged and skipped; records outside the
    range are ignored.
    """
    keys = category_keys(records, category_of, pinned_categories)
    buckets = {
        day: DateBucket(date=day, counts=dict.fromkeys(keys, 0))
        for day in date_range.iter_days()
    }

    skipped = 0
    for record in records:
        if record.occurred_on is None:
            report_malformed(record.record_id, "unparseable or missing date", raw_date=str(record.occurred_at))
            skipped += 1
            continue
        bucket = buckets.get(record.occurred_on)
        if bucket is None:
            continue
        bucket.total += 1
        bucket.amount += record.amount
        category = category_of(record)
        if is_known_category(category):
            bucket.counts[category] += 1

    logger.debug(
        "Aggregated records by day",
        records=len(records),
        skipped=skipped,
        days=date_range.days,
        categories=len(keys),
    )
    return list(buckets.values())


def group_by_day(
    records: Iterable[TransactionRecord],
    date_range: DateRange,
) -> dict[date, list[TransactionRecord]]:
    """In-range records per day, each day's list in chronological order.

    Only days with at least one record appear.
    """
    grouped: dict[date, list[TransactionRecord]] = {}
    for record in sorted(
        (r for r in records if r.occurred_on in date_range),
        key=lambda r: r.sort_key,
    ):
        grouped.setdefault(record.occurred_on, []).append(record)
    return grouped
