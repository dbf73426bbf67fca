"""First-occurrence attribution.

Two uses share one ordering rule, ``TransactionRecord.sort_key``
(calendar date, then raw timestamp, then record id):

* new-vs-existing classification, where an entity's first qualifying record
  is "new" and every later one is "existing";
* earliest-closing attribution, where only the earliest record per
  (entity, category) survives.

Both must be given the entity's full history, not just the report window.
"""

from collections import defaultdict
from collections.abc import Callable, Hashable, Iterable
from dataclasses import dataclass
from datetime import date

from wellness_dashboard.core.exceptions import report_malformed
from wellness_dashboard.core.logging import get_logger
from wellness_dashboard.services.records import TransactionRecord

logger = get_logger(__name__)

KeyFn = Callable[[TransactionRecord], Hashable]


def entity_key(record: TransactionRecord) -> Hashable:
    return record.entity_id


def attribution_key(record: TransactionRecord) -> tuple[str | None, str | None]:
    """The (entity, category) pair closings are attributed to."""
    return (record.entity_id, record.category)


@dataclass(frozen=True)
class AttributedRecord:
    record: TransactionRecord
    is_new_occurrence: bool


def _dated(records: Iterable[TransactionRecord], purpose: str) -> list[TransactionRecord]:
    dated = []
    for record in records:
        if record.occurred_on is None:
            report_malformed(record.record_id, f"cannot rank undated record for {purpose}")
            continue
        dated.append(record)
    return dated


def classify_first_occurrences(
    records: Iterable[TransactionRecord],
    key: KeyFn = entity_key,
) -> list[AttributedRecord]:
    """Tag each record as the first occurrence of its key or a repeat.

    Output is in chronological order.
    """
    seen: set[Hashable] = set()
    attributed = []
    for record in sorted(_dated(records, "first occurrence"), key=lambda r: r.sort_key):
        group = key(record)
        attributed.append(AttributedRecord(record, group not in seen))
        seen.add(group)
    return attributed


def earliest_per_group(
    records: Iterable[TransactionRecord],
    key: KeyFn = attribution_key,
) -> list[TransactionRecord]:
    """Keep the earliest record per key; later ones are absorbed.

    Same-day ties go to the earlier raw timestamp, then the smaller record id.
    """
    earliest: dict[Hashable, TransactionRecord] = {}
    for record in _dated(records, "earliest attribution"):
        group = key(record)
        current = earliest.get(group)
        if current is None or record.sort_key < current.sort_key:
            earliest[group] = record
    return sorted(earliest.values(), key=lambda r: r.sort_key)


def entities_match(
    left_xref: str | None,
    left_id: str | None,
    right_xref: str | None,
    right_id: str | None,
) -> bool:
    """Decide whether two rows describe the same real-world entity.

    Cross-reference keys are authoritative when both sides carry one;
    otherwise fall back to the direct entity identifier.
    """
    if left_xref is not None and right_xref is not None:
        return left_xref == right_xref
    return left_id is not None and left_id == right_id


def excludes_term(term: str) -> Callable[[TransactionRecord], bool]:
    """Predicate rejecting records whose category or name mentions ``term``.

    Matching is a case-insensitive substring test. A record missing its
    category or name cannot be checked and is rejected too.
    """
    needle = term.lower()

    def keep(record: TransactionRecord) -> bool:
        name = record.details.get("procedure_name")
        code = record.category
        if code is None or name is None:
            return False
        if not needle:
            return True
        return needle not in code.lower() and needle not in str(name).lower()

    return keep


def match_same_day(
    primary: Iterable[TransactionRecord],
    secondary: Iterable[TransactionRecord],
    keep: Callable[[TransactionRecord], bool] = lambda record: True,
) -> list[TransactionRecord]:
    """Pair primary records with same-day secondary records of the same entity.

    Each match yields a copy of the primary record carrying the secondary
    record's category and procedure details. Secondary records rejected by
    ``keep`` never match.
    """
    by_day: dict[date, list[TransactionRecord]] = defaultdict(list)
    for record in secondary:
        if record.occurred_on is not None and keep(record):
            by_day[record.occurred_on].append(record)

    matched = []
    for record in primary:
        if record.occurred_on is None:
            continue
        for candidate in by_day.get(record.occurred_on, ()):
            if entities_match(
                record.cross_reference_key,
                record.entity_id,
                candidate.cross_reference_key,
                candidate.entity_id,
            ):
                matched.append(record.with_category(
                    candidate.category,
                    procedure_name=candidate.details.get("procedure_name"),
                ))

    logger.debug("Matched same-day records", matches=len(matched), days=len(by_day))
    return matched
