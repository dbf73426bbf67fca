"""Unit tests for daily bucketing."""

from datetime import date

import pytest

from wellness_dashboard.services.bucketing import aggregate_by_day, category_keys, group_by_day
from wellness_dashboard.services.date_range import DateRange
from tests.utils.test_data import make_test_record


@pytest.mark.unit
class TestAggregateByDay:
    """Test cases for aggregate_by_day."""

    def test_one_bucket_per_day_even_without_records(self):
        date_range = DateRange(date(2024, 1, 1), date(2024, 1, 31))

        buckets = aggregate_by_day([], date_range)

        assert len(buckets) == 31
        assert [b.date for b in buckets] == list(date_range.iter_days())
        assert all(b.total == 0 and b.amount == 0.0 and b.counts == {} for b in buckets)

    def test_counts_per_category_with_zero_filled_gaps(self):
        date_range = DateRange(date(2024, 1, 1), date(2024, 1, 3))
        records = [
            make_test_record("2024-01-01", category="catA"),
            make_test_record("2024-01-01", category="catA"),
            make_test_record("2024-01-03", category="catA"),
        ]

        buckets = aggregate_by_day(records, date_range)

        assert [b.count("catA") for b in buckets] == [2, 0, 1]
        assert all(set(b.counts) == {"catA"} for b in buckets)

    def test_every_bucket_carries_the_same_category_keys(self):
        date_range = DateRange(date(2024, 1, 1), date(2024, 1, 2))
        records = [
            make_test_record("2024-01-01", category="IVD"),
            make_test_record("2024-01-02", category="HBO"),
        ]

        buckets = aggregate_by_day(records, date_range, pinned_categories=("PRP",))

        for bucket in buckets:
            assert list(bucket.counts) == ["HBO", "IVD", "PRP"]
        assert buckets[0].counts == {"HBO": 0, "IVD": 1, "PRP": 0}

    def test_amounts_and_totals_accumulate(self):
        date_range = DateRange(date(2024, 1, 1), date(2024, 1, 1))
        records = [
            make_test_record("2024-01-01", amount=100.0),
            make_test_record("2024-01-01", amount=50.25),
        ]

        (bucket,) = aggregate_by_day(records, date_range)

        assert bucket.total == 2
        assert bucket.amount == pytest.approx(150.25)

    def test_unknown_category_counts_toward_total_only(self):
        date_range = DateRange(date(2024, 1, 1), date(2024, 1, 1))
        records = [
            make_test_record("2024-01-01", category=None),
            make_test_record("2024-01-01", category="N/A"),
            make_test_record("2024-01-01", category="IVD"),
        ]

        (bucket,) = aggregate_by_day(records, date_range)

        assert bucket.total == 3
        assert bucket.counts == {"IVD": 1}

    def test_out_of_range_and_undated_records_are_skipped(self):
        date_range = DateRange(date(2024, 1, 2), date(2024, 1, 2))
        records = [
            make_test_record("2024-01-01", category="IVD"),
            make_test_record("2024-01-03", category="IVD"),
            make_test_record(None, category="IVD"),
            make_test_record("2024-01-02", category="IVD"),
        ]

        (bucket,) = aggregate_by_day(records, date_range)

        assert bucket.total == 1
        assert bucket.count("IVD") == 1

    def test_same_input_gives_same_output(self):
        date_range = DateRange(date(2024, 1, 1), date(2024, 1, 5))
        records = [make_test_record(f"2024-01-0{d}", category="IVD", amount=d) for d in (1, 3, 5)]

        assert aggregate_by_day(records, date_range) == aggregate_by_day(records, date_range)


@pytest.mark.unit
class TestGrouping:
    """Test cases for category_keys and group_by_day."""

    def test_category_keys_is_sorted_union(self):
        records = [
            make_test_record("2024-01-01", category="PRP"),
            make_test_record("2024-01-01", category=None),
            make_test_record("2024-01-01", category="HBO"),
        ]

        assert category_keys(records, pinned_categories=("IVD", "HBO")) == ["HBO", "IVD", "PRP"]

    def test_group_by_day_orders_records_within_day(self):
        date_range = DateRange(date(2024, 1, 1), date(2024, 1, 2))
        late = make_test_record("2024-01-01", hour=16, record_id="late")
        early = make_test_record("2024-01-01", hour=9, record_id="early")
        outside = make_test_record("2024-01-05", record_id="outside")

        grouped = group_by_day([late, outside, early], date_range)

        assert list(grouped) == [date(2024, 1, 1)]
        assert [r.record_id for r in grouped[date(2024, 1, 1)]] == ["early", "late"]
