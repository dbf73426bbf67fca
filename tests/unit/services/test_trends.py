"""Unit tests for series summaries."""

import pytest

from wellness_dashboard.services.trends import day_over_day_trend, series_mean, summarize


@pytest.mark.unit
class TestTrends:
    """Test cases for trend and summary helpers."""

    def test_trend_is_percentage_change(self):
        assert day_over_day_trend(150.0, 100.0) == 50.0
        assert day_over_day_trend(50.0, 200.0) == -75.0

    def test_trend_rounds_to_one_decimal(self):
        assert day_over_day_trend(100.0, 300.0) == -66.7

    def test_zero_baseline_reports_no_change(self):
        assert day_over_day_trend(500.0, 0.0) == 0.0
        assert day_over_day_trend(0.0, 0.0) == 0.0

    def test_mean(self):
        assert series_mean([10.0, 20.0, 25.0]) == 18.33
        assert series_mean([]) == 0.0

    def test_summarize_uses_last_two_points(self):
        summary = summarize([10.0, 100.0, 150.0])

        assert summary.total == 260.0
        assert summary.mean == 86.67
        assert summary.trend == 50.0

    def test_summarize_short_series(self):
        summary = summarize([42.0])

        assert summary.trend == 0.0
        assert summary.mean == 42.0
