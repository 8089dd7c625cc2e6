"""Tests for rainfall trend extrapolation."""

import pytest

from agridash.data.schema import RainHistory
from agridash.models.trend import TrendFit, fit, forecast_rain, project


class TestFit:
    def test_constant_series(self):
        trend = fit([5, 5, 5, 5, 5, 5])
        assert trend.slope == pytest.approx(0.0)
        assert project([5] * 6, trend) == pytest.approx([5.0] * 6)

    def test_increasing_series(self):
        series = [1, 2, 3, 4, 5, 6]
        trend = fit(series)
        assert trend.slope == pytest.approx(1.0)
        assert trend.intercept == pytest.approx(0.0, abs=1e-9)
        assert project(series, trend) == pytest.approx([7, 8, 9, 10, 11, 12])

    def test_single_point_is_flat_zero(self):
        trend = fit([42.0])
        assert trend == TrendFit(0.0, 0.0)
        assert project([42.0], trend) == [0.0] * 6

    def test_empty_series(self):
        assert fit([]) == TrendFit(0.0, 0.0)
        assert project([], fit([])) == [0.0] * 6

    def test_projection_clamped_at_zero(self):
        series = [60, 50, 40, 30, 20, 10]
        trend = fit(series)
        assert trend.slope == pytest.approx(-10.0)
        values = project(series, trend)
        assert values[0] == pytest.approx(0.0)
        assert all(v >= 0 for v in values)

    def test_horizon(self):
        assert len(project([1, 2], fit([1, 2]), horizon=3)) == 3


class TestForecastRain:
    def test_labels_follow_last_history_month(self):
        history = RainHistory(
            labels=["Jun", "Jul", "Aug", "Sep", "Oct", "Nov"],
            values=[120.0, 180.5, 150.0, 90.2, 40.0, 10.0],
        )
        forecast = forecast_rain(history)

        assert forecast.labels == ["Dec", "Jan", "Feb", "Mar", "Apr", "May"]
        assert len(forecast.values) == 6
        assert all(v >= 0 for v in forecast.values)
        assert forecast.slope < 0

    def test_empty_history_uses_calendar(self, today):
        forecast = forecast_rain(RainHistory(), today=today)
        assert forecast.labels == ["Dec", "Jan", "Feb", "Mar", "Apr", "May"]
        assert forecast.values == [0.0] * 6
