"""
Unit tests for cost forecasting.

Tests the least-squares fit, date continuation and the negative floor rule.
"""

from datetime import date, timedelta

import pytest

from cost_analytics.core.forecast import (
    MIN_FORECAST_POINTS,
    ForecastPoint,
    LinearTrend,
    fit_linear_trend,
    forecast
)
from cost_analytics.core.trends import TrendPoint
from cost_analytics.exceptions import CostAnalyticsError, InsufficientDataError


def make_trend(totals, start: date = date(2024, 1, 1)):
    """Create consecutive daily trend points with the given totals."""
    return [
        TrendPoint(
            date=start + timedelta(days=i),
            total_cost=total,
            cost_by_service={"Compute": total},
            cost_by_project={"p1": total}
        )
        for i, total in enumerate(totals)
    ]


class TestFitLinearTrend:
    """Test ordinary least-squares fitting."""

    def test_exact_line(self):
        trend = fit_linear_trend([3.0, 5.0, 7.0, 9.0])

        assert trend.slope == pytest.approx(2.0)
        assert trend.intercept == pytest.approx(3.0)

    def test_flat_series(self):
        trend = fit_linear_trend([4.0] * 5)

        assert trend.slope == pytest.approx(0.0)
        assert trend.intercept == pytest.approx(4.0)

    def test_noisy_series(self):
        # x = 0..4, y = 1, 3, 2, 5, 4 -> slope 0.8, intercept 1.4
        trend = fit_linear_trend([1.0, 3.0, 2.0, 5.0, 4.0])

        assert trend.slope == pytest.approx(0.8)
        assert trend.intercept == pytest.approx(1.4)

    def test_predict(self):
        assert LinearTrend(slope=2.0, intercept=1.0).predict(3) == 7.0

    def test_single_value_raises_error(self):
        with pytest.raises(ValueError, match="At least two values"):
            fit_linear_trend([1.0])


class TestForecast:
    """Test forecast generation."""

    def test_arithmetic_progression_continues(self):
        """Ten points rising by exactly 5 continue the progression."""
        history = make_trend([100.0 + 5 * i for i in range(10)])

        points = forecast(history, 3)

        assert [p.total_cost for p in points] == pytest.approx([150.0, 155.0, 160.0])

    def test_dates_follow_last_point(self):
        history = make_trend([10.0] * 8, start=date(2024, 2, 25))

        points = forecast(history, 4)

        assert [p.date for p in points] == [
            date(2024, 3, 4),
            date(2024, 3, 5),
            date(2024, 3, 6),
            date(2024, 3, 7),
        ]
        assert all(isinstance(p, ForecastPoint) for p in points)

    def test_exact_horizon_length(self):
        points = forecast(make_trend([1.0] * 7), 30)

        assert len(points) == 30
        dates = [p.date for p in points]
        assert dates == sorted(set(dates))

    def test_negative_prediction_uses_fallback(self):
        """Negative predictions are replaced by 90% of the last total."""
        history = make_trend([70.0, 60.0, 50.0, 40.0, 30.0, 20.0, 10.0])

        points = forecast(history, 3)

        # Raw predictions would be 0, -10, -20
        assert points[0].total_cost == pytest.approx(0.0, abs=1e-9)
        assert points[1].total_cost == pytest.approx(9.0)
        assert points[2].total_cost == pytest.approx(9.0)
        assert all(p.total_cost >= 0 for p in points)

    def test_fallback_never_negative(self):
        """A negative last total (net credits) floors at zero."""
        history = make_trend([5.0, 3.0, 1.0, -1.0, -3.0, -5.0, -7.0])

        points = forecast(history, 2)

        assert [p.total_cost for p in points] == [0.0, 0.0]

    def test_index_ignores_calendar_gaps(self):
        """Gaps in dates do not change the regression index."""
        totals = [10.0 + 5 * i for i in range(7)]
        history = [
            TrendPoint(
                date=date(2024, 1, 1) + timedelta(days=2 * i),
                total_cost=total,
                cost_by_service={},
                cost_by_project={}
            )
            for i, total in enumerate(totals)
        ]

        points = forecast(history, 1)

        assert points[0].total_cost == pytest.approx(45.0)
        assert points[0].date == date(2024, 1, 14)

    def test_six_points_raise_insufficient_data(self):
        with pytest.raises(InsufficientDataError) as exc_info:
            forecast(make_trend([1.0] * 6), 3)

        assert exc_info.value.required == MIN_FORECAST_POINTS
        assert exc_info.value.available == 6
        assert isinstance(exc_info.value, CostAnalyticsError)
        assert isinstance(exc_info.value, ValueError)

    def test_seven_points_accepted(self):
        assert len(forecast(make_trend([1.0] * 7), 1)) == 1

    def test_non_positive_horizon_raises_error(self):
        with pytest.raises(ValueError, match="horizon_days must be > 0"):
            forecast(make_trend([1.0] * 7), 0)

    def test_unordered_points_raise_error(self):
        history = make_trend([1.0] * 7)
        history[2], history[3] = history[3], history[2]

        with pytest.raises(ValueError, match="strictly ascending"):
            forecast(history, 1)
