"""
Short-horizon cost forecasting.

Fits an ordinary least-squares line to daily totals and extrapolates it.
"""

import logging
from dataclasses import dataclass
from datetime import date, timedelta
from typing import List, Sequence

from cost_analytics.core.trends import TrendPoint
from cost_analytics.exceptions import InsufficientDataError

logger = logging.getLogger(__name__)

MIN_FORECAST_POINTS = 7
# Applied to the last observed total when the regression goes negative
NEGATIVE_FALLBACK_FACTOR = 0.9


@dataclass(frozen=True)
class ForecastPoint:
    """Predicted net cost for one future day."""
    date: date
    total_cost: float


@dataclass(frozen=True)
class LinearTrend:
    """Fitted line y = slope * x + intercept over a zero-based index."""
    slope: float
    intercept: float

    def predict(self, index: int) -> float:
        return self.slope * index + self.intercept


def fit_linear_trend(values: Sequence[float]) -> LinearTrend:
    """Fit an OLS line to values against their zero-based index.

    The index, not the calendar date, is the independent variable, so gaps
    in the series are treated as uniform spacing.

    Args:
        values: Observed values in order

    Returns:
        LinearTrend with closed-form slope and intercept

    Raises:
        ValueError: If fewer than two values are given
    """
    n = len(values)
    if n < 2:
        raise ValueError("At least two values are required to fit a trend")

    sum_x = sum_y = sum_xy = sum_x2 = 0.0
    for x, y in enumerate(values):
        sum_x += x
        sum_y += y
        sum_xy += x * y
        sum_x2 += x * x

    slope = (n * sum_xy - sum_x * sum_y) / (n * sum_x2 - sum_x * sum_x)
    intercept = (sum_y - slope * sum_x) / n
    return LinearTrend(slope=slope, intercept=intercept)


def forecast(trend_points: Sequence[TrendPoint], horizon_days: int) -> List[ForecastPoint]:
    """Forecast daily totals for the days following the trend history.

    Predictions continue the index sequence past the last historical point.
    A negative prediction is replaced by 90% of the last observed total
    (never below zero).

    Args:
        trend_points: At least 7 points, strictly ascending by date
        horizon_days: Number of days to forecast

    Returns:
        Exactly horizon_days points on consecutive days after the last date

    Raises:
        InsufficientDataError: If fewer than 7 trend points are given
        ValueError: If horizon_days is not positive or points are out of order
    """
    if horizon_days <= 0:
        raise ValueError("horizon_days must be > 0")
    if len(trend_points) < MIN_FORECAST_POINTS:
        raise InsufficientDataError(
            "insufficient data for forecasting",
            required=MIN_FORECAST_POINTS,
            available=len(trend_points),
        )
    for previous, current in zip(trend_points, trend_points[1:]):
        if current.date <= previous.date:
            raise ValueError("trend_points must be strictly ascending by date")

    trend = fit_linear_trend([p.total_cost for p in trend_points])
    last = trend_points[-1]
    fallback = max(0.0, last.total_cost * NEGATIVE_FALLBACK_FACTOR)

    n = len(trend_points)
    forecasts = []
    for step in range(1, horizon_days + 1):
        predicted = trend.predict(n - 1 + step)
        if predicted < 0:
            predicted = fallback
        forecasts.append(ForecastPoint(
            date=last.date + timedelta(days=step),
            total_cost=predicted,
        ))

    logger.debug(
        "Forecast %d days from %d points (slope=%.4f, intercept=%.4f)",
        horizon_days, n, trend.slope, trend.intercept,
    )
    return forecasts
