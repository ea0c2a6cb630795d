"""
Cost analytics service.

Maps "days back", "threshold" and "horizon" requests onto the core trend,
anomaly and forecast operations, fetching records from a record source.
Read-only: nothing here writes to the source.
"""

import logging
from datetime import date, timedelta
from typing import List, Optional

from .anomaly import AnomalyFinding, detect_anomalies
from .forecast import ForecastPoint, forecast
from .trends import ServiceTrend, TrendPoint, aggregate_trends, analyze_service_trends
from cost_analytics.storage.repository import RecordSource

logger = logging.getLogger(__name__)

DEFAULT_TREND_DAYS = 30
DEFAULT_ANOMALY_DAYS = 30
DEFAULT_ANOMALY_THRESHOLD = 2.0
DEFAULT_FORECAST_DAYS = 7
DEFAULT_FORECAST_HISTORY_DAYS = 30


class CostAnalytics:
    """Runs analytics over records from a RecordSource relative to 'today'."""

    def __init__(self, source: RecordSource, today: Optional[date] = None):
        """Initialize the service.

        Args:
            source: Supplier of cost records by date range
            today: Reference date, defaults to the current date
        """
        self.source = source
        self.today = today or date.today()

    def get_cost_trends(self, days: int = DEFAULT_TREND_DAYS) -> List[TrendPoint]:
        """Aggregate daily trends for the last `days` days through today."""
        _require_positive(days, "days")
        records = self.source.get_records(self.today - timedelta(days=days), self.today)
        return aggregate_trends(records)

    def get_service_trends(self, days: int = DEFAULT_TREND_DAYS) -> List[ServiceTrend]:
        """Rolling per (project, service) statistics over the last `days` days."""
        _require_positive(days, "days")
        records = self.source.get_records(self.today - timedelta(days=days), self.today)
        return analyze_service_trends(records)

    def detect_anomalies(
        self,
        days: int = DEFAULT_ANOMALY_DAYS,
        threshold: float = DEFAULT_ANOMALY_THRESHOLD,
    ) -> List[AnomalyFinding]:
        """Score yesterday's spend against the `days` days before it.

        Returns:
            Findings sorted by z-score, highest first
        """
        _require_positive(days, "days")
        evaluation_date = self.today - timedelta(days=1)
        history_end = evaluation_date - timedelta(days=1)
        history_start = evaluation_date - timedelta(days=days)

        historical = self.source.get_records(history_start, history_end)
        evaluation = self.source.get_records(evaluation_date, evaluation_date)
        logger.info(
            "Detecting anomalies for %s against %s..%s",
            evaluation_date, history_start, history_end,
        )

        findings = detect_anomalies(historical, evaluation, threshold)
        return sorted(findings, key=lambda f: f.z_score, reverse=True)

    def forecast_costs(
        self,
        days: int = DEFAULT_FORECAST_DAYS,
        history_days: int = DEFAULT_FORECAST_HISTORY_DAYS,
    ) -> List[ForecastPoint]:
        """Forecast `days` days ahead from the last `history_days` of trends.

        Raises:
            InsufficientDataError: If the history has fewer than 7 trend points
        """
        trends = self.get_cost_trends(history_days)
        return forecast(trends, days)


def _require_positive(value: int, name: str) -> None:
    if value <= 0:
        raise ValueError(f"{name} must be > 0")
