"""
Daily cost trend aggregation.

Rolls cost records up into per-day totals with service and project
breakdowns, and classifies the day-to-day movement of each
(project, service) pair.
"""

import logging
import statistics
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Dict, Iterable, List, Optional, Tuple

from cost_analytics.storage.models import CostRecord

logger = logging.getLogger(__name__)

PairKey = Tuple[str, str]

MOVING_AVERAGE_WINDOW = 7
VOLATILITY_WINDOW = 14
WEEK_OVER_WEEK_LAG = 7
GROWTH_THRESHOLD_PCT = 20.0
VOLATILITY_MULTIPLIER = 2.0


@dataclass(frozen=True)
class TrendPoint:
    """Net cost for one calendar day, with full service and project partitions."""
    date: date
    total_cost: float
    cost_by_service: Dict[str, float]
    cost_by_project: Dict[str, float]

    def top_service(self) -> Optional[Tuple[str, float]]:
        """Return the (service, cost) with the highest cost, or None if empty."""
        if not self.cost_by_service:
            return None
        return min(self.cost_by_service.items(), key=lambda item: (-item[1], item[0]))


class TrendStatus(Enum):
    """Classification of a pair's daily cost movement."""
    ANOMALY = "anomaly"
    HIGH_GROWTH = "high_growth"
    DECLINING = "declining"
    STABLE = "stable"


@dataclass(frozen=True)
class ServiceTrend:
    """Rolling statistics for one (project, service) pair on one day."""
    date: date
    project_id: str
    service_name: str
    daily_cost: float
    moving_avg_7d: float
    wow_growth_pct: Optional[float]
    volatility: Optional[float]
    status: TrendStatus


def aggregate_trends(records: Iterable[CostRecord]) -> List[TrendPoint]:
    """Aggregate cost records into one trend point per usage date.

    Dates without records are not zero-filled. Breakdown mappings are built
    with sorted keys so identical input always yields identical output.

    Args:
        records: Cost records in any order

    Returns:
        Trend points ordered by ascending date
    """
    totals: Dict[date, float] = {}
    by_service: Dict[date, Dict[str, float]] = {}
    by_project: Dict[date, Dict[str, float]] = {}
    record_count = 0

    for record in records:
        record_count += 1
        day = record.usage_date
        net = record.net_cost
        totals[day] = totals.get(day, 0.0) + net

        services = by_service.setdefault(day, {})
        services[record.service_name] = services.get(record.service_name, 0.0) + net

        projects = by_project.setdefault(day, {})
        projects[record.project_id] = projects.get(record.project_id, 0.0) + net

    points = [
        TrendPoint(
            date=day,
            total_cost=totals[day],
            cost_by_service=_sorted_mapping(by_service[day]),
            cost_by_project=_sorted_mapping(by_project[day]),
        )
        for day in sorted(totals)
    ]
    logger.debug("Aggregated %d records into %d trend points", record_count, len(points))
    return points


def daily_costs_by_pair(records: Iterable[CostRecord]) -> Dict[PairKey, Dict[date, float]]:
    """Sum net cost per date within each (project_id, service_name) pair."""
    series: Dict[PairKey, Dict[date, float]] = {}
    for record in records:
        daily = series.setdefault((record.project_id, record.service_name), {})
        daily[record.usage_date] = daily.get(record.usage_date, 0.0) + record.net_cost
    return series


def analyze_service_trends(records: Iterable[CostRecord]) -> List[ServiceTrend]:
    """Compute rolling trend statistics for every (project, service) pair.

    Each pair's daily series is walked in date order. Windows are counted in
    samples, not calendar days, so gaps shorten nothing but the history.

    - moving_avg_7d: mean of the current and up to 6 preceding samples
    - wow_growth_pct: change against the sample 7 rows back (None if absent or zero)
    - volatility: sample stddev over the current and up to 13 preceding samples
    - status: ANOMALY when the cost is more than 2 volatilities from the
      moving average, then HIGH_GROWTH / DECLINING at +/-20% week over week

    Returns:
        Trends ordered by date, then project, then service
    """
    trends: List[ServiceTrend] = []

    for (project_id, service_name), daily in daily_costs_by_pair(records).items():
        days = sorted(daily)
        costs = [daily[day] for day in days]

        for idx, day in enumerate(days):
            cost = costs[idx]
            avg_window = costs[max(0, idx - MOVING_AVERAGE_WINDOW + 1):idx + 1]
            moving_avg = statistics.fmean(avg_window)

            vol_window = costs[max(0, idx - VOLATILITY_WINDOW + 1):idx + 1]
            volatility = statistics.stdev(vol_window) if len(vol_window) >= 2 else None

            growth_pct = None
            if idx >= WEEK_OVER_WEEK_LAG:
                prior = costs[idx - WEEK_OVER_WEEK_LAG]
                if prior != 0:
                    growth_pct = (cost - prior) / prior * 100

            trends.append(ServiceTrend(
                date=day,
                project_id=project_id,
                service_name=service_name,
                daily_cost=cost,
                moving_avg_7d=moving_avg,
                wow_growth_pct=growth_pct,
                volatility=volatility,
                status=_classify_trend(cost, moving_avg, growth_pct, volatility),
            ))

    trends.sort(key=lambda t: (t.date, t.project_id, t.service_name))
    return trends


def _classify_trend(
    cost: float,
    moving_avg: float,
    growth_pct: Optional[float],
    volatility: Optional[float],
) -> TrendStatus:
    if volatility is not None and abs(cost - moving_avg) > VOLATILITY_MULTIPLIER * volatility:
        return TrendStatus.ANOMALY
    if growth_pct is not None and growth_pct > GROWTH_THRESHOLD_PCT:
        return TrendStatus.HIGH_GROWTH
    if growth_pct is not None and growth_pct < -GROWTH_THRESHOLD_PCT:
        return TrendStatus.DECLINING
    return TrendStatus.STABLE


def _sorted_mapping(values: Dict[str, float]) -> Dict[str, float]:
    return {key: values[key] for key in sorted(values)}
