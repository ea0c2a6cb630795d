"""
Baseline cost analysis per (project, service) pair.

Establishes normal daily spend patterns for anomaly detection.
"""

import logging
import statistics
from dataclasses import dataclass
from typing import Dict, Iterable, List

from cost_analytics.core.trends import PairKey, daily_costs_by_pair
from cost_analytics.storage.models import CostRecord

logger = logging.getLogger(__name__)

# Pairs with fewer daily samples have no baseline
MIN_BASELINE_SAMPLES = 7


@dataclass(frozen=True)
class BaselineStats:
    """Statistical summary of one pair's historical daily net cost."""
    mean: float
    stddev: float
    sample_count: int

    def __post_init__(self):
        """Validate metrics are reasonable."""
        if self.stddev < 0:
            raise ValueError("stddev cannot be negative")
        if self.sample_count < MIN_BASELINE_SAMPLES:
            raise ValueError(f"sample_count must be at least {MIN_BASELINE_SAMPLES}")


def compute_baseline(daily_costs: List[float]) -> BaselineStats:
    """Compute a baseline from one daily-cost sample per date.

    Uses the sample standard deviation (n - 1 denominator).

    Args:
        daily_costs: Net cost per day for a single pair

    Returns:
        BaselineStats for the samples

    Raises:
        ValueError: If there are fewer than MIN_BASELINE_SAMPLES samples
    """
    if len(daily_costs) < MIN_BASELINE_SAMPLES:
        raise ValueError(
            f"At least {MIN_BASELINE_SAMPLES} daily samples required, got {len(daily_costs)}"
        )

    return BaselineStats(
        mean=statistics.fmean(daily_costs),
        stddev=statistics.stdev(daily_costs),
        sample_count=len(daily_costs),
    )


def compute_baselines(historical_records: Iterable[CostRecord]) -> Dict[PairKey, BaselineStats]:
    """Compute baselines for every pair with enough history.

    Records are summed per date inside each (project_id, service_name) pair
    so that each date contributes exactly one sample. Pairs with fewer than
    MIN_BASELINE_SAMPLES dates are left out; that is "no opinion", not an error.

    Args:
        historical_records: Records from the lookback window, excluding the
            evaluation day

    Returns:
        Mapping of (project_id, service_name) to BaselineStats
    """
    baselines: Dict[PairKey, BaselineStats] = {}

    for pair, daily in daily_costs_by_pair(historical_records).items():
        if len(daily) < MIN_BASELINE_SAMPLES:
            logger.debug(
                "Skipping baseline for %s/%s: %d daily samples",
                pair[0], pair[1], len(daily),
            )
            continue
        samples = [daily[day] for day in sorted(daily)]
        baselines[pair] = compute_baseline(samples)

    return baselines
