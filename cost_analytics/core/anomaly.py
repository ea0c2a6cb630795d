"""
Anomaly detection for daily cost patterns.

Scores an evaluation day's spend per (project, service) pair against its
historical baseline using z-scores.
"""

import logging
from dataclasses import dataclass
from datetime import date
from enum import Enum
from functools import total_ordering
from typing import Dict, Iterable, List, Optional

from .baseline import BaselineStats, compute_baselines
from cost_analytics.core.trends import PairKey
from cost_analytics.storage.models import CostRecord

logger = logging.getLogger(__name__)

# Fixed severity cut-offs; the caller's threshold only gates inclusion
HIGH_ZSCORE = 3.0
MEDIUM_ZSCORE = 2.0


@total_ordering
class AnomalySeverity(Enum):
    """Severity levels for detected anomalies, ordered LOW < MEDIUM < HIGH."""
    LOW = 1
    MEDIUM = 2
    HIGH = 3

    def __lt__(self, other):
        if not isinstance(other, AnomalySeverity):
            return NotImplemented
        return self.value < other.value


@dataclass(frozen=True)
class AnomalyFinding:
    """One flagged (project, service) observation."""
    date: date
    project_id: str
    service_name: str
    actual_cost: float
    expected_cost: float
    deviation_pct: Optional[float]  # None when expected_cost is zero
    severity: AnomalySeverity
    z_score: float

    @property
    def description(self) -> str:
        return (
            f"Cost spike detected for {self.service_name} in project {self.project_id}. "
            f"Expected: ${self.expected_cost:.2f}, Actual: ${self.actual_cost:.2f}"
        )


def classify_severity(z_score: float) -> AnomalySeverity:
    """Map a z-score to a severity tier (strict comparisons, high to low)."""
    if z_score > HIGH_ZSCORE:
        return AnomalySeverity.HIGH
    if z_score > MEDIUM_ZSCORE:
        return AnomalySeverity.MEDIUM
    return AnomalySeverity.LOW


def detect_anomalies(
    historical_records: Iterable[CostRecord],
    evaluation_records: Iterable[CostRecord],
    threshold: float,
) -> List[AnomalyFinding]:
    """Detect anomalous pairs on the evaluation day.

    A pair is scored only when it has a baseline (at least 7 daily samples)
    with non-zero standard deviation. Other pairs are skipped.

    Args:
        historical_records: Records covering the lookback window, ending the
            day before the evaluation date
        evaluation_records: Records for the evaluation day only
        threshold: Minimum z-score (exclusive) for a pair to be reported

    Returns:
        Findings in no particular order (empty if none)

    Raises:
        ValueError: If threshold is not positive or the evaluation records
            span more than one date
    """
    if threshold <= 0:
        raise ValueError("threshold must be > 0")

    evaluation_totals: Dict[PairKey, float] = {}
    evaluation_dates = set()
    for record in evaluation_records:
        evaluation_dates.add(record.usage_date)
        key = (record.project_id, record.service_name)
        evaluation_totals[key] = evaluation_totals.get(key, 0.0) + record.net_cost

    if not evaluation_totals:
        return []
    if len(evaluation_dates) > 1:
        raise ValueError(
            f"Evaluation records must cover a single date, got {len(evaluation_dates)}"
        )
    evaluation_date = next(iter(evaluation_dates))

    baselines = compute_baselines(historical_records)

    findings = []
    for pair, actual in evaluation_totals.items():
        baseline = baselines.get(pair)
        if baseline is None:
            continue
        if baseline.stddev == 0:
            logger.debug("Skipping %s/%s: zero variance baseline", pair[0], pair[1])
            continue

        finding = _score_pair(pair, evaluation_date, actual, baseline, threshold)
        if finding is not None:
            findings.append(finding)

    logger.info(
        "Scored %d pairs against %d baselines, %d anomalies",
        len(evaluation_totals), len(baselines), len(findings),
    )
    return findings


def _score_pair(
    pair: PairKey,
    evaluation_date: date,
    actual: float,
    baseline: BaselineStats,
    threshold: float,
) -> Optional[AnomalyFinding]:
    expected = baseline.mean
    z_score = abs(actual - expected) / baseline.stddev
    if z_score <= threshold:
        return None

    deviation_pct = None
    if expected != 0:
        deviation_pct = (actual - expected) / expected * 100

    return AnomalyFinding(
        date=evaluation_date,
        project_id=pair[0],
        service_name=pair[1],
        actual_cost=actual,
        expected_cost=expected,
        deviation_pct=deviation_pct,
        severity=classify_severity(z_score),
        z_score=z_score,
    )
