"""
Data models for storage layer.

Defines the cost-usage record shared by storage and analytics.
"""

from dataclasses import dataclass
from datetime import date, datetime


@dataclass(frozen=True)
class CostRecord:
    """Immutable daily cost-usage observation from a billing export.

    Several records may share the same project, service and date; analytics
    always sums them, never overwrites one with another.
    """
    project_id: str
    service_name: str
    usage_date: date
    cost: float
    credits: float = 0.0

    def __post_init__(self):
        """Validate the usage date carries no time of day."""
        if isinstance(self.usage_date, datetime):
            raise ValueError("usage_date must be a date, not a datetime")
        if not isinstance(self.usage_date, date):
            raise ValueError("usage_date must be a date")

    @property
    def net_cost(self) -> float:
        """Gross cost plus credits."""
        return self.cost + self.credits
