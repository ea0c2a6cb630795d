"""Exception hierarchy for cost analytics.

Callers can catch ``CostAnalyticsError`` for anything raised on purpose by
this package. The subclasses also derive from ``ValueError`` so code that
only knows about bad input keeps working.
"""

from typing import Any, Dict, Optional


class CostAnalyticsError(Exception):
    """Base exception for all cost analytics errors."""

    error_type = "CostAnalyticsError"

    def __init__(self, message: str, *, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.context = context or {}

    def to_dict(self) -> Dict[str, Any]:
        return {"error_type": self.error_type, "message": str(self), "context": self.context}


class InsufficientDataError(CostAnalyticsError, ValueError):
    """Raised when a statistical operation has fewer samples than it needs."""

    error_type = "InsufficientDataError"

    def __init__(self, message: str, *, required: int, available: int):
        super().__init__(message, context={"required": required, "available": available})
        self.required = required
        self.available = available


class ConfigurationError(CostAnalyticsError, ValueError):
    error_type = "ConfigurationError"
