# test_imports.py
import importlib

import pytest

MODULES = [
    "cost_analytics.exceptions",
    "cost_analytics.logging_config",
    "cost_analytics.core.trends",
    "cost_analytics.core.baseline",
    "cost_analytics.core.anomaly",
    "cost_analytics.core.forecast",
    "cost_analytics.core.analytics",
    "cost_analytics.storage.models",
    "cost_analytics.storage.db",
    "cost_analytics.storage.repository",
    "cost_analytics.storage.csv_import",
    "cost_analytics.config.loader",
    "cost_analytics.cli.main",
]


@pytest.mark.parametrize("name", MODULES)
def test_module_imports(name):
    assert importlib.import_module(name) is not None


def test_public_names():
    from cost_analytics.core.analytics import CostAnalytics
    from cost_analytics.core.anomaly import detect_anomalies
    from cost_analytics.core.forecast import forecast
    from cost_analytics.core.trends import aggregate_trends

    assert callable(aggregate_trends)
    assert callable(detect_anomalies)
    assert callable(forecast)
    assert hasattr(CostAnalytics, "forecast_costs")
