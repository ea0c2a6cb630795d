"""
Core modules for Cost Analytics.

This package contains the time-series analytics engine: trend
aggregation, baseline computation, anomaly detection and forecasting.
"""
