"""
Configuration management and loading.

Handles analytics settings read from a YAML file.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from cost_analytics.exceptions import ConfigurationError
from cost_analytics.storage.db import DEFAULT_DB_PATH


@dataclass(frozen=True)
class DatabaseConfig:
    """Location of the local cost record ledger."""
    path: str = DEFAULT_DB_PATH

    def __post_init__(self):
        if not self.path:
            raise ConfigurationError("database path cannot be empty")


@dataclass(frozen=True)
class TrendsConfig:
    """Default history window for trend reports."""
    days: int = 30

    def __post_init__(self):
        if self.days <= 0:
            raise ConfigurationError("trends.days must be > 0")


@dataclass(frozen=True)
class AnomalyConfig:
    """Anomaly detection defaults."""
    lookback_days: int = 30
    threshold: float = 2.0

    def __post_init__(self):
        """Validate anomaly settings are positive."""
        if self.lookback_days <= 0:
            raise ConfigurationError("anomalies.lookback_days must be > 0")
        if self.threshold <= 0:
            raise ConfigurationError("anomalies.threshold must be > 0")


@dataclass(frozen=True)
class ForecastConfig:
    """Forecast defaults."""
    history_days: int = 30
    horizon_days: int = 7

    def __post_init__(self):
        """Validate forecast settings are positive."""
        if self.history_days <= 0:
            raise ConfigurationError("forecast.history_days must be > 0")
        if self.horizon_days <= 0:
            raise ConfigurationError("forecast.horizon_days must be > 0")


@dataclass(frozen=True)
class AnalyticsConfig:
    """Complete analytics configuration."""
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    trends: TrendsConfig = field(default_factory=TrendsConfig)
    anomalies: AnomalyConfig = field(default_factory=AnomalyConfig)
    forecast: ForecastConfig = field(default_factory=ForecastConfig)


# Allowed keys and their expected types per section
_SECTION_SCHEMAS: Dict[str, Dict[str, type]] = {
    'database': {'path': str},
    'trends': {'days': int},
    'anomalies': {'lookback_days': int, 'threshold': float},
    'forecast': {'history_days': int, 'horizon_days': int},
}

_SECTION_TYPES = {
    'database': DatabaseConfig,
    'trends': TrendsConfig,
    'anomalies': AnomalyConfig,
    'forecast': ForecastConfig,
}


def default_config() -> AnalyticsConfig:
    """Return the built-in configuration."""
    return AnalyticsConfig()


def load_analytics_config(path: Optional[str] = None) -> AnalyticsConfig:
    """Load and validate analytics configuration from a YAML file.

    Sections that are absent fall back to their defaults; unknown sections
    or keys are rejected so typos never pass silently.

    Args:
        path: Path to YAML configuration file, or None for defaults

    Returns:
        Validated AnalyticsConfig object

    Raises:
        FileNotFoundError: If config file doesn't exist
        yaml.YAMLError: If YAML is invalid
        ValueError: If configuration is invalid
    """
    if path is None:
        return default_config()

    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"Analytics config file not found: {path}")

    with open(config_path, 'r', encoding='utf-8') as f:
        try:
            raw_config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise yaml.YAMLError(f"Invalid YAML in config file {path}: {e}")

    if not raw_config:
        raise ConfigurationError("Configuration file is empty")
    if not isinstance(raw_config, dict):
        raise ConfigurationError("Configuration must be a mapping")

    unknown_keys = set(raw_config.keys()) - set(_SECTION_SCHEMAS)
    if unknown_keys:
        raise ConfigurationError(f"Unknown configuration keys: {unknown_keys}")

    sections = {}
    for name, section_type in _SECTION_TYPES.items():
        if name not in raw_config:
            continue
        values = _parse_section(raw_config[name], name)
        sections[name] = section_type(**values)

    return AnalyticsConfig(**sections)


def _parse_section(data: Any, name: str) -> Dict[str, Any]:
    """Validate one configuration section against its schema.

    Args:
        data: Raw section data
        name: Section name for error messages

    Returns:
        Keyword arguments for the section dataclass

    Raises:
        ValueError: If the section is invalid
    """
    if not isinstance(data, dict):
        raise ConfigurationError(f"'{name}' must be a dictionary")

    schema = _SECTION_SCHEMAS[name]
    unknown_keys = set(data.keys()) - set(schema)
    if unknown_keys:
        raise ConfigurationError(f"Unknown keys in {name}: {unknown_keys}")

    values = {}
    for key, value in data.items():
        expected = schema[key]
        if expected is str:
            if not isinstance(value, str):
                raise ConfigurationError(f"'{key}' in {name} must be a string")
            values[key] = value
        elif expected is int:
            if isinstance(value, bool) or not isinstance(value, int):
                raise ConfigurationError(f"'{key}' in {name} must be an integer")
            values[key] = value
        else:
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ConfigurationError(f"'{key}' in {name} must be a number")
            values[key] = float(value)
    return values
