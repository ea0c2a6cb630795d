"""
Unit tests for configuration loading and validation.

Tests strict validation and error handling for analytics configs.
"""

import os
import tempfile

import pytest
import yaml

from cost_analytics.config.loader import (
    AnalyticsConfig,
    AnomalyConfig,
    DatabaseConfig,
    ForecastConfig,
    TrendsConfig,
    default_config,
    load_analytics_config
)
from cost_analytics.exceptions import ConfigurationError


class TestConfigLoading:
    """Test configuration loading and validation."""

    def setup_method(self):
        """Set up test environment."""
        self.temp_dir = tempfile.mkdtemp()

    def teardown_method(self):
        """Clean up test environment."""
        import shutil
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def _write_config(self, config_data, filename: str = "config.yaml") -> str:
        """Write configuration data to temporary file."""
        config_path = os.path.join(self.temp_dir, filename)
        with open(config_path, 'w', encoding='utf-8') as f:
            yaml.dump(config_data, f)
        return config_path

    def test_valid_config_loads_correctly(self):
        """Test that a full configuration loads correctly."""
        config_path = self._write_config({
            "database": {"path": "/tmp/costs.db"},
            "trends": {"days": 60},
            "anomalies": {"lookback_days": 45, "threshold": 2.5},
            "forecast": {"history_days": 90, "horizon_days": 14},
        })

        config = load_analytics_config(config_path)

        assert config == AnalyticsConfig(
            database=DatabaseConfig(path="/tmp/costs.db"),
            trends=TrendsConfig(days=60),
            anomalies=AnomalyConfig(lookback_days=45, threshold=2.5),
            forecast=ForecastConfig(history_days=90, horizon_days=14),
        )

    def test_missing_sections_use_defaults(self):
        config_path = self._write_config({"anomalies": {"threshold": 3}})

        config = load_analytics_config(config_path)

        assert config.anomalies.threshold == 3.0
        assert isinstance(config.anomalies.threshold, float)
        assert config.anomalies.lookback_days == 30
        assert config.forecast == ForecastConfig()
        assert config.database.path == "cost_analytics.db"

    def test_none_path_returns_defaults(self):
        assert load_analytics_config(None) == default_config()

    def test_default_values(self):
        config = default_config()

        assert config.trends.days == 30
        assert config.anomalies.threshold == 2.0
        assert config.forecast.horizon_days == 7
        assert config.forecast.history_days == 30

    def test_missing_file_raises_error(self):
        with pytest.raises(FileNotFoundError, match="Analytics config file not found"):
            load_analytics_config(os.path.join(self.temp_dir, "missing.yaml"))

    def test_empty_file_raises_error(self):
        config_path = os.path.join(self.temp_dir, "empty.yaml")
        with open(config_path, 'w', encoding='utf-8') as f:
            f.write("")

        with pytest.raises(ValueError, match="Configuration file is empty"):
            load_analytics_config(config_path)

    def test_invalid_yaml_raises_error(self):
        config_path = os.path.join(self.temp_dir, "bad.yaml")
        with open(config_path, 'w', encoding='utf-8') as f:
            f.write("anomalies: [unclosed\n")

        with pytest.raises(yaml.YAMLError, match="Invalid YAML"):
            load_analytics_config(config_path)

    def test_non_mapping_raises_error(self):
        config_path = self._write_config(["a", "b"])

        with pytest.raises(ValueError, match="must be a mapping"):
            load_analytics_config(config_path)

    def test_unknown_top_level_key(self):
        config_path = self._write_config({"alerts": {}})

        with pytest.raises(ValueError, match="Unknown configuration keys"):
            load_analytics_config(config_path)

    def test_unknown_section_key(self):
        config_path = self._write_config({"forecast": {"horizon": 7}})

        with pytest.raises(ValueError, match="Unknown keys in forecast"):
            load_analytics_config(config_path)

    def test_section_must_be_dict(self):
        config_path = self._write_config({"trends": 30})

        with pytest.raises(ValueError, match="'trends' must be a dictionary"):
            load_analytics_config(config_path)

    def test_wrong_value_types(self):
        for data, message in [
            ({"trends": {"days": "30"}}, "'days' in trends must be an integer"),
            ({"trends": {"days": True}}, "'days' in trends must be an integer"),
            ({"anomalies": {"threshold": "high"}}, "'threshold' in anomalies must be a number"),
            ({"database": {"path": 5}}, "'path' in database must be a string"),
        ]:
            config_path = self._write_config(data)
            with pytest.raises(ConfigurationError, match=message):
                load_analytics_config(config_path)

    def test_non_positive_values_rejected(self):
        for data, message in [
            ({"trends": {"days": 0}}, "trends.days must be > 0"),
            ({"anomalies": {"threshold": 0}}, "anomalies.threshold must be > 0"),
            ({"anomalies": {"lookback_days": -1}}, "anomalies.lookback_days must be > 0"),
            ({"forecast": {"horizon_days": 0}}, "forecast.horizon_days must be > 0"),
            ({"forecast": {"history_days": 0}}, "forecast.history_days must be > 0"),
            ({"database": {"path": ""}}, "database path cannot be empty"),
        ]:
            config_path = self._write_config(data)
            with pytest.raises(ValueError, match=message):
                load_analytics_config(config_path)


class TestConfigObjects:
    """Test direct construction validation."""

    def test_config_is_immutable(self):
        config = default_config()
        with pytest.raises(AttributeError):
            config.trends = TrendsConfig(days=1)

    def test_configuration_error_is_value_error(self):
        with pytest.raises(ValueError):
            AnomalyConfig(threshold=-1.0)
