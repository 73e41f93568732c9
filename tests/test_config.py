"""Tests for configuration loading and engine settings."""

from __future__ import annotations

import pytest

from agrisk.config import DEFAULT_CONFIG, EngineSettings, load_config
from agrisk.exceptions import ConfigError
from agrisk.scoring.models import AssessmentKind, RiskLevel


class TestLoadConfig:
    def test_defaults_without_file(self):
        config = load_config()
        assert config["payment_risk"]["weights"] == DEFAULT_CONFIG["payment_risk"]["weights"]
        assert config["engine"]["parallel"] is False

    def test_defaults_not_mutated(self):
        config = load_config()
        config["payment_risk"]["weights"]["payment_history"] = 0.9
        assert DEFAULT_CONFIG["payment_risk"]["weights"]["payment_history"] == 0.30

    def test_yaml_deep_merge(self, tmp_path):
        path = tmp_path / "agrisk.yaml"
        path.write_text(
            "payment_risk:\n"
            "  analyzers:\n"
            "    geographic_risk:\n"
            "      cross_region_penalty: 0.1\n"
        )
        config = load_config(path)
        geo = config["payment_risk"]["analyzers"]["geographic_risk"]
        assert geo["cross_region_penalty"] == 0.1
        assert geo["min_cod_orders"] == 10

    def test_missing_file_uses_defaults(self, tmp_path):
        config = load_config(tmp_path / "absent.yaml")
        assert config["route_anomaly"]["lookback_minutes"] == 60

    def test_env_overrides(self, monkeypatch):
        monkeypatch.setenv("AGRISK_PARALLEL", "yes")
        monkeypatch.setenv("AGRISK_ANALYZER_TIMEOUT", "0.75")
        monkeypatch.setenv("AGRISK_MONGO_URI", "mongodb://db.internal:27017")
        config = load_config()
        assert config["engine"]["parallel"] is True
        assert config["engine"]["analyzer_timeout_seconds"] == 0.75
        assert config["mongodb"]["uri"] == "mongodb://db.internal:27017"

    def test_invalid_env_value(self, monkeypatch):
        monkeypatch.setenv("AGRISK_ANALYZER_TIMEOUT", "soon")
        with pytest.raises(ConfigError, match="AGRISK_ANALYZER_TIMEOUT"):
            load_config()


class TestEngineSettings:
    def test_payment_settings(self):
        settings = EngineSettings.from_config(DEFAULT_CONFIG, AssessmentKind.PAYMENT_RISK)
        assert settings.thresholds.inclusive_upper is True
        assert settings.thresholds.bands[0] == (RiskLevel.LOW, 0.3)
        assert settings.trigger_on_anomaly is False
        assert settings.analyzer_timeout_seconds == 2.0

    def test_route_settings(self):
        settings = EngineSettings.from_config(DEFAULT_CONFIG, AssessmentKind.ROUTE_ANOMALY)
        assert settings.thresholds.inclusive_upper is False
        assert settings.trigger_on_anomaly is True
        assert settings.analyzer_config("stall_detection")["lookback_minutes"] == 60

    def test_analyzer_lookback_can_be_overridden(self, tmp_path):
        path = tmp_path / "agrisk.yaml"
        path.write_text(
            "route_anomaly:\n"
            "  analyzers:\n"
            "    stall_detection:\n"
            "      lookback_minutes: 120\n"
        )
        settings = EngineSettings.from_config(load_config(path), AssessmentKind.ROUTE_ANOMALY)
        assert settings.analyzer_config("stall_detection")["lookback_minutes"] == 120
        assert settings.analyzer_config("speed_anomaly")["lookback_minutes"] == 60

    def test_weights_not_summing_to_one(self, tmp_path):
        path = tmp_path / "agrisk.yaml"
        path.write_text("payment_risk:\n  weights:\n    payment_history: 0.5\n")
        with pytest.raises(ConfigError, match="sum to 1.0"):
            EngineSettings.from_config(load_config(path), AssessmentKind.PAYMENT_RISK)

    def test_bad_thresholds(self, tmp_path):
        path = tmp_path / "agrisk.yaml"
        path.write_text("route_anomaly:\n  thresholds:\n    medium: 0.9\n")
        with pytest.raises(ConfigError, match="thresholds"):
            EngineSettings.from_config(load_config(path), AssessmentKind.ROUTE_ANOMALY)

    def test_settings_are_frozen(self):
        settings = EngineSettings.from_config(DEFAULT_CONFIG, AssessmentKind.PAYMENT_RISK)
        with pytest.raises(Exception):
            settings.parallel = True

    def test_analyzer_config_is_a_copy(self):
        settings = EngineSettings.from_config(DEFAULT_CONFIG, AssessmentKind.PAYMENT_RISK)
        settings.analyzer_config("amount_anomaly")["window_days"] = 1
        assert settings.analyzer_config("amount_anomaly")["window_days"] == 90
