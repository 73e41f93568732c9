"""Configuration loading from environment variables and YAML files."""

from __future__ import annotations

import os
from collections.abc import Callable
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, ValidationError

from agrisk.exceptions import ConfigError
from agrisk.scoring.engine import validate_weights
from agrisk.scoring.models import AssessmentKind, RiskLevel, Thresholds

DEFAULT_CONFIG: dict[str, Any] = {
    "engine": {
        "parallel": False,
        "max_workers": None,
        "analyzer_timeout_seconds": 2.0,
    },
    "payment_risk": {
        "weights": {
            "payment_history": 0.30,
            "order_patterns": 0.25,
            "geographic_risk": 0.15,
            "account_age": 0.10,
            "order_frequency": 0.10,
            "amount_anomaly": 0.10,
        },
        "thresholds": {
            "low": 0.3,
            "medium": 0.6,
            "high": 0.8,
        },
        "factor_trigger": 0.7,
        "analyzers": {
            "payment_history": {
                "window_days": 90,
                "cod_failure_penalty": 0.3,
            },
            "order_patterns": {
                "window_days": 30,
                "cancellation_rate_threshold": 0.3,
                "order_value_multiplier": 3.0,
            },
            "geographic_risk": {
                "cross_region_penalty": 0.2,
                "cod_failure_rate_threshold": 0.3,
                "cod_failure_penalty": 0.2,
                "min_cod_orders": 10,
            },
            "account_age": {},
            "order_frequency": {
                "daily_high": 5,
                "daily_moderate": 3,
                "weekly_high": 15,
            },
            "amount_anomaly": {
                "window_days": 90,
                "large_order_threshold": 50000.0,
            },
        },
    },
    "route_anomaly": {
        "weights": {
            "route_deviation": 0.25,
            "speed_anomaly": 0.15,
            "stall_detection": 0.20,
            "stop_patterns": 0.10,
            "time_anomaly": 0.20,
            "acceleration_anomaly": 0.10,
        },
        "thresholds": {
            "low": 0.3,
            "medium": 0.6,
            "high": 0.8,
        },
        "factor_trigger": 0.7,
        "trigger_on_anomaly": True,
        "lookback_minutes": 60,
        "analyzers": {
            "route_deviation": {
                "max_deviation_km": 0.5,
                "detour_ratio": 1.3,
            },
            "speed_anomaly": {
                "max_coefficient_of_variation": 0.5,
                "rapid_change_kmh": 20,
            },
            "stall_detection": {
                "min_stall_minutes": 5,
                "long_stall_minutes": 30,
            },
            "stop_patterns": {
                "max_stops_per_hour": 5,
                "waypoint_radius_km": 0.5,
            },
            "time_anomaly": {
                "early_arrival_hours": 1.0,
                "early_arrival_penalty": 0.3,
            },
            "acceleration_anomaly": {
                "extreme_acceleration": 10.0,
                "moderate_acceleration": 5.0,
            },
        },
    },
    "providers": {
        "default_route_distance_km": 100.0,
    },
}


def _as_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


def load_config(config_path: str | Path | None = None) -> dict[str, Any]:
    """Load configuration from YAML file and environment variables.

    Priority (highest to lowest):
    1. Environment variables (AGRISK_* prefix)
    2. YAML config file
    3. Default values
    """
    config = _deep_copy_dict(DEFAULT_CONFIG)

    if config_path:
        path = Path(config_path)
        if path.exists():
            with open(path) as f:
                file_config = yaml.safe_load(f) or {}
            config = _deep_merge(config, file_config)

    _apply_env_overrides(config)
    return config


def _apply_env_overrides(config: dict[str, Any]) -> None:
    """Apply environment variable overrides to config."""
    env_mappings: dict[str, tuple[str, str, Callable[[str], Any]]] = {
        "AGRISK_MONGO_URI": ("mongodb", "uri", str),
        "AGRISK_MONGO_DB": ("mongodb", "database", str),
        "AGRISK_PARALLEL": ("engine", "parallel", _as_bool),
        "AGRISK_ANALYZER_TIMEOUT": ("engine", "analyzer_timeout_seconds", float),
    }

    for env_var, (section, key, convert) in env_mappings.items():
        value = os.environ.get(env_var)
        if value:
            if section not in config:
                config[section] = {}
            try:
                config[section][key] = convert(value)
            except ValueError as e:
                raise ConfigError(f"Invalid value for {env_var}: {value!r}") from e


def _deep_merge(base: dict, override: dict) -> dict:
    """Recursively merge override dict into base dict."""
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _deep_copy_dict(d: dict) -> dict:
    """Deep copy a nested dict structure."""
    result = {}
    for key, value in d.items():
        if isinstance(value, dict):
            result[key] = _deep_copy_dict(value)
        elif isinstance(value, list):
            result[key] = value.copy()
        else:
            result[key] = value
    return result


class EngineSettings(BaseModel):
    """Immutable settings for one instantiation, injected into its factory.

    Built from the loaded config dict with ``from_config``; weights and
    thresholds are validated there, so a bad deployment config fails at
    start-up rather than at assessment time.
    """

    model_config = ConfigDict(frozen=True)

    kind: AssessmentKind
    weights: dict[str, float]
    thresholds: Thresholds
    factor_trigger: float = 0.7
    trigger_on_anomaly: bool = False
    analyzers: dict[str, dict[str, Any]] = {}
    parallel: bool = False
    max_workers: int | None = None
    analyzer_timeout_seconds: float | None = None

    @classmethod
    def from_config(cls, config: dict[str, Any], kind: AssessmentKind) -> EngineSettings:
        section = config.get(kind.value, {})
        engine = config.get("engine", {})

        bounds = section.get("thresholds", {})
        try:
            thresholds = Thresholds(
                bands=tuple(
                    (level, float(bounds[level.value]))
                    for level in (RiskLevel.LOW, RiskLevel.MEDIUM, RiskLevel.HIGH)
                ),
                top_level=RiskLevel.CRITICAL,
                inclusive_upper=kind == AssessmentKind.PAYMENT_RISK,
            )
        except (KeyError, ValidationError) as e:
            raise ConfigError(f"Invalid {kind.value} thresholds {bounds}: {e}") from e

        weights = {name: float(w) for name, w in section.get("weights", {}).items()}
        validate_weights(weights)

        analyzers = {name: dict(cfg or {}) for name, cfg in section.get("analyzers", {}).items()}
        if "lookback_minutes" in section:
            for cfg in analyzers.values():
                cfg.setdefault("lookback_minutes", section["lookback_minutes"])

        return cls(
            kind=kind,
            weights=weights,
            thresholds=thresholds,
            factor_trigger=section.get("factor_trigger", 0.7),
            trigger_on_anomaly=section.get("trigger_on_anomaly", False),
            analyzers=analyzers,
            parallel=engine.get("parallel", False),
            max_workers=engine.get("max_workers"),
            analyzer_timeout_seconds=engine.get("analyzer_timeout_seconds"),
        )

    def analyzer_config(self, name: str) -> dict[str, Any]:
        return dict(self.analyzers.get(name, {}))
