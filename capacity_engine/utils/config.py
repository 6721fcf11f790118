"""Runtime configuration for the capacity analytics engine."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path


@dataclass(frozen=True)
class Settings:
    """Container for runtime configuration loaded from environment variables."""

    app_name: str = "Capacity Analytics Engine"
    app_version: str = "1.0.0"
    log_level: str = "INFO"
    database_path: Path = Path("data/capacity.db")
    synthetic_random_seed: int = 42
    synthetic_history_months: int = 12
    synthetic_employee_count: int = 24

    # Utilization calculator
    utilization_window_days: int = 7
    utilization_fallback_percent: float = 80.0

    # Scenario simulator
    scenario_hours_per_unit: float = 160.0
    scenario_resource_periods: int = 4
    scenario_baseline_capacity_pool: float = 2000.0
    scenario_default_project_hours: float = 1280.0
    scenario_default_resource_hours: float = 640.0
    scenario_bottleneck_ratio: float = 1.2
    scenario_bottleneck_impact: float = 75.0
    scenario_bottleneck_duration_days: int = 30
    scenario_hiring_threshold: float = 90.0
    scenario_critical_risk_threshold: float = 95.0
    scenario_high_risk_threshold: float = 85.0
    scenario_hiring_cost: float = 150000.0

    # Bottleneck identifier
    bottleneck_recent_days: int = 7
    bottleneck_long_duration_days: int = 7
    bottleneck_history_months: int = 6
    bottleneck_history_limit: int = 10

    # Seasonality and anomaly detector
    seasonality_variance_ratio: float = 0.10
    seasonality_peak_ratio: float = 1.15
    seasonality_low_ratio: float = 0.85
    anomaly_deviation_ratio: float = 0.20
    pattern_band_ratio: float = 0.10
    anomaly_causes: tuple[str, ...] = (
        "Project deadlines",
        "Resource changes",
        "Market conditions",
    )

    # Trend estimator and forecasting
    trend_stable_threshold: float = 1.0
    skill_trend_stable_threshold: float = 0.25
    forecast_min_periods: int = 3
    skill_history_months: int = 12
    prediction_history_months: int = 12
    default_prediction_capacity: float = 2000.0
    default_prediction_demand: float = 1600.0
    default_prediction_confidence: float = 70.0

    # Skill gap engine
    training_min_candidates: int = 2
    training_max_candidates: int = 7
    training_utilization_ceiling: float = 0.9
    training_related_min_level: int = 2
    training_target_max_level: int = 3
    training_complex_skills: tuple[str, ...] = ("Machine Learning", "DevOps", "Architecture")
    training_cost_per_candidate: float = 2500.0
    hiring_cost_per_hire: float = 130000.0
    skill_category_trends: dict[str, str] = field(
        default_factory=lambda: {
            "technical": "increasing",
            "soft": "stable",
            "domain": "increasing",
        }
    )

    # Optimization advisor
    optimization_high_risk_excess_hours: float = 20.0
    optimization_under_allocation_ratio: float = 0.7
    optimization_target_ratio: float = 0.8
    optimization_skill_match_threshold: float = 0.7
    optimization_max_suggestions: int = 10
    optimization_default_weekly_hours: float = 40.0

    # Risk factors
    risk_over_allocation_medium_share: float = 0.10
    risk_over_allocation_high_share: float = 0.25


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return float(raw)


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return int(raw)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Load settings from environment variables with sensible defaults."""

    defaults = Settings()
    return Settings(
        app_name=os.getenv("CAPACITY_APP_NAME", defaults.app_name),
        app_version=os.getenv("CAPACITY_APP_VERSION", defaults.app_version),
        log_level=os.getenv("LOG_LEVEL", defaults.log_level),
        database_path=Path(os.getenv("DATABASE_PATH", str(defaults.database_path))),
        synthetic_random_seed=_env_int("CAPACITY_RANDOM_SEED", defaults.synthetic_random_seed),
        utilization_window_days=_env_int(
            "CAPACITY_UTILIZATION_WINDOW_DAYS", defaults.utilization_window_days
        ),
        utilization_fallback_percent=_env_float(
            "CAPACITY_UTILIZATION_FALLBACK", defaults.utilization_fallback_percent
        ),
        scenario_baseline_capacity_pool=_env_float(
            "CAPACITY_BASELINE_POOL_HOURS", defaults.scenario_baseline_capacity_pool
        ),
        trend_stable_threshold=_env_float(
            "CAPACITY_TREND_THRESHOLD", defaults.trend_stable_threshold
        ),
        optimization_max_suggestions=_env_int(
            "CAPACITY_MAX_SUGGESTIONS", defaults.optimization_max_suggestions
        ),
    )


__all__ = ["Settings", "get_settings"]
