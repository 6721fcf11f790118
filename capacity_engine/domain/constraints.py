"""Domain-level classification and validation rules for capacity analytics."""

from __future__ import annotations

import math
from dataclasses import dataclass

from capacity_engine.utils.config import Settings


SEVERITY_LEVELS = ("low", "medium", "high", "critical")
IMPACT_SEVERITY_BANDS = (
    (90.0, "critical"),
    (70.0, "high"),
    (40.0, "medium"),
)
GAP_SEVERITY_BANDS = (
    (5, "critical"),
    (3, "high"),
    (1, "medium"),
)


def clamp_percent(value: float) -> float:
    """Clamp a percentage into [0, 100]; non-finite input collapses to 0."""
    if not math.isfinite(value):
        return 0.0
    return max(0.0, min(100.0, float(value)))


def safe_ratio(numerator: float, denominator: float, default: float = 0.0) -> float:
    if denominator == 0 or not math.isfinite(denominator):
        return default
    return numerator / denominator


def severity_for_impact(impact: float) -> str:
    """Band an impact score: critical >= 90, high >= 70, medium >= 40, else low."""
    for cutoff, severity in IMPACT_SEVERITY_BANDS:
        if impact >= cutoff:
            return severity
    return "low"


def severity_for_gap(gap: int) -> str:
    """Band a skill gap: critical > 5, high > 3, medium > 1, else low."""
    for cutoff, severity in GAP_SEVERITY_BANDS:
        if gap > cutoff:
            return severity
    return "low"


def business_impact_for_gap(gap: int) -> str:
    if gap > 5:
        return "Critical project delays expected"
    if gap > 3:
        return "Moderate impact on delivery timeline"
    return "Minor impact on capacity"


def weeks_to_fill(gap: int) -> int:
    return max(4, gap * 6)


@dataclass(frozen=True)
class ScenarioConfig:
    hours_per_unit: float
    resource_periods: int
    baseline_capacity_pool: float
    bottleneck_ratio: float
    hiring_threshold: float
    high_risk_threshold: float
    critical_risk_threshold: float

    @classmethod
    def from_settings(cls, settings: Settings) -> "ScenarioConfig":
        return cls(
            hours_per_unit=settings.scenario_hours_per_unit,
            resource_periods=settings.scenario_resource_periods,
            baseline_capacity_pool=settings.scenario_baseline_capacity_pool,
            bottleneck_ratio=settings.scenario_bottleneck_ratio,
            hiring_threshold=settings.scenario_hiring_threshold,
            high_risk_threshold=settings.scenario_high_risk_threshold,
            critical_risk_threshold=settings.scenario_critical_risk_threshold,
        )


def validate_scenario_config(config: ScenarioConfig) -> None:
    if config.hours_per_unit <= 0:
        raise ValueError("hours_per_unit must be > 0")
    if config.resource_periods <= 0:
        raise ValueError("resource_periods must be > 0")
    if config.baseline_capacity_pool <= 0:
        raise ValueError("baseline_capacity_pool must be > 0")
    if config.bottleneck_ratio <= 0:
        raise ValueError("bottleneck_ratio must be > 0")
    if not 0.0 <= config.high_risk_threshold <= config.critical_risk_threshold <= 100.0:
        raise ValueError("risk thresholds must satisfy 0 <= high <= critical <= 100")
    if not 0.0 <= config.hiring_threshold <= 100.0:
        raise ValueError("hiring_threshold must be between 0 and 100")
