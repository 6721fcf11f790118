"""What-if scenario simulation against the current capacity baseline.

A simulation never writes to the data store. Each call reads a fresh baseline
(current utilization plus active bottlenecks), applies the requested changes
to request-local accumulators and discards them once the result is built, so
identical payloads against an unchanged baseline give identical numbers.
"""

from __future__ import annotations

import asyncio
import logging
import math
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping, Optional, Sequence
from uuid import uuid4

from capacity_engine.domain.constraints import (
    ScenarioConfig,
    clamp_percent,
    severity_for_impact,
    validate_scenario_config,
)
from capacity_engine.domain.errors import AnalyticsValidationError
from capacity_engine.domain.models import (
    Bottleneck,
    BottleneckAnalysis,
    CapacityImpact,
    CapacityRecommendation,
    DepartmentImpact,
    RiskAssessment,
    RiskEntry,
    ScenarioChange,
    ScenarioResult,
    UtilizationSnapshot,
)
from capacity_engine.repository.gateway import CapacityDataGateway
from capacity_engine.services.bottleneck_service import BottleneckService, summarize_bottlenecks
from capacity_engine.services.utilization_service import UtilizationService
from capacity_engine.utils.config import Settings, get_settings
from capacity_engine.utils.logger import get_logger, log_event


logger = get_logger(__name__)


class ScenarioValidationError(AnalyticsValidationError):
    """Raised when a scenario change carries unusable details."""


@dataclass(frozen=True)
class AnalysisOptions:
    cost_impact: bool = False


@dataclass
class _Accumulator:
    demand_change: float = 0.0
    capacity_change: float = 0.0
    department_capacity: dict[str, float] = field(default_factory=lambda: defaultdict(float))
    department_demand: dict[str, float] = field(default_factory=lambda: defaultdict(float))
    warnings: list[str] = field(default_factory=list)


def _detail(details: Mapping[str, Any], *keys: str) -> Optional[float]:
    """Return the first numeric detail present under any of ``keys``."""
    for key in keys:
        if key not in details or details[key] is None:
            continue
        raw = details[key]
        if isinstance(raw, bool):
            raise ScenarioValidationError(f"'{key}' must be numeric")
        try:
            value = float(raw)
        except (TypeError, ValueError) as exc:
            raise ScenarioValidationError(f"'{key}' must be numeric, got {raw!r}") from exc
        if not math.isfinite(value):
            raise ScenarioValidationError(f"'{key}' must be finite")
        return value
    return None


def _require_non_negative(value: float, name: str, position: int) -> float:
    if value < 0:
        raise ScenarioValidationError(f"change #{position}: {name} must be >= 0")
    return value


def _apply_change(
    position: int,
    change: ScenarioChange,
    config: ScenarioConfig,
    settings: Settings,
    state: _Accumulator,
) -> None:
    details = change.details or {}
    department = details.get("department")
    capacity_delta = 0.0
    demand_delta = 0.0

    if change.type == "add_project":
        team_size = _detail(details, "team_size", "teamSize")
        duration = _detail(details, "duration_weeks", "durationWeeks", "duration")
        if team_size is None or duration is None:
            demand_delta = settings.scenario_default_project_hours
            state.warnings.append(
                f"change #{position} (add_project): team_size/duration_weeks missing; "
                f"assumed {demand_delta:g} hours"
            )
        else:
            demand_delta = (
                _require_non_negative(team_size, "team_size", position)
                * _require_non_negative(duration, "duration_weeks", position)
                * config.hours_per_unit
            )
    elif change.type in ("add_resources", "remove_resources"):
        count = _detail(details, "count")
        if count is None:
            hours = settings.scenario_default_resource_hours
            state.warnings.append(
                f"change #{position} ({change.type}): count missing; assumed {hours:g} hours"
            )
        else:
            hours = (
                _require_non_negative(count, "count", position)
                * config.hours_per_unit
                * config.resource_periods
            )
        capacity_delta = hours if change.type == "add_resources" else -hours
    elif change.type == "change_demand":
        percentage = _detail(details, "percentage")
        if percentage is None:
            state.warnings.append(
                f"change #{position} (change_demand): percentage missing; change ignored"
            )
        else:
            demand_delta = config.baseline_capacity_pool * percentage / 100.0
    else:
        state.warnings.append(
            f"change #{position}: unknown change type '{change.type}' ignored"
        )
        return

    state.capacity_change += capacity_delta
    state.demand_change += demand_delta
    if department:
        state.department_capacity[str(department)] += capacity_delta
        state.department_demand[str(department)] += demand_delta


def project_utilization(baseline: float, demand_change: float, capacity_change: float, pool: float) -> float:
    return clamp_percent(baseline + demand_change / max(1.0, capacity_change + pool) * 100.0)


def predict_bottlenecks(
    demand_change: float,
    capacity_change: float,
    settings: Optional[Settings] = None,
) -> list[Bottleneck]:
    """Synthesize one overall capacity bottleneck when demand outgrows capacity."""
    settings = settings or get_settings()
    if demand_change <= capacity_change * settings.scenario_bottleneck_ratio:
        return []
    impact = settings.scenario_bottleneck_impact
    return [
        Bottleneck(
            type="resource",
            affected_resource="Overall capacity",
            severity=severity_for_impact(impact),
            impact=impact,
            affected_projects=[],
            estimated_duration=settings.scenario_bottleneck_duration_days,
            root_causes=["Increased demand exceeds capacity growth"],
            recommended_actions=["Hire additional resources", "Optimize processes"],
            status="predicted",
        )
    ]


def _department_impacts(
    baseline: UtilizationSnapshot,
    state: _Accumulator,
    config: ScenarioConfig,
) -> list[DepartmentImpact]:
    rows = {row.department: row for row in baseline.by_department}
    impacts = []
    for department in sorted(set(state.department_capacity) | set(state.department_demand)):
        row = rows.get(department)
        if row is not None:
            baseline_utilization = row.utilization
            pool = row.available * config.resource_periods
        else:
            baseline_utilization = baseline.overall
            pool = config.baseline_capacity_pool
        capacity_change = state.department_capacity[department]
        demand_change = state.department_demand[department]
        new_utilization = project_utilization(
            baseline_utilization, demand_change, capacity_change, pool
        )
        impacts.append(
            DepartmentImpact(
                department=department,
                capacity_change=round(capacity_change, 2),
                demand_change=round(demand_change, 2),
                baseline_utilization=round(baseline_utilization, 2),
                new_utilization=round(new_utilization, 2),
                utilization_change=round(new_utilization - baseline_utilization, 2),
            )
        )
    return impacts


def _resolved_bottlenecks(
    current: Sequence[Bottleneck],
    state: _Accumulator,
    config: ScenarioConfig,
) -> list[Bottleneck]:
    def relieved(capacity_change: float, demand_change: float) -> bool:
        return capacity_change > 0 and capacity_change > demand_change * config.bottleneck_ratio

    overall_relief = relieved(state.capacity_change, state.demand_change)
    resolved = []
    for bottleneck in current:
        if bottleneck.type == "resource" and overall_relief:
            resolved.append(bottleneck)
        elif bottleneck.type == "department" and relieved(
            state.department_capacity.get(bottleneck.affected_resource, 0.0),
            state.department_demand.get(bottleneck.affected_resource, 0.0),
        ):
            resolved.append(bottleneck)
    return resolved


def _scenario_recommendations(
    new_utilization: float,
    config: ScenarioConfig,
    settings: Settings,
) -> list[CapacityRecommendation]:
    if new_utilization <= config.hiring_threshold:
        return []
    return [
        CapacityRecommendation(
            type="hiring",
            priority="high",
            title="Expand capacity",
            description="Increase capacity to handle elevated demand",
            expected_impact=20.0,
            cost=settings.scenario_hiring_cost,
            time_to_implement="10 weeks",
            success_metrics=["Reduced utilization to sustainable levels"],
        )
    ]


def assess_scenario_risk(utilization: float, config: ScenarioConfig) -> RiskAssessment:
    if utilization > config.critical_risk_threshold:
        level = "critical"
    elif utilization > config.high_risk_threshold:
        level = "high"
    else:
        level = "medium"
    return RiskAssessment(
        risk_level=level,
        risks=[
            RiskEntry(
                risk="Resource overutilization",
                probability=round(utilization / 100.0, 4),
                impact="Decreased quality and employee burnout",
                mitigation="Hire additional staff or reduce scope",
            )
        ],
    )


def simulate_scenario(
    scenario_id: str,
    baseline: UtilizationSnapshot,
    current_bottlenecks: Sequence[Bottleneck],
    changes: Iterable[ScenarioChange],
    options: AnalysisOptions,
    settings: Settings,
) -> ScenarioResult:
    """Apply ``changes`` in order to the baseline; pure apart from ``scenario_id``."""
    config = ScenarioConfig.from_settings(settings)
    validate_scenario_config(config)

    state = _Accumulator()
    for position, change in enumerate(changes, start=1):
        _apply_change(position, change, config, settings, state)

    new_utilization = project_utilization(
        baseline.overall,
        state.demand_change,
        state.capacity_change,
        config.baseline_capacity_pool,
    )
    new_bottlenecks = predict_bottlenecks(state.demand_change, state.capacity_change, settings)
    recommendations = _scenario_recommendations(new_utilization, config, settings)

    return ScenarioResult(
        scenario_id=scenario_id,
        capacity_impact=CapacityImpact(
            total_capacity_change=round(state.capacity_change, 2),
            total_demand_change=round(state.demand_change, 2),
            baseline_utilization=round(baseline.overall, 2),
            new_overall_utilization=round(new_utilization, 2),
            department_impacts=_department_impacts(baseline, state, config),
        ),
        bottleneck_analysis=BottleneckAnalysis(
            new_bottlenecks=new_bottlenecks,
            resolved_bottlenecks=_resolved_bottlenecks(current_bottlenecks, state, config),
            impact_summary=summarize_bottlenecks(new_bottlenecks),
        ),
        recommendations=recommendations,
        risk_assessment=assess_scenario_risk(new_utilization, config),
        warnings=list(state.warnings),
        estimated_cost=(
            sum(item.cost for item in recommendations) if options.cost_impact else None
        ),
    )


class ScenarioService:
    """Runs what-if simulations in memory against a freshly read baseline."""

    def __init__(
        self,
        gateway: Optional[CapacityDataGateway] = None,
        settings: Optional[Settings] = None,
        utilization_service: Optional[UtilizationService] = None,
        bottleneck_service: Optional[BottleneckService] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._utilization_service = utilization_service or UtilizationService(
            gateway=gateway,
            settings=self._settings,
        )
        self._bottleneck_service = bottleneck_service or BottleneckService(
            gateway=gateway,
            settings=self._settings,
        )

    async def run_scenario_analysis(
        self,
        changes: Sequence[ScenarioChange],
        analysis_options: Optional[AnalysisOptions] = None,
    ) -> ScenarioResult:
        baseline, current_bottlenecks = await asyncio.gather(
            self._utilization_service.get_current_utilization(),
            self._bottleneck_service.get_current_bottlenecks(),
        )
        scenario_id = uuid4().hex
        result = simulate_scenario(
            scenario_id=scenario_id,
            baseline=baseline,
            current_bottlenecks=current_bottlenecks,
            changes=changes,
            options=analysis_options or AnalysisOptions(),
            settings=self._settings,
        )
        for warning in result.warnings:
            log_event(
                logger,
                "Scenario change warning",
                level=logging.WARNING,
                scenario_id=scenario_id,
                detail=warning,
            )
        log_event(
            logger,
            "Scenario simulated",
            scenario_id=scenario_id,
            changes=len(changes),
            capacity_change=result.capacity_impact.total_capacity_change,
            demand_change=result.capacity_impact.total_demand_change,
            utilization=result.capacity_impact.new_overall_utilization,
            risk=result.risk_assessment.risk_level,
        )
        return result
