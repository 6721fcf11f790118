"""Capacity intelligence report assembled from independent sub-analyses.

Each report section runs concurrently. A section whose gateway read fails is
replaced by a static fallback, logged at WARNING and listed in
``degraded_sections`` so callers can tell it apart from a computed result.
"""

from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from datetime import date, datetime, timezone
from typing import Awaitable, Callable, Optional, Sequence, TypeVar

from capacity_engine.domain.constraints import clamp_percent, safe_ratio
from capacity_engine.domain.models import (
    BottleneckReport,
    CapacityIntelligenceReport,
    CapacityPrediction,
    CapacityRecommendation,
    CapacityTrendPoint,
    RiskFactor,
    SkillForecastResult,
    UtilizationSnapshot,
)
from capacity_engine.domain.periods import (
    DEFAULT_TIMEFRAME,
    month_label,
    timeframe_months,
    trailing_days,
    trailing_months,
)
from capacity_engine.repository.data_repository import DataRepository
from capacity_engine.repository.gateway import (
    AllocationFilter,
    AllocationRecord,
    CapacityDataGateway,
    GatewayError,
    SkillDemandRecord,
    SkillSupplyRecord,
)
from capacity_engine.services.bottleneck_service import BottleneckService
from capacity_engine.services.forecast_service import (
    CapacityForecastService,
    generate_default_predictions,
)
from capacity_engine.services.skill_service import SkillForecastService
from capacity_engine.services.trend_service import build_trend_points
from capacity_engine.services.utilization_service import UtilizationService
from capacity_engine.utils.config import Settings, get_settings
from capacity_engine.utils.logger import get_logger, log_event


logger = get_logger(__name__)

T = TypeVar("T")

_PRIORITY_RANK = {"critical": 0, "high": 1, "medium": 2, "low": 3}


def recommendations_from_skills(forecast: SkillForecastResult) -> list[CapacityRecommendation]:
    demand_by_skill = {item.skill: item.forecasted_demand for item in forecast.skill_demand}
    gaps_by_skill = {item.skill: item for item in forecast.skill_gaps}
    recommendations = []

    for hiring in forecast.hiring_recommendations:
        demand = max(1, demand_by_skill.get(hiring.skill, 0))
        gap = gaps_by_skill.get(hiring.skill)
        recommendations.append(
            CapacityRecommendation(
                type="hiring",
                priority=hiring.urgency,
                title=f"Hire {hiring.recommended_hires} {hiring.skill} specialist(s)",
                description=hiring.justification,
                expected_impact=round(min(100.0, 100.0 * hiring.recommended_hires / demand), 2),
                cost=hiring.estimated_cost,
                time_to_implement=f"{gap.time_to_fill if gap else 4} weeks",
                success_metrics=[
                    f"{hiring.skill} gap closed",
                    "Project staffing requests filled on schedule",
                ],
            )
        )

    for training in forecast.training_recommendations:
        gap = gaps_by_skill.get(training.skill)
        closable = min(training.candidate_employees, gap.gap if gap else 0)
        demand = max(1, demand_by_skill.get(training.skill, 0))
        recommendations.append(
            CapacityRecommendation(
                type="training",
                priority=training.priority,
                title=f"Upskill {training.candidate_employees} employees in {training.skill}",
                description=(
                    f"Train employees with related skills to cover the {training.skill} shortfall"
                ),
                expected_impact=round(min(100.0, 100.0 * closable / demand), 2),
                cost=training.estimated_cost,
                time_to_implement=f"{training.training_weeks} weeks",
                success_metrics=[
                    f"Trained employees certified in {training.skill}",
                    "Reduced reliance on external hiring",
                ],
            )
        )

    return sorted(
        recommendations,
        key=lambda item: (_PRIORITY_RANK.get(item.priority, 4), -item.expected_impact, item.title),
    )


def derive_risk_factors(
    supply: Sequence[SkillSupplyRecord],
    demand: Sequence[SkillDemandRecord],
    allocations: Sequence[AllocationRecord],
    settings: Settings,
) -> list[RiskFactor]:
    factors = []
    supply_by_skill = {record.skill: record.current_supply for record in supply}
    for record in sorted(demand, key=lambda item: item.skill):
        holders = supply_by_skill.get(record.skill, 0)
        if record.total_demand > 0 and holders <= 1:
            factors.append(
                RiskFactor(
                    factor=f"Key-person dependency: {record.skill}",
                    level="high" if holders == 0 else "medium",
                    description=(
                        f"{holders} active employee(s) hold {record.skill} while "
                        f"{record.projects_requiring} project(s) require it"
                    ),
                    mitigation=f"Cross-train additional employees in {record.skill}",
                )
            )

    allocated: dict[int, float] = defaultdict(float)
    capacity: dict[int, float] = {}
    for record in allocations:
        allocated[record.employee_id] += record.allocated_hours
        capacity[record.employee_id] = record.default_hours
    if capacity:
        over = sum(1 for employee_id, hours in allocated.items() if hours > capacity[employee_id])
        share = safe_ratio(over, len(capacity))
        level = None
        if share > settings.risk_over_allocation_high_share:
            level = "high"
        elif share > settings.risk_over_allocation_medium_share:
            level = "medium"
        if level is not None:
            factors.append(
                RiskFactor(
                    factor="Over-allocated workforce",
                    level=level,
                    description=(
                        f"{share * 100:.0f}% of allocated employees exceed their weekly capacity"
                    ),
                    mitigation="Rebalance allocations or add capacity",
                )
            )
    return factors


class CapacityIntelligenceService:
    """Engine entry point composing every analysis into one report."""

    def __init__(
        self,
        gateway: Optional[CapacityDataGateway] = None,
        settings: Optional[Settings] = None,
        utilization_service: Optional[UtilizationService] = None,
        bottleneck_service: Optional[BottleneckService] = None,
        forecast_service: Optional[CapacityForecastService] = None,
        skill_service: Optional[SkillForecastService] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._gateway = gateway or DataRepository(self._settings)
        self._utilization_service = utilization_service or UtilizationService(
            self._gateway, self._settings
        )
        self._bottleneck_service = bottleneck_service or BottleneckService(
            self._gateway, self._settings
        )
        self._forecast_service = forecast_service or CapacityForecastService(
            self._gateway, self._settings
        )
        self._skill_service = skill_service or SkillForecastService(
            self._gateway, self._settings
        )

    async def _guarded(
        self,
        section: str,
        operation: Awaitable[T],
        fallback: Callable[[], T],
        degraded: list[str],
    ) -> T:
        try:
            return await operation
        except GatewayError as exc:
            log_event(
                logger,
                "Report section degraded",
                level=logging.WARNING,
                section=section,
                error=exc,
            )
            degraded.append(section)
            return fallback()

    async def _capacity_trends(self, timeframe: str, today: date) -> list[CapacityTrendPoint]:
        snapshots = await asyncio.to_thread(
            self._gateway.fetch_capacity_snapshots,
            trailing_months(today, timeframe_months(timeframe)),
            "monthly",
        )
        return build_trend_points(snapshots)

    async def _recommendations(self, today: date) -> list[CapacityRecommendation]:
        forecast = await self._skill_service.forecast_skill_demand(today=today)
        return recommendations_from_skills(forecast)

    async def _risk_factors(self, department: Optional[str], today: date) -> list[RiskFactor]:
        supply, demand, allocations = await asyncio.gather(
            asyncio.to_thread(self._gateway.fetch_skill_supply),
            asyncio.to_thread(self._gateway.fetch_skill_demand),
            asyncio.to_thread(
                self._gateway.fetch_allocation_records,
                trailing_days(today, self._settings.utilization_window_days),
                AllocationFilter(department=department),
            ),
        )
        return derive_risk_factors(supply, demand, allocations, self._settings)

    async def get_capacity_intelligence(
        self,
        department: Optional[str] = None,
        timeframe: Optional[str] = None,
        today: Optional[date] = None,
    ) -> CapacityIntelligenceReport:
        resolved_timeframe = timeframe or DEFAULT_TIMEFRAME
        timeframe_months(resolved_timeframe)
        reference_day = today or datetime.now(timezone.utc).date()
        degraded: list[str] = []

        def fallback_utilization() -> UtilizationSnapshot:
            return UtilizationSnapshot(
                period=month_label(reference_day),
                overall=clamp_percent(self._settings.utilization_fallback_percent),
                by_department=[],
                by_skill=[],
                is_fallback=True,
            )

        def fallback_predictions() -> list[CapacityPrediction]:
            return generate_default_predictions(["realistic"], self._settings, reference_day)

        (
            utilization,
            trends,
            bottlenecks,
            predictions,
            recommendations,
            risk_factors,
        ) = await asyncio.gather(
            self._guarded(
                "current_utilization",
                self._utilization_service.get_current_utilization(
                    department=department, today=reference_day
                ),
                fallback_utilization,
                degraded,
            ),
            self._guarded(
                "capacity_trends",
                self._capacity_trends(resolved_timeframe, reference_day),
                list,
                degraded,
            ),
            self._guarded(
                "bottleneck_analysis",
                self._bottleneck_service.identify_bottlenecks(today=reference_day),
                lambda: BottleneckReport(current=[], predicted=[], historical=[]),
                degraded,
            ),
            self._guarded(
                "predictions",
                self._forecast_service.get_capacity_predictions(today=reference_day),
                fallback_predictions,
                degraded,
            ),
            self._guarded(
                "recommendations",
                self._recommendations(reference_day),
                list,
                degraded,
            ),
            self._guarded(
                "risk_factors",
                self._risk_factors(department, reference_day),
                list,
                degraded,
            ),
        )

        report = CapacityIntelligenceReport(
            generated_at=datetime.now(timezone.utc).isoformat(),
            department=department,
            timeframe=resolved_timeframe,
            current_utilization=utilization,
            capacity_trends=trends,
            bottleneck_analysis=bottlenecks,
            predictions=predictions,
            recommendations=recommendations,
            risk_factors=risk_factors,
            degraded_sections=sorted(degraded),
        )
        log_event(
            logger,
            "Capacity intelligence report generated",
            department=department,
            timeframe=resolved_timeframe,
            degraded=",".join(report.degraded_sections) or "none",
        )
        return report
