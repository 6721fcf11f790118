"""Skill supply versus demand, skill trend direction and staffing actions."""

from __future__ import annotations

import asyncio
from collections import defaultdict
from datetime import date, datetime, timezone
from typing import Optional, Sequence

from capacity_engine.domain.constraints import (
    business_impact_for_gap,
    safe_ratio,
    severity_for_gap,
    weeks_to_fill,
)
from capacity_engine.domain.models import (
    HiringRecommendation,
    SkillDemandForecast,
    SkillForecastResult,
    SkillGap,
    TrainingRecommendation,
)
from capacity_engine.domain.periods import horizon_periods, trailing_days, trailing_months
from capacity_engine.repository.data_repository import DataRepository
from capacity_engine.repository.gateway import (
    AllocationRecord,
    CapacityDataGateway,
    EmployeeSkillRecord,
    SkillDemandRecord,
    SkillSupplyRecord,
    SkillUsageRecord,
)
from capacity_engine.services.trend_service import classify_trend, estimate_trend
from capacity_engine.utils.config import Settings, get_settings
from capacity_engine.utils.logger import get_logger, log_event


logger = get_logger(__name__)

DEFAULT_SKILL_HORIZON = "12_months"
DEFAULT_CATEGORY = "default"


def skill_trend(
    usage: Sequence[SkillUsageRecord],
    category: str,
    settings: Settings,
) -> tuple[str, float, str]:
    """Return ``(direction, confidence, source)`` for one skill.

    Regression over monthly allocation counts when enough months were observed,
    otherwise the category heuristic with a flat 0.5 confidence.
    """
    ordered = sorted(usage, key=lambda record: record.period)
    if len(ordered) >= settings.forecast_min_periods:
        estimate = estimate_trend([record.allocation_count for record in ordered])
        direction = classify_trend(estimate.slope, settings.skill_trend_stable_threshold)
        return direction, round(0.5 + 0.4 * estimate.r_squared, 4), "regression"
    direction = settings.skill_category_trends.get(category, "stable")
    return direction, 0.5, "category_heuristic"


def build_skill_demand(
    supply: Sequence[SkillSupplyRecord],
    demand: Sequence[SkillDemandRecord],
    usage: Sequence[SkillUsageRecord],
    settings: Settings,
) -> list[SkillDemandForecast]:
    supply_by_skill = {record.skill: record for record in supply}
    demand_by_skill = {record.skill: record for record in demand}
    usage_by_skill: dict[str, list[SkillUsageRecord]] = defaultdict(list)
    for record in usage:
        usage_by_skill[record.skill].append(record)

    forecasts = []
    for skill in sorted(set(supply_by_skill) | set(demand_by_skill)):
        supply_record = supply_by_skill.get(skill)
        current_supply = max(0, supply_record.current_supply if supply_record else 0)
        forecasted_demand = max(0, demand_by_skill[skill].total_demand if skill in demand_by_skill else 0)
        category = supply_record.category if supply_record else DEFAULT_CATEGORY
        direction, confidence, source = skill_trend(usage_by_skill.get(skill, []), category, settings)
        forecasts.append(
            SkillDemandForecast(
                skill=skill,
                current_supply=current_supply,
                forecasted_demand=forecasted_demand,
                gap=max(0, forecasted_demand - current_supply),
                confidence=confidence,
                trend_direction=direction,
                trend_source=source,
            )
        )
    return forecasts


def build_skill_gaps(skill_demand: Sequence[SkillDemandForecast]) -> list[SkillGap]:
    return [
        SkillGap(
            skill=forecast.skill,
            gap=forecast.gap,
            severity=severity_for_gap(forecast.gap),
            time_to_fill=weeks_to_fill(forecast.gap),
            business_impact=business_impact_for_gap(forecast.gap),
        )
        for forecast in skill_demand
        if forecast.gap > 0
    ]


def build_hiring_recommendations(
    gaps: Sequence[SkillGap],
    settings: Settings,
) -> list[HiringRecommendation]:
    return [
        HiringRecommendation(
            skill=gap.skill,
            recommended_hires=gap.gap,
            urgency=gap.severity,
            justification=f"{gap.skill} shortage: {gap.business_impact.lower()}",
            estimated_cost=gap.gap * settings.hiring_cost_per_hire,
        )
        for gap in gaps
        if gap.severity in ("high", "critical")
    ]


def find_training_candidates(
    skill: str,
    category: str,
    employee_skills: Sequence[EmployeeSkillRecord],
    allocated_by_employee: dict[int, float],
    settings: Settings,
) -> list[int]:
    """Employees with a related same-category skill, headroom, and no mastery of ``skill``."""
    profiles: dict[int, list[EmployeeSkillRecord]] = defaultdict(list)
    for record in employee_skills:
        profiles[record.employee_id].append(record)

    eligible: list[tuple[float, int]] = []
    for employee_id, records in profiles.items():
        target_level = max(
            (record.proficiency for record in records if record.skill == skill),
            default=0,
        )
        if target_level >= settings.training_target_max_level:
            continue
        has_related = any(
            record.skill != skill
            and record.category == category
            and record.proficiency >= settings.training_related_min_level
            for record in records
        )
        if not has_related:
            continue
        default_hours = records[0].default_hours
        utilization = safe_ratio(allocated_by_employee.get(employee_id, 0.0), default_hours, default=1.0)
        if utilization < settings.training_utilization_ceiling:
            eligible.append((utilization, employee_id))
    return [employee_id for _, employee_id in sorted(eligible)]


def build_training_recommendations(
    gaps: Sequence[SkillGap],
    categories: dict[str, str],
    employee_skills: Sequence[EmployeeSkillRecord],
    allocations: Sequence[AllocationRecord],
    settings: Settings,
) -> list[TrainingRecommendation]:
    allocated_by_employee: dict[int, float] = defaultdict(float)
    for record in allocations:
        allocated_by_employee[record.employee_id] += record.allocated_hours

    recommendations = []
    for gap in gaps:
        candidates = find_training_candidates(
            gap.skill,
            categories.get(gap.skill, DEFAULT_CATEGORY),
            employee_skills,
            allocated_by_employee,
            settings,
        )
        candidate_count = min(
            settings.training_max_candidates,
            max(settings.training_min_candidates, len(candidates)),
        )
        recommendations.append(
            TrainingRecommendation(
                skill=gap.skill,
                priority=gap.severity,
                candidate_employees=candidate_count,
                candidate_ids=candidates[: settings.training_max_candidates],
                # Cohorts padded up to the minimum size are costed but not yet staffed
                candidate_source="matched" if len(candidates) >= candidate_count else "sizing_heuristic",
                training_weeks=12 if gap.skill in settings.training_complex_skills else 8,
                estimated_cost=candidate_count * settings.training_cost_per_candidate,
            )
        )
    return recommendations


class SkillForecastService:
    """Forecasts skill demand and proposes hiring and training actions."""

    def __init__(
        self,
        gateway: Optional[CapacityDataGateway] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._gateway = gateway or DataRepository(self._settings)

    async def forecast_skill_demand(
        self,
        horizon: Optional[str] = None,
        today: Optional[date] = None,
    ) -> SkillForecastResult:
        resolved_horizon = horizon or DEFAULT_SKILL_HORIZON
        horizon_periods(resolved_horizon)
        reference_day = today or datetime.now(timezone.utc).date()

        supply, demand, usage, employee_skills, allocations = await asyncio.gather(
            asyncio.to_thread(self._gateway.fetch_skill_supply),
            asyncio.to_thread(self._gateway.fetch_skill_demand),
            asyncio.to_thread(
                self._gateway.fetch_skill_usage_history,
                trailing_months(reference_day, self._settings.skill_history_months),
            ),
            asyncio.to_thread(self._gateway.fetch_employee_skills),
            asyncio.to_thread(
                self._gateway.fetch_allocation_records,
                trailing_days(reference_day, self._settings.utilization_window_days),
            ),
        )

        skill_demand = build_skill_demand(supply, demand, usage, self._settings)
        gaps = build_skill_gaps(skill_demand)
        categories = {record.skill: record.category for record in supply}
        result = SkillForecastResult(
            horizon=resolved_horizon,
            skill_demand=skill_demand,
            skill_gaps=gaps,
            hiring_recommendations=build_hiring_recommendations(gaps, self._settings),
            training_recommendations=build_training_recommendations(
                gaps, categories, employee_skills, allocations, self._settings
            ),
        )
        log_event(
            logger,
            "Skill demand forecast",
            horizon=resolved_horizon,
            skills=len(skill_demand),
            gaps=len(gaps),
            hires=sum(item.recommended_hires for item in result.hiring_recommendations),
        )
        return result
