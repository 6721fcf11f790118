"""Allocation optimization advice: over/under-allocation and skill mismatch."""

from __future__ import annotations

import asyncio
from datetime import date, datetime, timedelta, timezone
from typing import Optional, Sequence

from capacity_engine.domain.constraints import safe_ratio
from capacity_engine.domain.models import (
    ImplementationPhase,
    ImplementationPlan,
    OptimizationResult,
    OptimizationRisk,
    OptimizationRiskAssessment,
    OptimizationSuggestion,
)
from capacity_engine.domain.periods import DateRange
from capacity_engine.repository.data_repository import DataRepository
from capacity_engine.repository.gateway import AllocationRecord, CapacityDataGateway
from capacity_engine.utils.config import Settings, get_settings
from capacity_engine.utils.logger import get_logger, log_event


logger = get_logger(__name__)

LOOKAHEAD_DAYS = 30
LARGE_ADJUSTMENT_HOURS = 15.0

_PHASES = (
    ("low", "Low-risk capacity adjustments", "1-2 weeks"),
    ("medium", "Medium-risk optimizations", "2-3 weeks"),
    ("high", "High-risk strategic changes", "3-4 weeks"),
)
MITIGATION_STRATEGIES = [
    "Phase implementation over 4-6 weeks",
    "Monitor team satisfaction and productivity metrics",
    "Maintain rollback plans for critical changes",
    "Regular check-ins with affected team members",
]
PLAN_DEPENDENCIES = [
    "Management approval for resource changes",
    "Employee consultation and agreement",
    "Project manager coordination",
    "HR policy compliance verification",
]


def skill_match_score(employee_skills: Sequence[str], required_skills: Sequence[str]) -> float:
    required = set(required_skills)
    if not required:
        return 1.0
    return len(required & set(employee_skills)) / len(required)


def evaluate_allocation(record: AllocationRecord, settings: Settings) -> list[OptimizationSuggestion]:
    default_hours = record.default_hours
    if default_hours <= 0:
        default_hours = settings.optimization_default_weekly_hours
    utilization = record.allocated_hours / default_hours
    suggestions = []

    if utilization > 1.0:
        excess = record.allocated_hours - default_hours
        suggestions.append(
            OptimizationSuggestion(
                type="capacity_adjustment",
                employee_id=record.employee_id,
                project_id=record.project_id,
                adjustment=round(-excess, 2),
                reason=f"Over-allocated by {excess:.1f} hours ({utilization * 100:.1f}% utilization)",
                expected_improvement=round((utilization - 1.0) * 100.0, 2),
                confidence=0.9,
                risk_level="high" if excess > settings.optimization_high_risk_excess_hours else "medium",
            )
        )
    elif utilization < settings.optimization_under_allocation_ratio:
        target = settings.optimization_target_ratio
        increase = default_hours * target - record.allocated_hours
        suggestions.append(
            OptimizationSuggestion(
                type="capacity_adjustment",
                employee_id=record.employee_id,
                project_id=record.project_id,
                adjustment=round(increase, 2),
                reason=f"Under-allocated by {increase:.1f} hours ({utilization * 100:.1f}% utilization)",
                expected_improvement=round((target - utilization) * 100.0, 2),
                confidence=0.7,
                risk_level="low",
            )
        )

    if record.employee_skills and record.required_skills:
        match = skill_match_score(record.employee_skills, record.required_skills)
        if match < settings.optimization_skill_match_threshold:
            suggestions.append(
                OptimizationSuggestion(
                    type="reassignment",
                    employee_id=record.employee_id,
                    project_id=record.project_id,
                    adjustment=None,
                    reason=f"Skill mismatch: {match * 100:.0f}% match with project requirements",
                    expected_improvement=round((settings.optimization_target_ratio - match) * 100.0, 2),
                    confidence=0.6,
                    risk_level="medium",
                )
            )
    return suggestions


def assess_optimization_risks(suggestions: Sequence[OptimizationSuggestion]) -> OptimizationRiskAssessment:
    high_risk = sum(1 for item in suggestions if item.risk_level == "high")
    reassignments = sum(1 for item in suggestions if item.type == "reassignment")
    large_adjustments = sum(
        1
        for item in suggestions
        if item.type == "capacity_adjustment" and abs(item.adjustment or 0.0) > LARGE_ADJUSTMENT_HOURS
    )

    risks = []
    if reassignments > 3:
        risks.append(
            OptimizationRisk(
                type="organizational_disruption",
                severity="medium",
                description=f"{reassignments} employee reassignments may disrupt team dynamics",
                probability=0.7,
            )
        )
    if large_adjustments > 2:
        risks.append(
            OptimizationRisk(
                type="delivery_risk",
                severity="high",
                description=f"{large_adjustments} large capacity changes may affect delivery timelines",
                probability=0.6,
            )
        )
    if high_risk > 1:
        risks.append(
            OptimizationRisk(
                type="implementation_difficulty",
                severity="medium",
                description=f"{high_risk} high-risk changes require careful management",
                probability=0.8,
            )
        )

    if high_risk > 2 or len(risks) > 2:
        overall = "high"
    elif risks:
        overall = "medium"
    else:
        overall = "low"
    return OptimizationRiskAssessment(
        overall_risk=overall,
        risks=risks,
        mitigation_strategies=list(MITIGATION_STRATEGIES),
    )


def build_implementation_plan(suggestions: Sequence[OptimizationSuggestion]) -> ImplementationPlan:
    phases = []
    for tier, (risk_level, name, duration) in enumerate(_PHASES, start=1):
        actions = [
            f"{item.type} for employee {item.employee_id}: {item.reason}"
            for item in suggestions
            if item.risk_level == risk_level
        ]
        if actions:
            phases.append(
                ImplementationPhase(
                    phase=tier,
                    name=name,
                    duration=duration,
                    actions=actions,
                )
            )
    return ImplementationPlan(
        phases=phases,
        timeline="4-6 weeks total",
        dependencies=list(PLAN_DEPENDENCIES),
    )


def optimize_allocations(
    allocations: Sequence[AllocationRecord],
    settings: Settings,
) -> OptimizationResult:
    candidates = [
        suggestion
        for record in allocations
        for suggestion in evaluate_allocation(record, settings)
    ]
    ranked = sorted(
        candidates,
        key=lambda item: (-item.expected_improvement, item.employee_id, item.project_id),
    )[: settings.optimization_max_suggestions]
    expected = safe_ratio(sum(item.expected_improvement for item in ranked), max(1, len(ranked)))
    return OptimizationResult(
        suggestions=ranked,
        expected_improvement=round(expected, 2),
        risk_assessment=assess_optimization_risks(ranked),
        implementation=build_implementation_plan(ranked),
    )


class OptimizationService:
    """Evaluates allocations and ranks corrective actions."""

    def __init__(
        self,
        gateway: Optional[CapacityDataGateway] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._gateway = gateway or DataRepository(self._settings)

    async def optimize_allocation(
        self,
        allocations: Optional[Sequence[AllocationRecord]] = None,
        today: Optional[date] = None,
    ) -> OptimizationResult:
        records = list(allocations or [])
        source = "request"
        if not records:
            reference_day = today or datetime.now(timezone.utc).date()
            records = list(
                await asyncio.to_thread(
                    self._gateway.fetch_allocation_records,
                    DateRange(reference_day, reference_day + timedelta(days=LOOKAHEAD_DAYS)),
                )
            )
            source = "gateway"

        result = optimize_allocations(records, self._settings)
        log_event(
            logger,
            "Allocation optimization",
            source=source,
            allocations=len(records),
            suggestions=len(result.suggestions),
            overall_risk=result.risk_assessment.overall_risk,
        )
        return result
