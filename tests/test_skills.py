from __future__ import annotations

import asyncio

import pytest

from capacity_engine.domain.errors import AnalyticsValidationError
from capacity_engine.repository.gateway import (
    AllocationRecord,
    EmployeeSkillRecord,
    SkillDemandRecord,
    SkillSupplyRecord,
    SkillUsageRecord,
)
from capacity_engine.services.skill_service import (
    SkillForecastService,
    build_skill_demand,
    build_skill_gaps,
    skill_trend,
)
from conftest import TODAY


def _load(gateway) -> None:
    gateway.skill_supply = [
        SkillSupplyRecord("Leadership", "soft", 3, 4.0),
        SkillSupplyRecord("Python", "technical", 2, 3.5),
        SkillSupplyRecord("React", "technical", 1, 4.0),
    ]
    gateway.skill_demand = [
        SkillDemandRecord("Kotlin", 2, 4),
        SkillDemandRecord("Python", 3, 8),
        SkillDemandRecord("React", 1, 2),
    ]
    gateway.skill_usage = [
        SkillUsageRecord("Python", "2026-03", 2),
        SkillUsageRecord("Python", "2026-04", 4),
        SkillUsageRecord("Python", "2026-05", 6),
    ]
    gateway.employee_skills = [
        EmployeeSkillRecord(1, "React", "technical", 4, 40.0),
        EmployeeSkillRecord(2, "Python", "technical", 4, 40.0),
        EmployeeSkillRecord(3, "Leadership", "soft", 5, 40.0),
        EmployeeSkillRecord(4, "Java", "technical", 2, 40.0),
        EmployeeSkillRecord(4, "Python", "technical", 2, 40.0),
    ]
    gateway.allocations = [
        AllocationRecord(1, 10, 10.0, 40.0),
        AllocationRecord(2, 10, 38.0, 40.0),
        AllocationRecord(4, 11, 20.0, 40.0),
    ]


def test_forecast_covers_union_of_supplied_and_demanded_skills(gateway, settings):
    _load(gateway)
    service = SkillForecastService(gateway=gateway, settings=settings)

    result = asyncio.run(service.forecast_skill_demand(today=TODAY))
    demand = {item.skill: item for item in result.skill_demand}

    assert result.horizon == "12_months"
    assert sorted(demand) == ["Kotlin", "Leadership", "Python", "React"]
    assert demand["Python"].gap == 6
    assert demand["Kotlin"].current_supply == 0
    assert demand["Leadership"].gap == 0
    assert all(item.gap >= 0 for item in result.skill_demand)


def test_trend_source_depends_on_observed_history(gateway, settings):
    _load(gateway)
    service = SkillForecastService(gateway=gateway, settings=settings)

    result = asyncio.run(service.forecast_skill_demand(today=TODAY))
    demand = {item.skill: item for item in result.skill_demand}

    assert demand["Python"].trend_source == "regression"
    assert demand["Python"].trend_direction == "increasing"
    assert demand["Python"].confidence == pytest.approx(0.9)
    assert demand["React"].trend_source == "category_heuristic"
    assert demand["React"].trend_direction == "increasing"
    assert demand["React"].confidence == pytest.approx(0.5)
    assert demand["Kotlin"].trend_direction == "stable"


def test_gaps_and_hiring_only_for_high_severity(gateway, settings):
    _load(gateway)
    service = SkillForecastService(gateway=gateway, settings=settings)

    result = asyncio.run(service.forecast_skill_demand(horizon="next_quarter", today=TODAY))
    gaps = {item.skill: item for item in result.skill_gaps}

    assert set(gaps) == {"Kotlin", "Python", "React"}
    assert gaps["Python"].severity == "critical"
    assert gaps["Python"].time_to_fill == 36
    assert gaps["Kotlin"].severity == "high"
    assert gaps["React"].severity == "low"
    assert gaps["React"].time_to_fill == 6
    hires = {item.skill: item for item in result.hiring_recommendations}
    assert set(hires) == {"Kotlin", "Python"}
    assert hires["Python"].recommended_hires == 6
    assert hires["Python"].estimated_cost == pytest.approx(6 * settings.hiring_cost_per_hire)


def test_training_candidates_need_related_skill_and_headroom(gateway, settings):
    _load(gateway)
    service = SkillForecastService(gateway=gateway, settings=settings)

    result = asyncio.run(service.forecast_skill_demand(today=TODAY))
    training = {item.skill: item for item in result.training_recommendations}

    # Employee 2 already masters Python; ordering is by current utilization
    assert training["Python"].candidate_ids == [1, 4]
    assert training["Python"].candidate_employees == 2
    assert training["Python"].training_weeks == 8
    assert training["Python"].estimated_cost == pytest.approx(2 * settings.training_cost_per_candidate)
    assert training["Python"].candidate_source == "matched"
    # Employee 2 has no headroom and employee 1 already masters React
    assert training["React"].candidate_ids == [4]
    assert training["React"].candidate_source == "sizing_heuristic"
    assert training["Kotlin"].candidate_ids == []
    assert training["Kotlin"].candidate_employees == settings.training_min_candidates
    assert training["Kotlin"].candidate_source == "sizing_heuristic"
    for item in result.training_recommendations:
        assert settings.training_min_candidates <= item.candidate_employees <= settings.training_max_candidates


def test_complex_skills_take_longer_to_train(gateway, settings):
    gateway.skill_supply = [SkillSupplyRecord("Machine Learning", "technical", 0, 0.0)]
    gateway.skill_demand = [SkillDemandRecord("Machine Learning", 2, 3)]
    service = SkillForecastService(gateway=gateway, settings=settings)

    result = asyncio.run(service.forecast_skill_demand(today=TODAY))

    assert result.training_recommendations[0].training_weeks == 12


def test_surplus_supply_never_produces_negative_gap(settings):
    forecasts = build_skill_demand(
        [SkillSupplyRecord("Python", "technical", 9, 3.0)],
        [SkillDemandRecord("Python", 1, 2)],
        [],
        settings,
    )

    assert forecasts[0].gap == 0
    assert build_skill_gaps(forecasts) == []


def test_short_usage_history_falls_back_to_category(settings):
    usage = [SkillUsageRecord("Leadership", "2026-05", 9)]

    assert skill_trend(usage, "soft", settings) == ("stable", 0.5, "category_heuristic")


def test_unknown_horizon_is_rejected(gateway, settings):
    service = SkillForecastService(gateway=gateway, settings=settings)

    with pytest.raises(AnalyticsValidationError):
        asyncio.run(service.forecast_skill_demand(horizon="someday", today=TODAY))
