from __future__ import annotations

import asyncio

import pytest

from capacity_engine.domain.constraints import ScenarioConfig
from capacity_engine.domain.models import (
    Bottleneck,
    DepartmentUtilization,
    ScenarioChange,
    UtilizationSnapshot,
)
from capacity_engine.repository.gateway import AllocationRecord
from capacity_engine.services.scenario_service import (
    AnalysisOptions,
    ScenarioService,
    ScenarioValidationError,
    assess_scenario_risk,
    predict_bottlenecks,
    project_utilization,
    simulate_scenario,
)
from conftest import make_bottleneck


def _baseline() -> UtilizationSnapshot:
    return UtilizationSnapshot(
        period="2026-06",
        overall=70.0,
        by_department=[
            DepartmentUtilization(department="Engineering", utilization=80.0, available=400.0, committed=320.0)
        ],
        by_skill=[],
    )


def _bottleneck(kind: str, resource: str) -> Bottleneck:
    return Bottleneck(
        type=kind,
        affected_resource=resource,
        severity="high",
        impact=75.0,
        affected_projects=[1],
        estimated_duration=14,
        root_causes=["Demand growth outpacing hiring"],
        recommended_actions=["Rebalance allocations"],
        status="active",
        bottleneck_id=7,
    )


def _simulate(changes, settings, current=(), options=None):
    return simulate_scenario(
        scenario_id="scenario-1",
        baseline=_baseline(),
        current_bottlenecks=list(current),
        changes=changes,
        options=options or AnalysisOptions(),
        settings=settings,
    )


def test_demand_outpacing_capacity_predicts_one_high_bottleneck(settings):
    bottlenecks = predict_bottlenecks(demand_change=1000, capacity_change=500, settings=settings)

    assert len(bottlenecks) == 1
    assert bottlenecks[0].severity == "high"
    assert bottlenecks[0].impact == pytest.approx(75.0)
    assert bottlenecks[0].status == "predicted"
    assert bottlenecks[0].type == "resource"


def test_demand_within_ratio_predicts_nothing(settings):
    assert predict_bottlenecks(demand_change=600, capacity_change=500, settings=settings) == []


def test_add_project_raises_utilization_and_risk(settings):
    result = _simulate([ScenarioChange("add_project", {"team_size": 1, "duration_weeks": 2})], settings)

    impact = result.capacity_impact
    assert impact.total_demand_change == pytest.approx(320.0)
    assert impact.total_capacity_change == pytest.approx(0.0)
    assert impact.baseline_utilization == pytest.approx(70.0)
    assert impact.new_overall_utilization == pytest.approx(86.0)
    assert result.risk_assessment.risk_level == "high"
    assert result.recommendations == []
    assert len(result.bottleneck_analysis.new_bottlenecks) == 1
    assert result.warnings == []


def test_added_resources_resolve_overall_bottleneck(settings):
    changes = [
        ScenarioChange("add_project", {"teamSize": 1, "durationWeeks": 2}),
        ScenarioChange("add_resources", {"count": 2}),
    ]

    result = _simulate(changes, settings, current=[_bottleneck("resource", "Overall capacity")])

    assert result.capacity_impact.total_capacity_change == pytest.approx(1280.0)
    assert result.capacity_impact.new_overall_utilization == pytest.approx(79.76)
    assert result.bottleneck_analysis.new_bottlenecks == []
    assert [item.affected_resource for item in result.bottleneck_analysis.resolved_bottlenecks] == [
        "Overall capacity"
    ]
    assert result.bottleneck_analysis.impact_summary == "No significant bottlenecks identified"


def test_overload_recommends_hiring_with_cost(settings):
    result = _simulate(
        [ScenarioChange("add_project", {"team_size": 2, "duration_weeks": 4})],
        settings,
        options=AnalysisOptions(cost_impact=True),
    )

    assert result.capacity_impact.new_overall_utilization == pytest.approx(100.0)
    assert result.risk_assessment.risk_level == "critical"
    assert [item.type for item in result.recommendations] == ["hiring"]
    assert result.estimated_cost == pytest.approx(settings.scenario_hiring_cost)


def test_cost_is_omitted_unless_requested(settings):
    result = _simulate([ScenarioChange("remove_resources", {"count": 1})], settings)

    assert result.capacity_impact.total_capacity_change == pytest.approx(-640.0)
    assert result.estimated_cost is None


def test_change_demand_percentage_of_baseline_pool(settings):
    result = _simulate([ScenarioChange("change_demand", {"percentage": 10})], settings)

    assert result.capacity_impact.total_demand_change == pytest.approx(200.0)
    assert result.capacity_impact.new_overall_utilization == pytest.approx(80.0)


def test_missing_details_use_defaults_and_warn(settings):
    changes = [
        ScenarioChange("add_project", {}),
        ScenarioChange("add_resources", {}),
        ScenarioChange("change_demand", {}),
        ScenarioChange("merge_teams", {"count": 3}),
    ]

    result = _simulate(changes, settings)

    assert result.capacity_impact.total_demand_change == pytest.approx(1280.0)
    assert result.capacity_impact.total_capacity_change == pytest.approx(640.0)
    assert len(result.warnings) == 4
    assert "merge_teams" in result.warnings[3]


@pytest.mark.parametrize(
    "details",
    [{"count": -1}, {"count": "several"}, {"count": True}, {"count": float("nan")}],
)
def test_unusable_details_raise_validation_error(settings, details):
    with pytest.raises(ScenarioValidationError):
        _simulate([ScenarioChange("add_resources", details)], settings)


def test_department_changes_are_attributed(settings):
    changes = [
        ScenarioChange("add_resources", {"count": 1, "department": "Engineering"}),
        ScenarioChange("add_project", {"team_size": 1, "duration_weeks": 1, "department": "Engineering"}),
        ScenarioChange("add_project", {"team_size": 1, "duration_weeks": 1, "department": "Design"}),
    ]

    result = _simulate(changes, settings, current=[_bottleneck("department", "Engineering")])
    impacts = {row.department: row for row in result.capacity_impact.department_impacts}

    assert set(impacts) == {"Design", "Engineering"}
    assert impacts["Engineering"].capacity_change == pytest.approx(640.0)
    assert impacts["Engineering"].demand_change == pytest.approx(160.0)
    assert impacts["Engineering"].new_utilization == pytest.approx(87.14)
    # Unknown department falls back to the overall baseline and global pool
    assert impacts["Design"].baseline_utilization == pytest.approx(70.0)
    assert impacts["Design"].new_utilization == pytest.approx(78.0)
    assert [item.affected_resource for item in result.bottleneck_analysis.resolved_bottlenecks] == [
        "Engineering"
    ]


def test_simulation_is_deterministic(settings):
    changes = [
        ScenarioChange("add_project", {"team_size": 3, "duration_weeks": 1}),
        ScenarioChange("add_resources", {"count": 1}),
    ]

    first = _simulate(changes, settings)
    second = _simulate(changes, settings)

    assert first == second


def test_utilization_projection_is_clamped():
    assert project_utilization(90.0, 5000.0, 0.0, 2000.0) == pytest.approx(100.0)
    assert project_utilization(10.0, -5000.0, 0.0, 2000.0) == pytest.approx(0.0)


def test_risk_levels_follow_thresholds(settings):
    config = ScenarioConfig.from_settings(settings)

    assert assess_scenario_risk(96.0, config).risk_level == "critical"
    assert assess_scenario_risk(90.0, config).risk_level == "high"
    assert assess_scenario_risk(50.0, config).risk_level == "medium"
    assert assess_scenario_risk(50.0, config).risks[0].probability == pytest.approx(0.5)


def test_service_reads_fresh_baseline_and_leaves_store_untouched(gateway, settings):
    gateway.allocations = [
        AllocationRecord(1, 1, 30.0, 40.0, ("Python",), ("Python",), "Engineering"),
        AllocationRecord(2, 1, 26.0, 40.0, ("Python",), ("Python",), "Engineering"),
    ]
    gateway.bottlenecks = [make_bottleneck(1, 80.0, bottleneck_type="resource", resource="Overall capacity")]
    allocations_before = list(gateway.allocations)
    bottlenecks_before = list(gateway.bottlenecks)
    service = ScenarioService(gateway=gateway, settings=settings)

    result = asyncio.run(
        service.run_scenario_analysis([ScenarioChange("add_resources", {"count": 1})])
    )

    assert result.capacity_impact.baseline_utilization == pytest.approx(70.0)
    assert len(result.scenario_id) == 32
    assert [item.affected_resource for item in result.bottleneck_analysis.resolved_bottlenecks] == [
        "Overall capacity"
    ]
    assert gateway.allocations == allocations_before
    assert gateway.bottlenecks == bottlenecks_before
