from __future__ import annotations

import asyncio

import pytest

from capacity_engine.repository.gateway import AllocationRecord
from capacity_engine.services.optimization_service import (
    OptimizationService,
    assess_optimization_risks,
    evaluate_allocation,
    optimize_allocations,
    skill_match_score,
)


def test_over_allocation_suggests_reducing_hours(settings):
    suggestions = evaluate_allocation(AllocationRecord(1, 10, 50.0, 40.0), settings)

    assert len(suggestions) == 1
    suggestion = suggestions[0]
    assert suggestion.type == "capacity_adjustment"
    assert suggestion.adjustment == pytest.approx(-10.0)
    assert suggestion.risk_level == "medium"
    assert suggestion.expected_improvement == pytest.approx(25.0)
    assert suggestion.confidence == pytest.approx(0.9)


def test_large_excess_is_high_risk(settings):
    suggestions = evaluate_allocation(AllocationRecord(1, 10, 65.0, 40.0), settings)

    assert suggestions[0].risk_level == "high"


def test_under_allocation_suggests_target_hours(settings):
    suggestions = evaluate_allocation(AllocationRecord(2, 10, 20.0, 40.0), settings)

    assert len(suggestions) == 1
    assert suggestions[0].adjustment == pytest.approx(12.0)
    assert suggestions[0].risk_level == "low"
    assert suggestions[0].expected_improvement == pytest.approx(30.0)


def test_balanced_allocation_needs_nothing(settings):
    assert evaluate_allocation(AllocationRecord(3, 10, 32.0, 40.0), settings) == []


def test_zero_default_hours_uses_standard_week(settings):
    suggestions = evaluate_allocation(AllocationRecord(3, 10, 50.0, 0.0), settings)

    assert suggestions[0].adjustment == pytest.approx(-10.0)


def test_skill_mismatch_suggests_reassignment(settings):
    record = AllocationRecord(4, 11, 32.0, 40.0, ("Python",), ("Python", "Go", "Rust"))

    suggestions = evaluate_allocation(record, settings)

    assert [item.type for item in suggestions] == ["reassignment"]
    assert suggestions[0].adjustment is None
    assert suggestions[0].expected_improvement == pytest.approx(46.67)


def test_missing_skill_lists_skip_reassignment(settings):
    assert evaluate_allocation(AllocationRecord(4, 11, 32.0, 40.0, (), ("Go",)), settings) == []
    assert skill_match_score(["Python"], []) == 1.0


def test_suggestions_are_ranked_and_capped(settings):
    records = [AllocationRecord(employee_id, 20, float(employee_id), 40.0) for employee_id in range(1, 16)]

    result = optimize_allocations(records, settings)

    assert len(result.suggestions) == settings.optimization_max_suggestions
    improvements = [item.expected_improvement for item in result.suggestions]
    assert improvements == sorted(improvements, reverse=True)
    assert result.suggestions[0].employee_id == 1
    assert result.expected_improvement == pytest.approx(sum(improvements) / len(improvements), abs=0.01)


def test_implementation_plan_orders_phases_by_risk(settings):
    records = [
        AllocationRecord(1, 10, 50.0, 40.0),
        AllocationRecord(2, 10, 20.0, 40.0),
    ]

    result = optimize_allocations(records, settings)
    phases = result.implementation.phases

    assert [(phase.phase, phase.name) for phase in phases] == [
        (1, "Low-risk capacity adjustments"),
        (2, "Medium-risk optimizations"),
    ]
    assert all(phase.actions for phase in phases)
    assert result.risk_assessment.overall_risk == "low"


def test_plan_keeps_tier_numbers_when_phases_are_skipped(settings):
    records = [AllocationRecord(1, 10, 65.0, 40.0)]

    phases = optimize_allocations(records, settings).implementation.phases

    assert [(phase.phase, phase.name, phase.duration) for phase in phases] == [
        (3, "High-risk strategic changes", "3-4 weeks"),
    ]


def test_empty_input_gives_empty_plan(settings):
    result = optimize_allocations([], settings)

    assert result.suggestions == []
    assert result.expected_improvement == 0.0
    assert result.implementation.phases == []


def test_many_reassignments_raise_disruption_risk(settings):
    records = [
        AllocationRecord(employee_id, 30, 32.0, 40.0, ("Python",), ("Go", "Rust"))
        for employee_id in range(1, 5)
    ]

    result = optimize_allocations(records, settings)

    assert [risk.type for risk in result.risk_assessment.risks] == ["organizational_disruption"]
    assert result.risk_assessment.overall_risk == "medium"


def test_high_risk_count_drives_overall_risk(settings):
    records = [AllocationRecord(employee_id, 40, 70.0, 40.0) for employee_id in range(1, 4)]

    assessment = assess_optimization_risks(optimize_allocations(records, settings).suggestions)

    assert {risk.type for risk in assessment.risks} == {"delivery_risk", "implementation_difficulty"}
    assert assessment.overall_risk == "high"


def test_service_reads_upcoming_allocations_when_none_posted(gateway, settings):
    gateway.allocations = [AllocationRecord(1, 10, 50.0, 40.0)]
    service = OptimizationService(gateway=gateway, settings=settings)

    result = asyncio.run(service.optimize_allocation(allocations=[]))

    assert "allocations" in gateway.calls
    assert len(result.suggestions) == 1


def test_service_uses_posted_allocations(gateway, settings):
    service = OptimizationService(gateway=gateway, settings=settings)

    result = asyncio.run(service.optimize_allocation(allocations=[AllocationRecord(2, 10, 20.0, 40.0)]))

    assert gateway.calls == []
    assert result.suggestions[0].adjustment == pytest.approx(12.0)
