from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime, timezone

import pytest

from capacity_engine.domain.periods import DateRange, trailing_months
from capacity_engine.repository.data_repository import DataRepository
from capacity_engine.repository.gateway import AllocationFilter, BottleneckFilter, GatewayError
from capacity_engine.utils.config import get_settings


def _build_test_settings(tmp_path, filename: str):
    get_settings.cache_clear()
    return replace(get_settings(), database_path=tmp_path / filename)


def _empty_repository(tmp_path, filename: str = "repository.db") -> DataRepository:
    repository = DataRepository(_build_test_settings(tmp_path, filename))
    repository.initialize_database()
    return repository


def _populate(repository: DataRepository) -> dict[str, int]:
    engineering = repository.create_department("Engineering")
    data = repository.create_department("Data")
    python = repository.create_skill("Python")
    react = repository.create_skill("React")
    leadership = repository.create_skill("Leadership", category="soft")

    alice = repository.create_employee("Alice", "Lee", engineering, 40.0)
    bob = repository.create_employee("Bob", "Kim", data, 32.0)
    carol = repository.create_employee("Carol", "Silva", engineering, 40.0, is_active=False)
    repository.add_employee_skill(alice, python, 4)
    repository.add_employee_skill(alice, leadership, 3)
    repository.add_employee_skill(bob, python, 2)
    repository.add_employee_skill(carol, react, 5)

    platform = repository.create_project("Platform", "active")
    pilot = repository.create_project("Pilot", "planning")
    legacy = repository.create_project("Legacy", "completed")
    repository.add_project_requirement(platform, python, 3)
    repository.add_project_requirement(pilot, react, 2)
    repository.add_project_requirement(legacy, leadership, 4)

    repository.create_allocation(alice, platform, 30.0, "2026-03-10", None)
    repository.create_allocation(bob, platform, 16.0, "2026-05-20", "2026-06-30")
    repository.create_allocation(bob, pilot, 8.0, "2025-01-01", "2025-02-01")
    repository.create_allocation(carol, pilot, 20.0, "2026-05-01", None)
    return {"alice": alice, "bob": bob, "platform": platform, "pilot": pilot}


def test_seed_is_idempotent(tmp_path):
    repository = DataRepository(_build_test_settings(tmp_path, "seed.db"))
    repository.initialize_database()
    repository.seed_synthetic_data()
    counts = {
        table: repository.count_rows(table)
        for table in ("departments", "employees", "skills", "projects", "capacity_snapshots", "capacity_bottlenecks")
    }

    repository.initialize_database()
    repository.seed_synthetic_data()

    assert counts["employees"] == 24
    assert counts["capacity_snapshots"] == 12
    assert counts["capacity_bottlenecks"] == 5
    assert {table: repository.count_rows(table) for table in counts} == counts


def test_seed_is_deterministic(tmp_path):
    first = DataRepository(_build_test_settings(tmp_path, "first.db"))
    second = DataRepository(_build_test_settings(tmp_path, "second.db"))
    for repository in (first, second):
        repository.initialize_database()
        repository.seed_synthetic_data()

    assert first.fetch_skill_demand() == second.fetch_skill_demand()
    assert first.fetch_employee_skills() == second.fetch_employee_skills()


def test_seeded_history_supports_monthly_snapshots(tmp_path):
    repository = DataRepository(_build_test_settings(tmp_path, "history.db"))
    repository.initialize_database()
    repository.seed_synthetic_data()
    today = datetime.now(timezone.utc).date()

    snapshots = repository.fetch_capacity_snapshots(trailing_months(today, 12))

    assert len(snapshots) == 12
    assert [item.period for item in snapshots] == sorted(item.period for item in snapshots)
    for item in snapshots:
        assert 0.0 < item.avg_utilization < 100.0
        assert item.avg_demand < item.avg_capacity


def test_allocation_records_respect_window_department_and_activity(tmp_path):
    repository = _empty_repository(tmp_path)
    ids = _populate(repository)
    window = DateRange(date(2026, 6, 1), date(2026, 6, 7))

    records = repository.fetch_allocation_records(window)

    assert [(item.employee_id, item.project_id) for item in records] == [
        (ids["alice"], ids["platform"]),
        (ids["bob"], ids["platform"]),
    ]
    assert records[0].employee_skills == ("Leadership", "Python")
    assert records[0].required_skills == ("Python",)
    assert records[0].department == "Engineering"
    data_only = repository.fetch_allocation_records(window, AllocationFilter(department="Data"))
    assert [item.employee_id for item in data_only] == [ids["bob"]]


def test_skill_supply_counts_active_holders_and_demand_open_projects(tmp_path):
    repository = _empty_repository(tmp_path)
    _populate(repository)

    supply = {item.skill: item for item in repository.fetch_skill_supply()}
    demand = {item.skill: item for item in repository.fetch_skill_demand()}

    assert supply["Python"].current_supply == 2
    assert supply["Python"].avg_proficiency == pytest.approx(3.0)
    assert supply["React"].current_supply == 0
    assert supply["Leadership"].category == "soft"
    assert set(demand) == {"Python", "React"}
    assert demand["Python"].total_demand == 3


def test_skill_usage_expands_allocations_per_month(tmp_path):
    repository = _empty_repository(tmp_path)
    _populate(repository)

    usage = repository.fetch_skill_usage_history(DateRange(date(2026, 4, 1), date(2026, 6, 15)))
    python = {item.period: item.allocation_count for item in usage if item.skill == "Python"}

    assert python == {"2026-04": 1, "2026-05": 2, "2026-06": 2}


def test_snapshots_aggregate_by_week_and_skip_department_rows(tmp_path):
    repository = _empty_repository(tmp_path)
    department = repository.create_department("Engineering")
    repository.create_snapshot("2026-03-09", 60.0, 1000.0, 600.0)
    repository.create_snapshot("2026-03-11", 80.0, 1000.0, 800.0)
    repository.create_snapshot("2026-03-16", 70.0, 1000.0, 700.0)
    repository.create_snapshot("2026-03-10", 99.0, 500.0, 495.0, department_id=department)
    window = DateRange(date(2026, 3, 1), date(2026, 3, 31))

    weekly = repository.fetch_capacity_snapshots(window, "weekly")
    monthly = repository.fetch_capacity_snapshots(window, "monthly")

    assert [(item.period, item.avg_utilization) for item in weekly] == [("2026-W11", 70.0), ("2026-W12", 70.0)]
    assert len(monthly) == 1
    assert monthly[0].month == 3
    assert monthly[0].avg_demand == pytest.approx(700.0)


def test_bottleneck_filters_order_and_limit(tmp_path):
    repository = _empty_repository(tmp_path)
    repository.create_bottleneck("skill", "Python", "medium", 50.0, "2026-06-01")
    repository.create_bottleneck("department", "Data", "high", 80.0, "2026-06-10", 14)
    repository.create_bottleneck("resource", "Overall capacity", "low", 20.0, "2026-01-01", status="resolved", resolution_date="2026-03-01")
    repository.create_bottleneck("time", "Quarter end", "low", 25.0, "2026-01-01", status="mitigated", resolution_date="2026-05-01")

    active = repository.fetch_bottlenecks(BottleneckFilter(statuses=("active",)))
    recent = repository.fetch_bottlenecks(BottleneckFilter(statuses=("active",), identified_since=date(2026, 6, 5)))
    closed = repository.fetch_bottlenecks(
        BottleneckFilter(statuses=("resolved", "mitigated"), resolved_since=date(2026, 1, 1), limit=1)
    )

    assert [item.affected_resource for item in active] == ["Data", "Python"]
    assert [item.affected_resource for item in recent] == ["Data"]
    assert [item.affected_resource for item in closed] == ["Quarter end"]
    assert closed[0].resolution_date == date(2026, 5, 1)
    assert active[0].estimated_duration_days == 14


def test_query_failures_surface_as_gateway_error(tmp_path):
    repository = DataRepository(_build_test_settings(tmp_path, "uninitialized.db"))

    with pytest.raises(GatewayError):
        repository.fetch_skill_supply()


def test_count_rows_rejects_unknown_table(tmp_path):
    repository = _empty_repository(tmp_path)

    with pytest.raises(ValueError):
        repository.count_rows("sqlite_master")
