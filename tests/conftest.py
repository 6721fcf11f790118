from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date

import pytest

from capacity_engine.domain.periods import DateRange
from capacity_engine.repository.gateway import (
    AllocationFilter,
    AllocationRecord,
    BottleneckFilter,
    BottleneckRecord,
    CapacitySnapshotRecord,
    EmployeeSkillRecord,
    GatewayError,
    SkillDemandRecord,
    SkillSupplyRecord,
    SkillUsageRecord,
)
from capacity_engine.utils.config import get_settings


TODAY = date(2026, 6, 15)


@dataclass
class InMemoryGateway:
    """Gateway fake returning canned records; filters mimic the SQLite repository."""

    snapshots: list[CapacitySnapshotRecord] = field(default_factory=list)
    bottlenecks: list[BottleneckRecord] = field(default_factory=list)
    skill_supply: list[SkillSupplyRecord] = field(default_factory=list)
    skill_demand: list[SkillDemandRecord] = field(default_factory=list)
    allocations: list[AllocationRecord] = field(default_factory=list)
    skill_usage: list[SkillUsageRecord] = field(default_factory=list)
    employee_skills: list[EmployeeSkillRecord] = field(default_factory=list)
    calls: list[str] = field(default_factory=list)

    def fetch_capacity_snapshots(self, date_range: DateRange, granularity: str = "monthly"):
        self.calls.append("snapshots")
        return list(self.snapshots)

    def fetch_bottlenecks(self, bottleneck_filter: BottleneckFilter):
        self.calls.append("bottlenecks")
        rows = [
            record
            for record in self.bottlenecks
            if not bottleneck_filter.statuses or record.status in bottleneck_filter.statuses
        ]
        if bottleneck_filter.identified_since is not None:
            rows = [row for row in rows if row.identified_date >= bottleneck_filter.identified_since]
        if bottleneck_filter.resolved_since is not None:
            rows = [
                row
                for row in rows
                if row.resolution_date is not None
                and row.resolution_date >= bottleneck_filter.resolved_since
            ]
        if bottleneck_filter.limit is not None:
            rows = rows[: bottleneck_filter.limit]
        return rows

    def fetch_skill_supply(self):
        self.calls.append("skill_supply")
        return list(self.skill_supply)

    def fetch_skill_demand(self):
        self.calls.append("skill_demand")
        return list(self.skill_demand)

    def fetch_allocation_records(self, date_range: DateRange, allocation_filter: AllocationFilter | None = None):
        self.calls.append("allocations")
        department = allocation_filter.department if allocation_filter else None
        return [
            record
            for record in self.allocations
            if department is None or record.department == department
        ]

    def fetch_skill_usage_history(self, date_range: DateRange):
        self.calls.append("skill_usage")
        return list(self.skill_usage)

    def fetch_employee_skills(self):
        self.calls.append("employee_skills")
        return list(self.employee_skills)


class FailingGateway(InMemoryGateway):
    """Raises GatewayError for the named reads and delegates the rest."""

    def __init__(self, failing: set[str], **records) -> None:
        super().__init__(**records)
        self._failing = failing

    def _guard(self, name: str) -> None:
        if name in self._failing:
            raise GatewayError(f"{name} store unavailable")

    def fetch_capacity_snapshots(self, date_range, granularity="monthly"):
        self._guard("snapshots")
        return super().fetch_capacity_snapshots(date_range, granularity)

    def fetch_bottlenecks(self, bottleneck_filter):
        self._guard("bottlenecks")
        return super().fetch_bottlenecks(bottleneck_filter)

    def fetch_skill_supply(self):
        self._guard("skill_supply")
        return super().fetch_skill_supply()

    def fetch_skill_demand(self):
        self._guard("skill_demand")
        return super().fetch_skill_demand()

    def fetch_allocation_records(self, date_range, allocation_filter=None):
        self._guard("allocations")
        return super().fetch_allocation_records(date_range, allocation_filter)

    def fetch_skill_usage_history(self, date_range):
        self._guard("skill_usage")
        return super().fetch_skill_usage_history(date_range)

    def fetch_employee_skills(self):
        self._guard("employee_skills")
        return super().fetch_employee_skills()


def make_snapshots(utilizations: list[float], start_year: int = 2025, start_month: int = 1):
    records = []
    for index, utilization in enumerate(utilizations):
        month_index = start_month - 1 + index
        year = start_year + month_index // 12
        month = month_index % 12 + 1
        capacity = 3600.0
        records.append(
            CapacitySnapshotRecord(
                period=f"{year}-{month:02d}",
                month=month,
                avg_utilization=float(utilization),
                avg_capacity=capacity,
                avg_demand=capacity * utilization / 100.0,
            )
        )
    return records


def make_bottleneck(
    bottleneck_id: int,
    impact: float,
    status: str = "active",
    bottleneck_type: str = "skill",
    resource: str = "Python",
    duration: int = 3,
    identified: date = date(2026, 1, 1),
    resolved: date | None = None,
    severity: str = "low",
) -> BottleneckRecord:
    return BottleneckRecord(
        bottleneck_id=bottleneck_id,
        bottleneck_type=bottleneck_type,
        affected_resource=resource,
        severity=severity,
        impact_score=impact,
        estimated_duration_days=duration,
        affected_projects=(1, 2),
        root_causes=("Demand growth outpacing hiring",),
        resolution_actions=("Rebalance allocations",),
        status=status,
        identified_date=identified,
        resolution_date=resolved,
    )


@pytest.fixture
def settings(tmp_path):
    get_settings.cache_clear()
    return replace(get_settings(), database_path=tmp_path / "capacity_test.db")


@pytest.fixture
def gateway() -> InMemoryGateway:
    return InMemoryGateway()
