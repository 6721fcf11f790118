"""Typed read contract between the analytics services and a data store.

Services only ever see the records defined here. Any store that offers these
methods (the bundled SQLite repository, an in-memory fake, a remote client)
can be injected into a service constructor.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Optional, Protocol, Sequence

from capacity_engine.domain.errors import CapacityAnalyticsError
from capacity_engine.domain.periods import DateRange


class GatewayError(CapacityAnalyticsError):
    """Raised when the underlying store cannot answer a query."""


@dataclass(frozen=True)
class CapacitySnapshotRecord:
    """Aggregated utilization for one calendar bucket."""

    period: str
    month: int
    avg_utilization: float
    avg_capacity: float
    avg_demand: float


@dataclass(frozen=True)
class BottleneckFilter:
    statuses: tuple[str, ...] = ()
    severity: Optional[str] = None
    identified_since: Optional[date] = None
    resolved_since: Optional[date] = None
    limit: Optional[int] = None


@dataclass(frozen=True)
class BottleneckRecord:
    bottleneck_id: int
    bottleneck_type: str
    affected_resource: str
    severity: str
    impact_score: float
    estimated_duration_days: int
    affected_projects: tuple[int, ...]
    root_causes: tuple[str, ...]
    resolution_actions: tuple[str, ...]
    status: str
    identified_date: date
    resolution_date: Optional[date] = None


@dataclass(frozen=True)
class SkillSupplyRecord:
    skill: str
    category: str
    current_supply: int
    avg_proficiency: float


@dataclass(frozen=True)
class SkillDemandRecord:
    skill: str
    projects_requiring: int
    total_demand: int


@dataclass(frozen=True)
class AllocationFilter:
    department: Optional[str] = None
    active_only: bool = True


@dataclass(frozen=True)
class AllocationRecord:
    """One employee-to-project allocation expressed in weekly hours."""

    employee_id: int
    project_id: int
    allocated_hours: float
    default_hours: float
    employee_skills: tuple[str, ...] = ()
    required_skills: tuple[str, ...] = ()
    department: Optional[str] = None


@dataclass(frozen=True)
class EmployeeSkillRecord:
    employee_id: int
    skill: str
    category: str
    proficiency: int
    default_hours: float


@dataclass(frozen=True)
class SkillUsageRecord:
    """Number of allocations requiring ``skill`` during ``period``."""

    skill: str
    period: str
    allocation_count: int


class CapacityDataGateway(Protocol):
    def fetch_capacity_snapshots(
        self,
        date_range: DateRange,
        granularity: str = "monthly",
    ) -> Sequence[CapacitySnapshotRecord]:
        ...

    def fetch_bottlenecks(
        self,
        bottleneck_filter: BottleneckFilter,
    ) -> Sequence[BottleneckRecord]:
        ...

    def fetch_skill_supply(self) -> Sequence[SkillSupplyRecord]:
        ...

    def fetch_skill_demand(self) -> Sequence[SkillDemandRecord]:
        ...

    def fetch_allocation_records(
        self,
        date_range: DateRange,
        allocation_filter: Optional[AllocationFilter] = None,
    ) -> Sequence[AllocationRecord]:
        ...

    def fetch_skill_usage_history(
        self,
        date_range: DateRange,
    ) -> Sequence[SkillUsageRecord]:
        ...

    def fetch_employee_skills(self) -> Sequence[EmployeeSkillRecord]:
        ...
