"""Current utilization overall, per department and per skill."""

from __future__ import annotations

import asyncio
import logging
from datetime import date, datetime, timezone
from typing import Optional, Sequence

import pandas as pd

from capacity_engine.domain.constraints import clamp_percent, safe_ratio
from capacity_engine.domain.models import (
    DepartmentUtilization,
    SkillUtilization,
    UtilizationSnapshot,
)
from capacity_engine.domain.periods import month_label, trailing_days
from capacity_engine.repository.data_repository import DataRepository
from capacity_engine.repository.gateway import (
    AllocationFilter,
    AllocationRecord,
    CapacityDataGateway,
)
from capacity_engine.utils.config import Settings, get_settings
from capacity_engine.utils.logger import get_logger, log_event


logger = get_logger(__name__)

UNASSIGNED_DEPARTMENT = "Unassigned"


def _employee_frame(records: Sequence[AllocationRecord]) -> pd.DataFrame:
    """Collapse allocation rows to one row per employee.

    Capacity is the employee's weekly default hours counted once; allocated is
    the sum of that employee's allocations in the window.
    """
    frame = pd.DataFrame(
        {
            "employee_id": [record.employee_id for record in records],
            "allocated_hours": [record.allocated_hours for record in records],
            "default_hours": [record.default_hours for record in records],
            "department": [record.department or UNASSIGNED_DEPARTMENT for record in records],
            "skills": [tuple(record.employee_skills) for record in records],
        }
    )
    return frame.groupby("employee_id", sort=True).agg(
        allocated=("allocated_hours", "sum"),
        capacity=("default_hours", "max"),
        department=("department", "first"),
        skills=("skills", "first"),
    )


def build_utilization_snapshot(
    records: Sequence[AllocationRecord],
    period: str,
    fallback_percent: float,
) -> UtilizationSnapshot:
    if not records:
        return UtilizationSnapshot(
            period=period,
            overall=clamp_percent(fallback_percent),
            by_department=[],
            by_skill=[],
            is_fallback=True,
        )

    employees = _employee_frame(records)
    overall = clamp_percent(
        100.0 * safe_ratio(float(employees["allocated"].sum()), float(employees["capacity"].sum()))
    )

    departments = employees.groupby("department", sort=True).agg(
        available=("capacity", "sum"),
        committed=("allocated", "sum"),
    )
    by_department = [
        DepartmentUtilization(
            department=str(name),
            utilization=round(clamp_percent(100.0 * safe_ratio(row.committed, row.available)), 2),
            available=round(float(row.available), 2),
            committed=round(float(row.committed), 2),
        )
        for name, row in departments.iterrows()
    ]

    holders = employees.explode("skills").dropna(subset=["skills"])
    by_skill: list[SkillUtilization] = []
    if not holders.empty:
        holders = holders.assign(has_headroom=holders["allocated"] < holders["capacity"])
        skills = holders.groupby("skills", sort=True).agg(
            allocated=("allocated", "sum"),
            capacity=("capacity", "sum"),
            available_resources=("has_headroom", "sum"),
        )
        by_skill = [
            SkillUtilization(
                skill=str(name),
                utilization=round(clamp_percent(100.0 * safe_ratio(row.allocated, row.capacity)), 2),
                available_resources=int(row.available_resources),
            )
            for name, row in skills.iterrows()
        ]

    return UtilizationSnapshot(
        period=period,
        overall=round(overall, 2),
        by_department=by_department,
        by_skill=by_skill,
    )


class UtilizationService:
    """Computes utilization snapshots from allocation rows."""

    def __init__(
        self,
        gateway: Optional[CapacityDataGateway] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._gateway = gateway or DataRepository(self._settings)

    async def get_current_utilization(
        self,
        department: Optional[str] = None,
        window_days: Optional[int] = None,
        today: Optional[date] = None,
    ) -> UtilizationSnapshot:
        reference_day = today or datetime.now(timezone.utc).date()
        window = trailing_days(reference_day, window_days or self._settings.utilization_window_days)
        records = await asyncio.to_thread(
            self._gateway.fetch_allocation_records,
            window,
            AllocationFilter(department=department),
        )
        snapshot = build_utilization_snapshot(
            records,
            period=month_label(reference_day),
            fallback_percent=self._settings.utilization_fallback_percent,
        )
        if snapshot.is_fallback:
            log_event(
                logger,
                "Utilization fallback used",
                level=logging.WARNING,
                department=department,
                overall=snapshot.overall,
            )
        else:
            log_event(
                logger,
                "Utilization computed",
                department=department,
                records=len(records),
                overall=snapshot.overall,
            )
        return snapshot
