"""Bottleneck classification into current, predicted and historical buckets."""

from __future__ import annotations

import asyncio
import logging
from datetime import date, datetime, timedelta, timezone
from typing import Iterable, Optional, Sequence

from capacity_engine.domain.constraints import SEVERITY_LEVELS, clamp_percent, severity_for_impact
from capacity_engine.domain.errors import AnalyticsValidationError
from capacity_engine.domain.models import Bottleneck, BottleneckReport
from capacity_engine.domain.periods import trailing_months
from capacity_engine.repository.data_repository import DataRepository
from capacity_engine.repository.gateway import (
    BottleneckFilter,
    BottleneckRecord,
    CapacityDataGateway,
)
from capacity_engine.utils.config import Settings, get_settings
from capacity_engine.utils.logger import get_logger, log_event


logger = get_logger(__name__)

_STATUS_MAP = {
    "active": "active",
    "mitigated": "resolved",
    "resolved": "resolved",
}


def map_bottleneck(record: BottleneckRecord, status: Optional[str] = None) -> Bottleneck:
    """Translate a stored row, re-deriving severity from the impact score."""
    impact = clamp_percent(record.impact_score)
    severity = severity_for_impact(impact)
    if severity != record.severity:
        log_event(
            logger,
            "Stored bottleneck severity re-banded",
            level=logging.DEBUG,
            bottleneck_id=record.bottleneck_id,
            stored=record.severity,
            banded=severity,
        )
    return Bottleneck(
        type=record.bottleneck_type,
        affected_resource=record.affected_resource,
        severity=severity,
        impact=impact,
        affected_projects=list(record.affected_projects),
        estimated_duration=int(record.estimated_duration_days),
        root_causes=list(record.root_causes),
        recommended_actions=list(record.resolution_actions),
        status=status or _STATUS_MAP.get(record.status, "active"),
        bottleneck_id=record.bottleneck_id,
    )


def summarize_bottlenecks(bottlenecks: Sequence[Bottleneck]) -> str:
    if not bottlenecks:
        return "No significant bottlenecks identified"
    critical = sum(1 for item in bottlenecks if item.severity == "critical")
    high = sum(1 for item in bottlenecks if item.severity == "high")
    return (
        f"{len(bottlenecks)} bottlenecks identified "
        f"({critical} critical, {high} high severity)"
    )


def _by_impact(bottlenecks: Iterable[Bottleneck]) -> list[Bottleneck]:
    return sorted(
        bottlenecks,
        key=lambda item: (-item.impact, item.bottleneck_id if item.bottleneck_id is not None else 0),
    )


def _filter_severity(bottlenecks: list[Bottleneck], severity: Optional[str]) -> list[Bottleneck]:
    if severity is None:
        return bottlenecks
    return [item for item in bottlenecks if item.severity == severity]


class BottleneckService:
    """Reads bottleneck history and classifies it for reporting."""

    def __init__(
        self,
        gateway: Optional[CapacityDataGateway] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._gateway = gateway or DataRepository(self._settings)

    async def get_current_bottlenecks(self) -> list[Bottleneck]:
        records = await asyncio.to_thread(
            self._gateway.fetch_bottlenecks,
            BottleneckFilter(statuses=("active",)),
        )
        return _by_impact(map_bottleneck(record) for record in records)

    async def identify_bottlenecks(
        self,
        severity: Optional[str] = None,
        today: Optional[date] = None,
    ) -> BottleneckReport:
        if severity is not None and severity not in SEVERITY_LEVELS:
            raise AnalyticsValidationError(
                f"Unknown severity '{severity}'. Expected one of {list(SEVERITY_LEVELS)}"
            )
        reference_day = today or datetime.now(timezone.utc).date()
        recent_since = reference_day - timedelta(days=self._settings.bottleneck_recent_days)
        history_window = trailing_months(reference_day, self._settings.bottleneck_history_months)

        active_rows, recent_rows, resolved_rows = await asyncio.gather(
            asyncio.to_thread(
                self._gateway.fetch_bottlenecks,
                BottleneckFilter(statuses=("active",)),
            ),
            asyncio.to_thread(
                self._gateway.fetch_bottlenecks,
                BottleneckFilter(statuses=("active",), identified_since=recent_since),
            ),
            asyncio.to_thread(
                self._gateway.fetch_bottlenecks,
                BottleneckFilter(
                    statuses=("resolved", "mitigated"),
                    resolved_since=history_window.start,
                ),
            ),
        )

        current = _by_impact(map_bottleneck(record) for record in active_rows)

        predicted_by_id: dict[int, Bottleneck] = {}
        long_running = [
            record
            for record in active_rows
            if record.estimated_duration_days > self._settings.bottleneck_long_duration_days
        ]
        for record in list(recent_rows) + long_running:
            predicted_by_id.setdefault(record.bottleneck_id, map_bottleneck(record, status="predicted"))
        predicted = _by_impact(predicted_by_id.values())

        most_recent_first = sorted(
            resolved_rows,
            key=lambda record: record.resolution_date or date.min,
            reverse=True,
        )
        # The history cap applies after banding so a severity filter sees the whole window.
        historical = _filter_severity(
            [map_bottleneck(record, status="resolved") for record in most_recent_first],
            severity,
        )[: self._settings.bottleneck_history_limit]

        report = BottleneckReport(
            current=_filter_severity(current, severity),
            predicted=_filter_severity(predicted, severity),
            historical=historical,
        )
        log_event(
            logger,
            "Bottlenecks identified",
            severity=severity,
            current=len(report.current),
            predicted=len(report.predicted),
            historical=len(report.historical),
        )
        return report
