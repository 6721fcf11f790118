"""Seasonality, anomaly and peak/low period detection over utilization history."""

from __future__ import annotations

import asyncio
import logging
from datetime import date, datetime, timezone
from typing import Optional, Sequence

import numpy as np
import pandas as pd

from capacity_engine.domain.constraints import safe_ratio
from capacity_engine.domain.errors import AnalyticsValidationError
from capacity_engine.domain.models import (
    MonthlyAverage,
    PatternAnalysis,
    PeriodUtilization,
    SeasonalityResult,
    UtilizationAnomaly,
    UtilizationPatterns,
    UtilizationTrend,
)
from capacity_engine.domain.periods import (
    GRANULARITIES,
    month_name,
    timeframe_months,
    trailing_months,
)
from capacity_engine.repository.data_repository import DataRepository
from capacity_engine.repository.gateway import CapacityDataGateway, CapacitySnapshotRecord
from capacity_engine.services.trend_service import classify_trend, estimate_trend
from capacity_engine.utils.config import Settings, get_settings
from capacity_engine.utils.logger import get_logger, log_event


logger = get_logger(__name__)

DEFAULT_PATTERN_PERIOD = "last_year"


def _ordered(snapshots: Sequence[CapacitySnapshotRecord]) -> list[CapacitySnapshotRecord]:
    return sorted(snapshots, key=lambda record: record.period)


def monthly_averages(snapshots: Sequence[CapacitySnapshotRecord]) -> list[MonthlyAverage]:
    """Average utilization per calendar month, over the months actually observed."""
    if not snapshots:
        return []
    frame = pd.DataFrame(
        {
            "month": [record.month for record in snapshots],
            "utilization": [record.avg_utilization for record in snapshots],
        }
    )
    grouped = frame.groupby("month", sort=True)["utilization"].mean()
    return [
        MonthlyAverage(month=int(month), month_name=month_name(int(month)), average=float(value))
        for month, value in grouped.items()
    ]


def detect_seasonality(
    snapshots: Sequence[CapacitySnapshotRecord],
    settings: Settings,
) -> SeasonalityResult:
    averages = monthly_averages(snapshots)
    if not averages:
        return SeasonalityResult(
            has_seasonality=False,
            peak_months=[],
            low_months=[],
            seasonality_strength=0.0,
            monthly_averages=[],
        )

    values = np.array([item.average for item in averages], dtype=float)
    overall = float(values.mean())
    variance = float(values.var())
    strength = safe_ratio(float(np.sqrt(variance)), overall)

    peak_months = [
        item.month_name for item in averages if item.average > overall * settings.seasonality_peak_ratio
    ]
    low_months = [
        item.month_name for item in averages if item.average < overall * settings.seasonality_low_ratio
    ]
    has_seasonality = len(averages) >= 2 and variance > overall * settings.seasonality_variance_ratio
    return SeasonalityResult(
        has_seasonality=bool(has_seasonality),
        peak_months=peak_months,
        low_months=low_months,
        seasonality_strength=round(strength, 4),
        monthly_averages=averages,
    )


def detect_anomalies(
    snapshots: Sequence[CapacitySnapshotRecord],
    settings: Settings,
) -> list[UtilizationAnomaly]:
    """Flag periods deviating from the series mean by more than the anomaly ratio."""
    if not snapshots:
        return []
    ordered = _ordered(snapshots)
    expected = float(np.mean([record.avg_utilization for record in ordered]))
    tolerance = expected * settings.anomaly_deviation_ratio
    anomalies = []
    for record in ordered:
        deviation = abs(record.avg_utilization - expected)
        if deviation > tolerance:
            anomalies.append(
                UtilizationAnomaly(
                    period=record.period,
                    actual_utilization=round(record.avg_utilization, 2),
                    expected_utilization=round(expected, 2),
                    deviation=round(deviation, 2),
                    possible_causes=list(settings.anomaly_causes),
                )
            )
    return anomalies


def identify_patterns(
    snapshots: Sequence[CapacitySnapshotRecord],
    settings: Settings,
) -> UtilizationPatterns:
    if not snapshots:
        return UtilizationPatterns(peak_periods=[], low_periods=[], average_utilization=0.0)
    ordered = _ordered(snapshots)
    average = float(np.mean([record.avg_utilization for record in ordered]))
    band = average * settings.pattern_band_ratio
    return UtilizationPatterns(
        peak_periods=[
            PeriodUtilization(period=record.period, utilization_rate=round(record.avg_utilization, 2))
            for record in ordered
            if record.avg_utilization > average + band
        ],
        low_periods=[
            PeriodUtilization(period=record.period, utilization_rate=round(record.avg_utilization, 2))
            for record in ordered
            if record.avg_utilization < average - band
        ],
        average_utilization=round(average, 2),
    )


def utilization_trend(
    snapshots: Sequence[CapacitySnapshotRecord],
    settings: Settings,
) -> UtilizationTrend:
    estimate = estimate_trend([record.avg_utilization for record in _ordered(snapshots)])
    return UtilizationTrend(
        direction=classify_trend(estimate.slope, settings.trend_stable_threshold),
        slope=round(estimate.slope, 4),
        rate=round(abs(estimate.slope), 4),
        r_squared=round(estimate.r_squared, 4),
        periods=estimate.periods,
    )


class PatternAnalysisService:
    """Analyzes historical utilization for recurring and exceptional periods."""

    def __init__(
        self,
        gateway: Optional[CapacityDataGateway] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._gateway = gateway or DataRepository(self._settings)

    async def analyze_utilization_patterns(
        self,
        period: Optional[str] = None,
        granularity: str = "monthly",
        today: Optional[date] = None,
    ) -> PatternAnalysis:
        if granularity not in GRANULARITIES:
            raise AnalyticsValidationError(
                f"Unknown granularity '{granularity}'. Expected one of {list(GRANULARITIES)}"
            )
        resolved_period = period or DEFAULT_PATTERN_PERIOD
        months = timeframe_months(resolved_period)
        reference_day = today or datetime.now(timezone.utc).date()

        snapshots = await asyncio.to_thread(
            self._gateway.fetch_capacity_snapshots,
            trailing_months(reference_day, months),
            granularity,
        )
        if not snapshots:
            log_event(
                logger,
                "Pattern analysis has no history",
                level=logging.WARNING,
                period=resolved_period,
                granularity=granularity,
            )

        analysis = PatternAnalysis(
            period=resolved_period,
            granularity=granularity,
            patterns=identify_patterns(snapshots, self._settings),
            seasonality=detect_seasonality(snapshots, self._settings),
            trends=utilization_trend(snapshots, self._settings),
            anomalies=detect_anomalies(snapshots, self._settings),
            insufficient_data=not snapshots,
        )
        log_event(
            logger,
            "Utilization patterns analyzed",
            period=resolved_period,
            periods=len(snapshots),
            seasonal=analysis.seasonality.has_seasonality,
            anomalies=len(analysis.anomalies),
        )
        return analysis
