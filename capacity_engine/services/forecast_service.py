"""Capacity predictions per scenario and demand forecasting with bounds."""

from __future__ import annotations

import asyncio
import logging
from datetime import date, datetime, timezone
from typing import Optional, Sequence

import numpy as np

from capacity_engine.domain.constraints import safe_ratio
from capacity_engine.domain.errors import AnalyticsValidationError, InsufficientDataError
from capacity_engine.domain.models import CapacityPrediction, DemandForecast, DemandForecastPoint
from capacity_engine.domain.periods import horizon_periods, months_ahead, trailing_months
from capacity_engine.repository.data_repository import DataRepository
from capacity_engine.repository.gateway import CapacityDataGateway, CapacitySnapshotRecord
from capacity_engine.services.pattern_service import detect_seasonality
from capacity_engine.services.trend_service import classify_trend, estimate_trend
from capacity_engine.utils.config import Settings, get_settings
from capacity_engine.utils.logger import get_logger, log_event


logger = get_logger(__name__)

SCENARIO_MULTIPLIERS = {
    "optimistic": 0.8,
    "realistic": 1.0,
    "pessimistic": 1.2,
}
PREDICTION_KEY_FACTORS = [
    "Historical utilization trends",
    "Current project pipeline",
    "Seasonal variations",
    "Market demand patterns",
]
DEFAULT_KEY_FACTORS = ["Limited historical data", "Industry trends", "Current pipeline"]


def scenario_multiplier(scenario: str) -> float:
    try:
        return SCENARIO_MULTIPLIERS[scenario]
    except KeyError as exc:
        raise AnalyticsValidationError(
            f"Unknown scenario '{scenario}'. Expected one of {sorted(SCENARIO_MULTIPLIERS)}"
        ) from exc


def generate_default_predictions(
    scenarios: Sequence[str],
    settings: Settings,
    today: date,
) -> list[CapacityPrediction]:
    """One low-confidence placeholder per scenario, tagged as a fallback."""
    capacity = settings.default_prediction_capacity
    demand = settings.default_prediction_demand
    return [
        CapacityPrediction(
            scenario=scenario,
            period=months_ahead(today, 1),
            predicted_capacity=capacity,
            predicted_demand=demand,
            predicted_utilization=round(100.0 * safe_ratio(demand, capacity), 2),
            confidence=settings.default_prediction_confidence,
            key_factors=list(DEFAULT_KEY_FACTORS),
            is_fallback=True,
        )
        for scenario in scenarios
    ]


def project_capacity(
    history: Sequence[CapacitySnapshotRecord],
    scenarios: Sequence[str],
    periods: int,
    today: date,
) -> list[CapacityPrediction]:
    ordered = sorted(history, key=lambda record: record.period)
    capacity_trend = estimate_trend([record.avg_capacity for record in ordered])
    demand_trend = estimate_trend([record.avg_demand for record in ordered])
    last = ordered[-1]

    predictions = []
    for scenario in scenarios:
        multiplier = scenario_multiplier(scenario)
        for step in range(1, periods + 1):
            capacity = last.avg_capacity + capacity_trend.slope * step * multiplier
            demand = last.avg_demand + demand_trend.slope * step * multiplier
            utilization = 100.0 * demand / capacity if capacity > 0 else 0.0
            predictions.append(
                CapacityPrediction(
                    scenario=scenario,
                    period=months_ahead(today, step),
                    predicted_capacity=round(capacity, 2),
                    predicted_demand=round(demand, 2),
                    predicted_utilization=round(utilization, 2),
                    confidence=float(max(50, 90 - step * 5)),
                    key_factors=list(PREDICTION_KEY_FACTORS),
                )
            )
    return predictions


def build_demand_forecast(
    history: Sequence[CapacitySnapshotRecord],
    periods: int,
    settings: Settings,
    today: date,
) -> DemandForecast:
    if len(history) < settings.forecast_min_periods:
        raise InsufficientDataError(settings.forecast_min_periods, len(history))
    if periods <= 0:
        raise AnalyticsValidationError("periods must be > 0")

    ordered = sorted(history, key=lambda record: record.period)
    values = np.array([record.avg_demand for record in ordered], dtype=float)
    trend = estimate_trend(values)
    seasonality = detect_seasonality(ordered, settings)

    seasonal_factors: dict[int, float] = {}
    if seasonality.has_seasonality:
        overall = float(np.mean([item.average for item in seasonality.monthly_averages]))
        seasonal_factors = {
            item.month: safe_ratio(item.average, overall, default=1.0)
            for item in seasonality.monthly_averages
        }

    standard_deviation = float(values.std())
    base = float(values[-1])
    points = []
    for step in range(1, periods + 1):
        label = months_ahead(today, step)
        predicted = base + trend.slope * step
        predicted *= seasonal_factors.get(int(label[5:7]), 1.0)
        confidence = max(0.5, 1.0 - step * 0.08)
        margin = standard_deviation * (1.0 - confidence)
        points.append(
            DemandForecastPoint(
                period=label,
                predicted_demand=round(predicted, 2),
                lower_bound=round(max(0.0, predicted - margin), 2),
                upper_bound=round(predicted + margin, 2),
                confidence=round(confidence, 2),
            )
        )

    mean = float(values.mean())
    overall_confidence = max(0.5, 1.0 - safe_ratio(standard_deviation, mean, default=1.0))
    if abs(trend.slope) < abs(mean) * 0.05:
        overall_confidence += 0.1
    return DemandForecast(
        points=points,
        trend=trend,
        trend_direction=classify_trend(trend.slope, settings.trend_stable_threshold),
        overall_confidence=round(min(1.0, overall_confidence), 4),
        seasonal_adjustment=bool(seasonal_factors),
    )


class CapacityForecastService:
    """Projects capacity and demand forward from monthly snapshots."""

    def __init__(
        self,
        gateway: Optional[CapacityDataGateway] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._gateway = gateway or DataRepository(self._settings)

    async def _load_history(self, today: date) -> Sequence[CapacitySnapshotRecord]:
        return await asyncio.to_thread(
            self._gateway.fetch_capacity_snapshots,
            trailing_months(today, self._settings.prediction_history_months),
            "monthly",
        )

    async def get_capacity_predictions(
        self,
        horizon: Optional[str] = None,
        scenarios: Optional[Sequence[str]] = None,
        today: Optional[date] = None,
    ) -> list[CapacityPrediction]:
        resolved_scenarios = list(scenarios or ["realistic"])
        for scenario in resolved_scenarios:
            scenario_multiplier(scenario)
        periods = horizon_periods(horizon)
        reference_day = today or datetime.now(timezone.utc).date()

        history = await self._load_history(reference_day)
        if len(history) < self._settings.forecast_min_periods:
            log_event(
                logger,
                "Default capacity predictions used",
                level=logging.WARNING,
                periods_available=len(history),
                scenarios=",".join(resolved_scenarios),
            )
            return generate_default_predictions(resolved_scenarios, self._settings, reference_day)

        predictions = project_capacity(history, resolved_scenarios, periods, reference_day)
        log_event(
            logger,
            "Capacity predictions generated",
            horizon=horizon,
            history=len(history),
            predictions=len(predictions),
        )
        return predictions

    async def forecast_demand(
        self,
        periods: int = 6,
        today: Optional[date] = None,
    ) -> DemandForecast:
        reference_day = today or datetime.now(timezone.utc).date()
        history = await self._load_history(reference_day)
        forecast = build_demand_forecast(history, periods, self._settings, reference_day)
        log_event(
            logger,
            "Demand forecast generated",
            periods=periods,
            history=len(history),
            direction=forecast.trend_direction,
            confidence=forecast.overall_confidence,
        )
        return forecast
