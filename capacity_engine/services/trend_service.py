"""Ordinary-least-squares trend estimation over equally spaced periods.

This is the single trend formula used by the engine. Utilization patterns,
capacity predictions, demand forecasts and skill trend directions all call
`estimate_trend`, so a series yields the same slope wherever it is analyzed.
"""

from __future__ import annotations

from typing import Iterable, Sequence

import numpy as np
from sklearn.linear_model import LinearRegression

from capacity_engine.domain.models import CapacityTrendPoint, TrendEstimate
from capacity_engine.repository.gateway import CapacitySnapshotRecord


TREND_DIRECTIONS = ("increasing", "decreasing", "stable")


def estimate_trend(values: Sequence[float]) -> TrendEstimate:
    """Fit ``value ~ slope * index + intercept``; fewer than 2 points give slope 0."""
    observations = np.asarray(list(values), dtype=float)
    count = int(observations.size)
    if count == 0:
        return TrendEstimate(slope=0.0, intercept=0.0, r_squared=0.0, periods=0)
    if count == 1:
        return TrendEstimate(
            slope=0.0,
            intercept=float(observations[0]),
            r_squared=0.0,
            periods=1,
        )

    index = np.arange(count, dtype=float).reshape(-1, 1)
    model = LinearRegression().fit(index, observations)
    fitted = model.predict(index)

    total_sum_squares = float(np.sum((observations - observations.mean()) ** 2))
    residual_sum_squares = float(np.sum((observations - fitted) ** 2))
    if np.isclose(total_sum_squares, 0.0):
        r_squared = 1.0
    else:
        r_squared = max(0.0, 1.0 - residual_sum_squares / total_sum_squares)

    return TrendEstimate(
        slope=float(model.coef_[0]),
        intercept=float(model.intercept_),
        r_squared=float(r_squared),
        periods=count,
    )


def extrapolate(estimate: TrendEstimate, steps_ahead: int) -> float:
    """Project the fitted line ``steps_ahead`` periods past the last observation."""
    last_index = max(estimate.periods - 1, 0)
    return estimate.intercept + estimate.slope * (last_index + steps_ahead)


def classify_trend(slope: float, threshold: float = 1.0) -> str:
    if slope > threshold:
        return "increasing"
    if slope < -threshold:
        return "decreasing"
    return "stable"


def build_trend_points(snapshots: Iterable[CapacitySnapshotRecord]) -> list[CapacityTrendPoint]:
    ordered = sorted(snapshots, key=lambda record: record.period)
    return [
        CapacityTrendPoint(
            period=record.period,
            utilization=round(record.avg_utilization, 2),
            capacity=round(record.avg_capacity, 2),
            demand=round(record.avg_demand, 2),
        )
        for record in ordered
    ]
