from __future__ import annotations

import pytest

from capacity_engine.services.trend_service import (
    build_trend_points,
    classify_trend,
    estimate_trend,
    extrapolate,
)
from conftest import make_snapshots


def test_rising_monthly_utilization_is_classified_increasing():
    estimate = estimate_trend([70, 72, 74, 76, 78, 80])

    assert estimate.slope == pytest.approx(2.0)
    assert estimate.intercept == pytest.approx(70.0)
    assert estimate.r_squared == pytest.approx(1.0)
    assert estimate.periods == 6
    assert classify_trend(estimate.slope) == "increasing"


def test_falling_and_flat_series_classification():
    assert classify_trend(estimate_trend([90, 85, 80, 75]).slope) == "decreasing"
    flat = estimate_trend([60, 60, 60])
    assert flat.slope == pytest.approx(0.0)
    assert flat.r_squared == pytest.approx(1.0)
    assert classify_trend(flat.slope) == "stable"


def test_slope_within_threshold_is_stable():
    assert classify_trend(0.4) == "stable"
    assert classify_trend(-1.0) == "stable"
    assert classify_trend(0.4, threshold=0.25) == "increasing"


def test_short_series_have_zero_slope():
    empty = estimate_trend([])
    single = estimate_trend([42.0])

    assert empty.slope == 0.0 and empty.periods == 0
    assert single.slope == 0.0
    assert single.intercept == pytest.approx(42.0)
    assert single.periods == 1


def test_noisy_series_r_squared_stays_in_unit_interval():
    estimate = estimate_trend([10, 30, 12, 28, 11, 29])

    assert 0.0 <= estimate.r_squared <= 1.0


def test_extrapolate_continues_fitted_line():
    estimate = estimate_trend([10, 20, 30])

    assert extrapolate(estimate, 1) == pytest.approx(40.0)
    assert extrapolate(estimate, 3) == pytest.approx(60.0)


def test_build_trend_points_orders_by_period():
    snapshots = list(reversed(make_snapshots([60, 65, 70])))

    points = build_trend_points(snapshots)

    assert [point.period for point in points] == ["2025-01", "2025-02", "2025-03"]
    assert points[2].utilization == pytest.approx(70.0)
    assert points[2].demand == pytest.approx(2520.0)
