"""Calendar bucket helpers shared by trend, forecast and pattern analysis."""

from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Optional

import pandas as pd

from capacity_engine.domain.errors import AnalyticsValidationError


HORIZON_PERIODS = {
    "next_month": 1,
    "next_quarter": 3,
    "6_months": 6,
    "next_year": 12,
    "12_months": 12,
}
DEFAULT_HORIZON = "6_months"

TIMEFRAME_MONTHS = {
    "last_month": 1,
    "last_quarter": 3,
    "last_6_months": 6,
    "last_year": 12,
}
DEFAULT_TIMEFRAME = "last_6_months"

GRANULARITIES = ("monthly", "weekly")


@dataclass(frozen=True)
class DateRange:
    start: date
    end: date

    def __post_init__(self) -> None:
        if self.start > self.end:
            raise AnalyticsValidationError("date range start must not be after its end")


def horizon_periods(horizon: Optional[str]) -> int:
    key = horizon or DEFAULT_HORIZON
    try:
        return HORIZON_PERIODS[key]
    except KeyError as exc:
        raise AnalyticsValidationError(
            f"Unknown horizon '{key}'. Expected one of {sorted(HORIZON_PERIODS)}"
        ) from exc


def timeframe_months(timeframe: Optional[str]) -> int:
    key = timeframe or DEFAULT_TIMEFRAME
    try:
        return TIMEFRAME_MONTHS[key]
    except KeyError as exc:
        raise AnalyticsValidationError(
            f"Unknown timeframe '{key}'. Expected one of {sorted(TIMEFRAME_MONTHS)}"
        ) from exc


def trailing_days(today: date, days: int) -> DateRange:
    return DateRange(start=today - timedelta(days=days), end=today)


def trailing_months(today: date, months: int) -> DateRange:
    start = (pd.Timestamp(today) - pd.DateOffset(months=months)).date()
    return DateRange(start=start, end=today)


def month_label(value: date) -> str:
    return pd.Period(value, freq="M").strftime("%Y-%m")


def week_label(value: date) -> str:
    iso_year, iso_week, _ = value.isocalendar()
    return f"{iso_year}-W{iso_week:02d}"


def period_label(value: date, granularity: str = "monthly") -> str:
    if granularity == "weekly":
        return week_label(value)
    if granularity == "monthly":
        return month_label(value)
    raise AnalyticsValidationError(
        f"Unknown granularity '{granularity}'. Expected one of {list(GRANULARITIES)}"
    )


def months_ahead(today: date, steps: int) -> str:
    """Return the ``YYYY-MM`` label ``steps`` months after ``today``."""
    return (pd.Period(today, freq="M") + steps).strftime("%Y-%m")


def month_name(month: int) -> str:
    return calendar.month_name[month]
