"""Time series point model.

One per-day total of cases and deaths, either for a single country or for
all countries combined.
"""
from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict


class ChartMode(str, Enum):
    DAILY = "daily"
    CUMULATIVE = "cumulative"


class TimeSeriesPoint(BaseModel):
    model_config = ConfigDict(frozen=True)

    # Canonical YYYY-MM-DD key; lexicographic order is chronological order
    date: str
    cases: int
    deaths: int
