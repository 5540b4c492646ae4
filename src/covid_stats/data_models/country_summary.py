from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class CountrySummary(BaseModel):
    """
    Aggregated statistics for one country over the selected date range.

    The `*_in_period` fields and everything derived from them only count
    records inside the range; the `*_total_all_time` fields count every
    record for the country.
    """

    model_config = ConfigDict(frozen=True)

    country: str

    cases_in_period: int
    deaths_in_period: int
    cases_total_all_time: int
    deaths_total_all_time: int

    # 0.0 when population is unknown or not positive
    cases_per_1000: float
    deaths_per_1000: float

    # Per distinct calendar day in range, not per raw record
    avg_cases_per_day: float
    avg_deaths_per_day: float
    max_cases_per_day: int
    max_deaths_per_day: int

    population: int  # 0 when unknown
