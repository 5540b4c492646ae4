from __future__ import annotations

from itertools import accumulate
from typing import Dict, Iterable, List, Optional, Tuple

from covid_stats.data_models.covid_record import CovidRecord
from covid_stats.data_models.filters import AggregationFilters
from covid_stats.data_models.time_series import ChartMode, TimeSeriesPoint
from covid_stats.services.date_service import (
    format_day_key,
    is_date_in_range,
    parse_api_date,
)


def build_time_series(
    records: Iterable[CovidRecord],
    filters: AggregationFilters,
    selected_country: Optional[str] = None,
) -> List[TimeSeriesPoint]:
    """Build a per-day cases/deaths series using the same date range as the table.

    If `selected_country` is blank or None, every country is summed per day;
    otherwise only records whose country matches it exactly are kept. Only
    the date range of `filters` applies here; the country query and numeric
    filter belong to the summary table.

    Raises:
        MalformedDate: if any record has an invalid `date_rep`.
    """
    country = (selected_country or "").strip()
    start = filters.date_range.start
    end = filters.date_range.end

    grouped: Dict[str, Tuple[int, int]] = {}
    for record in records:
        day = parse_api_date(record.date_rep)
        if not is_date_in_range(day, start, end):
            continue
        if country and record.country != country:
            continue

        key = format_day_key(day)
        cases, deaths = grouped.get(key, (0, 0))
        grouped[key] = (cases + record.cases, deaths + record.deaths)

    return [
        TimeSeriesPoint(date=key, cases=cases, deaths=deaths)
        for key, (cases, deaths) in sorted(grouped.items())
    ]


def to_cumulative(series: List[TimeSeriesPoint]) -> List[TimeSeriesPoint]:
    """Running totals over a chronologically sorted daily series."""
    ordered = sorted(series, key=lambda p: p.date)
    running_cases = accumulate(p.cases for p in ordered)
    running_deaths = accumulate(p.deaths for p in ordered)
    return [
        TimeSeriesPoint(date=p.date, cases=c, deaths=d)
        for p, c, d in zip(ordered, running_cases, running_deaths)
    ]


def build_chart_series(
    records: Iterable[CovidRecord],
    filters: AggregationFilters,
    selected_country: Optional[str] = None,
    mode: ChartMode = ChartMode.DAILY,
) -> List[TimeSeriesPoint]:
    """`build_time_series`, optionally rolled up into running totals."""
    series = build_time_series(records, filters, selected_country)
    if ChartMode(mode) is ChartMode.CUMULATIVE:
        return to_cumulative(series)
    return series
