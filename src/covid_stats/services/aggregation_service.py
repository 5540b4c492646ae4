"""Per-country aggregation for the summary table.

Folds raw daily records into one `CountrySummary` per country, then applies
the country-name and numeric threshold filters. All functions here are pure:
they keep no state between calls and never log.
"""
from __future__ import annotations

import unicodedata
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, Iterable, List, Optional, Tuple

from covid_stats.data_models.country_summary import CountrySummary
from covid_stats.data_models.covid_record import CovidRecord
from covid_stats.data_models.filters import (
    AggregationFilters,
    DateRange,
    NumericFilter,
    NumericFilterField,
)
from covid_stats.services.date_service import (
    get_min_max_dates,
    is_date_in_range,
    parse_api_date,
)


PER_THOUSAND = 1000.0

# Filter field -> CountrySummary attribute
NUMERIC_FIELD_MAP: Dict[NumericFilterField, str] = {
    NumericFilterField.CASES: "cases_in_period",
    NumericFilterField.DEATHS: "deaths_in_period",
    NumericFilterField.CASES_PER_1000: "cases_per_1000",
    NumericFilterField.DEATHS_PER_1000: "deaths_per_1000",
}


@dataclass
class _CountryAccumulator:
    country: str
    population: int
    cases_in_period: int = 0
    deaths_in_period: int = 0
    cases_total_all_time: int = 0
    deaths_total_all_time: int = 0
    daily_cases: Dict[date, int] = field(default_factory=dict)
    daily_deaths: Dict[date, int] = field(default_factory=dict)


def safe_population(population: Optional[int]) -> int:
    """Return the population, or 0 when missing or not positive."""
    if population is None or population <= 0:
        return 0
    return int(population)


def per_thousand(value: float, population: int) -> float:
    """`value` per 1000 inhabitants; 0.0 when population is not positive."""
    if population <= 0:
        return 0.0
    return value / (population / PER_THOUSAND)


def country_sort_key(name: str) -> Tuple[str, str, str]:
    """Collation key used for every country listing.

    Primary: accents stripped and case folded (so "Åland" sorts with "Aland"
    and "france" with "France"). Ties fall back to the case-folded name and
    finally the raw name, so the order is total and repeatable.
    """
    decomposed = unicodedata.normalize("NFKD", name)
    base = "".join(ch for ch in decomposed if not unicodedata.combining(ch)).casefold()
    return base, name.casefold(), name


def aggregate_by_country(
    records: Iterable[CovidRecord],
    filters: AggregationFilters,
) -> List[CountrySummary]:
    """Aggregate daily records by country and apply the table filters.

    Behaviour:
    - Country key is the raw `country` string (underscores preserved).
    - All-time totals include every record; in-period totals, averages and
      peaks only include records whose day lies in `filters.date_range`.
    - Averages are per distinct in-range day, not per raw record.
    - Rows are filtered by `country_query` (case-insensitive substring) and
      by the numeric filter, then sorted by country name.

    Raises:
        MalformedDate: if any record has an invalid `date_rep`. No record is
            skipped, so a bad date aborts the whole aggregation.
    """
    accumulators: Dict[str, _CountryAccumulator] = {}
    start = filters.date_range.start
    end = filters.date_range.end

    for record in records:
        acc = accumulators.get(record.country)
        if acc is None:
            acc = _CountryAccumulator(
                country=record.country,
                population=safe_population(record.population),
            )
            accumulators[record.country] = acc

        acc.cases_total_all_time += record.cases
        acc.deaths_total_all_time += record.deaths

        day = parse_api_date(record.date_rep)
        if not is_date_in_range(day, start, end):
            continue

        acc.cases_in_period += record.cases
        acc.deaths_in_period += record.deaths
        acc.daily_cases[day] = acc.daily_cases.get(day, 0) + record.cases
        acc.daily_deaths[day] = acc.daily_deaths.get(day, 0) + record.deaths

    rows = [_finalize(acc) for acc in accumulators.values()]
    rows = filter_by_country(rows, filters.country_query)
    rows = filter_by_numeric_range(rows, filters.numeric_filter)
    rows.sort(key=lambda r: country_sort_key(r.country))
    return rows


def _finalize(acc: _CountryAccumulator) -> CountrySummary:
    # Both daily maps share the same keys; a record always touches both
    days_count = len(acc.daily_cases)

    if days_count > 0:
        avg_cases = acc.cases_in_period / days_count
        avg_deaths = acc.deaths_in_period / days_count
        max_cases = max(acc.daily_cases.values())
        max_deaths = max(acc.daily_deaths.values())
    else:
        avg_cases = avg_deaths = 0.0
        max_cases = max_deaths = 0

    return CountrySummary(
        country=acc.country,
        cases_in_period=acc.cases_in_period,
        deaths_in_period=acc.deaths_in_period,
        cases_total_all_time=acc.cases_total_all_time,
        deaths_total_all_time=acc.deaths_total_all_time,
        cases_per_1000=per_thousand(acc.cases_in_period, acc.population),
        deaths_per_1000=per_thousand(acc.deaths_in_period, acc.population),
        avg_cases_per_day=float(avg_cases),
        avg_deaths_per_day=float(avg_deaths),
        max_cases_per_day=max_cases,
        max_deaths_per_day=max_deaths,
        population=acc.population,
    )


def filter_by_country(rows: List[CountrySummary], query: str) -> List[CountrySummary]:
    """Keep rows whose country contains `query` (case-insensitive).

    A blank query keeps everything.
    """
    q = (query or "").strip().casefold()
    if q == "":
        return list(rows)
    return [r for r in rows if q in r.country.casefold()]


def filter_by_numeric_range(
    rows: List[CountrySummary],
    numeric_filter: NumericFilter,
) -> List[CountrySummary]:
    """Keep rows with `min <= value <= max` on the selected field.

    Inactive bounds (blank or non-numeric text) impose no constraint.
    """
    min_value, max_value = numeric_filter.bounds()
    if min_value is None and max_value is None:
        return list(rows)

    attr = NUMERIC_FIELD_MAP[numeric_filter.field]
    kept: List[CountrySummary] = []
    for r in rows:
        value = getattr(r, attr)
        if min_value is not None and value < min_value:
            continue
        if max_value is not None and value > max_value:
            continue
        kept.append(r)
    return kept


def list_countries(records: Iterable[CovidRecord]) -> List[str]:
    """Distinct country names, in the same order as the summary rows."""
    return sorted({r.country for r in records}, key=country_sort_key)


def default_filters(records: Iterable[CovidRecord]) -> AggregationFilters:
    """Filters covering the whole dataset with no other constraint.

    Used as the initial state and as the "reset" state.

    Raises:
        EmptyDataset: if there are no records.
    """
    lo, hi = get_min_max_dates(records)
    return AggregationFilters(
        date_range=DateRange(start=lo, end=hi),
        country_query="",
        numeric_filter=NumericFilter(field=NumericFilterField.CASES, min="", max=""),
    )
