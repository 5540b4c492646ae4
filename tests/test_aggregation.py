from datetime import date
from typing import List, Optional

import pytest

from covid_stats.data_models.covid_record import CovidRecord
from covid_stats.data_models.filters import AggregationFilters, DateRange, NumericFilter, NumericFilterField
from covid_stats.exceptions import EmptyDataset, MalformedDate
from covid_stats.services.aggregation_service import (
    aggregate_by_country,
    country_sort_key,
    default_filters,
    list_countries,
)


def _rec(country: str, date_rep: str, cases: int, deaths: int, pop: Optional[int] = 1_000_000) -> CovidRecord:
    return CovidRecord(date_rep=date_rep, country=country, cases=cases, deaths=deaths, population=pop)


def _filters(start: date, end: date, query: str = "", numeric: Optional[NumericFilter] = None) -> AggregationFilters:
    return AggregationFilters(
        date_range=DateRange(start=start, end=end),
        country_query=query,
        numeric_filter=numeric or NumericFilter(),
    )


def _sample_records() -> List[CovidRecord]:
    return [
        _rec("Spain", "01/12/2019", 5, 1, 47_000_000),
        _rec("Spain", "02/12/2019", 7, 0, 47_000_000),
        _rec("France", "01/12/2019", 10, 2, 67_000_000),
    ]


def test_spain_france_example():
    rows = aggregate_by_country(_sample_records(), _filters(date(2019, 12, 1), date(2019, 12, 2)))

    assert [r.country for r in rows] == ["France", "Spain"]
    france, spain = rows

    assert france.cases_in_period == 10
    assert france.deaths_in_period == 2
    assert france.cases_per_1000 == pytest.approx(10 / 67_000, rel=1e-9)

    assert spain.cases_in_period == 12
    assert spain.deaths_in_period == 1
    assert spain.cases_per_1000 == pytest.approx(12 / 47_000, rel=1e-9)
    assert spain.avg_cases_per_day == pytest.approx(6.0)
    assert spain.max_cases_per_day == 7
    assert spain.max_deaths_per_day == 1
    assert spain.population == 47_000_000


def test_empty_records_give_no_rows():
    assert aggregate_by_country([], _filters(date(2020, 1, 1), date(2020, 12, 31))) == []


def test_all_time_totals_ignore_date_range():
    records = _sample_records() + [_rec("Spain", "15/01/2020", 100, 10, 47_000_000)]
    rows = aggregate_by_country(records, _filters(date(2019, 12, 1), date(2019, 12, 2)))
    spain = next(r for r in rows if r.country == "Spain")

    assert spain.cases_in_period == 12
    assert spain.cases_total_all_time == 112
    assert spain.deaths_total_all_time == 11


def test_country_outside_range_still_listed_with_zero_metrics():
    records = [_rec("Italy", "10/03/2020", 50, 5)]
    rows = aggregate_by_country(records, _filters(date(2019, 12, 1), date(2019, 12, 31)))

    assert len(rows) == 1
    r = rows[0]
    assert r.cases_in_period == 0
    assert r.avg_cases_per_day == 0.0
    assert r.max_cases_per_day == 0
    assert r.cases_per_1000 == 0.0
    assert r.cases_total_all_time == 50


def test_reversed_range_yields_empty_windowed_totals():
    rows = aggregate_by_country(_sample_records(), _filters(date(2019, 12, 2), date(2019, 12, 1)))
    assert all(r.cases_in_period == 0 and r.deaths_in_period == 0 for r in rows)
    assert sum(r.cases_total_all_time for r in rows) == 22


def test_average_is_per_distinct_day_not_per_record():
    # Two records on the same day (e.g. regional splits) count as one day
    records = [
        _rec("Chile", "01/04/2020", 10, 1),
        _rec("Chile", "01/04/2020", 20, 1),
        _rec("Chile", "02/04/2020", 30, 0),
    ]
    rows = aggregate_by_country(records, _filters(date(2020, 4, 1), date(2020, 4, 2)))
    chile = rows[0]

    assert chile.avg_cases_per_day == pytest.approx(30.0)
    assert chile.max_cases_per_day == 30
    assert chile.avg_deaths_per_day == pytest.approx(1.0)
    assert chile.max_deaths_per_day == 2


@pytest.mark.parametrize("pop", [0, -5, None])
def test_per_1000_zero_without_population(pop):
    records = [_rec("Nowhere", "01/04/2020", 10, 3, pop)]
    rows = aggregate_by_country(records, _filters(date(2020, 4, 1), date(2020, 4, 1)))
    assert rows[0].cases_per_1000 == 0.0
    assert rows[0].deaths_per_1000 == 0.0
    assert rows[0].population == 0


def test_country_key_keeps_underscores():
    records = [
        _rec("United_States_of_America", "01/04/2020", 10, 1),
        _rec("United States of America", "01/04/2020", 5, 0),
    ]
    rows = aggregate_by_country(records, _filters(date(2020, 4, 1), date(2020, 4, 1)))
    assert {r.country for r in rows} == {"United_States_of_America", "United States of America"}


def test_country_query_is_trimmed_case_insensitive_substring():
    records = _sample_records() + [_rec("United_Kingdom", "01/12/2019", 3, 0)]
    f = _filters(date(2019, 12, 1), date(2019, 12, 2), query="  KING ")
    rows = aggregate_by_country(records, f)
    assert [r.country for r in rows] == ["United_Kingdom"]

    blank = aggregate_by_country(records, _filters(date(2019, 12, 1), date(2019, 12, 2), query="   "))
    assert len(blank) == 3


def test_malformed_date_aborts_aggregation():
    records = _sample_records() + [_rec("France", "31/02/2020", 1, 0)]
    with pytest.raises(MalformedDate):
        aggregate_by_country(records, _filters(date(2019, 12, 1), date(2019, 12, 2)))


def test_non_ascii_digit_date_aborts_aggregation():
    records = _sample_records() + [_rec("Spain", "٠٣/١٢/٢٠١٩", 1, 0)]
    with pytest.raises(MalformedDate):
        aggregate_by_country(records, _filters(date(2019, 12, 1), date(2019, 12, 31)))


def test_rows_sorted_by_country_name_case_and_accent_insensitive():
    records = [
        _rec("bonaire", "01/04/2020", 1, 0),
        _rec("Zambia", "01/04/2020", 1, 0),
        _rec("Åland", "01/04/2020", 1, 0),
        _rec("Austria", "01/04/2020", 1, 0),
        _rec("Bahamas", "01/04/2020", 1, 0),
    ]
    rows = aggregate_by_country(records, _filters(date(2020, 4, 1), date(2020, 4, 1)))
    assert [r.country for r in rows] == ["Åland", "Austria", "Bahamas", "bonaire", "Zambia"]


def test_sort_key_is_total_for_case_variants():
    names = ["france", "France", "FRANCE"]
    ordered = sorted(names, key=country_sort_key)
    assert ordered == sorted(reversed(names), key=country_sort_key)
    assert len(set(map(country_sort_key, names))) == 3


def test_population_taken_from_first_record():
    records = [
        _rec("Peru", "01/04/2020", 10, 0, 2_000_000),
        _rec("Peru", "02/04/2020", 10, 0, None),
    ]
    rows = aggregate_by_country(records, _filters(date(2020, 4, 1), date(2020, 4, 2)))
    assert rows[0].population == 2_000_000
    assert rows[0].cases_per_1000 == pytest.approx(20 / 2_000)


def test_list_countries_distinct_and_sorted():
    records = _sample_records() + [_rec("Andorra", "01/12/2019", 1, 0)]
    assert list_countries(records) == ["Andorra", "France", "Spain"]


def test_default_filters_cover_full_span():
    records = _sample_records() + [_rec("Spain", "15/01/2020", 100, 10, 47_000_000)]
    f = default_filters(records)

    assert f.date_range.start == date(2019, 12, 1)
    assert f.date_range.end == date(2020, 1, 15)
    assert f.country_query == ""
    assert f.numeric_filter.field is NumericFilterField.CASES
    assert f.numeric_filter.bounds() == (None, None)

    rows = aggregate_by_country(records, f)
    assert sum(r.cases_in_period for r in rows) == sum(r.cases_total_all_time for r in rows)


def test_default_filters_empty_dataset():
    with pytest.raises(EmptyDataset):
        default_filters([])


def test_aggregation_does_not_mutate_inputs():
    records = _sample_records()
    snapshot = [r.model_dump() for r in records]
    f = _filters(date(2019, 12, 1), date(2019, 12, 2))

    first = aggregate_by_country(records, f)
    second = aggregate_by_country(records, f)

    assert [r.model_dump() for r in records] == snapshot
    assert first == second
