"""CLI to summarise a local ECDC export into table rows and a time series.

Example:

  covid-stats --data-file data/ecdc_records.json \
    --from 01/03/2020 --to 31/05/2020 --country-query united \
    --field casesPer1000 --min 1.5 --series-country Italy --mode cumulative \
    --output out/summary_2020-03_2020-05.json
"""
from __future__ import annotations

from pathlib import Path
from typing import List, Optional
import argparse
import json
import logging
import sys

from covid_stats.data_models.filters import (
    AggregationFilters,
    DateRange,
    NumericFilter,
    NumericFilterField,
)
from covid_stats.data_models.time_series import ChartMode
from covid_stats.exceptions import CovidStatsError
from covid_stats.services.aggregation_service import aggregate_by_country, default_filters
from covid_stats.services.date_service import parse_api_date
from covid_stats.services.ingestion_service import load_records
from covid_stats.services.time_series_service import build_chart_series

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Aggregate an ECDC case-distribution export by country and by day."
    )
    parser.add_argument("--data-file", dest="data_file", type=str, required=True,
                        help="Path to the ECDC export (.json or .csv).")
    parser.add_argument("--from", dest="date_from", type=str, default=None,
                        help="First day of the range (DD/MM/YYYY). Defaults to the earliest record.")
    parser.add_argument("--to", dest="date_to", type=str, default=None,
                        help="Last day of the range (DD/MM/YYYY). Defaults to the latest record.")
    parser.add_argument("--country-query", dest="country_query", type=str, default="",
                        help="Case-insensitive substring to match country names in the table.")
    parser.add_argument(
        "--field",
        dest="field",
        choices=[f.value for f in NumericFilterField],
        default=NumericFilterField.CASES.value,
        help="Summary field the --min/--max thresholds apply to.",
    )
    parser.add_argument("--min", dest="min_value", type=str, default="",
                        help="Lower bound for --field (ignored if blank or not a number).")
    parser.add_argument("--max", dest="max_value", type=str, default="",
                        help="Upper bound for --field (ignored if blank or not a number).")
    parser.add_argument("--series-country", dest="series_country", type=str, default="",
                        help="Exact country name for the time series; all countries when omitted.")
    parser.add_argument(
        "--mode",
        dest="mode",
        choices=[m.value for m in ChartMode],
        default=ChartMode.DAILY.value,
        help="Per-day values or running totals in the time series.",
    )
    parser.add_argument("--output", dest="output", type=str, default=None,
                        help="If provided, write the JSON result to this path instead of stdout.")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging.")
    return parser


def run(args: argparse.Namespace) -> dict:
    """Load the export, apply the filters and return a JSON-ready dict."""
    records = load_records(Path(args.data_file))

    defaults = default_filters(records)
    start = parse_api_date(args.date_from) if args.date_from else defaults.date_range.start
    end = parse_api_date(args.date_to) if args.date_to else defaults.date_range.end
    if start > end:
        logger.warning("Date range %s..%s is empty; in-period metrics will be zero", start, end)

    filters = AggregationFilters(
        date_range=DateRange(start=start, end=end),
        country_query=args.country_query,
        numeric_filter=NumericFilter(
            field=NumericFilterField(args.field),
            min=args.min_value,
            max=args.max_value,
        ),
    )

    rows = aggregate_by_country(records, filters)
    series = build_chart_series(records, filters, args.series_country, ChartMode(args.mode))
    logger.info("Computed %d summary rows and %d series points", len(rows), len(series))

    return {
        "filters": filters.model_dump(mode="json"),
        "series_country": args.series_country or None,
        "mode": args.mode,
        "rows": [r.model_dump(mode="json") for r in rows],
        "series": [p.model_dump(mode="json") for p in series],
    }


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        result = run(args)
    except (CovidStatsError, FileNotFoundError) as exc:
        logger.error("%s", exc)
        return 1

    output_json = json.dumps(result, indent=2)
    if args.output:
        out_path = Path(args.output)
        out_path.parent.mkdir(parents=True, exist_ok=True)
        out_path.write_text(output_json, encoding="utf-8")
        logger.info("Wrote summary to %s", out_path)
    else:
        print(output_json)
    return 0


if __name__ == "__main__":
    sys.exit(main())
