"""Record ingestion from local ECDC exports.

Provides functions to read the ECDC "case distribution" JSON or CSV exports
from disk and return typed `CovidRecord` objects for the aggregation
services. Fetching the exports over the network is out of scope.
"""
from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List
import json
import logging

import pandas as pd

from covid_stats.data_models.covid_record import CovidRecord
from covid_stats.exceptions import EmptyDataset


logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = {"dateRep", "countriesAndTerritories", "cases", "deaths"}


def _records_from_rows(rows: List[Dict[str, Any]], source: Path) -> List[CovidRecord]:
    if not rows:
        raise EmptyDataset(f"No records found in {source}")

    missing = REQUIRED_COLUMNS - set(rows[0].keys())
    if missing:
        raise ValueError(f"Missing required columns in {source}: {sorted(missing)}")

    return [CovidRecord.model_validate(row) for row in rows]


def load_records_from_json(json_path: Path | str) -> List[CovidRecord]:
    """Load an ECDC JSON export into a list of CovidRecord objects.

    Parameters
    ----------
    json_path : Path | str
        File holding either the ECDC payload (`{"records": [...]}`) or a
        bare list of record objects.

    Returns
    -------
    List[CovidRecord]
        One record per entry, in file order.
    """

    path = Path(json_path)
    if not path.exists():
        raise FileNotFoundError(f"ECDC JSON file not found: {path}")

    payload = json.loads(path.read_text(encoding="utf-8"))
    if isinstance(payload, dict):
        rows = payload.get("records") or []
    elif isinstance(payload, list):
        rows = payload
    else:
        raise ValueError(f"Unexpected JSON payload in {path}: {type(payload).__name__}")

    records = _records_from_rows(rows, path)
    logger.info("Loaded %d ECDC records from %s", len(records), path)
    return records


def load_records_from_csv(csv_path: Path | str) -> List[CovidRecord]:
    """Load an ECDC CSV export into a list of CovidRecord objects.

    `dateRep` and the identifier columns are read as text so values like
    "01/12/2019" or "NA" (Namibia's geoId) are kept verbatim.
    """

    path = Path(csv_path)
    if not path.exists():
        raise FileNotFoundError(f"ECDC CSV file not found: {path}")

    df = pd.read_csv(
        path,
        dtype={"dateRep": str, "geoId": str, "countryterritoryCode": str, "countriesAndTerritories": str},
        keep_default_na=False,
        na_values={"popData2019": [""], "cases": [""], "deaths": [""]},
    )
    df.columns = [str(c).strip() for c in df.columns]

    rows = df.to_dict(orient="records")
    records = _records_from_rows(rows, path)
    logger.info("Loaded %d ECDC records from %s", len(records), path)
    return records


def load_records(data_path: Path | str) -> List[CovidRecord]:
    """Dispatch on the file suffix (`.json` or `.csv`)."""
    path = Path(data_path)
    suffix = path.suffix.lower()
    if suffix == ".json":
        return load_records_from_json(path)
    if suffix == ".csv":
        return load_records_from_csv(path)
    raise ValueError(f"Unsupported data file type {suffix!r}; expected .json or .csv")
