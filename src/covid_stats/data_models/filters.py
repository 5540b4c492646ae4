"""Filter models shared by the summary table and the time series."""
from __future__ import annotations

import math
import re
from datetime import date
from enum import Enum
from typing import Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field


class NumericFilterField(str, Enum):
    """
    Summary field that the min/max threshold filter applies to.
    """

    CASES = "cases"
    DEATHS = "deaths"
    CASES_PER_1000 = "casesPer1000"
    DEATHS_PER_1000 = "deathsPer1000"


class DateRange(BaseModel):
    """Inclusive calendar-day range.

    `start > end` is accepted and simply matches no day.
    """

    model_config = ConfigDict(frozen=True)

    start: date
    end: date


# Plain ASCII decimal, optional sign and exponent; no "_" separators
BOUND_PATTERN = re.compile(r"^[+-]?(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?$")


def parse_bound(raw: Union[str, float, int, None]) -> Optional[float]:
    """Turn a user-entered bound into a finite float, or None if inactive.

    Blank text, text that does not parse as a number, NaN and infinities
    all count as "no bound".
    """
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, (int, float)):
        value = float(raw)
    else:
        s = str(raw).strip()
        if BOUND_PATTERN.match(s) is None:
            return None
        value = float(s)
    if not math.isfinite(value):
        return None
    return value


class NumericFilter(BaseModel):
    model_config = ConfigDict(frozen=True)

    field: NumericFilterField = NumericFilterField.CASES
    # Raw bound text as typed by the user; see `bounds()`
    min: Union[str, float, None] = ""
    max: Union[str, float, None] = ""

    def bounds(self) -> Tuple[Optional[float], Optional[float]]:
        """Return the (min, max) bounds, each None when inactive."""
        return parse_bound(self.min), parse_bound(self.max)


class AggregationFilters(BaseModel):
    """Everything the user can constrain in one request.

    Attributes:
        date_range: Inclusive window for the in-period metrics and the series.
        country_query: Case-insensitive substring on the country name.
        numeric_filter: Min/max threshold on one summary field.
    """

    model_config = ConfigDict(frozen=True)

    date_range: DateRange
    country_query: str = ""
    numeric_filter: NumericFilter = Field(default_factory=NumericFilter)
