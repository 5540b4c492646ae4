"""Raw ECDC record model.

One daily observation for one country, as published in the ECDC
"case distribution" dataset (`records` array of the JSON export).
"""
from __future__ import annotations

import math
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class CovidRecord(BaseModel):
    """A single daily per-country record.

    Field aliases follow the ECDC column names so a decoded payload can be
    passed straight to the constructor. `country` keeps the raw ECDC spelling
    (e.g. "United_States_of_America").
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    date_rep: str = Field(alias="dateRep")  # DD/MM/YYYY
    country: str = Field(alias="countriesAndTerritories")
    cases: int = 0
    deaths: int = 0
    # Population estimate (2019); None when missing or unparseable
    population: Optional[int] = Field(default=None, alias="popData2019")

    geo_id: Optional[str] = Field(default=None, alias="geoId")
    country_code: Optional[str] = Field(default=None, alias="countryterritoryCode")
    continent: Optional[str] = Field(default=None, alias="continentExp")

    @field_validator("population", mode="before")
    @classmethod
    def coerce_population(cls, value: Any) -> Optional[int]:
        if value is None:
            return None
        if isinstance(value, bool):
            return None
        s = str(value).strip()
        if s == "":
            return None
        try:
            number = float(s)
        except ValueError:
            return None
        if not math.isfinite(number):
            return None
        return int(number)

    @field_validator("geo_id", "country_code", "continent", mode="before")
    @classmethod
    def blank_to_none(cls, value: Any) -> Optional[str]:
        if value is None:
            return None
        if isinstance(value, float) and math.isnan(value):
            return None
        s = str(value)
        return s or None
