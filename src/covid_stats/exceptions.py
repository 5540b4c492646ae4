"""Errors raised by the covid_stats engine."""
from __future__ import annotations


class CovidStatsError(ValueError):
    """Base class for data errors surfaced by the engine."""


class MalformedDate(CovidStatsError):
    """A date string is not DD/MM/YYYY (or DD-MM-YYYY) or is not a real day."""

    def __init__(self, value: str, reason: str) -> None:
        super().__init__(f"{reason} in date {value!r}")
        self.value = value
        self.reason = reason


class EmptyDataset(CovidStatsError):
    """An operation that needs at least one record was given none."""
