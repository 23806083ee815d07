"""Cache freshness rules — pure functions, no I/O.

Quotes are valid for the calendar day they were fetched on: a quote stored at
23:59 is stale at 00:00. Search results use a rolling window and must also
carry enough matches to be worth serving.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta, tzinfo
from zoneinfo import ZoneInfo

from src.core.data.cache.base import SearchCacheEntry

SEARCH_MAX_AGE = timedelta(days=7)
SEARCH_MIN_RESULTS = 5


def quote_day(moment: datetime, tz: tzinfo | None = None) -> date:
    """Calendar day of moment in tz (process local zone when tz is None)."""
    if moment.tzinfo is None:
        return moment.date()
    return moment.astimezone(tz).date()


def is_quote_fresh(cache_date: date, now: datetime, tz: tzinfo | None = None) -> bool:
    return cache_date == quote_day(now, tz)


def is_search_fresh(
    last_updated: datetime,
    now: datetime,
    max_age: timedelta = SEARCH_MAX_AGE,
) -> bool:
    return now - last_updated < max_age


def is_search_usable(
    entry: SearchCacheEntry,
    now: datetime,
    max_age: timedelta = SEARCH_MAX_AGE,
    min_results: int = SEARCH_MIN_RESULTS,
) -> bool:
    return len(entry.results) >= min_results and is_search_fresh(entry.last_updated, now, max_age)


@dataclass(frozen=True)
class FreshnessPolicy:
    search_max_age: timedelta = SEARCH_MAX_AGE
    search_min_results: int = SEARCH_MIN_RESULTS
    quote_tz: tzinfo | None = None

    @classmethod
    def from_settings(cls, settings) -> FreshnessPolicy:
        return cls(
            search_max_age=timedelta(days=settings.search_max_age_days),
            search_min_results=settings.search_min_results,
            quote_tz=ZoneInfo(settings.quote_timezone) if settings.quote_timezone else None,
        )

    def quote_day(self, moment: datetime) -> date:
        return quote_day(moment, self.quote_tz)

    def quote_is_fresh(self, cache_date: date, now: datetime) -> bool:
        return is_quote_fresh(cache_date, now, self.quote_tz)

    def search_is_usable(self, entry: SearchCacheEntry, now: datetime) -> bool:
        return is_search_usable(entry, now, self.search_max_age, self.search_min_results)
