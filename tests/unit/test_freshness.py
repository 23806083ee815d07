"""Unit tests for the cache freshness rules."""
from datetime import date, datetime, timedelta, timezone
from types import SimpleNamespace
from zoneinfo import ZoneInfo

from src.core.data.cache.base import SearchCacheEntry
from src.core.data.cache.freshness import (
    FreshnessPolicy,
    is_quote_fresh,
    is_search_fresh,
    is_search_usable,
    quote_day,
)
from tests.unit.helpers import T0, make_matches

NY = ZoneInfo("America/New_York")


# ── Quotes: calendar-day scope ───────────────────────────────────────────


class TestQuoteFreshness:

    def test_same_day_is_fresh(self):
        cached_on = quote_day(T0, NY)
        assert is_quote_fresh(cached_on, T0 + timedelta(minutes=5), NY)

    def test_next_day_is_stale(self):
        cached_on = quote_day(T0, NY)
        assert not is_quote_fresh(cached_on, T0 + timedelta(days=1), NY)

    def test_one_minute_past_midnight_is_stale(self):
        before_midnight = datetime(2026, 3, 10, 23, 59, tzinfo=NY)
        after_midnight = before_midnight + timedelta(minutes=1)
        assert not is_quote_fresh(quote_day(before_midnight, NY), after_midnight, NY)

    def test_early_morning_same_day_is_fresh(self):
        fetched = datetime(2026, 3, 10, 0, 1, tzinfo=NY)
        later = datetime(2026, 3, 10, 23, 58, tzinfo=NY)
        assert is_quote_fresh(quote_day(fetched, NY), later, NY)

    def test_day_follows_the_given_zone(self):
        # 02:00 UTC on the 11th is still the 10th in New York
        moment = datetime(2026, 3, 11, 2, 0, tzinfo=timezone.utc)
        assert quote_day(moment, NY) == date(2026, 3, 10)
        assert quote_day(moment, timezone.utc) == date(2026, 3, 11)

    def test_old_cache_date_is_stale(self):
        assert not is_quote_fresh(date(2020, 1, 1), T0, NY)


# ── Searches: rolling window + minimum count ─────────────────────────────


class TestSearchFreshness:

    def test_rolling_window(self):
        assert is_search_fresh(T0 - timedelta(days=6), T0)
        assert not is_search_fresh(T0 - timedelta(days=8), T0)

    def test_window_is_exclusive_at_max_age(self):
        assert not is_search_fresh(T0 - timedelta(days=7), T0)
        assert is_search_fresh(T0 - timedelta(days=7) + timedelta(seconds=1), T0)

    def test_six_days_five_results_is_usable(self):
        entry = SearchCacheEntry("apple", make_matches(5), T0 - timedelta(days=6))
        assert is_search_usable(entry, T0)

    def test_six_days_four_results_is_not_usable(self):
        entry = SearchCacheEntry("apple", make_matches(4), T0 - timedelta(days=6))
        assert not is_search_usable(entry, T0)

    def test_eight_days_five_results_is_not_usable(self):
        entry = SearchCacheEntry("apple", make_matches(5), T0 - timedelta(days=8))
        assert not is_search_usable(entry, T0)

    def test_custom_thresholds(self):
        entry = SearchCacheEntry("apple", make_matches(2), T0 - timedelta(days=2))
        assert is_search_usable(entry, T0, max_age=timedelta(days=3), min_results=2)
        assert not is_search_usable(entry, T0, max_age=timedelta(days=1), min_results=2)


class TestFreshnessPolicy:

    def test_from_settings(self):
        cfg = SimpleNamespace(search_max_age_days=3, search_min_results=2, quote_timezone="America/New_York")
        policy = FreshnessPolicy.from_settings(cfg)
        assert policy.search_max_age == timedelta(days=3)
        assert policy.search_min_results == 2
        assert policy.quote_tz == NY

    def test_empty_timezone_means_process_local(self):
        cfg = SimpleNamespace(search_max_age_days=7, search_min_results=5, quote_timezone="")
        assert FreshnessPolicy.from_settings(cfg).quote_tz is None

    def test_defaults(self):
        policy = FreshnessPolicy()
        entry = SearchCacheEntry("ap", make_matches(5), T0 - timedelta(days=6))
        assert policy.search_is_usable(entry, T0)
        assert policy.quote_is_fresh(policy.quote_day(T0), T0)
