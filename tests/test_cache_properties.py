"""Property-based tests for ContentCache."""

from datetime import UTC, datetime, timedelta
from unittest.mock import Mock

from hypothesis import given
from hypothesis import strategies as st

from xpathfeed.cache import ContentCache
from xpathfeed.fetcher import Fetcher
from xpathfeed.models import FetchResult
from xpathfeed.store import MemoryCacheStore

URL = "http://ex.com/page"
START = datetime(2024, 1, 1, tzinfo=UTC)


def build_cache(now: list[datetime]) -> tuple[ContentCache, Mock]:
    fetcher = Mock(spec=Fetcher)
    fetcher.get.return_value = FetchResult(200, b"<p>x</p>", "<p>x</p>", URL)
    cache = ContentCache(MemoryCacheStore(), fetcher, clock=lambda: now[0])
    return cache, fetcher


class TestContentCacheProperties:
    """Property-based tests for cache freshness."""

    @given(st.integers(min_value=0, max_value=3 * 600))
    def test_network_calls_follow_ttl_property(self, age_seconds):
        """Fresh entries cost no request; expired ones cost exactly one."""
        now = [START]
        cache, fetcher = build_cache(now)
        cache.get(URL)
        fetcher.get.reset_mock()

        now[0] = START + timedelta(seconds=age_seconds)
        cache.get(URL)

        expected = 0 if age_seconds < 600 else 1
        assert fetcher.get.call_count == expected
        if expected:
            fetcher.get.assert_called_once_with(URL, if_modified_since=START)

    @given(st.lists(st.integers(min_value=0, max_value=1200), min_size=1, max_size=8))
    def test_timestamp_never_moves_backwards_property(self, steps):
        """cached_at is non-decreasing across any sequence of lookups."""
        now = [START]
        cache, fetcher = build_cache(now)
        fetcher.get.side_effect = [
            FetchResult(304, b"", "", URL) if i % 2 else FetchResult(200, b"y", "y", URL)
            for i in range(len(steps) + 1)
        ]

        previous = cache.get(URL).cached_at
        for step in steps:
            now[0] += timedelta(seconds=step)
            current = cache.get(URL).cached_at
            assert current >= previous
            previous = current
