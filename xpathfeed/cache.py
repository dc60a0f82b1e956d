"""Freshness-aware content cache in front of the Fetcher."""

import re
import string
from collections import Counter
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from typing import Protocol
from urllib.parse import SplitResult, urlsplit, urlunsplit

from .errors import NetworkError
from .fetcher import Fetcher
from .logging_config import create_execution_logger
from .models import CacheEntry, FetchResult
from .resolver import LinkResolver

DEFAULT_TTL = timedelta(minutes=10)

DEFAULT_PORTS = {"http": 80, "https": 443}

_ESCAPE = re.compile(r"%([0-9A-Fa-f]{2})")
_UNRESERVED = frozenset(string.ascii_letters + string.digits + "-._~")


class CacheStore(Protocol):
    def get(self, key: str) -> CacheEntry | None: ...

    def set(self, key: str, entry: CacheEntry) -> None: ...


def utc_now() -> datetime:
    return datetime.now(UTC)


def canonical_url(url: str) -> str:
    """Normalize ``url`` so equivalent spellings share one cache key.

    Lower-cases scheme and host, drops default ports and the fragment,
    normalizes percent escapes, and turns an empty path into ``/``.
    URLs that cannot be split are returned stripped but otherwise unchanged,
    so the fetch for them fails and degrades like any other.
    """
    url = url.strip()
    try:
        parts = urlsplit(url)
    except ValueError:
        return url

    scheme = parts.scheme.lower()
    path = _normalize_escapes(parts.path) or "/"
    query = _normalize_escapes(parts.query)
    return urlunsplit((scheme, _canonical_netloc(parts, scheme), path, query, ""))


def _canonical_netloc(parts: SplitResult, scheme: str) -> str:
    try:
        port = parts.port
    except ValueError:
        # Out-of-range or non-numeric port.
        return parts.netloc

    netloc = (parts.hostname or "").lower()
    if ":" in netloc:
        netloc = f"[{netloc}]"
    if port and port != DEFAULT_PORTS.get(scheme):
        netloc = f"{netloc}:{port}"
    if parts.username:
        userinfo = parts.username
        if parts.password:
            userinfo = f"{userinfo}:{parts.password}"
        netloc = f"{userinfo}@{netloc}"
    return netloc


class ContentCache:
    """Serves page bodies from a store, revalidating them after a TTL."""

    def __init__(
        self,
        store: CacheStore,
        fetcher: Fetcher,
        ttl: timedelta = DEFAULT_TTL,
        resolver_factory: Callable[[str], LinkResolver] = LinkResolver,
        clock: Callable[[], datetime] = utc_now,
        execution_id: str | None = None,
    ):
        """Initialize the cache.

        Args:
            store: Backend holding CacheEntry values
            fetcher: Fetcher used on misses and revalidations
            ttl: Age after which an entry must be revalidated
            resolver_factory: Builds a LinkResolver for a base URL
            clock: Returns the current, timezone-aware time
            execution_id: Execution ID for logging context
        """
        self.store = store
        self.fetcher = fetcher
        self.ttl = ttl
        self.resolver_factory = resolver_factory
        self.clock = clock
        self.logger = create_execution_logger("content_cache", execution_id)
        self.stats: Counter[str] = Counter()

    def get(self, url: str) -> CacheEntry:
        """Return the cached entry for ``url``, fetching or revalidating it.

        Fetch failures never propagate: the previous entry (or an empty one)
        is served instead. StorageError from the store does propagate.
        """
        key = canonical_url(url)
        entry = self.store.get(key)

        if entry is None or entry.cached_at is None:
            return self._fetch_new(key)

        now = self.clock()
        age = now - entry.cached_at
        if age < self.ttl:
            self._record(key, "hit", age_seconds=age.total_seconds())
            return entry

        return self._revalidate(key, entry, now)

    def _fetch_new(self, key: str) -> CacheEntry:
        result = self._fetch(key)
        if result is None or not result.success:
            self._record(key, "fetch_failed", status_code=_status(result))
            return CacheEntry.empty()

        entry = self._to_entry(key, result, self.clock())
        self.store.set(key, entry)
        self._record(key, "miss")
        return entry

    def _revalidate(self, key: str, entry: CacheEntry, now: datetime) -> CacheEntry:
        result = self._fetch(key, if_modified_since=entry.cached_at)

        if result is not None and result.not_modified:
            entry = CacheEntry(
                raw_body=entry.raw_body,
                resolved_body=entry.resolved_body,
                decoded_body=entry.decoded_body,
                cached_at=max(now, entry.cached_at),
            )
            self.store.set(key, entry)
            self._record(key, "not_modified")
            return entry

        if result is not None and result.success:
            new_entry = self._to_entry(key, result, max(now, entry.cached_at))
            self.store.set(key, new_entry)
            self._record(key, "refreshed")
            return new_entry

        self._record(key, "stale", status_code=_status(result))
        return entry

    def _fetch(
        self, key: str, if_modified_since: datetime | None = None
    ) -> FetchResult | None:
        try:
            return self.fetcher.get(key, if_modified_since=if_modified_since)
        except NetworkError as e:
            self.logger.warning(f"Fetch failed for {key}: {e}", url=key, error=str(e))
            return None

    def _to_entry(self, key: str, result: FetchResult, cached_at: datetime) -> CacheEntry:
        resolver = self.resolver_factory(key)
        return CacheEntry(
            raw_body=result.content,
            resolved_body=resolver.resolve(result.text),
            decoded_body=result.text,
            cached_at=cached_at,
        )

    def _record(self, key: str, cache_status: str, **kwargs) -> None:
        self.stats[cache_status] += 1
        self.logger.log_cache_event(key, cache_status, **kwargs)


def _status(result: FetchResult | None) -> int | None:
    return result.status_code if result is not None else None


def _normalize_escapes(text: str) -> str:
    """Upper-case percent escapes and decode the ones for unreserved characters."""

    def replace(match: re.Match) -> str:
        char = chr(int(match.group(1), 16))
        if char in _UNRESERVED:
            return char
        return "%" + match.group(1).upper()

    return _ESCAPE.sub(replace, text)
