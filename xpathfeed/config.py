"""Configuration management for XPathFeed."""

import os
from dataclasses import dataclass
from datetime import timedelta

from .fetcher import DEFAULT_USER_AGENT
from .store import DynamoDBCacheStore, FileCacheStore, MemoryCacheStore

CACHE_BACKENDS = ("memory", "file", "dynamodb")


@dataclass
class FetcherConfig:
    """Configuration for the HTTP fetcher."""

    timeout: int = 30
    user_agent: str = DEFAULT_USER_AGENT


@dataclass
class CacheConfig:
    """Configuration for the content cache and its store."""

    ttl_seconds: int = 600
    backend: str = "memory"
    cache_root: str = "/tmp/filecache"
    namespace: str = "xpathfeed"
    dynamodb_table: str = "xpathfeed-cache"
    aws_region: str = "us-east-1"

    @property
    def ttl(self) -> timedelta:
        return timedelta(seconds=self.ttl_seconds)


def _int_from_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}")
    if value < 0:
        raise ValueError(f"{name} must not be negative, got {value}")
    return value


class Config:
    """Main configuration manager."""

    def __init__(self):
        """Initialize configuration from environment variables."""
        self.cache_backend = os.getenv("XPATHFEED_CACHE_BACKEND", "memory").lower()
        self.cache_root = os.getenv("XPATHFEED_CACHE_ROOT", "/tmp/filecache")
        self.cache_namespace = os.getenv("XPATHFEED_CACHE_NAMESPACE", "xpathfeed")
        self.dynamodb_table = os.getenv("XPATHFEED_DYNAMODB_TABLE", "xpathfeed-cache")
        self.aws_region = os.getenv(
            "CURRENT_AWS_REGION", os.getenv("AWS_DEFAULT_REGION", "us-east-1")
        )
        self.user_agent = os.getenv("XPATHFEED_USER_AGENT", DEFAULT_USER_AGENT)
        self.log_level = os.getenv("LOG_LEVEL", "INFO")

    def get_fetcher_config(self) -> FetcherConfig:
        """Get HTTP fetcher configuration."""
        return FetcherConfig(
            timeout=_int_from_env("XPATHFEED_HTTP_TIMEOUT", 30),
            user_agent=self.user_agent,
        )

    def get_cache_config(self) -> CacheConfig:
        """Get content cache configuration."""
        if self.cache_backend not in CACHE_BACKENDS:
            raise ValueError(
                f"Unknown cache backend {self.cache_backend!r}, "
                f"expected one of {', '.join(CACHE_BACKENDS)}"
            )
        return CacheConfig(
            ttl_seconds=_int_from_env("XPATHFEED_CACHE_TTL", 600),
            backend=self.cache_backend,
            cache_root=self.cache_root,
            namespace=self.cache_namespace,
            dynamodb_table=self.dynamodb_table,
            aws_region=self.aws_region,
        )

    def build_cache_store(self, execution_id: str | None = None):
        """Create the configured cache store backend."""
        cache_config = self.get_cache_config()
        if cache_config.backend == "file":
            return FileCacheStore(
                cache_config.cache_root,
                cache_config.namespace,
                execution_id=execution_id,
            )
        if cache_config.backend == "dynamodb":
            return DynamoDBCacheStore(
                cache_config.dynamodb_table,
                cache_config.aws_region,
                execution_id=execution_id,
            )
        return MemoryCacheStore()
