"""Data models for XPathFeed."""

import base64
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime

from dateutil import parser as date_parser


@dataclass(frozen=True)
class FeedSource:
    """Per-request configuration: the page to read and the selectors to apply."""

    url: str = ""
    search_word: str = ""
    list_selector: str = ""
    title_selector: str = ""
    link_selector: str = ""
    image_selector: str = ""

    # Request parameter names, mapped to the fields above in order.
    PARAMS = (
        "url",
        "search_word",
        "xpath_list",
        "xpath_item_title",
        "xpath_item_link",
        "xpath_item_image",
    )

    @classmethod
    def from_query(cls, params: Mapping[str, str] | None) -> "FeedSource":
        """Build a FeedSource from request parameters.

        Missing or empty parameters become empty strings.
        """
        params = params or {}
        values = [(params.get(name) or "").strip() for name in cls.PARAMS]
        return cls(*values)


@dataclass(frozen=True)
class ExtractedItem:
    """A single item pulled out of the page."""

    title: str = ""
    link: str = ""
    image: str = ""

    def to_dict(self) -> dict[str, str]:
        return {"title": self.title, "link": self.link, "image": self.image}


@dataclass
class FetchResult:
    """Outcome of one HTTP GET."""

    status_code: int
    content: bytes
    text: str
    url: str
    headers: dict[str, str] = field(default_factory=dict)

    @property
    def success(self) -> bool:
        return 200 <= self.status_code < 300

    @property
    def not_modified(self) -> bool:
        return self.status_code == 304


@dataclass
class CacheEntry:
    """Cached page bodies stored under a canonical URL."""

    raw_body: bytes = b""
    resolved_body: str = ""
    decoded_body: str = ""
    cached_at: datetime | None = None

    @classmethod
    def empty(cls) -> "CacheEntry":
        """Entry returned when nothing could be fetched or cached."""
        return cls()

    @property
    def is_empty(self) -> bool:
        return self.cached_at is None

    def to_dict(self) -> dict[str, str]:
        """Serialize for a JSON or DynamoDB backed store."""
        return {
            "raw_body": base64.b64encode(self.raw_body).decode("ascii"),
            "resolved_body": self.resolved_body,
            "decoded_body": self.decoded_body,
            "cached_at": self.cached_at.isoformat() if self.cached_at else "",
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, str]) -> "CacheEntry":
        """Rebuild an entry written by ``to_dict``."""
        cached_at = data.get("cached_at") or ""
        return cls(
            raw_body=base64.b64decode(data.get("raw_body") or ""),
            resolved_body=data.get("resolved_body") or "",
            decoded_body=data.get("decoded_body") or "",
            cached_at=date_parser.isoparse(cached_at) if cached_at else None,
        )
