"""The XPathFeed pipeline: fetch, parse, extract and render one page."""

from __future__ import annotations

import warnings
from collections.abc import Mapping

from lxml import etree

from .cache import ContentCache, canonical_url
from .document import ParsedDocument, parse_document
from .errors import DocumentReleasedError, SelectorSyntaxError
from .extractor import ItemExtractor
from .logging_config import create_execution_logger
from .models import CacheEntry, ExtractedItem, FeedSource
from .rss import FeedBuilder, normalize_title
from .search import SearchEngine


class XPathFeed:
    """Turns one HTML page into an RSS feed.

    Every result (cache entry, document, item list, title, search result and
    feed) is computed at most once per instance. The parsed document is an
    owned resource: release it with ``dispose()`` or use the instance as a
    context manager. Instances are not safe to share between threads.
    """

    def __init__(
        self,
        source: FeedSource,
        cache: ContentCache,
        execution_id: str | None = None,
    ):
        """Initialize the pipeline.

        Args:
            source: Page URL and selectors
            cache: Content cache (and through it, the fetcher) to read from
            execution_id: Execution ID for logging context
        """
        self.source = source
        self.cache = cache
        self.execution_id = execution_id
        self.logger = create_execution_logger("pipeline", execution_id)
        self.uri = canonical_url(source.url)

        self._cache_entry: CacheEntry | None = None
        self._document: ParsedDocument | None = None
        self._list: list[ExtractedItem] | None = None
        self._title: str | None = None
        self._search: list[etree._Element] | None = None
        self._feed: str | None = None
        self._disposed = False

    @classmethod
    def from_query(
        cls,
        params: Mapping[str, str] | None,
        cache: ContentCache,
        execution_id: str | None = None,
    ) -> "XPathFeed":
        """Build a pipeline from request parameters (see FeedSource.PARAMS)."""
        return cls(FeedSource.from_query(params), cache, execution_id=execution_id)

    @property
    def cache_entry(self) -> CacheEntry:
        if self._cache_entry is None:
            self._cache_entry = self.cache.get(self.uri)
        return self._cache_entry

    @property
    def raw_body(self) -> bytes:
        return self.cache_entry.raw_body or b""

    @property
    def resolved_body(self) -> str:
        return self.cache_entry.resolved_body or ""

    @property
    def decoded_body(self) -> str:
        return self.cache_entry.decoded_body or ""

    @property
    def document(self) -> ParsedDocument:
        """The parsed page, built on first access."""
        if self._document is None:
            if self._disposed:
                raise DocumentReleasedError("Pipeline has already been disposed")
            self._document = parse_document(
                self.decoded_body, execution_id=self.execution_id
            )
        return self._document

    def list(self) -> list[ExtractedItem]:
        """Items matched by the list selector, in document order."""
        if self._list is None:
            extractor = ItemExtractor(
                self.source, self.uri, execution_id=self.execution_id
            )
            self._list = extractor.extract(self.document)
        return self._list

    def title(self) -> str:
        """The page title, or the configured URL when there is none."""
        if self._title is None:
            title = ""
            try:
                nodes = self.document.query("title")
                if nodes and hasattr(nodes[0], "text_content"):
                    title = normalize_title(nodes[0].text_content())
            except SelectorSyntaxError as e:
                self.logger.warning(f"Title lookup failed: {e}", url=self.uri)
            self._title = title or self.source.url
        return self._title

    def search(self) -> list[etree._Element]:
        """Elements whose text contains the search word.

        The elements belong to the parsed document and are only valid
        until ``dispose()``.
        """
        if self._search is None:
            if not self.source.search_word:
                return []
            engine = SearchEngine(self.source.search_word, execution_id=self.execution_id)
            self._search = engine.search(self.document)
        return self._search

    def feed(self) -> str:
        """The RSS 2.0 document for this page."""
        items = self.list()
        if self._feed is None:
            builder = FeedBuilder(title=self.title(), link=self.source.url)
            self._feed = builder.build(items)
            self.logger.info(
                "Feed built", url=self.uri, items_count=len(items)
            )
        return self._feed

    def dispose(self) -> None:
        """Release the parsed document. Later calls do nothing."""
        if self._disposed:
            return
        self._disposed = True
        if self._document is not None:
            self._document.release()
            self._document = None
            self._search = None
            self.logger.debug("Document released", url=self.uri)

    def __enter__(self) -> "XPathFeed":
        return self

    def __exit__(self, *exc_info) -> None:
        self.dispose()

    def __del__(self):
        document = getattr(self, "_document", None)
        if document is not None and not document.released:
            warnings.warn(
                f"XPathFeed for {self.uri} was not disposed",
                ResourceWarning,
                stacklevel=2,
            )
