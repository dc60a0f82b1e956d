"""Item extraction: list selector matches turned into ExtractedItems."""

import copy

from lxml import etree

from .document import ParsedDocument
from .errors import SelectorSyntaxError
from .logging_config import create_execution_logger
from .models import ExtractedItem, FeedSource
from .resolver import absolutize, is_link_attribute
from .selector import select

# Field selectors used when the caller leaves one unset, in evaluation order.
DEFAULT_SELECTORS = (
    ("image", "//img/@src"),
    ("link", "//a/@href"),
    ("title", "//a"),
)


def extract_value(node, key: str, base_uri: str) -> str:
    """Convert a matched node into a plain string.

    Link-bearing attributes (``a/@href``, ``img/@src``, ...) are resolved
    against ``base_uri``; other attributes come back verbatim, elements give
    their text content.

    Args:
        node: An XPath result (element, attribute/text string, or scalar)
        key: Field the value is extracted for
        base_uri: URI that relative links are resolved against

    Returns:
        The extracted value, or an empty string
    """
    if getattr(node, "is_attribute", False):
        parent = node.getparent()
        tag = parent.tag if parent is not None and isinstance(parent.tag, str) else ""
        if is_link_attribute(tag, node.attrname):
            return absolutize(str(node), base_uri)
        return str(node)
    if hasattr(node, "text_content"):
        return str(node.text_content())
    if isinstance(node, str):
        return str(node)
    return ""


class ItemExtractor:
    """Applies a FeedSource's selectors to a parsed document."""

    def __init__(
        self, source: FeedSource, base_uri: str, execution_id: str | None = None
    ):
        self.source = source
        self.base_uri = base_uri
        self.logger = create_execution_logger("item_extractor", execution_id)

    def field_selector(self, key: str) -> str:
        """Return the caller's selector for ``key`` or the default one."""
        custom = getattr(self.source, f"{key}_selector", "")
        return custom or dict(DEFAULT_SELECTORS)[key]

    def extract(self, document: ParsedDocument) -> list[ExtractedItem]:
        """Extract one item per list-selector match, in document order."""
        if not self.source.list_selector:
            self.logger.info("No list selector configured", url=self.base_uri)
            return []

        try:
            nodes = document.query(self.source.list_selector)
        except SelectorSyntaxError as e:
            self.logger.warning(
                f"List selector failed: {e}",
                url=self.base_uri,
                selector=self.source.list_selector,
            )
            return []

        items = []
        for node in nodes:
            if not isinstance(node, etree._Element):
                continue
            items.append(self.extract_item(node))

        self.logger.info(
            f"Extracted {len(items)} items",
            url=self.base_uri,
            selector=self.source.list_selector,
            items_count=len(items),
        )
        return items

    def extract_item(self, node: etree._Element) -> ExtractedItem:
        """Build an item from one list match.

        The match is cloned into its own tree so that field selectors such
        as ``//a`` only see this item's content.
        """
        subtree = copy.deepcopy(node)
        subtree.tail = None
        values = {}
        for key, _ in DEFAULT_SELECTORS:
            values[key] = self._extract_field(subtree, key)
        subtree.clear()
        return ExtractedItem(**values)

    def _extract_field(self, subtree: etree._Element, key: str) -> str:
        selector = self.field_selector(key)
        try:
            matches = select(subtree, selector)
        except SelectorSyntaxError as e:
            self.logger.warning(
                f"Field selector for {key} failed: {e}",
                url=self.base_uri,
                selector=selector,
            )
            return ""
        if not matches:
            return ""
        try:
            return extract_value(matches[0], key, self.base_uri)
        except Exception as e:
            self.logger.warning(
                f"Value extraction for {key} failed: {e}",
                url=self.base_uri,
                selector=selector,
                error=str(e),
            )
            return ""
