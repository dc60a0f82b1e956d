"""RSS 2.0 feed assembly for XPathFeed."""

import re
from collections.abc import Iterable

from lxml import etree

from .models import ExtractedItem

RSS_VERSION = "2.0"
ENCLOSURE_TYPE = "image"

_WHITESPACE = re.compile(r"\s+")
_INVALID_XML_CHARS = re.compile("[\x00-\x08\x0b\x0c\x0e-\x1f\ufffe\uffff]")


def normalize_title(text: str | None) -> str:
    """Collapse whitespace runs to a single space and trim the ends."""
    if not text:
        return ""
    return _WHITESPACE.sub(" ", text).strip()


class FeedBuilder:
    """Builds an RSS 2.0 document from a channel and extracted items."""

    def __init__(self, title: str, link: str):
        """Initialize FeedBuilder with channel metadata.

        Args:
            title: Channel title
            link: Channel link (the page the feed was built from)
        """
        self.title = title
        self.link = link

    def build(self, items: Iterable[ExtractedItem]) -> str:
        """Serialize the channel and its items.

        Items get a permalink guid when they have a link, and an image
        enclosure only when they have an image.

        Args:
            items: Extracted items in feed order

        Returns:
            The RSS document as text
        """
        rss = etree.Element("rss", version=RSS_VERSION)
        channel = etree.SubElement(rss, "channel")
        etree.SubElement(channel, "title").text = _xml_text(self.title)
        etree.SubElement(channel, "link").text = _xml_text(self.link)
        etree.SubElement(channel, "description").text = _xml_text(self.title)

        for item in items:
            channel.append(self._build_item(item))

        return etree.tostring(
            rss, encoding="UTF-8", xml_declaration=True, pretty_print=True
        ).decode("utf-8")

    def _build_item(self, item: ExtractedItem) -> etree._Element:
        element = etree.Element("item")
        etree.SubElement(element, "title").text = _xml_text(item.title)
        if item.link:
            etree.SubElement(element, "link").text = _xml_text(item.link)
            guid = etree.SubElement(element, "guid", isPermaLink="true")
            guid.text = _xml_text(item.link)
        if item.image:
            etree.SubElement(
                element, "enclosure", url=_xml_text(item.image), type=ENCLOSURE_TYPE
            )
        return element


def _xml_text(value: str) -> str:
    # lxml refuses control characters that XML 1.0 cannot carry.
    return _INVALID_XML_CHARS.sub("", value)
