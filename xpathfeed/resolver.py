"""Rewrite relative links in raw HTML to absolute URIs."""

from urllib.parse import urljoin, urlparse

from bs4 import BeautifulSoup

# Element name -> attributes whose values are URLs.
LINK_ATTRIBUTES: dict[str, frozenset[str]] = {
    "a": frozenset({"href"}),
    "applet": frozenset({"archive", "codebase", "code"}),
    "area": frozenset({"href"}),
    "base": frozenset({"href"}),
    "bgsound": frozenset({"src"}),
    "blockquote": frozenset({"cite"}),
    "body": frozenset({"background"}),
    "del": frozenset({"cite"}),
    "embed": frozenset({"pluginspage", "src"}),
    "form": frozenset({"action"}),
    "frame": frozenset({"src", "longdesc"}),
    "iframe": frozenset({"src", "longdesc"}),
    "ilayer": frozenset({"background"}),
    "img": frozenset({"src", "lowsrc", "longdesc", "usemap"}),
    "input": frozenset({"src", "usemap"}),
    "ins": frozenset({"cite"}),
    "isindex": frozenset({"action"}),
    "head": frozenset({"profile"}),
    "layer": frozenset({"background", "src"}),
    "link": frozenset({"href"}),
    "object": frozenset({"classid", "codebase", "data", "archive", "usemap"}),
    "q": frozenset({"cite"}),
    "script": frozenset({"src", "for"}),
    "table": frozenset({"background"}),
    "td": frozenset({"background"}),
    "th": frozenset({"background"}),
    "tr": frozenset({"background"}),
    "xmp": frozenset({"href"}),
}

# Schemes whose values are not locations relative to a page.
OPAQUE_SCHEMES = ("mailto", "javascript", "data", "tel")


def is_link_attribute(tag: str, attribute: str) -> bool:
    """Return True if ``tag``/``attribute`` holds a URL."""
    return attribute.lower() in LINK_ATTRIBUTES.get(tag.lower(), frozenset())


def absolutize(value: str, base: str) -> str:
    """Resolve ``value`` against ``base`` unless it must be kept as is."""
    value = value.strip()
    if not value or value.startswith("#"):
        return value
    try:
        if urlparse(value).scheme.lower() in OPAQUE_SCHEMES:
            return value
        return urljoin(base, value)
    except ValueError:
        # Unparseable (e.g. an unclosed IPv6 bracket); leave it untouched.
        return value


class LinkResolver:
    """Rewrites link-bearing attribute values in markup against a base URI."""

    def __init__(self, base: str):
        self.base = base

    def resolve(self, html: str) -> str:
        """Return ``html`` with relative link attributes made absolute.

        Args:
            html: Raw page markup

        Returns:
            Markup with every link-bearing attribute absolute
        """
        if not html:
            return ""

        soup = BeautifulSoup(html, "html.parser")
        for tag in soup.find_all(list(LINK_ATTRIBUTES)):
            for attribute in LINK_ATTRIBUTES[tag.name]:
                value = tag.get(attribute)
                if isinstance(value, str) and value:
                    tag[attribute] = absolutize(value, self.base)

        return str(soup)
