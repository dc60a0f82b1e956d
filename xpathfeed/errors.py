"""Exception hierarchy for XPathFeed."""


class XPathFeedError(Exception):
    """Base class for all XPathFeed errors."""


class NetworkError(XPathFeedError):
    """Raised when a page cannot be fetched (transport fault or bad response)."""

    def __init__(self, url: str, message: str, status_code: int | None = None):
        super().__init__(f"{message} ({url})")
        self.url = url
        self.status_code = status_code


class SelectorSyntaxError(XPathFeedError):
    """Raised when a CSS selector or XPath expression cannot be compiled or evaluated."""

    def __init__(self, selector: str, message: str):
        super().__init__(f"Invalid selector {selector!r}: {message}")
        self.selector = selector


class StorageError(XPathFeedError):
    """Raised when the cache store cannot be read or written."""


class DocumentReleasedError(XPathFeedError):
    """Raised when a parsed document is used or released after release."""
