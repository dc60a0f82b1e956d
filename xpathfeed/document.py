"""HTML tree parsing and the lifecycle of parsed documents."""

from lxml import etree, html

from .errors import DocumentReleasedError
from .logging_config import create_execution_logger
from .selector import select


class ParsedDocument:
    """A parsed HTML tree that must be released exactly once.

    Use it as a context manager, or call ``release()`` explicitly. Nodes
    returned by ``query()`` are only valid until the document is released.
    """

    def __init__(self, root: etree._Element):
        self._root = root
        self._released = False

    @property
    def released(self) -> bool:
        return self._released

    @property
    def root(self) -> etree._Element:
        if self._released:
            raise DocumentReleasedError("Document has already been released")
        return self._root

    def query(self, expr: str) -> list:
        """Evaluate an XPath expression or CSS selector against the root."""
        return select(self.root, expr)

    def release(self) -> None:
        """Free the tree. Raises DocumentReleasedError if called twice."""
        if self._released:
            raise DocumentReleasedError("Document has already been released")
        self._root.clear()
        self._root = None
        self._released = True

    def __enter__(self) -> "ParsedDocument":
        return self

    def __exit__(self, *exc_info) -> None:
        if not self._released:
            self.release()


def parse_document(text: str, execution_id: str | None = None) -> ParsedDocument:
    """Parse HTML text into a ParsedDocument.

    Parsing is lenient: broken markup gives a partial tree and empty or
    unparseable input gives an empty ``<html>`` document.

    Args:
        text: Decoded page markup
        execution_id: Execution ID for logging context

    Returns:
        ParsedDocument owning the new tree
    """
    logger = create_execution_logger("tree_parser", execution_id)
    parser = html.HTMLParser(encoding="utf-8")

    # Encoding to bytes lets lxml accept pages with an encoding declaration.
    data = (text or "").encode("utf-8")
    try:
        root = html.document_fromstring(data, parser=parser)
    except (etree.LxmlError, ValueError) as e:
        logger.warning(f"Could not parse document, using empty tree: {e}", error=str(e))
        root = html.Element("html")

    logger.debug("Parsed document", root_tag=root.tag, node_count=len(root))
    return ParsedDocument(root)
