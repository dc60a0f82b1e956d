"""Free-text search over a parsed document."""

from lxml import etree

from .document import ParsedDocument
from .errors import SelectorSyntaxError
from .logging_config import create_execution_logger


def xpath_literal(text: str) -> str:
    """Quote ``text`` as an XPath 1.0 string literal."""
    if "'" not in text:
        return f"'{text}'"
    if '"' not in text:
        return f'"{text}"'
    parts = text.split("'")
    return "concat(" + ", \"'\", ".join(f"'{part}'" for part in parts) + ")"


class SearchEngine:
    """Finds the elements whose own text contains a word."""

    def __init__(self, word: str, execution_id: str | None = None):
        self.word = word
        self.logger = create_execution_logger("search", execution_id)

    @property
    def xpath(self) -> str:
        return f"//text()[contains(., {xpath_literal(self.word)})]/.."

    def search(self, document: ParsedDocument) -> list[etree._Element]:
        """Return the parent elements of matching text nodes.

        With no search word configured this returns an empty list.
        """
        if not self.word:
            return []

        try:
            nodes = document.query(self.xpath)
        except SelectorSyntaxError as e:
            self.logger.warning(f"Search failed: {e}", selector=self.xpath)
            return []

        results = [node for node in nodes if isinstance(node, etree._Element)]
        self.logger.info(
            f"Search matched {len(results)} elements", results_count=len(results)
        )
        return results
