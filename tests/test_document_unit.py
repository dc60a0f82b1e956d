"""Unit tests for TreeParser and ParsedDocument lifecycle."""

import pytest

from xpathfeed.document import ParsedDocument, parse_document
from xpathfeed.errors import DocumentReleasedError


class TestParsedDocumentUnit:
    """Unit tests for lenient parsing and explicit release."""

    def test_parses_well_formed_html(self):
        document = parse_document("<html><body><p>One</p><p>Two</p></body></html>")
        assert [p.text for p in document.query("p")] == ["One", "Two"]
        document.release()

    def test_malformed_markup_yields_partial_tree(self):
        document = parse_document("<ul><li>One<li>Two</ul><div><span>open")
        assert len(document.query("li")) == 2
        assert len(document.query("span")) == 1
        document.release()

    def test_empty_input_yields_empty_tree(self):
        document = parse_document("")
        assert document.root.tag == "html"
        assert document.query("li") == []
        document.release()

    def test_none_input_yields_empty_tree(self):
        document = parse_document(None)
        assert document.query("//a") == []
        document.release()

    def test_encoding_declaration_is_accepted(self):
        document = parse_document(
            '<?xml version="1.0" encoding="utf-8"?>'
            "<html><body><p>Café</p></body></html>"
        )
        assert document.query("p")[0].text_content() == "Café"
        document.release()

    def test_release_twice_raises(self):
        document = parse_document("<p>x</p>")
        document.release()
        assert document.released
        with pytest.raises(DocumentReleasedError):
            document.release()

    def test_query_after_release_raises(self):
        document = parse_document("<p>x</p>")
        document.release()
        with pytest.raises(DocumentReleasedError):
            document.query("p")

    def test_context_manager_releases(self):
        with parse_document("<p>x</p>") as document:
            assert isinstance(document, ParsedDocument)
            assert not document.released
        assert document.released

    def test_context_manager_after_manual_release(self):
        with parse_document("<p>x</p>") as document:
            document.release()
        assert document.released
