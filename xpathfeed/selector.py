"""Selector compilation: raw XPath or CSS selectors to XPath expressions."""

import re

import cssselect
from lxml import etree

from .errors import SelectorSyntaxError

_translator = cssselect.HTMLTranslator()

# A trailing XPath step allowed after a CSS selector, e.g. "a/@href".
_TRAILING_STEP = re.compile(r"^(?:@[\w:.-]+|text\(\))$")


def is_xpath(expr: str) -> bool:
    """Return True if ``expr`` is already an XPath expression."""
    return expr.startswith("/") or expr.startswith("id(")


def _split_trailing_step(expr: str) -> tuple[str, str]:
    css, sep, step = expr.rpartition("/")
    if not sep or not _TRAILING_STEP.match(step.strip()):
        return expr, ""
    # The slash must not sit inside an attribute selector.
    if css.count("[") != css.count("]"):
        return expr, ""
    return css.strip(), "/" + step.strip()


def compile_selector(expr: str | bytes) -> str:
    """Normalize a selector into an XPath expression.

    Expressions starting with ``/`` or ``id(`` are passed through. Anything
    else is read as a CSS selector, optionally followed by one trailing
    ``/@attr`` or ``/text()`` step.

    Args:
        expr: XPath expression or CSS selector

    Returns:
        XPath expression as text

    Raises:
        SelectorSyntaxError: If the CSS selector cannot be parsed
    """
    if isinstance(expr, bytes):
        expr = expr.decode("utf-8")
    expr = expr.strip()
    if not expr:
        raise SelectorSyntaxError(expr, "empty selector")
    if is_xpath(expr):
        return expr

    css, step = _split_trailing_step(expr)
    try:
        selectors = cssselect.parse(css)
        return " | ".join(
            _translator.selector_to_xpath(selector, prefix="//") + step
            for selector in selectors
        )
    except cssselect.SelectorError as e:
        raise SelectorSyntaxError(expr, str(e)) from e


def select(context, expr: str) -> list:
    """Evaluate ``expr`` against an lxml node.

    Args:
        context: lxml element (or tree) to evaluate against
        expr: XPath expression or CSS selector

    Returns:
        Matched nodes in document order. Non node-set results (numbers,
        strings, booleans) come back as a single-element list.

    Raises:
        SelectorSyntaxError: If the selector cannot be compiled or evaluated
    """
    xpath = compile_selector(expr)
    try:
        result = context.xpath(xpath)
    except etree.XPathError as e:
        raise SelectorSyntaxError(expr, str(e)) from e

    if isinstance(result, list):
        return result
    return [result]
