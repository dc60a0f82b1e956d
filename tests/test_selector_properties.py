"""Property-based tests for selector compilation."""

from hypothesis import given
from hypothesis import strategies as st

from xpathfeed.selector import compile_selector


class TestSelectorProperties:
    """Property-based tests for compile_selector."""

    @given(st.text(max_size=50))
    def test_xpath_is_passed_through_property(self, tail):
        """Any expression starting with "/" is treated as XPath and kept as is."""
        expr = "/" + tail
        assert compile_selector(expr) == expr.strip()

    @given(st.from_regex(r"[a-z][a-z0-9]{0,10}", fullmatch=True))
    def test_type_selector_property(self, name):
        """A bare element name becomes a descendant step from the root."""
        assert compile_selector(name) == f"//{name}"

    @given(
        st.from_regex(r"[a-z][a-z0-9]{0,10}", fullmatch=True),
        st.from_regex(r"[a-z][a-z0-9-]{0,10}", fullmatch=True),
    )
    def test_trailing_attribute_step_property(self, name, attribute):
        """A CSS selector followed by /@attr selects that attribute."""
        assert compile_selector(f"{name}/@{attribute}") == f"//{name}/@{attribute}"
