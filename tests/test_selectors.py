"""Tests for selector sets and selector list parsing."""

from __future__ import annotations

import pytest

from owl_harness.selectors import Query, SelectorSet, split_selector_list


class TestSplitSelectorList:
    """Test top-level comma splitting."""

    def test_simple_list(self) -> None:
        assert split_selector_list(".a, .b ,#c") == [".a", ".b", "#c"]

    def test_commas_inside_attribute_values_are_kept(self) -> None:
        parts = split_selector_list('input[placeholder*="a,b"], .x')
        assert parts == ['input[placeholder*="a,b"]', ".x"]

    def test_commas_inside_parentheses_are_kept(self) -> None:
        parts = split_selector_list('button:has-text("Ok, thanks"), :is(.a, .b)')
        assert parts == ['button:has-text("Ok, thanks")', ":is(.a, .b)"]

    def test_empty_parts_dropped(self) -> None:
        assert split_selector_list(" , .a,, ") == [".a"]


class TestQuery:
    """Test single query parsing."""

    def test_plain_css(self) -> None:
        query = Query.parse("  .cart-count ")
        assert query == Query(css=".cart-count")
        assert query.needs_marking is False

    def test_has_text_is_split_off(self) -> None:
        query = Query.parse('button:has-text("Принять")')
        assert query.css == "button"
        assert query.has_text == "Принять"
        assert query.needs_marking is True

    def test_bare_has_text_matches_any_element(self) -> None:
        query = Query.parse(":has-text('Ok')")
        assert query.css == "*"
        assert query.has_text == "Ok"

    def test_empty_selector_rejected(self) -> None:
        with pytest.raises(ValueError):
            Query.parse("   ")

    def test_describe(self) -> None:
        query = Query(css="a", has_text="Next", nth=2)
        assert query.describe() == 'a :has-text("Next") >> nth=2'


class TestSelectorSet:
    """Test SelectorSet construction and narrowing."""

    def test_of_preserves_order(self) -> None:
        selectors = SelectorSet.of("cart", ".cart-link, [href*=\"cart\"]", Query(css=".shopping-cart"))
        assert [q.css for q in selectors] == [".cart-link", '[href*="cart"]', ".shopping-cart"]
        assert len(selectors) == 3

    def test_empty_set_rejected(self) -> None:
        with pytest.raises(ValueError, match="no queries"):
            SelectorSet.of("nothing", " , ")

    def test_nth_narrows_every_query(self) -> None:
        items = SelectorSet.of("items", ".a, .b").nth(1)
        assert items.name == "items[1]"
        assert all(q.nth == 1 for q in items)

    def test_negative_index_rejected(self) -> None:
        with pytest.raises(ValueError):
            SelectorSet.of("items", ".a").nth(-1)

    def test_with_text(self) -> None:
        links = SelectorSet.of("links", ".pagination a").with_text("2")
        assert links.queries == (Query(css=".pagination a", has_text="2"),)

    def test_within_scopes_every_combination(self) -> None:
        close = SelectorSet.of("close", ".close, .btn-close")
        popup = SelectorSet.of("popup", ".popup-a, .popup-b")
        scoped = close.within(popup)
        assert [q.css for q in scoped] == [
            ".popup-a .close",
            ".popup-a .btn-close",
            ".popup-b .close",
            ".popup-b .btn-close",
        ]

    def test_selector_sets_are_hashable_data(self) -> None:
        assert SelectorSet.of("x", ".a") == SelectorSet.of("x", ".a")
        assert hash(SelectorSet.of("x", ".a")) == hash(SelectorSet.of("x", ".a"))

    def test_describe(self) -> None:
        assert SelectorSet.of("x", ".a, .b").describe() == ".a | .b"
