"""
Fallback selector chains.

A SelectorSet is an ordered list of alternative queries for one logical UI
concept ("cart icon", "add to cart button"). The target site renders the same
concept with different markup across layouts and locales, so no single query is
authoritative: queries are tried in order and the first one that matches at
least one element wins.

Selector sets are plain data. They can be built from the comma-separated
selector lists the page objects declare, including the ``:has-text("...")``
pseudo-class, which is split off into a text filter so the remaining CSS can be
evaluated by ``document.querySelectorAll``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, replace
from typing import Iterator

_HAS_TEXT_RE = re.compile(r""":has-text\(\s*(['"])(?P<text>.*?)\1\s*\)""")


@dataclass(frozen=True)
class Query:
    """A single element query: CSS plus optional text filter and index."""

    css: str
    has_text: str | None = None
    nth: int | None = None

    @classmethod
    def parse(cls, selector: str) -> Query:
        """Parse one selector, extracting a ``:has-text("...")`` filter."""
        selector = selector.strip()
        if not selector:
            raise ValueError("Empty selector")

        match = _HAS_TEXT_RE.search(selector)
        if match is None:
            return cls(css=selector)

        css = (selector[: match.start()] + selector[match.end():]).strip() or "*"
        return cls(css=css, has_text=match.group("text"))

    @property
    def needs_marking(self) -> bool:
        """True when the match cannot be addressed by the CSS alone."""
        return self.has_text is not None or self.nth is not None

    def describe(self) -> str:
        text = self.css
        if self.has_text is not None:
            text += f' :has-text("{self.has_text}")'
        if self.nth is not None:
            text += f" >> nth={self.nth}"
        return text


def split_selector_list(selectors: str) -> list[str]:
    """Split a comma-separated selector list at top level.

    Commas inside brackets, parentheses or quotes belong to the selector.
    """
    parts: list[str] = []
    depth = 0
    quote: str | None = None
    current: list[str] = []

    for char in selectors:
        if quote:
            current.append(char)
            if char == quote:
                quote = None
            continue

        if char in ("'", '"'):
            quote = char
        elif char in "([":
            depth += 1
        elif char in ")]":
            depth = max(0, depth - 1)
        elif char == "," and depth == 0:
            part = "".join(current).strip()
            if part:
                parts.append(part)
            current = []
            continue

        current.append(char)

    tail = "".join(current).strip()
    if tail:
        parts.append(tail)
    return parts


@dataclass(frozen=True)
class SelectorSet:
    """Ordered alternative queries for one logical UI concept."""

    name: str
    queries: tuple[Query, ...]

    def __post_init__(self) -> None:
        if not self.queries:
            raise ValueError(f"SelectorSet '{self.name}' has no queries")

    @classmethod
    def of(cls, name: str, *selectors: str | Query) -> SelectorSet:
        """Build a set from selector lists and/or prepared queries."""
        queries: list[Query] = []
        for selector in selectors:
            if isinstance(selector, Query):
                queries.append(selector)
            else:
                queries.extend(Query.parse(part) for part in split_selector_list(selector))
        return cls(name=name, queries=tuple(queries))

    def __iter__(self) -> Iterator[Query]:
        return iter(self.queries)

    def __len__(self) -> int:
        return len(self.queries)

    def nth(self, index: int) -> SelectorSet:
        """Narrow every query to its ``index``-th match."""
        if index < 0:
            raise ValueError(f"index must be >= 0, got {index}")
        return SelectorSet(
            name=f"{self.name}[{index}]",
            queries=tuple(replace(q, nth=index) for q in self.queries),
        )

    def with_text(self, text: str) -> SelectorSet:
        """Narrow every query to elements whose text contains ``text``."""
        return SelectorSet(
            name=f"{self.name}({text!r})",
            queries=tuple(replace(q, has_text=text) for q in self.queries),
        )

    def within(self, container: SelectorSet) -> SelectorSet:
        """Scope every query under every container query (descendant combinator)."""
        scoped = tuple(
            replace(inner, css=f"{outer.css} {inner.css}")
            for outer in container.queries
            for inner in self.queries
        )
        return SelectorSet(name=f"{container.name} > {self.name}", queries=scoped)

    def describe(self) -> str:
        return " | ".join(q.describe() for q in self.queries)
