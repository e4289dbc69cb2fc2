"""
Tag expressions for scenario selection.

Grammar (case-insensitive keywords, usual precedence ``not`` > ``and`` > ``or``):

    expr    := term ("or" term)*
    term    := factor ("and" factor)*
    factor  := "not" factor | "(" expr ")" | TAG
    TAG     := "@" name

An empty expression matches every scenario.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable

_TOKEN_RE = re.compile(r"\s*(\(|\)|@[^\s()]+|[A-Za-z]+)")

Predicate = Callable[[frozenset[str]], bool]


class TagExpressionError(ValueError):
    """Raised for a malformed tag expression."""


def _tokenize(text: str) -> list[str]:
    tokens: list[str] = []
    pos = 0
    text = text.rstrip()
    while pos < len(text):
        match = _TOKEN_RE.match(text, pos)
        if match is None:
            raise TagExpressionError(f"Unexpected input at {pos}: {text[pos:]!r}")
        tokens.append(match.group(1))
        pos = match.end()
    return tokens


class _Parser:
    def __init__(self, tokens: list[str]) -> None:
        self._tokens = tokens
        self._pos = 0

    def _peek(self) -> str | None:
        return self._tokens[self._pos] if self._pos < len(self._tokens) else None

    def _keyword(self, word: str) -> bool:
        token = self._peek()
        if token is not None and token.lower() == word:
            self._pos += 1
            return True
        return False

    def parse(self) -> Predicate:
        predicate = self._expr()
        if self._peek() is not None:
            raise TagExpressionError(f"Unexpected token {self._peek()!r}")
        return predicate

    def _expr(self) -> Predicate:
        terms = [self._term()]
        while self._keyword("or"):
            terms.append(self._term())
        if len(terms) == 1:
            return terms[0]
        return lambda tags: any(t(tags) for t in terms)

    def _term(self) -> Predicate:
        factors = [self._factor()]
        while self._keyword("and"):
            factors.append(self._factor())
        if len(factors) == 1:
            return factors[0]
        return lambda tags: all(f(tags) for f in factors)

    def _factor(self) -> Predicate:
        if self._keyword("not"):
            inner = self._factor()
            return lambda tags: not inner(tags)

        token = self._peek()
        if token is None:
            raise TagExpressionError("Unexpected end of expression")
        self._pos += 1

        if token == "(":
            inner = self._expr()
            if self._peek() != ")":
                raise TagExpressionError("Missing closing parenthesis")
            self._pos += 1
            return inner
        if token.startswith("@"):
            tag = token.lower()
            return lambda tags: tag in tags
        raise TagExpressionError(f"Expected a tag, got {token!r}")


class TagExpression:
    """A parsed tag expression, e.g. ``@smoke and not @skip``."""

    def __init__(self, text: str, predicate: Predicate) -> None:
        self.text = text
        self._predicate = predicate

    @classmethod
    def parse(cls, text: str | None) -> TagExpression:
        text = (text or "").strip()
        if not text:
            return cls("", lambda tags: True)
        return cls(text, _Parser(_tokenize(text)).parse())

    def matches(self, tags: Iterable[str]) -> bool:
        return self._predicate(frozenset(normalize_tag(t) for t in tags))

    def __repr__(self) -> str:
        return f"TagExpression({self.text!r})"


def normalize_tag(tag: str) -> str:
    tag = tag.strip().lower()
    return tag if tag.startswith("@") else f"@{tag}"
