"""
Error taxonomy for the harness.

Three classes reach a scenario result:

- InfrastructureError: the browser session or a scenario context could not be
  created or destroyed, or a closed page handle was used. Reported apart from
  feature failures.
- ElementNotFoundError: an element the caller declared required did not become
  visible in time. Carries the selector set that was tried.
- AssertionFailure: an expectation about the page was violated.

A dismissal strategy that finds nothing to do is not an error at all; it is a
``DismissalOutcome.SKIPPED`` value (see ``owl_harness.popups``).
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from owl_harness.selectors import SelectorSet


class HarnessError(Exception):
    """Base exception for errors raised by the harness."""


class InfrastructureError(HarnessError):
    """Raised when the browser session or a scenario context is unusable."""


class ElementNotFoundError(HarnessError):
    """Raised when a required element does not become visible within its timeout."""

    def __init__(
        self,
        selector_set: SelectorSet,
        timeout_ms: int,
        detail: str | None = None,
    ) -> None:
        self.selector_set = selector_set
        self.timeout_ms = timeout_ms
        message = (
            f"Element '{selector_set.name}' not visible after {timeout_ms}ms "
            f"(tried: {selector_set.describe()})"
        )
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class AssertionFailure(AssertionError):
    """Raised when a page expectation (visibility, count, text) is violated."""
