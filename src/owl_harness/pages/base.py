"""
Element action facade shared by every page object.

Presence is a question, not a failure: ``exists`` and ``count`` answer it
without raising. Only a caller that requires an element (``wait_for_visible``,
or ``safe_click``/``safe_type`` once the element is known to be on the page)
turns a timeout into ElementNotFoundError.
"""

from __future__ import annotations

import asyncio
from enum import StrEnum
from typing import TYPE_CHECKING

import structlog

from owl_harness.errors import AssertionFailure, ElementNotFoundError, InfrastructureError
from owl_harness.popups.pipeline import DismissalPipeline, PipelineReport

if TYPE_CHECKING:
    from collections.abc import Callable

    from owl_harness.concurrency.handle import Match, PageHandle
    from owl_harness.config import HarnessConfig
    from owl_harness.selectors import SelectorSet

logger = structlog.get_logger(__name__)


class ActionOutcome(StrEnum):
    """Result of a safe action."""

    PERFORMED = "performed"
    ABSENT = "absent"


class BasePage:
    """
    Fault-tolerant interaction primitives over one PageHandle.

    Subclasses declare their UI concepts as ``SelectorSet`` class attributes
    and build their methods from the primitives below.
    """

    POLL_INTERVAL_MS = 250
    ACTION_SETTLE_MS = 500

    def __init__(
        self,
        page: PageHandle,
        config: HarnessConfig,
        pipeline: DismissalPipeline | None = None,
    ) -> None:
        self._page = page
        self._config = config
        self._pipeline = pipeline or DismissalPipeline.from_config(config)
        self._log = logger.bind(component=type(self).__name__)
        self.last_dismissal: PipelineReport | None = None

    @property
    def page(self) -> PageHandle:
        return self._page

    @property
    def config(self) -> HarnessConfig:
        return self._config

    @property
    def pipeline(self) -> DismissalPipeline:
        return self._pipeline

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    async def navigate(self, path: str = "") -> PipelineReport:
        """
        Open ``path`` and clear whatever popups the shop throws up.

        ``path`` may be a page name from the configuration ("catalog"), a
        path relative to the base URL, or an absolute URL. Navigation errors
        propagate; popups never do.
        """
        url = self._config.resolve_url(path)
        self._log.info("Navigating", url=url)
        await self._page.navigate(url, timeout_ms=self._config.navigation_timeout_ms)
        await self.wait_for_page_load()

        self.last_dismissal = await self._pipeline.run(self._page)
        return self.last_dismissal

    async def wait_for_page_load(self, timeout_ms: int | None = None) -> bool:
        """Wait for network idle, bounded. Returns False if it never settled."""
        timeout_ms = timeout_ms or self._config.settle_ms
        try:
            await asyncio.wait_for(
                self._page.wait_for_network_idle(timeout_ms=timeout_ms),
                timeout=timeout_ms / 1000 + 1,
            )
            return True
        except InfrastructureError:
            raise
        except Exception as e:
            self._log.debug("Network did not settle", timeout_ms=timeout_ms, error=str(e))
            return False

    async def current_url(self) -> str:
        return await self._page.current_url()

    async def pause(self, ms: int) -> None:
        await asyncio.sleep(ms / 1000)

    # ------------------------------------------------------------------
    # Probes
    # ------------------------------------------------------------------

    async def locate(self, selector_set: SelectorSet) -> Match | None:
        return await self._page.locate(selector_set)

    async def exists(self, selector_set: SelectorSet) -> bool:
        """True if any query of the set matches at least one element."""
        match = await self.locate(selector_set)
        if match is None:
            self._log.debug("Element absent", element=selector_set.name)
        return match is not None

    async def count(self, selector_set: SelectorSet) -> int:
        """Number of elements matched by the first matching query."""
        match = await self.locate(selector_set)
        return match.count if match else 0

    async def is_visible(self, selector_set: SelectorSet) -> bool:
        match = await self.locate(selector_set)
        if match is None:
            return False
        return await self._visible(match.selector)

    async def _visible(self, selector: str) -> bool:
        try:
            return await self._page.is_visible(selector)
        except InfrastructureError:
            raise
        except Exception as e:
            self._log.debug("Visibility check failed", selector=selector, error=str(e))
            return False

    async def text_of(self, selector_set: SelectorSet) -> str:
        """Stripped text of the first match, or "" if there is none."""
        match = await self.locate(selector_set)
        if match is None:
            return ""
        try:
            return await self._page.text(match.selector)
        except InfrastructureError:
            raise
        except Exception as e:
            self._log.debug("Text extraction failed", element=selector_set.name, error=str(e))
            return ""

    # ------------------------------------------------------------------
    # Waits and actions
    # ------------------------------------------------------------------

    async def wait_for_visible(
        self, selector_set: SelectorSet, timeout_ms: int | None = None
    ) -> Match:
        """
        Wait until some query of the set matches a visible element.

        Raises:
            ElementNotFoundError: Nothing visible within ``timeout_ms``
        """
        timeout_ms = timeout_ms or self._config.timeout_ms
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout_ms / 1000

        while True:
            match = await self.locate(selector_set)
            if match is not None and await self._visible(match.selector):
                return match

            remaining = deadline - loop.time()
            if remaining <= 0:
                detail = None if match is None else f"{match.count} present but hidden"
                raise ElementNotFoundError(selector_set, timeout_ms, detail)
            await asyncio.sleep(min(self.POLL_INTERVAL_MS / 1000, remaining))

    async def wait_for_hidden(
        self, selector_set: SelectorSet, timeout_ms: int | None = None
    ) -> bool:
        """Wait until nothing of the set is visible. False if it stayed up."""
        timeout_ms = timeout_ms or self._config.timeout_ms
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout_ms / 1000

        while await self.is_visible(selector_set):
            remaining = deadline - loop.time()
            if remaining <= 0:
                return False
            await asyncio.sleep(min(self.POLL_INTERVAL_MS / 1000, remaining))
        return True

    async def safe_click(
        self, selector_set: SelectorSet, timeout_ms: int | None = None
    ) -> ActionOutcome:
        """
        Click the element if the page has it.

        Returns ABSENT without touching the page when nothing matches.
        A failed click is never repeated: the page gets one settle wait and
        the original error propagates.
        """
        if not await self.exists(selector_set):
            self._log.info("Element not available, skipping click", element=selector_set.name)
            return ActionOutcome.ABSENT

        match = await self.wait_for_visible(selector_set, timeout_ms)
        try:
            await self._page.click(match.selector)
        except InfrastructureError:
            raise
        except Exception as e:
            self._log.warning("Click failed", element=selector_set.name, error=str(e))
            await self.pause(self.ACTION_SETTLE_MS)
            raise

        self._log.debug("Clicked", element=selector_set.name, selector=match.selector)
        return ActionOutcome.PERFORMED

    async def safe_type(
        self, selector_set: SelectorSet, text: str, timeout_ms: int | None = None
    ) -> ActionOutcome:
        """Clear the field and type ``text`` into it, if the page has it."""
        if not await self.exists(selector_set):
            self._log.info("Element not available, skipping input", element=selector_set.name)
            return ActionOutcome.ABSENT

        match = await self.wait_for_visible(selector_set, timeout_ms)
        try:
            await self._fill(match.selector, text)
        except InfrastructureError:
            raise
        except Exception as e:
            self._log.warning("Input failed", element=selector_set.name, error=str(e))
            await self.pause(self.ACTION_SETTLE_MS)
            raise

        self._log.debug("Typed", element=selector_set.name, length=len(text))
        return ActionOutcome.PERFORMED

    async def _fill(self, selector: str, text: str) -> None:
        await self._page.clear(selector)
        await self._page.type(selector, text)

    async def hover(self, selector_set: SelectorSet) -> ActionOutcome:
        match = await self.locate(selector_set)
        if match is None:
            self._log.info("Element not available, skipping hover", element=selector_set.name)
            return ActionOutcome.ABSENT
        await self._page.hover(match.selector)
        return ActionOutcome.PERFORMED

    async def press_key(self, key: str) -> None:
        await self._page.press_key(key)

    # ------------------------------------------------------------------
    # Assertions
    # ------------------------------------------------------------------

    async def assert_visible(
        self, selector_set: SelectorSet, timeout_ms: int | None = None
    ) -> None:
        try:
            await self.wait_for_visible(selector_set, timeout_ms)
        except ElementNotFoundError as e:
            raise AssertionFailure(f"Expected '{selector_set.name}' to be visible: {e}") from e

    async def assert_count(
        self, selector_set: SelectorSet, expected: int, timeout_ms: int | None = None
    ) -> None:
        actual = await self._poll_count(selector_set, lambda n: n == expected, timeout_ms)
        if actual != expected:
            raise AssertionFailure(
                f"Expected {expected} '{selector_set.name}' element(s), found {actual}"
            )

    async def assert_minimum_count(
        self, selector_set: SelectorSet, minimum: int, timeout_ms: int | None = None
    ) -> None:
        actual = await self._poll_count(selector_set, lambda n: n >= minimum, timeout_ms)
        if actual < minimum:
            raise AssertionFailure(
                f"Expected at least {minimum} '{selector_set.name}' element(s), found {actual}"
            )

    async def _poll_count(
        self,
        selector_set: SelectorSet,
        satisfied: Callable[[int], bool],
        timeout_ms: int | None,
    ) -> int:
        timeout_ms = timeout_ms or self._config.timeout_ms
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout_ms / 1000
        while True:
            actual = await self.count(selector_set)
            remaining = deadline - loop.time()
            if satisfied(actual) or remaining <= 0:
                return actual
            await asyncio.sleep(min(self.POLL_INTERVAL_MS / 1000, remaining))
