"""
Scenario world: one isolated browser context per scenario.

SDK v2 Notes:
- create_context() returns a dict with the context_id
- Every context is a fresh storage sandbox (cookies, localStorage)
- close_context(context_id=...) disposes of it; the session stays open
"""

from __future__ import annotations

import contextlib
from collections.abc import AsyncIterator
from typing import TYPE_CHECKING, Any

import structlog

from owl_harness.concurrency.handle import PageHandle
from owl_harness.errors import InfrastructureError
from owl_harness.pages.registry import PageObjectRegistry

if TYPE_CHECKING:
    from owl_harness.concurrency.session import SessionAuthority
    from owl_harness.config import HarnessConfig
    from owl_harness.pages import CartPage, CatalogPage, NavigationPage, ProductDetailsPage
    from owl_harness.popups.pipeline import DismissalPipeline

logger = structlog.get_logger(__name__)


class ScenarioWorld:
    """
    Per-scenario state: a context, its page handle and the page objects.

    Usage:
        async with ScenarioWorld(session, config) as world:
            await world.catalog.open()

    ``leave()`` runs on every exit path, including a failed ``enter()``,
    and never raises.
    """

    def __init__(
        self,
        session: SessionAuthority,
        config: HarnessConfig,
        pipeline: DismissalPipeline | None = None,
        scenario: str | None = None,
    ) -> None:
        self._session = session
        self._config = config
        self._pipeline = pipeline
        self._scenario = scenario
        self._context_id: str | None = None
        self._page: PageHandle | None = None
        self._pages: PageObjectRegistry | None = None
        self._log = logger.bind(component="scenario_world", scenario=scenario)

        # Free-form per-scenario state for step implementations
        self.data: dict[str, Any] = {}

    @classmethod
    @contextlib.asynccontextmanager
    async def scope(
        cls,
        session: SessionAuthority,
        config: HarnessConfig,
        **kwargs: Any,
    ) -> AsyncIterator[ScenarioWorld]:
        world = cls(session, config, **kwargs)
        try:
            await world.enter()
            yield world
        finally:
            await world.leave()

    @property
    def config(self) -> HarnessConfig:
        return self._config

    @property
    def active(self) -> bool:
        return self._page is not None and not self._page.closed

    @property
    def context_id(self) -> str:
        if self._context_id is None:
            raise InfrastructureError("Scenario world has no open context")
        return self._context_id

    @property
    def page(self) -> PageHandle:
        if self._page is None:
            raise InfrastructureError("Scenario world has no page")
        return self._page

    @property
    def pages(self) -> PageObjectRegistry:
        if self._pages is None:
            raise InfrastructureError("Scenario world has no page objects")
        return self._pages

    @property
    def catalog(self) -> CatalogPage:
        return self.pages.catalog

    @property
    def navigation(self) -> NavigationPage:
        return self.pages.navigation

    @property
    def product_details(self) -> ProductDetailsPage:
        return self.pages.product_details

    @property
    def cart(self) -> CartPage:
        return self.pages.cart

    async def enter(self) -> ScenarioWorld:
        """
        Create the scenario's context and page handle.

        Raises:
            InfrastructureError: No context could be created
        """
        if self._page is not None:
            raise InfrastructureError("Scenario world already entered")

        browser = self._session.browser
        try:
            result = await browser.create_context()
            context_id = result["context_id"] if isinstance(result, dict) else str(result)
        except Exception as e:
            self._log.error("Context creation failed", error=str(e))
            raise InfrastructureError(f"Could not create browser context: {e}") from e

        self._context_id = context_id
        self._page = PageHandle(browser, context_id)
        self._pages = PageObjectRegistry(self._page, self._config, self._pipeline)
        self._log = self._log.bind(context_id=context_id)
        self._log.info("Scenario context created")
        return self

    async def leave(self) -> None:
        """Close the scenario's context. Safe to call twice or after a failed enter."""
        if self._pages is not None:
            self._pages.reset()
        if self._page is not None:
            self._page.close()

        context_id, self._context_id = self._context_id, None
        self._page = None
        self._pages = None
        self.data.clear()
        if context_id is None:
            return

        try:
            await self._session.browser.close_context(context_id=context_id)
            self._log.info("Scenario context closed")
        except Exception as e:
            self._log.warning("Error closing scenario context", error=str(e))

    async def __aenter__(self) -> ScenarioWorld:
        try:
            return await self.enter()
        except BaseException:
            await self.leave()
            raise

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object,
    ) -> None:
        await self.leave()
