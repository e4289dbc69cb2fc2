"""Per-scenario cache of page objects."""

from __future__ import annotations

from enum import StrEnum
from typing import TYPE_CHECKING

import structlog

from owl_harness.pages.base import BasePage
from owl_harness.pages.cart import CartPage
from owl_harness.pages.catalog import CatalogPage
from owl_harness.pages.navigation import NavigationPage
from owl_harness.pages.product_details import ProductDetailsPage
from owl_harness.popups.pipeline import DismissalPipeline

if TYPE_CHECKING:
    from owl_harness.concurrency.handle import PageHandle
    from owl_harness.config import HarnessConfig

logger = structlog.get_logger(__name__)


class PageKind(StrEnum):
    CATALOG = "catalog"
    NAVIGATION = "navigation"
    PRODUCT_DETAILS = "product_details"
    CART = "cart"


PAGE_CLASSES: dict[PageKind, type[BasePage]] = {
    PageKind.CATALOG: CatalogPage,
    PageKind.NAVIGATION: NavigationPage,
    PageKind.PRODUCT_DETAILS: ProductDetailsPage,
    PageKind.CART: CartPage,
}


class PageObjectRegistry:
    """
    Lazily builds at most one page object per kind for one page handle.

    Owned by a ScenarioWorld. ``reset()`` only forgets the cached objects;
    it never touches the page or its context.
    """

    def __init__(
        self,
        page: PageHandle,
        config: HarnessConfig,
        pipeline: DismissalPipeline | None = None,
    ) -> None:
        self._page = page
        self._config = config
        # One pipeline shared by every page object of the scenario
        self._pipeline = pipeline or DismissalPipeline.from_config(config)
        self._cache: dict[PageKind, BasePage] = {}
        self._log = logger.bind(component="page_registry", context_id=page.context_id)

    def get(self, kind: PageKind | str) -> BasePage:
        kind = PageKind(kind)
        instance = self._cache.get(kind)
        if instance is None:
            instance = PAGE_CLASSES[kind](self._page, self._config, self._pipeline)
            self._cache[kind] = instance
            self._log.debug("Page object created", kind=kind)
        return instance

    def reset(self) -> None:
        if self._cache:
            self._log.debug("Page objects cleared", kinds=sorted(self._cache))
        self._cache.clear()

    def all_pages(self) -> dict[PageKind, BasePage]:
        return {kind: self.get(kind) for kind in PageKind}

    @property
    def cached_kinds(self) -> frozenset[PageKind]:
        return frozenset(self._cache)

    def __contains__(self, kind: object) -> bool:
        return kind in self._cache

    @property
    def catalog(self) -> CatalogPage:
        return self.get(PageKind.CATALOG)  # type: ignore[return-value]

    @property
    def navigation(self) -> NavigationPage:
        return self.get(PageKind.NAVIGATION)  # type: ignore[return-value]

    @property
    def product_details(self) -> ProductDetailsPage:
        return self.get(PageKind.PRODUCT_DETAILS)  # type: ignore[return-value]

    @property
    def cart(self) -> CartPage:
        return self.get(PageKind.CART)  # type: ignore[return-value]
