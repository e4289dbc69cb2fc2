"""Catalog (product listing) page."""

from __future__ import annotations

from owl_harness.errors import ElementNotFoundError
from owl_harness.pages.base import ActionOutcome, BasePage
from owl_harness.selectors import SelectorSet


class CatalogPage(BasePage):
    """Product grid, search, filters, sorting and pagination."""

    PRODUCT_ITEMS = SelectorSet.of(
        "product items", '.digi-product--desktop, .product-item, [class*="product"]'
    )
    PRODUCT_IMAGES = SelectorSet.of(
        "product images", 'img[src*="product"], img[src*="item"], img[alt*="product"]'
    )
    PRODUCT_TITLES = SelectorSet.of(
        "product titles", '.product-title, .product-name, h3, h4, [class*="title"]'
    )
    PRODUCT_PRICES = SelectorSet.of(
        "product prices", '.price, .cost, [class*="price"], [class*="cost"]'
    )
    SEARCH_INPUT = SelectorSet.of(
        "search input",
        'input[type="search"], input[placeholder*="search"], input[placeholder*="поиск"]',
    )
    SEARCH_BUTTON = SelectorSet.of(
        "search button", 'button[type="submit"], .search-btn, [class*="search-btn"]'
    )
    SORT_OPTIONS = SelectorSet.of("sort options", 'select[name*="sort"], .sort-options, .sorting')
    PAGINATION = SelectorSet.of("pagination", '.pagination, .pager, [class*="pagination"]')
    PAGINATION_LINKS = SelectorSet.of(
        "pagination links", '.pagination a, .pager a, [class*="page-"]'
    )
    FILTER_CONTROLS = SelectorSet.of(
        "filter controls", 'select, .filter, .category-filter, [class*="filter"]'
    )
    ACTIVE_FILTERS = SelectorSet.of("active filters", '.active, .selected, [class*="active"]')

    HOVER_SETTLE_MS = 500

    async def open(self) -> None:
        await self.navigate("catalog")

    async def wait_for_catalog(self, timeout_ms: int | None = None) -> None:
        await self.wait_for_visible(self.PRODUCT_ITEMS, timeout_ms)
        self._log.info("Catalog loaded")

    async def product_count(self) -> int:
        count = await self.count(self.PRODUCT_ITEMS)
        self._log.info("Products counted", count=count)
        return count

    async def verify_products_visible(self) -> None:
        await self.assert_minimum_count(self.PRODUCT_ITEMS, 1)

    async def verify_images_loaded(self) -> None:
        await self.assert_minimum_count(self.PRODUCT_IMAGES, 1)

    async def verify_prices_displayed(self) -> int:
        """Number of price elements; 0 is logged, not failed (layouts vary)."""
        count = await self.count(self.PRODUCT_PRICES)
        if count:
            self._log.info("Prices displayed", count=count)
        else:
            self._log.info("No price elements found")
        return count

    async def verify_titles_displayed(self) -> int:
        count = await self.count(self.PRODUCT_TITLES)
        if count:
            self._log.info("Titles displayed", count=count)
        else:
            self._log.info("No title elements found")
        return count

    async def search_for(self, term: str) -> ActionOutcome:
        if await self.safe_type(self.SEARCH_INPUT, term) is ActionOutcome.ABSENT:
            self._log.info("Search not available on this page")
            return ActionOutcome.ABSENT

        if await self.safe_click(self.SEARCH_BUTTON) is ActionOutcome.ABSENT:
            await self.press_key("Enter")

        await self.wait_for_page_load()
        self._log.info("Searched", term=term)
        return ActionOutcome.PERFORMED

    async def apply_filter(self, filter_type: str) -> ActionOutcome:
        outcome = await self.safe_click(self.FILTER_CONTROLS)
        if outcome is ActionOutcome.ABSENT:
            self._log.info("Filter controls not found", filter=filter_type)
            return outcome

        try:
            await self.wait_for_visible(self.ACTIVE_FILTERS, timeout_ms=3000)
        except ElementNotFoundError:
            self._log.info("No active filter marker after click", filter=filter_type)
        self._log.info("Filter applied", filter=filter_type)
        return outcome

    async def apply_sorting(self, sort_type: str) -> ActionOutcome:
        outcome = await self.safe_click(self.SORT_OPTIONS)
        self._log.info("Sorting", sort=sort_type, outcome=outcome)
        return outcome

    async def has_pagination(self) -> bool:
        return await self.exists(self.PAGINATION)

    async def go_to_page(self, page_number: int | str) -> ActionOutcome:
        if not await self.exists(self.PAGINATION_LINKS):
            self._log.info("Pagination not available")
            return ActionOutcome.ABSENT

        outcome = await self.safe_click(self.PAGINATION_LINKS.with_text(str(page_number)))
        if outcome is ActionOutcome.PERFORMED:
            await self.wait_for_page_load()
        else:
            self._log.info("Page not found in pagination", page=page_number)
        return outcome

    async def click_first_product(self) -> ActionOutcome:
        outcome = await self.safe_click(self.PRODUCT_ITEMS.nth(0))
        if outcome is ActionOutcome.PERFORMED:
            await self.wait_for_page_load()
        return outcome

    async def hover_product(self, index: int = 0) -> ActionOutcome:
        outcome = await self.hover(self.PRODUCT_ITEMS.nth(index))
        if outcome is ActionOutcome.PERFORMED:
            await self.pause(self.HOVER_SETTLE_MS)
        return outcome
