"""Site-wide navigation: header, menu, language switcher and cart link."""

from __future__ import annotations

import re

from owl_harness.errors import ElementNotFoundError
from owl_harness.pages.base import ActionOutcome, BasePage
from owl_harness.selectors import SelectorSet

_DIGITS_RE = re.compile(r"\d+")


class NavigationPage(BasePage):
    HEADER = SelectorSet.of("header", "header, .header, .site-header")
    LOGO = SelectorSet.of("logo", '.logo, .site-logo, [class*="logo"]')
    MAIN_MENU = SelectorSet.of("main menu", "nav, .navigation, .main-menu")
    MENU_ITEMS = SelectorSet.of("menu items", "nav a, .menu-item, .nav-link")
    LANGUAGE_SWITCHER = SelectorSet.of("language switcher", "#hypRu, #hypRo, .language-switcher")
    ROMANIAN = SelectorSet.of("romanian option", "#hypRo")
    RUSSIAN = SelectorSet.of("russian option", "#hypRu")
    MOBILE_MENU_TOGGLE = SelectorSet.of(
        "mobile menu toggle", '.menu-toggle, .hamburger, [class*="mobile-menu"]'
    )
    MOBILE_MENU = SelectorSet.of("mobile menu", ".mobile-menu, .mobile-nav")
    CART_LINK = SelectorSet.of("cart link", '.cart-link, [href*="cart"], .shopping-cart')
    CART_COUNTER = SelectorSet.of(
        "cart counter", '.cart-count, .cart-counter, [class*="cart-count"]'
    )
    BREADCRUMBS = SelectorSet.of("breadcrumbs", '.breadcrumb, .breadcrumbs, [class*="breadcrumb"]')

    async def open_home(self) -> None:
        await self.navigate("home")

    async def wait_for_header(self, timeout_ms: int | None = None) -> None:
        await self.wait_for_visible(self.HEADER, timeout_ms)

    async def verify_header_visible(self) -> None:
        await self.assert_visible(self.HEADER)

    async def verify_logo_visible(self) -> bool:
        """Assert the logo is visible if the layout has one."""
        if not await self.exists(self.LOGO):
            self._log.info("Logo not found")
            return False
        await self.assert_visible(self.LOGO)
        return True

    async def click_logo(self) -> ActionOutcome:
        return await self._click_and_settle(self.LOGO)

    async def switch_to_romanian(self) -> ActionOutcome:
        return await self._click_and_settle(self.ROMANIAN)

    async def switch_to_russian(self) -> ActionOutcome:
        return await self._click_and_settle(self.RUSSIAN)

    async def use_language_switcher(self) -> ActionOutcome:
        return await self.safe_click(self.LANGUAGE_SWITCHER)

    async def verify_main_menu_visible(self) -> bool:
        if not await self.exists(self.MAIN_MENU):
            self._log.info("Main menu not found")
            return False
        await self.assert_visible(self.MAIN_MENU)
        return True

    async def menu_item_count(self) -> int:
        return await self.count(self.MENU_ITEMS)

    async def click_menu_item(self, text: str) -> ActionOutcome:
        return await self._click_and_settle(self.MENU_ITEMS.with_text(text))

    async def click_menu_item_at(self, index: int) -> ActionOutcome:
        return await self._click_and_settle(self.MENU_ITEMS.nth(index))

    async def click_cart_link(self) -> ActionOutcome:
        return await self._click_and_settle(self.CART_LINK)

    async def cart_item_count(self) -> int:
        """Number shown by the header cart badge; 0 when there is no badge."""
        text = await self.text_of(self.CART_COUNTER)
        match = _DIGITS_RE.search(text)
        count = int(match.group()) if match else 0
        self._log.info("Cart counter read", count=count, raw=text)
        return count

    async def open_mobile_menu(self) -> ActionOutcome:
        outcome = await self.safe_click(self.MOBILE_MENU_TOGGLE)
        if outcome is ActionOutcome.PERFORMED:
            try:
                await self.wait_for_visible(self.MOBILE_MENU, timeout_ms=3000)
            except ElementNotFoundError:
                self._log.info("Mobile menu did not open")
        return outcome

    async def has_breadcrumbs(self) -> bool:
        return await self.exists(self.BREADCRUMBS)

    async def _click_and_settle(self, selector_set: SelectorSet) -> ActionOutcome:
        outcome = await self.safe_click(selector_set)
        if outcome is ActionOutcome.PERFORMED:
            await self.wait_for_page_load()
        return outcome
