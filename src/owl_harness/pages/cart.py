"""Shopping cart page."""

from __future__ import annotations

from owl_harness.pages.base import ActionOutcome, BasePage
from owl_harness.selectors import SelectorSet


class CartPage(BasePage):
    """
    Cart contents, totals and cart-level actions.

    Item-level helpers take a zero-based ``index`` into the rendered items.
    """

    CONTAINER = SelectorSet.of("cart container", ".cart, .shopping-cart, .cart-container")
    ITEMS = SelectorSet.of("cart items", '.cart-item, .cart-product, [class*="cart-item"]')
    ITEM_TITLE = SelectorSet.of("cart item title", ".item-title, .product-name, .cart-item-name")
    ITEM_PRICE = SelectorSet.of(
        "cart item price", '.item-price, .product-price, [class*="item-price"]'
    )
    QUANTITY_INPUT = SelectorSet.of("cart quantity input", '.quantity-input, input[type="number"]')
    UPDATE_BUTTON = SelectorSet.of(
        "update cart button", '.update-cart, .refresh-cart, [class*="update"]'
    )
    REMOVE_BUTTON = SelectorSet.of(
        "remove item button", '.remove-item, .delete-item, [class*="remove"]'
    )
    SUBTOTAL = SelectorSet.of("subtotal", '.subtotal, .cart-subtotal, [class*="subtotal"]')
    TOTAL = SelectorSet.of("total", '.total, .cart-total, .grand-total, [class*="total"]')
    CONTINUE_SHOPPING = SelectorSet.of(
        "continue shopping button", '.continue-shopping, .back-to-shop, [class*="continue"]'
    )
    CHECKOUT = SelectorSet.of(
        "checkout button", '.checkout, .proceed-checkout, [class*="checkout"]'
    )
    EMPTY_MESSAGE = SelectorSet.of("empty cart message", '.empty-cart, .cart-empty, [class*="empty"]')
    PROMO_INPUT = SelectorSet.of(
        "promo code input", '.promo-code, .discount-code, input[name*="promo"]'
    )
    APPLY_PROMO = SelectorSet.of(
        "apply promo button", '.apply-promo, .apply-discount, [class*="apply"]'
    )
    LOADING = SelectorSet.of("loading indicator", '.loading, .spinner, [class*="loading"]')

    UPDATE_TIMEOUT_MS = 5000

    async def open(self) -> None:
        await self.navigate("cart")

    async def wait_for_cart(self, timeout_ms: int | None = None) -> None:
        await self.wait_for_visible(self.CONTAINER, timeout_ms)

    async def item_count(self) -> int:
        count = await self.count(self.ITEMS)
        self._log.info("Cart items counted", count=count)
        return count

    async def verify_not_empty(self) -> None:
        await self.assert_minimum_count(self.ITEMS, 1)

    async def is_empty(self) -> bool:
        """Empty if the empty-cart message shows, or no items are rendered."""
        if await self.is_visible(self.EMPTY_MESSAGE):
            return True
        return await self.count(self.ITEMS) == 0

    async def item_title(self, index: int = 0) -> str:
        return await self.text_of(self.ITEM_TITLE.nth(index))

    async def item_price(self, index: int = 0) -> str:
        return await self.text_of(self.ITEM_PRICE.nth(index))

    async def update_item_quantity(self, index: int, quantity: int) -> ActionOutcome:
        outcome = await self.safe_type(self.QUANTITY_INPUT.nth(index), str(quantity))
        if outcome is ActionOutcome.ABSENT:
            self._log.info("Quantity input not found", index=index)
            return outcome

        # Some layouts apply the change on blur, others need the update button
        await self.safe_click(self.UPDATE_BUTTON)
        return outcome

    async def remove_item(self, index: int = 0) -> ActionOutcome:
        outcome = await self.safe_click(self.REMOVE_BUTTON.nth(index))
        if outcome is ActionOutcome.PERFORMED:
            await self.wait_for_page_load()
        return outcome

    async def total(self) -> str:
        return await self.text_of(self.TOTAL)

    async def subtotal(self) -> str:
        return await self.text_of(self.SUBTOTAL)

    async def proceed_to_checkout(self) -> ActionOutcome:
        outcome = await self.safe_click(self.CHECKOUT)
        if outcome is ActionOutcome.PERFORMED:
            await self.wait_for_page_load()
        return outcome

    async def continue_shopping(self) -> ActionOutcome:
        outcome = await self.safe_click(self.CONTINUE_SHOPPING)
        if outcome is ActionOutcome.PERFORMED:
            await self.wait_for_page_load()
        return outcome

    async def apply_promo_code(self, code: str) -> ActionOutcome:
        if not (await self.exists(self.PROMO_INPUT) and await self.exists(self.APPLY_PROMO)):
            self._log.info("Promo code not available")
            return ActionOutcome.ABSENT

        await self.safe_type(self.PROMO_INPUT, code)
        await self.safe_click(self.APPLY_PROMO)
        await self.wait_for_page_load()
        return ActionOutcome.PERFORMED

    async def wait_for_cart_update(self) -> None:
        if not await self.wait_for_hidden(self.LOADING, self.UPDATE_TIMEOUT_MS):
            self._log.info("Loading indicator still visible", timeout_ms=self.UPDATE_TIMEOUT_MS)
        await self.wait_for_page_load()
