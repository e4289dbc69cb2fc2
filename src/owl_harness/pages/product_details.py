"""Product details page: info, gallery, quantity, variants and add-to-cart."""

from __future__ import annotations

from owl_harness.pages.base import ActionOutcome, BasePage
from owl_harness.selectors import SelectorSet


class ProductDetailsPage(BasePage):
    PRODUCT_INFO = SelectorSet.of(
        "product info", ".product-info, .product-details, .product-content"
    )
    TITLE = SelectorSet.of("product title", ".product-title, .product-name, h1, h2")
    PRICE = SelectorSet.of("product price", '.price, .cost, [class*="price"]')
    MAIN_IMAGE = SelectorSet.of("main image", ".main-image, .primary-image, .product-image")
    THUMBNAILS = SelectorSet.of("thumbnails", '.thumbnail, .thumb, [class*="thumb"]')
    GALLERY_IMAGES = SelectorSet.of(
        "gallery images", '.product-image, .gallery-image, img[src*="product"]'
    )
    ZOOM_BUTTON = SelectorSet.of("zoom button", '.zoom, .magnify, [class*="zoom"]')
    QUANTITY_INPUT = SelectorSet.of(
        "quantity input", 'input[name*="quantity"], input[type="number"], .quantity-input'
    )
    QUANTITY_INCREASE = SelectorSet.of(
        "quantity increase", '.qty-plus, .quantity-plus, [class*="plus"]'
    )
    QUANTITY_DECREASE = SelectorSet.of(
        "quantity decrease", '.qty-minus, .quantity-minus, [class*="minus"]'
    )
    COLOR_OPTIONS = SelectorSet.of(
        "color options", '.color-option, .color-variant, [class*="color"]'
    )
    SIZE_OPTIONS = SelectorSet.of("size options", '.size-option, .size-variant, [class*="size"]')
    ADD_TO_CART = SelectorSet.of(
        "add to cart button", '.add-to-cart, .btn-add-cart, button[class*="cart"]'
    )
    SPECIFICATIONS = SelectorSet.of("specifications", ".specifications, .specs, .product-specs")
    REVIEWS = SelectorSet.of("reviews", ".reviews, .product-reviews, .rating")
    RELATED_PRODUCTS = SelectorSet.of(
        "related products", ".related-products, .similar-products, .recommendations"
    )
    TAB_HEADERS = SelectorSet.of("tab headers", '.tab-header, .tab-title, [class*="tab-header"]')
    STOCK_STATUS = SelectorSet.of(
        "stock status", '.stock-status, .availability, [class*="stock"]'
    )

    GALLERY_SETTLE_MS = 500

    async def open(self, product_id: str | int = "1") -> None:
        await self.navigate(f"/product/{product_id}")

    async def wait_for_product(self, timeout_ms: int | None = None) -> None:
        await self.wait_for_visible(self.PRODUCT_INFO, timeout_ms)

    async def verify_product_info_visible(self) -> None:
        await self.assert_visible(self.PRODUCT_INFO)

    async def title(self) -> str:
        return await self.text_of(self.TITLE)

    async def price(self) -> str:
        return await self.text_of(self.PRICE)

    async def verify_add_to_cart_button(self) -> bool:
        if not await self.exists(self.ADD_TO_CART):
            self._log.info("Add to cart button not found")
            return False
        await self.assert_visible(self.ADD_TO_CART)
        return True

    async def image_count(self) -> int:
        return await self.count(self.GALLERY_IMAGES)

    async def set_quantity(self, quantity: int) -> ActionOutcome:
        return await self.safe_type(self.QUANTITY_INPUT, str(quantity))

    async def increase_quantity(self) -> ActionOutcome:
        return await self.safe_click(self.QUANTITY_INCREASE)

    async def decrease_quantity(self) -> ActionOutcome:
        return await self.safe_click(self.QUANTITY_DECREASE)

    async def add_to_cart(self) -> ActionOutcome:
        outcome = await self.safe_click(self.ADD_TO_CART)
        if outcome is ActionOutcome.PERFORMED:
            self._log.info("Product added to cart")
        return outcome

    async def click_thumbnail(self, index: int = 0) -> ActionOutcome:
        outcome = await self.safe_click(self.THUMBNAILS.nth(index))
        if outcome is ActionOutcome.PERFORMED:
            await self.pause(self.GALLERY_SETTLE_MS)
        return outcome

    async def use_zoom(self) -> ActionOutcome:
        outcome = await self.safe_click(self.ZOOM_BUTTON)
        if outcome is ActionOutcome.PERFORMED:
            await self.pause(self.GALLERY_SETTLE_MS)
        return outcome

    async def select_color_variant(self, index: int = 0) -> ActionOutcome:
        return await self.safe_click(self.COLOR_OPTIONS.nth(index))

    async def select_size_variant(self, index: int = 0) -> ActionOutcome:
        return await self.safe_click(self.SIZE_OPTIONS.nth(index))

    async def stock_status(self) -> str:
        return await self.text_of(self.STOCK_STATUS)

    async def has_specifications(self) -> bool:
        return await self.exists(self.SPECIFICATIONS)

    async def has_reviews(self) -> bool:
        return await self.exists(self.REVIEWS)

    async def has_related_products(self) -> bool:
        return await self.exists(self.RELATED_PRODUCTS)

    async def click_tab(self, index: int = 0) -> ActionOutcome:
        return await self.safe_click(self.TAB_HEADERS.nth(index))
