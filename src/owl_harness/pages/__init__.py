"""
Page objects for the shop.

Every page object is a BasePage: optional features are probed first and
their absence is logged, never raised.
"""

from owl_harness.pages.base import ActionOutcome, BasePage
from owl_harness.pages.cart import CartPage
from owl_harness.pages.catalog import CatalogPage
from owl_harness.pages.navigation import NavigationPage
from owl_harness.pages.product_details import ProductDetailsPage
from owl_harness.pages.registry import PageKind, PageObjectRegistry

__all__ = [
    "ActionOutcome",
    "BasePage",
    "CartPage",
    "CatalogPage",
    "NavigationPage",
    "PageKind",
    "PageObjectRegistry",
    "ProductDetailsPage",
]
