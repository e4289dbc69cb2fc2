"""Tests for the per-scenario page object registry."""

from __future__ import annotations

import pytest

from owl_harness.concurrency.handle import PageHandle
from owl_harness.config import HarnessConfig
from owl_harness.pages import CartPage, CatalogPage, NavigationPage, ProductDetailsPage
from owl_harness.pages.registry import PageKind, PageObjectRegistry
from owl_harness.popups.pipeline import DismissalPipeline


@pytest.fixture
def registry(page: PageHandle, config: HarnessConfig, pipeline: DismissalPipeline) -> PageObjectRegistry:
    return PageObjectRegistry(page, config, pipeline)


class TestPageObjectRegistry:
    """Test lazy creation, caching and reset."""

    def test_nothing_built_up_front(self, registry: PageObjectRegistry) -> None:
        assert registry.cached_kinds == frozenset()

    def test_same_instance_until_reset(self, registry: PageObjectRegistry) -> None:
        first = registry.get(PageKind.CATALOG)
        assert registry.get(PageKind.CATALOG) is first
        assert registry.catalog is first

        registry.reset()

        assert PageKind.CATALOG not in registry
        second = registry.get(PageKind.CATALOG)
        assert second is not first
        assert isinstance(second, CatalogPage)

    def test_kind_by_name(self, registry: PageObjectRegistry) -> None:
        assert isinstance(registry.get("cart"), CartPage)
        assert PageKind.CART in registry

    def test_unknown_kind(self, registry: PageObjectRegistry) -> None:
        with pytest.raises(ValueError):
            registry.get("checkout")

    def test_typed_accessors(self, registry: PageObjectRegistry) -> None:
        assert isinstance(registry.navigation, NavigationPage)
        assert isinstance(registry.product_details, ProductDetailsPage)
        assert isinstance(registry.cart, CartPage)

    def test_all_pages_share_handle_and_pipeline(
        self, registry: PageObjectRegistry, page: PageHandle, pipeline: DismissalPipeline
    ) -> None:
        pages = registry.all_pages()

        assert set(pages) == set(PageKind)
        assert all(p.page is page for p in pages.values())
        assert all(p.pipeline is pipeline for p in pages.values())

    def test_default_pipeline_is_shared(self, page: PageHandle, config: HarnessConfig) -> None:
        registry = PageObjectRegistry(page, config)
        assert registry.catalog.pipeline is registry.cart.pipeline

    def test_reset_leaves_page_open(self, registry: PageObjectRegistry, page: PageHandle) -> None:
        registry.get(PageKind.NAVIGATION)
        registry.reset()
        assert page.closed is False
