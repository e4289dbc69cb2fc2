"""Pytest fixtures for owl-harness tests."""

from __future__ import annotations

import json
import re
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from owl_harness.concurrency.handle import PageHandle
from owl_harness.concurrency.session import SessionAuthority
from owl_harness.config import HarnessConfig
from owl_harness.popups.pipeline import DismissalPipeline
from owl_harness.popups.strategies import DismissalSettings

_PROBE_SPEC_RE = re.compile(r"\)\((\{\"css\".*\})\)\s*$", re.DOTALL)
_POINT_RE = re.compile(r"\}\)\((\d+), (\d+)\)\s*$")

ENV_VARS = (
    "BASE_URL",
    "HEADLESS",
    "WORKERS",
    "TIMEOUT",
    "NAVIGATION_TIMEOUT",
    "TAGS",
    "OWL_ENDPOINT",
    "OWL_TOKEN",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep the caller's environment out of configuration defaults."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@dataclass
class FakeElement:
    text: str = ""
    visible: bool = True
    on_click: Callable[[], None] | None = None


class FakeBrowser:
    """
    In-memory stand-in for OwlBrowser.

    CSS selectors are looked up literally in ``dom``; no real matching. It
    answers the page handle's probe and click-at scripts, and records every
    interaction.
    """

    def __init__(self) -> None:
        self.dom: dict[str, list[FakeElement]] = {}
        self.marks: dict[str, FakeElement] = {}
        self.invalid: set[str] = set()
        self.failures: dict[str, list[Exception]] = {}
        self.calls: list[str] = []
        self.clicks: list[str] = []
        self.typed: list[tuple[str, str]] = []
        self.cleared: list[str] = []
        self.hovered: list[str] = []
        self.keys: list[str] = []
        self.points: list[tuple[int, int]] = []
        self.urls: list[str] = []
        self.created: list[str] = []
        self.closed: list[str] = []

    # DOM setup -------------------------------------------------------

    def add(self, css: str, count: int = 1, text: str = "", visible: bool = True) -> list[FakeElement]:
        elements = [FakeElement(text=text, visible=visible) for _ in range(count)]
        self.dom.setdefault(css, []).extend(elements)
        return elements

    def remove(self, css: str) -> None:
        self.dom.pop(css, None)

    def fail(self, method: str, *errors: Exception) -> None:
        self.failures.setdefault(method, []).extend(errors)

    def _maybe_fail(self, method: str) -> None:
        self.calls.append(method)
        pending = self.failures.get(method)
        if pending:
            raise pending.pop(0)

    def _elements(self, selector: str) -> list[FakeElement]:
        if selector in self.marks:
            return [self.marks[selector]]
        return self.dom.get(selector, [])

    def _probe(self, spec: dict[str, Any]) -> dict[str, Any]:
        if spec["css"] in self.invalid:
            return {"count": 0, "selector": None, "error": "SyntaxError: bad selector"}
        nodes = list(self.dom.get(spec["css"], []))
        if spec["text"] is not None:
            nodes = [n for n in nodes if spec["text"] in n.text]
        if spec["nth"] is not None:
            nodes = [nodes[spec["nth"]]] if len(nodes) > spec["nth"] else []
        if not nodes:
            return {"count": 0, "selector": None}
        if spec["mark"] is None:
            return {"count": len(nodes), "selector": spec["css"]}
        selector = f'[{spec["attribute"]}="{spec["mark"]}"]'
        self.marks[selector] = nodes[0]
        return {"count": len(nodes), "selector": selector}

    # OwlBrowser surface ---------------------------------------------

    async def create_context(self) -> dict[str, str]:
        self._maybe_fail("create_context")
        context_id = f"ctx-{len(self.created) + 1}"
        self.created.append(context_id)
        return {"context_id": context_id}

    async def close_context(self, context_id: str) -> None:
        self._maybe_fail("close_context")
        self.closed.append(context_id)

    async def navigate(self, context_id: str, url: str, **kwargs: Any) -> None:
        self._maybe_fail("navigate")
        self.urls.append(url)

    async def wait_for_network_idle(self, context_id: str, **kwargs: Any) -> None:
        self._maybe_fail("wait_for_network_idle")

    async def evaluate(self, context_id: str, expression: str) -> dict[str, Any]:
        self._maybe_fail("evaluate")
        spec = _PROBE_SPEC_RE.search(expression)
        if spec:
            return {"result": self._probe(json.loads(spec.group(1)))}
        point = _POINT_RE.search(expression)
        if point:
            self.points.append((int(point.group(1)), int(point.group(2))))
            return {"result": True}
        return {"result": None}

    async def is_visible(self, context_id: str, selector: str) -> dict[str, bool]:
        self._maybe_fail("is_visible")
        elements = self._elements(selector)
        return {"visible": bool(elements) and elements[0].visible}

    async def click(self, context_id: str, selector: str) -> None:
        self._maybe_fail("click")
        elements = self._elements(selector)
        if not elements:
            raise RuntimeError(f"No element for {selector}")
        self.clicks.append(selector)
        if elements[0].on_click is not None:
            elements[0].on_click()

    async def type(self, context_id: str, selector: str, text: str) -> None:
        self._maybe_fail("type")
        self.typed.append((selector, text))

    async def clear_input(self, context_id: str, selector: str) -> None:
        self._maybe_fail("clear_input")
        self.cleared.append(selector)

    async def hover(self, context_id: str, selector: str) -> None:
        self._maybe_fail("hover")
        self.hovered.append(selector)

    async def press_key(self, context_id: str, key: str) -> None:
        self._maybe_fail("press_key")
        self.keys.append(key)

    async def extract_text(self, context_id: str, selector: str) -> dict[str, str]:
        self._maybe_fail("extract_text")
        elements = self._elements(selector)
        return {"text": elements[0].text if elements else ""}

    async def get_page_info(self, context_id: str) -> dict[str, str]:
        return {"url": self.urls[-1] if self.urls else "about:blank"}

    async def __aenter__(self) -> FakeBrowser:
        return self

    async def __aexit__(self, *exc: object) -> None:
        return None


@pytest.fixture
def mock_browser() -> MagicMock:
    """Create a mock OwlBrowser instance (SDK v2)."""
    browser = MagicMock()

    # SDK v2: create_context returns a dict with context_id
    browser.create_context = AsyncMock(return_value={"context_id": "test-ctx-001"})
    browser.close_context = AsyncMock(return_value=None)

    # SDK v2: all methods are async and take context_id
    browser.navigate = AsyncMock(return_value=None)
    browser.click = AsyncMock(return_value=None)
    browser.type = AsyncMock(return_value=None)
    browser.clear_input = AsyncMock(return_value=None)
    browser.hover = AsyncMock(return_value=None)
    browser.press_key = AsyncMock(return_value=None)
    browser.is_visible = AsyncMock(return_value={"visible": True})
    browser.extract_text = AsyncMock(return_value={"text": "Sample text"})
    browser.wait_for_network_idle = AsyncMock(return_value=None)
    browser.evaluate = AsyncMock(return_value={"result": None})
    browser.get_page_info = AsyncMock(return_value={"url": "https://example.com"})

    # Used as an async context manager by the session authority
    browser.__aenter__ = AsyncMock(return_value=browser)
    browser.__aexit__ = AsyncMock(return_value=None)

    return browser


@pytest.fixture
def fake_browser() -> FakeBrowser:
    return FakeBrowser()


@pytest.fixture
def page(fake_browser: FakeBrowser) -> PageHandle:
    return PageHandle(fake_browser, "ctx-test")


@pytest.fixture
def config() -> HarnessConfig:
    """Fast configuration for tests; nothing read from the environment."""
    return HarnessConfig(
        base_url="https://shop.test",
        headless=True,
        workers=1,
        timeout_ms=300,
        navigation_timeout_ms=1000,
        settle_ms=100,
        dismiss_timeout_ms=200,
        popup_appear_delay_ms=0,
        popup_settle_ms=0,
        tags="",
        owl_endpoint="http://owl.test",
        owl_token="token",
    )


@pytest.fixture
def fast_settings() -> DismissalSettings:
    return DismissalSettings(
        call_timeout_ms=200,
        appear_delay_ms=0,
        settle_ms=0,
        sweep_settle_ms=0,
        escape_interval_ms=0,
        max_total_ms=2000,
    )


@pytest.fixture
def pipeline(fast_settings: DismissalSettings) -> DismissalPipeline:
    return DismissalPipeline(settings=fast_settings)


@pytest.fixture
def fake_browsers() -> list[FakeBrowser]:
    """Every FakeBrowser handed out by ``session_factory``, in creation order."""
    return []


@pytest.fixture
def session_factory(fake_browsers: list[FakeBrowser]) -> Callable[[HarnessConfig, str], SessionAuthority]:
    """Worker session factory backed by a fresh FakeBrowser per session."""

    def browser_factory(_config: HarnessConfig) -> FakeBrowser:
        browser = FakeBrowser()
        fake_browsers.append(browser)
        return browser

    def factory(config: HarnessConfig, name: str) -> SessionAuthority:
        return SessionAuthority(config, browser_factory=browser_factory, name=name)

    return factory
