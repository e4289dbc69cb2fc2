"""
Page handle: the live DOM-interaction handle of one scenario context.

SDK v2 Notes:
- Every OwlBrowser call takes the context_id; the handle injects it
- Results come back either as plain values or as dicts ({"visible": ...},
  {"result": ...}, {"text": ...}); the handle normalises them
- Calls are serialised with a lock so a scenario never issues two concurrent
  interactions against the same context
"""

from __future__ import annotations

import asyncio
import json
import uuid
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import structlog

from owl_harness.errors import InfrastructureError

if TYPE_CHECKING:
    from owl_browser import OwlBrowser

    from owl_harness.selectors import Query, SelectorSet

logger = structlog.get_logger(__name__)

MARK_ATTRIBUTE = "data-owl-harness-ref"

# Counts the elements matching one query. When the query carries a text filter
# or an index, the first remaining element is tagged so later SDK calls can
# address it with a plain attribute selector.
_PROBE_SCRIPT = """
((spec) => {
    let nodes;
    try {
        nodes = Array.from(document.querySelectorAll(spec.css));
    } catch (e) {
        return { count: 0, selector: null, error: String(e) };
    }
    if (spec.text !== null) {
        nodes = nodes.filter((n) => (n.textContent || '').includes(spec.text));
    }
    if (spec.nth !== null) {
        nodes = nodes.length > spec.nth ? [nodes[spec.nth]] : [];
    }
    if (nodes.length === 0) {
        return { count: 0, selector: null };
    }
    if (spec.mark === null) {
        return { count: nodes.length, selector: spec.css };
    }
    nodes[0].setAttribute(spec.attribute, spec.mark);
    return { count: nodes.length, selector: `[${spec.attribute}="${spec.mark}"]` };
})(%s)
"""

_CLICK_AT_SCRIPT = """
((x, y) => {
    const el = document.elementFromPoint(x, y) || document.body;
    el.dispatchEvent(new MouseEvent('click', { bubbles: true, clientX: x, clientY: y }));
    return true;
})(%d, %d)
"""


@dataclass(frozen=True)
class Probe:
    """Result of probing the page with one query."""

    count: int
    selector: str | None = None

    @property
    def found(self) -> bool:
        return self.count > 0 and self.selector is not None


@dataclass(frozen=True)
class Match:
    """The query of a selector set that matched, and how to address it."""

    index: int
    query: Query
    count: int
    selector: str


def _unwrap(result: Any, key: str = "result") -> Any:
    if isinstance(result, dict) and key in result:
        return result[key]
    return result


class PageHandle:
    """
    Live interaction handle for the current document of one browser context.

    Owned by exactly one ScenarioWorld; invalid once that world closes its
    context. Any call after ``close()`` raises InfrastructureError.
    """

    def __init__(self, browser: OwlBrowser, context_id: str) -> None:
        self._browser = browser
        self._context_id = context_id
        self._closed = False
        self._lock = asyncio.Lock()
        self._log = logger.bind(component="page_handle", context_id=context_id)

    @property
    def context_id(self) -> str:
        return self._context_id

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        """Invalidate the handle. Does not touch the browser."""
        self._closed = True

    async def _call(self, method_name: str, **kwargs: Any) -> Any:
        if self._closed:
            raise InfrastructureError(
                f"Page handle for context {self._context_id} is closed"
            )
        method = getattr(self._browser, method_name)
        async with self._lock:
            return await method(context_id=self._context_id, **kwargs)

    async def navigate(self, url: str, timeout_ms: int) -> None:
        await self._call("navigate", url=url, wait_until="domcontentloaded", timeout=timeout_ms)

    async def wait_for_network_idle(self, timeout_ms: int, idle_time_ms: int = 500) -> None:
        await self._call("wait_for_network_idle", idle_time=idle_time_ms, timeout=timeout_ms)

    async def evaluate(self, expression: str) -> Any:
        result = await self._call("evaluate", expression=expression)
        return _unwrap(result)

    async def probe(self, query: Query) -> Probe:
        """Count elements matching ``query`` and return an addressable selector."""
        spec = {
            "css": query.css,
            "text": query.has_text,
            "nth": query.nth,
            "mark": uuid.uuid4().hex[:12] if query.needs_marking else None,
            "attribute": MARK_ATTRIBUTE,
        }
        data = await self.evaluate(_PROBE_SCRIPT % json.dumps(spec))
        if not isinstance(data, dict):
            return Probe(count=0)
        if data.get("error"):
            self._log.debug("Invalid selector", css=query.css, error=data["error"])
        count = int(data.get("count") or 0)
        return Probe(count=count, selector=data.get("selector") if count else None)

    async def locate(self, selector_set: SelectorSet) -> Match | None:
        """
        Evaluate a selector set first-match.

        Queries are probed in order; the first one with at least one element
        wins. A query the page rejects counts as no match. Using a closed
        handle still raises.
        """
        for index, query in enumerate(selector_set):
            try:
                probe = await self.probe(query)
            except InfrastructureError:
                raise
            except Exception as e:
                self._log.debug("Probe failed", query=query.describe(), error=str(e))
                continue
            if probe.found:
                return Match(index=index, query=query, count=probe.count, selector=probe.selector)
        return None

    async def is_visible(self, selector: str) -> bool:
        result = await self._call("is_visible", selector=selector)
        return bool(_unwrap(result, "visible"))

    async def click(self, selector: str) -> None:
        await self._call("click", selector=selector)

    async def type(self, selector: str, text: str) -> None:
        await self._call("type", selector=selector, text=text)

    async def clear(self, selector: str) -> None:
        await self._call("clear_input", selector=selector)

    async def hover(self, selector: str) -> None:
        await self._call("hover", selector=selector)

    async def press_key(self, key: str) -> None:
        await self._call("press_key", key=key)

    async def text(self, selector: str) -> str:
        result = await self._call("extract_text", selector=selector)
        value = _unwrap(result, "text")
        return str(value).strip() if value is not None else ""

    async def click_at(self, x: int, y: int) -> None:
        """Dispatch a click at viewport coordinates, whatever element is there."""
        await self.evaluate(_CLICK_AT_SCRIPT % (x, y))

    async def current_url(self) -> str:
        info = await self._call("get_page_info")
        return info.get("url", "") if isinstance(info, dict) else ""
