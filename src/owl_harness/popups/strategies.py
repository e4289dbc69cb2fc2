"""
Popup dismissal strategies.

Each strategy targets one kind of interstitial the shop throws at visitors
(promo popups, subscription nags, cookie banners, generic modals). A strategy
never raises: whatever happens, it reports DISMISSED or SKIPPED and the
pipeline moves on.

Transitions:
    NOT_ATTEMPTED -> ATTEMPTING   trigger matched at least one (visible) element
    ATTEMPTING -> DISMISSED       a close action succeeded and the page settled
    ATTEMPTING -> SKIPPED         no close action succeeded
    NOT_ATTEMPTED -> SKIPPED      trigger absent, or probing failed
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING, TypeVar

import structlog

from owl_harness.selectors import SelectorSet

if TYPE_CHECKING:
    from owl_harness.concurrency.handle import PageHandle
    from owl_harness.selectors import Query

logger = structlog.get_logger(__name__)

T = TypeVar("T")


class DismissalOutcome(StrEnum):
    """Final outcome of one strategy."""

    DISMISSED = "dismissed"
    SKIPPED = "skipped"


class StrategyState(StrEnum):
    """States a strategy passes through during one pipeline run."""

    NOT_ATTEMPTED = "not_attempted"
    ATTEMPTING = "attempting"
    DISMISSED = "dismissed"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class DismissalSettings:
    """Timing knobs shared by the strategies and the pipeline."""

    call_timeout_ms: int = 1500  # cap on every browser call
    appear_delay_ms: int = 1500  # popups are injected a moment after load
    settle_ms: int = 500  # pause after a successful close
    sweep_settle_ms: int = 300
    escape_presses: int = 3
    escape_interval_ms: int = 200
    sweep_point: tuple[int, int] = (100, 100)
    max_total_ms: int = 15000


@dataclass
class StrategyRecord:
    """Trace of one strategy during one pipeline run."""

    strategy: str
    states: list[StrategyState] = field(
        default_factory=lambda: [StrategyState.NOT_ATTEMPTED]
    )
    action: str | None = None
    error: str | None = None

    @property
    def state(self) -> StrategyState:
        return self.states[-1]

    @property
    def outcome(self) -> DismissalOutcome:
        if self.state is StrategyState.DISMISSED:
            return DismissalOutcome.DISMISSED
        return DismissalOutcome.SKIPPED

    def advance(self, state: StrategyState) -> None:
        self.states.append(state)


async def bounded(awaitable: Awaitable[T], timeout_ms: int) -> T:
    """Await a browser call, giving up after ``timeout_ms``."""
    return await asyncio.wait_for(awaitable, timeout=timeout_ms / 1000)


@dataclass(frozen=True)
class DismissalStrategy:
    """
    One named way of getting rid of one kind of popup.

    ``trigger`` recognises the popup. ``close`` lists the controls that close
    it; with ``close_within_trigger`` they are looked up inside the popup
    container only. When no close control works, ``escape_fallback`` presses
    Escape and ``outside_click_fallback`` clicks an empty spot of the page.
    With ``trigger_visible`` a trigger match only counts if it is visible,
    for popups recognised by controls that linger hidden in the page.
    """

    name: str
    trigger: SelectorSet
    close: SelectorSet | None = None
    close_within_trigger: bool = False
    trigger_visible: bool = False
    escape_fallback: bool = False
    outside_click_fallback: bool = False
    outside_point: tuple[int, int] = (10, 10)

    async def attempt(
        self, page: PageHandle, settings: DismissalSettings
    ) -> StrategyRecord:
        record = StrategyRecord(strategy=self.name)
        log = logger.bind(component="dismissal", strategy=self.name)

        try:
            trigger = await self._find_trigger(page, settings)
        except Exception as e:
            record.error = str(e)
            record.advance(StrategyState.SKIPPED)
            log.debug("Trigger probe failed", error=str(e))
            return record

        if trigger is None:
            record.advance(StrategyState.SKIPPED)
            log.debug("Popup not present")
            return record

        record.advance(StrategyState.ATTEMPTING)
        log.info("Popup detected", selector=trigger.describe())

        action = await self._close(page, settings, record, log)
        if action is None:
            record.advance(StrategyState.SKIPPED)
            log.info("Popup could not be dismissed", error=record.error)
            return record

        await asyncio.sleep(settings.settle_ms / 1000)
        record.action = action
        record.advance(StrategyState.DISMISSED)
        log.info("Popup dismissed", action=action)
        return record

    async def _find_trigger(
        self, page: PageHandle, settings: DismissalSettings
    ) -> Query | None:
        """The trigger query that recognised the popup, if any."""
        if not self.trigger_visible:
            match = await bounded(page.locate(self.trigger), settings.call_timeout_ms)
            return match.query if match else None

        for query in self.trigger:
            probe = await bounded(page.probe(query), settings.call_timeout_ms)
            if not probe.found:
                continue
            if await bounded(page.is_visible(probe.selector), settings.call_timeout_ms):
                return query
        return None

    def _close_controls(self) -> SelectorSet | None:
        if self.close is None:
            return None
        if self.close_within_trigger:
            return self.close.within(self.trigger)
        return self.close

    async def _close(
        self,
        page: PageHandle,
        settings: DismissalSettings,
        record: StrategyRecord,
        log: structlog.stdlib.BoundLogger,
    ) -> str | None:
        """Run the close actions in order; return the one that worked."""
        controls = self._close_controls()
        if controls is not None:
            try:
                action = await self._click_first_visible(page, controls, settings)
                if action is not None:
                    return action
            except Exception as e:
                record.error = str(e)
                log.debug("Close control failed", error=str(e))

        if self.escape_fallback:
            try:
                await bounded(page.press_key("Escape"), settings.call_timeout_ms)
                return "escape"
            except Exception as e:
                record.error = str(e)
                log.debug("Escape fallback failed", error=str(e))

        if self.outside_click_fallback:
            x, y = self.outside_point
            try:
                await bounded(page.click_at(x, y), settings.call_timeout_ms)
                return "outside_click"
            except Exception as e:
                record.error = str(e)
                log.debug("Outside click failed", error=str(e))

        return None

    async def _click_first_visible(
        self, page: PageHandle, controls: SelectorSet, settings: DismissalSettings
    ) -> str | None:
        for query in controls:
            probe = await bounded(page.probe(query), settings.call_timeout_ms)
            if not probe.found:
                continue
            visible = await bounded(
                page.is_visible(probe.selector), settings.call_timeout_ms
            )
            if not visible:
                continue
            await bounded(page.click(probe.selector), settings.call_timeout_ms)
            return f"click:{query.describe()}"
        return None


CLOSE_CONTROLS = '.close, .btn-close, [aria-label="Close"]'

SUBSCRIPTION_CLOSE = SelectorSet.of(
    "subscription close",
    'button:has-text("✕"), button:has-text("×"), .close, '
    '[aria-label="Close"], button[class*="close"]',
)

COOKIE_ACCEPT = SelectorSet.of(
    "cookie accept",
    'button:has-text("Ok"), button:has-text("Принять"), button:has-text("Accept")',
)

DEFAULT_STRATEGIES: tuple[DismissalStrategy, ...] = (
    # Promotional popup injected by the shop's marketing widget
    DismissalStrategy(
        name="sputnik_popup",
        trigger=SelectorSet.of("sputnik popup", ".popup-outer.popup-outer-sputnik.active"),
        close=SelectorSet.of("sputnik close", CLOSE_CONTROLS),
        close_within_trigger=True,
        escape_fallback=True,
    ),
    # Subscription nag: recognised by a visible close control alone
    DismissalStrategy(
        name="subscription_popup",
        trigger=SUBSCRIPTION_CLOSE,
        close=SUBSCRIPTION_CLOSE,
        trigger_visible=True,
        escape_fallback=True,
    ),
    DismissalStrategy(
        name="cookie_consent",
        trigger=COOKIE_ACCEPT,
        close=COOKIE_ACCEPT,
    ),
    DismissalStrategy(
        name="generic_modal",
        trigger=SelectorSet.of(
            "open modal",
            '.modal.show, .overlay.visible, .popup.open, [class*="modal"][class*="show"], '
            '[class*="popup"][class*="open"], .dialog[open]',
        ),
        close=SelectorSet.of(
            "modal close",
            CLOSE_CONTROLS,
            '[data-dismiss="modal"], [data-bs-dismiss="modal"], .modal-close, '
            '.popup-close, button[class*="close"]',
        ),
        close_within_trigger=True,
        outside_click_fallback=True,
    ),
)
