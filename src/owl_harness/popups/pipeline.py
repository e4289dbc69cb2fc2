"""
Popup dismissal pipeline.

Runs after every navigation. Strategies are evaluated once each, in order,
and their outcomes are folded into a PipelineReport; the universal sweep
(Escape presses plus one click on an empty spot) then runs unconditionally.
The pipeline never raises and never takes longer than ``max_total_ms``.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import structlog

from owl_harness.popups.strategies import (
    DEFAULT_STRATEGIES,
    DismissalOutcome,
    DismissalSettings,
    DismissalStrategy,
    StrategyRecord,
    bounded,
)

if TYPE_CHECKING:
    from owl_harness.concurrency.handle import PageHandle
    from owl_harness.config import HarnessConfig

logger = structlog.get_logger(__name__)


@dataclass
class PipelineReport:
    """What one pipeline run did."""

    records: list[StrategyRecord] = field(default_factory=list)
    sweep_ran: bool = False
    timed_out: bool = False
    elapsed_ms: int = 0

    @property
    def dismissed_count(self) -> int:
        return sum(1 for r in self.records if r.outcome is DismissalOutcome.DISMISSED)

    @property
    def dismissed(self) -> list[str]:
        return [r.strategy for r in self.records if r.outcome is DismissalOutcome.DISMISSED]

    def record_for(self, strategy: str) -> StrategyRecord | None:
        for record in self.records:
            if record.strategy == strategy:
                return record
        return None


class DismissalPipeline:
    """
    Ordered, independent popup strategies shared by every page object.

    Usage:
        pipeline = DismissalPipeline.from_config(config)
        report = await pipeline.run(page)
    """

    def __init__(
        self,
        strategies: Sequence[DismissalStrategy] = DEFAULT_STRATEGIES,
        settings: DismissalSettings | None = None,
    ) -> None:
        self._strategies = tuple(strategies)
        self._settings = settings or DismissalSettings()
        self._log = logger.bind(component="dismissal_pipeline")

    @classmethod
    def from_config(cls, config: HarnessConfig) -> DismissalPipeline:
        settings = DismissalSettings(
            call_timeout_ms=config.dismiss_timeout_ms,
            appear_delay_ms=config.popup_appear_delay_ms,
            sweep_settle_ms=config.popup_settle_ms,
        )
        return cls(settings=settings)

    @property
    def strategies(self) -> tuple[DismissalStrategy, ...]:
        return self._strategies

    @property
    def settings(self) -> DismissalSettings:
        return self._settings

    async def run(self, page: PageHandle) -> PipelineReport:
        """Dismiss whatever popups are present. Never raises."""
        report = PipelineReport()
        started = time.monotonic()

        try:
            await asyncio.wait_for(
                self._run(page, report),
                timeout=self._settings.max_total_ms / 1000,
            )
        except asyncio.TimeoutError:
            report.timed_out = True
            self._log.warning(
                "Popup dismissal exceeded its time limit",
                max_total_ms=self._settings.max_total_ms,
            )
        except Exception as e:
            self._log.warning("Popup dismissal aborted", error=str(e))

        report.elapsed_ms = int((time.monotonic() - started) * 1000)
        self._log.info(
            "Popup dismissal finished",
            dismissed=report.dismissed,
            sweep_ran=report.sweep_ran,
            elapsed_ms=report.elapsed_ms,
        )
        return report

    async def _run(self, page: PageHandle, report: PipelineReport) -> None:
        if self._settings.appear_delay_ms > 0:
            await asyncio.sleep(self._settings.appear_delay_ms / 1000)

        for strategy in self._strategies:
            record = await strategy.attempt(page, self._settings)
            report.records.append(record)
            if record.outcome is DismissalOutcome.SKIPPED:
                self._log.info("Dismissal noop", strategy=strategy.name)

        await self._sweep(page)
        report.sweep_ran = True

    async def _sweep(self, page: PageHandle) -> None:
        """Escape a few times and click an empty spot; every failure ignored."""
        settings = self._settings
        for _ in range(settings.escape_presses):
            try:
                await bounded(page.press_key("Escape"), settings.call_timeout_ms)
            except Exception as e:
                self._log.debug("Sweep escape failed", error=str(e))
            await asyncio.sleep(settings.escape_interval_ms / 1000)

        x, y = settings.sweep_point
        try:
            await bounded(page.click_at(x, y), settings.call_timeout_ms)
        except Exception as e:
            self._log.debug("Sweep click failed", error=str(e))
        await asyncio.sleep(settings.sweep_settle_ms / 1000)
