"""
Parallel scenario execution.

Scenarios are partitioned round-robin over ``config.workers`` workers. Each
worker owns one SessionAuthority for its whole life and runs its scenarios
one at a time, every scenario in a fresh ScenarioWorld. Workers run
concurrently on the event loop.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Callable, Sequence
from typing import TYPE_CHECKING

import structlog

from owl_harness.concurrency.session import SessionAuthority
from owl_harness.concurrency.world import ScenarioWorld
from owl_harness.errors import InfrastructureError
from owl_harness.runner.results import RunSummary, ScenarioResult, ScenarioStatus

if TYPE_CHECKING:
    from owl_harness.config import HarnessConfig
    from owl_harness.popups.pipeline import DismissalPipeline
    from owl_harness.runner.scenario import Scenario

logger = structlog.get_logger(__name__)

SessionFactory = Callable[["HarnessConfig", str], SessionAuthority]


def default_session_factory(config: HarnessConfig, name: str) -> SessionAuthority:
    return SessionAuthority(config, name=name)


class WorkerPool:
    """
    Runs scenarios across parallel workers.

    Usage:
        pool = WorkerPool(config)
        summary = await pool.run(registry.select(config.tags))
    """

    def __init__(
        self,
        config: HarnessConfig,
        session_factory: SessionFactory = default_session_factory,
        pipeline: DismissalPipeline | None = None,
    ) -> None:
        self._config = config
        self._session_factory = session_factory
        self._pipeline = pipeline
        self._log = logger.bind(component="worker_pool")

    def partition(self, scenarios: Sequence[Scenario]) -> list[list[tuple[int, Scenario]]]:
        """Round-robin split into at most ``config.workers`` non-empty lists."""
        count = min(self._config.workers, len(scenarios))
        buckets: list[list[tuple[int, Scenario]]] = [[] for _ in range(count)]
        for index, item in enumerate(scenarios):
            buckets[index % count].append((index, item))
        return buckets

    async def run(self, scenarios: Sequence[Scenario]) -> RunSummary:
        summary = RunSummary()
        started = time.monotonic()
        if not scenarios:
            self._log.warning("No scenarios selected")
            return summary

        buckets = self.partition(scenarios)
        self._log.info("Starting run", scenarios=len(scenarios), workers=len(buckets))

        results: list[ScenarioResult | None] = [None] * len(scenarios)
        workers = []
        for number, bucket in enumerate(buckets, start=1):
            queue: asyncio.Queue[tuple[int, Scenario]] = asyncio.Queue()
            for entry in bucket:
                queue.put_nowait(entry)
            workers.append(self._worker(f"worker-{number}", queue, results))

        await asyncio.gather(*workers)

        summary.results = [r for r in results if r is not None]
        summary.duration_seconds = time.monotonic() - started
        self._log.info(
            "Run finished",
            passed=summary.passed,
            failed=summary.failed,
            infra_errors=summary.infra_errors,
            errors=summary.errors,
        )
        return summary

    async def _worker(
        self,
        name: str,
        queue: asyncio.Queue[tuple[int, Scenario]],
        results: list[ScenarioResult | None],
    ) -> None:
        log = self._log.bind(worker=name)
        session = self._session_factory(self._config, name)

        try:
            await session.start()
        except InfrastructureError as e:
            log.error("Worker aborted, session unavailable", pending=queue.qsize(), error=str(e))
            while not queue.empty():
                index, item = queue.get_nowait()
                results[index] = ScenarioResult.from_error(
                    item.name, e, worker=name, tags=sorted(item.tags)
                )
            await session.stop()
            return

        try:
            while not queue.empty():
                index, item = queue.get_nowait()
                results[index] = await self.run_scenario(session, item, name)
        finally:
            await session.stop()

    async def run_scenario(
        self, session: SessionAuthority, item: Scenario, worker: str = ""
    ) -> ScenarioResult:
        """Run one scenario in its own world; every outcome becomes a result."""
        log = self._log.bind(worker=worker, scenario=item.name)
        started = time.monotonic()
        context_id = None

        log.info("Scenario started")
        try:
            async with ScenarioWorld(
                session, self._config, pipeline=self._pipeline, scenario=item.name
            ) as world:
                context_id = world.context_id
                await item(world)
        except Exception as e:
            result = ScenarioResult.from_error(
                item.name,
                e,
                worker=worker,
                duration_seconds=time.monotonic() - started,
                tags=sorted(item.tags),
                context_id=context_id,
            )
            log.info("Scenario finished", status=result.status, error=result.error)
            return result

        log.info("Scenario finished", status=ScenarioStatus.PASSED)
        return ScenarioResult(
            name=item.name,
            status=ScenarioStatus.PASSED,
            worker=worker,
            duration_seconds=time.monotonic() - started,
            tags=sorted(item.tags),
            context_id=context_id,
        )
