"""Tests for the worker pool and run results.

PYTEST_DONT_REWRITE: scenario steps defined here must raise plain
AssertionError messages, as real scenario modules do.
"""

from __future__ import annotations

import dataclasses
from collections.abc import Callable
from typing import TYPE_CHECKING
from unittest.mock import MagicMock

import pytest

from owl_harness.concurrency.session import SessionAuthority
from owl_harness.config import HarnessConfig
from owl_harness.errors import InfrastructureError
from owl_harness.popups.pipeline import DismissalPipeline
from owl_harness.runner.results import RunSummary, ScenarioResult, ScenarioStatus, classify
from owl_harness.runner.scenario import Scenario
from owl_harness.runner.worker_pool import WorkerPool
from owl_harness.selectors import SelectorSet

if TYPE_CHECKING:
    from conftest import FakeBrowser

    from owl_harness.concurrency.world import ScenarioWorld

SessionFactory = Callable[[HarnessConfig, str], SessionAuthority]


async def open_catalog(world: ScenarioWorld) -> None:
    await world.catalog.open()
    world.data["opened"] = True


async def fails_assertion(world: ScenarioWorld) -> None:
    assert await world.cart.item_count() == 1, "cart should hold one item"


async def needs_missing_element(world: ScenarioWorld) -> None:
    await world.product_details.wait_for_visible(
        SelectorSet.of("buy button", ".buy"), timeout_ms=50
    )


async def raises_value_error(world: ScenarioWorld) -> None:
    raise ValueError("unexpected price format")


def make(name: str, func=open_catalog, tags: tuple[str, ...] = ()) -> Scenario:
    return Scenario(name=name, func=func, tags=frozenset(tags))


@pytest.fixture
def two_workers(config: HarnessConfig) -> HarnessConfig:
    return dataclasses.replace(config, workers=2)


class TestPartition:
    """Test round-robin partitioning."""

    def test_round_robin(self, two_workers: HarnessConfig) -> None:
        pool = WorkerPool(two_workers)
        buckets = pool.partition([make(n) for n in "abcde"])
        assert [[item.name for _, item in bucket] for bucket in buckets] == [
            ["a", "c", "e"],
            ["b", "d"],
        ]

    def test_never_more_buckets_than_scenarios(self, config: HarnessConfig) -> None:
        pool = WorkerPool(dataclasses.replace(config, workers=8))
        assert len(pool.partition([make("a"), make("b")])) == 2


class TestWorkerPool:
    """Test running scenarios across workers."""

    async def test_results_in_selection_order_with_statuses(
        self,
        two_workers: HarnessConfig,
        session_factory: SessionFactory,
        pipeline: DismissalPipeline,
    ) -> None:
        scenarios = [
            make("passes"),
            make("assertion", fails_assertion),
            make("missing element", needs_missing_element),
            make("crashes", raises_value_error, tags=("@cart",)),
        ]

        summary = await WorkerPool(two_workers, session_factory, pipeline).run(scenarios)

        assert [r.name for r in summary.results] == [s.name for s in scenarios]
        assert [r.status for r in summary.results] == [
            ScenarioStatus.PASSED,
            ScenarioStatus.FAILED,
            ScenarioStatus.FAILED,
            ScenarioStatus.ERROR,
        ]
        assert summary.results[1].error == "cart should hold one item"
        assert summary.results[2].error_type == "ElementNotFoundError"
        assert summary.results[3].tags == ["@cart"]
        assert summary.success is False

    async def test_each_scenario_gets_its_own_context(
        self,
        two_workers: HarnessConfig,
        session_factory: SessionFactory,
        fake_browsers: list[FakeBrowser],
        pipeline: DismissalPipeline,
    ) -> None:
        summary = await WorkerPool(two_workers, session_factory, pipeline).run(
            [make(n) for n in "abcd"]
        )

        assert summary.success is True
        assert {r.worker for r in summary.results} == {"worker-1", "worker-2"}
        assert len(fake_browsers) == 2
        for browser in fake_browsers:
            assert browser.created == ["ctx-1", "ctx-2"]
            assert browser.closed == ["ctx-1", "ctx-2"]
        assert [r.context_id for r in summary.results] == ["ctx-1", "ctx-1", "ctx-2", "ctx-2"]

    async def test_session_failure_marks_worker_scenarios(
        self, two_workers: HarnessConfig, session_factory: SessionFactory, pipeline: DismissalPipeline
    ) -> None:
        def flaky_factory(config: HarnessConfig, name: str) -> SessionAuthority:
            if name == "worker-1":
                down = MagicMock(side_effect=ConnectionError("engine unreachable"))
                return SessionAuthority(config, browser_factory=down, name=name)
            return session_factory(config, name)

        summary = await WorkerPool(two_workers, flaky_factory, pipeline).run(
            [make(n) for n in "abc"]
        )

        assert [r.status for r in summary.results] == [
            ScenarioStatus.INFRA_ERROR,
            ScenarioStatus.PASSED,
            ScenarioStatus.INFRA_ERROR,
        ]
        assert summary.infra_errors == 2
        assert "engine unreachable" in (summary.results[0].error or "")

    async def test_context_failure_is_infrastructure(
        self,
        config: HarnessConfig,
        session_factory: SessionFactory,
        fake_browsers: list[FakeBrowser],
        pipeline: DismissalPipeline,
    ) -> None:
        pool = WorkerPool(config, session_factory, pipeline)
        session = session_factory(config, "worker-1")
        await session.start()
        fake_browsers[0].fail("create_context", RuntimeError("quota exceeded"))

        result = await pool.run_scenario(session, make("a"), "worker-1")
        await session.stop()

        assert result.status is ScenarioStatus.INFRA_ERROR
        assert result.context_id is None

    async def test_empty_selection(self, config: HarnessConfig, session_factory: SessionFactory) -> None:
        summary = await WorkerPool(config, session_factory).run([])
        assert summary.total == 0
        assert summary.success is True


class TestResults:
    """Test classification and summaries."""

    @pytest.mark.parametrize(
        ("error", "status"),
        [
            (InfrastructureError("context gone"), ScenarioStatus.INFRA_ERROR),
            (AssertionError("x"), ScenarioStatus.FAILED),
            (KeyError("x"), ScenarioStatus.ERROR),
        ],
    )
    def test_classify(self, error: Exception, status: ScenarioStatus) -> None:
        assert classify(error) is status

    def test_error_without_message(self) -> None:
        result = ScenarioResult.from_error("a", AssertionError())
        assert result.error == "AssertionError"

    def test_summary_counts_and_format(self) -> None:
        summary = RunSummary(
            results=[
                ScenarioResult(name="a", status=ScenarioStatus.PASSED, duration_seconds=1.2),
                ScenarioResult.from_error("b", InfrastructureError("context gone")),
            ]
        )

        assert summary.total == 2
        assert summary.passed == 1
        assert summary.infra_errors == 1
        assert summary.success is False
        text = summary.format()
        assert "PASSED" in text
        assert "InfrastructureError: context gone" in text
        assert "2 scenarios: 1 passed" in text
