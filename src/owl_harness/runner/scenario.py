"""Scenario definitions and the registry the ``@scenario`` decorator fills."""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Iterator
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from owl_harness.runner.tags import TagExpression, normalize_tag

if TYPE_CHECKING:
    from owl_harness.concurrency.world import ScenarioWorld

ScenarioFunc = Callable[["ScenarioWorld"], Awaitable[None]]

SCENARIO_ATTR = "__owl_scenario__"


@dataclass(frozen=True)
class Scenario:
    """A named async callable run inside its own ScenarioWorld."""

    name: str
    func: ScenarioFunc
    tags: frozenset[str] = field(default_factory=frozenset)
    source: str = ""

    async def __call__(self, world: ScenarioWorld) -> None:
        await self.func(world)


class ScenarioRegistry:
    """Ordered collection of scenarios; names are unique."""

    def __init__(self) -> None:
        self._scenarios: dict[str, Scenario] = {}

    def add(self, scenario: Scenario) -> Scenario:
        if scenario.name in self._scenarios:
            raise ValueError(f"Duplicate scenario name: {scenario.name!r}")
        self._scenarios[scenario.name] = scenario
        return scenario

    def extend(self, scenarios: Iterator[Scenario] | list[Scenario]) -> None:
        for scenario in scenarios:
            self.add(scenario)

    def select(self, expression: TagExpression | str | None = None) -> list[Scenario]:
        """Scenarios matching ``expression``, in registration order."""
        if not isinstance(expression, TagExpression):
            expression = TagExpression.parse(expression)
        return [s for s in self._scenarios.values() if expression.matches(s.tags)]

    def __iter__(self) -> Iterator[Scenario]:
        return iter(self._scenarios.values())

    def __len__(self) -> int:
        return len(self._scenarios)

    def __contains__(self, name: object) -> bool:
        return name in self._scenarios


def scenario(
    name: str | None = None,
    tags: str | list[str] | tuple[str, ...] = (),
    registry: ScenarioRegistry | None = None,
) -> Callable[[ScenarioFunc], ScenarioFunc]:
    """
    Mark an async ``(world) -> None`` function as a scenario.

    The Scenario is attached to the function (see ``scenario_of``) so the
    loader can collect it; with ``registry`` it is also added there.

    Usage:
        @scenario("Cart starts empty", tags=["@cart", "@smoke"])
        async def cart_starts_empty(world):
            await world.cart.open()
            assert await world.cart.is_empty()
    """
    if isinstance(tags, str):
        tags = tags.split()

    def decorator(func: ScenarioFunc) -> ScenarioFunc:
        definition = Scenario(
            name=name or func.__name__,
            func=func,
            tags=frozenset(normalize_tag(t) for t in tags),
            source=getattr(func, "__module__", ""),
        )
        setattr(func, SCENARIO_ATTR, definition)
        if registry is not None:
            registry.add(definition)
        return func

    return decorator


def scenario_of(obj: object) -> Scenario | None:
    """The Scenario attached by ``@scenario``, if any."""
    definition = getattr(obj, SCENARIO_ATTR, None)
    return definition if isinstance(definition, Scenario) else None
