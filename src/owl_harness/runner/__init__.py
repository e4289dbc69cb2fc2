"""
Scenario runner.

Collects ``@scenario`` functions from files, selects them by tag expression
and runs them across parallel workers, each scenario in its own world.
"""

from owl_harness.runner.loader import ScenarioLoadError, load_scenarios
from owl_harness.runner.results import RunSummary, ScenarioResult, ScenarioStatus
from owl_harness.runner.scenario import Scenario, ScenarioRegistry, scenario
from owl_harness.runner.tags import TagExpression, TagExpressionError
from owl_harness.runner.worker_pool import WorkerPool

__all__ = [
    "RunSummary",
    "Scenario",
    "ScenarioLoadError",
    "ScenarioRegistry",
    "ScenarioResult",
    "ScenarioStatus",
    "TagExpression",
    "TagExpressionError",
    "WorkerPool",
    "load_scenarios",
    "scenario",
]
