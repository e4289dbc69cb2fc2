"""
owl-harness.

Resilient UI scenario harness for live, uncontrolled web shops, driven by
Owl Browser: isolated contexts per scenario, lazily cached page objects,
fault-tolerant element actions and a shared popup dismissal pipeline.
"""

__version__ = "1.0.0"
__author__ = "Olib AI"

from owl_harness.concurrency import PageHandle, ScenarioWorld, SessionAuthority
from owl_harness.config import HarnessConfig
from owl_harness.errors import (
    AssertionFailure,
    ElementNotFoundError,
    HarnessError,
    InfrastructureError,
)
from owl_harness.pages import (
    ActionOutcome,
    BasePage,
    CartPage,
    CatalogPage,
    NavigationPage,
    PageKind,
    PageObjectRegistry,
    ProductDetailsPage,
)
from owl_harness.popups import DismissalOutcome, DismissalPipeline, PipelineReport
from owl_harness.runner import (
    RunSummary,
    ScenarioRegistry,
    ScenarioResult,
    ScenarioStatus,
    TagExpression,
    WorkerPool,
    load_scenarios,
    scenario,
)
from owl_harness.selectors import Query, SelectorSet

__all__ = [
    "ActionOutcome",
    "AssertionFailure",
    "BasePage",
    "CartPage",
    "CatalogPage",
    "DismissalOutcome",
    "DismissalPipeline",
    "ElementNotFoundError",
    "HarnessConfig",
    "HarnessError",
    "InfrastructureError",
    "NavigationPage",
    "PageHandle",
    "PageKind",
    "PageObjectRegistry",
    "PipelineReport",
    "ProductDetailsPage",
    "Query",
    "RunSummary",
    "ScenarioRegistry",
    "ScenarioResult",
    "ScenarioStatus",
    "ScenarioWorld",
    "SelectorSet",
    "SessionAuthority",
    "TagExpression",
    "WorkerPool",
    "__version__",
    "scenario",
]
