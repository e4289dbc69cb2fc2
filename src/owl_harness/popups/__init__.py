"""Popup and interstitial dismissal."""

from owl_harness.popups.pipeline import DismissalPipeline, PipelineReport
from owl_harness.popups.strategies import (
    DEFAULT_STRATEGIES,
    DismissalOutcome,
    DismissalSettings,
    DismissalStrategy,
    StrategyRecord,
    StrategyState,
)

__all__ = [
    "DEFAULT_STRATEGIES",
    "DismissalOutcome",
    "DismissalPipeline",
    "DismissalSettings",
    "DismissalStrategy",
    "PipelineReport",
    "StrategyRecord",
    "StrategyState",
]
