"""
Browser session and per-scenario context lifecycle.

One SessionAuthority per worker; one ScenarioWorld (context + page handle +
page objects) per scenario.
"""

from owl_harness.concurrency.handle import Match, PageHandle, Probe
from owl_harness.concurrency.session import SessionAuthority, create_browser
from owl_harness.concurrency.world import ScenarioWorld

__all__ = [
    "Match",
    "PageHandle",
    "Probe",
    "ScenarioWorld",
    "SessionAuthority",
    "create_browser",
]
