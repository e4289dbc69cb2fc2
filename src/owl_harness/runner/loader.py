"""Load scenario modules from Python files."""

from __future__ import annotations

import hashlib
import importlib.util
import sys
from collections.abc import Iterable
from pathlib import Path
from types import ModuleType

import structlog

from owl_harness.errors import HarnessError
from owl_harness.runner.scenario import Scenario, ScenarioRegistry, scenario_of

logger = structlog.get_logger(__name__)


class ScenarioLoadError(HarnessError):
    """Raised when a scenario file cannot be imported."""


def _module_name(path: Path) -> str:
    digest = hashlib.sha1(str(path).encode()).hexdigest()[:8]
    return f"owl_harness_scenarios_{path.stem}_{digest}"


def load_module(path: str | Path) -> ModuleType:
    """Import a Python file as a fresh module."""
    path = Path(path).resolve()
    if not path.is_file():
        raise FileNotFoundError(f"Scenario file not found: {path}")

    name = _module_name(path)
    spec = importlib.util.spec_from_file_location(name, path)
    if spec is None or spec.loader is None:
        raise ScenarioLoadError(f"Cannot import {path}")

    module = importlib.util.module_from_spec(spec)
    sys.modules[name] = module
    try:
        spec.loader.exec_module(module)
    except Exception as e:
        sys.modules.pop(name, None)
        raise ScenarioLoadError(f"Error importing {path}: {e}") from e
    return module


def collect(module: ModuleType) -> list[Scenario]:
    """Scenarios defined in ``module``, in definition order."""
    found = []
    for value in vars(module).values():
        definition = scenario_of(value)
        if definition is not None:
            found.append(definition)
    return found


def expand_paths(paths: Iterable[str | Path]) -> list[Path]:
    """Files as given; directories expand to their ``*.py`` files, sorted."""
    files: list[Path] = []
    for raw in paths:
        path = Path(raw)
        if path.is_dir():
            files.extend(sorted(p for p in path.rglob("*.py") if not p.name.startswith("_")))
        else:
            files.append(path)
    return files


def load_scenarios(paths: Iterable[str | Path]) -> ScenarioRegistry:
    """Load every scenario from ``paths`` into a new registry."""
    registry = ScenarioRegistry()
    for path in expand_paths(paths):
        scenarios = collect(load_module(path))
        registry.extend(scenarios)
        logger.info("Scenarios loaded", path=str(path), count=len(scenarios))
    return registry
