"""Scenario result records handed to reporting."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import StrEnum

from pydantic import BaseModel, Field

from owl_harness.errors import AssertionFailure, ElementNotFoundError, InfrastructureError


class ScenarioStatus(StrEnum):
    PASSED = "passed"
    FAILED = "failed"  # assertion or required element missing
    INFRA_ERROR = "infra_error"  # session or context unusable
    ERROR = "error"  # anything else raised by the scenario


def classify(error: BaseException) -> ScenarioStatus:
    """Map an exception raised by a scenario to its status."""
    if isinstance(error, InfrastructureError):
        return ScenarioStatus.INFRA_ERROR
    if isinstance(error, (AssertionFailure, ElementNotFoundError, AssertionError)):
        return ScenarioStatus.FAILED
    return ScenarioStatus.ERROR


class ScenarioResult(BaseModel):
    """Outcome of one scenario."""

    name: str = Field(min_length=1, description="Scenario name")
    status: ScenarioStatus = Field(description="Final status")
    worker: str = Field(default="", description="Worker that ran the scenario")
    duration_seconds: float = Field(default=0.0, ge=0.0, description="Wall time")
    error: str | None = Field(default=None, description="Error message, if any")
    error_type: str | None = Field(default=None, description="Exception class name")
    tags: list[str] = Field(default_factory=list, description="Scenario tags")
    context_id: str | None = Field(default=None, description="Browser context used")

    @property
    def passed(self) -> bool:
        return self.status is ScenarioStatus.PASSED

    @classmethod
    def from_error(
        cls, name: str, error: BaseException, **kwargs: object
    ) -> ScenarioResult:
        return cls(
            name=name,
            status=classify(error),
            error=str(error) or type(error).__name__,
            error_type=type(error).__name__,
            **kwargs,
        )


class RunSummary(BaseModel):
    """Aggregate of a run, in the order scenarios were selected."""

    started_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Run start timestamp",
    )
    duration_seconds: float = Field(default=0.0, ge=0.0)
    results: list[ScenarioResult] = Field(default_factory=list)

    def count(self, status: ScenarioStatus) -> int:
        return sum(1 for r in self.results if r.status is status)

    @property
    def total(self) -> int:
        return len(self.results)

    @property
    def passed(self) -> int:
        return self.count(ScenarioStatus.PASSED)

    @property
    def failed(self) -> int:
        return self.count(ScenarioStatus.FAILED)

    @property
    def infra_errors(self) -> int:
        return self.count(ScenarioStatus.INFRA_ERROR)

    @property
    def errors(self) -> int:
        return self.count(ScenarioStatus.ERROR)

    @property
    def success(self) -> bool:
        return self.passed == self.total

    def format(self) -> str:
        lines = []
        for result in self.results:
            line = f"  {result.status.value.upper():<12} {result.name} ({result.duration_seconds:.1f}s)"
            if result.error:
                line += f"\n               {result.error_type}: {result.error}"
            lines.append(line)
        lines.append("")
        lines.append(
            f"  {self.total} scenarios: {self.passed} passed, {self.failed} failed, "
            f"{self.infra_errors} infrastructure errors, {self.errors} errors "
            f"in {self.duration_seconds:.1f}s"
        )
        return "\n".join(lines)
