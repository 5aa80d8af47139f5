"""
chainplan.core.state - Run Outcome Model
==========================================

The RunReport is the typed result of Orchestrator.run(). It is returned in
both terminal states instead of raising, so the caller always receives the
results produced before a failure:

    COMPLETED: results holds one DeploymentResult per deployed entry
    ABORTED:   results holds everything deployed before the failure,
               aborted_at is the failing entry's index, error is the cause

Usage:
    >>> report = await orchestrator.run(plan)
    >>> if not report.succeeded:
    ...     print(report.aborted_at, report.error.error_code)
    >>> report.raise_for_status()  # or re-raise the captured error
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from chainplan.core.enums import RunStatus
from chainplan.core.exceptions import DeploymentError
from chainplan.core.models import DeploymentResult


def _now() -> datetime:
    """Get the current UTC timestamp."""
    return datetime.now(timezone.utc)


class RunReport(BaseModel):
    """Outcome of one orchestration run.

    Attributes:
        status: COMPLETED or ABORTED.
        results: DeploymentResults in plan order. On a PersistError abort
            the last result is the unit that is live but unrecorded.
        aborted_at: Index of the failing plan entry (None when completed).
        error: The DeploymentError that aborted the run (None when completed).
        skipped: Units not redeployed because the caller supplied their
            addresses via known_addresses.
        started_at: When the run began (UTC).
        completed_at: When the run reached its terminal state (UTC).
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    status: RunStatus
    results: list[DeploymentResult] = Field(default_factory=list)
    aborted_at: Optional[int] = Field(default=None, ge=0)
    error: Optional[DeploymentError] = None
    skipped: list[str] = Field(default_factory=list)
    started_at: datetime = Field(default_factory=_now)
    completed_at: datetime = Field(default_factory=_now)

    @property
    def succeeded(self) -> bool:
        """True when every plan entry was deployed and persisted."""
        return self.status == RunStatus.COMPLETED

    @property
    def addresses(self) -> dict[str, str]:
        """Unit name → deployed address for every result in this run."""
        return {r.unit_name: r.address for r in self.results}

    @property
    def duration_seconds(self) -> float:
        """Wall-clock duration of the run."""
        return (self.completed_at - self.started_at).total_seconds()

    def raise_for_status(self) -> None:
        """Re-raise the captured error if the run was aborted."""
        if self.error is not None:
            raise self.error

    def summary(self) -> dict[str, Any]:
        """JSON-friendly summary for logging and operator output."""
        return {
            "status": self.status.value,
            "deployed": [r.unit_name for r in self.results],
            "skipped": list(self.skipped),
            "aborted_at": self.aborted_at,
            "error": self.error.to_dict() if self.error is not None else None,
            "duration_seconds": self.duration_seconds,
        }
