"""
chainplan.orchestration.orchestrator - Dependency-Ordered Deployment
======================================================================

The Orchestrator walks a DeploymentPlan in order, deploying each unit and
persisting its artifact before moving on. Later units may take earlier
units' addresses as constructor arguments, so entries are strictly
sequential: no parallelism within a run.

Architecture Context:
    ┌──────────────────────────────────────────────────────────────┐
    │                        Orchestrator                          │
    │                                                              │
    │  DeploymentPlan ──→ for each entry (in order):               │
    │                                                              │
    │    1. resolve bindings   ──→ AddressTable                    │
    │    2. deploy             ──→ [Deployer]      (await)         │
    │    3. record address     ──→ AddressTable                    │
    │    4. persist artifact   ──→ [ArtifactStore] (await)         │
    │                                                              │
    │  any failure ──→ abort, RunReport(ABORTED, partial results)  │
    └──────────────────────────────────────────────────────────────┘

Failure Policy:
    - Deployer failure       → DeploymentFailedError, abort. No retry:
                               deployments are not idempotent.
    - Persistence failure    → PersistError, abort. The unit is live but
                               unrecorded; its result stays in the report so
                               an operator can call persist_only().
    - Missing reference      → UnresolvedReferenceError, abort. Plan
                               validation makes this an internal fault.

    Errors are returned in the RunReport, never swallowed. Cancellation
    propagates to the caller; artifacts already persisted stay valid.

Resuming:
    Retrying is a caller decision. Re-run the same plan with the addresses
    already known, and those entries are seeded into the AddressTable
    instead of being deployed again. A known unit with no artifact record
    (an earlier PersistError) is persisted from its descriptor first:

    >>> report = await orchestrator.run(plan)
    >>> if not report.succeeded:
    ...     report = await orchestrator.run(plan, known_addresses=report.addresses)

Usage:
    >>> orchestrator = Orchestrator(MockDeployer(), FileArtifactStore("deployed"))
    >>> report = await orchestrator.run(plan)
    >>> report.status  # RunStatus.COMPLETED
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Mapping, Optional

import structlog

from chainplan.core.enums import RunStatus
from chainplan.core.exceptions import (
    ConfigurationError,
    DeploymentError,
    DeploymentFailedError,
    PersistError,
)
from chainplan.core.models import (
    AddressRef,
    ArtifactRecord,
    DeploymentResult,
    PlanEntry,
)
from chainplan.core.plan import DeploymentPlan
from chainplan.core.state import RunReport
from chainplan.infrastructure.artifact_store import ArtifactStore
from chainplan.integrations.deployer.base import BaseDeployer
from chainplan.orchestration.address_table import AddressTable


# =============================================================================
# Logger Setup
# =============================================================================
logger = structlog.get_logger()


class Orchestrator:
    """Sequential deploy-then-persist engine for a DeploymentPlan.

    The Orchestrator holds no per-run state: every run() builds its own
    AddressTable, so one Orchestrator can serve several runs one after
    another.

    Attributes:
        _deployer: Performs the deployments.
        _artifact_store: Persists interface descriptors and addresses.
        _logger: Structured logger with orchestrator context.
    """

    def __init__(
        self,
        deployer: BaseDeployer,
        artifact_store: ArtifactStore,
    ) -> None:
        self._deployer = deployer
        self._artifact_store = artifact_store
        self._logger = logger.bind(component="orchestrator")

    @property
    def deployer(self) -> BaseDeployer:
        return self._deployer

    @property
    def artifact_store(self) -> ArtifactStore:
        return self._artifact_store

    # =========================================================================
    # Main Entry Point
    # =========================================================================

    async def run(
        self,
        plan: DeploymentPlan,
        *,
        known_addresses: Optional[Mapping[str, str]] = None,
    ) -> RunReport:
        """Deploy and persist every entry of the plan, in order.

        Args:
            plan: A validated DeploymentPlan.
            known_addresses: Addresses of units deployed by an earlier run.
                Those entries are not redeployed; their addresses are used
                to resolve later references. Any of them missing an
                artifact record is persisted before the run moves on.

        Returns:
            RunReport with status COMPLETED, or ABORTED with the failing
            entry index, the error, and the results produced before it.

        Raises:
            ConfigurationError: If known_addresses names a unit that is not
                in the plan (checked before any deployment).
        """
        known = dict(known_addresses or {})
        unknown = sorted(name for name in known if name not in plan)
        if unknown:
            raise ConfigurationError(
                message=f"Known addresses supplied for units not in the plan: {unknown}",
                error_code="UNKNOWN_KNOWN_ADDRESS",
                details={"units": unknown, "plan": plan.names},
            )

        started_at = datetime.now(timezone.utc)
        table = AddressTable()
        results: list[DeploymentResult] = []
        skipped: list[str] = []

        self._logger.info(
            "run_starting",
            units=plan.names,
            known=sorted(known),
            network=self._deployer.network,
        )

        for index, entry in enumerate(plan):
            if entry.name in known:
                address = known[entry.name]
                table.insert(entry.name, address)
                skipped.append(entry.name)
                try:
                    await self._ensure_recorded(entry, address)
                except DeploymentError as e:
                    return self._abort(index, e, results, skipped, started_at)
                self._logger.info(
                    "unit_skipped",
                    index=index,
                    unit=entry.name,
                    address=address,
                )
                continue

            try:
                args = self._resolve_arguments(entry, table)
                result = await self._deploy(entry, args)
                if result.unit_name != entry.name:
                    self._logger.warning(
                        "deployer_unit_name_mismatch",
                        unit=entry.name,
                        returned=result.unit_name,
                    )
                    result = result.model_copy(update={"unit_name": entry.name})
                table.insert(entry.name, result.address)
                results.append(result)
                await self._persist(result)
            except DeploymentError as e:
                return self._abort(index, e, results, skipped, started_at)

            self._logger.info(
                "unit_deployed",
                index=index,
                unit=entry.name,
                address=result.address,
            )

        report = RunReport(
            status=RunStatus.COMPLETED,
            results=results,
            skipped=skipped,
            started_at=started_at,
            completed_at=datetime.now(timezone.utc),
        )
        self._logger.info(
            "run_completed",
            deployed=len(results),
            skipped=len(skipped),
            duration_seconds=report.duration_seconds,
        )
        return report

    async def persist_only(self, result: DeploymentResult) -> ArtifactRecord:
        """Re-run persistence for a unit that was deployed but not recorded.

        Intended for operator recovery after a PersistError: the unit is
        already live, so it must not be deployed again.

        Raises:
            PersistError: If the write fails again.
        """
        self._logger.info(
            "persist_only",
            unit=result.unit_name,
            address=result.address,
        )
        return await self._persist(result)

    # =========================================================================
    # Steps
    # =========================================================================

    @staticmethod
    def _resolve_arguments(entry: PlanEntry, table: AddressTable) -> list[Any]:
        """Turn an entry's bindings into concrete constructor arguments."""
        return [
            table.resolve(binding.unit, for_unit=entry.name)
            if isinstance(binding, AddressRef)
            else binding.value
            for binding in entry.bindings
        ]

    async def _deploy(self, entry: PlanEntry, args: list[Any]) -> DeploymentResult:
        try:
            return await self._deployer.deploy(entry.descriptor, args)
        except DeploymentFailedError:
            raise
        except Exception as e:
            raise DeploymentFailedError(
                message=f"Deployment of '{entry.name}' failed: {e}",
                unit_name=entry.name,
                cause=e,
            ) from e

    async def _ensure_recorded(self, entry: PlanEntry, address: str) -> None:
        """Persist a known unit whose artifact record is missing.

        A unit can be live without a record when an earlier run failed to
        persist it; resuming with its address must not leave it that way.
        """
        try:
            existing = await self._artifact_store.get(entry.name)
        except Exception as e:
            raise PersistError(
                message=f"Failed to read artifact for '{entry.name}': {e}",
                unit_name=entry.name,
                address=address,
                cause=e,
            ) from e
        if existing is not None:
            return

        self._logger.info("known_unit_unrecorded", unit=entry.name, address=address)
        await self._persist(
            DeploymentResult(
                unit_name=entry.name,
                address=address,
                interface=entry.descriptor.interface,
            )
        )

    async def _persist(self, result: DeploymentResult) -> ArtifactRecord:
        try:
            return await self._artifact_store.persist(
                result.unit_name,
                result.interface,
                result.address,
            )
        except PersistError:
            raise
        except Exception as e:
            raise PersistError(
                message=f"Failed to persist artifact for '{result.unit_name}': {e}",
                unit_name=result.unit_name,
                address=result.address,
                cause=e,
            ) from e

    def _abort(
        self,
        index: int,
        error: DeploymentError,
        results: list[DeploymentResult],
        skipped: list[str],
        started_at: datetime,
    ) -> RunReport:
        """Build the ABORTED report and log the failure loudly."""
        self._logger.error(
            "run_aborted",
            index=index,
            unit=error.unit_name,
            deployed=[r.unit_name for r in results],
            **error.to_dict(),
        )
        return RunReport(
            status=RunStatus.ABORTED,
            results=list(results),
            aborted_at=index,
            error=error,
            skipped=skipped,
            started_at=started_at,
            completed_at=datetime.now(timezone.utc),
        )
