"""
Tests for chainplan.orchestration.orchestrator
================================================

These tests verify the Orchestrator, the sequencer that deploys each plan
entry and persists its artifact before advancing.

What's Being Tested:
    - Deploy order and reference resolution
    - Exactly one persist per deployed unit, with the Deployer's values
    - Abort on Deployer failure with partial results
    - Abort on persistence failure, persist_only() recovery
    - Caller-driven resume via known_addresses
    - Strict sequencing (persist completes before the next deploy)
    - Cancellation leaves persisted artifacts in place
    - Defensive unresolved-reference check

All tests use MockDeployer and InMemoryArtifactStore.
"""

import asyncio
from typing import Any, Sequence

import pytest
from structlog.testing import capture_logs

from chainplan.core.enums import CaseNormalization, RunStatus
from chainplan.core.exceptions import (
    ConfigurationError,
    DeploymentFailedError,
    PersistError,
    UnresolvedReferenceError,
)
from chainplan.core.models import (
    ArtifactRecord,
    DeploymentResult,
    PlanEntry,
    UnitDescriptor,
    literal,
    ref,
)
from chainplan.core.plan import DeploymentPlan
from chainplan.infrastructure.artifact_store import InMemoryArtifactStore
from chainplan.integrations.deployer.mock import MockDeployer
from chainplan.orchestration.orchestrator import Orchestrator


# =============================================================================
# Test Doubles
# =============================================================================
class RecordingStore(InMemoryArtifactStore):
    """In-memory store that records every persist() call."""

    def __init__(self, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.calls: list[tuple[str, Any, str]] = []

    async def persist(self, unit_name: str, interface: Any, address: str) -> ArtifactRecord:
        self.calls.append((unit_name, interface, address))
        return await super().persist(unit_name, interface, address)


class FailingStore(InMemoryArtifactStore):
    """In-memory store whose writes fail for chosen units."""

    def __init__(self, fail_units: set[str]) -> None:
        super().__init__()
        self.fail_units = fail_units

    async def _write(self, record: ArtifactRecord) -> None:
        if record.unit_name in self.fail_units:
            raise OSError("No space left on device")
        await super()._write(record)


class CrashingDeployer(MockDeployer):
    """Deployer that raises a non-chainplan exception for one unit."""

    async def deploy(self, descriptor: UnitDescriptor, args: Sequence[Any]) -> DeploymentResult:
        if descriptor.name == "Market":
            raise ConnectionError("RPC endpoint unreachable")
        return await super().deploy(descriptor, args)


class RenamingDeployer(MockDeployer):
    """Deployer that reports its own name for every unit."""

    async def deploy(self, descriptor: UnitDescriptor, args: Sequence[Any]) -> DeploymentResult:
        result = await super().deploy(descriptor, args)
        return result.model_copy(update={"unit_name": f"build:{descriptor.name}"})


class SequenceCheckingDeployer(MockDeployer):
    """Deployer asserting every earlier unit is already persisted."""

    def __init__(self, store: InMemoryArtifactStore) -> None:
        super().__init__()
        self.store = store
        self.persisted_before: dict[str, list[str]] = {}

    async def deploy(self, descriptor: UnitDescriptor, args: Sequence[Any]) -> DeploymentResult:
        self.persisted_before[descriptor.name] = await self.store.list_units()
        return await super().deploy(descriptor, args)


class BlockingDeployer(MockDeployer):
    """Deployer that hangs forever on one unit."""

    def __init__(self, block_on: str) -> None:
        super().__init__()
        self.block_on = block_on
        self.blocked = asyncio.Event()

    async def deploy(self, descriptor: UnitDescriptor, args: Sequence[Any]) -> DeploymentResult:
        if descriptor.name == self.block_on:
            self.blocked.set()
            await asyncio.Event().wait()
        return await super().deploy(descriptor, args)


class UncheckedPlan(DeploymentPlan):
    """Plan that skips validation, to reach the run-time reference check."""

    def _validate(self) -> None:
        pass


# =============================================================================
# Helpers
# =============================================================================
def _unit(name: str) -> UnitDescriptor:
    return UnitDescriptor(name=name, interface=[{"type": "constructor", "name": name}])


def _chain_plan(*names: str) -> DeploymentPlan:
    """Plan where every unit takes the previous unit's address."""
    entries = []
    for position, name in enumerate(names):
        bindings = (ref(names[position - 1]),) if position else ()
        entries.append(PlanEntry(descriptor=_unit(name), bindings=bindings))
    return DeploymentPlan(entries)


def _mineral_plan() -> DeploymentPlan:
    return DeploymentPlan([
        PlanEntry(descriptor=_unit("MineralNFT"), bindings=(literal("MineralNFT"), literal("FSI"))),
        PlanEntry(descriptor=_unit("Mineral")),
        PlanEntry(
            descriptor=_unit("MineralNFTMarket"),
            bindings=(ref("MineralNFT"), ref("Mineral")),
        ),
        PlanEntry(descriptor=_unit("Factory")),
    ])


# =============================================================================
# Tests: Successful Runs
# =============================================================================
class TestSuccessfulRun:
    """Tests for runs that complete."""

    async def test_token_market_example(self, token_market_plan, token_descriptor, market_descriptor) -> None:
        """Token → 0xAA, Market(0xAA) → 0xBB, both persisted."""
        deployer = MockDeployer()
        deployer.queue_address("0xAA")
        deployer.queue_address("0xBB")
        store = InMemoryArtifactStore(CaseNormalization.AS_PROVIDED)

        report = await Orchestrator(deployer, store).run(token_market_plan)

        assert report.status == RunStatus.COMPLETED
        assert report.addresses == {"Token": "0xAA", "Market": "0xBB"}
        assert deployer.call_history[1] == {"unit": "Market", "args": ["0xAA"]}

        token = await store.get("Token")
        market = await store.get("Market")
        assert (token.interface, token.address) == (token_descriptor.interface, "0xAA")
        assert (market.interface, market.address) == (market_descriptor.interface, "0xBB")

    async def test_deploys_every_entry_in_order(self, orchestrator, mock_deployer) -> None:
        plan = _mineral_plan()

        report = await orchestrator.run(plan)

        assert report.succeeded
        assert mock_deployer.deployed_units == plan.names
        assert [r.unit_name for r in report.results] == plan.names

    async def test_references_resolve_to_earlier_addresses(self, orchestrator, mock_deployer) -> None:
        report = await orchestrator.run(_mineral_plan())

        addresses = report.addresses
        market_args = mock_deployer.call_history[2]["args"]
        assert market_args == [addresses["MineralNFT"], addresses["Mineral"]]
        assert mock_deployer.call_history[0]["args"] == ["MineralNFT", "FSI"]
        assert report.results[2].arguments == tuple(market_args)

    async def test_persist_called_once_per_unit_with_deployer_values(self, mock_deployer) -> None:
        store = RecordingStore()
        report = await Orchestrator(mock_deployer, store).run(_chain_plan("A", "B", "C"))

        assert [(r.unit_name, r.interface, r.address) for r in report.results] == store.calls

    async def test_persisted_address_is_lowercased_by_default(self, orchestrator, memory_store) -> None:
        report = await orchestrator.run(_chain_plan("A"))
        record = await memory_store.get("A")
        assert record.address == report.results[0].address.lower()

    async def test_persist_completes_before_next_deploy(self) -> None:
        store = InMemoryArtifactStore()
        deployer = SequenceCheckingDeployer(store)

        await Orchestrator(deployer, store).run(_chain_plan("A", "B", "C"))

        assert deployer.persisted_before == {"A": [], "B": ["A"], "C": ["A", "B"]}

    async def test_records_keyed_by_plan_name(self, memory_store) -> None:
        """The plan's unit name wins over whatever name the Deployer reports."""
        deployer = RenamingDeployer()
        with capture_logs() as logs:
            report = await Orchestrator(deployer, memory_store).run(_chain_plan("A", "B"))

        assert report.succeeded
        assert list(report.addresses) == ["A", "B"]
        assert await memory_store.list_units() == ["A", "B"]
        mismatches = [e for e in logs if e["event"] == "deployer_unit_name_mismatch"]
        assert [(e["unit"], e["returned"]) for e in mismatches] == [
            ("A", "build:A"),
            ("B", "build:B"),
        ]

    async def test_runs_are_independent(self, orchestrator) -> None:
        """Each run gets a fresh AddressTable."""
        first = await orchestrator.run(_chain_plan("A", "B"))
        second = await orchestrator.run(_chain_plan("A", "B"))
        assert first.succeeded and second.succeeded
        assert first.addresses != second.addresses


# =============================================================================
# Tests: Plan Validation Happens First
# =============================================================================
class TestFailFast:
    """Bad plans never reach the Deployer."""

    def test_forward_reference_means_zero_deployments(self, mock_deployer) -> None:
        with pytest.raises(ConfigurationError):
            DeploymentPlan([
                PlanEntry(descriptor=_unit("A"), bindings=(ref("B"),)),
                PlanEntry(descriptor=_unit("B")),
            ])
        assert mock_deployer.call_count == 0

    async def test_unknown_known_address_rejected(self, orchestrator, mock_deployer) -> None:
        with pytest.raises(ConfigurationError) as exc_info:
            await orchestrator.run(_chain_plan("A"), known_addresses={"Z": "0x1"})
        assert exc_info.value.error_code == "UNKNOWN_KNOWN_ADDRESS"
        assert mock_deployer.call_count == 0


# =============================================================================
# Tests: Deployer Failures
# =============================================================================
class TestDeployerFailure:
    """Tests for aborts caused by the Deployer."""

    async def test_abort_at_second_entry(self, orchestrator, mock_deployer, memory_store) -> None:
        """3-entry plan failing on entry 2: aborted at index 1, one result."""
        mock_deployer.fail_on("B", "transaction rejected")

        report = await orchestrator.run(_chain_plan("A", "B", "C"))

        assert report.status == RunStatus.ABORTED
        assert report.aborted_at == 1
        assert [r.unit_name for r in report.results] == ["A"]
        assert isinstance(report.error, DeploymentFailedError)
        assert report.error.unit_name == "B"
        assert mock_deployer.deployed_units == ["A", "B"]
        assert await memory_store.list_units() == ["A"]

    async def test_no_retry(self, orchestrator, mock_deployer) -> None:
        mock_deployer.fail_on("A")
        await orchestrator.run(_chain_plan("A"))
        assert mock_deployer.call_count == 1

    async def test_foreign_exception_is_wrapped(self, memory_store, token_market_plan) -> None:
        report = await Orchestrator(CrashingDeployer(), memory_store).run(token_market_plan)

        assert report.aborted_at == 1
        assert isinstance(report.error, DeploymentFailedError)
        assert isinstance(report.error.cause, ConnectionError)
        assert report.error.unit_name == "Market"

    async def test_abort_is_logged(self, orchestrator, mock_deployer) -> None:
        mock_deployer.fail_on("B")
        with capture_logs() as logs:
            await orchestrator.run(_chain_plan("A", "B"))

        aborted = [e for e in logs if e["event"] == "run_aborted"]
        assert len(aborted) == 1
        assert aborted[0]["log_level"] == "error"
        assert aborted[0]["index"] == 1
        assert aborted[0]["error_code"] == "DEPLOY_FAILED"


# =============================================================================
# Tests: Persistence Failures
# =============================================================================
class TestPersistFailure:
    """Tests for aborts caused by the ArtifactStore."""

    async def test_persist_failure_aborts(self, mock_deployer) -> None:
        store = FailingStore({"B"})
        report = await Orchestrator(mock_deployer, store).run(_chain_plan("A", "B", "C"))

        assert report.status == RunStatus.ABORTED
        assert report.aborted_at == 1
        assert isinstance(report.error, PersistError)
        assert mock_deployer.deployed_units == ["A", "B"]

    async def test_persist_failure_reports_live_unit(self, mock_deployer) -> None:
        """The unit is deployed: its address must be visible to the operator."""
        store = FailingStore({"B"})
        report = await Orchestrator(mock_deployer, store).run(_chain_plan("A", "B", "C"))

        live = report.results[-1]
        assert live.unit_name == "B"
        assert report.error.unit_name == "B"
        assert report.error.address == live.address
        assert isinstance(report.error.cause, OSError)
        assert await store.get("B") is None

    async def test_persist_only_recovers(self, mock_deployer) -> None:
        store = FailingStore({"B"})
        orchestrator = Orchestrator(mock_deployer, store)
        report = await orchestrator.run(_chain_plan("A", "B"))

        store.fail_units.clear()
        record = await orchestrator.persist_only(report.results[-1])

        assert record.unit_name == "B"
        assert await store.get("B") == record
        assert mock_deployer.call_count == 2

    async def test_persist_only_raises_on_failure(self, mock_deployer) -> None:
        store = FailingStore({"A"})
        orchestrator = Orchestrator(mock_deployer, store)
        with pytest.raises(PersistError):
            await orchestrator.persist_only(DeploymentResult(unit_name="A", address="0x1"))


# =============================================================================
# Tests: Resume
# =============================================================================
class TestResume:
    """Caller-driven re-run from the point of failure."""

    async def test_resume_skips_known_units(self, orchestrator, mock_deployer) -> None:
        plan = _chain_plan("A", "B", "C")
        mock_deployer.fail_on("B")
        first = await orchestrator.run(plan)
        assert first.aborted_at == 1

        mock_deployer.reset()
        second = await orchestrator.run(plan, known_addresses=first.addresses)

        assert second.succeeded
        assert second.skipped == ["A"]
        assert mock_deployer.deployed_units == ["B", "C"]
        assert mock_deployer.call_history[0]["args"] == [first.addresses["A"]]

    async def test_resume_does_not_repersist_recorded_units(self, mock_deployer) -> None:
        store = RecordingStore()
        await store.persist("A", [], "0xAA")
        store.calls.clear()

        await Orchestrator(mock_deployer, store).run(
            _chain_plan("A", "B"), known_addresses={"A": "0xAA"}
        )
        assert [call[0] for call in store.calls] == ["B"]

    async def test_resume_records_unit_left_unpersisted(self, mock_deployer) -> None:
        """A unit live after a PersistError gets its record on resume."""
        store = FailingStore({"B"})
        orchestrator = Orchestrator(mock_deployer, store)
        plan = _chain_plan("A", "B", "C")

        first = await orchestrator.run(plan)
        assert first.aborted_at == 1
        assert await store.get("B") is None

        store.fail_units.clear()
        second = await orchestrator.run(plan, known_addresses=first.addresses)

        assert second.status == RunStatus.COMPLETED
        assert second.skipped == ["A", "B"]
        assert mock_deployer.deployed_units == ["A", "B", "C"]
        record = await store.get("B")
        assert record.address == first.addresses["B"].lower()
        assert record.interface == plan[1].descriptor.interface
        assert await store.list_units() == ["A", "B", "C"]

    async def test_resume_aborts_when_record_still_fails(self, mock_deployer) -> None:
        store = FailingStore({"A"})
        report = await Orchestrator(mock_deployer, store).run(
            _chain_plan("A", "B"), known_addresses={"A": "0xAA"}
        )

        assert report.status == RunStatus.ABORTED
        assert report.aborted_at == 0
        assert isinstance(report.error, PersistError)
        assert report.error.address == "0xAA"
        assert mock_deployer.call_count == 0


# =============================================================================
# Tests: Cancellation and Internal Faults
# =============================================================================
class TestCancellation:
    """Cancelling a run mid-way."""

    async def test_cancel_keeps_persisted_artifacts(self, memory_store) -> None:
        deployer = BlockingDeployer(block_on="B")
        task = asyncio.create_task(
            Orchestrator(deployer, memory_store).run(_chain_plan("A", "B", "C"))
        )

        await deployer.blocked.wait()
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task
        assert await memory_store.list_units() == ["A"]
        assert deployer.deployed_units == ["A"]


class TestUnresolvedReference:
    """The run-time reference check behind plan validation."""

    async def test_unresolved_reference_aborts(self, orchestrator, mock_deployer) -> None:
        plan = UncheckedPlan([PlanEntry(descriptor=_unit("B"), bindings=(ref("A"),))])

        report = await orchestrator.run(plan)

        assert report.aborted_at == 0
        assert isinstance(report.error, UnresolvedReferenceError)
        assert report.error.reference == "A"
        assert mock_deployer.call_count == 0
