"""
chainplan.facade - Chainplan Top-Level Facade
===============================================

The single entry point that wires configuration, the unit registry, the
deployer, the artifact store, and the orchestrator together.

Architecture Context:
    ┌──────────────────────────────────────────────────┐
    │                Chainplan (Facade)                 │
    │                                                   │
    │   ChainplanConfig ──→ create_deployer()           │
    │                   └─→ create_artifact_store()     │
    │                                                   │
    │   UnitRegistry ──→ DeploymentPlan.from_spec()     │
    │                                                   │
    │   Orchestrator(deployer, artifact_store).run()    │
    └──────────────────────────────────────────────────┘

Usage:
    >>> registry = UnitRegistry.from_build_dir("build/contracts")
    >>> async with Chainplan(config, registry=registry) as chain:
    ...     report = await chain.deploy([
    ...         {"unit": "Token"},
    ...         {"unit": "Market", "args": [{"ref": "Token"}]},
    ...     ])
    ...     report.raise_for_status()
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Mapping, Optional, Sequence, Union

import structlog

from chainplan.core.config import ChainplanConfig
from chainplan.core.exceptions import ConfigurationError
from chainplan.core.models import ArtifactRecord
from chainplan.core.plan import DeploymentPlan, load_plan
from chainplan.core.registry import UnitRegistry
from chainplan.core.state import RunReport
from chainplan.infrastructure.artifact_store import ArtifactStore
from chainplan.infrastructure.factory import create_artifact_store
from chainplan.integrations.deployer.base import BaseDeployer
from chainplan.integrations.deployer.factory import create_deployer
from chainplan.orchestration.orchestrator import Orchestrator


# =============================================================================
# Logger
# =============================================================================
logger = structlog.get_logger()


PlanSpec = Sequence[Mapping[str, Any]]


class Chainplan:
    """Top-level facade for dependency-ordered unit deployment.

    Lifecycle:
        1. ``Chainplan(config, registry=...)`` builds components
        2. ``await initialize()`` validates the deployer
        3. ``await deploy(plan)`` runs the orchestrator
        4. ``await shutdown()``

    Or use the async context manager, which calls initialize/shutdown.

    Attributes:
        _config: chainplan configuration.
        _registry: Units available to declarative plans.
        _deployer: Deployment provider.
        _artifact_store: Artifact persistence.
        _orchestrator: Sequencer driving deployer and store.
        _initialized: Whether initialize() has been called.
    """

    def __init__(
        self,
        config: Optional[ChainplanConfig] = None,
        *,
        registry: Optional[UnitRegistry] = None,
        deployer: Optional[BaseDeployer] = None,
        artifact_store: Optional[ArtifactStore] = None,
    ) -> None:
        """Initialize the facade.

        Args:
            config: Configuration. Defaults to ChainplanConfig(), which
                reads CHAINPLAN_* environment variables.
            registry: Units available to build_plan(). Defaults to empty.
            deployer: Custom deployer. Defaults to create_deployer(config.deployer).
            artifact_store: Custom store. Defaults to
                create_artifact_store(config.artifacts).
        """
        self._config = config or ChainplanConfig()
        self._registry = registry or UnitRegistry()
        self._deployer = deployer or create_deployer(self._config.deployer)
        self._artifact_store = artifact_store or create_artifact_store(self._config.artifacts)
        self._orchestrator = Orchestrator(self._deployer, self._artifact_store)

        self._initialized = False
        self._logger = logger.bind(component="chainplan")

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def config(self) -> ChainplanConfig:
        return self._config

    @property
    def registry(self) -> UnitRegistry:
        return self._registry

    @property
    def deployer(self) -> BaseDeployer:
        return self._deployer

    @property
    def artifact_store(self) -> ArtifactStore:
        return self._artifact_store

    @property
    def orchestrator(self) -> Orchestrator:
        return self._orchestrator

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    # =========================================================================
    # Lifecycle Management
    # =========================================================================

    async def initialize(self) -> None:
        """Validate the deployer. Idempotent.

        Raises:
            ConfigurationError: If the deployer reports it is not usable.
        """
        if self._initialized:
            return

        self._logger.info(
            "chainplan_initializing",
            provider=self._deployer.provider_name,
            network=self._deployer.network,
        )
        if not await self._deployer.validate():
            raise ConfigurationError(
                message=f"Deployer {self._deployer!r} failed validation",
                error_code="DEPLOYER_INVALID",
                details={"provider": self._deployer.provider_name},
            )

        self._initialized = True
        self._logger.info("chainplan_initialized")

    async def shutdown(self) -> None:
        """Mark the facade stopped. Idempotent."""
        if not self._initialized:
            return
        self._initialized = False
        self._logger.info("chainplan_shutdown_complete")

    async def __aenter__(self) -> Chainplan:
        await self.initialize()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.shutdown()

    # =========================================================================
    # Plans
    # =========================================================================

    def build_plan(self, spec: PlanSpec) -> DeploymentPlan:
        """Build a validated plan from declarative entries using the registry."""
        return DeploymentPlan.from_spec(spec, self._registry)

    def load_plan(self, path: Union[str, Path]) -> DeploymentPlan:
        """Load a validated plan from a YAML file using the registry."""
        return load_plan(path, self._registry)

    # =========================================================================
    # Deployment
    # =========================================================================

    async def deploy(
        self,
        plan: Union[DeploymentPlan, PlanSpec],
        *,
        known_addresses: Optional[Mapping[str, str]] = None,
    ) -> RunReport:
        """Run a plan through the orchestrator.

        Args:
            plan: A DeploymentPlan, or declarative entries to build one from.
            known_addresses: Addresses from an earlier run to resume from.

        Returns:
            The RunReport of the run.

        Raises:
            ConfigurationError: If the plan is invalid (before any deployment).
        """
        if not isinstance(plan, DeploymentPlan):
            plan = self.build_plan(plan)

        if not self._initialized:
            await self.initialize()

        report = await self._orchestrator.run(plan, known_addresses=known_addresses)
        self._logger.info("chainplan_run_finished", **report.summary())
        return report

    async def artifacts(self) -> dict[str, ArtifactRecord]:
        """All complete artifact records in the store, keyed by unit name."""
        records: dict[str, ArtifactRecord] = {}
        for unit in await self._artifact_store.list_units():
            record = await self._artifact_store.get(unit)
            if record is not None:
                records[unit] = record
        return records
