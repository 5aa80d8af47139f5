"""
Shared Test Fixtures for chainplan
=====================================

Reusable pytest fixtures, organized by layer:

    1. Configuration fixtures
    2. Unit descriptors and registry
    3. Infrastructure fixtures (ArtifactStore)
    4. Integration fixtures (Deployer)
    5. Orchestration fixtures
"""

from __future__ import annotations

import pytest

from chainplan.core.config import ArtifactConfig, ChainplanConfig
from chainplan.core.enums import ArtifactBackend
from chainplan.core.models import PlanEntry, UnitDescriptor, ref
from chainplan.core.plan import DeploymentPlan
from chainplan.core.registry import UnitRegistry
from chainplan.infrastructure.artifact_store import FileArtifactStore, InMemoryArtifactStore
from chainplan.integrations.deployer.mock import MockDeployer
from chainplan.orchestration.orchestrator import Orchestrator


# =============================================================================
# Configuration
# =============================================================================

@pytest.fixture
def config():
    """chainplan configuration with an in-memory artifact backend."""
    return ChainplanConfig(artifacts=ArtifactConfig(backend=ArtifactBackend.MEMORY))


# =============================================================================
# Units
# =============================================================================

@pytest.fixture
def token_descriptor():
    """A dependency-free unit."""
    return UnitDescriptor(
        name="Token",
        interface=[{"type": "constructor", "inputs": []}],
        bytecode="0x6001",
    )


@pytest.fixture
def market_descriptor():
    """A unit whose constructor takes the Token address."""
    return UnitDescriptor(
        name="Market",
        interface=[
            {"type": "constructor", "inputs": [{"name": "token", "type": "address"}]},
        ],
        bytecode="0x6002",
    )


@pytest.fixture
def registry(token_descriptor, market_descriptor):
    """Registry holding Token and Market."""
    return UnitRegistry([token_descriptor, market_descriptor])


@pytest.fixture
def token_market_plan(token_descriptor, market_descriptor):
    """Token, then Market(ref Token)."""
    return DeploymentPlan([
        PlanEntry(descriptor=token_descriptor),
        PlanEntry(descriptor=market_descriptor, bindings=(ref("Token"),)),
    ])


# =============================================================================
# Infrastructure
# =============================================================================

@pytest.fixture
def memory_store():
    """Fresh InMemoryArtifactStore (lowercase addresses)."""
    return InMemoryArtifactStore()


@pytest.fixture
def file_store(tmp_path):
    """FileArtifactStore writing into a per-test directory."""
    return FileArtifactStore(tmp_path / "deployed")


# =============================================================================
# Deployer
# =============================================================================

@pytest.fixture
def mock_deployer():
    """Fresh MockDeployer with no queued addresses."""
    return MockDeployer()


# =============================================================================
# Orchestration
# =============================================================================

@pytest.fixture
def orchestrator(mock_deployer, memory_store):
    """Orchestrator wired to the mock deployer and in-memory store."""
    return Orchestrator(mock_deployer, memory_store)
