"""
chainplan.core - Foundation Layer
=================================

The building blocks every other chainplan package depends on:

    - config:      Configuration management (ChainplanConfig, ArtifactConfig, DeployerConfig)
    - enums:       Type-safe enumerations (CaseNormalization, RunStatus, ArtifactField)
    - models:      Pydantic value types (UnitDescriptor, PlanEntry, DeploymentResult, ...)
    - plan:        DeploymentPlan and its construction-time validation
    - registry:    UnitRegistry (explicit name → descriptor lookup)
    - state:       RunReport (typed outcome of an orchestration run)
    - exceptions:  Structured exception hierarchy

Dependency Rule:
    core/ depends on nothing else in the chainplan package.
"""

from chainplan.core.config import ArtifactConfig, ChainplanConfig, DeployerConfig
from chainplan.core.enums import ArtifactBackend, ArtifactField, CaseNormalization, RunStatus
from chainplan.core.exceptions import (
    ChainplanError,
    ConfigurationError,
    DeploymentError,
    DeploymentFailedError,
    PersistError,
    UnresolvedReferenceError,
)
from chainplan.core.models import (
    AddressRef,
    ArgumentBinding,
    ArtifactRecord,
    DeploymentResult,
    LiteralBinding,
    PlanEntry,
    UnitDescriptor,
    literal,
    ref,
)
from chainplan.core.plan import DeploymentPlan, load_plan
from chainplan.core.registry import UnitRegistry
from chainplan.core.state import RunReport

__all__ = [
    # Config
    "ChainplanConfig",
    "ArtifactConfig",
    "DeployerConfig",
    # Enums
    "ArtifactBackend",
    "ArtifactField",
    "CaseNormalization",
    "RunStatus",
    # Models
    "UnitDescriptor",
    "LiteralBinding",
    "AddressRef",
    "ArgumentBinding",
    "PlanEntry",
    "DeploymentResult",
    "ArtifactRecord",
    "literal",
    "ref",
    # Plan
    "DeploymentPlan",
    "UnitRegistry",
    "load_plan",
    "RunReport",
    # Exceptions
    "ChainplanError",
    "ConfigurationError",
    "DeploymentError",
    "DeploymentFailedError",
    "PersistError",
    "UnresolvedReferenceError",
]
