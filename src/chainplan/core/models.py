"""
chainplan.core.models - Core Data Models
==========================================

The Pydantic value types that flow through every layer of chainplan.

Model Hierarchy:
    UnitDescriptor    → What can be deployed? (name + interface + bytecode)
    ArgumentBinding   → How is one constructor argument derived?
                          LiteralBinding: a fixed value
                          AddressRef:     the address of an earlier unit
    PlanEntry         → One step of a plan (descriptor + ordered bindings)
    DeploymentResult  → What the Deployer produced for one entry
    ArtifactRecord    → What the ArtifactStore holds for one unit

Data Flow:
    ┌──────────────┐  descriptor, args   ┌──────────────┐
    │ Orchestrator │ ──────────────────→ │   Deployer   │
    │              │ ←────────────────── │              │
    └──────────────┘  DeploymentResult   └──────────────┘
           │
           │ unit, interface, address
           ↓
    ┌──────────────┐
    │ArtifactStore │ ──→ ArtifactRecord
    └──────────────┘

Plan-side models are frozen: a plan is constructed once before
orchestration begins and is read-only thereafter.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


def _now() -> datetime:
    """Current UTC timestamp."""
    return datetime.now(timezone.utc)


# Unit names double as storage keys ("<name>.address"), so path separators
# and leading dots are rejected.
UNIT_NAME_PATTERN = r"^[A-Za-z0-9_][A-Za-z0-9_.\-]*$"


# =============================================================================
# Unit Descriptor
# =============================================================================
class UnitDescriptor(BaseModel):
    """Immutable description of a deployable unit (a compiled contract).

    The interface and bytecode are opaque to chainplan: they are produced
    by the external build system and handed to the Deployer untouched.

    Attributes:
        name: Unit name, unique within a plan. Also the artifact key.
        interface: ABI-like interface schema (any JSON value).
        bytecode: Optional compiled bytecode reference.

    Example:
        >>> token = UnitDescriptor(
        ...     name="Mineral",
        ...     interface=[{"type": "constructor", "inputs": []}],
        ...     bytecode="0x6080...",
        ... )
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(
        min_length=1,
        pattern=UNIT_NAME_PATTERN,
        description="Unit name (unique within a plan)",
    )
    interface: Any = Field(
        default_factory=list,
        description="Interface descriptor (ABI-like JSON schema)",
    )
    bytecode: Optional[str] = Field(
        default=None,
        description="Compiled bytecode reference owned by the build system",
    )


# =============================================================================
# Argument Bindings
# =============================================================================
# A constructor argument is either a literal value or "the address of unit X".
# The `kind` field lets pydantic discriminate the union when plans are
# serialized and loaded back.
# =============================================================================
class LiteralBinding(BaseModel):
    """A constructor argument passed through unchanged."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["literal"] = "literal"
    value: Any = Field(description="The literal argument value")


class AddressRef(BaseModel):
    """A constructor argument bound to the address of an earlier unit."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["ref"] = "ref"
    unit: str = Field(min_length=1, description="Name of the referenced unit")


ArgumentBinding = Annotated[
    Union[LiteralBinding, AddressRef],
    Field(discriminator="kind"),
]


def literal(value: Any) -> LiteralBinding:
    """Bind a constructor argument to a fixed value."""
    return LiteralBinding(value=value)


def ref(unit: str) -> AddressRef:
    """Bind a constructor argument to the deployed address of `unit`."""
    return AddressRef(unit=unit)


# =============================================================================
# Plan Entry
# =============================================================================
class PlanEntry(BaseModel):
    """One step of a DeploymentPlan: a unit and how to build its arguments.

    Attributes:
        descriptor: The unit to deploy.
        bindings: Constructor argument bindings, in constructor order.

    Example:
        >>> PlanEntry(
        ...     descriptor=market_descriptor,
        ...     bindings=(ref("MineralNFT"), ref("Mineral")),
        ... )
    """

    model_config = ConfigDict(frozen=True)

    descriptor: UnitDescriptor
    bindings: tuple[ArgumentBinding, ...] = Field(
        default=(),
        description="Ordered constructor argument bindings",
    )

    @property
    def name(self) -> str:
        """The unit name of this entry."""
        return self.descriptor.name

    def references(self) -> list[str]:
        """Names of the units whose addresses this entry needs, in argument order."""
        return [b.unit for b in self.bindings if isinstance(b, AddressRef)]


# =============================================================================
# Deployment Result
# =============================================================================
class DeploymentResult(BaseModel):
    """Outcome of one successful Deployer invocation.

    Attributes:
        unit_name: The deployed unit.
        address: Address in the chain's canonical string form, exactly as
            the Deployer returned it (normalization happens at persist time).
        interface: The resolved interface descriptor.
        arguments: The resolved constructor arguments that were passed.
        deployed_at: When the deployment completed (UTC).
    """

    model_config = ConfigDict(frozen=True)

    unit_name: str = Field(description="Name of the deployed unit")
    address: str = Field(min_length=1, description="Deployed address")
    interface: Any = Field(
        default_factory=list,
        description="Resolved interface descriptor",
    )
    arguments: tuple[Any, ...] = Field(
        default=(),
        description="Resolved constructor arguments actually passed",
    )
    deployed_at: datetime = Field(
        default_factory=_now,
        description="Deployment completion timestamp (UTC)",
    )


# =============================================================================
# Artifact Record
# =============================================================================
class ArtifactRecord(BaseModel):
    """The durable artifact for one unit: interface descriptor plus address.

    Both fields are always written and overwritten together.
    """

    model_config = ConfigDict(frozen=True)

    unit_name: str = Field(description="Name of the unit")
    interface: Any = Field(description="Interface descriptor")
    address: str = Field(description="Address in the configured canonical case")
