"""
chainplan.core.exceptions - Custom Exception Hierarchy
========================================================

This module defines the structured exception hierarchy for chainplan.
Components raise and catch specific exception types that carry contextual
information instead of bare strings.

Exception Hierarchy:
    ChainplanError (base)
        ├── ConfigurationError           - Invalid plan or config, raised before any deployment
        └── DeploymentError              - Run-time failure, returned inside a RunReport
                ├── DeploymentFailedError    - The Deployer could not deploy a unit
                ├── PersistError             - Unit is live on-chain but its artifact was not written
                └── UnresolvedReferenceError - Argument reference missing from the AddressTable

Error Handling Flow:
    DeploymentPlan validation
        → ConfigurationError raised to the caller (zero deployments happen)
    Orchestrator.run()
        → Deployer / ArtifactStore failure wrapped in a DeploymentError subclass
        → run aborts, RunReport(status=ABORTED, error=...) returned
        → caller may re-run with known_addresses (no automatic retries)

Usage:
    >>> from chainplan.core.exceptions import DeploymentFailedError
    >>> raise DeploymentFailedError(
    ...     message="Transaction rejected",
    ...     unit_name="MineralNFTMarket",
    ...     details={"gas_limit": 6721975},
    ... )
"""

from __future__ import annotations

from typing import Any, Optional


# =============================================================================
# Base Exception
# =============================================================================
# All chainplan exceptions inherit from this base class, so callers can catch
# every framework-specific error with a single except clause.
# =============================================================================
class ChainplanError(Exception):
    """Base exception for all chainplan errors.

    Attributes:
        message: Human-readable error description.
        error_code: Machine-readable error code, UPPER_SNAKE_CASE
            (e.g., "FORWARD_REFERENCE", "DEPLOY_FAILED").
        details: Arbitrary dict with additional debugging context.

    Example:
        >>> try:
        ...     plan = DeploymentPlan(entries)
        ... except ChainplanError as e:
        ...     print(f"[{e.error_code}] {e.message}")
    """

    def __init__(
        self,
        message: str,
        error_code: str = "UNKNOWN_ERROR",
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)

        self.message = message
        self.error_code = error_code
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Serialize this exception to a dictionary.

        Used for structured logging and for embedding the error in a
        serialized RunReport.

        Returns:
            Dictionary with error_type, message, error_code, and details.
        """
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "error_code": self.error_code,
            "details": self.details,
        }

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"error_code={self.error_code!r}, "
            f"details={self.details!r})"
        )


# =============================================================================
# Configuration Error
# =============================================================================
# Raised before anything touches the chain: bad plan references, duplicate
# unit names, unknown deployer providers, unknown registry entries.
# Fully recoverable by fixing the input.
# =============================================================================
class ConfigurationError(ChainplanError):
    """Raised when a plan or configuration is invalid.

    Always raised before the first deployment, so it never leaves
    partial side effects behind.

    Common Causes:
        - A binding references a unit that is defined later in the plan
        - A binding references a unit that is not in the plan at all
        - Two plan entries share the same unit name
        - A plan spec names a unit missing from the UnitRegistry

    Example:
        >>> raise ConfigurationError(
        ...     message="Unit 'Market' references 'Token' before it is deployed",
        ...     error_code="FORWARD_REFERENCE",
        ...     details={"unit": "Market", "reference": "Token"},
        ... )
    """

    def __init__(
        self,
        message: str,
        error_code: str = "CONFIG_ERROR",
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message=message, error_code=error_code, details=details)


# =============================================================================
# Deployment Error (run-time base)
# =============================================================================
# Every failure that can happen while a run is in flight. The Orchestrator
# captures these into the RunReport instead of letting them escape.
# =============================================================================
class DeploymentError(ChainplanError):
    """Base class for failures that abort an orchestration run.

    Attributes:
        unit_name: The plan entry being processed when the failure happened.
            None only for failures not tied to a single unit.
    """

    def __init__(
        self,
        message: str,
        unit_name: Optional[str] = None,
        error_code: str = "DEPLOYMENT_ERROR",
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        enriched_details = details or {}
        if unit_name is not None:
            enriched_details["unit_name"] = unit_name

        super().__init__(message=message, error_code=error_code, details=enriched_details)

        self.unit_name = unit_name


class DeploymentFailedError(DeploymentError):
    """Raised when the Deployer could not complete a deployment.

    Network failures, insufficient funds, and rejected transactions all
    surface as this error. Fatal to the run; never retried automatically,
    since a repeated deploy may create a second instance.

    Attributes:
        cause: The underlying exception raised by the Deployer, if any.

    Example:
        >>> raise DeploymentFailedError(
        ...     message="out of gas",
        ...     unit_name="Mineral",
        ...     cause=RuntimeError("out of gas"),
        ... )
    """

    def __init__(
        self,
        message: str,
        unit_name: str,
        cause: Optional[BaseException] = None,
        error_code: str = "DEPLOY_FAILED",
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        enriched_details = details or {}
        if cause is not None:
            enriched_details["cause"] = repr(cause)

        super().__init__(
            message=message,
            unit_name=unit_name,
            error_code=error_code,
            details=enriched_details,
        )

        self.cause = cause


class PersistError(DeploymentError):
    """Raised when the artifact record could not be written durably.

    This is the dangerous case: the unit already exists on-chain but its
    artifact record may be missing or incomplete. The error carries the
    deployed address so an operator can re-run persistence alone.

    Attributes:
        address: Address of the live unit, if it had been deployed.
        cause: The underlying I/O exception, if any.

    Example:
        >>> raise PersistError(
        ...     message="disk full",
        ...     unit_name="Token",
        ...     address="0xaa",
        ... )
    """

    def __init__(
        self,
        message: str,
        unit_name: str,
        address: Optional[str] = None,
        cause: Optional[BaseException] = None,
        error_code: str = "PERSIST_FAILED",
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        enriched_details = details or {}
        if address is not None:
            enriched_details["address"] = address
        if cause is not None:
            enriched_details["cause"] = repr(cause)

        super().__init__(
            message=message,
            unit_name=unit_name,
            error_code=error_code,
            details=enriched_details,
        )

        self.address = address
        self.cause = cause


class UnresolvedReferenceError(DeploymentError):
    """Raised when an address reference is missing from the AddressTable.

    Plan validation makes this unreachable for well-formed plans, so
    seeing it means an internal-consistency fault.

    Attributes:
        reference: The unit name that could not be resolved.
    """

    def __init__(
        self,
        message: str,
        unit_name: Optional[str],
        reference: str,
        error_code: str = "UNRESOLVED_REFERENCE",
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        enriched_details = details or {}
        enriched_details["reference"] = reference

        super().__init__(
            message=message,
            unit_name=unit_name,
            error_code=error_code,
            details=enriched_details,
        )

        self.reference = reference
