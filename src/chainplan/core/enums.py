"""
chainplan.core.enums - Type-Safe Enumerations
===============================================

All enums inherit from both `str` and `Enum`, so they serialize to plain
strings in JSON/YAML and compare equal to their string values:

    >>> CaseNormalization.LOWERCASE == "lowercase"
    True
"""

from enum import Enum


# =============================================================================
# Case Normalization
# =============================================================================
# How a deployed address is written to the artifact store. Chain-native
# addresses may carry a mixed-case checksum; some consumers compare
# addresses as plain strings and want a single canonical case.
# =============================================================================
class CaseNormalization(str, Enum):
    """Canonical case applied to addresses before they are persisted.

    LOWERCASE is the default.

    Usage:
        >>> CaseNormalization.LOWERCASE.apply("0xAbC")
        '0xabc'
        >>> CaseNormalization.AS_PROVIDED.apply("0xAbC")
        '0xAbC'
    """

    LOWERCASE = "lowercase"        # "0xAbC..." → "0xabc..."
    AS_PROVIDED = "as_provided"    # stored exactly as the Deployer returned it

    def apply(self, address: str) -> str:
        """Normalize an address according to this rule."""
        if self is CaseNormalization.LOWERCASE:
            return address.lower()
        return address


# =============================================================================
# Run Status
# =============================================================================
# Terminal state of one Orchestrator.run():
#
#   COMPLETED: every entry deployed and persisted
#   ABORTED:   stopped at the first failing entry (see RunReport.aborted_at)
# =============================================================================
class RunStatus(str, Enum):
    """Terminal status of an orchestration run."""

    COMPLETED = "completed"
    ABORTED = "aborted"


# =============================================================================
# Artifact Field
# =============================================================================
# The two addressable records persisted per unit. The value doubles as the
# key suffix: "<unitName>.<field>".
# =============================================================================
class ArtifactField(str, Enum):
    """The persisted fields of an ArtifactRecord."""

    INTERFACE_DESCRIPTOR = "interfaceDescriptor"
    ADDRESS = "address"

    def key(self, unit_name: str) -> str:
        """Storage key for this field of the given unit."""
        return f"{unit_name}.{self.value}"


# =============================================================================
# Artifact Backend
# =============================================================================
class ArtifactBackend(str, Enum):
    """Which ArtifactStore implementation the facade builds."""

    MEMORY = "memory"   # InMemoryArtifactStore (tests, dry runs)
    FILE = "file"       # FileArtifactStore (one file per field)
