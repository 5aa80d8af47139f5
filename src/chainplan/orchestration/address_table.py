"""
chainplan.orchestration.address_table - Per-Run Address Resolution
====================================================================

The AddressTable maps unit names to the addresses deployed so far in one
orchestration run. It is created empty by each run, owned exclusively by
that run's Orchestrator, and only ever appended to.
"""

from __future__ import annotations

from typing import Iterator, Optional

from chainplan.core.exceptions import DeploymentError, UnresolvedReferenceError


class AddressTable:
    """Append-only unit name → address mapping for a single run."""

    def __init__(self) -> None:
        self._addresses: dict[str, str] = {}

    def insert(self, unit_name: str, address: str) -> None:
        """Record the address of a freshly deployed (or supplied) unit.

        Raises:
            DeploymentError: If the unit already has an address in this run.
        """
        if unit_name in self._addresses:
            raise DeploymentError(
                message=f"Address for '{unit_name}' was already recorded in this run",
                unit_name=unit_name,
                error_code="DUPLICATE_ADDRESS",
                details={
                    "existing": self._addresses[unit_name],
                    "new": address,
                },
            )
        self._addresses[unit_name] = address

    def resolve(self, reference: str, *, for_unit: Optional[str] = None) -> str:
        """Look up the address of a referenced unit.

        Args:
            reference: Name of the unit whose address is needed.
            for_unit: The unit whose arguments are being resolved (for
                error context).

        Raises:
            UnresolvedReferenceError: If the referenced unit has no address yet.
        """
        try:
            return self._addresses[reference]
        except KeyError:
            raise UnresolvedReferenceError(
                message=(
                    f"Unit '{for_unit}' needs the address of '{reference}', "
                    f"which has not been deployed in this run"
                ),
                unit_name=for_unit,
                reference=reference,
                details={"known": sorted(self._addresses)},
            ) from None

    def as_dict(self) -> dict[str, str]:
        """Snapshot copy of the table."""
        return dict(self._addresses)

    def __contains__(self, unit_name: object) -> bool:
        return unit_name in self._addresses

    def __iter__(self) -> Iterator[str]:
        return iter(self._addresses)

    def __len__(self) -> int:
        return len(self._addresses)
