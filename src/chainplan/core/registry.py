"""
chainplan.core.registry - Explicit Unit Registry
==================================================

The UnitRegistry maps unit names to UnitDescriptors. It is handed to
whatever builds plans (DeploymentPlan.from_spec, the Chainplan facade), so
the set of deployable units is visible in constructor signatures instead
of being looked up from ambient global state.

Build Output Loading:
    ``UnitRegistry.from_build_dir()`` reads compiled contract JSON files of
    the common shape produced by Solidity toolchains:

        {"contractName": "Mineral", "abi": [...], "bytecode": "0x..."}

    Files without a "contractName" are skipped.

Usage:
    >>> registry = UnitRegistry([
    ...     UnitDescriptor(name="Token", interface=token_abi),
    ...     UnitDescriptor(name="Market", interface=market_abi),
    ... ])
    >>> registry.get("Token").interface
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Iterable, Iterator, Optional

import structlog

from chainplan.core.exceptions import ConfigurationError
from chainplan.core.models import UnitDescriptor


logger = structlog.get_logger()


class UnitRegistry:
    """Name → UnitDescriptor lookup for plan construction.

    Attributes:
        _descriptors: Registered descriptors, keyed by unit name.
    """

    def __init__(self, descriptors: Optional[Iterable[UnitDescriptor]] = None) -> None:
        self._descriptors: dict[str, UnitDescriptor] = {}
        self._logger = logger.bind(component="unit_registry")
        for descriptor in descriptors or ():
            self.register(descriptor)

    def register(self, descriptor: UnitDescriptor, *, replace: bool = False) -> None:
        """Add a descriptor to the registry.

        Args:
            descriptor: The unit descriptor to register.
            replace: Allow overwriting an existing registration.

        Raises:
            ConfigurationError: If the name is already registered and
                replace is False.
        """
        if descriptor.name in self._descriptors and not replace:
            raise ConfigurationError(
                message=f"Unit '{descriptor.name}' is already registered",
                error_code="DUPLICATE_UNIT",
                details={"unit": descriptor.name},
            )
        self._descriptors[descriptor.name] = descriptor
        self._logger.debug("unit_registered", unit=descriptor.name)

    def get(self, name: str) -> UnitDescriptor:
        """Look up a descriptor by unit name.

        Raises:
            ConfigurationError: If no unit with that name is registered.
        """
        try:
            return self._descriptors[name]
        except KeyError:
            raise ConfigurationError(
                message=f"Unit '{name}' is not in the registry",
                error_code="UNKNOWN_UNIT",
                details={"unit": name, "registered": sorted(self._descriptors)},
            ) from None

    @property
    def names(self) -> list[str]:
        """Registered unit names, in registration order."""
        return list(self._descriptors)

    def __contains__(self, name: object) -> bool:
        return name in self._descriptors

    def __iter__(self) -> Iterator[UnitDescriptor]:
        return iter(self._descriptors.values())

    def __len__(self) -> int:
        return len(self._descriptors)

    # =========================================================================
    # Build Output Loading
    # =========================================================================

    @classmethod
    def from_build_dir(cls, directory: str | Path) -> UnitRegistry:
        """Build a registry from a directory of compiled contract JSON files.

        Args:
            directory: Directory containing "*.json" build outputs.

        Returns:
            A registry with one descriptor per file that names a contract.

        Raises:
            ConfigurationError: If the directory doesn't exist or a file
                is not valid JSON.
        """
        build_dir = Path(directory)
        if not build_dir.is_dir():
            raise ConfigurationError(
                message=f"Build directory not found: {build_dir}",
                error_code="BUILD_DIR_NOT_FOUND",
                details={"directory": str(build_dir)},
            )

        registry = cls()
        for path in sorted(build_dir.glob("*.json")):
            try:
                data = json.loads(path.read_text())
            except json.JSONDecodeError as e:
                raise ConfigurationError(
                    message=f"Invalid build output {path.name}: {e}",
                    error_code="INVALID_BUILD_OUTPUT",
                    details={"path": str(path)},
                ) from e

            if not isinstance(data, dict) or "contractName" not in data:
                registry._logger.debug("build_output_skipped", path=str(path))
                continue

            registry.register(
                UnitDescriptor(
                    name=data["contractName"],
                    interface=data.get("abi", []),
                    bytecode=data.get("bytecode"),
                )
            )

        return registry
