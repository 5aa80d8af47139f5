"""
chainplan.integrations.deployer.base - Deployer Abstraction
=============================================================

The Deployer is the external capability that actually puts a unit on-chain.
chainplan treats it as opaque: given a descriptor and resolved constructor
arguments, it returns a DeploymentResult or raises DeploymentFailedError.

Contract Required by the Orchestrator:
    - deploy() may suspend (network round trip); the Orchestrator awaits it.
    - Deployments are NOT idempotent: each call may create a new instance
      at a new address. The Orchestrator therefore never retries.
    - Timeouts are the Deployer's concern, not the Orchestrator's.
    - Failures should be raised as DeploymentFailedError. Any other
      exception is wrapped into one by the Orchestrator.

Implementing a Provider:
    >>> class Web3Deployer(BaseDeployer):
    ...     async def deploy(self, descriptor, args):
    ...         receipt = await self._send_create(descriptor.bytecode, args)
    ...         return DeploymentResult(
    ...             unit_name=descriptor.name,
    ...             address=receipt.contract_address,
    ...             interface=descriptor.interface,
    ...             arguments=tuple(args),
    ...         )
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Sequence

from chainplan.core.config import DeployerConfig
from chainplan.core.models import DeploymentResult, UnitDescriptor


class BaseDeployer(ABC):
    """Abstract base class for all deployment providers.

    Attributes:
        _config: The deployer configuration (provider, network).
    """

    def __init__(self, config: DeployerConfig) -> None:
        self._config = config

    @property
    def provider_name(self) -> str:
        """The provider identifier (e.g., 'mock')."""
        return self._config.provider

    @property
    def network(self) -> str:
        """Name of the target network."""
        return self._config.network

    @abstractmethod
    async def deploy(
        self,
        descriptor: UnitDescriptor,
        args: Sequence[Any],
    ) -> DeploymentResult:
        """Deploy one unit.

        Args:
            descriptor: The unit to deploy.
            args: Resolved constructor arguments, in constructor order.

        Returns:
            DeploymentResult with the new address and interface descriptor.

        Raises:
            DeploymentFailedError: If the deployment could not complete.
        """
        ...

    async def validate(self) -> bool:
        """Check that the provider is usable (credentials, connectivity).

        Returns:
            True by default; providers override to add real checks.
        """
        return True

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"provider={self.provider_name!r}, "
            f"network={self.network!r})"
        )
