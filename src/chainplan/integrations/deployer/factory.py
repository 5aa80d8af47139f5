"""
chainplan.integrations.deployer.factory - Deployer Factory
============================================================

Maps DeployerConfig.provider to a concrete BaseDeployer.

Usage:
    >>> deployer = create_deployer(DeployerConfig(provider="mock"))
    >>> type(deployer)  # MockDeployer
"""

from __future__ import annotations

from chainplan.core.config import DeployerConfig
from chainplan.core.exceptions import ConfigurationError
from chainplan.integrations.deployer.base import BaseDeployer


def create_deployer(config: DeployerConfig) -> BaseDeployer:
    """Create a deployer instance based on configuration.

    Args:
        config: Deployer configuration with provider name and network.

    Returns:
        A concrete BaseDeployer.

    Raises:
        ConfigurationError: If the provider name is not recognized.
    """
    provider_name = config.provider.lower()

    if provider_name == "mock":
        from chainplan.integrations.deployer.mock import MockDeployer
        return MockDeployer(config)

    raise ConfigurationError(
        message=(
            f"Unknown deployer provider: '{provider_name}'. "
            f"Available providers: 'mock'. Pass a BaseDeployer instance "
            f"directly to use a network client."
        ),
        error_code="UNKNOWN_DEPLOYER",
        details={"provider": provider_name},
    )
