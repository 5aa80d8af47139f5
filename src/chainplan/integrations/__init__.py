"""
chainplan.integrations - External Provider Integrations
=========================================================

Adapters for the systems chainplan drives but does not own. Currently the
deployment provider (see integrations.deployer).
"""

from chainplan.integrations.deployer import BaseDeployer, MockDeployer, create_deployer

__all__ = [
    "BaseDeployer",
    "MockDeployer",
    "create_deployer",
]
