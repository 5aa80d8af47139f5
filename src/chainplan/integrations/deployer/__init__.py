"""
chainplan.integrations.deployer - Deployment Providers
========================================================

Components:
    - BaseDeployer (ABC): deploy(descriptor, args) → DeploymentResult
    - MockDeployer:       in-process deployer with queued addresses and
                          failure injection
    - create_deployer:    builds a deployer from DeployerConfig

Usage:
    from chainplan.integrations.deployer import MockDeployer, create_deployer
"""

from chainplan.integrations.deployer.base import BaseDeployer
from chainplan.integrations.deployer.factory import create_deployer
from chainplan.integrations.deployer.mock import MockDeployer

__all__ = [
    "BaseDeployer",
    "MockDeployer",
    "create_deployer",
]
