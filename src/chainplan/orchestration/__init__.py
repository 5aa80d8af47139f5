"""
chainplan.orchestration - Orchestration Layer
===============================================

Components:
    - Orchestrator:  walks a DeploymentPlan in order, deploys each unit,
                     persists its artifact, aborts on the first failure
    - AddressTable:  per-run, append-only unit name → address mapping

Usage:
    from chainplan.orchestration import Orchestrator
"""

from chainplan.orchestration.address_table import AddressTable
from chainplan.orchestration.orchestrator import Orchestrator

__all__ = [
    "AddressTable",
    "Orchestrator",
]
