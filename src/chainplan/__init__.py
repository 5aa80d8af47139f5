"""
chainplan - Dependency-Ordered Contract Deployment
====================================================

chainplan deploys a small set of interdependent on-chain units in a strict
order, feeding earlier units' addresses into later units' constructors, and
persists every unit's interface descriptor and address for downstream
consumers.

    DeploymentPlan ──→ Orchestrator ──→ Deployer      (address, interface)
                            │
                            └────────→ ArtifactStore (<unit>.interfaceDescriptor,
                                                      <unit>.address)

Quick Start:
    >>> from chainplan import Chainplan
    >>> async with Chainplan(registry=registry) as chain:
    ...     report = await chain.deploy(plan_spec)
"""

__version__ = "0.1.0"

from chainplan.facade import Chainplan

__all__ = ["Chainplan", "__version__"]
