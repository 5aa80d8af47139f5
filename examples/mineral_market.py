"""
Mineral Market Example - Four-Unit Dependency-Ordered Deployment
==================================================================

Deploys the Mineral marketplace contract set in order:

    MineralNFT("MineralNFT", "FSI")
    Mineral()
    MineralNFTMarket(<MineralNFT address>, <Mineral address>)
    Factory()                       (uniswap factory, no dependencies)

Each unit's interface descriptor and address are written to ./deployed as
"<unit>.interfaceDescriptor" and "<unit>.address".

The MockDeployer stands in for a network client, so this runs offline.

Usage:
    python examples/mineral_market.py
"""

from __future__ import annotations

import asyncio

from chainplan import Chainplan
from chainplan.core.config import ArtifactConfig, ChainplanConfig
from chainplan.core.models import UnitDescriptor
from chainplan.core.registry import UnitRegistry


def _constructor(*inputs: tuple[str, str]) -> list[dict]:
    """Minimal ABI containing only a constructor entry."""
    return [
        {
            "type": "constructor",
            "inputs": [{"name": name, "type": kind} for name, kind in inputs],
        }
    ]


REGISTRY = UnitRegistry([
    UnitDescriptor(
        name="MineralNFT",
        interface=_constructor(("name", "string"), ("symbol", "string")),
    ),
    UnitDescriptor(name="Mineral", interface=_constructor()),
    UnitDescriptor(
        name="MineralNFTMarket",
        interface=_constructor(("nftToken", "address"), ("mineralToken", "address")),
    ),
    UnitDescriptor(name="Factory", interface=_constructor()),
])

PLAN = [
    {"unit": "MineralNFT", "args": ["MineralNFT", "FSI"]},
    {"unit": "Mineral"},
    {"unit": "MineralNFTMarket", "args": [{"ref": "MineralNFT"}, {"ref": "Mineral"}]},
    {"unit": "Factory"},
]


async def main() -> None:
    """Deploy the plan and print the persisted artifacts."""
    config = ChainplanConfig(artifacts=ArtifactConfig(directory="deployed"))

    async with Chainplan(config, registry=REGISTRY) as chain:
        report = await chain.deploy(PLAN)

        print("Mineral Market Deployment")
        print("-" * 40)
        print(f"Status   : {report.status.value}")
        print(f"Duration : {report.duration_seconds:.3f}s")
        for result in report.results:
            print(f"  {result.unit_name:<18} {result.address}  args={list(result.arguments)}")

        report.raise_for_status()

        print()
        print("Persisted artifacts:")
        for unit, record in (await chain.artifacts()).items():
            print(f"  {unit:<18} {record.address}")


if __name__ == "__main__":
    asyncio.run(main())
