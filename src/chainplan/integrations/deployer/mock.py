"""
chainplan.integrations.deployer.mock - Mock Deployer for Testing
==================================================================

A deployer that never touches a network. It is the default provider for
tests, examples, and dry runs.

How It Works:
    1. If there are queued addresses, deploy() returns the next one (FIFO).
    2. Otherwise it derives a deterministic 20-byte hex address from the
       network, unit name, and a call counter, in mixed checksum-style case
       so that case normalization is exercised.
    3. Units registered with fail_on() raise DeploymentFailedError instead.

Every call is recorded in call_history for test assertions.

Usage:
    >>> deployer = MockDeployer()
    >>> deployer.queue_address("0xAA")
    >>> result = await deployer.deploy(token, [])
    >>> result.address
    '0xAA'
    >>> deployer.fail_on("Market", "insufficient funds")
"""

from __future__ import annotations

import asyncio
import hashlib
from collections import deque
from typing import Any, Optional, Sequence

import structlog

from chainplan.core.config import DeployerConfig
from chainplan.core.exceptions import DeploymentFailedError
from chainplan.core.models import DeploymentResult, UnitDescriptor
from chainplan.integrations.deployer.base import BaseDeployer


# =============================================================================
# Logger
# =============================================================================
logger = structlog.get_logger()


class MockDeployer(BaseDeployer):
    """In-process deployer with queued addresses and failure injection.

    Attributes:
        _address_queue: FIFO of addresses to hand out before generating.
        _failures: Unit name → error message for injected failures.
        _call_history: One record per deploy() call.
        _counter: Number of deployments performed (drives generated addresses).
        _latency_seconds: Simulated network latency per call.
    """

    def __init__(
        self,
        config: Optional[DeployerConfig] = None,
        *,
        latency_seconds: float = 0.0,
    ) -> None:
        if config is None:
            config = DeployerConfig(provider="mock")
        super().__init__(config)

        self._address_queue: deque[str] = deque()
        self._failures: dict[str, str] = {}
        self._call_history: list[dict[str, Any]] = []
        self._counter = 0
        self._latency_seconds = latency_seconds
        self._logger = logger.bind(component="mock_deployer", network=self.network)

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def call_history(self) -> list[dict[str, Any]]:
        """All recorded deploy() calls: {"unit": name, "args": [...]}."""
        return self._call_history

    @property
    def call_count(self) -> int:
        """Number of deploy() calls made, including failed ones."""
        return len(self._call_history)

    @property
    def deployed_units(self) -> list[str]:
        """Unit names in the order deploy() was called."""
        return [call["unit"] for call in self._call_history]

    # =========================================================================
    # Configuration
    # =========================================================================

    def queue_address(self, address: str) -> None:
        """Make the next successful deploy() return this address."""
        self._address_queue.append(address)

    def fail_on(self, unit_name: str, message: str = "Mock deployment failure") -> None:
        """Make every deploy() of this unit raise DeploymentFailedError."""
        self._failures[unit_name] = message

    def reset(self) -> None:
        """Clear queued addresses, failures, history, and the counter."""
        self._address_queue.clear()
        self._failures.clear()
        self._call_history.clear()
        self._counter = 0

    # =========================================================================
    # Deploy
    # =========================================================================

    async def deploy(
        self,
        descriptor: UnitDescriptor,
        args: Sequence[Any],
    ) -> DeploymentResult:
        self._call_history.append({"unit": descriptor.name, "args": list(args)})

        # Always yield to the loop: a real deploy is a suspension point.
        await asyncio.sleep(self._latency_seconds)

        if descriptor.name in self._failures:
            message = self._failures[descriptor.name]
            self._logger.debug("mock_deploy_failed", unit=descriptor.name, error=message)
            raise DeploymentFailedError(
                message=message,
                unit_name=descriptor.name,
                cause=RuntimeError(message),
                details={"network": self.network},
            )

        self._counter += 1
        if self._address_queue:
            address = self._address_queue.popleft()
        else:
            address = self._generate_address(descriptor.name)

        self._logger.debug("mock_deployed", unit=descriptor.name, address=address)

        return DeploymentResult(
            unit_name=descriptor.name,
            address=address,
            interface=descriptor.interface,
            arguments=tuple(args),
        )

    def _generate_address(self, unit_name: str) -> str:
        """Deterministic 20-byte address with checksum-style mixed case."""
        seed = f"{self.network}:{unit_name}:{self._counter}".encode()
        hex_digits = hashlib.sha256(seed).hexdigest()[:40]
        case_mask = hashlib.sha256(hex_digits.encode()).hexdigest()
        return "0x" + "".join(
            ch.upper() if ch.isalpha() and int(case_mask[i], 16) >= 8 else ch
            for i, ch in enumerate(hex_digits)
        )
