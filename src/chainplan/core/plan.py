"""
chainplan.core.plan - Deployment Plan
=======================================

A DeploymentPlan is the ordered, immutable list of units to deploy and how
each unit's constructor arguments are bound. Validation happens entirely
at construction time, before anything touches the chain:

    for each entry, in order:
        duplicate unit name          → ConfigurationError(DUPLICATE_UNIT)
        ref to itself                → ConfigurationError(SELF_REFERENCE)
        ref to a later entry         → ConfigurationError(FORWARD_REFERENCE)
        ref to a name not in plan    → ConfigurationError(UNKNOWN_REFERENCE)

Because every reference points strictly backwards, the reference graph is
a DAG whose topological order is simply the plan order.

Declarative Plans:
    Plans can also be described as data and built against a UnitRegistry:

        units:
          - unit: MineralNFT
            args: ["MineralNFT", "FSI"]
          - unit: Mineral
          - unit: MineralNFTMarket
            args: [{ref: MineralNFT}, {ref: Mineral}]

    An argument mapping with a single "ref" key is an address reference;
    a mapping with a single "literal" key passes its value verbatim (use
    this to pass a mapping literal); anything else is a literal.

Usage:
    >>> plan = DeploymentPlan([
    ...     PlanEntry(descriptor=token),
    ...     PlanEntry(descriptor=market, bindings=(ref("Token"),)),
    ... ])
    >>> plan.names
    ['Token', 'Market']
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Iterable, Iterator, Mapping, Sequence

import yaml
from pydantic import ValidationError

from chainplan.core.exceptions import ConfigurationError
from chainplan.core.models import (
    AddressRef,
    ArgumentBinding,
    LiteralBinding,
    PlanEntry,
    literal,
    ref,
)
from chainplan.core.registry import UnitRegistry


class DeploymentPlan:
    """Ordered, validated, read-only sequence of PlanEntry.

    Attributes:
        _entries: The entries, in deployment order.
        _index: Unit name → position in the plan.

    Raises:
        ConfigurationError: On construction, if the plan is empty, has
            duplicate names, or any reference is not strictly backwards.
    """

    def __init__(self, entries: Iterable[PlanEntry]) -> None:
        self._entries: tuple[PlanEntry, ...] = tuple(entries)
        self._index: dict[str, int] = {}
        self._validate()

    # =========================================================================
    # Validation
    # =========================================================================

    def _validate(self) -> None:
        if not self._entries:
            raise ConfigurationError(
                message="Deployment plan has no entries",
                error_code="EMPTY_PLAN",
            )

        all_names = {entry.name for entry in self._entries}

        for position, entry in enumerate(self._entries):
            if entry.name in self._index:
                raise ConfigurationError(
                    message=f"Unit '{entry.name}' appears more than once in the plan",
                    error_code="DUPLICATE_UNIT",
                    details={
                        "unit": entry.name,
                        "first_index": self._index[entry.name],
                        "duplicate_index": position,
                    },
                )

            for reference in entry.references():
                if reference == entry.name:
                    raise ConfigurationError(
                        message=f"Unit '{entry.name}' references its own address",
                        error_code="SELF_REFERENCE",
                        details={"unit": entry.name, "index": position},
                    )
                if reference not in all_names:
                    raise ConfigurationError(
                        message=(
                            f"Unit '{entry.name}' references '{reference}', "
                            f"which is not part of the plan"
                        ),
                        error_code="UNKNOWN_REFERENCE",
                        details={"unit": entry.name, "reference": reference},
                    )
                if reference not in self._index:
                    raise ConfigurationError(
                        message=(
                            f"Unit '{entry.name}' references '{reference}' "
                            f"before it is deployed"
                        ),
                        error_code="FORWARD_REFERENCE",
                        details={
                            "unit": entry.name,
                            "index": position,
                            "reference": reference,
                        },
                    )

            self._index[entry.name] = position

    # =========================================================================
    # Sequence Protocol
    # =========================================================================

    @property
    def entries(self) -> tuple[PlanEntry, ...]:
        """All entries, in deployment order."""
        return self._entries

    @property
    def names(self) -> list[str]:
        """Unit names, in deployment order."""
        return [entry.name for entry in self._entries]

    def index_of(self, name: str) -> int:
        """Position of the named unit in the plan.

        Raises:
            KeyError: If the unit is not part of the plan.
        """
        return self._index[name]

    def __contains__(self, name: object) -> bool:
        return name in self._index

    def __iter__(self) -> Iterator[PlanEntry]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __getitem__(self, position: int) -> PlanEntry:
        return self._entries[position]

    def __repr__(self) -> str:
        return f"DeploymentPlan({self.names!r})"

    # =========================================================================
    # Declarative Construction
    # =========================================================================

    @classmethod
    def from_spec(
        cls,
        spec: Sequence[Mapping[str, Any]],
        registry: UnitRegistry,
    ) -> DeploymentPlan:
        """Build a plan from a list of ``{"unit": ..., "args": [...]}`` mappings.

        Args:
            spec: Plan entries as plain data (typically parsed from YAML).
            registry: Source of the UnitDescriptors named in the spec.

        Returns:
            A validated DeploymentPlan.

        Raises:
            ConfigurationError: On malformed entries, units missing from
                the registry, or any plan validation failure.
        """
        entries: list[PlanEntry] = []
        for position, item in enumerate(spec):
            if not isinstance(item, Mapping) or "unit" not in item:
                raise ConfigurationError(
                    message=f"Plan entry {position} must be a mapping with a 'unit' key",
                    error_code="INVALID_PLAN_ENTRY",
                    details={"index": position, "entry": repr(item)},
                )
            args = item.get("args") or []
            if not isinstance(args, (list, tuple)):
                raise ConfigurationError(
                    message=f"Plan entry '{item['unit']}' has non-list 'args'",
                    error_code="INVALID_PLAN_ENTRY",
                    details={"index": position, "unit": item["unit"]},
                )
            descriptor = registry.get(item["unit"])
            try:
                entry = PlanEntry(
                    descriptor=descriptor,
                    bindings=tuple(_parse_binding(arg) for arg in args),
                )
            except ValidationError as e:
                raise ConfigurationError(
                    message=f"Plan entry '{descriptor.name}' has an invalid argument: {e}",
                    error_code="INVALID_PLAN_ENTRY",
                    details={
                        "index": position,
                        "unit": descriptor.name,
                        "errors": e.errors(include_url=False),
                    },
                ) from e
            entries.append(entry)
        return cls(entries)


def _parse_binding(arg: Any) -> ArgumentBinding:
    """Turn one declarative argument into an ArgumentBinding."""
    if isinstance(arg, (LiteralBinding, AddressRef)):
        return arg
    if isinstance(arg, Mapping) and len(arg) == 1:
        if "ref" in arg:
            return ref(arg["ref"])
        if "literal" in arg:
            return literal(arg["literal"])
    return literal(arg)


def load_plan(path: str | Path, registry: UnitRegistry) -> DeploymentPlan:
    """Load a DeploymentPlan from a YAML file with a top-level ``units:`` list.

    Raises:
        FileNotFoundError: If the file doesn't exist.
        ConfigurationError: If the file has no ``units`` list or the plan
            is invalid.
    """
    plan_path = Path(path)
    if not plan_path.exists():
        raise FileNotFoundError(f"Plan file not found: {plan_path}")

    with open(plan_path) as f:
        data = yaml.safe_load(f)

    if not isinstance(data, dict) or not isinstance(data.get("units"), list):
        raise ConfigurationError(
            message=f"Plan file {plan_path} must contain a top-level 'units' list",
            error_code="INVALID_PLAN_FILE",
            details={"path": str(plan_path)},
        )

    return DeploymentPlan.from_spec(data["units"], registry)
