"""
chainplan.infrastructure.artifact_store - Artifact Persistence Layer
=====================================================================

Persists each deployed unit's interface descriptor and address for
downstream consumers (clients, other tooling).

Architecture Context:
    ┌──────────────┐  persist(unit, interface, address)  ┌─────────────────┐
    │ Orchestrator │ ──────────────────────────────────→ │  ArtifactStore   │
    └──────────────┘                                     │  ┌────────────┐ │
                                                         │  │  Records   │ │
                                                         │  └────────────┘ │
                                                         └─────────────────┘

Record Layout (per unit, keyed by unit name):
    <unitName>.interfaceDescriptor   serialized interface schema (JSON)
    <unitName>.address               address string in the configured case

Write Contract:
    - Both fields form one logical record and are overwritten together.
    - A partial write is either prevented (InMemoryArtifactStore swaps the
      whole record at once) or detectable (FileArtifactStore writes the
      address last and treats its presence as "record complete").
    - Any failure surfaces as PersistError; nothing is swallowed.
    - Each successful field write emits one info event
      ("artifact_field_persisted") naming the unit and field.

Storage Implementations:
    - InMemoryArtifactStore: Dict-based, for tests and dry runs
    - FileArtifactStore: One file per field in an output directory

Usage:
    >>> store = FileArtifactStore("deployed")
    >>> record = await store.persist("Mineral", abi, "0xAbC...")
    >>> record.address
    '0xabc...'
    >>> await store.get("Mineral")
"""

from __future__ import annotations

import asyncio
import json
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Optional

import structlog

from chainplan.core.enums import ArtifactField, CaseNormalization
from chainplan.core.exceptions import PersistError
from chainplan.core.models import ArtifactRecord


# =============================================================================
# Logger
# =============================================================================
logger = structlog.get_logger()


# =============================================================================
# Abstract Base Class
# =============================================================================
class ArtifactStore(ABC):
    """Abstract interface for artifact persistence.

    The base class owns the parts every backend shares: address case
    normalization, failure wrapping, and per-field confirmation events.
    Subclasses implement the actual storage.

    Methods:
        persist(unit, interface, address): Write both fields as one record.
        get(unit): Read a complete record (None if absent or incomplete).
        list_units(): Names of all complete records.
        delete(unit): Remove a record.

    Attributes:
        case_normalization: Rule applied to addresses before writing.
    """

    def __init__(
        self,
        case_normalization: CaseNormalization = CaseNormalization.LOWERCASE,
    ) -> None:
        self.case_normalization = CaseNormalization(case_normalization)
        self._logger = logger.bind(component="artifact_store")

    async def persist(
        self,
        unit_name: str,
        interface: Any,
        address: str,
    ) -> ArtifactRecord:
        """Persist a unit's interface descriptor and address.

        Overwrites any prior record for the same unit. Returns only once
        both fields are durably written.

        Args:
            unit_name: Name of the deployed unit (the record key).
            interface: Interface descriptor; must be JSON-serializable.
            address: Deployed address as returned by the Deployer.

        Returns:
            The ArtifactRecord as stored (address normalized).

        Raises:
            PersistError: If either field could not be written.
        """
        record = ArtifactRecord(
            unit_name=unit_name,
            interface=interface,
            address=self.case_normalization.apply(address),
        )
        try:
            await self._write(record)
        except PersistError:
            raise
        except Exception as e:
            raise PersistError(
                message=f"Failed to persist artifact for '{unit_name}': {e}",
                unit_name=unit_name,
                address=address,
                cause=e,
            ) from e
        return record

    def _field_persisted(self, unit_name: str, field: ArtifactField) -> None:
        """Emit the confirmation event for one successfully written field."""
        self._logger.info(
            "artifact_field_persisted",
            unit=unit_name,
            field=field.value,
            key=field.key(unit_name),
        )

    @abstractmethod
    async def _write(self, record: ArtifactRecord) -> None:
        """Write both fields of the record, address last."""
        ...

    @abstractmethod
    async def get(self, unit_name: str) -> Optional[ArtifactRecord]:
        """Retrieve a complete record by unit name.

        Returns:
            The ArtifactRecord, or None if no complete record exists.
        """
        ...

    @abstractmethod
    async def list_units(self) -> list[str]:
        """Names of all units with a complete record, sorted."""
        ...

    @abstractmethod
    async def delete(self, unit_name: str) -> bool:
        """Remove a unit's record.

        Returns:
            True if a record was deleted, False if none existed.
        """
        ...


# =============================================================================
# In-Memory Implementation
# =============================================================================
class InMemoryArtifactStore(ArtifactStore):
    """In-memory artifact store for tests and dry runs.

    Records are swapped in whole, so a reader never sees a half-written
    record. Data is lost when the process exits.

    Attributes:
        _store: Unit name → ArtifactRecord.
    """

    def __init__(
        self,
        case_normalization: CaseNormalization = CaseNormalization.LOWERCASE,
    ) -> None:
        super().__init__(case_normalization)
        self._store: dict[str, ArtifactRecord] = {}
        self._logger = logger.bind(component="in_memory_artifact_store")

    async def _write(self, record: ArtifactRecord) -> None:
        self._store[record.unit_name] = record
        self._field_persisted(record.unit_name, ArtifactField.INTERFACE_DESCRIPTOR)
        self._field_persisted(record.unit_name, ArtifactField.ADDRESS)

    async def get(self, unit_name: str) -> Optional[ArtifactRecord]:
        return self._store.get(unit_name)

    async def list_units(self) -> list[str]:
        return sorted(self._store)

    async def delete(self, unit_name: str) -> bool:
        if unit_name in self._store:
            del self._store[unit_name]
            self._logger.debug("artifact_deleted", unit=unit_name)
            return True
        return False

    async def count(self) -> int:
        """Number of stored records."""
        return len(self._store)


# =============================================================================
# File Implementation
# =============================================================================
# Write order for one record:
#   1. remove any stale <unit>.address   (record now reads as incomplete)
#   2. write <unit>.interfaceDescriptor  (temp file + os.replace)
#   3. write <unit>.address              (temp file + os.replace)
#
# A crash at any point leaves either the old complete record, or a record
# without an address file, which get() reports as absent.
# =============================================================================
class FileArtifactStore(ArtifactStore):
    """Artifact store writing one file per field into a directory.

    File I/O runs in a worker thread so the event loop stays responsive
    while the Orchestrator awaits durable completion.

    Attributes:
        directory: Output directory; created on first write.

    Example:
        >>> store = FileArtifactStore("deployed", CaseNormalization.AS_PROVIDED)
        >>> await store.persist("Token", [], "0xAA")
        >>> Path("deployed/Token.address").read_text()
        '0xAA'
    """

    def __init__(
        self,
        directory: str | Path,
        case_normalization: CaseNormalization = CaseNormalization.LOWERCASE,
    ) -> None:
        super().__init__(case_normalization)
        self.directory = Path(directory)
        self._logger = logger.bind(
            component="file_artifact_store",
            directory=str(self.directory),
        )

    def path_for(self, unit_name: str, field: ArtifactField) -> Path:
        """Filesystem path of one field of a unit's record."""
        return self.directory / field.key(unit_name)

    async def _write(self, record: ArtifactRecord) -> None:
        unit = record.unit_name
        interface_path = self.path_for(unit, ArtifactField.INTERFACE_DESCRIPTOR)
        address_path = self.path_for(unit, ArtifactField.ADDRESS)
        payload = json.dumps(record.interface, indent=2)

        await asyncio.to_thread(self.directory.mkdir, parents=True, exist_ok=True)
        await asyncio.to_thread(_unlink_if_exists, address_path)

        await asyncio.to_thread(_atomic_write, interface_path, payload)
        self._field_persisted(unit, ArtifactField.INTERFACE_DESCRIPTOR)

        await asyncio.to_thread(_atomic_write, address_path, record.address)
        self._field_persisted(unit, ArtifactField.ADDRESS)

    async def get(self, unit_name: str) -> Optional[ArtifactRecord]:
        return await asyncio.to_thread(self._read, unit_name)

    def _read(self, unit_name: str) -> Optional[ArtifactRecord]:
        address_path = self.path_for(unit_name, ArtifactField.ADDRESS)
        interface_path = self.path_for(unit_name, ArtifactField.INTERFACE_DESCRIPTOR)
        if not address_path.exists() or not interface_path.exists():
            return None
        return ArtifactRecord(
            unit_name=unit_name,
            interface=json.loads(interface_path.read_text()),
            address=address_path.read_text(),
        )

    async def list_units(self) -> list[str]:
        return await asyncio.to_thread(self._list_units)

    def _list_units(self) -> list[str]:
        if not self.directory.is_dir():
            return []
        suffix = "." + ArtifactField.ADDRESS.value
        names = []
        for path in self.directory.glob("*" + suffix):
            unit = path.name[: -len(suffix)]
            if self.path_for(unit, ArtifactField.INTERFACE_DESCRIPTOR).exists():
                names.append(unit)
        return sorted(names)

    async def delete(self, unit_name: str) -> bool:
        # Address first, so an interrupted delete reads as incomplete.
        removed_address = await asyncio.to_thread(
            _unlink_if_exists, self.path_for(unit_name, ArtifactField.ADDRESS)
        )
        removed_interface = await asyncio.to_thread(
            _unlink_if_exists,
            self.path_for(unit_name, ArtifactField.INTERFACE_DESCRIPTOR),
        )
        deleted = removed_address or removed_interface
        if deleted:
            self._logger.debug("artifact_deleted", unit=unit_name)
        return deleted


# =============================================================================
# File Helpers
# =============================================================================
def _atomic_write(path: Path, content: str) -> None:
    """Write content to path via a temp sibling and an atomic rename."""
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w") as f:
            f.write(content)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_name, path)
    except BaseException:
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise


def _unlink_if_exists(path: Path) -> bool:
    """Remove a file if present; return whether anything was removed."""
    try:
        path.unlink()
    except FileNotFoundError:
        return False
    return True
