"""
chainplan.infrastructure - Persistence Layer
==============================================

Durable storage for deployment artifacts.

Components:
    - ArtifactStore (ABC):    persist / get / list_units / delete contract
    - InMemoryArtifactStore:  dict-backed store for tests and dry runs
    - FileArtifactStore:      one file per field in an output directory
    - create_artifact_store:  builds a store from ArtifactConfig

Usage:
    from chainplan.infrastructure import FileArtifactStore
"""

from chainplan.infrastructure.artifact_store import (
    ArtifactStore,
    FileArtifactStore,
    InMemoryArtifactStore,
)
from chainplan.infrastructure.factory import create_artifact_store

__all__ = [
    "ArtifactStore",
    "FileArtifactStore",
    "InMemoryArtifactStore",
    "create_artifact_store",
]
