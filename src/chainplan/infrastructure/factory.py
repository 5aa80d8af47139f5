"""
chainplan.infrastructure.factory - Artifact Store Factory
===========================================================

Maps ArtifactConfig.backend to a concrete ArtifactStore.

Usage:
    >>> store = create_artifact_store(ArtifactConfig(backend="memory"))
    >>> type(store)  # InMemoryArtifactStore
"""

from __future__ import annotations

from chainplan.core.config import ArtifactConfig
from chainplan.core.enums import ArtifactBackend
from chainplan.infrastructure.artifact_store import (
    ArtifactStore,
    FileArtifactStore,
    InMemoryArtifactStore,
)


def create_artifact_store(config: ArtifactConfig) -> ArtifactStore:
    """Create an artifact store based on configuration.

    Args:
        config: Artifact configuration (backend, directory, address case).

    Returns:
        A concrete ArtifactStore applying config.case_normalization.
    """
    if config.backend == ArtifactBackend.MEMORY:
        return InMemoryArtifactStore(config.case_normalization)
    return FileArtifactStore(config.directory, config.case_normalization)
