"""
chainplan.core.config - Configuration Management
==================================================

Configuration can be loaded from multiple sources with the following
priority (highest first):

    1. Explicit constructor arguments
    2. Environment variables (prefixed with CHAINPLAN_)
    3. YAML configuration file (chainplan.yaml)
    4. Default values defined in the models below

Architecture Context:
    The top-level ChainplanConfig is created once and handed to the
    Chainplan facade, which uses the nested sections to build components:

        ChainplanConfig
            ├── ArtifactConfig  → ArtifactStore (backend, directory, address case)
            └── DeployerConfig  → Deployer (provider, network)

Usage:
    # Load from environment variables:
    config = ChainplanConfig()

    # Load from YAML file:
    config = load_config("chainplan.yaml")

    # Explicit overrides:
    config = ChainplanConfig(artifacts=ArtifactConfig(case_normalization="as_provided"))

Environment Variables:
    CHAINPLAN_LOG_LEVEL=DEBUG
    CHAINPLAN_ARTIFACTS__DIRECTORY=build/deployed
    CHAINPLAN_ARTIFACTS__CASE_NORMALIZATION=as_provided
    CHAINPLAN_DEPLOYER__PROVIDER=mock
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal, Optional

import yaml
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings

from chainplan.core.enums import ArtifactBackend, CaseNormalization


# =============================================================================
# Artifact Configuration
# =============================================================================
# Where and how deployed artifacts are persisted. The address case rule is
# configuration rather than code: some downstream consumers compare
# addresses as lowercase strings, others expect the chain's checksum case.
# =============================================================================
class ArtifactConfig(BaseModel):
    """Configuration for the artifact store.

    Attributes:
        backend: Which store implementation to build ("file" or "memory").
        directory: Output directory for the file backend. Each unit gets
            "<unit>.interfaceDescriptor" and "<unit>.address" files here.
        case_normalization: Canonical case for persisted addresses.
            Defaults to lowercase.
    """

    backend: ArtifactBackend = Field(
        default=ArtifactBackend.FILE,
        description="Artifact store backend: 'file' or 'memory'",
    )
    directory: str = Field(
        default="deployed",
        description="Directory for the file backend",
    )
    case_normalization: CaseNormalization = Field(
        default=CaseNormalization.LOWERCASE,
        description="Address case written to the store: 'lowercase' or 'as_provided'",
    )


# =============================================================================
# Deployer Configuration
# =============================================================================
class DeployerConfig(BaseModel):
    """Configuration for the deployment provider.

    Attributes:
        provider: Which Deployer implementation to build. The provider
            string maps to a concrete BaseDeployer in integrations/deployer/.
        network: Name of the target network, passed through to the
            provider and recorded in log events.
    """

    provider: str = Field(
        default="mock",
        description="Deployer provider name (currently only 'mock')",
    )
    network: str = Field(
        default="development",
        description="Target network name",
    )


# =============================================================================
# Main Configuration
# =============================================================================
# Environment Variable Mapping:
#   CHAINPLAN_LOG_LEVEL              → config.log_level
#   CHAINPLAN_ENVIRONMENT            → config.environment
#   CHAINPLAN_ARTIFACTS__DIRECTORY   → config.artifacts.directory
#   CHAINPLAN_DEPLOYER__PROVIDER     → config.deployer.provider
# =============================================================================
class ChainplanConfig(BaseSettings):
    """Top-level configuration for chainplan.

    Attributes:
        environment: Deployment environment.
        log_level: Logging level name. Structured logs use structlog.
        artifacts: Artifact store configuration (see ArtifactConfig).
        deployer: Deployer configuration (see DeployerConfig).

    Example:
        >>> config = ChainplanConfig(
        ...     log_level="DEBUG",
        ...     artifacts=ArtifactConfig(backend="memory"),
        ... )
    """

    environment: Literal["dev", "staging", "prod"] = Field(
        default="dev",
        description="Deployment environment",
    )
    log_level: str = Field(
        default="INFO",
        description="Logging level: DEBUG, INFO, WARNING, ERROR, CRITICAL",
    )

    artifacts: ArtifactConfig = Field(
        default_factory=ArtifactConfig,
        description="Artifact store configuration",
    )
    deployer: DeployerConfig = Field(
        default_factory=DeployerConfig,
        description="Deployer configuration",
    )

    model_config = {
        "env_prefix": "CHAINPLAN_",
        "env_nested_delimiter": "__",
        "case_sensitive": False,
    }


# =============================================================================
# Configuration Loader
# =============================================================================
def load_config(path: Optional[str] = None) -> ChainplanConfig:
    """Load chainplan configuration from a YAML file and/or environment variables.

    Args:
        path: Path to a YAML configuration file. If None, looks for
            'chainplan.yaml' in the current directory and falls back to
            defaults + environment variables when it doesn't exist.

    Returns:
        A fully validated ChainplanConfig instance.

    Raises:
        FileNotFoundError: If an explicit path is provided but doesn't exist.
    """
    if path is None:
        default_path = Path("chainplan.yaml")
        if default_path.exists():
            path = str(default_path)

    yaml_data: dict[str, Any] = {}
    if path is not None:
        config_path = Path(path)
        if not config_path.exists():
            raise FileNotFoundError(
                f"Configuration file not found: {path}. "
                f"Create one or use CHAINPLAN_* environment variables."
            )

        with open(config_path) as f:
            raw_data = yaml.safe_load(f)
            if isinstance(raw_data, dict):
                yaml_data = raw_data

    return ChainplanConfig(**yaml_data)


def get_default_config() -> ChainplanConfig:
    """Create a ChainplanConfig with all defaults (plus any set env vars)."""
    return ChainplanConfig()
