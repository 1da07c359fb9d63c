"""Provider classpath resolution."""

from .client import ArtifactResolutionClient, RepositorySystem
from .maven_repository import MavenRepositorySystem
from .provider_classpath import (
    ProviderClasspathAssembler,
    is_within_version_spec,
    order_provider_artifacts,
)
from .provider_detection import detect_provider

__all__ = [
    "ArtifactResolutionClient",
    "RepositorySystem",
    "MavenRepositorySystem",
    "ProviderClasspathAssembler",
    "is_within_version_spec",
    "order_provider_artifacts",
    "detect_provider",
]
