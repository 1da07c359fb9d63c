"""Call boundary to the artifact resolver."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional, Protocol

from errors import ResolutionError
from versioning.models import (
    Artifact,
    ArtifactRepository,
    Dependency,
    ResolutionRequest,
    ResolutionResult,
)
from common.logging_utils import extra_context, is_debug_enabled

logger = logging.getLogger(__name__)


class RepositorySystem(Protocol):
    """Resolver collaborator consumed by the client."""

    def create_dependency_artifact(self, dependency: Dependency) -> Artifact:
        ...

    def resolve(self, request: ResolutionRequest) -> ResolutionResult:
        ...


class ArtifactResolutionClient:
    """Resolves artifacts transitively against plugin or project repositories.

    A repository list of None means offline: only the local repository is
    consulted. Failures surface as ResolutionError and are never retried here.
    """

    def __init__(
        self,
        repository_system: RepositorySystem,
        local_repository: Path,
        plugin_remote_repositories: Optional[List[ArtifactRepository]] = None,
        project_remote_repositories: Optional[List[ArtifactRepository]] = None,
    ):
        self.repository_system = repository_system
        self.local_repository = Path(local_repository)
        self.plugin_remote_repositories = plugin_remote_repositories
        self.project_remote_repositories = project_remote_repositories

    def resolve_plugin_artifact_offline(self, artifact: Artifact) -> ResolutionResult:
        return self._resolve_artifact(artifact, None)

    def resolve_plugin_artifact(self, artifact: Artifact) -> ResolutionResult:
        return self._resolve_artifact(artifact, self.plugin_remote_repositories)

    def resolve_project_artifact(self, artifact: Artifact) -> ResolutionResult:
        return self._resolve_artifact(artifact, self.project_remote_repositories)

    def _resolve_artifact(
        self, artifact: Artifact, repositories: Optional[List[ArtifactRepository]]
    ) -> ResolutionResult:
        request = ResolutionRequest(
            artifact=artifact,
            local_repository=self.local_repository,
            resolve_transitively=True,
        )
        if repositories is None:
            request.offline = True
        else:
            request.remote_repositories = list(repositories)

        if is_debug_enabled(logger):
            logger.debug(
                "Resolving %s",
                artifact,
                extra=extra_context(
                    event="resolve_request",
                    component="resolution_client",
                    action="resolve",
                    offline=request.offline,
                    repositories=len(request.remote_repositories),
                ),
            )

        result = self.repository_system.resolve(request)
        if result.has_errors:
            raise ResolutionError(artifact, result.missing_artifacts, result.errors)
        return result
