"""Dependency resolution and artifact ordering for test-framework providers.

A provider (surefire-junit4, surefire-testng, ...) is resolved with its
transitive closure and laid out in a fixed priority order. When provider
artifacts are added next to an already-loaded plugin, a small set of anchor
artifacts (surefire common, api and logger-api) always replaces whatever
copy a transitive path brings in, so the classpath never carries two
versions of the same shared module.
"""
from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Mapping, Optional

from constants import Constants, Scopes
from errors import BugError
from versioning.models import Artifact, ArtifactMap, Dependency
from versioning.version_range import InvalidVersionSpecification, VersionRange
from common.logging_utils import extra_context, is_debug_enabled
from .client import ArtifactResolutionClient

logger = logging.getLogger(__name__)


def is_within_version_spec(artifact: Optional[Artifact], version_spec: str) -> bool:
    """Return True when the artifact's version lies inside ``version_spec``.

    The selected version is tested when the artifact has one; an artifact
    that has not been through resolution falls back to its base version.

    Raises:
        BugError: ``version_spec`` is not a valid range. Specs are built by
            this program, so a parse failure is a defect, not bad input.
    """
    if artifact is None:
        return False
    try:
        version_range = VersionRange.from_spec(version_spec)
    except InvalidVersionSpecification as exc:
        raise BugError(f"Bug in plugin. Please report with stacktrace: {exc}") from exc

    selected = artifact.selected_version
    if selected is None:
        return version_range.contains_version(artifact.base_version)
    return version_range.contains_version(selected)


def order_provider_artifacts(artifacts: Iterable[Artifact]) -> List[Artifact]:
    """Lay artifacts out by Constants.PROVIDER_CLASSPATH_ORDER.

    Artifacts whose id appears in the priority list come first, grouped in
    list order; the rest follow. Both passes keep the input's relative order.
    """
    rank = {name: i for i, name in enumerate(Constants.PROVIDER_CLASSPATH_ORDER)}
    prioritized: List[List[Artifact]] = [[] for _ in Constants.PROVIDER_CLASSPATH_ORDER]
    remaining: List[Artifact] = []
    for artifact in artifacts:
        index = rank.get(artifact.artifact_id)
        if index is None:
            remaining.append(artifact)
        else:
            prioritized[index].append(artifact)

    ordered: Dict[Artifact, None] = {}
    for bucket in prioritized:
        ordered.update(dict.fromkeys(bucket))
    ordered.update(dict.fromkeys(remaining))
    return list(ordered)


def artifact_map_by_versionless_id(artifacts: Iterable[Artifact]) -> ArtifactMap:
    """Key artifacts by ``groupId:artifactId``; later entries win."""
    return {artifact.versionless_id: artifact for artifact in artifacts}


def to_provider_dependency(provider_artifact_id: str, provider_version: str) -> Dependency:
    return Dependency(
        group_id=Constants.PROVIDER_GROUP_ID,
        artifact_id=provider_artifact_id,
        version=provider_version,
        type="jar",
        scope=Scopes.TEST.value,
    )


class ProviderClasspathAssembler:
    """Builds provider classpaths on top of an ArtifactResolutionClient."""

    def __init__(self, client: ArtifactResolutionClient, plugin_name: str = Constants.PLUGIN_NAME):
        self.client = client
        self.plugin_name = plugin_name

    def get_provider_classpath(self, provider_artifact_id: str, provider_version: str) -> List[Artifact]:
        """Resolve a provider and return its ordered transitive classpath."""
        provider = to_provider_dependency(provider_artifact_id, provider_version)
        provider_artifact = self.client.repository_system.create_dependency_artifact(provider)

        result = self.client.resolve_plugin_artifact(provider_artifact)

        if is_debug_enabled(logger):
            for artifact in result.artifacts:
                artifact_path = artifact.file.resolve() if artifact.file is not None else "<unresolved>"
                logger.debug(
                    "Adding to %s test classpath: %s Scope: %s",
                    self.plugin_name,
                    artifact_path,
                    artifact.scope,
                    extra=extra_context(
                        event="classpath_entry",
                        component="provider_classpath",
                        action="get_provider_classpath",
                    ),
                )

        return order_provider_artifacts(result.artifacts)

    def get_provider_classpath_as_map(self, provider_artifact_id: str, provider_version: str) -> ArtifactMap:
        return artifact_map_by_versionless_id(
            self.get_provider_classpath(provider_artifact_id, provider_version)
        )

    def add_provider_to_classpath(
        self,
        plugin_artifact_map: Mapping[str, Artifact],
        mojo_plugin_artifact: Artifact,
        surefire_common: Artifact,
        surefire_api: Artifact,
        surefire_logger_api: Artifact,
    ) -> List[Artifact]:
        """Collect plugin artifacts missing from the plugin's own closure.

        Every dependency of such an artifact that shares a versionless id
        with an anchor contributes the anchor instance instead of itself.
        """
        anchors = artifact_map_by_versionless_id((surefire_common, surefire_api, surefire_logger_api))
        provider_artifacts: Dict[Artifact, None] = {}
        plugin_closure = set(self.client.resolve_plugin_artifact(mojo_plugin_artifact).artifacts)

        for artifact in plugin_artifact_map.values():
            if artifact in plugin_closure:
                continue
            provider_artifacts[anchors.get(artifact.versionless_id, artifact)] = None
            for dependency in self.client.resolve_plugin_artifact(artifact).artifacts:
                anchor = anchors.get(dependency.versionless_id)
                if anchor is not None:
                    provider_artifacts[anchor] = None

        if is_debug_enabled(logger):
            logger.debug(
                "Provider artifacts added to classpath",
                extra=extra_context(
                    event="decision",
                    component="provider_classpath",
                    action="add_provider_to_classpath",
                    count=len(provider_artifacts),
                ),
            )
        return order_provider_artifacts(provider_artifacts)
