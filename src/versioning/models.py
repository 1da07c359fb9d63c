"""Data models for artifacts and resolution requests."""

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, FrozenSet, List, Optional, Tuple

_SNAPSHOT_TIMESTAMP = re.compile(r"^(.*)-(\d{8}\.\d{6})-(\d+)$")
SNAPSHOT_SUFFIX = "-SNAPSHOT"


@dataclass(unsafe_hash=True)
class Artifact:
    """A resolvable build output.

    Equality and hashing use group_id, artifact_id, version, classifier and
    type only; resolution state (file, selected version, scope) is ignored.
    """
    group_id: str
    artifact_id: str
    version: str
    type: str = "jar"
    classifier: Optional[str] = None
    scope: Optional[str] = field(default=None, compare=False)
    optional: bool = field(default=False, compare=False)
    file: Optional[Path] = field(default=None, compare=False)
    selected_version: Optional[str] = field(default=None, compare=False)

    @property
    def versionless_id(self) -> str:
        """Return ``groupId:artifactId``."""
        return versionless_key(self.group_id, self.artifact_id)

    @property
    def base_version(self) -> str:
        """Version with a timestamped snapshot collapsed to ``-SNAPSHOT``."""
        match = _SNAPSHOT_TIMESTAMP.match(self.version or "")
        if match:
            return match.group(1) + SNAPSHOT_SUFFIX
        return self.version

    @property
    def id(self) -> str:
        """Maven-style id ``group:artifact:type[:classifier]:version``."""
        parts = [self.group_id, self.artifact_id, self.type]
        if self.classifier:
            parts.append(self.classifier)
        parts.append(self.version)
        return ":".join(parts)

    def __str__(self) -> str:
        if self.scope:
            return f"{self.id}:{self.scope}"
        return self.id


def versionless_key(group_id: str, artifact_id: str) -> str:
    """Key used for map-keying artifacts regardless of version."""
    return f"{group_id}:{artifact_id}"


@dataclass(frozen=True)
class Dependency:
    """Dependency descriptor as declared in a POM or built by the caller."""
    group_id: str
    artifact_id: str
    version: Optional[str] = None
    type: str = "jar"
    classifier: Optional[str] = None
    scope: Optional[str] = None
    optional: bool = False
    exclusions: FrozenSet[str] = frozenset()  # "groupId:artifactId", "*" wildcards allowed

    @property
    def management_key(self) -> Tuple[str, str, str, Optional[str]]:
        return (self.group_id, self.artifact_id, self.type, self.classifier)


@dataclass(frozen=True)
class ArtifactRepository:
    """A remote Maven-layout repository."""
    id: str
    url: str


@dataclass
class ResolutionRequest:
    """Resolution input handed to a RepositorySystem."""
    artifact: Artifact
    local_repository: Path
    resolve_transitively: bool = True
    remote_repositories: List[ArtifactRepository] = field(default_factory=list)
    offline: bool = False


@dataclass
class ResolutionResult:
    """Resolution outcome; ``artifacts`` keeps resolver traversal order."""
    request: ResolutionRequest
    artifacts: Tuple[Artifact, ...] = ()
    missing_artifacts: Tuple[Artifact, ...] = ()
    errors: Tuple[str, ...] = ()

    @property
    def has_errors(self) -> bool:
        return bool(self.missing_artifacts or self.errors)


# Type alias for versionless-id keyed artifact maps.
ArtifactMap = Dict[str, Artifact]
