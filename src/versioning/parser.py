"""Token parsing utilities for artifact coordinates."""

from typing import Optional

from errors import UsageError
from .models import Artifact

COORDINATE_SYNTAX = "groupId:artifactId[:type[:classifier]]:version"


def parse_coordinates(token: str, scope: Optional[str] = None) -> Artifact:
    """Parse a CLI/list token into an Artifact.

    Accepted forms: ``g:a:v``, ``g:a:type:v`` and ``g:a:type:classifier:v``.
    """
    parts = [p.strip() for p in token.strip().split(":")]
    if len(parts) < 3 or len(parts) > 5 or not all((parts[0], parts[1], parts[-1])):
        raise UsageError(f"Artifact coordinates should be in format '{COORDINATE_SYNTAX}': {token}")

    group_id, artifact_id, version = parts[0], parts[1], parts[-1]
    type_ = parts[2] if len(parts) >= 4 and parts[2] else "jar"
    classifier = parts[3] if len(parts) == 5 and parts[3] else None
    return Artifact(
        group_id=group_id,
        artifact_id=artifact_id,
        version=version,
        type=type_,
        classifier=classifier,
        scope=scope,
    )
