"""Select artifacts by ``groupId:artifactId[:version[:type[:classifier]]]`` patterns."""
from __future__ import annotations

import re
from typing import List, Optional, Sequence

from constants import Constants
from errors import UsageError
from versioning.models import Artifact


def filter_artifacts(
    artifacts: Optional[Sequence[Artifact]], group_artifact_ids: Optional[Sequence[str]]
) -> List[Artifact]:
    """Return the artifacts matching any of the coordinate patterns.

    groupId, artifactId and classifier fields are regular expressions that
    must match the whole value; version and type are compared literally.
    Blank optional fields match anything. An artifact matching several
    patterns appears once per match.

    Args:
        artifacts: Candidate artifacts.
        group_artifact_ids: Patterns such as ``org.foo:bar`` or
            ``org\\.foo:.*:1\\.0:jar:tests``.

    Returns:
        Matching artifacts, empty when either argument is None.

    Raises:
        UsageError: A pattern does not name both groupId and artifactId.
    """
    matches: List[Artifact] = []
    if artifacts is None or group_artifact_ids is None:
        return matches
    for artifact in artifacts:
        for groups in group_artifact_ids:
            if not has_group_and_artifact_id(groups):
                raise UsageError(
                    "dependenciesToScan argument should be in format"
                    f" '{Constants.COORDINATE_PATTERN_SYNTAX}': {groups}"
                )
            try:
                matched = artifact_matches_gavtc(artifact, groups)
            except re.error as exc:
                raise UsageError(f"Invalid regular expression in dependenciesToScan pattern {groups}: {exc}") from exc
            if matched:
                matches.append(artifact)
    return matches


def artifact_matches_gavtc(artifact: Artifact, groups: str) -> bool:
    gavtc = groups.split(":")
    if not (_full_match(gavtc[0], artifact.group_id) and _full_match(gavtc[1], artifact.artifact_id)):
        return False
    if _has_field(gavtc, 2) and artifact.version != _literal(gavtc[2]):
        return False
    if _has_field(gavtc, 3) and (artifact.type is None or artifact.type != _literal(gavtc[3])):
        return False
    if _has_field(gavtc, 4) and (
        artifact.classifier is None or not _full_match(gavtc[4], artifact.classifier)
    ):
        return False
    return True


def has_group_and_artifact_id(groups: str) -> bool:
    return groups.count(":") >= 1


def _has_field(gavtc: List[str], index: int) -> bool:
    return len(gavtc) > index and bool(gavtc[index].strip())


def _literal(field: str) -> str:
    """Exact-match field value; backslash escapes such as ``1\\.0`` are honored."""
    return re.sub(r"\\(.)", r"\1", field)


def _full_match(pattern: str, value: str) -> bool:
    return re.fullmatch(pattern, value) is not None
