"""Default RepositorySystem over Maven-layout repositories.

Artifacts are looked up in the local repository first and downloaded from
the request's remote repositories when missing (never when the request is
offline). POMs are read for parent inheritance, dependency management,
imported BOMs and property interpolation; the dependency graph is walked
breadth-first and the nearest declaration of a module wins.
"""
from __future__ import annotations

import logging
import re
import xml.etree.ElementTree as ET
from collections import deque
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Deque, Dict, FrozenSet, List, Optional, Tuple

from constants import Constants, Scopes
from common import http_client
from common.logging_utils import extra_context, is_debug_enabled, Timer
from versioning.models import (
    Artifact,
    Dependency,
    ResolutionRequest,
    ResolutionResult,
    versionless_key,
)
from versioning.version_range import InvalidVersionSpecification, VersionRange

logger = logging.getLogger(__name__)

# type -> (file extension, implied classifier)
TYPE_HANDLERS: Dict[str, Tuple[str, Optional[str]]] = {
    "jar": ("jar", None),
    "test-jar": ("jar", "tests"),
    "maven-plugin": ("jar", None),
    "ejb": ("jar", None),
    "bundle": ("jar", None),
    "pom": ("pom", None),
}

NON_TRANSITIVE_SCOPES = frozenset(
    s.value for s in (Scopes.TEST, Scopes.PROVIDED, Scopes.SYSTEM, Scopes.IMPORT)
)

_PROPERTY_REF = re.compile(r"\$\{([^}]+)\}")

ModelKey = Tuple[str, str, str]


def derive_scope(parent_scope: Optional[str], dependency_scope: Optional[str]) -> str:
    """Scope of a transitive dependency given the scope it was reached through."""
    child = dependency_scope or Scopes.COMPILE.value
    if parent_scope in (None, Scopes.COMPILE.value):
        return child
    if parent_scope == Scopes.RUNTIME.value:
        return Scopes.RUNTIME.value
    # test and provided dominate compile/runtime children
    return parent_scope


def _type_handler(type_: str) -> Tuple[str, Optional[str]]:
    return TYPE_HANDLERS.get(type_, (type_, None))


class LocalRepository:
    """Maven default layout rooted at ``basedir``."""

    def __init__(self, basedir: Path):
        self.basedir = Path(basedir)

    def relative_path(
        self, group_id: str, artifact_id: str, version: str, extension: str, classifier: Optional[str] = None
    ) -> str:
        name = f"{artifact_id}-{version}"
        if classifier:
            name += f"-{classifier}"
        return "/".join([group_id.replace(".", "/"), artifact_id, version, f"{name}.{extension}"])

    def path_of(self, *coords, **kwargs) -> Path:
        return self.basedir / self.relative_path(*coords, **kwargs)

    def versions_of(self, group_id: str, artifact_id: str) -> List[str]:
        module_dir = self.basedir / group_id.replace(".", "/") / artifact_id
        if not module_dir.is_dir():
            return []
        return sorted(p.name for p in module_dir.iterdir() if p.is_dir())


@dataclass
class PomModel:
    """The parts of a POM the resolver needs, after inheritance and interpolation."""
    group_id: str
    artifact_id: str
    version: str
    properties: Dict[str, str] = field(default_factory=dict)
    dependency_management: Dict[tuple, Dependency] = field(default_factory=dict)
    dependencies: List[Dependency] = field(default_factory=list)


def _child(elem: Optional[ET.Element], tag: str) -> Optional[ET.Element]:
    if elem is None:
        return None
    found = elem.find(f"{Constants.POM_NAMESPACE}{tag}")
    if found is None:
        found = elem.find(tag)
    return found


def _children(elem: Optional[ET.Element], tag: str) -> List[ET.Element]:
    if elem is None:
        return []
    return elem.findall(f"{Constants.POM_NAMESPACE}{tag}") or elem.findall(tag)


def _text(elem: Optional[ET.Element], tag: str) -> Optional[str]:
    node = _child(elem, tag)
    if node is None or node.text is None:
        return None
    return node.text.strip() or None


def _local_name(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def _parse_dependency(node: ET.Element) -> Optional[Dependency]:
    group_id = _text(node, "groupId")
    artifact_id = _text(node, "artifactId")
    if group_id is None or artifact_id is None:
        return None
    exclusions = frozenset(
        versionless_key(_text(ex, "groupId") or "*", _text(ex, "artifactId") or "*")
        for ex in _children(_child(node, "exclusions"), "exclusion")
    )
    return Dependency(
        group_id=group_id,
        artifact_id=artifact_id,
        version=_text(node, "version"),
        type=_text(node, "type") or "jar",
        classifier=_text(node, "classifier"),
        scope=_text(node, "scope"),
        optional=(_text(node, "optional") or "").lower() == "true",
        exclusions=exclusions,
    )


def read_pom(path: Path) -> Tuple[ET.Element, Optional[ModelKey]]:
    """Parse a POM file, returning its root element and parent coordinates."""
    pom = ET.parse(str(path)).getroot()
    parent = _child(pom, "parent")
    parent_key = None
    if parent is not None:
        parent_key = (_text(parent, "groupId") or "", _text(parent, "artifactId") or "", _text(parent, "version") or "")
    return pom, parent_key


def interpolate(value: Optional[str], properties: Dict[str, str]) -> Optional[str]:
    """Replace ``${name}`` references; unknown references are left in place."""
    if not value or "${" not in value:
        return value
    for _ in range(10):
        expanded = _PROPERTY_REF.sub(lambda m: properties.get(m.group(1), m.group(0)), value)
        if expanded == value:
            break
        value = expanded
    return value


def _interpolate_dependency(dep: Dependency, properties: Dict[str, str]) -> Dependency:
    return replace(
        dep,
        group_id=interpolate(dep.group_id, properties),
        artifact_id=interpolate(dep.artifact_id, properties),
        version=interpolate(dep.version, properties),
        type=interpolate(dep.type, properties),
        classifier=interpolate(dep.classifier, properties),
        scope=interpolate(dep.scope, properties),
    )


def apply_management(dep: Dependency, management: Dict[tuple, Dependency], force: bool = False) -> Dependency:
    """Fill (or, with ``force``, override) version and scope from management."""
    managed = management.get(dep.management_key)
    if managed is None:
        return dep
    version = managed.version if (force or not dep.version) and managed.version else dep.version
    scope = managed.scope if (force or not dep.scope) and managed.scope else dep.scope
    return replace(dep, version=version, scope=scope, exclusions=dep.exclusions | managed.exclusions)


def is_excluded(dep: Dependency, exclusions: FrozenSet[str]) -> bool:
    for exclusion in exclusions:
        group_id, _, artifact_id = exclusion.partition(":")
        if group_id in ("*", dep.group_id) and artifact_id in ("*", dep.artifact_id):
            return True
    return False


class _ResolutionSession:
    """State for one resolve() call; discarded afterwards."""

    def __init__(self, request: ResolutionRequest):
        self.request = request
        self.local = LocalRepository(request.local_repository)
        self.models: Dict[ModelKey, Optional[PomModel]] = {}
        self.missing: List[Artifact] = []
        self.errors: List[str] = []

    # -- file access -------------------------------------------------------

    def fetch(
        self, group_id: str, artifact_id: str, version: str, extension: str, classifier: Optional[str] = None
    ) -> Optional[Path]:
        path = self.local.path_of(group_id, artifact_id, version, extension, classifier=classifier)
        if path.is_file():
            return path
        if self.request.offline:
            return None
        relative = self.local.relative_path(group_id, artifact_id, version, extension, classifier=classifier)
        for repo in self.request.remote_repositories:
            url = f"{repo.url.rstrip('/')}/{relative}"
            with Timer() as timer:
                try:
                    status = http_client.download_file(url, str(path))
                except OSError as exc:
                    self.errors.append(f"Could not store {relative} in local repository {self.local.basedir}: {exc}")
                    return None
            if status == 200:
                logger.info("Downloaded from %s: %s", repo.id, relative)
                if is_debug_enabled(logger):
                    logger.debug(
                        "Artifact downloaded",
                        extra=extra_context(
                            event="download",
                            component="maven_repository",
                            action="fetch",
                            outcome="success",
                            duration_ms=timer.duration_ms(),
                            repository=repo.id,
                        ),
                    )
                return path
        return None

    def available_versions(self, group_id: str, artifact_id: str) -> List[str]:
        versions = list(self.local.versions_of(group_id, artifact_id))
        if self.request.offline:
            return versions
        path = f"{group_id.replace('.', '/')}/{artifact_id}/{Constants.MAVEN_METADATA_FILE}"
        for repo in self.request.remote_repositories:
            status_code, _, text = http_client.robust_get(f"{repo.url.rstrip('/')}/{path}")
            if status_code != 200 or not text:
                continue
            try:
                root = ET.fromstring(text)
            except ET.ParseError:
                logger.warning("Malformed %s for %s in %s", Constants.MAVEN_METADATA_FILE,
                               versionless_key(group_id, artifact_id), repo.id)
                continue
            for node in root.findall("versioning/versions/version"):
                if node.text and node.text.strip() not in versions:
                    versions.append(node.text.strip())
        return versions

    def select_version(self, group_id: str, artifact_id: str, spec: Optional[str]) -> Optional[str]:
        if not spec:
            self.errors.append(f"Missing version for {versionless_key(group_id, artifact_id)}")
            return None
        if not spec.startswith(("[", "(")):
            return spec
        try:
            version_range = VersionRange.from_spec(spec)
        except InvalidVersionSpecification as exc:
            self.errors.append(f"Invalid version range for {versionless_key(group_id, artifact_id)}: {exc}")
            return None
        selected = version_range.match_version(self.available_versions(group_id, artifact_id))
        if selected is None:
            self.errors.append(
                f"No versions available for {versionless_key(group_id, artifact_id)} within range {spec}"
            )
        return selected

    # -- models ------------------------------------------------------------

    def load_model(self, group_id: str, artifact_id: str, version: str, depth: int = 0) -> Optional[PomModel]:
        key = (group_id, artifact_id, version)
        if key in self.models:
            return self.models[key]
        self.models[key] = None  # guards against parent cycles
        if depth > Constants.MAX_PARENT_DEPTH:
            self.errors.append(f"Parent chain too deep at {':'.join(key)}")
            return None

        pom_path = self.fetch(group_id, artifact_id, version, "pom")
        if pom_path is None:
            logger.warning("The POM for %s is missing, no dependency information available", ":".join(key))
            return None
        try:
            pom, parent_key = read_pom(pom_path)
        except (OSError, ET.ParseError) as exc:
            self.errors.append(f"Unreadable POM {pom_path}: {exc}")
            return None

        parent = self.load_model(*parent_key, depth=depth + 1) if parent_key else None
        model = self._build_model(pom, parent, parent_key, key, depth)
        self.models[key] = model
        return model

    def _build_model(
        self,
        pom: ET.Element,
        parent: Optional[PomModel],
        parent_key: Optional[ModelKey],
        key: ModelKey,
        depth: int,
    ) -> PomModel:
        group_id = _text(pom, "groupId") or (parent_key[0] if parent_key else key[0])
        version = _text(pom, "version") or (parent_key[2] if parent_key else key[2])

        properties: Dict[str, str] = dict(parent.properties) if parent else {}
        properties_node = _child(pom, "properties")
        for node in (list(properties_node) if properties_node is not None else []):
            properties[_local_name(node.tag)] = (node.text or "").strip()
        project_props = {
            "project.groupId": group_id,
            "project.artifactId": key[1],
            "project.version": version,
            "pom.groupId": group_id,
            "pom.version": version,
            "groupId": group_id,
            "version": version,
        }
        if parent_key:
            project_props["project.parent.groupId"] = parent_key[0]
            project_props["project.parent.version"] = parent_key[2]
        properties.update(project_props)

        management: Dict[tuple, Dependency] = dict(parent.dependency_management) if parent else {}
        own_management: Dict[tuple, Dependency] = {}
        imported: Dict[tuple, Dependency] = {}
        for node in _children(_child(_child(pom, "dependencyManagement"), "dependencies"), "dependency"):
            dep = _parse_dependency(node)
            if dep is None:
                continue
            dep = _interpolate_dependency(dep, properties)
            if dep.scope == Scopes.IMPORT.value and dep.type == "pom":
                bom = self.load_model(dep.group_id, dep.artifact_id, dep.version or "", depth=depth + 1)
                if bom is not None:
                    for managed_key, managed in bom.dependency_management.items():
                        imported.setdefault(managed_key, managed)
                continue
            own_management[dep.management_key] = dep
        management.update(imported)
        management.update(own_management)

        dependencies: Dict[tuple, Dependency] = (
            {d.management_key: d for d in parent.dependencies} if parent else {}
        )
        for node in _children(_child(pom, "dependencies"), "dependency"):
            dep = _parse_dependency(node)
            if dep is None:
                continue
            dep = apply_management(_interpolate_dependency(dep, properties), management)
            dependencies[dep.management_key] = dep

        return PomModel(
            group_id=group_id,
            artifact_id=key[1],
            version=version,
            properties=properties,
            dependency_management=management,
            dependencies=list(dependencies.values()),
        )

    # -- graph -------------------------------------------------------------

    def _resolve_file(self, artifact: Artifact) -> Optional[Path]:
        extension, implied_classifier = _type_handler(artifact.type)
        classifier = artifact.classifier or implied_classifier
        if extension == "pom":
            return self.fetch(artifact.group_id, artifact.artifact_id, artifact.version, "pom")
        return self.fetch(artifact.group_id, artifact.artifact_id, artifact.version, extension, classifier)

    def run(self) -> ResolutionResult:
        requested = self.request.artifact
        version = self.select_version(requested.group_id, requested.artifact_id, requested.version)
        if version is None:
            return self._result(())
        root = replace(requested, version=version, selected_version=version)
        root.file = self._resolve_file(root)
        if root.file is None:
            self.missing.append(root)
            return self._result(())

        resolved: List[Artifact] = [root]
        if not self.request.resolve_transitively:
            return self._result(resolved)

        root_model = self.load_model(root.group_id, root.artifact_id, root.version)
        root_management = root_model.dependency_management if root_model else {}
        seen = {root.versionless_id}
        queue: Deque[Tuple[Artifact, FrozenSet[str], int]] = deque([(root, frozenset(), 0)])

        while queue:
            parent, exclusions, depth = queue.popleft()
            model = root_model if depth == 0 else self.load_model(parent.group_id, parent.artifact_id, parent.version)
            if model is None:
                continue
            for dep in model.dependencies:
                if depth > 0:
                    dep = apply_management(dep, root_management, force=True)
                if dep.optional or (dep.scope or Scopes.COMPILE.value) in NON_TRANSITIVE_SCOPES:
                    continue
                if is_excluded(dep, exclusions):
                    continue
                key = versionless_key(dep.group_id, dep.artifact_id)
                if key in seen:
                    continue
                seen.add(key)

                selected = self.select_version(dep.group_id, dep.artifact_id, dep.version)
                if selected is None:
                    continue
                artifact = Artifact(
                    group_id=dep.group_id,
                    artifact_id=dep.artifact_id,
                    version=selected,
                    type=dep.type,
                    classifier=dep.classifier,
                    scope=derive_scope(parent.scope, dep.scope),
                    selected_version=selected,
                )
                artifact.file = self._resolve_file(artifact)
                if artifact.file is None:
                    self.missing.append(artifact)
                    continue
                resolved.append(artifact)
                queue.append((artifact, exclusions | dep.exclusions, depth + 1))

        return self._result(resolved)

    def _result(self, artifacts) -> ResolutionResult:
        return ResolutionResult(
            request=self.request,
            artifacts=tuple(artifacts),
            missing_artifacts=tuple(self.missing),
            errors=tuple(self.errors),
        )


class MavenRepositorySystem:
    """RepositorySystem backed by the local repository plus HTTP remotes."""

    def create_dependency_artifact(self, dependency: Dependency) -> Artifact:
        return Artifact(
            group_id=dependency.group_id,
            artifact_id=dependency.artifact_id,
            version=dependency.version or "",
            type=dependency.type,
            classifier=dependency.classifier,
            scope=dependency.scope,
            optional=dependency.optional,
        )

    def resolve(self, request: ResolutionRequest) -> ResolutionResult:
        with Timer() as timer:
            result = _ResolutionSession(request).run()
        if is_debug_enabled(logger):
            logger.debug(
                "Resolved %s",
                request.artifact,
                extra=extra_context(
                    event="resolve",
                    component="maven_repository",
                    action="resolve",
                    outcome="failure" if result.has_errors else "success",
                    count=len(result.artifacts),
                    duration_ms=timer.duration_ms(),
                ),
            )
        return result
