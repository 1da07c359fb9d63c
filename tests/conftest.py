"""Shared fixtures: Constants isolation and an on-disk Maven repository builder."""
from __future__ import annotations

import copy
import zipfile
from pathlib import Path
from typing import Iterable, Optional, Sequence

import pytest

from constants import Constants

POM_TEMPLATE = """<?xml version="1.0" encoding="UTF-8"?>
<project xmlns="http://maven.apache.org/POM/4.0.0">
  <modelVersion>4.0.0</modelVersion>
{parent}{coords}
  <packaging>{packaging}</packaging>
{properties}{management}{dependencies}</project>
"""


def _dependency_xml(dep, indent="    ") -> str:
    if isinstance(dep, str):
        parts = dep.split(":")
        dep = {"group": parts[0], "artifact": parts[1], "version": parts[2] if len(parts) > 2 else None}
        if len(parts) > 3:
            dep["scope"] = parts[3]
    lines = [f"{indent}<dependency>",
             f"{indent}  <groupId>{dep['group']}</groupId>",
             f"{indent}  <artifactId>{dep['artifact']}</artifactId>"]
    for key, tag in (("version", "version"), ("type", "type"), ("classifier", "classifier"), ("scope", "scope")):
        if dep.get(key):
            lines.append(f"{indent}  <{tag}>{dep[key]}</{tag}>")
    if dep.get("optional"):
        lines.append(f"{indent}  <optional>true</optional>")
    if dep.get("exclusions"):
        lines.append(f"{indent}  <exclusions>")
        for exclusion in dep["exclusions"]:
            group_id, artifact_id = exclusion.split(":")
            lines.append(f"{indent}    <exclusion><groupId>{group_id}</groupId>"
                         f"<artifactId>{artifact_id}</artifactId></exclusion>")
        lines.append(f"{indent}  </exclusions>")
    lines.append(f"{indent}</dependency>")
    return "\n".join(lines) + "\n"


class MavenRepoBuilder:
    """Writes POMs and jars in Maven default layout under ``basedir``."""

    def __init__(self, basedir: Path):
        self.basedir = Path(basedir)

    def dir_of(self, group_id: str, artifact_id: str, version: str) -> Path:
        return self.basedir / group_id.replace(".", "/") / artifact_id / version

    def add(
        self,
        coords: str,
        dependencies: Sequence = (),
        parent: Optional[str] = None,
        properties: Optional[dict] = None,
        management: Sequence = (),
        packaging: str = "jar",
        jar: bool = True,
        classes: Iterable[str] = (),
        omit_group_and_version: bool = False,
    ) -> Path:
        group_id, artifact_id, version = coords.split(":")
        target = self.dir_of(group_id, artifact_id, version)
        target.mkdir(parents=True, exist_ok=True)

        parent_xml = ""
        if parent:
            pg, pa, pv = parent.split(":")
            parent_xml = (f"  <parent>\n    <groupId>{pg}</groupId>\n    <artifactId>{pa}</artifactId>\n"
                          f"    <version>{pv}</version>\n  </parent>\n")
        if omit_group_and_version:
            coords_xml = f"  <artifactId>{artifact_id}</artifactId>"
        else:
            coords_xml = (f"  <groupId>{group_id}</groupId>\n  <artifactId>{artifact_id}</artifactId>\n"
                          f"  <version>{version}</version>")
        props_xml = ""
        if properties:
            props_xml = "  <properties>\n" + "".join(
                f"    <{k}>{v}</{k}>\n" for k, v in properties.items()) + "  </properties>\n"
        mgmt_xml = ""
        if management:
            mgmt_xml = ("  <dependencyManagement>\n    <dependencies>\n"
                        + "".join(_dependency_xml(d, "      ") for d in management)
                        + "    </dependencies>\n  </dependencyManagement>\n")
        deps_xml = ""
        if dependencies:
            deps_xml = "  <dependencies>\n" + "".join(_dependency_xml(d) for d in dependencies) + "  </dependencies>\n"

        pom = target / f"{artifact_id}-{version}.pom"
        pom.write_text(POM_TEMPLATE.format(
            parent=parent_xml, coords=coords_xml, packaging=packaging,
            properties=props_xml, management=mgmt_xml, dependencies=deps_xml,
        ), encoding="utf-8")
        if jar and packaging != "pom":
            make_jar(target / f"{artifact_id}-{version}.jar", classes)
        return target


def make_jar(path: Path, entries: Iterable[str] = ()) -> Path:
    """Create a jar holding empty entries; names ending in '/' become directories."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with zipfile.ZipFile(path, "w") as jar:
        jar.writestr("META-INF/MANIFEST.MF", "Manifest-Version: 1.0\n")
        for entry in entries:
            jar.writestr(entry, b"" if entry.endswith("/") else b"\xca\xfe\xba\xbe")
    return path


@pytest.fixture(autouse=True)
def restore_constants():
    """Undo any Constants mutation made by config or CLI code under test."""
    saved = {k: copy.deepcopy(v) for k, v in vars(Constants).items() if k.isupper()}
    yield
    for key, value in saved.items():
        setattr(Constants, key, value)


@pytest.fixture
def maven_repo(tmp_path) -> MavenRepoBuilder:
    return MavenRepoBuilder(tmp_path / "repository")


@pytest.fixture
def jar_factory(tmp_path):
    def _make(name: str, entries: Iterable[str] = ()) -> Path:
        return make_jar(tmp_path / name, entries)
    return _make
