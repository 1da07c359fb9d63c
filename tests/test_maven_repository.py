"""Tests for the default Maven-layout repository system."""

import shutil
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from common import http_client
from errors import ResolutionError
from resolution.client import ArtifactResolutionClient
from resolution.maven_repository import (
    LocalRepository,
    MavenRepositorySystem,
    derive_scope,
    interpolate,
)
from versioning.models import Artifact, ArtifactRepository, Dependency, ResolutionRequest
from conftest import MavenRepoBuilder, make_jar

SUREFIRE = "org.apache.maven.surefire"
REMOTE_URL = "https://repo.example.org/maven2"


def resolve(repo, coords, offline=True, remotes=(), scope=None, transitive=True):
    group_id, artifact_id, version = coords.split(":")
    request = ResolutionRequest(
        artifact=Artifact(group_id, artifact_id, version, scope=scope),
        local_repository=repo.basedir,
        resolve_transitively=transitive,
        remote_repositories=list(remotes),
        offline=offline,
    )
    return MavenRepositorySystem().resolve(request)


def ids(result):
    return [f"{a.group_id}:{a.artifact_id}:{a.version}" for a in result.artifacts]


@pytest.fixture
def no_network(monkeypatch):
    def _fail(*args, **kwargs):
        raise AssertionError("network access attempted")
    monkeypatch.setattr(http_client, "download_file", _fail)
    monkeypatch.setattr(http_client, "robust_get", _fail)


class TestHelpers:
    """Module-level helpers."""

    def test_relative_path_layout(self, tmp_path):
        local = LocalRepository(tmp_path)
        assert local.relative_path("org.foo", "bar", "1.0", "jar") == "org/foo/bar/1.0/bar-1.0.jar"
        assert local.relative_path("org.foo", "bar", "1.0", "jar", classifier="tests") == \
            "org/foo/bar/1.0/bar-1.0-tests.jar"

    @pytest.mark.parametrize("parent, child, expected", [
        (None, None, "compile"),
        ("compile", "runtime", "runtime"),
        ("runtime", "compile", "runtime"),
        ("test", "compile", "test"),
        ("test", "runtime", "test"),
        ("provided", "compile", "provided"),
    ])
    def test_derive_scope(self, parent, child, expected):
        assert derive_scope(parent, child) == expected

    def test_interpolate(self):
        props = {"a": "1", "b": "${a}.0"}
        assert interpolate("${b}", props) == "1.0"
        assert interpolate("${unknown}-x", props) == "${unknown}-x"
        assert interpolate(None, props) is None

    def test_create_dependency_artifact(self):
        artifact = MavenRepositorySystem().create_dependency_artifact(
            Dependency(SUREFIRE, "surefire-junit4", "3.2.5", scope="test")
        )
        assert artifact == Artifact(SUREFIRE, "surefire-junit4", "3.2.5")
        assert artifact.scope == "test"
        assert artifact.file is None


class TestOfflineResolution:
    """Resolution against a local repository only."""

    def test_breadth_first_order(self, maven_repo, no_network):
        maven_repo.add(f"{SUREFIRE}:surefire-junit4:3.2.5", [
            f"{SUREFIRE}:common-junit4:3.2.5",
            f"{SUREFIRE}:surefire-api:3.2.5",
        ])
        maven_repo.add(f"{SUREFIRE}:common-junit4:3.2.5", [
            f"{SUREFIRE}:common-junit3:3.2.5",
            f"{SUREFIRE}:common-java5:3.2.5",
        ])
        maven_repo.add(f"{SUREFIRE}:surefire-api:3.2.5", [
            f"{SUREFIRE}:surefire-logger-api:3.2.5",
            f"{SUREFIRE}:common-java5:3.2.5",
        ])
        for name in ("common-junit3", "common-java5", "surefire-logger-api"):
            maven_repo.add(f"{SUREFIRE}:{name}:3.2.5")

        result = resolve(maven_repo, f"{SUREFIRE}:surefire-junit4:3.2.5", scope="test")

        assert not result.has_errors
        assert [a.artifact_id for a in result.artifacts] == [
            "surefire-junit4", "common-junit4", "surefire-api",
            "common-junit3", "common-java5", "surefire-logger-api",
        ]
        root = result.artifacts[0]
        assert root.selected_version == "3.2.5"
        assert root.file == maven_repo.dir_of(SUREFIRE, "surefire-junit4", "3.2.5") / "surefire-junit4-3.2.5.jar"
        assert all(a.file is not None and a.file.is_file() for a in result.artifacts)
        assert all(a.scope == "test" for a in result.artifacts)

    def test_not_transitive(self, maven_repo, no_network):
        maven_repo.add("org.example:app:1.0", ["org.example:lib:1.0"])
        maven_repo.add("org.example:lib:1.0")
        result = resolve(maven_repo, "org.example:app:1.0", transitive=False)
        assert ids(result) == ["org.example:app:1.0"]

    def test_nearest_declaration_wins(self, maven_repo, no_network):
        maven_repo.add("org.example:app:1.0", ["org.example:a:1.0", "org.example:b:1.0"])
        maven_repo.add("org.example:a:1.0")
        maven_repo.add("org.example:b:1.0", ["org.example:a:2.0"])
        maven_repo.add("org.example:a:2.0")
        assert ids(resolve(maven_repo, "org.example:app:1.0")) == [
            "org.example:app:1.0", "org.example:a:1.0", "org.example:b:1.0",
        ]

    def test_parent_properties_and_management(self, maven_repo, no_network):
        maven_repo.add(
            "org.example:parent:1.0",
            packaging="pom",
            properties={"junit.version": "4.13.2"},
            management=["junit:junit:${junit.version}"],
        )
        maven_repo.add(
            "org.example:child:1.0",
            parent="org.example:parent:1.0",
            omit_group_and_version=True,
            dependencies=[{"group": "junit", "artifact": "junit"}, "org.example:sibling:${project.version}"],
        )
        maven_repo.add("junit:junit:4.13.2")
        maven_repo.add("org.example:sibling:1.0")

        assert ids(resolve(maven_repo, "org.example:child:1.0")) == [
            "org.example:child:1.0", "junit:junit:4.13.2", "org.example:sibling:1.0",
        ]

    def test_imported_bom(self, maven_repo, no_network):
        maven_repo.add("org.example:bom:1.0", packaging="pom", management=["org.example:lib:2.1"])
        maven_repo.add("org.example:app:1.0", management=[
            {"group": "org.example", "artifact": "bom", "version": "1.0", "type": "pom", "scope": "import"},
        ], dependencies=[{"group": "org.example", "artifact": "lib"}])
        maven_repo.add("org.example:lib:2.1")
        assert ids(resolve(maven_repo, "org.example:app:1.0")) == ["org.example:app:1.0", "org.example:lib:2.1"]

    def test_root_management_overrides_transitive_versions(self, maven_repo, no_network):
        maven_repo.add("org.example:app:1.0", ["org.example:b:1.0"], management=["org.example:c:2.0"])
        maven_repo.add("org.example:b:1.0", ["org.example:c:1.0"])
        maven_repo.add("org.example:c:1.0")
        maven_repo.add("org.example:c:2.0")
        assert ids(resolve(maven_repo, "org.example:app:1.0"))[-1] == "org.example:c:2.0"

    def test_exclusions_apply_to_subtree(self, maven_repo, no_network):
        maven_repo.add("org.example:app:1.0", [
            {"group": "org.example", "artifact": "b", "version": "1.0", "exclusions": ["org.example:c"]},
        ])
        maven_repo.add("org.example:b:1.0", ["org.example:c:1.0", "org.example:d:1.0"])
        maven_repo.add("org.example:d:1.0", ["org.example:c:1.0"])
        maven_repo.add("org.example:c:1.0")
        assert ids(resolve(maven_repo, "org.example:app:1.0")) == [
            "org.example:app:1.0", "org.example:b:1.0", "org.example:d:1.0",
        ]

    def test_optional_and_non_transitive_scopes_are_skipped(self, maven_repo, no_network):
        maven_repo.add("org.example:app:1.0", [
            {"group": "org.example", "artifact": "opt", "version": "1.0", "optional": True},
            "org.example:tst:1.0:test",
            "org.example:prov:1.0:provided",
            "org.example:rt:1.0:runtime",
        ])
        maven_repo.add("org.example:rt:1.0")
        result = resolve(maven_repo, "org.example:app:1.0")
        assert ids(result) == ["org.example:app:1.0", "org.example:rt:1.0"]
        assert result.artifacts[1].scope == "runtime"

    def test_range_selects_highest_local_version(self, maven_repo, no_network):
        for version in ("1.0", "1.5", "2.0"):
            maven_repo.add(f"org.example:lib:{version}")
        maven_repo.add("org.example:app:1.0", ["org.example:lib:[1.0,2.0)"])
        result = resolve(maven_repo, "org.example:app:1.0")
        lib = result.artifacts[1]
        assert (lib.version, lib.selected_version) == ("1.5", "1.5")

    def test_range_without_candidates_is_an_error(self, maven_repo, no_network):
        maven_repo.add("org.example:app:1.0", ["org.example:lib:[3.0,)"])
        result = resolve(maven_repo, "org.example:app:1.0")
        assert result.has_errors
        assert any("within range [3.0,)" in e for e in result.errors)

    def test_missing_jar_is_reported(self, maven_repo, no_network):
        maven_repo.add("org.example:app:1.0", ["org.example:gone:1.0"])
        result = resolve(maven_repo, "org.example:app:1.0")
        assert ids(result) == ["org.example:app:1.0"]
        assert result.missing_artifacts == (Artifact("org.example", "gone", "1.0"),)

    def test_missing_root(self, maven_repo, no_network):
        result = resolve(maven_repo, "org.example:nothing:1.0")
        assert result.artifacts == ()
        assert result.missing_artifacts == (Artifact("org.example", "nothing", "1.0"),)

    def test_test_jar_uses_tests_classifier(self, maven_repo, no_network):
        maven_repo.add("org.example:app:1.0", [
            {"group": "org.example", "artifact": "fixtures", "version": "1.0", "type": "test-jar"},
        ])
        maven_repo.add("org.example:fixtures:1.0", jar=False)
        make_jar(maven_repo.dir_of("org.example", "fixtures", "1.0") / "fixtures-1.0-tests.jar")
        result = resolve(maven_repo, "org.example:app:1.0")
        assert result.artifacts[1].file.name == "fixtures-1.0-tests.jar"


class TestRemoteResolution:
    """Downloads from remote repositories."""

    @pytest.fixture
    def remote(self, tmp_path, monkeypatch):
        remote = MavenRepoBuilder(tmp_path / "remote")
        calls = []

        def fake_download(url, dest, headers=None):
            calls.append(url)
            source = remote.basedir / url[len(REMOTE_URL) + 1:]
            if not source.is_file():
                return 404
            Path(dest).parent.mkdir(parents=True, exist_ok=True)
            shutil.copyfile(source, dest)
            return 200

        monkeypatch.setattr(http_client, "download_file", fake_download)
        remote.calls = calls
        return remote

    def test_downloads_into_local_repository(self, maven_repo, remote):
        remote.add("org.example:app:1.0", ["org.example:lib:1.0"])
        remote.add("org.example:lib:1.0")
        repos = [ArtifactRepository("example", REMOTE_URL)]

        result = resolve(maven_repo, "org.example:app:1.0", offline=False, remotes=repos)

        assert ids(result) == ["org.example:app:1.0", "org.example:lib:1.0"]
        assert (maven_repo.dir_of("org.example", "lib", "1.0") / "lib-1.0.jar").is_file()
        assert f"{REMOTE_URL}/org/example/app/1.0/app-1.0.jar" in remote.calls

    def test_local_copy_skips_download(self, maven_repo, remote):
        maven_repo.add("org.example:app:1.0")
        repos = [ArtifactRepository("example", REMOTE_URL)]
        resolve(maven_repo, "org.example:app:1.0", offline=False, remotes=repos)
        assert remote.calls == []

    def test_remote_metadata_drives_range_selection(self, maven_repo, remote, monkeypatch):
        remote.add("org.example:app:1.0", ["org.example:lib:[1.0,)"])
        remote.add("org.example:lib:1.2")
        metadata = (
            "<metadata><groupId>org.example</groupId><artifactId>lib</artifactId>"
            "<versioning><versions><version>1.0</version><version>1.2</version>"
            "</versions></versioning></metadata>"
        )
        requested = []

        def fake_get(url, **kwargs):
            requested.append(url)
            return 200, {}, metadata

        monkeypatch.setattr(http_client, "robust_get", fake_get)
        repos = [ArtifactRepository("example", REMOTE_URL)]
        result = resolve(maven_repo, "org.example:app:1.0", offline=False, remotes=repos)

        assert ids(result) == ["org.example:app:1.0", "org.example:lib:1.2"]
        assert requested == [f"{REMOTE_URL}/org/example/lib/maven-metadata.xml"]

    def test_offline_request_ignores_remotes(self, maven_repo, no_network):
        repos = [ArtifactRepository("example", REMOTE_URL)]
        result = resolve(maven_repo, "org.example:app:1.0", offline=True, remotes=repos)
        assert result.missing_artifacts


@patch("common.http_client.requests.get")
def test_unwritable_local_repository_is_a_resolution_error(mock_get, tmp_path):
    """A download that cannot be stored is reported, not raised as OSError."""
    response = MagicMock()
    response.status_code = 200
    response.iter_content.return_value = [b"PK"]
    response.__enter__.return_value = response
    response.__exit__.return_value = False
    mock_get.return_value = response
    local = tmp_path / "repo"
    local.write_text("not a directory")

    client = ArtifactResolutionClient(
        MavenRepositorySystem(), local,
        plugin_remote_repositories=[ArtifactRepository("example", REMOTE_URL)],
    )
    with pytest.raises(ResolutionError) as excinfo:
        client.resolve_plugin_artifact(Artifact("g", "a", "1.0"))

    assert excinfo.value.missing == (Artifact("g", "a", "1.0"),)
    assert any("Could not store g/a/1.0/a-1.0.jar" in cause for cause in excinfo.value.causes)
