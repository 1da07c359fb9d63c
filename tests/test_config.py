"""Tests for YAML configuration and CLI overrides."""

import os

import pytest

from args import parse_args
from cli_config import apply_cli_overrides, load_configuration, remote_repositories
from constants import Constants, _load_yaml_config, apply_config
from versioning.models import ArtifactRepository

CONFIG_YAML = """
local_repository: /opt/m2
remote_repositories:
  - https://mirror.example/maven2
  - id: internal
    url: https://nexus.example/repository/maven
offline: true
provider_version: 3.1.2
http:
  timeout: 5
  retries: 0
"""


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "surefire-deps.yml"
    path.write_text(CONFIG_YAML, encoding="utf-8")
    return path


@pytest.fixture
def isolated_cwd(tmp_path, monkeypatch):
    """Keep config discovery away from the developer's real files."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.delenv(Constants.ENV_CONFIG, raising=False)
    return tmp_path


def test_apply_config(config_file):
    apply_config(_load_yaml_config(str(config_file)))
    assert Constants.LOCAL_REPOSITORY == "/opt/m2"
    assert Constants.OFFLINE is True
    assert Constants.DEFAULT_PROVIDER_VERSION == "3.1.2"
    assert Constants.REQUEST_TIMEOUT == 5
    assert Constants.HTTP_RETRY_MAX == 1
    assert remote_repositories() == [
        ArtifactRepository("repo0", "https://mirror.example/maven2"),
        ArtifactRepository("internal", "https://nexus.example/repository/maven"),
    ]


def test_config_from_environment(config_file, isolated_cwd, monkeypatch):
    monkeypatch.setenv(Constants.ENV_CONFIG, str(config_file))
    assert _load_yaml_config()["provider_version"] == "3.1.2"


def test_config_discovered_in_working_directory(config_file, isolated_cwd):
    assert _load_yaml_config()["local_repository"] == "/opt/m2"


def test_no_config_is_empty(isolated_cwd):
    assert _load_yaml_config() == {}
    apply_config({})
    assert Constants.OFFLINE is False


def test_non_mapping_config_is_ignored(tmp_path, caplog):
    path = tmp_path / "bad.yml"
    path.write_text("- just\n- a list\n", encoding="utf-8")
    assert _load_yaml_config(str(path)) == {}
    assert "top level must be a mapping" in caplog.text


def test_malformed_yaml_is_ignored(tmp_path, caplog):
    path = tmp_path / "broken.yml"
    path.write_text("key: [unclosed\n", encoding="utf-8")
    assert _load_yaml_config(str(path)) == {}
    assert "Ignoring unreadable config file" in caplog.text


def test_cli_overrides_take_precedence(config_file, tmp_path):
    """Flags win over values from the config file."""
    args = parse_args([
        "classpath", "-p", "surefire-junit4",
        "--config", str(config_file),
        "--local-repository", str(tmp_path / "m2"),
        "--repository", "https://cli.example/maven2",
        "-v", "3.2.5",
    ])
    load_configuration(args)
    apply_cli_overrides(args)
    assert Constants.LOCAL_REPOSITORY == str(tmp_path / "m2")
    assert Constants.DEFAULT_PROVIDER_VERSION == "3.2.5"
    assert Constants.OFFLINE is True
    assert remote_repositories() == [ArtifactRepository("cli0", "https://cli.example/maven2")]


def test_offline_flag(isolated_cwd):
    args = parse_args(["scan", "--offline"])
    load_configuration(args)
    apply_cli_overrides(args)
    assert Constants.OFFLINE is True


def test_local_repository_expands_user(isolated_cwd):
    args = parse_args(["scan", "--local-repository", "~/repo"])
    apply_cli_overrides(args)
    assert Constants.LOCAL_REPOSITORY == os.path.join(str(isolated_cwd), "repo")


def test_non_numeric_http_settings_are_ignored(caplog):
    """A bad http value is skipped with a warning; the other keys still apply."""
    apply_config({"http": {"timeout": "thirty", "retries": 5}, "provider_version": "3.1.2"})
    assert Constants.REQUEST_TIMEOUT == 30
    assert Constants.HTTP_RETRY_MAX == 5
    assert Constants.DEFAULT_PROVIDER_VERSION == "3.1.2"
    assert "http.timeout='thirty'" in caplog.text
