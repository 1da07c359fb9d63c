"""Constants used in the project."""

import logging
import os
from enum import Enum
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


class ExitCodes(Enum):
    """Exit codes for the program.

    Args:
        Enum (int): Exit codes for the program.
    """

    SUCCESS = 0
    FILE_ERROR = 1
    CONNECTION_ERROR = 2
    SCAN_ERROR = 4
    INTERNAL_ERROR = 5


class Scopes(Enum):
    """Maven dependency scopes.

    Args:
        Enum (string): Scope names as written in a POM.
    """

    COMPILE = "compile"
    PROVIDED = "provided"
    RUNTIME = "runtime"
    TEST = "test"
    SYSTEM = "system"
    IMPORT = "import"


class Constants:  # pylint: disable=too-few-public-methods
    """General constants used in the project.
    Data holder for configuration constants; not intended to provide behavior.
    """

    PROVIDER_GROUP_ID = "org.apache.maven.surefire"
    # Priority of provider and common modules on an assembled provider classpath.
    PROVIDER_CLASSPATH_ORDER = (
        "surefire-junit3",
        "surefire-junit4",
        "surefire-junit47",
        "surefire-testng",
        "surefire-junit-platform",
        "surefire-api",
        "surefire-logger-api",
        "common-java5",
        "common-junit3",
        "common-junit4",
        "common-junit48",
        "common-testng-utils",
    )
    DEFAULT_PROVIDER_VERSION = "3.2.5"
    PLUGIN_NAME = "surefire"

    JAR_EXTENSION = ".jar"
    CLASS_FILE_SUFFIX = ".class"
    COORDINATE_PATTERN_SYNTAX = "groupId:artifactId[:version[:type[:classifier]]]"

    LOCAL_REPOSITORY = os.path.join(os.path.expanduser("~"), ".m2", "repository")
    REMOTE_REPOSITORIES = [
        {"id": "central", "url": "https://repo.maven.apache.org/maven2"},
    ]
    OFFLINE = False
    MAVEN_METADATA_FILE = "maven-metadata.xml"
    POM_NAMESPACE = "{http://maven.apache.org/POM/4.0.0}"
    MAX_PARENT_DEPTH = 16

    LOG_FORMAT = "[%(levelname)s] %(message)s"
    ENV_LOG_LEVEL = "SUREFIRE_DEPS_LOG_LEVEL"
    ENV_CONFIG = "SUREFIRE_DEPS_CONFIG"
    CONFIG_FILE_NAMES = ("surefire-deps.yml", "surefire-deps.yaml")

    REQUEST_TIMEOUT = 30  # Timeout in seconds for all HTTP requests
    HTTP_RETRY_MAX = 3
    HTTP_RETRY_BASE_DELAY_SEC = 0.3
    USER_AGENT = "surefire-deps/0.1"


def _candidate_config_paths() -> list:
    """Return config file locations in lookup order."""
    paths = []
    env_path = os.environ.get(Constants.ENV_CONFIG)
    if env_path:
        paths.append(env_path)
    paths.extend(os.path.join(os.getcwd(), name) for name in Constants.CONFIG_FILE_NAMES)
    paths.append(os.path.join(os.path.expanduser("~"), ".config", "surefire-deps", "config.yml"))
    return paths


def _load_yaml_config(path: Optional[str] = None) -> Dict[str, Any]:
    """Load the first readable YAML config file.

    Args:
        path: Explicit config path; when omitted the default locations are tried.

    Returns:
        Parsed mapping, empty when no usable file is found.
    """
    import yaml  # pylint: disable=import-outside-toplevel

    paths = [path] if path else _candidate_config_paths()
    for candidate in paths:
        if not candidate or not os.path.isfile(candidate):
            continue
        try:
            with open(candidate, "r", encoding="utf-8") as fh:
                data = yaml.safe_load(fh) or {}
        except (OSError, yaml.YAMLError) as exc:
            logger.warning("Ignoring unreadable config file %s: %s", candidate, exc)
            continue
        if not isinstance(data, dict):
            logger.warning("Ignoring config file %s: top level must be a mapping", candidate)
            continue
        logger.debug("Loaded configuration from %s", candidate)
        return data
    return {}


def apply_config(cfg: Dict[str, Any]) -> None:
    """Apply a loaded config mapping onto Constants."""
    if not cfg:
        return
    if cfg.get("local_repository"):
        Constants.LOCAL_REPOSITORY = os.path.expanduser(str(cfg["local_repository"]))
    repos = cfg.get("remote_repositories")
    if isinstance(repos, list):
        parsed = []
        for i, repo in enumerate(repos):
            if isinstance(repo, str):
                parsed.append({"id": f"repo{i}", "url": repo})
            elif isinstance(repo, dict) and repo.get("url"):
                parsed.append({"id": str(repo.get("id") or f"repo{i}"), "url": str(repo["url"])})
        Constants.REMOTE_REPOSITORIES = parsed
    if "offline" in cfg:
        Constants.OFFLINE = bool(cfg["offline"])
    if cfg.get("provider_version"):
        Constants.DEFAULT_PROVIDER_VERSION = str(cfg["provider_version"])
    http = cfg.get("http")
    if isinstance(http, dict):
        timeout = _config_int(http, "timeout")
        if timeout is not None:
            Constants.REQUEST_TIMEOUT = timeout
        retries = _config_int(http, "retries")
        if retries is not None:
            Constants.HTTP_RETRY_MAX = max(1, retries)


def _config_int(section: Dict[str, Any], key: str) -> Optional[int]:
    """Integer value of ``section[key]``; None when absent or not a number."""
    value = section.get(key)
    if value is None:
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        logger.warning("Ignoring config value http.%s=%r: not an integer", key, value)
        return None
