"""Pick the provider module matching a project's test framework."""
from __future__ import annotations

import logging
from typing import Mapping

from versioning.models import Artifact, versionless_key
from .provider_classpath import is_within_version_spec

logger = logging.getLogger(__name__)

JUNIT_PLATFORM_KEYS = (
    versionless_key("org.junit.platform", "junit-platform-engine"),
    versionless_key("org.junit.jupiter", "junit-jupiter-engine"),
    versionless_key("org.junit.jupiter", "junit-jupiter-api"),
)
TESTNG_KEY = versionless_key("org.testng", "testng")
JUNIT_KEY = versionless_key("junit", "junit")
JUNIT47_SPEC = "[4.7,)"
JUNIT4_SPEC = "[4.0,)"


def detect_provider(project_artifacts: Mapping[str, Artifact], parallel: bool = False) -> str:
    """Return the provider artifact id for the given test dependencies.

    Args:
        project_artifacts: Project test artifacts keyed by versionless id.
        parallel: Whether parallel JUnit execution is requested; only the
            junit47 provider supports it.
    """
    if any(key in project_artifacts for key in JUNIT_PLATFORM_KEYS):
        provider = "surefire-junit-platform"
    elif TESTNG_KEY in project_artifacts:
        provider = "surefire-testng"
    else:
        junit = project_artifacts.get(JUNIT_KEY)
        if parallel and is_within_version_spec(junit, JUNIT47_SPEC):
            provider = "surefire-junit47"
        elif is_within_version_spec(junit, JUNIT4_SPEC):
            provider = "surefire-junit4"
        else:
            provider = "surefire-junit3"
    logger.info("Using provider %s", provider)
    return provider
