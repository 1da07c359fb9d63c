"""CLI configuration overrides for runtime tunables.

Config file values are applied onto Constants first; command line flags are
applied afterwards and take precedence.
"""

from __future__ import annotations

import logging
import os
from typing import List

from constants import Constants, _load_yaml_config, apply_config
from versioning.models import ArtifactRepository

logger = logging.getLogger(__name__)


def load_configuration(args) -> None:
    """Load the YAML config (explicit --config or default locations)."""
    apply_config(_load_yaml_config(getattr(args, "CONFIG", None)))


def apply_cli_overrides(args) -> None:
    """Apply CLI overrides for repository settings."""
    if getattr(args, "LOCAL_REPOSITORY", None):
        Constants.LOCAL_REPOSITORY = os.path.expanduser(args.LOCAL_REPOSITORY)
    if getattr(args, "REPOSITORIES", None):
        Constants.REMOTE_REPOSITORIES = [
            {"id": f"cli{i}", "url": url} for i, url in enumerate(args.REPOSITORIES)
        ]
    if getattr(args, "OFFLINE", None) is not None:
        Constants.OFFLINE = bool(args.OFFLINE)
    if getattr(args, "PROVIDER_VERSION", None):
        Constants.DEFAULT_PROVIDER_VERSION = args.PROVIDER_VERSION


def remote_repositories() -> List[ArtifactRepository]:
    return [ArtifactRepository(id=r["id"], url=r["url"]) for r in Constants.REMOTE_REPOSITORIES]
