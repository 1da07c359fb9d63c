"""surefire-deps - test provider classpath assembly and dependency test discovery

    Returns:
        int: Exit code
"""
import json
import logging
import os
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from constants import Constants, ExitCodes
from common.logging_utils import configure_logging, extra_context, is_debug_enabled
from args import parse_args
from cli_config import apply_cli_overrides, load_configuration, remote_repositories
from errors import BugError, ResolutionError, ScanError, UsageError
from versioning.models import Artifact
from versioning.parser import parse_coordinates
from resolution.client import ArtifactResolutionClient
from resolution.maven_repository import MavenRepositorySystem
from resolution.provider_classpath import ProviderClasspathAssembler, artifact_map_by_versionless_id
from resolution.provider_detection import detect_provider
from scanning.coordinate_filter import filter_artifacts
from scanning.dependency_scanner import DependencyScanner
from scanning.test_filter import TestListResolver

logger = logging.getLogger(__name__)


def _setup_logging(args: Any) -> None:
    """Configure logging based on CLI arguments."""
    configure_logging(getattr(args, "LOG_LEVEL", None))
    log_file = getattr(args, "LOG_FILE", None)
    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s"))
        logging.getLogger().addHandler(file_handler)
        logger.info("Logging to file: %s", log_file)


def build_client() -> ArtifactResolutionClient:
    """Create a resolution client from the effective configuration."""
    repositories = None if Constants.OFFLINE else remote_repositories()
    return ArtifactResolutionClient(
        MavenRepositorySystem(),
        Path(Constants.LOCAL_REPOSITORY),
        plugin_remote_repositories=repositories,
        project_remote_repositories=repositories,
    )


def artifact_to_dict(artifact: Artifact) -> Dict[str, Optional[str]]:
    return {
        "groupId": artifact.group_id,
        "artifactId": artifact.artifact_id,
        "version": artifact.version,
        "type": artifact.type,
        "classifier": artifact.classifier,
        "scope": artifact.scope,
        "file": str(artifact.file) if artifact.file is not None else None,
    }


def run_classpath(args) -> Any:
    """Resolve and order a provider classpath."""
    provider = args.PROVIDER
    if not provider:
        test_artifacts = [parse_coordinates(token, scope="test") for token in args.TEST_DEPENDENCIES]
        provider = detect_provider(artifact_map_by_versionless_id(test_artifacts), parallel=args.PARALLEL)

    assembler = ProviderClasspathAssembler(build_client())
    version = Constants.DEFAULT_PROVIDER_VERSION
    if args.AS_MAP:
        classpath = assembler.get_provider_classpath_as_map(provider, version)
        if args.OUTPUT_FORMAT == "json":
            return {key: artifact_to_dict(a) for key, a in classpath.items()}
        return [f"{key} {a.file}" for key, a in classpath.items()]

    artifacts = assembler.get_provider_classpath(provider, version)
    if args.OUTPUT_FORMAT == "json":
        return [artifact_to_dict(a) for a in artifacts]
    return [str(a.file) if a.file is not None else a.id for a in artifacts]


def run_scan(args) -> Any:
    """Discover test classes inside jars and resolved dependencies."""
    candidates: List[Any] = list(args.JARS)
    if args.ARTIFACTS:
        client = build_client()
        resolved: Dict[Artifact, None] = {}
        roots = [parse_coordinates(token, scope="test") for token in args.ARTIFACTS]
        for root in roots:
            resolved.update(dict.fromkeys(client.resolve_project_artifact(root).artifacts))
        if args.DEPENDENCIES_TO_SCAN:
            selected = filter_artifacts(list(resolved), args.DEPENDENCIES_TO_SCAN)
        else:
            requested = set(roots)
            selected = [a for a in resolved if a in requested]
        candidates.extend(a.file for a in selected)

    if is_debug_enabled(logger):
        logger.debug(
            "Scan candidates",
            extra=extra_context(event="decision", component="cli", action="run_scan", count=len(candidates)),
        )
    result = DependencyScanner(candidates, TestListResolver(args.INCLUDES, args.EXCLUDES)).scan()
    logger.info("Found %d test classes.", len(result))
    return list(result.classes)


def write_output(payload: Any, args) -> None:
    """Render ``payload`` as JSON or text, to --output or stdout."""
    if args.OUTPUT_FORMAT == "json":
        rendered = json.dumps(payload, ensure_ascii=False, indent=4)
    else:
        rendered = "\n".join(payload)
    path = getattr(args, "OUTPUT", None)
    if not path:
        print(rendered)
        return
    try:
        with open(path, "w", encoding="utf-8") as file:
            file.write(rendered + "\n")
        logging.info("Results written to: %s", os.path.abspath(path))
    except OSError as e:
        logging.error("Output file couldn't be written to disk: %s", e)
        sys.exit(ExitCodes.FILE_ERROR.value)


def main(argv=None):
    """Main function of the program."""
    args = parse_args(argv)
    _setup_logging(args)
    load_configuration(args)
    apply_cli_overrides(args)

    if is_debug_enabled(logger):
        logger.debug(
            "CLI start",
            extra=extra_context(event="function_entry", component="cli", action="main", command=args.COMMAND)
        )

    try:
        if args.COMMAND == "classpath":
            payload = run_classpath(args)
        else:
            payload = run_scan(args)
    except UsageError as e:
        logging.error("%s", e)
        sys.exit(ExitCodes.FILE_ERROR.value)
    except ResolutionError as e:
        logging.error("%s", e)
        sys.exit(ExitCodes.CONNECTION_ERROR.value)
    except ScanError as e:
        logging.error("%s", e)
        sys.exit(ExitCodes.SCAN_ERROR.value)
    except BugError as e:
        logging.critical("%s", e, exc_info=True)
        sys.exit(ExitCodes.INTERNAL_ERROR.value)

    write_output(payload, args)
    sys.exit(ExitCodes.SUCCESS.value)


if __name__ == "__main__":
    main()
