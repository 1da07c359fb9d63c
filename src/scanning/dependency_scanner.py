"""Scans dependency archives looking for tests."""
from __future__ import annotations

import logging
import zipfile
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterator, Optional, Sequence, Tuple, Union

from constants import Constants
from errors import ScanError
from common.logging_utils import extra_context, is_debug_enabled, Timer
from .test_filter import TestFilter

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


@dataclass(frozen=True)
class ScanResult:
    """Ordered, duplicate-free fully qualified class names from one scan."""
    classes: Tuple[str, ...] = ()

    def __len__(self) -> int:
        return len(self.classes)

    def __iter__(self) -> Iterator[str]:
        return iter(self.classes)

    def __contains__(self, class_name: object) -> bool:
        return class_name in self.classes


def is_java_class_file(path: str) -> bool:
    return path.endswith(Constants.CLASS_FILE_SUFFIX)


def convert_jar_file_resource_to_java_class_name(path: str) -> str:
    """``a/b/C.class`` -> ``a.b.C``."""
    return path[: -len(Constants.CLASS_FILE_SUFFIX)].replace("/", ".")


class DependencyScanner:
    """Discover test classes inside dependency jars.

    Candidates that are None, missing, not regular files or not ``.jar`` are
    skipped. Any failure to read a jar aborts the whole scan.
    """

    def __init__(self, dependencies_to_scan: Sequence[Optional[PathLike]], test_filter: TestFilter):
        self.dependencies_to_scan = dependencies_to_scan
        self.filter = test_filter

    def scan(self) -> ScanResult:
        classes: Dict[str, None] = {}
        for artifact in self.dependencies_to_scan:
            if artifact is None:
                continue
            path = Path(artifact)
            if not (path.is_file() and path.name.endswith(Constants.JAR_EXTENSION)):
                logger.debug("Skipping non-jar dependency %s", path)
                continue
            try:
                with Timer() as timer:
                    found = scan_artifact(path, self.filter, classes)
            except (OSError, zipfile.BadZipFile, zipfile.LargeZipFile, UnicodeDecodeError) as exc:
                raise ScanError(path, f"Could not scan dependency {path}: {exc}") from exc
            if is_debug_enabled(logger):
                logger.debug(
                    "Scanned %s",
                    path,
                    extra=extra_context(
                        event="scan",
                        component="dependency_scanner",
                        action="scan_artifact",
                        count=found,
                        duration_ms=timer.duration_ms(),
                    ),
                )
        return ScanResult(tuple(classes))


def scan_artifact(artifact: Path, test_filter: TestFilter, classes: Dict[str, None]) -> int:
    """Add the filtered class names found in ``artifact`` to ``classes``.

    Returns:
        Number of accepted class entries in this archive, duplicates included.
    """
    found = 0
    with zipfile.ZipFile(artifact) as jar:
        for entry in jar.infolist():
            path = entry.filename
            if not entry.is_dir() and is_java_class_file(path) and test_filter.should_run(path, None):
                classes[convert_jar_file_resource_to_java_class_name(path)] = None
                found += 1
    return found
