"""Exception types raised by the classpath and scanning core.

Each component either succeeds fully or raises one of these; nothing is
caught and degraded inside the core. The command line maps them to exit
codes.
"""

from __future__ import annotations

from typing import Iterable, Optional


class SurefireDepsError(Exception):
    """Base exception for all surefire-deps errors."""


class ResolutionError(SurefireDepsError):
    """Raised when the resolver cannot satisfy a resolution request."""

    def __init__(self, artifact, missing: Iterable = (), causes: Iterable = (), message: Optional[str] = None):
        self.artifact = artifact
        self.missing = tuple(missing)
        self.causes = tuple(causes)
        if message is None:
            message = f"Unable to resolve {artifact}"
            if self.missing:
                message += "; missing: " + ", ".join(str(m) for m in self.missing)
            if self.causes:
                message += "; " + "; ".join(str(c) for c in self.causes)
        super().__init__(message)


class BugError(SurefireDepsError, RuntimeError):
    """Raised on an internal logic defect, e.g. a malformed built-in version spec."""


class UsageError(SurefireDepsError, ValueError):
    """Raised when caller-supplied input, such as a coordinate pattern, is malformed."""


class ScanError(SurefireDepsError):
    """Raised when an archive cannot be opened or read during a scan."""

    def __init__(self, path, message: Optional[str] = None):
        self.path = path
        super().__init__(message or f"Could not scan dependency {path}")
