"""Shared HTTP helpers used by the remote repository layer.

Both helpers retry transport failures and 5xx answers with a linear
backoff. Failures are reported as status code 0 rather than raised; callers
decide whether a miss is fatal.
"""
from __future__ import annotations

import logging
import os
import tempfile
import time
from typing import Any, Dict, Iterator, Optional, Tuple

import requests

from constants import Constants
from common.logging_utils import extra_context, is_debug_enabled, safe_url, Timer

logger = logging.getLogger(__name__)


def _default_headers(headers: Optional[Dict[str, str]]) -> Dict[str, str]:
    merged = {"User-Agent": Constants.USER_AGENT}
    if headers:
        merged.update(headers)
    return merged


def _attempts() -> Iterator[int]:
    """Yield 1-based attempt numbers, sleeping before every retry."""
    for attempt in range(1, Constants.HTTP_RETRY_MAX + 1):
        if attempt > 1:
            time.sleep(Constants.HTTP_RETRY_BASE_DELAY_SEC * (attempt - 1))
        yield attempt


def _trace(message: str, target: str, **fields: Any) -> None:
    if is_debug_enabled(logger):
        logger.debug(message, extra=extra_context(component="http_client", action="GET", target=target, **fields))


def _describe(exc: requests.RequestException) -> str:
    return "timeout" if isinstance(exc, requests.Timeout) else str(exc)


def robust_get(
    url: str,
    *,
    headers: Optional[Dict[str, str]] = None,
    **kwargs: Any
) -> Tuple[int, Dict[str, str], str]:
    """GET ``url`` with timeout and retries.

    Returns:
        Tuple of (status_code, headers_dict, text); status 0 and a failure
        description when no attempt produced a non-5xx answer.
    """
    target = safe_url(url)
    failure = "no attempt made"
    for attempt in _attempts():
        with Timer() as timer:
            try:
                response = requests.get(
                    url, timeout=Constants.REQUEST_TIMEOUT, headers=_default_headers(headers), **kwargs
                )
            except requests.RequestException as exc:
                failure = _describe(exc)
                _trace("HTTP request failed", target, event="http_exception", attempt=attempt, outcome=failure)
                continue
        if response.status_code >= 500:
            failure = f"HTTP {response.status_code}"
            _trace("HTTP server error", target, event="http_response", attempt=attempt, outcome="retry",
                   status_code=response.status_code)
            continue
        _trace("HTTP response", target, event="http_response", attempt=attempt,
               status_code=response.status_code, duration_ms=timer.duration_ms())
        return response.status_code, dict(response.headers), response.text

    logger.debug("Giving up on %s: %s", target, failure)
    return 0, {}, f"Request failed after {Constants.HTTP_RETRY_MAX} attempts: {failure}"


def _write_atomically(response: requests.Response, dest: str) -> None:
    """Stream the body to a temporary sibling of ``dest`` and rename it into place."""
    parent = os.path.dirname(dest)
    os.makedirs(parent, exist_ok=True)
    fd, tmp_path = tempfile.mkstemp(dir=parent, suffix=".part")
    try:
        with os.fdopen(fd, "wb") as fh:
            for chunk in response.iter_content(chunk_size=65536):
                fh.write(chunk)
        os.replace(tmp_path, dest)
    finally:
        if os.path.exists(tmp_path):
            os.unlink(tmp_path)


def download_file(url: str, dest: str, *, headers: Optional[Dict[str, str]] = None) -> int:
    """Stream ``url`` into ``dest``, creating parent directories.

    An interrupted transfer never leaves a truncated file at ``dest``.

    Returns:
        HTTP status code of the last attempt, 0 on transport failure.

    Raises:
        OSError: ``dest`` or its directory cannot be written.
    """
    target = safe_url(url)
    status = 0
    for attempt in _attempts():
        with Timer() as timer:
            try:
                with requests.get(
                    url, timeout=Constants.REQUEST_TIMEOUT, headers=_default_headers(headers), stream=True
                ) as response:
                    status = response.status_code
                    if status == 200:
                        _write_atomically(response, dest)
            except requests.RequestException as exc:
                status = 0
                _trace("Download failed", target, event="http_exception", attempt=attempt, outcome=_describe(exc))
                continue
        if status >= 500:
            continue
        _trace("Download finished", target, event="http_download", attempt=attempt, status_code=status,
               duration_ms=timer.duration_ms())
        return status
    return status
