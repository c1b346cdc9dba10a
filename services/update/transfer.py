"""HTTP transfers with connect/total timeouts and fixed-delay retries."""

from __future__ import annotations

import http.client
import logging
import time
from pathlib import Path
from typing import BinaryIO, Callable
from urllib.error import HTTPError
from urllib.request import Request, urlopen

from app.version import get_app_version
from services.update.constants import DOWNLOAD_CHUNK_SIZE, RETRYABLE_STATUS_CODES


_LOGGER = logging.getLogger(__name__)

__all__ = ["TransferError", "download_with_retries", "fetch_to_file"]


class TransferError(Exception):
    """A transfer failed before a usable HTTP status was received."""

    def __init__(self, message: str, *, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


def _build_request(url: str) -> Request:
    return Request(
        url,
        headers={
            "User-Agent": f"proton-ge-auto-installer/{get_app_version()}",
            "Accept": "*/*",
        },
    )


def _copy_with_deadline(source: BinaryIO, target: BinaryIO, deadline: float, url: str) -> int:
    written = 0
    for chunk in iter(lambda: source.read(DOWNLOAD_CHUNK_SIZE), b""):
        if time.monotonic() > deadline:
            raise TransferError(f"Transfer of {url} exceeded its time limit")
        target.write(chunk)
        written += len(chunk)
    return written


def fetch_to_file(
    url: str,
    destination: Path,
    *,
    connect_timeout: float,
    total_timeout: float,
) -> int:
    """Fetch ``url`` once and store the body at ``destination``.

    Returns the HTTP status.  Error statuses are returned rather than raised so
    the caller can classify them; the error body is stored as well.  Transport
    failures and exceeded deadlines raise :class:`TransferError`.
    """

    request = _build_request(url)
    deadline = time.monotonic() + total_timeout
    socket_timeout = min(connect_timeout, total_timeout)
    _LOGGER.debug("GET %s (connect timeout %ss, total %ss)", url, connect_timeout, total_timeout)
    try:
        with urlopen(request, timeout=socket_timeout) as response:  # nosec - HTTPS
            status = int(getattr(response, "status", 200))
            with destination.open("wb") as target:
                _copy_with_deadline(response, target, deadline, url)
            return status
    except HTTPError as exc:
        with destination.open("wb") as target:
            try:
                target.write(exc.read())
            except (OSError, http.client.HTTPException):
                pass
        _LOGGER.debug("GET %s returned HTTP %s", url, exc.code)
        return int(exc.code)
    except (OSError, http.client.HTTPException) as exc:
        raise TransferError(f"Request to {url} failed: {exc}") from exc


def download_with_retries(
    url: str,
    destination: Path,
    *,
    connect_timeout: float,
    total_timeout: float,
    retries: int,
    retry_delay: float,
    sleep: Callable[[float], None] = time.sleep,
) -> Path:
    """Download ``url`` to ``destination``, retrying transient failures.

    Transport errors and HTTP 408/429/5xx are retried up to ``retries`` times
    with a fixed ``retry_delay``.  Any other non-200 status fails at once.
    """

    attempts = retries + 1
    last_error: TransferError | None = None
    for attempt in range(1, attempts + 1):
        try:
            status = fetch_to_file(
                url,
                destination,
                connect_timeout=connect_timeout,
                total_timeout=total_timeout,
            )
        except TransferError as exc:
            last_error = exc
            _LOGGER.warning("Attempt %s/%s for %s failed: %s", attempt, attempts, url, exc)
        else:
            if status == 200:
                _LOGGER.debug("Downloaded %s to %s", url, destination)
                return destination
            last_error = TransferError(f"HTTP {status} for {url}", status=status)
            if status not in RETRYABLE_STATUS_CODES:
                raise last_error
            _LOGGER.warning("Attempt %s/%s for %s returned HTTP %s", attempt, attempts, url, status)

        if attempt < attempts:
            sleep(retry_delay)

    raise last_error or TransferError(f"Failed to download {url}")
