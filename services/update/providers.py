"""Release provider implementations."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Protocol

from services.update.constants import (
    API_URL,
    ARCHIVE_SUFFIX,
    CHECKSUM_SUFFIX,
    DOWNLOAD_BASE_URL,
    LOCAL_RELEASE_METADATA,
)
from services.update.models import (
    RateLimitError,
    ReleaseInfo,
    ReleaseNotFoundError,
    ReleaseParseError,
    ResolutionError,
)
from services.update.transfer import TransferError, fetch_to_file


_LOGGER = logging.getLogger(__name__)

_PARSE_ERROR = "Failed to parse version from GitHub response"


class ReleaseProvider(Protocol):
    """Protocol describing release metadata providers."""

    def fetch_latest(self, response_path: Path) -> ReleaseInfo:
        """Return the newest published release.

        ``response_path`` is scratch space for the raw index response.
        Failures raise a :class:`ResolutionError` subclass.
        """


class GitHubReleaseProvider:
    """Fetch the latest release tag from the GitHub Releases API."""

    def __init__(
        self,
        api_url: str = API_URL,
        *,
        download_base_url: str = DOWNLOAD_BASE_URL,
        connect_timeout: float = 15,
        total_timeout: float = 45,
    ) -> None:
        self._api_url = api_url
        self._download_base_url = download_base_url.rstrip("/")
        self._connect_timeout = connect_timeout
        self._total_timeout = total_timeout

    def fetch_latest(self, response_path: Path) -> ReleaseInfo:
        _LOGGER.info("Querying latest release from %s", self._api_url)
        try:
            status = fetch_to_file(
                self._api_url,
                response_path,
                connect_timeout=self._connect_timeout,
                total_timeout=self._total_timeout,
            )
        except TransferError as exc:
            _LOGGER.debug("Release index request failed: %s", exc)
            raise ResolutionError("GitHub API request failed (HTTP 000)") from exc

        if status == 403:
            raise RateLimitError("GitHub API rate limit exceeded")
        if status == 404:
            raise ReleaseNotFoundError("Proton-GE repository/release not found")
        if status != 200:
            raise ResolutionError(f"GitHub API request failed (HTTP {status})")

        try:
            payload = json.loads(response_path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise ReleaseParseError(_PARSE_ERROR) from exc

        return self._build_release_info(payload)

    def _build_release_info(self, payload: Any) -> ReleaseInfo:
        if not isinstance(payload, dict):
            raise ReleaseParseError(_PARSE_ERROR)
        tag = _clean_text(payload.get("tag_name"))
        if tag is None:
            raise ReleaseParseError(_PARSE_ERROR)

        _LOGGER.info("Latest published release is %s", tag)
        return ReleaseInfo(
            tag=tag,
            archive_url=f"{self._download_base_url}/{tag}/{tag}{ARCHIVE_SUFFIX}",
            checksum_url=f"{self._download_base_url}/{tag}/{tag}{CHECKSUM_SUFFIX}",
            name=_clean_text(payload.get("name")),
            published_at=_clean_text(payload.get("published_at")),
        )


class LocalFolderReleaseProvider:
    """Serve release metadata and assets from a local mirror directory.

    The folder holds ``release.json`` with a ``tag_name`` entry, the
    ``<tag>.tar.gz`` archive and optionally ``<tag>.sha512sum``.
    """

    def __init__(self, folder: Path) -> None:
        self._folder = Path(folder)

    def fetch_latest(self, response_path: Path) -> ReleaseInfo:
        metadata_path = self._folder / LOCAL_RELEASE_METADATA
        _LOGGER.info("Reading local release metadata from %s", metadata_path)
        try:
            raw = metadata_path.read_text(encoding="utf-8")
        except FileNotFoundError as exc:
            raise ReleaseNotFoundError(f"Local release metadata missing: {metadata_path}") from exc
        except OSError as exc:
            raise ResolutionError(f"Failed to read local release metadata: {exc}") from exc

        response_path.write_text(raw, encoding="utf-8")
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise ReleaseParseError("Failed to parse local release metadata") from exc

        tag = _clean_text(data.get("tag_name")) if isinstance(data, dict) else None
        if tag is None:
            raise ReleaseParseError("Failed to parse local release metadata")

        archive_path = self._folder / f"{tag}{ARCHIVE_SUFFIX}"
        checksum_path = self._folder / f"{tag}{CHECKSUM_SUFFIX}"
        _LOGGER.info("Local release %s will supply archive %s", tag, archive_path.name)
        return ReleaseInfo(
            tag=tag,
            archive_path=archive_path,
            checksum_path=checksum_path,
            name=_clean_text(data.get("name")),
            published_at=_clean_text(data.get("published_at")),
        )


def _clean_text(raw: object) -> str | None:
    if not isinstance(raw, str):
        return None
    cleaned = raw.strip()
    return cleaned or None
