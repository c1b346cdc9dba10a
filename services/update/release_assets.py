"""Utilities for acquiring release archives and checksum manifests."""

from __future__ import annotations

import logging
import shutil
import time
from pathlib import Path
from typing import Callable

from app.config import NetworkSettings
from services.update.models import DownloadError, ReleaseInfo
from services.update.transfer import TransferError, download_with_retries


_LOGGER = logging.getLogger(__name__)

__all__ = ["obtain_archive", "obtain_checksum_manifest"]


def obtain_checksum_manifest(
    release: ReleaseInfo,
    destination: Path,
    network: NetworkSettings,
    *,
    sleep: Callable[[float], None] = time.sleep,
) -> Path | None:
    """Store the checksum manifest for ``release`` at ``destination``.

    Returns ``None`` when the manifest cannot be obtained; the caller then
    proceeds without digest verification.
    """

    if release.checksum_path is not None:
        try:
            shutil.copyfile(release.checksum_path, destination)
        except OSError as exc:
            _LOGGER.warning("Local checksum file unavailable: %s", exc)
            return None
        return destination

    if release.checksum_url is None:
        _LOGGER.warning("Release %s does not publish a checksum", release.tag)
        return None

    _LOGGER.info("Downloading checksum for %s", release.tag)
    try:
        return download_with_retries(
            release.checksum_url,
            destination,
            connect_timeout=network.api_connect_timeout,
            total_timeout=network.checksum_timeout,
            retries=network.retries,
            retry_delay=network.retry_delay,
            sleep=sleep,
        )
    except TransferError as exc:
        _LOGGER.warning("Checksum download for %s failed: %s", release.tag, exc)
        return None


def obtain_archive(
    release: ReleaseInfo,
    destination: Path,
    network: NetworkSettings,
    *,
    sleep: Callable[[float], None] = time.sleep,
) -> Path:
    """Store the release archive at ``destination`` or raise :class:`DownloadError`."""

    if release.archive_path is not None:
        _LOGGER.info("Copying archive for %s from %s", release.tag, release.archive_path)
        try:
            shutil.copyfile(release.archive_path, destination)
        except OSError as exc:
            raise DownloadError("Download failed") from exc
        return destination

    if release.archive_url is None:
        raise DownloadError("Download failed")

    _LOGGER.info("Downloading %s from %s", release.tag, release.archive_url)
    try:
        download_with_retries(
            release.archive_url,
            destination,
            connect_timeout=network.api_connect_timeout,
            total_timeout=network.archive_timeout,
            retries=network.retries,
            retry_delay=network.retry_delay,
            sleep=sleep,
        )
    except TransferError as exc:
        _LOGGER.debug("Archive download for %s failed: %s", release.tag, exc)
        raise DownloadError("Download failed") from exc
    _LOGGER.info("Downloaded %s (%s bytes)", destination.name, destination.stat().st_size)
    return destination
