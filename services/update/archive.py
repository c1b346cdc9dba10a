"""Archive handling helpers for the update service."""

from __future__ import annotations

import logging
import tarfile
from pathlib import Path

from services.update.models import ArchiveCorruptedError, ExtractionError


_LOGGER = logging.getLogger(__name__)

__all__ = ["extract_archive", "validate_archive"]


def validate_archive(archive_path: Path) -> int:
    """Read the full table of contents of ``archive_path``.

    Returns the number of members.  Listing walks every header of a gzip
    stream, so truncated or garbled downloads fail here instead of halfway
    through extraction.
    """

    _LOGGER.info("Validating archive %s", archive_path)
    try:
        with tarfile.open(archive_path, "r:*") as archive:
            members = archive.getmembers()
    except (OSError, EOFError, tarfile.TarError) as exc:
        raise ArchiveCorruptedError("Downloaded archive is corrupted") from exc
    if not members:
        raise ArchiveCorruptedError("Downloaded archive is corrupted")
    _LOGGER.debug("Archive %s lists %s entries", archive_path.name, len(members))
    return len(members)


def extract_archive(archive_path: Path, target_dir: Path) -> None:
    """Extract every member of ``archive_path`` into ``target_dir``.

    Members are filtered with :func:`tarfile.data_filter`, which rejects
    absolute paths, parent traversal and links escaping ``target_dir``.
    Extraction is not transactional; a failure can leave partial files behind.
    """

    _LOGGER.info("Extracting %s into %s", archive_path.name, target_dir)
    try:
        with tarfile.open(archive_path, "r:*") as archive:
            archive.extractall(path=target_dir, filter="data")
    except (OSError, EOFError, tarfile.TarError) as exc:
        raise ExtractionError(f"Extraction failed: {exc}") from exc
    _LOGGER.debug("Extraction of %s finished", archive_path.name)
