"""Hashing helpers for archive verification."""

from __future__ import annotations

import hashlib
import logging
from pathlib import Path

from services.update.models import ChecksumMismatchError


_LOGGER = logging.getLogger(__name__)


def calculate_sha512(path: Path) -> str:
    digest = hashlib.sha512()
    with path.open("rb") as source:
        for chunk in iter(lambda: source.read(65536), b""):
            digest.update(chunk)
    return digest.hexdigest()


def parse_hash_text(text: str) -> str:
    """Return the first whitespace-delimited token of the first line."""

    lines = text.splitlines()
    tokens = lines[0].split() if lines else []
    if not tokens:
        raise ChecksumMismatchError("Checksum file did not contain a digest")
    return tokens[0]


def verify_checksum(archive_path: Path, manifest_path: Path) -> str:
    """Compare ``archive_path`` against the digest published in ``manifest_path``.

    The comparison is an exact string match, so an upper-case manifest will not
    match the lower-case digest produced by :mod:`hashlib`.
    """

    try:
        expected = parse_hash_text(manifest_path.read_text(encoding="utf-8", errors="replace"))
    except OSError as exc:
        raise ChecksumMismatchError(f"Failed to read checksum file: {exc}") from exc
    actual = calculate_sha512(archive_path)
    if expected != actual:
        _LOGGER.debug("Expected SHA-512 %s but computed %s", expected, actual)
        raise ChecksumMismatchError(
            "Checksum verification failed - file may be corrupted or tampered"
        )
    _LOGGER.info("Checksum verified for %s", archive_path.name)
    return actual
