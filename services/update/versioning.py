"""Helpers for ordering release tags and reading installed versions."""

from __future__ import annotations

import logging
import re
from pathlib import Path

from packaging.version import InvalidVersion, Version

from services.update.constants import NO_VERSION, TAG_PREFIX
from services.update.models import InstalledVersions


_LOGGER = logging.getLogger(__name__)

__all__ = [
    "compare_versions",
    "find_installed_versions",
    "is_up_to_date",
    "is_version_newer",
    "version_key",
]

_NUMERIC_PREFIX = re.compile(r"^\d+(?:[.\-_]\d+)*")
_TOKEN = re.compile(r"\d+|[^\W\d_]+")

VersionKey = tuple[Version, int, tuple[tuple[int, object], ...]]


def version_key(tag: str, prefix: str = TAG_PREFIX) -> VersionKey:
    """Return a sort key that orders ``tag`` by its embedded version.

    ``GE-Proton9-27`` becomes ``Version("9.27")`` so numeric segments compare
    numerically (``10-1`` sorts after ``9-27``) and ``-rc`` style suffixes sort
    before the final release.  Tags that are not valid PEP 440 versions after
    normalisation keep their leading numbers and break ties on the remaining
    text, which keeps the ordering total.
    """

    remainder = tag[len(prefix):] if prefix and tag.startswith(prefix) else tag
    remainder = remainder.strip().lstrip("-_vV")
    normalised = re.sub(r"[-_]", ".", remainder)

    try:
        return (Version(normalised), 0, ())
    except InvalidVersion:
        pass

    match = _NUMERIC_PREFIX.match(remainder)
    numeric = re.sub(r"[-_]", ".", match.group(0)) if match else "0"
    rest = remainder[match.end():] if match else remainder
    return (Version(numeric), 1, _tokenize(rest))


def compare_versions(current_version: str, candidate: str, prefix: str = TAG_PREFIX) -> int:
    """Compare ``candidate`` against ``current_version``.

    Returns ``1`` when ``candidate`` is newer, ``-1`` when it is older and ``0``
    when the versions are equivalent.
    """

    if candidate == current_version:
        return 0
    if current_version == NO_VERSION:
        return 1
    if candidate == NO_VERSION:
        return -1

    candidate_key = version_key(candidate, prefix)
    current_key = version_key(current_version, prefix)
    if candidate_key == current_key:
        return 0
    return 1 if candidate_key > current_key else -1


def is_version_newer(current_version: str, candidate: str, prefix: str = TAG_PREFIX) -> bool:
    """Return ``True`` if ``candidate`` is newer than ``current_version``."""

    return compare_versions(current_version, candidate, prefix) > 0


def is_up_to_date(latest: str, current: str) -> bool:
    """Installed and latest tags must match exactly, case included."""

    return latest == current


def find_installed_versions(install_dir: Path, prefix: str = TAG_PREFIX) -> InstalledVersions:
    """Collect version-tagged subdirectories of ``install_dir`` in version order."""

    try:
        entries = list(install_dir.iterdir())
    except FileNotFoundError:
        _LOGGER.debug("Installation directory %s does not exist yet", install_dir)
        return InstalledVersions(install_dir)

    tags = [
        entry.name
        for entry in entries
        if entry.name.startswith(prefix) and entry.is_dir()
    ]
    tags.sort(key=lambda tag: (version_key(tag, prefix), tag))
    _LOGGER.debug("Found %s installed release(s) in %s: %s", len(tags), install_dir, tags)
    return InstalledVersions(install_dir, tuple(tags))


def _tokenize(text: str) -> tuple[tuple[int, object], ...]:
    tokens: list[tuple[int, object]] = []
    for raw in _TOKEN.findall(text):
        if raw.isdigit():
            tokens.append((0, int(raw)))
        else:
            tokens.append((1, raw.lower()))
    return tuple(tokens)
