"""Installer implementations that place a verified archive on disk."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Protocol

from services.update.archive import extract_archive, validate_archive
from services.update.models import InstallationVerificationError, ReleaseInfo

_LOGGER = logging.getLogger(__name__)


class Installer(Protocol):
    """Protocol describing how a downloaded archive becomes an installed release."""

    def install(self, archive_path: Path, release: ReleaseInfo, install_dir: Path) -> Path:
        """Install ``archive_path`` and return the release directory."""


class TarballInstaller:
    """Validate, extract and verify a ``.tar.gz`` release archive."""

    def install(self, archive_path: Path, release: ReleaseInfo, install_dir: Path) -> Path:
        validate_archive(archive_path)
        extract_archive(archive_path, install_dir)
        return verify_installation(install_dir, release.tag)


def verify_installation(install_dir: Path, tag: str) -> Path:
    """Require ``install_dir / tag`` to exist after extraction."""

    release_dir = install_dir / tag
    if not release_dir.is_dir():
        raise InstallationVerificationError(
            f"Expected directory {tag} missing after extraction"
        )
    _LOGGER.debug("Verified installation directory %s", release_dir)
    return release_dir
