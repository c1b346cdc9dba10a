"""Service responsible for discovering and installing GE-Proton releases."""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Callable

from app.config import NetworkSettings
from services.update.constants import ARCHIVE_SUFFIX, CHECKSUM_SUFFIX, RESPONSE_SUFFIX, TAG_PREFIX
from services.update.hashing import verify_checksum
from services.update.installers import Installer
from services.update.models import (
    InstalledVersions,
    ReleaseInfo,
    UpdateOutcome,
    UpdateResult,
)
from services.update.providers import ReleaseProvider
from services.update.release_assets import obtain_archive, obtain_checksum_manifest
from services.update.versioning import find_installed_versions, is_up_to_date
from services.update.workspace import TemporaryArtifacts
from shared.notifications import Notifier, NullNotifier


_LOGGER = logging.getLogger(__name__)

_CHECKSUM_WARNING = "WARNING: Failed to fetch checksum, proceeding without verification"


class UpdateService:
    """Coordinate release discovery, download, verification and extraction."""

    def __init__(
        self,
        provider: ReleaseProvider,
        installer: Installer,
        *,
        install_dir: Path,
        network: NetworkSettings,
        workspace: TemporaryArtifacts,
        notifier: Notifier | None = None,
        tag_prefix: str = TAG_PREFIX,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._provider = provider
        self._installer = installer
        self._install_dir = install_dir
        self._network = network
        self._workspace = workspace
        self._notifier = notifier or NullNotifier()
        self._tag_prefix = tag_prefix
        self._sleep = sleep

    def get_latest_release(self) -> ReleaseInfo:
        response_path = self._workspace.allocate(RESPONSE_SUFFIX)
        return self._provider.fetch_latest(response_path)

    def get_installed_versions(self) -> InstalledVersions:
        return find_installed_versions(self._install_dir, self._tag_prefix)

    def check_for_updates(self, *, check_only: bool = False) -> UpdateResult:
        """Install the latest release unless it is already present.

        With ``check_only`` the comparison is reported without downloading.
        """

        release = self.get_latest_release()
        current = self.get_installed_versions().current
        _LOGGER.debug("Latest release %s, installed %s", release.tag, current)

        if is_up_to_date(release.tag, current):
            self._report(f"Already latest ({current})")
            return UpdateResult(UpdateOutcome.UP_TO_DATE, latest=release.tag, previous=current)

        if check_only:
            _LOGGER.info("Update available: %s -> %s", current, release.tag)
            return UpdateResult(UpdateOutcome.CHECK_ONLY, latest=release.tag, previous=current)

        self.download_and_install(release)
        self._report(f"Installed {release.tag}")
        return UpdateResult(UpdateOutcome.INSTALLED, latest=release.tag, previous=current)

    def download_and_install(self, release: ReleaseInfo) -> Path:
        """Download, verify and extract ``release`` into the installation directory."""

        _LOGGER.info("Preparing installation of %s", release.tag)
        checksum_target = self._workspace.allocate(CHECKSUM_SUFFIX)
        archive_target = self._workspace.allocate(ARCHIVE_SUFFIX)

        manifest = obtain_checksum_manifest(
            release, checksum_target, self._network, sleep=self._sleep
        )
        if manifest is None:
            _LOGGER.warning(_CHECKSUM_WARNING)
            self._notifier.notify(_CHECKSUM_WARNING)

        archive = obtain_archive(release, archive_target, self._network, sleep=self._sleep)

        if manifest is not None:
            verify_checksum(archive, manifest)

        release_dir = self._installer.install(archive, release, self._install_dir)
        _LOGGER.debug("Release %s installed at %s", release.tag, release_dir)
        return release_dir

    def _report(self, message: str) -> None:
        _LOGGER.info(message)
        self._notifier.notify(message)
