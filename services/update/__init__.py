"""Public API for the update service package."""

from __future__ import annotations

from services.update.constants import (
    API_URL,
    DOWNLOAD_BASE_URL,
    GITHUB_REPO,
    LOCK_STALE_SECONDS,
    NO_VERSION,
    TAG_PREFIX,
)
from services.update.installers import Installer, TarballInstaller, verify_installation
from services.update.locking import InstanceLock
from services.update.models import (
    ArchiveCorruptedError,
    ChecksumMismatchError,
    DownloadError,
    ExtractionError,
    InstallationVerificationError,
    InstalledVersions,
    InstanceLockedError,
    PreflightError,
    RateLimitError,
    ReleaseInfo,
    ReleaseNotFoundError,
    ReleaseParseError,
    ResolutionError,
    UpdateError,
    UpdateOutcome,
    UpdateResult,
)
from services.update.providers import GitHubReleaseProvider, LocalFolderReleaseProvider, ReleaseProvider
from services.update.service import UpdateService
from services.update.workspace import TemporaryArtifacts

__all__ = [
    "API_URL",
    "DOWNLOAD_BASE_URL",
    "GITHUB_REPO",
    "LOCK_STALE_SECONDS",
    "NO_VERSION",
    "TAG_PREFIX",
    "ArchiveCorruptedError",
    "ChecksumMismatchError",
    "DownloadError",
    "ExtractionError",
    "GitHubReleaseProvider",
    "InstallationVerificationError",
    "InstalledVersions",
    "Installer",
    "InstanceLock",
    "InstanceLockedError",
    "LocalFolderReleaseProvider",
    "PreflightError",
    "RateLimitError",
    "ReleaseInfo",
    "ReleaseNotFoundError",
    "ReleaseParseError",
    "ReleaseProvider",
    "ResolutionError",
    "TarballInstaller",
    "TemporaryArtifacts",
    "UpdateError",
    "UpdateOutcome",
    "UpdateResult",
    "UpdateService",
    "verify_installation",
]
