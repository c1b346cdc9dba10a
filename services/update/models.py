"""Data models and errors used by the update service."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from services.update.constants import NO_VERSION


@dataclass(frozen=True)
class ReleaseInfo:
    """Metadata describing a published GE-Proton release."""

    tag: str
    archive_url: str | None = None
    checksum_url: str | None = None
    archive_path: Path | None = None
    checksum_path: Path | None = None
    name: str | None = None
    published_at: str | None = None


@dataclass(frozen=True)
class InstalledVersions:
    """Version-tagged directories found in the installation directory."""

    install_dir: Path
    tags: tuple[str, ...] = field(default_factory=tuple)

    @property
    def current(self) -> str:
        if not self.tags:
            return NO_VERSION
        # ``tags`` is kept sorted by version order, newest last.
        return self.tags[-1]


class UpdateOutcome(str, Enum):
    """How a single installer run finished."""

    INSTALLED = "installed"
    UP_TO_DATE = "up_to_date"
    CHECK_ONLY = "check_only"


@dataclass(frozen=True)
class UpdateResult:
    outcome: UpdateOutcome
    latest: str
    previous: str


class UpdateError(RuntimeError):
    """Raised when an update cannot be resolved, downloaded or installed."""


class PreflightError(UpdateError):
    """The environment is not fit for an installation attempt."""


class InstanceLockedError(UpdateError):
    """Another installer instance currently holds the lock."""


class ResolutionError(UpdateError):
    """The latest release could not be determined."""


class RateLimitError(ResolutionError):
    """The release index refused the request because of rate limiting."""


class ReleaseNotFoundError(ResolutionError):
    """The repository or its latest release does not exist."""


class ReleaseParseError(ResolutionError):
    """The release index answered with an unexpected payload."""


class DownloadError(UpdateError):
    """A release asset could not be downloaded."""


class ChecksumMismatchError(UpdateError):
    """The downloaded archive does not match its published digest."""


class ArchiveCorruptedError(UpdateError):
    """The downloaded archive cannot be read."""


class ExtractionError(UpdateError):
    """Extracting the archive into the installation directory failed."""


class InstallationVerificationError(UpdateError):
    """The expected release directory is missing after extraction."""
