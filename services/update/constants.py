"""Constants shared across the update service modules."""

from __future__ import annotations

from app.config import DEFAULT_API_URL as API_URL
from app.config import DEFAULT_DOWNLOAD_BASE_URL as DOWNLOAD_BASE_URL
from app.config import DEFAULT_TAG_PREFIX as TAG_PREFIX
from app.config import GITHUB_REPO

NO_VERSION = "none"

ARCHIVE_SUFFIX = ".tar.gz"
CHECKSUM_SUFFIX = ".sha512sum"
RESPONSE_SUFFIX = ".json"
TEMP_FILE_PREFIX = "proton_ge_"
LOCAL_RELEASE_METADATA = "release.json"

LOCK_STALE_SECONDS = 3600
MIN_FREE_SPACE_KB = 50 * 1024 * 1024  # ~50 GB

RETRYABLE_STATUS_CODES = frozenset({408, 429, 500, 502, 503, 504})
DOWNLOAD_CHUNK_SIZE = 65536
