"""Installer configuration loaded from JSON resources and the environment."""

from __future__ import annotations

import json
import os
import tempfile
from dataclasses import dataclass
from importlib import resources
from pathlib import Path
from typing import Any, Mapping

_CONFIG_RESOURCE = "app.json"

INSTALL_DIR_ENV = "PROTON_GE_INSTALL_DIR"
LOG_FILE_ENV = "PROTON_GE_LOG_FILE"
LOCK_FILE_ENV = "PROTON_GE_LOCK_FILE"
TEMP_DIR_ENV = "PROTON_GE_TEMP_DIR"
LOCAL_RELEASE_ENV = "PROTON_GE_LOCAL_RELEASE_DIR"
NOTIFICATIONS_ENV = "PROTON_GE_NOTIFICATIONS"

_DEFAULT_INSTALL_DIR = "snap/steam/common/.steam/steam/compatibilitytools.d"
_DEFAULT_LOG_FILE = ".proton_ge_auto_installer.log"
_DEFAULT_LOCK_FILENAME = "proton_ge_auto_installer.lock"
GITHUB_REPO = "GloriousEggroll/proton-ge-custom"
DEFAULT_API_URL = f"https://api.github.com/repos/{GITHUB_REPO}/releases/latest"
DEFAULT_DOWNLOAD_BASE_URL = f"https://github.com/{GITHUB_REPO}/releases/download"
DEFAULT_TAG_PREFIX = "GE-Proton"
_FALSE_STRINGS = {"0", "false", "no", "off"}
_TRUE_STRINGS = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class PathSettings:
    """Filesystem locations used by a single installer run."""

    home: Path
    install_dir: Path
    log_file: Path
    lock_file: Path
    temp_dir: Path


@dataclass(frozen=True)
class NetworkSettings:
    """Endpoints, timeouts and retry policy for remote requests."""

    api_url: str
    download_base_url: str
    api_connect_timeout: int
    api_total_timeout: int
    checksum_timeout: int
    archive_timeout: int
    retries: int
    retry_delay: int


@dataclass(frozen=True)
class Thresholds:
    lock_stale_seconds: int
    min_free_space_kb: int
    max_log_bytes: int


@dataclass(frozen=True)
class InstallerConfig:
    """Structured configuration values for the auto-installer."""

    paths: PathSettings
    network: NetworkSettings
    thresholds: Thresholds
    tag_prefix: str
    required_commands: tuple[str, ...]
    notifications: bool
    local_release_dir: Path | None = None


def load_installer_config(
    home: Path,
    path: str | Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> InstallerConfig:
    """Build the configuration for ``home``.

    Defaults come from the bundled ``app.json``; ``path`` overlays a user
    supplied JSON file and ``environ`` (``os.environ`` when omitted) provides
    the final overrides.
    """

    env = os.environ if environ is None else environ
    data = _merge_sections(_load_default_config_data(), _read_user_config(path))

    paths_section = _section(data, "paths")
    network_section = _section(data, "network")
    thresholds_section = _section(data, "thresholds")

    paths = _parse_paths_section(paths_section, home, env)
    network = _parse_network_section(network_section)
    thresholds = _parse_thresholds_section(thresholds_section)

    tag_prefix = data.get("tag_prefix")
    if not isinstance(tag_prefix, str) or not tag_prefix.strip():
        tag_prefix = DEFAULT_TAG_PREFIX

    notifications = _coerce_bool(data.get("notifications"), default=True)
    notifications = _coerce_bool(env.get(NOTIFICATIONS_ENV), default=notifications)

    local_dir = env.get(LOCAL_RELEASE_ENV)
    local_release_dir = Path(local_dir).expanduser() if local_dir else None

    return InstallerConfig(
        paths=paths,
        network=network,
        thresholds=thresholds,
        tag_prefix=tag_prefix.strip(),
        required_commands=_coerce_commands(data.get("required_commands")),
        notifications=notifications,
        local_release_dir=local_release_dir,
    )


def _read_user_config(path: str | Path | None) -> Mapping[str, Any]:
    if path is None:
        return {}
    try:
        raw = Path(path).expanduser().read_text(encoding="utf-8")
    except OSError:
        return {}
    return _parse_json(raw)


def _load_default_config_data() -> Mapping[str, Any]:
    try:
        resource = resources.files(__package__).joinpath(_CONFIG_RESOURCE)
        raw = resource.read_text(encoding="utf-8")
    except (FileNotFoundError, OSError):
        return {}
    return _parse_json(raw)


def _parse_json(raw: str) -> Mapping[str, Any]:
    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError:
        return {}
    if isinstance(parsed, Mapping):
        return parsed
    return {}


def _merge_sections(base: Mapping[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    merged: dict[str, Any] = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, Mapping) and isinstance(value, Mapping):
            merged[key] = {**current, **value}
        else:
            merged[key] = value
    return merged


def _section(data: Mapping[str, Any], name: str) -> Mapping[str, Any]:
    section = data.get(name)
    if isinstance(section, Mapping):
        return section
    return {}


def _parse_paths_section(
    section: Mapping[str, Any], home: Path, env: Mapping[str, str]
) -> PathSettings:
    install_dir = _resolve_path(
        env.get(INSTALL_DIR_ENV) or section.get("install_dir"), home, _DEFAULT_INSTALL_DIR
    )
    log_file = _resolve_path(
        env.get(LOG_FILE_ENV) or section.get("log_file"), home, _DEFAULT_LOG_FILE
    )

    temp_raw = env.get(TEMP_DIR_ENV) or section.get("temp_dir")
    if isinstance(temp_raw, str) and temp_raw.strip():
        temp_dir = _resolve_path(temp_raw, home, temp_raw)
    else:
        temp_dir = Path(tempfile.gettempdir())

    lock_raw = env.get(LOCK_FILE_ENV) or section.get("lock_file")
    if isinstance(lock_raw, str) and lock_raw.strip():
        lock_file = _resolve_path(lock_raw, home, lock_raw)
    else:
        lock_file = temp_dir / _DEFAULT_LOCK_FILENAME

    return PathSettings(
        home=home,
        install_dir=install_dir,
        log_file=log_file,
        lock_file=lock_file,
        temp_dir=temp_dir,
    )


def _parse_network_section(section: Mapping[str, Any]) -> NetworkSettings:
    return NetworkSettings(
        api_url=_coerce_url(section.get("api_url"), default=DEFAULT_API_URL),
        download_base_url=_coerce_url(
            section.get("download_base_url"), default=DEFAULT_DOWNLOAD_BASE_URL
        ),
        api_connect_timeout=_coerce_positive_int(section.get("api_connect_timeout"), default=15),
        api_total_timeout=_coerce_positive_int(section.get("api_total_timeout"), default=45),
        checksum_timeout=_coerce_positive_int(section.get("checksum_timeout"), default=60),
        archive_timeout=_coerce_positive_int(section.get("archive_timeout"), default=300),
        retries=_coerce_non_negative_int(section.get("retries"), default=3),
        retry_delay=_coerce_non_negative_int(section.get("retry_delay"), default=10),
    )


def _parse_thresholds_section(section: Mapping[str, Any]) -> Thresholds:
    return Thresholds(
        lock_stale_seconds=_coerce_positive_int(
            section.get("lock_stale_seconds"), default=3600
        ),
        min_free_space_kb=_coerce_non_negative_int(
            section.get("min_free_space_kb"), default=50 * 1024 * 1024
        ),
        max_log_bytes=_coerce_positive_int(
            section.get("max_log_bytes"), default=1_000_000
        ),
    )


def _resolve_path(value: Any, home: Path, default: str) -> Path:
    raw = value if isinstance(value, str) and value.strip() else default
    candidate = Path(raw.strip())
    if str(candidate).startswith("~"):
        # ``expanduser`` would consult $HOME, which may be the elevated user's.
        candidate = home / Path(*candidate.parts[1:])
    if not candidate.is_absolute():
        candidate = home / candidate
    return candidate


def _coerce_url(value: Any, *, default: str) -> str:
    if isinstance(value, str) and value.strip().startswith(("http://", "https://")):
        return value.strip()
    return default


def _coerce_commands(value: Any) -> tuple[str, ...]:
    if not isinstance(value, (list, tuple)):
        return ()
    return tuple(str(item).strip() for item in value if isinstance(item, str) and item.strip())


def _coerce_bool(value: Any, *, default: bool) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in _TRUE_STRINGS:
            return True
        if lowered in _FALSE_STRINGS:
            return False
    return default


def _coerce_positive_int(value: Any, *, default: int) -> int:
    candidate = _coerce_int(value)
    if candidate is None or candidate <= 0:
        return default
    return candidate


def _coerce_non_negative_int(value: Any, *, default: int) -> int:
    candidate = _coerce_int(value)
    if candidate is None or candidate < 0:
        return default
    return candidate


def _coerce_int(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return int(value)
    if isinstance(value, str):
        try:
            return int(float(value))
        except ValueError:
            return None
    return None


__all__ = [
    "DEFAULT_API_URL",
    "DEFAULT_DOWNLOAD_BASE_URL",
    "DEFAULT_TAG_PREFIX",
    "GITHUB_REPO",
    "INSTALL_DIR_ENV",
    "LOCAL_RELEASE_ENV",
    "LOCK_FILE_ENV",
    "LOG_FILE_ENV",
    "NOTIFICATIONS_ENV",
    "TEMP_DIR_ENV",
    "InstallerConfig",
    "NetworkSettings",
    "PathSettings",
    "Thresholds",
    "load_installer_config",
]
