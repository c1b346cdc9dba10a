"""Environment checks performed before any lock, network or install activity."""

from __future__ import annotations

import logging
import os
import pwd
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Mapping

from app.config import InstallerConfig
from services.update.constants import MIN_FREE_SPACE_KB
from services.update.models import PreflightError


_LOGGER = logging.getLogger(__name__)

__all__ = [
    "PreflightReport",
    "check_free_space",
    "check_required_commands",
    "ensure_install_directory",
    "resolve_home_directory",
    "run_preflight",
]


@dataclass(frozen=True)
class PreflightReport:
    install_dir: Path
    free_space_kb: int
    low_disk_space: bool


def resolve_home_directory(environ: Mapping[str, str] | None = None) -> Path:
    """Return the effective home directory.

    ``HOME`` wins when set.  Otherwise the password database is consulted for
    ``SUDO_USER`` (so ``sudo`` runs install for the invoking user) or, failing
    that, for the current uid.
    """

    env = os.environ if environ is None else environ
    home = env.get("HOME")
    if home:
        return Path(home)

    sudo_user = env.get("SUDO_USER")
    if sudo_user:
        try:
            candidate = pwd.getpwnam(sudo_user).pw_dir
        except KeyError:
            candidate = ""
        if not candidate or not Path(candidate).is_dir():
            raise PreflightError("Cannot determine HOME for SUDO_USER. Please set HOME.")
        return Path(candidate)

    try:
        candidate = pwd.getpwuid(os.getuid()).pw_dir
    except KeyError:
        candidate = ""
    if not candidate or not Path(candidate).is_dir():
        raise PreflightError("Cannot determine HOME directory. Please set HOME.")
    return Path(candidate)


def check_required_commands(commands: Iterable[str]) -> None:
    for command in commands:
        if shutil.which(command) is None:
            raise PreflightError(f"Required command '{command}' not found")
        _LOGGER.debug("Found required command %s", command)


def ensure_install_directory(path: Path) -> Path:
    """Create ``path`` with parents when missing and require write access."""

    if path.exists() and not path.is_dir():
        raise PreflightError(f"Installation path is not a directory: {path}")
    if not path.exists():
        try:
            path.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise PreflightError(f"Failed to create installation directory: {path}") from exc
        _LOGGER.info("Created installation directory %s", path)
    if not os.access(path, os.W_OK | os.X_OK):
        raise PreflightError(f"No write permission for: {path}")
    return path


def check_free_space(path: Path, minimum_kb: int = MIN_FREE_SPACE_KB) -> int:
    """Return free space on ``path``'s filesystem in KiB, warning when low."""

    available_kb = shutil.disk_usage(path).free // 1024
    if available_kb < minimum_kb:
        _LOGGER.warning(
            "Low disk space (%sKB). At least %sKB recommended.", available_kb, minimum_kb
        )
    else:
        _LOGGER.debug("Available disk space: %sKB", available_kb)
    return available_kb


def run_preflight(config: InstallerConfig) -> PreflightReport:
    check_required_commands(config.required_commands)
    install_dir = ensure_install_directory(config.paths.install_dir)
    minimum = config.thresholds.min_free_space_kb
    free_kb = check_free_space(install_dir, minimum)
    return PreflightReport(
        install_dir=install_dir,
        free_space_kb=free_kb,
        low_disk_space=free_kb < minimum,
    )
