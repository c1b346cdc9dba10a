"""Installer version lookup used by ``--version`` and the HTTP ``User-Agent``."""

from __future__ import annotations

import os
import subprocess
from functools import lru_cache
from importlib import metadata
from pathlib import Path
from typing import Callable

DISTRIBUTION_NAME = "proton-ge-auto-installer"
VERSION_ENV = "PROTON_GE_INSTALLER_VERSION"
_UNKNOWN_VERSION = "0.0.0+unknown"
_GIT_TIMEOUT_SECONDS = 5
_VERSION_FILE = Path(__file__).with_name("VERSION")


def _clean(raw: str | None) -> str | None:
    if not raw:
        return None
    version = raw.strip().removeprefix("v")
    return version or None


def _from_environment() -> str | None:
    return _clean(os.environ.get(VERSION_ENV))


def _from_packaged_file() -> str | None:
    try:
        text = _VERSION_FILE.read_text(encoding="utf-8")
    except OSError:
        return None
    return _clean(text)


def _from_distribution() -> str | None:
    try:
        return _clean(metadata.version(DISTRIBUTION_NAME))
    except metadata.PackageNotFoundError:
        return None


def _from_checkout() -> str | None:
    try:
        output = subprocess.check_output(
            ["git", "describe", "--tags", "--always"],
            cwd=Path(__file__).resolve().parent.parent,
            stderr=subprocess.DEVNULL,
            text=True,
            timeout=_GIT_TIMEOUT_SECONDS,
        )
    except (OSError, subprocess.SubprocessError):
        return None
    return _clean(output)


_RESOLVERS: tuple[Callable[[], str | None], ...] = (
    _from_environment,
    _from_packaged_file,
    _from_distribution,
    _from_checkout,
)


@lru_cache(maxsize=1)
def get_app_version() -> str:
    """Return the installer version.

    ``PROTON_GE_INSTALLER_VERSION`` wins, followed by the ``VERSION`` file
    shipped in the package, the installed distribution metadata and finally
    ``git describe`` for source checkouts.
    """

    for resolver in _RESOLVERS:
        version = resolver()
        if version:
            return version
    return _UNKNOWN_VERSION


__all__ = ["DISTRIBUTION_NAME", "VERSION_ENV", "get_app_version"]
