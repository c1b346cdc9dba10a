"""Best-effort desktop notifications via ``notify-send``."""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
from typing import Mapping, Protocol

_LOGGER = logging.getLogger(__name__)

APP_NAME = "Proton-GE Auto-Installer"
ICON_NAME = "steam"
_NOTIFY_COMMAND = "notify-send"
_NOTIFY_TIMEOUT_SECONDS = 10


class Notifier(Protocol):
    def notify(self, message: str) -> None:
        """Surface ``message`` to the user; must never raise."""


class NullNotifier:
    """Notifier used when notifications are disabled."""

    def notify(self, message: str) -> None:
        return None


class DesktopNotifier:
    """Send notifications when ``notify-send`` exists and a display is attached."""

    def __init__(
        self,
        *,
        app_name: str = APP_NAME,
        icon: str = ICON_NAME,
        environ: Mapping[str, str] | None = None,
    ) -> None:
        self._app_name = app_name
        self._icon = icon
        self._environ = environ

    @property
    def available(self) -> bool:
        env = os.environ if self._environ is None else self._environ
        if not env.get("DISPLAY"):
            return False
        return shutil.which(_NOTIFY_COMMAND) is not None

    def notify(self, message: str) -> None:
        if not self.available:
            _LOGGER.debug("Desktop notifications unavailable; skipped: %s", message)
            return
        command = [_NOTIFY_COMMAND, "-a", self._app_name, message, f"--icon={self._icon}"]
        try:
            subprocess.run(
                command,
                check=True,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                timeout=_NOTIFY_TIMEOUT_SECONDS,
            )
        except (OSError, subprocess.SubprocessError) as exc:
            _LOGGER.debug("Desktop notification failed: %s", exc)


__all__ = ["APP_NAME", "DesktopNotifier", "Notifier", "NullNotifier"]
