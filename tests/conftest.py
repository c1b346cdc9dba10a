from __future__ import annotations

import sys
from pathlib import Path

import pytest


_ISOLATED_ENV_VARS = (
    "PROTON_GE_INSTALL_DIR",
    "PROTON_GE_LOG_FILE",
    "PROTON_GE_LOCK_FILE",
    "PROTON_GE_TEMP_DIR",
    "PROTON_GE_LOCAL_RELEASE_DIR",
    "PROTON_GE_NOTIFICATIONS",
    "PROTON_GE_INSTALLER_VERSION",
    "SUDO_USER",
    "DISPLAY",
)


def _ensure_project_root_on_path() -> None:
    """Guarantee the repository root is discoverable for absolute imports."""

    root = Path(__file__).resolve().parent.parent
    root_str = str(root)
    if root_str not in sys.path:
        sys.path.insert(0, root_str)

    tests_dir = root / "tests"
    tests_str = str(tests_dir)
    if tests_str not in sys.path:
        sys.path.insert(1, tests_str)


_ensure_project_root_on_path()


@pytest.fixture(autouse=True)
def _isolated_installer_env(monkeypatch: pytest.MonkeyPatch, tmp_path_factory: pytest.TempPathFactory):
    """Keep installer runs away from the real home directory and desktop."""

    for name in _ISOLATED_ENV_VARS:
        monkeypatch.delenv(name, raising=False)

    log_dir = tmp_path_factory.mktemp("installer_logs")
    monkeypatch.setenv("PROTON_GE_LOG_FILE", str(log_dir / "installer.log"))
    yield
