import json
import tempfile
from pathlib import Path

from app.config import (
    DEFAULT_API_URL,
    DEFAULT_TAG_PREFIX,
    InstallerConfig,
    NetworkSettings,
    Thresholds,
    load_installer_config,
)
from services.update import constants as update_constants


def test_default_config_targets_snap_steam_install(tmp_path) -> None:
    config = load_installer_config(tmp_path, environ={})

    assert isinstance(config, InstallerConfig)
    assert config.paths.home == tmp_path
    assert config.paths.install_dir == tmp_path / "snap/steam/common/.steam/steam/compatibilitytools.d"
    assert config.paths.log_file == tmp_path / ".proton_ge_auto_installer.log"
    assert config.paths.temp_dir == Path(tempfile.gettempdir())
    assert config.paths.lock_file == Path(tempfile.gettempdir()) / "proton_ge_auto_installer.lock"
    assert config.tag_prefix == "GE-Proton"
    assert config.required_commands == ()
    assert config.notifications is True
    assert config.local_release_dir is None


def test_default_network_and_thresholds() -> None:
    config = load_installer_config(Path("/home/gamer"), environ={})

    assert config.network.api_url.endswith("/GloriousEggroll/proton-ge-custom/releases/latest")
    assert (config.network.api_connect_timeout, config.network.api_total_timeout) == (15, 45)
    assert config.network.checksum_timeout == 60
    assert config.network.archive_timeout == 300
    assert (config.network.retries, config.network.retry_delay) == (3, 10)
    assert config.thresholds == Thresholds(
        lock_stale_seconds=3600,
        min_free_space_kb=50 * 1024 * 1024,
        max_log_bytes=1_000_000,
    )


def test_update_service_defaults_match_loaded_configuration() -> None:
    config = load_installer_config(Path("/home/gamer"), environ={})

    assert config.network.api_url == update_constants.API_URL == DEFAULT_API_URL
    assert config.network.download_base_url == update_constants.DOWNLOAD_BASE_URL
    assert config.tag_prefix == update_constants.TAG_PREFIX == DEFAULT_TAG_PREFIX
    assert not hasattr(NetworkSettings, "archive_url")


def test_environment_overrides_paths_and_notifications(tmp_path) -> None:
    environ = {
        "PROTON_GE_INSTALL_DIR": str(tmp_path / "tools"),
        "PROTON_GE_LOG_FILE": "~/logs/installer.log",
        "PROTON_GE_TEMP_DIR": str(tmp_path / "scratch"),
        "PROTON_GE_LOCAL_RELEASE_DIR": str(tmp_path / "mirror"),
        "PROTON_GE_NOTIFICATIONS": "off",
    }

    config = load_installer_config(tmp_path / "home", environ=environ)

    assert config.paths.install_dir == tmp_path / "tools"
    assert config.paths.log_file == tmp_path / "home" / "logs" / "installer.log"
    assert config.paths.temp_dir == tmp_path / "scratch"
    assert config.paths.lock_file == tmp_path / "scratch" / "proton_ge_auto_installer.lock"
    assert config.local_release_dir == tmp_path / "mirror"
    assert config.notifications is False


def test_load_installer_config_from_custom_path(tmp_path) -> None:
    custom_config = {
        "paths": {"install_dir": ".steam/root/compatibilitytools.d", "lock_file": "/run/lock/pge.lock"},
        "network": {"retries": 5, "retry_delay": 2},
        "required_commands": ["tar", "sha512sum"],
        "notifications": False,
    }
    config_path = tmp_path / "installer.json"
    config_path.write_text(json.dumps(custom_config), encoding="utf-8")

    config = load_installer_config(tmp_path, config_path, environ={})

    assert config.paths.install_dir == tmp_path / ".steam/root/compatibilitytools.d"
    assert config.paths.lock_file == Path("/run/lock/pge.lock")
    assert config.network.retries == 5
    assert config.network.retry_delay == 2
    assert config.network.archive_timeout == 300
    assert config.required_commands == ("tar", "sha512sum")
    assert config.notifications is False


def test_invalid_config_values_fall_back_to_defaults(tmp_path) -> None:
    invalid_config = {
        "network": {
            "api_url": "ftp://example.test",
            "api_connect_timeout": "zero",
            "retries": -1,
        },
        "thresholds": {"lock_stale_seconds": 0},
        "tag_prefix": "",
        "required_commands": "tar",
    }
    config_path = tmp_path / "installer.json"
    config_path.write_text(json.dumps(invalid_config), encoding="utf-8")

    config = load_installer_config(tmp_path, config_path, environ={})

    assert isinstance(config.network, NetworkSettings)
    assert config.network.api_url.startswith("https://api.github.com/")
    assert config.network.api_connect_timeout == 15
    assert config.network.retries == 3
    assert config.thresholds.lock_stale_seconds == 3600
    assert config.tag_prefix == "GE-Proton"
    assert config.required_commands == ()


def test_unreadable_custom_config_is_ignored(tmp_path) -> None:
    broken = tmp_path / "installer.json"
    broken.write_text("{not json", encoding="utf-8")

    assert load_installer_config(tmp_path, broken, environ={}) == load_installer_config(
        tmp_path, tmp_path / "missing.json", environ={}
    )
