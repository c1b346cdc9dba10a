from __future__ import annotations

from pathlib import Path
from urllib.error import URLError

import pytest

from services.update import transfer
from services.update.transfer import TransferError, download_with_retries, fetch_to_file
from tests.unit.update_service_test_utils import (
    FakeResponse,
    TruncatedResponse,
    install_fake_urlopen,
    no_sleep,
)

_URL = "https://downloads.example.test/asset.tar.gz"


def test_fetch_to_file_stores_body_and_returns_status(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    install_fake_urlopen(monkeypatch, {_URL: b"payload"})
    destination = tmp_path / "asset"

    status = fetch_to_file(_URL, destination, connect_timeout=1, total_timeout=5)

    assert status == 200
    assert destination.read_bytes() == b"payload"


def test_fetch_to_file_returns_error_status_with_body(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    install_fake_urlopen(monkeypatch, {_URL: 404})
    destination = tmp_path / "asset"

    status = fetch_to_file(_URL, destination, connect_timeout=1, total_timeout=5)

    assert status == 404
    assert destination.read_bytes() == b"error"


def test_fetch_to_file_wraps_transport_errors(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    install_fake_urlopen(monkeypatch, {_URL: URLError("connection refused")})

    with pytest.raises(TransferError, match="connection refused"):
        fetch_to_file(_URL, tmp_path / "asset", connect_timeout=1, total_timeout=5)


def test_fetch_to_file_sends_user_agent_and_socket_timeout(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    seen: dict[str, object] = {}

    def fake_urlopen(request, timeout=None):
        seen["agent"] = request.get_header("User-agent")
        seen["timeout"] = timeout
        return FakeResponse(b"{}")

    monkeypatch.setattr(transfer, "urlopen", fake_urlopen)
    monkeypatch.setattr(transfer, "get_app_version", lambda: "9.9.9")

    fetch_to_file(_URL, tmp_path / "asset", connect_timeout=15, total_timeout=45)

    assert seen == {"agent": "proton-ge-auto-installer/9.9.9", "timeout": 15}


def test_fetch_to_file_enforces_total_deadline(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    install_fake_urlopen(monkeypatch, {_URL: b"x" * (transfer.DOWNLOAD_CHUNK_SIZE * 3)})
    readings = [0.0, 1.0]

    def fake_monotonic() -> float:
        return readings.pop(0) if readings else 60.0

    monkeypatch.setattr(transfer.time, "monotonic", fake_monotonic)

    with pytest.raises(TransferError, match="exceeded its time limit"):
        fetch_to_file(_URL, tmp_path / "asset", connect_timeout=1, total_timeout=5)


def test_download_with_retries_recovers_from_transient_failures(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    requested = install_fake_urlopen(
        monkeypatch, {_URL: [503, URLError("reset"), b"archive"]}
    )
    delays, sleep = no_sleep()
    destination = tmp_path / "asset"

    result = download_with_retries(
        _URL,
        destination,
        connect_timeout=1,
        total_timeout=5,
        retries=3,
        retry_delay=10,
        sleep=sleep,
    )

    assert result == destination
    assert destination.read_bytes() == b"archive"
    assert len(requested) == 3
    assert delays == [10, 10]


def test_download_with_retries_gives_up_after_configured_attempts(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    requested = install_fake_urlopen(monkeypatch, {_URL: 502})
    delays, sleep = no_sleep()

    with pytest.raises(TransferError) as excinfo:
        download_with_retries(
            _URL,
            tmp_path / "asset",
            connect_timeout=1,
            total_timeout=5,
            retries=2,
            retry_delay=10,
            sleep=sleep,
        )

    assert excinfo.value.status == 502
    assert len(requested) == 3
    assert delays == [10, 10]


def test_download_with_retries_does_not_retry_client_errors(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    requested = install_fake_urlopen(monkeypatch, {_URL: 404})
    delays, sleep = no_sleep()

    with pytest.raises(TransferError) as excinfo:
        download_with_retries(
            _URL,
            tmp_path / "asset",
            connect_timeout=1,
            total_timeout=5,
            retries=3,
            retry_delay=10,
            sleep=sleep,
        )

    assert excinfo.value.status == 404
    assert requested == [_URL]
    assert delays == []


def test_fetch_to_file_wraps_connection_dropped_mid_body(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    install_fake_urlopen(monkeypatch, {_URL: TruncatedResponse(b"partial", 100)})

    with pytest.raises(TransferError, match="IncompleteRead"):
        fetch_to_file(_URL, tmp_path / "asset", connect_timeout=1, total_timeout=5)


def test_download_with_retries_retries_truncated_body(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    requested = install_fake_urlopen(
        monkeypatch, {_URL: [TruncatedResponse(b"partial", 100), b"archive"]}
    )
    delays, sleep = no_sleep()
    destination = tmp_path / "asset"

    download_with_retries(
        _URL,
        destination,
        connect_timeout=1,
        total_timeout=5,
        retries=1,
        retry_delay=3,
        sleep=sleep,
    )

    assert destination.read_bytes() == b"archive"
    assert len(requested) == 2
    assert delays == [3]


def test_local_version_lookup_failure_is_not_reported_as_transport_error(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    requested = install_fake_urlopen(monkeypatch, {_URL: b"payload"})

    def broken_version() -> str:
        raise LookupError("version metadata unavailable")

    monkeypatch.setattr(transfer, "get_app_version", broken_version)

    with pytest.raises(LookupError):
        fetch_to_file(_URL, tmp_path / "asset", connect_timeout=1, total_timeout=5)
    assert requested == []
