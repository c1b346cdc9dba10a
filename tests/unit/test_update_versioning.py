from __future__ import annotations

import itertools
from pathlib import Path

import pytest

from services.update.constants import NO_VERSION
from services.update.versioning import (
    compare_versions,
    find_installed_versions,
    is_up_to_date,
    is_version_newer,
    version_key,
)


@pytest.mark.parametrize(
    ("older", "newer"),
    [
        ("GE-Proton9-27", "GE-Proton10-1"),
        ("GE-Proton9-9", "GE-Proton9-10"),
        ("GE-Proton8-32", "GE-Proton9-1"),
        ("GE-Proton10-1-rc1", "GE-Proton10-1"),
        ("GE-Proton7-55", "GE-Proton7-55-hotfix"),
    ],
)
def test_version_key_orders_numeric_segments_numerically(older: str, newer: str) -> None:
    assert version_key(older) < version_key(newer)
    assert is_version_newer(older, newer)
    assert not is_version_newer(newer, older)


def test_compare_versions_treats_none_as_oldest() -> None:
    assert compare_versions(NO_VERSION, "GE-Proton1-1") == 1
    assert compare_versions("GE-Proton1-1", NO_VERSION) == -1
    assert compare_versions(NO_VERSION, NO_VERSION) == 0


def test_compare_versions_is_consistent_and_transitive() -> None:
    tags = [
        "GE-Proton10-1",
        "GE-Proton9-27",
        "GE-Proton9-3",
        "GE-Proton10-1-rc2",
        "GE-Proton9-27-LoL",
        "GE-Proton-custom",
        "GE-Proton8",
    ]
    for a, b in itertools.permutations(tags, 2):
        assert compare_versions(a, b) == -compare_versions(b, a)
    for a, b, c in itertools.permutations(tags, 3):
        if is_version_newer(a, b) and is_version_newer(b, c):
            assert is_version_newer(a, c)


def test_is_up_to_date_requires_exact_match() -> None:
    assert is_up_to_date("GE-Proton9-27", "GE-Proton9-27")
    assert not is_up_to_date("GE-Proton9-27", "ge-proton9-27")
    assert not is_up_to_date("GE-Proton9-27", NO_VERSION)


def test_find_installed_versions_sorts_by_version(tmp_path: Path) -> None:
    for name in ("GE-Proton9-27", "GE-Proton10-1", "GE-Proton9-3", "Proton-Experimental"):
        (tmp_path / name).mkdir()
    (tmp_path / "GE-Proton11-1.tar.gz").write_bytes(b"not a directory")

    installed = find_installed_versions(tmp_path)

    assert installed.tags == ("GE-Proton9-3", "GE-Proton9-27", "GE-Proton10-1")
    assert installed.current == "GE-Proton10-1"


def test_find_installed_versions_reports_none_for_missing_directory(tmp_path: Path) -> None:
    installed = find_installed_versions(tmp_path / "missing")

    assert installed.tags == ()
    assert installed.current == NO_VERSION


def test_find_installed_versions_honours_custom_prefix(tmp_path: Path) -> None:
    (tmp_path / "Custom-2").mkdir()
    (tmp_path / "GE-Proton9-1").mkdir()

    installed = find_installed_versions(tmp_path, prefix="Custom-")

    assert installed.tags == ("Custom-2",)
