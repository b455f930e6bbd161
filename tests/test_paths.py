"""Tests for version allocation and storage key layout."""

import pytest

from templatehub.domain.templates.paths import (
    build_storage_path,
    file_extension,
    max_version_in_keys,
    next_version_number,
    sanitize_file_name,
    template_prefix,
)


def test_build_storage_path_layout():
    assert build_storage_path("contract", 1, "a.zip") == "contract/V1/Raw/a.zip"
    assert build_storage_path("contract", 12, "b.zip") == "contract/V12/Raw/b.zip"


def test_build_storage_path_is_deterministic():
    first = build_storage_path("contract", 3, "a.zip")
    assert build_storage_path("contract", 3, "a.zip") == first


def test_next_version_number():
    assert next_version_number(0) == 1
    assert next_version_number(7) == 8


def test_max_version_in_keys():
    keys = [
        "contract/V1/Raw/a.zip",
        "contract/V3/Raw/c.zip",
        "contract/V2/Raw/b.zip",
        "contract/Vx/Raw/bad.zip",
        "contract/notes.txt",
        "contract/V10junk/Raw/z.zip",
        "contracts/V99/Raw/other.zip",
        "other/V50/Raw/o.zip",
    ]
    assert max_version_in_keys("contract", keys) == 3


def test_max_version_in_keys_defaults_to_zero():
    assert max_version_in_keys("contract", []) == 0
    assert max_version_in_keys("contract", ["contract/misc/file.zip"]) == 0


def test_template_prefix_has_trailing_slash():
    assert template_prefix("contract") == "contract/"


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("a.zip", "a.zip"),
        ("../../etc/a.zip", "a.zip"),
        ("C:\\Users\\me\\a.zip", "a.zip"),
        ("  spaced.zip ", "spaced.zip"),
        ("", None),
        (None, None),
        ("dir/", None),
    ],
)
def test_sanitize_file_name(raw, expected):
    assert sanitize_file_name(raw) == expected


@pytest.mark.parametrize(
    "name, expected",
    [("a.zip", ".zip"), ("A.ZIP", ".zip"), ("archive.tar.gz", ".gz"), ("noext", ""), (".hidden", "")],
)
def test_file_extension(name, expected):
    assert file_extension(name) == expected
