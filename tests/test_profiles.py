from __future__ import annotations

import json
from pathlib import Path

from amule_remote.profiles import DEFAULT_PROFILE, ProfileRegistry, TableSpec, normalize_version


def test_packaged_profiles_load() -> None:
    registry = ProfileRegistry.load()
    assert {"2.3.2", "2.3.3"} <= registry.known_versions
    profile = registry.resolve("2.3.3")
    assert profile.version == "2.3.3"
    assert profile.download == TableSpec("//table", 6, 1)
    assert profile.upload == TableSpec("//table", 8, 2)
    assert profile.server == TableSpec("//table", 1, 3)


def test_resolution_chain() -> None:
    registry = ProfileRegistry.load()
    assert registry.resolve("2.3.1").version == "2.3.2"
    assert registry.resolve("2.3").version == "2.3.2"
    assert registry.resolve("unknown") is registry.default
    assert registry.resolve(None) is registry.default
    assert registry.resolve("9.9.9") is registry.default


def test_normalize_version() -> None:
    assert normalize_version("2.3.0") == "2.3.2"
    assert normalize_version(" 2.3.3 ") == "2.3.3"
    assert normalize_version("") == "unknown"
    assert normalize_version(None) == "unknown"


def test_partial_entry_takes_missing_keys_from_default(tmp_path: Path) -> None:
    path = tmp_path / "xpaths.json"
    path.write_text(
        json.dumps({"versions": {"2.3.3": {"download": {"table_index": 4}}}}),
        encoding="utf-8",
    )

    profile = ProfileRegistry.load(path).resolve("2.3.3")

    assert profile.download == TableSpec("//table", 4, 1)
    assert profile.upload == DEFAULT_PROFILE.upload
    assert profile.log_selector == "//pre"


def test_malformed_entries_are_skipped(tmp_path: Path) -> None:
    path = tmp_path / "xpaths.json"
    path.write_text(
        json.dumps({"versions": {"2.3.2": "oops", "2.3.3": {"download": {"table_index": "x"}}}}),
        encoding="utf-8",
    )

    registry = ProfileRegistry.load(path)

    assert registry.known_versions == frozenset()
    assert registry.resolve("2.3.3") == DEFAULT_PROFILE


def test_missing_or_broken_file_falls_back(tmp_path: Path) -> None:
    assert ProfileRegistry.load(tmp_path / "missing.json").default == DEFAULT_PROFILE

    broken = tmp_path / "broken.json"
    broken.write_text("{not json", encoding="utf-8")
    assert ProfileRegistry.load(broken).known_versions == frozenset()


def test_table_entry_that_is_not_an_object_is_skipped(tmp_path: Path) -> None:
    path = tmp_path / "xpaths.json"
    path.write_text(
        json.dumps(
            {
                "versions": {
                    "2.3.2": {"download": "oops"},
                    "2.3.3": {"upload": [8, 2], "server": None},
                }
            }
        ),
        encoding="utf-8",
    )

    registry = ProfileRegistry.load(path)

    assert registry.known_versions == frozenset()
    assert registry.resolve("2.3.2") == DEFAULT_PROFILE


def test_null_table_entry_uses_default_spec() -> None:
    assert TableSpec.from_dict(None, DEFAULT_PROFILE.server) == DEFAULT_PROFILE.server


def test_negative_table_position_is_skipped(tmp_path: Path) -> None:
    path = tmp_path / "xpaths.json"
    path.write_text(
        json.dumps(
            {
                "versions": {
                    "2.3.2": {"download": {"table_index": -1}},
                    "2.3.3": {"server": {"row_skip": -2}},
                }
            }
        ),
        encoding="utf-8",
    )

    assert ProfileRegistry.load(path).known_versions == frozenset()


def test_file_that_is_not_utf8_falls_back(tmp_path: Path) -> None:
    path = tmp_path / "xpaths.json"
    path.write_bytes(b'{"versions": {"\xff": {}}}')

    registry = ProfileRegistry.load(path)

    assert registry.known_versions == frozenset()
    assert registry.default == DEFAULT_PROFILE
