from __future__ import annotations

import json
from pathlib import Path

import pytest
from conftest import download_page, download_row, page, row, table

from amule_remote.cli import main

LINK = "ed2k://|file|Ubuntu-20.04.iso|2877227008|5E0A6F1D2C3B4A5D6E7F8A9B0C1D2E3F|/"


def test_link_command(capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["--json", "link", LINK]) == 0
    data = json.loads(capsys.readouterr().out)
    assert data["name"] == "Ubuntu-20.04.iso"
    assert data["size"] == 2877227008
    assert data["sources"] == []


def test_invalid_link_exits_with_error(capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["link", "ed2k://|file|a.iso|0|5E0A6F1D2C3B4A5D6E7F8A9B0C1D2E3F|/"]) == 1
    assert "File size must be at least 1 byte" in capsys.readouterr().out


def test_downloads_command(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    saved = tmp_path / "dload.html"
    saved.write_text(download_page([download_row("1", "ubuntu.iso")]), encoding="utf-8")

    assert main(["--json", "--decimal-separator", ".", "downloads", str(saved)]) == 0

    (entry,) = json.loads(capsys.readouterr().out)
    assert entry["name"] == "ubuntu.iso"
    assert entry["progress"] == 50.1


def test_stats_command_plain_output(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    saved = tmp_path / "stats.html"
    saved.write_text(page(table([row(["Ed2k : Connected"]), row(["Kad : Firewalled"])])), encoding="utf-8")

    assert main(["stats", str(saved)]) == 0
    assert "ed2k=Connected  kad=Firewalled" in capsys.readouterr().out


def test_version_command(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    saved = tmp_path / "footer.html"
    saved.write_text("<div>aMule 2.3.1</div>", encoding="utf-8")

    assert main(["--json", "version", str(saved)]) == 0
    assert json.loads(capsys.readouterr().out)["version"] == "2.3.2"


def test_custom_profiles_file(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    profiles = tmp_path / "xpaths.json"
    profiles.write_text(
        json.dumps({"versions": {"2.3.3": {"download": {"table_index": 0, "row_skip": 0}}}}),
        encoding="utf-8",
    )
    saved = tmp_path / "dload.html"
    saved.write_text(page(table([download_row("4", "flat.iso")])), encoding="utf-8")

    code = main(["--json", "--profiles", str(profiles), "--daemon-version", "2.3.3", "downloads", str(saved)])

    assert code == 0
    assert [entry["file_id"] for entry in json.loads(capsys.readouterr().out)] == ["4"]


def test_unreadable_page(tmp_path: Path) -> None:
    assert main(["servers", str(tmp_path / "missing.html")]) == 1


def test_empty_result(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    saved = tmp_path / "empty.html"
    saved.write_text(page(table([row(["nothing"])])), encoding="utf-8")
    assert main(["search", str(saved)]) == 0
    assert "Nenhum registro encontrado." in capsys.readouterr().out
