from __future__ import annotations

from dataclasses import replace
from typing import Iterable, Sequence

import pytest

from amule_remote.profiles import DEFAULT_PROFILE, TableSpec, VersionProfile


def row(cells: Sequence[str], tag: str = "td") -> str:
    return "<tr>" + "".join(f"<{tag}>{cell}</{tag}>" for cell in cells) + "</tr>"


def table(rows: Iterable[str]) -> str:
    return "<table>" + "".join(rows) + "</table>"


def page(*tables: str) -> str:
    return "<html><body>" + "".join(tables) + "</body></html>"


def padding(count: int) -> list:
    return [table([row([f"menu {index}"])]) for index in range(count)]


def checkbox(name: str) -> str:
    return f'<input type="checkbox" name="{name}">'


def download_row(
    file_id: str,
    name: str,
    completed: str = "350.2 MB (50.1%)",
    speed: str = "10.5 kb/s",
) -> str:
    return row(
        [
            checkbox(file_id),
            name,
            "700 MB",
            completed,
            speed,
            '<img src="progress.png">',
            "4/10",
            "Downloading",
            "Normal",
        ]
    )


def download_page(rows: Iterable[str]) -> str:
    """Download page laid out like amuleweb 2.3.x: the list is the 7th table."""
    header = row(["", "File name", "Size", "Completed", "Speed", "Progress", "Sources", "Status", "Priority"], "th")
    return page(*padding(6), table([header, *rows]))


@pytest.fixture
def flat_profile() -> VersionProfile:
    """Profile where every table of interest is the first one with a single header row."""
    spec = TableSpec(table_index=0, row_skip=1)
    return replace(DEFAULT_PROFILE, version="test", download=spec, upload=spec, server=spec)
