"""Parsers for the aMule web interface pages.

Each parser takes the raw markup of one page and returns typed records.
Structural problems (missing table, unexpected layout) are logged and turn
into an empty result; nothing is raised to the caller.
"""

from __future__ import annotations

import html as html_lib
import logging
import re
from typing import Any, Dict, List, Optional

from .machine import (
    DownloadColumn,
    RowLayout,
    RowMachine,
    SearchColumn,
    ServerColumn,
    UploadColumn,
    build_transitions,
)
from .models import (
    DownloadRecord,
    SearchRecord,
    ServerRecord,
    StatsRecord,
    UploadRecord,
)
from .numeric import progress_percent
from .profiles import DEFAULT_PROFILE, VersionProfile
from .tables import (
    CELL_PATH,
    CELL_WITH_INPUT_PATH,
    inner_text,
    parse_document,
    row_cells,
    select,
    table_cells,
    text_cells,
)

LOGGER = logging.getLogger(__name__)

_NAME_ATTRIBUTE = re.compile(r"""name\s*=\s*["']([^"']*)["']""")

ED2K_MARKER = "Ed2k"
KAD_MARKER = "Kad"
ED2K_PREFIX = "Ed2k :"
KAD_PREFIX = "Kad :"

IP_MARKER = "ip="
PORT_MARKER = "port="


def _name_attribute(cell: str) -> Optional[str]:
    match = _NAME_ATTRIBUTE.search(cell)
    if match is None:
        LOGGER.warning("No name attribute in identifier cell %r", cell)
        return None
    return match.group(1)


# ----------------------------------------------------------------------
# Downloads


def _download_identifier(cell: str) -> Dict[str, Optional[str]]:
    return {"file_id": _name_attribute(cell)}


DOWNLOAD_LAYOUT = RowLayout(
    name="downloads",
    columns=DownloadColumn,
    fields={
        DownloadColumn.NAME: "name",
        DownloadColumn.SIZE: "size",
        DownloadColumn.COMPLETED: "completed",
        DownloadColumn.SPEED: "speed",
        DownloadColumn.PROGRESS_BAR: None,
        DownloadColumn.SOURCES: "sources",
        DownloadColumn.STATUS: "status",
        DownloadColumn.PRIORITY: "priority",
    },
    # a paused download has no speed, the progress bar may render empty
    transitions=build_transitions(
        DownloadColumn,
        blank_advances=(DownloadColumn.COMPLETED, DownloadColumn.SPEED),
    ),
    record_type=DownloadRecord,
    is_identifier=lambda cell: "<input" in cell,
    extract_identifier=_download_identifier,
    identify_state=DownloadColumn.START,
)


def parse_downloads(
    html: Optional[str],
    profile: VersionProfile = DEFAULT_PROFILE,
    decimal_separator: Optional[str] = None,
) -> List[DownloadRecord]:
    """Parse the download list of ``amuleweb-main-dload.php``."""
    cells = table_cells(html, profile.download, cell_path=CELL_WITH_INPUT_PATH)

    def build(pending: Dict[str, Any]) -> DownloadRecord:
        completed = pending["completed"].replace("&nbsp;", " ").replace("\xa0", " ")
        return DownloadRecord(
            **{**pending, "completed": completed},
            progress=progress_percent(completed, decimal_separator),
        )

    records = RowMachine(DOWNLOAD_LAYOUT).run(cells, build)
    LOGGER.info("Retrieved %d downloads", len(records))
    return records


# ----------------------------------------------------------------------
# Uploads


def upload_layout(tolerate_blank_columns: bool = True) -> RowLayout:
    """Layout of the upload table.

    Historically the two columns after ``received`` are unused and render
    blank, so blank cells there advance the row while text resets it. With
    ``tolerate_blank_columns=False`` those columns take any text and a blank
    cell drops the row like everywhere else.
    """
    unused = (UploadColumn.RECEIVED, UploadColumn.UNUSED_1)
    if tolerate_blank_columns:
        transitions = build_transitions(UploadColumn, blank_advances=unused, text_resets=unused)
    else:
        transitions = build_transitions(UploadColumn)
    return RowLayout(
        name="uploads",
        columns=UploadColumn,
        fields={
            UploadColumn.NAME: "name",
            UploadColumn.USER: "user",
            UploadColumn.SENT: "sent",
            UploadColumn.RECEIVED: "received",
            UploadColumn.UNUSED_1: None,
            UploadColumn.UNUSED_2: None,
            UploadColumn.SPEED: "speed",
        },
        transitions=transitions,
        record_type=UploadRecord,
    )


UPLOAD_LAYOUT = upload_layout()


def parse_uploads(
    html: Optional[str],
    profile: VersionProfile = DEFAULT_PROFILE,
    tolerate_blank_columns: bool = True,
) -> List[UploadRecord]:
    """Parse the upload queue embedded in the download page."""
    layout = UPLOAD_LAYOUT if tolerate_blank_columns else upload_layout(False)
    cells = table_cells(html, profile.upload, cell_path=CELL_WITH_INPUT_PATH)
    records = RowMachine(layout).run(cells)
    LOGGER.info("Retrieved %d uploads", len(records))
    return records


# ----------------------------------------------------------------------
# Servers


def _marker_value(markup: str, marker: str) -> Optional[str]:
    # "ip=" must not match inside another parameter name
    index = markup.find(marker)
    while index > 0 and markup[index - 1] not in "?&":
        index = markup.find(marker, index + 1)
    if index < 0:
        return None
    start = index + len(marker)
    end = start
    while end < len(markup) and markup[end] not in "&\"'> ":
        end += 1
    return markup[start:end]


def _server_identifier(cell: str) -> Dict[str, Optional[str]]:
    markup = html_lib.unescape(cell)
    server_id = _marker_value(markup, IP_MARKER)
    port = _marker_value(markup, PORT_MARKER)
    if server_id is None or port is None:
        LOGGER.warning("Connection link without ip/port parameters: %r", cell)
        return {}
    return {"server_id": server_id, "port": port}


SERVER_LAYOUT = RowLayout(
    name="servers",
    columns=ServerColumn,
    fields={
        ServerColumn.NAME: "name",
        ServerColumn.DESCRIPTION: "description",
        ServerColumn.ADDRESS: "address",
        ServerColumn.USERS: "users",
        ServerColumn.FILES: "files",
    },
    transitions=build_transitions(ServerColumn),
    record_type=ServerRecord,
    is_identifier=lambda cell: "<a href" in cell,
    extract_identifier=_server_identifier,
)


def parse_servers(html: Optional[str], profile: VersionProfile = DEFAULT_PROFILE) -> List[ServerRecord]:
    """Parse ``amuleweb-main-servers.php``.

    Server rows can be split across several tables, so every table from the
    configured index onward is read.
    """
    cells = table_cells(html, profile.server, cell_path=CELL_PATH, span=True)
    records = RowMachine(SERVER_LAYOUT).run(cells)
    LOGGER.info("Retrieved %d servers", len(records))
    return records


# ----------------------------------------------------------------------
# Search


def _is_search_checkbox(cell: str) -> bool:
    # the header checkbox lives in a nested table
    return 'input type="checkbox"' in cell and "table" not in cell


def _search_identifier(cell: str) -> Dict[str, Optional[str]]:
    return {"search_id": _name_attribute(cell)}


SEARCH_LAYOUT = RowLayout(
    name="search",
    columns=SearchColumn,
    fields={
        SearchColumn.NAME: "name",
        SearchColumn.SIZE: "size",
        SearchColumn.SOURCES: "sources",
    },
    transitions=build_transitions(SearchColumn, text_ignored=(SearchColumn.START,)),
    record_type=SearchRecord,
    is_identifier=_is_search_checkbox,
    extract_identifier=_search_identifier,
    identify_state=SearchColumn.ID_SEEN,
)


def parse_search(html: Optional[str], profile: VersionProfile = DEFAULT_PROFILE) -> List[SearchRecord]:
    """Parse the result list of ``amuleweb-main-search.php``."""
    cells = row_cells(html, profile.search_row_selector)
    records = RowMachine(SEARCH_LAYOUT).run(cells)
    LOGGER.info("Retrieved %d search results", len(records))
    return records


# ----------------------------------------------------------------------
# Stats and log


def _status_text(text: str, prefix: str) -> str:
    return text.replace("\r", "").replace("\n", "").replace(prefix, "").strip()


def parse_stats(html: Optional[str], profile: VersionProfile = DEFAULT_PROFILE) -> Optional[StatsRecord]:
    """Connection status of both networks from ``stats.php``; ``None`` for an empty page."""
    root = parse_document(html)
    if root is None:
        return None

    ed2k: Optional[str] = None
    kad: Optional[str] = None
    for cell in text_cells(root, profile.stats_selector):
        # nested tables are visited on their own
        if cell.xpath(".//table"):
            continue
        text = inner_text(cell)
        if not text.strip():
            continue
        if ED2K_MARKER in text:
            ed2k = _status_text(text, ED2K_PREFIX)
            LOGGER.debug("Ed2k status = %s", ed2k)
        if KAD_MARKER in text:
            kad = _status_text(text, KAD_PREFIX)
            LOGGER.debug("Kad status = %s", kad)
        if ed2k is not None and kad is not None:
            break

    if ed2k is None:
        LOGGER.warning("Ed2k status not found in stats page")
    if kad is None:
        LOGGER.warning("Kad status not found in stats page")

    defaults = StatsRecord()
    return StatsRecord(
        ed2k=ed2k if ed2k is not None else defaults.ed2k,
        kad=kad if kad is not None else defaults.kad,
    )


def parse_log(html: Optional[str], profile: VersionProfile = DEFAULT_PROFILE) -> Optional[str]:
    """Text of ``log.php`` (or ``log.php?show=srv``)."""
    root = parse_document(html)
    if root is None:
        return None
    nodes = select(root, profile.log_selector)
    if not nodes:
        LOGGER.warning("No log content found for selector %r", profile.log_selector)
        return None
    return inner_text(nodes[0])


__all__ = [
    "DOWNLOAD_LAYOUT",
    "SEARCH_LAYOUT",
    "SERVER_LAYOUT",
    "UPLOAD_LAYOUT",
    "parse_downloads",
    "parse_log",
    "parse_search",
    "parse_servers",
    "parse_stats",
    "parse_uploads",
    "upload_layout",
]
