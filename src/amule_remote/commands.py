"""Parâmetros das requisições enviadas à interface web do aMule."""

from __future__ import annotations

import html as html_lib
import logging
from typing import Dict, Iterable, Optional, Tuple
from urllib.parse import urlencode

from .ed2k import LinkParseResult, parse_link
from .models import SearchType

LOGGER = logging.getLogger(__name__)

DOWNLOAD_PAGE = "amuleweb-main-dload.php"
FOOTER_PAGE = "footer.php"
SERVERS_PAGE = "amuleweb-main-servers.php"
STATS_PAGE = "stats.php"
SEARCH_PAGE = "amuleweb-main-search.php"
LOG_PAGE = "log.php"
SERVER_INFO_PAGE = "log.php?show=srv"
PREFERENCES_PAGE = "amuleweb-main-prefs.php"

DOWNLOAD_COMMANDS = frozenset({"pause", "resume", "delete", "cancel", "priority"})
SERVER_COMMANDS = frozenset({"connect", "remove"})
MAX_SEARCH_LENGTH = 100
ALL_CATEGORIES = "all"
SIZE_UNIT = "MByte"

Params = Dict[str, str]


def _checked_ids(ids: Iterable[str], what: str) -> Tuple[str, ...]:
    checked = tuple(str(item).strip() for item in ids)
    if not checked:
        raise ValueError(f"No {what} ids given")
    for item in checked:
        if not item.isdigit():
            raise ValueError(f"Invalid {what} id {item!r}")
    return checked


def download_command_params(file_ids: Iterable[str], command: str) -> Params:
    """Form for ``amuleweb-main-dload.php``; each selected id is sent as ``<id>=on``."""
    if command not in DOWNLOAD_COMMANDS:
        raise ValueError(f"Unknown download command {command!r}")
    params: Params = {file_id: "on" for file_id in _checked_ids(file_ids, "file")}
    params.update({"category": ALL_CATEGORIES, "command": command, "status": ALL_CATEGORIES})
    LOGGER.debug("Download command %s for %d files", command, len(params) - 3)
    return params


def add_link_params(uri: Optional[str]) -> Tuple[LinkParseResult, Optional[Params]]:
    """Validate ``uri`` (one link per line) and build the "Download link" form.

    Returns the result of the first link, or of the first invalid one.
    """
    lines = [line.strip() for line in (uri or "").splitlines() if line.strip()]
    if not lines:
        return parse_link(uri), None

    first: Optional[LinkParseResult] = None
    for line in lines:
        result = parse_link(line)
        if not result.ok:
            LOGGER.warning("Link rejected: %s", result.message)
            return result, None
        first = first or result
    return first, {
        "Submit": "Download link",
        "ed2klink": "+".join(lines),
        "selectcat": ALL_CATEGORIES,
    }


def search_params(
    text: str,
    search_type: SearchType = SearchType.GLOBAL,
    target_category: Optional[str] = None,
) -> Params:
    text = (text or "").strip()
    if not text:
        raise ValueError("Search text is empty")
    if len(text) > MAX_SEARCH_LENGTH:
        raise ValueError(f"Search text longer than {MAX_SEARCH_LENGTH} characters")
    return {
        "command": "search",
        "searchval": html_lib.escape(text),
        "Search": "Search",
        "avail": "",
        "minsize": "",
        "minsizeu": SIZE_UNIT,
        "searchtype": SearchType(search_type).value,
        "maxsize": "",
        "maxsizeu": SIZE_UNIT,
        "targetcat": target_category or ALL_CATEGORIES,
    }


def search_download_params(search_ids: Iterable[str]) -> Params:
    """Download the search results ``search_ids`` into the default category."""
    params: Params = {
        "command": "download",
        "searchval": "",
        "avail": "",
        "minsize": "",
        "minsizeu": SIZE_UNIT,
        "searchtype": SearchType.GLOBAL.value,
        "maxsize": "",
        "maxsizeu": SIZE_UNIT,
    }
    params.update({search_id: "on" for search_id in _checked_ids(search_ids, "search")})
    params["Download"] = "Download"
    params["targetcat"] = ALL_CATEGORIES
    return params


def server_command_query(command: str, server_id: str, port: str) -> str:
    """``"connect"`` -> ``"amuleweb-main-servers.php?cmd=connect&ip=...&port=..."``."""
    if command not in SERVER_COMMANDS:
        raise ValueError(f"Unknown server command {command!r}")
    if not server_id or not str(port).isdigit():
        raise ValueError(f"Invalid server endpoint {server_id!r}:{port!r}")
    query = urlencode({"cmd": command, "ip": server_id, "port": str(port)})
    return f"{SERVERS_PAGE}?{query}"
