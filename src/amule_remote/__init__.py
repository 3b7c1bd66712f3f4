"""Leitura da interface web do aMule (amuleweb) e de links ed2k."""

from .ed2k import Ed2kLink, LinkError, LinkParseResult, is_valid_link, parse_link
from .models import (
    DownloadRecord,
    SearchRecord,
    SearchType,
    ServerRecord,
    StatsRecord,
    UploadRecord,
)
from .monitor import MonitorSnapshot, StatusMonitor
from .parsers import (
    parse_downloads,
    parse_log,
    parse_search,
    parse_servers,
    parse_stats,
    parse_uploads,
)
from .preferences import PreferenceMapping, PreferenceSet, parse_preferences
from .profiles import ProfileRegistry, TableSpec, VersionProfile
from .version import detect_version

__version__ = "0.1.0"

__all__ = [
    "DownloadRecord",
    "Ed2kLink",
    "LinkError",
    "LinkParseResult",
    "MonitorSnapshot",
    "PreferenceMapping",
    "PreferenceSet",
    "ProfileRegistry",
    "SearchRecord",
    "SearchType",
    "ServerRecord",
    "StatsRecord",
    "StatusMonitor",
    "TableSpec",
    "UploadRecord",
    "VersionProfile",
    "detect_version",
    "is_valid_link",
    "parse_downloads",
    "parse_link",
    "parse_log",
    "parse_preferences",
    "parse_search",
    "parse_servers",
    "parse_stats",
    "parse_uploads",
]
