"""Modelos de dados extraídos das páginas do aMule."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Dict, Optional

UNKNOWN_STATUS = "Unknown"


class SearchType(str, Enum):
    GLOBAL = "Global"
    LOCAL = "Local"
    KAD = "Kad"


@dataclass(frozen=True)
class DownloadRecord:
    name: str
    size: str
    completed: str
    speed: str
    sources: str
    status: str
    priority: str
    progress: float = 0.0
    file_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class UploadRecord:
    name: str
    user: str
    sent: str
    received: str
    speed: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class ServerRecord:
    name: str
    description: str
    address: str
    users: str
    files: str
    server_id: Optional[str] = None
    port: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class SearchRecord:
    name: str
    size: str
    sources: str
    search_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class StatsRecord:
    """Connection status of the ed2k network and of the Kad overlay."""

    ed2k: str = UNKNOWN_STATUS
    kad: str = UNKNOWN_STATUS

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
