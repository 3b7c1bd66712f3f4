"""Preferências do aMule: leitura do script ``initvals`` e geração do formulário."""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, fields, replace
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from .profiles import DATA_DIR, DEFAULT_PROFILE, VersionProfile
from .tables import parse_document, select

LOGGER = logging.getLogger(__name__)

MAPPING_PATH = DATA_DIR / "preference_mapping.json"

SCRIPT_START_MARKER = "initvals["
SCRIPT_END_MARKER = "<!--"

_STATEMENT = re.compile(
    r"""\[\s*["'](?P<name>[^"']+)["']\s*\]\s*=\s*(?:"(?P<dq>[^"]*)"|'(?P<sq>[^']*)'|(?P<bare>\S+))"""
)


@dataclass
class PreferenceSet:
    page_refresh_interval: Optional[str] = None
    use_gzip_compression: bool = False
    max_download_rate: Optional[str] = None
    max_upload_rate: Optional[str] = None
    slot_allocation: Optional[str] = None
    max_total_connections: Optional[str] = None
    max_sources_per_file: Optional[str] = None
    autoconnect_at_startup: bool = False
    reconnect_on_lost_connection: bool = False
    tcp_port: Optional[str] = None
    udp_port: Optional[str] = None
    disable_udp: bool = False
    max_line_download_capacity: Optional[str] = None
    max_line_upload_capacity: Optional[str] = None
    check_free_space: bool = False
    new_download_auto_priority: bool = False
    new_shared_auto_priority: bool = False
    ich_enabled: bool = False
    aich_trust_every_hash: bool = False
    upload_full_chunks: bool = False
    alloc_full_disk_space: bool = False
    new_files_paused: bool = False
    extract_metadata: bool = False
    min_free_space_mb: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {item.name: getattr(self, item.name) for item in fields(self)}


class ValueKind(str, Enum):
    BOOLEAN = "bool"
    TEXT = "string"


@dataclass(frozen=True)
class PreferenceField:
    key: str
    field: str
    kind: ValueKind


DEFAULT_FIELDS: Tuple[PreferenceField, ...] = (
    PreferenceField("autorefresh_time", "page_refresh_interval", ValueKind.TEXT),
    PreferenceField("use_gzip", "use_gzip_compression", ValueKind.BOOLEAN),
    PreferenceField("max_down_limit", "max_download_rate", ValueKind.TEXT),
    PreferenceField("max_up_limit", "max_upload_rate", ValueKind.TEXT),
    PreferenceField("slot_alloc", "slot_allocation", ValueKind.TEXT),
    PreferenceField("max_conn_total", "max_total_connections", ValueKind.TEXT),
    PreferenceField("max_file_src", "max_sources_per_file", ValueKind.TEXT),
    PreferenceField("autoconn_en", "autoconnect_at_startup", ValueKind.BOOLEAN),
    PreferenceField("reconn_en", "reconnect_on_lost_connection", ValueKind.BOOLEAN),
    PreferenceField("tcp_port", "tcp_port", ValueKind.TEXT),
    PreferenceField("udp_port", "udp_port", ValueKind.TEXT),
    PreferenceField("udp_dis", "disable_udp", ValueKind.BOOLEAN),
    PreferenceField("max_line_down_cap", "max_line_download_capacity", ValueKind.TEXT),
    PreferenceField("max_line_up_cap", "max_line_upload_capacity", ValueKind.TEXT),
    PreferenceField("check_free_space", "check_free_space", ValueKind.BOOLEAN),
    PreferenceField("new_files_auto_dl_prio", "new_download_auto_priority", ValueKind.BOOLEAN),
    PreferenceField("new_files_auto_ul_prio", "new_shared_auto_priority", ValueKind.BOOLEAN),
    PreferenceField("ich_en", "ich_enabled", ValueKind.BOOLEAN),
    PreferenceField("aich_trust", "aich_trust_every_hash", ValueKind.BOOLEAN),
    PreferenceField("upload_full_chunks", "upload_full_chunks", ValueKind.BOOLEAN),
    PreferenceField("alloc_full", "alloc_full_disk_space", ValueKind.BOOLEAN),
    PreferenceField("new_files_paused", "new_files_paused", ValueKind.BOOLEAN),
    PreferenceField("extract_metadata", "extract_metadata", ValueKind.BOOLEAN),
    PreferenceField("min_free_space", "min_free_space_mb", ValueKind.TEXT),
)

Setter = Callable[[Dict[str, Any], str], None]

_CONVERTERS: Dict[ValueKind, Callable[[str], Any]] = {
    ValueKind.BOOLEAN: lambda raw: raw == "1",
    ValueKind.TEXT: lambda raw: raw,
}


def _setter(name: str, convert: Callable[[str], Any]) -> Setter:
    def apply(updates: Dict[str, Any], raw: str) -> None:
        updates[name] = convert(raw)

    return apply


class PreferenceMapping:
    """Read-only map from script variable to ``PreferenceSet`` field.

    Entries are validated against ``PreferenceSet`` once, when the mapping is
    built; invalid entries are dropped with a warning.
    """

    def __init__(self, entries: Iterable[PreferenceField] = DEFAULT_FIELDS) -> None:
        declared = {item.name: item.type for item in fields(PreferenceSet)}
        self._fields: Dict[str, PreferenceField] = {}
        self._setters: Dict[str, Setter] = {}
        for entry in entries:
            annotation = declared.get(entry.field)
            if annotation is None:
                LOGGER.warning("Preference %s maps to unknown field %s", entry.key, entry.field)
                continue
            is_flag = annotation in (bool, "bool")
            if is_flag != (entry.kind is ValueKind.BOOLEAN):
                LOGGER.warning(
                    "Preference %s declared as %s but %s is %s",
                    entry.key,
                    entry.kind.value,
                    entry.field,
                    annotation,
                )
                continue
            self._fields[entry.key] = entry
            self._setters[entry.key] = _setter(entry.field, _CONVERTERS[entry.kind])

    def __contains__(self, key: object) -> bool:
        return key in self._fields

    def __len__(self) -> int:
        return len(self._fields)

    @property
    def entries(self) -> List[PreferenceField]:
        return list(self._fields.values())

    def setter(self, key: str) -> Optional[Setter]:
        return self._setters.get(key)

    # ------------------------------------------------------------------
    @classmethod
    def load(cls, path: Path | str | None = None) -> "PreferenceMapping":
        source = Path(path) if path is not None else MAPPING_PATH
        try:
            with source.open("r", encoding="utf-8") as handle:
                document = json.load(handle)
        except (ValueError, OSError) as exc:
            LOGGER.warning("Falha ao ler %s: %s", source, exc)
            return cls()

        mappings = document.get("mappings") if isinstance(document, dict) else None
        if not isinstance(mappings, dict) or not mappings:
            LOGGER.warning("No mappings in %s, using compiled-in mapping", source)
            return cls()

        entries: List[PreferenceField] = []
        for key, data in mappings.items():
            try:
                entries.append(PreferenceField(key, str(data["field"]), ValueKind(data.get("kind", "string"))))
            except (KeyError, TypeError, ValueError, AttributeError) as exc:
                LOGGER.warning("Ignoring malformed mapping %r in %s: %s", key, source, exc)
        mapping = cls(entries)
        if not len(mapping):
            LOGGER.warning("Mapping %s has no usable entries, using compiled-in mapping", source)
            return cls()
        return mapping


DEFAULT_MAPPING = PreferenceMapping()


def parse_statement(statement: str) -> Optional[Tuple[str, str]]:
    """``initvals["max_up_limit"] = "100"`` -> ``("max_up_limit", "100")``."""
    match = _STATEMENT.search(statement)
    if match is None:
        return None
    value = match.group("dq")
    if value is None:
        value = match.group("sq")
    if value is None:
        value = match.group("bare")
    return match.group("name"), value


def script_section(script: str) -> Optional[str]:
    start = script.find(SCRIPT_START_MARKER)
    if start < 0:
        return None
    end = script.find(SCRIPT_END_MARKER, start)
    if end < 0:
        end = len(script)
    return script[start:end]


def parse_preferences(
    html: Optional[str],
    profile: VersionProfile = DEFAULT_PROFILE,
    mapping: PreferenceMapping = DEFAULT_MAPPING,
    base: Optional[PreferenceSet] = None,
) -> Optional[PreferenceSet]:
    """Read ``amuleweb-main-prefs.php`` into a ``PreferenceSet``.

    Values are collected first and applied in one step, so settings missing
    from the page keep the value they have in ``base``.
    """
    root = parse_document(html)
    if root is None:
        return None

    section = None
    for script in select(root, profile.preferences_script_selector):
        section = script_section(script.text or "")
        if section is not None:
            break
    if section is None:
        LOGGER.warning("Could not find the initvals section in preferences page")
        return None

    updates: Dict[str, Any] = {}
    skipped = 0
    for statement in section.split(";"):
        if not statement.strip():
            continue
        parsed = parse_statement(statement)
        if parsed is None:
            continue
        key, value = parsed
        setter = mapping.setter(key)
        if setter is None:
            skipped += 1
            continue
        setter(updates, value)

    LOGGER.debug("Applied %d preferences, skipped %d unknown keys", len(updates), skipped)
    return replace(base or PreferenceSet(), **updates)


def preference_form_params(
    preferences: PreferenceSet,
    mapping: PreferenceMapping = DEFAULT_MAPPING,
) -> Dict[str, str]:
    """Form fields for posting ``preferences`` back to the daemon.

    Flags are sent as ``"on"`` when set and left out otherwise.
    """
    params: Dict[str, str] = {}
    for entry in mapping.entries:
        value = getattr(preferences, entry.field)
        if entry.kind is ValueKind.BOOLEAN:
            if value:
                params[entry.key] = "on"
        else:
            params[entry.key] = "" if value is None else str(value)
    params["Submit"] = "Apply"
    params["command"] = ""
    return params
