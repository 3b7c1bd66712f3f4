"""Versioned table/selector profiles for the aMule web interface."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

LOGGER = logging.getLogger(__name__)

DATA_DIR = Path(__file__).resolve().parent / "data"
PROFILES_PATH = DATA_DIR / "xpaths.json"

DEFAULT_LABEL = "default"
UNKNOWN_VERSION = "unknown"

# Versions with a dedicated entry in xpaths.json.
SUPPORTED_VERSIONS = frozenset({"2.3.2", "2.3.3"})

VERSION_ALIASES: Dict[str, str] = {
    "2.3": "2.3.2",
    "2.3.0": "2.3.2",
    "2.3.1": "2.3.2",
}


@dataclass(frozen=True)
class TableSpec:
    selector: str = "//table"
    table_index: int = 0
    row_skip: int = 0

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]], fallback: "TableSpec") -> "TableSpec":
        """Raises ``TypeError``/``ValueError`` for entries that are not a usable table spec."""
        if data is None:
            data = {}
        if not isinstance(data, Mapping):
            raise TypeError(f"table spec must be an object, got {type(data).__name__}")
        spec = cls(
            selector=str(data.get("selector", fallback.selector)),
            table_index=int(data.get("table_index", fallback.table_index)),
            row_skip=int(data.get("row_skip", fallback.row_skip)),
        )
        if spec.table_index < 0 or spec.row_skip < 0:
            raise ValueError(f"negative table_index/row_skip in {dict(data)!r}")
        return spec


@dataclass(frozen=True)
class VersionProfile:
    version: str = DEFAULT_LABEL
    description: str = ""
    download: TableSpec = field(default_factory=lambda: TableSpec(table_index=6, row_skip=1))
    upload: TableSpec = field(default_factory=lambda: TableSpec(table_index=8, row_skip=2))
    server: TableSpec = field(default_factory=lambda: TableSpec(table_index=1, row_skip=3))
    stats_selector: str = "//table"
    search_row_selector: str = "//tr"
    log_selector: str = "//pre"
    preferences_script_selector: str = "//script"

    @classmethod
    def from_dict(cls, version: str, data: Mapping[str, Any]) -> "VersionProfile":
        """Build a profile, taking any missing key from the compiled-in default."""
        base = DEFAULT_PROFILE
        return cls(
            version=version,
            description=str(data.get("description", "")),
            download=TableSpec.from_dict(data.get("download", {}), base.download),
            upload=TableSpec.from_dict(data.get("upload", {}), base.upload),
            server=TableSpec.from_dict(data.get("server", {}), base.server),
            stats_selector=str(data.get("stats_selector", base.stats_selector)),
            search_row_selector=str(data.get("search_row_selector", base.search_row_selector)),
            log_selector=str(data.get("log_selector", base.log_selector)),
            preferences_script_selector=str(
                data.get("preferences_script_selector", base.preferences_script_selector)
            ),
        )


DEFAULT_PROFILE = VersionProfile(description="aMule 2.3.2+ layout")


def normalize_version(label: Optional[str]) -> str:
    """Map legacy labels onto the canonical supported label."""
    if label is None:
        return UNKNOWN_VERSION
    label = label.strip()
    if not label:
        return UNKNOWN_VERSION
    return VERSION_ALIASES.get(label, label)


class ProfileRegistry:
    """Immutable set of version profiles with a fixed resolution chain.

    ``resolve`` tries the exact label, then the alias table, then
    ``"default"``. It never raises.
    """

    def __init__(self, profiles: Optional[Mapping[str, VersionProfile]] = None) -> None:
        merged = dict(profiles or {})
        merged.setdefault(DEFAULT_LABEL, DEFAULT_PROFILE)
        self._profiles: Dict[str, VersionProfile] = merged

    @property
    def known_versions(self) -> frozenset:
        return frozenset(label for label in self._profiles if label != DEFAULT_LABEL)

    @property
    def default(self) -> VersionProfile:
        return self._profiles[DEFAULT_LABEL]

    def resolve(self, label: Optional[str]) -> VersionProfile:
        if label and label in self._profiles:
            return self._profiles[label]
        canonical = normalize_version(label)
        if canonical in self._profiles:
            LOGGER.debug("Version %s resolved through alias to %s", label, canonical)
            return self._profiles[canonical]
        LOGGER.info("No profile for aMule version %s, using default", label)
        return self.default

    # ------------------------------------------------------------------
    @classmethod
    def load(cls, path: Path | str | None = None) -> "ProfileRegistry":
        source = Path(path) if path is not None else PROFILES_PATH
        document = _read_json(source, {})
        versions = document.get("versions") if isinstance(document, dict) else None
        if not isinstance(versions, dict):
            LOGGER.warning("No versions found in %s, using compiled-in default", source)
            return cls()

        profiles: Dict[str, VersionProfile] = {}
        for label, data in versions.items():
            if not isinstance(data, dict):
                LOGGER.warning("Ignoring malformed profile %r in %s", label, source)
                continue
            try:
                profiles[label] = VersionProfile.from_dict(label, data)
            except (TypeError, ValueError) as exc:
                LOGGER.warning("Ignoring malformed profile %r in %s: %s", label, source, exc)
        return cls(profiles)


def _read_json(path: Path, fallback: Any) -> Any:
    try:
        if path.exists():
            with path.open("r", encoding="utf-8") as handle:
                return json.load(handle)
        LOGGER.warning("%s not found", path)
    except (ValueError, OSError) as exc:
        LOGGER.warning("Falha ao ler %s: %s", path, exc)
    return fallback
