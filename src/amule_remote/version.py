"""Detecção da versão do aMule a partir do rodapé da interface web."""

from __future__ import annotations

import logging
import re
from typing import Optional, Tuple

from .profiles import SUPPORTED_VERSIONS, UNKNOWN_VERSION, VERSION_ALIASES

LOGGER = logging.getLogger(__name__)

VERSION_PATTERN = re.compile(r"aMule\s+([\d.]+)", re.IGNORECASE)


def detect_version(html: Optional[str]) -> str:
    """Return the daemon version found in ``html`` (e.g. ``"2.3.2"``) or ``"unknown"``."""
    if not html or not html.strip():
        LOGGER.warning("Version detection got an empty page")
        return UNKNOWN_VERSION

    match = VERSION_PATTERN.search(html)
    if match is None:
        LOGGER.warning("Could not find aMule version pattern in page")
        LOGGER.debug("Page start: %s", html[:200])
        return UNKNOWN_VERSION

    detected = match.group(1).strip(".")
    if not detected:
        return UNKNOWN_VERSION
    canonical = VERSION_ALIASES.get(detected)
    if canonical is not None:
        LOGGER.info("Detected aMule %s, treated as %s", detected, canonical)
        return canonical
    LOGGER.info("Detected aMule %s", detected)
    return detected


def is_supported(version: Optional[str]) -> bool:
    if not version:
        return False
    return version in SUPPORTED_VERSIONS


def compatibility_message(version: Optional[str]) -> str:
    if not version or version == UNKNOWN_VERSION:
        return "aMule version could not be detected. Using default parsing configuration."
    if is_supported(version):
        return f"aMule {version} is fully supported."

    detected = _version_tuple(version)
    latest = max(
        (parsed for parsed in map(_version_tuple, SUPPORTED_VERSIONS) if parsed is not None),
        default=None,
    )
    if detected is not None and latest is not None and detected > latest:
        return (
            f"aMule {version} is newer than tested versions. "
            "Using default configuration. Please report compatibility issues."
        )
    return (
        f"aMule {version} is not officially supported. "
        "Using default configuration. Some features may not work correctly."
    )


def _version_tuple(version: str) -> Optional[Tuple[int, ...]]:
    try:
        return tuple(int(part) for part in version.split("."))
    except ValueError:
        return None
