"""Parser for ``ed2k://|file|name|size|hash|/`` links.

Extended links may carry optional fields before the closing ``|/``::

    ed2k://|file|Movie.avi|734003200|ABCD1234ABCD1234ABCD1234ABCD1234|h=ZYXW9876|s=1.2.3.4:4662|/

``h=`` is the AICH hash set, each ``s=`` adds a source endpoint.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple
from urllib.parse import unquote_plus

LOGGER = logging.getLogger(__name__)

SCHEME = "ed2k://"
MIN_FILE_SIZE = 1
MAX_FILE_SIZE = 17_592_186_044_416  # 16 TiB
HASH_LENGTH = 32

LINK_PATTERN = re.compile(
    r"^ed2k://\|file\|([^|]+)\|(\d+)\|([A-F0-9]{32})\|(.*)/$",
    re.IGNORECASE,
)
# Same structure with loose segments, used to tell which segment is wrong.
LOOSE_PATTERN = re.compile(r"^ed2k://\|file\|([^|]+)\|([^|]*)\|([^|]*)\|(.*)/$", re.IGNORECASE)
_HEX = frozenset("0123456789ABCDEF")


class LinkError(Enum):
    INVALID_FORMAT = "invalid_format"
    INVALID_HASH = "invalid_hash"
    INVALID_SIZE = "invalid_size"
    MISSING_REQUIRED = "missing_required"
    NULL_OR_EMPTY = "null_or_empty"
    ENCODING_ERROR = "encoding_error"
    UNEXPECTED_ERROR = "unexpected_error"

    @property
    def message(self) -> str:
        return _MESSAGES[self]


_MESSAGES = {
    LinkError.INVALID_FORMAT: "Invalid ed2k link format. Expected format: ed2k://|file|filename|size|hash|/",
    LinkError.INVALID_HASH: "Invalid file hash. Hash must be exactly 32 hexadecimal characters (MD4).",
    LinkError.INVALID_SIZE: "Invalid file size. Size must be a positive number.",
    LinkError.MISSING_REQUIRED: "Missing required field. Ed2k links must have filename, size, and hash.",
    LinkError.NULL_OR_EMPTY: "URL is null or empty.",
    LinkError.ENCODING_ERROR: (
        "Failed to decode URL. The link may be corrupted or contain invalid characters."
    ),
    LinkError.UNEXPECTED_ERROR: "An unexpected error occurred while parsing the ed2k link.",
}


@dataclass(frozen=True)
class Ed2kLink:
    name: str
    size: int
    file_hash: str
    original_url: str
    hash_set: Optional[str] = None
    sources: Optional[Tuple[str, ...]] = None

    @property
    def formatted_size(self) -> str:
        """``2877227008`` -> ``"2.68 GB"``."""
        units = ("B", "KB", "MB", "GB", "TB")
        value = float(self.size)
        order = 0
        while value >= 1024 and order < len(units) - 1:
            value /= 1024
            order += 1
        rendered = f"{value:.2f}".rstrip("0").rstrip(".")
        return f"{rendered} {units[order]}"

    def __str__(self) -> str:
        return f"Ed2k Link: {self.name} ({self.size / (1024 * 1024):.2f} MB) - Hash: {self.file_hash[:8]}..."


@dataclass(frozen=True)
class LinkParseResult:
    link: Optional[Ed2kLink] = None
    error: Optional[LinkError] = None
    message: Optional[str] = None
    exception: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.link is not None

    @classmethod
    def success(cls, link: Ed2kLink) -> "LinkParseResult":
        return cls(link=link)

    @classmethod
    def failure(
        cls,
        error: LinkError,
        message: Optional[str] = None,
        exception: Optional[BaseException] = None,
    ) -> "LinkParseResult":
        return cls(error=error, message=message or error.message, exception=exception)


def _excerpt(text: str) -> str:
    return text[:50]


def _decode(text: str) -> str:
    return unquote_plus(text, encoding="utf-8", errors="strict")


def _classify_mismatch(decoded: str) -> LinkError:
    loose = LOOSE_PATTERN.match(decoded)
    if loose is None:
        return LinkError.INVALID_FORMAT
    size, file_hash = loose.group(2), loose.group(3)
    if not size.isdigit():
        return LinkError.INVALID_SIZE
    if len(file_hash) != HASH_LENGTH or not set(file_hash.upper()) <= _HEX:
        return LinkError.INVALID_HASH
    return LinkError.INVALID_FORMAT


def _optional_fields(raw: str) -> Tuple[Optional[str], Optional[Tuple[str, ...]]]:
    hash_set: Optional[str] = None
    sources: List[str] = []
    for item in raw.split("|"):
        if not item:
            continue
        prefix = item[:2].lower()
        if prefix == "h=":
            hash_set = item[2:]
            LOGGER.debug("Ed2k link has hashset %s...", hash_set[:8])
        elif prefix == "s=":
            source = item[2:].strip()
            if source:
                sources.append(source)
                LOGGER.debug("Ed2k link has source %s", source)
        # p= (partner hash) and future fields are ignored
    return hash_set, tuple(sources) if sources else None


def parse_link(url: Optional[str]) -> LinkParseResult:
    """Parse and validate an ``ed2k://`` link."""
    if url is None or not url.strip():
        LOGGER.warning("Ed2k parse failed: URL is null or empty")
        return LinkParseResult.failure(LinkError.NULL_OR_EMPTY)

    try:
        decoded = _decode(url)
    except UnicodeDecodeError as exc:
        LOGGER.warning("Ed2k URL decoding failed: %s", exc)
        return LinkParseResult.failure(LinkError.ENCODING_ERROR, exception=exc)

    match = LINK_PATTERN.match(decoded)
    if match is None:
        error = _classify_mismatch(decoded)
        LOGGER.warning("Ed2k parse failed (%s) for URL: %s", error.value, _excerpt(decoded))
        return LinkParseResult.failure(error)

    encoded_name, size_text, file_hash, optional = match.groups()

    try:
        name = _decode(encoded_name)
    except UnicodeDecodeError as exc:
        LOGGER.warning("Ed2k filename decoding failed: %s", exc)
        return LinkParseResult.failure(LinkError.ENCODING_ERROR, exception=exc)
    if not name.strip():
        LOGGER.warning("Ed2k parse failed: filename is empty after decoding")
        return LinkParseResult.failure(LinkError.MISSING_REQUIRED)

    try:
        size = int(size_text)
    except ValueError as exc:
        LOGGER.warning("Ed2k parse failed: invalid file size %s", size_text)
        return LinkParseResult.failure(LinkError.INVALID_SIZE, exception=exc)
    if size < MIN_FILE_SIZE:
        LOGGER.warning("Ed2k parse failed: file size too small: %d bytes", size)
        return LinkParseResult.failure(
            LinkError.INVALID_SIZE, f"File size must be at least {MIN_FILE_SIZE} byte"
        )
    if size > MAX_FILE_SIZE:
        LOGGER.warning("Ed2k parse failed: file size too large: %d bytes", size)
        return LinkParseResult.failure(LinkError.INVALID_SIZE, "File size exceeds maximum of 16 TB")

    file_hash = file_hash.upper()
    if len(file_hash) != HASH_LENGTH or not set(file_hash) <= _HEX:
        LOGGER.warning("Ed2k parse failed: invalid hash %s", file_hash)
        return LinkParseResult.failure(LinkError.INVALID_HASH)

    hash_set, sources = _optional_fields(optional)
    link = Ed2kLink(
        name=name,
        size=size,
        file_hash=file_hash,
        original_url=url,
        hash_set=hash_set,
        sources=sources,
    )
    LOGGER.info("Ed2k parse successful: %s (%s)", name, link.formatted_size)
    return LinkParseResult.success(link)


def is_valid_link(url: Optional[str]) -> bool:
    """Cheap shape check before calling ``parse_link``; nothing is decoded."""
    if not url or not url.strip():
        return False
    if not url.lower().startswith(SCHEME):
        return False
    if "|" not in url:
        return False
    if not url.endswith(("/", "|")):
        return False
    return url.count("|") >= 4
