"""Conversão numérica sensível ao separador decimal ativo."""

from __future__ import annotations

import locale
import logging
from typing import Iterable, Optional

LOGGER = logging.getLogger(__name__)

SPEED_UNIT = "kb/s"


def active_decimal_separator() -> str:
    """Decimal separator of the process locale (``"."`` or ``","``)."""
    separator = locale.localeconv().get("decimal_point") or "."
    return "," if separator == "," else "."


def to_float(text: str, decimal_separator: Optional[str] = None) -> float:
    """Convert ``text`` after normalizing the decimal separator.

    The daemon renders numbers in its own locale, so the other separator is
    rewritten to the active one first. Raises ``ValueError`` when the result
    is still not a number.
    """
    separator = decimal_separator or active_decimal_separator()
    other = "." if separator == "," else ","
    normalized = text.strip().replace(other, separator)
    return float(normalized.replace(separator, "."))


def progress_percent(completed: str, decimal_separator: Optional[str] = None) -> float:
    """``"350.2 MB (50.1%)"`` -> ``50.1``; ``0.0`` when there is no percentage."""
    start = completed.find("(")
    end = completed.find("%")
    if start < 0 or end < 0 or end <= start:
        return 0.0
    try:
        return to_float(completed[start + 1:end], decimal_separator)
    except ValueError as exc:
        LOGGER.error("Error converting progress %r: %s", completed, exc)
        return 0.0


def speed_value(text: Optional[str], decimal_separator: Optional[str] = None) -> float:
    """Numeric part of a speed cell such as ``"10.5 kb/s"``."""
    if not text:
        return 0.0
    index = text.find(" ")
    if index <= 0:
        return 0.0
    try:
        return to_float(text[:index], decimal_separator)
    except ValueError as exc:
        LOGGER.error("Error converting speed %r: %s", text, exc)
        return 0.0


def total_speed(speeds: Iterable[Optional[str]], decimal_separator: Optional[str] = None) -> float:
    return sum(speed_value(speed, decimal_separator) for speed in speeds)


def format_speed(value: float, decimal_separator: Optional[str] = None) -> str:
    """``1234.5`` -> ``"1,234.50 kb/s"`` (or ``"1.234,50 kb/s"`` for a comma locale)."""
    separator = decimal_separator or active_decimal_separator()
    rendered = f"{value:,.2f}"
    if separator == ",":
        rendered = rendered.replace(",", "\0").replace(".", ",").replace("\0", ".")
    return f"{rendered} {SPEED_UNIT}"
