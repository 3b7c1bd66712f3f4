from __future__ import annotations

import pytest

from amule_remote import numeric
from amule_remote.numeric import format_speed, progress_percent, speed_value, to_float, total_speed


def test_progress_under_comma_locale() -> None:
    assert progress_percent("350.2 MB (50,1%)", ",") == 50.1


def test_progress_under_period_locale() -> None:
    assert progress_percent("350.2 MB (50.1%)", ".") == 50.1


def test_progress_without_percentage_is_zero() -> None:
    assert progress_percent("350.2 MB", ".") == 0.0
    assert progress_percent("350.2 MB (abc%)", ".") == 0.0


def test_progress_follows_process_locale(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(numeric.locale, "localeconv", lambda: {"decimal_point": ","})
    assert numeric.active_decimal_separator() == ","
    assert progress_percent("1 MB (12.5%)") == 12.5


def test_speeds_are_summed() -> None:
    assert total_speed(["10.5 kb/s", "5 kb/s", ""], ".") == 15.5


def test_speed_value_recovers_from_garbage() -> None:
    assert speed_value("fast kb/s", ".") == 0.0
    assert speed_value("10.5", ".") == 0.0
    assert speed_value(None, ".") == 0.0
    assert speed_value("1,5 kb/s", ".") == 1.5


def test_to_float_raises_for_non_numbers() -> None:
    with pytest.raises(ValueError):
        to_float("n/a", ".")


def test_format_speed() -> None:
    assert format_speed(1234.5, ".") == "1,234.50 kb/s"
    assert format_speed(1234.5, ",") == "1.234,50 kb/s"
    assert format_speed(0, ".") == "0.00 kb/s"
