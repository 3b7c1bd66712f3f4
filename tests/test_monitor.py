from __future__ import annotations

import sys
import threading
import types
from typing import List

import pytest
from conftest import download_page, download_row, page, row, table

from amule_remote.commands import DOWNLOAD_PAGE, STATS_PAGE
from amule_remote.models import DownloadRecord, StatsRecord
from amule_remote.monitor import MonitorSnapshot, StatusMonitor


def _record(speed: str) -> DownloadRecord:
    return DownloadRecord("f", "1 MB", "0 B (0%)", speed, "1", "Downloading", "Normal")


def test_subscribe_delivers_current_snapshot() -> None:
    monitor = StatusMonitor(decimal_separator=".")
    received: List[MonitorSnapshot] = []

    monitor.subscribe(received.append)

    assert received == [MonitorSnapshot(StatsRecord(), 0.0)]


def test_observers_see_new_values_when_notified() -> None:
    monitor = StatusMonitor(decimal_separator=".")
    seen = []

    def observer(snapshot: MonitorSnapshot) -> None:
        seen.append((snapshot, monitor.snapshot()))

    monitor.subscribe(observer)
    monitor.publish_status(StatsRecord("Connected", "Firewalled"))
    monitor.update_downloads([_record("10.5 kb/s"), _record("5 kb/s"), _record("")])

    assert len(seen) == 3
    for delivered, current in seen:
        assert delivered == current
    assert seen[-1][0] == MonitorSnapshot(StatsRecord("Connected", "Firewalled"), 15.5)


def test_unchanged_values_do_not_notify() -> None:
    monitor = StatusMonitor(decimal_separator=".")
    calls = []
    monitor.subscribe(calls.append)
    monitor.publish_status(StatsRecord())
    monitor.publish_status(None)
    monitor.update_downloads([])
    assert len(calls) == 1

    monitor.unsubscribe(calls.append)
    monitor.publish_status(StatsRecord("Connected", "Connected"))
    assert len(calls) == 1


def test_concurrent_updates_stay_consistent() -> None:
    monitor = StatusMonitor(decimal_separator=".")
    mismatches = []

    def observer(snapshot: MonitorSnapshot) -> None:
        if snapshot != monitor.snapshot():
            mismatches.append(snapshot)

    monitor.subscribe(observer)

    def worker(index: int) -> None:
        for step in range(50):
            monitor.publish_status(StatsRecord(f"ed2k-{index}-{step}", "Kad"))
            monitor.update_downloads([_record(f"{index}.{step} kb/s")])

    threads = [threading.Thread(target=worker, args=(index,)) for index in range(4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert mismatches == []


def test_poll_once_parses_fetched_pages() -> None:
    pages = {
        DOWNLOAD_PAGE: download_page([download_row("1", "a.iso", speed="10.5 kb/s"), download_row("2", "b.iso", speed="5 kb/s")]),
        STATS_PAGE: page(table([row(["Ed2k : Connected"]), row(["Kad : Firewalled"])])),
    }
    requested = []

    def fetch(name: str) -> str:
        requested.append(name)
        return pages[name]

    snapshot = StatusMonitor(decimal_separator=".").poll_once(fetch)

    assert requested == [DOWNLOAD_PAGE, STATS_PAGE]
    assert snapshot == MonitorSnapshot(StatsRecord("Connected", "Firewalled"), 15.5)
    assert snapshot.formatted_speed(".") == "15.50 kb/s"


def test_poll_once_with_unreachable_daemon_keeps_state() -> None:
    monitor = StatusMonitor(decimal_separator=".")
    assert monitor.poll_once(lambda name: None) == MonitorSnapshot(StatsRecord(), 0.0)

    monitor.publish_status(StatsRecord("Connected", "Firewalled"))
    monitor.update_downloads([_record("10.5 kb/s"), _record("5 kb/s")])

    snapshot = monitor.poll_once(lambda name: None)

    assert snapshot == MonitorSnapshot(StatsRecord("Connected", "Firewalled"), 15.5)


@pytest.fixture
def fake_glib(monkeypatch: pytest.MonkeyPatch):
    timers = {}

    def timeout_add_seconds(interval, callback):
        timers[len(timers) + 1] = (interval, callback)
        return len(timers)

    glib = types.SimpleNamespace(
        timeout_add_seconds=timeout_add_seconds,
        source_remove=lambda source_id: timers.pop(source_id),
    )
    repository = types.ModuleType("gi.repository")
    repository.GLib = glib
    gi = types.ModuleType("gi")
    gi.repository = repository
    monkeypatch.setitem(sys.modules, "gi", gi)
    monkeypatch.setitem(sys.modules, "gi.repository", repository)
    return timers


def test_start_and_stop_use_glib_timer(fake_glib) -> None:
    monitor = StatusMonitor(decimal_separator=".")
    fetched = []

    monitor.start(lambda name: fetched.append(name))
    monitor.start(lambda name: None)

    assert monitor.running
    assert len(fake_glib) == 1
    interval, callback = fake_glib[1]
    assert interval == StatusMonitor.POLL_INTERVAL_SECONDS
    assert callback() is True
    assert fetched == [DOWNLOAD_PAGE, STATS_PAGE]

    monitor.stop()
    assert not monitor.running
    assert fake_glib == {}


def test_failing_poll_keeps_timer_running(fake_glib, caplog: pytest.LogCaptureFixture) -> None:
    monitor = StatusMonitor(decimal_separator=".")

    def fetch(name: str) -> str:
        raise RuntimeError("daemon went away")

    monitor.start(fetch)
    _, callback = fake_glib[1]

    assert callback() is True
    assert monitor.running
    assert "daemon went away" in caplog.text
    assert monitor.snapshot() == MonitorSnapshot(StatsRecord(), 0.0)
