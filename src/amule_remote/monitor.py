"""Estado compartilhado de conexão e velocidade, com atualização periódica."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Callable, Iterable, List, Optional

from .commands import DOWNLOAD_PAGE, STATS_PAGE
from .models import DownloadRecord, StatsRecord
from .numeric import format_speed, total_speed
from .parsers import parse_downloads, parse_stats
from .profiles import DEFAULT_PROFILE, VersionProfile

LOGGER = logging.getLogger(__name__)

FetchPage = Callable[[str], Optional[str]]


@dataclass(frozen=True)
class MonitorSnapshot:
    status: StatsRecord
    total_speed: float = 0.0

    def formatted_speed(self, decimal_separator: Optional[str] = None) -> str:
        return format_speed(self.total_speed, decimal_separator)


Observer = Callable[[MonitorSnapshot], None]


class StatusMonitor:
    """Owns the latest connection status and aggregate download speed.

    Values are replaced and observers notified under the same lock, so an
    observer never sees a status paired with a stale speed.
    """

    POLL_INTERVAL_SECONDS = 1

    def __init__(
        self,
        profile: VersionProfile = DEFAULT_PROFILE,
        decimal_separator: Optional[str] = None,
    ) -> None:
        self._lock = threading.RLock()
        self._status = StatsRecord()
        self._total_speed = 0.0
        self._observers: List[Observer] = []
        self._profile = profile
        self._decimal_separator = decimal_separator
        self._poll_id = 0

    # ------------------------------------------------------------------
    @property
    def status(self) -> StatsRecord:
        with self._lock:
            return self._status

    @property
    def total_speed(self) -> float:
        with self._lock:
            return self._total_speed

    def snapshot(self) -> MonitorSnapshot:
        with self._lock:
            return MonitorSnapshot(self._status, self._total_speed)

    def subscribe(self, callback: Observer) -> None:
        with self._lock:
            self._observers.append(callback)
            callback(self.snapshot())

    def unsubscribe(self, callback: Observer) -> None:
        with self._lock:
            if callback in self._observers:
                self._observers.remove(callback)

    # ------------------------------------------------------------------
    def publish_status(self, status: Optional[StatsRecord]) -> None:
        if status is None:
            LOGGER.debug("No status to publish")
            return
        with self._lock:
            if status == self._status:
                return
            self._status = status
            LOGGER.info("Status: Ed2k %s, Kad %s", status.ed2k, status.kad)
            self._notify_observers()

    def update_downloads(self, records: Iterable[DownloadRecord]) -> float:
        speed = total_speed((record.speed for record in records), self._decimal_separator)
        with self._lock:
            if abs(speed - self._total_speed) > 0.0001:
                self._total_speed = speed
                self._notify_observers()
        return speed

    def poll_once(self, fetch_page: FetchPage) -> MonitorSnapshot:
        """Fetch the download and stats pages once and publish what they hold.

        A page the fetcher could not retrieve (``None``) leaves its value as it was.
        """
        download_page = fetch_page(DOWNLOAD_PAGE)
        if download_page is not None:
            self.update_downloads(parse_downloads(download_page, self._profile, self._decimal_separator))
        self.publish_status(parse_stats(fetch_page(STATS_PAGE), self._profile))
        return self.snapshot()

    # ------------------------------------------------------------------
    def start(self, fetch_page: FetchPage) -> None:
        from gi.repository import GLib

        if self._poll_id:
            return

        def _poll() -> bool:
            try:
                self.poll_once(fetch_page)
            except Exception as exc:  # returning True keeps the GLib source alive
                LOGGER.exception("Falha ao consultar o aMule: %s", exc)
            return True

        self._poll_id = GLib.timeout_add_seconds(self.POLL_INTERVAL_SECONDS, _poll)
        LOGGER.debug("Polling every %d s", self.POLL_INTERVAL_SECONDS)

    def stop(self) -> None:
        if not self._poll_id:
            return
        from gi.repository import GLib

        GLib.source_remove(self._poll_id)
        self._poll_id = 0

    @property
    def running(self) -> bool:
        return bool(self._poll_id)

    # ------------------------------------------------------------------
    def _notify_observers(self) -> None:
        if not self._observers:
            return
        snapshot = MonitorSnapshot(self._status, self._total_speed)
        for callback in list(self._observers):
            callback(snapshot)
