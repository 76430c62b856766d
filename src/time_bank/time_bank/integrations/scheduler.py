from __future__ import annotations

import logging
import threading
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from ..common.datetime_utils import utc_now

logger = logging.getLogger(__name__)

DEFAULT_AUTO_SYNC_HOUR_UTC = 3


def normalize_hour(hour) -> int:
    try:
        value = int(hour)
    except (TypeError, ValueError):
        return DEFAULT_AUTO_SYNC_HOUR_UTC
    if value < 0 or value > 23:
        return DEFAULT_AUTO_SYNC_HOUR_UTC
    return value


def next_run_at_utc_hour(now: datetime, hour: int) -> datetime:
    """Next ``hour:00`` UTC strictly after ``now``."""
    now = now.astimezone(timezone.utc)
    candidate = now.replace(hour=normalize_hour(hour), minute=0, second=0, microsecond=0)
    if candidate <= now:
        candidate += timedelta(days=1)
    return candidate


class AutoSyncScheduler:
    """Daemon thread that runs ``job`` once at start, then daily at ``hour`` UTC."""

    def __init__(
        self,
        job: Callable[[], object],
        *,
        hour_utc: int = DEFAULT_AUTO_SYNC_HOUR_UTC,
        clock: Callable[[], datetime] = utc_now,
    ):
        self._job = job
        self._hour = normalize_hour(hour_utc)
        self._clock = clock
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.running:
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._loop, name="clockify-auto-sync", daemon=True)
        self._thread.start()
        logger.info("clockify auto-sync scheduler started hour_utc=%s", self._hour)

    def stop(self, timeout: Optional[float] = None) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None

    def run_once(self) -> None:
        try:
            self._job()
        except Exception:
            logger.exception("clockify auto-sync run failed")

    def _loop(self) -> None:
        self.run_once()
        while not self._stop.is_set():
            now = self._clock()
            wait = (next_run_at_utc_hour(now, self._hour) - now).total_seconds()
            logger.debug("clockify auto-sync next run in %.0fs", wait)
            if self._stop.wait(max(wait, 0.0)):
                return
            self.run_once()
