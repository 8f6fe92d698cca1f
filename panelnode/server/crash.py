"""Crash detection bookkeeping for a server process."""

from __future__ import annotations

import threading
from datetime import datetime, timedelta, timezone
from typing import Optional


def is_crash(exit_code: int, oom_killed: bool, detect_clean_exit_as_crash: bool) -> bool:
    """Return True if an exit counts as a crash.

    A clean exit that was not caused by running out of memory only counts
    when ``detect_clean_exit_as_crash`` is set.
    """
    return not (exit_code == 0 and not oom_killed and not detect_clean_exit_as_crash)


def _now() -> datetime:
    return datetime.now(timezone.utc)


class CrashHandler:
    """Remembers when a server last crashed."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._last_crash: Optional[datetime] = None

    @property
    def last_crash(self) -> Optional[datetime]:
        """The time of the last recorded crash, or None if there was none."""
        with self._lock:
            return self._last_crash

    def record(self, when: Optional[datetime] = None) -> None:
        """Record a crash at ``when``, defaulting to now."""
        with self._lock:
            self._last_crash = when if when is not None else _now()

    def too_recent(self, timeout: int, now: Optional[datetime] = None) -> bool:
        """Return True if the last crash was less than ``timeout`` seconds ago.

        A timeout of 0 means a crashed server is always restarted.
        """
        last = self.last_crash
        if timeout == 0 or last is None:
            return False
        current = now if now is not None else _now()
        return last + timedelta(seconds=timeout) > current