"""Power actions and the lock that keeps them from overlapping."""

from __future__ import annotations

import enum
import threading
from contextlib import contextmanager
from typing import Iterator, Optional, Union


class PowerAction(str, enum.Enum):
    """An action that changes whether a server process runs."""

    START = "start"
    STOP = "stop"
    RESTART = "restart"
    TERMINATE = "kill"

    def is_valid(self) -> bool:
        """Return True if this is one of the known power actions."""
        return self in (
            PowerAction.START,
            PowerAction.STOP,
            PowerAction.TERMINATE,
            PowerAction.RESTART,
        )

    def is_start(self) -> bool:
        """Return True if the action ends with the process started."""
        return self in (PowerAction.START, PowerAction.RESTART)


class PowerLockError(TimeoutError):
    """Raised when the power lock cannot be acquired in time."""

    def __init__(self) -> None:
        super().__init__("could not acquire lock on power state: context deadline exceeded")


class PowerLock:
    """Serialises power actions so only one runs at a time.

    Termination always goes through, taking the lock only if it is free so
    that a stuck action can still be killed.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()

    def executing(self) -> bool:
        """Return True if a power action currently holds the lock."""
        acquired = self._lock.acquire(blocking=False)
        if acquired:
            self._lock.release()
        return not acquired

    @contextmanager
    def hold(
        self, action: Union[PowerAction, str], wait_seconds: Optional[float] = 0
    ) -> Iterator[PowerAction]:
        """Hold the lock while a power action runs.

        With a non-zero ``wait_seconds`` the lock is waited for that long,
        otherwise it must be free straight away; PowerLockError is raised
        when it cannot be taken. Unknown actions raise ValueError.
        """
        action = PowerAction(action)
        if action is PowerAction.TERMINATE:
            acquired = self._lock.acquire(blocking=False)
        else:
            if wait_seconds:
                acquired = self._lock.acquire(timeout=wait_seconds)
            else:
                acquired = self._lock.acquire(blocking=False)
            if not acquired:
                raise PowerLockError()
        try:
            yield action
        finally:
            if acquired:
                self._lock.release()