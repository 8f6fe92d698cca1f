"""Tracking of the open websocket connections of a server."""

from __future__ import annotations

import threading
from typing import Callable, Dict, Hashable


class WebsocketBag:
    """Cancel callbacks for every open websocket connection of a server."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._conns: Dict[Hashable, Callable[[], object]] = {}

    def __len__(self) -> int:
        with self._lock:
            return len(self._conns)

    def push(self, key: Hashable, cancel: Callable[[], object]) -> None:
        """Track a connection by ``key`` with the callback that closes it."""
        with self._lock:
            self._conns[key] = cancel

    def remove(self, key: Hashable) -> None:
        """Stop tracking a connection; unknown keys are ignored."""
        with self._lock:
            self._conns.pop(key, None)

    def cancel_all(self) -> None:
        """Close every tracked connection and forget them all."""
        with self._lock:
            cancels = list(self._conns.values())
            self._conns = {}
        for cancel in cancels:
            cancel()