"""A thread safe collection of the servers running on this node."""

from __future__ import annotations

import json
import os
import threading
from typing import Any, Callable, Dict, Iterable, List, Optional, Protocol


class ManagedServer(Protocol):
    """What the manager needs from a server: its UUID and process state."""

    id: str
    state: str


Predicate = Callable[[ManagedServer], bool]


class Manager:
    """Holds the server instances known to this node."""

    def __init__(self, client: Any = None, servers: Iterable[ManagedServer] = ()) -> None:
        self._lock = threading.RLock()
        self._client = client
        self._servers: List[ManagedServer] = list(servers)

    @property
    def client(self) -> Any:
        """The client used to talk to the panel."""
        return self._client

    def put(self, servers: Iterable[ManagedServer]) -> None:
        """Replace the whole collection."""
        with self._lock:
            self._servers = list(servers)

    def all(self) -> List[ManagedServer]:
        """Return every server in the collection."""
        with self._lock:
            return list(self._servers)

    def add(self, server: ManagedServer) -> None:
        """Add a server to the collection."""
        with self._lock:
            self._servers.append(server)

    def get(self, uuid: str) -> Optional[ManagedServer]:
        """Return the server with the given UUID, or None."""
        return self.find(lambda s: s.id == uuid)

    def filter(self, predicate: Predicate) -> List[ManagedServer]:
        """Return the servers matching ``predicate``."""
        with self._lock:
            return [s for s in self._servers if predicate(s)]

    def find(self, predicate: Predicate) -> Optional[ManagedServer]:
        """Return the first server matching ``predicate``, or None."""
        with self._lock:
            return next((s for s in self._servers if predicate(s)), None)

    def remove(self, predicate: Predicate) -> None:
        """Remove every server matching ``predicate``."""
        with self._lock:
            self._servers = [s for s in self._servers if not predicate(s)]

    def persist_states(self, path: str) -> None:
        """Write the current state of every server to ``path`` as JSON."""
        states = {s.id: s.state for s in self.all()}
        data = json.dumps(states, sort_keys=True, separators=(",", ":"))
        descriptor = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o644)
        with open(descriptor, "w", encoding="utf-8") as handle:
            handle.write(data)

    def read_states(self, path: str) -> Dict[str, str]:
        """Read the states saved at ``path`` for the servers still tracked.

        The file is created empty if it does not exist.
        """
        descriptor = os.open(path, os.O_RDONLY | os.O_CREAT, 0o644)
        with open(descriptor, "r", encoding="utf-8") as handle:
            text = handle.read()
        if not text.strip():
            return {}
        states = json.loads(text)
        if states is None:
            return {}
        if not isinstance(states, dict):
            raise ValueError("states file does not hold a JSON object")
        return {
            uuid: state
            for uuid, state in states.items()
            if self.get(uuid) is not None
        }