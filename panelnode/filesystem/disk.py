"""Disk usage tracking and limits for a server's data directory."""

from __future__ import annotations

import logging
import os
import threading
import time
from typing import List, Optional, Tuple

from .fs_errors import ErrorCode, FilesystemError, is_error_code, new_filesystem_error
from .paths import PathResolver

log = logging.getLogger(__name__)


class DiskUsage:
    """Tracks the disk space used under a root directory against a limit.

    Walking a large directory tree is expensive, so the measured size is
    cached and only refreshed once ``check_interval`` seconds have passed.
    A ``check_interval`` of zero disables measuring entirely. When ``exact``
    is set, :meth:`add_disk` adjusts the cached value without triggering a
    lookup first.
    """

    def __init__(
        self,
        resolver: PathResolver,
        limit: int = 0,
        check_interval: float = 150,
        exact: bool = False,
    ) -> None:
        self.resolver = resolver
        self.check_interval = check_interval
        self.exact = exact
        self._limit = int(limit)
        self._used = 0
        self._counter_lock = threading.Lock()
        self._update_lock = threading.Lock()
        self._lookup_lock = threading.Lock()
        self._last_lookup: Optional[float] = None
        self._in_progress = threading.Event()

    @property
    def limit(self) -> int:
        """The maximum number of bytes the directory may use; 0 means unlimited."""
        with self._counter_lock:
            return self._limit

    @limit.setter
    def limit(self, value: int) -> None:
        with self._counter_lock:
            self._limit = int(value)

    @property
    def used(self) -> int:
        """The cached number of bytes in use."""
        with self._counter_lock:
            return self._used

    @used.setter
    def used(self, value: int) -> None:
        with self._counter_lock:
            self._used = int(value)

    def has_space_err(self, allow_stale: bool) -> None:
        """Raise a disk space FilesystemError if the limit has been exceeded."""
        if not self.has_space_available(allow_stale):
            raise new_filesystem_error(ErrorCode.DISK_SPACE)

    def has_space_available(self, allow_stale: bool) -> bool:
        """Return True if the used space is within the limit."""
        try:
            size = self.disk_usage(allow_stale)
        except (OSError, FilesystemError) as exc:
            log.warning(
                "failed to determine root fs directory size (root=%s): %s",
                self.resolver.root,
                exc,
            )
            size = self.used

        limit = self.limit
        if limit == 0:
            return True
        return size <= limit

    def disk_usage(self, allow_stale: bool) -> int:
        """Return the used space, refreshing the cache when it has expired.

        With ``allow_stale`` an expired value is returned immediately and a
        refresh is started in the background, unless one is already running.
        """
        if self.check_interval == 0:
            return 0

        with self._lookup_lock:
            last = self._last_lookup
        expired = last is None or last <= time.monotonic() - self.check_interval
        if expired:
            if not allow_stale:
                return self._update_cached_usage()
            if not self._in_progress.is_set():
                threading.Thread(target=self._background_update, daemon=True).start()

        return self.used

    def _background_update(self) -> None:
        try:
            self._update_cached_usage()
        except (OSError, FilesystemError) as exc:
            log.warning(
                "failed to update fs disk usage from within routine (root=%s): %s",
                self.resolver.root,
                exc,
            )

    def _update_cached_usage(self) -> int:
        with self._update_lock:
            self._in_progress.set()
            try:
                size, error = self._measure("/")
                with self._lookup_lock:
                    self._last_lookup = time.monotonic()
                self.used = size
            finally:
                self._in_progress.clear()
        if error is not None:
            raise error
        return size

    def _measure(self, directory: str) -> Tuple[int, Optional[BaseException]]:
        try:
            start = self.resolver.safe_path(directory)
        except (OSError, FilesystemError) as exc:
            return 0, exc

        size = 0
        pending: List[str] = [start]
        try:
            while pending:
                current = pending.pop()
                with os.scandir(current) as entries:
                    for entry in entries:
                        if entry.is_symlink():
                            try:
                                self.resolver.safe_path(entry.path)
                            except FilesystemError as exc:
                                if is_error_code(exc, ErrorCode.PATH_RESOLUTION):
                                    continue
                                raise
                        if entry.is_dir(follow_symlinks=False):
                            pending.append(entry.path)
                            continue
                        try:
                            size += entry.stat(follow_symlinks=False).st_size
                        except OSError:
                            pass
        except (OSError, FilesystemError) as exc:
            wrapped = OSError(
                f"server/filesystem: directorysize: failed to walk directory: {exc}"
            )
            wrapped.__cause__ = exc
            return size, wrapped
        return size, None

    def directory_size(self, directory: str) -> int:
        """Walk a directory within the root and return the total size of its files.

        Symlinks that resolve outside the root are skipped.
        """
        size, error = self._measure(directory)
        if error is not None:
            raise error
        return size

    def has_space_for(self, size: int) -> None:
        """Raise a disk space FilesystemError if ``size`` more bytes would not fit."""
        limit = self.limit
        if limit == 0:
            return
        current = self.disk_usage(True)
        if current + size > limit:
            raise new_filesystem_error(ErrorCode.DISK_SPACE)

    def add_disk(self, delta: int) -> int:
        """Adjust the cached usage by ``delta`` bytes, never dropping below zero.

        Returns the new usage, or the previous usage when it was reset to zero.
        """
        size = self.used
        if not self.exact:
            try:
                size = self.disk_usage(True)
            except (OSError, FilesystemError):
                size = 0

        with self._counter_lock:
            if size + delta < 0:
                previous = self._used
                self._used = 0
                return previous
            self._used += delta
            return self._used