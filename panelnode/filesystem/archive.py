"""Creation of gzip compressed tar archives from a server directory."""

from __future__ import annotations

import gzip
import logging
import os
import stat
import tarfile
import time
from dataclasses import dataclass
from typing import BinaryIO, Callable, Iterator, List, Sequence

from .gitignore import GitIgnore

log = logging.getLogger(__name__)


class _RateLimitedWriter:
    """A writer that passes data on at no more than ``rate`` bytes a second."""

    def __init__(self, raw: BinaryIO, rate: int) -> None:
        self._raw = raw
        self._rate = rate
        self._tokens = float(rate)
        self._stamp = time.monotonic()

    def _take(self, count: int) -> None:
        while True:
            now = time.monotonic()
            self._tokens = min(float(self._rate), self._tokens + (now - self._stamp) * self._rate)
            self._stamp = now
            if self._tokens >= count:
                self._tokens -= count
                return
            time.sleep((count - self._tokens) / self._rate)

    def write(self, data) -> int:
        view = memoryview(data).cast("B")
        total = len(view)
        while view:
            chunk = view[: self._rate]
            self._take(len(chunk))
            self._raw.write(chunk)
            view = view[len(chunk):]
        return total

    def flush(self) -> None:
        self._raw.flush()


def _walk_files(base: str) -> Iterator[str]:
    pending: List[str] = [base]
    while pending:
        current = pending.pop()
        with os.scandir(current) as entries:
            for entry in entries:
                if entry.is_dir(follow_symlinks=False):
                    pending.append(entry.path)
                else:
                    yield entry.path


@dataclass
class Archive:
    """A tar.gz archive of the files below ``base_path``.

    ``files`` lists absolute paths to include and takes priority over
    ``ignore``, a gitignore style text of paths to leave out. With neither
    set every file is archived. ``write_limit`` caps the write speed in MiB
    per second; zero means unlimited.
    """

    base_path: str
    ignore: str = ""
    files: Sequence[str] = ()
    write_limit: float = 0

    def _selector(self) -> Callable[[str, str], bool]:
        if not self.files and self.ignore:
            matcher = GitIgnore(self.ignore.split("\n"))
            return lambda path, relative: not matcher.matches_path(relative)
        if self.files:
            files = list(self.files)
            return lambda path, relative: any(
                path == f or path.startswith(f) for f in files
            )
        return lambda path, relative: True

    def _relative(self, path: str) -> str:
        prefix = self.base_path + os.sep
        relative = path[len(prefix):] if path.startswith(prefix) else path
        return relative.replace(os.sep, "/")

    def create(self, dst: str) -> None:
        """Write the archive to ``dst``, replacing any existing file."""
        limit = int(self.write_limit * 1024 * 1024)
        include = self._selector()
        descriptor = os.open(dst, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with open(descriptor, "wb") as raw:
            sink = _RateLimitedWriter(raw, limit) if limit > 0 else raw
            with gzip.GzipFile(fileobj=sink, mode="wb", compresslevel=1) as compressed:
                with tarfile.open(fileobj=compressed, mode="w") as tar:
                    for path in _walk_files(self.base_path):
                        relative = self._relative(path)
                        if include(path, relative):
                            self._add(tar, path, relative)

    def _add(self, tar: tarfile.TarFile, path: str, relative: str) -> None:
        try:
            info = os.lstat(path)
        except FileNotFoundError:
            return
        except OSError as exc:
            raise OSError(f"failed executing os.Lstat on '{relative}': {exc}") from exc

        mode = info.st_mode
        member = tarfile.TarInfo(relative)
        member.mode = stat.S_IMODE(mode)
        member.uid = info.st_uid
        member.gid = info.st_gid
        member.mtime = int(info.st_mtime)

        if stat.S_ISSOCK(mode):
            return
        if stat.S_ISLNK(mode):
            try:
                target = os.readlink(path)
            except FileNotFoundError:
                return
            except OSError as exc:
                log.warning(
                    "failed reading symlink for target path; skipping... (path=%s): %s",
                    relative,
                    exc,
                )
                return
            member.type = tarfile.SYMTYPE
            member.linkname = target.replace(os.sep, "/")
            tar.addfile(member)
            return
        if stat.S_ISFIFO(mode):
            member.type = tarfile.FIFOTYPE
        elif stat.S_ISCHR(mode) or stat.S_ISBLK(mode):
            member.type = tarfile.CHRTYPE if stat.S_ISCHR(mode) else tarfile.BLKTYPE
            member.devmajor = os.major(info.st_rdev)
            member.devminor = os.minor(info.st_rdev)
        elif stat.S_ISREG(mode):
            member.type = tarfile.REGTYPE
            member.size = info.st_size
        else:
            return

        if member.size < 1:
            tar.addfile(member)
            return

        try:
            handle = open(path, "rb")
        except FileNotFoundError:
            return
        except OSError as exc:
            raise OSError(f"failed to open '{relative}' for copying: {exc}") from exc
        with handle:
            try:
                tar.addfile(member, handle)
            except OSError as exc:
                raise OSError(f"failed to copy '{relative}' to archive: {exc}") from exc