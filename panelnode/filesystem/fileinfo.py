"""File stat information with content based MIME type detection."""

from __future__ import annotations

import codecs
import json
import os
import stat as stat_module
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict

DIRECTORY_MIMETYPE = "inode/directory"
OCTET_STREAM = "application/octet-stream"

_READ_LIMIT = 3072

_SIGNATURES = (
    (b"\x1f\x8b", "application/gzip"),
    (b"PK\x03\x04", "application/zip"),
    (b"\x89PNG\r\n\x1a\n", "image/png"),
    (b"\xff\xd8\xff", "image/jpeg"),
    (b"GIF87a", "image/gif"),
    (b"GIF89a", "image/gif"),
    (b"%PDF-", "application/pdf"),
    (b"BZh", "application/x-bzip2"),
    (b"\xfd7zXZ\x00", "application/x-xz"),
    (b"7z\xbc\xaf\x27\x1c", "application/x-7z-compressed"),
    (b"Rar!\x1a\x07", "application/x-rar-compressed"),
    (b"\x7fELF", "application/x-elf"),
    (b"\x28\xb5\x2f\xfd", "application/zstd"),
)

_BINARY_BYTES = frozenset(
    list(range(0x00, 0x09)) + [0x0B] + list(range(0x0E, 0x1B)) + list(range(0x1C, 0x20))
)

_HTML_PREFIXES = ("<!doctype html", "<html", "<head", "<body", "<title", "<script")

_TYPE_LETTERS = "dalTLDpSugct?"
_PERM_LETTERS = "rwxrwxrwx"


def _mode_string(mode: int) -> str:
    fmt = stat_module.S_IFMT(mode)
    present = set()
    if fmt == stat_module.S_IFDIR:
        present.add("d")
    elif fmt == stat_module.S_IFLNK:
        present.add("L")
    elif fmt == stat_module.S_IFBLK:
        present.add("D")
    elif fmt == stat_module.S_IFCHR:
        present.update("Dc")
    elif fmt == stat_module.S_IFIFO:
        present.add("p")
    elif fmt == stat_module.S_IFSOCK:
        present.add("S")
    if mode & stat_module.S_ISUID:
        present.add("u")
    if mode & stat_module.S_ISGID:
        present.add("g")
    if mode & stat_module.S_ISVTX:
        present.add("t")
    kind = "".join(letter for letter in _TYPE_LETTERS if letter in present) or "-"
    perms = "".join(
        letter if mode & (1 << (8 - index)) else "-" for index, letter in enumerate(_PERM_LETTERS)
    )
    return kind + perms


def _rfc3339(moment: datetime) -> str:
    text = moment.replace(microsecond=0).isoformat(timespec="seconds")
    if text.endswith("+00:00"):
        text = text[:-6] + "Z"
    return text


def _local(timestamp: float) -> datetime:
    return datetime.fromtimestamp(timestamp).astimezone()


def _is_utf8(raw: bytes, complete: bool) -> bool:
    decoder = codecs.getincrementaldecoder("utf-8")()
    try:
        decoder.decode(raw, final=complete)
    except UnicodeDecodeError:
        return False
    return True


def _sniff(raw: bytes, complete: bool) -> str:
    if not raw:
        return "text/plain"
    for magic, mime in _SIGNATURES:
        if raw.startswith(magic):
            return mime
    if raw[257:262] == b"ustar":
        return "application/x-tar"
    if any(byte in _BINARY_BYTES for byte in raw):
        return OCTET_STREAM
    if not _is_utf8(raw, complete):
        return "text/plain"

    head = raw.lstrip().lower()
    if head.startswith(b"<?xml"):
        return "text/xml; charset=utf-8"
    if any(head.startswith(prefix.encode()) for prefix in _HTML_PREFIXES):
        return "text/html; charset=utf-8"
    if complete and head[:1] in (b"{", b"["):
        try:
            json.loads(raw.decode("utf-8"))
        except ValueError:
            pass
        else:
            return "application/json"
    return "text/plain; charset=utf-8"


def detect_mimetype(path: "os.PathLike[str] | str") -> str:
    """Detect a file's MIME type from the first bytes of its content."""
    with open(path, "rb") as handle:
        raw = handle.read(_READ_LIMIT + 1)
    complete = len(raw) <= _READ_LIMIT
    return _sniff(raw[:_READ_LIMIT], complete)


@dataclass(frozen=True)
class Stat:
    """Stat information for a file or directory along with its MIME type."""

    name: str
    info: os.stat_result
    mimetype: str

    @property
    def mode(self) -> int:
        return self.info.st_mode

    @property
    def size(self) -> int:
        return self.info.st_size

    @property
    def is_dir(self) -> bool:
        return stat_module.S_ISDIR(self.info.st_mode)

    @property
    def mod_time(self) -> datetime:
        return _local(self.info.st_mtime)

    @property
    def mode_string(self) -> str:
        return _mode_string(self.info.st_mode)

    def ctime(self) -> datetime:
        """Return the creation (status change) time of the file."""
        if os.name == "nt":
            return self.mod_time
        return _local(self.info.st_ctime)

    def to_dict(self) -> Dict[str, Any]:
        """Return the representation sent to API consumers."""
        perm = self.info.st_mode & 0o777
        return {
            "name": self.name,
            "created": _rfc3339(self.ctime()),
            "modified": _rfc3339(self.mod_time),
            "mode": self.mode_string,
            "mode_bits": format(perm, "o"),
            "size": self.size,
            "directory": self.is_dir,
            "file": not self.is_dir,
            "symlink": bool(perm & stat_module.S_IFLNK),
            "mime": self.mimetype,
        }


def stat_path(path: "os.PathLike[str] | str") -> Stat:
    """Stat a path, following symlinks, and detect its MIME type."""
    path = os.fspath(path)
    info = os.stat(path)
    if stat_module.S_ISDIR(info.st_mode):
        mimetype = DIRECTORY_MIMETYPE
    else:
        mimetype = detect_mimetype(path)
    name = os.path.basename(os.path.normpath(path)) or path
    return Stat(name=name, info=info, mimetype=mimetype)