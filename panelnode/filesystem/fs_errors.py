"""Error types raised by server filesystem operations."""

from __future__ import annotations

import enum
from typing import Iterator, Optional


class ErrorCode(str, enum.Enum):
    """Machine readable codes attached to filesystem errors."""

    IS_DIRECTORY = "E_ISDIR"
    DISK_SPACE = "E_NODISK"
    UNKNOWN_ARCHIVE = "E_UNKNFMT"
    PATH_RESOLUTION = "E_BADPATH"
    DENYLIST_FILE = "E_DENYLIST"
    UNKNOWN_ERROR = "E_UNKNOWN"


class FilesystemError(Exception):
    """An error raised by a server filesystem operation.

    ``err`` holds the underlying cause, if any. ``resolved`` is the final
    destination that triggered the error, and ``path`` the path as it was
    requested, which is set mostly for path resolution failures.
    """

    def __init__(
        self,
        code: ErrorCode,
        err: Optional[BaseException] = None,
        resolved: str = "",
        path: str = "",
    ) -> None:
        self.code = ErrorCode(code)
        self.err = err
        self.resolved = resolved
        self.path = path
        super().__init__(self.code.value)
        if err is not None:
            self.__cause__ = err

    def __str__(self) -> str:
        code = self.code
        if code is ErrorCode.IS_DIRECTORY:
            return f"filesystem: cannot perform action: [{self.resolved}] is a directory"
        if code is ErrorCode.DISK_SPACE:
            return "filesystem: not enough disk space"
        if code is ErrorCode.UNKNOWN_ARCHIVE:
            return "filesystem: unknown archive format"
        if code is ErrorCode.DENYLIST_FILE:
            resolved = self.resolved or "<empty>"
            return f"filesystem: file access prohibited: [{resolved}] is on the denylist"
        if code is ErrorCode.PATH_RESOLUTION:
            resolved = self.resolved or "<empty>"
            return (
                f"filesystem: server path [{self.path}] resolves to a location "
                f"outside the server root: {resolved}"
            )
        cause = "<nil>" if self.err is None else str(self.err)
        return f"filesystem: an error occurred: {cause}"


def _chain(err: Optional[BaseException]) -> Iterator[BaseException]:
    seen = set()
    while err is not None and id(err) not in seen:
        seen.add(id(err))
        yield err
        err = err.__cause__


def _find(err: Optional[BaseException]) -> Optional[FilesystemError]:
    return next((e for e in _chain(err) if isinstance(e, FilesystemError)), None)


def is_filesystem_error(err: Optional[BaseException]) -> bool:
    """Return True if ``err`` is, or was raised from, a FilesystemError."""
    return _find(err) is not None


def is_error_code(err: Optional[BaseException], code: ErrorCode) -> bool:
    """Return True if ``err`` carries a FilesystemError with the given code."""
    found = _find(err)
    return found is not None and found.code == code


def is_unknown_archive_format_error(err: Optional[BaseException]) -> bool:
    """Return True if the error reports an unrecognised archive format."""
    return err is not None and str(err).startswith("format ")


def new_filesystem_error(code: ErrorCode, err: Optional[BaseException] = None) -> FilesystemError:
    """Build a FilesystemError with the given code and optional cause."""
    return FilesystemError(code, err)


def new_bad_path_resolution(path: str, resolved: str) -> FilesystemError:
    """Build the error raised when a path resolves outside the server root."""
    return FilesystemError(ErrorCode.PATH_RESOLUTION, path=path, resolved=resolved)


def wrap_error(err: Optional[BaseException], resolved: str) -> Optional[BaseException]:
    """Wrap ``err`` as an unknown filesystem error unless it already is one."""
    if err is None or is_filesystem_error(err):
        return err
    return FilesystemError(ErrorCode.UNKNOWN_ERROR, err, resolved=resolved)