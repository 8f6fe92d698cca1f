"""Resolution of user supplied paths inside a server's data directory."""

from __future__ import annotations

import os
import posixpath
from concurrent.futures import ThreadPoolExecutor
from typing import Iterable, List

from .fs_errors import new_bad_path_resolution


def _clean(p: str) -> str:
    if not p:
        return "."
    cleaned = posixpath.normpath(p)
    if cleaned.startswith("//"):
        cleaned = "/" + cleaned.lstrip("/")
    return cleaned


def _join(*parts: str) -> str:
    joined = "/".join(part for part in parts if part)
    return _clean(joined) if joined else ""


def _dir(p: str) -> str:
    return _clean(posixpath.dirname(p))


def _eval_symlinks(p: str) -> str:
    return os.path.realpath(p, strict=True)


class PathResolver:
    """Turns requested paths into absolute paths confined to a root directory."""

    def __init__(self, root: str) -> None:
        self.root = os.fspath(root)

    def unsafe_file_path(self, p: str) -> str:
        """Join the path onto the root and clean it, without any safety checks."""
        trimmed = p[len(self.root):] if self.root and p.startswith(self.root) else p
        return _clean(_join(self.root, trimmed))

    def is_in_data_directory(self, p: str) -> bool:
        """Return True if the path string lies lexically within the root."""
        return (p.removesuffix("/") + "/").startswith(self.root.removesuffix("/") + "/")

    def safe_path(self, p: str) -> str:
        """Resolve ``p`` within the root, following symlinks.

        Raises a path resolution FilesystemError if the result would escape
        the root directory.
        """
        resolved = self.unsafe_file_path(p)
        nearest = ""
        evaluated = ""
        try:
            evaluated = _eval_symlinks(resolved)
        except FileNotFoundError:
            parts = _dir(resolved).split("/")
            for k in range(len(parts)):
                attempt = "/".join(parts[: len(parts) - k])
                if not self.is_in_data_directory(attempt):
                    break
                try:
                    nearest = _eval_symlinks(attempt)
                except OSError:
                    continue
                break
        except OSError as exc:
            raise OSError(
                exc.errno,
                f"server/filesystem: failed to evaluate symlink: {exc.strerror}",
                exc.filename,
            ) from exc

        if nearest:
            if not self.is_in_data_directory(nearest):
                raise new_bad_path_resolution(p, nearest)
            return resolved

        if evaluated and self.is_in_data_directory(evaluated):
            return evaluated

        raise new_bad_path_resolution(p, resolved)

    def parallel_safe_path(self, paths: Iterable[str]) -> List[str]:
        """Resolve several paths concurrently, raising the first failure."""
        paths = list(paths)
        if not paths:
            return []
        with ThreadPoolExecutor() as executor:
            return list(executor.map(self.safe_path, paths))