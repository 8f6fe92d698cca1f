"""Container mounts for a server instance."""

from __future__ import annotations

import logging
import posixpath
from dataclasses import dataclass
from typing import Iterable, List

log = logging.getLogger(__name__)

CONTAINER_HOME = "/home/container"


@dataclass(frozen=True)
class Mount:
    """A host path mounted into the server's container."""

    source: str
    target: str
    read_only: bool = False
    default: bool = False


def _clean(path: str) -> str:
    return posixpath.normpath(path) if path else "."


def custom_mounts(mounts: Iterable[Mount], allowed: Iterable[str]) -> List[Mount]:
    """Return the cleaned custom mounts whose source lies in an allowed location.

    Mounts outside every allowed location are skipped with a warning.
    """
    allowed_paths = [_clean(a) for a in allowed]
    result: List[Mount] = []
    for mount in mounts:
        source = _clean(mount.source)
        target = _clean(mount.target)
        if any(source.startswith(a) for a in allowed_paths):
            result.append(Mount(source=source, target=target, read_only=mount.read_only))
        else:
            log.warning(
                "skipping custom server mount, not in list of allowed mount points "
                "(source_path=%s target_path=%s read_only=%s)",
                source,
                target,
                mount.read_only,
            )
    return result


def default_mounts(root: str, custom: Iterable[Mount], allowed: Iterable[str]) -> List[Mount]:
    """Return the server data directory mount followed by the allowed custom mounts."""
    home = Mount(source=root, target=CONTAINER_HOME, read_only=False, default=True)
    return [home, *custom_mounts(custom, allowed)]