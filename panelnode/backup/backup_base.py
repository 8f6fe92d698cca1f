"""Common behaviour of server backups."""

from __future__ import annotations

import enum
import hashlib
import logging
import os
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import datetime
from typing import Any, BinaryIO, Callable, Dict, Optional

log = logging.getLogger(__name__)

_CHUNK = 4096

RestoreCallback = Callable[[str, BinaryIO, int, datetime, datetime], None]


class BackupError(Exception):
    """Raised when a backup cannot be created, found or inspected."""


class AdapterType(str, enum.Enum):
    """Where a backup is stored."""

    LOCAL = "wings"
    S3 = "s3"


@dataclass
class ArchiveDetails:
    """Checksum and size of a generated backup archive."""

    checksum: str
    checksum_type: str
    size: int

    def to_request(self, successful: bool) -> Dict[str, Any]:
        """Return the payload reporting this backup to the panel."""
        return {
            "checksum": self.checksum,
            "checksum_type": self.checksum_type,
            "size": self.size,
            "successful": successful,
        }


class Backup:
    """A backup archive identified by its UUID and kept in a directory."""

    def __init__(
        self,
        uuid: str,
        ignore: str,
        backup_directory: str,
        adapter: AdapterType = AdapterType.LOCAL,
    ) -> None:
        self.uuid = uuid
        self.ignore = ignore
        self.backup_directory = os.fspath(backup_directory)
        self.adapter = AdapterType(adapter)
        self.log_context: Dict[str, Any] = {}
        self.write_limit: float = 0

    def identifier(self) -> str:
        """Return the UUID of this backup."""
        return self.uuid

    def path(self) -> str:
        """Return where the archive for this backup is written."""
        return os.path.join(self.backup_directory, self.identifier() + ".tar.gz")

    def size(self) -> int:
        """Return the size in bytes of the archive on disk."""
        return os.stat(self.path()).st_size

    def checksum(self) -> bytes:
        """Return the SHA1 digest of the archive on disk."""
        digest = hashlib.sha1()
        with open(self.path(), "rb") as handle:
            for chunk in iter(lambda: handle.read(_CHUNK), b""):
                digest.update(chunk)
        return digest.digest()

    def details(self) -> ArchiveDetails:
        """Return the checksum and size of the archive, computed concurrently."""
        with ThreadPoolExecutor(max_workers=2) as executor:
            checksum = executor.submit(self.checksum)
            size = executor.submit(self.size)
            return ArchiveDetails(
                checksum=checksum.result().hex(),
                checksum_type="sha1",
                size=size.result(),
            )

    def with_log_context(self, context: Optional[Dict[str, Any]]) -> None:
        """Attach extra fields to the log output of this backup."""
        self.log_context = dict(context or {})

    def _log(self) -> logging.LoggerAdapter:
        extra = {"backup": self.identifier(), "adapter": self.adapter.value}
        extra.update(self.log_context)
        return logging.LoggerAdapter(log, extra)