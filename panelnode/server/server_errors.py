"""Errors raised while managing a server instance."""

from __future__ import annotations

from typing import Optional


class ServerError(Exception):
    """Base class for errors raised by server operations."""


class ServerIsRunning(ServerError):
    """Raised when an action needs the server to be stopped."""

    def __init__(self) -> None:
        super().__init__("server is running")


class ServerSuspended(ServerError):
    """Raised when a suspended server is asked to start."""

    def __init__(self) -> None:
        super().__init__("server is currently in a suspended state")


class ServerIsInstalling(ServerError):
    """Raised when an action conflicts with a running installation."""

    def __init__(self) -> None:
        super().__init__("server is currently installing")


class ServerIsTransferring(ServerError):
    """Raised when an action conflicts with a running transfer."""

    def __init__(self) -> None:
        super().__init__("server is currently being transferred")


class ServerIsRestoring(ServerError):
    """Raised when an action conflicts with a running backup restore."""

    def __init__(self) -> None:
        super().__init__("server is currently being restored")


class CrashTooFrequent(ServerError):
    """Raised when a crash follows the previous one too closely to restart."""

    def __init__(self) -> None:
        super().__init__("server has crashed too soon after the last detected crash")


class ServerDoesNotExist(ServerError):
    """Raised when the panel does not know the server."""

    def __init__(self) -> None:
        super().__init__("server does not exist on remote system")


def is_too_frequent_crash_error(err: Optional[BaseException]) -> bool:
    """Return True if ``err`` reports a crash that came too soon after the last."""
    return isinstance(err, CrashTooFrequent)


def is_server_does_not_exist_error(err: Optional[BaseException]) -> bool:
    """Return True if ``err`` reports a server unknown to the panel."""
    return isinstance(err, ServerDoesNotExist)