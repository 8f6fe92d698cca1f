import pytest

from panelnode.server.server_errors import (
    CrashTooFrequent,
    ServerDoesNotExist,
    ServerError,
    ServerIsInstalling,
    ServerIsRestoring,
    ServerIsRunning,
    ServerIsTransferring,
    ServerSuspended,
    is_server_does_not_exist_error,
    is_too_frequent_crash_error,
)


def test_crash_too_frequent_message():
    assert str(CrashTooFrequent()) == "server has crashed too soon after the last detected crash"


def test_server_does_not_exist_message():
    assert str(ServerDoesNotExist()) == "server does not exist on remote system"


def test_is_too_frequent_crash_error():
    assert is_too_frequent_crash_error(CrashTooFrequent()) is True
    assert is_too_frequent_crash_error(ServerDoesNotExist()) is False
    assert is_too_frequent_crash_error(None) is False
    assert is_too_frequent_crash_error(ValueError("x")) is False


def test_is_server_does_not_exist_error():
    assert is_server_does_not_exist_error(ServerDoesNotExist()) is True
    assert is_server_does_not_exist_error(CrashTooFrequent()) is False
    assert is_server_does_not_exist_error(None) is False


@pytest.mark.parametrize(
    "cls, message",
    [
        (ServerIsRunning, "server is running"),
        (ServerSuspended, "server is currently in a suspended state"),
        (ServerIsInstalling, "server is currently installing"),
        (ServerIsTransferring, "server is currently being transferred"),
        (ServerIsRestoring, "server is currently being restored"),
    ],
)
def test_state_errors(cls, message):
    error = cls()
    assert str(error) == message
    assert isinstance(error, ServerError)
    assert is_too_frequent_crash_error(error) is False
    assert is_server_does_not_exist_error(error) is False