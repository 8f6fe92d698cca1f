import pytest

from panelnode.filesystem.fs_errors import (
    ErrorCode,
    FilesystemError,
    is_error_code,
    is_filesystem_error,
    is_unknown_archive_format_error,
    new_bad_path_resolution,
    new_filesystem_error,
    wrap_error,
)


def test_new_filesystem_error_without_cause():
    err = new_filesystem_error(ErrorCode.UNKNOWN_ERROR, None)
    assert isinstance(err, FilesystemError)
    assert err.code is ErrorCode.UNKNOWN_ERROR
    assert err.err is None
    assert err.__cause__ is None


def test_new_filesystem_error_wraps_underlying_cause():
    underlying = EOFError("eof")
    err = new_filesystem_error(ErrorCode.UNKNOWN_ERROR, underlying)
    assert err.err is underlying
    assert err.__cause__ is underlying


def test_bad_path_resolution_detects_itself():
    err = new_bad_path_resolution("foo", "bar")
    assert is_error_code(err, ErrorCode.PATH_RESOLUTION)
    assert str(err) == "filesystem: server path [foo] resolves to a location outside the server root: bar"
    assert not is_error_code(FilesystemError(ErrorCode.IS_DIRECTORY), ErrorCode.PATH_RESOLUTION)


def test_bad_path_resolution_without_destination():
    err = new_bad_path_resolution("foo", "")
    assert str(err) == "filesystem: server path [foo] resolves to a location outside the server root: <empty>"


def test_messages_for_each_code():
    assert str(FilesystemError(ErrorCode.DISK_SPACE)) == "filesystem: not enough disk space"
    assert str(FilesystemError(ErrorCode.UNKNOWN_ARCHIVE)) == "filesystem: unknown archive format"
    assert (
        str(FilesystemError(ErrorCode.IS_DIRECTORY, resolved="/x"))
        == "filesystem: cannot perform action: [/x] is a directory"
    )
    assert (
        str(FilesystemError(ErrorCode.DENYLIST_FILE))
        == "filesystem: file access prohibited: [<empty>] is on the denylist"
    )
    assert (
        str(FilesystemError(ErrorCode.UNKNOWN_ERROR, ValueError("boom")))
        == "filesystem: an error occurred: boom"
    )


def test_error_code_found_through_cause_chain():
    inner = new_bad_path_resolution("a", "b")
    try:
        try:
            raise inner
        except FilesystemError as exc:
            raise RuntimeError("outer") from exc
    except RuntimeError as outer:
        assert is_filesystem_error(outer)
        assert is_error_code(outer, ErrorCode.PATH_RESOLUTION)
        assert not is_error_code(outer, ErrorCode.DISK_SPACE)


def test_is_filesystem_error_on_plain_errors():
    assert not is_filesystem_error(None)
    assert not is_filesystem_error(ValueError("x"))
    assert not is_error_code(None, ErrorCode.DISK_SPACE)


@pytest.mark.parametrize(
    "err, expected",
    [
        (ValueError("format unrecognized by filename: foo.bin"), True),
        (ValueError("something else"), False),
        (None, False),
    ],
)
def test_unknown_archive_format_detection(err, expected):
    assert is_unknown_archive_format_error(err) is expected


def test_wrap_error_passes_none_and_filesystem_errors_through():
    assert wrap_error(None, "/x") is None
    existing = FilesystemError(ErrorCode.DISK_SPACE)
    assert wrap_error(existing, "/x") is existing


def test_wrap_error_wraps_other_errors():
    cause = OSError("disk gone")
    wrapped = wrap_error(cause, "/srv/archive.zip")
    assert isinstance(wrapped, FilesystemError)
    assert wrapped.code is ErrorCode.UNKNOWN_ERROR
    assert wrapped.err is cause
    assert wrapped.resolved == "/srv/archive.zip"