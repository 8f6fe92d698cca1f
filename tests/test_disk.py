import os
import time

import pytest

from panelnode.filesystem.disk import DiskUsage
from panelnode.filesystem.fs_errors import ErrorCode, FilesystemError, is_error_code
from panelnode.filesystem.paths import PathResolver


@pytest.fixture
def root(tmp_path):
    base = os.path.join(os.path.realpath(tmp_path), "server")
    os.mkdir(base)
    return base


def _write(path, data):
    os.makedirs(os.path.dirname(path), exist_ok=True)
    with open(path, "wb") as handle:
        handle.write(data)


def test_directory_size_sums_nested_files(root):
    _write(os.path.join(root, "a.txt"), b"a" * 10)
    _write(os.path.join(root, "sub", "deep", "b.txt"), b"b" * 5)
    disk = DiskUsage(PathResolver(root))
    assert disk.directory_size("/") == 15
    assert disk.directory_size("sub") == 5


def test_directory_size_skips_symlinks_outside_root(root):
    _write(os.path.join(root, "a.txt"), b"a" * 10)
    outside = os.path.join(os.path.dirname(root), "outside.bin")
    _write(outside, b"x" * 4096)
    os.symlink(outside, os.path.join(root, "link.bin"))
    disk = DiskUsage(PathResolver(root))
    assert disk.directory_size("/") == 10


def test_directory_size_rejects_paths_outside_root(root):
    disk = DiskUsage(PathResolver(root))
    with pytest.raises(FilesystemError) as info:
        disk.directory_size("..")
    assert is_error_code(info.value, ErrorCode.PATH_RESOLUTION)


def test_zero_interval_disables_lookup(root):
    _write(os.path.join(root, "a.txt"), b"a" * 10)
    disk = DiskUsage(PathResolver(root), check_interval=0)
    assert disk.disk_usage(False) == 0
    assert disk.used == 0


def test_fresh_lookup_is_cached(root):
    _write(os.path.join(root, "a.txt"), b"a" * 10)
    disk = DiskUsage(PathResolver(root), check_interval=3600)
    assert disk.disk_usage(False) == 10
    _write(os.path.join(root, "b.txt"), b"b" * 20)
    assert disk.disk_usage(False) == 10
    assert disk.used == 10


def test_stale_lookup_updates_in_background(root):
    _write(os.path.join(root, "a.txt"), b"a" * 10)
    disk = DiskUsage(PathResolver(root), check_interval=3600)
    assert disk.disk_usage(True) in (0, 10)
    deadline = time.monotonic() + 5
    while disk.used != 10 and time.monotonic() < deadline:
        time.sleep(0.01)
    assert disk.used == 10


def test_unlimited_always_has_space(root):
    _write(os.path.join(root, "a.txt"), b"a" * 10)
    disk = DiskUsage(PathResolver(root), limit=0)
    assert disk.has_space_available(False) is True


def test_over_limit_has_no_space(root):
    _write(os.path.join(root, "a.txt"), b"a" * 10)
    disk = DiskUsage(PathResolver(root), limit=5)
    assert disk.has_space_available(False) is False
    with pytest.raises(FilesystemError) as info:
        disk.has_space_err(False)
    assert info.value.code is ErrorCode.DISK_SPACE
    assert str(info.value) == "filesystem: not enough disk space"


def test_within_limit_has_space(root):
    _write(os.path.join(root, "a.txt"), b"a" * 10)
    disk = DiskUsage(PathResolver(root), limit=10)
    assert disk.has_space_available(False) is True


def test_has_space_for(root):
    _write(os.path.join(root, "a.txt"), b"a" * 90)
    disk = DiskUsage(PathResolver(root), limit=100, check_interval=3600)
    assert disk.disk_usage(False) == 90
    disk.has_space_for(10)
    assert disk.used == 90
    with pytest.raises(FilesystemError) as info:
        disk.has_space_for(11)
    assert info.value.code is ErrorCode.DISK_SPACE


def test_has_space_for_unlimited_ignores_size(root):
    disk = DiskUsage(PathResolver(root), limit=0, exact=True)
    disk.used = 50
    disk.has_space_for(10**12)
    assert disk.used == 50


def test_add_disk_exact_never_goes_negative(root):
    disk = DiskUsage(PathResolver(root), exact=True)
    disk.used = 10
    assert disk.add_disk(-20) == 10
    assert disk.used == 0
    assert disk.add_disk(5) == 5
    assert disk.add_disk(-5) == 0


def test_lookup_failure_is_reported_and_tolerated(root):
    missing = os.path.join(root, "missing")
    disk = DiskUsage(PathResolver(missing), limit=10)
    with pytest.raises(FilesystemError):
        disk.disk_usage(False)
    assert disk.has_space_available(False) is True