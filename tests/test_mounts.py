from panelnode.server.mounts import Mount, custom_mounts, default_mounts

SOURCE = "/srv/data"
TARGET = "/mnt/data"


def test_default_mount_only():
    assert default_mounts("/var/lib/srv/abc", [], []) == [
        Mount(source="/var/lib/srv/abc", target="/home/container", read_only=False, default=True)
    ]


def test_allowed_custom_mount_is_cleaned():
    result = custom_mounts([Mount(SOURCE + "/", TARGET + "/", True)], ["/srv/"])
    assert result == [Mount(source=SOURCE, target=TARGET, read_only=True, default=False)]


def test_parent_references_are_resolved():
    result = custom_mounts([Mount(SOURCE + "/x/..", TARGET)], [SOURCE])
    assert [m.source for m in result] == [SOURCE]


def test_disallowed_mount_is_skipped():
    assert custom_mounts([Mount(SOURCE, TARGET)], ["/opt"]) == []


def test_no_allowed_locations_skips_everything():
    assert custom_mounts([Mount(SOURCE, TARGET)], []) == []


def test_prefix_match_on_allowed_location():
    result = custom_mounts([Mount(SOURCE + "base", TARGET)], [SOURCE])
    assert len(result) == 1
    assert result[0].source == SOURCE + "base"


def test_default_mounts_appends_custom():
    result = default_mounts("/root-dir", [Mount(SOURCE, TARGET)], [SOURCE])
    assert len(result) == 2
    assert result[0].default is True
    assert result[1] == Mount(source=SOURCE, target=TARGET)
    assert result[1].default is False