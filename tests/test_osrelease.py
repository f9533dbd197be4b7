import pytest

from blkinfo.sources.osrelease import OsReleaseReader, parse_os_release
from blkinfo.utils.errors import InvalidStateError, NotFoundError


def test_parse_os_release_strips_quotes():
    assert parse_os_release('NAME="Ubuntu"\nVERSION_ID="18.04"\n') == {
        "NAME": "Ubuntu",
        "VERSION_ID": "18.04",
    }


def test_parse_os_release_skips_blanks_and_comments():
    text = "# header\n\nID=debian\n   \n  # indented comment\nID_LIKE='rhel fedora'\n"
    assert parse_os_release(text) == {"ID": "debian", "ID_LIKE": "rhel fedora"}


def test_parse_os_release_keeps_equals_in_value():
    assert parse_os_release('HOME_URL="https://x.org/?a=b"') == {
        "HOME_URL": "https://x.org/?a=b"
    }


def test_parse_os_release_rejects_lines_without_assignment():
    with pytest.raises(InvalidStateError):
        parse_os_release("NAME=Ubuntu\nnot an assignment\n")


def test_path_for():
    reader = OsReleaseReader()
    assert reader.path_for("") == ""
    assert reader.path_for("/mnt/root") == "/mnt/root/etc/os-release"


def test_read_unmounted_is_empty():
    assert OsReleaseReader().read("") == {}


def test_read_without_os_release_file_is_empty(tmp_path):
    assert OsReleaseReader().read(str(tmp_path)) == {}


def test_read_mounted_root(host_paths, host_root):
    release = OsReleaseReader().read(str(host_root / "mnt" / "root"))
    assert release["NAME"] == "Ubuntu"
    assert release["VERSION_ID"] == "18.04"
    assert release["ID"] == "ubuntu"
    assert release["PRETTY_NAME"] == "Ubuntu 18.04.3 LTS"


def test_read_directory_is_invalid_state(tmp_path):
    (tmp_path / "etc" / "os-release").mkdir(parents=True)
    with pytest.raises(InvalidStateError):
        OsReleaseReader().read(str(tmp_path))


def test_read_mounted_requires_mountpoint():
    with pytest.raises(NotFoundError):
        OsReleaseReader().read_mounted("")


def test_read_mounted_without_file_is_empty(tmp_path):
    assert OsReleaseReader().read_mounted(str(tmp_path)) == {}
