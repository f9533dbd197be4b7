import errno
import os

import pytest

from blkinfo.sources.paths import resolve_path
from blkinfo.utils.errors import InvalidStateError, NotFoundError


def test_resolve_path_follows_symlinks(host_paths):
    link = os.path.join(host_paths.dev, "disk", "by-uuid", "0b3c-1111")
    assert resolve_path(link) == os.path.join(host_paths.dev, "sda1")


def test_resolve_path_is_absolute_for_relative_input(host_paths, monkeypatch):
    monkeypatch.chdir(host_paths.dev)
    assert resolve_path("mapper/vg-data") == os.path.join(host_paths.dev, "dm-0")


def test_resolve_path_missing_segment(host_paths):
    with pytest.raises(NotFoundError):
        resolve_path(os.path.join(host_paths.dev, "nope", "sda1"))


def test_resolve_path_dangling_symlink(tmp_path):
    link = tmp_path / "dangling"
    os.symlink(tmp_path / "gone", link)
    with pytest.raises(NotFoundError):
        resolve_path(str(link))


def test_resolve_path_requires_a_path():
    with pytest.raises(InvalidStateError, match="a path is not given"):
        resolve_path("")


def test_resolve_path_through_regular_file(tmp_path):
    regular = tmp_path / "passwd"
    regular.write_text("root:x:0:0\n")
    with pytest.raises(NotFoundError):
        resolve_path(str(regular / "x"))


def test_resolve_path_symlink_loop(tmp_path):
    os.symlink(tmp_path / "b", tmp_path / "a")
    os.symlink(tmp_path / "a", tmp_path / "b")
    with pytest.raises(OSError) as excinfo:
        resolve_path(str(tmp_path / "a"))
    assert excinfo.value.errno == errno.ELOOP
