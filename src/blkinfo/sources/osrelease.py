from __future__ import annotations

import os
from typing import Dict

from blkinfo.sources.files import read_text, trim_quotes
from blkinfo.utils.errors import InvalidStateError, NotFoundError
from blkinfo.utils.logging import get_logger

logger = get_logger(__name__)

OS_RELEASE_RELPATH = os.path.join("etc", "os-release")


def parse_os_release(text: str) -> Dict[str, str]:
    """Parse ``KEY=VALUE`` lines, skipping blanks and ``#`` comments."""
    release: Dict[str, str] = {}
    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        key, sep, value = line.partition("=")
        if not sep:
            raise InvalidStateError(f"unexpected os-release line {raw_line!r}")
        release[key.strip()] = trim_quotes(value.strip())
    return release


class OsReleaseReader:
    """Reads ``<mountpoint>/etc/os-release`` for a mounted filesystem."""

    def path_for(self, mountpoint: str) -> str:
        if not mountpoint:
            return ""
        return os.path.join(mountpoint, OS_RELEASE_RELPATH)

    def read(self, mountpoint: str) -> Dict[str, str]:
        """Return the OS release mapping, or {} when there is nothing to read.

        An unmounted device (empty mountpoint) and a filesystem without an
        os-release file are both valid states, not errors.
        """
        path = self.path_for(mountpoint)
        if not path:
            return {}
        if os.path.isdir(path):
            raise InvalidStateError(f"{path} is a directory, expected a file")
        try:
            text = read_text(path)
        except NotFoundError:
            logger.debug("os_release_absent path=%s", path)
            return {}
        return parse_os_release(text)

    def read_mounted(self, mountpoint: str) -> Dict[str, str]:
        """Like :meth:`read`, but the device must be mounted."""
        if not mountpoint:
            raise NotFoundError("device is not mounted; no os-release to read")
        return self.read(mountpoint)
