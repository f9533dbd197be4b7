"""Mount table parsing and device/mountpoint lookups.

Both the rich ``/proc/self/mountinfo`` layout and the legacy two-column
``/etc/mtab`` layout are understood. Lookups scan the table in file order and
the first matching line wins, so a device mounted in several places reports
the earliest listed mountpoint.
"""

from __future__ import annotations

import os
import re
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Iterator, List, Optional

from blkinfo.sources.files import read_lines
from blkinfo.utils.errors import InvalidStateError, NotFoundError
from blkinfo.utils.logging import get_logger

logger = get_logger(__name__)

MOUNTINFO_SEPARATOR = " - "
MOUNTINFO_FORMAT = "mountinfo"
MTAB_FORMAT = "mtab"

_OCTAL_ESCAPE = re.compile(r"\\([0-3][0-7]{2})")


@dataclass(frozen=True)
class MountRecord:
    """One mount table line. Fields missing from the source format are empty."""

    source: str = ""
    mountpoint: str = ""
    filesystem_type: str = ""
    mount_options: List[str] = field(default_factory=list)
    mount_id: str = ""
    parent_id: str = ""
    major_minor: str = ""
    root: str = ""
    optional_fields: List[str] = field(default_factory=list)
    super_options: List[str] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.source and not self.mountpoint

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def unescape_octals(value: str) -> str:
    """Decode the kernel's ``\\NNN`` escapes (space, tab, newline, backslash)."""
    return _OCTAL_ESCAPE.sub(lambda m: chr(int(m.group(1), 8)), value)


def _split_options(raw: str) -> List[str]:
    return raw.split(",") if raw else []


def parse_mountinfo_line(line: str) -> MountRecord:
    """Parse one ``/proc/<pid>/mountinfo`` line.

    Layout (see Documentation/filesystems/proc.rst)::

        36 35 98:0 /mnt1 /mnt/parent rw,noatime master:1 - ext3 /dev/root rw,errors=continue
        (1)(2)(3)   (4)   (5)         (6)       (7)      (8) (9)   (10)      (11)
    """
    before, sep, after = line.partition(MOUNTINFO_SEPARATOR)
    if not sep:
        raise InvalidStateError(f"mountinfo line has no ' - ' separator: {line!r}")

    head = before.split()
    tail = after.split()
    if len(head) < 6 or len(tail) < 2:
        raise InvalidStateError(f"mountinfo line has too few fields: {line!r}")

    return MountRecord(
        source=unescape_octals(tail[1]),
        mountpoint=unescape_octals(head[4]),
        filesystem_type=tail[0],
        mount_options=_split_options(head[5]),
        mount_id=head[0],
        parent_id=head[1],
        major_minor=head[2],
        root=unescape_octals(head[3]),
        optional_fields=head[6:],
        super_options=_split_options(tail[2]) if len(tail) > 2 else [],
    )


def parse_mtab_line(line: str) -> MountRecord:
    """Parse one fstab-style line (``/etc/mtab``, ``/proc/mounts``)."""
    fields = line.split()
    if len(fields) < 2:
        raise InvalidStateError(f"mtab line has too few fields: {line!r}")

    return MountRecord(
        source=unescape_octals(fields[0]),
        mountpoint=unescape_octals(fields[1]),
        filesystem_type=fields[2] if len(fields) > 2 else "",
        mount_options=_split_options(fields[3]) if len(fields) > 3 else [],
    )


def detect_format(path: str) -> str:
    if os.path.basename(path).endswith(MOUNTINFO_FORMAT):
        return MOUNTINFO_FORMAT
    return MTAB_FORMAT


class MountTable:
    """Live view over a mount table file; every call re-reads the file."""

    def __init__(self, path: str, fmt: Optional[str] = None, dev_root: str = "/dev"):
        self.path = path
        self.fmt = fmt or detect_format(path)
        if self.fmt not in (MOUNTINFO_FORMAT, MTAB_FORMAT):
            raise ValueError(f"Unknown mount table format '{self.fmt}'")
        self.dev_root = dev_root

    def load(self) -> List[MountRecord]:
        parser = parse_mountinfo_line if self.fmt == MOUNTINFO_FORMAT else parse_mtab_line
        records = [parser(line) for line in read_lines(self.path) if line.strip()]
        logger.debug(
            "mount_table_loaded path=%s format=%s records=%d", self.path, self.fmt, len(records)
        )
        return records

    def _is_device_source(self, source: str) -> bool:
        root = self.dev_root.rstrip("/")
        return source == root or source.startswith(root + "/")

    def _iter_matches(self, device_path: str) -> Iterator[MountRecord]:
        for record in self.load():
            if not self._is_device_source(record.source):
                continue
            try:
                real_source = os.path.realpath(record.source, strict=True)
            except FileNotFoundError as exc:
                raise NotFoundError(
                    f"mount source {record.source} listed in {self.path} not found"
                ) from exc
            if real_source == device_path:
                yield record

    def find_record(self, device_path: str) -> MountRecord:
        """Return the first record mounting ``device_path``, or an empty record."""
        for record in self._iter_matches(device_path):
            logger.debug("device_mounted device=%s mountpoint=%s", device_path, record.mountpoint)
            return record
        logger.debug("device_not_mounted device=%s table=%s", device_path, self.path)
        return MountRecord()

    def find_mountpoint(self, device_path: str) -> str:
        return self.find_record(device_path).mountpoint

    def find_mountpoints(self, device_path: str) -> List[str]:
        """Return every mountpoint of ``device_path`` in table order."""
        return [record.mountpoint for record in self._iter_matches(device_path)]

    def find_device_path(self, mountpoint: str) -> str:
        for record in self.load():
            if record.mountpoint == mountpoint:
                return record.source
        raise NotFoundError(f"no mount table entry for {mountpoint} in {self.path}")
