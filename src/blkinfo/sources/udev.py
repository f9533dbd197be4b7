"""Parse udev runtime database records (``/run/udev/data/b<MAJOR>:<MINOR>``).

Each line carries a one-letter type prefix::

    S:disk/by-uuid/0b3c...    symlink relative to /dev
    E:ID_FS_TYPE=ext4         property
    I:1843277                 initialisation timestamp (usec)
    G:systemd                 tag
"""

from __future__ import annotations

import os
from dataclasses import asdict, dataclass, field, fields
from typing import Any, Dict, Iterable, List

from blkinfo.sources.files import read_lines, trim_quotes
from blkinfo.utils.logging import get_logger

logger = get_logger(__name__)

PART_TABLE_PREFIX = "ID_PART_TABLE_"
PART_ENTRY_PREFIX = "ID_PART_ENTRY_"

_FS_FIELDS = {
    "ID_FS_UUID": "fs_uuid",
    "ID_FS_TYPE": "fs_type",
    "ID_FS_LABEL": "fs_label",
    "ID_FS_USAGE": "fs_usage",
    "ID_FS_VERSION": "fs_version",
}


@dataclass(frozen=True)
class PartitionTable:
    type: str = ""
    uuid: str = ""


@dataclass(frozen=True)
class PartitionEntry:
    scheme: str = ""
    uuid: str = ""
    type: str = ""
    number: str = ""
    name: str = ""
    flags: str = ""
    offset: str = ""
    size: str = ""
    disk: str = ""


@dataclass(frozen=True)
class UdevRecord:
    fs_uuid: str = ""
    fs_type: str = ""
    fs_label: str = ""
    fs_usage: str = ""
    fs_version: str = ""
    partition_table: PartitionTable = field(default_factory=PartitionTable)
    partition_entry: PartitionEntry = field(default_factory=PartitionEntry)
    aliases: List[str] = field(default_factory=list)
    properties: Dict[str, str] = field(default_factory=dict)
    tags: List[str] = field(default_factory=list)
    init_usec: str = ""
    raw: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _field_names(cls) -> set:
    return {f.name for f in fields(cls)}


def _sub_fields(properties: Dict[str, str], prefix: str, cls) -> Dict[str, str]:
    known = _field_names(cls)
    values = {}
    for key, value in properties.items():
        if not key.startswith(prefix):
            continue
        sub_key = key[len(prefix):].lower()
        if sub_key in known:
            values[sub_key] = value
    return values


def parse_udev_lines(lines: Iterable[str], dev_root: str = "/dev") -> UdevRecord:
    """Build a :class:`UdevRecord` from database lines.

    Properties the record has no named field for are kept in ``properties``
    so newer udev releases do not break parsing.
    """
    raw = list(lines)
    aliases: List[str] = []
    properties: Dict[str, str] = {}
    tags: List[str] = []
    init_usec = ""

    for line in raw:
        kind, sep, data = line.partition(":")
        if not sep:
            continue
        if kind == "S":
            aliases.append(os.path.join(dev_root, data))
        elif kind == "E":
            key, eq, value = data.partition("=")
            if not eq:
                logger.debug("udev_property_without_value line=%r", line)
                continue
            properties[key] = trim_quotes(value)
        elif kind in ("G", "Q"):
            tags.append(data)
        elif kind == "I":
            init_usec = data

    named = {attr: properties.get(key, "") for key, attr in _FS_FIELDS.items()}
    table = _sub_fields(properties, PART_TABLE_PREFIX, PartitionTable)
    entry = _sub_fields(properties, PART_ENTRY_PREFIX, PartitionEntry)

    return UdevRecord(
        partition_table=PartitionTable(**table),
        partition_entry=PartitionEntry(**entry),
        aliases=aliases,
        properties=properties,
        tags=tags,
        init_usec=init_usec,
        raw=raw,
        **named,
    )


class UdevReader:
    def __init__(self, data_dir: str = "/run/udev/data", dev_root: str = "/dev"):
        self.data_dir = data_dir
        self.dev_root = dev_root

    def data_path(self, major_minor: str) -> str:
        # "b" marks a block device record, "c" a character device.
        return os.path.join(self.data_dir, f"b{major_minor}")

    def read_lines(self, major_minor: str) -> List[str]:
        return read_lines(self.data_path(major_minor))

    def read(self, major_minor: str) -> UdevRecord:
        """Load the record for ``major_minor``; NotFoundError if udev has none yet."""
        record = parse_udev_lines(self.read_lines(major_minor), dev_root=self.dev_root)
        logger.debug(
            "udev_record_loaded major_minor=%s fs_type=%s aliases=%d",
            major_minor,
            record.fs_type,
            len(record.aliases),
        )
        return record
