from .files import list_names, read_lines, read_text, trim_quotes
from .paths import resolve_path
from .mounts import (
    MountRecord,
    MountTable,
    parse_mountinfo_line,
    parse_mtab_line,
    unescape_octals,
)
from .sysfs import SysfsInfo, SysfsLocation, SysfsLocator
from .udev import PartitionEntry, PartitionTable, UdevReader, UdevRecord, parse_udev_lines
from .osrelease import OsReleaseReader, parse_os_release

__all__ = [
    "list_names",
    "read_lines",
    "read_text",
    "trim_quotes",
    "resolve_path",
    "MountRecord",
    "MountTable",
    "parse_mountinfo_line",
    "parse_mtab_line",
    "unescape_octals",
    "SysfsInfo",
    "SysfsLocation",
    "SysfsLocator",
    "PartitionEntry",
    "PartitionTable",
    "UdevReader",
    "UdevRecord",
    "parse_udev_lines",
    "OsReleaseReader",
    "parse_os_release",
]
