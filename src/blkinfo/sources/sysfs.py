"""Locate a device node inside the sysfs block tree.

``/sys/block`` only lists whole disks (and virtual devices such as ``dm-0``);
partitions live one level down, e.g. ``/sys/block/sda/sda1``. Whether a
device is a partition is decided by which block entry's name is a prefix of
the device name. Names where one disk is a literal prefix of another
(``sda`` and ``sdab``) are ambiguous under this rule; the kernel naming scheme
makes this rare and the behaviour is kept as is.
"""

from __future__ import annotations

import os
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List

from blkinfo.sources.files import list_names, read_lines, read_text
from blkinfo.utils.errors import NotFoundError
from blkinfo.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class SysfsLocation:
    sys_path: str
    resolved_sys_path: str
    parent_path: str = ""
    child_paths: List[str] = field(default_factory=list)

    @property
    def is_partition(self) -> bool:
        return bool(self.parent_path)


@dataclass(frozen=True)
class SysfsInfo:
    """Per-device sysfs facts.

    ``slaves`` and ``holders`` describe block-layer stacking:
    ``/sys/block/dm-0/slaves/sda`` and ``/sys/block/sda/holders/dm-0``.
    """

    uevent: List[str] = field(default_factory=list)
    slaves: List[str] = field(default_factory=list)
    holders: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class SysfsLocator:
    def __init__(self, block_root: str = "/sys/block", dev_root: str = "/dev"):
        self.block_root = block_root
        self.dev_root = dev_root

    def _dev_path(self, name: str) -> str:
        return os.path.join(self.dev_root, name)

    def locate(self, canonical_path: str) -> SysfsLocation:
        """Map a resolved device node to its sysfs directory and relatives."""
        dev_name = os.path.basename(canonical_path)

        try:
            entries = sorted(os.listdir(self.block_root))
        except FileNotFoundError as exc:
            raise NotFoundError(f"{self.block_root} not found") from exc

        for entry in entries:
            if not dev_name.startswith(entry):
                continue

            if entry == dev_name:
                # whole disk, e.g. /sys/block/sda
                sys_path = os.path.join(self.block_root, entry)
                parent_path = ""
                child_paths = [
                    self._dev_path(name)
                    for name in list_names(sys_path)
                    if name.startswith(dev_name)
                ]
            else:
                # partition, e.g. /sys/block/sda/sda1
                sys_path = os.path.join(self.block_root, entry, dev_name)
                parent_path = self._dev_path(entry)
                child_paths = []

            try:
                resolved_sys_path = os.path.realpath(sys_path, strict=True)
            except FileNotFoundError as exc:
                raise NotFoundError(f"{sys_path} not found") from exc

            logger.debug(
                "sysfs_located device=%s sys_path=%s parent=%s children=%s",
                canonical_path,
                sys_path,
                parent_path,
                child_paths,
            )
            return SysfsLocation(
                sys_path=sys_path,
                resolved_sys_path=resolved_sys_path,
                parent_path=parent_path,
                child_paths=child_paths,
            )

        raise NotFoundError(
            f"no entry under {self.block_root} matches device {dev_name}"
        )

    def read_uevent(self, sys_path: str) -> List[str]:
        return read_lines(os.path.join(sys_path, "uevent"))

    def read_major_minor(self, sys_path: str) -> str:
        """Return the ``MAJOR:MINOR`` string from the device's ``dev`` file."""
        return read_text(os.path.join(sys_path, "dev"))

    def list_names(self, directory: str) -> List[str]:
        return list_names(directory)

    def topology(self, sys_path: str) -> SysfsInfo:
        return SysfsInfo(
            uevent=self.read_uevent(sys_path),
            slaves=self.list_names(os.path.join(sys_path, "slaves")),
            holders=self.list_names(os.path.join(sys_path, "holders")),
        )
