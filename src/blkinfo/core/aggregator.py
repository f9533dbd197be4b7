"""Correlate sysfs, udev, the mount table and os-release for one device."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from blkinfo.sources.mounts import MOUNTINFO_FORMAT, MTAB_FORMAT, MountRecord, MountTable
from blkinfo.sources.osrelease import OsReleaseReader
from blkinfo.sources.paths import resolve_path
from blkinfo.sources.sysfs import SysfsInfo, SysfsLocator
from blkinfo.sources.udev import UdevReader, UdevRecord
from blkinfo.utils.config import HostPaths
from blkinfo.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class DeviceInfo:
    path: str
    resolved_path: str
    parent_path: str
    child_paths: List[str]
    sys_path: str
    resolved_sys_path: str
    sys: SysfsInfo
    major_minor: str
    udev_data_path: str
    udev: UdevRecord
    mount_info_path: str
    mount_info: MountRecord = field(default_factory=MountRecord)
    os_release_path: str = ""
    os_release: Dict[str, str] = field(default_factory=dict)

    @property
    def mountpoint(self) -> str:
        return self.mount_info.mountpoint

    @property
    def udev_data(self) -> List[str]:
        return self.udev.raw

    def to_dict(self) -> Dict[str, Any]:
        """Return a JSON/YAML friendly mapping with every field present."""
        return {
            "path": self.path,
            "resolved_path": self.resolved_path,
            "parent_path": self.parent_path,
            "child_paths": list(self.child_paths),
            "sys_path": self.sys_path,
            "resolved_sys_path": self.resolved_sys_path,
            "sys": self.sys.to_dict(),
            "major_minor": self.major_minor,
            "udev_data_path": self.udev_data_path,
            "udev_data": list(self.udev_data),
            "udev": self.udev.to_dict(),
            "mount_info_path": self.mount_info_path,
            "mount_info": self.mount_info.to_dict(),
            "mountpoint": self.mountpoint,
            "os_release_path": self.os_release_path,
            "os_release": dict(self.os_release),
        }


class DeviceInfoAggregator:
    """Build a :class:`DeviceInfo` for a path.

    Steps run in a fixed order and the first failure aborts the build with
    the original exception. Nothing is cached: every call re-reads sysfs,
    the udev database, the mount table and os-release.
    """

    def __init__(self, paths: Optional[HostPaths] = None):
        self.paths = paths or HostPaths()
        self.sysfs = SysfsLocator(self.paths.sysfs_block, dev_root=self.paths.dev)
        self.udev = UdevReader(self.paths.udev_data, dev_root=self.paths.dev)
        self.mounts = MountTable(
            self.paths.mountinfo, fmt=MOUNTINFO_FORMAT, dev_root=self.paths.dev
        )
        self.os_release = OsReleaseReader()

    def build(self, path: str) -> DeviceInfo:
        resolved = resolve_path(path)

        location = self.sysfs.locate(resolved)
        topology = self.sysfs.topology(location.sys_path)
        major_minor = self.sysfs.read_major_minor(location.sys_path)

        udev = self.udev.read(major_minor)

        mount_info = self.mounts.find_record(resolved)

        os_release_path = self.os_release.path_for(mount_info.mountpoint)
        os_release = self.os_release.read(mount_info.mountpoint)

        logger.debug(
            "device_info_built path=%s resolved=%s major_minor=%s mountpoint=%s",
            path,
            resolved,
            major_minor,
            mount_info.mountpoint,
        )
        return DeviceInfo(
            path=str(path),
            resolved_path=resolved,
            parent_path=location.parent_path,
            child_paths=location.child_paths,
            sys_path=location.sys_path,
            resolved_sys_path=location.resolved_sys_path,
            sys=topology,
            major_minor=major_minor,
            udev_data_path=self.udev.data_path(major_minor),
            udev=udev,
            mount_info_path=self.mounts.path,
            mount_info=mount_info,
            os_release_path=os_release_path,
            os_release=os_release,
        )

    def mounted_os_release(self, path: str) -> Dict[str, str]:
        """Return the OS release of the filesystem on ``path``'s device.

        Fails with NotFoundError when the device is not mounted.
        """
        resolved = resolve_path(path)
        mountpoint = self.mounts.find_mountpoint(resolved)
        return self.os_release.read_mounted(mountpoint)

    def mountpoints(self, path: str) -> List[str]:
        """Return every mountpoint of ``path``'s device in mount table order."""
        return self.mounts.find_mountpoints(resolve_path(path))

    def device_for_mountpoint(self, mountpoint: str) -> str:
        """Return the mount source listed in mtab for ``mountpoint``."""
        mtab = MountTable(self.paths.mtab, fmt=MTAB_FORMAT, dev_root=self.paths.dev)
        return mtab.find_device_path(mountpoint)


def build_device_info(path: str, paths: Optional[HostPaths] = None) -> DeviceInfo:
    return DeviceInfoAggregator(paths).build(path)
