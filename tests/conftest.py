import logging
import os
from pathlib import Path

import pytest

from blkinfo.utils.config import HostPaths


UBUNTU_OS_RELEASE = (
    'NAME="Ubuntu"\n'
    'VERSION="18.04.3 LTS (Bionic Beaver)"\n'
    "ID=ubuntu\n"
    "ID_LIKE=debian\n"
    'PRETTY_NAME="Ubuntu 18.04.3 LTS"\n'
    'VERSION_ID="18.04"\n'
    "# trailing comment\n"
    "\n"
)


def pytest_addoption(parser):
    parser.addoption("--log-debug", action="store_true", help="Enable debug logging")


@pytest.fixture(scope="session", autouse=True)
def setup_logging(request):
    """Ensure debug logging is correctly applied."""
    log_debug_enabled = request.config.getoption("--log-debug", default=False)
    log_level = logging.DEBUG if log_debug_enabled else logging.INFO

    # Reset any existing handlers (important for pytest)
    for handler in logging.root.handlers[:]:
        logging.root.removeHandler(handler)

    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
        handlers=[logging.StreamHandler()],
    )


def _write(path: Path, content: str = "") -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)
    return path


def _symlink(link: Path, target: str) -> Path:
    link.parent.mkdir(parents=True, exist_ok=True)
    os.symlink(target, link)
    return link


def build_fake_host(root: Path) -> HostPaths:
    """Lay out a miniature /dev, /sys, /run/udev, /proc and /etc under root.

    - sda: whole disk with partitions sda1 (mounted twice, has os-release)
      and sda2 (unmounted, backing dm-0)
    - dm-0: device-mapper volume mounted via /dev/mapper/vg-data, no os-release
    - sdb: whole disk without a udev record
    """
    paths = HostPaths.under(root)
    dev = Path(paths.dev)
    block = Path(paths.sysfs_block)
    udev = Path(paths.udev_data)

    for name in ("sda", "sda1", "sda2", "sdb", "dm-0"):
        _write(dev / name)
    _symlink(dev / "disk" / "by-uuid" / "0b3c-1111", "../../sda1")
    _symlink(dev / "mapper" / "vg-data", "../dm-0")

    # /sys/block entries are symlinks into /sys/devices
    sda_real = root / "sys" / "devices" / "pci0000:00" / "block" / "sda"
    _write(sda_real / "dev", "8:0\n")
    _write(sda_real / "uevent", "MAJOR=8\nMINOR=0\nDEVNAME=sda\nDEVTYPE=disk\n")
    (sda_real / "queue").mkdir()
    _write(sda_real / "sda1" / "dev", "8:1\n")
    _write(sda_real / "sda1" / "uevent", "MAJOR=8\nMINOR=1\nDEVNAME=sda1\nDEVTYPE=partition\n")
    _write(sda_real / "sda2" / "dev", "8:2\n")
    _write(sda_real / "sda2" / "uevent", "MAJOR=8\nMINOR=2\nDEVNAME=sda2\nDEVTYPE=partition\n")
    _write(sda_real / "sda2" / "holders" / "dm-0")
    _symlink(block / "sda", str(sda_real))

    sdb_real = root / "sys" / "devices" / "pci0000:00" / "block" / "sdb"
    _write(sdb_real / "dev", "8:16\n")
    _write(sdb_real / "uevent", "MAJOR=8\nMINOR=16\nDEVNAME=sdb\n")
    _symlink(block / "sdb", str(sdb_real))

    dm_real = root / "sys" / "devices" / "virtual" / "block" / "dm-0"
    _write(dm_real / "dev", "253:0\n")
    _write(dm_real / "uevent", "MAJOR=253\nMINOR=0\nDEVNAME=dm-0\n")
    _write(dm_real / "slaves" / "sda2")
    _symlink(block / "dm-0", str(dm_real))

    _write(
        udev / "b8:0",
        "S:disk/by-id/ata-DISK0\n"
        "E:ID_PART_TABLE_TYPE=dos\n"
        "E:ID_PART_TABLE_UUID=8c7d6e5f\n",
    )
    _write(
        udev / "b8:1",
        "S:disk/by-uuid/0b3c-1111\n"
        "S:disk/by-id/ata-DISK0-part1\n"
        "I:1843277\n"
        'E:ID_FS_UUID="0b3c-1111"\n'
        "E:ID_FS_TYPE=ext4\n"
        "E:ID_FS_LABEL=cloudimg-rootfs\n"
        "E:ID_PART_TABLE_TYPE=dos\n"
        "E:ID_PART_TABLE_UUID=8c7d6e5f\n"
        "E:ID_PART_ENTRY_SCHEME=dos\n"
        "E:ID_PART_ENTRY_TYPE=0x83\n"
        "E:ID_PART_ENTRY_NUMBER=1\n"
        "E:ID_SOMETHING_NEW=future\n"
        "G:systemd\n",
    )
    _write(udev / "b8:2", "E:ID_FS_TYPE=LVM2_member\nE:ID_PART_ENTRY_NUMBER=2\n")
    _write(
        udev / "b253:0",
        "S:mapper/vg-data\n"
        "E:ID_FS_UUID=9f9f-2222\n"
        "E:ID_FS_TYPE=xfs\n"
        "E:DM_NAME=vg-data\n",
    )

    mnt_root = root / "mnt" / "root"
    mnt_alt = root / "mnt" / "alt"
    mnt_data = root / "mnt" / "data"
    for directory in (mnt_root, mnt_alt, mnt_data):
        directory.mkdir(parents=True)
    _write(mnt_root / "etc" / "os-release", UBUNTU_OS_RELEASE)

    _write(
        Path(paths.mountinfo),
        f"22 1 8:1 / {mnt_root} rw,relatime shared:1 - ext4 {dev}/sda1 rw,errors=remount-ro\n"
        "23 22 0:21 / /proc rw,nosuid,nodev,noexec,relatime shared:12 - proc proc rw\n"
        f"40 22 253:0 / {mnt_data} rw,relatime shared:30 - xfs {dev}/mapper/vg-data rw,attr2\n"
        f"41 22 8:1 / {mnt_alt} rw,relatime - ext4 {dev}/disk/by-uuid/0b3c-1111 rw\n",
    )
    _write(
        Path(paths.mtab),
        f"{dev}/sda1 {mnt_root} ext4 rw,relatime,errors=remount-ro 0 0\n"
        "proc /proc proc rw,nosuid,nodev,noexec,relatime 0 0\n"
        f"{dev}/mapper/vg-data {mnt_data} xfs rw,attr2 0 0\n",
    )
    return paths


@pytest.fixture
def host_root(tmp_path):
    root = tmp_path.resolve() / "host"
    root.mkdir()
    return root


@pytest.fixture
def host_paths(host_root):
    """HostPaths pointing at a populated fake host tree."""
    return build_fake_host(host_root)
