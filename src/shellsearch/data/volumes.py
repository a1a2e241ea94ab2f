"""Volume monitor with drive, volume and mount relationships, read from the mount table."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath

logger = logging.getLogger(__name__)

MOUNTINFO_PATH = Path("/proc/self/mountinfo")

_USER_MOUNT_ROOTS = ("/media/", "/run/media/", "/mnt/")
_NETWORK_FS_TYPES = frozenset(
    {"nfs", "nfs4", "cifs", "smb3", "smbfs", "9p", "fuse.sshfs", "fuse.rclone"}
)
_PSEUDO_FS_TYPES = frozenset(
    {
        "autofs",
        "binfmt_misc",
        "bpf",
        "cgroup",
        "cgroup2",
        "configfs",
        "debugfs",
        "devpts",
        "devtmpfs",
        "efivarfs",
        "fuse.gvfsd-fuse",
        "fuse.portal",
        "fusectl",
        "hugetlbfs",
        "mqueue",
        "nsfs",
        "proc",
        "pstore",
        "ramfs",
        "rpc_pipefs",
        "securityfs",
        "squashfs",
        "sysfs",
        "tmpfs",
        "tracefs",
    }
)
_OCTAL_ESCAPE = re.compile(r"\\([0-7]{3})")
_PARTITIONED_DISK = re.compile(r"^((?:nvme\d+n\d+)|(?:mmcblk\d+)|(?:loop\d+))(?:p\d+)?$")


@dataclass(frozen=True, slots=True)
class MountEntry:
    """One line of the kernel mount table."""

    mount_point: str
    fs_type: str
    source: str

    @classmethod
    def from_line(cls, line: str) -> MountEntry | None:
        """Parse a ``/proc/self/mountinfo`` line; malformed lines yield None."""
        left, sep, right = line.partition(" - ")
        fields = left.split()
        tail = right.split()
        if not sep or len(fields) < 5 or len(tail) < 2:
            return None
        return cls(
            mount_point=_unescape(fields[4]),
            fs_type=tail[0],
            source=_unescape(tail[1]),
        )

    @property
    def user_visible(self) -> bool:
        if self.fs_type in _PSEUDO_FS_TYPES:
            return False
        if self.fs_type in _NETWORK_FS_TYPES:
            return True
        return self.mount_point.startswith(_USER_MOUNT_ROOTS)

    @property
    def name(self) -> str:
        return PurePosixPath(self.mount_point).name or self.mount_point

    @property
    def location(self) -> str:
        return PurePosixPath(self.mount_point).as_uri()


@dataclass(eq=False)
class Mount:
    """A mounted filesystem."""

    name: str
    default_location: str
    shadowed: bool = False
    volume: Volume | None = None

    def get_volume(self) -> Volume | None:
        return self.volume


@dataclass(eq=False)
class Volume:
    """A volume, optionally on a drive and optionally mounted."""

    name: str
    drive: Drive | None = None
    mount: Mount | None = None

    def get_drive(self) -> Drive | None:
        return self.drive

    def get_mount(self) -> Mount | None:
        return self.mount


@dataclass(eq=False)
class Drive:
    """A connected drive holding volumes."""

    name: str
    volumes: list[Volume] = field(default_factory=list)

    def get_volumes(self) -> list[Volume]:
        return list(self.volumes)


class VolumeMonitor:
    """Holds the known drives, volumes and mounts and keeps their links consistent."""

    def __init__(self) -> None:
        self._drives: list[Drive] = []
        self._volumes: list[Volume] = []
        self._mounts: list[Mount] = []

    @classmethod
    def from_mountinfo(cls, path: Path = MOUNTINFO_PATH) -> VolumeMonitor:
        """Build a monitor from the user-visible entries of a mount table.

        Block-device mounts get a drive and a volume, network mounts a
        drive-less volume, and anything else a bare mount. A mount point
        listed twice keeps its first entry.
        """
        monitor = cls()
        try:
            text = path.read_text(encoding="utf-8", errors="surrogateescape")
        except OSError as exc:
            logger.info("Mount table unavailable at %s: %s", path, exc)
            return monitor

        seen: set[str] = set()
        for line in text.splitlines():
            entry = MountEntry.from_line(line)
            if entry is None or not entry.user_visible or entry.mount_point in seen:
                continue
            seen.add(entry.mount_point)
            monitor.add_entry(entry)
        logger.debug("Found %d user-visible mounts", len(monitor.get_mounts()))
        return monitor

    def add_entry(self, entry: MountEntry) -> Mount:
        if entry.source.startswith("/dev/"):
            disk = _disk_name(entry.source)
            drive = next((d for d in self._drives if d.name == disk), None)
            if drive is None:
                drive = self.add_drive(disk)
            volume: Volume | None = self.add_volume(entry.name, drive=drive)
        elif entry.fs_type in _NETWORK_FS_TYPES:
            volume = self.add_volume(entry.name)
        else:
            volume = None
        return self.add_mount(entry.name, entry.location, volume=volume)

    def add_drive(self, name: str) -> Drive:
        drive = Drive(name=name)
        self._drives.append(drive)
        return drive

    def add_volume(self, name: str, drive: Drive | None = None) -> Volume:
        volume = Volume(name=name, drive=drive)
        if drive is not None:
            drive.volumes.append(volume)
        self._volumes.append(volume)
        return volume

    def add_mount(
        self,
        name: str,
        default_location: str,
        *,
        volume: Volume | None = None,
        shadowed: bool = False,
    ) -> Mount:
        mount = Mount(name=name, default_location=default_location, shadowed=shadowed, volume=volume)
        if volume is not None:
            volume.mount = mount
        self._mounts.append(mount)
        return mount

    def get_connected_drives(self) -> list[Drive]:
        return list(self._drives)

    def get_volumes(self) -> list[Volume]:
        return list(self._volumes)

    def get_mounts(self) -> list[Mount]:
        return list(self._mounts)


def _unescape(value: str) -> str:
    return _OCTAL_ESCAPE.sub(lambda match: chr(int(match.group(1), 8)), value)


def _disk_name(device: str) -> str:
    """Whole-disk name for a partition device, e.g. ``/dev/sdb1`` -> ``sdb``."""
    name = PurePosixPath(device).name
    match = _PARTITIONED_DISK.match(name)
    if match:
        return match.group(1)
    return name.rstrip("0123456789") or name
