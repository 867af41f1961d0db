"""Known FreeBSD kernel structure layouts.

``struct statfs`` is identical on every architecture but changed size in
FreeBSD 12 (64-bit inodes, MNAMELEN 88 -> 1024). ``struct devstat`` is the
same across releases but depends on pointer and ``time_t`` width.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from ops_telemetry.errors import UnsupportedPlatformError
from ops_telemetry.kernel.bintime import Bintime
from ops_telemetry.kernel.structs import (
    StructLayout,
    array,
    chars,
    i32,
    i64,
    nested,
    pad,
    u32,
    u64,
    word,
)

# <sys/devicestat.h> indexes into bytes/operations/duration
DEVSTAT_NO_DATA = 0
DEVSTAT_READ = 1
DEVSTAT_WRITE = 2
DEVSTAT_FREE = 3

DEVSTAT_HEADER_BYTES = 8
DEVSTAT_NAME_LENGTH = 16
MFSNAMELEN = 16


@dataclass(frozen=True)
class Statfs:
    f_version: int
    f_type: int
    f_flags: int
    f_bsize: int
    f_iosize: int
    f_blocks: int
    f_bfree: int
    f_bavail: int
    f_files: int
    f_ffree: int
    f_syncwrites: int
    f_asyncwrites: int
    f_syncreads: int
    f_asyncreads: int
    f_spare: tuple[int, ...]
    f_namemax: int
    f_owner: int
    f_fsid: tuple[int, ...]
    f_charspare: bytes
    f_fstypename: bytes
    f_mntfromname: bytes
    f_mntonname: bytes


@dataclass(frozen=True)
class Devstat:
    sequence0: int
    allocated: int
    start_count: int
    end_count: int
    busy_from: Bintime
    dev_links: int
    device_number: int
    device_name: bytes
    unit_number: int
    bytes: tuple[int, ...]
    operations: tuple[int, ...]
    duration: tuple[Bintime, ...]
    busy_time: Bintime
    creation_time: Bintime
    block_size: int
    tag_types: tuple[int, ...]
    flags: int
    device_type: int
    priority: int
    id: int
    sequence1: int


def statfs_layout(name: str, mnamelen: int) -> StructLayout:
    return StructLayout(
        name,
        [
            u32("f_version"),
            u32("f_type"),
            u64("f_flags"),
            u64("f_bsize"),
            u64("f_iosize"),
            u64("f_blocks"),
            u64("f_bfree"),
            i64("f_bavail"),
            u64("f_files"),
            i64("f_ffree"),
            u64("f_syncwrites"),
            u64("f_asyncwrites"),
            u64("f_syncreads"),
            u64("f_asyncreads"),
            array("f_spare", "Q", 10),
            u32("f_namemax"),
            u32("f_owner"),
            array("f_fsid", "i", 2),
            chars("f_charspare", 80),
            chars("f_fstypename", MFSNAMELEN),
            chars("f_mntfromname", mnamelen),
            chars("f_mntonname", mnamelen),
        ],
        factory=Statfs,
    )


def bintime_layout(name: str, time_t_width: int) -> StructLayout:
    return StructLayout(name, [word("sec", time_t_width, signed=True), u64("frac")], factory=Bintime)


def devstat_layout(name: str, ptr_width: int) -> StructLayout:
    """``struct devstat`` for an LP64 (8) or ILP32 (4) target."""
    lp64 = ptr_width == 8
    bt = bintime_layout(f"{name}.bintime", ptr_width)

    def align8() -> list:
        return [pad(4)] if lp64 else []

    return StructLayout(
        name,
        [
            u32("sequence0"),
            i32("allocated"),
            u32("start_count"),
            u32("end_count"),
            nested("busy_from", bt),
            word("dev_links", ptr_width),
            u32("device_number"),
            chars("device_name", DEVSTAT_NAME_LENGTH),
            i32("unit_number"),
            array("bytes", "Q", 4),
            array("operations", "Q", 4),
            nested("duration", bt, 4),
            nested("busy_time", bt),
            nested("creation_time", bt),
            u32("block_size"),
            *align8(),
            array("tag_types", "Q", 3),
            u32("flags"),
            u32("device_type"),
            u32("priority"),
            *align8(),
            word("id", ptr_width),
            u32("sequence1"),
            *align8(),
        ],
        factory=Devstat,
    )


STATFS_FREEBSD11 = statfs_layout("statfs-freebsd11", 88)
STATFS_FREEBSD12 = statfs_layout("statfs-freebsd12", 1024)
DEVSTAT_AMD64 = devstat_layout("devstat-amd64", 8)
DEVSTAT_I386 = devstat_layout("devstat-i386", 4)

# sysctl scalars
HW_MEMSIZE = StructLayout("hw.memsize", [u64("value")])


@dataclass(frozen=True)
class PlatformLayouts:
    name: str
    statfs: StructLayout
    devstat: StructLayout


LAYOUTS: dict[str, PlatformLayouts] = {
    "freebsd11-amd64": PlatformLayouts("freebsd11-amd64", STATFS_FREEBSD11, DEVSTAT_AMD64),
    "freebsd12-amd64": PlatformLayouts("freebsd12-amd64", STATFS_FREEBSD12, DEVSTAT_AMD64),
    "freebsd11-i386": PlatformLayouts("freebsd11-i386", STATFS_FREEBSD11, DEVSTAT_I386),
    "freebsd12-i386": PlatformLayouts("freebsd12-i386", STATFS_FREEBSD12, DEVSTAT_I386),
}

_MACHINES = {
    "amd64": "amd64",
    "x86_64": "amd64",
    "arm64": "amd64",
    "aarch64": "amd64",
    "i386": "i386",
    "i686": "i386",
}


def get_layouts(name: str) -> PlatformLayouts:
    try:
        return LAYOUTS[name]
    except KeyError:
        raise UnsupportedPlatformError(f"unknown layout: {name}") from None


def select_layouts(system: str, release: str, machine: str) -> PlatformLayouts:
    if system.lower() != "freebsd":
        raise UnsupportedPlatformError(f"no kernel layouts for {system}")

    arch = _MACHINES.get(machine.lower())
    if arch is None:
        raise UnsupportedPlatformError(f"no kernel layouts for FreeBSD/{machine}")

    m = re.match(r"(\d+)", release)
    if not m:
        raise UnsupportedPlatformError(f"cannot parse FreeBSD release: {release!r}")
    generation = "freebsd12" if int(m.group(1)) >= 12 else "freebsd11"
    return LAYOUTS[f"{generation}-{arch}"]
