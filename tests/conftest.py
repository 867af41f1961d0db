"""Pytest fixtures and synthetic kernel records for ops_telemetry tests."""

import errno
import struct

import pytest

from ops_telemetry.errors import SyscallError
from ops_telemetry.kernel.bintime import Bintime
from ops_telemetry.kernel.layouts import DEVSTAT_AMD64, Devstat, Statfs


class FakeKernel:
    """Stands in for KernelInterface; serves canned buffers."""

    def __init__(self, mounts=b"", mount_count=None, sysctls=None, fail=()):
        self.mounts = mounts
        self._mount_count = mount_count
        self.sysctls = dict(sysctls or {})
        self.fail = set(fail)
        self.calls = []

    def sysctl(self, name):
        self.calls.append(("sysctl", name))
        if "sysctl" in self.fail or name not in self.sysctls:
            raise SyscallError(f"sysctl({name})", errno.ENOENT)
        return self.sysctls[name]

    def mount_count(self, flags):
        self.calls.append(("mount_count", flags))
        if "mount_count" in self.fail:
            raise SyscallError("getfsstat", errno.EFAULT)
        return self._mount_count

    def mount_table(self, count, record_size, flags):
        self.calls.append(("mount_table", count, record_size, flags))
        if "mount_table" in self.fail:
            raise SyscallError("getfsstat", errno.EIO)
        return self.mounts


def _chars(text, length):
    return text.encode().ljust(length, b"\x00")


def make_statfs(device, mountpoint, fstype="ufs", flags=0, mnamelen=1024):
    return Statfs(
        f_version=0x20140518,
        f_type=53,
        f_flags=flags,
        f_bsize=4096,
        f_iosize=32768,
        f_blocks=1000,
        f_bfree=400,
        f_bavail=300,
        f_files=100,
        f_ffree=50,
        f_syncwrites=1,
        f_asyncwrites=2,
        f_syncreads=3,
        f_asyncreads=4,
        f_spare=(0,) * 10,
        f_namemax=255,
        f_owner=0,
        f_fsid=(-1, 7),
        f_charspare=b"\x00" * 80,
        f_fstypename=_chars(fstype, 16),
        f_mntfromname=_chars(device, mnamelen),
        f_mntonname=_chars(mountpoint, mnamelen),
    )


def make_devstat(
    name,
    unit,
    reads=0,
    writes=0,
    read_bytes=0,
    write_bytes=0,
    read_time=Bintime(0, 0),
    write_time=Bintime(0, 0),
    busy_time=Bintime(0, 0),
):
    return Devstat(
        sequence0=1,
        allocated=1,
        start_count=10,
        end_count=10,
        busy_from=Bintime(100, 0),
        dev_links=0,
        device_number=unit + 90,
        device_name=_chars(name, 16),
        unit_number=unit,
        bytes=(0, read_bytes, write_bytes, 0),
        operations=(0, reads, writes, 0),
        duration=(Bintime(0, 0), read_time, write_time, Bintime(0, 0)),
        busy_time=busy_time,
        creation_time=Bintime(5, 0),
        block_size=512,
        tag_types=(0, 0, 0),
        flags=0,
        device_type=0,
        priority=0x180,
        id=0,
        sequence1=1,
    )


def devstat_table(records, layout=DEVSTAT_AMD64, generation=0xDEADBEEF):
    return struct.pack("<Q", generation) + b"".join(layout.encode(r) for r in records)


@pytest.fixture
def fake_kernel():
    return FakeKernel()


@pytest.fixture
def vm_stat_output():
    """Sample vm_stat output from a macOS host."""
    return (
        "Mach Virtual Memory Statistics: (page size of 4096 bytes)\n"
        "Pages free:                               12345.\n"
        "Pages active:                            200000.\n"
        "Pages inactive:                          150000.\n"
        "Pages speculative:                         3000.\n"
        "Pages throttled:                              0.\n"
        "Pages wired down:                        100000.\n"
        "Pages purgeable:                           1500.\n"
        '"Translation faults":                 123456789.\n'
        "Pages copy-on-write:                    4567890.\n"
    )
