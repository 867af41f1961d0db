from __future__ import annotations

import logging
import os
import platform
import sys
from datetime import datetime
from typing import Protocol

from ops_telemetry.collectors import psutil_backend
from ops_telemetry.errors import DecodeError, EnumerationError, SyscallError, TelemetryError
from ops_telemetry.kernel.bintime import bintime_to_ms
from ops_telemetry.kernel.layouts import (
    DEVSTAT_HEADER_BYTES,
    DEVSTAT_READ,
    DEVSTAT_WRITE,
    Devstat,
    PlatformLayouts,
    Statfs,
    get_layouts,
    select_layouts,
)
from ops_telemetry.kernel.mountflags import FREEBSD_MOUNT_OPTIONS, MNT_WAIT, flags_to_options
from ops_telemetry.kernel.structs import StructLayout, c_string
from ops_telemetry.models.common import CollectorResult
from ops_telemetry.models.disk import DiskData, DiskIOCounters, PartitionStat
from ops_telemetry.services.serial_resolver import SerialResolver

logger = logging.getLogger(__name__)

DEVSTAT_MIB = "kern.devstat.all"


class DiskKernel(Protocol):
    def sysctl(self, name: str) -> bytes: ...

    def mount_count(self, flags: int) -> int: ...

    def mount_table(self, count: int, record_size: int, flags: int) -> bytes: ...


def partition_from_statfs(st: Statfs, table: tuple[tuple[int, str], ...] = FREEBSD_MOUNT_OPTIONS) -> PartitionStat:
    return PartitionStat(
        device=c_string(st.f_mntfromname),
        mountpoint=c_string(st.f_mntonname),
        fstype=c_string(st.f_fstypename),
        opts=flags_to_options(st.f_flags, table),
    )


def counters_from_devstat(d: Devstat, name: str) -> DiskIOCounters:
    return DiskIOCounters(
        name=name,
        read_count=d.operations[DEVSTAT_READ],
        write_count=d.operations[DEVSTAT_WRITE],
        read_bytes=d.bytes[DEVSTAT_READ],
        write_bytes=d.bytes[DEVSTAT_WRITE],
        read_time=bintime_to_ms(d.duration[DEVSTAT_READ]),
        write_time=bintime_to_ms(d.duration[DEVSTAT_WRITE]),
        io_time=bintime_to_ms(d.busy_time),
    )


def devstat_is_consistent(d: Devstat) -> bool:
    """False for a free slot or one the kernel was updating while it was copied."""
    return d.allocated != 0 and d.sequence0 == d.sequence1


def devstat_count(buf_len: int, layout: StructLayout) -> int:
    return max(0, (buf_len - DEVSTAT_HEADER_BYTES) // layout.size)


def decode_devstat_table(
    buf: bytes,
    layout: StructLayout,
    names: list[str] | None = None,
) -> tuple[dict[str, DiskIOCounters], int]:
    """Counters keyed by device name, plus the number of slots skipped."""
    ret: dict[str, DiskIOCounters] = {}
    skipped = 0
    count = devstat_count(len(buf), layout)
    for i, d in layout.iter_decode(buf, DEVSTAT_HEADER_BYTES, count):
        if isinstance(d, DecodeError):
            skipped += 1
            logger.debug("devstat slot %d skipped: %s", i, d)
            continue
        if not devstat_is_consistent(d):
            skipped += 1
            logger.debug("devstat slot %d skipped: sequence %d/%d allocated=%d", i, d.sequence0, d.sequence1, d.allocated)
            continue
        name = c_string(d.device_name) + str(d.unit_number)
        if names and name not in names:
            continue
        ret[name] = counters_from_devstat(d, name)
    return ret, skipped


class DiskCollector:
    def __init__(
        self,
        kernel: DiskKernel | None = None,
        layouts: PlatformLayouts | str | None = None,
        backend: str = "auto",
        include_all: bool = False,
        names: list[str] | None = None,
        serial_resolver: SerialResolver | None = None,
        option_table: tuple[tuple[int, str], ...] = FREEBSD_MOUNT_OPTIONS,
    ) -> None:
        self._kernel = kernel
        self._layouts = get_layouts(layouts) if isinstance(layouts, str) else layouts
        self.backend = backend
        self.include_all = bool(include_all)
        self.names = list(names or [])
        self.serial_resolver = serial_resolver or SerialResolver()
        self.option_table = option_table

    @property
    def uses_kernel(self) -> bool:
        if self.backend == "kernel":
            return True
        if self.backend == "psutil":
            return False
        return sys.platform.startswith("freebsd")

    @property
    def kernel(self) -> DiskKernel:
        if self._kernel is None:
            from ops_telemetry.kernel.syscalls import KernelInterface

            self._kernel = KernelInterface()
        return self._kernel

    @property
    def layouts(self) -> PlatformLayouts:
        if self._layouts is None:
            self._layouts = select_layouts(platform.system(), platform.release(), platform.machine())
        return self._layouts

    def partitions(self, all: bool | None = None) -> list[PartitionStat]:
        include_all = self.include_all if all is None else bool(all)
        if not self.uses_kernel:
            return psutil_backend.partitions(all=include_all)

        layout = self.layouts.statfs
        try:
            count = self.kernel.mount_count(MNT_WAIT)
            buf = self.kernel.mount_table(count, layout.size, MNT_WAIT)
        except EnumerationError:
            raise
        except SyscallError as e:
            raise EnumerationError(e.call, e.errno) from e

        rows: list[PartitionStat] = []
        for i, st in layout.iter_decode(buf):
            if isinstance(st, DecodeError):
                logger.debug("mount record %d skipped: %s", i, st)
                continue
            p = partition_from_statfs(st, self.option_table)
            if not include_all and not (os.path.isabs(p.device) and os.path.exists(p.device)):
                logger.debug("dropping %s on %s", p.device, p.mountpoint)
                continue
            rows.append(p)
        return rows

    def io_counters(self, names: list[str] | None = None) -> dict[str, DiskIOCounters]:
        counters, _skipped = self._io_counters(names)
        return counters

    def _io_counters(self, names: list[str] | None) -> tuple[dict[str, DiskIOCounters], int]:
        wanted = self.names if names is None else list(names)
        if not self.uses_kernel:
            return psutil_backend.io_counters(wanted), 0

        layout = self.layouts.devstat
        buf = self.kernel.sysctl(DEVSTAT_MIB)
        counters, skipped = decode_devstat_table(buf, layout, wanted)
        if skipped and skipped == devstat_count(len(buf), layout):
            logger.warning("all %d devstat records skipped; %s may not match this kernel", skipped, layout.name)
        return counters, skipped

    def serial_number(self, path: str) -> str:
        return self.serial_resolver.resolve(path)

    def collect(self) -> CollectorResult[DiskData]:
        ts = datetime.now()
        warnings: list[str] = []
        notes: list[str] = []
        failed = 0

        partitions: list[PartitionStat] = []
        try:
            partitions = self.partitions()
        except TelemetryError as e:
            failed += 1
            warnings.append(f"Partitions unavailable: {e}")

        counters: dict[str, DiskIOCounters] = {}
        try:
            counters, skipped = self._io_counters(None)
            if skipped:
                notes.append(f"devstat records skipped: {skipped}")
        except TelemetryError as e:
            failed += 1
            warnings.append(f"I/O counters unavailable: {e}")

        serials: dict[str, str] = {}
        for p in partitions:
            if p.device in serials or not os.path.isabs(p.device):
                continue
            serial = self.serial_number(p.device)
            if serial:
                serials[p.device] = serial

        data = DiskData(partitions=partitions, io_counters=counters, serials=serials, notes=notes)
        return CollectorResult.build(ts, data, warnings, failed=failed == 2)
