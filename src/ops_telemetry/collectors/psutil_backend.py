"""psutil-backed collection for hosts without the BSD kernel interfaces."""

from __future__ import annotations

import psutil

from ops_telemetry.models.disk import DiskIOCounters, PartitionStat
from ops_telemetry.models.memory import VirtualMemoryStat


def partitions(all: bool = False) -> list[PartitionStat]:
    rows: list[PartitionStat] = []
    for p in psutil.disk_partitions(all=all):
        rows.append(
            PartitionStat(
                device=str(p.device),
                mountpoint=str(p.mountpoint),
                fstype=str(p.fstype),
                opts=str(p.opts),
            )
        )
    return rows


def io_counters(names: list[str] | None = None) -> dict[str, DiskIOCounters]:
    per_disk = psutil.disk_io_counters(perdisk=True) or {}
    ret: dict[str, DiskIOCounters] = {}
    for name, c in per_disk.items():
        if names and name not in names:
            continue
        ret[name] = DiskIOCounters(
            name=name,
            read_count=int(c.read_count),
            write_count=int(c.write_count),
            read_bytes=int(c.read_bytes),
            write_bytes=int(c.write_bytes),
            read_time=int(getattr(c, "read_time", 0)),
            write_time=int(getattr(c, "write_time", 0)),
            io_time=int(getattr(c, "busy_time", 0)),
        )
    return ret


def virtual_memory() -> VirtualMemoryStat:
    vm = psutil.virtual_memory()
    return VirtualMemoryStat(
        total=int(vm.total),
        available=int(vm.available),
        used=int(vm.used),
        used_percent=float(vm.percent),
        free=int(vm.free),
        active=int(getattr(vm, "active", 0)),
        inactive=int(getattr(vm, "inactive", 0)),
        wired=int(getattr(vm, "wired", 0)),
    )
