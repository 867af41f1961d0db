from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class PartitionStat:
    device: str
    mountpoint: str
    fstype: str
    opts: str


@dataclass(frozen=True)
class DiskIOCounters:
    name: str
    read_count: int
    write_count: int
    read_bytes: int
    write_bytes: int
    read_time: int
    write_time: int
    io_time: int


@dataclass(frozen=True)
class DiskData:
    partitions: list[PartitionStat]
    io_counters: dict[str, DiskIOCounters]
    serials: dict[str, str] = field(default_factory=dict)
    notes: list[str] = field(default_factory=list)
