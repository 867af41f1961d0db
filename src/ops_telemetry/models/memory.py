from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class VirtualMemoryStat:
    total: int
    available: int
    used: int
    used_percent: float
    free: int
    active: int
    inactive: int
    wired: int


@dataclass(frozen=True)
class MemoryData:
    memory: VirtualMemoryStat | None
    notes: list[str] = field(default_factory=list)
