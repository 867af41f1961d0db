from __future__ import annotations

import logging
import re
import subprocess
import sys
from datetime import datetime
from typing import Callable, Protocol

from ops_telemetry.collectors import psutil_backend
from ops_telemetry.errors import CommandError, ParseError, TelemetryError
from ops_telemetry.kernel.layouts import HW_MEMSIZE
from ops_telemetry.kernel.syscalls import page_size as system_page_size
from ops_telemetry.models.common import CollectorResult
from ops_telemetry.models.memory import MemoryData, VirtualMemoryStat

logger = logging.getLogger(__name__)

VM_STAT_KEYS = {
    "Pages free": "free",
    "Pages inactive": "inactive",
    "Pages active": "active",
    "Pages wired down": "wired",
}

_UINT64_MAX = (1 << 64) - 1
_DIGITS = re.compile(r"[0-9]+")

CommandRunner = Callable[[list[str], float], str]


class MemoryKernel(Protocol):
    def sysctl(self, name: str) -> bytes: ...


def run_command(argv: list[str], timeout: float) -> str:
    try:
        return subprocess.check_output(
            argv, text=True, errors="replace", stderr=subprocess.DEVNULL, timeout=timeout
        )
    except subprocess.TimeoutExpired:
        raise CommandError(argv, f"timed out after {timeout:g}s") from None
    except (OSError, subprocess.CalledProcessError) as e:
        raise CommandError(argv, str(e)) from e


def parse_vm_stat(out: str, page_size: int) -> dict[str, int]:
    """Byte counts for the page categories found in ``vm_stat`` output.

    Every line is scanned even after a bad value; the last ParseError is
    raised at the end with the fields parsed so far in ``partial``. A field
    whose value failed to parse is reported as 0.
    """
    pages: dict[str, int] = {}
    err: ParseError | None = None
    for line in out.split("\n"):
        fields = line.split(":")
        if len(fields) < 2:
            continue
        key = fields[0].strip()
        field_name = VM_STAT_KEYS.get(key)
        if field_name is None:
            continue
        value = fields[1].strip(" .")
        n_bytes = int(value) * page_size if _DIGITS.fullmatch(value) else -1
        if 0 <= n_bytes <= _UINT64_MAX:
            pages[field_name] = n_bytes
        else:
            pages[field_name] = 0
            err = ParseError(key, value)

    if err is not None:
        err.partial = pages
        raise err
    return pages


def build_virtual_memory(
    total: int,
    free: int = 0,
    active: int = 0,
    inactive: int = 0,
    wired: int = 0,
) -> VirtualMemoryStat:
    available = free + inactive
    used_percent = (total - available) / total * 100.0 if total else 0.0
    return VirtualMemoryStat(
        total=total,
        available=available,
        used=max(0, total - free),
        used_percent=max(0.0, used_percent),
        free=free,
        active=active,
        inactive=inactive,
        wired=wired,
    )


class MemoryCollector:
    def __init__(
        self,
        kernel: MemoryKernel | None = None,
        backend: str = "auto",
        command: list[str] | None = None,
        timeout_s: float = 10.0,
        page_size: int | None = None,
        runner: CommandRunner | None = None,
        mem_warn_percent: float = 85.0,
    ) -> None:
        self._kernel = kernel
        self.backend = backend
        self.command = list(command or ["vm_stat"])
        self.timeout_s = float(timeout_s)
        self.page_size = int(page_size or system_page_size())
        self.runner = runner or run_command
        self.mem_warn_percent = float(mem_warn_percent)

    @property
    def uses_kernel(self) -> bool:
        if self.backend == "kernel":
            return True
        if self.backend == "psutil":
            return False
        return sys.platform == "darwin"

    @property
    def kernel(self) -> MemoryKernel:
        if self._kernel is None:
            from ops_telemetry.kernel.syscalls import KernelInterface

            self._kernel = KernelInterface()
        return self._kernel

    def total_memory(self) -> int:
        return int(HW_MEMSIZE.decode(self.kernel.sysctl("hw.memsize"))["value"])

    def virtual_memory(self) -> VirtualMemoryStat:
        if not self.uses_kernel:
            return psutil_backend.virtual_memory()

        # Two separate snapshots; they may disagree slightly.
        total = self.total_memory()
        out = self.runner(self.command, self.timeout_s)
        try:
            pages = parse_vm_stat(out, self.page_size)
        except ParseError as e:
            logger.warning("vm_stat: %s", e)
            e.partial = build_virtual_memory(total, **(e.partial or {}))
            raise
        return build_virtual_memory(total, **pages)

    def collect(self) -> CollectorResult[MemoryData]:
        ts = datetime.now()
        warnings: list[str] = []
        notes: list[str] = []

        memory: VirtualMemoryStat | None = None
        failed = False
        try:
            memory = self.virtual_memory()
        except ParseError as e:
            memory = e.partial if isinstance(e.partial, VirtualMemoryStat) else None
            warnings.append(f"Memory report incomplete: {e}")
        except TelemetryError as e:
            failed = True
            warnings.append(f"Memory unavailable: {e}")

        if memory is not None and memory.used_percent >= self.mem_warn_percent:
            warnings.append(
                f"High memory usage: {memory.used_percent:.1f}% (>= {self.mem_warn_percent:.0f}%)"
            )
        if memory is not None and not self.uses_kernel:
            notes.append("Collected through psutil")

        data = MemoryData(memory=memory, notes=notes)
        return CollectorResult.build(ts, data, warnings, failed=failed)
