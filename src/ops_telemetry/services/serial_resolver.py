from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Callable, Protocol

logger = logging.getLogger(__name__)

UDEV_DATA_DIR = "/run/udev/data"
SYSFS_BLOCK_DIR = "/sys/dev/block"
UDEV_SERIAL_KEY = "E:ID_SERIAL"


class SerialLookup(Protocol):
    def lookup(self, major: int, minor: int) -> str | None: ...


def _read(path: Path) -> str | None:
    try:
        return path.read_bytes().decode("utf-8", errors="replace")
    except OSError:
        return None


class UdevSerialLookup:
    def __init__(self, data_dir: str = UDEV_DATA_DIR) -> None:
        self.data_dir = Path(data_dir)

    def lookup(self, major: int, minor: int) -> str | None:
        text = _read(self.data_dir / f"b{major}:{minor}")
        if text is None:
            return None
        for line in text.splitlines():
            values = line.split("=")
            if len(values) == 2 and values[0] == UDEV_SERIAL_KEY:
                return values[1]
        return None


class SysfsSerialLookup:
    """model + serial of the whole disk; partitions carry no identity."""

    def __init__(self, block_dir: str = SYSFS_BLOCK_DIR, trim: bool = False) -> None:
        self.block_dir = Path(block_dir)
        self.trim = bool(trim)

    def lookup(self, major: int, minor: int) -> str | None:
        device = self.block_dir / f"{major}:0" / "device"
        model = _read(device / "model") or ""
        serial = _read(device / "serial") or ""
        if self.trim:
            model, serial = model.strip(), serial.strip()
        if model and serial:
            return f"{model}_{serial}"
        return None


class SerialResolver:
    def __init__(
        self,
        strategies: list[SerialLookup] | None = None,
        udev_data_dir: str = UDEV_DATA_DIR,
        sysfs_block_dir: str = SYSFS_BLOCK_DIR,
        trim: bool = False,
        stat: Callable[[str], Any] = os.stat,
    ) -> None:
        self._stat = stat
        if strategies is None:
            strategies = [
                UdevSerialLookup(udev_data_dir),
                SysfsSerialLookup(sysfs_block_dir, trim=trim),
            ]
        self.strategies = list(strategies)

    def resolve(self, path: str) -> str:
        """Serial number of the device at ``path``, or "" when unknown."""
        if not hasattr(os, "major"):
            return ""
        try:
            rdev = self._stat(path).st_rdev
        except (OSError, ValueError):
            return ""

        major, minor = os.major(rdev), os.minor(rdev)
        for strategy in self.strategies:
            serial = strategy.lookup(major, minor)
            if serial is not None:
                return serial
            logger.debug("%s: no serial for %d:%d", type(strategy).__name__, major, minor)
        return ""
