from __future__ import annotations

import json
import os
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

from ops_telemetry.services.serial_resolver import SYSFS_BLOCK_DIR, UDEV_DATA_DIR


@dataclass(frozen=True)
class ConfigPaths:
    path: Path


@dataclass(frozen=True)
class TelemetrySettings:
    layout: str | None = None
    backend: str = "auto"
    include_all_partitions: bool = False
    kernel_option_names: bool = False
    disk_names: list[str] = field(default_factory=list)
    vm_stat_command: list[str] = field(default_factory=lambda: ["vm_stat"])
    command_timeout_s: float = 10.0
    udev_data_dir: str = UDEV_DATA_DIR
    sysfs_block_dir: str = SYSFS_BLOCK_DIR
    trim_serial: bool = False
    mem_warn_percent: float = 85.0
    log_level: str = "WARNING"

    @classmethod
    def from_dict(cls, cfg: dict[str, Any]) -> TelemetrySettings:
        d = cls()
        names = cfg.get("disk_names")
        command = cfg.get("vm_stat_command")
        backend = str(cfg.get("backend") or d.backend).lower()
        if backend not in ("auto", "kernel", "psutil"):
            backend = d.backend
        return cls(
            layout=str(cfg["layout"]) if cfg.get("layout") else None,
            backend=backend,
            include_all_partitions=bool(cfg.get("include_all_partitions", d.include_all_partitions)),
            kernel_option_names=bool(cfg.get("kernel_option_names", d.kernel_option_names)),
            disk_names=[str(x) for x in names] if isinstance(names, list) else [],
            vm_stat_command=[str(x) for x in command] if isinstance(command, list) and command else list(d.vm_stat_command),
            command_timeout_s=float(cfg.get("command_timeout_s") or d.command_timeout_s),
            udev_data_dir=str(cfg.get("udev_data_dir") or d.udev_data_dir),
            sysfs_block_dir=str(cfg.get("sysfs_block_dir") or d.sysfs_block_dir),
            trim_serial=bool(cfg.get("trim_serial", d.trim_serial)),
            mem_warn_percent=float(cfg.get("mem_warn_percent") or d.mem_warn_percent),
            log_level=str(cfg.get("log_level") or d.log_level).upper(),
        )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


class ConfigService:
    def __init__(self, paths: ConfigPaths | None = None) -> None:
        self.paths = paths or ConfigPaths(path=self.default_path())

    @staticmethod
    def default_path() -> Path:
        xdg = os.environ.get("XDG_CONFIG_HOME")
        if xdg:
            base = Path(xdg)
        else:
            base = Path.home() / ".config"
        return base / "ops_telemetry" / "config.json"

    def load(self) -> dict[str, Any]:
        p = self.paths.path
        if not p.exists():
            return {}
        try:
            with open(p, "r", encoding="utf-8") as f:
                obj = json.load(f)
            return obj if isinstance(obj, dict) else {}
        except (OSError, ValueError):
            return {}

    def load_settings(self) -> TelemetrySettings:
        return TelemetrySettings.from_dict(self.load())

    def save(self, cfg: dict[str, Any]) -> None:
        p = self.paths.path
        p.parent.mkdir(parents=True, exist_ok=True)
        tmp = p.with_suffix(p.suffix + ".tmp")
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump(cfg, f, ensure_ascii=False, indent=2, sort_keys=True)
        tmp.replace(p)
