"""Per-query entry points.

Each call builds its collectors from ``settings`` (or the saved config when
none is given) and keeps nothing between calls.
"""

from __future__ import annotations

from ops_telemetry.collectors.disk_collector import DiskCollector
from ops_telemetry.collectors.memory_collector import MemoryCollector
from ops_telemetry.kernel.mountflags import option_table
from ops_telemetry.models.disk import DiskIOCounters, PartitionStat
from ops_telemetry.models.memory import VirtualMemoryStat
from ops_telemetry.services.config_service import ConfigService, TelemetrySettings
from ops_telemetry.services.serial_resolver import SerialResolver


def _settings(settings: TelemetrySettings | None) -> TelemetrySettings:
    return settings if settings is not None else ConfigService().load_settings()


def build_serial_resolver(settings: TelemetrySettings) -> SerialResolver:
    return SerialResolver(
        udev_data_dir=settings.udev_data_dir,
        sysfs_block_dir=settings.sysfs_block_dir,
        trim=settings.trim_serial,
    )


def build_disk_collector(settings: TelemetrySettings) -> DiskCollector:
    return DiskCollector(
        layouts=settings.layout,
        backend=settings.backend,
        include_all=settings.include_all_partitions,
        names=settings.disk_names,
        serial_resolver=build_serial_resolver(settings),
        option_table=option_table(settings.kernel_option_names),
    )


def build_memory_collector(settings: TelemetrySettings) -> MemoryCollector:
    return MemoryCollector(
        backend=settings.backend,
        command=settings.vm_stat_command,
        timeout_s=settings.command_timeout_s,
        mem_warn_percent=settings.mem_warn_percent,
    )


def partitions(all: bool = False, settings: TelemetrySettings | None = None) -> list[PartitionStat]:
    return build_disk_collector(_settings(settings)).partitions(all)


def io_counters(*names: str, settings: TelemetrySettings | None = None) -> dict[str, DiskIOCounters]:
    """Counters for ``names``, or for every device when none are given.

    The saved ``disk_names`` filter is not applied here.
    """
    return build_disk_collector(_settings(settings)).io_counters(list(names))


def disk_serial_number(path: str, settings: TelemetrySettings | None = None) -> str:
    return build_serial_resolver(_settings(settings)).resolve(path)


def virtual_memory(settings: TelemetrySettings | None = None) -> VirtualMemoryStat:
    return build_memory_collector(_settings(settings)).virtual_memory()
