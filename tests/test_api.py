from ops_telemetry import api
from ops_telemetry.collectors.disk_collector import DiskCollector
from ops_telemetry.kernel.mountflags import FREEBSD_MOUNT_OPTIONS, FREEBSD_MOUNT_OPTIONS_KERNEL
from ops_telemetry.services.config_service import TelemetrySettings


def _settings(tmp_path, **kw):
    kw.setdefault("backend", "psutil")
    return TelemetrySettings(udev_data_dir=str(tmp_path), sysfs_block_dir=str(tmp_path), **kw)


def test_collectors_follow_settings(tmp_path):
    s = _settings(
        tmp_path,
        layout="freebsd11-i386",
        include_all_partitions=True,
        disk_names=["ada0"],
        vm_stat_command=["/usr/bin/vm_stat"],
        command_timeout_s=4.0,
    )

    disk = api.build_disk_collector(s)
    assert disk.layouts.name == "freebsd11-i386"
    assert disk.include_all is True
    assert disk.names == ["ada0"]

    memory = api.build_memory_collector(s)
    assert memory.command == ["/usr/bin/vm_stat"]
    assert memory.timeout_s == 4.0


def test_queries_through_psutil(tmp_path):
    s = _settings(tmp_path)
    assert isinstance(api.partitions(all=True, settings=s), list)
    assert isinstance(api.io_counters(settings=s), dict)
    assert api.virtual_memory(settings=s).total > 0


def test_serial_of_missing_device_is_empty(tmp_path):
    assert api.disk_serial_number(str(tmp_path / "nope"), settings=_settings(tmp_path)) == ""


def test_io_counters_without_names_ignores_saved_filter(tmp_path, monkeypatch):
    asked = []
    monkeypatch.setattr(DiskCollector, "io_counters", lambda self, names=None: asked.append(names) or {})
    s = _settings(tmp_path, disk_names=["ada0"])

    api.io_counters(settings=s)
    api.io_counters("da1", settings=s)

    assert asked == [[], ["da1"]]


def test_kernel_option_names_setting_picks_table(tmp_path):
    assert api.build_disk_collector(_settings(tmp_path)).option_table is FREEBSD_MOUNT_OPTIONS
    s = _settings(tmp_path, kernel_option_names=True)
    assert api.build_disk_collector(s).option_table is FREEBSD_MOUNT_OPTIONS_KERNEL
