import json

from ops_telemetry.services.config_service import ConfigPaths, ConfigService, TelemetrySettings


def test_default_path_follows_xdg(monkeypatch, tmp_path):
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))
    assert ConfigService.default_path() == tmp_path / "ops_telemetry" / "config.json"


def test_missing_or_bad_config_is_empty(tmp_path):
    svc = ConfigService(ConfigPaths(path=tmp_path / "config.json"))
    assert svc.load() == {}

    svc.paths.path.write_text("{not json", encoding="utf-8")
    assert svc.load() == {}

    svc.paths.path.write_text(json.dumps(["a", "b"]), encoding="utf-8")
    assert svc.load() == {}


def test_save_then_load(tmp_path):
    svc = ConfigService(ConfigPaths(path=tmp_path / "nested" / "config.json"))
    svc.save({"disk_names": ["ada0"], "include_all_partitions": True})

    assert svc.load() == {"disk_names": ["ada0"], "include_all_partitions": True}
    assert not (tmp_path / "nested" / "config.json.tmp").exists()
    assert svc.load_settings().disk_names == ["ada0"]


def test_settings_defaults():
    s = TelemetrySettings.from_dict({})
    assert s == TelemetrySettings()
    assert s.layout is None
    assert s.backend == "auto"
    assert s.vm_stat_command == ["vm_stat"]
    assert s.udev_data_dir == "/run/udev/data"
    assert s.sysfs_block_dir == "/sys/dev/block"
    assert s.trim_serial is False
    assert s.kernel_option_names is False


def test_settings_from_values():
    s = TelemetrySettings.from_dict(
        {
            "layout": "freebsd12-amd64",
            "backend": "KERNEL",
            "include_all_partitions": True,
            "disk_names": ["ada0", 1],
            "vm_stat_command": ["/usr/bin/vm_stat"],
            "command_timeout_s": "3",
            "trim_serial": True,
            "kernel_option_names": True,
            "log_level": "debug",
        }
    )
    assert s.layout == "freebsd12-amd64"
    assert s.backend == "kernel"
    assert s.include_all_partitions is True
    assert s.disk_names == ["ada0", "1"]
    assert s.vm_stat_command == ["/usr/bin/vm_stat"]
    assert s.command_timeout_s == 3.0
    assert s.trim_serial is True
    assert s.kernel_option_names is True
    assert s.log_level == "DEBUG"
    assert s.to_dict()["layout"] == "freebsd12-amd64"


def test_settings_reject_unknown_backend_and_bad_types():
    s = TelemetrySettings.from_dict({"backend": "wmi", "disk_names": "ada0", "vm_stat_command": []})
    assert s.backend == "auto"
    assert s.disk_names == []
    assert s.vm_stat_command == ["vm_stat"]
