from datetime import datetime

from ops_telemetry.models.common import CollectorResult
from ops_telemetry.models.disk import DiskData, DiskIOCounters, PartitionStat
from ops_telemetry.models.memory import MemoryData, VirtualMemoryStat
from ops_telemetry.services.report_service import ReportService, human_bytes

TS = datetime(2024, 5, 1, 12, 30, 0)


def _disk():
    data = DiskData(
        partitions=[PartitionStat(device="/dev/ada0p2", mountpoint="/", fstype="ufs", opts="rw,softdep")],
        io_counters={
            "ada0": DiskIOCounters(
                name="ada0",
                read_count=3,
                write_count=4,
                read_bytes=2048,
                write_bytes=1024,
                read_time=1,
                write_time=2,
                io_time=7,
            )
        },
        serials={"/dev/ada0p2": "WDC\n_XYZ\n"},
    )
    return CollectorResult.build(TS, data, [])


def _memory():
    vm = VirtualMemoryStat(
        total=8 << 30,
        available=4 << 30,
        used=6 << 30,
        used_percent=50.0,
        free=2 << 30,
        active=1 << 30,
        inactive=2 << 30,
        wired=1 << 29,
    )
    return CollectorResult.build(TS, MemoryData(memory=vm), [])


def test_human_bytes():
    assert human_bytes(512) == "512B"
    assert human_bytes(2048) == "2.0KB"
    assert human_bytes(3 << 30) == "3.0GB"


def test_empty_report():
    bundle = ReportService().build_report(disk=None, memory=None)
    assert "[Memory]\n- no data" in bundle.text
    assert "[Disks]\n- no data" in bundle.text


def test_report_sections():
    bundle = ReportService().build_report(disk=_disk(), memory=_memory())

    assert "- total: 8.0GB" in bundle.text
    assert "- used: 6.0GB (50.0%)" in bundle.text
    assert "  - /: /dev/ada0p2 (ufs; rw,softdep)" in bundle.text
    assert "  - ada0: reads=3 (2.0KB) writes=4 (1.0KB) busy=7ms" in bundle.text
    assert "  - /dev/ada0p2: WDC\n_XYZ" in bundle.text
    assert bundle.html.startswith("<!doctype html>")


def test_failed_memory_section_lists_warnings():
    failed = CollectorResult.build(TS, MemoryData(memory=None), ["Memory unavailable: vm_stat: boom"], failed=True)
    text = ReportService().build_report(disk=None, memory=failed).text
    assert "- status: ERROR (warnings=1)" in text
    assert "- Memory unavailable: vm_stat: boom" in text


def test_html_is_escaped_and_written(tmp_path):
    svc = ReportService()
    bundle = svc.build_report(disk=_disk(), memory=None)
    assert "<pre>" in bundle.html

    out = svc.write_html(tmp_path / "out" / "r.html", "<p>&amp;</p>")
    assert (tmp_path / "out" / "r.html").read_text(encoding="utf-8") == "<p>&amp;</p>"
    assert out.endswith("r.html")
