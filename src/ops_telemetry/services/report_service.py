from __future__ import annotations

import html
import os
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from ops_telemetry.models.common import CollectorResult
from ops_telemetry.models.disk import DiskData
from ops_telemetry.models.memory import MemoryData


@dataclass(frozen=True)
class ReportBundle:
    text: str
    html: str


def human_bytes(n: int) -> str:
    v = float(n)
    for unit in ("B", "KB", "MB", "GB", "TB"):
        if v < 1024.0:
            return f"{v:.1f}{unit}" if unit != "B" else f"{int(v)}B"
        v /= 1024.0
    return f"{v:.1f}PB"


class ReportService:
    def build_report(
        self,
        *,
        disk: CollectorResult[DiskData] | None,
        memory: CollectorResult[MemoryData] | None,
    ) -> ReportBundle:
        now = datetime.now().strftime("%F %T")

        lines: list[str] = [f"Host Telemetry Report @ {now}", ""]
        lines.append(self._section_memory(memory))
        lines.append(self._section_disk(disk))
        text_out = "\n".join(lines).strip() + "\n"

        html_out = self._wrap_html(text_out)
        return ReportBundle(text=text_out, html=html_out)

    def default_report_path(self) -> Path:
        base = Path.home() / "ops_telemetry_reports"
        base.mkdir(parents=True, exist_ok=True)
        ts = datetime.now().strftime("%Y%m%d-%H%M%S")
        return base / f"telemetry_report_{ts}.html"

    def write_html(self, path: str | os.PathLike[str], html_str: str) -> str:
        p = Path(path)
        p.parent.mkdir(parents=True, exist_ok=True)
        p.write_text(html_str, encoding="utf-8")
        return str(p)

    def _section_memory(self, r: CollectorResult[MemoryData] | None) -> str:
        if r is None:
            return "[Memory]\n- no data\n"
        m = r.data.memory
        head = f"[Memory]\n- ts: {r.ts:%F %T}\n- status: {r.status} (warnings={r.warning_count})\n"
        if m is None:
            return head + "".join(f"- {w}\n" for w in r.warnings)
        return head + (
            f"- total: {human_bytes(m.total)}\n"
            f"- used: {human_bytes(m.used)} ({m.used_percent:.1f}%)\n"
            f"- available: {human_bytes(m.available)}\n"
            f"- free/active/inactive/wired: {human_bytes(m.free)} / {human_bytes(m.active)} / "
            f"{human_bytes(m.inactive)} / {human_bytes(m.wired)}\n"
        )

    def _section_disk(self, r: CollectorResult[DiskData] | None) -> str:
        if r is None:
            return "[Disks]\n- no data\n"
        d = r.data
        mounts_str = "\n".join(
            [f"  - {p.mountpoint}: {p.device} ({p.fstype}; {p.opts})" for p in d.partitions]
        ) or "  (none)"
        io_str = "\n".join(
            [
                f"  - {c.name}: reads={c.read_count} ({human_bytes(c.read_bytes)}) "
                f"writes={c.write_count} ({human_bytes(c.write_bytes)}) busy={c.io_time}ms"
                for c in sorted(d.io_counters.values(), key=lambda c: c.name)
            ]
        ) or "  (none)"
        out = (
            "[Disks]\n"
            f"- ts: {r.ts:%F %T}\n"
            f"- status: {r.status} (warnings={r.warning_count})\n"
            f"- partitions:\n{mounts_str}\n"
            f"- io_counters:\n{io_str}\n"
        )
        if d.serials:
            out += "- serials:\n" + "\n".join(f"  - {dev}: {s.strip()}" for dev, s in d.serials.items()) + "\n"
        return out

    def _wrap_html(self, text_out: str) -> str:
        escaped = html.escape(text_out)
        return (
            "<!doctype html>"
            "<html><head><meta charset='utf-8'>"
            "<meta name='viewport' content='width=device-width, initial-scale=1'>"
            "<title>Host Telemetry Report</title>"
            "<style>body{font-family:ui-monospace,Menlo,Consolas,monospace;margin:24px;}"
            "pre{white-space:pre-wrap;line-height:1.35;}"
            "</style></head><body>"
            "<h1>Host Telemetry Report</h1>"
            f"<pre>{escaped}</pre>"
            "</body></html>"
        )
