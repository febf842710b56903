"""Terminal and Markdown formatters for device metrics."""

from __future__ import annotations

from tabulate import tabulate

from devicehealth.alerting.models import AlertEvaluationResult
from devicehealth.poller.models import DeviceMetrics, SystemInfo


def _description(info: SystemInfo) -> str:
    if info.firmware_version:
        return f"{info.firmware_version} ({info.description})"
    return info.description


def _interface_rows(metrics: DeviceMetrics) -> list[list[str]]:
    if metrics.interfaces is None:
        return []
    return [
        [
            iface.index,
            iface.name,
            iface.status.value,
            iface.speed_label or "-",
            iface.mac_address or "-",
            str(iface.in_octets),
            str(iface.out_octets),
        ]
        for iface in metrics.interfaces.items
    ]


_IF_HEADERS = ["ifIndex", "Name", "Status", "Speed", "MAC", "In (octets)", "Out (octets)"]


class TerminalFormatter:
    """Format DeviceMetrics as plain-text terminal output."""

    def __init__(self, metrics: DeviceMetrics, evaluation: AlertEvaluationResult | None = None) -> None:
        self.metrics = metrics
        self.evaluation = evaluation

    def format(self) -> str:
        """Return the complete terminal output as a string."""
        m = self.metrics
        lines: list[str] = []

        if not m.online:
            lines.append("  Status:  OFFLINE")
            lines.append(f"  Error:   {m.error or 'Device not responding'}")
            return "\n".join(lines)

        # ── System info ────────────────────────────────────────────────
        info = m.system_info or SystemInfo()
        lines.append("  Status:   online")
        lines.append(f"  Name:     {info.hostname}")
        lines.append(f"  Device:   {_description(info)}")
        lines.append(f"  Platform: {m.platform.value if m.platform else '?'}")
        lines.append(f"  Uptime:   {info.uptime}")
        lines.append(f"  Location: {info.location}")
        lines.append(f"  Contact:  {info.contact}")
        if info.serial_number:
            lines.append(f"  Serial:   {info.serial_number}")

        # ── Performance ────────────────────────────────────────────────
        lines.append(f"\n{'=' * 85}")
        lines.append("  PERFORMANCE")
        lines.append(f"{'=' * 85}")
        if m.performance_error:
            lines.append(f"  unavailable: {m.performance_error}")
        elif m.performance is None:
            lines.append("  (no metrics requested)")
        else:
            p = m.performance
            lines.append(f"  CPU:      {p.cpu_usage_percent}%")
            lines.append(f"  Memory:   {p.memory_usage_percent}% (free {p.free_memory_mb} of {p.total_memory_mb} MB)")
            if p.storage_usage_percent is not None:
                lines.append(f"  Storage:  {p.storage_usage_percent}%")
            if p.session_count is not None:
                lines.append(f"  Sessions: {p.session_count}")
        if m.fortinet_extras is not None:
            fx = m.fortinet_extras
            lines.append(f"  HA mode:  {fx.ha_mode.value}")
            lines.append(f"  Sessions/s: {fx.session_rate_per_second}")
            lines.append(f"  AV detected: {fx.antivirus_detection_count}")

        # ── Interfaces ─────────────────────────────────────────────────
        if m.interfaces is not None:
            lines.append(f"\n{'=' * 85}")
            lines.append(f"  INTERFACES ({len(m.interfaces.items)} of {m.interfaces.count})")
            lines.append(f"{'=' * 85}")
            rows = _interface_rows(m)
            if rows:
                lines.append(tabulate(rows, headers=_IF_HEADERS, tablefmt="simple"))

        # ── Alerts ─────────────────────────────────────────────────────
        if self.evaluation is not None:
            lines.append(f"\n{'=' * 85}")
            lines.append("  ALERTS")
            lines.append(f"{'=' * 85}")
            if not self.evaluation.alerts:
                lines.append("  (none)")
            for alert in self.evaluation.alerts:
                lines.append(f"  ! {alert}")

        return "\n".join(lines)


class MarkdownFormatter:
    """Format DeviceMetrics as a Markdown report."""

    def __init__(self, metrics: DeviceMetrics, evaluation: AlertEvaluationResult | None = None) -> None:
        self.metrics = metrics
        self.evaluation = evaluation

    def format(self) -> str:
        """Return the complete Markdown document as a string."""
        m = self.metrics
        info = m.system_info or SystemInfo()
        lines: list[str] = []

        title = info.hostname if m.online else "offline device"
        lines.append(f"# Device Health: {title}\n")
        if not m.online:
            lines.append("- **Status:** offline")
            lines.append(f"- **Error:** {m.error or 'Device not responding'}")
            return "\n".join(lines)

        lines.append(f"- **Device:** {_description(info)}")
        lines.append(f"- **Platform:** {m.platform.value if m.platform else '?'}")
        lines.append(f"- **Uptime:** {info.uptime}")
        lines.append(f"- **Location:** {info.location}")
        lines.append(f"- **Contact:** {info.contact}")
        if info.serial_number:
            lines.append(f"- **Serial:** {info.serial_number}")
        lines.append("")

        lines.append("## Performance\n")
        if m.performance_error:
            lines.append(f"_Performance unavailable: {m.performance_error}_")
        elif m.performance is not None:
            p = m.performance
            perf_rows = [
                ["CPU", f"{p.cpu_usage_percent}%"],
                ["Memory", f"{p.memory_usage_percent}%"],
                ["Total memory", f"{p.total_memory_mb} MB"],
                ["Free memory", f"{p.free_memory_mb} MB"],
            ]
            if p.storage_usage_percent is not None:
                perf_rows.append(["Storage", f"{p.storage_usage_percent}%"])
            if p.session_count is not None:
                perf_rows.append(["Sessions", str(p.session_count)])
            if m.fortinet_extras is not None:
                fx = m.fortinet_extras
                perf_rows.append(["HA mode", fx.ha_mode.value])
                perf_rows.append(["Session rate", f"{fx.session_rate_per_second}/s"])
                perf_rows.append(["AV detected", str(fx.antivirus_detection_count)])
            lines.append(tabulate(perf_rows, headers=["Metric", "Value"], tablefmt="github"))
        lines.append("")

        if m.interfaces is not None:
            lines.append(f"## Interfaces ({len(m.interfaces.items)} of {m.interfaces.count})\n")
            rows = _interface_rows(m)
            if rows:
                lines.append(tabulate(rows, headers=_IF_HEADERS, tablefmt="github"))
            lines.append("")

        if self.evaluation is not None:
            lines.append("## Alerts\n")
            if not self.evaluation.alerts:
                lines.append("- (none)")
            for alert in self.evaluation.alerts:
                lines.append(f"- {alert}")

        return "\n".join(lines)
