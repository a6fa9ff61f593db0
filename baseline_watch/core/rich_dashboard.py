"""
Baseline Watch - Rich live dashboard.

Layout: Monitor Summary | Alert Statistics | Active Alerts | Recent Events.
Presentation only: reads monitor and alert-system snapshots, never mutates
them. Single Live instance.
"""

from collections import deque
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Optional

from rich import box as rich_box
from rich.console import Group, RenderableType
from rich.live import Live
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from baseline_watch.core.dashboard import overall_status
from baseline_watch.core.events import EventBus, EventKind
from baseline_watch.core.models import Alert, Severity

MAX_ACTIVE_ROWS = 15


@dataclass
class LogRecord:
    """One event line."""

    message: str
    severity: str
    timestamp: float


def _style_status(s: str) -> str:
    if s == "CRITICAL":
        return "bold red"
    if s == "WARNING":
        return "bold yellow"
    return "bold green"


def _style_severity(s: str) -> str:
    return {
        Severity.CRITICAL.value: "bold red",
        Severity.HIGH.value: "red",
        Severity.MEDIUM.value: "yellow",
        Severity.LOW.value: "green",
    }.get(s, "white")


class RichDashboard:
    def __init__(self, history_size: int = 60, console: Optional[Any] = None) -> None:
        self._history_size = max(10, min(100, history_size))
        self._console = console
        self._log_history: deque[LogRecord] = deque(maxlen=self._history_size)
        self._monitor: dict[str, Any] = {}
        self._alert_stats: dict[str, Any] = {}
        self._active: list[Alert] = []
        self._summary: dict[str, Any] = {}

    def update(
        self,
        monitor_stats: dict[str, Any],
        alert_stats: dict[str, Any],
        active_alerts: list[Alert],
        summary: dict[str, Any],
    ) -> None:
        self._monitor = monitor_stats
        self._alert_stats = alert_stats
        self._active = sorted(active_alerts, key=lambda a: (a.severity.rank, a.last_seen), reverse=True)
        self._summary = summary

    def add_log(self, message: str, severity: str = "low", timestamp: Optional[float] = None) -> None:
        self._log_history.append(
            LogRecord(message=message, severity=severity, timestamp=timestamp or datetime.now().timestamp())
        )

    def attach(self, events: EventBus) -> Callable[[], None]:
        """Feed alert, escalation, deletion and error events into the log panel."""
        unsubscribers = [
            events.subscribe(
                EventKind.ALERT,
                lambda e: self.add_log("%s: %s" % (e.alert.file_path, e.alert.message), e.alert.severity.value),
            ),
            events.subscribe(
                EventKind.ESCALATION,
                lambda e: self.add_log(
                    "ESCALATED %s (%d occurrences)" % (e.alert.message, e.occurrences), Severity.CRITICAL.value
                ),
            ),
            events.subscribe(
                EventKind.FILE_DELETED, lambda e: self.add_log("Deleted: %s" % e.file_path, Severity.LOW.value)
            ),
            events.subscribe(EventKind.ERROR, lambda e: self.add_log("Error: %s" % e.error, Severity.HIGH.value)),
        ]

        def detach() -> None:
            for unsubscribe in unsubscribers:
                unsubscribe()

        return detach

    def _make_summary_panel(self) -> Panel:
        table = Table(show_header=False, box=None, padding=(0, 2))
        table.add_column(style="dim")
        table.add_column()
        status = overall_status(self._alert_stats)
        table.add_row("Running", "yes" if self._monitor.get("isRunning") else "no")
        table.add_row("Watched paths", str(self._monitor.get("watchedPaths", 0)))
        table.add_row("Files analyzed", str(self._summary.get("totalFiles", 0)))
        table.add_row("Avg risk", "%s%%" % self._summary.get("averageRiskScore", "-"))
        table.add_row("Avg compatibility", "%s%%" % self._summary.get("averageCompatibilityScore", "-"))
        table.add_row("Recommendations", str(self._summary.get("totalRecommendations", 0)))
        table.add_row("Uptime", "%ds" % int(self._monitor.get("uptime", 0)))
        table.add_row("Status", Text(status, style=_style_status(status)))
        return Panel(table, title="[bold] Monitor Summary [/]", border_style="cyan", box=rich_box.ROUNDED)

    def _make_stats_panel(self) -> Panel:
        table = Table(show_header=False, box=None, padding=(0, 2))
        table.add_column(style="dim")
        table.add_column()
        stats = self._alert_stats
        table.add_row("Active", str(stats.get("active", 0)))
        table.add_row("Last hour", str(stats.get("last1h", 0)))
        table.add_row("Last 24h", str(stats.get("last24h", 0)))
        table.add_row("History", str(stats.get("total", 0)))
        table.add_row("Escalated", str(stats.get("escalated", 0)))
        for name, count in stats.get("bySeverity", {}).items():
            table.add_row(Text(name, style=_style_severity(name)), str(count))
        for name, count in sorted(stats.get("byType", {}).items()):
            table.add_row("type: %s" % name, str(count))
        return Panel(table, title="[bold] Alert Statistics [/]", border_style="magenta", box=rich_box.ROUNDED)

    def _make_active_panel(self) -> Panel:
        table = Table(show_header=True, box=rich_box.SIMPLE, padding=(0, 1))
        table.add_column("Severity", width=9)
        table.add_column("Type", width=13)
        table.add_column("Count", justify="right", width=5)
        table.add_column("File", overflow="fold")
        table.add_column("Message", overflow="fold")
        if not self._active:
            table.add_row(Text("-", style="dim"), "", "", "", Text("No active alerts", style="dim"))
        for alert in self._active[:MAX_ACTIVE_ROWS]:
            sev = alert.severity.value + ("*" if alert.escalated else "")
            table.add_row(
                Text(sev, style=_style_severity(alert.severity.value)),
                alert.type.value,
                str(alert.count),
                alert.file_path,
                alert.message,
            )
        return Panel(table, title="[bold] Active Alerts [/]", border_style="red", box=rich_box.ROUNDED)

    def _make_log_panel(self) -> Panel:
        table = Table(show_header=False, box=None, padding=(0, 1))
        table.add_column(width=8, style="dim")
        table.add_column(overflow="fold")
        if not self._log_history:
            table.add_row("", Text("No events yet", style="dim"))
        for rec in list(self._log_history)[-10:]:
            table.add_row(
                datetime.fromtimestamp(rec.timestamp).strftime("%H:%M:%S"),
                Text(rec.message, style=_style_severity(rec.severity)),
            )
        return Panel(table, title="[bold] Recent Events [/]", border_style="bright_black", box=rich_box.ROUNDED)

    def get_renderable(self) -> RenderableType:
        """Single renderable for Live.update()."""
        return Group(
            self._make_summary_panel(),
            self._make_stats_panel(),
            self._make_active_panel(),
            self._make_log_panel(),
        )


def create_live_dashboard(
    dashboard: RichDashboard,
    console: Optional[Any] = None,
    refresh_per_second: float = 4.0,
) -> Live:
    return Live(
        dashboard.get_renderable(),
        console=console,
        refresh_per_second=refresh_per_second,
        auto_refresh=False,
        transient=False,
    )
