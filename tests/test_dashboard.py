"""Tests for the plain and rich dashboards."""

import io

from rich.console import Console

from baseline_watch.core.dashboard import Dashboard, overall_status
from baseline_watch.core.events import AlertRaised, EventBus, EventKind, FileDeleted
from baseline_watch.core.models import Alert, AlertType, Severity
from baseline_watch.core.rich_dashboard import RichDashboard

ALERT_STATS = {
    "total": 1,
    "active": 1,
    "last24h": 1,
    "last1h": 1,
    "bySeverity": {"critical": 1, "high": 0, "medium": 0, "low": 0},
    "byType": {"critical": 1},
    "escalated": 0,
}


def _alert() -> Alert:
    return Alert(AlertType.CRITICAL, Severity.CRITICAL, "1 critical issues found", "/p/a.js", id="x")


class TestOverallStatus:
    def test_levels(self) -> None:
        assert overall_status({}) == "OK"
        assert overall_status({"active": 2, "bySeverity": {"critical": 0}}) == "WARNING"
        assert overall_status(ALERT_STATS) == "CRITICAL"


class TestPlainDashboard:
    def test_render_to_non_tty(self) -> None:
        stream = io.StringIO()
        dashboard = Dashboard(stream=stream)
        dashboard.update({"isRunning": True}, ALERT_STATS, {"totalFiles": 4})
        dashboard.render()
        out = stream.getvalue()
        assert "BASELINE WATCH" in out
        assert "Files analyzed: 4" in out
        assert "Critical/High/Medium/Low: 1/0/0/0" in out
        assert "\033[2J" not in out


class TestRichDashboard:
    def test_renders_panels(self) -> None:
        console = Console(file=io.StringIO(), width=120, force_terminal=False)
        dashboard = RichDashboard(console=console)
        dashboard.update({"isRunning": True, "watchedPaths": 1}, ALERT_STATS, [_alert()], {"totalFiles": 1})
        console.print(dashboard.get_renderable())
        out = console.file.getvalue()
        assert "Monitor Summary" in out
        assert "Active Alerts" in out
        assert "1 critical issues found" in out

    def test_attach_feeds_event_log(self) -> None:
        console = Console(file=io.StringIO(), width=120, force_terminal=False)
        bus = EventBus()
        dashboard = RichDashboard(console=console)
        detach = dashboard.attach(bus)
        bus.emit(EventKind.ALERT, AlertRaised(alert=_alert()))
        bus.emit(EventKind.FILE_DELETED, FileDeleted(file_path="/p/gone.js"))
        detach()
        bus.emit(EventKind.FILE_DELETED, FileDeleted(file_path="/p/late.js"))
        console.print(dashboard.get_renderable())
        out = console.file.getvalue()
        assert "Deleted: /p/gone.js" in out
        assert "late.js" not in out
        assert bus.handler_count(EventKind.ALERT) == 0
