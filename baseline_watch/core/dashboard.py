"""
Baseline Watch - Plain CLI dashboard.

Fallback when stderr is not a TTY or the rich dashboard is disabled.
"""

import sys
from typing import Any, TextIO

_ANSI_REDRAW = "\033[2J\033[H"
_ANSI_RESET = "\033[0m"
STATUS_COLORS = {
    "OK": "\033[32m",
    "WARNING": "\033[33m",
    "CRITICAL": "\033[31m",
}
_RULE = "-" * 40


def overall_status(alert_stats: dict[str, Any]) -> str:
    """OK with no active alerts; CRITICAL if the last 24h also saw a critical one."""
    if not alert_stats.get("active", 0):
        return "OK"
    if alert_stats.get("bySeverity", {}).get("critical", 0):
        return "CRITICAL"
    return "WARNING"


class Dashboard:
    """Monitor and alert counters, redrawn in place after each processing pass."""

    def __init__(self, stream: TextIO = None):
        self._stream = stream or sys.stderr
        self._monitor: dict[str, Any] = {}
        self._alerts: dict[str, Any] = {}
        self._summary: dict[str, Any] = {}
        self._refreshes = 0

    def update(
        self,
        monitor_stats: dict[str, Any],
        alert_stats: dict[str, Any],
        summary: dict[str, Any],
    ) -> None:
        self._monitor, self._alerts, self._summary = monitor_stats, alert_stats, summary
        self._refreshes += 1

    def _rows(self) -> list[tuple[str, Any]]:
        sev = self._alerts.get("bySeverity", {})
        return [
            ("Files analyzed", self._summary.get("totalFiles", 0)),
            ("Avg risk", "%s%%" % self._summary.get("averageRiskScore", "-")),
            ("Avg compatibility", "%s%%" % self._summary.get("averageCompatibilityScore", "-")),
            ("Active alerts", self._alerts.get("active", 0)),
            ("Last hour / 24h", "%s / %s" % (self._alerts.get("last1h", 0), self._alerts.get("last24h", 0))),
            ("Critical/High/Medium/Low", "/".join(
                str(sev.get(level, 0)) for level in ("critical", "high", "medium", "low")
            )),
            ("Escalated", self._alerts.get("escalated", 0)),
        ]

    def render_text(self) -> str:
        status = overall_status(self._alerts)
        body = ["%s: %s" % row for row in self._rows()]
        body.append("Status: %s%s%s" % (STATUS_COLORS[status], status, _ANSI_RESET))
        return "\n".join(["", _RULE, "BASELINE WATCH  (refresh #%d)" % self._refreshes, _RULE, *body, _RULE, ""])

    def render(self) -> None:
        """Redraw in place on a terminal; append otherwise."""
        text = self.render_text()
        try:
            prefix = _ANSI_REDRAW if self._stream.isatty() else ""
            self._stream.write(prefix + text)
            self._stream.flush()
        except (OSError, UnicodeEncodeError):
            pass
