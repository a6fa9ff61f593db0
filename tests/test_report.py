"""Tests for session summary reports."""

import json
from pathlib import Path

from baseline_watch.core.models import Alert, AlertType, Severity
from baseline_watch.core.report import build_session_report, write_json_report, write_session_report

MONITOR_STATS = {"isRunning": False, "watchedPaths": 1, "totalAlerts": 2, "uptime": 12.0}
ALERT_STATS = {
    "total": 2,
    "active": 1,
    "last24h": 2,
    "last1h": 1,
    "bySeverity": {"critical": 0, "high": 2, "medium": 0, "low": 0},
    "byType": {"risk": 2},
    "escalated": 0,
}
SUMMARY = {"totalFiles": 3, "averageRiskScore": 40, "averageCompatibilityScore": 90, "totalRecommendations": 5}


def _active() -> list[Alert]:
    return [Alert(AlertType.RISK, Severity.HIGH, "High risk score detected: 85%", "/p/a.js", id="x", count=2)]


class TestSessionReport:
    def test_markdown_contents(self) -> None:
        text = build_session_report(MONITOR_STATS, ALERT_STATS, SUMMARY, _active())
        assert text.startswith("# Baseline Watch - Session Summary")
        assert "- Files analyzed: 3" in text
        assert "| high | 2 |" in text
        assert "| high | risk | 2 | `/p/a.js` | High risk score detected: 85% |" in text

    def test_no_active_section_when_empty(self) -> None:
        text = build_session_report(MONITOR_STATS, ALERT_STATS, {"message": "No analyses available"}, [])
        assert "## Active alerts" not in text
        assert "- Files analyzed: 0" in text

    def test_write_markdown(self, tmp_path: Path) -> None:
        path = write_session_report(tmp_path / "logs" / "s.md", MONITOR_STATS, ALERT_STATS, SUMMARY, _active())
        assert path == tmp_path / "logs" / "s.md"
        assert "Session Summary" in path.read_text(encoding="utf-8")

    def test_write_json(self, tmp_path: Path) -> None:
        path = write_json_report(tmp_path / "s.json", MONITOR_STATS, ALERT_STATS, SUMMARY, _active())
        data = json.loads(path.read_text(encoding="utf-8"))
        assert data["summary"]["totalFiles"] == 3
        assert data["active_alerts"][0]["id"] == "x"

    def test_write_failure_returns_none(self, tmp_path: Path) -> None:
        blocker = tmp_path / "blocker"
        blocker.write_text("x", encoding="utf-8")
        assert write_session_report(blocker / "s.md", MONITOR_STATS, ALERT_STATS, SUMMARY, []) is None
        assert write_json_report(blocker / "s.json", MONITOR_STATS, ALERT_STATS, SUMMARY, []) is None
