"""
Baseline Watch - Session summary reports.

Written when a monitor session ends: Markdown for people, JSON for tools.
Failures are logged and never raised to the caller.
"""

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

from baseline_watch.core.models import Alert

logger = logging.getLogger(__name__)


def _ts_string(t: Optional[float]) -> str:
    """Format Unix timestamp to UTC string."""
    if not t:
        return "N/A"
    try:
        return datetime.fromtimestamp(t, tz=timezone.utc).strftime("%Y-%m-%d %H:%M:%S UTC")
    except (OSError, ValueError, OverflowError):
        return str(t)


def build_session_report(
    monitor_stats: dict[str, Any],
    alert_stats: dict[str, Any],
    summary: dict[str, Any],
    active_alerts: list[Alert],
) -> str:
    """Markdown session summary."""
    lines = [
        "# Baseline Watch - Session Summary",
        "",
        f"Generated: {_ts_string(datetime.now(timezone.utc).timestamp())}",
        "",
        "## Analysis",
        "",
        f"- Files analyzed: {summary.get('totalFiles', 0)}",
        f"- Average risk score: {summary.get('averageRiskScore', 'N/A')}",
        f"- Average compatibility score: {summary.get('averageCompatibilityScore', 'N/A')}",
        f"- Total recommendations: {summary.get('totalRecommendations', 0)}",
        f"- High-risk files: {summary.get('criticalIssues', 0)}",
        f"- Last updated: {_ts_string(summary.get('lastUpdated'))}",
        "",
        "## Alerts",
        "",
        f"- Alerts raised this session: {monitor_stats.get('totalAlerts', 0)}",
        f"- Active: {alert_stats.get('active', 0)}",
        f"- Last hour / 24h: {alert_stats.get('last1h', 0)} / {alert_stats.get('last24h', 0)}",
        f"- Escalated (24h): {alert_stats.get('escalated', 0)}",
        f"- History size: {alert_stats.get('total', 0)}",
        "",
        "| Severity | Count (24h) |",
        "|----------|-------------|",
    ]
    for severity, count in alert_stats.get("bySeverity", {}).items():
        lines.append(f"| {severity} | {count} |")
    if active_alerts:
        lines.extend(["", "## Active alerts", "", "| Severity | Type | Count | File | Message |",
                      "|----------|------|-------|------|---------|"])
        for a in active_alerts:
            lines.append(
                f"| {a.severity.value} | {a.type.value} | {a.count} | `{a.file_path}` | {a.message} |"
            )
    return "\n".join(lines) + "\n"


def write_session_report(
    report_path: Path,
    monitor_stats: dict[str, Any],
    alert_stats: dict[str, Any],
    summary: dict[str, Any],
    active_alerts: list[Alert],
) -> Optional[Path]:
    """Write the Markdown summary. Returns the path, or None on failure."""
    report_path = Path(report_path)
    try:
        report_path.parent.mkdir(parents=True, exist_ok=True)
        report_path.write_text(
            build_session_report(monitor_stats, alert_stats, summary, active_alerts), encoding="utf-8"
        )
    except OSError as e:
        logger.warning("Failed to write session report to %s: %s", report_path, e)
        return None
    logger.info("Session report saved to %s", report_path)
    return report_path


def write_json_report(
    report_path: Path,
    monitor_stats: dict[str, Any],
    alert_stats: dict[str, Any],
    summary: dict[str, Any],
    active_alerts: list[Alert],
) -> Optional[Path]:
    """Same data as write_session_report, as JSON."""
    report_path = Path(report_path)
    payload = {
        "generated_at": datetime.now(timezone.utc).isoformat(),
        "monitor": monitor_stats,
        "alerts": alert_stats,
        "summary": summary,
        "active_alerts": [a.to_dict() for a in active_alerts],
    }
    try:
        report_path.parent.mkdir(parents=True, exist_ok=True)
        report_path.write_text(json.dumps(payload, indent=2, default=str), encoding="utf-8")
    except OSError as e:
        logger.warning("Failed to write JSON report to %s: %s", report_path, e)
        return None
    logger.info("JSON report saved to %s", report_path)
    return report_path
