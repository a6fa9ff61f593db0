"""
Baseline Watch - Threshold evaluation and escalation windows.

AlertEvaluator turns one AnalysisRecord into zero or more alerts.
OccurrenceWindow keeps a sliding window of occurrence timestamps per
(alert type, file) so repeated violations can escalate.
"""

import logging
from collections import deque
from dataclasses import dataclass
from typing import Any, Deque, Optional

from baseline_watch.core.models import (
    Alert,
    AlertType,
    AnalysisRecord,
    EscalationRule,
    Severity,
)

logger = logging.getLogger(__name__)

DEFAULT_RISK_THRESHOLD = 70.0
DEFAULT_COMPATIBILITY_THRESHOLD = 60.0

DEFAULT_ESCALATION_RULES: dict[Severity, EscalationRule] = {
    Severity.CRITICAL: EscalationRule(max_count=5, time_window_seconds=300),
    Severity.HIGH: EscalationRule(max_count=10, time_window_seconds=600),
    Severity.MEDIUM: EscalationRule(max_count=20, time_window_seconds=1800),
    Severity.LOW: EscalationRule(max_count=50, time_window_seconds=3600),
}


@dataclass
class ThresholdConfig:
    """Alert thresholds for analysis scores."""

    risk_threshold: float = DEFAULT_RISK_THRESHOLD
    compatibility_threshold: float = DEFAULT_COMPATIBILITY_THRESHOLD


def _fmt_score(score: float) -> str:
    return ("%d" % score) if float(score).is_integer() else ("%.1f" % score)


class AlertEvaluator:
    """
    Compares an analysis against thresholds. Rules are independent: one
    analysis can yield a risk, a compatibility and a critical alert at once.
    """

    def __init__(self, config: Optional[ThresholdConfig] = None) -> None:
        self.config = config or ThresholdConfig()

    def evaluate(self, record: AnalysisRecord) -> list[Alert]:
        alerts: list[Alert] = []
        if record.risk_score > self.config.risk_threshold:
            alerts.append(
                Alert(
                    type=AlertType.RISK,
                    severity=Severity.HIGH,
                    message="High risk score detected: %s%%" % _fmt_score(record.risk_score),
                    file_path=record.file_path,
                    value=record.risk_score,
                    threshold=self.config.risk_threshold,
                )
            )
        if record.compatibility_score < self.config.compatibility_threshold:
            alerts.append(
                Alert(
                    type=AlertType.COMPATIBILITY,
                    severity=Severity.HIGH,
                    message="Low compatibility score: %s%%" % _fmt_score(record.compatibility_score),
                    file_path=record.file_path,
                    value=record.compatibility_score,
                    threshold=self.config.compatibility_threshold,
                )
            )
        critical = record.critical_count
        if critical > 0:
            alerts.append(
                Alert(
                    type=AlertType.CRITICAL,
                    severity=Severity.CRITICAL,
                    message="%d critical issues found" % critical,
                    file_path=record.file_path,
                    value=float(critical),
                )
            )
        return alerts


def merge_escalation_rules(
    overrides: Optional[dict[Any, Any]] = None,
) -> dict[Severity, EscalationRule]:
    """
    Defaults updated with overrides. Keys may be Severity or severity
    names; values EscalationRule or {max_count, time_window_seconds}.
    """
    rules = dict(DEFAULT_ESCALATION_RULES)
    for key, value in (overrides or {}).items():
        try:
            severity = key if isinstance(key, Severity) else Severity(str(key).lower())
        except ValueError:
            logger.warning("Ignoring escalation rule for unknown severity %r", key)
            continue
        if isinstance(value, EscalationRule):
            rule = value
        else:
            rule = EscalationRule(
                max_count=int(value.get("max_count", rules[severity].max_count)),
                time_window_seconds=float(
                    value.get("time_window_seconds", rules[severity].time_window_seconds)
                ),
            )
        rules[severity] = EscalationRule(
            max_count=max(1, rule.max_count),
            time_window_seconds=max(0.0, rule.time_window_seconds),
        )
    return rules


class OccurrenceWindow:
    """
    Sliding windows of occurrence timestamps keyed by (alert type, file).
    Entries older than the widest escalation window are pruned.
    """

    def __init__(self, retention_seconds: float) -> None:
        self.retention_seconds = retention_seconds
        self._windows: dict[tuple[str, str], Deque[float]] = {}

    @staticmethod
    def _key(alert_type: AlertType, file_path: str) -> tuple[str, str]:
        return (alert_type.value, file_path)

    def _prune(self, window: Deque[float], now: float) -> None:
        cutoff = now - self.retention_seconds
        while window and window[0] < cutoff:
            window.popleft()

    def seed(self, alerts: list[Alert], now: float) -> None:
        """Rebuild windows from persisted history (any order)."""
        self._windows.clear()
        for alert in sorted(alerts, key=lambda a: a.first_seen):
            if now - alert.first_seen <= self.retention_seconds:
                self._windows.setdefault(self._key(alert.type, alert.file_path), deque()).append(
                    alert.first_seen
                )

    def record(self, alert_type: AlertType, file_path: str, timestamp: float) -> None:
        window = self._windows.setdefault(self._key(alert_type, file_path), deque())
        self._prune(window, timestamp)
        window.append(timestamp)

    def count(self, alert_type: AlertType, file_path: str, window_seconds: float, now: float) -> int:
        window = self._windows.get(self._key(alert_type, file_path))
        if not window:
            return 0
        self._prune(window, now)
        return sum(1 for t in window if now - t <= window_seconds)
