"""
Baseline Watch - Alert management.

AlertSystem owns alert identity, deduplication, escalation, the bounded
persisted history and notification fan-out. All state is guarded by one
lock because watcher, debounce timer and poller run on separate threads.
"""

import dataclasses
import logging
import threading
import time
from pathlib import Path
from typing import Any, Callable, Optional, Union

from baseline_watch.core.events import (
    AlertEscalated,
    AlertRaised,
    EventBus,
    EventKind,
    NotificationSent,
)
from baseline_watch.core.hashing import identity_key
from baseline_watch.core.history import AlertHistoryStore
from baseline_watch.core.models import Alert, AlertStatus, AlertType, EscalationRule, Severity
from baseline_watch.core.notifier import KIND_ALERT, KIND_ESCALATION, NotificationChannel
from baseline_watch.core.thresholds import OccurrenceWindow, merge_escalation_rules

logger = logging.getLogger(__name__)

DEFAULT_HISTORY_PATH = Path("./alert-history.json")
DEFAULT_MAX_HISTORY_SIZE = 1000

HOUR_SECONDS = 60 * 60
DAY_SECONDS = 24 * HOUR_SECONDS

Channels = Union[dict[str, NotificationChannel], list[NotificationChannel]]


class AlertSystem:
    """
    Processes raw alerts:

    - identity key = hash(type, file_path, message); a repeat of an active
      alert bumps its count instead of creating a new entry
    - new alerts are prepended to history (capped at max_history_size) and
      the history file is rewritten
    - occurrences of the same (type, file) inside the escalation window for
      the alert's severity promote it one level and send an escalation
      notification on top of the standard one
    """

    def __init__(
        self,
        history_path: Union[str, Path] = DEFAULT_HISTORY_PATH,
        max_history_size: int = DEFAULT_MAX_HISTORY_SIZE,
        escalation_rules: Optional[dict[Any, Any]] = None,
        channels: Optional[Channels] = None,
        events: Optional[EventBus] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.max_history_size = max(1, int(max_history_size))
        self.escalation_rules: dict[Severity, EscalationRule] = merge_escalation_rules(escalation_rules)
        self.events = events or EventBus()
        self._clock = clock
        self._lock = threading.RLock()
        self._store = AlertHistoryStore(Path(history_path))
        self._channels = self._normalize_channels(channels)
        self._active: dict[str, Alert] = {}
        self._history: list[Alert] = self._store.load()[: self.max_history_size]
        retention = max(r.time_window_seconds for r in self.escalation_rules.values())
        self._occurrences = OccurrenceWindow(retention)
        self._occurrences.seed(self._history, self._clock())
        if self._history:
            logger.info("Loaded %d alerts from %s", len(self._history), self._store.path)

    @staticmethod
    def _normalize_channels(channels: Optional[Channels]) -> dict[str, NotificationChannel]:
        if channels is None:
            return {}
        if isinstance(channels, dict):
            return dict(channels)
        return {getattr(ch, "name", "channel%d" % i): ch for i, ch in enumerate(channels)}

    @property
    def history_path(self) -> Path:
        return self._store.path

    @property
    def channel_names(self) -> list[str]:
        return list(self._channels)

    def process_alert(self, raw: Alert) -> Alert:
        """Deduplicate, record, escalate and notify. Returns the live alert."""
        now = self._clock()
        key = identity_key(raw.type, raw.file_path, raw.message)
        with self._lock:
            existing = self._active.get(key)
            if existing is not None:
                existing.count += 1
                existing.last_seen = now
                self._occurrences.record(existing.type, existing.file_path, now)
                logger.debug("Duplicate alert %s (count=%d)", key, existing.count)
                escalated = self._check_escalation(existing, now)
                if escalated:
                    self._persist()
                alert = existing
                is_new = False
            else:
                alert = dataclasses.replace(
                    raw,
                    id=key,
                    count=1,
                    first_seen=now,
                    last_seen=now,
                    status=AlertStatus.ACTIVE,
                    resolved_at=None,
                )
                self._active[key] = alert
                self._history.insert(0, alert)
                if len(self._history) > self.max_history_size:
                    del self._history[self.max_history_size:]
                self._occurrences.record(alert.type, alert.file_path, now)
                escalated = self._check_escalation(alert, now)
                self._persist()
                is_new = True

        if is_new:
            logger.info("Alert [%s] %s: %s", alert.severity.value, alert.file_path, alert.message)
            self.events.emit(EventKind.ALERT, AlertRaised(alert=alert))
            self._send_notifications(alert, KIND_ALERT)
        if escalated:
            self.events.emit(
                EventKind.ESCALATION, AlertEscalated(alert=alert, occurrences=alert.escalation_count)
            )
            self._send_notifications(alert, KIND_ESCALATION)
        return alert

    def _check_escalation(self, alert: Alert, now: float) -> bool:
        """Promote alert in place when its rule's window is full. Caller holds the lock."""
        rule = self.escalation_rules.get(alert.severity)
        if rule is None:
            return False
        occurrences = self._occurrences.count(alert.type, alert.file_path, rule.time_window_seconds, now)
        if occurrences < rule.max_count:
            return False
        if alert.severity == Severity.CRITICAL and alert.escalated:
            return False
        if alert.original_severity is None:
            alert.original_severity = alert.severity
        previous = alert.severity
        alert.severity = alert.severity.promote()
        alert.escalated = True
        alert.escalation_count = occurrences
        logger.warning(
            "ESCALATED: %s (%d occurrences in %.0fs, %s -> %s)",
            alert.message,
            occurrences,
            rule.time_window_seconds,
            previous.value,
            alert.severity.value,
        )
        return True

    def _persist(self) -> None:
        self._store.save(self._history)

    def _send_notifications(self, alert: Alert, kind: str) -> None:
        """Invoke every channel; one failing channel never blocks the rest."""
        for name, channel in list(self._channels.items()):
            try:
                channel(alert, kind)
            except Exception as e:
                logger.error("Failed to send notification via %s: %s", name, e, exc_info=True)
                continue
            self.events.emit(EventKind.NOTIFICATION, NotificationSent(alert=alert, kind=kind, channel=name))

    def get_active_alerts(self) -> list[Alert]:
        with self._lock:
            return list(self._active.values())

    def get_alert(self, alert_id: str) -> Optional[Alert]:
        with self._lock:
            return self._active.get(alert_id)

    def get_history(self) -> list[Alert]:
        with self._lock:
            return list(self._history)

    def clear_alert(self, alert_id: str) -> bool:
        """Resolve one active alert. History entries are not rewritten."""
        with self._lock:
            alert = self._active.pop(alert_id, None)
            if alert is None:
                return False
            alert.status = AlertStatus.RESOLVED
            alert.resolved_at = self._clock()
        logger.info("Alert %s resolved", alert_id)
        return True

    def clear_all_alerts(self) -> None:
        with self._lock:
            self._active.clear()
        logger.info("All alerts cleared")

    def clear_history(self) -> bool:
        with self._lock:
            self._history.clear()
            self._occurrences.seed([], self._clock())
            return self._store.clear()

    def get_stats(self) -> dict[str, Any]:
        """Rolling 24h/1h statistics derived from history on each call."""
        now = self._clock()
        with self._lock:
            history = list(self._history)
            active = len(self._active)
        last_day = [a for a in history if a.first_seen >= now - DAY_SECONDS]
        last_hour = [a for a in history if a.first_seen >= now - HOUR_SECONDS]
        by_severity = {s.value: 0 for s in reversed(list(Severity))}
        by_type: dict[str, int] = {}
        for a in last_day:
            by_severity[a.severity.value] += 1
            by_type[a.type.value] = by_type.get(a.type.value, 0) + 1
        return {
            "total": len(history),
            "active": active,
            "last24h": len(last_day),
            "last1h": len(last_hour),
            "bySeverity": by_severity,
            "byType": by_type,
            "escalated": sum(1 for a in last_day if a.escalated),
        }


def custom_alert(file_path: str, message: str, severity: Severity = Severity.MEDIUM) -> Alert:
    """Caller-defined alert for process_alert()."""
    return Alert(type=AlertType.CUSTOM, severity=severity, message=message, file_path=file_path)
