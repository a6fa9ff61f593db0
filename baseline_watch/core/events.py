"""
Baseline Watch - Typed monitor events and a small publish/subscribe bus.

Each EventKind has one payload dataclass. Subscribers register per kind;
a failing subscriber is logged and never breaks the emitter.
"""

import logging
import threading
from collections import defaultdict
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional

from baseline_watch.core.models import Alert, AnalysisRecord

logger = logging.getLogger(__name__)


class EventKind(str, Enum):
    STARTED = "started"
    STOPPED = "stopped"
    FILE_ANALYZED = "file_analyzed"
    FILE_DELETED = "file_deleted"
    ALERT = "alert"
    ESCALATION = "escalation"
    ERROR = "error"
    NOTIFICATION = "notification"


@dataclass
class Started:
    watch_paths: list[str]


@dataclass
class Stopped:
    uptime_seconds: float


@dataclass
class FileAnalyzed:
    record: AnalysisRecord


@dataclass
class FileDeleted:
    file_path: str


@dataclass
class AlertRaised:
    alert: Alert


@dataclass
class AlertEscalated:
    alert: Alert
    occurrences: int


@dataclass
class MonitorErrorEvent:
    error: Exception
    file_path: Optional[str] = None


@dataclass
class NotificationSent:
    alert: Alert
    kind: str
    channel: str


EVENT_PAYLOADS: dict[EventKind, type] = {
    EventKind.STARTED: Started,
    EventKind.STOPPED: Stopped,
    EventKind.FILE_ANALYZED: FileAnalyzed,
    EventKind.FILE_DELETED: FileDeleted,
    EventKind.ALERT: AlertRaised,
    EventKind.ESCALATION: AlertEscalated,
    EventKind.ERROR: MonitorErrorEvent,
    EventKind.NOTIFICATION: NotificationSent,
}

Handler = Callable[[Any], None]


class EventBus:
    """Dispatch table of handlers keyed by EventKind."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._handlers: dict[EventKind, list[Handler]] = defaultdict(list)

    def subscribe(self, kind: EventKind, handler: Handler) -> Callable[[], None]:
        """Register handler for kind. Returns a callable that unsubscribes it."""
        with self._lock:
            self._handlers[kind].append(handler)

        def unsubscribe() -> None:
            with self._lock:
                try:
                    self._handlers[kind].remove(handler)
                except ValueError:
                    pass

        return unsubscribe

    def emit(self, kind: EventKind, payload: Any) -> None:
        expected = EVENT_PAYLOADS[kind]
        if not isinstance(payload, expected):
            raise TypeError(
                "Event %s expects %s, got %s" % (kind.value, expected.__name__, type(payload).__name__)
            )
        with self._lock:
            handlers = list(self._handlers.get(kind, ()))
        for handler in handlers:
            try:
                handler(payload)
            except Exception as e:
                logger.exception("Event handler for %s failed: %s", kind.value, e)

    def handler_count(self, kind: EventKind) -> int:
        with self._lock:
            return len(self._handlers.get(kind, ()))
