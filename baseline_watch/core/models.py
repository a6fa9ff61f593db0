"""
Baseline Watch - Shared data models (changes, analyses, alerts).
"""

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional


class ChangeKind(str, Enum):
    """File change kinds surfaced by the watcher and poller."""

    CREATED = "created"
    MODIFIED = "modified"
    DELETED = "deleted"


class Severity(str, Enum):
    """Alert severity levels, lowest first."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        return _SEVERITY_ORDER.index(self)

    def promote(self) -> "Severity":
        """Next severity level; CRITICAL stays CRITICAL."""
        return _SEVERITY_ORDER[min(self.rank + 1, len(_SEVERITY_ORDER) - 1)]


_SEVERITY_ORDER = (Severity.LOW, Severity.MEDIUM, Severity.HIGH, Severity.CRITICAL)


class AlertType(str, Enum):
    """Alert categories."""

    RISK = "risk"
    COMPATIBILITY = "compatibility"
    CRITICAL = "critical"
    CUSTOM = "custom"


class AlertStatus(str, Enum):
    ACTIVE = "active"
    RESOLVED = "resolved"


@dataclass
class WatchTarget:
    """A root path observed by the watcher."""

    path: str
    recursive: bool = True


@dataclass
class ChangeEvent:
    """One observed file mutation."""

    file_path: str
    kind: ChangeKind
    timestamp: float = field(default_factory=time.time)


@dataclass
class Recommendation:
    """A single analyzer finding."""

    severity: Severity
    message: str = ""
    category: str = ""
    pattern: str = ""
    matches: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "severity": self.severity.value,
            "message": self.message,
            "category": self.category,
            "pattern": self.pattern,
            "matches": self.matches,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Recommendation":
        return cls(
            severity=_parse_severity(data.get("severity"), Severity.LOW),
            message=str(data.get("message", "")),
            category=str(data.get("category", "")),
            pattern=str(data.get("pattern", "")),
            matches=int(data.get("matches", 0) or 0),
        )


@dataclass
class AnalysisResult:
    """What an analyzer returns for one file's content."""

    risk_score: float
    compatibility_score: float
    recommendations: list[Recommendation] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "AnalysisResult":
        """
        Accept both the camelCase adapter shape
        ({riskScore, compatibilityScore, recommendations}) and snake_case keys.
        """
        risk = data.get("riskScore", data.get("risk_score", 0))
        compat = data.get("compatibilityScore", data.get("compatibility_score", 100))
        recs = data.get("recommendations") or []
        return cls(
            risk_score=float(risk or 0),
            compatibility_score=float(compat if compat is not None else 100),
            recommendations=[
                r if isinstance(r, Recommendation) else Recommendation.from_dict(r)
                for r in recs
            ],
        )


@dataclass
class AnalysisRecord:
    """Latest assessment for one file; one per path."""

    file_path: str
    risk_score: float
    compatibility_score: float
    recommendations: list[Recommendation] = field(default_factory=list)
    computed_at: float = field(default_factory=time.time)

    @property
    def critical_count(self) -> int:
        return sum(1 for r in self.recommendations if r.severity == Severity.CRITICAL)

    def to_dict(self) -> dict[str, Any]:
        return {
            "file_path": self.file_path,
            "risk_score": self.risk_score,
            "compatibility_score": self.compatibility_score,
            "recommendations": [r.to_dict() for r in self.recommendations],
            "computed_at": self.computed_at,
        }


@dataclass
class Alert:
    """
    A threshold violation. Identity (id) is derived from type, file_path and
    message; repeated violations bump count and last_seen.
    """

    type: AlertType
    severity: Severity
    message: str
    file_path: str
    id: str = ""
    count: int = 1
    first_seen: float = 0.0
    last_seen: float = 0.0
    status: AlertStatus = AlertStatus.ACTIVE
    escalated: bool = False
    escalation_count: int = 0
    original_severity: Optional[Severity] = None
    value: Optional[float] = None
    threshold: Optional[float] = None
    resolved_at: Optional[float] = None

    @property
    def timestamp(self) -> float:
        return self.first_seen

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "type": self.type.value,
            "severity": self.severity.value,
            "message": self.message,
            "file_path": self.file_path,
            "count": self.count,
            "first_seen": self.first_seen,
            "last_seen": self.last_seen,
            "status": self.status.value,
            "escalated": self.escalated,
        }
        if self.escalated:
            data["escalation_count"] = self.escalation_count
            data["original_severity"] = (
                self.original_severity.value if self.original_severity else None
            )
        if self.value is not None:
            data["value"] = self.value
        if self.threshold is not None:
            data["threshold"] = self.threshold
        if self.resolved_at is not None:
            data["resolved_at"] = self.resolved_at
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Alert":
        original = data.get("original_severity")
        return cls(
            type=_parse_alert_type(data.get("type")),
            severity=_parse_severity(data.get("severity"), Severity.LOW),
            message=str(data.get("message", "")),
            file_path=str(data.get("file_path", "")),
            id=str(data.get("id", "")),
            count=int(data.get("count", 1)),
            first_seen=float(data.get("first_seen", 0.0)),
            last_seen=float(data.get("last_seen", data.get("first_seen", 0.0))),
            status=AlertStatus(data.get("status", AlertStatus.ACTIVE.value)),
            escalated=bool(data.get("escalated", False)),
            escalation_count=int(data.get("escalation_count", 0)),
            original_severity=_parse_severity(original, None) if original else None,
            value=data.get("value"),
            threshold=data.get("threshold"),
            resolved_at=data.get("resolved_at"),
        )


@dataclass
class EscalationRule:
    """Escalate once max_count occurrences land inside time_window_seconds."""

    max_count: int
    time_window_seconds: float


def _parse_severity(value: Any, default: Optional[Severity]) -> Optional[Severity]:
    if isinstance(value, Severity):
        return value
    try:
        return Severity(str(value).lower())
    except ValueError:
        return default


def _parse_alert_type(value: Any) -> AlertType:
    try:
        return AlertType(str(value).lower())
    except ValueError:
        return AlertType.CUSTOM
