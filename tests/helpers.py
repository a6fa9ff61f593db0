"""Test doubles shared across test modules."""

from typing import Any

from baseline_watch.core.models import Alert, AnalysisResult, Recommendation, Severity


class FakeClock:
    """Manually advanced time source."""

    def __init__(self, start: float = 1_700_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingChannel:
    """Notification channel that remembers (alert id, severity, kind)."""

    def __init__(self, fail: bool = False) -> None:
        self.sent: list[tuple[str, Severity, str]] = []
        self._fail = fail

    def __call__(self, alert: Alert, kind: str) -> None:
        if self._fail:
            raise ConnectionError("fake channel error")
        self.sent.append((alert.id, alert.severity, kind))

    def kinds(self) -> list[str]:
        return [k for _, _, k in self.sent]


class FakeAnalyzer:
    """Returns a fixed result and counts calls."""

    def __init__(self, result: Any = None, error: Exception = None) -> None:
        self.result = result or AnalysisResult(risk_score=10.0, compatibility_score=95.0)
        self.error = error
        self.calls: list[str] = []

    def analyze(self, code: str, file_path: str) -> Any:
        self.calls.append(file_path)
        if self.error is not None:
            raise self.error
        return self.result


def risky_result() -> AnalysisResult:
    return AnalysisResult(
        risk_score=85.0,
        compatibility_score=90.0,
        recommendations=[Recommendation(severity=Severity.HIGH, message="x", category="security")],
    )
