"""
Baseline Watch - Analyzer adapter.

The monitor treats analysis as a black box: anything with
analyze(code, file_path) returning an AnalysisResult (or the equivalent
{riskScore, compatibilityScore, recommendations} dict) can be plugged in.
LocalPatternAnalyzer is the offline default.
"""

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Protocol, Union

from baseline_watch.core.models import AnalysisResult, Recommendation, Severity

logger = logging.getLogger(__name__)

SEVERITY_WEIGHTS = {
    Severity.LOW: 1,
    Severity.MEDIUM: 2,
    Severity.HIGH: 3,
    Severity.CRITICAL: 4,
}


class Analyzer(Protocol):
    def analyze(self, code: str, file_path: str) -> Union[AnalysisResult, dict[str, Any]]:
        ...


AnalyzerLike = Union[Analyzer, Callable[[str, str], Union[AnalysisResult, dict[str, Any]]]]


@dataclass(frozen=True)
class Pattern:
    name: str
    category: str
    regex: "re.Pattern[str]"
    severity: Severity
    message: str


def _p(name: str, category: str, regex: str, severity: Severity, message: str) -> Pattern:
    return Pattern(name, category, re.compile(regex), severity, message)


LOCAL_PATTERNS: tuple[Pattern, ...] = (
    _p("excessive-dom-queries", "performance", r"document\.querySelectorAll\([^)]+\)",
       Severity.MEDIUM, "Consider caching DOM queries or using more specific selectors"),
    _p("synchronous-xhr", "performance", r"\.open\([^,]+,\s*[^,]+,\s*false\)",
       Severity.HIGH, "Use async requests instead of synchronous XMLHttpRequest"),
    _p("missing-alt-text", "accessibility", r"<img(?![^>]*\balt=)[^>]*>",
       Severity.HIGH, "Add alt text for better accessibility"),
    _p("missing-aria-label", "accessibility", r"<button(?![^>]*aria-label)[^>]*>\s*</button>",
       Severity.MEDIUM, "Add aria-label to buttons without text content"),
    _p("innerhtml-usage", "security", r"\.innerHTML\s*=",
       Severity.HIGH, "Avoid innerHTML with user input to prevent XSS"),
    _p("eval-usage", "security", r"\beval\s*\(",
       Severity.CRITICAL, "Never use eval() as it can execute arbitrary code"),
    _p("javascript-url", "security", r"href\s*=\s*[\"']javascript:",
       Severity.HIGH, "Avoid javascript: URLs"),
    _p("legacy-apis", "compatibility", r"document\.all\b|window\.event\b|\battachEvent\s*\(",
       Severity.HIGH, "Replace legacy, non-standard APIs with their modern equivalents"),
    _p("unprefixed-experimental-css", "compatibility", r"-webkit-box-reflect|zoom\s*:",
       Severity.MEDIUM, "Non-standard CSS property with limited browser support"),
    _p("missing-feature-detection", "compatibility",
       r"\b(?:navigator\.share|showOpenFilePicker|navigator\.bluetooth)\b",
       Severity.MEDIUM, "API not broadly available; add feature detection"),
    _p("hardcoded-pixels", "layout", r"(?:width|height):\s*\d{3,}px",
       Severity.LOW, "Consider responsive units"),
)


def calculate_risk_score(recommendations: list[Recommendation]) -> float:
    """Mean severity weight scaled to 0-100; 0 for a clean file."""
    if not recommendations:
        return 0.0
    total = sum(SEVERITY_WEIGHTS.get(r.severity, 0) for r in recommendations)
    return min(100.0, round(total / len(recommendations) * 25, 1))


def calculate_compatibility_score(recommendations: list[Recommendation]) -> float:
    penalty = 0
    for rec in recommendations:
        if rec.category != "compatibility":
            continue
        if rec.severity in (Severity.HIGH, Severity.CRITICAL):
            penalty += 25
        elif rec.severity == Severity.MEDIUM:
            penalty += 10
        else:
            penalty += 5
    return float(max(0, 100 - penalty))


def detect_framework(file_path: str) -> str:
    suffix = Path(file_path).suffix.lower()
    if suffix == ".vue":
        return "vue"
    if suffix in (".jsx", ".tsx"):
        return "react"
    return "vanilla"


class LocalPatternAnalyzer:
    """Offline regex analyzer over a small, fixed pattern set."""

    def __init__(self, patterns: tuple[Pattern, ...] = LOCAL_PATTERNS) -> None:
        self.patterns = patterns

    def analyze(self, code: str, file_path: str) -> AnalysisResult:
        recommendations: list[Recommendation] = []
        for pattern in self.patterns:
            matches = pattern.regex.findall(code)
            if not matches:
                continue
            recommendations.append(
                Recommendation(
                    severity=pattern.severity,
                    message=pattern.message,
                    category=pattern.category,
                    pattern=pattern.name,
                    matches=len(matches),
                )
            )
        recommendations.sort(key=lambda r: r.severity.rank, reverse=True)
        logger.debug(
            "Analyzed %s (%s): %d findings", file_path, detect_framework(file_path), len(recommendations)
        )
        return AnalysisResult(
            risk_score=calculate_risk_score(recommendations),
            compatibility_score=calculate_compatibility_score(recommendations),
            recommendations=recommendations,
        )


def run_analyzer(analyzer: AnalyzerLike, code: str, file_path: str) -> AnalysisResult:
    """Call an analyzer object or plain callable and normalize its result."""
    if hasattr(analyzer, "analyze"):
        result = analyzer.analyze(code, file_path)
    else:
        result = analyzer(code, file_path)
    if isinstance(result, AnalysisResult):
        return result
    if isinstance(result, dict):
        return AnalysisResult.from_dict(result)
    raise TypeError("Analyzer returned unsupported result type %s" % type(result).__name__)
