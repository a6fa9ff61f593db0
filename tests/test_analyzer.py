"""Tests for the local pattern analyzer and analyzer adapter."""

import pytest

from baseline_watch.core.analyzer import (
    LocalPatternAnalyzer,
    calculate_compatibility_score,
    calculate_risk_score,
    detect_framework,
    run_analyzer,
)
from baseline_watch.core.models import AnalysisResult, Recommendation, Severity


class TestScores:
    def test_clean_file(self) -> None:
        assert calculate_risk_score([]) == 0.0
        assert calculate_compatibility_score([]) == 100.0

    def test_risk_is_mean_weight_scaled(self) -> None:
        recs = [Recommendation(severity=Severity.CRITICAL), Recommendation(severity=Severity.LOW)]
        assert calculate_risk_score(recs) == 62.5

    def test_compatibility_penalties(self) -> None:
        recs = [
            Recommendation(severity=Severity.HIGH, category="compatibility"),
            Recommendation(severity=Severity.MEDIUM, category="compatibility"),
            Recommendation(severity=Severity.LOW, category="compatibility"),
            Recommendation(severity=Severity.CRITICAL, category="security"),
        ]
        assert calculate_compatibility_score(recs) == 60.0

    def test_compatibility_floor(self) -> None:
        recs = [Recommendation(severity=Severity.CRITICAL, category="compatibility")] * 5
        assert calculate_compatibility_score(recs) == 0.0


class TestLocalPatternAnalyzer:
    def test_eval_is_critical(self) -> None:
        result = LocalPatternAnalyzer().analyze("const x = eval(input);", "/a.js")
        assert result.risk_score == 100.0
        assert result.compatibility_score == 100.0
        assert [r.pattern for r in result.recommendations] == ["eval-usage"]
        assert result.recommendations[0].severity == Severity.CRITICAL

    def test_legacy_api_lowers_compatibility(self) -> None:
        result = LocalPatternAnalyzer().analyze("if (document.all) { el.attachEvent('onclick', f); }", "/a.js")
        assert result.compatibility_score == 75.0
        assert result.recommendations[0].matches == 2

    def test_clean_code(self) -> None:
        result = LocalPatternAnalyzer().analyze("export const add = (a, b) => a + b;", "/a.ts")
        assert result.recommendations == []
        assert result.risk_score == 0.0

    def test_findings_sorted_by_severity(self) -> None:
        code = "eval(x); el.innerHTML = y; .box { width: 1200px; }"
        result = LocalPatternAnalyzer().analyze(code, "/a.js")
        ranks = [r.severity.rank for r in result.recommendations]
        assert ranks == sorted(ranks, reverse=True)


class TestDetectFramework:
    @pytest.mark.parametrize(
        "path,expected", [("/a.vue", "vue"), ("/a.jsx", "react"), ("/a.tsx", "react"), ("/a.js", "vanilla")]
    )
    def test_detect(self, path: str, expected: str) -> None:
        assert detect_framework(path) == expected


class TestRunAnalyzer:
    def test_plain_callable_returning_dict(self) -> None:
        result = run_analyzer(lambda code, path: {"riskScore": 75, "compatibilityScore": 50}, "", "/a.js")
        assert isinstance(result, AnalysisResult)
        assert result.risk_score == 75.0

    def test_object_with_analyze(self) -> None:
        result = run_analyzer(LocalPatternAnalyzer(), "eval(1)", "/a.js")
        assert result.risk_score == 100.0

    def test_unsupported_result(self) -> None:
        with pytest.raises(TypeError):
            run_analyzer(lambda code, path: 42, "", "/a.js")
