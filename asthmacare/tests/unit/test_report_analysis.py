"""Unit tests for the report analysis simulator."""

from datetime import datetime

import pytest
from pydantic import ValidationError

from asthmacare.app.schemas.analysis import AnalysisResult, RiskLevel
from asthmacare.app.services.report_analysis import (
    DEFAULT_CONFIDENCE,
    DISCLAIMER,
    GENERIC_FINDINGS,
    KeywordGroup,
    ReportAnalyzer,
    analyze_text,
    placeholder_text,
    render_analysis_text,
)


class TestAnalyzeText:
    """Test cases for analyze_text()."""

    def test_no_keywords_gives_generic_result(self):
        result = analyze_text("Routine checkup, nothing notable.")

        assert result.findings == list(GENERIC_FINDINGS)
        assert len(result.recommendations) == 3
        assert result.risk_level == RiskLevel.LOW
        assert result.confidence == DEFAULT_CONFIDENCE
        assert result.detected_conditions == []

    def test_asthma_keywords(self):
        result = analyze_text("Patient reports WHEEZING at night.")

        assert result.findings == ["Respiratory symptoms consistent with asthma detected"]
        assert result.risk_level == RiskLevel.MODERATE
        assert result.confidence == 0.92
        assert result.detected_conditions == ["Asthma"]

    def test_groups_accumulate_in_table_order(self):
        result = analyze_text("Spirometry shows reduced FEV1. Known asthma. IgE elevated.")

        assert result.findings == [
            "Respiratory symptoms consistent with asthma detected",
            "Allergic sensitization patterns identified",
            "Pulmonary function testing results available",
        ]
        assert result.detected_conditions == ["Asthma", "Allergic Rhinitis"]

    def test_severity_raises_risk_to_high(self):
        result = analyze_text("History of severe exacerbation requiring hospitalization")

        assert result.risk_level == RiskLevel.HIGH
        assert result.confidence == 0.95

    def test_risk_is_never_downgraded(self):
        """A later moderate group does not lower a high risk."""
        groups = (
            KeywordGroup("acute", ("acute",), ("Acute",), (), risk=RiskLevel.HIGH, confidence=0.95),
            KeywordGroup("mild", ("mild",), ("Mild",), (), risk=RiskLevel.MODERATE, confidence=0.9),
        )
        result = analyze_text("acute then mild", groups)

        assert result.risk_level == RiskLevel.HIGH
        assert result.confidence == 0.95

    def test_air_pollution_group(self):
        result = analyze_text("Lives near a highway, PM2.5 exposure")

        assert "Environmental air quality concerns noted" in result.findings
        assert result.risk_level == RiskLevel.LOW

    def test_result_is_immutable(self):
        result = analyze_text("asthma")
        with pytest.raises(ValidationError):
            result.summary = "changed"

    def test_serializes_with_camel_case_aliases(self):
        dumped = analyze_text("asthma").model_dump(by_alias=True)

        assert dumped["riskLevel"] == "moderate"
        assert dumped["detectedConditions"] == ["Asthma"]


class TestReportAnalyzer:
    """Test cases for the async analyzer."""

    @pytest.mark.asyncio
    async def test_analyze_without_delay(self):
        analyzer = ReportAnalyzer(delay_seconds=0)
        result = await analyzer.analyze("wheezing")

        assert isinstance(result, AnalysisResult)
        assert result.risk_level == RiskLevel.MODERATE

    @pytest.mark.asyncio
    async def test_analyze_none_text(self):
        analyzer = ReportAnalyzer(delay_seconds=0)
        result = await analyzer.analyze(None)

        assert result.findings == list(GENERIC_FINDINGS)


class TestExport:
    """Test cases for the text export."""

    def test_placeholder_text_depends_on_type(self):
        assert "PDF" in placeholder_text("application/pdf")
        assert "image" in placeholder_text("image/png").lower()

    def test_render_analysis_text(self):
        analysis = analyze_text("asthma and severe attacks")
        text = render_analysis_text(
            "spirometry.pdf",
            datetime(2024, 3, 1, 10, 30),
            analysis,
            generated_at=datetime(2024, 3, 1, 11, 0),
        )

        lines = text.splitlines()
        assert lines[0] == "Medical Report Analysis"
        assert "File: spirometry.pdf" in lines
        assert "Date: 2024-03-01" in lines
        assert "Risk Level: high" in lines
        assert "Confidence: 95%" in lines
        assert lines.index("Detected Conditions: Asthma") == lines.index("Confidence: 95%") + 1
        assert "• Respiratory symptoms consistent with asthma detected" in lines
        assert DISCLAIMER in lines
        assert lines[-1] == "2024-03-01 11:00:00"

    def test_render_accepts_stored_json(self):
        stored = analyze_text("asthma").model_dump(mode="json", by_alias=True)
        text = render_analysis_text("scan.png", datetime(2024, 1, 5), stored)

        assert "Risk Level: moderate" in text
