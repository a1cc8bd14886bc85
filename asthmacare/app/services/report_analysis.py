"""
Report analysis simulator.

Produces a structured analysis of a medical report by matching the report
text against an ordered table of keyword groups. No real inference takes
place; a fixed delay stands in for the processing time of a real model.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from asthmacare.app.core.config import settings
from asthmacare.app.schemas.analysis import AnalysisResult, RiskLevel

logger = logging.getLogger(__name__)


DEFAULT_SUMMARY = "Medical report analysis completed successfully."
DEFAULT_CONFIDENCE = 0.85

GENERIC_FINDINGS = ("General health parameters reviewed",)
GENERIC_RECOMMENDATIONS = (
    "Continue regular medical follow-up",
    "Maintain healthy lifestyle practices",
    "Monitor symptoms and seek care if worsening",
)

DISCLAIMER = (
    "This analysis is generated by AI and should not be considered as professional medical advice. "
    "Always consult with qualified healthcare professionals for accurate diagnosis and treatment "
    "recommendations."
)


@dataclass(frozen=True)
class KeywordGroup:
    """
    One row of the analysis table.

    Attributes:
        name: Group identifier
        keywords: Any of these (lower-case) substrings activates the group
        findings: Findings appended when active
        recommendations: Recommendations appended when active
        conditions: Detected conditions appended when active
        risk: Minimum risk level implied by the group, if any
        confidence: Minimum confidence implied by the group, if any
    """

    name: str
    keywords: tuple[str, ...]
    findings: tuple[str, ...]
    recommendations: tuple[str, ...]
    conditions: tuple[str, ...] = ()
    risk: RiskLevel | None = None
    confidence: float | None = None

    def matches(self, lowered_text: str) -> bool:
        return any(keyword in lowered_text for keyword in self.keywords)


KEYWORD_GROUPS: tuple[KeywordGroup, ...] = (
    KeywordGroup(
        name="respiratory",
        keywords=("asthma", "wheezing", "shortness of breath"),
        findings=("Respiratory symptoms consistent with asthma detected",),
        recommendations=(
            "Continue prescribed bronchodilator therapy",
            "Monitor peak flow readings daily",
            "Avoid known environmental triggers",
        ),
        conditions=("Asthma",),
        risk=RiskLevel.MODERATE,
        confidence=0.92,
    ),
    KeywordGroup(
        name="allergy",
        keywords=("allergen", "allergy", "ige"),
        findings=("Allergic sensitization patterns identified",),
        recommendations=(
            "Consider comprehensive allergy testing",
            "Implement environmental control measures",
            "Discuss immunotherapy options with allergist",
        ),
        conditions=("Allergic Rhinitis",),
    ),
    KeywordGroup(
        name="pulmonary_function",
        keywords=("peak flow", "spirometry", "fev1"),
        findings=("Pulmonary function testing results available",),
        recommendations=(
            "Regular spirometry monitoring recommended",
            "Optimize bronchodilator therapy based on results",
        ),
    ),
    KeywordGroup(
        name="inflammation",
        keywords=("eosinophil", "inflammation"),
        findings=("Inflammatory markers present",),
        recommendations=(
            "Consider anti-inflammatory treatment",
            "Monitor inflammatory biomarkers",
        ),
        risk=RiskLevel.MODERATE,
    ),
    KeywordGroup(
        name="severity",
        keywords=("severe", "emergency", "hospitalization"),
        findings=("History of severe asthma exacerbations",),
        recommendations=(
            "Develop comprehensive asthma action plan",
            "Consider step-up therapy",
            "Regular specialist follow-up recommended",
        ),
        risk=RiskLevel.HIGH,
        confidence=0.95,
    ),
    KeywordGroup(
        name="air_pollution",
        keywords=("pollution", "pm2.5", "air quality"),
        findings=("Environmental air quality concerns noted",),
        recommendations=(
            "Use air quality monitoring apps",
            "Consider air purifiers for indoor spaces",
            "Limit outdoor activities during high pollution days",
        ),
    ),
)


@dataclass
class _Accumulator:
    findings: list[str] = field(default_factory=list)
    recommendations: list[str] = field(default_factory=list)
    conditions: list[str] = field(default_factory=list)
    risk: RiskLevel = RiskLevel.LOW
    confidence: float = DEFAULT_CONFIDENCE

    def apply(self, group: KeywordGroup) -> None:
        self.findings.extend(group.findings)
        self.recommendations.extend(group.recommendations)
        self.conditions.extend(c for c in group.conditions if c not in self.conditions)
        # Highest severity wins regardless of group order
        if group.risk is not None and group.risk.severity > self.risk.severity:
            self.risk = group.risk
        if group.confidence is not None and group.confidence > self.confidence:
            self.confidence = group.confidence


def analyze_text(text: str, groups: tuple[KeywordGroup, ...] = KEYWORD_GROUPS) -> AnalysisResult:
    """
    Analyze report text synchronously.

    Args:
        text: Report text (any case)
        groups: Ordered keyword table

    Returns:
        AnalysisResult with findings and recommendations in table order
    """
    lowered = (text or "").lower()
    acc = _Accumulator()

    for group in groups:
        if group.matches(lowered):
            acc.apply(group)

    if not acc.findings:
        acc.findings.extend(GENERIC_FINDINGS)
        acc.recommendations.extend(GENERIC_RECOMMENDATIONS)

    return AnalysisResult(
        summary=DEFAULT_SUMMARY,
        findings=acc.findings,
        recommendations=acc.recommendations,
        risk_level=acc.risk,
        confidence=acc.confidence,
        detected_conditions=acc.conditions,
    )


class ReportAnalyzer:
    """
    Asynchronous front of the analysis simulator.

    Examples:
        >>> analyzer = ReportAnalyzer(delay_seconds=0)
        >>> result = await analyzer.analyze("wheezing at night")
        >>> result.risk_level
        <RiskLevel.MODERATE: 'moderate'>
    """

    def __init__(self, delay_seconds: float | None = None):
        """
        Initialize the analyzer.

        Args:
            delay_seconds: Simulated latency. If None, uses setting from config.
        """
        self.delay_seconds = (
            settings.analysis_delay_seconds if delay_seconds is None else delay_seconds
        )

    async def analyze(self, text: str) -> AnalysisResult:
        """Analyze report text after the simulated delay."""
        logger.info(f"[ANALYSIS] Analyzing report text ({len(text or '')} chars)")
        if self.delay_seconds:
            await asyncio.sleep(self.delay_seconds)
        result = analyze_text(text)
        logger.info(
            f"[ANALYSIS] Done: risk={result.risk_level.value}, findings={len(result.findings)}"
        )
        return result


def placeholder_text(content_type: str | None) -> str:
    """Text analyzed when the user gave no notes for an upload."""
    if content_type == "application/pdf":
        return "Medical report uploaded - PDF analysis pending"
    return "Medical image uploaded - Image analysis pending"


def render_analysis_text(
    file_name: str,
    upload_date: datetime,
    analysis: AnalysisResult | dict[str, Any],
    generated_at: datetime | None = None,
) -> str:
    """
    Render an analysis as a downloadable plain-text document.

    Args:
        file_name: Name of the analyzed file
        upload_date: When the file was uploaded
        analysis: Analysis result (model or stored JSON)
        generated_at: Timestamp printed in the footer

    Returns:
        Plain text export including the medical disclaimer
    """
    if not isinstance(analysis, AnalysisResult):
        analysis = AnalysisResult.model_validate(analysis)
    generated_at = generated_at or datetime.utcnow()

    findings = "\n".join(f"• {f}" for f in analysis.findings) or "None"
    recommendations = "\n".join(f"• {r}" for r in analysis.recommendations) or "None"

    lines = [
        "Medical Report Analysis",
        "",
        f"File: {file_name}",
        f"Date: {upload_date.strftime('%Y-%m-%d')}",
        f"Risk Level: {analysis.risk_level.value}",
        f"Confidence: {round(analysis.confidence * 100)}%",
        "",
        "SUMMARY:",
        analysis.summary,
        "",
        "KEY FINDINGS:",
        findings,
        "",
        "RECOMMENDATIONS:",
        recommendations,
        "",
        "DISCLAIMER:",
        DISCLAIMER,
        "",
        "Generated by AsthmaCare AI Assistant",
        generated_at.strftime("%Y-%m-%d %H:%M:%S"),
    ]
    if analysis.detected_conditions:
        lines[6:6] = [f"Detected Conditions: {', '.join(analysis.detected_conditions)}"]
    return "\n".join(lines) + "\n"
