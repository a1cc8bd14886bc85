"""Report analysis schemas."""

from enum import Enum
from pydantic import BaseModel, ConfigDict, Field


class RiskLevel(str, Enum):
    """Risk level, ordered low < moderate < high."""
    LOW = "low"
    MODERATE = "moderate"
    HIGH = "high"

    @property
    def severity(self) -> int:
        return _RISK_ORDER[self]


_RISK_ORDER = {RiskLevel.LOW: 0, RiskLevel.MODERATE: 1, RiskLevel.HIGH: 2}


class AnalysisResult(BaseModel):
    """Structured result of a report analysis. Immutable once produced."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    summary: str = Field(..., description="One-line summary")
    findings: list[str] = Field(default_factory=list, description="Ordered findings")
    recommendations: list[str] = Field(default_factory=list, description="Ordered recommendations")
    risk_level: RiskLevel = Field(default=RiskLevel.LOW, alias="riskLevel")
    confidence: float = Field(default=0.85, ge=0.0, le=1.0)
    detected_conditions: list[str] = Field(default_factory=list, alias="detectedConditions")
