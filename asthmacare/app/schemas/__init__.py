"""Pydantic schemas for API request/response validation."""

from asthmacare.app.schemas.user import (
    SignUpRequest,
    SignInRequest,
    UserProfile,
    SessionInfo,
    AuthEnvelope,
)
from asthmacare.app.schemas.analysis import AnalysisResult, RiskLevel
from asthmacare.app.schemas.report import (
    ReportResponse,
    ReportListResponse,
    UploadFailure,
    UploadBatchResponse,
)
from asthmacare.app.schemas.chat import (
    ChatRequest,
    ChatResponse,
    ChatHistoryResponse,
    TranscriptEntry,
)
from asthmacare.app.schemas.air_quality import (
    AirQualityReading,
    CitySuggestion,
    Coordinates,
    ForecastDay,
    PollutantReading,
)
from asthmacare.app.schemas.appointment import AppointmentCreate, AppointmentResponse
from asthmacare.app.schemas.function import ActionRequest

__all__ = [
    "SignUpRequest",
    "SignInRequest",
    "UserProfile",
    "SessionInfo",
    "AuthEnvelope",
    "AnalysisResult",
    "RiskLevel",
    "ReportResponse",
    "ReportListResponse",
    "UploadFailure",
    "UploadBatchResponse",
    "ChatRequest",
    "ChatResponse",
    "ChatHistoryResponse",
    "TranscriptEntry",
    "AirQualityReading",
    "CitySuggestion",
    "Coordinates",
    "ForecastDay",
    "PollutantReading",
    "AppointmentCreate",
    "AppointmentResponse",
    "ActionRequest",
]
