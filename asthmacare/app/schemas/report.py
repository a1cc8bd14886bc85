"""Report-related schemas."""

from datetime import datetime
from pydantic import BaseModel, Field

from asthmacare.app.schemas.analysis import AnalysisResult


class ReportResponse(BaseModel):
    """Schema for report data in responses."""

    id: str = Field(..., description="Report ID")
    user_id: str = Field(..., description="Owner ID")
    file_name: str = Field(..., description="Original file name")
    file_url: str = Field(..., description="Public file URL")
    content_type: str | None = Field(default=None, description="MIME type")
    analysis_result: AnalysisResult | None = Field(default=None, description="Analysis, once completed")
    upload_date: datetime = Field(..., description="Upload timestamp")
    status: str = Field(..., description="uploading, analyzing, completed or error")

    model_config = {"from_attributes": True}


class ReportListResponse(BaseModel):
    """Schema for the user's report list, newest first."""

    reports: list[ReportResponse]
    total: int


class UploadFailure(BaseModel):
    """A file that did not make it into the report list."""

    file_name: str
    error: str


class UploadBatchResponse(BaseModel):
    """Summary of one upload batch."""

    uploaded: list[ReportResponse] = Field(default_factory=list)
    failed: list[UploadFailure] = Field(default_factory=list)
    message: str
