"""Report model for uploaded medical reports."""

from datetime import datetime
from enum import Enum
import uuid

from sqlalchemy import String, DateTime, JSON, Text
from sqlalchemy.orm import Mapped, mapped_column

from asthmacare.app.db.base import Base


class ReportStatus(str, Enum):
    """Report lifecycle status."""
    UPLOADING = "uploading"
    ANALYZING = "analyzing"
    COMPLETED = "completed"
    ERROR = "error"


class Report(Base):
    """
    Report model for a user-submitted medical document and its analysis.

    Attributes:
        id: Unique report identifier (UUID)
        user_id: Owner of the report
        file_name: Original file name
        file_path: Object path inside the reports bucket
        file_url: Public URL of the stored file
        content_type: MIME type of the upload
        source_text: Text the analyzer reads (notes or placeholder)
        analysis_result: Analysis result JSON, null until analyzed
        upload_date: Upload timestamp
        status: uploading, analyzing, completed or error
    """

    __tablename__ = "reports"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid.uuid4()),
    )
    user_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    file_name: Mapped[str] = mapped_column(String(255), nullable=False)
    file_path: Mapped[str] = mapped_column(String(512), nullable=False)
    file_url: Mapped[str] = mapped_column(String(1024), nullable=False)
    content_type: Mapped[str | None] = mapped_column(String(100), nullable=True)
    source_text: Mapped[str | None] = mapped_column(Text, nullable=True)
    analysis_result: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    upload_date: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        default=datetime.utcnow,
        index=True,
    )
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=ReportStatus.ANALYZING.value,
    )

    def __repr__(self) -> str:
        return f"<Report(id={self.id}, file_name={self.file_name}, status={self.status})>"
