"""Database models."""

from asthmacare.app.models.user import User
from asthmacare.app.models.auth_session import AuthSession
from asthmacare.app.models.chat_message import ChatMessage
from asthmacare.app.models.report import Report, ReportStatus
from asthmacare.app.models.appointment import Appointment, AppointmentStatus

__all__ = [
    "User",
    "AuthSession",
    "ChatMessage",
    "Report",
    "ReportStatus",
    "Appointment",
    "AppointmentStatus",
]
