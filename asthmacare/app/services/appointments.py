"""Appointment scheduling."""

import logging
from datetime import date

from asthmacare.app.core.exceptions import (
    AppointmentNotFoundError,
    AppointmentValidationError,
    PersistenceError,
)
from asthmacare.app.core.result import ServiceResult
from asthmacare.app.models.appointment import Appointment, AppointmentStatus
from asthmacare.app.schemas.appointment import AppointmentCreate
from asthmacare.app.services.database import Database
from asthmacare.app.utils.validation import is_valid_email

logger = logging.getLogger(__name__)


def validate_appointment(data: AppointmentCreate, today: date | None = None) -> str | None:
    """Return the first problem with an appointment request, or None."""
    if not data.patient_name.strip() or not data.phone.strip():
        return "Please fill in all required fields"
    if not is_valid_email(data.email.strip()):
        return "Please enter a valid email address"
    if data.preferred_date < (today or date.today()):
        return "Preferred date cannot be in the past"
    return None


class AppointmentService:
    """Schedules, lists and cancels a patient's appointment requests."""

    def __init__(self, database: Database):
        self.database = database

    async def schedule(self, user_id: str, data: AppointmentCreate) -> ServiceResult[Appointment]:
        """
        Record a new appointment request with status pending.

        Args:
            user_id: Requesting user
            data: Appointment form

        Returns:
            ServiceResult with the stored appointment
        """
        problem = validate_appointment(data)
        if problem:
            return ServiceResult.fail(problem, AppointmentValidationError(problem))

        result = await self.database.save_appointment(
            user_id=user_id,
            patient_name=data.patient_name.strip(),
            email=data.email.strip(),
            phone=data.phone.strip(),
            preferred_date=data.preferred_date,
            symptoms=data.symptoms,
        )
        if not result.success:
            logger.error(f"[DB] Failed to schedule appointment for {user_id}: {result.error}")
            return ServiceResult.fail(
                "Failed to schedule appointment",
                PersistenceError("schedule appointment", result.error),
            )
        return result

    async def list_for_user(self, user_id: str) -> ServiceResult[list[Appointment]]:
        result = await self.database.get_appointments(user_id)
        if not result.success:
            return ServiceResult.fail(result.error, PersistenceError("list appointments", result.error))
        return result

    async def cancel(self, user_id: str, appointment_id: str) -> ServiceResult[Appointment]:
        """Cancel a pending or confirmed appointment. Cancelling twice is a no-op."""
        result = await self.database.cancel_appointment(user_id, appointment_id)
        if not result.success:
            if result.error == "Appointment not found":
                return ServiceResult.fail(result.error, AppointmentNotFoundError(appointment_id))
            return ServiceResult.fail(result.error, PersistenceError("cancel appointment", result.error))
        logger.info(f"[DB] Appointment {appointment_id} is now {AppointmentStatus.CANCELLED.value}")
        return result
