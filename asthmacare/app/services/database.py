"""
Persistence collaborator.

Row-oriented access to chat messages, reports and appointments, keyed by
owner. Each call opens its own session from the factory and returns a
``ServiceResult``; returned ORM objects are detached and safe to keep.
"""

import logging
from datetime import date, datetime
from typing import Any

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from asthmacare.app.core.result import ServiceResult, normalize_errors
from asthmacare.app.models.appointment import Appointment, AppointmentStatus
from asthmacare.app.models.chat_message import ChatMessage
from asthmacare.app.models.report import Report

logger = logging.getLogger(__name__)


class Database:
    """Async SQLAlchemy implementation of the persistence collaborator."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    # Chat messages

    @normalize_errors("db.save_chat_message")
    async def save_chat_message(self, user_id: str, message: str, response: str) -> ChatMessage:
        async with self.session_factory() as db:
            row = ChatMessage(user_id=user_id, message=message, response=response)
            db.add(row)
            await db.commit()
            await db.refresh(row)
            return row

    @normalize_errors("db.get_chat_messages")
    async def get_chat_messages(self, user_id: str, limit: int | None = None) -> list[ChatMessage]:
        """Chat exchanges of a user, oldest first."""
        async with self.session_factory() as db:
            query = (
                select(ChatMessage)
                .where(ChatMessage.user_id == user_id)
                .order_by(ChatMessage.created_at.asc())
            )
            if limit:
                query = query.limit(limit)
            result = await db.execute(query)
            return list(result.scalars().all())

    # Reports

    @normalize_errors("db.save_report")
    async def save_report(
        self,
        user_id: str,
        file_name: str,
        file_path: str,
        file_url: str,
        status: str,
        content_type: str | None = None,
        source_text: str | None = None,
    ) -> Report:
        async with self.session_factory() as db:
            report = Report(
                user_id=user_id,
                file_name=file_name,
                file_path=file_path,
                file_url=file_url,
                content_type=content_type,
                source_text=source_text,
                status=status,
                upload_date=datetime.utcnow(),
            )
            db.add(report)
            await db.commit()
            await db.refresh(report)
            logger.info(f"[DB] Inserted report {report.id} for user {user_id}")
            return report

    @normalize_errors("db.get_user_reports")
    async def get_user_reports(self, user_id: str) -> list[Report]:
        """Reports of a user, newest first."""
        async with self.session_factory() as db:
            result = await db.execute(
                select(Report)
                .where(Report.user_id == user_id)
                .order_by(Report.upload_date.desc())
            )
            return list(result.scalars().all())

    @normalize_errors("db.get_report")
    async def get_report(self, user_id: str, report_id: str) -> ServiceResult[Report]:
        async with self.session_factory() as db:
            result = await db.execute(
                select(Report).where(Report.id == report_id, Report.user_id == user_id)
            )
            report = result.scalar_one_or_none()
            if not report:
                return ServiceResult.fail("Report not found")
            return ServiceResult.ok(report)

    async def _update_report(self, user_id: str, report_id: str, values: dict[str, Any]) -> ServiceResult[Report]:
        async with self.session_factory() as db:
            result = await db.execute(
                select(Report).where(Report.id == report_id, Report.user_id == user_id)
            )
            report = result.scalar_one_or_none()
            if not report:
                return ServiceResult.fail("Report not found")
            for key, value in values.items():
                setattr(report, key, value)
            await db.commit()
            await db.refresh(report)
            return ServiceResult.ok(report)

    @normalize_errors("db.update_report_analysis")
    async def update_report_analysis(
        self,
        user_id: str,
        report_id: str,
        analysis: dict[str, Any],
        status: str,
    ) -> ServiceResult[Report]:
        return await self._update_report(
            user_id, report_id, {"analysis_result": analysis, "status": status}
        )

    @normalize_errors("db.update_report_status")
    async def update_report_status(self, user_id: str, report_id: str, status: str) -> ServiceResult[Report]:
        return await self._update_report(user_id, report_id, {"status": status})

    @normalize_errors("db.delete_report")
    async def delete_report(self, user_id: str, report_id: str) -> ServiceResult[dict]:
        async with self.session_factory() as db:
            result = await db.execute(
                delete(Report).where(Report.id == report_id, Report.user_id == user_id)
            )
            await db.commit()
            if result.rowcount == 0:
                return ServiceResult.fail("Report not found")
            logger.info(f"[DB] Deleted report {report_id}")
            return ServiceResult.ok({"id": report_id})

    # Appointments

    @normalize_errors("db.save_appointment")
    async def save_appointment(
        self,
        user_id: str,
        patient_name: str,
        email: str,
        phone: str,
        preferred_date: date,
        symptoms: str | None = None,
    ) -> Appointment:
        async with self.session_factory() as db:
            appointment = Appointment(
                user_id=user_id,
                patient_name=patient_name,
                email=email,
                phone=phone,
                preferred_date=preferred_date,
                symptoms=symptoms,
                status=AppointmentStatus.PENDING.value,
            )
            db.add(appointment)
            await db.commit()
            await db.refresh(appointment)
            logger.info(f"[DB] Scheduled appointment {appointment.id} for {preferred_date}")
            return appointment

    @normalize_errors("db.get_appointments")
    async def get_appointments(self, user_id: str) -> list[Appointment]:
        """Appointments of a user by preferred date, earliest first."""
        async with self.session_factory() as db:
            result = await db.execute(
                select(Appointment)
                .where(Appointment.user_id == user_id)
                .order_by(Appointment.preferred_date.asc(), Appointment.created_at.asc())
            )
            return list(result.scalars().all())

    @normalize_errors("db.cancel_appointment")
    async def cancel_appointment(self, user_id: str, appointment_id: str) -> ServiceResult[Appointment]:
        async with self.session_factory() as db:
            result = await db.execute(
                select(Appointment).where(
                    Appointment.id == appointment_id,
                    Appointment.user_id == user_id,
                )
            )
            appointment = result.scalar_one_or_none()
            if not appointment:
                return ServiceResult.fail("Appointment not found")
            appointment.status = AppointmentStatus.CANCELLED.value
            await db.commit()
            await db.refresh(appointment)
            return ServiceResult.ok(appointment)
