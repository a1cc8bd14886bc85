"""
Report lifecycle controller.

Owns one user's in-memory report list and drives each report through
uploading -> analyzing -> completed | error. Analysis runs as one background
task per report id; results are written to the database before the
in-memory copy changes, and completions for reports that were deleted or
re-analyzed in the meantime are dropped.
"""

import asyncio
import logging
import secrets
import time
from dataclasses import dataclass
from pathlib import PurePosixPath
from typing import Any, Awaitable, Callable

from asthmacare.app.core.config import settings
from asthmacare.app.core.exceptions import (
    AuthenticationRequiredError,
    InvalidStatusTransitionError,
    InvalidUploadError,
    PersistenceError,
    ReportDeletionError,
    ReportNotFoundError,
    StorageError,
)
from asthmacare.app.core.result import ServiceResult
from asthmacare.app.models.report import Report, ReportStatus
from asthmacare.app.schemas.report import ReportResponse, UploadBatchResponse, UploadFailure
from asthmacare.app.schemas.user import SessionInfo
from asthmacare.app.services.auth_gate import AuthGate
from asthmacare.app.services.database import Database
from asthmacare.app.services.report_analysis import ReportAnalyzer, placeholder_text
from asthmacare.app.services.storage import LocalObjectStorage

logger = logging.getLogger(__name__)

EventPublisher = Callable[[str, dict[str, Any]], Awaitable[None]]
ProgressCallback = Callable[[int], Awaitable[None] | None]

# Allowed status changes. Terminal states only go back to analyzing on re-analyze.
STATUS_TRANSITIONS: dict[ReportStatus, frozenset[ReportStatus]] = {
    ReportStatus.UPLOADING: frozenset({ReportStatus.ANALYZING, ReportStatus.ERROR}),
    ReportStatus.ANALYZING: frozenset({ReportStatus.COMPLETED, ReportStatus.ERROR}),
    ReportStatus.COMPLETED: frozenset({ReportStatus.ANALYZING}),
    ReportStatus.ERROR: frozenset({ReportStatus.ANALYZING}),
}

_EXTENSIONS = {
    "application/pdf": "pdf",
    "image/jpeg": "jpg",
    "image/jpg": "jpg",
    "image/png": "png",
}


@dataclass
class UploadItem:
    """One file of an upload batch, already read into memory."""

    file_name: str
    content_type: str | None
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)


def check_transition(report: Report, new_status: ReportStatus) -> None:
    """
    Raise if ``report`` may not move to ``new_status``.

    Raises:
        InvalidStatusTransitionError: If the transition table forbids it
    """
    current = ReportStatus(report.status)
    if new_status not in STATUS_TRANSITIONS[current]:
        raise InvalidStatusTransitionError(report.id, current.value, new_status.value)


def serialize_report(report: Report) -> dict[str, Any]:
    return ReportResponse.model_validate(report).model_dump(mode="json", by_alias=True)


class ReportLifecycleController:
    """
    Report list and analysis tasks of one signed-in client.

    All public operations return ``ServiceResult``. User-visible outcomes
    are published as ``notification`` events; list changes as
    ``report_added`` / ``report_updated`` / ``report_deleted``.
    """

    def __init__(
        self,
        gate: AuthGate,
        database: Database,
        storage: LocalObjectStorage,
        analyzer: ReportAnalyzer,
        publish: EventPublisher | None = None,
        bucket: str | None = None,
        max_upload_size: int | None = None,
        allowed_types: list[str] | None = None,
    ):
        self.gate = gate
        self.database = database
        self.storage = storage
        self.analyzer = analyzer
        self.publish = publish
        self.bucket = bucket or settings.reports_bucket
        self.max_upload_size = max_upload_size or settings.max_upload_size
        self.allowed_types = allowed_types or settings.allowed_upload_types_list

        self.reports: list[Report] = []
        self.requires_login = not gate.is_authenticated
        self._tasks: dict[str, asyncio.Task] = {}
        self._subscription = gate.subscribe(self._on_session_changed)

    # Events

    async def _emit(self, event: str, data: dict[str, Any]) -> None:
        if not self.publish:
            return
        try:
            await self.publish(event, data)
        except Exception as e:
            logger.warning(f"[REPORT] Failed to publish {event}: {e}")

    async def _notify(self, level: str, message: str) -> None:
        await self._emit(
            "notification",
            {
                "level": level,
                "message": message,
                "dismiss_after": settings.notification_timeout_seconds,
            },
        )

    async def _on_session_changed(self, session: SessionInfo | None) -> None:
        if session is None:
            self.close()
            self.reports = []
            self.requires_login = True
            logger.info("[REPORT] Session ended, report list cleared")
            return
        if self.reports and self.reports[0].user_id != session.user.id:
            self.close()
            self.reports = []
        self.requires_login = False
        await self.load()

    def close(self) -> None:
        """Cancel all pending analysis tasks."""
        for task in self._tasks.values():
            task.cancel()
        self._tasks.clear()

    # Queries

    def find(self, report_id: str) -> Report | None:
        return next((r for r in self.reports if r.id == report_id), None)

    def get(self, report_id: str) -> ServiceResult[Report]:
        report = self.find(report_id)
        if not report:
            return ServiceResult.fail("Report not found", ReportNotFoundError(report_id))
        return ServiceResult.ok(report)

    def is_analyzing(self, report_id: str) -> bool:
        task = self._tasks.get(report_id)
        return task is not None and not task.done()

    async def wait_for_analysis(self, report_id: str) -> None:
        """Wait until the current analysis task of a report (if any) finishes."""
        task = self._tasks.get(report_id)
        if task:
            await asyncio.gather(task, return_exceptions=True)

    def _require_user_id(self) -> str | None:
        return self.gate.user.id if self.gate.user else None

    async def load(self) -> ServiceResult[list[Report]]:
        """Replace the in-memory list with the user's rows, newest first."""
        user_id = self._require_user_id()
        if not user_id:
            self.requires_login = True
            return ServiceResult.fail("Please log in to view reports", AuthenticationRequiredError())

        result = await self.database.get_user_reports(user_id)
        if not result.success:
            logger.error(f"[REPORT] Failed to load reports for {user_id}: {result.error}")
            await self._notify("error", "Failed to load reports")
            return ServiceResult.fail(result.error, PersistenceError("load reports", result.error))

        self.reports = result.data
        logger.info(f"[REPORT] Loaded {len(self.reports)} reports for {user_id}")
        return ServiceResult.ok(self.reports)

    # Upload

    def validate_file(self, item: UploadItem) -> str | None:
        """Return why a file is rejected, or None if it is acceptable."""
        if (item.content_type or "").lower() not in self.allowed_types:
            return "Invalid file type. Please upload PDF, JPG, or PNG files."
        if item.size > self.max_upload_size:
            return f"File too large. Maximum size is {self.max_upload_size // (1024 * 1024)}MB."
        if item.size == 0:
            return "File is empty."
        return None

    def _object_path(self, user_id: str, item: UploadItem) -> str:
        suffix = PurePosixPath(item.file_name).suffix.lstrip(".").lower()
        ext = suffix or _EXTENSIONS.get((item.content_type or "").lower(), "bin")
        return f"{user_id}/{int(time.time() * 1000)}_{secrets.token_hex(4)}.{ext}"

    async def upload(
        self,
        files: list[UploadItem],
        report_text: str | None = None,
        on_progress: ProgressCallback | None = None,
    ) -> ServiceResult[UploadBatchResponse]:
        """
        Upload a batch of files and start analyzing each one.

        Files are processed one at a time in submission order. A file whose
        store or insert fails is skipped; the rest of the batch continues.
        The call returns once every file is persisted, without waiting for
        analysis.

        Args:
            files: Files in submission order
            report_text: Optional notes analyzed in place of the file contents
            on_progress: Called with the batch percentage after each file

        Returns:
            ServiceResult with the uploaded reports and per-file failures
        """
        user_id = self._require_user_id()
        if not user_id:
            self.requires_login = True
            return ServiceResult.fail("Please log in to upload reports", AuthenticationRequiredError())
        if not files:
            return ServiceResult.fail(
                "Please select at least one file",
                InvalidUploadError("Please select at least one file"),
            )

        failed: list[UploadFailure] = []
        accepted: list[UploadItem] = []
        for item in files:
            reason = self.validate_file(item)
            if reason:
                failed.append(UploadFailure(file_name=item.file_name, error=reason))
                await self._notify("error", f"{item.file_name}: {reason}")
            else:
                accepted.append(item)

        source_text = report_text.strip() if report_text and report_text.strip() else None
        uploaded: list[Report] = []
        total = len(accepted)

        for index, item in enumerate(accepted):
            report = await self._upload_one(user_id, item, source_text)
            if isinstance(report, Report):
                uploaded.append(report)
            else:
                failed.append(UploadFailure(file_name=item.file_name, error=report))
                await self._notify("error", f"Failed to upload {item.file_name}: {report}")

            progress = round((index + 1) / total * 100)
            await self._emit("upload_progress", {"progress": progress, "current": index + 1, "total": total})
            if on_progress:
                outcome = on_progress(progress)
                if asyncio.iscoroutine(outcome):
                    await outcome

        if uploaded:
            message = f"Successfully uploaded {len(uploaded)} file(s)"
            await self._notify("success", message)
        elif accepted:
            message = "Upload failed"
        else:
            message = "No valid files to upload"

        logger.info(f"[REPORT] Batch done for {user_id}: {len(uploaded)} uploaded, {len(failed)} failed")
        return ServiceResult.ok(
            UploadBatchResponse(
                uploaded=[ReportResponse.model_validate(r) for r in uploaded],
                failed=failed,
                message=message,
            )
        )

    async def _upload_one(self, user_id: str, item: UploadItem, source_text: str | None) -> Report | str:
        """Store and insert one file. Returns the new report or an error message."""
        path = self._object_path(user_id, item)

        stored = await self.storage.upload(self.bucket, path, item.data, item.content_type)
        if not stored.success:
            logger.error(f"[REPORT] Storage upload failed for {item.file_name}: {stored.error}")
            return stored.error

        file_url = self.storage.get_public_url(self.bucket, path)
        inserted = await self.database.save_report(
            user_id=user_id,
            file_name=item.file_name,
            file_path=path,
            file_url=file_url,
            status=ReportStatus.ANALYZING.value,
            content_type=item.content_type,
            source_text=source_text or placeholder_text(item.content_type),
        )
        if not inserted.success:
            logger.error(f"[REPORT] Insert failed for {item.file_name}: {inserted.error}")
            cleanup = await self.storage.delete(self.bucket, path)
            if not cleanup.success:
                logger.warning(f"[REPORT] Orphaned object {self.bucket}/{path}: {cleanup.error}")
            return inserted.error

        report = inserted.data
        self.reports.insert(0, report)
        await self._emit("report_added", serialize_report(report))
        self._start_analysis(report)
        return report

    # Analysis

    def _start_analysis(self, report: Report) -> None:
        previous = self._tasks.pop(report.id, None)
        if previous and not previous.done():
            previous.cancel()

        task = asyncio.create_task(
            self._run_analysis(report.user_id, report.id, report.source_text or ""),
            name=f"analysis-{report.id}",
        )
        self._tasks[report.id] = task
        task.add_done_callback(lambda t, report_id=report.id: self._forget_task(report_id, t))

    def _forget_task(self, report_id: str, task: asyncio.Task) -> None:
        if self._tasks.get(report_id) is task:
            del self._tasks[report_id]

    def _is_stale(self, report_id: str) -> bool:
        """True if the running task no longer owns the report's analysis."""
        return self._tasks.get(report_id) is not asyncio.current_task() or self.find(report_id) is None

    async def _run_analysis(self, user_id: str, report_id: str, text: str) -> None:
        try:
            analysis = await self.analyzer.analyze(text)
        except Exception as e:
            logger.error(f"[REPORT] Analysis failed for {report_id}: {e}")
            await self._mark_error(user_id, report_id)
            return

        if self._is_stale(report_id):
            logger.info(f"[REPORT] Dropping stale analysis for {report_id}")
            return

        payload = analysis.model_dump(mode="json", by_alias=True)
        written = await self.database.update_report_analysis(
            user_id, report_id, payload, ReportStatus.COMPLETED.value
        )
        if not written.success:
            logger.error(f"[REPORT] Failed to store analysis for {report_id}: {written.error}")
            await self._mark_error(user_id, report_id)
            return

        if self._is_stale(report_id):
            logger.info(f"[REPORT] Report {report_id} changed while storing analysis")
            return

        report = self.find(report_id)
        check_transition(report, ReportStatus.COMPLETED)
        report.analysis_result = payload
        report.status = ReportStatus.COMPLETED.value
        await self._emit("report_updated", serialize_report(report))
        await self._notify("success", f"Analysis completed for {report.file_name}")

    async def _mark_error(self, user_id: str, report_id: str) -> None:
        if self._is_stale(report_id):
            return
        persisted = await self.database.update_report_status(user_id, report_id, ReportStatus.ERROR.value)
        if not persisted.success:
            logger.warning(f"[REPORT] Could not persist error status for {report_id}: {persisted.error}")

        report = self.find(report_id)
        if report is None:
            return
        report.status = ReportStatus.ERROR.value
        await self._emit("report_updated", serialize_report(report))
        await self._notify("error", f"Analysis failed for {report.file_name}")

    async def reanalyze(self, report_id: str) -> ServiceResult[Report]:
        """Restart analysis of a completed or failed report."""
        user_id = self._require_user_id()
        if not user_id:
            return ServiceResult.fail("Please log in to analyze reports", AuthenticationRequiredError())

        report = self.find(report_id)
        if not report:
            return ServiceResult.fail("Report not found", ReportNotFoundError(report_id))
        try:
            check_transition(report, ReportStatus.ANALYZING)
        except InvalidStatusTransitionError as e:
            return ServiceResult.fail(e.message, e)

        persisted = await self.database.update_report_status(user_id, report_id, ReportStatus.ANALYZING.value)
        if not persisted.success:
            await self._notify("error", "Failed to restart analysis")
            return ServiceResult.fail(persisted.error, PersistenceError("reanalyze", persisted.error))

        report.status = ReportStatus.ANALYZING.value
        report.analysis_result = None
        await self._emit("report_updated", serialize_report(report))
        self._start_analysis(report)
        logger.info(f"[REPORT] Re-analysis started for {report_id}")
        return ServiceResult.ok(report)

    # Deletion

    async def delete(self, report_id: str) -> ServiceResult[dict]:
        """
        Delete the stored file, then the row, then the list entry.

        Deletion is not atomic: if the row delete fails after the file was
        removed, the entry stays in the list and the caller gets an error.
        """
        user_id = self._require_user_id()
        if not user_id:
            return ServiceResult.fail("Please log in to delete reports", AuthenticationRequiredError())

        report = self.find(report_id)
        if not report:
            return ServiceResult.fail("Report not found", ReportNotFoundError(report_id))

        removed = await self.storage.delete(self.bucket, report.file_path)
        if not removed.success:
            logger.error(f"[REPORT] Storage delete failed for {report_id}: {removed.error}")
            await self._notify("error", "Failed to delete report")
            return ServiceResult.fail(
                "Failed to delete report",
                ReportDeletionError(report_id, "storage", removed.error),
            )

        deleted = await self.database.delete_report(user_id, report_id)
        if not deleted.success:
            logger.error(f"[REPORT] Row delete failed for {report_id}: {deleted.error}")
            await self._notify("error", "Failed to delete report")
            return ServiceResult.fail(
                "Failed to delete report",
                ReportDeletionError(report_id, "database", deleted.error),
            )

        self.reports = [r for r in self.reports if r.id != report_id]
        task = self._tasks.pop(report_id, None)
        if task and not task.done():
            task.cancel()

        await self._emit("report_deleted", {"id": report_id})
        await self._notify("success", "Report deleted successfully")
        return ServiceResult.ok({"id": report_id})

    async def read_file(self, report_id: str) -> ServiceResult[bytes]:
        """Bytes of a report's stored file."""
        report = self.find(report_id)
        if not report:
            return ServiceResult.fail("Report not found", ReportNotFoundError(report_id))
        result = await self.storage.download(self.bucket, report.file_path)
        if not result.success:
            return ServiceResult.fail(result.error, StorageError("download", result.error))
        return result
