"""Medical report API endpoints."""

import logging
from urllib.parse import quote

from fastapi import APIRouter, Depends, File, Form, UploadFile, status
from fastapi.responses import PlainTextResponse

from asthmacare.app.api.deps import get_patient_context, raise_for_result
from asthmacare.app.core.exceptions import AnalysisNotAvailableError, InvalidUploadError
from asthmacare.app.schemas.report import (
    ReportListResponse,
    ReportResponse,
    UploadBatchResponse,
)
from asthmacare.app.services.app_state import PatientContext
from asthmacare.app.services.report_analysis import render_analysis_text
from asthmacare.app.services.report_lifecycle import UploadItem

router = APIRouter(prefix="/reports", tags=["reports"])
logger = logging.getLogger(__name__)


@router.get("", response_model=ReportListResponse)
async def list_reports(
    ctx: PatientContext = Depends(get_patient_context),
) -> ReportListResponse:
    """List the user's reports, newest first."""
    reports = [ReportResponse.model_validate(r) for r in ctx.reports.reports]
    return ReportListResponse(reports=reports, total=len(reports))


@router.post("", response_model=UploadBatchResponse, status_code=status.HTTP_201_CREATED)
async def upload_reports(
    files: list[UploadFile] = File(...),
    report_text: str | None = Form(default=None),
    ctx: PatientContext = Depends(get_patient_context),
) -> UploadBatchResponse:
    """
    Upload one or more reports.

    Files are stored and recorded one at a time. Each new report starts in
    ``analyzing``; the response does not wait for analysis to finish.
    Progress and completion are pushed over the WebSocket.
    """
    items = []
    for upload in files:
        items.append(
            UploadItem(
                file_name=upload.filename or "report",
                content_type=upload.content_type,
                data=await upload.read(),
            )
        )

    result = await ctx.reports.upload(items, report_text=report_text)
    raise_for_result(result)

    batch = result.data
    if not batch.uploaded:
        raise InvalidUploadError(batch.message)
    return batch


@router.get("/{report_id}", response_model=ReportResponse)
async def get_report(
    report_id: str,
    ctx: PatientContext = Depends(get_patient_context),
) -> ReportResponse:
    """Get one report."""
    result = ctx.reports.get(report_id)
    raise_for_result(result)
    return ReportResponse.model_validate(result.data)


@router.post("/{report_id}/reanalyze", response_model=ReportResponse, status_code=status.HTTP_202_ACCEPTED)
async def reanalyze_report(
    report_id: str,
    ctx: PatientContext = Depends(get_patient_context),
) -> ReportResponse:
    """Restart analysis of a completed or failed report."""
    result = await ctx.reports.reanalyze(report_id)
    raise_for_result(result)
    return ReportResponse.model_validate(result.data)


@router.delete("/{report_id}")
async def delete_report(
    report_id: str,
    ctx: PatientContext = Depends(get_patient_context),
) -> dict:
    """Delete a report together with its stored file."""
    result = await ctx.reports.delete(report_id)
    raise_for_result(result)
    return {"success": True, "id": report_id}


@router.get("/{report_id}/analysis.txt", response_class=PlainTextResponse)
async def download_analysis(
    report_id: str,
    ctx: PatientContext = Depends(get_patient_context),
) -> PlainTextResponse:
    """Download a completed analysis as a text file."""
    result = ctx.reports.get(report_id)
    raise_for_result(result)

    report = result.data
    if not report.analysis_result:
        raise AnalysisNotAvailableError(report_id, report.status)

    content = render_analysis_text(report.file_name, report.upload_date, report.analysis_result)
    filename_encoded = quote(f"{report.file_name}_analysis.txt")
    return PlainTextResponse(
        content=content,
        headers={"Content-Disposition": f"attachment; filename*=UTF-8''{filename_encoded}"},
    )
