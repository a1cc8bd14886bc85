"""
Remote entry point.

A single POST endpoint that dispatches ``{action, data}`` requests to the
analysis simulator, the air quality simulator, the response engine and
appointment scheduling. Every response, including the preflight answer and
errors, carries the CORS headers below.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import ValidationError

from asthmacare.app.core.config import settings
from asthmacare.app.schemas.appointment import AppointmentCreate, AppointmentResponse
from asthmacare.app.schemas.function import ActionRequest
from asthmacare.app.services.app_state import AppState, get_app_state
from asthmacare.app.services.response_engine import respond

router = APIRouter(prefix="/functions/v1", tags=["functions"])
logger = logging.getLogger(__name__)

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "authorization, x-client-info, apikey, content-type",
}


def _json(content: dict[str, Any], status_code: int = status.HTTP_200_OK) -> JSONResponse:
    return JSONResponse(content=content, status_code=status_code, headers=CORS_HEADERS)


def _failure(error: str, details: str) -> JSONResponse:
    return _json(
        {"success": False, "error": error, "details": details},
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )


async def handle_report_analysis(data: dict[str, Any], state: AppState) -> JSONResponse:
    """analyze_report: ``{reportText}`` -> ``{success, analysis}``."""
    try:
        analysis = await state.analyzer.analyze(str(data.get("reportText") or ""))
    except Exception as e:
        logger.error(f"[FUNCTION] analyze_report failed: {e}")
        return _failure("Analysis failed", str(e))
    return _json({"success": True, "analysis": analysis.model_dump(mode="json", by_alias=True)})


async def handle_air_quality_request(data: dict[str, Any], state: AppState) -> JSONResponse:
    """get_air_quality: ``{city}`` or ``{coordinates: {lat, lon}}`` -> ``{success, data}``."""
    try:
        city = data.get("city")
        coordinates = data.get("coordinates")
        if city:
            reading = await state.air_quality.get_reading(str(city))
        elif coordinates:
            reading = await state.air_quality.get_reading_by_coordinates(
                float(coordinates["lat"]), float(coordinates["lon"])
            )
        else:
            raise ValueError("A city or coordinates are required")
    except (ValueError, KeyError, TypeError) as e:
        logger.error(f"[FUNCTION] get_air_quality failed: {e}")
        return _failure("Air quality data unavailable", str(e))
    return _json({"success": True, "data": reading.model_dump(mode="json")})


async def handle_chatbot_request(data: dict[str, Any], state: AppState) -> JSONResponse:
    """chatbot_response: ``{message, chatHistory?}`` -> ``{success, response, timestamp}``."""
    message = data.get("message")
    if not isinstance(message, str) or not message.strip():
        return _failure("Chatbot service unavailable", "A message is required")

    if settings.chatbot_delay_seconds:
        await asyncio.sleep(settings.chatbot_delay_seconds)
    return _json(
        {
            "success": True,
            "response": respond(message, data.get("chatHistory")),
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
    )


async def handle_appointment_scheduling(data: dict[str, Any], state: AppState) -> JSONResponse:
    """schedule_appointment: ``{userId, appointmentData}`` -> ``{success, appointment, message}``."""
    user_id = data.get("userId")
    try:
        if not user_id:
            raise ValueError("userId is required")
        appointment_data = AppointmentCreate.model_validate(data.get("appointmentData") or {})
    except (ValueError, ValidationError) as e:
        return _failure("Failed to schedule appointment", str(e))

    result = await state.appointments.schedule(str(user_id), appointment_data)
    if not result.success:
        return _failure("Failed to schedule appointment", result.error)

    appointment = AppointmentResponse.model_validate(result.data)
    return _json(
        {
            "success": True,
            "appointment": appointment.model_dump(mode="json"),
            "message": "Appointment scheduled successfully",
        }
    )


ACTION_HANDLERS: dict[str, Callable[[dict[str, Any], AppState], Awaitable[JSONResponse]]] = {
    "analyze_report": handle_report_analysis,
    "get_air_quality": handle_air_quality_request,
    "chatbot_response": handle_chatbot_request,
    "schedule_appointment": handle_appointment_scheduling,
}


@router.options("/asthmacare")
async def preflight() -> PlainTextResponse:
    """CORS preflight."""
    return PlainTextResponse(
        "ok", headers={**CORS_HEADERS, "Access-Control-Allow-Methods": "POST, OPTIONS"}
    )


@router.post("/asthmacare")
async def invoke(request: Request, state: AppState = Depends(get_app_state)) -> JSONResponse:
    """
    Dispatch an action request.

    Unknown actions get 400 ``{"error": "Invalid action"}``; a malformed
    body gets 500 with the parse error in ``details``.
    """
    try:
        action_request = ActionRequest.model_validate(await request.json())
    except (ValueError, ValidationError) as e:
        logger.error(f"[FUNCTION] Malformed request: {e}")
        return _json(
            {"error": "Internal server error", "details": str(e)},
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    handler = ACTION_HANDLERS.get(action_request.action)
    if handler is None:
        return _json({"error": "Invalid action"}, status_code=status.HTTP_400_BAD_REQUEST)

    logger.info(f"[FUNCTION] {action_request.action}")
    return await handler(action_request.data, state)
