"""Appointment API endpoints."""

from fastapi import APIRouter, Depends, status

from asthmacare.app.api.deps import get_patient_context, raise_for_result
from asthmacare.app.schemas.appointment import AppointmentCreate, AppointmentResponse
from asthmacare.app.services.app_state import AppState, PatientContext, get_app_state

router = APIRouter(prefix="/appointments", tags=["appointments"])


@router.post("", response_model=AppointmentResponse, status_code=status.HTTP_201_CREATED)
async def schedule_appointment(
    request: AppointmentCreate,
    ctx: PatientContext = Depends(get_patient_context),
    state: AppState = Depends(get_app_state),
) -> AppointmentResponse:
    """Request an appointment. New appointments are pending until confirmed."""
    result = await state.appointments.schedule(ctx.user.id, request)
    raise_for_result(result)
    return AppointmentResponse.model_validate(result.data)


@router.get("", response_model=list[AppointmentResponse])
async def list_appointments(
    ctx: PatientContext = Depends(get_patient_context),
    state: AppState = Depends(get_app_state),
) -> list[AppointmentResponse]:
    """List the user's appointments by preferred date."""
    result = await state.appointments.list_for_user(ctx.user.id)
    raise_for_result(result)
    return [AppointmentResponse.model_validate(a) for a in result.data]


@router.post("/{appointment_id}/cancel", response_model=AppointmentResponse)
async def cancel_appointment(
    appointment_id: str,
    ctx: PatientContext = Depends(get_patient_context),
    state: AppState = Depends(get_app_state),
) -> AppointmentResponse:
    """Cancel an appointment."""
    result = await state.appointments.cancel(ctx.user.id, appointment_id)
    raise_for_result(result)
    return AppointmentResponse.model_validate(result.data)
