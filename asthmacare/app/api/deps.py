"""Shared API dependencies."""

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from asthmacare.app.core.exceptions import AsthmaCareException, AuthenticationRequiredError
from asthmacare.app.core.result import ServiceResult
from asthmacare.app.services.app_state import AppState, PatientContext, get_app_state

bearer_scheme = HTTPBearer(auto_error=False)


async def get_optional_context(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    state: AppState = Depends(get_app_state),
) -> PatientContext | None:
    """Context of the bearer token, or None for anonymous requests."""
    if credentials is None:
        return None
    return await state.context_for_token(credentials.credentials)


async def get_patient_context(
    ctx: PatientContext | None = Depends(get_optional_context),
) -> PatientContext:
    """Context of the bearer token; the request fails with 401 without one."""
    if ctx is None:
        raise AuthenticationRequiredError("Please log in to continue")
    return ctx


def raise_for_result(result: ServiceResult) -> None:
    """Raise the domain exception behind a failed controller result."""
    if result.success:
        return
    if result.cause is not None:
        raise result.cause
    raise AsthmaCareException(result.error or "Request failed")
