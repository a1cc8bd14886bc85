"""Authentication endpoints.

Every endpoint answers 200 with the ``{success, data|error}`` envelope; a
rejected sign-in is a normal outcome, not an HTTP error.
"""

from typing import Any

from fastapi import APIRouter, Depends
from fastapi.security import HTTPAuthorizationCredentials

from asthmacare.app.api.deps import bearer_scheme
from asthmacare.app.core.result import ServiceResult
from asthmacare.app.schemas.user import AuthEnvelope, SignInRequest, SignUpRequest
from asthmacare.app.services.app_state import AppState, get_app_state

router = APIRouter(prefix="/auth", tags=["auth"])


def _envelope(result: ServiceResult[Any]) -> AuthEnvelope:
    data = result.data
    if hasattr(data, "model_dump"):
        data = data.model_dump(mode="json")
    return AuthEnvelope(success=result.success, data=data, error=result.error)


@router.post("/signup", response_model=AuthEnvelope)
async def sign_up(
    request: SignUpRequest,
    state: AppState = Depends(get_app_state),
) -> AuthEnvelope:
    """
    Create an account.

    The form is validated in order: all fields present, email format,
    password strength, matching confirmation, accepted terms.
    """
    result = await state.sign_up(
        full_name=request.full_name,
        email=request.email,
        password=request.password,
        confirm_password=request.confirm_password,
        agree_terms=request.agree_terms,
    )
    return _envelope(result)


@router.post("/signin", response_model=AuthEnvelope)
async def sign_in(
    request: SignInRequest,
    state: AppState = Depends(get_app_state),
) -> AuthEnvelope:
    """Sign in and receive a bearer token."""
    return _envelope(await state.sign_in(request.email, request.password))


@router.post("/signout", response_model=AuthEnvelope)
async def sign_out(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    state: AppState = Depends(get_app_state),
) -> AuthEnvelope:
    """Revoke the bearer token. Signing out without a token succeeds."""
    if credentials is None:
        return AuthEnvelope(success=True)
    return _envelope(await state.sign_out(credentials.credentials))


@router.get("/session", response_model=AuthEnvelope)
async def get_session(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    state: AppState = Depends(get_app_state),
) -> AuthEnvelope:
    """Current user of the bearer token."""
    if credentials is None:
        return AuthEnvelope(success=False, error="No active session")
    ctx = await state.context_for_token(credentials.credentials)
    if ctx is None:
        return AuthEnvelope(success=False, error="Invalid or expired session")
    return _envelope(await ctx.gate.get_current_user())
