"""Chatbot API endpoints."""

from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, status

from asthmacare.app.api.deps import get_optional_context, get_patient_context
from asthmacare.app.schemas.chat import ChatHistoryResponse, ChatRequest, ChatResponse
from asthmacare.app.services.app_state import PatientContext
from asthmacare.app.services.response_engine import QUICK_ACTIONS, respond

router = APIRouter(prefix="/chat", tags=["chat"])


@router.post("", response_model=ChatResponse)
async def send_message(
    request: ChatRequest,
    ctx: PatientContext | None = Depends(get_optional_context),
) -> ChatResponse:
    """
    Answer a chat message.

    Signed-in users get the exchange appended to their transcript and
    saved; anonymous users get an answer that is not kept.
    """
    if not request.message.strip():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Message must not be empty",
        )

    if ctx is None:
        return ChatResponse(response=respond(request.message), timestamp=datetime.utcnow(), saved=False)

    reply, saved = await ctx.chat.send(request.message)
    return ChatResponse(response=reply.text, timestamp=reply.timestamp, saved=saved)


@router.get("/history", response_model=ChatHistoryResponse)
async def get_history(
    ctx: PatientContext = Depends(get_patient_context),
) -> ChatHistoryResponse:
    """The signed-in user's transcript."""
    return ChatHistoryResponse(messages=ctx.chat.transcript)


@router.get("/quick-actions")
async def get_quick_actions() -> dict[str, str]:
    """Canned questions for the quick-action buttons."""
    return QUICK_ACTIONS
