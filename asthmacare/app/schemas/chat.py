"""Chat schemas."""

from datetime import datetime
from pydantic import BaseModel, Field


class ChatRequest(BaseModel):
    """A message typed by the user."""

    message: str = Field(..., description="User message")
    conversation_history: list[dict[str, str]] | None = None


class TranscriptEntry(BaseModel):
    """One line of the transcript."""

    sender: str = Field(..., description="user or assistant")
    text: str
    timestamp: datetime


class ChatResponse(BaseModel):
    """Assistant reply to one message."""

    response: str
    timestamp: datetime
    saved: bool = Field(..., description="Whether the exchange was persisted")


class ChatHistoryResponse(BaseModel):
    """The current transcript."""

    messages: list[TranscriptEntry]
