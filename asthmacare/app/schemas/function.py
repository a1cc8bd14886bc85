"""Remote entry point request schema."""

from typing import Any
from pydantic import BaseModel, Field


class ActionRequest(BaseModel):
    """
    Discriminated action request accepted by the remote entry point.

    ``action`` is one of analyze_report, get_air_quality, chatbot_response or
    schedule_appointment; ``data`` carries the action payload.
    """

    action: str = Field(..., description="Action name")
    data: dict[str, Any] = Field(default_factory=dict)
