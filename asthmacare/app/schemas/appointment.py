"""Appointment schemas."""

from datetime import date, datetime
from pydantic import BaseModel, ConfigDict, Field


class AppointmentCreate(BaseModel):
    """Schema for requesting an appointment."""

    model_config = ConfigDict(populate_by_name=True)

    patient_name: str = Field(..., min_length=1, max_length=255, alias="patientName")
    email: str = Field(..., max_length=255)
    phone: str = Field(..., min_length=5, max_length=50)
    preferred_date: date = Field(..., alias="preferredDate")
    symptoms: str | None = Field(default=None, max_length=2000)


class AppointmentResponse(BaseModel):
    """Schema for appointment data in responses."""

    id: str
    user_id: str
    patient_name: str
    email: str
    phone: str
    preferred_date: date
    symptoms: str | None = None
    status: str
    created_at: datetime

    model_config = {"from_attributes": True}
