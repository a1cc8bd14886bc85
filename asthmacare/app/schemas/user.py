"""User and authentication schemas."""

from datetime import datetime
from typing import Any
from pydantic import BaseModel, Field


class SignUpRequest(BaseModel):
    """Schema for creating an account."""

    full_name: str = Field(..., description="User's display name")
    email: str = Field(..., description="Login email")
    password: str = Field(..., description="Password")
    confirm_password: str = Field(..., description="Password confirmation")
    agree_terms: bool = Field(default=False, description="Terms of Service accepted")


class SignInRequest(BaseModel):
    """Schema for signing in with email and password."""

    email: str = Field(..., description="Login email")
    password: str = Field(..., description="Password")


class UserProfile(BaseModel):
    """Public profile of a registered user."""

    id: str = Field(..., description="User ID")
    email: str = Field(..., description="Login email")
    full_name: str = Field(..., description="Display name")
    created_at: datetime = Field(..., description="Registration timestamp")

    model_config = {"from_attributes": True}


class SessionInfo(BaseModel):
    """An active session returned on sign-in."""

    access_token: str = Field(..., description="Bearer token")
    token_type: str = Field(default="bearer")
    expires_at: datetime = Field(..., description="Token expiry")
    user: UserProfile


class AuthEnvelope(BaseModel):
    """Uniform auth response: never an HTTP error for a failed sign-in."""

    success: bool
    data: Any | None = None
    error: str | None = None
