"""Authentication models for session management."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, EmailStr


class SignInRequest(BaseModel):
    """Request to start a development session for an email."""

    model_config = ConfigDict(extra="forbid")

    email: EmailStr


class SessionResponse(BaseModel):
    """Who the session cookie belongs to."""

    email: EmailStr


class LogoutResponse(BaseModel):
    """Response after logging out."""

    message: str = "Logged out successfully."
