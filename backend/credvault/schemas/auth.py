"""Authentication schemas."""
from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel

from credvault.schemas.user import UserRead


class RegistrationRequest(BaseModel):
    """Self-service registration payload."""

    name: str | None = None
    email: str | None = None
    password: str | None = None


class LoginRequest(BaseModel):
    """Login payload."""

    email: str | None = None
    password: str | None = None


class AuthResponse(UserRead):
    """Public profile plus the freshly issued session token."""

    token: str
    expires_at: datetime


class ChangePasswordRequest(BaseModel):
    old_password: str | None = None
    password: str | None = None


class ForgotPasswordRequest(BaseModel):
    """Request body to initiate a password reset."""

    email: str | None = None


class ResetPasswordRequest(BaseModel):
    """Payload to finalize a password reset."""

    password: str | None = None


class MessageResponse(BaseModel):
    success: bool = True
    message: str
