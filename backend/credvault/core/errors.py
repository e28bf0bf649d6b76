"""Typed failures raised by the credential services.

Every failure carries an :class:`ErrorKind`; callers branch on ``kind`` and
treat the message as display text only.
"""

from __future__ import annotations

import enum


class ErrorKind(str, enum.Enum):
    """Enumerates the failure categories surfaced to callers."""

    VALIDATION = "validation"
    CONFLICT = "conflict"
    NOT_FOUND = "not_found"
    AUTHENTICATION = "authentication"
    DELIVERY = "delivery"


class CredentialError(Exception):
    """Base class for all credential lifecycle failures."""

    kind: ErrorKind
    default_message = "Credential operation failed"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(CredentialError):
    """Missing or malformed input; no side effects occurred."""

    kind = ErrorKind.VALIDATION
    default_message = "Invalid input"


class ConflictError(CredentialError):
    """The email address is already registered."""

    kind = ErrorKind.CONFLICT
    default_message = "Email already registered"


class NotFoundError(CredentialError):
    kind = ErrorKind.NOT_FOUND
    default_message = "User not found"


class AuthenticationError(CredentialError):
    """Wrong password, or an invalid or expired session or reset token."""

    kind = ErrorKind.AUTHENTICATION
    default_message = "Not authenticated"


class DeliveryError(CredentialError):
    """The notifier failed; the operation may be retried."""

    kind = ErrorKind.DELIVERY
    default_message = "Email not sent, please try again"
    retryable = True


__all__ = [
    "AuthenticationError",
    "ConflictError",
    "CredentialError",
    "DeliveryError",
    "ErrorKind",
    "NotFoundError",
    "ValidationError",
]
