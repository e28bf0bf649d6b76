"""Credential lifecycle operations.

This is the only layer that touches the user store, the reset token store and
the notifier. Inputs are validated before any side effect, and each write
path commits at most once.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import UTC, datetime

from pydantic import EmailStr, TypeAdapter
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from credvault.core import errors
from credvault.core.config import get_settings
from credvault.core.security import (
    BCRYPT_MAX_BYTES,
    SessionToken,
    SessionTokenIssuer,
    get_password_hash,
    verify_password,
)
from credvault.models.user import (
    EMAIL_MAX_LENGTH,
    NAME_MAX_LENGTH,
    PHONE_MAX_LENGTH,
    PHOTO_MAX_LENGTH,
    User,
)
from credvault.schemas.user import ProfileUpdate, UserRead
from credvault.services import password_reset_service, user_service
from credvault.services.notification_service import (
    Notifier,
    build_password_reset_email,
)

logger = logging.getLogger(__name__)

_EMAIL_ADAPTER = TypeAdapter(EmailStr)

_MAX_LENGTHS = {
    "name": NAME_MAX_LENGTH,
    "email": EMAIL_MAX_LENGTH,
    "phone": PHONE_MAX_LENGTH,
    "photo": PHOTO_MAX_LENGTH,
}


@dataclass(frozen=True)
class AuthResult:
    """Outcome of a successful register or login."""

    user: UserRead
    session: SessionToken


@dataclass(frozen=True)
class SessionCookie:
    """What the transport should store in the client-held session cookie."""

    value: str
    expires_at: datetime


def _require(**fields: str | None) -> None:
    missing = [name for name, value in fields.items() if not value or not value.strip()]
    if missing:
        raise errors.ValidationError(f"Missing required fields: {', '.join(missing)}")


def _check_lengths(**fields: str) -> None:
    for name, value in fields.items():
        limit = _MAX_LENGTHS.get(name)
        if limit is not None and len(value) > limit:
            raise errors.ValidationError(
                f"{name} must be at most {limit} characters long"
            )


def _check_password_size(password: str) -> None:
    if len(password.encode()) > BCRYPT_MAX_BYTES:
        raise errors.ValidationError(
            f"Password must be at most {BCRYPT_MAX_BYTES} bytes long"
        )


def _validate_email(email: str) -> str:
    try:
        return _EMAIL_ADAPTER.validate_python(email.strip())
    except PydanticValidationError as exc:
        raise errors.ValidationError("Invalid email address") from exc


def _public(user: User) -> UserRead:
    return UserRead.model_validate(user)


async def _load_user(session: AsyncSession, user_id: uuid.UUID) -> User:
    user = await user_service.get_user(session, user_id)
    if user is None:
        raise errors.NotFoundError()
    return user


async def register_user(
    session: AsyncSession,
    issuer: SessionTokenIssuer,
    *,
    name: str | None,
    email: str | None,
    password: str | None,
) -> AuthResult:
    _require(name=name, email=email, password=password)
    min_length = get_settings().password_min_length
    if len(password) < min_length:
        raise errors.ValidationError(
            f"Password must be at least {min_length} characters long"
        )
    _check_password_size(password)
    email = _validate_email(email)
    name = name.strip()
    _check_lengths(name=name, email=email)

    if await user_service.get_user_by_email(session, email) is not None:
        raise errors.ConflictError()

    user = await user_service.create_user(
        session,
        name=name,
        email=email,
        hashed_password=get_password_hash(password),
    )
    logger.info("Registered user %s", user.id)
    return AuthResult(user=_public(user), session=issuer.issue(user.id))


async def login_user(
    session: AsyncSession,
    issuer: SessionTokenIssuer,
    *,
    email: str | None,
    password: str | None,
) -> AuthResult:
    _require(email=email, password=password)
    user = await user_service.get_user_by_email(session, email)
    if user is None:
        raise errors.NotFoundError("User not found, please sign up")
    if not verify_password(password, user.hashed_password):
        logger.info("Rejected login for user %s", user.id)
        raise errors.AuthenticationError("Invalid email or password")
    return AuthResult(user=_public(user), session=issuer.issue(user.id))


def logout_user() -> SessionCookie:
    """Tokens are not revoked server-side; the client copy is overwritten."""
    return SessionCookie(value="", expires_at=datetime.fromtimestamp(0, UTC))


async def get_profile(session: AsyncSession, user_id: uuid.UUID) -> UserRead:
    return _public(await _load_user(session, user_id))


def check_session(issuer: SessionTokenIssuer, token: str | None) -> bool:
    return issuer.verify(token) is not None


async def update_profile(
    session: AsyncSession, user_id: uuid.UUID, payload: ProfileUpdate
) -> UserRead:
    changes = payload.changes()
    if "name" in changes:
        changes["name"] = changes["name"].strip()
        if not changes["name"]:
            raise errors.ValidationError("Name cannot be empty")
    _check_lengths(**changes)
    user = await _load_user(session, user_id)
    for field, value in changes.items():
        setattr(user, field, value)
    user = await user_service.save_user(session, user)
    return _public(user)


async def change_password(
    session: AsyncSession,
    user_id: uuid.UUID,
    *,
    old_password: str | None,
    new_password: str | None,
) -> None:
    user = await _load_user(session, user_id)
    _require(old_password=old_password, password=new_password)
    _check_password_size(new_password)
    if not verify_password(old_password, user.hashed_password):
        raise errors.AuthenticationError("Old password is incorrect")
    user.hashed_password = get_password_hash(new_password)
    await user_service.save_user(session, user)
    logger.info("Password changed for user %s", user.id)


def build_reset_url(secret: str) -> str:
    return f"{get_settings().frontend_url.rstrip('/')}/resetpassword/{secret}"


async def forgot_password(
    session: AsyncSession, notifier: Notifier, *, email: str | None
) -> None:
    """Issue a reset token and email the link.

    The token is committed before delivery, so a failed send leaves it usable.
    """
    _require(email=email)
    user = await user_service.get_user_by_email(session, email)
    if user is None:
        raise errors.NotFoundError()

    secret = await password_reset_service.request_reset(session, user.id)
    await session.commit()

    settings = get_settings()
    subject, body = build_password_reset_email(
        name=user.name,
        reset_url=build_reset_url(secret),
        ttl_minutes=settings.reset_token_ttl_minutes,
        app_name=settings.app_name,
    )
    delivered = await notifier.send(subject, body, user.email, settings.email_sender)
    if not delivered:
        logger.warning("Password reset email for user %s was not delivered", user.id)
        raise errors.DeliveryError()


async def reset_password(
    session: AsyncSession, *, token: str | None, new_password: str | None
) -> None:
    _require(password=new_password)
    _check_password_size(new_password)
    try:
        user_id = await password_reset_service.consume_reset_token(session, token)
        user = await user_service.get_user(session, user_id)
        if user is None:
            raise errors.AuthenticationError(
                password_reset_service.INVALID_TOKEN_MESSAGE
            )
        user.hashed_password = get_password_hash(new_password)
        await session.commit()
    except Exception:
        await session.rollback()
        raise
    logger.info("Password reset completed for user %s", user_id)
