"""User credential and profile endpoints."""

from __future__ import annotations

from datetime import datetime
from typing import Annotated

from fastapi import APIRouter, Depends, Response, status

from credvault.api.deps import (
    CurrentUserId,
    DbSession,
    TokenIssuer,
    get_notifier,
    get_session_token,
)
from credvault.core.config import get_settings
from credvault.schemas.auth import (
    AuthResponse,
    ChangePasswordRequest,
    ForgotPasswordRequest,
    LoginRequest,
    MessageResponse,
    RegistrationRequest,
    ResetPasswordRequest,
)
from credvault.schemas.user import ProfileUpdate, UserRead
from credvault.services import auth_service
from credvault.services.notification_service import Notifier

router = APIRouter()


def _set_session_cookie(response: Response, value: str, expires_at: datetime) -> None:
    settings = get_settings()
    response.set_cookie(
        settings.session_cookie_name,
        value,
        path="/",
        httponly=True,
        expires=expires_at,
        samesite=settings.session_cookie_samesite,
        secure=settings.session_cookie_secure,
    )


def _auth_response(response: Response, result: auth_service.AuthResult) -> AuthResponse:
    _set_session_cookie(response, result.session.value, result.session.expires_at)
    return AuthResponse(
        **result.user.model_dump(),
        token=result.session.value,
        expires_at=result.session.expires_at,
    )


@router.post(
    "/register",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a new user",
)
async def register(
    payload: RegistrationRequest,
    response: Response,
    session: DbSession,
    issuer: TokenIssuer,
) -> AuthResponse:
    result = await auth_service.register_user(
        session,
        issuer,
        name=payload.name,
        email=payload.email,
        password=payload.password,
    )
    return _auth_response(response, result)


@router.post("/login", response_model=AuthResponse, summary="Log in")
async def login(
    payload: LoginRequest,
    response: Response,
    session: DbSession,
    issuer: TokenIssuer,
) -> AuthResponse:
    result = await auth_service.login_user(
        session, issuer, email=payload.email, password=payload.password
    )
    return _auth_response(response, result)


@router.get("/logout", response_model=MessageResponse, summary="Log out")
async def logout(response: Response) -> MessageResponse:
    cookie = auth_service.logout_user()
    _set_session_cookie(response, cookie.value, cookie.expires_at)
    return MessageResponse(message="Logged out")


@router.get("/me", response_model=UserRead, summary="Current user profile")
async def read_profile(session: DbSession, user_id: CurrentUserId) -> UserRead:
    return await auth_service.get_profile(session, user_id)


@router.get("/loggedin", response_model=bool, summary="Session status")
async def logged_in(
    token: Annotated[str | None, Depends(get_session_token)],
    issuer: TokenIssuer,
) -> bool:
    return auth_service.check_session(issuer, token)


@router.patch("/me", response_model=UserRead, summary="Update profile")
async def update_profile(
    payload: ProfileUpdate, session: DbSession, user_id: CurrentUserId
) -> UserRead:
    return await auth_service.update_profile(session, user_id, payload)


@router.patch("/password", response_model=MessageResponse, summary="Change password")
async def change_password(
    payload: ChangePasswordRequest, session: DbSession, user_id: CurrentUserId
) -> MessageResponse:
    await auth_service.change_password(
        session,
        user_id,
        old_password=payload.old_password,
        new_password=payload.password,
    )
    return MessageResponse(message="Password changed")


@router.post(
    "/forgot-password",
    response_model=MessageResponse,
    summary="Request a password reset email",
)
async def forgot_password(
    payload: ForgotPasswordRequest,
    session: DbSession,
    notifier: Annotated[Notifier, Depends(get_notifier)],
) -> MessageResponse:
    await auth_service.forgot_password(session, notifier, email=payload.email)
    return MessageResponse(message="Password reset email sent")


@router.put(
    "/reset-password/{reset_token}",
    response_model=MessageResponse,
    summary="Reset password with an emailed token",
)
async def reset_password(
    reset_token: str, payload: ResetPasswordRequest, session: DbSession
) -> MessageResponse:
    await auth_service.reset_password(
        session, token=reset_token, new_password=payload.password
    )
    return MessageResponse(message="Password reset, please log in")
