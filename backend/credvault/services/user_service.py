"""User data access helpers."""
from __future__ import annotations

import uuid

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from credvault.core import errors
from credvault.core.config import get_settings
from credvault.models.user import User


def normalize_email(email: str) -> str:
    return email.strip().lower()


async def get_user_by_email(session: AsyncSession, email: str) -> User | None:
    """Return a user by email address, ignoring case."""
    result = await session.execute(
        select(User).where(User.email == normalize_email(email))
    )
    return result.scalar_one_or_none()


async def get_user(session: AsyncSession, user_id: uuid.UUID) -> User | None:
    """Return a user by ID."""
    result = await session.execute(select(User).where(User.id == user_id))
    return result.scalar_one_or_none()


async def create_user(
    session: AsyncSession, *, name: str, email: str, hashed_password: str
) -> User:
    """Persist a new user; a duplicate email raises ConflictError."""
    settings = get_settings()
    user = User(
        email=normalize_email(email),
        hashed_password=hashed_password,
        name=name.strip(),
        photo=settings.default_photo_url,
        bio=settings.default_bio,
    )
    session.add(user)
    try:
        await session.commit()
    except IntegrityError as exc:
        await session.rollback()
        raise errors.ConflictError() from exc
    await session.refresh(user)
    return user


async def save_user(session: AsyncSession, user: User) -> User:
    """Commit pending changes on a user and reload it."""
    session.add(user)
    await session.commit()
    await session.refresh(user)
    return user
