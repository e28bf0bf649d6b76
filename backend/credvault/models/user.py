"""User model for password-authenticated identities."""
from __future__ import annotations

import uuid

from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column

from credvault.db.base import Base
from credvault.models.mixins import TimestampMixin

EMAIL_MAX_LENGTH = 320
NAME_MAX_LENGTH = 120
PHONE_MAX_LENGTH = 32
PHOTO_MAX_LENGTH = 2048


class User(TimestampMixin, Base):
    """User entity holding credentials and the public profile."""

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True, default=uuid.uuid4, unique=True
    )
    email: Mapped[str] = mapped_column(
        String(EMAIL_MAX_LENGTH), unique=True, nullable=False
    )
    hashed_password: Mapped[str] = mapped_column(String(255), nullable=False)
    name: Mapped[str] = mapped_column(String(NAME_MAX_LENGTH), nullable=False)
    photo: Mapped[str | None] = mapped_column(String(PHOTO_MAX_LENGTH))
    phone: Mapped[str | None] = mapped_column(String(PHONE_MAX_LENGTH))
    bio: Mapped[str | None] = mapped_column(Text)
