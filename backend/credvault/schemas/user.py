"""User profile schemas."""

from __future__ import annotations

import uuid

from pydantic import BaseModel, ConfigDict


class UserRead(BaseModel):
    """Public profile; never carries the password hash."""

    id: uuid.UUID
    name: str
    email: str
    photo: str | None = None
    phone: str | None = None
    bio: str | None = None

    model_config = ConfigDict(from_attributes=True)


class ProfileUpdate(BaseModel):
    """Mutable profile fields.

    Only fields explicitly supplied with a non-null value are applied; an
    empty string clears ``photo``, ``phone`` or ``bio``. Email is not
    updatable here.
    """

    name: str | None = None
    photo: str | None = None
    phone: str | None = None
    bio: str | None = None

    model_config = ConfigDict(extra="ignore")

    def changes(self) -> dict[str, str]:
        return {
            field: value
            for field, value in self.model_dump(exclude_unset=True).items()
            if value is not None
        }
