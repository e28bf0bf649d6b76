"""ORM models package export."""

from credvault.models.password_reset import PasswordResetToken
from credvault.models.user import User

__all__ = ["PasswordResetToken", "User"]
