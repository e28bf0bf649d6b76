"""Service layer exports."""
from credvault.services import (
    auth_service,
    notification_service,
    password_reset_service,
    user_service,
)

__all__ = [
    "auth_service",
    "notification_service",
    "password_reset_service",
    "user_service",
]
