"""Auth package: gateway identity dependency."""

from app.auth.dependencies import USER_ID_HEADER, get_current_user

__all__ = [
    "USER_ID_HEADER",
    "get_current_user",
]
