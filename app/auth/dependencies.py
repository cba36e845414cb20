"""FastAPI auth dependencies: get_current_user."""

import uuid

import sentry_sdk
import structlog
from fastapi import Header, HTTPException, status

from app.schemas.auth import CurrentUser

logger = structlog.get_logger()

USER_ID_HEADER = "X-User-ID"


async def get_current_user(
    x_user_id: str | None = Header(default=None, alias=USER_ID_HEADER),
) -> CurrentUser:
    """
    Resolve the caller from the gateway-supplied X-User-ID header.

    Sessions and tokens are verified upstream; this service only trusts the
    forwarded user id and rejects requests that arrive without a valid one.
    """
    if not x_user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Missing {USER_ID_HEADER} header",
        )

    try:
        user_id = uuid.UUID(x_user_id)
    except ValueError as e:
        logger.warning("invalid_user_header", value=x_user_id)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Invalid {USER_ID_HEADER} header",
        ) from e

    # Enrich Sentry scope with identity (PII-free: id only)
    sentry_sdk.set_user({"id": str(user_id)})

    return CurrentUser(user_id=user_id)
