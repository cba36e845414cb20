"""Centralised Sentry initialisation for the Fundability API."""

import structlog
import sentry_sdk
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.sqlalchemy import SqlalchemyIntegration

logger = structlog.get_logger()

_SENSITIVE_HEADERS = {"authorization", "cookie", "x-api-key", "x-user-id"}


def _scrub_sensitive_data(event: dict, hint: dict) -> dict:
    """Remove identity headers before sending to Sentry."""
    request = event.get("request", {})
    headers = request.get("headers", {})
    for header in list(headers):
        if header.lower() in _SENSITIVE_HEADERS:
            headers[header] = "[REDACTED]"
    return event


def init_sentry(
    dsn: str | None,
    environment: str = "development",
    release: str | None = None,
) -> None:
    """Initialise Sentry with the FastAPI and SQLAlchemy integrations.

    Call this BEFORE creating the FastAPI app so that auto-instrumentation
    can hook in at import time.

    No-op when dsn is None or empty.
    """
    if not dsn:
        logger.info("sentry_disabled", reason="SENTRY_DSN not set")
        return

    is_prod = environment == "production"

    sentry_sdk.init(
        dsn=dsn,
        environment=environment,
        release=release,
        # Sample 10% of transactions in prod; 100% elsewhere for full visibility
        traces_sample_rate=0.1 if is_prod else 1.0,
        integrations=[
            FastApiIntegration(transaction_style="endpoint"),
            SqlalchemyIntegration(),
        ],
        send_default_pii=False,
        before_send=_scrub_sensitive_data,
    )
    logger.info(
        "sentry_initialized",
        environment=environment,
        traces_sample_rate=0.1 if is_prod else 1.0,
    )
