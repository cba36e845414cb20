from contextlib import asynccontextmanager
from collections.abc import AsyncGenerator

import structlog
from fastapi import APIRouter, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.config import settings
from app.core.errors import global_exception_handler, http_exception_handler
from app.core.logging import configure_logging

import app.models  # noqa: F401  (registers all models)

from app.modules.fundability.router import router as fundability_router
from app.modules.fundability.store import InMemoryAssessmentStore
from app.modules.matching.router import router as matching_router
from app.core.sentry import init_sentry

# ── Logging and Sentry, before the FastAPI app is created ─────────────────────
configure_logging(settings.LOG_LEVEL, json_logs=settings.LOG_JSON)
init_sentry(settings.SENTRY_DSN, settings.SENTRY_ENVIRONMENT, settings.APP_VERSION)

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None]:
    logger.info("Starting Fundability API", env=settings.APP_ENV, store=settings.STORE_BACKEND)

    if settings.STORE_BACKEND == "sql":
        from app.core.database import async_session_factory, engine
        from app.modules.fundability.repository import SqlAssessmentStore, seed_opportunities

        async with async_session_factory() as db:
            try:
                await seed_opportunities(db)
            except Exception as exc:  # noqa: BLE001
                logger.warning("opportunity_seed_failed", error=str(exc))
        _app.state.store = SqlAssessmentStore(async_session_factory)
        yield
        await engine.dispose()
    else:
        _app.state.store = InMemoryAssessmentStore()
        yield

    logger.info("Shutting down Fundability API")


_is_prod = settings.APP_ENV == "production"

app = FastAPI(
    title="Fundability API",
    description="Business fundability scoring, recommendations and lender matching.",
    version="0.1.0",
    # No interactive docs in production
    docs_url=None if _is_prod else "/docs",
    redoc_url=None if _is_prod else "/redoc",
    openapi_url=None if _is_prod else "/openapi.json",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.FRONTEND_URL],
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Accept", "X-Request-ID", "X-User-ID"],
)

app.add_exception_handler(StarletteHTTPException, http_exception_handler)  # type: ignore[arg-type]
app.add_exception_handler(Exception, global_exception_handler)


# ── X-API-Version response header ────────────────────────────────────────────


@app.middleware("http")
async def add_version_header(request: Request, call_next) -> Response:
    response = await call_next(request)
    response.headers["X-API-Version"] = "v1"
    return response


# ── Health check (root-level, not under /v1) ─────────────────────────────────


@app.get("/health")
async def health_check() -> dict:
    """Liveness plus a store check (PostgreSQL when the sql backend is active)."""
    checks: dict[str, dict] = {}

    if settings.STORE_BACKEND == "sql":
        try:
            from sqlalchemy import text
            from app.core.database import async_session_factory
            async with async_session_factory() as db:
                await db.execute(text("SELECT 1"))
            checks["postgresql"] = {"status": "healthy"}
        except Exception as exc:
            checks["postgresql"] = {"status": "unhealthy", "error": str(exc)}
    else:
        checks["store"] = {"status": "healthy", "backend": "memory"}

    overall = (
        "healthy"
        if all(c["status"] == "healthy" for c in checks.values())
        else "degraded"
    )
    return {"status": overall, "service": "fundability-api", "checks": checks}


# ── /v1 versioned router ──────────────────────────────────────────────────────

api_v1 = APIRouter(prefix="/v1")

api_v1.include_router(fundability_router)
api_v1.include_router(matching_router)

app.include_router(api_v1)
