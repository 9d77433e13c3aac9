"""
AI Receptionist — Dashboard API

FastAPI application serving call analytics (calls, KPIs, charts) for the
AI Receptionist dashboard. Endpoints live under /api/*.
"""

import logging
import sys
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.config import settings
from app.routers import dashboard, webhooks
from app.services.analytics.sources import get_record_source
from app.services.supabase import close_supabase, supabase_configured
from app.services.vapi import VapiAuthError, VapiError

# =============================================================================
# LOGGING
# =============================================================================

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper()),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    stream=sys.stdout,
)
logger = logging.getLogger(__name__)


# =============================================================================
# LIFESPAN
# =============================================================================


@asynccontextmanager
async def lifespan(app: FastAPI):  # type: ignore[no-untyped-def]
    """Application lifespan handler."""
    logger.info("Starting %s in %s mode", settings.app_name, settings.environment)
    logger.info("Record source: %s", settings.record_source)
    logger.info("Vapi: %s", "configured" if settings.vapi_private_key else "missing")
    logger.info("Supabase: %s", "configured" if supabase_configured() else "missing")
    # Fail fast on a bad record source configuration
    get_record_source()
    yield
    logger.info("Shutting down %s", settings.app_name)
    await close_supabase()


# =============================================================================
# APP
# =============================================================================

app = FastAPI(
    title=settings.app_name,
    description="AI Receptionist — call analytics API for the dashboard",
    version="0.1.0",
    lifespan=lifespan,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
)


# =============================================================================
# MIDDLEWARE
# =============================================================================

app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in settings.cors_origins.split(",") if o.strip()],
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type", "X-Vapi-Secret"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):  # type: ignore[no-untyped-def]
    """Log all requests for debugging."""
    logger.debug("%s %s", request.method, request.url.path)
    response = await call_next(request)
    return response


# =============================================================================
# EXCEPTION HANDLERS
# =============================================================================


@app.exception_handler(VapiAuthError)
async def vapi_auth_exception_handler(request: Request, exc: VapiAuthError) -> JSONResponse:
    """Provider rejected our key: a configuration problem, not the caller's."""
    logger.error("Vapi rejected the API key: %s", exc)
    return JSONResponse(
        status_code=502,
        content={
            "detail": "Invalid Vapi API key: check that VAPI_PRIVATE_KEY is the "
            "account's private key"
        },
    )


@app.exception_handler(VapiError)
async def vapi_exception_handler(request: Request, exc: VapiError) -> JSONResponse:
    """Upstream provider failure."""
    logger.error("Vapi request failed: %s", exc)
    return JSONResponse(
        status_code=502,
        content={"detail": f"Failed to connect to Vapi API: {exc.message}"},
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all exception handler."""
    logger.exception("Unhandled exception: %s", exc)
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


# =============================================================================
# ROUTERS
# =============================================================================

app.include_router(dashboard.router, prefix="/api", tags=["Dashboard"])
app.include_router(webhooks.router, prefix="/webhook", tags=["Webhooks"])


# =============================================================================
# ROOT / HEALTH
# =============================================================================


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint."""
    return {"service": settings.app_name, "status": "ok"}


@app.get("/health")
async def health() -> dict[str, str | bool]:
    """Health check, with which integrations are configured."""
    return {
        "status": "healthy",
        "service": settings.app_name,
        "record_source": settings.record_source,
        "vapi_configured": bool(settings.vapi_private_key),
        "supabase_configured": supabase_configured(),
    }
