"""FastAPI application for the AgriAccess decision service.

Endpoints:
  GET    /health                       — Health check
  GET    /roles                        — Role catalog (label, level, gender restriction)
  GET    /roles/legacy/{legacy_role}   — Resolve a legacy role identifier
  GET    /routes                       — Route permission rules
  GET    /me/access                    — Access summary for the caller
  POST   /access/route                 — Can a role set reach a route?
  POST   /access/feature               — Can a role set use a feature?
  POST   /access/action                — Can an actor act on a target user?
  POST   /access/gender                — Is a role open to a given gender?
  POST   /admin/roles/check            — Validate an intended role assignment
  POST   /admin/migrations/roles       — Migrate legacy single-role user records
  GET    /metrics                      — Prometheus metrics
"""

from __future__ import annotations

import logging
import time
from contextlib import asynccontextmanager
from uuid import uuid4

from fastapi import Depends, FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_fastapi_instrumentator import Instrumentator
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

import agriaccess
from agriaccess.api.rate_limit import limiter
from agriaccess.api.routes import access, admin, catalog
from agriaccess.auth import require_api_key, strict_routes_enabled
from agriaccess.config import settings
from agriaccess.exceptions import AgriAccessError
from agriaccess.logging_config import log_startup_info, setup_logging

logger = logging.getLogger("agriaccess")
_audit_logger = logging.getLogger("agriaccess.audit")

_STARTUP_TIME: float = 0.0


@asynccontextmanager
async def lifespan(app: FastAPI):
    global _STARTUP_TIME
    _STARTUP_TIME = time.monotonic()
    setup_logging()
    log_startup_info()
    yield
    logger.info("Shutdown complete")


_OPENAPI_TAGS = [
    {"name": "Health", "description": "Health checks and version info"},
    {"name": "Catalog", "description": "Roles, legacy aliases, and route rules"},
    {"name": "Access", "description": "Route, feature, action, and gender decisions"},
    {"name": "Admin", "description": "Role assignment checks and legacy role migration"},
    {"name": "Metrics", "description": "Prometheus metrics endpoint"},
]

app = FastAPI(
    title="AgriAccess",
    description="Role-based access control for the agricultural commerce platform.",
    version=agriaccess.__version__,
    lifespan=lifespan,
    dependencies=[Depends(require_api_key)],
    openapi_tags=_OPENAPI_TAGS,
)

app.state.limiter = limiter


# ---------------------------------------------------------------------------
# Error handlers
# ---------------------------------------------------------------------------
@app.exception_handler(AgriAccessError)
async def agriaccess_error_handler(request: Request, exc: AgriAccessError) -> JSONResponse:
    """Centralized handler for custom AgriAccess exceptions."""
    request_id = getattr(request.state, "request_id", "unknown")
    if exc.status_code == 403:
        _audit_logger.warning(
            "Denied (%s): %s %s",
            exc.error_type,
            request.method,
            request.url.path,
            extra={"event_category": "audit", "action": exc.error_type},
        )
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": exc.error_type,
            "message": exc.message,
            "request_id": request_id,
        },
    )


@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Return 429 with Retry-After header on rate limit."""
    request_id = getattr(request.state, "request_id", "unknown")
    _audit_logger.warning(
        "Rate limit exceeded: %s %s from %s",
        request.method,
        request.url.path,
        get_remote_address(request),
        extra={"event_category": "audit", "action": "rate_limit_exceeded"},
    )
    response = JSONResponse(
        status_code=429,
        content={
            "error": "rate_limit_exceeded",
            "message": str(exc.detail),
            "request_id": request_id,
        },
    )
    response.headers["Retry-After"] = "60"
    return response


# ---------------------------------------------------------------------------
# Middleware
# ---------------------------------------------------------------------------
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def security_headers_middleware(request: Request, call_next) -> Response:
    response: Response = await call_next(request)
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-Frame-Options"] = "DENY"
    response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
    response.headers["Cache-Control"] = "no-store"
    return response


# Request logging (also sets request_id on state for the error handlers)
@app.middleware("http")
async def request_logging_middleware(request: Request, call_next) -> Response:
    request_id = str(uuid4())[:8]
    request.state.request_id = request_id
    start = time.monotonic()
    response: Response = await call_next(request)
    elapsed_ms = round((time.monotonic() - start) * 1000, 1)
    logger.info(
        "%s %s %s %.1fms [%s]",
        request.method,
        request.url.path,
        response.status_code,
        elapsed_ms,
        request_id,
        extra={
            "request_id": request_id,
            "path": request.url.path,
            "method": request.method,
            "status_code": response.status_code,
            "duration_ms": elapsed_ms,
        },
    )
    response.headers["X-Request-ID"] = request_id
    return response


# ---------------------------------------------------------------------------
# Prometheus metrics
# ---------------------------------------------------------------------------
_instrumentator = Instrumentator(
    excluded_handlers=["/metrics"],
    should_respect_env_var=False,
)
_instrumentator.instrument(app).expose(app, endpoint="/metrics", tags=["Metrics"])


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------
@app.get("/health", tags=["Health"], summary="Health check")
async def health():
    uptime_s = time.monotonic() - _STARTUP_TIME if _STARTUP_TIME > 0 else 0
    return {
        "status": "ok",
        "version": agriaccess.__version__,
        "uptime_seconds": round(uptime_s, 1),
        "strict_routes": strict_routes_enabled(),
    }


app.include_router(catalog.router)
app.include_router(access.router)
app.include_router(admin.router)
