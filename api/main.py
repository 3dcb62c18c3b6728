"""
api/main.py -- FastAPI application entry point for cvshare.

Run with:      uvicorn asgi:app --reload

Middleware stack (outermost to innermost):
  1. TrustedHostMiddleware -- rejects requests with unexpected Host headers
  2. CORSMiddleware        -- adds CORS headers for allowed browser origins
  3. log_requests          -- one log line per request with latency

Lifespan builds every shared service once (stores, token service, identity
verifier, auth gateway) from core.config.get_settings() and parks them on
app.state. Handlers and dependencies read them from there; nothing reads the
signing key from a module global. Shutdown closes both stores.
"""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.models import ErrorDetail, ErrorResponse, FieldErrorModel, HealthResponse
from api.routes.v1.auth import router as auth_router
from api.routes.v1.cvs import public_router as cvs_public_router
from api.routes.v1.cvs import router as cvs_router
from auth.identity import GoogleIdentityVerifier
from auth.service import AuthGateway
from auth.store import UserStore
from auth.tokens import TokenService
from core.config import get_settings
from core.errors import AppError, DuplicateFieldError, FieldError
from cvs.store import CVStore

VERSION = "1.0.0"

_settings = get_settings()

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=getattr(logging, _settings.log_level.upper(), logging.INFO),
    format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("cvshare.api")


# ---------------------------------------------------------------------------
# Lifespan -- startup / shutdown
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage application-level resources across the full server lifetime.

    Everything before yield runs on startup; everything after yield runs on
    shutdown.
    """
    settings = get_settings()
    logger.info("cvshare API starting up")
    if settings.uses_fallback_secret:
        logger.warning(
            "SECURITY WARNING: tokens are signed with the built-in fallback key. "
            "Set SECRET_KEY -- this configuration must never reach production."
        )

    app.state.user_store = UserStore(settings.database_url)
    app.state.cv_store = CVStore(settings.database_url)
    app.state.tokens = TokenService(settings.secret_key, expire_days=settings.token_expire_days)
    app.state.identity = GoogleIdentityVerifier(settings.google_client_id)
    if not app.state.identity.enabled:
        logger.warning("GOOGLE_CLIENT_ID is not set -- Google login will be rejected")
    app.state.auth = AuthGateway(app.state.user_store, app.state.tokens, app.state.identity)
    logger.info("Stores and auth services initialized")

    yield

    app.state.cv_store.close()
    app.state.user_store.close()
    logger.info("cvshare API shutdown complete")


# ---------------------------------------------------------------------------
# App instantiation
# ---------------------------------------------------------------------------

app = FastAPI(
    title="cvshare API",
    description="User accounts and CV documents with owner-scoped access and public share links.",
    version=VERSION,
    lifespan=lifespan,
)

# ---------------------------------------------------------------------------
# Middleware stack
# ---------------------------------------------------------------------------

app.add_middleware(
    TrustedHostMiddleware,
    allowed_hosts=_settings.allowed_hosts,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_settings.cors_origins,
    allow_methods=["GET", "POST", "PUT", "DELETE"],
    allow_headers=["Content-Type", "Authorization"],
    max_age=3600,
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    ms = (time.perf_counter() - start) * 1000
    logger.info(
        "%s %s %d %.1fms %s",
        request.method,
        request.url.path,
        response.status_code,
        ms,
        request.client.host if request.client else "unknown",
    )
    return response


# ---------------------------------------------------------------------------
# Router registration
# ---------------------------------------------------------------------------

app.include_router(auth_router, prefix="/api/v1", tags=["Auth"])
app.include_router(cvs_public_router, prefix="/api/v1", tags=["CVs"])
app.include_router(cvs_router, prefix="/api/v1", tags=["CVs"])


# ---------------------------------------------------------------------------
# Exception handlers
#
# All handlers return the same ErrorResponse envelope so API clients can parse
# errors uniformly without inspecting status codes to choose a schema.
# ---------------------------------------------------------------------------


def _error_response(
    status_code: int,
    code: str,
    message: str,
    fields: list[FieldError] | None = None,
    field: str | None = None,
) -> JSONResponse:
    detail = ErrorDetail(
        code=code,
        message=message,
        field=field,
        fields=[FieldErrorModel(field=f.field, message=f.message) for f in fields] if fields else None,
    )
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=detail).model_dump(exclude_none=True),
    )


def validation_field_errors(errors: list[dict]) -> list[FieldError]:
    """Flatten pydantic error dicts into field/message pairs.

    loc ("body", "skills", 0, "proficiency") becomes "skills.0.proficiency".
    """
    result: list[FieldError] = []
    for err in errors:
        loc = [str(part) for part in err.get("loc", ())]
        if loc and loc[0] in ("body", "path", "query"):
            loc = loc[1:] or loc
        name = ".".join(loc) or "body"
        if err.get("type") == "missing":
            message = f"{loc[-1] if loc else name} is required"
        else:
            message = err.get("msg", "Invalid value")
        result.append(FieldError(name, message))
    return result


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Render any AppError raised by the gateway, access middleware, or CV handlers."""
    if exc.status_code >= 500:
        logger.error("%s on %s %s: %s", exc.code, request.method, request.url.path, exc.message)
    field = exc.field if isinstance(exc, DuplicateFieldError) else None
    return _error_response(exc.status_code, exc.code, exc.message, exc.fields, field)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Return 400 with one entry per offending field when body or path params fail validation."""
    return _error_response(400, "validation_error", "Validation error", validation_field_errors(exc.errors()))


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Return a structured error for FastAPI/Starlette HTTP exceptions (404 route, 405, ...)."""
    return _error_response(exc.status_code, f"http_{exc.status_code}", str(exc.detail))


@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    """Store failures outside the gateway (CV routes, principal lookup) become a plain 500.

    The raw exception is logged, never returned to the client.
    """
    logger.exception("Database error on %s %s", request.method, request.url.path)
    return _error_response(500, "internal_error", "An unexpected error occurred.")


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all handler for unexpected server errors.

    Security note: the raw exception is logged only, never written to the
    response body.
    """
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return _error_response(500, "internal_error", "An unexpected error occurred.")


# ---------------------------------------------------------------------------
# Health endpoint
#
# Defined directly in main.py (not in a router) so it is always reachable
# regardless of router registration state.
# ---------------------------------------------------------------------------


@app.get("/api/v1/health", tags=["Health"])
def health(request: Request) -> HealthResponse:
    """Return API liveness, version, and a database round-trip check."""
    components = {"app": "ok"}
    try:
        request.app.state.user_store.ping()
        request.app.state.cv_store.ping()
        components["database"] = "ok"
    except SQLAlchemyError:
        logger.exception("Health check: database unreachable")
        components["database"] = "error"
    status = "healthy" if components["database"] == "ok" else "degraded"
    return HealthResponse(status=status, version=VERSION, components=components)
