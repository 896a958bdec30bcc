"""FastAPI application entry point.

This module creates and configures the FastAPI application, including:
- Exception handlers for API and wizard errors
- API v1 router mounting
- Health check endpoint
"""

import logging

import structlog
from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from profile_builder.api.v1.router import router as v1_router
from profile_builder.core.config import settings
from profile_builder.core.errors import APIError, field_error_details
from profile_builder.core.responses import ErrorDetail, ErrorResponse
from profile_builder.services.wizard_errors import (
    LocalValidationError,
    OutOfRangeError,
    PersistenceFatalError,
    PersistenceValidationError,
    PreconditionError,
    UploadError,
    WizardError,
)

logger = structlog.get_logger()

_WIZARD_ERROR_STATUS: dict[type[WizardError], tuple[int, str]] = {
    LocalValidationError: (400, "VALIDATION_ERROR"),
    OutOfRangeError: (422, "INVALID_STATE_TRANSITION"),
    PreconditionError: (422, "VERIFICATION_REQUIRED"),
    UploadError: (502, "UPLOAD_FAILED"),
    PersistenceValidationError: (400, "SUBMISSION_REJECTED"),
    PersistenceFatalError: (500, "SUBMISSION_FAILED"),
}
"""Wizard error class -> (HTTP status, error code)."""


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Middleware to add security headers to all responses.

    Headers added:
    - X-Frame-Options: Prevents clickjacking attacks
    - X-Content-Type-Options: Prevents MIME sniffing
    - Referrer-Policy: Controls referrer information leakage
    - Cache-Control: Prevents caching of wizard state (may hold personal data)
    - Content-Security-Policy: Restricts resource loading (API returns no HTML)
    - Strict-Transport-Security: Forces HTTPS (production only)
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        """Add security headers to response."""
        response = await call_next(request)

        response.headers["X-Frame-Options"] = "DENY"
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"

        if request.url.path.startswith("/api/"):
            response.headers["Cache-Control"] = "no-store, max-age=0"

        response.headers["Content-Security-Policy"] = (
            "default-src 'none'; frame-ancestors 'none'"
        )

        # HSTS only in production (assumes HTTPS via reverse proxy)
        if settings.environment == "production":
            response.headers["Strict-Transport-Security"] = (
                "max-age=31536000; includeSubDomains"
            )

        return response


def _error_response(
    status_code: int, code: str, message: str, details: list[dict] | None = None
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(
            error=ErrorDetail(code=code, message=message, details=details)
        ).model_dump(),
    )


def api_error_handler(_request: Request, exc: APIError) -> JSONResponse:
    """Handle custom API errors with the standard error envelope."""
    return _error_response(exc.status_code, exc.code, exc.message, exc.details)


def wizard_error_handler(_request: Request, exc: WizardError) -> JSONResponse:
    """Render wizard failures.

    Field-level failures carry {"field", "error"} details so the client can
    highlight inputs; upload failures carry the failed stage.

    Args:
        request: The incoming request.
        exc: The WizardError that was raised.

    Returns:
        JSONResponse with the mapped status code.
    """
    status_code, code = _WIZARD_ERROR_STATUS.get(type(exc), (400, "WIZARD_ERROR"))
    details: list[dict] | None = None
    if isinstance(exc, (LocalValidationError, PersistenceValidationError)):
        details = field_error_details(exc.field_errors)
    elif isinstance(exc, UploadError):
        details = [{"field": exc.section, "stage": exc.stage}]
    elif isinstance(exc, PreconditionError):
        details = [{"step": exc.step_id}]
    return _error_response(status_code, code, exc.message, details)


def validation_error_handler(
    _request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Convert FastAPI's request validation errors to the standard envelope."""
    return _error_response(
        400,
        "VALIDATION_ERROR",
        "Request validation failed",
        [{"loc": list(e["loc"]), "msg": e["msg"], "type": e["type"]} for e in exc.errors()],
    )


def internal_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all for unhandled exceptions.

    WHY: Never expose internal error details to clients. Log for debugging.
    """
    logger.exception("Unhandled exception", exc_info=exc, path=str(request.url.path))
    return _error_response(500, "INTERNAL_ERROR", "An unexpected error occurred")


def configure_logging(level: str) -> None:
    """Filter structlog output below the configured level."""
    structlog.configure(
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, level.upper(), logging.INFO)
        ),
    )


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application instance.
    """
    configure_logging(settings.log_level)

    app = FastAPI(
        title="Profile Builder API",
        version="1.0.0",
        description="Multi-step candidate and employer profile wizards",
    )

    # Middleware order: Starlette uses LIFO, so the LAST added runs FIRST.
    # CORS must run first to handle preflight requests, so add it last.
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Accept", "Authorization", "X-Request-ID"],
    )

    # Order matters: specific handlers first, then catch-all
    app.add_exception_handler(APIError, api_error_handler)
    app.add_exception_handler(WizardError, wizard_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, internal_error_handler)

    app.include_router(v1_router, prefix="/api/v1")

    @app.get("/health")
    def health_check() -> dict:
        """Health check endpoint for monitoring."""
        return {"status": "healthy"}

    return app


# Used by uvicorn: uvicorn profile_builder.main:app
app = create_app()
