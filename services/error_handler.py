"""
Error Handling for FlipFinder Proxy

Centralized exception handlers for the FastAPI application. Every error
leaves the proxy as ``{"error": str, "code": str}`` with the status code
the extension keys off (401 auth, 403 subscription, 429 quota, 500 upstream).

Usage:
    from services.error_handler import setup_error_handlers

    app = FastAPI()
    setup_error_handlers(app)
"""

import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from services.exceptions import (
    ProxyException,
    ValidationError,
    AuthenticationError,
    SubscriptionInactiveError,
    QuotaExceededError,
    UpstreamServiceError,
    ConfigurationError,
)

logger = logging.getLogger(__name__)


# ============================================================
# Error Response Helpers
# ============================================================

def get_status_code(exc: ProxyException) -> int:
    """Determine HTTP status code for exception."""
    if isinstance(exc, ValidationError):
        return 400
    elif isinstance(exc, AuthenticationError):
        return 401
    elif isinstance(exc, SubscriptionInactiveError):
        return 403
    elif isinstance(exc, QuotaExceededError):
        return 429
    elif isinstance(exc, ConfigurationError):
        return 503
    elif isinstance(exc, UpstreamServiceError):
        return 500
    return 500


def create_error_response(
    error: ProxyException,
    status_code: int = 500,
    request: Optional[Request] = None,
) -> JSONResponse:
    """Create a standardized JSON error response."""
    response_data = error.to_dict()

    if request is not None:
        response_data["path"] = str(request.url.path)

    return JSONResponse(
        status_code=status_code,
        content=response_data,
    )


# ============================================================
# Exception Handlers
# ============================================================

async def handle_proxy_exception(
    request: Request,
    exc: ProxyException,
) -> JSONResponse:
    """Handle ProxyException and its subclasses."""
    status_code = get_status_code(exc)

    log_level = logging.WARNING if status_code < 500 else logging.ERROR
    logger.log(
        log_level,
        f"[{exc.code}] {request.url.path}: {exc}",
        extra={"details": exc.details},
    )

    return create_error_response(exc, status_code, request)


async def handle_generic_exception(
    request: Request,
    exc: Exception,
) -> JSONResponse:
    """Handle unexpected exceptions."""
    logger.error(
        f"Unhandled exception in {request.url.path}: {type(exc).__name__}: {exc}",
        exc_info=True,
    )

    return JSONResponse(
        status_code=500,
        content={
            "error": "Internal server error",
            "code": "INTERNAL_ERROR",
        },
    )


# ============================================================
# Setup Function
# ============================================================

def setup_error_handlers(app: FastAPI, debug: bool = False):
    """
    Configure error handlers for the FastAPI application.

    Args:
        app: The FastAPI application instance
        debug: If True, log handler registration details
    """
    app.add_exception_handler(ProxyException, handle_proxy_exception)
    app.add_exception_handler(Exception, handle_generic_exception)

    logger.info(f"[ERROR HANDLER] Configured (debug={debug})")
