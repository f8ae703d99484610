"""
Exception Handlers for the FastAPI Application.

This module maps known error types to HTTP responses and provides the global
handler that catches every other unhandled exception, logging detailed
information including an error ID, the request context and the traceback.
"""

import traceback

import jwt
import stripe
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError

from immopro.core.logging_config import get_logger
from immopro.core.monitoring import log_error

from .errors import ImmoProError

logger = get_logger(__name__)


async def app_error_handler(request: Request, exc: ImmoProError) -> JSONResponse:
    """Answer a domain error with its own status code and detail."""
    logger.info(f"{type(exc).__name__} in {request.method} {request.url.path}: {exc.detail}")
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})


async def integrity_error_handler(request: Request, exc: IntegrityError) -> JSONResponse:
    """Answer a unique or foreign key violation with 400."""
    logger.warning(
        f"Integrity error in {request.method} {request.url.path}: {exc.orig}",
        extra={"method": request.method, "path": request.url.path},
    )
    return JSONResponse(status_code=400, content={"detail": "Resource already exists or references a missing record"})


async def jwt_error_handler(request: Request, exc: jwt.PyJWTError) -> JSONResponse:
    """Answer an invalid or expired access token with 401."""
    detail = "Token expired" if isinstance(exc, jwt.ExpiredSignatureError) else "Invalid token"
    return JSONResponse(
        status_code=401,
        content={"detail": detail},
        headers={"WWW-Authenticate": "Bearer"},
    )


async def stripe_error_handler(request: Request, exc: stripe.StripeError) -> JSONResponse:
    """Answer a failed Stripe API call with 502 and Stripe's user facing message."""
    logger.error(
        f"Stripe error in {request.method} {request.url.path}: {exc.user_message or str(exc)}",
        extra={"method": request.method, "path": request.url.path, "stripe_code": exc.code},
    )
    log_error("StripeError", str(exc), {"path": request.url.path, "code": exc.code})
    return JSONResponse(
        status_code=502,
        content={"detail": exc.user_message or "Payment provider error", "error_type": type(exc).__name__},
    )


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Global exception handler to log detailed error information.

    This handler is called for any unhandled exception in the application.
    It logs the full error context and returns a JSON response with an error ID
    that clients can use to reference the error when reporting issues.

    Args:
        request: The HTTP request that caused the exception
        exc: The exception that was raised

    Returns:
        JSONResponse with error details and error ID
    """
    error_id = id(exc)

    logger.error(
        f"Unhandled exception [{error_id}] in {request.method} {request.url.path}: {str(exc)}",
        exc_info=True,
        extra={
            "error_id": error_id,
            "method": request.method,
            "path": request.url.path,
            "query_params": dict(request.query_params),
            "client": request.client.host if request.client else "unknown",
            "error_type": type(exc).__name__,
            "traceback": traceback.format_exc(),
        },
    )
    log_error(type(exc).__name__, str(exc), {"error_id": error_id, "path": request.url.path})

    return JSONResponse(
        status_code=500,
        content={
            "detail": "Internal server error",
            "error_id": error_id,
            "error_type": type(exc).__name__,
        },
    )


def setup_exception_handlers(app: FastAPI) -> None:
    """
    Register exception handlers with the FastAPI application.

    This function should be called during application initialization to set up
    all custom exception handlers.

    Args:
        app: The FastAPI application instance
    """
    app.add_exception_handler(ImmoProError, app_error_handler)
    app.add_exception_handler(IntegrityError, integrity_error_handler)
    app.add_exception_handler(jwt.PyJWTError, jwt_error_handler)
    app.add_exception_handler(stripe.StripeError, stripe_error_handler)
    app.add_exception_handler(Exception, global_exception_handler)
    logger.debug("Exception handlers registered successfully")
