"""
Exception handlers for the ImmoPro server.

This package contains the domain errors raised by services, the handlers
mapping errors to HTTP responses and a setup function to register them with
the FastAPI application.
"""

from .errors import (
    ImmoProError,
    IntegrationNotConfiguredError,
    InvalidRequestError,
    NotFoundError,
    PermissionDeniedError,
)
from .global_handler import setup_exception_handlers

__all__ = [
    "ImmoProError",
    "IntegrationNotConfiguredError",
    "InvalidRequestError",
    "NotFoundError",
    "PermissionDeniedError",
    "setup_exception_handlers",
]
