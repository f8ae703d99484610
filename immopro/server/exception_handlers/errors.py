"""
Domain errors raised by services.

Routers raise ``HTTPException`` directly for request level outcomes; the
services shared by several routers raise these errors instead, and the
registered handler turns them into JSON responses.
"""

from __future__ import annotations

from typing import Any


class ImmoProError(Exception):
    """Base class of the errors mapped to an HTTP status code."""

    status_code: int = 400

    def __init__(self, detail: Any, status_code: int | None = None) -> None:
        super().__init__(detail if isinstance(detail, str) else str(detail))
        self.detail = detail
        if status_code is not None:
            self.status_code = status_code


class NotFoundError(ImmoProError):
    status_code = 404


class PermissionDeniedError(ImmoProError):
    status_code = 403


class InvalidRequestError(ImmoProError):
    status_code = 400


class IntegrationNotConfiguredError(ImmoProError):
    """A third-party integration needed by the request has no credentials."""

    status_code = 503
