"""
ImmoPro Server Package.

This package contains the web server implementation for the ImmoPro platform.

Subpackages:
    api: FastAPI route definitions and endpoint logic.
    core: Configuration, constants and security helpers.
    exception_handlers: Error to HTTP response mapping.
    middleware: Request tracing middleware.
    services: Dependencies and third-party integrations.
"""
