"""
Main Application Entry Point.

This module initializes the FastAPI application, configures middleware (CORS,
request tracing), registers the exception handlers and includes all API
routers. It serves as the root of the web server.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from immopro.core.database import init_db
from immopro.core.logging_config import get_logger, setup_logging
from immopro.core.monitoring import initialize_logfire

from .api.v1 import (
    admin_subscriptions,
    analytics,
    appointments,
    auth,
    billing,
    contacts,
    dashboard,
    employees,
    health,
    invoices,
    notifications,
    properties,
    public,
    push,
    rgpd,
    stripe_webhook,
    tasks,
    users,
)
from .core import constant
from .core.config import settings
from .exception_handlers import setup_exception_handlers
from .middleware.logfire_middleware import LogfireMiddleware

# Initialize logging
setup_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application lifespan events.

    Creates the tables on startup for the backends that are not migrated by
    Alembic.
    """
    # Startup
    try:
        logger.info("Starting up ImmoPro Server...")
        await init_db()
        logger.info("Database initialized successfully")
    except Exception as e:
        logger.error(f"Database initialization failed: {e}", exc_info=True)

    yield

    # Shutdown
    logger.info("Shutting down ImmoPro Server...")


app = FastAPI(
    title=constant.PROJECT_NAME,
    description="""
    ImmoPro API

    Backend of the ImmoPro real-estate agency platform: properties, contacts,
    tasks, invoices, visit appointments, Stripe billing, email and push
    notifications, and buyer/property matching.
    """,
    version=constant.VERSION,
    openapi_url=f"{constant.API_V1_STR}/openapi.json",
    docs_url=f"{constant.API_V1_STR}/docs",
    redoc_url=f"{constant.API_V1_STR}/redoc",
    lifespan=lifespan,
)

cors = settings.cors
app.add_middleware(
    CORSMiddleware,
    allow_origins=cors.origins,
    allow_credentials=cors.allow_credentials,
    allow_methods=cors.allow_methods,
    allow_headers=cors.allow_headers,
)
app.add_middleware(LogfireMiddleware)

setup_exception_handlers(app)
initialize_logfire(app)


app.include_router(health.router, tags=["health"])
app.include_router(auth.router, prefix=f"{constant.API_V1_STR}/auth")
app.include_router(users.router, prefix=constant.API_V1_STR)
app.include_router(properties.router, prefix=f"{constant.API_V1_STR}/properties")
app.include_router(contacts.router, prefix=f"{constant.API_V1_STR}/contacts")
app.include_router(tasks.router, prefix=f"{constant.API_V1_STR}/tasks")
app.include_router(invoices.router, prefix=f"{constant.API_V1_STR}/invoices")
app.include_router(appointments.router, prefix=f"{constant.API_V1_STR}/appointments")
app.include_router(dashboard.router, prefix=constant.API_V1_STR)
app.include_router(analytics.router, prefix=f"{constant.API_V1_STR}/analytics")
app.include_router(public.router, prefix=f"{constant.API_V1_STR}/public")
app.include_router(notifications.router, prefix=f"{constant.API_V1_STR}/notifications")
app.include_router(push.router, prefix=f"{constant.API_V1_STR}/user")
app.include_router(billing.router, prefix=f"{constant.API_V1_STR}/billing")
app.include_router(stripe_webhook.router, prefix=f"{constant.API_V1_STR}/stripe")
app.include_router(employees.router, prefix=f"{constant.API_V1_STR}/employees")
app.include_router(admin_subscriptions.router, prefix=f"{constant.API_V1_STR}/admin/subscriptions")
app.include_router(rgpd.router, prefix=f"{constant.API_V1_STR}/rgpd")
