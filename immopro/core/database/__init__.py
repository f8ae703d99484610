"""
Centralized database layer for ImmoPro.

Structure:
- entities/: Database entity models organized by business domain
- repositories/: Data access layer for the entities shared by services
- session.py: Global engine and session factory management
- utils.py: Database utility functions (engine, session factory, ping)
"""

from .base import Base
from .session import (
    async_session_maker,
    engine,
    get_session,
    init_db,
)
from .utils import (
    apply_changes,
    create_all,
    create_engine,
    create_sessionmaker,
    ping,
    plain_values,
)

__all__ = [
    "Base",
    "apply_changes",
    "async_session_maker",
    "create_all",
    "create_engine",
    "create_sessionmaker",
    "engine",
    "get_session",
    "init_db",
    "ping",
    "plain_values",
]
