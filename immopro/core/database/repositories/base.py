"""
Repository contract shared by the immopro data access layer.

Every repository wraps one SQLModel entity and commits its own writes, so
routers and services never touch the session transaction directly.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, Generic, Iterable, List, Optional, Type, TypeVar

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import SQLModel

EntityType = TypeVar("EntityType", bound=SQLModel)


class BaseRepository(ABC, Generic[EntityType]):
    """CRUD contract of an entity repository."""

    def __init__(self, session: AsyncSession, model: Type[EntityType]) -> None:
        self.session = session
        self.model = model

    @abstractmethod
    async def create(self, entity: EntityType) -> EntityType:
        """Persist ``entity`` and return it with its generated id."""

    @abstractmethod
    async def get_by_id(self, entity_id: int) -> Optional[EntityType]:
        """Return the entity with this primary key, or None."""

    @abstractmethod
    async def update(self, entity: EntityType) -> EntityType:
        """Persist the changes made on an attached entity."""

    @abstractmethod
    async def delete(self, entity_id: int) -> bool:
        """Delete by primary key.

        Returns:
            False when nothing had that id
        """

    @abstractmethod
    async def list(
        self, limit: Optional[int] = None, offset: Optional[int] = None, filters: Optional[Dict[str, Any]] = None
    ) -> List[EntityType]:
        """List entities in the repository's natural order.

        Args:
            limit: Maximum number of rows
            offset: Rows to skip, for page based listings
            filters: Equality filters keyed by column name
        """


class QueryBuilder:
    """Statement helpers reused by the repositories."""

    @staticmethod
    def apply_filters(stmt, model: Type[EntityType], filters: Dict[str, Any]):
        """Add an equality clause per filter.

        ``None`` values and names that are not columns of ``model`` are ignored,
        so optional query parameters can be passed through as they are.
        """
        for key, value in filters.items():
            if value is not None and hasattr(model, key):
                stmt = stmt.where(getattr(model, key) == value)
        return stmt

    @staticmethod
    def apply_agency_scope(stmt, model: Type[EntityType], agent_ids: Iterable[int]):
        """Keep the rows owned by one of ``agent_ids``, the members of an agency."""
        return stmt.where(getattr(model, "agent_id").in_(list(agent_ids)))

    @staticmethod
    def apply_pagination(stmt, limit: Optional[int], offset: Optional[int]):
        if limit is not None:
            stmt = stmt.limit(limit)
        if offset is not None:
            stmt = stmt.offset(offset)
        return stmt
