"""
Contact repository interface and implementation.

This module provides data access operations for buyer and seller contacts,
including the buyer lookups used by the matching notifications.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from immopro.core.models.domain.enums import ContactType

from ..entities.contacts import Contact
from .base import BaseRepository, QueryBuilder


class ContactRepository(BaseRepository[Contact]):
    """Repository for contact data access operations using SQLModel."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, Contact)

    async def create(self, contact: Contact) -> Contact:
        self.session.add(contact)
        await self.session.commit()
        await self.session.refresh(contact)
        return contact

    async def get_by_id(self, contact_id: int) -> Optional[Contact]:
        stmt = select(Contact).where(Contact.id == contact_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def update(self, contact: Contact) -> Contact:
        contact.updated_at = datetime.utcnow()
        self.session.add(contact)
        await self.session.commit()
        await self.session.refresh(contact)
        return contact

    async def delete(self, contact_id: int) -> bool:
        contact = await self.get_by_id(contact_id)
        if contact:
            await self.session.delete(contact)
            await self.session.commit()
            return True
        return False

    async def list(
        self,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
        filters: Optional[Dict[str, Any]] = None,
    ) -> List[Contact]:
        """List contacts ordered by last name.

        Args:
            limit: Maximum records to return
            offset: Records to skip
            filters: Field filters (agent_id, type)

        Returns:
            List of Contact instances
        """
        stmt = select(Contact).order_by(Contact.last_name, Contact.first_name)
        if filters:
            stmt = QueryBuilder.apply_filters(stmt, Contact, filters)
        stmt = QueryBuilder.apply_pagination(stmt, limit, offset)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def list_for_agents(self, agent_ids: Iterable[int], contact_type: Optional[ContactType] = None) -> List[Contact]:
        """List the contacts owned by any of the given agents.

        Args:
            agent_ids: Agents whose contacts are returned (usually an agency)
            contact_type: Restrict to buyers or sellers

        Returns:
            Contacts ordered by last name
        """
        stmt = QueryBuilder.apply_agency_scope(select(Contact), Contact, agent_ids)
        if contact_type is not None:
            stmt = stmt.where(Contact.type == contact_type.value)
        stmt = stmt.order_by(Contact.last_name, Contact.first_name)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def list_buyers(self, agent_ids: Iterable[int]) -> List[Contact]:
        return await self.list_for_agents(agent_ids, ContactType.BUYER)

    async def get_by_email(self, email: str, agent_ids: Iterable[int]) -> Optional[Contact]:
        stmt = select(Contact).where(func.lower(Contact.email) == email.strip().lower())
        stmt = QueryBuilder.apply_agency_scope(stmt, Contact, agent_ids)
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def count_for_agents(self, agent_ids: Iterable[int]) -> int:
        stmt = QueryBuilder.apply_agency_scope(select(func.count()).select_from(Contact), Contact, agent_ids)
        result = await self.session.execute(stmt)
        return result.scalar_one()
