"""
User repository interface and implementation.

This module provides data access operations for users, including the
agency membership queries used to scope every tenant-owned resource.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import func, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from immopro.core.models.domain.enums import UserRole

from ..entities.users import User
from .base import BaseRepository, QueryBuilder


class UserRepository(BaseRepository[User]):
    """Repository for user data access operations using SQLModel."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, User)

    async def create(self, user: User) -> User:
        """Create a new user.

        Args:
            user: User SQLModel instance with an already hashed password

        Returns:
            Persisted User with generated fields
        """
        self.session.add(user)
        await self.session.commit()
        await self.session.refresh(user)
        return user

    async def get_by_id(self, user_id: int) -> Optional[User]:
        stmt = select(User).where(User.id == user_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_email(self, email: str) -> Optional[User]:
        """Get a user by login email (case-insensitive).

        Args:
            email: Email address

        Returns:
            User instance or None
        """
        stmt = select(User).where(func.lower(User.email) == email.strip().lower())
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_stripe_customer_id(self, customer_id: str) -> Optional[User]:
        stmt = select(User).where(User.stripe_customer_id == customer_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def update(self, user: User) -> User:
        """Update an existing user.

        Args:
            user: User instance with updated fields

        Returns:
            Updated User instance
        """
        user.updated_at = datetime.utcnow()
        self.session.add(user)
        await self.session.commit()
        await self.session.refresh(user)
        return user

    async def delete(self, user_id: int) -> bool:
        user = await self.get_by_id(user_id)
        if user:
            await self.session.delete(user)
            await self.session.commit()
            return True
        return False

    async def list(
        self,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
        filters: Optional[Dict[str, Any]] = None,
    ) -> List[User]:
        """List users with optional pagination and filtering.

        Args:
            limit: Maximum records to return
            offset: Records to skip
            filters: Field filters (role, owner_id)

        Returns:
            List of User instances ordered by last name
        """
        stmt = select(User).order_by(User.last_name, User.first_name)
        if filters:
            stmt = QueryBuilder.apply_filters(stmt, User, filters)
        stmt = QueryBuilder.apply_pagination(stmt, limit, offset)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def list_agency_members(self, agency_id: int) -> List[User]:
        """List the owner of an agency and every employee attached to it.

        Args:
            agency_id: Agency identifier (the owner's user id)

        Returns:
            Members ordered by last name
        """
        stmt = (
            select(User)
            .where(or_(User.id == agency_id, User.owner_id == agency_id))
            .order_by(User.last_name, User.first_name)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def agency_member_ids(self, agency_id: int) -> List[int]:
        stmt = select(User.id).where(or_(User.id == agency_id, User.owner_id == agency_id))
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def count_employees(self, owner_id: int) -> int:
        stmt = (
            select(func.count())
            .select_from(User)
            .where(User.owner_id == owner_id, User.role == UserRole.EMPLOYEE.value)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one()
