"""
Team management I/O models.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from .auth import UserRead


class EmployeeCreate(BaseModel):
    email: str = Field(min_length=1)
    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)


class EmployeeCreated(BaseModel):
    message: str
    employee: UserRead
