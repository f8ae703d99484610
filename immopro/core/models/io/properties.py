"""
Property I/O models for API requests and responses.
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .contacts import ContactRead


class PropertyCreate(BaseModel):
    """Schema for creating a property."""

    address: str = Field(min_length=1, max_length=255)
    city: Optional[str] = Field(default=None, max_length=100)
    postal_code: Optional[str] = Field(default=None, max_length=20)
    price: int = Field(ge=0, description="Asking price in euros")
    area: int = Field(ge=0, description="Living area in square meters")
    rooms: int = Field(default=0, ge=0)
    bedrooms: int = Field(default=0, ge=0)
    description: Optional[str] = None
    image_url: Optional[str] = None


class PropertyUpdate(BaseModel):
    """Schema for updating a property. Only provided fields are changed."""

    address: Optional[str] = Field(default=None, min_length=1, max_length=255)
    city: Optional[str] = None
    postal_code: Optional[str] = None
    price: Optional[int] = Field(default=None, ge=0)
    area: Optional[int] = Field(default=None, ge=0)
    rooms: Optional[int] = Field(default=None, ge=0)
    bedrooms: Optional[int] = Field(default=None, ge=0)
    description: Optional[str] = None
    image_url: Optional[str] = None


class PropertyRead(BaseModel):
    """Schema for reading a property."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    address: str
    city: Optional[str] = None
    postal_code: Optional[str] = None
    price: int
    area: int
    rooms: int
    bedrooms: int
    description: Optional[str] = None
    image_url: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    agent_id: int
    created_at: datetime
    updated_at: datetime


class PropertyWithAgent(PropertyRead):
    """Property listed together with its agent's name."""

    agent_first_name: Optional[str] = None
    agent_last_name: Optional[str] = None


class PropertySummary(BaseModel):
    """Short view of a property, embedded in tasks."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    address: str
    city: Optional[str] = None
    price: int


class PropertyOwnerCreate(BaseModel):
    contact_id: int


class PropertyImageCreate(BaseModel):
    """Schema for registering an image already uploaded to storage."""

    url: str = Field(min_length=1)
    caption: Optional[str] = Field(default=None, max_length=255)
    is_primary: bool = False


class PropertyImageRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    property_id: int
    url: str
    caption: Optional[str] = None
    is_primary: bool
    display_order: int
    created_at: datetime


class MatchRead(BaseModel):
    """A buyer matching a property."""

    contact: ContactRead
    score: int = Field(ge=0, le=100)
    reasons: List[str]


class MatchesResponse(BaseModel):
    property_id: int
    matches: List[MatchRead]
