"""
Property entity models.

This module contains the listed properties and the records hanging off them:
owner links to seller contacts, gallery images and public page views.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import UniqueConstraint
from sqlmodel import Field

from ..base import Base


class PropertyBase(Base):
    """Base fields for property entity."""

    address: str = Field(max_length=255, description="Street address")
    city: Optional[str] = Field(default=None, max_length=100, index=True, description="City")
    postal_code: Optional[str] = Field(default=None, max_length=20, description="Postal code")
    price: int = Field(ge=0, description="Asking price in euros")
    area: int = Field(ge=0, description="Living area in square meters")
    rooms: int = Field(default=0, ge=0, description="Number of rooms")
    bedrooms: int = Field(default=0, ge=0, description="Number of bedrooms")
    description: Optional[str] = Field(default=None, description="Free text description")
    image_url: Optional[str] = Field(default=None, description="Cover image URL")


class Property(PropertyBase, table=True):
    """Entity for a listed property.

    Table: properties
    """

    __tablename__ = "properties"

    id: Optional[int] = Field(default=None, primary_key=True)
    agent_id: int = Field(foreign_key="users.id", index=True, description="Listing agent")
    latitude: Optional[float] = Field(default=None)
    longitude: Optional[float] = Field(default=None)

    created_at: datetime = Field(default_factory=datetime.utcnow, index=True)
    updated_at: datetime = Field(default_factory=datetime.utcnow, sa_column_kwargs={"onupdate": datetime.utcnow})

    def __repr__(self) -> str:
        return f"Property(id={self.id}, address={self.address}, city={self.city}, price={self.price})"


class PropertyOwner(Base, table=True):
    """Link between a property and a contact owning it.

    Table: property_owners
    """

    __tablename__ = "property_owners"
    __table_args__ = (UniqueConstraint("property_id", "contact_id", name="uq_property_owner"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    property_id: int = Field(foreign_key="properties.id", index=True)
    contact_id: int = Field(foreign_key="contacts.id", index=True)
    created_at: datetime = Field(default_factory=datetime.utcnow)


class PropertyImage(Base, table=True):
    """Gallery image of a property. The file itself lives in object storage.

    Table: property_images
    """

    __tablename__ = "property_images"

    id: Optional[int] = Field(default=None, primary_key=True)
    property_id: int = Field(foreign_key="properties.id", index=True)
    url: str = Field(description="Public URL of the stored image")
    caption: Optional[str] = Field(default=None, max_length=255)
    is_primary: bool = Field(default=False)
    display_order: int = Field(default=0)
    created_at: datetime = Field(default_factory=datetime.utcnow)


class PropertyView(Base, table=True):
    """One visit of the public page of a property.

    Table: property_views
    """

    __tablename__ = "property_views"

    id: Optional[int] = Field(default=None, primary_key=True)
    property_id: int = Field(foreign_key="properties.id", index=True)
    source: Optional[str] = Field(default=None, max_length=100, description="Traffic source (referrer host)")
    device: str = Field(default="desktop", max_length=20, description="desktop, mobile or tablet")
    viewed_at: datetime = Field(default_factory=datetime.utcnow, index=True)
