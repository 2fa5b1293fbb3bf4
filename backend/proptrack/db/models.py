from datetime import datetime, timezone
from typing import Optional
from sqlalchemy import (
    Column, Integer, String, Float, DateTime, Boolean, Text, JSON, ForeignKey, Index, Uuid, event
)
from sqlalchemy.ext.associationproxy import association_proxy
from sqlalchemy.orm import relationship
from proptrack.core.database import Base
import uuid


def utcnow() -> datetime:
    """Naive UTC timestamp; every stored datetime uses this convention"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Normalise an incoming timestamp to the stored naive UTC form"""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


class User(Base):
    """Agent or regular user account"""
    __tablename__ = "users"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)

    # Authentication
    email = Column(String(255), unique=True, nullable=False)
    hashed_password = Column(String(255), nullable=False)
    role = Column(String(20), nullable=False, default="user")  # admin (agent) or user
    is_verified = Column(Boolean, default=False)
    is_active = Column(Boolean, default=True)

    # Profile
    name = Column(String(100), nullable=False)

    # Timestamps
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)
    last_login = Column(DateTime)

    # Relationships
    properties = relationship("Property", back_populates="agent")

    __table_args__ = (
        Index('idx_users_email', 'email'),
    )


class Property(Base):
    """Listing owned by exactly one agent"""
    __tablename__ = "properties"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)

    # Basic property information
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=False)
    price = Column(Float, nullable=False)
    property_type = Column(String(50), nullable=False)  # villa, apartment, etc.
    listing_type = Column(String(20), nullable=False)  # sale or rent
    bedrooms = Column(Integer, nullable=False)
    bathrooms = Column(Integer, nullable=False)
    area = Column(Float, nullable=False)  # square feet

    # Address and location
    address = Column(String(500), nullable=False)
    city = Column(String(100), nullable=False)
    state = Column(String(100), nullable=False)  # emirate
    zip_code = Column(String(20), nullable=False)
    coordinates = Column(JSON)  # [longitude, latitude]

    # Listing information
    images = Column(JSON, default=list)  # ordered image URLs
    status = Column(String(20), nullable=False, default="active")
    featured = Column(Boolean, default=False)
    agent_notes = Column(Text)

    agent_id = Column(Uuid, ForeignKey('users.id'), nullable=False)

    # Timestamps
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    # Relationships
    agent = relationship("User", back_populates="properties")
    amenity_rows = relationship(
        "PropertyAmenity", back_populates="property", cascade="all, delete-orphan", lazy="selectin"
    )
    amenities = association_proxy(
        "amenity_rows", "name", creator=lambda name: PropertyAmenity(name=name)
    )

    __table_args__ = (
        Index('idx_properties_city_state', 'city', 'state'),
        Index('idx_properties_type_status', 'property_type', 'status'),
        Index('idx_properties_listing_type_status', 'listing_type', 'status'),
        Index('idx_properties_price', 'price'),
        Index('idx_properties_bedrooms_bathrooms', 'bedrooms', 'bathrooms'),
        Index('idx_properties_status_featured_created', 'status', 'featured', 'created_at'),
        Index('idx_properties_agent_status', 'agent_id', 'status'),
    )


class PropertyAmenity(Base):
    """One amenity of a property; (property_id, name) is unique"""
    __tablename__ = "property_amenities"

    id = Column(Integer, primary_key=True, autoincrement=True)
    property_id = Column(Uuid, ForeignKey('properties.id', ondelete="CASCADE"), nullable=False)
    name = Column(String(100), nullable=False)

    property = relationship("Property", back_populates="amenity_rows")

    __table_args__ = (
        Index('idx_property_amenities_unique', 'property_id', 'name', unique=True),
        Index('idx_property_amenities_name', 'name'),
    )


class Client(Base):
    """Lead created from a property inquiry"""
    __tablename__ = "clients"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)

    # Contact
    name = Column(String(100), nullable=False)
    email = Column(String(255), nullable=False)
    phone = Column(String(50), nullable=False)
    message = Column(Text)
    preferred_contact_method = Column(String(20), default="both")
    preferred_contact_time = Column(String(20), default="anytime")

    # Inquiry
    property_id = Column(Uuid, ForeignKey('properties.id'), nullable=False)
    inquiry_type = Column(String(30), default="viewing")
    status = Column(String(30), nullable=False, default="new")
    priority = Column(String(20), nullable=False, default="medium")
    source = Column(String(30), default="website")

    # Budget and requirements
    budget_min = Column(Float)
    budget_max = Column(Float)
    requirements = Column(JSON)

    # Lifecycle
    is_active = Column(Boolean, default=True)
    last_contacted_at = Column(DateTime)
    next_follow_up_at = Column(DateTime)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    # Relationships
    property = relationship("Property", lazy="joined")
    notes = relationship(
        "ClientNote", back_populates="client", cascade="all, delete-orphan",
        order_by="ClientNote.id", lazy="selectin"
    )

    __table_args__ = (
        Index('idx_clients_email', 'email'),
        Index('idx_clients_phone', 'phone'),
        Index('idx_clients_property_id', 'property_id'),
        Index('idx_clients_status_priority', 'status', 'priority'),
        Index('idx_clients_created_at', 'created_at'),
        Index('idx_clients_next_follow_up_at', 'next_follow_up_at'),
    )


@event.listens_for(Client.status, "set")
def _stamp_last_contacted(target, value, oldvalue, initiator):
    if value != "new" and value != oldvalue:
        target.last_contacted_at = utcnow()


class ClientNote(Base):
    """Append-only agent note on a client"""
    __tablename__ = "client_notes"

    id = Column(Integer, primary_key=True, autoincrement=True)
    client_id = Column(Uuid, ForeignKey('clients.id', ondelete="CASCADE"), nullable=False)
    content = Column(String(500), nullable=False)
    important = Column(Boolean, default=False)
    created_at = Column(DateTime, default=utcnow)

    client = relationship("Client", back_populates="notes")


class Viewing(Base):
    """Scheduled property viewing for a client"""
    __tablename__ = "viewings"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)

    property_id = Column(Uuid, ForeignKey('properties.id'), nullable=False)
    client_id = Column(Uuid, ForeignKey('clients.id'), nullable=False)

    # Schedule: one instant, split into date and time of day only at the API boundary
    scheduled_at = Column(DateTime, nullable=False)
    duration = Column(Integer, nullable=False, default=60)  # minutes

    status = Column(String(20), nullable=False, default="scheduled")
    priority = Column(String(20), default="medium")
    viewing_type = Column(String(20), default="individual")
    notes = Column(Text)
    special_instructions = Column(String(500))

    # Embedded documents
    client_feedback = Column(JSON)
    outcome = Column(JSON)
    attendees = Column(JSON, default=list)
    reminders = Column(JSON, default=list)

    actual_start_time = Column(DateTime)
    actual_end_time = Column(DateTime)
    is_active = Column(Boolean, default=True)

    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    # Relationships
    property = relationship("Property", lazy="joined")
    client = relationship("Client", lazy="joined")
    agent_notes = relationship(
        "ViewingNote", back_populates="viewing", cascade="all, delete-orphan",
        order_by="ViewingNote.id", lazy="selectin"
    )

    __table_args__ = (
        Index('idx_viewings_property_scheduled', 'property_id', 'scheduled_at'),
        Index('idx_viewings_client_scheduled', 'client_id', 'scheduled_at'),
        Index('idx_viewings_scheduled_status', 'scheduled_at', 'status'),
        Index('idx_viewings_status_priority', 'status', 'priority'),
        Index('idx_viewings_created_at', 'created_at'),
    )


class ViewingNote(Base):
    """Append-only agent note on a viewing"""
    __tablename__ = "viewing_notes"

    id = Column(Integer, primary_key=True, autoincrement=True)
    viewing_id = Column(Uuid, ForeignKey('viewings.id', ondelete="CASCADE"), nullable=False)
    note = Column(String(500), nullable=False)
    note_type = Column(String(20), default="general")
    created_at = Column(DateTime, default=utcnow)

    viewing = relationship("Viewing", back_populates="agent_notes")
