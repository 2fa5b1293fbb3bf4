from pydantic import Field, field_validator
from typing import Optional, List
from datetime import datetime
from enum import Enum
from proptrack.models.common import APIModel


class PropertyType(str, Enum):
    HOUSE = "house"
    APARTMENT = "apartment"
    CONDO = "condo"
    TOWNHOUSE = "townhouse"
    VILLA = "villa"
    STUDIO = "studio"
    PENTHOUSE = "penthouse"
    DUPLEX = "duplex"
    COMPOUND = "compound"
    WAREHOUSE = "warehouse"
    OFFICE = "office"
    RETAIL = "retail"
    LAND = "land"


class ListingType(str, Enum):
    SALE = "sale"
    RENT = "rent"


class PropertyStatus(str, Enum):
    ACTIVE = "active"
    ARCHIVED = "archived"
    SOLD = "sold"
    RENTED = "rented"
    PENDING = "pending"


def _lowercase(v):
    return v.strip().lower() if isinstance(v, str) else v


def _clean_amenities(values: List[str]) -> List[str]:
    cleaned = []
    for amenity in (a.strip() for a in values):
        if amenity and amenity not in cleaned:
            cleaned.append(amenity)
    return cleaned


class Location(APIModel):
    address: str = Field(..., min_length=1)
    city: str = Field(..., min_length=1)
    state: str = Field(..., min_length=1)
    zip_code: str = Field(..., min_length=1)
    coordinates: Optional[List[float]] = None  # [longitude, latitude]

    @field_validator('address', 'city', 'state', 'zip_code')
    @classmethod
    def strip_text(cls, v):
        v = v.strip()
        if not v:
            raise ValueError('must not be blank')
        return v

    @field_validator('coordinates')
    @classmethod
    def validate_coordinates(cls, v):
        if v is not None and len(v) != 2:
            raise ValueError('coordinates must be [longitude, latitude]')
        return v


class PropertyCreate(APIModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., min_length=1, max_length=2000)
    price: float = Field(..., ge=0)
    location: Location
    property_type: PropertyType = Field(..., alias="type")
    listing_type: ListingType
    bedrooms: int = Field(..., ge=0, le=20)
    bathrooms: int = Field(..., ge=0, le=20)
    area: float = Field(..., ge=1)
    amenities: List[str] = []
    images: List[str] = []
    status: PropertyStatus = PropertyStatus.ACTIVE
    featured: bool = False
    agent_notes: Optional[str] = Field(None, max_length=1000)

    @field_validator('property_type', 'listing_type', mode='before')
    @classmethod
    def lowercase_enums(cls, v):
        return _lowercase(v)

    @field_validator('amenities')
    @classmethod
    def dedupe_amenities(cls, v):
        return _clean_amenities(v)


class PropertyUpdate(APIModel):
    """Partial update; any status value may be set directly"""
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = Field(None, min_length=1, max_length=2000)
    price: Optional[float] = Field(None, ge=0)
    location: Optional[Location] = None
    property_type: Optional[PropertyType] = Field(None, alias="type")
    listing_type: Optional[ListingType] = None
    bedrooms: Optional[int] = Field(None, ge=0, le=20)
    bathrooms: Optional[int] = Field(None, ge=0, le=20)
    area: Optional[float] = Field(None, ge=1)
    amenities: Optional[List[str]] = None
    images: Optional[List[str]] = None
    status: Optional[PropertyStatus] = None
    featured: Optional[bool] = None
    agent_notes: Optional[str] = Field(None, max_length=1000)

    @field_validator('property_type', 'listing_type', mode='before')
    @classmethod
    def lowercase_enums(cls, v):
        return _lowercase(v)

    @field_validator('amenities')
    @classmethod
    def dedupe_amenities(cls, v):
        return _clean_amenities(v) if v is not None else v


class Property(APIModel):
    id: str
    title: str
    description: str
    price: float
    location: Location
    property_type: PropertyType = Field(..., alias="type")
    listing_type: ListingType
    bedrooms: int
    bathrooms: int
    area: float
    amenities: List[str] = []
    images: List[str] = []
    status: PropertyStatus
    featured: bool = False
    agent: str
    agent_notes: Optional[str] = None
    formatted_price: str
    full_address: str
    primary_image: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_db(cls, row) -> "Property":
        images = list(row.images or [])
        location = Location(
            address=row.address,
            city=row.city,
            state=row.state,
            zip_code=row.zip_code,
            coordinates=row.coordinates,
        )
        return cls(
            id=str(row.id),
            title=row.title,
            description=row.description,
            price=row.price,
            location=location,
            property_type=row.property_type,
            listing_type=row.listing_type,
            bedrooms=row.bedrooms,
            bathrooms=row.bathrooms,
            area=row.area,
            amenities=sorted(row.amenities),
            images=images,
            status=row.status,
            featured=bool(row.featured),
            agent=str(row.agent_id),
            agent_notes=row.agent_notes,
            formatted_price=f"AED {row.price:,.2f}",
            full_address=f"{row.address}, {row.city}, {row.state} {row.zip_code}",
            primary_image=images[0] if images else None,
            created_at=row.created_at,
            updated_at=row.updated_at,
        )


class PropertySummary(APIModel):
    """Reference embedded in client and viewing responses"""
    id: str
    title: str
    address: str
    city: str
    price: float
    property_type: PropertyType = Field(..., alias="type")
    primary_image: Optional[str] = None

    @classmethod
    def from_db(cls, row) -> "PropertySummary":
        images = row.images or []
        return cls(
            id=str(row.id),
            title=row.title,
            address=row.address,
            city=row.city,
            price=row.price,
            property_type=row.property_type,
            primary_image=images[0] if images else None,
        )


class PropertyFilters(APIModel):
    """Flat list-endpoint parameters for GET /api/properties"""
    search: Optional[str] = None
    property_type: Optional[PropertyType] = Field(None, alias="type")
    listing_type: Optional[ListingType] = None
    min_price: Optional[float] = None
    max_price: Optional[float] = None
    city: Optional[str] = None
    state: Optional[str] = None
    min_bedrooms: Optional[int] = None
    max_bedrooms: Optional[int] = None
    min_bathrooms: Optional[int] = None
    max_bathrooms: Optional[int] = None
    min_area: Optional[float] = None
    max_area: Optional[float] = None
    amenities: List[str] = []
    status: PropertyStatus = PropertyStatus.ACTIVE
    featured: Optional[bool] = None
    sort: str = "-createdAt"
    page: int = Field(1, ge=1)
    limit: int = Field(12, ge=1, le=100)

    @field_validator('property_type', 'listing_type', mode='before')
    @classmethod
    def lowercase_enums(cls, v):
        return _lowercase(v)
