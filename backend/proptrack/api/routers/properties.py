from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.orm import Session
from typing import Optional
from proptrack.api.responses import success, paginated
from proptrack.core.auth import get_current_user_id
from proptrack.core.database import get_db
from proptrack.core.exceptions import PropTrackError
from proptrack.models.property import PropertyCreate, PropertyUpdate, PropertyFilters, PropertyStatus
from proptrack.modules.common.filters import split_csv
from proptrack.modules.properties.service import PropertyService
import logging

logger = logging.getLogger(__name__)

router = APIRouter()


def get_property_service(db: Session = Depends(get_db)) -> PropertyService:
    return PropertyService(db)


@router.get("")
async def get_properties(
    search: Optional[str] = Query(None, description="Free text over title, description, address and city"),
    property_type: Optional[str] = Query(None, alias="type"),
    listing_type: Optional[str] = Query(None, alias="listingType"),
    min_price: Optional[float] = Query(None, alias="minPrice", ge=0),
    max_price: Optional[float] = Query(None, alias="maxPrice", ge=0),
    city: Optional[str] = Query(None),
    state: Optional[str] = Query(None),
    min_bedrooms: Optional[int] = Query(None, alias="minBedrooms", ge=0),
    max_bedrooms: Optional[int] = Query(None, alias="maxBedrooms", ge=0),
    min_bathrooms: Optional[int] = Query(None, alias="minBathrooms", ge=0),
    max_bathrooms: Optional[int] = Query(None, alias="maxBathrooms", ge=0),
    min_area: Optional[float] = Query(None, alias="minArea", ge=0),
    max_area: Optional[float] = Query(None, alias="maxArea", ge=0),
    amenities: Optional[str] = Query(None, description="Comma separated; matches any"),
    listing_status: str = Query(PropertyStatus.ACTIVE.value, alias="status"),
    featured: Optional[bool] = Query(None),
    sort: str = Query("-createdAt", description="field or -field"),
    page: int = Query(1, ge=1),
    limit: int = Query(12, ge=1, le=100),
    property_service: PropertyService = Depends(get_property_service)
):
    """
    List properties with filtering, sorting and pagination.

    Only active listings are returned unless ``status`` says otherwise.
    """
    criteria = PropertyFilters(
        search=search,
        property_type=property_type,
        listing_type=listing_type,
        min_price=min_price,
        max_price=max_price,
        city=city,
        state=state,
        min_bedrooms=min_bedrooms,
        max_bedrooms=max_bedrooms,
        min_bathrooms=min_bathrooms,
        max_bathrooms=max_bathrooms,
        min_area=min_area,
        max_area=max_area,
        amenities=split_csv(amenities),
        status=listing_status,
        featured=featured,
        sort=sort,
        page=page,
        limit=limit,
    )
    try:
        properties, total = await property_service.list_properties(criteria)
        return paginated(properties, criteria, total, "totalProperties")

    except PropTrackError:
        raise
    except Exception as e:
        logger.error(f"Failed to get properties: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error fetching properties"
        )


@router.get("/stats/overview")
async def get_property_stats(
    current_user_id: str = Depends(get_current_user_id),
    property_service: PropertyService = Depends(get_property_service)
):
    try:
        return success(await property_service.get_stats())

    except PropTrackError:
        raise
    except Exception as e:
        logger.error(f"Failed to get property stats: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error fetching property statistics"
        )


@router.get("/featured/list")
async def get_featured_properties(
    limit: int = Query(6, ge=1, le=50),
    property_service: PropertyService = Depends(get_property_service)
):
    try:
        return success(await property_service.get_featured_properties(limit))

    except PropTrackError:
        raise
    except Exception as e:
        logger.error(f"Failed to get featured properties: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error fetching featured properties"
        )


@router.get("/{property_id}")
async def get_property(
    property_id: str,
    property_service: PropertyService = Depends(get_property_service)
):
    try:
        return success(await property_service.get_property(property_id))

    except PropTrackError:
        raise
    except Exception as e:
        logger.error(f"Failed to get property {property_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error fetching property"
        )


@router.get("/{property_id}/similar")
async def get_similar_properties(
    property_id: str,
    limit: int = Query(4, ge=1, le=20, description="Maximum number of similar properties"),
    property_service: PropertyService = Depends(get_property_service)
):
    """
    Properties similar to the given one.

    Matches on the same type, relaxing city, state and price band until
    ``limit`` listings are found.
    """
    try:
        return success(await property_service.get_similar_properties(property_id, limit))

    except PropTrackError:
        raise
    except Exception as e:
        logger.error(f"Failed to get similar properties for {property_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error fetching similar properties"
        )


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_property(
    property_data: PropertyCreate,
    current_user_id: str = Depends(get_current_user_id),
    property_service: PropertyService = Depends(get_property_service)
):
    """Create a listing owned by the authenticated agent."""
    try:
        created = await property_service.create_property(property_data, current_user_id)
        return success(created, "Property created successfully")

    except PropTrackError:
        raise
    except Exception as e:
        logger.error(f"Failed to create property: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error creating property"
        )


@router.put("/{property_id}")
async def update_property(
    property_id: str,
    property_data: PropertyUpdate,
    current_user_id: str = Depends(get_current_user_id),
    property_service: PropertyService = Depends(get_property_service)
):
    try:
        updated = await property_service.update_property(property_id, property_data, current_user_id)
        return success(updated, "Property updated successfully")

    except PropTrackError:
        raise
    except Exception as e:
        logger.error(f"Failed to update property {property_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error updating property"
        )


@router.delete("/{property_id}")
async def delete_property(
    property_id: str,
    current_user_id: str = Depends(get_current_user_id),
    property_service: PropertyService = Depends(get_property_service)
):
    try:
        await property_service.delete_property(property_id, current_user_id)
        return success(message="Property deleted successfully")

    except PropTrackError:
        raise
    except Exception as e:
        logger.error(f"Failed to delete property {property_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error deleting property"
        )


@router.patch("/{property_id}/archive")
async def archive_property(
    property_id: str,
    current_user_id: str = Depends(get_current_user_id),
    property_service: PropertyService = Depends(get_property_service)
):
    try:
        archived = await property_service.set_status(property_id, PropertyStatus.ARCHIVED, current_user_id)
        return success(archived, "Property archived successfully")

    except PropTrackError:
        raise
    except Exception as e:
        logger.error(f"Failed to archive property {property_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error archiving property"
        )


@router.patch("/{property_id}/restore")
async def restore_property(
    property_id: str,
    current_user_id: str = Depends(get_current_user_id),
    property_service: PropertyService = Depends(get_property_service)
):
    try:
        restored = await property_service.set_status(property_id, PropertyStatus.ACTIVE, current_user_id)
        return success(restored, "Property restored successfully")

    except PropTrackError:
        raise
    except Exception as e:
        logger.error(f"Failed to restore property {property_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error restoring property"
        )


@router.patch("/{property_id}/featured")
async def toggle_featured(
    property_id: str,
    current_user_id: str = Depends(get_current_user_id),
    property_service: PropertyService = Depends(get_property_service)
):
    try:
        toggled = await property_service.toggle_featured(property_id, current_user_id)
        label = "featured" if toggled.featured else "unfeatured"
        return success(toggled, f"Property {label} successfully")

    except PropTrackError:
        raise
    except Exception as e:
        logger.error(f"Failed to toggle featured for property {property_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error updating featured status"
        )
