from typing import List, Optional, Dict, Any, Tuple
from sqlalchemy.orm import Session
from sqlalchemy import func
from proptrack.core.exceptions import InvalidInputError, NotFoundError, PermissionDeniedError
from proptrack.db.models import (
    Property as DBProperty, Client as DBClient, Viewing as DBViewing
)
from proptrack.models.property import (
    Property, PropertyCreate, PropertyUpdate, PropertyFilters, PropertyStatus
)
from proptrack.modules.common.filters import paginate
from proptrack.modules.common.ids import parse_id
from proptrack.modules.properties.query_builder import PropertyQueryBuilder
from proptrack.modules.properties.similar import SimilarPropertiesResolver
import logging

logger = logging.getLogger(__name__)


class PropertyService:
    """Service for property listings"""

    def __init__(self, db: Session):
        self.db = db
        self.query_builder = PropertyQueryBuilder()
        self.similar_resolver = SimilarPropertiesResolver(db)

    def _get_row(self, property_id) -> DBProperty:
        db_property = self.db.get(DBProperty, parse_id(property_id))
        if db_property is None:
            raise NotFoundError("Property")
        return db_property

    def _get_owned_row(self, property_id, user_id: str) -> DBProperty:
        db_property = self._get_row(property_id)
        if db_property.agent_id != parse_id(user_id):
            logger.warning(f"User {user_id} attempted to modify property {property_id} they do not own")
            raise PermissionDeniedError("Not authorized to modify this property")
        return db_property

    def _commit(self, db_property: DBProperty) -> Property:
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(db_property)
        return Property.from_db(db_property)

    async def list_properties(self, criteria: PropertyFilters) -> Tuple[List[Property], int]:
        """Filtered, sorted page of properties plus the total match count"""
        query = self.query_builder.build_query(self.db, criteria)
        rows, total = paginate(query, self.query_builder.order_by(criteria), criteria.page, criteria.limit)
        return [Property.from_db(row) for row in rows], total

    async def get_property(self, property_id: str) -> Property:
        return Property.from_db(self._get_row(property_id))

    async def get_similar_properties(self, property_id: str, limit: int = 4) -> List[Property]:
        reference = self._get_row(property_id)
        rows = await self.similar_resolver.resolve(reference, limit)
        return [Property.from_db(row) for row in rows]

    async def get_featured_properties(self, limit: int = 6) -> List[Property]:
        rows = (
            self.db.query(DBProperty)
            .filter(DBProperty.featured.is_(True), DBProperty.status == PropertyStatus.ACTIVE.value)
            .order_by(DBProperty.created_at.desc())
            .limit(limit)
            .all()
        )
        return [Property.from_db(row) for row in rows]

    async def create_property(self, data: PropertyCreate, agent_id: str) -> Property:
        """Create a listing owned by the calling agent"""
        db_property = DBProperty(
            title=data.title.strip(),
            description=data.description.strip(),
            price=data.price,
            property_type=data.property_type.value,
            listing_type=data.listing_type.value,
            bedrooms=data.bedrooms,
            bathrooms=data.bathrooms,
            area=data.area,
            address=data.location.address,
            city=data.location.city,
            state=data.location.state,
            zip_code=data.location.zip_code,
            coordinates=data.location.coordinates,
            images=list(data.images),
            status=data.status.value,
            featured=data.featured,
            agent_notes=data.agent_notes,
            agent_id=parse_id(agent_id),
        )
        db_property.amenities.extend(data.amenities)

        self.db.add(db_property)
        created = self._commit(db_property)
        logger.info(f"Property {created.id} created by agent {agent_id}")
        return created

    async def update_property(self, property_id: str, data: PropertyUpdate, user_id: str) -> Property:
        db_property = self._get_owned_row(property_id, user_id)
        changes = data.model_dump(exclude_unset=True, exclude={"location", "amenities"})

        for field, value in changes.items():
            if value is None and field in ("title", "description", "price", "property_type",
                                           "listing_type", "bedrooms", "bathrooms", "area", "status"):
                raise InvalidInputError(f"{field} cannot be null")
            setattr(db_property, field, getattr(value, "value", value))

        if data.location is not None:
            db_property.address = data.location.address
            db_property.city = data.location.city
            db_property.state = data.location.state
            db_property.zip_code = data.location.zip_code
            db_property.coordinates = data.location.coordinates

        if data.amenities is not None:
            # Inserts flush before deletes, so only touch the rows that change
            wanted = set(data.amenities)
            for amenity_row in list(db_property.amenity_rows):
                if amenity_row.name not in wanted:
                    db_property.amenity_rows.remove(amenity_row)
            kept = set(db_property.amenities)
            db_property.amenities.extend(a for a in data.amenities if a not in kept)

        return self._commit(db_property)

    async def delete_property(self, property_id: str, user_id: str) -> None:
        db_property = self._get_owned_row(property_id, user_id)

        in_use = (
            self.db.query(DBClient.id).filter(DBClient.property_id == db_property.id).first()
            or self.db.query(DBViewing.id).filter(DBViewing.property_id == db_property.id).first()
        )
        if in_use:
            raise InvalidInputError(
                "Property has inquiries or viewings and cannot be deleted; archive it instead"
            )

        try:
            self.db.delete(db_property)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        logger.info(f"Property {property_id} deleted by agent {user_id}")

    async def set_status(self, property_id: str, status: PropertyStatus, user_id: str) -> Property:
        """Archive / restore shortcut"""
        db_property = self._get_owned_row(property_id, user_id)
        db_property.status = status.value
        return self._commit(db_property)

    async def toggle_featured(self, property_id: str, user_id: str) -> Property:
        db_property = self._get_owned_row(property_id, user_id)
        db_property.featured = not db_property.featured
        return self._commit(db_property)

    async def get_stats(self) -> Dict[str, Any]:
        """Totals plus breakdowns by type and listing type"""
        general = self.db.query(
            func.count(DBProperty.id),
            func.avg(DBProperty.price),
            func.min(DBProperty.price),
            func.max(DBProperty.price),
            func.sum(DBProperty.area),
            func.avg(DBProperty.area),
        ).one()

        by_type = (
            self.db.query(DBProperty.property_type, func.count(DBProperty.id), func.avg(DBProperty.price))
            .group_by(DBProperty.property_type)
            .all()
        )
        by_listing_type = (
            self.db.query(DBProperty.listing_type, func.count(DBProperty.id), func.avg(DBProperty.price))
            .group_by(DBProperty.listing_type)
            .all()
        )

        active = self.db.query(DBProperty).filter(DBProperty.status == PropertyStatus.ACTIVE.value).count()
        featured = self.db.query(DBProperty).filter(DBProperty.featured.is_(True)).count()

        return {
            "total": general[0],
            "active": active,
            "featured": featured,
            "averagePrice": _round(general[1]) or 0,
            "statusBreakdown": {
                "general": {
                    "totalProperties": general[0],
                    "averagePrice": _round(general[1]),
                    "minPrice": general[2],
                    "maxPrice": general[3],
                    "totalArea": general[4],
                    "averageArea": _round(general[5]),
                },
                "byType": [
                    {"type": t, "count": count, "averagePrice": _round(avg)}
                    for t, count, avg in by_type
                ],
                "byListingType": [
                    {"listingType": t, "count": count, "averagePrice": _round(avg)}
                    for t, count, avg in by_listing_type
                ],
            },
        }


def _round(value: Optional[float]) -> Optional[float]:
    return round(float(value), 2) if value is not None else None
