from typing import Any, List
from sqlalchemy.orm import Session, Query
from proptrack.db.models import Property as DBProperty, PropertyAmenity
from proptrack.models.property import PropertyFilters
from proptrack.modules.common import filters as f


SORT_COLUMNS = {
    "createdAt": DBProperty.created_at,
    "updatedAt": DBProperty.updated_at,
    "price": DBProperty.price,
    "area": DBProperty.area,
    "bedrooms": DBProperty.bedrooms,
    "bathrooms": DBProperty.bathrooms,
    "title": DBProperty.title,
    "featured": DBProperty.featured,
}

SEARCH_COLUMNS = (
    DBProperty.title,
    DBProperty.description,
    DBProperty.address,
    DBProperty.city,
)


class PropertyQueryBuilder:
    """Builds the property list predicate from flat query parameters"""

    def build_conditions(self, criteria: PropertyFilters) -> List[Any]:
        conditions: List[Any] = []

        self._add_basic_filters(conditions, criteria)
        self._add_location_filters(conditions, criteria)
        self._add_feature_filters(conditions, criteria)
        f.add_search(conditions, SEARCH_COLUMNS, criteria.search)

        return conditions

    def build_query(self, db: Session, criteria: PropertyFilters) -> Query:
        return db.query(DBProperty).filter(*self.build_conditions(criteria))

    def order_by(self, criteria: PropertyFilters) -> List[Any]:
        return f.parse_sort(criteria.sort, SORT_COLUMNS, "-createdAt")

    def _add_basic_filters(self, conditions: List[Any], criteria: PropertyFilters):
        """Status, type, listing type, featured and price range"""
        f.add_exact(conditions, DBProperty.status, criteria.status)
        f.add_exact(conditions, DBProperty.property_type, criteria.property_type)
        f.add_exact(conditions, DBProperty.listing_type, criteria.listing_type)
        f.add_exact(conditions, DBProperty.featured, criteria.featured)
        f.add_range(conditions, DBProperty.price, criteria.min_price, criteria.max_price)

    def _add_location_filters(self, conditions: List[Any], criteria: PropertyFilters):
        f.add_contains(conditions, DBProperty.city, criteria.city)
        f.add_contains(conditions, DBProperty.state, criteria.state)

    def _add_feature_filters(self, conditions: List[Any], criteria: PropertyFilters):
        """Room counts, area and amenities (any of the requested ones)"""
        f.add_range(conditions, DBProperty.bedrooms, criteria.min_bedrooms, criteria.max_bedrooms)
        f.add_range(conditions, DBProperty.bathrooms, criteria.min_bathrooms, criteria.max_bathrooms)
        f.add_range(conditions, DBProperty.area, criteria.min_area, criteria.max_area)

        if criteria.amenities:
            conditions.append(
                DBProperty.amenity_rows.any(PropertyAmenity.name.in_(criteria.amenities))
            )
