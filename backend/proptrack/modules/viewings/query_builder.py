from typing import Any, List
from sqlalchemy.orm import Session, Query
from proptrack.db.models import Viewing as DBViewing, to_naive_utc
from proptrack.models.viewing import ViewingFilters
from proptrack.modules.common import filters as f

SORT_COLUMNS = {
    "scheduledDate": DBViewing.scheduled_at,
    "scheduledAt": DBViewing.scheduled_at,
    "createdAt": DBViewing.created_at,
    "updatedAt": DBViewing.updated_at,
    "status": DBViewing.status,
    "priority": DBViewing.priority,
    "duration": DBViewing.duration,
}

SEARCH_COLUMNS = (
    DBViewing.notes,
    DBViewing.special_instructions,
)


class ViewingQueryBuilder:
    """Builds the viewing list predicate"""

    def build_conditions(self, criteria: ViewingFilters) -> List[Any]:
        conditions: List[Any] = []

        f.add_exact(conditions, DBViewing.is_active, criteria.is_active)
        f.add_in(conditions, DBViewing.status, criteria.status)
        f.add_exact(conditions, DBViewing.priority, criteria.priority)
        f.add_exact(conditions, DBViewing.viewing_type, criteria.viewing_type)
        f.add_exact(conditions, DBViewing.property_id, criteria.property_id)
        f.add_exact(conditions, DBViewing.client_id, criteria.client_id)
        f.add_range(
            conditions, DBViewing.scheduled_at,
            to_naive_utc(criteria.date_from), to_naive_utc(criteria.date_to),
        )
        f.add_search(conditions, SEARCH_COLUMNS, criteria.search)

        return conditions

    def build_query(self, db: Session, criteria: ViewingFilters) -> Query:
        return db.query(DBViewing).filter(*self.build_conditions(criteria))

    def order_by(self, criteria: ViewingFilters) -> List[Any]:
        return f.parse_sort(criteria.sort, SORT_COLUMNS, "scheduledDate")
