from typing import Any, List
from sqlalchemy.orm import Session, Query
from proptrack.db.models import Client as DBClient
from proptrack.models.client import ClientFilters
from proptrack.modules.common import filters as f

SORT_COLUMNS = {
    "createdAt": DBClient.created_at,
    "updatedAt": DBClient.updated_at,
    "name": DBClient.name,
    "status": DBClient.status,
    "priority": DBClient.priority,
    "nextFollowUpAt": DBClient.next_follow_up_at,
    "lastContactedAt": DBClient.last_contacted_at,
}

SEARCH_COLUMNS = (
    DBClient.name,
    DBClient.email,
    DBClient.message,
)


class ClientQueryBuilder:
    """Builds the client list predicate"""

    def build_conditions(self, criteria: ClientFilters) -> List[Any]:
        conditions: List[Any] = []

        f.add_exact(conditions, DBClient.is_active, criteria.is_active)
        f.add_in(conditions, DBClient.status, criteria.status)
        f.add_in(conditions, DBClient.priority, criteria.priority)
        f.add_exact(conditions, DBClient.inquiry_type, criteria.inquiry_type)
        f.add_exact(conditions, DBClient.property_id, criteria.property_id)
        f.add_exact(conditions, DBClient.source, criteria.source)
        f.add_search(conditions, SEARCH_COLUMNS, criteria.search)

        return conditions

    def build_query(self, db: Session, criteria: ClientFilters) -> Query:
        return db.query(DBClient).filter(*self.build_conditions(criteria))

    def order_by(self, criteria: ClientFilters) -> List[Any]:
        return f.parse_sort(criteria.sort, SORT_COLUMNS, "-createdAt")
