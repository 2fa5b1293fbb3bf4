from typing import List, Optional, Dict, Any, Tuple
from datetime import timedelta
from sqlalchemy.orm import Session
from sqlalchemy import case, func
from proptrack.core.exceptions import NotFoundError
from proptrack.db.models import (
    Client as DBClient, ClientNote as DBClientNote, Property as DBProperty, to_naive_utc, utcnow
)
from proptrack.models.client import (
    Client, ClientCreate, ClientUpdate, ClientFilters, ClientStatus, ClientNoteCreate
)
from proptrack.models.common import Priority
from proptrack.modules.common.filters import paginate
from proptrack.modules.common.ids import parse_id
from proptrack.modules.clients.query_builder import ClientQueryBuilder
import logging

logger = logging.getLogger(__name__)

# Leads in these states are finished and never show up in work queues
CLOSED_STATUSES = (ClientStatus.CLOSED.value, ClientStatus.LOST.value)


class ClientService:
    """Service for inquiries (leads) and their follow-up workflow"""

    def __init__(self, db: Session):
        self.db = db
        self.query_builder = ClientQueryBuilder()

    def _get_row(self, client_id) -> DBClient:
        db_client = self.db.get(DBClient, parse_id(client_id))
        if db_client is None:
            raise NotFoundError("Client")
        return db_client

    def _to_model(self, db_client: DBClient) -> Client:
        return Client.from_db(db_client, utcnow())

    def _commit(self, db_client: DBClient) -> Client:
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(db_client)
        return self._to_model(db_client)

    async def list_clients(self, criteria: ClientFilters) -> Tuple[List[Client], int]:
        query = self.query_builder.build_query(self.db, criteria)
        rows, total = paginate(query, self.query_builder.order_by(criteria), criteria.page, criteria.limit)
        return [self._to_model(row) for row in rows], total

    async def get_client(self, client_id: str) -> Client:
        return self._to_model(self._get_row(client_id))

    async def create_client(self, data: ClientCreate) -> Client:
        """Record a public inquiry against an existing property"""
        if self.db.get(DBProperty, data.property_id) is None:
            raise NotFoundError("Property")

        db_client = DBClient(
            name=data.name.strip(),
            email=data.email,
            phone=data.phone.strip(),
            message=data.message,
            property_id=data.property_id,
            inquiry_type=data.inquiry_type.value,
            priority=data.priority.value,
            preferred_contact_method=data.preferred_contact_method.value,
            preferred_contact_time=data.preferred_contact_time.value,
            source=data.source.value,
            next_follow_up_at=to_naive_utc(data.next_follow_up_at),
        )
        db_client.status = data.status.value
        self._apply_budget(db_client, data)
        if data.requirements is not None:
            db_client.requirements = data.requirements.model_dump(mode="json")

        self.db.add(db_client)
        created = self._commit(db_client)
        logger.info(f"New inquiry {created.id} for property {data.property_id}")
        return created

    async def update_client(self, client_id: str, data: ClientUpdate) -> Client:
        db_client = self._get_row(client_id)
        changes = data.model_dump(exclude_unset=True, exclude={"budget", "requirements"})

        for field, value in changes.items():
            if value is None and field not in ("message", "next_follow_up_at"):
                continue
            if field == "next_follow_up_at":
                value = to_naive_utc(value)
            setattr(db_client, field, getattr(value, "value", value))

        if "budget" in data.model_fields_set:
            self._apply_budget(db_client, data)
        if data.requirements is not None:
            db_client.requirements = data.requirements.model_dump(mode="json")

        return self._commit(db_client)

    async def deactivate_client(self, client_id: str) -> Client:
        """Soft delete; the lead stays queryable with isActive=false"""
        db_client = self._get_row(client_id)
        db_client.is_active = False
        deactivated = self._commit(db_client)
        logger.info(f"Client {client_id} deactivated")
        return deactivated

    async def update_status(self, client_id: str, status: ClientStatus) -> Client:
        db_client = self._get_row(client_id)
        db_client.status = status.value
        return self._commit(db_client)

    async def update_priority(self, client_id: str, priority: Priority) -> Client:
        db_client = self._get_row(client_id)
        db_client.priority = priority.value
        return self._commit(db_client)

    async def add_note(self, client_id: str, data: ClientNoteCreate) -> Client:
        db_client = self._get_row(client_id)
        db_client.notes.append(DBClientNote(content=data.note.strip(), important=data.important))
        return self._commit(db_client)

    async def schedule_follow_up(self, client_id: str, follow_up_at) -> Client:
        db_client = self._get_row(client_id)
        db_client.next_follow_up_at = to_naive_utc(follow_up_at)
        return self._commit(db_client)

    async def get_clients_for_property(
        self, property_id: str, status: Optional[ClientStatus] = None, limit: int = 10
    ) -> List[Client]:
        query = self.db.query(DBClient).filter(
            DBClient.property_id == parse_id(property_id),
            DBClient.is_active.is_(True),
        )
        if status is not None:
            query = query.filter(DBClient.status == status.value)
        rows = query.order_by(DBClient.created_at.desc()).limit(limit).all()
        return [self._to_model(row) for row in rows]

    async def get_urgent_clients(self, limit: int = 10) -> List[Client]:
        """High and urgent priority leads that are still open, urgent first"""
        urgent_first = case((DBClient.priority == Priority.URGENT.value, 0), else_=1)
        rows = (
            self.db.query(DBClient)
            .filter(
                DBClient.priority.in_([Priority.HIGH.value, Priority.URGENT.value]),
                DBClient.status.notin_(CLOSED_STATUSES),
                DBClient.is_active.is_(True),
            )
            .order_by(urgent_first, DBClient.created_at.desc())
            .limit(limit)
            .all()
        )
        return [self._to_model(row) for row in rows]

    async def get_due_follow_ups(self) -> List[Client]:
        """Open leads whose follow-up date has passed, oldest first"""
        rows = (
            self.db.query(DBClient)
            .filter(
                DBClient.next_follow_up_at.isnot(None),
                DBClient.next_follow_up_at <= utcnow(),
                DBClient.status.notin_(CLOSED_STATUSES),
                DBClient.is_active.is_(True),
            )
            .order_by(DBClient.next_follow_up_at.asc())
            .all()
        )
        return [self._to_model(row) for row in rows]

    async def get_stats(self) -> Dict[str, Any]:
        now = utcnow()
        start_of_day = now.replace(hour=0, minute=0, second=0, microsecond=0)
        active = self.db.query(DBClient).filter(DBClient.is_active.is_(True))

        by_status = (
            self.db.query(DBClient.status, func.count(DBClient.id))
            .group_by(DBClient.status)
            .all()
        )
        by_priority = (
            self.db.query(DBClient.priority, func.count(DBClient.id))
            .group_by(DBClient.priority)
            .all()
        )

        return {
            "total": active.count(),
            "new": active.filter(DBClient.status == ClientStatus.NEW.value).count(),
            "urgent": active.filter(DBClient.priority == Priority.URGENT.value).count(),
            "todayInquiries": active.filter(
                DBClient.created_at >= start_of_day,
                DBClient.created_at < start_of_day + timedelta(days=1),
            ).count(),
            "statusBreakdown": {
                "general": {
                    "totalClients": self.db.query(DBClient).count(),
                    "activeClients": active.count(),
                },
                "byStatus": [{"status": s, "count": count} for s, count in by_status],
                "byPriority": [{"priority": p, "count": count} for p, count in by_priority],
            },
        }

    def _apply_budget(self, db_client: DBClient, data) -> None:
        budget = data.budget
        db_client.budget_min = budget.min if budget else None
        db_client.budget_max = budget.max if budget else None
