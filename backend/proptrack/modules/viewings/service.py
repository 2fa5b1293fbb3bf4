from typing import List, Optional, Dict, Any, Tuple
from datetime import datetime, timedelta
from sqlalchemy.orm import Session
from sqlalchemy import func
from proptrack.core.config import settings
from proptrack.core.exceptions import InvalidInputError, NotFoundError
from proptrack.db.models import (
    Client as DBClient, Viewing as DBViewing, ViewingNote as DBViewingNote, utcnow
)
from proptrack.models.client import ClientStatus
from proptrack.models.viewing import (
    Viewing, ViewingCreate, ViewingUpdate, ViewingFilters, ViewingStatus, ViewingStatusUpdate,
    ViewingNoteCreate, RescheduleRequest, AvailabilityRequest, AvailabilityResult, NoteType,
    ACTIVE_VIEWING_STATUSES, combine_instant, format_time_of_day
)
from proptrack.modules.common.filters import paginate
from proptrack.modules.common.ids import parse_id
from proptrack.modules.viewings.conflicts import ViewingConflictDetector
from proptrack.modules.viewings.query_builder import ViewingQueryBuilder
import logging

logger = logging.getLogger(__name__)

UPCOMING_STATUSES = (ViewingStatus.SCHEDULED.value, ViewingStatus.CONFIRMED.value)
BLOCKING_STATUSES = tuple(s.value for s in ACTIVE_VIEWING_STATUSES)


def blocks_slot(status: str, is_active: bool) -> bool:
    return bool(is_active) and status in BLOCKING_STATUSES


class ViewingService:
    """Service for property viewings.

    Every write that places a viewing on the calendar runs in one transaction.
    That covers create, reschedule, a schedule change through update and any
    update or status change that puts a cancelled or inactive viewing back on
    the calendar:

    1. row-lock the property
    2. check the slot with the conflict detector
    3. write and commit

    Any failure rolls the transaction back so nothing partial is stored.
    """

    def __init__(self, db: Session, detector: Optional[ViewingConflictDetector] = None):
        self.db = db
        self.detector = detector or ViewingConflictDetector(db)
        self.query_builder = ViewingQueryBuilder()

    def _get_row(self, viewing_id) -> DBViewing:
        db_viewing = self.db.get(DBViewing, parse_id(viewing_id))
        if db_viewing is None:
            raise NotFoundError("Viewing")
        return db_viewing

    def _commit(self, db_viewing: DBViewing) -> Viewing:
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(db_viewing)
        return Viewing.from_db(db_viewing)

    def _validate_window(self, start: datetime) -> None:
        now = utcnow()
        if start <= now:
            raise InvalidInputError("Viewing must be scheduled in the future")
        if start > now + timedelta(days=settings.VIEWING_MAX_ADVANCE_DAYS):
            raise InvalidInputError(
                f"Viewing cannot be scheduled more than {settings.VIEWING_MAX_ADVANCE_DAYS} days in advance"
            )

    async def _reserve_slot(
        self, property_id, start: datetime, duration: int, exclude_id=None, validate_window: bool = True
    ) -> None:
        """Lock the property row, then make sure the slot is still free"""
        if self.detector.lock_property(property_id) is None:
            raise NotFoundError("Property")
        if validate_window:
            self._validate_window(start)
        await self.detector.ensure_slot_free(property_id, start, duration, exclude_id)

    async def list_viewings(self, criteria: ViewingFilters) -> Tuple[List[Viewing], int]:
        query = self.query_builder.build_query(self.db, criteria)
        rows, total = paginate(query, self.query_builder.order_by(criteria), criteria.page, criteria.limit)
        return [Viewing.from_db(row) for row in rows], total

    async def get_viewing(self, viewing_id: str) -> Viewing:
        return Viewing.from_db(self._get_row(viewing_id))

    async def create_viewing(self, data: ViewingCreate) -> Viewing:
        start = data.scheduled_at
        try:
            db_client = self.db.get(DBClient, data.client_id)
            if db_client is None or not db_client.is_active:
                raise NotFoundError("Client")

            await self._reserve_slot(data.property_id, start, data.duration)

            db_viewing = DBViewing(
                property_id=data.property_id,
                client_id=data.client_id,
                scheduled_at=start,
                duration=data.duration,
                status=data.status.value,
                priority=data.priority.value,
                viewing_type=data.viewing_type.value,
                notes=data.notes,
                special_instructions=data.special_instructions,
                attendees=[a.model_dump(mode="json") for a in data.attendees],
                reminders=[r.model_dump(mode="json") for r in data.reminders],
            )
            self.db.add(db_viewing)

            if db_client.status == ClientStatus.NEW.value:
                db_client.status = ClientStatus.VIEWING_SCHEDULED.value

            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(db_viewing)
        logger.info(f"Viewing {db_viewing.id} scheduled for property {data.property_id} at {start.isoformat()}")
        return Viewing.from_db(db_viewing)

    async def update_viewing(self, viewing_id: str, data: ViewingUpdate) -> Viewing:
        """Partial update; schedule changes go through the conflict check again"""
        db_viewing = self._get_row(viewing_id)
        fields = data.model_fields_set

        property_id = data.property_id if data.property_id is not None else db_viewing.property_id
        scheduled_date = data.scheduled_date or db_viewing.scheduled_at.date()
        start = db_viewing.scheduled_at
        if data.scheduled_date is not None or data.scheduled_time is not None:
            start = datetime.combine(scheduled_date, db_viewing.scheduled_at.time())
            if data.scheduled_time is not None:
                start = combine_instant(scheduled_date, data.scheduled_time)
        duration = data.duration if data.duration is not None else db_viewing.duration

        schedule_changed = (
            start != db_viewing.scheduled_at
            or duration != db_viewing.duration
            or property_id != db_viewing.property_id
        )
        new_status = data.status.value if data.status is not None else db_viewing.status
        new_active = data.is_active if data.is_active is not None else db_viewing.is_active
        was_blocking = blocks_slot(db_viewing.status, db_viewing.is_active)
        reactivated = blocks_slot(new_status, new_active) and not was_blocking

        try:
            if schedule_changed:
                await self._reserve_slot(property_id, start, duration, exclude_id=db_viewing.id)
                db_viewing.property_id = property_id
                db_viewing.scheduled_at = start
                db_viewing.duration = duration
            elif reactivated:
                await self._reserve_slot(
                    property_id, start, duration,
                    exclude_id=db_viewing.id,
                    validate_window=new_status != ViewingStatus.IN_PROGRESS.value,
                )

            for field in ("status", "priority", "viewing_type"):
                value = getattr(data, field)
                if value is not None:
                    setattr(db_viewing, field, value.value)
            for field in ("notes", "special_instructions"):
                if field in fields:
                    setattr(db_viewing, field, getattr(data, field))
            if data.is_active is not None:
                db_viewing.is_active = data.is_active
            if data.attendees is not None:
                db_viewing.attendees = [a.model_dump(mode="json") for a in data.attendees]
            if data.reminders is not None:
                db_viewing.reminders = [r.model_dump(mode="json") for r in data.reminders]
            if data.client_feedback is not None:
                feedback = data.client_feedback.model_dump(mode="json")
                feedback["submitted_at"] = feedback.get("submitted_at") or utcnow().isoformat()
                db_viewing.client_feedback = feedback
            if data.outcome is not None:
                db_viewing.outcome = data.outcome.model_dump(mode="json")

            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(db_viewing)
        return Viewing.from_db(db_viewing)

    async def delete_viewing(self, viewing_id: str) -> None:
        db_viewing = self._get_row(viewing_id)
        try:
            self.db.delete(db_viewing)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        logger.info(f"Viewing {viewing_id} deleted")

    async def update_status(self, viewing_id: str, data: ViewingStatusUpdate) -> Viewing:
        """Set the status; starting and finishing stamp the actual times"""
        db_viewing = self._get_row(viewing_id)
        was_blocking = blocks_slot(db_viewing.status, db_viewing.is_active)
        if blocks_slot(data.status.value, db_viewing.is_active) and not was_blocking:
            try:
                await self._reserve_slot(
                    db_viewing.property_id, db_viewing.scheduled_at, db_viewing.duration,
                    exclude_id=db_viewing.id,
                    validate_window=data.status != ViewingStatus.IN_PROGRESS,
                )
            except Exception:
                self.db.rollback()
                raise
        db_viewing.status = data.status.value

        if data.status == ViewingStatus.IN_PROGRESS:
            db_viewing.actual_start_time = utcnow()
        elif data.status == ViewingStatus.COMPLETED:
            db_viewing.actual_end_time = utcnow()

        if data.notes:
            db_viewing.agent_notes.append(
                DBViewingNote(note=data.notes.strip(), note_type=NoteType.GENERAL.value)
            )
        return self._commit(db_viewing)

    async def reschedule(self, viewing_id: str, data: RescheduleRequest) -> Viewing:
        """Move to a new date/time; the viewing stays on the calendar as scheduled"""
        db_viewing = self._get_row(viewing_id)
        previous = db_viewing.scheduled_at
        start = combine_instant(data.scheduled_date, data.scheduled_time)

        try:
            await self._reserve_slot(db_viewing.property_id, start, db_viewing.duration, exclude_id=db_viewing.id)
            db_viewing.scheduled_at = start
            db_viewing.status = ViewingStatus.SCHEDULED.value
            db_viewing.agent_notes.append(DBViewingNote(
                note=f"Rescheduled from {_describe(previous)} to {_describe(start)}",
                note_type=NoteType.GENERAL.value,
            ))
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(db_viewing)
        logger.info(f"Viewing {viewing_id} rescheduled to {start.isoformat()}")
        return Viewing.from_db(db_viewing)

    async def cancel(self, viewing_id: str, reason: Optional[str] = None) -> Viewing:
        db_viewing = self._get_row(viewing_id)
        db_viewing.status = ViewingStatus.CANCELLED.value
        db_viewing.agent_notes.append(DBViewingNote(
            note=f"Viewing cancelled. Reason: {reason or 'No reason provided'}",
            note_type=NoteType.GENERAL.value,
        ))
        return self._commit(db_viewing)

    async def add_note(self, viewing_id: str, data: ViewingNoteCreate) -> Viewing:
        db_viewing = self._get_row(viewing_id)
        db_viewing.agent_notes.append(DBViewingNote(note=data.note.strip(), note_type=data.type.value))
        return self._commit(db_viewing)

    async def check_availability(self, data: AvailabilityRequest) -> AvailabilityResult:
        return await self.detector.check_availability(
            data.property_id, data.scheduled_date, data.scheduled_time, data.duration
        )

    async def get_today_viewings(self) -> List[Viewing]:
        start_of_day = utcnow().replace(hour=0, minute=0, second=0, microsecond=0)
        rows = (
            self.db.query(DBViewing)
            .filter(
                DBViewing.scheduled_at >= start_of_day,
                DBViewing.scheduled_at < start_of_day + timedelta(days=1),
                DBViewing.status.in_(BLOCKING_STATUSES),
                DBViewing.is_active.is_(True),
            )
            .order_by(DBViewing.scheduled_at.asc())
            .all()
        )
        return [Viewing.from_db(row) for row in rows]

    async def get_upcoming_viewings(self, days: int = 7) -> List[Viewing]:
        now = utcnow()
        rows = (
            self.db.query(DBViewing)
            .filter(
                DBViewing.scheduled_at >= now,
                DBViewing.scheduled_at <= now + timedelta(days=days),
                DBViewing.status.in_(UPCOMING_STATUSES),
                DBViewing.is_active.is_(True),
            )
            .order_by(DBViewing.scheduled_at.asc())
            .all()
        )
        return [Viewing.from_db(row) for row in rows]

    async def get_viewings_for(
        self, column, entity_id: str, status: Optional[ViewingStatus] = None, limit: int = 10
    ) -> List[Viewing]:
        """Most recent viewings of one property or one client"""
        query = self.db.query(DBViewing).filter(
            column == parse_id(entity_id),
            DBViewing.is_active.is_(True),
        )
        if status is not None:
            query = query.filter(DBViewing.status == status.value)
        rows = query.order_by(DBViewing.scheduled_at.desc()).limit(limit).all()
        return [Viewing.from_db(row) for row in rows]

    async def get_property_viewings(self, property_id: str, status=None, limit: int = 10) -> List[Viewing]:
        return await self.get_viewings_for(DBViewing.property_id, property_id, status, limit)

    async def get_client_viewings(self, client_id: str, status=None, limit: int = 10) -> List[Viewing]:
        return await self.get_viewings_for(DBViewing.client_id, client_id, status, limit)

    async def get_stats(self) -> Dict[str, Any]:
        now = utcnow()
        start_of_day = now.replace(hour=0, minute=0, second=0, microsecond=0)
        active = self.db.query(DBViewing).filter(DBViewing.is_active.is_(True))

        general = self.db.query(func.count(DBViewing.id), func.avg(DBViewing.duration)).one()
        by_status = (
            self.db.query(DBViewing.status, func.count(DBViewing.id))
            .group_by(DBViewing.status)
            .all()
        )
        by_type = (
            self.db.query(DBViewing.viewing_type, func.count(DBViewing.id))
            .group_by(DBViewing.viewing_type)
            .all()
        )
        status_counts = dict(by_status)

        return {
            "total": active.count(),
            "today": active.filter(
                DBViewing.scheduled_at >= start_of_day,
                DBViewing.scheduled_at < start_of_day + timedelta(days=1),
            ).count(),
            "upcoming": active.filter(
                DBViewing.scheduled_at >= now,
                DBViewing.status.in_(UPCOMING_STATUSES),
            ).count(),
            "completed": active.filter(DBViewing.status == ViewingStatus.COMPLETED.value).count(),
            "statusBreakdown": {
                "general": {
                    "totalViewings": general[0],
                    "confirmedViewings": status_counts.get(ViewingStatus.CONFIRMED.value, 0),
                    "completedViewings": status_counts.get(ViewingStatus.COMPLETED.value, 0),
                    "cancelledViewings": status_counts.get(ViewingStatus.CANCELLED.value, 0),
                    "averageDuration": round(float(general[1]), 1) if general[1] is not None else None,
                },
                "byStatus": [{"status": s, "count": count} for s, count in by_status],
                "byType": [{"type": t, "count": count} for t, count in by_type],
            },
        }


def _describe(instant: datetime) -> str:
    return f"{instant.strftime('%Y-%m-%d')} {format_time_of_day(instant.hour, instant.minute)}"
