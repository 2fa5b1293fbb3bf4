"""
Viewing conflict detection and slot availability.

Two policies decide whether an existing active viewing blocks a proposed
slot ``[start, end)``:

* ``buffer``: the existing viewing's start lies in ``[start - lookback, end]``
  (``lookback`` defaults to 240 minutes). This is the historical behaviour
  of the scheduling screen and stays the default.
* ``overlap``: strict half-open interval intersection, using the existing
  viewing's own duration: ``start < existing_end and existing_start < end``.

Only viewings that are active (``is_active`` and status scheduled, confirmed
or in_progress) can block a slot.
"""
from datetime import date, datetime, time, timedelta
from enum import Enum
from typing import List, Optional
import uuid

from sqlalchemy.orm import Session

from proptrack.core.config import settings
from proptrack.core.exceptions import NotFoundError, SchedulingConflictError
from proptrack.db.models import Property as DBProperty, Viewing as DBViewing
from proptrack.models.viewing import (
    ACTIVE_VIEWING_STATUSES, AvailabilityResult, SuggestedTime, TimeOfDay,
    combine_instant, format_time_of_day
)
import logging

logger = logging.getLogger(__name__)

MAX_VIEWING_MINUTES = 240
SLOT_STEP_MINUTES = 30
FIRST_SLOT = time(9, 0)
LAST_SLOT = time(18, 0)
MAX_SUGGESTIONS = 5


class ConflictPolicy(str, Enum):
    BUFFER = "buffer"
    OVERLAP = "overlap"


class ViewingConflictDetector:
    """Pre-write guard against double-booked property viewings"""

    def __init__(
        self,
        db: Session,
        policy: Optional[str] = None,
        lookback_minutes: Optional[int] = None,
    ):
        self.db = db
        self.policy = ConflictPolicy(policy or settings.VIEWING_CONFLICT_POLICY)
        if lookback_minutes is None:
            lookback_minutes = settings.VIEWING_LOOKBACK_MINUTES
        self.lookback = timedelta(minutes=lookback_minutes)

    def blocks(self, existing_start: datetime, existing_duration: int, start: datetime, end: datetime) -> bool:
        """Whether an existing viewing blocks the slot ``[start, end)``"""
        if self.policy is ConflictPolicy.BUFFER:
            return start - self.lookback <= existing_start <= end

        existing_end = existing_start + timedelta(minutes=existing_duration)
        return start < existing_end and existing_start < end

    async def find_conflicts(
        self,
        property_id: uuid.UUID,
        start: datetime,
        duration: int,
        exclude_id: Optional[uuid.UUID] = None,
    ) -> List[DBViewing]:
        """Active viewings of the property that block ``start`` for ``duration`` minutes"""
        end = start + timedelta(minutes=duration)

        # Narrow the candidates in SQL; the exact test runs in blocks()
        if self.policy is ConflictPolicy.BUFFER:
            window_start = start - self.lookback
        else:
            window_start = start - timedelta(minutes=MAX_VIEWING_MINUTES)

        query = self.db.query(DBViewing).filter(
            DBViewing.property_id == property_id,
            DBViewing.status.in_([s.value for s in ACTIVE_VIEWING_STATUSES]),
            DBViewing.is_active.is_(True),
            DBViewing.scheduled_at >= window_start,
            DBViewing.scheduled_at <= end,
        )
        if exclude_id is not None:
            query = query.filter(DBViewing.id != exclude_id)

        return [
            viewing for viewing in query.order_by(DBViewing.scheduled_at).all()
            if self.blocks(viewing.scheduled_at, viewing.duration, start, end)
        ]

    async def ensure_slot_free(
        self,
        property_id: uuid.UUID,
        start: datetime,
        duration: int,
        exclude_id: Optional[uuid.UUID] = None,
    ) -> None:
        """Raise SchedulingConflictError when the slot is taken"""
        conflicts = await self.find_conflicts(property_id, start, duration, exclude_id)
        if conflicts:
            first = conflicts[0].scheduled_at
            logger.warning(
                f"Scheduling conflict for property {property_id} at {start.isoformat()}: "
                f"{len(conflicts)} existing viewing(s)"
            )
            raise SchedulingConflictError(
                f"Scheduling conflict: the property already has a viewing at "
                f"{first.strftime('%Y-%m-%d')} {format_time_of_day(first.hour, first.minute)}",
                conflicts=len(conflicts),
            )

    def lock_property(self, property_id: uuid.UUID) -> Optional[DBProperty]:
        """Row-lock the property for the rest of the transaction.

        Concurrent writers for the same property queue on this lock, so the
        conflict check and the insert that follows behave as one unit.
        """
        return (
            self.db.query(DBProperty)
            .filter(DBProperty.id == property_id)
            .with_for_update()
            .first()
        )

    async def check_availability(
        self,
        property_id: uuid.UUID,
        scheduled_date: date,
        scheduled_time: TimeOfDay,
        duration: int = 60,
    ) -> AvailabilityResult:
        """Read-only slot check with up to five alternative times on the same day"""
        if self.db.get(DBProperty, property_id) is None:
            raise NotFoundError("Property")

        start = combine_instant(scheduled_date, scheduled_time)
        conflicts = await self.find_conflicts(property_id, start, duration)
        if not conflicts:
            return AvailabilityResult(available=True, conflicts=0, suggested_times=[])

        return AvailabilityResult(
            available=False,
            conflicts=len(conflicts),
            suggested_times=await self.suggest_times(property_id, scheduled_date, duration),
        )

    async def suggest_times(
        self,
        property_id: uuid.UUID,
        scheduled_date: date,
        duration: int = 60,
    ) -> List[SuggestedTime]:
        """Free 30-minute slots from 09:00 to 18:00, earliest first"""
        suggestions: List[SuggestedTime] = []
        slot = datetime.combine(scheduled_date, FIRST_SLOT)
        last = datetime.combine(scheduled_date, LAST_SLOT)

        while slot <= last and len(suggestions) < MAX_SUGGESTIONS:
            if not await self.find_conflicts(property_id, slot, duration):
                suggestions.append(SuggestedTime(
                    hour=slot.hour,
                    minute=slot.minute,
                    formatted=format_time_of_day(slot.hour, slot.minute),
                ))
            slot += timedelta(minutes=SLOT_STEP_MINUTES)

        return suggestions
