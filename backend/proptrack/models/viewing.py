from pydantic import Field, field_validator
from typing import Optional, List
from datetime import date, datetime, time, timedelta
from enum import Enum
import uuid
from proptrack.models.common import APIModel, Priority
from proptrack.models.property import PropertySummary


class ViewingStatus(str, Enum):
    SCHEDULED = "scheduled"
    CONFIRMED = "confirmed"
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    NO_SHOW = "no_show"
    CANCELLED = "cancelled"
    RESCHEDULED = "rescheduled"


# Viewings in these states block the slot
ACTIVE_VIEWING_STATUSES = (
    ViewingStatus.SCHEDULED,
    ViewingStatus.CONFIRMED,
    ViewingStatus.IN_PROGRESS,
)

STATUS_DISPLAY = {
    ViewingStatus.SCHEDULED: "Scheduled",
    ViewingStatus.CONFIRMED: "Confirmed",
    ViewingStatus.PENDING: "Pending",
    ViewingStatus.IN_PROGRESS: "In Progress",
    ViewingStatus.COMPLETED: "Completed",
    ViewingStatus.NO_SHOW: "No Show",
    ViewingStatus.CANCELLED: "Cancelled",
    ViewingStatus.RESCHEDULED: "Rescheduled",
}


class ViewingType(str, Enum):
    INDIVIDUAL = "individual"
    GROUP = "group"
    VIRTUAL = "virtual"
    OPEN_HOUSE = "open_house"


class NoteType(str, Enum):
    PREPARATION = "preparation"
    DURING_VIEWING = "during_viewing"
    FOLLOW_UP = "follow_up"
    GENERAL = "general"


class OutcomeResult(str, Enum):
    INTERESTED = "interested"
    NOT_INTERESTED = "not_interested"
    NEEDS_TIME = "needs_time"
    WANTS_SECOND_VIEWING = "wants_second_viewing"
    READY_TO_OFFER = "ready_to_offer"


class AttendeeRelationship(str, Enum):
    PRIMARY = "primary"
    SPOUSE = "spouse"
    FAMILY = "family"
    FRIEND = "friend"
    ADVISOR = "advisor"
    OTHER = "other"


class ReminderType(str, Enum):
    EMAIL = "email"
    SMS = "sms"
    CALL = "call"


class ReminderStatus(str, Enum):
    PENDING = "pending"
    SENT = "sent"
    FAILED = "failed"


class TimeOfDay(APIModel):
    hour: int = Field(..., ge=0, le=23)
    minute: int = Field(..., ge=0, le=59)


def combine_instant(scheduled_date: date, scheduled_time: TimeOfDay) -> datetime:
    """Single instant from the split date / time-of-day fields"""
    return datetime.combine(scheduled_date, time(scheduled_time.hour, scheduled_time.minute))


def format_time_of_day(hour: int, minute: int) -> str:
    """12-hour clock label, e.g. ``9:30 AM``"""
    suffix = "AM" if hour < 12 else "PM"
    return f"{hour % 12 or 12}:{minute:02d} {suffix}"


class ClientFeedback(APIModel):
    rating: Optional[int] = Field(None, ge=1, le=5)
    comments: Optional[str] = Field(None, max_length=1000)
    interested: Optional[bool] = None
    concerns: List[str] = []
    submitted_at: Optional[datetime] = None


class Outcome(APIModel):
    result: OutcomeResult = OutcomeResult.INTERESTED
    next_steps: Optional[str] = Field(None, max_length=500)
    follow_up_date: Optional[datetime] = None


class Attendee(APIModel):
    name: str = Field(..., min_length=1)
    relationship: AttendeeRelationship = AttendeeRelationship.PRIMARY
    phone: Optional[str] = None
    email: Optional[str] = None

    @field_validator('email')
    @classmethod
    def lowercase_email(cls, v):
        return v.strip().lower() if v else v


class Reminder(APIModel):
    type: ReminderType
    scheduled_for: datetime
    sent_at: Optional[datetime] = None
    status: ReminderStatus = ReminderStatus.PENDING


class ViewingNote(APIModel):
    note: str
    type: NoteType = NoteType.GENERAL
    created_at: datetime


class ViewingCreate(APIModel):
    property_id: uuid.UUID
    client_id: uuid.UUID
    scheduled_date: date
    scheduled_time: TimeOfDay
    duration: int = Field(60, ge=15, le=240)
    status: ViewingStatus = ViewingStatus.SCHEDULED
    priority: Priority = Priority.MEDIUM
    viewing_type: ViewingType = Field(ViewingType.INDIVIDUAL, alias="type")
    notes: Optional[str] = Field(None, max_length=1000)
    special_instructions: Optional[str] = Field(None, max_length=500)
    attendees: List[Attendee] = []
    reminders: List[Reminder] = []

    @property
    def scheduled_at(self) -> datetime:
        return combine_instant(self.scheduled_date, self.scheduled_time)


class ViewingUpdate(APIModel):
    """Partial update; date and time may be given independently"""
    property_id: Optional[uuid.UUID] = None
    scheduled_date: Optional[date] = None
    scheduled_time: Optional[TimeOfDay] = None
    duration: Optional[int] = Field(None, ge=15, le=240)
    status: Optional[ViewingStatus] = None
    priority: Optional[Priority] = None
    viewing_type: Optional[ViewingType] = Field(None, alias="type")
    notes: Optional[str] = Field(None, max_length=1000)
    special_instructions: Optional[str] = Field(None, max_length=500)
    attendees: Optional[List[Attendee]] = None
    reminders: Optional[List[Reminder]] = None
    client_feedback: Optional[ClientFeedback] = None
    outcome: Optional[Outcome] = None
    is_active: Optional[bool] = None


class ViewingStatusUpdate(APIModel):
    status: ViewingStatus
    notes: Optional[str] = Field(None, max_length=500)


class RescheduleRequest(APIModel):
    scheduled_date: date
    scheduled_time: TimeOfDay


class ViewingNoteCreate(APIModel):
    note: str = Field(..., min_length=1, max_length=500)
    type: NoteType = NoteType.GENERAL


class CancelRequest(APIModel):
    reason: Optional[str] = Field(None, max_length=400)


class AvailabilityRequest(APIModel):
    property_id: uuid.UUID
    scheduled_date: date
    scheduled_time: TimeOfDay
    duration: int = Field(60, ge=15, le=240)


class SuggestedTime(APIModel):
    hour: int
    minute: int
    formatted: str


class AvailabilityResult(APIModel):
    available: bool
    conflicts: int
    suggested_times: List[SuggestedTime] = []


class ClientSummary(APIModel):
    id: str
    name: str
    email: str
    phone: str


class Viewing(APIModel):
    id: str
    property_id: str
    client_id: str
    property: Optional[PropertySummary] = None
    client: Optional[ClientSummary] = None
    scheduled_at: datetime
    scheduled_date: date
    scheduled_time: TimeOfDay
    ends_at: datetime
    duration: int
    duration_hours: float
    status: ViewingStatus
    status_display: str
    priority: Priority
    viewing_type: ViewingType = Field(..., alias="type")
    notes: Optional[str] = None
    special_instructions: Optional[str] = None
    agent_notes: List[ViewingNote] = []
    client_feedback: Optional[ClientFeedback] = None
    outcome: Optional[Outcome] = None
    attendees: List[Attendee] = []
    reminders: List[Reminder] = []
    actual_start_time: Optional[datetime] = None
    actual_end_time: Optional[datetime] = None
    is_active: bool
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_db(cls, row) -> "Viewing":
        status = ViewingStatus(row.status)
        client = None
        if row.client is not None:
            client = ClientSummary(
                id=str(row.client.id), name=row.client.name,
                email=row.client.email, phone=row.client.phone,
            )
        return cls(
            id=str(row.id),
            property_id=str(row.property_id),
            client_id=str(row.client_id),
            property=PropertySummary.from_db(row.property) if row.property else None,
            client=client,
            scheduled_at=row.scheduled_at,
            scheduled_date=row.scheduled_at.date(),
            scheduled_time=TimeOfDay(hour=row.scheduled_at.hour, minute=row.scheduled_at.minute),
            ends_at=row.scheduled_at + timedelta(minutes=row.duration),
            duration=row.duration,
            duration_hours=row.duration / 60,
            status=status,
            status_display=STATUS_DISPLAY[status],
            priority=row.priority,
            viewing_type=row.viewing_type,
            notes=row.notes,
            special_instructions=row.special_instructions,
            agent_notes=[
                ViewingNote(note=n.note, type=n.note_type, created_at=n.created_at)
                for n in row.agent_notes
            ],
            client_feedback=row.client_feedback,
            outcome=row.outcome,
            attendees=row.attendees or [],
            reminders=row.reminders or [],
            actual_start_time=row.actual_start_time,
            actual_end_time=row.actual_end_time,
            is_active=bool(row.is_active),
            created_at=row.created_at,
            updated_at=row.updated_at,
        )


class ViewingFilters(APIModel):
    """Flat list-endpoint parameters for GET /api/viewings"""
    search: Optional[str] = None
    status: List[ViewingStatus] = []
    priority: Optional[Priority] = None
    viewing_type: Optional[ViewingType] = Field(None, alias="type")
    property_id: Optional[uuid.UUID] = None
    client_id: Optional[uuid.UUID] = None
    date_from: Optional[datetime] = None
    date_to: Optional[datetime] = None
    is_active: bool = True
    sort: str = "scheduledDate"
    page: int = Field(1, ge=1)
    limit: int = Field(20, ge=1, le=100)
