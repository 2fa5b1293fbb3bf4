from pydantic import EmailStr, Field, field_validator
from typing import Optional, List
from datetime import datetime
from enum import Enum
import uuid
from proptrack.models.common import APIModel, NumberRange, Priority
from proptrack.models.property import PropertyType, PropertySummary


class InquiryType(str, Enum):
    BUY = "buy"
    RENT = "rent"
    VIEWING = "viewing"
    INFORMATION = "information"
    OFFER = "offer"
    GENERAL = "general"
    PURCHASE = "purchase"
    INVESTMENT = "investment"
    CONSULTATION = "consultation"
    EVALUATION = "evaluation"


class ClientStatus(str, Enum):
    NEW = "new"
    CONTACTED = "contacted"
    VIEWING_SCHEDULED = "viewing_scheduled"
    INTERESTED = "interested"
    NOT_INTERESTED = "not_interested"
    QUALIFIED = "qualified"
    OFFER_MADE = "offer_made"
    NEGOTIATING = "negotiating"
    CLOSED = "closed"
    LOST = "lost"


class ContactMethod(str, Enum):
    EMAIL = "email"
    PHONE = "phone"
    BOTH = "both"


class ContactTime(str, Enum):
    MORNING = "morning"
    AFTERNOON = "afternoon"
    EVENING = "evening"
    ANYTIME = "anytime"


class LeadSource(str, Enum):
    WEBSITE = "website"
    REFERRAL = "referral"
    SOCIAL_MEDIA = "social_media"
    ADVERTISEMENT = "advertisement"
    WALK_IN = "walk_in"
    PHONE_CALL = "phone_call"
    OTHER = "other"


PRIORITY_WEIGHTS = {
    Priority.LOW: 1,
    Priority.MEDIUM: 2,
    Priority.HIGH: 3,
    Priority.URGENT: 4,
}


class ClientRequirements(APIModel):
    property_types: List[PropertyType] = []
    bedrooms: Optional[NumberRange] = None
    bathrooms: Optional[NumberRange] = None
    area: Optional[NumberRange] = None
    amenities: List[str] = []
    locations: List[str] = []


class ClientNote(APIModel):
    content: str
    important: bool = False
    timestamp: datetime


class ClientBase(APIModel):
    @field_validator('email', check_fields=False)
    @classmethod
    def lowercase_email(cls, v):
        return v.lower() if v else v


class ClientCreate(ClientBase):
    """Public inquiry form submission"""
    name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    phone: str = Field(..., min_length=1, max_length=50)
    message: Optional[str] = Field(None, max_length=1000)
    property_id: uuid.UUID
    inquiry_type: InquiryType = InquiryType.VIEWING
    status: ClientStatus = ClientStatus.NEW
    priority: Priority = Priority.MEDIUM
    preferred_contact_method: ContactMethod = ContactMethod.BOTH
    preferred_contact_time: ContactTime = ContactTime.ANYTIME
    budget: Optional[NumberRange] = None
    requirements: Optional[ClientRequirements] = None
    source: LeadSource = LeadSource.WEBSITE
    next_follow_up_at: Optional[datetime] = None


class ClientUpdate(ClientBase):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, min_length=1, max_length=50)
    message: Optional[str] = Field(None, max_length=1000)
    inquiry_type: Optional[InquiryType] = None
    status: Optional[ClientStatus] = None
    priority: Optional[Priority] = None
    preferred_contact_method: Optional[ContactMethod] = None
    preferred_contact_time: Optional[ContactTime] = None
    budget: Optional[NumberRange] = None
    requirements: Optional[ClientRequirements] = None
    source: Optional[LeadSource] = None
    is_active: Optional[bool] = None
    next_follow_up_at: Optional[datetime] = None


class ClientStatusUpdate(APIModel):
    status: ClientStatus


class ClientPriorityUpdate(APIModel):
    priority: Priority


class ClientNoteCreate(APIModel):
    note: str = Field(..., min_length=1, max_length=500)
    important: bool = False


class FollowUpUpdate(APIModel):
    follow_up_date: datetime


class Client(APIModel):
    id: str
    name: str
    email: str
    phone: str
    message: Optional[str] = None
    property_id: str
    property: Optional[PropertySummary] = None
    inquiry_type: InquiryType
    status: ClientStatus
    priority: Priority
    preferred_contact_method: ContactMethod
    preferred_contact_time: ContactTime
    budget: NumberRange
    requirements: ClientRequirements
    agent_notes: List[ClientNote] = []
    source: LeadSource
    is_active: bool
    last_contacted_at: Optional[datetime] = None
    next_follow_up_at: Optional[datetime] = None
    formatted_budget: str
    days_since_inquiry: int
    urgency_score: int
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_db(cls, row, now: datetime) -> "Client":
        budget = NumberRange(min=row.budget_min, max=row.budget_max)
        days = days_since(row.created_at, now)
        return cls(
            id=str(row.id),
            name=row.name,
            email=row.email,
            phone=row.phone,
            message=row.message,
            property_id=str(row.property_id),
            property=PropertySummary.from_db(row.property) if row.property else None,
            inquiry_type=row.inquiry_type,
            status=row.status,
            priority=row.priority,
            preferred_contact_method=row.preferred_contact_method,
            preferred_contact_time=row.preferred_contact_time,
            budget=budget,
            requirements=ClientRequirements.model_validate(row.requirements or {}),
            agent_notes=[
                ClientNote(content=n.content, important=bool(n.important), timestamp=n.created_at)
                for n in row.notes
            ],
            source=row.source,
            is_active=bool(row.is_active),
            last_contacted_at=row.last_contacted_at,
            next_follow_up_at=row.next_follow_up_at,
            formatted_budget=format_budget(budget),
            days_since_inquiry=days,
            urgency_score=urgency_score(Priority(row.priority), ClientStatus(row.status), days),
            created_at=row.created_at,
            updated_at=row.updated_at,
        )


class ClientFilters(APIModel):
    """Flat list-endpoint parameters for GET /api/clients"""
    search: Optional[str] = None
    status: List[ClientStatus] = []
    priority: List[Priority] = []
    inquiry_type: Optional[InquiryType] = None
    property_id: Optional[uuid.UUID] = None
    source: Optional[LeadSource] = None
    is_active: bool = True
    sort: str = "-createdAt"
    page: int = Field(1, ge=1)
    limit: int = Field(20, ge=1, le=100)


def days_since(created_at: datetime, now: datetime) -> int:
    """Whole days since the inquiry, rounded up"""
    seconds = abs((now - created_at).total_seconds())
    return int(-(-seconds // 86400))


def urgency_score(priority: Priority, status: ClientStatus, days: int) -> int:
    score = PRIORITY_WEIGHTS.get(priority, 0)
    score += min(days, 10)
    if status == ClientStatus.NEW:
        score += 5
    elif status == ClientStatus.CONTACTED:
        score += 3
    return score


def format_budget(budget: NumberRange) -> str:
    def aed(amount: float) -> str:
        return f"AED {amount:,.0f}"

    if budget.min and budget.max:
        return f"{aed(budget.min)} - {aed(budget.max)}"
    if budget.min:
        return f"Above {aed(budget.min)}"
    if budget.max:
        return f"Below {aed(budget.max)}"
    return "Budget not specified"
