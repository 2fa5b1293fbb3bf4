# Pydantic models for API contracts

from .common import APIModel, Priority, NumberRange
from .property import (
    PropertyType, ListingType, PropertyStatus, Location,
    PropertyCreate, PropertyUpdate, Property, PropertySummary, PropertyFilters
)
from .client import (
    # Enums
    InquiryType, ClientStatus, ContactMethod, ContactTime, LeadSource,

    # Request models
    ClientCreate, ClientUpdate, ClientStatusUpdate, ClientPriorityUpdate,
    ClientNoteCreate, FollowUpUpdate, ClientFilters,

    # Response models
    Client, ClientNote, ClientRequirements
)
from .viewing import (
    # Enums
    ViewingStatus, ViewingType, NoteType, OutcomeResult, AttendeeRelationship,
    ReminderType, ReminderStatus, ACTIVE_VIEWING_STATUSES,

    # Request models
    TimeOfDay, ViewingCreate, ViewingUpdate, ViewingStatusUpdate, RescheduleRequest,
    ViewingNoteCreate, CancelRequest, AvailabilityRequest, ViewingFilters,

    # Response models
    Viewing, ViewingNote, ClientSummary, ClientFeedback, Outcome, Attendee, Reminder,
    SuggestedTime, AvailabilityResult
)
from .user import UserRole, UserRegistration, UserLogin, UserUpdate, User, TokenResponse

__all__ = [
    # Shared
    "APIModel", "Priority", "NumberRange",

    # Property models
    "PropertyType", "ListingType", "PropertyStatus", "Location",
    "PropertyCreate", "PropertyUpdate", "Property", "PropertySummary", "PropertyFilters",

    # Client models
    "InquiryType", "ClientStatus", "ContactMethod", "ContactTime", "LeadSource",
    "ClientCreate", "ClientUpdate", "ClientStatusUpdate", "ClientPriorityUpdate",
    "ClientNoteCreate", "FollowUpUpdate", "ClientFilters",
    "Client", "ClientNote", "ClientRequirements",

    # Viewing models
    "ViewingStatus", "ViewingType", "NoteType", "OutcomeResult", "AttendeeRelationship",
    "ReminderType", "ReminderStatus", "ACTIVE_VIEWING_STATUSES",
    "TimeOfDay", "ViewingCreate", "ViewingUpdate", "ViewingStatusUpdate", "RescheduleRequest",
    "ViewingNoteCreate", "CancelRequest", "AvailabilityRequest", "ViewingFilters",
    "Viewing", "ViewingNote", "ClientSummary", "ClientFeedback", "Outcome", "Attendee",
    "Reminder", "SuggestedTime", "AvailabilityResult",

    # User models
    "UserRole", "UserRegistration", "UserLogin", "UserUpdate", "User", "TokenResponse"
]
