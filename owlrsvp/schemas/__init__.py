from pydantic import BaseModel, EmailStr, field_validator
from typing import Optional, List
from uuid import UUID
from datetime import datetime
from owlrsvp.db.models.event import AuthMode


def _blank_to_none(value):
    if isinstance(value, str) and not value.strip():
        return None
    return value


class RSVPSubmission(BaseModel):
    """A guest's RSVP form as posted to the public RSVP endpoint."""
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    attending: bool = True
    # Negative values are clamped by the admission controller, not rejected here
    guest_count: int = 0
    promo_code: Optional[str] = None

    @field_validator("first_name", "last_name", "email", "phone", "address", mode="before")
    @classmethod
    def strip_blank(cls, value):
        value = _blank_to_none(value)
        return value.strip() if isinstance(value, str) else value


class GuestListEntry(RSVPSubmission):
    """Organizer-side guest record; guests start out as not attending."""
    attending: bool = False


class AttendeeOut(BaseModel):
    id: UUID
    event_id: UUID
    first_name: Optional[str]
    last_name: Optional[str]
    email: Optional[str]
    phone: Optional[str]
    address: Optional[str]
    attending: bool
    guest_count: int
    party_size: int
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class RSVPResult(BaseModel):
    status: str
    message: str
    attendee: AttendeeOut
    updated: bool = False
    overflow_guest_count: int = 0


class EventCreate(BaseModel):
    title: str
    auth_mode: AuthMode = AuthMode.open
    promo_code: Optional[str] = None
    allow_plus_guests: bool = False
    event_date: Optional[datetime] = None
    event_location: Optional[str] = None


class EventSettingsUpdate(BaseModel):
    """Partial update of an event's settings; omitted fields are left untouched."""
    title: Optional[str] = None
    auth_mode: Optional[AuthMode] = None
    promo_code: Optional[str] = None
    allow_plus_guests: Optional[bool] = None
    event_date: Optional[datetime] = None
    event_location: Optional[str] = None


class PublicEventOut(BaseModel):
    """Guest-facing view of an event; never carries the admin token or promo code."""
    id: UUID
    title: str
    auth_mode: AuthMode
    allow_plus_guests: bool
    event_date: Optional[datetime] = None
    event_location: Optional[str] = None


class EventOut(PublicEventOut):
    admin_token: str
    promo_code: Optional[str] = None
    owner_id: Optional[UUID] = None


class EventCreated(BaseModel):
    event: EventOut
    guest_link: str
    admin_link: str


class DashboardStats(BaseModel):
    total_attending: int
    total_not_attending: int
    total_responses: int
    guest_limit: Optional[int] = None
    remaining: Optional[int] = None


class DashboardOut(BaseModel):
    event: EventOut
    attendees: List[AttendeeOut]
    stats: DashboardStats
