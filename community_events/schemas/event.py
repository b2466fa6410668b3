"""
Pydantic schemas for event-related request/response validation.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, EmailStr, Field, model_validator

from community_events.models.enums import Currency, EventStatus
from community_events.schemas.common import Pagination


class ScheduleItem(BaseModel):
    time: str = Field(..., min_length=1, max_length=50)
    event: str = Field(..., min_length=1, max_length=200)


class EventCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., min_length=1, max_length=2000)
    full_description: Optional[str] = None
    date: datetime
    end_date: Optional[datetime] = None
    location: str = Field(..., min_length=1, max_length=500)
    is_online: bool = False
    meeting_link: Optional[str] = Field(None, max_length=500)
    organizer_name: str = Field(..., min_length=1, max_length=200)
    organizer_email: Optional[EmailStr] = None
    organizer_phone: Optional[str] = Field(None, max_length=20)
    price: Decimal = Field(Decimal("0"), ge=0, max_digits=10, decimal_places=2)
    is_free: bool = True
    currency: Currency = Currency.INR
    max_attendees: Optional[int] = Field(None, ge=1)
    tags: list[str] = Field(default_factory=list)
    featured: bool = False
    image: Optional[str] = Field(None, max_length=500)
    schedule: list[ScheduleItem] = Field(default_factory=list)
    status: EventStatus = EventStatus.DRAFT
    registration_open: bool = True

    model_config = {"str_strip_whitespace": True}

    @model_validator(mode="after")
    def check_end_date(self):
        if self.end_date is not None and self.end_date < self.date:
            raise ValueError("end_date cannot be before date")
        return self


class EventUpdate(BaseModel):
    """
    Partial update. Unknown fields are rejected, which includes the attendee
    counter: only registrations and cancellations move it.
    """

    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = Field(None, min_length=1, max_length=2000)
    full_description: Optional[str] = None
    date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    location: Optional[str] = Field(None, min_length=1, max_length=500)
    is_online: Optional[bool] = None
    meeting_link: Optional[str] = Field(None, max_length=500)
    organizer_name: Optional[str] = Field(None, min_length=1, max_length=200)
    organizer_email: Optional[EmailStr] = None
    organizer_phone: Optional[str] = Field(None, max_length=20)
    price: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)
    is_free: Optional[bool] = None
    currency: Optional[Currency] = None
    max_attendees: Optional[int] = Field(None, ge=1)
    tags: Optional[list[str]] = None
    featured: Optional[bool] = None
    image: Optional[str] = Field(None, max_length=500)
    schedule: Optional[list[ScheduleItem]] = None
    status: Optional[EventStatus] = None
    registration_open: Optional[bool] = None

    model_config = {"extra": "forbid", "str_strip_whitespace": True}


class EventResponse(BaseModel):
    id: int
    slug: str
    title: str
    description: str
    full_description: Optional[str]
    date: datetime
    end_date: Optional[datetime]
    location: str
    is_online: bool
    meeting_link: Optional[str]
    organizer_name: str
    organizer_email: Optional[str]
    organizer_phone: Optional[str]
    price: float
    is_free: bool
    currency: Currency
    max_attendees: Optional[int]
    current_attendees: int
    spots_left: Optional[int]
    is_sold_out: bool
    tags: list[str]
    featured: bool
    image: Optional[str]
    schedule: list[ScheduleItem]
    status: EventStatus
    registration_open: bool
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class EventListResponse(BaseModel):
    success: bool = True
    events: list[EventResponse]
    pagination: Pagination
    cached: bool = False


class EventDeleteResponse(BaseModel):
    success: bool = True
    message: str
    event_id: int
    registrations_deleted: int


class EventStats(BaseModel):
    total: int
    by_status: dict[str, int]
    total_registrations: int
    total_attendees: int
    total_waitlisted: int
