"""
Pydantic schemas for registration request/response validation.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, EmailStr, Field, field_validator

from community_events.models.enums import PaymentStatus, RegistrationStatus
from community_events.schemas.common import Pagination


class RegistrationCreate(BaseModel):
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr = Field(..., max_length=255)
    phone: Optional[str] = Field(None, max_length=20)
    accessibility_needs: Optional[str] = Field(None, max_length=500)

    model_config = {"str_strip_whitespace": True}

    @field_validator("email")
    @classmethod
    def lowercase_email(cls, value: str) -> str:
        return value.lower()


class RegistrationUpdate(BaseModel):
    """Administrative edits. Status is deliberately absent: use cancel."""

    notes: Optional[str] = Field(None, max_length=1000)
    payment_status: Optional[PaymentStatus] = None
    payment_id: Optional[str] = Field(None, max_length=100)

    model_config = {"extra": "forbid", "str_strip_whitespace": True}


class RegistrationResponse(BaseModel):
    id: int
    event_id: int
    ticket_code: str
    first_name: str
    last_name: str
    email: str
    phone: Optional[str]
    accessibility_needs: Optional[str]
    notes: Optional[str]
    status: RegistrationStatus
    payment_status: PaymentStatus
    payment_id: Optional[str]
    amount: float
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class RegistrationResult(BaseModel):
    success: bool = True
    message: str
    is_waitlisted: bool
    registration: RegistrationResponse


class RegistrationCancelResponse(BaseModel):
    success: bool = True
    message: str
    registration_id: int
    status: RegistrationStatus


class RegistrationListResponse(BaseModel):
    success: bool = True
    registrations: list[RegistrationResponse]
    pagination: Pagination


class AttendeeCountMismatch(BaseModel):
    event_id: int
    slug: str
    recorded: int
    actual: int


class ReconciliationReport(BaseModel):
    events_checked: int
    mismatches: list[AttendeeCountMismatch]
    repaired: bool
