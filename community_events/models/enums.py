"""
Closed vocabularies for event and registration state.
Stored as plain strings; the database check constraints mirror these values.
"""

from enum import Enum


class EventStatus(str, Enum):
    DRAFT = "draft"
    PUBLISHED = "published"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


class Currency(str, Enum):
    INR = "INR"
    USD = "USD"
    EUR = "EUR"


class RegistrationStatus(str, Enum):
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    WAITLISTED = "waitlisted"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"
    REFUNDED = "refunded"


def sql_values(enum_cls) -> str:
    """Render enum values for an SQL ``IN (...)`` check constraint."""
    return ", ".join(f"'{member.value}'" for member in enum_cls)
