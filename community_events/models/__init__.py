from community_events.models.event import Event
from community_events.models.registration import Registration
from community_events.models.enums import (
    Currency,
    EventStatus,
    PaymentStatus,
    RegistrationStatus,
)

__all__ = [
    "Event", "Registration",
    "Currency", "EventStatus", "PaymentStatus", "RegistrationStatus",
]
