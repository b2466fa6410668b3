from community_events.schemas.common import Pagination
from community_events.schemas.event import (
    EventCreate, EventUpdate, EventResponse, EventListResponse, EventDeleteResponse, EventStats,
)
from community_events.schemas.registration import (
    RegistrationCreate, RegistrationUpdate, RegistrationResponse, RegistrationResult,
    RegistrationCancelResponse, RegistrationListResponse, ReconciliationReport,
)

__all__ = [
    "Pagination",
    "EventCreate", "EventUpdate", "EventResponse", "EventListResponse",
    "EventDeleteResponse", "EventStats",
    "RegistrationCreate", "RegistrationUpdate", "RegistrationResponse", "RegistrationResult",
    "RegistrationCancelResponse", "RegistrationListResponse", "ReconciliationReport",
]
