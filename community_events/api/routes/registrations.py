"""
Registration endpoints: public register/cancel, admin listings and edits.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from community_events.core.config import get_settings
from community_events.core.security import Capability, Principal, require_capability
from community_events.db.session import get_db
from community_events.models.enums import RegistrationStatus
from community_events.schemas.registration import (
    RegistrationCancelResponse,
    RegistrationCreate,
    RegistrationListResponse,
    RegistrationResponse,
    RegistrationResult,
    RegistrationUpdate,
)
from community_events.services import query_service
from community_events.services.cache_service import invalidate_event_cache
from community_events.services.event_service import get_event
from community_events.services.registration_service import (
    cancel_registration,
    register_for_event,
    update_registration,
)

settings = get_settings()
router = APIRouter(prefix="/events", tags=["Registrations"])


def _listing(page) -> RegistrationListResponse:
    return RegistrationListResponse(
        registrations=[RegistrationResponse.model_validate(r) for r in page.items],
        pagination=page.pagination(),
    )


@router.get("/registrations", response_model=RegistrationListResponse)
async def list_all_registrations(
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    status_filter: Optional[RegistrationStatus] = Query(None, alias="status"),
    event_id: Optional[int] = Query(None),
    search: Optional[str] = Query(None, max_length=200),
    principal: Principal = Depends(require_capability(Capability.VIEW_REGISTRATIONS)),
    db: AsyncSession = Depends(get_db),
):
    result = await query_service.list_registrations(db, page, limit, status_filter, event_id, search)
    return _listing(result)


@router.post("/registrations/{registration_id}/cancel", response_model=RegistrationCancelResponse)
async def cancel_registration_endpoint(
    registration_id: int,
    db: AsyncSession = Depends(get_db),
):
    """
    Cancel a registration. A confirmed seat is released; the waitlist is not
    promoted. Cancelling twice returns 400.
    """
    registration = await cancel_registration(db, registration_id)
    await invalidate_event_cache()
    return RegistrationCancelResponse(
        message="Registration cancelled successfully",
        registration_id=registration.id,
        status=registration.status,
    )


@router.patch("/registrations/{registration_id}", response_model=RegistrationResponse)
async def update_registration_endpoint(
    registration_id: int,
    patch: RegistrationUpdate,
    principal: Principal = Depends(require_capability(Capability.MANAGE_REGISTRATIONS)),
    db: AsyncSession = Depends(get_db),
):
    """Edit notes or payment details. Status changes go through cancel."""
    return await update_registration(db, registration_id, patch.model_dump(exclude_unset=True))


@router.post(
    "/{event_id}/register",
    response_model=RegistrationResult,
    status_code=status.HTTP_201_CREATED,
)
async def register_endpoint(
    event_id: int,
    attendee: RegistrationCreate,
    db: AsyncSession = Depends(get_db),
):
    """
    Register for an event. A full event does not fail the request: the
    registration is created as waitlisted and `is_waitlisted` is true.
    """
    outcome = await register_for_event(db, event_id, attendee)
    await invalidate_event_cache()
    return RegistrationResult(
        message=outcome.message,
        is_waitlisted=outcome.waitlisted,
        registration=RegistrationResponse.model_validate(outcome.registration),
    )


@router.get("/{event_id}/registrations", response_model=RegistrationListResponse)
async def list_event_registrations(
    event_id: int,
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    status_filter: Optional[RegistrationStatus] = Query(None, alias="status"),
    principal: Principal = Depends(require_capability(Capability.VIEW_REGISTRATIONS)),
    db: AsyncSession = Depends(get_db),
):
    await get_event(db, event_id)
    result = await query_service.list_registrations(db, page, limit, status_filter, event_id)
    return _listing(result)
