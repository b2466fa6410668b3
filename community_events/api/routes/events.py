"""
Event endpoints. The public listing is cached in Redis; single-event reads
are not, since they carry live spots_left.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from community_events.core.config import get_settings
from community_events.core.logging import get_logger
from community_events.core.security import Capability, Principal, require_capability
from community_events.db.session import get_db
from community_events.models.enums import EventStatus
from community_events.schemas.event import (
    EventCreate,
    EventDeleteResponse,
    EventListResponse,
    EventResponse,
    EventUpdate,
)
from community_events.services import query_service
from community_events.services.cache_service import (
    get_cached_events,
    invalidate_event_cache,
    set_cached_events,
)
from community_events.services.event_service import (
    create_event,
    delete_event,
    get_event_by_slug_or_id,
    update_event,
)

logger = get_logger(__name__)
settings = get_settings()
router = APIRouter(prefix="/events", tags=["Events"])


def _listing(page) -> EventListResponse:
    return EventListResponse(
        events=[EventResponse.model_validate(e) for e in page.items],
        pagination=page.pagination(),
    )


@router.post("/", response_model=EventResponse, status_code=status.HTTP_201_CREATED)
async def create_event_endpoint(
    event_data: EventCreate,
    principal: Principal = Depends(require_capability(Capability.MANAGE_EVENTS)),
    db: AsyncSession = Depends(get_db),
):
    """Create an event. The slug is derived from the title."""
    event = await create_event(db, event_data)
    await invalidate_event_cache()
    return event


@router.get("/", response_model=EventListResponse)
async def list_events_endpoint(
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    featured: Optional[bool] = Query(None),
    db: AsyncSession = Depends(get_db),
):
    """Published events, featured first. Served from cache when possible."""
    cached = await get_cached_events(page, limit, featured)
    if cached:
        cached["cached"] = True
        return EventListResponse(**cached)

    result = await query_service.list_public_events(db, page, limit, featured)
    response = _listing(result)
    await set_cached_events(page, limit, featured, response.model_dump(mode="json"))
    return response


@router.get("/admin/all", response_model=EventListResponse)
async def list_admin_events_endpoint(
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    status_filter: Optional[EventStatus] = Query(None, alias="status"),
    search: Optional[str] = Query(None, max_length=200),
    principal: Principal = Depends(require_capability(Capability.MANAGE_EVENTS)),
    db: AsyncSession = Depends(get_db),
):
    """All events including drafts. Never cached."""
    result = await query_service.list_admin_events(db, page, limit, status_filter, search)
    return _listing(result)


@router.get("/{id_or_slug}", response_model=EventResponse)
async def get_event_endpoint(id_or_slug: str, db: AsyncSession = Depends(get_db)):
    return await get_event_by_slug_or_id(db, id_or_slug)


@router.put("/{event_id}", response_model=EventResponse)
async def update_event_endpoint(
    event_id: int,
    event_data: EventUpdate,
    principal: Principal = Depends(require_capability(Capability.MANAGE_EVENTS)),
    db: AsyncSession = Depends(get_db),
):
    """Partial update. The attendee counter cannot be written here."""
    event = await update_event(db, event_id, event_data.model_dump(exclude_unset=True))
    await invalidate_event_cache()
    return event


@router.delete("/{event_id}", response_model=EventDeleteResponse)
async def delete_event_endpoint(
    event_id: int,
    principal: Principal = Depends(require_capability(Capability.MANAGE_EVENTS)),
    db: AsyncSession = Depends(get_db),
):
    """Delete an event together with all of its registrations."""
    deleted = await delete_event(db, event_id)
    await invalidate_event_cache()
    logger.info("event_deleted_by", subject=principal.subject, event_id=event_id)
    return EventDeleteResponse(
        message="Event deleted successfully",
        event_id=event_id,
        registrations_deleted=deleted,
    )
