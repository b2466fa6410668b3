"""
Read-only listings over events and registrations.

Nothing here changes state. In particular these queries never "fix" the
attendee counter; drift is the reconciliation service's business.
"""

import math
from dataclasses import dataclass
from typing import Generic, Optional, TypeVar

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from community_events.models.enums import EventStatus, RegistrationStatus
from community_events.models.event import Event
from community_events.models.registration import Registration

T = TypeVar("T")


@dataclass
class Page(Generic[T]):
    items: list[T]
    total: int
    page: int
    limit: int

    @property
    def pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0

    def pagination(self) -> dict:
        return {"page": self.page, "limit": self.limit, "total": self.total, "pages": self.pages}


async def _paginate(db: AsyncSession, query, order_by, page: int, limit: int) -> Page:
    count_query = select(func.count()).select_from(query.subquery())
    total = (await db.execute(count_query)).scalar() or 0

    result = await db.execute(
        query.order_by(*order_by).offset((page - 1) * limit).limit(limit)
    )
    return Page(items=list(result.scalars().all()), total=total, page=page, limit=limit)


def _contains(term: str) -> str:
    return f"%{term.strip()}%"


async def list_public_events(
    db: AsyncSession,
    page: int = 1,
    limit: int = 20,
    featured: Optional[bool] = None,
) -> Page[Event]:
    """Published events only, featured first, then soonest."""
    query = select(Event).where(Event.status == EventStatus.PUBLISHED.value)
    if featured:
        query = query.where(Event.featured.is_(True))

    return await _paginate(
        db, query, (Event.featured.desc(), Event.date.asc(), Event.id.asc()), page, limit
    )


async def list_admin_events(
    db: AsyncSession,
    page: int = 1,
    limit: int = 20,
    status: Optional[EventStatus] = None,
    search: Optional[str] = None,
) -> Page[Event]:
    """Every status, newest first, optional search over title, description and slug."""
    query = select(Event)
    if status is not None:
        query = query.where(Event.status == status.value)
    if search and search.strip():
        pattern = _contains(search)
        query = query.where(
            or_(
                Event.title.ilike(pattern),
                Event.description.ilike(pattern),
                Event.slug.ilike(pattern),
            )
        )

    return await _paginate(db, query, (Event.created_at.desc(), Event.id.desc()), page, limit)


async def list_registrations(
    db: AsyncSession,
    page: int = 1,
    limit: int = 20,
    status: Optional[RegistrationStatus] = None,
    event_id: Optional[int] = None,
    search: Optional[str] = None,
) -> Page[Registration]:
    query = select(Registration)
    if status is not None:
        query = query.where(Registration.status == status.value)
    if event_id is not None:
        query = query.where(Registration.event_id == event_id)
    if search and search.strip():
        pattern = _contains(search)
        query = query.where(
            or_(
                Registration.first_name.ilike(pattern),
                Registration.last_name.ilike(pattern),
                Registration.email.ilike(pattern),
                Registration.ticket_code.ilike(pattern),
            )
        )

    return await _paginate(
        db, query, (Registration.created_at.desc(), Registration.id.desc()), page, limit
    )


async def event_stats(db: AsyncSession) -> dict:
    rows = await db.execute(select(Event.status, func.count()).group_by(Event.status))
    by_status = {status: count for status, count in rows.all()}

    registration_rows = await db.execute(
        select(Registration.status, func.count()).group_by(Registration.status)
    )
    registrations = {status: count for status, count in registration_rows.all()}

    return {
        "total": sum(by_status.values()),
        "by_status": by_status,
        "total_registrations": sum(registrations.values()),
        "total_attendees": registrations.get(RegistrationStatus.CONFIRMED.value, 0),
        "total_waitlisted": registrations.get(RegistrationStatus.WAITLISTED.value, 0),
    }
