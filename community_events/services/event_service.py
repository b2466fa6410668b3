"""
Event store: definitions plus the live attendee counter.

COUNTER DISCIPLINE
==================

`current_attendees` must always equal the number of confirmed registrations.
It is never assigned from a request body. The only writers are:

  - increment_attendees(+1): a single conditional UPDATE
        UPDATE events SET current_attendees = current_attendees + 1
        WHERE id = :id AND status = 'published' AND registration_open
          AND (max_attendees IS NULL OR current_attendees < max_attendees)
    Two requests racing for the last seat serialize on the row lock; the
    loser re-evaluates the WHERE clause and changes nothing.

  - increment_attendees(-1): UPDATE ... WHERE current_attendees > 0
    A refused decrement means the counter already drifted and raises
    DataIntegrityFault.

  - reconciliation_service.reconcile(repair=True), the explicit repair path.

Capacity edits use the same idea: a new max_attendees is written only
`WHERE current_attendees <= :new_max`, so an admin cannot shrink an event
below the seats already confirmed.
"""

from datetime import datetime, timezone
from enum import Enum

from sqlalchemy import delete, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from community_events.core.exceptions import (
    ConflictError,
    DataIntegrityFault,
    NotFoundError,
    ValidationError,
)
from community_events.core.logging import get_logger
from community_events.models.enums import EventStatus
from community_events.models.event import Event
from community_events.models.registration import Registration
from community_events.schemas.event import EventCreate
from community_events.services.identifiers import slugify

logger = get_logger(__name__)

PROTECTED_FIELDS = frozenset({"id", "slug", "current_attendees", "created_at", "updated_at"})


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _column_values(data: dict) -> dict:
    return {
        key: value.value if isinstance(value, Enum) else value
        for key, value in data.items()
    }


async def create_event(db: AsyncSession, event_data: EventCreate) -> Event:
    """Create an event with an empty attendee counter."""
    if _as_utc(event_data.date) <= datetime.now(timezone.utc):
        raise ValidationError("Event date must be in the future", {"date": "must be in the future"})

    slug = slugify(event_data.title)
    if not slug:
        raise ValidationError(
            "Event title must contain at least one letter or digit",
            {"title": "cannot be turned into a slug"},
        )

    existing = await db.execute(select(Event.id).where(Event.slug == slug))
    if existing.scalar_one_or_none() is not None:
        logger.warning("event_create_failed", reason="slug_exists", slug=slug)
        raise ConflictError(f"An event with the slug '{slug}' already exists")

    event = Event(
        **_column_values(event_data.model_dump()),
        slug=slug,
        current_attendees=0,
    )
    db.add(event)
    try:
        await db.flush()
    except IntegrityError:
        await db.rollback()
        logger.warning("event_create_failed", reason="slug_race", slug=slug)
        raise ConflictError(f"An event with the slug '{slug}' already exists")

    await db.commit()
    await db.refresh(event)

    logger.info("event_created", event_id=event.id, slug=event.slug, max_attendees=event.max_attendees)
    return event


async def get_event(db: AsyncSession, event_id: int) -> Event:
    result = await db.execute(select(Event).where(Event.id == event_id))
    event = result.scalar_one_or_none()

    if not event:
        raise NotFoundError(f"Event {event_id} not found")
    return event


async def get_event_by_slug_or_id(db: AsyncSession, key: str) -> Event:
    """
    All-digit keys are tried as ids first, then as slugs, since a title like
    "2024" produces an all-digit slug. Anything else is a slug.
    """
    event = None
    if key.isdigit():
        result = await db.execute(select(Event).where(Event.id == int(key)))
        event = result.scalar_one_or_none()

    if event is None:
        result = await db.execute(select(Event).where(Event.slug == key.lower()))
        event = result.scalar_one_or_none()

    if not event:
        raise NotFoundError(f"Event '{key}' not found")
    return event


async def update_event(db: AsyncSession, event_id: int, patch: dict) -> Event:
    """
    Apply a partial update.

    Rejects any attempt to write protected fields, the attendee counter in
    particular. The title may change but the slug stays as first generated.
    """
    protected = sorted(PROTECTED_FIELDS.intersection(patch))
    if protected:
        raise ValidationError(
            f"Fields cannot be updated directly: {', '.join(protected)}",
            {field: "read-only" for field in protected},
        )

    event = await get_event(db, event_id)
    values = _column_values(patch)
    capacity_changed = "max_attendees" in values
    new_max = values.pop("max_attendees", None)

    if capacity_changed and new_max is not None and new_max < 1:
        raise ValidationError("max_attendees must be at least 1", {"max_attendees": "minimum is 1"})

    start = values.get("date", event.date)
    end = values.get("end_date", event.end_date)
    if start is not None and end is not None and _as_utc(end) < _as_utc(start):
        raise ValidationError("end_date cannot be before date", {"end_date": "before date"})

    for field, value in values.items():
        setattr(event, field, value)
    await db.flush()

    if capacity_changed:
        stmt = update(Event).where(Event.id == event_id)
        if new_max is not None:
            stmt = stmt.where(Event.current_attendees <= new_max)
        result = await db.execute(
            stmt.values(max_attendees=new_max).execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            await db.rollback()
            refreshed = await get_event(db, event_id)
            raise ValidationError(
                f"max_attendees cannot be lower than the {refreshed.current_attendees} confirmed attendees",
                {"max_attendees": "below confirmed attendees"},
            )

    await db.commit()
    await db.refresh(event)

    logger.info("event_updated", event_id=event.id, fields=sorted(patch))
    return event


async def increment_attendees(db: AsyncSession, event_id: int, delta: int) -> bool:
    """
    Atomically move the attendee counter by one seat.

    Returns True when the row changed. A refused +1 means the event is full,
    unpublished, closed or gone and returns False. A refused -1 means the
    counter would go negative and raises DataIntegrityFault; the UPDATE changed
    nothing, so the caller may still commit the rest of its transaction.
    Does not commit: the caller owns the transaction.
    """
    if delta == 1:
        stmt = (
            update(Event)
            .where(
                Event.id == event_id,
                Event.status == EventStatus.PUBLISHED.value,
                Event.registration_open.is_(True),
                or_(
                    Event.max_attendees.is_(None),
                    Event.current_attendees < Event.max_attendees,
                ),
            )
            .values(current_attendees=Event.current_attendees + 1)
        )
    elif delta == -1:
        stmt = (
            update(Event)
            .where(Event.id == event_id, Event.current_attendees > 0)
            .values(current_attendees=Event.current_attendees - 1)
        )
    else:
        raise ValueError(f"Attendee counter moves one seat at a time, got {delta}")

    result = await db.execute(stmt.execution_options(synchronize_session=False))
    if delta == -1 and result.rowcount == 0:
        raise DataIntegrityFault(f"Attendee counter of event {event_id} would go negative")
    return result.rowcount == 1


async def delete_event(db: AsyncSession, event_id: int) -> int:
    """
    Delete an event and every registration that references it.

    Runs as one transaction: the event is first closed to registration, then
    its registrations are removed, then the event row. Returns the number of
    registrations deleted.
    """
    await get_event(db, event_id)

    try:
        await db.execute(
            update(Event)
            .where(Event.id == event_id)
            .values(status=EventStatus.CANCELLED.value, registration_open=False)
            .execution_options(synchronize_session=False)
        )
        deleted = await db.execute(
            delete(Registration)
            .where(Registration.event_id == event_id)
            .execution_options(synchronize_session=False)
        )
        await db.execute(
            delete(Event)
            .where(Event.id == event_id)
            .execution_options(synchronize_session=False)
        )
        await db.commit()
    except Exception:
        await db.rollback()
        logger.error("event_delete_failed", event_id=event_id)
        raise

    db.expunge_all()
    logger.info("event_deleted", event_id=event_id, registrations_deleted=deleted.rowcount)
    return deleted.rowcount
