"""
Attendee counter reconciliation.

Recomputes each event's confirmed-registration count and compares it to the
stored `current_attendees`. Any difference means the atomic counter contract
was broken somewhere, so every mismatch is logged and counted as a
data-integrity fault. With `repair=True` the counter is overwritten by a
correlated subquery evaluated inside the UPDATE itself, so registrations
landing mid-repair are not lost.
"""

from dataclasses import dataclass

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from community_events.core.logging import get_logger
from community_events.core.metrics import record_integrity_fault
from community_events.models.enums import RegistrationStatus
from community_events.models.event import Event
from community_events.models.registration import Registration

logger = get_logger(__name__)


@dataclass
class CounterMismatch:
    event_id: int
    slug: str
    recorded: int
    actual: int


@dataclass
class ReconciliationResult:
    events_checked: int
    mismatches: list[CounterMismatch]
    repaired: bool


def _confirmed_count_for(event_id_column):
    return (
        select(func.count(Registration.id))
        .where(
            Registration.event_id == event_id_column,
            Registration.status == RegistrationStatus.CONFIRMED.value,
        )
        .scalar_subquery()
    )


async def reconcile(db: AsyncSession, repair: bool = False) -> ReconciliationResult:
    confirmed = _confirmed_count_for(Event.id).label("confirmed")
    rows = (
        await db.execute(
            select(Event.id, Event.slug, Event.current_attendees, confirmed).order_by(Event.id)
        )
    ).all()

    mismatches = [
        CounterMismatch(event_id=row.id, slug=row.slug, recorded=row.current_attendees, actual=row.confirmed)
        for row in rows
        if row.current_attendees != row.confirmed
    ]

    for mismatch in mismatches:
        record_integrity_fault("reconciliation")
        logger.error(
            "attendee_counter_mismatch",
            event_id=mismatch.event_id,
            slug=mismatch.slug,
            recorded=mismatch.recorded,
            actual=mismatch.actual,
        )

    if repair and mismatches:
        await db.execute(
            update(Event)
            .where(Event.id.in_([m.event_id for m in mismatches]))
            .values(current_attendees=_confirmed_count_for(Event.id))
            .execution_options(synchronize_session=False)
        )
        await db.commit()
        logger.info("attendee_counters_repaired", events=[m.event_id for m in mismatches])

    logger.info("reconciliation_finished", events_checked=len(rows), mismatches=len(mismatches))
    return ReconciliationResult(
        events_checked=len(rows),
        mismatches=mismatches,
        repaired=repair and bool(mismatches),
    )
