"""
Registration engine: confirmed vs waitlisted, and cancellation.

CONCURRENCY STRATEGY: Conditional Increment
============================================

Problem:
  Two people register for the last seat simultaneously.
  Both read current_attendees = max - 1, both insert a confirmed
  registration, both increment. Result: oversold event.

Solution:
  The capacity decision IS the write. We never compare counters in Python;
  we run event_service.increment_attendees(+1), a single
      UPDATE events SET current_attendees = current_attendees + 1
      WHERE id = :id AND ... AND current_attendees < max_attendees
  and branch on rowcount:
      1 -> the seat is ours, insert a `confirmed` registration
      0 -> full (or closed), insert a `waitlisted` registration

  The increment and the registration insert share one transaction, so a
  failed insert (duplicate email race, ticket codes exhausted) rolls the seat
  back. A ticket clash alone only rolls back to a savepoint and re-rolls.
  No lock is held across requests and no retry loop is needed for capacity.

State machine:
  new -> confirmed | waitlisted
  confirmed -> cancelled        (releases one seat)
  waitlisted -> cancelled       (no counter change)
  cancelled is terminal. Waitlisted registrations are NOT promoted when a
  seat frees up; promotion is a manual, out-of-band decision.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from community_events.core.config import get_settings
from community_events.core.exceptions import (
    ConflictError,
    DataIntegrityFault,
    DomainError,
    InvalidStateError,
    NotFoundError,
    ServerFault,
)
from community_events.core.logging import get_logger
from community_events.core.metrics import (
    record_cancellation,
    record_integrity_fault,
    record_registration_attempt,
    registration_latency,
    ticket_code_collisions,
)
from community_events.models.enums import EventStatus, PaymentStatus, RegistrationStatus
from community_events.models.event import Event
from community_events.models.registration import Registration
from community_events.schemas.registration import RegistrationCreate
from community_events.services.event_service import get_event, increment_attendees
from community_events.services.identifiers import generate_ticket_code

logger = get_logger(__name__)
settings = get_settings()

ALLOWED_TRANSITIONS: dict[Optional[RegistrationStatus], frozenset[RegistrationStatus]] = {
    None: frozenset({RegistrationStatus.CONFIRMED, RegistrationStatus.WAITLISTED}),
    RegistrationStatus.CONFIRMED: frozenset({RegistrationStatus.CANCELLED}),
    RegistrationStatus.WAITLISTED: frozenset({RegistrationStatus.CANCELLED}),
    RegistrationStatus.CANCELLED: frozenset(),
}


@dataclass
class RegistrationOutcome:
    registration: Registration
    waitlisted: bool

    @property
    def message(self) -> str:
        if self.waitlisted:
            return "Event is full. You have been added to the waitlist."
        return "Registration successful"


def ensure_transition(current: Optional[RegistrationStatus], target: RegistrationStatus) -> None:
    if target not in ALLOWED_TRANSITIONS[current]:
        if current is RegistrationStatus.CANCELLED:
            raise InvalidStateError("Registration is already cancelled")
        origin = current.value if current else "new"
        raise InvalidStateError(f"Registration cannot move from {origin} to {target.value}")


def _ensure_registrable(event: Event) -> None:
    if event.status != EventStatus.PUBLISHED.value:
        raise InvalidStateError("Registration is not open for this event")
    if not event.registration_open:
        raise InvalidStateError("Registration is closed for this event")


async def _find_active_registration(
    db: AsyncSession, event_id: int, email: str
) -> Optional[Registration]:
    result = await db.execute(
        select(Registration).where(
            Registration.event_id == event_id,
            Registration.email == email,
            Registration.status != RegistrationStatus.CANCELLED.value,
        )
    )
    return result.scalars().first()


async def _ticket_code_taken(db: AsyncSession, code: str) -> bool:
    taken = await db.execute(select(Registration.id).where(Registration.ticket_code == code))
    return taken.scalar_one_or_none() is not None


async def _insert_with_ticket_code(db: AsyncSession, event_slug: str, fields: dict) -> Registration:
    """
    Insert a registration under a fresh ticket code, re-rolling a bounded
    number of times.

    The SELECT pre-check catches most clashes. A concurrent request can still
    take the same code between the check and the insert, so each insert runs
    in a SAVEPOINT: a unique violation on the ticket code undoes only that
    insert and the code is re-rolled, keeping the seat already claimed.
    Any other IntegrityError propagates.
    """
    for attempt in range(1, settings.TICKET_CODE_MAX_ATTEMPTS + 1):
        code = generate_ticket_code(event_slug)
        if not await _ticket_code_taken(db, code):
            registration = Registration(ticket_code=code, **fields)
            try:
                async with db.begin_nested():
                    db.add(registration)
                return registration
            except IntegrityError:
                if not await _ticket_code_taken(db, code):
                    raise

        ticket_code_collisions.inc()
        logger.warning("ticket_code_collision", code=code, attempt=attempt)

    raise ServerFault("Could not allocate a unique ticket code, please try again")


async def register_for_event(
    db: AsyncSession,
    event_id: int,
    attendee: RegistrationCreate,
) -> RegistrationOutcome:
    """
    Register an attendee. Full events never refuse: the attendee is
    waitlisted instead. Commits on success, rolls back on any failure.

    The rollback is on the caller's session, so every instance it holds is
    expired afterwards and must be refreshed (or its id kept beforehand)
    before further attribute access.
    """
    with registration_latency.time():
        try:
            outcome = await _register(db, event_id, attendee)
        except DomainError as exc:
            await db.rollback()
            if isinstance(exc, ConflictError):
                record_registration_attempt("conflict")
            else:
                record_registration_attempt("error" if exc.status_code >= 500 else "rejected")
            raise
        except Exception:
            await db.rollback()
            record_registration_attempt("error")
            raise

    record_registration_attempt("waitlisted" if outcome.waitlisted else "confirmed")
    return outcome


async def _register(db: AsyncSession, event_id: int, attendee: RegistrationCreate) -> RegistrationOutcome:
    event = await get_event(db, event_id)
    _ensure_registrable(event)

    email = attendee.email.lower()
    if await _find_active_registration(db, event_id, email):
        logger.warning("registration_rejected", reason="duplicate_email", event_id=event_id)
        raise ConflictError("You are already registered for this event")

    confirmed = await increment_attendees(db, event_id, +1)
    if not confirmed:
        # Nothing changed: find out whether the event is full or no longer registrable
        event = await db.get(Event, event_id, populate_existing=True)
        if event is None:
            raise NotFoundError(f"Event {event_id} not found")
        _ensure_registrable(event)

    status = RegistrationStatus.CONFIRMED if confirmed else RegistrationStatus.WAITLISTED
    ensure_transition(None, status)

    fields = dict(
        event_id=event_id,
        first_name=attendee.first_name,
        last_name=attendee.last_name,
        email=email,
        phone=attendee.phone,
        accessibility_needs=attendee.accessibility_needs,
        status=status.value,
        payment_status=(PaymentStatus.PAID if event.is_free else PaymentStatus.PENDING).value,
        amount=Decimal("0") if event.is_free else event.price,
    )

    try:
        registration = await _insert_with_ticket_code(db, event.slug, fields)
    except IntegrityError:
        # Rolls back the seat taken above as well
        await db.rollback()
        if await _find_active_registration(db, event_id, email):
            logger.warning("registration_rejected", reason="duplicate_email_race", event_id=event_id)
            raise ConflictError("You are already registered for this event")
        logger.error("registration_insert_failed", event_id=event_id)
        raise ServerFault("Registration could not be stored, please try again")

    await db.commit()
    await db.refresh(registration)

    logger.info(
        "registration_confirmed" if confirmed else "registration_waitlisted",
        registration_id=registration.id,
        event_id=event_id,
        ticket_code=registration.ticket_code,
    )
    return RegistrationOutcome(registration=registration, waitlisted=not confirmed)


async def get_registration(db: AsyncSession, registration_id: int) -> Registration:
    result = await db.execute(select(Registration).where(Registration.id == registration_id))
    registration = result.scalar_one_or_none()

    if not registration:
        raise NotFoundError(f"Registration {registration_id} not found")
    return registration


async def cancel_registration(db: AsyncSession, registration_id: int) -> Registration:
    """
    Cancel a registration. Not idempotent: a second cancel is InvalidState.

    Releasing a confirmed seat decrements the counter, floored at zero. If the
    counter is already zero the registration is still cancelled, but the
    drift is logged and counted as a data-integrity fault.
    """
    registration = await get_registration(db, registration_id)
    previous = RegistrationStatus(registration.status)
    ensure_transition(previous, RegistrationStatus.CANCELLED)

    try:
        result = await db.execute(
            update(Registration)
            .where(
                Registration.id == registration_id,
                Registration.status == previous.value,
            )
            .values(status=RegistrationStatus.CANCELLED.value)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            # A concurrent request cancelled it first
            raise InvalidStateError("Registration is already cancelled")

        if previous is RegistrationStatus.CONFIRMED:
            try:
                await increment_attendees(db, registration.event_id, -1)
            except DataIntegrityFault as fault:
                # The counter is left at 0; reconciliation repairs it
                record_integrity_fault("cancellation")
                logger.error(
                    "attendee_counter_underflow",
                    registration_id=registration_id,
                    event_id=registration.event_id,
                    detail=fault.message,
                )

        await db.commit()
    except Exception:
        await db.rollback()
        raise

    await db.refresh(registration)
    record_cancellation(previous.value)
    logger.info(
        "registration_cancelled",
        registration_id=registration_id,
        event_id=registration.event_id,
        previous_status=previous.value,
    )
    return registration


async def update_registration(db: AsyncSession, registration_id: int, patch: dict) -> Registration:
    """Administrative edit of notes and payment details. Never touches status."""
    registration = await get_registration(db, registration_id)

    payment_status = patch.get("payment_status")
    if payment_status is not None:
        event = await get_event(db, registration.event_id)
        if event.is_free and PaymentStatus(payment_status) is not PaymentStatus.PAID:
            raise InvalidStateError("Payment status of a free event registration cannot change")
        registration.payment_status = PaymentStatus(payment_status).value

    if "notes" in patch:
        registration.notes = patch["notes"]
    if "payment_id" in patch:
        registration.payment_id = patch["payment_id"]

    await db.commit()
    await db.refresh(registration)

    logger.info("registration_updated", registration_id=registration_id, fields=sorted(patch))
    return registration
