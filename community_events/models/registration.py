"""
Registration model: one attempt by an attendee to claim a seat at an event.

Key design decisions:
- Partial unique index on (event_id, email) for non-cancelled rows: a person
  can re-register after cancelling, but never hold two live registrations
- `ticket_code` is unique and assigned once at creation
- Status rows are never deleted on cancellation, only marked `cancelled`
"""

from sqlalchemy import (
    CheckConstraint,
    Column,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    text,
)
from sqlalchemy.orm import relationship

from community_events.db.base import Base, TimestampMixin
from community_events.models.enums import PaymentStatus, RegistrationStatus, sql_values

ACTIVE_REGISTRATION = text("status != 'cancelled'")


class Registration(Base, TimestampMixin):
    __tablename__ = "registrations"

    id = Column(Integer, primary_key=True, index=True)
    event_id = Column(
        Integer,
        ForeignKey("events.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    ticket_code = Column(String(20), nullable=False, unique=True, index=True)

    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    email = Column(String(255), nullable=False)
    phone = Column(String(20), nullable=True)
    accessibility_needs = Column(String(500), nullable=True)
    notes = Column(String(1000), nullable=True)

    status = Column(String(20), nullable=False, default=RegistrationStatus.CONFIRMED.value)
    payment_status = Column(String(20), nullable=False, default=PaymentStatus.PENDING.value)
    payment_id = Column(String(100), nullable=True)
    amount = Column(Numeric(10, 2), nullable=False, default=0)

    event = relationship("Event", back_populates="registrations", lazy="noload")

    __table_args__ = (
        Index(
            "uq_registrations_event_email_active",
            "event_id",
            "email",
            unique=True,
            postgresql_where=ACTIVE_REGISTRATION,
            sqlite_where=ACTIVE_REGISTRATION,
        ),
        Index("ix_registrations_status", "status"),
        Index("ix_registrations_created_at", "created_at"),
        CheckConstraint(
            f"status IN ({sql_values(RegistrationStatus)})",
            name="check_registration_status",
        ),
        CheckConstraint(
            f"payment_status IN ({sql_values(PaymentStatus)})",
            name="check_registration_payment_status",
        ),
        CheckConstraint("amount >= 0", name="check_registration_amount_non_negative"),
    )

    def __repr__(self) -> str:
        return f"<Registration(id={self.id}, ticket={self.ticket_code}, event={self.event_id}, status={self.status})>"
