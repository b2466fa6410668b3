"""
Event model with attendee capacity tracking.

Key design decisions:
- `current_attendees` is denormalized (avoids COUNT over registrations on every
  read) and is only ever changed by conditional UPDATE statements in
  `services.event_service`; it must equal the number of confirmed registrations
- `max_attendees` NULL means unlimited capacity
- `slug` is generated once from the title and never regenerated
- Composite index on (status, featured, date) serves the public listing
"""

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    Index,
    Integer,
    JSON,
    Numeric,
    String,
    Text,
)
from sqlalchemy.orm import relationship

from community_events.db.base import Base, TimestampMixin
from community_events.models.enums import Currency, EventStatus, sql_values


class Event(Base, TimestampMixin):
    __tablename__ = "events"

    id = Column(Integer, primary_key=True, index=True)
    slug = Column(String(220), nullable=False, unique=True, index=True)
    title = Column(String(200), nullable=False)
    description = Column(String(2000), nullable=False)
    full_description = Column(Text, nullable=True)
    date = Column(DateTime(timezone=True), nullable=False)
    end_date = Column(DateTime(timezone=True), nullable=True)
    location = Column(String(500), nullable=False)
    is_online = Column(Boolean, nullable=False, default=False)
    meeting_link = Column(String(500), nullable=True)

    organizer_name = Column(String(200), nullable=False)
    organizer_email = Column(String(255), nullable=True)
    organizer_phone = Column(String(20), nullable=True)

    price = Column(Numeric(10, 2), nullable=False, default=0)
    is_free = Column(Boolean, nullable=False, default=True)
    currency = Column(String(3), nullable=False, default=Currency.INR.value)

    max_attendees = Column(Integer, nullable=True)
    current_attendees = Column(Integer, nullable=False, default=0)

    tags = Column(JSON, nullable=False, default=list)
    featured = Column(Boolean, nullable=False, default=False)
    image = Column(String(500), nullable=True)
    schedule = Column(JSON, nullable=False, default=list)

    status = Column(String(20), nullable=False, default=EventStatus.DRAFT.value)
    registration_open = Column(Boolean, nullable=False, default=True)

    registrations = relationship(
        "Registration",
        back_populates="event",
        lazy="noload",
        passive_deletes=True,
    )

    __table_args__ = (
        CheckConstraint("current_attendees >= 0", name="check_current_attendees_non_negative"),
        CheckConstraint(
            "max_attendees IS NULL OR max_attendees >= 1",
            name="check_max_attendees_positive",
        ),
        CheckConstraint("price >= 0", name="check_price_non_negative"),
        CheckConstraint(f"status IN ({sql_values(EventStatus)})", name="check_event_status"),
        CheckConstraint(f"currency IN ({sql_values(Currency)})", name="check_event_currency"),
        Index("ix_events_status_featured_date", "status", "featured", "date"),
    )

    @property
    def spots_left(self):
        """Remaining confirmed seats, or None when capacity is unlimited."""
        if self.max_attendees is None:
            return None
        return max(self.max_attendees - self.current_attendees, 0)

    @property
    def is_sold_out(self) -> bool:
        if self.max_attendees is None:
            return False
        return self.current_attendees >= self.max_attendees

    def __repr__(self) -> str:
        capacity = self.max_attendees if self.max_attendees is not None else "unlimited"
        return f"<Event(id={self.id}, slug={self.slug}, attendees={self.current_attendees}/{capacity})>"
