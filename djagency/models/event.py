"""Event model: a booked gig with its aggregate cache and commission."""
import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import Boolean, Date, DateTime, ForeignKey, Integer, Numeric, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from djagency.core.database import Base

if TYPE_CHECKING:
    from djagency.models.event_dj import EventDJ
    from djagency.models.payment import Payment
    from djagency.models.profile import Profile


class Event(Base):
    """
    Event requested by a producer.

    cache_value is the aggregate fee of the event. When DJs are added through
    the creation flow it is expected to equal the sum of the event_djs fees,
    but nothing enforces it: per-DJ fees live on the join rows.
    """

    __tablename__ = "events"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )
    event_name: Mapped[str] = mapped_column(String(255), nullable=False)
    event_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    start_time: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)
    end_time: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)
    status: Mapped[Optional[str]] = mapped_column(String(30), nullable=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Where
    venue: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    location: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    city: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    state: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    address: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)

    # Money
    cache_value: Mapped[Decimal] = mapped_column(
        Numeric(precision=12, scale=2),
        default=Decimal("0"),
        nullable=False,
    )
    commission_rate: Mapped[Optional[Decimal]] = mapped_column(
        Numeric(precision=5, scale=2),  # percentage, 20.00 = 20%
        nullable=True,
    )
    commission_amount: Mapped[Optional[Decimal]] = mapped_column(
        Numeric(precision=12, scale=2),
        nullable=True,
    )
    payment_status: Mapped[Optional[str]] = mapped_column(String(30), nullable=True)
    payment_proof_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)

    # Who
    producer_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid,
        ForeignKey("profiles.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    dj_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid,
        ForeignKey("profiles.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    created_by: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid,
        ForeignKey("profiles.id", ondelete="SET NULL"),
        nullable=True,
    )

    # Logistics
    expected_attendees: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    special_requirements: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    equipment_provided: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    shared_with_manager: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=datetime.utcnow,
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
        nullable=False,
    )

    # Relationships
    producer: Mapped[Optional["Profile"]] = relationship(
        "Profile",
        foreign_keys=[producer_id],
    )
    dj: Mapped[Optional["Profile"]] = relationship(
        "Profile",
        foreign_keys=[dj_id],
    )
    dj_links: Mapped[List["EventDJ"]] = relationship(
        "EventDJ",
        back_populates="event",
        passive_deletes=True,
    )
    payments: Mapped[List["Payment"]] = relationship(
        "Payment",
        back_populates="event",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return f"<Event {self.id} name={self.event_name} date={self.event_date}>"
