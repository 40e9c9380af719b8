"""EventDJ model: assignment of a DJ to an event with an individual fee."""
import uuid
from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Optional

from sqlalchemy import DateTime, ForeignKey, Numeric, String, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from djagency.core.database import Base

if TYPE_CHECKING:
    from djagency.models.event import Event
    from djagency.models.profile import Profile


class EventDJ(Base):
    """
    Join row between events and DJ profiles.

    fee is the DJ's individual cache for the event, independent of the
    event's aggregate cache_value. A null fee means "not specified".
    """

    __tablename__ = "event_djs"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )
    event_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("events.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    dj_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("profiles.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    fee: Mapped[Optional[Decimal]] = mapped_column(
        Numeric(precision=12, scale=2),
        nullable=True,
    )
    payment_status: Mapped[str] = mapped_column(
        String(30),
        default="pending",
        nullable=False,
    )
    payment_receipt_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)

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
    event: Mapped["Event"] = relationship(
        "Event",
        back_populates="dj_links",
    )
    dj: Mapped["Profile"] = relationship("Profile")

    __table_args__ = (
        UniqueConstraint("event_id", "dj_id", name="uq_event_djs_event_dj"),
    )

    def __repr__(self) -> str:
        return f"<EventDJ event={self.event_id} dj={self.dj_id} fee={self.fee}>"
