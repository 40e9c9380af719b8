"""Running statistics of the work relationship between a DJ and a producer."""
import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import Boolean, Date, DateTime, ForeignKey, Integer, Numeric, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from djagency.core.database import Base


class DJProducerRelation(Base):
    """
    One row per (dj, producer) pair.

    Updated whenever an event is created for the producer with the DJ
    assigned: total_events += 1, total_revenue += the DJ's allocation,
    last_event_date = max(last_event_date, event_date).
    """

    __tablename__ = "dj_producer_relations"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )
    dj_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("profiles.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    producer_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("profiles.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    total_events: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    total_revenue: Mapped[Decimal] = mapped_column(
        Numeric(precision=14, scale=2),
        default=Decimal("0"),
        nullable=False,
    )
    last_event_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

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

    __table_args__ = (
        UniqueConstraint("dj_id", "producer_id", name="uq_dj_producer_relations_pair"),
    )

    def __repr__(self) -> str:
        return f"<DJProducerRelation dj={self.dj_id} producer={self.producer_id} events={self.total_events}>"
