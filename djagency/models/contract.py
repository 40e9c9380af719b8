"""Contract model: the performance agreement for one DJ at one event."""
import uuid
from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Optional

from sqlalchemy import Boolean, DateTime, ForeignKey, Numeric, String, Text, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from djagency.core.database import Base

if TYPE_CHECKING:
    from djagency.models.event import Event
    from djagency.models.profile import Profile


class Contract(Base):
    """
    Contract between a producer and a DJ for an event.

    One contract exists per (event, dj) pair. Content is editable until the
    DJ signs; signing sets signed_at and freezes the content.
    """

    __tablename__ = "contracts"

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
    producer_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid,
        ForeignKey("profiles.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    cache_value: Mapped[Decimal] = mapped_column(
        Numeric(precision=12, scale=2),
        default=Decimal("0"),
        nullable=False,
    )
    contract_content: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    contract_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)

    signed: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    signed_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

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
    event: Mapped["Event"] = relationship("Event")
    dj: Mapped["Profile"] = relationship("Profile", foreign_keys=[dj_id])
    producer: Mapped[Optional["Profile"]] = relationship("Profile", foreign_keys=[producer_id])

    __table_args__ = (
        UniqueConstraint("event_id", "dj_id", name="uq_contracts_event_dj"),
    )

    def __repr__(self) -> str:
        return f"<Contract {self.id} event={self.event_id} dj={self.dj_id} signed={self.signed}>"


class ContractTemplate(Base):
    """Stored contract template with {{placeholder}} variables."""

    __tablename__ = "contract_templates"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    template_type: Mapped[str] = mapped_column(String(50), default="dj_service", nullable=False, index=True)
    content: Mapped[str] = mapped_column(Text, nullable=False)

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

    def __repr__(self) -> str:
        return f"<ContractTemplate {self.id} name={self.name}>"
