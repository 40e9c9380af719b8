"""
Payment models.

STATUS LIFECYCLE (canonical stored values):
  pending -> processing   proof of payment sent by the producer
  pending -> paid         admin confirmation without proof
  pending -> overdue      due date passed
  processing -> paid      admin confirmed the proof
  processing -> pending   proof rejected
  overdue -> processing | paid
  paid is terminal.

Legacy Portuguese values are accepted on input and normalised:
  pendente -> pending, pagamento_enviado -> processing, pago -> paid
"""
import uuid
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING, Optional

from sqlalchemy import Date, DateTime, ForeignKey, Numeric, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from djagency.core.database import Base

if TYPE_CHECKING:
    from djagency.models.event import Event
    from djagency.models.profile import Profile


class PaymentStatus(str, Enum):
    """Canonical payment status."""
    PENDING = "pending"
    PROCESSING = "processing"
    PAID = "paid"
    OVERDUE = "overdue"


PAYMENT_STATUS_ALIASES = {
    "pendente": PaymentStatus.PENDING,
    "pagamento_enviado": PaymentStatus.PROCESSING,
    "pago": PaymentStatus.PAID,
    "atrasado": PaymentStatus.OVERDUE,
}

PAYMENT_STATUS_TRANSITIONS = {
    PaymentStatus.PENDING: {PaymentStatus.PROCESSING, PaymentStatus.PAID, PaymentStatus.OVERDUE},
    PaymentStatus.PROCESSING: {PaymentStatus.PAID, PaymentStatus.PENDING},
    PaymentStatus.OVERDUE: {PaymentStatus.PROCESSING, PaymentStatus.PAID},
    PaymentStatus.PAID: set(),
}


class Payment(Base):
    """Payment owed by the producer for an event."""

    __tablename__ = "payments"

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
    producer_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid,
        ForeignKey("profiles.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    amount: Mapped[Decimal] = mapped_column(
        Numeric(precision=12, scale=2),
        default=Decimal("0"),
        nullable=False,
    )
    status: Mapped[str] = mapped_column(
        String(30),
        default=PaymentStatus.PENDING.value,
        nullable=False,
        index=True,
    )
    due_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    paid_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    payment_method: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    payment_proof_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Commission (agency cut)
    commission_rate: Mapped[Optional[Decimal]] = mapped_column(Numeric(precision=5, scale=2), nullable=True)
    commission_amount: Mapped[Optional[Decimal]] = mapped_column(Numeric(precision=12, scale=2), nullable=True)
    # Pre-computed agency commission, takes priority over rate and amount
    agency_commission: Mapped[Optional[Decimal]] = mapped_column(Numeric(precision=12, scale=2), nullable=True)

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
        back_populates="payments",
    )

    def __repr__(self) -> str:
        return f"<Payment {self.id} event={self.event_id} amount={self.amount} status={self.status}>"


class PendingPayment(Base):
    """Payout owed to a DJ for an event."""

    __tablename__ = "pending_payments"

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
    amount: Mapped[Decimal] = mapped_column(Numeric(precision=12, scale=2), nullable=False)
    due_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    status: Mapped[str] = mapped_column(
        String(30),
        default=PaymentStatus.PENDING.value,
        nullable=False,
    )

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

    event: Mapped["Event"] = relationship("Event")
    dj: Mapped["Profile"] = relationship("Profile")

    def __repr__(self) -> str:
        return f"<PendingPayment {self.id} dj={self.dj_id} amount={self.amount} status={self.status}>"


class PaymentReceipt(Base):
    """Proof of a producer paying one DJ of an event."""

    __tablename__ = "payment_receipts"

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
    )
    receipt_url: Mapped[str] = mapped_column(String(500), nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(precision=12, scale=2), nullable=False)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=datetime.utcnow,
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<PaymentReceipt {self.id} event={self.event_id} dj={self.dj_id} amount={self.amount}>"
