"""Schemas for payments, DJ receipts and pending DJ payouts."""
from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from djagency.schemas.events import EventDJResponse
from djagency.schemas.people import ProfileSummary


class PaymentEventSummary(BaseModel):
    """Event nested in a payment, with producer and DJ assignments."""
    id: UUID
    event_name: str
    event_date: date
    cache_value: Decimal
    commission_rate: Optional[Decimal] = None
    commission_amount: Optional[Decimal] = None
    producer_id: Optional[UUID] = None
    dj_id: Optional[UUID] = None
    producer: Optional[ProfileSummary] = None
    djs: List[EventDJResponse] = Field(default_factory=list, validation_alias="dj_links")

    class Config:
        from_attributes = True
        populate_by_name = True


class PaymentResponse(BaseModel):
    """Payment with its event."""
    id: UUID
    event_id: UUID
    producer_id: Optional[UUID] = None
    amount: Decimal
    status: str
    due_date: Optional[date] = None
    paid_at: Optional[datetime] = None
    payment_method: Optional[str] = None
    payment_proof_url: Optional[str] = None
    notes: Optional[str] = None
    commission_rate: Optional[Decimal] = None
    commission_amount: Optional[Decimal] = None
    agency_commission: Optional[Decimal] = None
    created_at: datetime
    updated_at: datetime

    event: Optional[PaymentEventSummary] = None

    class Config:
        from_attributes = True


class PaymentUpdate(BaseModel):
    """Editable payment fields. Status changes go through the status endpoint."""
    amount: Optional[Decimal] = Field(None, ge=0)
    due_date: Optional[date] = None
    notes: Optional[str] = None
    payment_method: Optional[str] = Field(None, max_length=50)
    commission_rate: Optional[Decimal] = Field(None, ge=0, le=100)
    commission_amount: Optional[Decimal] = Field(None, ge=0)
    agency_commission: Optional[Decimal] = Field(None, ge=0)


class PaymentStatusUpdate(BaseModel):
    """Requested status; legacy Portuguese values are accepted."""
    status: str = Field(..., min_length=1)


class PaymentConfirm(BaseModel):
    """Admin confirmation of a payment."""
    paid_at: Optional[datetime] = None
    payment_method: Optional[str] = Field(None, max_length=50)
    payment_proof_url: Optional[str] = Field(None, max_length=500)


class PaymentReceiptResponse(BaseModel):
    """Receipt of a producer paying one DJ."""
    id: UUID
    event_id: UUID
    dj_id: UUID
    producer_id: Optional[UUID] = None
    receipt_url: str
    amount: Decimal
    notes: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class PendingPaymentCreate(BaseModel):
    """Schema for registering a payout owed to a DJ."""
    event_id: UUID
    dj_id: UUID
    amount: Decimal = Field(..., ge=0)
    due_date: Optional[date] = None


class PendingPaymentResponse(BaseModel):
    """Payout owed to a DJ."""
    id: UUID
    event_id: UUID
    dj_id: UUID
    amount: Decimal
    due_date: Optional[date] = None
    status: str
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class OverdueResult(BaseModel):
    """Number of payments moved to overdue."""
    updated: int
