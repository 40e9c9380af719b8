"""Schemas for events and DJ assignments."""
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional, Union
from uuid import UUID

from pydantic import BaseModel, Field

from djagency.schemas.people import ProfileSummary

NumberInput = Optional[Union[Decimal, str]]


class EventPayload(BaseModel):
    """
    Form submission for creating or editing an event.

    Numeric fields accept numbers or locale-formatted strings ("1.234,56");
    they are parsed leniently by the event service. Legacy aliases used by
    older clients (title/name, date, cache, djIds...) are accepted too.
    Unknown keys are ignored.
    """
    event_name: Optional[str] = None
    title: Optional[str] = None
    name: Optional[str] = None
    event_date: Optional[str] = Field(None, description="ISO date, a time part is ignored")
    date: Optional[str] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    status: Optional[str] = None
    description: Optional[str] = None

    venue: Optional[str] = None
    location: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    address: Optional[str] = None

    cache_value: NumberInput = None
    cache: NumberInput = None
    commission_rate: NumberInput = None
    commission_percentage: NumberInput = None
    commission_amount: NumberInput = None
    payment_status: Optional[str] = None
    payment_proof_url: Optional[str] = None

    producer_id: Optional[str] = None
    dj_id: Optional[str] = Field(None, description="Primary DJ, placed first in dj_ids")
    dj_ids: Optional[List[Any]] = None
    djIds: Optional[List[Any]] = None
    dj_fee_map: Optional[Dict[str, Any]] = Field(None, description="DJ id -> individual fee")

    expected_attendees: NumberInput = None
    special_requirements: Optional[str] = None
    requirements: Optional[str] = None
    equipment_provided: Optional[str] = None
    shared_with_manager: Optional[bool] = None


class EventDJResponse(BaseModel):
    """A DJ assigned to an event."""
    id: UUID
    dj_id: UUID
    fee: Optional[Decimal] = None
    payment_status: str
    payment_receipt_url: Optional[str] = None
    dj: Optional[ProfileSummary] = None

    class Config:
        from_attributes = True


class EventPaymentSummary(BaseModel):
    """Payment attached to an event."""
    id: UUID
    amount: Decimal
    status: str
    due_date: Optional[date] = None
    paid_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class EventResponse(BaseModel):
    """Event with producer, DJs and payment."""
    id: UUID
    event_name: str
    event_date: date
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    status: Optional[str] = None
    description: Optional[str] = None
    venue: Optional[str] = None
    location: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    address: Optional[str] = None
    cache_value: Decimal
    commission_rate: Optional[Decimal] = None
    commission_amount: Optional[Decimal] = None
    payment_status: Optional[str] = None
    payment_proof_url: Optional[str] = None
    producer_id: Optional[UUID] = None
    dj_id: Optional[UUID] = None
    created_by: Optional[UUID] = None
    expected_attendees: Optional[int] = None
    special_requirements: Optional[str] = None
    equipment_provided: Optional[str] = None
    shared_with_manager: bool = False
    created_at: datetime
    updated_at: datetime

    producer: Optional[ProfileSummary] = None
    djs: List[EventDJResponse] = Field(default_factory=list, validation_alias="dj_links")
    payments: List[EventPaymentSummary] = Field(default_factory=list)

    class Config:
        from_attributes = True
        populate_by_name = True


class EventDeleteResponse(BaseModel):
    """Result of deleting an event."""
    success: bool
    deleted_id: UUID
