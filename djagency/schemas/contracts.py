"""Schemas for contracts and contract templates."""
from datetime import date, datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field

from djagency.schemas.people import ProfileSummary


class ContractCreate(BaseModel):
    """Schema for creating a contract for one DJ at one event."""
    event_id: UUID
    dj_id: UUID
    cache_value: Optional[Decimal] = Field(None, ge=0, description="Defaults to the DJ fee, then the event cache")
    contract_content: Optional[str] = Field(None, description="Rendered from the template when omitted")
    template_id: Optional[UUID] = None


class ContractUpdate(BaseModel):
    """Editable fields of an unsigned contract."""
    contract_content: Optional[str] = None
    cache_value: Optional[Decimal] = Field(None, ge=0)
    contract_url: Optional[str] = Field(None, max_length=500)


class ContractEventSummary(BaseModel):
    """Event fields shown with a contract."""
    id: UUID
    event_name: str
    event_date: date
    location: Optional[str] = None
    city: Optional[str] = None

    class Config:
        from_attributes = True


class ContractResponse(BaseModel):
    """Contract with event, DJ and producer."""
    id: UUID
    event_id: UUID
    dj_id: UUID
    producer_id: Optional[UUID] = None
    cache_value: Decimal
    contract_content: Optional[str] = None
    contract_url: Optional[str] = None
    signed: bool
    signed_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    event: Optional[ContractEventSummary] = None
    dj: Optional[ProfileSummary] = None
    producer: Optional[ProfileSummary] = None

    class Config:
        from_attributes = True


class ContractPermissions(BaseModel):
    """What the current profile may do with a contract."""
    can_edit: bool
    can_sign: bool


class ContractTemplateCreate(BaseModel):
    """Schema for storing a contract template."""
    name: str = Field(..., min_length=1, max_length=255)
    template_type: str = Field("dj_service", max_length=50)
    content: str = Field(..., min_length=1)


class ContractTemplateResponse(BaseModel):
    """Stored contract template."""
    id: UUID
    name: str
    template_type: str
    content: str
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class ContractPreviewRequest(BaseModel):
    """Render a template for an event and DJ without storing it."""
    event_id: UUID
    dj_id: UUID
    template_id: Optional[UUID] = None


class ContractPreviewResponse(BaseModel):
    """Rendered contract text."""
    content: str
