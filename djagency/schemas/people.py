"""Schemas for profiles, DJs and producers."""
from datetime import date, datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator


class ProfileSummary(BaseModel):
    """Compact profile embedded in other responses."""
    id: UUID
    role: str
    full_name: str
    artist_name: Optional[str] = None
    email: str
    avatar_url: Optional[str] = None

    class Config:
        from_attributes = True


class ProfileResponse(ProfileSummary):
    """Full profile."""
    is_admin: bool = False
    phone: Optional[str] = None
    whatsapp: Optional[str] = None
    location: Optional[str] = None
    status: Optional[str] = None
    created_at: datetime
    updated_at: datetime


# DJs

class DJBase(BaseModel):
    """Artist fields shared by create and update."""
    model_config = ConfigDict(extra="forbid")

    artist_name: Optional[str] = Field(None, max_length=255)
    real_name: Optional[str] = Field(None, max_length=255)
    genre: Optional[str] = Field(None, max_length=100)
    bio: Optional[str] = None
    base_price: Optional[Decimal] = Field(None, ge=0)
    phone: Optional[str] = Field(None, max_length=50)
    whatsapp: Optional[str] = Field(None, max_length=50)
    location: Optional[str] = Field(None, max_length=255)
    status: Optional[str] = Field(None, max_length=30)
    rider_requirements: Optional[str] = None
    birth_date: Optional[date] = None
    cpf: Optional[str] = Field(None, max_length=20)
    pix_key: Optional[str] = Field(None, max_length=255)
    instagram_url: Optional[str] = Field(None, max_length=500)
    soundcloud_url: Optional[str] = Field(None, max_length=500)
    youtube_url: Optional[str] = Field(None, max_length=500)
    tiktok_url: Optional[str] = Field(None, max_length=500)
    portfolio_url: Optional[str] = Field(None, max_length=500)


class DJCreate(DJBase):
    """Schema for creating a DJ profile."""
    id: Optional[UUID] = Field(None, description="Auth user id, generated when omitted")
    email: EmailStr
    full_name: str = Field(..., min_length=1, max_length=255)

    @field_validator("full_name")
    @classmethod
    def validate_full_name(cls, v):
        if not v.strip():
            raise ValueError("full_name is required")
        return v.strip()


class DJUpdate(DJBase):
    """Schema for updating a DJ profile (unknown keys are rejected)."""
    email: Optional[EmailStr] = None
    full_name: Optional[str] = Field(None, max_length=255)


class DJResponse(BaseModel):
    """DJ profile response."""
    id: UUID
    email: str
    full_name: str
    artist_name: Optional[str] = None
    real_name: Optional[str] = None
    genre: Optional[str] = None
    bio: Optional[str] = None
    base_price: Optional[Decimal] = None
    rating: Optional[Decimal] = None
    phone: Optional[str] = None
    whatsapp: Optional[str] = None
    location: Optional[str] = None
    status: Optional[str] = None
    avatar_url: Optional[str] = None
    rider_requirements: Optional[str] = None
    birth_date: Optional[date] = None
    pix_key: Optional[str] = None
    instagram_url: Optional[str] = None
    soundcloud_url: Optional[str] = None
    youtube_url: Optional[str] = None
    tiktok_url: Optional[str] = None
    portfolio_url: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


# Producers

class ProducerCompany(BaseModel):
    """Company fields of a producer."""
    company_name: Optional[str] = Field(None, max_length=255)
    fantasy_name: Optional[str] = Field(None, max_length=255)
    cnpj: Optional[str] = Field(None, max_length=20)
    owner_name: Optional[str] = Field(None, max_length=255)
    contact_person: Optional[str] = Field(None, max_length=255)
    contact_phone: Optional[str] = Field(None, max_length=50)
    commercial_phone: Optional[str] = Field(None, max_length=50)
    address: Optional[str] = Field(None, max_length=500)
    city: Optional[str] = Field(None, max_length=100)
    state: Optional[str] = Field(None, max_length=50)
    cep: Optional[str] = Field(None, max_length=12)
    admin_notes: Optional[str] = None


class ProducerCreate(ProducerCompany):
    """Schema for creating a producer (profile + company row)."""
    id: Optional[UUID] = Field(None, description="Auth user id, generated when omitted")
    email: EmailStr
    full_name: str = Field(..., min_length=1, max_length=255)
    phone: Optional[str] = Field(None, max_length=50)
    company_name: str = Field(..., min_length=1, max_length=255)


class ProducerUpdate(ProducerCompany):
    """Schema for updating a producer."""
    email: Optional[EmailStr] = None
    full_name: Optional[str] = Field(None, max_length=255)
    phone: Optional[str] = Field(None, max_length=50)


class ProducerResponse(ProducerCompany):
    """
    Normalized producer record.

    id and profile_id are both the producer's profile id; name, company_name
    and email fall back across the company row and the profile.
    """
    id: UUID
    profile_id: UUID
    name: str = ""
    company_name: str = ""
    email: str = ""
    phone: Optional[str] = None
    avatar_url: Optional[str] = None
    has_company_record: bool = False
    profile: Optional[ProfileSummary] = None


class AvatarResponse(BaseModel):
    """Public URL of an uploaded avatar."""
    url: str
