"""
Producer service.

A producer is a profile with role 'producer', optionally paired with a
company row in the producers table. Producers created before the company
table existed only have the profile; listing falls back to those.
"""
import logging
import uuid
from typing import Any, Dict, List, Optional

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from djagency.core.config import settings
from djagency.core.errors import DomainError, ErrorKind, NotFoundError
from djagency.core.retry import read_retry
from djagency.models import Producer, Profile, ProfileRole
from djagency.schemas.people import ProducerResponse, ProfileSummary
from djagency.services.storage import StorageService, avatar_path

logger = logging.getLogger(__name__)

COMPANY_FIELDS = (
    "company_name",
    "fantasy_name",
    "cnpj",
    "owner_name",
    "contact_person",
    "contact_phone",
    "commercial_phone",
    "address",
    "city",
    "state",
    "cep",
    "admin_notes",
)


def _first_text(*values: Optional[str]) -> str:
    for value in values:
        if value is not None and str(value).strip():
            return str(value).strip()
    return ""


def normalize_producer(profile: Profile, company: Optional[Producer] = None) -> ProducerResponse:
    """
    Merge a producer profile and its company row into one record.

    name:         company name field > company name > profile full name > email
    company_name: company name > company name field > profile full name
    email:        company email > profile email
    """
    company_fields = {}
    if company is not None:
        company_fields = {field: getattr(company, field) for field in COMPANY_FIELDS}

    name = _first_text(
        company.name if company else None,
        company.company_name if company else None,
        profile.full_name,
        company.email if company else None,
        profile.email,
    )
    company_name = _first_text(
        company.company_name if company else None,
        company.name if company else None,
        profile.full_name,
    )
    email = _first_text(company.email if company else None, profile.email)

    company_fields.update(
        id=profile.id,
        profile_id=profile.id,
        name=name,
        company_name=company_name,
        email=email,
        phone=profile.phone or (company.contact_phone if company else None),
        avatar_url=(company.avatar_url if company else None) or profile.avatar_url,
        has_company_record=company is not None,
        profile=ProfileSummary.model_validate(profile),
    )
    return ProducerResponse(**company_fields)


def producer_sort_label(record: ProducerResponse) -> str:
    return _first_text(record.name, record.company_name, record.email).casefold()


@read_retry()
async def list_producers(db: AsyncSession) -> List[ProducerResponse]:
    """All producers, with or without company rows, sorted by label."""
    result = await db.execute(
        select(Profile)
        .options(selectinload(Profile.producer))
        .where(Profile.role == ProfileRole.PRODUCER.value)
    )
    profiles = result.scalars().all()

    if not any(profile.producer is not None for profile in profiles):
        logger.warning("No producer company records found, listing producer profiles only")

    records = [normalize_producer(profile, profile.producer) for profile in profiles]
    records.sort(key=producer_sort_label)
    return records


async def _load_producer_profile(db: AsyncSession, producer_id: uuid.UUID) -> Profile:
    result = await db.execute(
        select(Profile)
        .options(selectinload(Profile.producer))
        .where(Profile.id == producer_id)
        .where(Profile.role == ProfileRole.PRODUCER.value)
        .execution_options(populate_existing=True)
    )
    profile = result.scalar_one_or_none()
    if profile is None:
        raise NotFoundError("Producer", producer_id)
    return profile


@read_retry()
async def get_producer(db: AsyncSession, producer_id: uuid.UUID) -> ProducerResponse:
    profile = await _load_producer_profile(db, producer_id)
    return normalize_producer(profile, profile.producer)


async def create_producer(db: AsyncSession, data: Dict[str, Any]) -> ProducerResponse:
    """Create the producer profile and its company row."""
    profile_id = data.get("id") or uuid.uuid4()
    if await db.get(Profile, profile_id) is not None:
        raise DomainError(kind=ErrorKind.CONFLICT, message=f"Profile {profile_id} already exists")

    profile = Profile(
        id=profile_id,
        role=ProfileRole.PRODUCER.value,
        email=data["email"],
        full_name=data["full_name"],
        phone=data.get("phone"),
    )
    db.add(profile)
    await db.flush()

    company = Producer(
        profile_id=profile_id,
        name=data.get("fantasy_name") or data["company_name"],
        email=data["email"],
        **{field: data.get(field) for field in COMPANY_FIELDS},
    )
    db.add(company)
    await db.flush()

    logger.info(f"Created producer {profile_id} ({company.company_name})")
    return await get_producer(db, profile_id)


async def update_producer(db: AsyncSession, producer_id: uuid.UUID, updates: Dict[str, Any]) -> ProducerResponse:
    """Update profile fields and company fields, creating the company row if missing."""
    profile = await _load_producer_profile(db, producer_id)

    for key in ("email", "full_name", "phone"):
        if updates.get(key) is not None:
            setattr(profile, key, updates[key])

    company_updates = {key: value for key, value in updates.items() if key in COMPANY_FIELDS}
    company = profile.producer
    if company is None and company_updates:
        company = Producer(
            profile_id=profile.id,
            company_name=company_updates.get("company_name") or profile.full_name,
            email=profile.email,
        )
        db.add(company)
    if company is not None:
        for key, value in company_updates.items():
            if key == "company_name" and not value:
                continue
            setattr(company, key, value)
        if updates.get("email") is not None:
            company.email = updates["email"]

    await db.flush()
    logger.info(f"Updated producer {producer_id}")
    return await get_producer(db, producer_id)


async def delete_producer(db: AsyncSession, producer_id: uuid.UUID) -> None:
    """Delete the company row, then the profile."""
    await _load_producer_profile(db, producer_id)
    await db.execute(delete(Producer).where(Producer.profile_id == producer_id))
    await db.execute(delete(Profile).where(Profile.id == producer_id))
    logger.info(f"Deleted producer {producer_id}")


async def upload_producer_avatar(
    db: AsyncSession,
    storage: StorageService,
    producer_id: uuid.UUID,
    filename: Optional[str],
    content: bytes,
    content_type: Optional[str] = None,
) -> str:
    """Upload a producer avatar, store its URL and return it."""
    profile = await _load_producer_profile(db, producer_id)
    bucket = settings.AVATAR_BUCKET_PRODUCER
    path = f"{bucket}/{avatar_path('producer', producer_id, filename)}"
    url = storage.upload(bucket, path, content, content_type)

    try:
        profile.avatar_url = url
        if profile.producer is not None:
            profile.producer.avatar_url = url
        await db.flush()
    except Exception:
        storage.discard(bucket, path)
        raise
    return url
