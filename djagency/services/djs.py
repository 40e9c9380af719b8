"""DJ roster: profiles with role 'dj'."""
import logging
import uuid
from typing import Any, Dict, List, Optional

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from djagency.core.config import settings
from djagency.core.errors import DomainError, ErrorKind, NotFoundError
from djagency.core.retry import read_retry
from djagency.models import MediaFile, Profile, ProfileRole
from djagency.services.storage import StorageService, avatar_path

logger = logging.getLogger(__name__)

# Columns a DJ update may touch
DJ_UPDATABLE_FIELDS = frozenset({
    "email",
    "full_name",
    "artist_name",
    "real_name",
    "genre",
    "bio",
    "base_price",
    "phone",
    "whatsapp",
    "location",
    "status",
    "rider_requirements",
    "birth_date",
    "cpf",
    "pix_key",
    "instagram_url",
    "soundcloud_url",
    "youtube_url",
    "tiktok_url",
    "portfolio_url",
})


@read_retry()
async def list_djs(db: AsyncSession) -> List[Profile]:
    """DJs ordered by artist name (full name when unset), case-insensitive."""
    result = await db.execute(
        select(Profile)
        .where(Profile.role == ProfileRole.DJ.value)
        .order_by(func.lower(func.coalesce(Profile.artist_name, Profile.full_name)))
    )
    return list(result.scalars().all())


@read_retry()
async def get_dj(db: AsyncSession, dj_id: uuid.UUID) -> Profile:
    result = await db.execute(
        select(Profile).where(Profile.id == dj_id).where(Profile.role == ProfileRole.DJ.value)
    )
    dj = result.scalar_one_or_none()
    if dj is None:
        raise NotFoundError("DJ", dj_id)
    return dj


async def create_dj(db: AsyncSession, data: Dict[str, Any]) -> Profile:
    """Create a DJ profile. The id is the auth user id when given."""
    dj_id = data.get("id") or uuid.uuid4()
    if await db.get(Profile, dj_id) is not None:
        raise DomainError(kind=ErrorKind.CONFLICT, message=f"Profile {dj_id} already exists")

    fields = {key: value for key, value in data.items() if key in DJ_UPDATABLE_FIELDS}
    dj = Profile(id=dj_id, role=ProfileRole.DJ.value, **fields)
    db.add(dj)
    await db.flush()

    logger.info(f"Created DJ {dj.id} ({dj.display_name})")
    return dj


async def update_dj(db: AsyncSession, dj_id: uuid.UUID, updates: Dict[str, Any]) -> Profile:
    """Apply known profile columns; anything else is ignored."""
    dj = await get_dj(db, dj_id)
    applied = []
    for key, value in updates.items():
        if key in DJ_UPDATABLE_FIELDS:
            setattr(dj, key, value)
            applied.append(key)

    await db.flush()
    logger.info(f"Updated DJ {dj_id}: {sorted(applied)}")
    return dj


async def delete_dj(db: AsyncSession, dj_id: uuid.UUID) -> None:
    """Delete a DJ profile and its media records."""
    await get_dj(db, dj_id)
    await db.execute(delete(MediaFile).where(MediaFile.dj_id == dj_id))
    await db.execute(delete(Profile).where(Profile.id == dj_id))
    logger.info(f"Deleted DJ {dj_id}")


async def upload_dj_avatar(
    db: AsyncSession,
    storage: StorageService,
    dj_id: uuid.UUID,
    filename: Optional[str],
    content: bytes,
    content_type: Optional[str] = None,
) -> str:
    """Upload a DJ avatar, store its URL on the profile and return it."""
    dj = await get_dj(db, dj_id)
    bucket = settings.AVATAR_BUCKET_DJ
    path = f"{bucket}/{avatar_path('dj', dj_id, filename)}"
    url = storage.upload(bucket, path, content, content_type)

    try:
        dj.avatar_url = url
        await db.flush()
    except Exception:
        storage.discard(bucket, path)
        raise
    return url
