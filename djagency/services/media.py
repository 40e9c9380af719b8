"""DJ media files (press kits, photos, audio, video)."""
import logging
import uuid
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from djagency.core.config import settings
from djagency.core.errors import NotFoundError, PermissionDeniedError, ValidationError
from djagency.core.retry import read_retry
from djagency.models import MediaCategory, MediaFile, Profile
from djagency.services.storage import StorageService, media_path

logger = logging.getLogger(__name__)


def guess_category(mime_type: Optional[str]) -> MediaCategory:
    """Category from a MIME type when the client does not give one."""
    mime = (mime_type or "").lower()
    if mime.startswith("image/"):
        return MediaCategory.PHOTO
    if mime.startswith("audio/"):
        return MediaCategory.AUDIO
    if mime.startswith("video/"):
        return MediaCategory.VIDEO
    if mime in ("application/pdf", "application/msword") or mime.startswith("application/vnd."):
        return MediaCategory.DOCUMENT
    return MediaCategory.OTHER


def _ensure_owner_or_admin(profile: Profile, dj_id: uuid.UUID) -> None:
    if not profile.is_admin_user and profile.id != dj_id:
        raise PermissionDeniedError("Only the DJ or an admin can manage this media")


@read_retry()
async def list_media(db: AsyncSession, dj_id: uuid.UUID, category: Optional[str] = None) -> List[MediaFile]:
    query = select(MediaFile).where(MediaFile.dj_id == dj_id)
    if category:
        query = query.where(MediaFile.file_type == category)
    result = await db.execute(query.order_by(MediaFile.created_at.desc()))
    return list(result.scalars().all())


async def upload_media(
    db: AsyncSession,
    storage: StorageService,
    dj_id: uuid.UUID,
    profile: Profile,
    filename: Optional[str],
    content: bytes,
    content_type: Optional[str] = None,
    category: Optional[str] = None,
) -> MediaFile:
    """Upload a file for a DJ and record it."""
    _ensure_owner_or_admin(profile, dj_id)
    if await db.get(Profile, dj_id) is None:
        raise NotFoundError("DJ", dj_id)

    if category:
        try:
            resolved = MediaCategory(category)
        except ValueError:
            raise ValidationError(f"Unknown media category: {category!r}")
    else:
        resolved = guess_category(content_type)

    path = media_path(dj_id, resolved.value, filename)
    url = storage.upload(settings.DJ_MEDIA_BUCKET, path, content, content_type)

    try:
        media = MediaFile(
            dj_id=dj_id,
            file_name=filename or path.rsplit("/", 1)[-1],
            file_url=url,
            file_type=resolved.value,
            mime_type=content_type,
            file_size=len(content),
            storage_path=path,
        )
        db.add(media)
        await db.flush()
    except Exception:
        storage.discard(settings.DJ_MEDIA_BUCKET, path)
        raise

    logger.info(f"Stored {resolved.value} {media.id} for DJ {dj_id} ({len(content)} bytes)")
    return media


async def delete_media(
    db: AsyncSession,
    storage: StorageService,
    media_id: uuid.UUID,
    profile: Profile,
) -> None:
    """Delete a media record, then its stored object."""
    media = await db.get(MediaFile, media_id)
    if media is None:
        raise NotFoundError("Media file", media_id)
    _ensure_owner_or_admin(profile, media.dj_id)

    await db.delete(media)
    await db.flush()
    if media.storage_path:
        storage.remove(settings.DJ_MEDIA_BUCKET, [media.storage_path])
    logger.info(f"Deleted media {media_id} of DJ {media.dj_id}")
