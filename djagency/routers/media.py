"""
Media Router

Press kits, photos, audio and video attached to DJs.
"""

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from djagency.core.auth import get_current_profile
from djagency.core.database import get_db
from djagency.models import Profile
from djagency.schemas.media import MediaFileResponse
from djagency.services import media as media_service
from djagency.services.storage import StorageService, get_storage_service

router = APIRouter(prefix="/djs/{dj_id}/media", tags=["media"])


@router.get("", response_model=List[MediaFileResponse])
async def list_media(
    dj_id: UUID,
    category: Optional[str] = None,
    db: AsyncSession = Depends(get_db),
    _profile: Profile = Depends(get_current_profile),
):
    """List a DJ's media, newest first."""
    return await media_service.list_media(db, dj_id, category)


@router.post("", response_model=MediaFileResponse, status_code=status.HTTP_201_CREATED)
async def upload_media(
    dj_id: UUID,
    file: UploadFile = File(...),
    category: Optional[str] = Form(None),
    db: AsyncSession = Depends(get_db),
    profile: Profile = Depends(get_current_profile),
    storage: StorageService = Depends(get_storage_service),
):
    """Upload a file for a DJ (the DJ or an admin)."""
    content = await file.read()
    return await media_service.upload_media(
        db, storage, dj_id, profile, file.filename, content, file.content_type, category
    )


@router.delete("/{media_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_media(
    dj_id: UUID,
    media_id: UUID,
    db: AsyncSession = Depends(get_db),
    profile: Profile = Depends(get_current_profile),
    storage: StorageService = Depends(get_storage_service),
):
    """Delete a media file and its stored object."""
    await media_service.delete_media(db, storage, media_id, profile)
