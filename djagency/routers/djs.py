"""
DJs Router

DJ roster management. Writes are admin only, except that a DJ may edit
their own profile and avatar.
"""

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from djagency.core.auth import get_current_profile, require_admin
from djagency.core.database import get_db
from djagency.models import Profile
from djagency.schemas.people import AvatarResponse, DJCreate, DJResponse, DJUpdate
from djagency.services import djs as dj_service
from djagency.services.storage import StorageService, get_storage_service

router = APIRouter(prefix="/djs", tags=["djs"])


def _ensure_self_or_admin(profile: Profile, dj_id: UUID) -> None:
    if not profile.is_admin_user and profile.id != dj_id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Permission denied")


@router.get("", response_model=List[DJResponse])
async def list_djs(
    db: AsyncSession = Depends(get_db),
    _profile: Profile = Depends(get_current_profile),
):
    """List DJs ordered by artist name."""
    return await dj_service.list_djs(db)


@router.get("/{dj_id}", response_model=DJResponse)
async def get_dj(
    dj_id: UUID,
    db: AsyncSession = Depends(get_db),
    _profile: Profile = Depends(get_current_profile),
):
    """Get a DJ profile."""
    return await dj_service.get_dj(db, dj_id)


@router.post("", response_model=DJResponse, status_code=status.HTTP_201_CREATED)
async def create_dj(
    dj_data: DJCreate,
    db: AsyncSession = Depends(get_db),
    _admin: Profile = Depends(require_admin),
):
    """Create a DJ profile."""
    return await dj_service.create_dj(db, dj_data.model_dump(exclude_none=True))


@router.put("/{dj_id}", response_model=DJResponse)
async def update_dj(
    dj_id: UUID,
    dj_data: DJUpdate,
    db: AsyncSession = Depends(get_db),
    profile: Profile = Depends(get_current_profile),
):
    """Update a DJ profile. Unknown fields are rejected."""
    _ensure_self_or_admin(profile, dj_id)
    return await dj_service.update_dj(db, dj_id, dj_data.model_dump(exclude_unset=True))


@router.delete("/{dj_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_dj(
    dj_id: UUID,
    db: AsyncSession = Depends(get_db),
    _admin: Profile = Depends(require_admin),
):
    """Delete a DJ profile and its media records."""
    await dj_service.delete_dj(db, dj_id)


@router.post("/{dj_id}/avatar", response_model=AvatarResponse)
async def upload_avatar(
    dj_id: UUID,
    file: UploadFile = File(...),
    db: AsyncSession = Depends(get_db),
    profile: Profile = Depends(get_current_profile),
    storage: StorageService = Depends(get_storage_service),
):
    """Upload a DJ avatar and return its public URL."""
    _ensure_self_or_admin(profile, dj_id)
    content = await file.read()
    url = await dj_service.upload_dj_avatar(db, storage, dj_id, file.filename, content, file.content_type)
    return {"url": url}
