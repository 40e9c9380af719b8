"""
Producers Router

Producer profiles and their company data (admin only).
"""

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, File, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from djagency.core.auth import require_admin
from djagency.core.database import get_db
from djagency.models import Profile
from djagency.schemas.people import AvatarResponse, ProducerCreate, ProducerResponse, ProducerUpdate
from djagency.services import producers as producer_service
from djagency.services.storage import StorageService, get_storage_service

router = APIRouter(prefix="/producers", tags=["producers"])


@router.get("", response_model=List[ProducerResponse])
async def list_producers(
    db: AsyncSession = Depends(get_db),
    _admin: Profile = Depends(require_admin),
):
    """List producers sorted by name, including profiles without company data."""
    return await producer_service.list_producers(db)


@router.get("/{producer_id}", response_model=ProducerResponse)
async def get_producer(
    producer_id: UUID,
    db: AsyncSession = Depends(get_db),
    _admin: Profile = Depends(require_admin),
):
    """Get a producer by profile id."""
    return await producer_service.get_producer(db, producer_id)


@router.post("", response_model=ProducerResponse, status_code=status.HTTP_201_CREATED)
async def create_producer(
    producer_data: ProducerCreate,
    db: AsyncSession = Depends(get_db),
    _admin: Profile = Depends(require_admin),
):
    """Create a producer profile with its company record."""
    return await producer_service.create_producer(db, producer_data.model_dump())


@router.put("/{producer_id}", response_model=ProducerResponse)
async def update_producer(
    producer_id: UUID,
    producer_data: ProducerUpdate,
    db: AsyncSession = Depends(get_db),
    _admin: Profile = Depends(require_admin),
):
    """Update a producer's profile and company data."""
    return await producer_service.update_producer(db, producer_id, producer_data.model_dump(exclude_unset=True))


@router.delete("/{producer_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_producer(
    producer_id: UUID,
    db: AsyncSession = Depends(get_db),
    _admin: Profile = Depends(require_admin),
):
    """Delete a producer (company record first, then the profile)."""
    await producer_service.delete_producer(db, producer_id)


@router.post("/{producer_id}/avatar", response_model=AvatarResponse)
async def upload_avatar(
    producer_id: UUID,
    file: UploadFile = File(...),
    db: AsyncSession = Depends(get_db),
    _admin: Profile = Depends(require_admin),
    storage: StorageService = Depends(get_storage_service),
):
    """Upload a producer avatar and return its public URL."""
    content = await file.read()
    url = await producer_service.upload_producer_avatar(
        db, storage, producer_id, file.filename, content, file.content_type
    )
    return {"url": url}
