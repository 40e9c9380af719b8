"""
Events Router

Event booking with DJ assignment, per-DJ fees and the event payment.
"""

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from djagency.core.auth import get_current_profile
from djagency.core.database import get_db
from djagency.models import Profile, ProfileRole
from djagency.schemas.events import EventDeleteResponse, EventPayload, EventResponse
from djagency.services import events as event_service

router = APIRouter(prefix="/events", tags=["events"])


def _ensure_can_write(profile: Profile) -> None:
    if not (profile.is_admin_user or profile.role == ProfileRole.PRODUCER.value):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only admins and producers can manage events",
        )


@router.get("", response_model=List[EventResponse])
async def list_events(
    db: AsyncSession = Depends(get_db),
    profile: Profile = Depends(get_current_profile),
):
    """
    List events visible to the current user, newest first.

    - admin: all events
    - producer: own events
    - dj: events the DJ plays
    """
    return await event_service.list_events_for_profile(db, profile)


@router.get("/dj/{dj_id}", response_model=List[EventResponse])
async def list_events_for_dj(
    dj_id: UUID,
    db: AsyncSession = Depends(get_db),
    profile: Profile = Depends(get_current_profile),
):
    """Events where the DJ is primary or assigned."""
    if not profile.is_admin_user and profile.id != dj_id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Permission denied")
    return await event_service.list_events_for_dj(db, dj_id)


@router.get("/producer/{producer_id}", response_model=List[EventResponse])
async def list_events_for_producer(
    producer_id: UUID,
    db: AsyncSession = Depends(get_db),
    profile: Profile = Depends(get_current_profile),
):
    """Events organized by a producer."""
    if not profile.is_admin_user and profile.id != producer_id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Permission denied")
    return await event_service.list_events_for_producer(db, producer_id)


@router.get("/{event_id}", response_model=EventResponse)
async def get_event(
    event_id: UUID,
    db: AsyncSession = Depends(get_db),
    _profile: Profile = Depends(get_current_profile),
):
    """Get an event with its producer, DJs and payment."""
    return await event_service.get_event(db, event_id)


@router.post("", response_model=EventResponse, status_code=status.HTTP_201_CREATED)
async def create_event(
    payload: EventPayload,
    db: AsyncSession = Depends(get_db),
    profile: Profile = Depends(get_current_profile),
):
    """
    Create an event.

    Also creates one DJ row per assigned DJ (dj_ids, primary dj_id first)
    with the fee from dj_fee_map, the pending payment, the DJ-producer
    statistics and one contract per DJ. Producers always book for themselves.
    """
    _ensure_can_write(profile)
    if not profile.is_admin_user:
        payload.producer_id = str(profile.id)
    return await event_service.create_event(db, payload, created_by=profile.id)


@router.put("/{event_id}", response_model=EventResponse)
async def update_event(
    event_id: UUID,
    payload: EventPayload,
    db: AsyncSession = Depends(get_db),
    profile: Profile = Depends(get_current_profile),
):
    """Update an event from the full form and re-sync its DJs and payment."""
    _ensure_can_write(profile)
    if not profile.is_admin_user:
        current = await event_service.get_event(db, event_id)
        if current.producer_id != profile.id and current.created_by != profile.id:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Permission denied")
        payload.producer_id = str(profile.id)
    return await event_service.update_event(db, event_id, payload)


@router.delete("/{event_id}", response_model=EventDeleteResponse)
async def delete_event(
    event_id: UUID,
    db: AsyncSession = Depends(get_db),
    profile: Profile = Depends(get_current_profile),
):
    """Delete an event (admin or creator) with its DJs, contracts and payments."""
    await event_service.delete_event(db, event_id, profile)
    return {"success": True, "deleted_id": event_id}
