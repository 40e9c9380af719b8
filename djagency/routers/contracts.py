"""
Contracts Router

Contract generation, editing and signing.
"""

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from djagency.core.auth import get_current_profile, require_admin
from djagency.core.database import get_db
from djagency.models import Event, Profile
from djagency.schemas.contracts import (
    ContractCreate,
    ContractPermissions,
    ContractPreviewRequest,
    ContractPreviewResponse,
    ContractResponse,
    ContractTemplateCreate,
    ContractTemplateResponse,
    ContractUpdate,
)
from djagency.services import contracts as contract_service

router = APIRouter(prefix="/contracts", tags=["contracts"])


@router.get("", response_model=List[ContractResponse])
async def list_contracts(
    event_id: Optional[UUID] = None,
    db: AsyncSession = Depends(get_db),
    profile: Profile = Depends(get_current_profile),
):
    """
    List contracts visible to the current user, newest first.

    Query params:
    - event_id: Filter by event
    """
    contracts = await contract_service.list_contracts_for_profile(db, profile)
    if event_id:
        contracts = [c for c in contracts if c.event_id == event_id]
    return contracts


@router.get("/templates", response_model=List[ContractTemplateResponse])
async def list_templates(
    db: AsyncSession = Depends(get_db),
    _admin: Profile = Depends(require_admin),
):
    """List stored contract templates."""
    return await contract_service.list_templates(db)


@router.post("/templates", response_model=ContractTemplateResponse, status_code=status.HTTP_201_CREATED)
async def create_template(
    template_data: ContractTemplateCreate,
    db: AsyncSession = Depends(get_db),
    _admin: Profile = Depends(require_admin),
):
    """Store a contract template using {{placeholder}} variables."""
    return await contract_service.create_template(
        db, template_data.name, template_data.content, template_data.template_type
    )


@router.post("/preview", response_model=ContractPreviewResponse)
async def preview_contract(
    request: ContractPreviewRequest,
    db: AsyncSession = Depends(get_db),
    _profile: Profile = Depends(get_current_profile),
):
    """Render a contract for an event and DJ without storing it."""
    event = await db.get(Event, request.event_id)
    if event is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Event {request.event_id} not found")
    content = await contract_service.render_contract_for(
        db, event, request.dj_id, template_id=request.template_id
    )
    return {"content": content}


@router.get("/{contract_id}", response_model=ContractResponse)
async def get_contract(
    contract_id: UUID,
    db: AsyncSession = Depends(get_db),
    profile: Profile = Depends(get_current_profile),
):
    """Get a contract."""
    contract = await contract_service.get_contract(db, contract_id)
    if not contract_service.can_view_contract(contract, profile):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Permission denied")
    return contract


@router.get("/{contract_id}/permissions", response_model=ContractPermissions)
async def get_permissions(
    contract_id: UUID,
    db: AsyncSession = Depends(get_db),
    profile: Profile = Depends(get_current_profile),
):
    """What the current user may do with the contract."""
    contract = await contract_service.get_contract(db, contract_id)
    return {
        "can_edit": contract_service.can_edit_contract(contract, profile),
        "can_sign": contract_service.can_sign_contract(contract, profile),
    }


@router.post("", response_model=ContractResponse, status_code=status.HTTP_201_CREATED)
async def create_contract(
    contract_data: ContractCreate,
    db: AsyncSession = Depends(get_db),
    _admin: Profile = Depends(require_admin),
):
    """Create the contract for a DJ at an event (409 if one exists)."""
    return await contract_service.create_contract(
        db,
        contract_data.event_id,
        contract_data.dj_id,
        cache_value=contract_data.cache_value,
        content=contract_data.contract_content,
        template_id=contract_data.template_id,
    )


@router.put("/{contract_id}", response_model=ContractResponse)
async def update_contract(
    contract_id: UUID,
    contract_data: ContractUpdate,
    db: AsyncSession = Depends(get_db),
    profile: Profile = Depends(get_current_profile),
):
    """Edit an unsigned contract (admin or the event producer)."""
    return await contract_service.update_contract(
        db, contract_id, profile, contract_data.model_dump(exclude_unset=True)
    )


@router.post("/{contract_id}/sign", response_model=ContractResponse)
async def sign_contract(
    contract_id: UUID,
    db: AsyncSession = Depends(get_db),
    profile: Profile = Depends(get_current_profile),
):
    """Sign a contract as the contracted DJ."""
    return await contract_service.sign_contract(db, contract_id, profile)


@router.delete("/{contract_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_contract(
    contract_id: UUID,
    db: AsyncSession = Depends(get_db),
    _admin: Profile = Depends(require_admin),
):
    """Delete a contract."""
    await contract_service.delete_contract(db, contract_id)
