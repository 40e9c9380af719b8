"""
Payments Router

Event payments, proofs, per-DJ receipts and pending DJ payouts.
"""

from datetime import date
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from djagency.core.auth import get_current_profile, require_admin
from djagency.core.database import get_db
from djagency.models import Profile
from djagency.schemas.payments import (
    OverdueResult,
    PaymentConfirm,
    PaymentReceiptResponse,
    PaymentResponse,
    PaymentStatusUpdate,
    PaymentUpdate,
    PendingPaymentCreate,
    PendingPaymentResponse,
)
from djagency.services import payments as payment_service
from djagency.services.storage import StorageService, get_storage_service

router = APIRouter(prefix="/payments", tags=["payments"])


def _ensure_self_or_admin(profile: Profile, profile_id: UUID) -> None:
    if not profile.is_admin_user and profile.id != profile_id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Permission denied")


@router.get("", response_model=List[PaymentResponse])
async def list_payments(
    status_filter: Optional[str] = None,
    db: AsyncSession = Depends(get_db),
    profile: Profile = Depends(get_current_profile),
):
    """
    List payments visible to the current user, newest first.

    Query params:
    - status_filter: Only payments in this status (admins)
    """
    if profile.is_admin_user:
        return await payment_service.list_payments(db, status=status_filter)
    return await payment_service.list_payments_for_profile(db, profile)


@router.get("/dj/{dj_id}", response_model=List[PaymentResponse])
async def list_payments_by_dj(
    dj_id: UUID,
    db: AsyncSession = Depends(get_db),
    profile: Profile = Depends(get_current_profile),
):
    """Payments of the events a DJ plays."""
    _ensure_self_or_admin(profile, dj_id)
    return await payment_service.list_payments_by_dj(db, dj_id)


@router.get("/producer/{producer_id}", response_model=List[PaymentResponse])
async def list_payments_by_producer(
    producer_id: UUID,
    db: AsyncSession = Depends(get_db),
    profile: Profile = Depends(get_current_profile),
):
    """Payments owed by a producer."""
    _ensure_self_or_admin(profile, producer_id)
    return await payment_service.list_payments_by_producer(db, producer_id)


@router.post("/mark-overdue", response_model=OverdueResult)
async def mark_overdue(
    today: Optional[date] = None,
    db: AsyncSession = Depends(get_db),
    _admin: Profile = Depends(require_admin),
):
    """Move pending payments past their due date to overdue."""
    return {"updated": await payment_service.mark_overdue(db, today)}


@router.get("/receipts", response_model=List[PaymentReceiptResponse])
async def list_receipts(
    event_id: Optional[UUID] = None,
    dj_id: Optional[UUID] = None,
    db: AsyncSession = Depends(get_db),
    profile: Profile = Depends(get_current_profile),
):
    """
    Receipts of producers paying DJs.

    DJs only see receipts addressed to them, producers only those of their
    own events.
    """
    producer_id = None
    if not profile.is_admin_user:
        if profile.role == "dj":
            dj_id = profile.id
        else:
            producer_id = profile.id
    return await payment_service.list_receipts(db, event_id=event_id, dj_id=dj_id, producer_id=producer_id)


@router.post("/receipts", response_model=PaymentReceiptResponse, status_code=status.HTTP_201_CREATED)
async def upload_receipt(
    event_id: UUID = Form(...),
    dj_id: UUID = Form(...),
    amount: Optional[Decimal] = Form(None),
    notes: Optional[str] = Form(None),
    file: UploadFile = File(...),
    db: AsyncSession = Depends(get_db),
    profile: Profile = Depends(get_current_profile),
    storage: StorageService = Depends(get_storage_service),
):
    """Upload the receipt of a payment to one DJ and mark the DJ as paid."""
    content = await file.read()
    return await payment_service.upload_dj_receipt(
        db,
        storage,
        event_id,
        dj_id,
        profile,
        file.filename,
        content,
        file.content_type,
        amount=amount,
        notes=notes,
    )


@router.get("/pending", response_model=List[PendingPaymentResponse])
async def list_pending_payments(
    dj_id: Optional[UUID] = None,
    db: AsyncSession = Depends(get_db),
    profile: Profile = Depends(get_current_profile),
):
    """Payouts owed to DJs (a DJ only sees their own)."""
    if not profile.is_admin_user:
        dj_id = profile.id
    return await payment_service.list_pending_payments(db, dj_id)


@router.post("/pending", response_model=PendingPaymentResponse, status_code=status.HTTP_201_CREATED)
async def create_pending_payment(
    pending_data: PendingPaymentCreate,
    db: AsyncSession = Depends(get_db),
    _admin: Profile = Depends(require_admin),
):
    """Register a payout owed to a DJ."""
    return await payment_service.create_pending_payment(
        db, pending_data.event_id, pending_data.dj_id, pending_data.amount, pending_data.due_date
    )


@router.patch("/pending/{pending_id}/status", response_model=PendingPaymentResponse)
async def update_pending_payment_status(
    pending_id: UUID,
    status_data: PaymentStatusUpdate,
    db: AsyncSession = Depends(get_db),
    _admin: Profile = Depends(require_admin),
):
    """Change the status of a DJ payout."""
    return await payment_service.update_pending_payment_status(db, pending_id, status_data.status)


@router.get("/{payment_id}", response_model=PaymentResponse)
async def get_payment(
    payment_id: UUID,
    db: AsyncSession = Depends(get_db),
    profile: Profile = Depends(get_current_profile),
):
    """Get a payment with its event (admins, its producer and the event's DJs)."""
    payment = await payment_service.get_payment(db, payment_id)
    if not payment_service.can_view_payment(payment, profile):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Permission denied")
    return payment


@router.put("/{payment_id}", response_model=PaymentResponse)
async def update_payment(
    payment_id: UUID,
    payment_data: PaymentUpdate,
    db: AsyncSession = Depends(get_db),
    _admin: Profile = Depends(require_admin),
):
    """Update amount, due date, notes and commission fields."""
    return await payment_service.update_payment(db, payment_id, payment_data.model_dump(exclude_unset=True))


@router.patch("/{payment_id}/status", response_model=PaymentResponse)
async def update_payment_status(
    payment_id: UUID,
    status_data: PaymentStatusUpdate,
    db: AsyncSession = Depends(get_db),
    _admin: Profile = Depends(require_admin),
):
    """
    Change a payment's status.

    Allowed: pending -> processing | paid | overdue, processing -> paid |
    pending, overdue -> processing | paid. Paid is final.
    """
    return await payment_service.transition_status(db, payment_id, status_data.status)


@router.post("/{payment_id}/confirm", response_model=PaymentResponse)
async def confirm_payment(
    payment_id: UUID,
    confirm_data: PaymentConfirm,
    db: AsyncSession = Depends(get_db),
    _admin: Profile = Depends(require_admin),
):
    """Confirm a payment as paid."""
    return await payment_service.confirm_payment(
        db,
        payment_id,
        paid_at=confirm_data.paid_at,
        payment_method=confirm_data.payment_method,
        payment_proof_url=confirm_data.payment_proof_url,
    )


@router.post("/{payment_id}/proof", response_model=PaymentResponse)
async def submit_proof(
    payment_id: UUID,
    file: UploadFile = File(...),
    db: AsyncSession = Depends(get_db),
    profile: Profile = Depends(get_current_profile),
    storage: StorageService = Depends(get_storage_service),
):
    """Upload a proof of payment (producer); the payment moves to processing."""
    content = await file.read()
    return await payment_service.submit_proof(
        db, storage, payment_id, profile, file.filename, content, file.content_type
    )


@router.delete("/{payment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_payment(
    payment_id: UUID,
    db: AsyncSession = Depends(get_db),
    _admin: Profile = Depends(require_admin),
):
    """Delete a payment."""
    await payment_service.delete_payment(db, payment_id)
