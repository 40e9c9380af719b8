"""
Payment service.

Producers owe one payment per event (see models.payment for the status
lifecycle). Each DJ of an event is paid separately by the producer, who
uploads a receipt per DJ; DJ payouts tracked by the agency live in
pending_payments.
"""
from __future__ import annotations

import logging
import uuid
from datetime import date, datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import delete, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from djagency.core.config import settings
from djagency.core.errors import NotFoundError, PermissionDeniedError, ValidationError
from djagency.core.retry import read_retry
from djagency.models import (
    PAYMENT_STATUS_ALIASES,
    PAYMENT_STATUS_TRANSITIONS,
    Event,
    EventDJ,
    Payment,
    PaymentReceipt,
    PaymentStatus,
    PendingPayment,
    Profile,
)
from djagency.services.financial import round_currency
from djagency.services.storage import StorageService, payment_proof_path, receipt_path

logger = logging.getLogger(__name__)


def normalize_payment_status(value: Any) -> PaymentStatus:
    """
    Canonical status for a requested value.

    Raises:
        ValidationError: unknown status
    """
    if isinstance(value, PaymentStatus):
        return value
    text = str(value or "").strip().lower()
    if text in PAYMENT_STATUS_ALIASES:
        return PAYMENT_STATUS_ALIASES[text]
    try:
        return PaymentStatus(text)
    except ValueError:
        raise ValidationError(f"Unknown payment status: {value!r}")


def check_transition(current: Any, target: PaymentStatus) -> None:
    """Raise ValidationError unless current -> target is allowed."""
    source = normalize_payment_status(current or PaymentStatus.PENDING.value)
    if source == target:
        return
    if target not in PAYMENT_STATUS_TRANSITIONS[source]:
        raise ValidationError(f"Payment cannot go from {source.value} to {target.value}")


def _ensure_producer_or_admin(profile: Profile, producer_id: Optional[uuid.UUID]) -> None:
    if profile.is_admin_user:
        return
    if producer_id is None or producer_id != profile.id:
        raise PermissionDeniedError("Only admins or the event producer can do this")


def can_view_payment(payment: Payment, profile: Profile) -> bool:
    """Admins, the paying producer and the DJs playing the event."""
    if profile.is_admin_user or payment.producer_id == profile.id:
        return True
    event = payment.event
    if event is None:
        return False
    if profile.id in (event.producer_id, event.dj_id):
        return True
    return any(link.dj_id == profile.id for link in event.dj_links)


async def _mirror_event_status(db: AsyncSession, payment: Payment) -> None:
    if payment.event_id is not None:
        await db.execute(
            update(Event).where(Event.id == payment.event_id).values(payment_status=payment.status)
        )


# Queries

def _payment_options():
    return (
        selectinload(Payment.event).selectinload(Event.producer),
        selectinload(Payment.event).selectinload(Event.dj_links).selectinload(EventDJ.dj),
    )


async def _load_payment(db: AsyncSession, payment_id: uuid.UUID) -> Payment:
    result = await db.execute(
        select(Payment)
        .options(*_payment_options())
        .where(Payment.id == payment_id)
        .execution_options(populate_existing=True)
    )
    payment = result.scalar_one_or_none()
    if payment is None:
        raise NotFoundError("Payment", payment_id)
    return payment


@read_retry()
async def get_payment(db: AsyncSession, payment_id: uuid.UUID) -> Payment:
    return await _load_payment(db, payment_id)


@read_retry()
async def list_payments(db: AsyncSession, status: Optional[str] = None) -> List[Payment]:
    """All payments with their events, newest first."""
    query = select(Payment).options(*_payment_options())
    if status:
        query = query.where(Payment.status == normalize_payment_status(status).value)
    result = await db.execute(query.order_by(Payment.created_at.desc()))
    return list(result.scalars().all())


@read_retry()
async def list_payments_by_dj(db: AsyncSession, dj_id: uuid.UUID) -> List[Payment]:
    """Payments of events the DJ plays (primary or assigned)."""
    assigned = select(EventDJ.event_id).where(EventDJ.dj_id == dj_id)
    dj_events = select(Event.id).where(or_(Event.dj_id == dj_id, Event.id.in_(assigned)))
    result = await db.execute(
        select(Payment)
        .options(*_payment_options())
        .where(Payment.event_id.in_(dj_events))
        .order_by(Payment.created_at.desc())
    )
    return list(result.scalars().all())


@read_retry()
async def list_payments_by_producer(db: AsyncSession, producer_id: uuid.UUID) -> List[Payment]:
    producer_events = select(Event.id).where(Event.producer_id == producer_id)
    result = await db.execute(
        select(Payment)
        .options(*_payment_options())
        .where(or_(Payment.producer_id == producer_id, Payment.event_id.in_(producer_events)))
        .order_by(Payment.created_at.desc())
    )
    return list(result.scalars().all())


async def list_payments_for_profile(db: AsyncSession, profile: Profile) -> List[Payment]:
    if profile.is_admin_user:
        return await list_payments(db)
    if profile.role == "producer":
        return await list_payments_by_producer(db, profile.id)
    return await list_payments_by_dj(db, profile.id)


# Mutations

async def update_payment(db: AsyncSession, payment_id: uuid.UUID, updates: Dict[str, Any]) -> Payment:
    """Update amount, due date, notes, method and commission fields."""
    payment = await db.get(Payment, payment_id)
    if payment is None:
        raise NotFoundError("Payment", payment_id)

    for key in ("due_date", "notes", "payment_method"):
        if key in updates:
            setattr(payment, key, updates[key])
    for key in ("amount", "commission_rate", "commission_amount", "agency_commission"):
        if key in updates:
            value = updates[key]
            setattr(payment, key, round_currency(value) if value is not None else None)

    await db.flush()
    logger.info(f"Updated payment {payment_id}: {sorted(updates)}")
    return await _load_payment(db, payment_id)


async def transition_status(db: AsyncSession, payment_id: uuid.UUID, status: Any) -> Payment:
    """Move a payment to another status, following the allowed transitions."""
    target = normalize_payment_status(status)
    payment = await db.get(Payment, payment_id, with_for_update=True)
    if payment is None:
        raise NotFoundError("Payment", payment_id)

    check_transition(payment.status, target)
    previous = payment.status
    payment.status = target.value
    if target == PaymentStatus.PAID and payment.paid_at is None:
        payment.paid_at = datetime.utcnow()

    await db.flush()
    await _mirror_event_status(db, payment)
    logger.info(f"Payment {payment_id}: {previous} -> {target.value}")
    return await _load_payment(db, payment_id)


async def confirm_payment(
    db: AsyncSession,
    payment_id: uuid.UUID,
    paid_at: Optional[datetime] = None,
    payment_method: Optional[str] = None,
    payment_proof_url: Optional[str] = None,
) -> Payment:
    """Mark a payment as paid (admin confirmation)."""
    payment = await db.get(Payment, payment_id, with_for_update=True)
    if payment is None:
        raise NotFoundError("Payment", payment_id)

    check_transition(payment.status, PaymentStatus.PAID)
    payment.status = PaymentStatus.PAID.value
    payment.paid_at = paid_at or datetime.utcnow()
    if payment_method is not None:
        payment.payment_method = payment_method
    if payment_proof_url is not None:
        payment.payment_proof_url = payment_proof_url

    await db.flush()
    await _mirror_event_status(db, payment)
    logger.info(f"Payment {payment_id} confirmed as paid")
    return await _load_payment(db, payment_id)


async def submit_proof(
    db: AsyncSession,
    storage: StorageService,
    payment_id: uuid.UUID,
    profile: Profile,
    filename: Optional[str],
    content: bytes,
    content_type: Optional[str] = None,
) -> Payment:
    """Upload a proof of payment and move the payment to processing."""
    payment = await db.get(Payment, payment_id, with_for_update=True)
    if payment is None:
        raise NotFoundError("Payment", payment_id)
    _ensure_producer_or_admin(profile, payment.producer_id)
    check_transition(payment.status, PaymentStatus.PROCESSING)

    path = payment_proof_path(payment_id, filename)
    url = storage.upload(settings.MEDIA_BUCKET, path, content, content_type)

    try:
        payment.payment_proof_url = url
        payment.status = PaymentStatus.PROCESSING.value
        await db.flush()
        await _mirror_event_status(db, payment)
    except Exception:
        storage.discard(settings.MEDIA_BUCKET, path)
        raise

    logger.info(f"Proof submitted for payment {payment_id} by {profile.id}")
    return await _load_payment(db, payment_id)


async def delete_payment(db: AsyncSession, payment_id: uuid.UUID) -> None:
    result = await db.execute(delete(Payment).where(Payment.id == payment_id))
    if result.rowcount == 0:
        raise NotFoundError("Payment", payment_id)
    logger.info(f"Deleted payment {payment_id}")


async def mark_overdue(db: AsyncSession, today: Optional[date] = None) -> int:
    """Move pending payments whose due date has passed (and their events) to overdue."""
    today = today or date.today()
    result = await db.execute(
        update(Payment)
        .where(Payment.status == PaymentStatus.PENDING.value)
        .where(Payment.due_date.is_not(None))
        .where(Payment.due_date < today)
        .values(status=PaymentStatus.OVERDUE.value)
        .execution_options(synchronize_session="fetch")
    )
    count = result.rowcount or 0
    if count:
        overdue_events = select(Payment.event_id).where(Payment.status == PaymentStatus.OVERDUE.value)
        await db.execute(
            update(Event)
            .where(Event.id.in_(overdue_events))
            .where(or_(Event.payment_status.is_(None), Event.payment_status.in_(("pending", "pendente"))))
            .values(payment_status=PaymentStatus.OVERDUE.value)
            .execution_options(synchronize_session="fetch")
        )
        logger.info(f"Marked {count} payments as overdue (before {today})")
    return count


# Per-DJ receipts

async def upload_dj_receipt(
    db: AsyncSession,
    storage: StorageService,
    event_id: uuid.UUID,
    dj_id: uuid.UUID,
    profile: Profile,
    filename: Optional[str],
    content: bytes,
    content_type: Optional[str] = None,
    amount: Any = None,
    notes: Optional[str] = None,
) -> PaymentReceipt:
    """
    Register the producer's payment to one DJ of an event.

    Uploads the receipt to the media bucket, stores a payment_receipts row
    and marks the DJ's assignment as paid.
    """
    event = await db.get(Event, event_id)
    if event is None:
        raise NotFoundError("Event", event_id)
    _ensure_producer_or_admin(profile, event.producer_id)

    result = await db.execute(
        select(EventDJ).where(EventDJ.event_id == event_id).where(EventDJ.dj_id == dj_id)
    )
    link = result.scalar_one_or_none()
    if link is None:
        raise NotFoundError("Event DJ", f"{event_id}/{dj_id}")

    path = receipt_path(event_id, dj_id, filename)
    url = storage.upload(settings.MEDIA_BUCKET, path, content, content_type)

    try:
        receipt = PaymentReceipt(
            event_id=event_id,
            dj_id=dj_id,
            producer_id=event.producer_id or profile.id,
            receipt_url=url,
            amount=round_currency(amount if amount is not None else link.fee),
            notes=notes,
        )
        db.add(receipt)

        link.payment_status = PaymentStatus.PAID.value
        link.payment_receipt_url = url
        await db.flush()
    except Exception:
        storage.discard(settings.MEDIA_BUCKET, path)
        raise

    logger.info(f"Receipt {receipt.id} uploaded for event {event_id}, DJ {dj_id}")
    return receipt


@read_retry()
async def list_receipts(
    db: AsyncSession,
    event_id: Optional[uuid.UUID] = None,
    dj_id: Optional[uuid.UUID] = None,
    producer_id: Optional[uuid.UUID] = None,
) -> List[PaymentReceipt]:
    """Receipts, newest first; producer_id keeps those paid by or for that producer."""
    query = select(PaymentReceipt)
    if producer_id is not None:
        producer_events = select(Event.id).where(Event.producer_id == producer_id)
        query = query.where(
            or_(PaymentReceipt.producer_id == producer_id, PaymentReceipt.event_id.in_(producer_events))
        )
    if event_id is not None:
        query = query.where(PaymentReceipt.event_id == event_id)
    if dj_id is not None:
        query = query.where(PaymentReceipt.dj_id == dj_id)
    result = await db.execute(query.order_by(PaymentReceipt.created_at.desc()))
    return list(result.scalars().all())


# Pending DJ payouts

@read_retry()
async def list_pending_payments(db: AsyncSession, dj_id: Optional[uuid.UUID] = None) -> List[PendingPayment]:
    query = select(PendingPayment)
    if dj_id is not None:
        query = query.where(PendingPayment.dj_id == dj_id)
    result = await db.execute(query.order_by(PendingPayment.due_date.asc(), PendingPayment.created_at.asc()))
    return list(result.scalars().all())


async def create_pending_payment(
    db: AsyncSession,
    event_id: uuid.UUID,
    dj_id: uuid.UUID,
    amount: Any,
    due_date: Optional[date] = None,
) -> PendingPayment:
    event = await db.get(Event, event_id)
    if event is None:
        raise NotFoundError("Event", event_id)

    pending = PendingPayment(
        event_id=event_id,
        dj_id=dj_id,
        amount=round_currency(amount),
        due_date=due_date or event.event_date,
        status=PaymentStatus.PENDING.value,
    )
    db.add(pending)
    await db.flush()
    logger.info(f"Created pending payout {pending.id} for DJ {dj_id}: {pending.amount}")
    return pending


async def update_pending_payment_status(db: AsyncSession, pending_id: uuid.UUID, status: Any) -> PendingPayment:
    target = normalize_payment_status(status)
    pending = await db.get(PendingPayment, pending_id)
    if pending is None:
        raise NotFoundError("Pending payment", pending_id)

    check_transition(pending.status, target)
    pending.status = target.value
    await db.flush()
    return pending
