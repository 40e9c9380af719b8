"""
Event booking service.

Business rules:
1. An event needs a name (event_name / title / name) and a date
   (event_date / date). The cache is parsed leniently; a missing or negative
   cache is stored as 0. On creation without a cache, the cache is the sum
   of the DJ fees given in the fee map.

2. DJ assignment is replace-all: on every create/update the event's
   event_djs rows are deleted and re-inserted for the submitted DJ set.
   The primary DJ (dj_id) is always first. Each row carries the DJ's fee
   from the fee map when it is a non-negative number, else null.

3. Each event has one payment row:
   - amount   = event cache (>= 0, rounded)
   - due_date = event date
   - status   = pending on creation; an existing pending/empty status is
                kept pending, any other status is left untouched.
   The event's payment_status mirrors the payment status.

4. On creation with a producer, every assigned DJ's relation with that
   producer is updated: total_events + 1, total_revenue + allocation
   (explicit fee, else the cache split evenly), last_event_date = max.

5. One contract per (event, DJ) pair is created for newly assigned DJs.

All steps run in the caller's session so they commit or roll back together.
"""
from __future__ import annotations

import logging
import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Union

from pydantic import BaseModel
from sqlalchemy import delete, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from djagency.core.errors import NotFoundError, PermissionDeniedError, ValidationError
from djagency.core.retry import read_retry
from djagency.models import (
    Contract,
    DJProducerRelation,
    Event,
    EventDJ,
    Payment,
    PaymentReceipt,
    PaymentStatus,
    PendingPayment,
    Profile,
)
from djagency.services.contracts import render_contract_for
from djagency.services.financial import ZERO, parse_number, round_currency

logger = logging.getLogger(__name__)

FeeMap = Mapping[str, Any]

# Optional text columns copied verbatim when present
_TEXT_FIELDS = (
    "start_time",
    "end_time",
    "status",
    "description",
    "location",
    "city",
    "state",
    "address",
    "payment_status",
    "payment_proof_url",
    "equipment_provided",
)


def _pick_first_string(*candidates: Any) -> Optional[str]:
    for candidate in candidates:
        if isinstance(candidate, str):
            trimmed = candidate.strip()
            if trimmed:
                return trimmed
    return None


def _parse_uuid(value: Any, field: str) -> uuid.UUID:
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value).strip())
    except (ValueError, AttributeError):
        raise ValidationError(f"Invalid {field}: {value!r}")


def _parse_event_date(value: Any) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = _pick_first_string(value)
    if not text:
        raise ValidationError("Event date is required.")
    try:
        # "2026-05-01T22:00:00Z" -> 2026-05-01
        return date.fromisoformat(text[:10])
    except ValueError:
        raise ValidationError(f"Invalid event date: {text!r}")


def _as_dict(payload: Union[BaseModel, Mapping[str, Any], None]) -> Dict[str, Any]:
    if payload is None:
        return {}
    if isinstance(payload, BaseModel):
        return payload.model_dump(exclude_unset=True)
    return dict(payload)


def build_event_record(payload: Union[BaseModel, Mapping[str, Any], None]) -> Dict[str, Any]:
    """
    Build the column values of an event from a form submission.

    Raises:
        ValidationError: when the name or date is missing or invalid
    """
    data = _as_dict(payload)

    event_name = _pick_first_string(data.get("event_name"), data.get("title"), data.get("name"))
    if not event_name:
        raise ValidationError("Event name is required.")

    raw_date = data.get("event_date")
    if raw_date is None or (isinstance(raw_date, str) and not raw_date.strip()):
        raw_date = data.get("date")
    event_date = _parse_event_date(raw_date)

    cache = parse_number(_first_not_none(data.get("cache_value"), data.get("cache")))
    record: Dict[str, Any] = {
        "event_name": event_name,
        "event_date": event_date,
        "cache_value": round_currency(cache) if cache is not None and cache >= ZERO else round_currency(0),
    }

    for field in _TEXT_FIELDS:
        value = data.get(field)
        if isinstance(value, str):
            value = value.strip() or None
        if value is not None:
            record[field] = value

    venue = _pick_first_string(data.get("venue"), data.get("location"))
    if venue:
        record["venue"] = venue

    requirements = _pick_first_string(data.get("special_requirements"), data.get("requirements"))
    if requirements:
        record["special_requirements"] = requirements

    rate = parse_number(_first_not_none(data.get("commission_rate"), data.get("commission_percentage")))
    if rate is not None:
        record["commission_rate"] = round_currency(rate)

    commission_amount = parse_number(data.get("commission_amount"))
    if commission_amount is not None:
        record["commission_amount"] = round_currency(commission_amount)

    attendees = parse_number(data.get("expected_attendees"))
    if attendees is not None:
        record["expected_attendees"] = int(attendees)

    if data.get("shared_with_manager") is not None:
        record["shared_with_manager"] = bool(data["shared_with_manager"])

    producer_id = _pick_first_string(data.get("producer_id"))
    if producer_id:
        record["producer_id"] = _parse_uuid(producer_id, "producer_id")

    return record


def _first_not_none(*values: Any) -> Any:
    for value in values:
        if value is not None:
            return value
    return None


def canonical_dj_id(value: Any) -> Optional[str]:
    """Lower-case hyphenated form of a UUID string; other text is only trimmed."""
    if isinstance(value, uuid.UUID):
        return str(value)
    if not isinstance(value, str):
        return None
    trimmed = value.strip()
    if not trimmed:
        return None
    try:
        return str(uuid.UUID(trimmed))
    except ValueError:
        return trimmed


def normalize_dj_ids(values: Optional[Iterable[Any]]) -> List[str]:
    """Canonical string ids, duplicates removed, order kept."""
    if values is None or isinstance(values, (str, bytes)):
        return []
    seen = set()
    result = []
    for candidate in values:
        dj_id = canonical_dj_id(candidate) if isinstance(candidate, str) else None
        if dj_id and dj_id not in seen:
            seen.add(dj_id)
            result.append(dj_id)
    return result


def merge_dj_ids(primary_dj_id: Optional[str], dj_ids: Iterable[Any]) -> List[str]:
    """DJ ids with the primary DJ moved (or added) to the front."""
    normalized = normalize_dj_ids(dj_ids)
    primary = canonical_dj_id(primary_dj_id) if isinstance(primary_dj_id, str) else None
    if not primary:
        return normalized
    return [primary] + [dj_id for dj_id in normalized if dj_id != primary]


def resolve_dj_fee(fee_map: Optional[FeeMap], dj_id: str) -> Optional[Decimal]:
    """Explicit non-negative fee for a DJ, rounded, else None."""
    if not isinstance(fee_map, Mapping):
        return None
    fee = fee_map.get(dj_id)
    if fee is None:
        wanted = canonical_dj_id(dj_id)
        fee = next((value for key, value in fee_map.items() if canonical_dj_id(key) == wanted), None)
    fee = parse_number(fee)
    if fee is None or fee < ZERO:
        return None
    return round_currency(fee)


def _normalize_fee_map(fee_map: Any) -> Dict[str, Any]:
    if not isinstance(fee_map, Mapping):
        return {}
    normalized = {}
    for key, value in fee_map.items():
        key_text = canonical_dj_id(str(key)) if key is not None else None
        if not key_text:
            raise ValidationError("DJ fee map contains an empty DJ id")
        normalized[key_text] = value
    return normalized


def _assignment_from_payload(data: Dict[str, Any]) -> tuple[List[str], Dict[str, Any]]:
    raw_ids = data.get("dj_ids")
    if not isinstance(raw_ids, list):
        raw_ids = data.get("djIds")
    normalized = normalize_dj_ids(raw_ids if isinstance(raw_ids, list) else [])
    primary = _pick_first_string(data.get("dj_id")) or (normalized[0] if normalized else None)
    dj_ids = merge_dj_ids(primary, normalized)
    for dj_id in dj_ids:
        _parse_uuid(dj_id, "dj_id")
    return dj_ids, _normalize_fee_map(data.get("dj_fee_map"))


# Reconciliation steps

async def sync_event_djs(
    db: AsyncSession,
    event_id: uuid.UUID,
    dj_ids: Sequence[str],
    fee_map: Optional[FeeMap] = None,
) -> List[EventDJ]:
    """Replace the event's DJ rows with one row per DJ."""
    normalized = normalize_dj_ids(dj_ids)

    await db.execute(delete(EventDJ).where(EventDJ.event_id == event_id))

    rows = [
        EventDJ(
            event_id=event_id,
            dj_id=_parse_uuid(dj_id, "dj_id"),
            fee=resolve_dj_fee(fee_map, dj_id),
            payment_status=PaymentStatus.PENDING.value,
        )
        for dj_id in normalized
    ]
    db.add_all(rows)
    await db.flush()

    logger.info(f"Synced {len(rows)} DJ assignments for event {event_id}")
    return rows


async def ensure_payment_for_event(db: AsyncSession, event: Event) -> Payment:
    """Create the event's payment, or update amount, producer and due date.

    Copies the resulting payment status onto event.payment_status.
    """
    cache = parse_number(event.cache_value)
    amount = round_currency(cache) if cache is not None and cache >= ZERO else round_currency(0)

    result = await db.execute(
        select(Payment)
        .where(Payment.event_id == event.id)
        .order_by(Payment.created_at)
        .limit(1)
        .with_for_update()
    )
    payment = result.scalar_one_or_none()

    if payment is not None:
        payment.amount = amount
        payment.producer_id = event.producer_id
        payment.due_date = event.event_date
        if not payment.status or payment.status in (PaymentStatus.PENDING.value, "pendente"):
            payment.status = PaymentStatus.PENDING.value
        event.payment_status = payment.status
        await db.flush()
        logger.info(f"Updated payment {payment.id} for event {event.id}: amount={amount}")
        return payment

    payment = Payment(
        event_id=event.id,
        producer_id=event.producer_id,
        amount=amount,
        status=PaymentStatus.PENDING.value,
        due_date=event.event_date,
    )
    db.add(payment)
    event.payment_status = payment.status
    await db.flush()
    logger.info(f"Created pending payment for event {event.id}: amount={amount}")
    return payment


def allocate_dj_revenue(
    cache_value: Any,
    dj_ids: Sequence[str],
    fee_map: Optional[FeeMap] = None,
) -> Dict[str, Decimal]:
    """Per-DJ revenue: explicit fee, else an even split of the cache."""
    normalized = normalize_dj_ids(dj_ids)
    total = parse_number(cache_value)
    total = round_currency(total) if total is not None and total >= ZERO else round_currency(0)

    allocations = {}
    for dj_id in normalized:
        amount = resolve_dj_fee(fee_map, dj_id)
        if amount is None and total > ZERO:
            amount = round_currency(total / len(normalized))
        allocations[dj_id] = amount if amount is not None else round_currency(0)
    return allocations


async def sync_dj_producer_relations(
    db: AsyncSession,
    event: Event,
    dj_ids: Sequence[str],
    fee_map: Optional[FeeMap] = None,
) -> List[DJProducerRelation]:
    """Add the event to each assigned DJ's relation with the event producer."""
    if event.producer_id is None:
        return []

    allocations = allocate_dj_revenue(event.cache_value, dj_ids, fee_map)
    relations = []

    for dj_id, allocation in allocations.items():
        dj_uuid = _parse_uuid(dj_id, "dj_id")
        result = await db.execute(
            select(DJProducerRelation)
            .where(DJProducerRelation.dj_id == dj_uuid)
            .where(DJProducerRelation.producer_id == event.producer_id)
            .with_for_update()
        )
        relation = result.scalar_one_or_none()

        if relation is None:
            relation = DJProducerRelation(
                dj_id=dj_uuid,
                producer_id=event.producer_id,
                total_events=1,
                total_revenue=allocation,
                last_event_date=event.event_date,
                is_active=True,
            )
            db.add(relation)
        else:
            relation.total_events = (relation.total_events or 0) + 1
            relation.total_revenue = round_currency((relation.total_revenue or ZERO) + allocation)
            if relation.last_event_date is None or event.event_date >= relation.last_event_date:
                relation.last_event_date = event.event_date
            relation.is_active = True
        relations.append(relation)

    await db.flush()
    return relations


async def ensure_contracts_for_event(
    db: AsyncSession,
    event: Event,
    dj_ids: Sequence[str],
    fee_map: Optional[FeeMap] = None,
) -> List[Contract]:
    """Create a contract for every assigned DJ that has none for this event."""
    assigned = {_parse_uuid(dj_id, "dj_id"): dj_id for dj_id in normalize_dj_ids(dj_ids)}
    normalized = list(assigned)
    if not normalized:
        return []

    result = await db.execute(
        select(Contract.dj_id).where(Contract.event_id == event.id).where(Contract.dj_id.in_(normalized))
    )
    existing = set(result.scalars().all())

    created = []
    for dj_uuid in normalized:
        if dj_uuid in existing:
            continue
        fee = resolve_dj_fee(fee_map, assigned[dj_uuid])
        contract = Contract(
            event_id=event.id,
            dj_id=dj_uuid,
            producer_id=event.producer_id,
            cache_value=fee if fee is not None else event.cache_value,
            contract_content=await render_contract_for(db, event, dj_uuid, fee),
            signed=False,
        )
        db.add(contract)
        created.append(contract)

    await db.flush()
    if created:
        logger.info(f"Created {len(created)} contracts for event {event.id}")
    return created


# Mutations

async def create_event(
    db: AsyncSession,
    payload: Union[BaseModel, Mapping[str, Any]],
    created_by: Optional[uuid.UUID] = None,
) -> Event:
    """
    Create an event with its DJ rows, payment, relation stats and contracts.

    Args:
        db: Session (the whole flow runs in its transaction)
        payload: EventPayload or equivalent mapping
        created_by: Profile id of the creator

    Returns:
        The event, reloaded with producer, DJs and payments
    """
    data = _as_dict(payload)
    record = build_event_record(data)
    dj_ids, fee_map = _assignment_from_payload(data)
    if parse_number(_first_not_none(data.get("cache_value"), data.get("cache"))) is None:
        fees = [resolve_dj_fee(fee_map, dj_id) for dj_id in dj_ids]
        if any(fee is not None for fee in fees):
            record["cache_value"] = round_currency(sum(fee for fee in fees if fee is not None))

    event = Event(**record)
    event.dj_id = _parse_uuid(dj_ids[0], "dj_id") if dj_ids else None
    event.created_by = created_by
    db.add(event)
    await db.flush()

    await sync_event_djs(db, event.id, dj_ids, fee_map)
    await ensure_payment_for_event(db, event)
    await sync_dj_producer_relations(db, event, dj_ids, fee_map)
    await ensure_contracts_for_event(db, event, dj_ids, fee_map)

    logger.info(f"Created event {event.id} ({event.event_name}) with {len(dj_ids)} DJs")
    return await _load_event(db, event.id)


async def update_event(
    db: AsyncSession,
    event_id: uuid.UUID,
    payload: Union[BaseModel, Mapping[str, Any]],
) -> Event:
    """Update an event from a full form and re-synchronize its DJs and payment."""
    event = await db.get(Event, event_id)
    if event is None:
        raise NotFoundError("Event", event_id)

    data = _as_dict(payload)
    record = build_event_record(data)
    dj_ids, fee_map = _assignment_from_payload(data)

    for key, value in record.items():
        setattr(event, key, value)
    event.dj_id = _parse_uuid(dj_ids[0], "dj_id") if dj_ids else None
    await db.flush()

    await sync_event_djs(db, event.id, dj_ids, fee_map)
    await ensure_payment_for_event(db, event)
    await ensure_contracts_for_event(db, event, dj_ids, fee_map)

    logger.info(f"Updated event {event.id} ({event.event_name})")
    return await _load_event(db, event.id)


def can_delete_event(event: Event, actor: Profile) -> bool:
    return actor.is_admin_user or (event.created_by is not None and event.created_by == actor.id)


async def delete_event(db: AsyncSession, event_id: uuid.UUID, actor: Profile) -> None:
    """
    Delete an event and everything attached to it.

    Raises:
        NotFoundError: unknown event
        PermissionDeniedError: actor is neither admin nor the creator
    """
    event = await db.get(Event, event_id)
    if event is None:
        raise NotFoundError("Event", event_id)
    if not can_delete_event(event, actor):
        raise PermissionDeniedError("Only admins or the event creator can delete this event")

    for model in (EventDJ, Contract, PaymentReceipt, PendingPayment, Payment):
        await db.execute(delete(model).where(model.event_id == event_id))
    await db.execute(delete(Event).where(Event.id == event_id))
    await db.flush()

    logger.info(f"Deleted event {event_id} (by {actor.id})")


# Queries

def _event_options():
    return (
        selectinload(Event.producer),
        selectinload(Event.dj),
        selectinload(Event.dj_links).selectinload(EventDJ.dj),
        selectinload(Event.payments),
    )


async def _load_event(db: AsyncSession, event_id: uuid.UUID) -> Event:
    result = await db.execute(
        select(Event)
        .options(*_event_options())
        .where(Event.id == event_id)
        .execution_options(populate_existing=True)
    )
    event = result.scalar_one_or_none()
    if event is None:
        raise NotFoundError("Event", event_id)
    return event


@read_retry()
async def get_event(db: AsyncSession, event_id: uuid.UUID) -> Event:
    return await _load_event(db, event_id)


@read_retry()
async def list_events(db: AsyncSession) -> List[Event]:
    """All events, newest first."""
    result = await db.execute(
        select(Event)
        .options(*_event_options())
        .order_by(Event.event_date.desc(), Event.created_at.desc())
    )
    return list(result.scalars().all())


@read_retry()
async def list_events_for_dj(db: AsyncSession, dj_id: uuid.UUID) -> List[Event]:
    """Events where the DJ is primary or assigned, newest first."""
    assigned = select(EventDJ.event_id).where(EventDJ.dj_id == dj_id)
    result = await db.execute(
        select(Event)
        .options(*_event_options())
        .where(or_(Event.dj_id == dj_id, Event.id.in_(assigned)))
        .order_by(Event.event_date.desc(), Event.created_at.desc())
    )
    return list(result.scalars().all())


@read_retry()
async def list_events_for_producer(db: AsyncSession, producer_id: uuid.UUID) -> List[Event]:
    result = await db.execute(
        select(Event)
        .options(*_event_options())
        .where(Event.producer_id == producer_id)
        .order_by(Event.event_date.desc(), Event.created_at.desc())
    )
    return list(result.scalars().all())


async def list_events_for_profile(db: AsyncSession, profile: Profile) -> List[Event]:
    """Events visible to a profile: all for admins, own for producers and DJs."""
    if profile.is_admin_user:
        return await list_events(db)
    if profile.role == "producer":
        return await list_events_for_producer(db, profile.id)
    return await list_events_for_dj(db, profile.id)


@read_retry()
async def list_dj_producer_relations(
    db: AsyncSession,
    dj_id: Optional[uuid.UUID] = None,
    producer_id: Optional[uuid.UUID] = None,
) -> List[DJProducerRelation]:
    query = select(DJProducerRelation)
    if dj_id is not None:
        query = query.where(DJProducerRelation.dj_id == dj_id)
    if producer_id is not None:
        query = query.where(DJProducerRelation.producer_id == producer_id)
    result = await db.execute(query.order_by(DJProducerRelation.last_event_date.desc()))
    return list(result.scalars().all())
