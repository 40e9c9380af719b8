"""Tests for event booking: DJ assignment, payment and relation sync."""

import uuid
from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy import func, select

from djagency.core.errors import ErrorKind, NotFoundError, PermissionDeniedError, ValidationError
from djagency.models import Contract, DJProducerRelation, Event, EventDJ, Payment, PaymentStatus
from djagency.services import events as event_service
from djagency.services.events import (
    allocate_dj_revenue,
    build_event_record,
    merge_dj_ids,
    normalize_dj_ids,
    resolve_dj_fee,
)


async def _count(db, model, **filters):
    query = select(func.count()).select_from(model)
    for key, value in filters.items():
        query = query.where(getattr(model, key) == value)
    result = await db.execute(query)
    return result.scalar_one()


async def _payment_for(db, event):
    result = await db.execute(select(Payment).where(Payment.event_id == event.id))
    return result.scalar_one()


def _payload(producer, *djs, fees=None, **extra):
    data = {
        "event_name": "Festa de Verão",
        "event_date": "2026-12-20",
        "cache_value": "500",
        "city": "São Paulo",
        "producer_id": str(producer.id),
        "dj_ids": [str(dj.id) for dj in djs],
    }
    if fees is not None:
        data["dj_fee_map"] = {str(dj.id): fee for dj, fee in fees.items()}
    data.update(extra)
    return data


class TestBuildEventRecord:
    """Form normalization."""

    def test_requires_name(self):
        with pytest.raises(ValidationError, match="Event name is required."):
            build_event_record({"event_name": "   ", "event_date": "2026-01-01"})

    def test_requires_date(self):
        with pytest.raises(ValidationError, match="Event date is required."):
            build_event_record({"event_name": "Show"})

    def test_rejects_invalid_date(self):
        with pytest.raises(ValidationError):
            build_event_record({"event_name": "Show", "event_date": "20/12/2026"})

    def test_accepts_legacy_aliases(self):
        record = build_event_record({
            "title": " Rave ",
            "date": "2026-05-01T22:00:00Z",
            "cache": "1.234,56",
            "commission_percentage": "15",
            "requirements": "CDJs",
            "location": "Galpão",
        })
        assert record["event_name"] == "Rave"
        assert record["event_date"] == date(2026, 5, 1)
        assert record["cache_value"] == Decimal("1234.56")
        assert record["commission_rate"] == Decimal("15.00")
        assert record["special_requirements"] == "CDJs"
        assert record["venue"] == "Galpão"

    def test_negative_or_missing_cache_is_zero(self):
        assert build_event_record({"event_name": "A", "event_date": "2026-01-01", "cache_value": "-10"})["cache_value"] == Decimal("0.00")
        assert build_event_record({"event_name": "A", "event_date": "2026-01-01"})["cache_value"] == Decimal("0.00")

    def test_invalid_producer_id(self):
        with pytest.raises(ValidationError):
            build_event_record({"event_name": "A", "event_date": "2026-01-01", "producer_id": "not-a-uuid"})


class TestDJIdHelpers:
    """DJ id normalization and fee lookup."""

    def test_normalize_trims_and_dedupes(self):
        assert normalize_dj_ids([" a ", "b", "a", "", "  ", None, 3, "c"]) == ["a", "b", "c"]

    def test_normalize_canonicalises_uuids(self):
        dj_id = str(uuid.uuid4())
        assert normalize_dj_ids([dj_id.upper(), f" {dj_id} "]) == [dj_id]
        assert merge_dj_ids(dj_id.upper(), [dj_id]) == [dj_id]

    def test_fee_lookup_ignores_uuid_case(self):
        dj_id = str(uuid.uuid4())
        assert resolve_dj_fee({dj_id.upper(): 250}, dj_id) == Decimal("250.00")

    def test_normalize_rejects_non_lists(self):
        assert normalize_dj_ids(None) == []
        assert normalize_dj_ids("abc") == []

    def test_merge_puts_primary_first(self):
        assert merge_dj_ids("b", ["a", "b", "c"]) == ["b", "a", "c"]
        assert merge_dj_ids("z", ["a"]) == ["z", "a"]
        assert merge_dj_ids(None, ["a", "a"]) == ["a"]

    def test_resolve_fee(self):
        fees = {"a": "300", "b": -5, "c": "abc", "d": "1.000,50"}
        assert resolve_dj_fee(fees, "a") == Decimal("300.00")
        assert resolve_dj_fee(fees, "b") is None
        assert resolve_dj_fee(fees, "c") is None
        assert resolve_dj_fee(fees, "d") == Decimal("1000.50")
        assert resolve_dj_fee(fees, "missing") is None
        assert resolve_dj_fee(None, "a") is None

    def test_allocation_prefers_explicit_fee(self):
        allocations = allocate_dj_revenue(600, ["a", "b", "c"], {"a": 100})
        assert allocations == {"a": Decimal("100.00"), "b": Decimal("200.00"), "c": Decimal("200.00")}

    def test_allocation_with_zero_cache(self):
        assert allocate_dj_revenue(None, ["a", "b"]) == {"a": Decimal("0.00"), "b": Decimal("0.00")}


class TestCreateEvent:
    """Event creation flow."""

    async def test_two_djs_with_fees(self, db, producer, dj_a, dj_b):
        event = await event_service.create_event(
            db, _payload(producer, dj_a, dj_b, fees={dj_a: 300, dj_b: 200}), created_by=producer.id
        )

        links = (await db.execute(select(EventDJ).where(EventDJ.event_id == event.id))).scalars().all()
        assert len(links) == 2
        fees = {link.dj_id: link.fee for link in links}
        assert fees == {dj_a.id: Decimal("300.00"), dj_b.id: Decimal("200.00")}
        assert all(link.payment_status == PaymentStatus.PENDING.value for link in links)

        payments = (await db.execute(select(Payment).where(Payment.event_id == event.id))).scalars().all()
        assert len(payments) == 1
        assert payments[0].amount == Decimal("500.00")
        assert payments[0].status == PaymentStatus.PENDING.value
        assert payments[0].due_date == date(2026, 12, 20)
        assert payments[0].producer_id == producer.id

        assert event.dj_id == dj_a.id
        assert event.created_by == producer.id

    async def test_cache_defaults_to_sum_of_fees(self, db, producer, dj_a, dj_b):
        event = await event_service.create_event(
            db, _payload(producer, dj_a, dj_b, fees={dj_a: 300, dj_b: 200}, cache_value=None)
        )

        assert event.cache_value == Decimal("500.00")
        assert (await _payment_for(db, event)).amount == Decimal("500.00")

    async def test_explicit_cache_wins_over_fees(self, db, producer, dj_a, dj_b):
        event = await event_service.create_event(
            db, _payload(producer, dj_a, dj_b, fees={dj_a: 300, dj_b: 200}, cache_value="1.000,00")
        )

        assert event.cache_value == Decimal("1000.00")
        assert (await _payment_for(db, event)).amount == Decimal("1000.00")

    async def test_new_event_payment_status_is_pending(self, db, producer, dj_a):
        event = await event_service.create_event(db, _payload(producer, dj_a, payment_status="pago"))

        assert event.payment_status == PaymentStatus.PENDING.value

    async def test_same_dj_in_different_case_is_one_assignment(self, db, producer, dj_a):
        payload = _payload(producer, dj_a, cache_value=None)
        payload["dj_ids"] = [str(dj_a.id), str(dj_a.id).upper()]
        payload["dj_fee_map"] = {str(dj_a.id).upper(): 350}

        event = await event_service.create_event(db, payload)

        links = (await db.execute(select(EventDJ).where(EventDJ.event_id == event.id))).scalars().all()
        assert [(link.dj_id, link.fee) for link in links] == [(dj_a.id, Decimal("350.00"))]
        assert event.cache_value == Decimal("350.00")
        assert await _count(db, Contract, event_id=event.id) == 1

    async def test_primary_dj_is_first_and_counted_once(self, db, producer, dj_a, dj_b):
        event = await event_service.create_event(
            db, _payload(producer, dj_a, dj_b, dj_id=str(dj_b.id))
        )
        assert event.dj_id == dj_b.id
        assert await _count(db, EventDJ, event_id=event.id) == 2

    async def test_event_without_djs_still_gets_payment(self, db, producer):
        event = await event_service.create_event(db, _payload(producer, cache_value=None))
        assert event.dj_id is None
        assert await _count(db, EventDJ, event_id=event.id) == 0
        payment = (await db.execute(select(Payment).where(Payment.event_id == event.id))).scalar_one()
        assert payment.amount == Decimal("0.00")

    async def test_relation_stats(self, db, producer, dj_a, dj_b):
        await event_service.create_event(db, _payload(producer, dj_a, dj_b, fees={dj_a: 300}))
        await event_service.create_event(
            db, _payload(producer, dj_a, fees={dj_a: 100}, event_date="2027-01-10", cache_value="100")
        )

        relations = await event_service.list_dj_producer_relations(db, producer_id=producer.id)
        by_dj = {relation.dj_id: relation for relation in relations}

        assert by_dj[dj_a.id].total_events == 2
        assert by_dj[dj_a.id].total_revenue == Decimal("400.00")
        assert by_dj[dj_a.id].last_event_date == date(2027, 1, 10)
        # No fee for B: even split of the 500 cache
        assert by_dj[dj_b.id].total_events == 1
        assert by_dj[dj_b.id].total_revenue == Decimal("250.00")

    async def test_no_relations_without_producer(self, db, dj_a):
        await event_service.create_event(db, {
            "event_name": "Sem produtor",
            "event_date": "2026-10-10",
            "dj_ids": [str(dj_a.id)],
        })
        assert await _count(db, DJProducerRelation) == 0

    async def test_contract_per_dj(self, db, producer, dj_a, dj_b):
        event = await event_service.create_event(
            db, _payload(producer, dj_a, dj_b, fees={dj_a: 300, dj_b: 200})
        )
        contracts = (await db.execute(select(Contract).where(Contract.event_id == event.id))).scalars().all()
        assert {c.dj_id for c in contracts} == {dj_a.id, dj_b.id}
        by_dj = {c.dj_id: c for c in contracts}
        assert by_dj[dj_a.id].cache_value == Decimal("300.00")
        assert "R$ 300,00" in by_dj[dj_a.id].contract_content
        assert "DJ Alice" in by_dj[dj_a.id].contract_content
        assert "Paulo Produtor" in by_dj[dj_a.id].contract_content
        assert "20/12/2026" in by_dj[dj_a.id].contract_content
        assert not any(c.signed for c in contracts)

    async def test_invalid_dj_id_rejected(self, db, producer):
        with pytest.raises(ValidationError):
            await event_service.create_event(db, {
                "event_name": "X", "event_date": "2026-01-01", "dj_ids": ["nope"],
            })

    async def test_empty_fee_map_key_rejected(self, db, producer, dj_a):
        with pytest.raises(ValidationError):
            await event_service.create_event(db, _payload(producer, dj_a, dj_fee_map={" ": 10}))


class TestUpdateEvent:
    """Event edits re-synchronize DJs and the payment."""

    async def test_replaces_dj_set(self, db, producer, dj_a, dj_b):
        event = await event_service.create_event(db, _payload(producer, dj_a, dj_b))

        updated = await event_service.update_event(
            db, event.id, _payload(producer, dj_b, fees={dj_b: 450}, cache_value="450")
        )

        links = (await db.execute(select(EventDJ).where(EventDJ.event_id == event.id))).scalars().all()
        assert [(link.dj_id, link.fee) for link in links] == [(dj_b.id, Decimal("450.00"))]
        assert updated.dj_id == dj_b.id
        assert updated.cache_value == Decimal("450.00")

    async def test_payment_follows_cache_and_stays_pending(self, db, producer, dj_a):
        event = await event_service.create_event(db, _payload(producer, dj_a))

        await event_service.update_event(
            db, event.id, _payload(producer, dj_a, cache_value="800", event_date="2026-12-31")
        )

        payments = (await db.execute(select(Payment).where(Payment.event_id == event.id))).scalars().all()
        assert len(payments) == 1
        assert payments[0].amount == Decimal("800.00")
        assert payments[0].due_date == date(2026, 12, 31)
        assert payments[0].status == PaymentStatus.PENDING.value

    async def test_paid_payment_status_untouched(self, db, producer, dj_a):
        event = await event_service.create_event(db, _payload(producer, dj_a))
        payment = (await db.execute(select(Payment).where(Payment.event_id == event.id))).scalar_one()
        payment.status = PaymentStatus.PAID.value
        await db.flush()

        await event_service.update_event(db, event.id, _payload(producer, dj_a, cache_value="900"))

        payment = (await db.execute(select(Payment).where(Payment.event_id == event.id))).scalar_one()
        assert payment.status == PaymentStatus.PAID.value
        assert payment.amount == Decimal("900.00")

    async def test_new_dj_gets_contract(self, db, producer, dj_a, dj_b):
        event = await event_service.create_event(db, _payload(producer, dj_a))
        await event_service.update_event(db, event.id, _payload(producer, dj_a, dj_b))
        assert await _count(db, Contract, event_id=event.id) == 2

    async def test_unknown_event(self, db, producer):
        with pytest.raises(NotFoundError):
            await event_service.update_event(db, uuid.uuid4(), _payload(producer))


class TestDeleteEvent:
    """Event deletion and permissions."""

    async def test_admin_deletes_everything(self, db, admin, producer, dj_a, dj_b):
        event = await event_service.create_event(db, _payload(producer, dj_a, dj_b), created_by=producer.id)

        await event_service.delete_event(db, event.id, admin)

        assert await _count(db, Event, id=event.id) == 0
        assert await _count(db, EventDJ, event_id=event.id) == 0
        assert await _count(db, Payment, event_id=event.id) == 0
        assert await _count(db, Contract, event_id=event.id) == 0

    async def test_creator_can_delete(self, db, producer, dj_a):
        event = await event_service.create_event(db, _payload(producer, dj_a), created_by=producer.id)
        await event_service.delete_event(db, event.id, producer)
        assert await _count(db, Event, id=event.id) == 0

    async def test_other_users_cannot_delete(self, db, producer, dj_a):
        event = await event_service.create_event(db, _payload(producer, dj_a), created_by=producer.id)
        with pytest.raises(PermissionDeniedError) as exc_info:
            await event_service.delete_event(db, event.id, dj_a)
        assert exc_info.value.kind == ErrorKind.UNAUTHORIZED
        assert await _count(db, Event, id=event.id) == 1

    async def test_unknown_event(self, db, admin):
        with pytest.raises(NotFoundError):
            await event_service.delete_event(db, uuid.uuid4(), admin)


class TestEventQueries:
    """Role-scoped listings."""

    async def test_dj_sees_assigned_events(self, db, admin, producer, dj_a, dj_b):
        first = await event_service.create_event(db, _payload(producer, dj_a, dj_b))
        second = await event_service.create_event(db, _payload(producer, dj_a, event_date="2027-02-01"))

        assert [e.id for e in await event_service.list_events_for_profile(db, dj_b)] == [first.id]
        assert [e.id for e in await event_service.list_events_for_profile(db, dj_a)] == [second.id, first.id]
        assert len(await event_service.list_events_for_profile(db, admin)) == 2
        assert len(await event_service.list_events_for_profile(db, producer)) == 2

    async def test_get_unknown_event(self, db):
        with pytest.raises(NotFoundError):
            await event_service.get_event(db, uuid.uuid4())


class TestEventsAPI:
    """HTTP surface of the events router."""

    async def test_create_and_get(self, client, current_user, producer, dj_a, dj_b):
        current_user["profile"] = producer
        response = await client.post("/events", json={
            "title": "Noite Eletrônica",
            "date": "2026-11-15",
            "cache": "500",
            "djIds": [str(dj_a.id), str(dj_b.id)],
            "dj_fee_map": {str(dj_a.id): 300, str(dj_b.id): 200},
        })
        assert response.status_code == 201
        body = response.json()
        assert body["event_name"] == "Noite Eletrônica"
        assert body["producer_id"] == str(producer.id)
        assert body["created_by"] == str(producer.id)
        assert Decimal(body["cache_value"]) == Decimal("500")
        assert {dj["dj_id"] for dj in body["djs"]} == {str(dj_a.id), str(dj_b.id)}
        assert len(body["payments"]) == 1
        assert body["payments"][0]["status"] == "pending"

        response = await client.get(f"/events/{body['id']}")
        assert response.status_code == 200
        assert response.json()["id"] == body["id"]

    async def test_repeated_dj_in_upper_case_is_accepted(self, client, producer, dj_a):
        payload = _payload(producer, dj_a)
        payload["dj_ids"] = [str(dj_a.id), str(dj_a.id).upper()]

        response = await client.post("/events", json=payload)

        assert response.status_code == 201
        assert [dj["dj_id"] for dj in response.json()["djs"]] == [str(dj_a.id)]

    async def test_missing_name_is_400(self, client):
        response = await client.post("/events", json={"event_date": "2026-11-15"})
        assert response.status_code == 400
        assert response.json() == {"detail": "Event name is required.", "code": "validation"}

    async def test_dj_cannot_create(self, client, current_user, dj_a):
        current_user["profile"] = dj_a
        response = await client.post("/events", json={"event_name": "X", "event_date": "2026-11-15"})
        assert response.status_code == 403

    async def test_delete_returns_id(self, client, producer, dj_a):
        create = await client.post("/events", json=_payload(producer, dj_a))
        event_id = create.json()["id"]

        response = await client.delete(f"/events/{event_id}")
        assert response.status_code == 200
        assert response.json() == {"success": True, "deleted_id": event_id}

        response = await client.get(f"/events/{event_id}")
        assert response.status_code == 404
        assert response.json()["code"] == "not_found"
