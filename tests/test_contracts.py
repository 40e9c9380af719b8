"""Tests for contract rendering, permissions and signing."""

import uuid
from datetime import date, datetime
from decimal import Decimal

import pytest

from djagency.core.errors import DomainError, ErrorKind, PermissionDeniedError, ValidationError
from djagency.services import contracts as contract_service
from djagency.services import events as event_service
from djagency.services.contracts import (
    DEFAULT_CONTRACT_TEMPLATE,
    ContractContext,
    format_brl,
    format_date_br,
    render_contract,
)


async def _event_with_djs(db, producer, *djs, fees=None):
    return await event_service.create_event(
        db,
        {
            "event_name": "Baile do Porto",
            "event_date": "2026-11-28",
            "cache_value": "1000",
            "location": "Armazém 5",
            "city": "Rio de Janeiro",
            "commission_rate": "15",
            "producer_id": str(producer.id),
            "dj_ids": [str(dj.id) for dj in djs],
            "dj_fee_map": {str(dj.id): fee for dj, fee in (fees or {}).items()},
        },
        created_by=producer.id,
    )


async def _contract_for(db, event, dj):
    contracts = await contract_service.list_contracts(db, dj_id=dj.id, event_id=event.id)
    assert len(contracts) == 1
    return contracts[0]


class TestFormatting:
    """Brazilian money and date formatting."""

    @pytest.mark.parametrize(
        "value, expected",
        [
            (1234.56, "R$ 1.234,56"),
            ("1.234,56", "R$ 1.234,56"),
            (0, "R$ 0,00"),
            (None, "R$ 0,00"),
            ("abc", "R$ 0,00"),
            (1000000, "R$ 1.000.000,00"),
            (10.005, "R$ 10,01"),
            (-50, "-R$ 50,00"),
        ],
    )
    def test_format_brl(self, value, expected):
        assert format_brl(value) == expected

    def test_format_date(self):
        assert format_date_br(date(2026, 3, 7)) == "07/03/2026"
        assert format_date_br(datetime(2026, 3, 7, 22, 30)) == "07/03/2026"
        assert format_date_br("2026-03-07T22:00:00Z") == "07/03/2026"
        assert format_date_br("soon") == ""
        assert format_date_br(None) == ""


class TestRenderContract:
    """Placeholder substitution."""

    def test_replaces_every_placeholder(self):
        context = ContractContext(
            event_name="Festival",
            event_date=date(2026, 8, 1),
            location="Praia",
            city="Florianópolis",
            cache_value=Decimal("2500"),
            dj_name="DJ Alice",
            producer_name="Paulo Produtor",
            commission_rate=Decimal("12.50"),
        )
        content = render_contract(DEFAULT_CONTRACT_TEMPLATE, context, today=date(2026, 7, 1))

        assert "{{" not in content
        assert "CONTRATANTE: Paulo Produtor" in content
        assert "CONTRATADO: DJ Alice" in content
        assert '"Festival"' in content
        assert "01/08/2026" in content
        assert "R$ 2.500,00" in content
        assert "12.5%" in content
        assert "Data: 01/07/2026" in content

    def test_default_commission_rate(self):
        content = render_contract("{{commissionRate}}%", ContractContext())
        assert content == "20%"

    def test_repeated_placeholders(self):
        content = render_contract("{{djName}} / {{djName}}", ContractContext(dj_name="X"))
        assert content == "X / X"

    def test_unknown_placeholders_are_kept(self):
        assert render_contract("{{other}}", ContractContext()) == "{{other}}"


class TestContractPermissions:
    """Who may edit and sign."""

    async def test_matrix(self, db, admin, producer, dj_a, dj_b):
        event = await _event_with_djs(db, producer, dj_a)
        contract = await _contract_for(db, event, dj_a)

        assert contract_service.can_edit_contract(contract, admin)
        assert contract_service.can_edit_contract(contract, producer)
        assert not contract_service.can_edit_contract(contract, dj_a)

        assert contract_service.can_sign_contract(contract, dj_a)
        assert not contract_service.can_sign_contract(contract, dj_b)
        assert not contract_service.can_sign_contract(contract, admin)
        assert not contract_service.can_sign_contract(contract, producer)

        assert contract_service.can_view_contract(contract, dj_a)
        assert not contract_service.can_view_contract(contract, dj_b)

    async def test_signed_contract_is_read_only(self, db, admin, producer, dj_a):
        event = await _event_with_djs(db, producer, dj_a)
        contract = await _contract_for(db, event, dj_a)

        contract = await contract_service.sign_contract(db, contract.id, dj_a)

        assert not contract_service.can_edit_contract(contract, admin)
        assert not contract_service.can_sign_contract(contract, dj_a)


class TestContractLifecycle:
    """Create, edit, sign and delete."""

    async def test_sign_once(self, db, producer, dj_a):
        event = await _event_with_djs(db, producer, dj_a)
        contract = await _contract_for(db, event, dj_a)

        signed = await contract_service.sign_contract(db, contract.id, dj_a)
        assert signed.signed is True
        assert signed.signed_at is not None

        with pytest.raises(ValidationError, match="already signed"):
            await contract_service.sign_contract(db, contract.id, dj_a)

    async def test_only_contracted_dj_signs(self, db, producer, dj_a, dj_b):
        event = await _event_with_djs(db, producer, dj_a)
        contract = await _contract_for(db, event, dj_a)

        with pytest.raises(PermissionDeniedError):
            await contract_service.sign_contract(db, contract.id, dj_b)

    async def test_producer_edits_unsigned(self, db, producer, dj_a):
        event = await _event_with_djs(db, producer, dj_a)
        contract = await _contract_for(db, event, dj_a)

        updated = await contract_service.update_contract(
            db, contract.id, producer, {"contract_content": "Novo texto", "cache_value": Decimal("1200")}
        )
        assert updated.contract_content == "Novo texto"
        assert updated.cache_value == Decimal("1200.00")

    async def test_dj_cannot_edit(self, db, producer, dj_a):
        event = await _event_with_djs(db, producer, dj_a)
        contract = await _contract_for(db, event, dj_a)

        with pytest.raises(PermissionDeniedError):
            await contract_service.update_contract(db, contract.id, dj_a, {"contract_content": "x"})

    async def test_signed_cannot_be_edited(self, db, admin, producer, dj_a):
        event = await _event_with_djs(db, producer, dj_a)
        contract = await _contract_for(db, event, dj_a)
        await contract_service.sign_contract(db, contract.id, dj_a)

        with pytest.raises(ValidationError):
            await contract_service.update_contract(db, contract.id, admin, {"contract_content": "x"})

    async def test_duplicate_contract_conflicts(self, db, producer, dj_a):
        event = await _event_with_djs(db, producer, dj_a)

        with pytest.raises(DomainError) as exc_info:
            await contract_service.create_contract(db, event.id, dj_a.id)
        assert exc_info.value.kind == ErrorKind.CONFLICT

    async def test_create_defaults_to_dj_fee(self, db, producer, dj_a, dj_b):
        event = await _event_with_djs(db, producer, dj_a, fees={dj_a: 600})
        await contract_service.delete_contract(db, (await _contract_for(db, event, dj_a)).id)

        contract = await contract_service.create_contract(db, event.id, dj_a.id)
        assert contract.cache_value == Decimal("600.00")
        assert "R$ 600,00" in contract.contract_content
        assert "Armazém 5" in contract.contract_content
        assert "Rio de Janeiro" in contract.contract_content

    async def test_stored_template_is_used(self, db, producer, dj_a):
        template = await contract_service.create_template(db, "Curto", "{{djName}} toca em {{eventName}}")
        event = await _event_with_djs(db, producer, dj_a)

        content = await contract_service.render_contract_for(db, event, dj_a.id, template_id=template.id)
        assert content == "DJ Alice toca em Baile do Porto"

    async def test_delete_unknown(self, db):
        with pytest.raises(DomainError) as exc_info:
            await contract_service.delete_contract(db, uuid.uuid4())
        assert exc_info.value.kind == ErrorKind.NOT_FOUND


class TestContractsAPI:
    """HTTP surface of the contracts router."""

    async def test_sign_flow(self, client, db, current_user, producer, dj_a):
        event = await _event_with_djs(db, producer, dj_a)
        contract = await _contract_for(db, event, dj_a)

        current_user["profile"] = dj_a
        response = await client.get(f"/contracts/{contract.id}/permissions")
        assert response.json() == {"can_edit": False, "can_sign": True}

        response = await client.post(f"/contracts/{contract.id}/sign")
        assert response.status_code == 200
        assert response.json()["signed"] is True

        response = await client.post(f"/contracts/{contract.id}/sign")
        assert response.status_code == 400
        assert response.json()["code"] == "validation"

    async def test_dj_sees_only_own_contracts(self, client, db, current_user, producer, dj_a, dj_b):
        await _event_with_djs(db, producer, dj_a, dj_b)

        current_user["profile"] = dj_b
        response = await client.get("/contracts")
        assert response.status_code == 200
        assert [c["dj_id"] for c in response.json()] == [str(dj_b.id)]

    async def test_preview(self, client, db, producer, dj_a):
        event = await _event_with_djs(db, producer, dj_a)
        response = await client.post("/contracts/preview", json={"event_id": str(event.id), "dj_id": str(dj_a.id)})
        assert response.status_code == 200
        assert "Baile do Porto" in response.json()["content"]
