"""
Contract generation and lifecycle.

A contract is rendered from a template by replacing {{placeholders}} with
event and DJ data. It stays editable (admin or owning producer) until the
contracted DJ signs it; signing is final.
"""
from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from djagency.core.config import settings
from djagency.core.errors import DomainError, ErrorKind, NotFoundError, PermissionDeniedError, ValidationError
from djagency.core.retry import read_retry
from djagency.models import Contract, ContractTemplate, Event, EventDJ, Profile, ProfileRole
from djagency.services.financial import parse_number, round_currency

logger = logging.getLogger(__name__)

DEFAULT_TEMPLATE_TYPE = "dj_service"

DEFAULT_CONTRACT_TEMPLATE = """CONTRATO DE PRESTAÇÃO DE SERVIÇOS ARTÍSTICOS

CONTRATANTE: {{producerName}}
CONTRATADO: {{djName}}

CLÁUSULA 1 - DO OBJETO
O CONTRATADO se compromete a realizar apresentação artística como DJ no evento
"{{eventName}}", a ser realizado em {{eventDate}}, no local {{location}}, na
cidade de {{city}}.

CLÁUSULA 2 - DO CACHÊ
Pela apresentação, o CONTRATANTE pagará ao CONTRATADO o valor de {{cacheValue}}.
Sobre este valor incide a comissão de agenciamento de {{commissionRate}}%.

CLÁUSULA 3 - DAS OBRIGAÇÕES DO CONTRATANTE
O CONTRATANTE fornecerá os equipamentos e a estrutura técnica acordados, bem
como as condições de acesso e segurança necessárias à apresentação.

CLÁUSULA 4 - DAS OBRIGAÇÕES DO CONTRATADO
O CONTRATADO comparecerá ao local com a antecedência combinada e cumprirá o
horário de apresentação definido pelo CONTRATANTE.

CLÁUSULA 5 - DO CANCELAMENTO
O cancelamento por qualquer das partes deverá ser comunicado por escrito com
antecedência mínima de 15 (quinze) dias da data do evento.

E por estarem de acordo, as partes assinam o presente contrato.

Data: {{today}}
"""


def format_brl(value: Any) -> str:
    """Format a value as Brazilian reais: R$ 1.234,56"""
    amount = parse_number(value)
    if amount is None:
        return "R$ 0,00"
    rounded = round_currency(amount)
    sign = "-" if rounded < 0 else ""
    formatted = f"{abs(rounded):,.2f}"  # 1,234.56
    formatted = formatted.replace(",", "_").replace(".", ",").replace("_", ".")
    return f"{sign}R$ {formatted}"


def format_date_br(value: Any) -> str:
    """dd/mm/yyyy for dates, datetimes and ISO strings; '' when unknown."""
    if isinstance(value, datetime):
        value = value.date()
    if isinstance(value, str):
        try:
            value = date.fromisoformat(value.strip()[:10])
        except ValueError:
            return ""
    if not isinstance(value, date):
        return ""
    return value.strftime("%d/%m/%Y")


@dataclass
class ContractContext:
    """Values substituted into a contract template."""
    event_name: str = ""
    event_date: Any = None
    location: str = ""
    city: str = ""
    cache_value: Any = None
    dj_name: str = ""
    producer_name: str = ""
    commission_rate: Any = None

    def variables(self, today: Optional[date] = None) -> Dict[str, str]:
        rate = parse_number(self.commission_rate)
        if rate is None:
            rate_text = settings.DEFAULT_COMMISSION_RATE
        else:
            rate_text = format(rate.normalize(), "f")
        return {
            "{{eventName}}": self.event_name or "",
            "{{eventDate}}": format_date_br(self.event_date),
            "{{location}}": self.location or "",
            "{{city}}": self.city or "",
            "{{cacheValue}}": format_brl(self.cache_value),
            "{{djName}}": self.dj_name or "",
            "{{producerName}}": self.producer_name or "",
            "{{commissionRate}}": rate_text,
            "{{today}}": format_date_br(today or date.today()),
        }


def render_contract(template: str, context: ContractContext, today: Optional[date] = None) -> str:
    """Replace every known placeholder in the template."""
    content = template
    for placeholder, value in context.variables(today).items():
        content = content.replace(placeholder, value)
    return content


async def get_template_content(db: AsyncSession, template_id: Optional[uuid.UUID] = None) -> str:
    """Stored template by id, else the latest DJ service template, else the built-in text."""
    if template_id is not None:
        template = await db.get(ContractTemplate, template_id)
        if template is None:
            raise NotFoundError("Contract template", template_id)
        return template.content

    result = await db.execute(
        select(ContractTemplate)
        .where(ContractTemplate.template_type == DEFAULT_TEMPLATE_TYPE)
        .order_by(ContractTemplate.updated_at.desc())
        .limit(1)
    )
    template = result.scalar_one_or_none()
    return template.content if template is not None else DEFAULT_CONTRACT_TEMPLATE


async def build_context(
    db: AsyncSession,
    event: Event,
    dj_id: uuid.UUID,
    fee: Optional[Decimal] = None,
) -> ContractContext:
    dj = await db.get(Profile, dj_id)
    producer = await db.get(Profile, event.producer_id) if event.producer_id else None
    return ContractContext(
        event_name=event.event_name,
        event_date=event.event_date,
        location=event.location or event.venue or "",
        city=event.city or "",
        cache_value=fee if fee is not None else event.cache_value,
        dj_name=dj.display_name if dj else "",
        producer_name=producer.full_name if producer else "",
        commission_rate=event.commission_rate,
    )


async def render_contract_for(
    db: AsyncSession,
    event: Event,
    dj_id: uuid.UUID,
    fee: Optional[Decimal] = None,
    template_id: Optional[uuid.UUID] = None,
) -> str:
    """Render the contract text for one DJ at an event."""
    template = await get_template_content(db, template_id)
    context = await build_context(db, event, dj_id, fee)
    return render_contract(template, context)


# Permissions

def can_edit_contract(contract: Contract, profile: Profile) -> bool:
    if contract.signed:
        return False
    if profile.is_admin_user:
        return True
    return profile.role == ProfileRole.PRODUCER.value and contract.producer_id == profile.id


def can_sign_contract(contract: Contract, profile: Profile) -> bool:
    return profile.role == ProfileRole.DJ.value and contract.dj_id == profile.id and not contract.signed


def can_view_contract(contract: Contract, profile: Profile) -> bool:
    return profile.is_admin_user or profile.id in (contract.dj_id, contract.producer_id)


# Queries

def _contract_options():
    return (
        selectinload(Contract.event),
        selectinload(Contract.dj),
        selectinload(Contract.producer),
    )


async def _load_contract(db: AsyncSession, contract_id: uuid.UUID) -> Contract:
    result = await db.execute(
        select(Contract)
        .options(*_contract_options())
        .where(Contract.id == contract_id)
        .execution_options(populate_existing=True)
    )
    contract = result.scalar_one_or_none()
    if contract is None:
        raise NotFoundError("Contract", contract_id)
    return contract


@read_retry()
async def get_contract(db: AsyncSession, contract_id: uuid.UUID) -> Contract:
    return await _load_contract(db, contract_id)


@read_retry()
async def list_contracts(
    db: AsyncSession,
    dj_id: Optional[uuid.UUID] = None,
    producer_id: Optional[uuid.UUID] = None,
    event_id: Optional[uuid.UUID] = None,
) -> List[Contract]:
    """Contracts, newest first, optionally filtered."""
    query = select(Contract).options(*_contract_options())
    if dj_id is not None:
        query = query.where(Contract.dj_id == dj_id)
    if producer_id is not None:
        query = query.where(Contract.producer_id == producer_id)
    if event_id is not None:
        query = query.where(Contract.event_id == event_id)
    result = await db.execute(query.order_by(Contract.created_at.desc()))
    return list(result.scalars().all())


async def list_contracts_for_profile(db: AsyncSession, profile: Profile) -> List[Contract]:
    if profile.is_admin_user:
        return await list_contracts(db)
    if profile.role == ProfileRole.PRODUCER.value:
        return await list_contracts(db, producer_id=profile.id)
    return await list_contracts(db, dj_id=profile.id)


# Mutations

async def create_contract(
    db: AsyncSession,
    event_id: uuid.UUID,
    dj_id: uuid.UUID,
    cache_value: Optional[Decimal] = None,
    content: Optional[str] = None,
    template_id: Optional[uuid.UUID] = None,
) -> Contract:
    """
    Create the contract for a DJ at an event.

    The cache defaults to the DJ's fee on the event, then the event cache.
    The content is rendered from the template when not given.
    """
    event = await db.get(Event, event_id)
    if event is None:
        raise NotFoundError("Event", event_id)
    if await db.get(Profile, dj_id) is None:
        raise NotFoundError("DJ", dj_id)

    existing = await db.execute(
        select(Contract.id).where(Contract.event_id == event_id).where(Contract.dj_id == dj_id)
    )
    if existing.scalar_one_or_none() is not None:
        raise DomainError(kind=ErrorKind.CONFLICT, message="A contract already exists for this DJ and event")

    if cache_value is None:
        fee_result = await db.execute(
            select(EventDJ.fee).where(EventDJ.event_id == event_id).where(EventDJ.dj_id == dj_id)
        )
        cache_value = fee_result.scalar_one_or_none()
    if cache_value is None:
        cache_value = event.cache_value

    if content is None:
        content = await render_contract_for(db, event, dj_id, cache_value, template_id)

    contract = Contract(
        event_id=event_id,
        dj_id=dj_id,
        producer_id=event.producer_id,
        cache_value=round_currency(cache_value),
        contract_content=content,
        signed=False,
    )
    db.add(contract)
    try:
        await db.flush()
    except IntegrityError:
        raise DomainError(kind=ErrorKind.CONFLICT, message="A contract already exists for this DJ and event")

    logger.info(f"Created contract {contract.id} for event {event_id}, DJ {dj_id}")
    return await _load_contract(db, contract.id)


async def update_contract(
    db: AsyncSession,
    contract_id: uuid.UUID,
    profile: Profile,
    updates: Dict[str, Any],
) -> Contract:
    """Edit an unsigned contract (admin or owning producer)."""
    contract = await _load_contract(db, contract_id)
    if contract.signed:
        raise ValidationError("Signed contracts cannot be edited")
    if not can_edit_contract(contract, profile):
        raise PermissionDeniedError("Only admins or the event producer can edit this contract")

    for key in ("contract_content", "contract_url"):
        if key in updates:
            setattr(contract, key, updates[key])
    if updates.get("cache_value") is not None:
        contract.cache_value = round_currency(updates["cache_value"])

    await db.flush()
    logger.info(f"Updated contract {contract_id} (by {profile.id})")
    return await _load_contract(db, contract_id)


async def sign_contract(db: AsyncSession, contract_id: uuid.UUID, profile: Profile) -> Contract:
    """Sign a contract as the contracted DJ."""
    contract = await _load_contract(db, contract_id)
    if contract.signed:
        raise ValidationError("Contract is already signed")
    if not can_sign_contract(contract, profile):
        raise PermissionDeniedError("Only the contracted DJ can sign this contract")

    contract.signed = True
    contract.signed_at = datetime.utcnow()
    await db.flush()

    logger.info(f"Contract {contract_id} signed by DJ {profile.id}")
    return await _load_contract(db, contract_id)


async def delete_contract(db: AsyncSession, contract_id: uuid.UUID) -> None:
    result = await db.execute(delete(Contract).where(Contract.id == contract_id))
    if result.rowcount == 0:
        raise NotFoundError("Contract", contract_id)
    logger.info(f"Deleted contract {contract_id}")


# Templates

@read_retry()
async def list_templates(db: AsyncSession) -> List[ContractTemplate]:
    result = await db.execute(select(ContractTemplate).order_by(ContractTemplate.name))
    return list(result.scalars().all())


async def create_template(db: AsyncSession, name: str, content: str, template_type: str = DEFAULT_TEMPLATE_TYPE) -> ContractTemplate:
    template = ContractTemplate(name=name, content=content, template_type=template_type)
    db.add(template)
    await db.flush()
    logger.info(f"Created contract template {template.id} ({name})")
    return template
