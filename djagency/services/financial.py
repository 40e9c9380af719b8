"""
Financial statistics aggregation.

Business rules:
1. Each record yields an amount (lenient parsing, 0 on failure) and a status
   matched case-insensitively:
   - paid:    paid, pago
   - pending: pending, pendente, pagamento_enviado, processing
   Records with any other status count in total_revenue only.

2. Commission per record, first match wins:
   a. pre-computed agency_commission
   b. commission_rate (percent) applied to the amount
   c. absolute commission_amount
   d. 0
   Rate and amount are read from the record, then from its nested event.
   Negative rates / amounts are clamped to 0.

3. Money is rounded half-up to 2 places; net_revenue is never negative.

Everything here is pure: no I/O, no mutation of the inputs.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation, localcontext
from typing import Any, Iterable, Mapping, Optional, Union

NumberLike = Union[int, float, Decimal, str, None]

CENT = Decimal("0.01")
ZERO = Decimal("0")
HUNDRED = Decimal("100")

# Amounts above 10**MAX_MAGNITUDE are treated as unparseable
MAX_MAGNITUDE = 10_000

PAID_STATUSES = frozenset({"paid", "pago"})
PENDING_STATUSES = frozenset({"pending", "pendente", "pagamento_enviado", "processing"})

_CURRENCY_PREFIX = re.compile(r"^(r\$|\$|brl)", re.IGNORECASE)


def parse_number(value: Any) -> Optional[Decimal]:
    """
    Parse a number leniently.

    Accepts ints, floats, Decimals and strings using either the Brazilian
    ("1.234,56", "12,5") or the US ("1,234.56") convention, with optional
    whitespace and currency prefix. Returns None for None, "", booleans,
    NaN, infinities, magnitudes above 10**MAX_MAGNITUDE and anything
    unparseable.
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, Decimal):
        return _bounded(value)

    if isinstance(value, (int, float)):
        if isinstance(value, float) and (value != value or value in (float("inf"), float("-inf"))):
            return None
        # repr() gives the shortest decimal that round-trips the float
        return _bounded(Decimal(repr(value)) if isinstance(value, float) else Decimal(value))

    if not isinstance(value, str):
        return None

    normalized = re.sub(r"\s+", "", value)
    normalized = _CURRENCY_PREFIX.sub("", normalized)
    if not normalized:
        return None

    has_comma = "," in normalized
    has_dot = "." in normalized
    if has_comma and has_dot:
        if normalized.rfind(",") > normalized.rfind("."):
            # 1.234,56
            normalized = normalized.replace(".", "").replace(",", ".")
        else:
            # 1,234.56
            normalized = normalized.replace(",", "")
    elif has_comma:
        if normalized.count(",") > 1:
            return None
        normalized = normalized.replace(",", ".")

    try:
        parsed = Decimal(normalized)
    except InvalidOperation:
        return None

    return _bounded(parsed)


def _bounded(value: Decimal) -> Optional[Decimal]:
    if not value.is_finite() or value.adjusted() > MAX_MAGNITUDE:
        return None
    return value


def round_currency(value: NumberLike) -> Decimal:
    """
    Round to 2 decimal places, half-up.

    Floats are rounded from their shortest decimal representation, so
    10.005 rounds to 10.01 instead of suffering from its binary value
    (10.00499999...). Unparseable input rounds to 0.
    """
    parsed = parse_number(value)
    if parsed is None:
        return ZERO.quantize(CENT)
    with localcontext() as ctx:
        # integer digits plus two decimals must fit the precision
        ctx.prec = max(ctx.prec, parsed.adjusted() + 4)
        return parsed.quantize(CENT, rounding=ROUND_HALF_UP)


def _non_negative(value: Optional[Decimal]) -> Optional[Decimal]:
    if value is None:
        return None
    return value if value > ZERO else ZERO


def _first_present(mapping: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        value = mapping.get(key)
        if value is not None:
            return value
    return None


@dataclass(frozen=True)
class FinancialRecord:
    """
    Typed view over an event-like or payment-like record.

    Built at the boundary from ORM rows or plain mappings so the aggregator
    never speculates about the shape of its input.
    """
    amount: Decimal = ZERO
    status: str = ""
    agency_commission: Optional[Decimal] = None
    commission_rate: Optional[Decimal] = None
    commission_amount: Optional[Decimal] = None

    @classmethod
    def from_mapping(cls, record: Mapping[str, Any]) -> "FinancialRecord":
        """Build from a dict, optionally carrying a nested 'event' mapping."""
        event = record.get("event")
        if not isinstance(event, Mapping):
            event = {}

        amount = parse_number(_first_present(record, "amount", "value", "fee", "cache_value", "cache"))
        if amount is None:
            amount = parse_number(_first_present(event, "cache_value", "fee", "cache"))

        status = _first_present(record, "status", "payment_status")

        rate = parse_number(record.get("commission_rate"))
        if rate is None:
            rate = parse_number(event.get("commission_rate"))

        commission_amount = parse_number(record.get("commission_amount"))
        if commission_amount is None:
            commission_amount = parse_number(event.get("commission_amount"))

        return cls(
            amount=amount if amount is not None else ZERO,
            status=str(status or "").strip().lower(),
            agency_commission=parse_number(record.get("agency_commission")),
            commission_rate=rate,
            commission_amount=commission_amount,
        )

    @classmethod
    def from_event(cls, event: Any) -> "FinancialRecord":
        """Build from an Event row: amount is the cache value."""
        return cls.from_mapping({
            "cache_value": event.cache_value,
            "payment_status": event.payment_status,
            "commission_rate": event.commission_rate,
            "commission_amount": event.commission_amount,
        })

    @classmethod
    def from_payment(cls, payment: Any) -> "FinancialRecord":
        """Build from a Payment row, falling back to its event's commission."""
        event = getattr(payment, "event", None)
        nested = None
        if event is not None:
            nested = {
                "cache_value": event.cache_value,
                "commission_rate": event.commission_rate,
                "commission_amount": event.commission_amount,
            }
        return cls.from_mapping({
            "amount": payment.amount,
            "status": payment.status,
            "agency_commission": payment.agency_commission,
            "commission_rate": payment.commission_rate,
            "commission_amount": payment.commission_amount,
            "event": nested,
        })


@dataclass(frozen=True)
class FinancialStats:
    """Summary of a collection of financial records."""
    total_revenue: Decimal
    paid_revenue: Decimal
    pending_revenue: Decimal
    pending_count: int
    total_commission: Decimal
    net_revenue: Decimal


def resolve_commission(record: FinancialRecord, amount: Decimal) -> Decimal:
    """Commission for one record: pre-computed > rate > absolute > 0."""
    if record.agency_commission is not None:
        return round_currency(_non_negative(record.agency_commission))

    if record.commission_rate is not None:
        rate = _non_negative(record.commission_rate)
        return round_currency(amount * rate / HUNDRED)

    if record.commission_amount is not None:
        return round_currency(_non_negative(record.commission_amount))

    return ZERO


def _as_record(item: Union[FinancialRecord, Mapping[str, Any]]) -> FinancialRecord:
    if isinstance(item, FinancialRecord):
        return item
    return FinancialRecord.from_mapping(item)


def aggregate_financial_stats(
    records: Optional[Iterable[Union[FinancialRecord, Mapping[str, Any]]]],
) -> FinancialStats:
    """
    Aggregate revenue, commission and pending figures.

    Args:
        records: FinancialRecord instances or plain mappings (None = empty)

    Returns:
        FinancialStats with every money field rounded to cents
    """
    total_revenue = ZERO
    paid_revenue = ZERO
    pending_revenue = ZERO
    pending_count = 0
    total_commission = ZERO

    for item in records or ():
        record = _as_record(item)
        amount = record.amount

        total_revenue += amount
        if record.status in PAID_STATUSES:
            paid_revenue += amount
        elif record.status in PENDING_STATUSES:
            pending_revenue += amount
            pending_count += 1

        total_commission += resolve_commission(record, amount)

    net_revenue = total_revenue - total_commission

    return FinancialStats(
        total_revenue=round_currency(total_revenue),
        paid_revenue=round_currency(paid_revenue),
        pending_revenue=round_currency(pending_revenue),
        pending_count=pending_count,
        total_commission=round_currency(total_commission),
        net_revenue=round_currency(net_revenue if net_revenue > ZERO else ZERO),
    )
