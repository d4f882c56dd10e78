"""Money Model

Pure functions that derive invoice amounts from line items.
No I/O; every function is deterministic for its inputs.

Rounding is half-away-from-zero to 2 places (``ROUND_HALF_UP`` on Decimal),
applied once per derived field. Line products are summed unrounded.
"""

from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP, InvalidOperation
from typing import Iterable, Optional, Protocol

TWO_PLACES = Decimal("0.01")
ZERO = Decimal("0")
HUNDRED = Decimal("100")

SUPPORTED_CURRENCIES = ("KES", "USD", "EUR", "GBP", "TZS", "UGX", "NGN")
DEFAULT_CURRENCY = "KES"
DEFAULT_ITEM_DESCRIPTION = "Item"


class InvalidLineItem(ValueError):
    """Raised when a line item cannot be priced"""

    def __init__(self, code: str, message: str):
        super().__init__(message)
        self.code = code
        self.message = message


class PricedLine(Protocol):
    quantity: Decimal
    unit_price: Decimal


@dataclass(frozen=True)
class InvoiceTotals:
    """Derived amounts for an invoice, all rounded to 2 places"""
    subtotal: Decimal
    tax_rate: Decimal
    tax_amount: Decimal
    discount: Decimal
    total: Decimal


def round2(value: Decimal) -> Decimal:
    """Round to 2 decimal places, half away from zero"""
    return Decimal(value).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def to_decimal(value) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def clamp_tax_rate(tax_rate) -> Decimal:
    """Tax rate is a percentage in [0, 100]"""
    rate = to_decimal(tax_rate if tax_rate is not None else 0)
    return max(ZERO, min(HUNDRED, rate))


def clamp_discount(discount) -> Decimal:
    return max(ZERO, to_decimal(discount if discount is not None else 0))


def normalize_unit_price(unit_price) -> Decimal:
    """Negative unit prices are coerced to zero"""
    return max(ZERO, to_decimal(unit_price))


def normalize_currency(code: Optional[str], default: str = DEFAULT_CURRENCY,
                       supported: Iterable[str] = SUPPORTED_CURRENCIES) -> str:
    """
    Resolve a currency code against the supported set.

    Unknown or empty codes fall back to ``default`` instead of failing.
    """
    candidate = (code or "").strip().upper()
    if candidate and candidate in set(supported):
        return candidate
    return default


def normalize_description(description: Optional[str]) -> str:
    text = (description or "").strip()
    return text or DEFAULT_ITEM_DESCRIPTION


def validate_quantity(quantity) -> Decimal:
    """
    Reject negative quantities.

    Credit lines are not supported; the same rule guards creation and item
    replacement.
    """
    qty = to_decimal(quantity)
    if qty < ZERO:
        raise InvalidLineItem(
            code="INVALID_QUANTITY",
            message="Item quantity cannot be negative",
        )
    return qty


def line_total(quantity, unit_price) -> Decimal:
    """Stored line total, rounded for display"""
    return round2(to_decimal(quantity) * to_decimal(unit_price))


def compute_totals(lines: Iterable[PricedLine], tax_rate, discount) -> InvoiceTotals:
    """
    Compute subtotal, tax and total from line items.

    subtotal = sum(quantity * unit_price)
    tax      = subtotal * tax_rate / 100
    total    = max(0, subtotal + tax - discount)
    """
    rate = clamp_tax_rate(tax_rate)
    disc = clamp_discount(discount)

    raw_subtotal = sum(
        (to_decimal(line.quantity) * to_decimal(line.unit_price) for line in lines),
        ZERO,
    )
    raw_tax = raw_subtotal * rate / HUNDRED
    raw_total = max(ZERO, raw_subtotal + raw_tax - disc)

    return InvoiceTotals(
        subtotal=round2(raw_subtotal),
        tax_rate=rate,
        tax_amount=round2(raw_tax),
        discount=round2(disc),
        total=round2(raw_total),
    )


def compute_total(subtotal, tax_amount, discount) -> Decimal:
    """Total from already-stored amounts, clamped at zero"""
    raw = to_decimal(subtotal) + to_decimal(tax_amount) - to_decimal(discount)
    return round2(max(ZERO, raw))


def outstanding_balance(total, paid_amount) -> Decimal:
    return round2(max(ZERO, to_decimal(total) - to_decimal(paid_amount)))


def compute_late_fee(outstanding, fee_percent, fee_cap) -> Decimal:
    """fee = min(cap, outstanding * percent / 100), never negative"""
    fee = to_decimal(outstanding) * to_decimal(fee_percent) / HUNDRED
    cap = to_decimal(fee_cap)
    if cap > ZERO:
        fee = min(cap, fee)
    return round2(max(ZERO, fee))


def parse_amount(raw: Optional[str]) -> Optional[Decimal]:
    """
    Parse a free-text amount such as ``"1,500.00"``.

    Returns None for anything unparsable, non-finite or not positive.
    """
    if raw is None:
        return None
    text = str(raw).strip().replace(",", "")
    if not text:
        return None
    try:
        value = Decimal(text)
    except InvalidOperation:
        return None
    if not value.is_finite() or value <= ZERO:
        return None
    return round2(value)
