"""Late fee application

The fee is folded into tax_amount so the total invariant keeps holding,
and late_fee_applied_at guards against charging it twice.
"""

from datetime import datetime
from decimal import Decimal
from libs.result import Result, Return, Error
from src.domain.invoice import Invoice
from src.domain.invoice_transitions import InvoiceAction, resolve_transition
from src.domain import money


def apply_late_fee(invoice: Invoice, fee_percent, fee_cap, now: datetime) -> Result[Decimal]:
    """
    Charge a one-off late fee on the outstanding balance

    fee = min(fee_cap, outstanding * fee_percent / 100); a cap of 0 means uncapped.
    Mutates the invoice in place; the caller persists it.

    Returns:
        Result[Decimal]: the fee charged, or LATE_FEE_ALREADY_APPLIED /
        NO_LATE_FEE / a transition rejection
    """
    if invoice.late_fee_applied_at is not None:
        return Return.err(
            Error(
                code="LATE_FEE_ALREADY_APPLIED",
                message=f"Late fee already applied to {invoice.invoice_number}",
            )
        )

    transition = resolve_transition(invoice.status, InvoiceAction.APPLY_LATE_FEE)
    if transition.is_err():
        return transition

    fee = money.compute_late_fee(invoice.outstanding, fee_percent, fee_cap)
    if fee <= 0:
        return Return.err(Error(code="NO_LATE_FEE", message="Nothing to charge"))

    invoice.tax_amount = money.round2(invoice.tax_amount + fee)
    invoice.late_fee_amount = fee
    invoice.total = money.compute_total(invoice.subtotal, invoice.tax_amount, invoice.discount)
    invoice.late_fee_applied_at = now
    invoice.status = transition.value

    return Return.ok(fee)
