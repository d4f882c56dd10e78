"""Invoice status transition table

Every status change goes through ``resolve_transition``. A (status, action)
pair maps either to the next status or to a named rejection; pairs missing
from the table are rejected with INVALID_TRANSITION.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Tuple, Union
from libs.result import Result, Return, Error
from src.domain.invoice import InvoiceStatus


class InvoiceAction(str, Enum):
    """Operations that act on an invoice's status"""
    EDIT = "edit"
    SEND = "send"
    VIEW = "view"
    RECORD_PAYMENT = "record_payment"
    REVERSE_PAYMENT = "reverse_payment"
    APPLY_LATE_FEE = "apply_late_fee"
    MARK_OVERDUE = "mark_overdue"
    CANCEL = "cancel"


@dataclass(frozen=True)
class Rejection:
    code: str
    message: str


CANNOT_EDIT = Rejection("CANNOT_EDIT_INVOICE", "Only draft invoices can be edited")
ALREADY_SENT = Rejection("ALREADY_SENT", "Invoice has already been sent")
CANNOT_SEND_CANCELLED = Rejection("CANNOT_SEND_CANCELLED", "Cannot send a cancelled invoice")
CANNOT_CANCEL_PAID = Rejection("CANNOT_CANCEL_PAID", "Cannot cancel a paid invoice")
ALREADY_CANCELLED = Rejection("ALREADY_CANCELLED", "Invoice is already cancelled")
INVOICE_CANCELLED = Rejection("INVOICE_CANCELLED", "Invoice is cancelled")
NOTHING_TO_REVERSE = Rejection("NOTHING_TO_REVERSE", "Invoice has no payment to reverse")

S = InvoiceStatus
A = InvoiceAction

# RECORD_PAYMENT targets partially_paid; the ledger promotes to paid once
# paid_amount covers total. VIEW and APPLY_LATE_FEE keep the status label.
TRANSITIONS: Dict[Tuple[InvoiceStatus, InvoiceAction], Union[InvoiceStatus, Rejection]] = {
    # edit
    (S.DRAFT, A.EDIT): S.DRAFT,
    (S.SENT, A.EDIT): CANNOT_EDIT,
    (S.VIEWED, A.EDIT): CANNOT_EDIT,
    (S.PARTIALLY_PAID, A.EDIT): CANNOT_EDIT,
    (S.PAID, A.EDIT): CANNOT_EDIT,
    (S.OVERDUE, A.EDIT): CANNOT_EDIT,
    (S.CANCELLED, A.EDIT): CANNOT_EDIT,
    # send
    (S.DRAFT, A.SEND): S.SENT,
    (S.VIEWED, A.SEND): S.SENT,
    (S.SENT, A.SEND): ALREADY_SENT,
    (S.PARTIALLY_PAID, A.SEND): ALREADY_SENT,
    (S.PAID, A.SEND): ALREADY_SENT,
    (S.OVERDUE, A.SEND): ALREADY_SENT,
    (S.CANCELLED, A.SEND): CANNOT_SEND_CANCELLED,
    # view (client portal)
    (S.SENT, A.VIEW): S.VIEWED,
    (S.VIEWED, A.VIEW): S.VIEWED,
    (S.PARTIALLY_PAID, A.VIEW): S.PARTIALLY_PAID,
    (S.PAID, A.VIEW): S.PAID,
    (S.OVERDUE, A.VIEW): S.OVERDUE,
    (S.CANCELLED, A.VIEW): S.CANCELLED,
    # record payment
    (S.DRAFT, A.RECORD_PAYMENT): S.PARTIALLY_PAID,
    (S.SENT, A.RECORD_PAYMENT): S.PARTIALLY_PAID,
    (S.VIEWED, A.RECORD_PAYMENT): S.PARTIALLY_PAID,
    (S.PARTIALLY_PAID, A.RECORD_PAYMENT): S.PARTIALLY_PAID,
    (S.OVERDUE, A.RECORD_PAYMENT): S.PARTIALLY_PAID,
    (S.PAID, A.RECORD_PAYMENT): S.PAID,
    (S.CANCELLED, A.RECORD_PAYMENT): INVOICE_CANCELLED,
    # reverse payment: back to sent, or partially_paid if money remains
    (S.PAID, A.REVERSE_PAYMENT): S.SENT,
    (S.PARTIALLY_PAID, A.REVERSE_PAYMENT): S.SENT,
    (S.DRAFT, A.REVERSE_PAYMENT): NOTHING_TO_REVERSE,
    (S.SENT, A.REVERSE_PAYMENT): NOTHING_TO_REVERSE,
    (S.VIEWED, A.REVERSE_PAYMENT): NOTHING_TO_REVERSE,
    (S.OVERDUE, A.REVERSE_PAYMENT): NOTHING_TO_REVERSE,
    (S.CANCELLED, A.REVERSE_PAYMENT): INVOICE_CANCELLED,
    # late fee
    (S.SENT, A.APPLY_LATE_FEE): S.SENT,
    (S.VIEWED, A.APPLY_LATE_FEE): S.VIEWED,
    (S.PARTIALLY_PAID, A.APPLY_LATE_FEE): S.PARTIALLY_PAID,
    (S.OVERDUE, A.APPLY_LATE_FEE): S.OVERDUE,
    # mark overdue
    (S.SENT, A.MARK_OVERDUE): S.OVERDUE,
    (S.VIEWED, A.MARK_OVERDUE): S.OVERDUE,
    # cancel
    (S.DRAFT, A.CANCEL): S.CANCELLED,
    (S.SENT, A.CANCEL): S.CANCELLED,
    (S.VIEWED, A.CANCEL): S.CANCELLED,
    (S.PARTIALLY_PAID, A.CANCEL): S.CANCELLED,
    (S.OVERDUE, A.CANCEL): S.CANCELLED,
    (S.PAID, A.CANCEL): CANNOT_CANCEL_PAID,
    (S.CANCELLED, A.CANCEL): ALREADY_CANCELLED,
}


def resolve_transition(current: InvoiceStatus, action: InvoiceAction) -> Result[InvoiceStatus]:
    """
    Look up the next status for an action

    Returns:
        Result[InvoiceStatus]: next status, or the named rejection as an Error
    """
    target = TRANSITIONS.get((InvoiceStatus(current), action))

    if target is None:
        return Return.err(
            Error(
                code="INVALID_TRANSITION",
                message=f"Cannot {action.value} an invoice in status {InvoiceStatus(current).value}",
            )
        )

    if isinstance(target, Rejection):
        return Return.err(Error(code=target.code, message=target.message))

    return Return.ok(target)


def is_allowed(current: InvoiceStatus, action: InvoiceAction) -> bool:
    return resolve_transition(current, action).is_ok()


# Rejection codes that mean "the request conflicts with the invoice's state"
CONFLICT_CODES = frozenset({
    CANNOT_EDIT.code,
    ALREADY_SENT.code,
    CANNOT_SEND_CANCELLED.code,
    CANNOT_CANCEL_PAID.code,
    ALREADY_CANCELLED.code,
    INVOICE_CANCELLED.code,
    NOTHING_TO_REVERSE.code,
    "INVALID_TRANSITION",
    "INVOICE_ALREADY_PAID",
})
