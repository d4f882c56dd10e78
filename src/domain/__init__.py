from .base import BaseModel, generate_uuid
from .account import Account
from .client import Client
from .invoice import Invoice, InvoiceStatus, UNSETTLED_STATUSES, COLLECTIBLE_STATUSES
from .invoice_item import InvoiceItem
from .payment import Payment, PaymentMethod, PaymentStatus
from .reminder_log import ReminderLogEntry, ReminderDeliveryStatus
from .audit_log import AuditLog
from .invoice_transitions import InvoiceAction, resolve_transition

__all__ = [
    "BaseModel",
    "generate_uuid",
    "Account",
    "Client",
    "Invoice",
    "InvoiceStatus",
    "UNSETTLED_STATUSES",
    "COLLECTIBLE_STATUSES",
    "InvoiceItem",
    "Payment",
    "PaymentMethod",
    "PaymentStatus",
    "ReminderLogEntry",
    "ReminderDeliveryStatus",
    "AuditLog",
    "InvoiceAction",
    "resolve_transition",
]
