from .invoice_repository import InvoiceRepository
from .invoice_item_repository import InvoiceItemRepository
from .payment_repository import PaymentRepository
from .reminder_log_repository import ReminderLogRepository
from .client_repository import ClientRepository
from .account_repository import AccountRepository
from .audit_log_repository import AuditLogRepository

__all__ = [
    "InvoiceRepository",
    "InvoiceItemRepository",
    "PaymentRepository",
    "ReminderLogRepository",
    "ClientRepository",
    "AccountRepository",
    "AuditLogRepository",
]
