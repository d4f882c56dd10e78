from .invoice_repository import SqlAlchemyInvoiceRepository
from .invoice_item_repository import SqlAlchemyInvoiceItemRepository
from .payment_repository import SqlAlchemyPaymentRepository
from .reminder_log_repository import SqlAlchemyReminderLogRepository
from .client_repository import SqlAlchemyClientRepository
from .account_repository import SqlAlchemyAccountRepository
from .audit_log_repository import SqlAlchemyAuditLogRepository

__all__ = [
    "SqlAlchemyInvoiceRepository",
    "SqlAlchemyInvoiceItemRepository",
    "SqlAlchemyPaymentRepository",
    "SqlAlchemyReminderLogRepository",
    "SqlAlchemyClientRepository",
    "SqlAlchemyAccountRepository",
    "SqlAlchemyAuditLogRepository",
]
