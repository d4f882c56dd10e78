from .unit_of_work import SqlAlchemyUnitOfWork
from .notification_service import (
    LoggingNotificationService,
    WebhookNotificationService,
    CompositeNotificationService,
    create_notification_service,
)
from .payment_gateway import HttpPaymentGateway, normalize_phone_number
from .webhook_signature import compute_signature, verify_signature

__all__ = [
    "SqlAlchemyUnitOfWork",
    "LoggingNotificationService",
    "WebhookNotificationService",
    "CompositeNotificationService",
    "create_notification_service",
    "HttpPaymentGateway",
    "normalize_phone_number",
    "compute_signature",
    "verify_signature",
]
