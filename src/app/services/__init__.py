from .unit_of_work import UnitOfWork
from .notification_service import NotificationService, NoticePayload, NoticeKind
from .payment_gateway import (
    PaymentGateway,
    PaymentGatewayError,
    PaymentInitiationRequest,
    PaymentInitiationResponse,
)

__all__ = [
    "UnitOfWork",
    "NotificationService",
    "NoticePayload",
    "NoticeKind",
    "PaymentGateway",
    "PaymentGatewayError",
    "PaymentInitiationRequest",
    "PaymentInitiationResponse",
]
