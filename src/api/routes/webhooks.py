"""Payment Gateway Webhook Routes

Always acknowledges with 200 unless the signature is wrong (401), the body
is not a JSON object (400) or the store failed (500, so the gateway retries).
"""

import json
import logging
from fastapi import APIRouter, Depends, Header, Request, status
from pydantic import ValidationError
from sqlmodel.ext.asyncio.session import AsyncSession
from typing import Optional

from libs.result import Error
from src.app.services.notification_service import NotificationService
from src.app.use_cases.invoicing import (
    ReconcileGatewayEvent,
    RecordPayment,
    ReversePayment,
)
from src.app.use_cases.invoicing.dtos import GatewayWebhookEventDTO, WebhookAckDTO
from src.adapter.repositories import (
    SqlAlchemyAccountRepository,
    SqlAlchemyAuditLogRepository,
    SqlAlchemyClientRepository,
    SqlAlchemyInvoiceRepository,
    SqlAlchemyPaymentRepository,
)
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.adapter.services.webhook_signature import verify_signature
from src.depends import get_notification_service, get_session, get_webhook_secret
from src.api.error import ClientError, raise_for_error

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/webhooks", tags=["Webhooks"])


@router.post(
    "/gateway",
    response_model=WebhookAckDTO,
    status_code=status.HTTP_200_OK,
    responses={
        200: {
            "description": "Event acknowledged",
            "content": {
                "application/json": {
                    "examples": {
                        "received": {"value": {"status": "received", "event": "payment_successful"}},
                        "ignored": {"value": {"status": "ignored", "detail": "unknown invoice"}},
                        "duplicate": {"value": {"status": "duplicate", "event": "payment_successful"}},
                    }
                }
            }
        },
        400: {
            "description": "Malformed JSON",
            "content": {
                "application/json": {
                    "example": {"error": {"code": "MALFORMED_PAYLOAD", "message": "Body is not valid JSON"}}
                }
            }
        },
        401: {
            "description": "Bad signature",
            "content": {
                "application/json": {
                    "example": {"error": {"code": "INVALID_SIGNATURE", "message": "Webhook signature mismatch"}}
                }
            }
        },
    }
)
async def gateway_webhook(
    request: Request,
    x_signature: Optional[str] = Header(default=None),
    session: AsyncSession = Depends(get_session),
    notification_service: NotificationService = Depends(get_notification_service),
    webhook_secret: str = Depends(get_webhook_secret),
):
    """
    Receive a payment gateway event.

    Events are matched to invoices by `invoice_number`. Unknown invoices,
    unknown events and redeliveries are acknowledged without changes.
    """
    body = await request.body()

    if not verify_signature(webhook_secret, body, x_signature):
        raise ClientError(
            Error(code="INVALID_SIGNATURE", message="Webhook signature mismatch"),
            status_code=status.HTTP_401_UNAUTHORIZED,
        )

    try:
        data = json.loads(body)
        if not isinstance(data, dict):
            raise ValueError("payload is not a JSON object")
        event = GatewayWebhookEventDTO.model_validate(data)
    except (ValueError, ValidationError) as e:
        logger.warning(f"Rejecting malformed webhook payload: {e}")
        raise ClientError(
            Error(code="MALFORMED_PAYLOAD", message="Body is not valid JSON", reason=str(e)),
            status_code=status.HTTP_400_BAD_REQUEST,
        )

    invoice_repo = SqlAlchemyInvoiceRepository(session)
    payment_repo = SqlAlchemyPaymentRepository(session)
    audit_repo = SqlAlchemyAuditLogRepository(session)
    uow = SqlAlchemyUnitOfWork(session)

    use_case = ReconcileGatewayEvent(
        invoice_repo=invoice_repo,
        record_payment=RecordPayment(uow, invoice_repo, payment_repo, audit_repo),
        reverse_payment=ReversePayment(uow, invoice_repo, payment_repo, audit_repo),
        client_repo=SqlAlchemyClientRepository(session),
        account_repo=SqlAlchemyAccountRepository(session),
        notification_service=notification_service,
    )
    result = await use_case.execute(event)

    if result.is_err():
        raise_for_error(result.error)

    return result.value
