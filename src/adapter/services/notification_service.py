"""Notification Service Implementations

Concrete transports for collection notices. Each returns False instead of
raising when delivery fails; the engine logs the outcome and never retries.
"""

import logging
from typing import Optional
import httpx
from src.app.services.notification_service import (
    NotificationService,
    NoticePayload,
)

logger = logging.getLogger(__name__)


class LoggingNotificationService(NotificationService):
    """
    Notification service that logs notices

    Useful for development and testing, or as a fallback.
    """

    async def send_due_soon_notice(self, payload: NoticePayload) -> bool:
        logger.info(
            f"[DUE SOON] {payload.invoice_number} for {payload.client_name or 'client'}: "
            f"{payload.currency} {payload.amount} due {payload.due_date.date().isoformat()}"
        )
        return True

    async def send_overdue_notice(self, payload: NoticePayload) -> bool:
        logger.warning(
            f"[OVERDUE] {payload.invoice_number} for {payload.client_name or 'client'}: "
            f"{payload.currency} {payload.amount}, {payload.days_overdue} days overdue "
            f"({payload.reminder_type})"
        )
        return True

    async def send_receipt_notice(self, payload: NoticePayload) -> bool:
        logger.info(
            f"[RECEIPT] {payload.invoice_number}: received {payload.currency} {payload.amount}"
        )
        return True


class WebhookNotificationService(NotificationService):
    """
    Notification service that hands notices to a delivery webhook

    The receiving service owns the channel (email, WhatsApp, SMS) and any
    retries. Sends the flat NoticePayload as JSON.
    """

    def __init__(self, webhook_url: str, timeout: float = 10.0):
        """
        Initialize webhook notification service

        Args:
            webhook_url: URL to POST notices to
            timeout: Request timeout in seconds
        """
        self.webhook_url = webhook_url
        self.timeout = timeout

    async def send_due_soon_notice(self, payload: NoticePayload) -> bool:
        return await self._post(payload)

    async def send_overdue_notice(self, payload: NoticePayload) -> bool:
        return await self._post(payload)

    async def send_receipt_notice(self, payload: NoticePayload) -> bool:
        return await self._post(payload)

    async def _post(self, payload: NoticePayload) -> bool:
        body = {"type": f"{payload.kind.value}_notice", **payload.model_dump(mode="json")}

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(
                    self.webhook_url,
                    json=body,
                    headers={"Content-Type": "application/json"},
                )
                response.raise_for_status()
                logger.info(
                    f"{payload.kind.value} notice for {payload.invoice_number} "
                    f"sent to {self.webhook_url}"
                )
                return True
        except httpx.HTTPError as e:
            logger.error(
                f"Failed to send {payload.kind.value} notice for {payload.invoice_number}: {e}"
            )
            return False


class CompositeNotificationService(NotificationService):
    """
    Notification service that delegates to multiple services

    Succeeds if at least one channel accepted the notice.
    """

    def __init__(self, services: list[NotificationService]):
        self.services = services

    async def send_due_soon_notice(self, payload: NoticePayload) -> bool:
        return await self._fan_out("send_due_soon_notice", payload)

    async def send_overdue_notice(self, payload: NoticePayload) -> bool:
        return await self._fan_out("send_overdue_notice", payload)

    async def send_receipt_notice(self, payload: NoticePayload) -> bool:
        return await self._fan_out("send_receipt_notice", payload)

    async def _fan_out(self, method: str, payload: NoticePayload) -> bool:
        success = False
        for service in self.services:
            try:
                if await getattr(service, method)(payload):
                    success = True
            except Exception as e:
                logger.error(f"Notification service {type(service).__name__} failed: {e}")
        return success


def create_notification_service(
    webhook_url: Optional[str] = None, timeout: float = 10.0
) -> NotificationService:
    """
    Factory function to create appropriate notification service

    Args:
        webhook_url: Optional delivery webhook. If provided, creates composite
                     service with logging + webhook. Otherwise, just logging.
        timeout: Webhook request timeout in seconds

    Returns:
        Configured NotificationService
    """
    services: list[NotificationService] = [LoggingNotificationService()]

    if webhook_url:
        services.append(WebhookNotificationService(webhook_url, timeout=timeout))

    if len(services) == 1:
        return services[0]

    return CompositeNotificationService(services)
