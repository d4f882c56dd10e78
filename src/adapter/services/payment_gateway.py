"""Mobile-money gateway client (IntaSend-style collection API)"""

import logging
import re
from typing import Optional
import httpx
from src.app.services.payment_gateway import (
    PaymentGateway,
    PaymentGatewayError,
    PaymentInitiationRequest,
    PaymentInitiationResponse,
)

logger = logging.getLogger(__name__)

DEFAULT_COUNTRY_CODE = "254"


def normalize_phone_number(phone: str, country_code: str = DEFAULT_COUNTRY_CODE) -> str:
    """
    Convert a local or international number to the gateway's MSISDN format

    0712345678 / 712345678 / +254712345678 -> 254712345678
    """
    digits = re.sub(r"\D", "", phone or "")
    if len(digits) == 10 and digits.startswith("0"):
        return country_code + digits[1:]
    if len(digits) == 9:
        return country_code + digits
    if len(digits) == 12 and digits.startswith(country_code):
        return digits
    return country_code + digits


class HttpPaymentGateway(PaymentGateway):
    """
    Starts STK-push collections over HTTP

    Only the checkout id is read back; the payment itself is confirmed by
    the gateway's webhook.
    """

    def __init__(
        self,
        api_url: str,
        secret_key: str,
        publishable_key: str = "",
        callback_url: Optional[str] = None,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_url = api_url.rstrip("/")
        self.secret_key = secret_key
        self.publishable_key = publishable_key
        self.callback_url = callback_url
        self.timeout = timeout
        self.transport = transport

    async def initiate_payment(self, request: PaymentInitiationRequest) -> PaymentInitiationResponse:
        body = {
            "amount": str(request.amount),
            "currency": request.currency,
            "phone_number": normalize_phone_number(request.phone_number),
            "api_ref": request.api_ref,
            "invoice_number": request.invoice_number,
            "host": "browser",
        }
        if self.publishable_key:
            body["public_key"] = self.publishable_key
        if self.callback_url:
            body["callback_url"] = self.callback_url

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(
                    f"{self.api_url}/api/v1/payment/mpesa-stk-push/",
                    json=body,
                    headers={"Authorization": f"Bearer {self.secret_key}"},
                )
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPStatusError as e:
            raise PaymentGatewayError(
                f"Gateway returned {e.response.status_code}: {e.response.text}"
            ) from e
        except (httpx.HTTPError, ValueError) as e:
            raise PaymentGatewayError(f"Gateway request failed: {e}") from e

        invoice_data = data.get("invoice") or {}
        checkout_id = data.get("id") or invoice_data.get("invoice_id")
        if not checkout_id:
            raise PaymentGatewayError("Gateway response did not include a checkout id")

        logger.info(f"Payment push started for {request.invoice_number}: checkout={checkout_id}")
        return PaymentInitiationResponse(
            checkout_id=str(checkout_id),
            state=invoice_data.get("state") or data.get("state"),
        )
