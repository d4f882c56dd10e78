"""Payment Gateway Interface

Outbound contract for starting a collection with the mobile-money gateway.
Settlement is never read from this call; it arrives as a webhook.
"""

from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Optional
from pydantic import BaseModel


class PaymentInitiationRequest(BaseModel):
    amount: Decimal
    currency: str
    phone_number: str
    api_ref: str
    invoice_number: str


class PaymentInitiationResponse(BaseModel):
    checkout_id: str
    state: Optional[str] = None


class PaymentGatewayError(Exception):
    """Raised when the gateway rejects or cannot be reached"""


class PaymentGateway(ABC):

    @abstractmethod
    async def initiate_payment(self, request: PaymentInitiationRequest) -> PaymentInitiationResponse:
        """
        Ask the gateway to push a payment prompt to the payer's phone

        Returns:
            Opaque checkout/transaction id

        Raises:
            PaymentGatewayError: If the gateway call fails
        """
        pass
