"""
Payment gateway port

Every call either returns a result or raises one of the `GatewayError`
variants below; SDK exceptions never leak past the adapter.
"""

from abc import ABC, abstractmethod
from typing import Optional
from uuid import UUID

from src.service.ticketing.app.dto.gateway_result import IntentResult, RefundResult, WebhookEvent


class GatewayError(Exception):
    code: str = 'gateway_error'

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class GatewayTransportError(GatewayError):
    """Network failure, timeout or gateway outage; the request may not have reached it"""

    code = 'transport_error'


class GatewayDeclinedError(GatewayError):
    """The gateway processed and rejected the request (card declined, invalid request)"""

    def __init__(self, *, code: str, message: str, intent_id: Optional[str] = None) -> None:
        super().__init__(message)
        self.code = code
        self.intent_id = intent_id


class GatewayUnknownError(GatewayError):
    code = 'unknown_error'


class WebhookSignatureError(GatewayError):
    code = 'signature_invalid'


class IPaymentGateway(ABC):
    @abstractmethod
    async def create_or_update_intent(
        self,
        *,
        amount_cents: int,
        currency: str,
        payment_method_id: str,
        payment_id: UUID,
        intent_id: Optional[str] = None,
    ) -> IntentResult:
        """
        Create and confirm a payment intent, or update and re-confirm an existing one

        The payment id is attached as metadata (webhooks find the payment
        through it) and used as idempotency key on creation.
        """
        pass

    @abstractmethod
    async def retrieve_intent_status(self, *, intent_id: str) -> str:
        pass

    @abstractmethod
    async def refund(self, *, intent_id: str, amount_cents: int) -> RefundResult:
        pass

    @abstractmethod
    async def cancel_intent(self, *, intent_id: str, reason: str = 'abandoned') -> str:
        """Cancel an unpaid intent; returns the resulting intent status"""
        pass

    @abstractmethod
    def verify_and_parse_webhook(
        self, *, payload: bytes, signature: str, secret: str
    ) -> WebhookEvent:
        """
        Raises:
            WebhookSignatureError: signature header missing, malformed, stale or wrong
        """
        pass
