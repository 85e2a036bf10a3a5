"""
Stripe Payment Gateway

Wraps one `stripe.StripeClient` (built once at startup, no module-level API
key) and translates SDK objects and errors into the gateway port's types.
"""

import time
from typing import Any, Awaitable, Callable, Optional, TypeVar
from uuid import UUID

import orjson
from pydantic import BaseModel, ConfigDict, ValidationError
import stripe

from src.platform.logging.loguru_io import Logger
from src.platform.metrics.payment_metrics import metrics
from src.service.ticketing.app.dto.gateway_result import IntentResult, RefundResult, WebhookEvent
from src.service.ticketing.app.interface.i_payment_gateway import (
    GatewayDeclinedError,
    GatewayError,
    GatewayTransportError,
    GatewayUnknownError,
    IPaymentGateway,
    WebhookSignatureError,
)


_T = TypeVar('_T')


# ========== Webhook payload ==========


class _LastPaymentError(BaseModel):
    model_config = ConfigDict(extra='ignore')

    code: Optional[str] = None
    message: Optional[str] = None


class _StripeDataObject(BaseModel):
    """Union of the intent / charge / refund fields the dispatcher reads"""

    model_config = ConfigDict(extra='ignore')

    id: Optional[str] = None
    object: Optional[str] = None
    status: Optional[str] = None
    amount: Optional[int] = None
    currency: Optional[str] = None
    payment_intent: Optional[str | dict[str, Any]] = None
    metadata: dict[str, str] = {}
    last_payment_error: Optional[_LastPaymentError] = None
    failure_reason: Optional[str] = None

    @property
    def intent_id(self) -> Optional[str]:
        if self.object == 'payment_intent':
            return self.id
        if isinstance(self.payment_intent, dict):
            return self.payment_intent.get('id')
        return self.payment_intent


class _StripeEventData(BaseModel):
    model_config = ConfigDict(extra='ignore')

    object: _StripeDataObject


class StripeWebhookPayload(BaseModel):
    model_config = ConfigDict(extra='ignore')

    id: str
    type: str
    data: _StripeEventData

    def to_event(self) -> WebhookEvent:
        obj = self.data.object
        failure_message = None
        if obj.last_payment_error is not None:
            failure_message = obj.last_payment_error.message
        elif obj.failure_reason:
            failure_message = obj.failure_reason
        return WebhookEvent(
            event_id=self.id,
            event_type=self.type,
            intent_id=obj.intent_id,
            payment_id=obj.metadata.get('payment_id'),
            status=obj.status,
            amount_cents=obj.amount,
            currency=obj.currency,
            failure_message=failure_message,
        )


# ========== Gateway ==========


class StripePaymentGateway(IPaymentGateway):
    def __init__(
        self,
        *,
        api_key: str,
        webhook_tolerance_seconds: int = 300,
        client: Optional[stripe.StripeClient] = None,
    ) -> None:
        self.client = client or stripe.StripeClient(api_key, http_client=stripe.HTTPXClient())
        self.webhook_tolerance_seconds = webhook_tolerance_seconds

    @staticmethod
    def _translate_error(e: stripe.StripeError, *, intent_id: Optional[str] = None) -> GatewayError:
        message = e.user_message or 'payment gateway error'
        if isinstance(e, (stripe.APIConnectionError, stripe.RateLimitError)):
            return GatewayTransportError(message)
        if isinstance(e, (stripe.CardError, stripe.InvalidRequestError)):
            error_intent = getattr(e.error, 'payment_intent', None) if e.error else None
            return GatewayDeclinedError(
                code=e.code or 'declined',
                message=message,
                intent_id=getattr(error_intent, 'id', None) or intent_id,
            )
        return GatewayUnknownError(message)

    async def _call(
        self,
        operation: str,
        func: Callable[..., Awaitable[_T]],
        *args: Any,
        intent_id: Optional[str] = None,
        **kwargs: Any,
    ) -> _T:
        start = time.perf_counter()
        try:
            result = await func(*args, **kwargs)
        except stripe.StripeError as e:
            error = self._translate_error(e, intent_id=intent_id)
            metrics.record_gateway_call(
                operation=operation, result=error.code, duration=time.perf_counter() - start
            )
            Logger.base.warning(
                f'💳 [STRIPE] {operation} failed | code: {error.code} | message: {error.message}'
            )
            raise error from e
        metrics.record_gateway_call(
            operation=operation, result='ok', duration=time.perf_counter() - start
        )
        return result

    @staticmethod
    def _to_intent_result(intent: stripe.PaymentIntent) -> IntentResult:
        next_action = intent.next_action.to_dict() if intent.next_action else None
        return IntentResult(
            intent_id=intent.id,
            status=intent.status,
            amount_cents=intent.amount,
            client_secret=intent.client_secret,
            next_action=next_action,
        )

    @Logger.io
    async def create_or_update_intent(
        self,
        *,
        amount_cents: int,
        currency: str,
        payment_method_id: str,
        payment_id: UUID,
        intent_id: Optional[str] = None,
    ) -> IntentResult:
        payment_intents = self.client.v1.payment_intents
        if intent_id:
            await self._call(
                'update_intent',
                payment_intents.update_async,
                intent_id,
                params={'amount': amount_cents, 'payment_method': payment_method_id},
                intent_id=intent_id,
            )
            intent = await self._call(
                'confirm_intent',
                payment_intents.confirm_async,
                intent_id,
                params={'payment_method': payment_method_id},
                intent_id=intent_id,
            )
        else:
            intent = await self._call(
                'create_intent',
                payment_intents.create_async,
                params={
                    'amount': amount_cents,
                    'currency': currency.lower(),
                    'confirm': True,
                    'payment_method': payment_method_id,
                    'automatic_payment_methods': {'enabled': True, 'allow_redirects': 'never'},
                    'metadata': {'payment_id': str(payment_id)},
                },
                options={'idempotency_key': f'payment-{payment_id}'},
            )
        return self._to_intent_result(intent)

    @Logger.io
    async def retrieve_intent_status(self, *, intent_id: str) -> str:
        intent = await self._call(
            'retrieve_intent',
            self.client.v1.payment_intents.retrieve_async,
            intent_id,
            intent_id=intent_id,
        )
        return intent.status

    @Logger.io
    async def refund(self, *, intent_id: str, amount_cents: int) -> RefundResult:
        refund = await self._call(
            'refund',
            self.client.v1.refunds.create_async,
            params={'payment_intent': intent_id, 'amount': amount_cents},
            intent_id=intent_id,
        )
        return RefundResult(
            refund_id=refund.id,
            status=refund.status or 'pending',
            failure_reason=getattr(refund, 'failure_reason', None),
        )

    @Logger.io
    async def cancel_intent(self, *, intent_id: str, reason: str = 'abandoned') -> str:
        intent = await self._call(
            'cancel_intent',
            self.client.v1.payment_intents.cancel_async,
            intent_id,
            params={'cancellation_reason': reason},
            intent_id=intent_id,
        )
        return intent.status

    @Logger.io
    def verify_and_parse_webhook(
        self, *, payload: bytes, signature: str, secret: str
    ) -> WebhookEvent:
        try:
            stripe.WebhookSignature.verify_header(
                payload.decode('utf-8'),
                signature or '',
                secret,
                tolerance=self.webhook_tolerance_seconds,
            )
        except (stripe.SignatureVerificationError, UnicodeDecodeError) as e:
            raise WebhookSignatureError(f'webhook signature verification failed: {e}') from e

        try:
            parsed = StripeWebhookPayload.model_validate(orjson.loads(payload))
        except (orjson.JSONDecodeError, ValidationError) as e:
            raise GatewayUnknownError(f'malformed webhook payload: {e}') from e
        return parsed.to_event()
