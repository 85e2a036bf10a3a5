"""
Unit tests for StripePaymentGateway

The StripeClient is replaced by a mock; only request shaping, result mapping,
error translation and webhook verification are under test.
"""

import hashlib
import hmac
import time
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import orjson
import pytest
import stripe

from src.platform.types.uuid7 import new_uuid7
from src.service.ticketing.app.interface.i_payment_gateway import (
    GatewayDeclinedError,
    GatewayTransportError,
    GatewayUnknownError,
    WebhookSignatureError,
)
from src.service.ticketing.driven_adapter.gateway.stripe_payment_gateway import (
    StripePaymentGateway,
)


SECRET = 'whsec_unit'


def sign(payload: bytes, *, timestamp: int | None = None, secret: str = SECRET) -> str:
    timestamp = timestamp if timestamp is not None else int(time.time())
    signed = f'{timestamp}.{payload.decode("utf-8")}'.encode('utf-8')
    return f't={timestamp},v1={hmac.new(secret.encode(), signed, hashlib.sha256).hexdigest()}'


def stripe_intent(
    *, intent_id: str = 'pi_1', status: str = 'succeeded', amount: int = 3000, next_action=None
) -> SimpleNamespace:
    return SimpleNamespace(
        id=intent_id,
        status=status,
        amount=amount,
        client_secret=f'{intent_id}_secret',
        next_action=next_action,
    )


@pytest.fixture
def client() -> MagicMock:
    client = MagicMock()
    payment_intents = client.v1.payment_intents
    payment_intents.create_async = AsyncMock(return_value=stripe_intent())
    payment_intents.update_async = AsyncMock(return_value=stripe_intent())
    payment_intents.confirm_async = AsyncMock(return_value=stripe_intent())
    payment_intents.retrieve_async = AsyncMock(return_value=stripe_intent(status='processing'))
    payment_intents.cancel_async = AsyncMock(return_value=stripe_intent(status='canceled'))
    client.v1.refunds.create_async = AsyncMock(
        return_value=SimpleNamespace(id='re_1', status='succeeded', failure_reason=None)
    )
    return client


@pytest.fixture
def gateway(client: MagicMock) -> StripePaymentGateway:
    return StripePaymentGateway(api_key='sk_test_unit', client=client)


@pytest.mark.unit
class TestCreateOrUpdateIntent:
    @pytest.mark.asyncio
    async def test_create_confirms_with_metadata_and_idempotency_key(
        self, gateway: StripePaymentGateway, client: MagicMock
    ) -> None:
        payment_id = new_uuid7()

        result = await gateway.create_or_update_intent(
            amount_cents=3000, currency='USD', payment_method_id='pm_card_visa', payment_id=payment_id
        )

        assert result.intent_id == 'pi_1'
        assert result.status == 'succeeded'
        assert result.amount_cents == 3000
        assert result.next_action is None

        kwargs = client.v1.payment_intents.create_async.await_args.kwargs
        assert kwargs['params']['amount'] == 3000
        assert kwargs['params']['currency'] == 'usd'
        assert kwargs['params']['confirm'] is True
        assert kwargs['params']['payment_method'] == 'pm_card_visa'
        assert kwargs['params']['metadata'] == {'payment_id': str(payment_id)}
        assert kwargs['options'] == {'idempotency_key': f'payment-{payment_id}'}
        client.v1.payment_intents.update_async.assert_not_called()

    @pytest.mark.asyncio
    async def test_existing_intent_is_updated_then_confirmed(
        self, gateway: StripePaymentGateway, client: MagicMock
    ) -> None:
        await gateway.create_or_update_intent(
            amount_cents=1500,
            currency='usd',
            payment_method_id='pm_new',
            payment_id=new_uuid7(),
            intent_id='pi_1',
        )

        client.v1.payment_intents.update_async.assert_awaited_once_with(
            'pi_1', params={'amount': 1500, 'payment_method': 'pm_new'}
        )
        client.v1.payment_intents.confirm_async.assert_awaited_once_with(
            'pi_1', params={'payment_method': 'pm_new'}
        )
        client.v1.payment_intents.create_async.assert_not_called()

    @pytest.mark.asyncio
    async def test_requires_action_carries_next_action(
        self, gateway: StripePaymentGateway, client: MagicMock
    ) -> None:
        next_action = MagicMock()
        next_action.to_dict.return_value = {'type': 'use_stripe_sdk'}
        client.v1.payment_intents.create_async.return_value = stripe_intent(
            status='requires_action', next_action=next_action
        )

        result = await gateway.create_or_update_intent(
            amount_cents=3000, currency='usd', payment_method_id='pm_3ds', payment_id=new_uuid7()
        )

        assert result.status == 'requires_action'
        assert result.client_secret == 'pi_1_secret'
        assert result.next_action == {'type': 'use_stripe_sdk'}

    @pytest.mark.asyncio
    async def test_card_error_becomes_declined(
        self, gateway: StripePaymentGateway, client: MagicMock
    ) -> None:
        client.v1.payment_intents.confirm_async.side_effect = stripe.CardError(
            'Your card was declined.', None, 'card_declined'
        )

        with pytest.raises(GatewayDeclinedError) as exc_info:
            await gateway.create_or_update_intent(
                amount_cents=3000,
                currency='usd',
                payment_method_id='pm_card_chargeDeclined',
                payment_id=new_uuid7(),
                intent_id='pi_1',
            )

        assert exc_info.value.code == 'card_declined'
        assert exc_info.value.message == 'Your card was declined.'
        assert exc_info.value.intent_id == 'pi_1'

    @pytest.mark.asyncio
    async def test_connection_error_becomes_transport_error(
        self, gateway: StripePaymentGateway, client: MagicMock
    ) -> None:
        client.v1.payment_intents.create_async.side_effect = stripe.APIConnectionError(
            'Network error'
        )

        with pytest.raises(GatewayTransportError) as exc_info:
            await gateway.create_or_update_intent(
                amount_cents=3000, currency='usd', payment_method_id='pm', payment_id=new_uuid7()
            )

        assert exc_info.value.code == 'transport_error'

    @pytest.mark.asyncio
    async def test_other_stripe_errors_are_unknown(
        self, gateway: StripePaymentGateway, client: MagicMock
    ) -> None:
        client.v1.payment_intents.create_async.side_effect = stripe.APIError('boom')

        with pytest.raises(GatewayUnknownError):
            await gateway.create_or_update_intent(
                amount_cents=3000, currency='usd', payment_method_id='pm', payment_id=new_uuid7()
            )


@pytest.mark.unit
class TestIntentLifecycle:
    @pytest.mark.asyncio
    async def test_retrieve_status(self, gateway: StripePaymentGateway) -> None:
        assert await gateway.retrieve_intent_status(intent_id='pi_1') == 'processing'

    @pytest.mark.asyncio
    async def test_cancel(self, gateway: StripePaymentGateway, client: MagicMock) -> None:
        assert await gateway.cancel_intent(intent_id='pi_1') == 'canceled'

        client.v1.payment_intents.cancel_async.assert_awaited_once_with(
            'pi_1', params={'cancellation_reason': 'abandoned'}
        )

    @pytest.mark.asyncio
    async def test_refund(self, gateway: StripePaymentGateway, client: MagicMock) -> None:
        result = await gateway.refund(intent_id='pi_1', amount_cents=1500)

        assert result.refund_id == 're_1'
        assert result.status == 'succeeded'
        client.v1.refunds.create_async.assert_awaited_once_with(
            params={'payment_intent': 'pi_1', 'amount': 1500}
        )


@pytest.mark.unit
class TestWebhookVerification:
    def test_intent_event_is_flattened(self, gateway: StripePaymentGateway) -> None:
        payload = orjson.dumps(
            {
                'id': 'evt_1',
                'type': 'payment_intent.payment_failed',
                'data': {
                    'object': {
                        'id': 'pi_1',
                        'object': 'payment_intent',
                        'status': 'requires_payment_method',
                        'amount': 3000,
                        'currency': 'usd',
                        'metadata': {'payment_id': 'abc'},
                        'last_payment_error': {
                            'code': 'card_declined',
                            'message': 'Your card was declined.',
                        },
                    }
                },
            }
        )

        event = gateway.verify_and_parse_webhook(
            payload=payload, signature=sign(payload), secret=SECRET
        )

        assert event.event_id == 'evt_1'
        assert event.event_type == 'payment_intent.payment_failed'
        assert event.intent_id == 'pi_1'
        assert event.payment_id == 'abc'
        assert event.amount_cents == 3000
        assert event.failure_message == 'Your card was declined.'

    def test_charge_event_reads_expanded_intent(self, gateway: StripePaymentGateway) -> None:
        payload = orjson.dumps(
            {
                'id': 'evt_2',
                'type': 'charge.refunded',
                'data': {
                    'object': {
                        'id': 'ch_1',
                        'object': 'charge',
                        'payment_intent': {'id': 'pi_9', 'object': 'payment_intent'},
                    }
                },
            }
        )

        event = gateway.verify_and_parse_webhook(
            payload=payload, signature=sign(payload), secret=SECRET
        )

        assert event.intent_id == 'pi_9'
        assert event.payment_id is None

    def test_stale_timestamp_is_rejected(self, gateway: StripePaymentGateway) -> None:
        payload = b'{"id": "evt_1", "type": "x", "data": {"object": {}}}'

        with pytest.raises(WebhookSignatureError):
            gateway.verify_and_parse_webhook(
                payload=payload,
                signature=sign(payload, timestamp=int(time.time()) - 3600),
                secret=SECRET,
            )

    def test_wrong_secret_is_rejected(self, gateway: StripePaymentGateway) -> None:
        payload = b'{"id": "evt_1", "type": "x", "data": {"object": {}}}'

        with pytest.raises(WebhookSignatureError):
            gateway.verify_and_parse_webhook(
                payload=payload, signature=sign(payload, secret='whsec_other'), secret=SECRET
            )

    def test_payload_without_event_fields_is_malformed(
        self, gateway: StripePaymentGateway
    ) -> None:
        payload = b'{"hello": "world"}'

        with pytest.raises(GatewayUnknownError):
            gateway.verify_and_parse_webhook(
                payload=payload, signature=sign(payload), secret=SECRET
            )
