"""
Unit tests for SweepExpiredPaymentUseCase and ResubmitPaymentUseCase

Test Focus:
1. Only expired, unpaid payments are swept; tickets come back, payment is deleted
2. The remote intent is cancelled best-effort (skipped when already canceled)
3. Resubmission: ownership, expiry, status and payment method checks, then a re-charge
"""

from typing import Callable
from unittest.mock import MagicMock

import pytest

from src.platform.exception.exceptions import DomainError
from src.service.ticketing.app.command.payment_charger import MESSAGE_SUCCEEDED
from src.service.ticketing.app.command.resubmit_payment_use_case import ResubmitPaymentUseCase
from src.service.ticketing.app.command.sweep_expired_payment_use_case import (
    SweepExpiredPaymentUseCase,
)
from src.service.ticketing.app.dto.gateway_result import IntentResult
from src.service.ticketing.app.interface.i_payment_gateway import GatewayTransportError
from src.service.ticketing.domain.entity.payment_entity import Payment
from src.service.ticketing.domain.enum.payment_status import PaymentStatus
from src.service.ticketing.domain.errors import (
    MissingPaymentMethodError,
    PaymentExpiredError,
    PaymentNotFoundError,
)
from src.service.ticketing.driven_adapter.notifier.console_notifier import ConsoleNotifier
from src.platform.types.uuid7 import new_uuid7
from test.service.ticketing.unit.fakes import (
    BUYER_EMAIL,
    BUYER_ID,
    OTHER_BUYER_ID,
    PAID_DETAIL_ID,
    InMemoryStore,
)


@pytest.fixture
def sweeper(payment_repo, payment_log_repo, gateway: MagicMock) -> SweepExpiredPaymentUseCase:
    return SweepExpiredPaymentUseCase(
        payment_repo=payment_repo,
        payment_log_repo=payment_log_repo,
        payment_gateway=gateway,
    )


@pytest.fixture
def resubmit(
    payment_repo,
    payment_log_repo,
    reservation_repo,
    user_query_repo,
    gateway: MagicMock,
    notifier: ConsoleNotifier,
    sweeper: SweepExpiredPaymentUseCase,
) -> ResubmitPaymentUseCase:
    return ResubmitPaymentUseCase(
        payment_repo=payment_repo,
        payment_log_repo=payment_log_repo,
        reservation_repo=reservation_repo,
        user_query_repo=user_query_repo,
        payment_gateway=gateway,
        notifier=notifier,
        sweeper=sweeper,
    )


@pytest.mark.unit
class TestSweepExpiredPayment:
    @pytest.mark.asyncio
    async def test_unexpired_payment_is_left_alone(
        self,
        sweeper: SweepExpiredPaymentUseCase,
        make_payment: Callable[..., Payment],
        store: InMemoryStore,
    ) -> None:
        payment = make_payment()

        assert await sweeper.execute(payment=payment) == ''
        assert payment.id in store.payments
        assert store.remaining(PAID_DETAIL_ID) == 3

    @pytest.mark.asyncio
    async def test_paid_payment_is_never_swept(
        self,
        sweeper: SweepExpiredPaymentUseCase,
        make_payment: Callable[..., Payment],
        store: InMemoryStore,
    ) -> None:
        payment = make_payment(status=PaymentStatus.SUCCEEDED, intent_id='pi_1', expired=True)

        assert await sweeper.execute(payment=payment) == ''
        assert payment.id in store.payments

    @pytest.mark.asyncio
    async def test_expired_payment_without_intent(
        self,
        sweeper: SweepExpiredPaymentUseCase,
        make_payment: Callable[..., Payment],
        store: InMemoryStore,
        gateway: MagicMock,
    ) -> None:
        payment = make_payment(expired=True)

        result = await sweeper.execute(payment=payment, actor_email=BUYER_EMAIL)

        assert result == (
            f'expired payment successfully deleted and restored tickets | ID: {payment.id}'
        )
        assert payment.id not in store.payments
        assert store.reservations == []
        assert store.remaining(PAID_DETAIL_ID) == 5
        gateway.retrieve_intent_status.assert_not_called()

        # Audit row outlives the deleted payment
        (log,) = store.logs_for(payment.id)
        assert log.status == 'cancelled'
        assert log.email == BUYER_EMAIL

    @pytest.mark.asyncio
    async def test_expired_payment_cancels_remote_intent(
        self,
        sweeper: SweepExpiredPaymentUseCase,
        make_payment: Callable[..., Payment],
        gateway: MagicMock,
    ) -> None:
        payment = make_payment(
            status=PaymentStatus.REQUIRES_ACTION, intent_id='pi_1', expired=True
        )
        gateway.retrieve_intent_status.return_value = 'requires_action'
        gateway.cancel_intent.return_value = 'canceled'

        assert await sweeper.execute(payment_id=payment.id)

        gateway.cancel_intent.assert_awaited_once_with(intent_id='pi_1', reason='abandoned')

    @pytest.mark.asyncio
    async def test_already_canceled_intent_is_not_cancelled_again(
        self,
        sweeper: SweepExpiredPaymentUseCase,
        make_payment: Callable[..., Payment],
        gateway: MagicMock,
    ) -> None:
        payment = make_payment(intent_id='pi_1', expired=True)
        gateway.retrieve_intent_status.return_value = 'canceled'

        assert await sweeper.execute(payment=payment)

        gateway.cancel_intent.assert_not_called()

    @pytest.mark.asyncio
    async def test_remote_cancel_failure_does_not_undo_the_sweep(
        self,
        sweeper: SweepExpiredPaymentUseCase,
        make_payment: Callable[..., Payment],
        store: InMemoryStore,
        gateway: MagicMock,
    ) -> None:
        payment = make_payment(intent_id='pi_1', expired=True)
        gateway.retrieve_intent_status.side_effect = GatewayTransportError('timeout')

        assert await sweeper.execute(payment=payment)
        assert payment.id not in store.payments
        assert store.remaining(PAID_DETAIL_ID) == 5

    @pytest.mark.asyncio
    async def test_unknown_payment_id(self, sweeper: SweepExpiredPaymentUseCase) -> None:
        assert await sweeper.execute(payment_id=new_uuid7()) == ''


@pytest.mark.unit
class TestResubmitPayment:
    @pytest.mark.asyncio
    async def test_unknown_payment(self, resubmit: ResubmitPaymentUseCase) -> None:
        with pytest.raises(PaymentNotFoundError):
            await resubmit.execute(
                payment_id=new_uuid7(),
                user_id=BUYER_ID,
                actor_email=BUYER_EMAIL,
                payment_method_id='pm_card_visa',
            )

    @pytest.mark.asyncio
    async def test_someone_elses_payment_is_not_found(
        self, resubmit: ResubmitPaymentUseCase, make_payment: Callable[..., Payment]
    ) -> None:
        payment = make_payment(user_id=OTHER_BUYER_ID)

        with pytest.raises(PaymentNotFoundError):
            await resubmit.execute(
                payment_id=payment.id,
                user_id=BUYER_ID,
                actor_email=BUYER_EMAIL,
                payment_method_id='pm_card_visa',
            )

    @pytest.mark.asyncio
    async def test_expired_payment_must_be_rebooked(
        self,
        resubmit: ResubmitPaymentUseCase,
        make_payment: Callable[..., Payment],
        store: InMemoryStore,
        gateway: MagicMock,
    ) -> None:
        payment = make_payment(
            status=PaymentStatus.PAYMENT_FAILED, intent_id='pi_1', expired=True
        )
        gateway.retrieve_intent_status.return_value = 'requires_payment_method'

        with pytest.raises(PaymentExpiredError):
            await resubmit.execute(
                payment_id=payment.id,
                user_id=BUYER_ID,
                actor_email=BUYER_EMAIL,
                payment_method_id='pm_card_visa',
            )

        assert payment.id not in store.payments
        assert store.remaining(PAID_DETAIL_ID) == 5
        gateway.create_or_update_intent.assert_not_called()

    @pytest.mark.asyncio
    async def test_paid_payment_cannot_be_resubmitted(
        self, resubmit: ResubmitPaymentUseCase, make_payment: Callable[..., Payment]
    ) -> None:
        payment = make_payment(status=PaymentStatus.SUCCEEDED, intent_id='pi_1')

        with pytest.raises(DomainError):
            await resubmit.execute(
                payment_id=payment.id,
                user_id=BUYER_ID,
                actor_email=BUYER_EMAIL,
                payment_method_id='pm_card_visa',
            )

    @pytest.mark.asyncio
    async def test_blank_payment_method(
        self, resubmit: ResubmitPaymentUseCase, make_payment: Callable[..., Payment]
    ) -> None:
        payment = make_payment(status=PaymentStatus.PAYMENT_FAILED, intent_id='pi_1')

        with pytest.raises(MissingPaymentMethodError):
            await resubmit.execute(
                payment_id=payment.id,
                user_id=BUYER_ID,
                actor_email=BUYER_EMAIL,
                payment_method_id='',
            )

    @pytest.mark.asyncio
    async def test_resubmission_reuses_the_intent_and_confirms(
        self,
        resubmit: ResubmitPaymentUseCase,
        make_payment: Callable[..., Payment],
        store: InMemoryStore,
        gateway: MagicMock,
        notifier: ConsoleNotifier,
    ) -> None:
        payment = make_payment(status=PaymentStatus.PAYMENT_FAILED, intent_id='pi_1')
        gateway.create_or_update_intent.return_value = IntentResult(
            intent_id='pi_1', status='succeeded', amount_cents=3000
        )

        outcome = await resubmit.execute(
            payment_id=payment.id,
            user_id=BUYER_ID,
            actor_email=BUYER_EMAIL,
            payment_method_id='pm_card_visa',
        )

        assert outcome.status == PaymentStatus.SUCCEEDED
        assert outcome.message == MESSAGE_SUCCEEDED
        assert gateway.create_or_update_intent.await_args.kwargs['intent_id'] == 'pi_1'
        assert store.payments[payment.id].status == PaymentStatus.SUCCEEDED

        # Confirmation lists every reserved ticket of the payment
        (email,) = notifier.sent_emails
        assert email['body'].count('Jazz Night - General Admission') == 2
