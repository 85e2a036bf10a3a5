from datetime import datetime, timedelta, timezone

import pytest

from src.platform.types.uuid7 import new_uuid7
from src.service.ticketing.domain.entity.payment_entity import Payment
from src.service.ticketing.domain.entity.payment_log_entity import PaymentLog
from src.service.ticketing.domain.enum.payment_status import PaymentStatus
from src.service.ticketing.domain.errors import PaymentNotFoundError
from src.service.ticketing.driven_adapter.model import PaymentLogModel
from test.service.ticketing.integration.catalog import (
    BLUES_GA_ID,
    JANE_ID,
    JAZZ_FREE_ID,
    JAZZ_GA_ID,
)


@pytest.mark.integration
class TestPaymentRepo:
    @pytest.mark.asyncio
    async def test_stored_payment_round_trips_with_aware_timestamps(self, checkout, payment_repo):
        payment = await checkout(amount_cents=1500)

        stored = await payment_repo.get_by_id(payment_id=payment.id)

        assert stored is not None
        assert stored.id == payment.id
        assert stored.amount == '15.00'
        assert stored.currency == 'usd'
        assert stored.status == PaymentStatus.PENDING
        assert stored.intent_id is None
        assert stored.expires_at.tzinfo is not None
        assert stored.is_expired() is False
        assert stored.is_expired(now=datetime.now(timezone.utc) + timedelta(minutes=16)) is True

    @pytest.mark.asyncio
    async def test_update_status_and_find_by_intent(self, checkout, payment_repo):
        payment = await checkout()

        await payment_repo.update(
            payment=payment.transition_to(PaymentStatus.REQUIRES_ACTION, intent_id='pi_abc')
        )

        stored = await payment_repo.get_by_intent_id(intent_id='pi_abc')
        assert stored is not None
        assert stored.id == payment.id
        assert stored.status == PaymentStatus.REQUIRES_ACTION
        assert await payment_repo.get_by_intent_id(intent_id='pi_missing') is None

    @pytest.mark.asyncio
    async def test_update_of_missing_payment(self, payment_repo):
        ghost = Payment.create(
            user_id=JANE_ID, amount_cents=100, currency='usd', ttl=timedelta(minutes=1)
        )

        with pytest.raises(PaymentNotFoundError):
            await payment_repo.update(payment=ghost)

    @pytest.mark.asyncio
    async def test_get_by_ids(self, checkout, payment_repo):
        first = await checkout()
        second = await checkout(event_detail_id=BLUES_GA_ID, amount_cents=2000)

        found = await payment_repo.get_by_ids(payment_ids=[first.id, second.id, new_uuid7()])

        assert {p.id for p in found} == {first.id, second.id}
        assert await payment_repo.get_by_ids(payment_ids=[]) == []

    @pytest.mark.asyncio
    async def test_restore_tickets_and_delete(
        self, checkout, payment_repo, reservation_repo, remaining
    ):
        """
        Given: a checkout holding 3 paid tickets and 1 free ticket
        When: the payment is restored and deleted
        Then: both counters are back to full and nothing of the payment is left
        """
        payment = await checkout(tickets=3, amount_cents=4500)
        await reservation_repo.reserve_ticket(
            event_detail_id=JAZZ_FREE_ID,
            payment_id=payment.id,
            user_id=JANE_ID,
            email='jane@example.com',
        )
        other = await checkout(tickets=1)
        assert await remaining(JAZZ_GA_ID) == 1
        assert await remaining(JAZZ_FREE_ID) == 2

        restored = await payment_repo.restore_tickets_and_delete(payment_id=payment.id)

        assert restored == 4
        assert await remaining(JAZZ_GA_ID) == 4
        assert await remaining(JAZZ_FREE_ID) == 3
        assert await payment_repo.get_by_id(payment_id=payment.id) is None
        assert await reservation_repo.list_by_payment_id(payment_id=payment.id) == []
        assert len(await reservation_repo.list_by_payment_id(payment_id=other.id)) == 1

    @pytest.mark.asyncio
    async def test_restore_of_unknown_payment_restores_nothing(self, payment_repo, remaining):
        assert await payment_repo.restore_tickets_and_delete(payment_id=new_uuid7()) == 0
        assert await remaining(JAZZ_GA_ID) == 5


@pytest.mark.integration
class TestPaymentLogRepo:
    @pytest.mark.asyncio
    async def test_log_survives_payment_deletion(
        self, database, checkout, payment_repo, payment_log_repo
    ):
        payment = await checkout()
        log = PaymentLog.record(
            payment_id=payment.id,
            intent_id=None,
            amount=payment.amount,
            status='cancelled',
            description='expired payment',
            email='jane@example.com',
        )

        await payment_log_repo.create(log=log)
        await payment_repo.restore_tickets_and_delete(payment_id=payment.id)

        async with database.session() as session:
            stored = await session.get(PaymentLogModel, log.id)
        assert stored is not None
        assert stored.payment_id == payment.id
        assert stored.intent_id == ''
        assert stored.amount == '15.00'
        assert stored.status == 'cancelled'
        assert stored.email == 'jane@example.com'
