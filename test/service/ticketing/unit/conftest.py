"""
Unit test configuration for the ticketing service

Fixtures wire the in-memory fakes (see fakes.py) over one store per test.
The payment gateway is a spec'd mock; the notifier is the real
ConsoleNotifier, which records every composed email.
"""

from datetime import datetime, timedelta, timezone
from typing import Callable, Optional
from unittest.mock import MagicMock

import pytest

from src.platform.types.uuid7 import new_uuid7
from src.service.ticketing.app.interface.i_payment_gateway import IPaymentGateway
from src.service.ticketing.domain.entity.event_detail_entity import EventDetail
from src.service.ticketing.domain.entity.payment_entity import Payment
from src.service.ticketing.domain.entity.reservation_entity import Reservation
from src.service.ticketing.domain.entity.user_entity import UserEntity
from src.service.ticketing.domain.enum.payment_status import PaymentStatus
from src.service.ticketing.driven_adapter.notifier.console_notifier import ConsoleNotifier
from test.service.ticketing.unit.fakes import (
    BUYER_EMAIL,
    BUYER_ID,
    FREE_DETAIL_ID,
    OTHER_BUYER_EMAIL,
    OTHER_BUYER_ID,
    PAID_DETAIL_ID,
    PAST_DETAIL_ID,
    FakeEventDetailQueryRepo,
    FakePaymentLogRepo,
    FakePaymentRepo,
    FakeRefundQueryRepo,
    FakeReservationRepo,
    FakeUnitOfWork,
    FakeUserQueryRepo,
    InMemoryStore,
    future_show_date,
)


@pytest.fixture
def store() -> InMemoryStore:
    store = InMemoryStore()
    store.users = {
        BUYER_ID: UserEntity(id=BUYER_ID, email=BUYER_EMAIL, first_name='Jane', last_name='Doe'),
        OTHER_BUYER_ID: UserEntity(
            id=OTHER_BUYER_ID, email=OTHER_BUYER_EMAIL, first_name='John', last_name='Roe'
        ),
    }
    store.event_details = {
        PAID_DETAIL_ID: EventDetail(
            id=PAID_DETAIL_ID,
            event_id=1,
            show_date=future_show_date(),
            price='15.00',
            number_of_tickets=5,
            tickets_remaining=5,
            ticket_description='General Admission',
            event_title='Jazz Night',
        ),
        FREE_DETAIL_ID: EventDetail(
            id=FREE_DETAIL_ID,
            event_id=1,
            show_date=future_show_date(),
            price='0.00',
            number_of_tickets=3,
            tickets_remaining=3,
            ticket_description='Open Rehearsal',
            event_title='Jazz Night',
        ),
        PAST_DETAIL_ID: EventDetail(
            id=PAST_DETAIL_ID,
            event_id=1,
            show_date='2020-01-01 20:00',
            price='10.00',
            number_of_tickets=5,
            tickets_remaining=5,
            ticket_description='Matinee',
            event_title='Jazz Night',
        ),
    }
    return store


@pytest.fixture
def payment_repo(store: InMemoryStore) -> FakePaymentRepo:
    return FakePaymentRepo(store)


@pytest.fixture
def payment_log_repo(store: InMemoryStore) -> FakePaymentLogRepo:
    return FakePaymentLogRepo(store)


@pytest.fixture
def reservation_repo(store: InMemoryStore) -> FakeReservationRepo:
    return FakeReservationRepo(store)


@pytest.fixture
def event_detail_query_repo(store: InMemoryStore) -> FakeEventDetailQueryRepo:
    return FakeEventDetailQueryRepo(store)


@pytest.fixture
def user_query_repo(store: InMemoryStore) -> FakeUserQueryRepo:
    return FakeUserQueryRepo(store)


@pytest.fixture
def refund_query_repo() -> FakeRefundQueryRepo:
    return FakeRefundQueryRepo()


@pytest.fixture
def uow_factory(store: InMemoryStore) -> Callable[[], FakeUnitOfWork]:
    return lambda: FakeUnitOfWork(store)


@pytest.fixture
def gateway() -> MagicMock:
    """Async gateway methods become AsyncMocks through spec=IPaymentGateway"""
    return MagicMock(spec=IPaymentGateway)


@pytest.fixture
def notifier() -> ConsoleNotifier:
    return ConsoleNotifier(
        sender_name='Event Team',
        sender_email='no-reply@example.com',
        team_name='Payments Team',
        team_email='payments-team@example.com',
        signature='- Event - MRS Team',
    )


@pytest.fixture
def make_payment(store: InMemoryStore) -> Callable[..., Payment]:
    """Persist a payment holding `tickets` reservations of one event detail"""

    def _make(
        *,
        user_id: int = BUYER_ID,
        status: PaymentStatus = PaymentStatus.PENDING,
        amount: str = '30.00',
        intent_id: Optional[str] = None,
        expired: bool = False,
        tickets: int = 2,
        event_detail_id: int = PAID_DETAIL_ID,
    ) -> Payment:
        now = datetime.now(timezone.utc)
        payment = Payment(
            id=new_uuid7(),
            user_id=user_id,
            amount=amount,
            currency='usd',
            expires_at=now - timedelta(minutes=1) if expired else now + timedelta(minutes=15),
            status=status,
            intent_id=intent_id,
            created_at=now,
            updated_at=now,
        )
        store.payments[payment.id] = payment
        detail = store.event_details[event_detail_id]
        for _ in range(tickets):
            detail.tickets_remaining -= 1
            store.reservations.append(
                Reservation(
                    id=new_uuid7(),
                    email=store.users[user_id].email,
                    user_id=user_id,
                    event_detail_id=event_detail_id,
                    payment_id=payment.id,
                )
            )
        return payment

    return _make
