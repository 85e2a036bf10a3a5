"""
Repository integration fixtures

Each test gets its own SQLite file under pytest's tmp_path, with the schema
created from the ORM models and a small catalog seeded:

- users 1 (Jane Doe) and 2 (John Roe)
- event 1 "Jazz Night": detail 10 (15.00, 5 tickets), detail 11 (free, 3 tickets)
- event 2 "Blues Night": detail 20 (20.00, 2 tickets)
"""

from datetime import timedelta
from pathlib import Path
from typing import AsyncIterator, Awaitable, Callable

import attrs
import pytest

from src.platform.database.orm_db_setting import Database
from src.service.ticketing.domain.entity.payment_entity import Payment
from src.service.ticketing.domain.enum.payment_status import PaymentStatus
from src.service.ticketing.driven_adapter.model import (
    EventDetailModel,
    EventModel,
    UserModel,
)
from src.service.ticketing.driven_adapter.repo.event_detail_query_repo_impl import (
    EventDetailQueryRepoImpl,
)
from src.service.ticketing.driven_adapter.repo.payment_log_repo_impl import PaymentLogRepoImpl
from src.service.ticketing.driven_adapter.repo.payment_repo_impl import PaymentRepoImpl
from src.service.ticketing.driven_adapter.repo.refund_query_repo_impl import RefundQueryRepoImpl
from src.service.ticketing.driven_adapter.repo.reservation_repo_impl import ReservationRepoImpl
from src.service.ticketing.driven_adapter.repo.user_query_repo_impl import UserQueryRepoImpl
from test.service.ticketing.integration.catalog import (
    BLUES_EVENT_ID,
    BLUES_GA_ID,
    JANE_ID,
    JAZZ_EVENT_ID,
    JAZZ_FREE_ID,
    JAZZ_GA_ID,
    JOHN_ID,
)


@pytest.fixture
async def database(tmp_path: Path) -> AsyncIterator[Database]:
    database = Database(db_url=f'sqlite+aiosqlite:///{tmp_path / "ticketing.db"}')
    await database.create_tables()

    async with database.transaction() as session:
        session.add_all(
            [
                UserModel(id=JANE_ID, email='jane@example.com', first_name='Jane', last_name='Doe'),
                UserModel(id=JOHN_ID, email='john@example.com', first_name='John', last_name='Roe'),
            ]
        )
        await session.flush()
        session.add_all(
            [
                EventModel(id=JAZZ_EVENT_ID, title='Jazz Night', organizer='MRS', user_id=JANE_ID),
                EventModel(id=BLUES_EVENT_ID, title='Blues Night', user_id=JANE_ID),
            ]
        )
        await session.flush()
        session.add_all(
            [
                EventDetailModel(
                    id=JAZZ_GA_ID,
                    event_id=JAZZ_EVENT_ID,
                    show_date='2030-01-02 20:30',
                    price='15.00',
                    number_of_tickets=5,
                    tickets_remaining=5,
                    ticket_description='General Admission',
                ),
                EventDetailModel(
                    id=JAZZ_FREE_ID,
                    event_id=JAZZ_EVENT_ID,
                    show_date='2030-01-02 18:00',
                    price='0.00',
                    number_of_tickets=3,
                    tickets_remaining=3,
                    ticket_description='Open Rehearsal',
                ),
                EventDetailModel(
                    id=BLUES_GA_ID,
                    event_id=BLUES_EVENT_ID,
                    show_date='2030-02-01 21:00',
                    price='20.00',
                    number_of_tickets=2,
                    tickets_remaining=2,
                    ticket_description='Standing',
                ),
            ]
        )

    yield database
    await database.dispose()


@pytest.fixture
def payment_repo(database: Database) -> PaymentRepoImpl:
    return PaymentRepoImpl(session_factory=database.session)


@pytest.fixture
def reservation_repo(database: Database) -> ReservationRepoImpl:
    return ReservationRepoImpl(session_factory=database.session)


@pytest.fixture
def payment_log_repo(database: Database) -> PaymentLogRepoImpl:
    return PaymentLogRepoImpl(session_factory=database.session)


@pytest.fixture
def refund_query_repo(database: Database) -> RefundQueryRepoImpl:
    return RefundQueryRepoImpl(session_factory=database.session)


@pytest.fixture
def event_detail_query_repo(database: Database) -> EventDetailQueryRepoImpl:
    return EventDetailQueryRepoImpl(session_factory=database.session)


@pytest.fixture
def user_query_repo(database: Database) -> UserQueryRepoImpl:
    return UserQueryRepoImpl(session_factory=database.session)


@pytest.fixture
def remaining(event_detail_query_repo: EventDetailQueryRepoImpl) -> Callable[[int], Awaitable[int]]:
    async def _remaining(event_detail_id: int) -> int:
        (detail,) = await event_detail_query_repo.get_by_ids(event_detail_ids=[event_detail_id])
        return detail.tickets_remaining

    return _remaining


@pytest.fixture
def checkout(
    payment_repo: PaymentRepoImpl, reservation_repo: ReservationRepoImpl
) -> Callable[..., Awaitable[Payment]]:
    """Persist a payment and reserve `tickets` units of one event detail for it"""

    async def _checkout(
        *,
        user_id: int = JANE_ID,
        email: str = 'jane@example.com',
        event_detail_id: int = JAZZ_GA_ID,
        tickets: int = 1,
        amount_cents: int = 1500,
        status: PaymentStatus = PaymentStatus.PENDING,
        intent_id: str | None = None,
    ) -> Payment:
        payment = Payment.create(
            user_id=user_id, amount_cents=amount_cents, currency='usd', ttl=timedelta(minutes=15)
        )
        await payment_repo.create(payment=payment)
        for _ in range(tickets):
            await reservation_repo.reserve_ticket(
                event_detail_id=event_detail_id,
                payment_id=payment.id,
                user_id=user_id,
                email=email,
            )
        if status != PaymentStatus.PENDING or intent_id:
            payment = attrs.evolve(payment, status=status, intent_id=intent_id)
            await payment_repo.update(payment=payment)
        return payment

    return _checkout
