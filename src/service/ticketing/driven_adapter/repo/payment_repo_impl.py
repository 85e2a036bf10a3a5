"""
Payment Repository Implementation

Session handling follows the UoW convention: `session` is injected by the
unit of work, otherwise every call opens its own session from
`session_factory`.
"""

from contextlib import asynccontextmanager
from typing import AsyncContextManager, AsyncIterator, Callable, List
from uuid import UUID

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from src.platform.database.column_utils import as_utc
from src.platform.logging.loguru_io import Logger
from src.service.ticketing.app.interface.i_payment_repo import IPaymentRepo
from src.service.ticketing.domain.entity.payment_entity import Payment
from src.service.ticketing.domain.enum.payment_status import PaymentStatus
from src.service.ticketing.domain.errors import PaymentNotFoundError
from src.service.ticketing.driven_adapter.model.event_detail_model import EventDetailModel
from src.service.ticketing.driven_adapter.model.payment_model import PaymentModel
from src.service.ticketing.driven_adapter.model.reservation_model import ReservationModel


class PaymentRepoImpl(IPaymentRepo):
    def __init__(
        self, session_factory: Callable[..., AsyncContextManager[AsyncSession]] | None = None
    ) -> None:
        self.session_factory = session_factory
        self.session: AsyncSession | None = None

    @asynccontextmanager
    async def _get_session(self) -> AsyncIterator[AsyncSession]:
        if self.session is not None:
            yield self.session
        elif self.session_factory is not None:
            async with self.session_factory() as session:
                yield session
        else:
            raise RuntimeError('No session or session_factory available')

    @property
    def _owns_transaction(self) -> bool:
        return self.session is None

    @staticmethod
    def _to_entity(model: PaymentModel) -> Payment:
        return Payment(
            id=model.id,
            intent_id=model.intent_id,
            amount=model.amount,
            currency=model.currency,
            status=PaymentStatus(model.status),
            expires_at=as_utc(model.expires_at),  # type: ignore[arg-type]
            user_id=model.user_id,
            created_at=as_utc(model.created_at),
            updated_at=as_utc(model.updated_at),
        )

    @Logger.io
    async def create(self, *, payment: Payment) -> Payment:
        async with self._get_session() as session:
            session.add(
                PaymentModel(
                    id=payment.id,
                    intent_id=payment.intent_id,
                    amount=payment.amount,
                    currency=payment.currency,
                    status=payment.status.value,
                    expires_at=payment.expires_at,
                    user_id=payment.user_id,
                    created_at=payment.created_at,
                    updated_at=payment.updated_at,
                )
            )
            await session.flush()
            if self._owns_transaction:
                await session.commit()
        return payment

    @Logger.io
    async def update(self, *, payment: Payment) -> Payment:
        async with self._get_session() as session:
            result = await session.execute(
                update(PaymentModel)
                .where(PaymentModel.id == payment.id)
                .values(
                    intent_id=payment.intent_id,
                    amount=payment.amount,
                    currency=payment.currency,
                    status=payment.status.value,
                    updated_at=func.now(),
                )
                .returning(PaymentModel.id)
            )
            if result.scalar_one_or_none() is None:
                raise PaymentNotFoundError(f'payment not found | ID: {payment.id}')
            if self._owns_transaction:
                await session.commit()
        return payment

    @Logger.io
    async def get_by_id(self, *, payment_id: UUID) -> Payment | None:
        async with self._get_session() as session:
            model = await session.get(PaymentModel, payment_id)
            return self._to_entity(model) if model else None

    @Logger.io
    async def get_by_intent_id(self, *, intent_id: str) -> Payment | None:
        async with self._get_session() as session:
            result = await session.execute(
                select(PaymentModel).where(PaymentModel.intent_id == intent_id)
            )
            model = result.scalars().first()
            return self._to_entity(model) if model else None

    @Logger.io
    async def get_by_ids(self, *, payment_ids: List[UUID]) -> List[Payment]:
        if not payment_ids:
            return []
        async with self._get_session() as session:
            result = await session.execute(
                select(PaymentModel).where(PaymentModel.id.in_(payment_ids))
            )
            return [self._to_entity(model) for model in result.scalars().all()]

    @Logger.io
    async def restore_tickets_and_delete(self, *, payment_id: UUID) -> int:
        """
        One transaction:
        1. Count reserved units per event detail
        2. Add them back to tickets_remaining
        3. Delete the reservations, then the payment
        """
        async with self._get_session() as session:
            rows = await session.execute(
                select(ReservationModel.event_detail_id, func.count(ReservationModel.id))
                .where(ReservationModel.payment_id == payment_id)
                .group_by(ReservationModel.event_detail_id)
            )
            restored = 0
            for event_detail_id, count in rows.all():
                await session.execute(
                    update(EventDetailModel)
                    .where(EventDetailModel.id == event_detail_id)
                    .values(tickets_remaining=EventDetailModel.tickets_remaining + count)
                )
                restored += count

            await session.execute(
                delete(ReservationModel).where(ReservationModel.payment_id == payment_id)
            )
            await session.execute(delete(PaymentModel).where(PaymentModel.id == payment_id))

            if self._owns_transaction:
                await session.commit()

        Logger.base.info(
            f'♻️ [RESTORE] Restored {restored} ticket(s) and deleted payment {payment_id}'
        )
        return restored
