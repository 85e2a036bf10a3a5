from typing import AsyncContextManager, Callable

from sqlalchemy.ext.asyncio import AsyncSession

from src.platform.logging.loguru_io import Logger
from src.service.ticketing.app.interface.i_payment_log_repo import IPaymentLogRepo
from src.service.ticketing.domain.entity.payment_log_entity import PaymentLog
from src.service.ticketing.driven_adapter.model.payment_model import PaymentLogModel


class PaymentLogRepoImpl(IPaymentLogRepo):
    def __init__(self, session_factory: Callable[..., AsyncContextManager[AsyncSession]]) -> None:
        self.session_factory = session_factory

    @Logger.io
    async def create(self, *, log: PaymentLog) -> None:
        async with self.session_factory() as session:
            session.add(
                PaymentLogModel(
                    id=log.id,
                    payment_id=log.payment_id,
                    intent_id=log.intent_id,
                    amount=log.amount,
                    status=log.status,
                    description=log.description,
                    email=log.email,
                    created_at=log.created_at,
                )
            )
            await session.commit()
