from typing import AsyncContextManager, Callable, List

from sqlalchemy import Select, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.platform.logging.loguru_io import Logger
from src.service.ticketing.app.interface.i_refund_query_repo import IRefundQueryRepo
from src.service.ticketing.domain.entity.user_entity import UserEntity
from src.service.ticketing.domain.enum.payment_status import SETTLED_STATUSES, PaymentStatus
from src.service.ticketing.domain.value_object.refundable_line import Recipient, RefundableLine
from src.service.ticketing.driven_adapter.model.event_detail_model import EventDetailModel
from src.service.ticketing.driven_adapter.model.event_model import EventModel
from src.service.ticketing.driven_adapter.model.payment_model import PaymentModel
from src.service.ticketing.driven_adapter.model.reservation_model import ReservationModel
from src.service.ticketing.driven_adapter.model.user_model import UserModel


_SETTLED_VALUES = [status.value for status in SETTLED_STATUSES]


class RefundQueryRepoImpl(IRefundQueryRepo):
    def __init__(self, session_factory: Callable[..., AsyncContextManager[AsyncSession]]) -> None:
        self.session_factory = session_factory

    @staticmethod
    def _refundable_lines_query() -> Select:
        return (
            select(
                PaymentModel.id,
                PaymentModel.status,
                PaymentModel.amount,
                PaymentModel.currency,
                PaymentModel.intent_id,
                ReservationModel.user_id,
                EventDetailModel.id.label('event_detail_id'),
                EventDetailModel.price,
                EventDetailModel.ticket_description,
                EventModel.title,
            )
            .select_from(ReservationModel)
            .join(PaymentModel, PaymentModel.id == ReservationModel.payment_id)
            .join(EventDetailModel, EventDetailModel.id == ReservationModel.event_detail_id)
            .join(EventModel, EventModel.id == EventDetailModel.event_id)
            .where(PaymentModel.status.not_in(_SETTLED_VALUES))
            .order_by(ReservationModel.id)
        )

    async def _fetch_lines(self, query: Select) -> List[RefundableLine]:
        async with self.session_factory() as session:
            result = await session.execute(query)
            return [
                RefundableLine(
                    payment_id=row.id,
                    payment_status=PaymentStatus(row.status),
                    payment_amount=row.amount,
                    currency=row.currency,
                    user_id=row.user_id,
                    event_detail_id=row.event_detail_id,
                    ticket_price=row.price,
                    event_title=row.title,
                    ticket_description=row.ticket_description,
                    intent_id=row.intent_id,
                )
                for row in result.all()
            ]

    @Logger.io
    async def list_refundable_for_event_detail(
        self, *, event_detail_id: int
    ) -> List[RefundableLine]:
        return await self._fetch_lines(
            self._refundable_lines_query().where(EventDetailModel.id == event_detail_id)
        )

    @Logger.io
    async def list_refundable_for_event(self, *, event_id: int) -> List[RefundableLine]:
        return await self._fetch_lines(
            self._refundable_lines_query().where(EventDetailModel.event_id == event_id)
        )

    @Logger.io
    async def list_confirmed_recipients_for_event(self, *, event_id: int) -> List[Recipient]:
        async with self.session_factory() as session:
            result = await session.execute(
                select(UserModel)
                .join(ReservationModel, ReservationModel.user_id == UserModel.id)
                .join(PaymentModel, PaymentModel.id == ReservationModel.payment_id)
                .join(EventDetailModel, EventDetailModel.id == ReservationModel.event_detail_id)
                .where(
                    EventDetailModel.event_id == event_id,
                    PaymentModel.status == PaymentStatus.SUCCEEDED.value,
                )
                .distinct()
                .order_by(UserModel.id)
            )
            recipients = []
            for user_model in result.scalars().all():
                user = UserEntity(
                    id=user_model.id,
                    email=user_model.email,
                    first_name=user_model.first_name,
                    last_name=user_model.last_name,
                )
                recipients.append(
                    Recipient(user_id=user_model.id, name=user.full_name, email=user.email)
                )
            return recipients
