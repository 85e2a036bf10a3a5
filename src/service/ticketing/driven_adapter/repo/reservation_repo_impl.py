from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import AsyncContextManager, AsyncIterator, Callable, List
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from src.platform.database.column_utils import as_utc
from src.platform.logging.loguru_io import Logger
from src.platform.types.uuid7 import new_uuid7
from src.service.ticketing.app.interface.i_reservation_repo import IReservationRepo
from src.service.ticketing.domain.entity.reservation_entity import Reservation
from src.service.ticketing.domain.errors import InsufficientTicketsError
from src.service.ticketing.domain.value_object.ticket_summary import TicketSummary
from src.service.ticketing.driven_adapter.model.event_detail_model import EventDetailModel
from src.service.ticketing.driven_adapter.model.event_model import EventModel
from src.service.ticketing.driven_adapter.model.reservation_model import ReservationModel


class ReservationRepoImpl(IReservationRepo):
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

    @staticmethod
    def _to_entity(model: ReservationModel) -> Reservation:
        return Reservation(
            id=model.id,
            email=model.email,
            user_id=model.user_id,
            event_detail_id=model.event_detail_id,
            payment_id=model.payment_id,
            created_at=as_utc(model.created_at),
            updated_at=as_utc(model.updated_at),
        )

    @Logger.io
    async def reserve_ticket(
        self, *, event_detail_id: int, payment_id: UUID, user_id: int, email: str
    ) -> Reservation:
        async with self._get_session() as session:
            # Conditional decrement: the row only changes while a ticket is left
            result = await session.execute(
                update(EventDetailModel)
                .where(
                    EventDetailModel.id == event_detail_id,
                    EventDetailModel.tickets_remaining > 0,
                )
                .values(tickets_remaining=EventDetailModel.tickets_remaining - 1)
                .returning(EventDetailModel.tickets_remaining)
            )
            if result.scalar_one_or_none() is None:
                raise InsufficientTicketsError(event_detail_id)

            now = datetime.now(timezone.utc)
            model = ReservationModel(
                id=new_uuid7(),
                email=email,
                user_id=user_id,
                event_detail_id=event_detail_id,
                payment_id=payment_id,
                created_at=now,
                updated_at=now,
            )
            session.add(model)
            await session.flush()
            if self.session is None:  # standalone call, not inside a unit of work
                await session.commit()

            return self._to_entity(model)

    @Logger.io
    async def list_by_payment_id(self, *, payment_id: UUID) -> List[Reservation]:
        async with self._get_session() as session:
            result = await session.execute(
                select(ReservationModel)
                .where(ReservationModel.payment_id == payment_id)
                .order_by(ReservationModel.id)
            )
            return [self._to_entity(model) for model in result.scalars().all()]

    @Logger.io
    async def list_tickets_by_payment_id(self, *, payment_id: UUID) -> List[TicketSummary]:
        async with self._get_session() as session:
            result = await session.execute(
                select(
                    EventModel.title,
                    EventDetailModel.ticket_description,
                    EventDetailModel.show_date,
                    EventDetailModel.price,
                    ReservationModel.email,
                )
                .join(EventDetailModel, EventDetailModel.id == ReservationModel.event_detail_id)
                .join(EventModel, EventModel.id == EventDetailModel.event_id)
                .where(ReservationModel.payment_id == payment_id)
                .order_by(ReservationModel.id)
            )
            return [
                TicketSummary(
                    event_title=row.title,
                    ticket_description=row.ticket_description,
                    show_date=row.show_date,
                    price=row.price,
                    email=row.email,
                )
                for row in result.all()
            ]
