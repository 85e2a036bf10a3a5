from typing import AsyncContextManager, Callable, List

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.platform.database.column_utils import as_utc
from src.platform.logging.loguru_io import Logger
from src.service.ticketing.app.interface.i_event_detail_query_repo import IEventDetailQueryRepo
from src.service.ticketing.domain.entity.event_detail_entity import EventDetail
from src.service.ticketing.driven_adapter.model.event_detail_model import EventDetailModel
from src.service.ticketing.driven_adapter.model.event_model import EventModel


class EventDetailQueryRepoImpl(IEventDetailQueryRepo):
    def __init__(self, session_factory: Callable[..., AsyncContextManager[AsyncSession]]) -> None:
        self.session_factory = session_factory

    @Logger.io
    async def get_by_ids(self, *, event_detail_ids: List[int]) -> List[EventDetail]:
        if not event_detail_ids:
            return []
        async with self.session_factory() as session:
            result = await session.execute(
                select(EventDetailModel, EventModel.title)
                .join(EventModel, EventModel.id == EventDetailModel.event_id)
                .where(EventDetailModel.id.in_(list(set(event_detail_ids))))
            )
            return [
                EventDetail(
                    id=model.id,
                    event_id=model.event_id,
                    show_date=model.show_date,
                    price=model.price,
                    number_of_tickets=model.number_of_tickets,
                    tickets_remaining=model.tickets_remaining,
                    ticket_description=model.ticket_description,
                    event_title=title,
                    created_at=as_utc(model.created_at),
                    updated_at=as_utc(model.updated_at),
                )
                for model, title in result.all()
            ]
