from typing import TYPE_CHECKING

from sqlalchemy import ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.platform.database.orm_db_setting import Base


if TYPE_CHECKING:
    from src.service.ticketing.driven_adapter.model.event_detail_model import EventDetailModel


class EventModel(Base):
    __tablename__ = 'event'

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default='')
    organizer: Mapped[str] = mapped_column(String(255), nullable=False, default='')
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey('user.id'), nullable=False)

    details: Mapped[list['EventDetailModel']] = relationship(
        'EventDetailModel', back_populates='event', lazy='noload'
    )
