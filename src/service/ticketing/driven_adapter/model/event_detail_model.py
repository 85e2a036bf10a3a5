from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.platform.database.orm_db_setting import Base


if TYPE_CHECKING:
    from src.service.ticketing.driven_adapter.model.event_model import EventModel


class EventDetailModel(Base):
    __tablename__ = 'event_detail'
    __table_args__ = (
        CheckConstraint('tickets_remaining >= 0', name='ck_event_detail_tickets_remaining'),
        CheckConstraint(
            'tickets_remaining <= number_of_tickets', name='ck_event_detail_tickets_total'
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    event_id: Mapped[int] = mapped_column(
        Integer, ForeignKey('event.id'), nullable=False, index=True
    )
    show_date: Mapped[str] = mapped_column(String(16), nullable=False)  # YYYY-MM-DD HH:MM
    price: Mapped[str] = mapped_column(String(20), nullable=False)  # "15.00"
    number_of_tickets: Mapped[int] = mapped_column(Integer, nullable=False)
    tickets_remaining: Mapped[int] = mapped_column(Integer, nullable=False)
    ticket_description: Mapped[str] = mapped_column(Text, nullable=False, default='')
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )

    event: Mapped['EventModel'] = relationship(
        'EventModel', back_populates='details', lazy='noload'
    )
