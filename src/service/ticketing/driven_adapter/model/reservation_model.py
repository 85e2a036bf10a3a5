from datetime import datetime
import uuid

from sqlalchemy import DateTime, ForeignKey, Integer, String, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column

from src.platform.database.orm_db_setting import Base


class ReservationModel(Base):
    __tablename__ = 'reservation'

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True)  # UUID7
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey('user.id'), nullable=False, index=True
    )
    event_detail_id: Mapped[int] = mapped_column(
        Integer, ForeignKey('event_detail.id'), nullable=False, index=True
    )
    # No ON DELETE CASCADE: reservations are removed only together with a ticket restore
    payment_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey('payment.id'), nullable=False, index=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )
