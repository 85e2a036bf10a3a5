from typing import Optional
from uuid import UUID

import attrs

from src.service.ticketing.domain.enum.payment_status import PaymentStatus


@attrs.define(frozen=True)
class RefundableLine:
    """
    A reservation of the deleted event / event detail joined with its payment

    Several lines can share one payment intent when a checkout covered
    multiple tickets; `dedup_key` collapses them.
    """

    payment_id: UUID
    payment_status: PaymentStatus
    payment_amount: str
    currency: str
    user_id: int
    event_detail_id: int
    ticket_price: str
    event_title: str
    ticket_description: str
    intent_id: Optional[str] = None

    @property
    def dedup_key(self) -> str:
        return self.intent_id or f'payment:{self.payment_id}'


@attrs.define(frozen=True)
class Recipient:
    user_id: int
    name: str
    email: str
