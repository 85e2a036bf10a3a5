from datetime import datetime
from typing import Optional

import attrs

from src.service.ticketing.domain.pricing import parse_show_date, price_string_to_cents


@attrs.define
class EventDetail:
    id: int
    event_id: int
    show_date: str  # YYYY-MM-DD HH:MM
    price: str
    number_of_tickets: int
    tickets_remaining: int
    ticket_description: str = ''
    event_title: str = ''
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def price_cents(self) -> int:
        return price_string_to_cents(self.price)

    @property
    def show_starts_at(self) -> datetime:
        return parse_show_date(self.show_date)

    def has_tickets_for(self, quantity: int) -> bool:
        return self.tickets_remaining >= quantity

    def is_upcoming(self, *, now: datetime) -> bool:
        return self.show_starts_at > now
