from typing import Optional

import attrs


@attrs.define(frozen=True)
class TicketLine:
    """One requested line item: quantity tickets of an event detail"""

    event_detail_id: int
    quantity: int
    email: Optional[str] = None

    def email_or(self, fallback: str) -> str:
        return self.email.strip() if self.email and self.email.strip() else fallback
