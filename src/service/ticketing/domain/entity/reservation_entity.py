from datetime import datetime
from typing import Optional
from uuid import UUID

import attrs


@attrs.define(frozen=True)
class Reservation:
    """One reserved ticket unit; quantity N on a line item yields N rows"""

    id: UUID
    email: str
    user_id: int
    event_detail_id: int
    payment_id: UUID
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
