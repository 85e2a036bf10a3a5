from datetime import datetime
from typing import Any, List, Optional
from uuid import UUID

import attrs

from src.service.ticketing.domain.entity.reservation_entity import Reservation
from src.service.ticketing.domain.enum.payment_status import PaymentStatus


@attrs.define(frozen=True)
class PaymentOutcome:
    """
    What the buyer sees after a checkout attempt

    `client_secret` and `next_action` let the client finish a payment that
    still needs customer action (3-D Secure and similar).
    """

    payment_id: UUID
    status: PaymentStatus
    message: str
    expires_at: datetime
    client_secret: Optional[str] = None
    next_action: Optional[dict[str, Any]] = None
    error_code: Optional[str] = None


@attrs.define(frozen=True)
class ReservationOutcome:
    reservations: List[Reservation]
    payment: PaymentOutcome
