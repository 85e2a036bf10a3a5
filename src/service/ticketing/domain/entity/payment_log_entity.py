from datetime import datetime, timezone
from typing import Optional
from uuid import UUID

import attrs

from src.platform.types.uuid7 import new_uuid7


@attrs.define(frozen=True)
class PaymentLog:
    """Append-only audit row for one payment transition or gateway call"""

    id: UUID
    payment_id: UUID
    intent_id: str
    amount: str
    status: str  # local status, gateway status or gateway error code
    description: str
    email: str
    created_at: Optional[datetime] = None

    @classmethod
    def record(
        cls,
        *,
        payment_id: UUID,
        intent_id: str | None,
        amount: str,
        status: str,
        description: str,
        email: str,
    ) -> 'PaymentLog':
        return cls(
            id=new_uuid7(),
            payment_id=payment_id,
            intent_id=intent_id or '',
            amount=amount,
            status=status,
            description=description,
            email=email,
            created_at=datetime.now(timezone.utc),
        )
