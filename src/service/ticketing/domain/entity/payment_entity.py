from datetime import datetime, timedelta, timezone
from typing import Optional
from uuid import UUID

import attrs

from src.platform.types.uuid7 import new_uuid7
from src.service.ticketing.domain.enum.payment_status import PaymentStatus
from src.service.ticketing.domain.errors import InvalidPaymentTransitionError
from src.service.ticketing.domain.pricing import cents_to_price_string, price_string_to_cents


@attrs.define
class Payment:
    id: UUID
    user_id: int
    amount: str  # decimal string, always two places
    currency: str
    expires_at: datetime
    status: PaymentStatus = PaymentStatus.PENDING
    intent_id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def create(
        cls, *, user_id: int, amount_cents: int, currency: str, ttl: timedelta
    ) -> 'Payment':
        now = datetime.now(timezone.utc)
        return cls(
            id=new_uuid7(),
            user_id=user_id,
            amount=cents_to_price_string(amount_cents),
            currency=currency,
            expires_at=now + ttl,
            status=PaymentStatus.PENDING,
            created_at=now,
            updated_at=now,
        )

    @property
    def amount_cents(self) -> int:
        return price_string_to_cents(self.amount)

    @property
    def is_free(self) -> bool:
        return self.amount_cents == 0

    def is_expired(self, *, now: datetime | None = None) -> bool:
        return (now or datetime.now(timezone.utc)) > self.expires_at

    def transition_to(
        self,
        status: PaymentStatus,
        *,
        intent_id: str | None = None,
        amount_cents: int | None = None,
    ) -> 'Payment':
        if not self.status.can_transition_to(status):
            raise InvalidPaymentTransitionError(str(self.status), str(status))
        changes: dict = {'status': status, 'updated_at': datetime.now(timezone.utc)}
        if intent_id:
            changes['intent_id'] = intent_id
        if amount_cents is not None:
            changes['amount'] = cents_to_price_string(amount_cents)
        return attrs.evolve(self, **changes)

    def apply_gateway_status(
        self,
        status: PaymentStatus,
        *,
        intent_id: str | None = None,
        amount_cents: int | None = None,
    ) -> 'Payment':
        """Like `transition_to`, but a repeat of the current status only refreshes intent and amount"""
        if status != self.status:
            return self.transition_to(status, intent_id=intent_id, amount_cents=amount_cents)
        changes: dict = {'updated_at': datetime.now(timezone.utc)}
        if intent_id:
            changes['intent_id'] = intent_id
        if amount_cents is not None:
            changes['amount'] = cents_to_price_string(amount_cents)
        return attrs.evolve(self, **changes)
