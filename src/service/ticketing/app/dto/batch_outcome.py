"""Outcomes of the refund/cancel and notification fan-outs"""

from typing import List, Optional
from uuid import UUID

import attrs


@attrs.define(frozen=True)
class RefundCancelFailure:
    payment_id: UUID
    action: str  # 'stripe refund request' / 'stripe cancel request'
    code: str
    message: str


@attrs.define(frozen=True)
class NotificationFailure:
    recipient_email: str
    message: str
    user_id: Optional[int] = None


@attrs.define(frozen=True)
class NotificationOutcome:
    notified: List[str] = attrs.field(factory=list)
    failures: List[NotificationFailure] = attrs.field(factory=list)

    @property
    def is_partial(self) -> bool:
        return bool(self.failures)

    @property
    def http_status(self) -> int:
        return 207 if self.is_partial else 200


@attrs.define(frozen=True)
class RefundCancelOutcome:
    """
    Single result of a refund/cancel batch

    Empty failure lists mean full success. The deletion that triggered the
    batch proceeds either way; `is_partial` tells the caller to report a
    multi-status result.
    """

    processed_payment_ids: List[UUID] = attrs.field(factory=list)
    refund_cancel_failures: List[RefundCancelFailure] = attrs.field(factory=list)
    notification_failures: List[NotificationFailure] = attrs.field(factory=list)

    @property
    def is_partial(self) -> bool:
        return bool(self.refund_cancel_failures or self.notification_failures)

    @property
    def http_status(self) -> int:
        return 207 if self.is_partial else 200
