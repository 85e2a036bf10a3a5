"""Ticketing Domain Enums"""

from src.service.ticketing.domain.enum.payment_status import (
    ALLOWED_TRANSITIONS,
    SETTLED_STATUSES,
    UNPAID_STATUSES,
    PaymentStatus,
)
from src.service.ticketing.domain.enum.webhook_kind import WebhookKind

__all__ = [
    'ALLOWED_TRANSITIONS',
    'SETTLED_STATUSES',
    'UNPAID_STATUSES',
    'PaymentStatus',
    'WebhookKind',
]
