"""Application layer DTOs"""

from src.service.ticketing.app.dto.batch_outcome import (
    NotificationFailure,
    NotificationOutcome,
    RefundCancelFailure,
    RefundCancelOutcome,
)
from src.service.ticketing.app.dto.gateway_result import IntentResult, RefundResult, WebhookEvent
from src.service.ticketing.app.dto.payment_outcome import PaymentOutcome, ReservationOutcome
from src.service.ticketing.app.dto.webhook_outcome import WebhookOutcome

__all__ = [
    'IntentResult',
    'NotificationFailure',
    'NotificationOutcome',
    'PaymentOutcome',
    'RefundCancelFailure',
    'RefundCancelOutcome',
    'RefundResult',
    'ReservationOutcome',
    'WebhookEvent',
    'WebhookOutcome',
]
