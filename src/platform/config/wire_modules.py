"""
Wire Modules Configuration

Defines the modules that need dependency injection wiring.
Shared between production and test environments.
"""

from types import ModuleType

from src.service.ticketing.app.command import (
    create_reservations_use_case,
    handle_payment_webhook_use_case,
    notify_event_updated_use_case,
    refund_or_cancel_payments_use_case,
    resubmit_payment_use_case,
    sweep_expired_payment_use_case,
)
from src.service.ticketing.driving_adapter.http_controller import payment_webhook_controller


WIRE_MODULES: list[ModuleType] = [
    create_reservations_use_case,
    handle_payment_webhook_use_case,
    notify_event_updated_use_case,
    refund_or_cancel_payments_use_case,
    resubmit_payment_use_case,
    sweep_expired_payment_use_case,
    payment_webhook_controller,
]
