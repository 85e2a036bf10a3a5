"""
Payment status and its allowed transitions

Checkout states follow the gateway's payment intent lifecycle; refund states
are local. The gateway spells the cancelled state `canceled`; locally it is
stored as `cancelled`.
"""

from enum import StrEnum


class PaymentStatus(StrEnum):
    PENDING = 'pending'
    REQUIRES_ACTION = 'requires_action'
    REQUIRES_PAYMENT_METHOD = 'requires_payment_method'
    PROCESSING = 'processing'
    SUCCEEDED = 'succeeded'
    CANCELLED = 'cancelled'
    PAYMENT_FAILED = 'payment_failed'
    REFUND_PENDING = 'refund pending'
    REFUNDED = 'refunded'
    REFUND_FAILED = 'refund_failed'

    @property
    def is_terminal(self) -> bool:
        return not ALLOWED_TRANSITIONS[self]

    @property
    def is_unpaid(self) -> bool:
        return self in UNPAID_STATUSES

    def can_transition_to(self, target: 'PaymentStatus') -> bool:
        return target in ALLOWED_TRANSITIONS[self]

    @classmethod
    def from_gateway(cls, gateway_status: str) -> 'PaymentStatus | None':
        """Map a payment intent status to the local status, None when it has no local state"""
        if gateway_status == 'canceled':
            return cls.CANCELLED
        if gateway_status in ('requires_confirmation', 'requires_capture'):
            return cls.PROCESSING
        try:
            return cls(gateway_status)
        except ValueError:
            return None


# Statuses a buyer can still pay from, and the ones the expiry sweep may reclaim
UNPAID_STATUSES = frozenset(
    {
        PaymentStatus.PENDING,
        PaymentStatus.REQUIRES_ACTION,
        PaymentStatus.REQUIRES_PAYMENT_METHOD,
        PaymentStatus.PAYMENT_FAILED,
    }
)

# Statuses with nothing left to refund or cancel
SETTLED_STATUSES = frozenset(
    {
        PaymentStatus.CANCELLED,
        PaymentStatus.REFUND_PENDING,
        PaymentStatus.REFUNDED,
        PaymentStatus.REFUND_FAILED,
    }
)

_CHECKOUT_TARGETS = frozenset(
    {
        PaymentStatus.REQUIRES_ACTION,
        PaymentStatus.REQUIRES_PAYMENT_METHOD,
        PaymentStatus.PROCESSING,
        PaymentStatus.SUCCEEDED,
        PaymentStatus.CANCELLED,
        PaymentStatus.PAYMENT_FAILED,
    }
)

# No self-loops: a repeated webhook for the current state is ignored
ALLOWED_TRANSITIONS: dict[PaymentStatus, frozenset[PaymentStatus]] = {
    PaymentStatus.PENDING: _CHECKOUT_TARGETS,
    PaymentStatus.REQUIRES_ACTION: _CHECKOUT_TARGETS - {PaymentStatus.REQUIRES_ACTION},
    PaymentStatus.REQUIRES_PAYMENT_METHOD: _CHECKOUT_TARGETS
    - {PaymentStatus.REQUIRES_PAYMENT_METHOD},
    PaymentStatus.PROCESSING: _CHECKOUT_TARGETS - {PaymentStatus.PROCESSING},
    PaymentStatus.PAYMENT_FAILED: _CHECKOUT_TARGETS - {PaymentStatus.PAYMENT_FAILED},
    PaymentStatus.SUCCEEDED: frozenset(
        {PaymentStatus.REFUND_PENDING, PaymentStatus.REFUNDED, PaymentStatus.REFUND_FAILED}
    ),
    PaymentStatus.REFUND_PENDING: frozenset(
        {PaymentStatus.REFUNDED, PaymentStatus.REFUND_FAILED}
    ),
    PaymentStatus.CANCELLED: frozenset(),
    PaymentStatus.REFUNDED: frozenset(),
    PaymentStatus.REFUND_FAILED: frozenset(),
}
