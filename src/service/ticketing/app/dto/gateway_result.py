"""Payment gateway results, independent of the gateway SDK"""

from typing import Any, Optional

import attrs


@attrs.define(frozen=True)
class IntentResult:
    intent_id: str
    status: str  # gateway intent status, e.g. requires_action / succeeded / canceled
    amount_cents: int
    client_secret: Optional[str] = None
    next_action: Optional[dict[str, Any]] = None


@attrs.define(frozen=True)
class RefundResult:
    refund_id: str
    status: str  # pending / succeeded / failed / requires_action / canceled
    failure_reason: Optional[str] = None


@attrs.define(frozen=True)
class WebhookEvent:
    """
    Verified webhook event, flattened

    `payment_id` comes from the payment intent metadata and is only present on
    payment_intent.* events; charge and refund events carry the intent id.
    """

    event_id: str
    event_type: str
    intent_id: Optional[str] = None
    payment_id: Optional[str] = None
    status: Optional[str] = None
    amount_cents: Optional[int] = None
    currency: Optional[str] = None
    failure_message: Optional[str] = None
