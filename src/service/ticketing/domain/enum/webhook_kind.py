from enum import StrEnum


class WebhookKind(StrEnum):
    """Which signing secret a webhook endpoint verifies against"""

    PAYMENT = 'payment'
    REFUND = 'refund'

    @classmethod
    def from_path(cls, kind: str) -> 'WebhookKind':
        # Anything naming refunds uses the refund secret
        return cls.REFUND if 'refund' in kind.lower() else cls.PAYMENT
