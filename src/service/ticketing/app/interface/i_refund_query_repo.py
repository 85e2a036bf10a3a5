from abc import ABC, abstractmethod
from typing import List

from src.service.ticketing.domain.value_object.refundable_line import Recipient, RefundableLine


class IRefundQueryRepo(ABC):
    """
    Read side of event / event-detail deletion

    Lines come from reservations whose payment is not yet settled
    (cancelled / refund pending / refunded / refund_failed payments are left out).
    """

    @abstractmethod
    async def list_refundable_for_event_detail(
        self, *, event_detail_id: int
    ) -> List[RefundableLine]:
        pass

    @abstractmethod
    async def list_refundable_for_event(self, *, event_id: int) -> List[RefundableLine]:
        pass

    @abstractmethod
    async def list_confirmed_recipients_for_event(self, *, event_id: int) -> List[Recipient]:
        """Distinct buyers holding a succeeded payment for the event"""
        pass
