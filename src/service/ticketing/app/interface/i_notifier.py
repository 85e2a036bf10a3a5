"""
Notifier port

Delivery failures raise `NotificationDeliveryError`; callers treat them as
non-fatal and report them upward.
"""

from abc import ABC, abstractmethod
from typing import List

from src.service.ticketing.domain.entity.payment_entity import Payment
from src.service.ticketing.domain.value_object.ticket_summary import TicketSummary


class NotificationDeliveryError(Exception):
    def __init__(self, *, recipient: str, message: str) -> None:
        self.recipient = recipient
        self.message = message
        super().__init__(f'recipient: {recipient} | error: {message}')


class INotifier(ABC):
    @abstractmethod
    async def send_confirmation(
        self, *, recipient_name: str, recipient_email: str, tickets: List[TicketSummary]
    ) -> None:
        pass

    @abstractmethod
    async def send_payment_failed(
        self,
        *,
        recipient_name: str,
        recipient_email: str,
        reason: str,
        tickets: List[TicketSummary],
    ) -> None:
        pass

    @abstractmethod
    async def send_refund_or_cancelled(
        self,
        *,
        recipient_name: str,
        recipient_email: str,
        event_title: str,
        ticket_description: str,
    ) -> None:
        pass

    @abstractmethod
    async def send_refund_error_alert(self, *, payment: Payment, reason: str) -> None:
        """Internal alert to the payments team"""
        pass

    @abstractmethod
    async def send_event_updated(
        self,
        *,
        recipient_name: str,
        recipient_email: str,
        event_title: str,
        event_description: str,
        event_organizer: str = '',
    ) -> None:
        pass
