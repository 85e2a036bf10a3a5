"""
Email Notifier

Composes the buyer and team emails; subclasses only decide how a composed
message is delivered.
"""

from abc import abstractmethod
from typing import List

import attrs

from src.platform.config.core_setting import settings
from src.service.ticketing.app.interface.i_notifier import INotifier
from src.service.ticketing.domain.entity.payment_entity import Payment
from src.service.ticketing.domain.value_object.ticket_summary import TicketSummary


@attrs.define(frozen=True)
class EmailMessage:
    sender: str
    recipient: str
    subject: str
    body: str


def format_address(name: str, email: str) -> str:
    return f'{name} <{email}>'


class EmailNotifier(INotifier):
    def __init__(
        self,
        *,
        sender_name: str = settings.SENDER_NAME,
        sender_email: str = settings.SENDER_EMAIL,
        team_name: str = settings.TEAM_NAME,
        team_email: str = settings.TEAM_EMAIL,
        signature: str = settings.EMAIL_SIGNATURE,
    ) -> None:
        self.sender = format_address(sender_name, sender_email)
        self.team = format_address(team_name, team_email)
        self.signature = signature

    @abstractmethod
    async def deliver(self, message: EmailMessage) -> None:
        """
        Raises:
            NotificationDeliveryError: the message was not accepted for delivery
        """
        pass

    async def _send(self, *, recipient: str, subject: str, body: str) -> None:
        await self.deliver(
            EmailMessage(sender=self.sender, recipient=recipient, subject=subject, body=body)
        )

    @staticmethod
    def _ticket_lines(tickets: List[TicketSummary]) -> str:
        return ''.join(f'{ticket.as_line()}\n' for ticket in tickets)

    async def send_confirmation(
        self, *, recipient_name: str, recipient_email: str, tickets: List[TicketSummary]
    ) -> None:
        await self._send(
            recipient=format_address(recipient_name, recipient_email),
            subject='Your payment and ticket reservation is confirmed',
            body=(
                f'Hi {recipient_name},\n\n'
                "You've successfully booked your events. Enjoy!\n"
                f'{self._ticket_lines(tickets)}\n'
                f'{self.signature}'
            ),
        )

    async def send_payment_failed(
        self,
        *,
        recipient_name: str,
        recipient_email: str,
        reason: str,
        tickets: List[TicketSummary],
    ) -> None:
        await self._send(
            recipient=format_address(recipient_name, recipient_email),
            subject='Your payment failed',
            body=(
                f'Hi {recipient_name},\n\n'
                f'Your payment failed with the following issue: {reason}\n\n'
                'Reservation/s attached with the payment:\n'
                f'{self._ticket_lines(tickets)}\n'
                f'{self.signature}'
            ),
        )

    async def send_refund_or_cancelled(
        self,
        *,
        recipient_name: str,
        recipient_email: str,
        event_title: str,
        ticket_description: str,
    ) -> None:
        await self._send(
            recipient=format_address(recipient_name, recipient_email),
            subject=f'Your payment for {event_title} was refunded/cancelled',
            body=(
                f'Hi {recipient_name},\n\n'
                f"The event reservation you've booked: {event_title} - {ticket_description}, "
                'was cancelled and your payment was refunded. \n'
                "If you didn't pay yet, the pending payment is now cancelled.\n"
                'Sorry for the inconvenience.\n\n'
                f'{self.signature}'
            ),
        )

    async def send_refund_error_alert(self, *, payment: Payment, reason: str) -> None:
        await self._send(
            recipient=self.team,
            subject='A refund request has failed',
            body=(
                'A refund request has failed. Please check logs.\n\n'
                f'Payment ID: {payment.id}\n'
                f'Intent ID: {payment.intent_id or "-"}\n'
                f'Reason: {reason}'
            ),
        )

    async def send_event_updated(
        self,
        *,
        recipient_name: str,
        recipient_email: str,
        event_title: str,
        event_description: str,
        event_organizer: str = '',
    ) -> None:
        organizer = f'Organizer: {event_organizer}\n' if event_organizer.strip() else ''
        await self._send(
            recipient=format_address(recipient_name, recipient_email),
            subject='Your booked event was updated',
            body=(
                f'Hi {recipient_name},\n\n'
                'You are receiving this email because your booked event has been updated. '
                'Please refer to details below.\n\n'
                f'Title: {event_title}\n'
                f'Description: {event_description}\n'
                f'{organizer}\n'
                f'{self.signature}'
            ),
        )
