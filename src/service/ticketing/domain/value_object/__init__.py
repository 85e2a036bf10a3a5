"""Ticketing Domain Value Objects"""

from src.service.ticketing.domain.value_object.refundable_line import Recipient, RefundableLine
from src.service.ticketing.domain.value_object.ticket_line import TicketLine
from src.service.ticketing.domain.value_object.ticket_summary import TicketSummary

__all__ = ['Recipient', 'RefundableLine', 'TicketLine', 'TicketSummary']
