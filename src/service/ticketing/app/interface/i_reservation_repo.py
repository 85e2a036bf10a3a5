from abc import ABC, abstractmethod
from typing import List
from uuid import UUID

from src.service.ticketing.domain.entity.reservation_entity import Reservation
from src.service.ticketing.domain.value_object.ticket_summary import TicketSummary


class IReservationRepo(ABC):
    @abstractmethod
    async def reserve_ticket(
        self, *, event_detail_id: int, payment_id: UUID, user_id: int, email: str
    ) -> Reservation:
        """
        Reserve one ticket unit

        Decrements tickets_remaining with a conditional update
        (`... WHERE tickets_remaining > 0`), then inserts the reservation row.

        Raises:
            InsufficientTicketsError: no ticket left (lost a race with another request)
        """
        pass

    @abstractmethod
    async def list_by_payment_id(self, *, payment_id: UUID) -> List[Reservation]:
        pass

    @abstractmethod
    async def list_tickets_by_payment_id(self, *, payment_id: UUID) -> List[TicketSummary]:
        """Reserved tickets of a payment with event title and show date, for emails"""
        pass
