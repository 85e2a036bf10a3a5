from abc import ABC, abstractmethod
from typing import List
from uuid import UUID

from src.service.ticketing.domain.entity.payment_entity import Payment


class IPaymentRepo(ABC):
    """
    Payment persistence

    Works standalone (own session per call) or inside a unit of work, where
    the shared session makes `create` part of the reservation transaction.
    """

    @abstractmethod
    async def create(self, *, payment: Payment) -> Payment:
        pass

    @abstractmethod
    async def update(self, *, payment: Payment) -> Payment:
        """Persist status, amount and intent id of an existing payment"""
        pass

    @abstractmethod
    async def get_by_id(self, *, payment_id: UUID) -> Payment | None:
        pass

    @abstractmethod
    async def get_by_intent_id(self, *, intent_id: str) -> Payment | None:
        pass

    @abstractmethod
    async def get_by_ids(self, *, payment_ids: List[UUID]) -> List[Payment]:
        pass

    @abstractmethod
    async def restore_tickets_and_delete(self, *, payment_id: UUID) -> int:
        """
        Atomically give every reserved ticket back to its event detail, delete
        the reservations and delete the payment.

        Returns:
            Number of ticket units restored (0 when the payment was already gone)
        """
        pass
