from abc import ABC, abstractmethod

from src.service.ticketing.domain.entity.payment_log_entity import PaymentLog


class IPaymentLogRepo(ABC):
    @abstractmethod
    async def create(self, *, log: PaymentLog) -> None:
        """Append one audit row (rows are never updated or deleted)"""
        pass
