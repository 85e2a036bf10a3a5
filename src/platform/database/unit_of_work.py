"""
Unit of Work Pattern

Architecture:
- UoW owns the session lifecycle of one transaction
- UoW commits or rolls back
- Repositories obtained from the UoW share its session
- The reservation flow creates the payment and reserves every ticket
  through one UoW, so a lost inventory race rolls both back
"""

from __future__ import annotations

import abc
from contextlib import AsyncExitStack
from typing import TYPE_CHECKING, AsyncContextManager, Callable

from sqlalchemy.ext.asyncio import AsyncSession


if TYPE_CHECKING:
    from src.service.ticketing.app.interface.i_payment_repo import IPaymentRepo
    from src.service.ticketing.app.interface.i_reservation_repo import IReservationRepo


class AbstractUnitOfWork(abc.ABC):
    """
    Usage:
        async with uow:
            await uow.payment_repo.create(payment=...)
            await uow.reservation_repo.reserve_ticket(...)
            await uow.commit()

    Leaving the block without commit() rolls back.
    """

    payment_repo: IPaymentRepo
    reservation_repo: IReservationRepo

    async def __aenter__(self) -> AbstractUnitOfWork:
        return self

    async def __aexit__(self, *args) -> None:
        await self.rollback()

    async def commit(self) -> None:
        """Commit the transaction"""
        await self._commit()

    @abc.abstractmethod
    async def _commit(self) -> None:
        raise NotImplementedError

    @abc.abstractmethod
    async def rollback(self) -> None:
        raise NotImplementedError


class SqlAlchemyUnitOfWork(AbstractUnitOfWork):
    def __init__(self, session_factory: Callable[..., AsyncContextManager[AsyncSession]]):
        self.session_factory = session_factory
        self.session: AsyncSession | None = None
        self._exit_stack: AsyncExitStack | None = None

    async def __aenter__(self) -> AbstractUnitOfWork:
        from src.service.ticketing.driven_adapter.repo.payment_repo_impl import PaymentRepoImpl
        from src.service.ticketing.driven_adapter.repo.reservation_repo_impl import (
            ReservationRepoImpl,
        )

        self._exit_stack = AsyncExitStack()
        self.session = await self._exit_stack.enter_async_context(self.session_factory())

        # Repositories bound to the shared session (UoW mode)
        self.payment_repo = PaymentRepoImpl()
        self.payment_repo.session = self.session
        self.reservation_repo = ReservationRepoImpl()
        self.reservation_repo.session = self.session

        return await super().__aenter__()

    async def __aexit__(self, *args) -> None:
        try:
            await super().__aexit__(*args)
        finally:
            if self._exit_stack is not None:
                await self._exit_stack.aclose()
            self._exit_stack = None
            self.session = None

    async def _commit(self) -> None:
        assert self.session is not None, 'UnitOfWork used outside `async with`'
        await self.session.commit()

    async def rollback(self) -> None:
        if self.session is not None:
            await self.session.rollback()
