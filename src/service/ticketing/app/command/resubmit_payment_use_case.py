from typing import Self
from uuid import UUID

from dependency_injector.wiring import Provide, inject
from fastapi import Depends
from opentelemetry import trace

from src.platform.config.di import Container
from src.platform.exception.exceptions import DomainError
from src.platform.logging.loguru_io import Logger
from src.service.ticketing.app.command.payment_charger import PaymentCharger
from src.service.ticketing.app.command.sweep_expired_payment_use_case import (
    SweepExpiredPaymentUseCase,
)
from src.service.ticketing.app.dto.payment_outcome import PaymentOutcome
from src.service.ticketing.app.interface.i_notifier import INotifier
from src.service.ticketing.app.interface.i_payment_gateway import IPaymentGateway
from src.service.ticketing.app.interface.i_payment_log_repo import IPaymentLogRepo
from src.service.ticketing.app.interface.i_payment_repo import IPaymentRepo
from src.service.ticketing.app.interface.i_reservation_repo import IReservationRepo
from src.service.ticketing.app.interface.i_user_query_repo import IUserQueryRepo
from src.service.ticketing.domain.errors import (
    MissingPaymentMethodError,
    PaymentExpiredError,
    PaymentNotFoundError,
)


class ResubmitPaymentUseCase:
    """
    Retry an unpaid payment with a new payment method

    The payment is swept first: an expired payment is reclaimed and the buyer
    has to rebook. Otherwise the existing intent is updated and re-confirmed
    (or created when the first attempt never reached the gateway).
    """

    def __init__(
        self,
        *,
        payment_repo: IPaymentRepo,
        payment_log_repo: IPaymentLogRepo,
        reservation_repo: IReservationRepo,
        user_query_repo: IUserQueryRepo,
        payment_gateway: IPaymentGateway,
        notifier: INotifier,
        sweeper: SweepExpiredPaymentUseCase,
    ) -> None:
        self.payment_repo = payment_repo
        self.user_query_repo = user_query_repo
        self.sweeper = sweeper
        self.charger = PaymentCharger(
            payment_repo=payment_repo,
            payment_log_repo=payment_log_repo,
            reservation_repo=reservation_repo,
            payment_gateway=payment_gateway,
            notifier=notifier,
        )
        self.tracer = trace.get_tracer(__name__)

    @classmethod
    @inject
    def depends(
        cls,
        payment_repo: IPaymentRepo = Depends(Provide[Container.payment_repo]),
        payment_log_repo: IPaymentLogRepo = Depends(Provide[Container.payment_log_repo]),
        reservation_repo: IReservationRepo = Depends(Provide[Container.reservation_repo]),
        user_query_repo: IUserQueryRepo = Depends(Provide[Container.user_query_repo]),
        payment_gateway: IPaymentGateway = Depends(Provide[Container.payment_gateway]),
        notifier: INotifier = Depends(Provide[Container.notifier]),
        sweeper: SweepExpiredPaymentUseCase = Depends(SweepExpiredPaymentUseCase.depends),
    ) -> Self:
        return cls(
            payment_repo=payment_repo,
            payment_log_repo=payment_log_repo,
            reservation_repo=reservation_repo,
            user_query_repo=user_query_repo,
            payment_gateway=payment_gateway,
            notifier=notifier,
            sweeper=sweeper,
        )

    @Logger.io
    async def execute(
        self,
        *,
        payment_id: UUID,
        user_id: int,
        actor_email: str,
        payment_method_id: str,
    ) -> PaymentOutcome:
        with self.tracer.start_as_current_span(
            'use_case.resubmit_payment',
            attributes={'payment.id': str(payment_id), 'user.id': user_id},
        ):
            payment = await self.payment_repo.get_by_id(payment_id=payment_id)
            if payment is None or payment.user_id != user_id:
                raise PaymentNotFoundError(f'payment not found | ID: {payment_id}')

            swept = await self.sweeper.execute(payment=payment, actor_email=actor_email)
            if swept:
                raise PaymentExpiredError('payment expired, please rebook your tickets')

            if not payment.status.is_unpaid:
                raise DomainError(
                    f'payment is {payment.status.value}, only unpaid payments can be resubmitted'
                )
            if not payment_method_id.strip():
                raise MissingPaymentMethodError()

            user = await self.user_query_repo.get_by_id(user_id=user_id)
            return await self.charger.charge(
                payment=payment,
                payment_method_id=payment_method_id,
                actor_email=actor_email,
                recipient_name=user.full_name if user else actor_email,
            )
