from collections import Counter
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, List, Self

from dependency_injector.wiring import Provide, inject
from fastapi import Depends
from opentelemetry import trace

from src.platform.config.core_setting import settings
from src.platform.config.di import Container
from src.platform.database.unit_of_work import AbstractUnitOfWork
from src.platform.exception.exceptions import DomainError
from src.platform.logging.loguru_io import Logger
from src.platform.metrics.payment_metrics import metrics
from src.service.ticketing.app.command.payment_charger import (
    MESSAGE_FREE,
    PaymentCharger,
    write_payment_log,
)
from src.service.ticketing.app.dto.payment_outcome import PaymentOutcome, ReservationOutcome
from src.service.ticketing.app.interface.i_event_detail_query_repo import IEventDetailQueryRepo
from src.service.ticketing.app.interface.i_notifier import INotifier
from src.service.ticketing.app.interface.i_payment_gateway import IPaymentGateway
from src.service.ticketing.app.interface.i_payment_log_repo import IPaymentLogRepo
from src.service.ticketing.app.interface.i_payment_repo import IPaymentRepo
from src.service.ticketing.app.interface.i_reservation_repo import IReservationRepo
from src.service.ticketing.app.interface.i_user_query_repo import IUserQueryRepo
from src.service.ticketing.domain.entity.event_detail_entity import EventDetail
from src.service.ticketing.domain.entity.payment_entity import Payment
from src.service.ticketing.domain.entity.reservation_entity import Reservation
from src.service.ticketing.domain.enum.payment_status import PaymentStatus
from src.service.ticketing.domain.errors import (
    EmptyReservationError,
    InsufficientTicketsError,
    MissingPaymentMethodError,
    ShowDatePassedError,
    TicketNotFoundError,
)
from src.service.ticketing.domain.value_object.ticket_line import TicketLine
from src.service.ticketing.domain.value_object.ticket_summary import TicketSummary


class CreateReservationsUseCase:
    """
    Reserve tickets for a buyer and start the payment

    Flow:
    1. Validate the request against a batch read of the event details (Fail Fast)
    2. One transaction: create the pending payment, reserve every ticket unit
    3. Free checkout succeeds at once; otherwise charge through the gateway

    Dependencies:
    - uow_factory: transaction boundary for payment + reservations
    - payment_gateway / notifier: reached through PaymentCharger
    """

    def __init__(
        self,
        *,
        uow_factory: Callable[[], AbstractUnitOfWork],
        event_detail_query_repo: IEventDetailQueryRepo,
        user_query_repo: IUserQueryRepo,
        payment_repo: IPaymentRepo,
        payment_log_repo: IPaymentLogRepo,
        reservation_repo: IReservationRepo,
        payment_gateway: IPaymentGateway,
        notifier: INotifier,
    ) -> None:
        self.uow_factory = uow_factory
        self.event_detail_query_repo = event_detail_query_repo
        self.user_query_repo = user_query_repo
        self.payment_log_repo = payment_log_repo
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
        uow_factory: Callable[[], AbstractUnitOfWork] = Depends(
            Provide[Container.unit_of_work.provider]
        ),
        event_detail_query_repo: IEventDetailQueryRepo = Depends(
            Provide[Container.event_detail_query_repo]
        ),
        user_query_repo: IUserQueryRepo = Depends(Provide[Container.user_query_repo]),
        payment_repo: IPaymentRepo = Depends(Provide[Container.payment_repo]),
        payment_log_repo: IPaymentLogRepo = Depends(Provide[Container.payment_log_repo]),
        reservation_repo: IReservationRepo = Depends(Provide[Container.reservation_repo]),
        payment_gateway: IPaymentGateway = Depends(Provide[Container.payment_gateway]),
        notifier: INotifier = Depends(Provide[Container.notifier]),
    ) -> Self:
        return cls(
            uow_factory=uow_factory,
            event_detail_query_repo=event_detail_query_repo,
            user_query_repo=user_query_repo,
            payment_repo=payment_repo,
            payment_log_repo=payment_log_repo,
            reservation_repo=reservation_repo,
            payment_gateway=payment_gateway,
            notifier=notifier,
        )

    @staticmethod
    def _validate_quantities(lines: List[TicketLine]) -> None:
        if any(line.quantity < 0 for line in lines):
            raise DomainError('ticket quantity must not be negative')
        if sum(line.quantity for line in lines) == 0:
            raise EmptyReservationError()

    async def _load_and_validate_details(
        self, lines: List[TicketLine]
    ) -> Dict[int, EventDetail]:
        requested: Counter[int] = Counter()
        for line in lines:
            requested[line.event_detail_id] += line.quantity

        details = await self.event_detail_query_repo.get_by_ids(
            event_detail_ids=list(requested)
        )
        details_by_id = {detail.id: detail for detail in details}
        now = datetime.now(timezone.utc)

        for event_detail_id, quantity in requested.items():
            detail = details_by_id.get(event_detail_id)
            if detail is None:
                raise TicketNotFoundError(event_detail_id)
            if not detail.has_tickets_for(quantity):
                raise InsufficientTicketsError(event_detail_id)
            if not detail.is_upcoming(now=now):
                raise ShowDatePassedError(event_detail_id)

        return details_by_id

    async def _reserve_in_transaction(
        self,
        *,
        payment: Payment,
        lines: List[TicketLine],
        user_id: int,
        user_email: str,
    ) -> List[Reservation]:
        reservations: List[Reservation] = []
        async with self.uow_factory() as uow:
            await uow.payment_repo.create(payment=payment)
            for line in lines:
                email = line.email_or(user_email)
                for _ in range(line.quantity):
                    reservations.append(
                        await uow.reservation_repo.reserve_ticket(
                            event_detail_id=line.event_detail_id,
                            payment_id=payment.id,
                            user_id=user_id,
                            email=email,
                        )
                    )
            await uow.commit()
        return reservations

    async def _recipient_name(self, *, user_id: int, user_email: str) -> str:
        user = await self.user_query_repo.get_by_id(user_id=user_id)
        return user.full_name if user else user_email

    @Logger.io
    async def execute(
        self,
        *,
        user_id: int,
        user_email: str,
        lines: List[TicketLine],
        payment_method_id: str = '',
        currency: str = '',
    ) -> ReservationOutcome:
        with self.tracer.start_as_current_span(
            'use_case.create_reservations',
            attributes={'user.id': user_id, 'reservation.lines': len(lines)},
        ) as span:
            try:
                self._validate_quantities(lines)
                details_by_id = await self._load_and_validate_details(lines)
            except InsufficientTicketsError:
                metrics.record_reservation(result='conflict')
                raise
            except (DomainError, TicketNotFoundError):
                metrics.record_reservation(result='rejected')
                raise

            amount_cents = sum(
                details_by_id[line.event_detail_id].price_cents * line.quantity for line in lines
            )
            if amount_cents > 0 and not payment_method_id.strip():
                metrics.record_reservation(result='rejected')
                raise MissingPaymentMethodError()

            payment = Payment.create(
                user_id=user_id,
                amount_cents=amount_cents,
                currency=currency.strip().lower() or settings.DEFAULT_CURRENCY,
                ttl=timedelta(minutes=settings.PAYMENT_TTL_MINUTES),
            )
            span.set_attribute('payment.id', str(payment.id))

            try:
                reservations = await self._reserve_in_transaction(
                    payment=payment, lines=lines, user_id=user_id, user_email=user_email
                )
            except InsufficientTicketsError:
                Logger.base.warning(
                    f'🎫 [RESERVE] lost inventory race, rolled back | payment: {payment.id}'
                )
                metrics.record_reservation(result='conflict')
                raise

            Logger.base.info(
                f'🎫 [RESERVE] {len(reservations)} ticket(s) reserved | payment: {payment.id} '
                f'| amount: {payment.amount} {payment.currency}'
            )

            recipient_name = await self._recipient_name(user_id=user_id, user_email=user_email)
            # One email line per booked event detail, in request order
            booked_ids = dict.fromkeys(line.event_detail_id for line in lines if line.quantity)
            tickets = [
                TicketSummary(
                    event_title=details_by_id[event_detail_id].event_title,
                    ticket_description=details_by_id[event_detail_id].ticket_description,
                    show_date=details_by_id[event_detail_id].show_date,
                    price=details_by_id[event_detail_id].price,
                )
                for event_detail_id in booked_ids
            ]

            if payment.is_free:
                outcome = await self._complete_free(
                    payment=payment,
                    user_email=user_email,
                    recipient_name=recipient_name,
                    tickets=tickets,
                )
            else:
                outcome = await self.charger.charge(
                    payment=payment,
                    payment_method_id=payment_method_id,
                    actor_email=user_email,
                    recipient_name=recipient_name,
                    tickets=tickets,
                )

            span.set_attribute('payment.status', outcome.status.value)
            metrics.record_reservation(result=outcome.status.value, tickets=len(reservations))
            return ReservationOutcome(reservations=reservations, payment=outcome)

    async def _complete_free(
        self,
        *,
        payment: Payment,
        user_email: str,
        recipient_name: str,
        tickets: List[TicketSummary],
    ) -> PaymentOutcome:
        succeeded = payment.transition_to(PaymentStatus.SUCCEEDED)
        await write_payment_log(
            self.payment_log_repo,
            payment=succeeded,
            status=succeeded.status.value,
            description=MESSAGE_FREE,
            email=user_email,
        )
        await self.charger.persist(succeeded)
        await self.charger.send_confirmation(
            payment=succeeded,
            recipient_name=recipient_name,
            recipient_email=user_email,
            tickets=tickets,
        )
        return PaymentOutcome(
            payment_id=succeeded.id,
            status=succeeded.status,
            message=MESSAGE_FREE,
            expires_at=succeeded.expires_at,
        )
