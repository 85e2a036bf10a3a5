from datetime import datetime, timezone
from typing import Optional, Self
from uuid import UUID

from dependency_injector.wiring import Provide, inject
from fastapi import Depends
from opentelemetry import trace

from src.platform.concurrency.fan_out import call_with_deadline
from src.platform.config.core_setting import settings
from src.platform.config.di import Container
from src.platform.logging.loguru_io import Logger
from src.platform.metrics.payment_metrics import metrics
from src.service.ticketing.app.command.payment_charger import write_payment_log
from src.service.ticketing.app.interface.i_payment_gateway import GatewayError, IPaymentGateway
from src.service.ticketing.app.interface.i_payment_log_repo import IPaymentLogRepo
from src.service.ticketing.app.interface.i_payment_repo import IPaymentRepo
from src.service.ticketing.domain.entity.payment_entity import Payment
from src.service.ticketing.domain.entity.user_entity import UNKNOWN_EMAIL
from src.service.ticketing.domain.enum.payment_status import PaymentStatus


class SweepExpiredPaymentUseCase:
    """
    Reclaim the tickets of an expired, unpaid payment

    Flow:
    1. Skip unless the payment is past its expiry and still unpaid
    2. Restore its tickets and delete payment + reservations (one store call)
    3. Best-effort cancel of the remote intent, unless it is already canceled

    Returns a readable result, empty when nothing was swept.
    """

    def __init__(
        self,
        *,
        payment_repo: IPaymentRepo,
        payment_log_repo: IPaymentLogRepo,
        payment_gateway: IPaymentGateway,
    ) -> None:
        self.payment_repo = payment_repo
        self.payment_log_repo = payment_log_repo
        self.payment_gateway = payment_gateway
        self.tracer = trace.get_tracer(__name__)

    @classmethod
    @inject
    def depends(
        cls,
        payment_repo: IPaymentRepo = Depends(Provide[Container.payment_repo]),
        payment_log_repo: IPaymentLogRepo = Depends(Provide[Container.payment_log_repo]),
        payment_gateway: IPaymentGateway = Depends(Provide[Container.payment_gateway]),
    ) -> Self:
        return cls(
            payment_repo=payment_repo,
            payment_log_repo=payment_log_repo,
            payment_gateway=payment_gateway,
        )

    @Logger.io
    async def execute(
        self,
        *,
        payment: Optional[Payment] = None,
        payment_id: Optional[UUID] = None,
        actor_email: str = UNKNOWN_EMAIL,
    ) -> str:
        if payment is None:
            if payment_id is None:
                raise ValueError('payment or payment_id is required')
            payment = await self.payment_repo.get_by_id(payment_id=payment_id)
            if payment is None:
                return ''

        with self.tracer.start_as_current_span(
            'use_case.sweep_expired_payment',
            attributes={'payment.id': str(payment.id), 'payment.status': payment.status.value},
        ):
            if not payment.status.is_unpaid or not payment.is_expired(
                now=datetime.now(timezone.utc)
            ):
                return ''

            restored = await self.payment_repo.restore_tickets_and_delete(payment_id=payment.id)
            metrics.expired_payments_swept.inc()

            if payment.intent_id:
                await self._cancel_remote_intent(payment)

            result = (
                f'expired payment successfully deleted and restored tickets | ID: {payment.id}'
            )
            await write_payment_log(
                self.payment_log_repo,
                payment=payment,
                status=PaymentStatus.CANCELLED.value,
                description=result,
                email=actor_email,
            )
            Logger.base.info(f'🧹 [SWEEP] {result} | tickets restored: {restored}')
            return result

    async def _cancel_remote_intent(self, payment: Payment) -> None:
        assert payment.intent_id is not None
        try:
            remote_status = await call_with_deadline(
                self.payment_gateway.retrieve_intent_status,
                deadline=settings.EXTERNAL_CALL_TIMEOUT_SECONDS,
                intent_id=payment.intent_id,
            )
            if remote_status == 'canceled':
                Logger.base.info(f'🧹 [SWEEP] intent {payment.intent_id} already canceled')
                return
            await call_with_deadline(
                self.payment_gateway.cancel_intent,
                deadline=settings.EXTERNAL_CALL_TIMEOUT_SECONDS,
                intent_id=payment.intent_id,
                reason='abandoned',
            )
            Logger.base.info(f'🧹 [SWEEP] intent {payment.intent_id} canceled')
        except (GatewayError, TimeoutError) as e:
            # Local state is already reclaimed; the remote intent expires on its own
            Logger.base.warning(
                f'🧹 [SWEEP] intent {payment.intent_id} not canceled | error: {e!r}'
            )
