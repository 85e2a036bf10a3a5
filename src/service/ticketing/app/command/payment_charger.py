"""
Payment charging step shared by checkout and resubmission

Calls the gateway for a persisted payment, maps the intent status onto the
payment, writes the audit row and persists the result. Gateway errors never
escape: a decline becomes `payment_failed`, an outage leaves the payment
`pending` so the buyer can retry before it expires.
"""

from typing import List, Optional

from src.platform.concurrency.fan_out import call_with_deadline
from src.platform.config.core_setting import settings
from src.platform.logging.loguru_io import Logger
from src.service.ticketing.app.dto.gateway_result import IntentResult
from src.service.ticketing.app.dto.payment_outcome import PaymentOutcome
from src.service.ticketing.app.interface.i_notifier import INotifier, NotificationDeliveryError
from src.service.ticketing.app.interface.i_payment_gateway import (
    GatewayDeclinedError,
    GatewayError,
    GatewayTransportError,
    IPaymentGateway,
)
from src.service.ticketing.app.interface.i_payment_log_repo import IPaymentLogRepo
from src.service.ticketing.app.interface.i_payment_repo import IPaymentRepo
from src.service.ticketing.app.interface.i_reservation_repo import IReservationRepo
from src.service.ticketing.domain.entity.payment_entity import Payment
from src.service.ticketing.domain.entity.payment_log_entity import PaymentLog
from src.service.ticketing.domain.enum.payment_status import PaymentStatus
from src.service.ticketing.domain.errors import PaymentCancelledError
from src.service.ticketing.domain.value_object.ticket_summary import TicketSummary


MESSAGE_SUCCEEDED = 'payment successful'
MESSAGE_FREE = 'free reservation successful'
MESSAGE_PROCESSING = "payment processing, we'll send you an email once payment succeeded"
MESSAGE_REQUIRES_PAYMENT_METHOD = 'please submit new payment method'
MESSAGE_NEXT_ACTION = 'please refer to next action and status'


def requires_action_message() -> str:
    return f'complete payment within next {settings.PAYMENT_TTL_MINUTES} minutes'


def status_message(status: PaymentStatus) -> str:
    match status:
        case PaymentStatus.SUCCEEDED:
            return MESSAGE_SUCCEEDED
        case PaymentStatus.REQUIRES_ACTION:
            return requires_action_message()
        case PaymentStatus.PROCESSING:
            return MESSAGE_PROCESSING
        case PaymentStatus.REQUIRES_PAYMENT_METHOD:
            return MESSAGE_REQUIRES_PAYMENT_METHOD
        case _:
            return MESSAGE_NEXT_ACTION


async def write_payment_log(
    payment_log_repo: IPaymentLogRepo,
    *,
    payment: Payment,
    status: str,
    description: str,
    email: str,
    intent_id: Optional[str] = None,
    amount: Optional[str] = None,
) -> None:
    """Append an audit row; a failed write is logged and never changes the caller's result"""
    try:
        await payment_log_repo.create(
            log=PaymentLog.record(
                payment_id=payment.id,
                intent_id=intent_id if intent_id is not None else payment.intent_id,
                amount=amount if amount is not None else payment.amount,
                status=status,
                description=description,
                email=email,
            )
        )
    except Exception as e:
        Logger.base.error(
            f'📝 [PAYMENT_LOG] write failed | payment: {payment.id} | status: {status} | error: {e}'
        )


async def persist_payment(payment_repo: IPaymentRepo, payment: Payment) -> bool:
    """Write status / intent / amount; a failure is logged and reported as False"""
    try:
        await payment_repo.update(payment=payment)
    except Exception as e:
        Logger.base.error(
            f'💾 [PAYMENT] status not persisted | payment: {payment.id} '
            f'| status: {payment.status} | error: {e}'
        )
        return False
    return True


class PaymentCharger:
    def __init__(
        self,
        *,
        payment_repo: IPaymentRepo,
        payment_log_repo: IPaymentLogRepo,
        reservation_repo: IReservationRepo,
        payment_gateway: IPaymentGateway,
        notifier: INotifier,
    ) -> None:
        self.payment_repo = payment_repo
        self.payment_log_repo = payment_log_repo
        self.reservation_repo = reservation_repo
        self.payment_gateway = payment_gateway
        self.notifier = notifier

    async def persist(self, payment: Payment) -> None:
        """Write the final status; the tickets are already reserved, so a failure is only logged"""
        await persist_payment(self.payment_repo, payment)

    async def send_confirmation(
        self,
        *,
        payment: Payment,
        recipient_name: str,
        recipient_email: str,
        tickets: Optional[List[TicketSummary]] = None,
    ) -> None:
        """Best-effort buyer confirmation"""
        try:
            if tickets is None:
                tickets = await self.reservation_repo.list_tickets_by_payment_id(
                    payment_id=payment.id
                )
            await call_with_deadline(
                self.notifier.send_confirmation,
                deadline=settings.EXTERNAL_CALL_TIMEOUT_SECONDS,
                recipient_name=recipient_name,
                recipient_email=recipient_email,
                tickets=tickets,
            )
        except (NotificationDeliveryError, TimeoutError) as e:
            Logger.base.error(
                f'📧 [CONFIRMATION] not sent | payment: {payment.id} | recipient: {recipient_email} '
                f'| error: {e!r}'
            )

    async def _call_gateway(self, *, payment: Payment, payment_method_id: str) -> IntentResult:
        try:
            return await call_with_deadline(
                self.payment_gateway.create_or_update_intent,
                deadline=settings.EXTERNAL_CALL_TIMEOUT_SECONDS,
                amount_cents=payment.amount_cents,
                currency=payment.currency,
                payment_method_id=payment_method_id,
                payment_id=payment.id,
                intent_id=payment.intent_id,
            )
        except TimeoutError as e:
            raise GatewayTransportError('payment gateway timed out') from e

    @Logger.io
    async def charge(
        self,
        *,
        payment: Payment,
        payment_method_id: str,
        actor_email: str,
        recipient_name: str,
        tickets: Optional[List[TicketSummary]] = None,
    ) -> PaymentOutcome:
        try:
            result = await self._call_gateway(payment=payment, payment_method_id=payment_method_id)
        except GatewayDeclinedError as e:
            failed = payment.apply_gateway_status(
                PaymentStatus.PAYMENT_FAILED, intent_id=e.intent_id
            )
            await write_payment_log(
                self.payment_log_repo,
                payment=failed,
                status=e.code,
                description=e.message,
                email=actor_email,
            )
            await self.persist(failed)
            return PaymentOutcome(
                payment_id=failed.id,
                status=failed.status,
                message=e.message,
                expires_at=failed.expires_at,
                error_code=e.code,
            )
        except GatewayError as e:
            # Outage or unknown gateway error: nothing changed remotely as far as we know
            await write_payment_log(
                self.payment_log_repo,
                payment=payment,
                status=e.code,
                description=e.message,
                email=actor_email,
            )
            return PaymentOutcome(
                payment_id=payment.id,
                status=payment.status,
                message=(
                    'payment gateway unavailable, please retry before '
                    f'{payment.expires_at.isoformat()}'
                ),
                expires_at=payment.expires_at,
                error_code=e.code,
            )

        status = PaymentStatus.from_gateway(result.status) or PaymentStatus.PROCESSING
        if status == PaymentStatus.CANCELLED:
            await write_payment_log(
                self.payment_log_repo,
                payment=payment,
                status=result.status,
                description=PaymentCancelledError().message,
                email=actor_email,
                intent_id=result.intent_id,
            )
            await self.payment_repo.restore_tickets_and_delete(payment_id=payment.id)
            raise PaymentCancelledError()

        updated = payment.apply_gateway_status(
            status, intent_id=result.intent_id, amount_cents=result.amount_cents
        )
        message = status_message(status)
        await write_payment_log(
            self.payment_log_repo,
            payment=updated,
            status=result.status,
            description=message,
            email=actor_email,
        )
        await self.persist(updated)

        if status == PaymentStatus.SUCCEEDED:
            await self.send_confirmation(
                payment=updated,
                recipient_name=recipient_name,
                recipient_email=actor_email,
                tickets=tickets,
            )
            return PaymentOutcome(
                payment_id=updated.id,
                status=updated.status,
                message=message,
                expires_at=updated.expires_at,
            )

        return PaymentOutcome(
            payment_id=updated.id,
            status=updated.status,
            message=message,
            expires_at=updated.expires_at,
            client_secret=result.client_secret,
            next_action=result.next_action,
        )
