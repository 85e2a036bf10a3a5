from typing import Awaitable, Callable, Dict, Optional, Self
from uuid import UUID

from dependency_injector.wiring import Provide, inject
from fastapi import Depends
from opentelemetry import trace

from src.platform.concurrency.fan_out import call_with_deadline
from src.platform.config.core_setting import settings
from src.platform.config.di import Container
from src.platform.exception.exceptions import DomainError
from src.platform.logging.loguru_io import Logger
from src.platform.metrics.payment_metrics import metrics
from src.service.ticketing.app.command.payment_charger import write_payment_log
from src.service.ticketing.app.command.sweep_expired_payment_use_case import (
    SweepExpiredPaymentUseCase,
)
from src.service.ticketing.app.dto.gateway_result import WebhookEvent
from src.service.ticketing.app.dto.webhook_outcome import WebhookOutcome
from src.service.ticketing.app.interface.i_notifier import INotifier, NotificationDeliveryError
from src.service.ticketing.app.interface.i_payment_gateway import (
    GatewayError,
    IPaymentGateway,
    WebhookSignatureError,
)
from src.service.ticketing.app.interface.i_payment_log_repo import IPaymentLogRepo
from src.service.ticketing.app.interface.i_payment_repo import IPaymentRepo
from src.service.ticketing.app.interface.i_reservation_repo import IReservationRepo
from src.service.ticketing.app.interface.i_user_query_repo import IUserQueryRepo
from src.service.ticketing.domain.entity.payment_entity import Payment
from src.service.ticketing.domain.entity.user_entity import UserEntity
from src.service.ticketing.domain.enum.payment_status import PaymentStatus
from src.service.ticketing.domain.enum.webhook_kind import WebhookKind
from src.service.ticketing.domain.errors import (
    InvalidPaymentTransitionError,
    SignatureInvalidError,
)


PAYMENT_INTENT_SUCCEEDED = 'payment_intent.succeeded'
PAYMENT_INTENT_PAYMENT_FAILED = 'payment_intent.payment_failed'
PAYMENT_INTENT_REQUIRES_ACTION = 'payment_intent.requires_action'
CHARGE_REFUNDED = 'charge.refunded'
REFUND_FAILED = 'refund.failed'


class HandlePaymentWebhookUseCase:
    """
    Verify a gateway webhook and apply it to the matching payment

    Routing:
    - payment_intent.succeeded      -> succeeded, buyer confirmation
    - payment_intent.payment_failed -> payment_failed, buyer notified (expired: swept)
    - payment_intent.requires_action -> requires_action (expired: swept)
    - charge.refunded               -> refunded with amount 0.00 (only from refund pending)
    - refund.failed                 -> refund_failed, team alert

    Transitions the state machine rejects, unknown payments and unknown event
    types are logged and acknowledged without change.
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
        payment_signing_secret: str,
        refund_signing_secret: str,
    ) -> None:
        self.payment_repo = payment_repo
        self.payment_log_repo = payment_log_repo
        self.reservation_repo = reservation_repo
        self.user_query_repo = user_query_repo
        self.payment_gateway = payment_gateway
        self.notifier = notifier
        self.sweeper = sweeper
        self.signing_secrets = {
            WebhookKind.PAYMENT: payment_signing_secret,
            WebhookKind.REFUND: refund_signing_secret,
        }
        self.tracer = trace.get_tracer(__name__)
        self._handlers: Dict[str, Callable[[WebhookEvent], Awaitable[WebhookOutcome]]] = {
            PAYMENT_INTENT_SUCCEEDED: self._on_payment_succeeded,
            PAYMENT_INTENT_PAYMENT_FAILED: self._on_payment_failed,
            PAYMENT_INTENT_REQUIRES_ACTION: self._on_requires_action,
            CHARGE_REFUNDED: self._on_charge_refunded,
            REFUND_FAILED: self._on_refund_failed,
        }

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
            payment_signing_secret=settings.STRIPE_SIGNING_SECRET.get_secret_value(),
            refund_signing_secret=settings.STRIPE_REFUND_SIGNING_SECRET.get_secret_value(),
        )

    @Logger.io
    async def execute(self, *, payload: bytes, signature: str, kind: str) -> WebhookOutcome:
        webhook_kind = WebhookKind.from_path(kind)
        with self.tracer.start_as_current_span(
            'use_case.handle_payment_webhook', attributes={'webhook.kind': webhook_kind.value}
        ) as span:
            try:
                event = self.payment_gateway.verify_and_parse_webhook(
                    payload=payload,
                    signature=signature,
                    secret=self.signing_secrets[webhook_kind],
                )
            except WebhookSignatureError as e:
                metrics.record_webhook(event_type='unknown', result='rejected')
                raise SignatureInvalidError() from e
            except GatewayError as e:
                metrics.record_webhook(event_type='unknown', result='rejected')
                raise DomainError(e.message) from e

            span.set_attribute('webhook.event_type', event.event_type)
            handler = self._handlers.get(event.event_type)
            if handler is None:
                outcome = WebhookOutcome(
                    event_type=event.event_type, handled=False, detail='unhandled event type'
                )
            else:
                outcome = await handler(event)

            Logger.base.info(
                f'🪝 [WEBHOOK] {event.event_type} | event: {event.event_id} '
                f'| handled: {outcome.handled} | {outcome.detail}'
            )
            metrics.record_webhook(
                event_type=event.event_type, result='handled' if outcome.handled else 'ignored'
            )
            return outcome

    # ========== Lookup helpers ==========

    async def _find_payment(self, event: WebhookEvent) -> Optional[Payment]:
        if event.payment_id:
            try:
                payment = await self.payment_repo.get_by_id(payment_id=UUID(event.payment_id))
            except ValueError:
                payment = None
            if payment is not None:
                return payment
        if event.intent_id:
            return await self.payment_repo.get_by_intent_id(intent_id=event.intent_id)
        return None

    async def _owner(self, payment: Payment) -> Optional[UserEntity]:
        return await self.user_query_repo.get_by_id(user_id=payment.user_id)

    @staticmethod
    def _ignored(event: WebhookEvent, detail: str) -> WebhookOutcome:
        return WebhookOutcome(event_type=event.event_type, handled=False, detail=detail)

    async def _apply(
        self,
        event: WebhookEvent,
        payment: Payment,
        status: PaymentStatus,
        *,
        description: str,
        actor_email: str,
        amount_cents: Optional[int] = None,
    ) -> Optional[Payment]:
        """Transition, persist and audit; None when the state machine rejects the move"""
        try:
            updated = payment.transition_to(
                status, intent_id=event.intent_id, amount_cents=amount_cents
            )
        except InvalidPaymentTransitionError as e:
            Logger.base.warning(f'🪝 [WEBHOOK] {event.event_type} ignored | {e.message}')
            return None
        await self.payment_repo.update(payment=updated)
        await write_payment_log(
            self.payment_log_repo,
            payment=updated,
            status=updated.status.value,
            description=description,
            email=actor_email,
        )
        return updated

    async def _notify(self, send: Callable[..., Awaitable[None]], **kwargs) -> None:
        try:
            await call_with_deadline(
                send, deadline=settings.EXTERNAL_CALL_TIMEOUT_SECONDS, **kwargs
            )
        except (NotificationDeliveryError, TimeoutError) as e:
            Logger.base.error(f'📧 [WEBHOOK] notification not sent | {e!r}')

    # ========== Handlers ==========

    async def _on_payment_succeeded(self, event: WebhookEvent) -> WebhookOutcome:
        payment = await self._find_payment(event)
        if payment is None:
            return self._ignored(event, 'payment not found')

        owner = await self._owner(payment)
        actor_email = UserEntity.email_or_unknown(owner)
        updated = await self._apply(
            event,
            payment,
            PaymentStatus.SUCCEEDED,
            description='Payment succeeded.',
            actor_email=actor_email,
            amount_cents=event.amount_cents,
        )
        if updated is None:
            return self._ignored(event, f'payment is {payment.status.value}')

        if owner is not None:
            tickets = await self.reservation_repo.list_tickets_by_payment_id(payment_id=payment.id)
            await self._notify(
                self.notifier.send_confirmation,
                recipient_name=owner.full_name,
                recipient_email=owner.email,
                tickets=tickets,
            )
        return WebhookOutcome(
            event_type=event.event_type, handled=True, detail=f'payment {payment.id} succeeded'
        )

    async def _on_payment_failed(self, event: WebhookEvent) -> WebhookOutcome:
        payment = await self._find_payment(event)
        if payment is None:
            return self._ignored(event, 'payment not found')

        owner = await self._owner(payment)
        actor_email = UserEntity.email_or_unknown(owner)
        swept = await self.sweeper.execute(payment=payment, actor_email=actor_email)
        if swept:
            return WebhookOutcome(event_type=event.event_type, handled=True, detail=swept)

        reason = event.failure_message or 'Payment failed.'
        updated = await self._apply(
            event,
            payment,
            PaymentStatus.PAYMENT_FAILED,
            description=reason,
            actor_email=actor_email,
        )
        if updated is None:
            return self._ignored(event, f'payment is {payment.status.value}')

        if owner is not None:
            tickets = await self.reservation_repo.list_tickets_by_payment_id(payment_id=payment.id)
            await self._notify(
                self.notifier.send_payment_failed,
                recipient_name=owner.full_name,
                recipient_email=owner.email,
                reason=reason,
                tickets=tickets,
            )
        return WebhookOutcome(event_type=event.event_type, handled=True, detail=reason)

    async def _on_requires_action(self, event: WebhookEvent) -> WebhookOutcome:
        payment = await self._find_payment(event)
        if payment is None:
            return self._ignored(event, 'payment not found')

        actor_email = UserEntity.email_or_unknown(await self._owner(payment))
        swept = await self.sweeper.execute(payment=payment, actor_email=actor_email)
        if swept:
            return WebhookOutcome(event_type=event.event_type, handled=True, detail=swept)

        description = (
            'Payment requires action. Please complete the action before '
            f'{payment.expires_at.isoformat()}'
        )
        updated = await self._apply(
            event,
            payment,
            PaymentStatus.REQUIRES_ACTION,
            description=description,
            actor_email=actor_email,
        )
        if updated is None:
            return self._ignored(event, f'payment is {payment.status.value}')
        return WebhookOutcome(event_type=event.event_type, handled=True, detail=description)

    async def _on_charge_refunded(self, event: WebhookEvent) -> WebhookOutcome:
        if not event.intent_id:
            return self._ignored(event, 'missing payment intent')
        payment = await self.payment_repo.get_by_intent_id(intent_id=event.intent_id)
        if payment is None:
            return self._ignored(event, 'payment not found')
        if payment.status != PaymentStatus.REFUND_PENDING:
            Logger.base.warning(
                f'🪝 [WEBHOOK] {event.event_type} ignored | payment {payment.id} '
                f'is {payment.status.value}, expected {PaymentStatus.REFUND_PENDING.value}'
            )
            return self._ignored(event, f'payment is {payment.status.value}')

        description = 'Refund confirmed by Stripe webhook. Amount set to 0.00.'
        updated = await self._apply(
            event,
            payment,
            PaymentStatus.REFUNDED,
            description=description,
            actor_email=UserEntity.email_or_unknown(await self._owner(payment)),
            amount_cents=0,
        )
        if updated is None:
            return self._ignored(event, f'payment is {payment.status.value}')
        return WebhookOutcome(event_type=event.event_type, handled=True, detail=description)

    async def _on_refund_failed(self, event: WebhookEvent) -> WebhookOutcome:
        if not event.intent_id:
            return self._ignored(event, 'missing payment intent')
        payment = await self.payment_repo.get_by_intent_id(intent_id=event.intent_id)
        if payment is None:
            return self._ignored(event, 'payment not found')

        reason = event.failure_message or 'Unknown reason'
        description = f'Refund failed: {reason}'
        updated = await self._apply(
            event,
            payment,
            PaymentStatus.REFUND_FAILED,
            description=description,
            actor_email=UserEntity.email_or_unknown(await self._owner(payment)),
        )
        if updated is None:
            return self._ignored(event, f'payment is {payment.status.value}')

        await self._notify(self.notifier.send_refund_error_alert, payment=updated, reason=reason)
        return WebhookOutcome(event_type=event.event_type, handled=True, detail=description)
