"""
Refund / cancel fan-out for deleted events and event details

Flow:
1. Read the unsettled payment lines of the target and dedup them per intent
2. Fan out one bounded task per payment: refund a succeeded payment, cancel
   anything else; free or intent-less payments need no gateway call
3. Join, then fan out one notification per owner of a processed payment
4. Return a single outcome carrying both failure lists

A failing task only adds to its collector; siblings keep running.
"""

from typing import Dict, List, Self
from uuid import UUID

import attrs
from dependency_injector.wiring import Provide, inject
from fastapi import Depends
from opentelemetry import trace

from src.platform.concurrency.fan_out import ResultCollector, call_with_deadline, fan_out
from src.platform.config.core_setting import settings
from src.platform.config.di import Container
from src.platform.logging.loguru_io import Logger
from src.platform.metrics.payment_metrics import metrics
from src.service.ticketing.app.command.payment_charger import persist_payment, write_payment_log
from src.service.ticketing.app.dto.batch_outcome import (
    NotificationFailure,
    RefundCancelFailure,
    RefundCancelOutcome,
)
from src.service.ticketing.app.interface.i_notifier import INotifier, NotificationDeliveryError
from src.service.ticketing.app.interface.i_payment_gateway import GatewayError, IPaymentGateway
from src.service.ticketing.app.interface.i_payment_log_repo import IPaymentLogRepo
from src.service.ticketing.app.interface.i_payment_repo import IPaymentRepo
from src.service.ticketing.app.interface.i_refund_query_repo import IRefundQueryRepo
from src.service.ticketing.app.interface.i_user_query_repo import IUserQueryRepo
from src.service.ticketing.domain.entity.payment_entity import Payment
from src.service.ticketing.domain.enum.payment_status import PaymentStatus
from src.service.ticketing.domain.pricing import cents_to_price_string, refundable_amount_cents
from src.service.ticketing.domain.value_object.refundable_line import RefundableLine


ACTION_REFUND = 'stripe refund request'
ACTION_CANCEL = 'stripe cancel request'
REASON_EVENT_DELETED = 'event deleted'
REASON_EVENT_DETAIL_DELETED = 'event detail deleted'


@attrs.define(frozen=True)
class _BatchContext:
    actor_email: str
    reason: str  # audit description for cancellations and free payments
    event_title: str
    ticket_description: str


class RefundOrCancelPaymentsUseCase:
    def __init__(
        self,
        *,
        refund_query_repo: IRefundQueryRepo,
        payment_repo: IPaymentRepo,
        payment_log_repo: IPaymentLogRepo,
        user_query_repo: IUserQueryRepo,
        payment_gateway: IPaymentGateway,
        notifier: INotifier,
    ) -> None:
        self.refund_query_repo = refund_query_repo
        self.payment_repo = payment_repo
        self.payment_log_repo = payment_log_repo
        self.user_query_repo = user_query_repo
        self.payment_gateway = payment_gateway
        self.notifier = notifier
        self.tracer = trace.get_tracer(__name__)

    @classmethod
    @inject
    def depends(
        cls,
        refund_query_repo: IRefundQueryRepo = Depends(Provide[Container.refund_query_repo]),
        payment_repo: IPaymentRepo = Depends(Provide[Container.payment_repo]),
        payment_log_repo: IPaymentLogRepo = Depends(Provide[Container.payment_log_repo]),
        user_query_repo: IUserQueryRepo = Depends(Provide[Container.user_query_repo]),
        payment_gateway: IPaymentGateway = Depends(Provide[Container.payment_gateway]),
        notifier: INotifier = Depends(Provide[Container.notifier]),
    ) -> Self:
        return cls(
            refund_query_repo=refund_query_repo,
            payment_repo=payment_repo,
            payment_log_repo=payment_log_repo,
            user_query_repo=user_query_repo,
            payment_gateway=payment_gateway,
            notifier=notifier,
        )

    @Logger.io
    async def for_event_detail(
        self, *, event_detail_id: int, actor_user_id: int, actor_email: str
    ) -> RefundCancelOutcome:
        with self.tracer.start_as_current_span(
            'use_case.refund_or_cancel.event_detail',
            attributes={'event_detail.id': event_detail_id, 'actor.id': actor_user_id},
        ):
            lines = await self.refund_query_repo.list_refundable_for_event_detail(
                event_detail_id=event_detail_id
            )
            return await self._process(
                lines, actor_email=actor_email, reason=REASON_EVENT_DETAIL_DELETED
            )

    @Logger.io
    async def for_event(
        self, *, event_id: int, actor_user_id: int, actor_email: str
    ) -> RefundCancelOutcome:
        with self.tracer.start_as_current_span(
            'use_case.refund_or_cancel.event',
            attributes={'event.id': event_id, 'actor.id': actor_user_id},
        ):
            lines = await self.refund_query_repo.list_refundable_for_event(event_id=event_id)
            return await self._process(lines, actor_email=actor_email, reason=REASON_EVENT_DELETED)

    @staticmethod
    def _dedup(lines: List[RefundableLine]) -> List[RefundableLine]:
        unique: Dict[str, RefundableLine] = {}
        for line in lines:
            unique.setdefault(line.dedup_key, line)
        return list(unique.values())

    async def _process(
        self, lines: List[RefundableLine], *, actor_email: str, reason: str
    ) -> RefundCancelOutcome:
        if not lines:
            return RefundCancelOutcome()

        unique_lines = self._dedup(lines)
        payments = await self.payment_repo.get_by_ids(
            payment_ids=list(dict.fromkeys(line.payment_id for line in unique_lines))
        )
        payments_by_id = {payment.id: payment for payment in payments}
        # Notification content comes from the first line (one title per batch)
        context = _BatchContext(
            actor_email=actor_email,
            reason=reason,
            event_title=lines[0].event_title,
            ticket_description=lines[0].ticket_description,
        )

        processed: ResultCollector[UUID] = ResultCollector()
        failures: ResultCollector[RefundCancelFailure] = ResultCollector()

        async def worker(line: RefundableLine) -> None:
            payment = payments_by_id.get(line.payment_id)
            if payment is None:
                Logger.base.warning(f'💸 [REFUND] payment {line.payment_id} is gone, skipped')
                return
            await self._refund_or_cancel(
                payment, line, context=context, processed=processed, failures=failures
            )

        await fan_out(unique_lines, worker, limit=settings.FAN_OUT_CONCURRENCY)
        metrics.record_fan_out_failures(kind='refund_cancel', count=len(failures))

        processed_ids = list(dict.fromkeys(processed.items))
        notification_failures = await self._notify_owners(processed_ids, context=context)

        outcome = RefundCancelOutcome(
            processed_payment_ids=processed_ids,
            refund_cancel_failures=failures.items,
            notification_failures=notification_failures,
        )
        Logger.base.info(
            f'💸 [REFUND] {reason} | processed: {len(processed_ids)} '
            f'| refund/cancel failures: {len(outcome.refund_cancel_failures)} '
            f'| notification failures: {len(notification_failures)}'
        )
        return outcome

    async def _refund_or_cancel(
        self,
        payment: Payment,
        line: RefundableLine,
        *,
        context: _BatchContext,
        processed: ResultCollector[UUID],
        failures: ResultCollector[RefundCancelFailure],
    ) -> None:
        if payment.is_free or not payment.intent_id:
            # Nothing to call at the gateway; settle locally
            target = (
                PaymentStatus.REFUNDED
                if payment.status == PaymentStatus.SUCCEEDED
                else PaymentStatus.CANCELLED
            )
            await write_payment_log(
                self.payment_log_repo,
                payment=payment,
                status=target.value,
                description=context.reason,
                email=context.actor_email,
            )
            await persist_payment(self.payment_repo, payment.transition_to(target))
            await processed.add(payment.id)
            return

        action = ACTION_REFUND if payment.status == PaymentStatus.SUCCEEDED else ACTION_CANCEL
        try:
            if action == ACTION_REFUND:
                updated = await self._refund(payment, line, context=context)
            else:
                updated = await self._cancel(payment, context=context)
        except (GatewayError, TimeoutError) as e:
            code = e.code if isinstance(e, GatewayError) else 'transport_error'
            message = e.message if isinstance(e, GatewayError) else 'payment gateway timed out'
            await write_payment_log(
                self.payment_log_repo,
                payment=payment,
                status=code,
                description=message,
                email=context.actor_email,
            )
            if action == ACTION_REFUND:
                await self._alert_team(payment, reason=message)
            await failures.add(
                RefundCancelFailure(
                    payment_id=payment.id, action=action, code=code, message=message
                )
            )
            return
        except Exception as e:
            Logger.base.exception(f'💸 [REFUND] unexpected error | payment: {payment.id}')
            await failures.add(
                RefundCancelFailure(
                    payment_id=payment.id, action=action, code='internal_error', message=str(e)
                )
            )
            return

        await persist_payment(self.payment_repo, updated)
        if updated.status == PaymentStatus.REFUND_FAILED:
            await failures.add(
                RefundCancelFailure(
                    payment_id=payment.id,
                    action=action,
                    code='refund_failed',
                    message='refund failed at the payment gateway',
                )
            )
            return
        await processed.add(payment.id)

    async def _refund(
        self, payment: Payment, line: RefundableLine, *, context: _BatchContext
    ) -> Payment:
        assert payment.intent_id is not None
        amount_cents = refundable_amount_cents(
            charged_amount=payment.amount, ticket_price=line.ticket_price
        )
        result = await call_with_deadline(
            self.payment_gateway.refund,
            deadline=settings.EXTERNAL_CALL_TIMEOUT_SECONDS,
            intent_id=payment.intent_id,
            amount_cents=amount_cents,
        )
        match result.status:
            case 'succeeded':
                target, description = PaymentStatus.REFUNDED, 'refund succeeded'
            case 'failed':
                target = PaymentStatus.REFUND_FAILED
                description = result.failure_reason or 'Unknown reason'
                await self._alert_team(payment, reason=description)
            case _:
                target, description = PaymentStatus.REFUND_PENDING, 'refund pending'

        await write_payment_log(
            self.payment_log_repo,
            payment=payment,
            status=result.status,
            description=description,
            email=context.actor_email,
            amount=cents_to_price_string(amount_cents),
        )
        if target == PaymentStatus.REFUND_FAILED:
            return payment.transition_to(target)
        return payment.transition_to(target, amount_cents=amount_cents)

    async def _cancel(self, payment: Payment, *, context: _BatchContext) -> Payment:
        assert payment.intent_id is not None
        await call_with_deadline(
            self.payment_gateway.cancel_intent,
            deadline=settings.EXTERNAL_CALL_TIMEOUT_SECONDS,
            intent_id=payment.intent_id,
            reason='abandoned',
        )
        await write_payment_log(
            self.payment_log_repo,
            payment=payment,
            status=PaymentStatus.CANCELLED.value,
            description=context.reason,
            email=context.actor_email,
        )
        return payment.transition_to(PaymentStatus.CANCELLED)

    async def _alert_team(self, payment: Payment, *, reason: str) -> None:
        try:
            await call_with_deadline(
                self.notifier.send_refund_error_alert,
                deadline=settings.EXTERNAL_CALL_TIMEOUT_SECONDS,
                payment=payment,
                reason=reason,
            )
        except (NotificationDeliveryError, TimeoutError) as e:
            Logger.base.error(f'🚨 [ALERT] refund alert not sent | payment: {payment.id} | {e!r}')

    async def _notify_owners(
        self, payment_ids: List[UUID], *, context: _BatchContext
    ) -> List[NotificationFailure]:
        if not payment_ids:
            return []

        payments = await self.payment_repo.get_by_ids(payment_ids=payment_ids)
        owner_ids = list(dict.fromkeys(payment.user_id for payment in payments))
        users_by_id = {
            user.id: user for user in await self.user_query_repo.get_by_ids(user_ids=owner_ids)
        }
        failures: ResultCollector[NotificationFailure] = ResultCollector()

        async def worker(user_id: int) -> None:
            user = users_by_id.get(user_id)
            if user is None:
                await failures.add(
                    NotificationFailure(
                        recipient_email='', message='user not found', user_id=user_id
                    )
                )
                return
            try:
                await call_with_deadline(
                    self.notifier.send_refund_or_cancelled,
                    deadline=settings.EXTERNAL_CALL_TIMEOUT_SECONDS,
                    recipient_name=user.full_name,
                    recipient_email=user.email,
                    event_title=context.event_title,
                    ticket_description=context.ticket_description,
                )
            except (NotificationDeliveryError, TimeoutError) as e:
                message = e.message if isinstance(e, NotificationDeliveryError) else 'timed out'
                await failures.add(
                    NotificationFailure(
                        recipient_email=user.email, message=message, user_id=user_id
                    )
                )

        await fan_out(owner_ids, worker, limit=settings.FAN_OUT_CONCURRENCY)
        metrics.record_fan_out_failures(kind='notification', count=len(failures))
        return failures.items
