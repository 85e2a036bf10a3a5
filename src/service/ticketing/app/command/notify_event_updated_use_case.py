from typing import Self

from dependency_injector.wiring import Provide, inject
from fastapi import Depends
from opentelemetry import trace

from src.platform.concurrency.fan_out import ResultCollector, call_with_deadline, fan_out
from src.platform.config.core_setting import settings
from src.platform.config.di import Container
from src.platform.logging.loguru_io import Logger
from src.platform.metrics.payment_metrics import metrics
from src.service.ticketing.app.dto.batch_outcome import NotificationFailure, NotificationOutcome
from src.service.ticketing.app.interface.i_notifier import INotifier, NotificationDeliveryError
from src.service.ticketing.app.interface.i_refund_query_repo import IRefundQueryRepo
from src.service.ticketing.domain.value_object.refundable_line import Recipient


class NotifyEventUpdatedUseCase:
    """Tell every buyer with a confirmed reservation that the event changed"""

    def __init__(self, *, refund_query_repo: IRefundQueryRepo, notifier: INotifier) -> None:
        self.refund_query_repo = refund_query_repo
        self.notifier = notifier
        self.tracer = trace.get_tracer(__name__)

    @classmethod
    @inject
    def depends(
        cls,
        refund_query_repo: IRefundQueryRepo = Depends(Provide[Container.refund_query_repo]),
        notifier: INotifier = Depends(Provide[Container.notifier]),
    ) -> Self:
        return cls(refund_query_repo=refund_query_repo, notifier=notifier)

    @Logger.io
    async def execute(
        self, *, event_id: int, title: str, description: str, organizer: str = ''
    ) -> NotificationOutcome:
        with self.tracer.start_as_current_span(
            'use_case.notify_event_updated', attributes={'event.id': event_id}
        ):
            recipients = await self.refund_query_repo.list_confirmed_recipients_for_event(
                event_id=event_id
            )
            if not recipients:
                return NotificationOutcome()

            notified: ResultCollector[str] = ResultCollector()
            failures: ResultCollector[NotificationFailure] = ResultCollector()

            async def worker(recipient: Recipient) -> None:
                try:
                    await call_with_deadline(
                        self.notifier.send_event_updated,
                        deadline=settings.EXTERNAL_CALL_TIMEOUT_SECONDS,
                        recipient_name=recipient.name,
                        recipient_email=recipient.email,
                        event_title=title,
                        event_description=description,
                        event_organizer=organizer,
                    )
                except (NotificationDeliveryError, TimeoutError) as e:
                    message = e.message if isinstance(e, NotificationDeliveryError) else 'timed out'
                    await failures.add(
                        NotificationFailure(
                            recipient_email=recipient.email,
                            message=message,
                            user_id=recipient.user_id,
                        )
                    )
                    return
                await notified.add(recipient.email)

            await fan_out(recipients, worker, limit=settings.FAN_OUT_CONCURRENCY)
            metrics.record_fan_out_failures(kind='notification', count=len(failures))

            Logger.base.info(
                f'📣 [EVENT_UPDATED] event {event_id} | notified: {len(notified)} '
                f'| failed: {len(failures)}'
            )
            return NotificationOutcome(notified=notified.items, failures=failures.items)
