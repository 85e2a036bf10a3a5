import pytest

from src.service.ticketing.app.command.notify_event_updated_use_case import (
    NotifyEventUpdatedUseCase,
)
from src.service.ticketing.domain.value_object.refundable_line import Recipient
from test.service.ticketing.unit.fakes import (
    BUYER_EMAIL,
    BUYER_ID,
    OTHER_BUYER_EMAIL,
    OTHER_BUYER_ID,
    FailingNotifier,
    FakeRefundQueryRepo,
)


@pytest.mark.unit
class TestNotifyEventUpdated:
    @pytest.mark.asyncio
    async def test_partial_failure_is_reported(self, refund_query_repo: FakeRefundQueryRepo) -> None:
        """
        Given: two confirmed buyers, one mailbox rejects mail
        When: the event is updated
        Then: the other buyer is notified and the failure is listed (multi-status)
        """
        refund_query_repo.recipients = [
            Recipient(user_id=BUYER_ID, name='Jane Doe', email=BUYER_EMAIL),
            Recipient(user_id=OTHER_BUYER_ID, name='John Roe', email=OTHER_BUYER_EMAIL),
        ]
        notifier = FailingNotifier(failing_emails={OTHER_BUYER_EMAIL})
        use_case = NotifyEventUpdatedUseCase(
            refund_query_repo=refund_query_repo, notifier=notifier
        )

        outcome = await use_case.execute(
            event_id=1, title='Jazz Night', description='Moved to the main hall', organizer='MRS'
        )

        assert outcome.notified == [BUYER_EMAIL]
        (failure,) = outcome.failures
        assert failure.recipient_email == OTHER_BUYER_EMAIL
        assert failure.user_id == OTHER_BUYER_ID
        assert outcome.http_status == 207

        (email,) = notifier.sent_emails
        assert email['subject'] == 'Your booked event was updated'
        assert 'Description: Moved to the main hall' in email['body']
        assert 'Organizer: MRS' in email['body']

    @pytest.mark.asyncio
    async def test_no_confirmed_buyers(self, refund_query_repo: FakeRefundQueryRepo) -> None:
        notifier = FailingNotifier(failing_emails=set())
        use_case = NotifyEventUpdatedUseCase(
            refund_query_repo=refund_query_repo, notifier=notifier
        )

        outcome = await use_case.execute(event_id=1, title='Jazz Night', description='')

        assert outcome.notified == []
        assert outcome.failures == []
        assert outcome.http_status == 200
        assert notifier.sent_emails == []
