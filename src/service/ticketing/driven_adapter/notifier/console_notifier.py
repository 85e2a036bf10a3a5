"""Console notifier for local development, logs emails instead of sending them"""

from datetime import datetime, timezone
from typing import List

from src.platform.logging.loguru_io import Logger
from src.service.ticketing.driven_adapter.notifier.email_notifier import (
    EmailMessage,
    EmailNotifier,
)


class ConsoleNotifier(EmailNotifier):
    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self.sent_emails: List[dict] = []  # Store sent emails for inspection

    @Logger.io
    async def deliver(self, message: EmailMessage) -> None:
        sent_at = datetime.now(timezone.utc)
        self.sent_emails.append(
            {
                'from': message.sender,
                'to': message.recipient,
                'subject': message.subject,
                'body': message.body,
                'sent_at': sent_at,
            }
        )
        Logger.base.info(
            '\n'.join(
                [
                    '📧 [EMAIL] console delivery',
                    f'From: {message.sender}',
                    f'To: {message.recipient}',
                    f'Subject: {message.subject}',
                    f'Time: {sent_at.strftime("%Y-%m-%d %H:%M:%S")}',
                    '-' * 50,
                    message.body,
                ]
            )
        )
