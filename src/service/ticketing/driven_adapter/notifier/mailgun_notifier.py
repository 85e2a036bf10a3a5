"""
Mailgun Notifier

Sends through the Mailgun messages API:
POST {base_url}/{domain}/messages, basic auth ('api', key), form encoded.
"""

from typing import Optional

import httpx

from src.platform.logging.loguru_io import Logger
from src.service.ticketing.app.interface.i_notifier import NotificationDeliveryError
from src.service.ticketing.driven_adapter.notifier.email_notifier import (
    EmailMessage,
    EmailNotifier,
)


class MailgunNotifier(EmailNotifier):
    def __init__(
        self,
        *,
        api_base_url: str,
        api_key: str,
        sending_domain: str,
        timeout_seconds: float = 30.0,
        client: Optional[httpx.AsyncClient] = None,
        **kwargs,
    ) -> None:
        super().__init__(**kwargs)
        self.messages_url = f'{api_base_url.rstrip("/")}/{sending_domain}/messages'
        self.client = client or httpx.AsyncClient(
            auth=('api', api_key), timeout=timeout_seconds
        )

    @Logger.io
    async def deliver(self, message: EmailMessage) -> None:
        try:
            response = await self.client.post(
                self.messages_url,
                data={
                    'from': message.sender,
                    'to': message.recipient,
                    'subject': message.subject,
                    'text': message.body,
                },
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            Logger.base.error(
                f'📧 [MAILGUN] rejected | sender: {message.sender} | recipient: {message.recipient} '
                f'| status: {e.response.status_code} | body: {e.response.text}'
            )
            raise NotificationDeliveryError(
                recipient=message.recipient,
                message=f'mailgun responded {e.response.status_code}',
            ) from e
        except httpx.HTTPError as e:
            Logger.base.error(
                f'📧 [MAILGUN] transport error | sender: {message.sender} '
                f'| recipient: {message.recipient} | error: {e!r}'
            )
            raise NotificationDeliveryError(recipient=message.recipient, message=str(e)) from e

        Logger.base.info(
            f'📧 [MAILGUN] queued | recipient: {message.recipient} | status: {response.status_code}'
        )

    async def aclose(self) -> None:
        await self.client.aclose()
