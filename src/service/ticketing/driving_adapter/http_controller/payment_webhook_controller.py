from fastapi import APIRouter, Depends, Header, Request, status
from opentelemetry import trace

from src.platform.logging.loguru_io import Logger
from src.service.ticketing.app.command.handle_payment_webhook_use_case import (
    HandlePaymentWebhookUseCase,
)
from src.service.ticketing.driving_adapter.http_controller.schema.webhook_schema import (
    WebhookResponse,
)


router = APIRouter()
tracer = trace.get_tracer(__name__)


@router.post('/{kind}', status_code=status.HTTP_200_OK)
@Logger.io
async def receive_webhook(
    kind: str,
    request: Request,
    stripe_signature: str = Header('', alias='Stripe-Signature'),
    use_case: HandlePaymentWebhookUseCase = Depends(HandlePaymentWebhookUseCase.depends),
) -> WebhookResponse:
    """
    Gateway webhook endpoint; `kind` picks the signing secret (payment / refund)

    The raw body is verified as received, so it is read before any parsing.
    """
    with tracer.start_as_current_span('controller.receive_webhook') as span:
        span.set_attribute('webhook.kind', kind)
        payload = await request.body()
        outcome = await use_case.execute(payload=payload, signature=stripe_signature, kind=kind)
        return WebhookResponse(
            event_type=outcome.event_type, handled=outcome.handled, detail=outcome.detail
        )
