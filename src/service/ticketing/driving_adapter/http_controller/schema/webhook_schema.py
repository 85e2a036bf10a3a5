from pydantic import BaseModel


class WebhookResponse(BaseModel):
    event_type: str
    handled: bool
    detail: str = ''

    class Config:
        json_schema_extra = {
            'example': {
                'event_type': 'payment_intent.succeeded',
                'handled': True,
                'detail': 'payment 0190f6c2-8d1e-7c3a-9a4b-5f2e1d0c9b8a succeeded',
            }
        }
