import attrs


@attrs.define(frozen=True)
class WebhookOutcome:
    event_type: str
    handled: bool
    detail: str = ''
