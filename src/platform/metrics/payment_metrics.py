from prometheus_client import Counter, Histogram


class PaymentMetrics:
    """
    Reservation & payment orchestration metrics

    Tracks reservation outcomes, payment gateway calls, webhook traffic and
    fan-out failures (refund/cancel and notification batches).
    """

    def __init__(self) -> None:
        # ========== Reservation Metrics ==========
        self.reservation_requests = Counter(
            'ticket_reservation_requests_total',
            'Total reservation requests',
            ['result'],  # result: pending/succeeded/payment_failed/rejected/conflict
        )

        self.tickets_reserved = Counter(
            'tickets_reserved_total',
            'Ticket units reserved',
        )

        # ========== Gateway Metrics ==========
        self.gateway_calls = Counter(
            'payment_gateway_calls_total',
            'Payment gateway calls',
            ['operation', 'result'],  # operation: create_intent/refund/cancel/retrieve
        )

        self.gateway_call_duration = Histogram(
            'payment_gateway_call_duration_seconds',
            'Payment gateway call duration',
            ['operation'],
            buckets=[0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0],
        )

        # ========== Webhook Metrics ==========
        self.webhook_events = Counter(
            'payment_webhook_events_total',
            'Webhook events received',
            ['event_type', 'result'],  # result: handled/ignored/rejected
        )

        # ========== Batch Metrics ==========
        self.fan_out_failures = Counter(
            'payment_fan_out_failures_total',
            'Per-item failures inside refund/cancel and notification fan-outs',
            ['kind'],  # kind: refund_cancel/notification
        )

        self.expired_payments_swept = Counter(
            'expired_payments_swept_total',
            'Expired unpaid payments restored and deleted',
        )

    def record_reservation(self, *, result: str, tickets: int = 0) -> None:
        self.reservation_requests.labels(result=result).inc()
        if tickets:
            self.tickets_reserved.inc(tickets)

    def record_gateway_call(self, *, operation: str, result: str, duration: float) -> None:
        self.gateway_calls.labels(operation=operation, result=result).inc()
        self.gateway_call_duration.labels(operation=operation).observe(duration)

    def record_webhook(self, *, event_type: str, result: str) -> None:
        self.webhook_events.labels(event_type=event_type, result=result).inc()

    def record_fan_out_failures(self, *, kind: str, count: int) -> None:
        if count:
            self.fan_out_failures.labels(kind=kind).inc(count)


# Global metrics instance
metrics = PaymentMetrics()
