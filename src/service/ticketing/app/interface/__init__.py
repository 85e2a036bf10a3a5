"""Application layer interfaces (Ports)"""

from src.service.ticketing.app.interface.i_event_detail_query_repo import IEventDetailQueryRepo
from src.service.ticketing.app.interface.i_notifier import INotifier, NotificationDeliveryError
from src.service.ticketing.app.interface.i_payment_gateway import (
    GatewayDeclinedError,
    GatewayError,
    GatewayTransportError,
    GatewayUnknownError,
    IPaymentGateway,
    WebhookSignatureError,
)
from src.service.ticketing.app.interface.i_payment_log_repo import IPaymentLogRepo
from src.service.ticketing.app.interface.i_payment_repo import IPaymentRepo
from src.service.ticketing.app.interface.i_refund_query_repo import IRefundQueryRepo
from src.service.ticketing.app.interface.i_reservation_repo import IReservationRepo
from src.service.ticketing.app.interface.i_user_query_repo import IUserQueryRepo

__all__ = [
    'GatewayDeclinedError',
    'GatewayError',
    'GatewayTransportError',
    'GatewayUnknownError',
    'IEventDetailQueryRepo',
    'INotifier',
    'IPaymentGateway',
    'IPaymentLogRepo',
    'IPaymentRepo',
    'IRefundQueryRepo',
    'IReservationRepo',
    'IUserQueryRepo',
    'NotificationDeliveryError',
    'WebhookSignatureError',
]
