"""
Database Models

Import all models here to ensure they are registered with SQLAlchemy
"""

from src.service.ticketing.driven_adapter.model.event_detail_model import EventDetailModel
from src.service.ticketing.driven_adapter.model.event_model import EventModel
from src.service.ticketing.driven_adapter.model.payment_model import PaymentLogModel, PaymentModel
from src.service.ticketing.driven_adapter.model.reservation_model import ReservationModel
from src.service.ticketing.driven_adapter.model.user_model import UserModel

__all__ = [
    'EventDetailModel',
    'EventModel',
    'PaymentLogModel',
    'PaymentModel',
    'ReservationModel',
    'UserModel',
]
