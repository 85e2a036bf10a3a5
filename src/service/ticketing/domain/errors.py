"""Reservation and payment errors raised to callers"""

from src.platform.exception.exceptions import ConflictError, DomainError, NotFoundError


class EmptyReservationError(DomainError):
    def __init__(self, message: str = 'at least one ticket must be requested') -> None:
        super().__init__(message)


class MissingPaymentMethodError(DomainError):
    def __init__(self, message: str = 'payment method is required') -> None:
        super().__init__(message)


class InvalidShowDateError(DomainError):
    pass


class ShowDatePassedError(DomainError):
    def __init__(self, event_detail_id: int) -> None:
        self.event_detail_id = event_detail_id
        super().__init__(f'show date has already passed | event detail ID: {event_detail_id}')


class TicketNotFoundError(NotFoundError):
    def __init__(self, event_detail_id: int) -> None:
        self.event_detail_id = event_detail_id
        super().__init__(f'ticket not found | event detail ID: {event_detail_id}')


class InsufficientTicketsError(ConflictError):
    def __init__(self, event_detail_id: int) -> None:
        self.event_detail_id = event_detail_id
        super().__init__(f'insufficient tickets | event detail ID: {event_detail_id}')


class PaymentNotFoundError(NotFoundError):
    def __init__(self, message: str = 'payment not found') -> None:
        super().__init__(message)


class PaymentCancelledError(DomainError):
    def __init__(self, message: str = 'payment has been canceled, please rebook') -> None:
        super().__init__(message)


class PaymentExpiredError(DomainError):
    pass


class InvalidPaymentTransitionError(DomainError):
    def __init__(self, current: str, target: str) -> None:
        self.current = current
        self.target = target
        super().__init__(f'payment cannot move from {current!r} to {target!r}')


class SignatureInvalidError(DomainError):
    def __init__(self, message: str = 'invalid webhook signature') -> None:
        super().__init__(message)
