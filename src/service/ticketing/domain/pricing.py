"""
Money and show-date conversions

Prices are stored as decimal strings with two places ("15.00") and computed
in integer cents. Show dates use the fixed `YYYY-MM-DD HH:MM` format and are
interpreted as UTC.
"""

from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from src.platform.exception.exceptions import DomainError
from src.service.ticketing.domain.errors import InvalidShowDateError


SHOW_DATE_FORMAT = '%Y-%m-%d %H:%M'
_CENT = Decimal('0.01')


def price_string_to_cents(price: str) -> int:
    try:
        amount = Decimal(price.strip())
    except (InvalidOperation, AttributeError) as e:
        raise DomainError(f'invalid price: {price!r}') from e
    if not amount.is_finite() or amount < 0:
        raise DomainError(f'invalid price: {price!r}')
    return int((amount * 100).quantize(Decimal('1'), rounding=ROUND_HALF_UP))


def cents_to_price_string(cents: int) -> str:
    return str((Decimal(cents) / 100).quantize(_CENT))


def parse_show_date(value: str) -> datetime:
    try:
        return datetime.strptime(value.strip(), SHOW_DATE_FORMAT).replace(tzinfo=timezone.utc)
    except ValueError as e:
        raise InvalidShowDateError(
            f'invalid show date {value!r}, expected format YYYY-MM-DD HH:MM'
        ) from e


def format_show_date(value: datetime) -> str:
    return value.astimezone(timezone.utc).strftime(SHOW_DATE_FORMAT)


def refundable_amount_cents(*, charged_amount: str, ticket_price: str) -> int:
    """
    Amount to refund for one ticket line

    A charge covering several tickets differs from the single ticket price;
    only that ticket's price is refunded then. This is an approximation of
    splitting a shared charge, not an exact split.
    """
    charged = price_string_to_cents(charged_amount)
    price = price_string_to_cents(ticket_price)
    return price if charged != price else charged
