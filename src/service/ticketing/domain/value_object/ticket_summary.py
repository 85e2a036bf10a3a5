import attrs


@attrs.define(frozen=True)
class TicketSummary:
    """Reserved ticket as shown in buyer emails"""

    event_title: str
    ticket_description: str
    show_date: str
    price: str
    email: str = ''

    def as_line(self) -> str:
        return f'{self.event_title} - {self.ticket_description} - {self.show_date}'
