# clup/services/tickets.py
# Ticket codes shown to clients: "Q<id>" for queue tickets, "R<id>" for reservations.
from clup.core.errors import ValidationError
from clup.models.ticket import TicketType

PREFIXES = {
    TicketType.queue: "Q",
    TicketType.reservation: "R",
}


def ticket_code(kind: TicketType, ticket_id: int) -> str:
    return f"{PREFIXES[kind]}{ticket_id}"


def parse_ticket_code(code: str | None) -> tuple[TicketType, int]:
    """Splits "Q12" into (TicketType.queue, 12); raises ValidationError on anything else."""
    if not code:
        raise ValidationError("Missing ticket code")
    prefix, number = code[:1].upper(), code[1:]
    for kind, kind_prefix in PREFIXES.items():
        if prefix == kind_prefix:
            break
    else:
        raise ValidationError(f"Unknown ticket kind in '{code}'")
    if not (number.isascii() and number.isdigit()):
        raise ValidationError(f"Malformed ticket code '{code}'")
    return kind, int(number)


def parse_kind_code(code: str | None, kind: TicketType) -> int:
    """Parses a code that must belong to the given kind."""
    parsed_kind, ticket_id = parse_ticket_code(code)
    if parsed_kind != kind:
        raise ValidationError(f"'{code}' is not a {kind.value} ticket")
    return ticket_id
