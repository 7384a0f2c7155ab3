from collections.abc import Iterable

from schedule_app.models.appointment import Appointment


def matches(appointment: Appointment, term: str) -> bool:
    """Case-insensitive substring match on the display name and notes.

    The display name carries both the title and the counseling client
    name, so a single field covers both. An empty term matches nothing.
    """
    if not term:
        return False
    needle = term.casefold()
    return needle in appointment.display_name.casefold() or needle in (appointment.notes or "").casefold()


def search(appointments: Iterable[Appointment], term: str) -> list[Appointment]:
    return [a for a in appointments if matches(a, term)]
