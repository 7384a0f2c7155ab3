from collections.abc import Collection, Iterable
from datetime import date, datetime, time, timedelta

from schedule_app.core.dates import truncate_to_minute
from schedule_app.models.appointment import Appointment
from schedule_app.models.slot import Slot


def has_working_window(work_start: time, work_end: time) -> bool:
    return work_start < work_end


def appointment_window(appointment: Appointment) -> tuple[datetime, datetime]:
    return appointment.start, appointment.end


def _slot_times_for_date(d: date, work_start: time, work_end: time, interval: timedelta) -> list[datetime]:
    """Slot start times from work_start (inclusive) up to any start before work_end."""
    slots: list[datetime] = []
    current = datetime.combine(d, work_start)
    end = datetime.combine(d, work_end)
    while current < end:
        slots.append(current)
        current += interval
    return slots


def _occupying(appointments: Iterable[Appointment], t: datetime) -> Appointment | None:
    # First match wins; overlapping appointments are not reported.
    for appointment in appointments:
        start, end = appointment_window(appointment)
        if start <= t < end:
            return appointment
    return None


def compute_day_slots(
    day: date,
    appointments: Iterable[Appointment],
    unavailable_dates: Collection[date],
    work_start: time,
    work_end: time,
    slot_interval_minutes: int,
    now: datetime,
) -> list[Slot]:
    """Partition the working window of ``day`` into classified slots.

    A slot is past only on today's date and only if its start is before
    ``now`` truncated to the minute, so the slot starting in the current
    minute stays bookable. Booking state is computed from every
    appointment on ``day`` regardless of any search filter. Returns an
    empty list for unavailable days and for an empty or inverted window;
    callers tell those apart with :func:`has_working_window`.
    """
    if slot_interval_minutes <= 0:
        raise ValueError("slot_interval_minutes must be positive")
    if day in unavailable_dates or not has_working_window(work_start, work_end):
        return []

    day_appointments = [a for a in appointments if a.date == day]
    cutoff = truncate_to_minute(now)
    is_today = now.date() == day

    slots: list[Slot] = []
    for t in _slot_times_for_date(day, work_start, work_end, timedelta(minutes=slot_interval_minutes)):
        if is_today and t < cutoff:
            slots.append(Slot(day=day, start_time=t.time(), status="past"))
            continue
        appointment = _occupying(day_appointments, t)
        if appointment is None:
            slots.append(Slot(day=day, start_time=t.time(), status="available"))
        else:
            slots.append(
                Slot(
                    day=day,
                    start_time=t.time(),
                    status="booked",
                    appointment=appointment,
                    is_continuation=t != appointment.start,
                )
            )
    return slots
