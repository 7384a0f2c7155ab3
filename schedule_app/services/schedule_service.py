from datetime import date, datetime, time
from typing import Literal

from pydantic import BaseModel

from schedule_app.core.config import settings
from schedule_app.core.exceptions import UnavailableDateError
from schedule_app.models.appointment import Appointment
from schedule_app.models.slot import Slot
from schedule_app.services.appointment_service import AppointmentRepository
from schedule_app.services.search_service import search
from schedule_app.services.slot_service import compute_day_slots, has_working_window

ScheduleMode = Literal["slots", "search", "unavailable", "no_working_hours"]


class DaySchedule(BaseModel):
    day: date
    mode: ScheduleMode
    search_term: str | None = None
    appointments: list[Appointment] = []
    slots: list[Slot] = []


def ensure_bookable(repository: AppointmentRepository, day: date) -> None:
    if repository.is_unavailable(day):
        raise UnavailableDateError(day)


def build_day_schedule(
    day: date,
    repository: AppointmentRepository,
    now: datetime,
    search_term: str | None = None,
    work_start: time | None = None,
    work_end: time | None = None,
    slot_interval_minutes: int | None = None,
) -> DaySchedule:
    """The selected day's list and slot grid, or search results while a search is active."""
    if search_term:
        return DaySchedule(
            day=day,
            mode="search",
            search_term=search_term,
            appointments=search(repository.appointments, search_term),
        )

    if work_start is None:
        work_start = settings.working_hours_start
    if work_end is None:
        work_end = settings.working_hours_end
    if slot_interval_minutes is None:
        slot_interval_minutes = settings.slot_interval_minutes
    day_appointments = sorted(repository.on_date(day), key=lambda a: a.time)

    if repository.is_unavailable(day):
        return DaySchedule(day=day, mode="unavailable", appointments=day_appointments)
    if not has_working_window(work_start, work_end):
        return DaySchedule(day=day, mode="no_working_hours", appointments=day_appointments)

    slots = compute_day_slots(
        day,
        repository.appointments,
        repository.unavailable_dates,
        work_start,
        work_end,
        slot_interval_minutes,
        now,
    )
    return DaySchedule(day=day, mode="slots", appointments=day_appointments, slots=slots)
