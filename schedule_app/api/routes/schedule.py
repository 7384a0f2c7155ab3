from datetime import date, datetime

from fastapi import APIRouter, Depends, Query

from schedule_app.api.deps import get_now, get_repository
from schedule_app.api.routes.appointments import to_public
from schedule_app.api.schemas.appointment import DayScheduleResponse, SlotPublic
from schedule_app.core.config import settings
from schedule_app.core.dates import format_date, format_time, weekday_label
from schedule_app.models.slot import Slot
from schedule_app.services.appointment_service import AppointmentRepository
from schedule_app.services.schedule_service import DaySchedule, build_day_schedule

router = APIRouter(prefix="/schedule", tags=["schedule"])

_MESSAGES = {
    "unavailable": "This date is unavailable for booking.",
    "no_working_hours": "No working hours are configured for this day.",
}


def _slot_public(slot: Slot, labelled: set[str]) -> SlotPublic:
    """``labelled`` holds appointment ids already named in the grid; the first visible slot of each gets the label."""
    label = None
    activation = slot.activation()
    if activation is not None and activation.action == "create":
        activation = activation.model_copy(update={"duration_minutes": settings.default_duration_minutes})
    if slot.appointment is not None and slot.appointment.id not in labelled:
        labelled.add(slot.appointment.id)
        label = f"{slot.appointment.display_name} ({slot.appointment.duration_minutes} min)"
    return SlotPublic(
        time=format_time(slot.start_time),
        status=slot.status,
        is_continuation=slot.is_continuation,
        appointment_id=slot.appointment.id if slot.appointment else None,
        label=label,
        activation=activation,
    )


def _message(schedule: DaySchedule) -> str | None:
    if schedule.mode == "search":
        if not schedule.appointments:
            return f"No appointments match \"{schedule.search_term}\"."
        return None
    return _MESSAGES.get(schedule.mode)


@router.get("", response_model=DayScheduleResponse)
async def day_schedule(
    date_param: date | None = Query(None, alias="date"),
    q: str | None = Query(None),
    now: datetime = Depends(get_now),
    repository: AppointmentRepository = Depends(get_repository),
) -> DayScheduleResponse:
    """Slot grid of a day (default today); search results instead while ``q`` is set."""
    day = date_param or now.date()
    schedule = build_day_schedule(day, repository, now, search_term=q)
    labelled: set[str] = set()
    if schedule.mode == "search":
        title = f"Search results for \"{q}\" ({len(schedule.appointments)})"
    else:
        title = f"{format_date(day, 'long')} ({weekday_label(day)})"
    return DayScheduleResponse(
        date=format_date(day),
        title=title,
        mode=schedule.mode,
        search_term=schedule.search_term,
        message=_message(schedule),
        appointments=[to_public(a) for a in schedule.appointments],
        slots=[_slot_public(s, labelled) for s in schedule.slots],
    )
