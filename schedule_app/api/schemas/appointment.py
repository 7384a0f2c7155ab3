from datetime import date

from pydantic import BaseModel

from schedule_app.models.slot import SlotActivation, SlotStatus
from schedule_app.services.schedule_service import ScheduleMode


class AppointmentPublic(BaseModel):
    id: str
    date: date
    date_label: str  # MM/DD, shown beside search results
    time: str  # HH:MM
    end_time: str  # HH:MM, may pass midnight
    duration_minutes: int
    category: str
    category_label: str
    color: str
    display_name: str
    name_label: str  # "Client name" for counseling, "Title" otherwise
    notes: str | None = None


class SlotPublic(BaseModel):
    time: str  # HH:MM
    status: SlotStatus
    is_continuation: bool = False
    appointment_id: str | None = None
    label: str | None = None
    activation: SlotActivation | None = None


class DayScheduleResponse(BaseModel):
    date: str  # YYYY-MM-DD
    title: str
    mode: ScheduleMode
    search_term: str | None = None
    message: str | None = None
    appointments: list[AppointmentPublic]
    slots: list[SlotPublic]


class UnavailableDatesResponse(BaseModel):
    dates: list[date]


class UnavailableToggleResponse(BaseModel):
    date: date
    unavailable: bool
