import datetime as dt
from typing import Literal

from pydantic import BaseModel

from schedule_app.models.appointment import Appointment

SlotStatus = Literal["past", "available", "booked"]


class SlotActivation(BaseModel):
    """What clicking a slot opens: a pre-filled create form or the edit form."""

    action: Literal["create", "edit"]
    date: dt.date
    time: dt.time
    appointment_id: str | None = None
    duration_minutes: int | None = None


class Slot(BaseModel):
    day: dt.date
    start_time: dt.time
    status: SlotStatus
    appointment: Appointment | None = None
    is_continuation: bool = False

    def activation(self) -> SlotActivation | None:
        if self.status == "available":
            return SlotActivation(action="create", date=self.day, time=self.start_time)
        if self.status == "booked" and self.appointment is not None:
            return SlotActivation(
                action="edit",
                date=self.appointment.date,
                time=self.appointment.time,
                appointment_id=self.appointment.id,
                duration_minutes=self.appointment.duration_minutes,
            )
        return None
