from schedule_app.models.user import User, UserCreate
from schedule_app.models.refresh_token import RefreshToken
from schedule_app.models.kv_entry import KeyValueEntry
from schedule_app.models.identity import Identity, LOCAL_IDENTITY
from schedule_app.models.appointment import Appointment, AppointmentCreate
from schedule_app.models.slot import Slot, SlotActivation

__all__ = [
    "User",
    "UserCreate",
    "RefreshToken",
    "KeyValueEntry",
    "Identity",
    "LOCAL_IDENTITY",
    "Appointment",
    "AppointmentCreate",
    "Slot",
    "SlotActivation",
]
