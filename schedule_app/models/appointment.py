import datetime as dt

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_serializer, model_validator

from schedule_app.core.dates import format_time, sort_key
from schedule_app.models.category import DEFAULT_CATEGORY


class AppointmentCreate(BaseModel):
    """Appointment fields supplied by the user; also the persisted shape minus ``id``.

    Older stored records used ``duration``, ``scheduleType`` and a
    ``title``/``clientName`` pair; those keys are still read.
    """

    model_config = ConfigDict(populate_by_name=True)

    date: dt.date
    time: dt.time
    duration_minutes: int = Field(gt=0, validation_alias=AliasChoices("duration_minutes", "duration"))
    category: str = Field(
        default=DEFAULT_CATEGORY, min_length=1, validation_alias=AliasChoices("category", "scheduleType")
    )
    display_name: str = ""
    notes: str | None = None

    @model_validator(mode="before")
    @classmethod
    def _legacy_name_fields(cls, data):
        if isinstance(data, dict) and "display_name" not in data:
            name = data.get("title") or data.get("clientName")
            if name:
                data = {**data, "display_name": name}
        return data

    @field_serializer("time")
    def _serialize_time(self, value: dt.time) -> str:
        return format_time(value)

    @property
    def start(self) -> dt.datetime:
        return dt.datetime.combine(self.date, self.time)

    @property
    def end(self) -> dt.datetime:
        return self.start + dt.timedelta(minutes=self.duration_minutes)

    @property
    def sort_key(self) -> str:
        return sort_key(self.date, self.time)


class Appointment(AppointmentCreate):
    id: str
