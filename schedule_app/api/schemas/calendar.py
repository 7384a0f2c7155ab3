from datetime import date

from pydantic import BaseModel

from schedule_app.services.calendar_service import DaySummary, ViewMode


class CalendarResponse(BaseModel):
    view: ViewMode
    selected_date: date
    anchor: date
    title: str
    search_term: str
    day_labels: list[str]
    days: list[DaySummary | None]  # None pads the first week of a month
