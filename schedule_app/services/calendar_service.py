import calendar
from datetime import date, timedelta
from typing import Literal

from pydantic import BaseModel

from schedule_app.core.dates import add_months, first_of_month, format_date, start_of_week
from schedule_app.models.appointment import Appointment
from schedule_app.models.category import INDICATOR_PRIORITY, NEUTRAL_COLOR, category_color
from schedule_app.services.appointment_service import AppointmentRepository
from schedule_app.services.search_service import matches

ViewMode = Literal["month", "week"]

# Names shown in a grid cell before truncation
PREVIEW_LIMIT: dict[ViewMode, int] = {"month": 1, "week": 2}


class DaySummary(BaseModel):
    day: date
    is_today: bool
    is_selected: bool
    is_unavailable: bool
    has_appointments: bool
    is_search_match: bool
    indicator_color: str | None = None
    previews: list[str] = []


def indicator_color(appointments: list[Appointment]) -> str | None:
    """Dot color for a day: counseling, then work, then private; neutral for anything else."""
    if not appointments:
        return None
    present = {a.category for a in appointments}
    for category in INDICATOR_PRIORITY:
        if category in present:
            return category_color(category)
    return NEUTRAL_COLOR


class CalendarViewController:
    """Selected date, month/week mode and the search term behind the calendar grid."""

    def __init__(
        self,
        today: date,
        selected_date: date | None = None,
        view_mode: ViewMode = "month",
        search_term: str = "",
    ):
        self.today = today
        self.selected_date = selected_date or today
        self.view_mode: ViewMode = view_mode
        self.search_term = search_term

    @property
    def anchor(self) -> date:
        if self.view_mode == "week":
            return start_of_week(self.selected_date)
        return first_of_month(self.selected_date)

    def set_view_mode(self, mode: ViewMode) -> None:
        self.view_mode = mode

    def select_date(self, d: date) -> None:
        self.selected_date = d

    def change_period(self, direction: int) -> date:
        if direction not in (1, -1):
            raise ValueError("direction must be 1 or -1")
        if self.view_mode == "week":
            self.selected_date = self.anchor + timedelta(days=7 * direction)
        else:
            self.selected_date = add_months(self.anchor, direction)
        self.search_term = ""
        return self.selected_date

    @property
    def title(self) -> str:
        anchor = self.anchor
        if self.view_mode == "week":
            last = anchor + timedelta(days=6)
            return f"{format_date(anchor, 'long')} - {last.month}月{last.day}日"
        return f"{anchor.year}年{anchor.month}月"

    def grid_days(self) -> list[date | None]:
        """Cells of the grid, Sunday first; ``None`` pads the month's first week."""
        anchor = self.anchor
        if self.view_mode == "week":
            return [anchor + timedelta(days=i) for i in range(7)]
        leading = (anchor.weekday() + 1) % 7
        days_in_month = calendar.monthrange(anchor.year, anchor.month)[1]
        return [None] * leading + [anchor.replace(day=n) for n in range(1, days_in_month + 1)]

    def summarize(self, d: date, repository: AppointmentRepository) -> DaySummary:
        day_appointments = repository.on_date(d)
        if self.search_term:
            day_appointments = [a for a in day_appointments if matches(a, self.search_term)]
        return DaySummary(
            day=d,
            is_today=d == self.today,
            is_selected=d == self.selected_date,
            is_unavailable=repository.is_unavailable(d),
            has_appointments=bool(day_appointments),
            is_search_match=bool(self.search_term) and bool(day_appointments),
            indicator_color=indicator_color(day_appointments),
            previews=[a.display_name for a in day_appointments[: PREVIEW_LIMIT[self.view_mode]]],
        )

    def summaries(self, repository: AppointmentRepository) -> list[DaySummary | None]:
        return [self.summarize(d, repository) if d else None for d in self.grid_days()]
