from datetime import date, datetime
from typing import Literal

from fastapi import APIRouter, Depends, Query

from schedule_app.api.deps import get_now, get_repository
from schedule_app.api.schemas.calendar import CalendarResponse
from schedule_app.core.dates import DAY_LABELS
from schedule_app.services.appointment_service import AppointmentRepository
from schedule_app.services.calendar_service import CalendarViewController, ViewMode

router = APIRouter(prefix="/calendar", tags=["calendar"])

_DIRECTIONS = {"prev": -1, "next": 1}


@router.get("", response_model=CalendarResponse)
async def calendar_view(
    date_param: date | None = Query(None, alias="date"),
    view: ViewMode = Query("month"),
    direction: Literal["prev", "next"] | None = Query(None),
    q: str = Query(""),
    now: datetime = Depends(get_now),
    repository: AppointmentRepository = Depends(get_repository),
) -> CalendarResponse:
    """Month or week grid around ``date``; ``direction`` moves one period and clears the search."""
    controller = CalendarViewController(today=now.date(), selected_date=date_param, view_mode=view, search_term=q)
    if direction:
        controller.change_period(_DIRECTIONS[direction])
    return CalendarResponse(
        view=controller.view_mode,
        selected_date=controller.selected_date,
        anchor=controller.anchor,
        title=controller.title,
        search_term=controller.search_term,
        day_labels=DAY_LABELS,
        days=controller.summaries(repository),
    )
