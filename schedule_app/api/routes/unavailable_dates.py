import logging
from datetime import date

from fastapi import APIRouter, Depends

from schedule_app.api.deps import get_repository
from schedule_app.api.schemas.appointment import UnavailableDatesResponse, UnavailableToggleResponse
from schedule_app.services.appointment_service import AppointmentRepository

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/unavailable-dates", tags=["unavailable-dates"])


@router.get("", response_model=UnavailableDatesResponse)
async def list_unavailable_dates(
    repository: AppointmentRepository = Depends(get_repository),
) -> UnavailableDatesResponse:
    return UnavailableDatesResponse(dates=repository.unavailable_dates)


@router.post("/{day}/toggle", response_model=UnavailableToggleResponse)
async def toggle_unavailable_date(
    day: date,
    repository: AppointmentRepository = Depends(get_repository),
) -> UnavailableToggleResponse:
    unavailable = await repository.toggle_unavailable(day)
    logger.info("%s marked %s", day, "unavailable" if unavailable else "available")
    return UnavailableToggleResponse(date=day, unavailable=unavailable)
