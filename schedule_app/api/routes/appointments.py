import logging
from datetime import date
from urllib.parse import quote

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from schedule_app.api.deps import get_exporter, get_repository
from schedule_app.api.schemas.appointment import AppointmentPublic
from schedule_app.core.dates import format_date, format_time
from schedule_app.core.exceptions import RenderError, UnavailableDateError
from schedule_app.models.appointment import Appointment, AppointmentCreate
from schedule_app.models.category import category_info
from schedule_app.services.appointment_service import AppointmentRepository
from schedule_app.services.confirmation_service import ConfirmationImageExporter, confirmation_filename
from schedule_app.services.schedule_service import ensure_bookable
from schedule_app.services.search_service import search

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/appointments", tags=["appointments"])


def to_public(a: Appointment) -> AppointmentPublic:
    info = category_info(a.category)
    return AppointmentPublic(
        id=a.id,
        date=a.date,
        date_label=format_date(a.date, "month_day"),
        time=format_time(a.time),
        end_time=format_time(a.end.time()),
        duration_minutes=a.duration_minutes,
        category=a.category,
        category_label=info.label,
        color=info.color,
        display_name=a.display_name,
        name_label=info.name_label,
        notes=a.notes,
    )


def _get_or_404(repository: AppointmentRepository, appointment_id: str) -> Appointment:
    appointment = repository.get(appointment_id)
    if not appointment:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Appointment not found")
    return appointment


def _ensure_bookable_or_409(repository: AppointmentRepository, day: date) -> None:
    try:
        ensure_bookable(repository, day)
    except UnavailableDateError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e)) from e


@router.get("", response_model=list[AppointmentPublic])
async def list_appointments(
    date_param: date | None = Query(None, alias="date"),
    q: str | None = Query(None),
    repository: AppointmentRepository = Depends(get_repository),
) -> list[AppointmentPublic]:
    """Search results across all dates when ``q`` is set, else one day's (or every) appointment."""
    if q:
        appointments = search(repository.appointments, q)
    elif date_param:
        appointments = sorted(repository.on_date(date_param), key=lambda a: a.time)
    else:
        appointments = repository.appointments
    return [to_public(a) for a in appointments]


@router.post("", response_model=AppointmentPublic, status_code=status.HTTP_201_CREATED)
async def create_appointment(
    body: AppointmentCreate,
    repository: AppointmentRepository = Depends(get_repository),
) -> AppointmentPublic:
    _ensure_bookable_or_409(repository, body.date)
    appointment = await repository.add(body)
    logger.info("Appointment %s created on %s", appointment.id, appointment.date)
    return to_public(appointment)


@router.get("/{appointment_id}", response_model=AppointmentPublic)
async def get_appointment(
    appointment_id: str,
    repository: AppointmentRepository = Depends(get_repository),
) -> AppointmentPublic:
    return to_public(_get_or_404(repository, appointment_id))


@router.put("/{appointment_id}", response_model=AppointmentPublic)
async def update_appointment(
    appointment_id: str,
    body: AppointmentCreate,
    repository: AppointmentRepository = Depends(get_repository),
) -> AppointmentPublic:
    _get_or_404(repository, appointment_id)
    _ensure_bookable_or_409(repository, body.date)
    appointment = await repository.update(appointment_id, body)
    if not appointment:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Appointment not found")
    return to_public(appointment)


@router.delete("/{appointment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_appointment(
    appointment_id: str,
    repository: AppointmentRepository = Depends(get_repository),
) -> None:
    if not await repository.remove(appointment_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Appointment not found")


@router.get("/{appointment_id}/confirmation.png")
async def confirmation_image(
    appointment_id: str,
    repository: AppointmentRepository = Depends(get_repository),
    exporter: ConfirmationImageExporter = Depends(get_exporter),
) -> Response:
    appointment = _get_or_404(repository, appointment_id)
    try:
        image = await exporter.export(appointment)
    except RenderError as e:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=f"Could not generate the confirmation image: {e}",
        ) from e
    filename = quote(confirmation_filename(appointment))
    return Response(
        content=image,
        media_type="image/png",
        headers={"Content-Disposition": f"attachment; filename*=UTF-8''{filename}"},
    )
