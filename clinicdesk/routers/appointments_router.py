from datetime import date
from typing import List, Literal, Optional
from fastapi import APIRouter, Depends, HTTPException, Query
import logging

from ..database import get_records_store
from ..exceptions import ClinicDeskError
from ..application.ports.records_store import RecordsStore
from ..application.services.appointments_service import AppointmentsService
from ..application.services.scheduling_service import SchedulingService
from ..application.view_models import (
    APPOINTMENT_TYPES,
    AppointmentFilters,
    AppointmentForm,
    CalendarView,
    PageState,
    apply_view,
    default_window,
)
from ..config import settings
from ..schemas.appointments.appointment import (
    AppointmentListResponse,
    AppointmentRow,
    AppointmentTypeOption,
    CalendarWindowResponse,
    ConflictCheckRequest,
    ConflictResponse,
    DentistOption,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/appointments", tags=["Appointments"])


def get_scheduling_service(store: RecordsStore = Depends(get_records_store)) -> SchedulingService:
    return SchedulingService(store=store)


def get_appointments_service(
    store: RecordsStore = Depends(get_records_store),
    scheduling: SchedulingService = Depends(get_scheduling_service),
) -> AppointmentsService:
    return AppointmentsService(store=store, scheduling=scheduling)


@router.get("/", response_model=AppointmentListResponse)
async def list_appointments(
    status: Optional[str] = None,
    from_date: Optional[str] = None,
    to_date: Optional[str] = None,
    dentist_id: Optional[str] = None,
    patient_query: Optional[str] = None,
    dentist_query: Optional[str] = None,
    page: int = Query(1, ge=1),
    page_size: int = Query(settings.APPOINTMENTS_PAGE_SIZE, ge=1, le=100),
    appt_service: AppointmentsService = Depends(get_appointments_service),
):
    filters = AppointmentFilters(
        status=status,
        from_date=from_date,
        to_date=to_date,
        dentist_id=dentist_id,
        patient_query=patient_query,
        dentist_query=dentist_query,
    )
    try:
        return await appt_service.list(filters, PageState(page=page, page_size=page_size))
    except ClinicDeskError:
        raise
    except Exception as e:
        logger.error(f"Error retrieving appointments: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to load appointments")


@router.get("/window", response_model=CalendarWindowResponse)
def calendar_window(
    view: Literal["list", "day", "week"] = "list",
    calendar_date: Optional[str] = None,
):
    """Date range the list should show for a list/day/week view."""
    try:
        anchor = date.fromisoformat(calendar_date) if calendar_date else date.today()
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid calendar date format. Use YYYY-MM-DD")
    from_date, to_date = default_window(anchor)
    filters, page = apply_view(
        AppointmentFilters(from_date=from_date, to_date=to_date),
        PageState(),
        CalendarView(view=view, calendar_date=anchor.isoformat()),
    )
    return CalendarWindowResponse(view=view, from_date=filters.from_date, to_date=filters.to_date, page=page.page)


@router.get("/dentists", response_model=List[DentistOption])
async def list_dentists(appt_service: AppointmentsService = Depends(get_appointments_service)):
    return await appt_service.list_dentists()


@router.get("/types", response_model=List[AppointmentTypeOption])
def list_builtin_types():
    return APPOINTMENT_TYPES


@router.post("/conflicts", response_model=ConflictResponse)
async def check_conflict(
    candidate: ConflictCheckRequest,
    seq: Optional[int] = None,
    scheduling: SchedulingService = Depends(get_scheduling_service),
):
    """Advisory check for the form; never fails because of the store."""
    result = await scheduling.check_conflict(candidate)
    return ConflictResponse(conflict=result.conflict, message=result.message, seq=seq)


@router.post("/", status_code=201)
async def create_appointment(
    form: AppointmentForm,
    appt_service: AppointmentsService = Depends(get_appointments_service),
):
    form = form.model_copy(update={"id": None})
    try:
        return await appt_service.save(form)
    except ClinicDeskError:
        raise
    except Exception as e:
        logger.error(f"Error creating appointment: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to save appointment")


@router.put("/{appointment_id}")
async def update_appointment(
    appointment_id: str,
    form: AppointmentForm,
    appt_service: AppointmentsService = Depends(get_appointments_service),
):
    form = form.model_copy(update={"id": appointment_id})
    try:
        return await appt_service.save(form)
    except ClinicDeskError:
        raise
    except Exception as e:
        logger.error(f"Error updating appointment {appointment_id}: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to save appointment")


@router.get("/{appointment_id}/form", response_model=AppointmentForm)
async def edit_form(
    appointment_id: str,
    appt_service: AppointmentsService = Depends(get_appointments_service),
):
    appointment = await appt_service.get(appointment_id)
    if not appointment:
        raise HTTPException(status_code=404, detail="Appointment not found")
    return appt_service.form_for_edit(appointment)


@router.get("/{appointment_id}", response_model=AppointmentRow)
async def get_appointment(
    appointment_id: str,
    appt_service: AppointmentsService = Depends(get_appointments_service),
):
    appointment = await appt_service.get(appointment_id)
    if not appointment:
        raise HTTPException(status_code=404, detail="Appointment not found")
    names = await appt_service.load_names([appointment])
    return appt_service.present(appointment, names)
