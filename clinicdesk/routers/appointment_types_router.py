from typing import Literal, Optional
from fastapi import APIRouter, Depends, Header, HTTPException, Query
import logging

from ..database import get_records_store
from ..exceptions import ClinicDeskError
from ..application.ports.records_store import RecordsStore
from ..application.services.appointment_types_service import AppointmentTypesService
from ..application.view_models import DirectoryFilters, PageState
from ..config import settings
from ..schemas.common.common import PaginatedResponse
from ..schemas.appointment_types.appointment_type import AppointmentTypeIn

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/appointment-types", tags=["Appointment Types"])


def get_appointment_types_service(store: RecordsStore = Depends(get_records_store)) -> AppointmentTypesService:
    return AppointmentTypesService(store=store)


@router.get("/", response_model=PaginatedResponse)
async def list_appointment_types(
    status: Literal["all", "active", "inactive"] = "all",
    search: str = "",
    page: int = Query(1, ge=1),
    page_size: int = Query(settings.DIRECTORY_PAGE_SIZE, ge=1, le=100),
    types: AppointmentTypesService = Depends(get_appointment_types_service),
):
    try:
        return await types.list(DirectoryFilters(status=status, search=search), PageState(page=page, page_size=page_size))
    except ClinicDeskError:
        raise
    except Exception as e:
        logger.error(f"Error retrieving appointment types: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to fetch appointment types")


@router.post("/", status_code=201)
async def create_appointment_type(
    payload: AppointmentTypeIn,
    x_user_id: Optional[str] = Header(default=None),
    types: AppointmentTypesService = Depends(get_appointment_types_service),
):
    return await types.save(payload.model_dump(), acting_user_id=x_user_id)


@router.put("/{type_id}")
async def update_appointment_type(
    type_id: str,
    payload: AppointmentTypeIn,
    types: AppointmentTypesService = Depends(get_appointment_types_service),
):
    return await types.save(payload.model_dump(), type_id=type_id)


@router.post("/{type_id}/toggle")
async def toggle_appointment_type(
    type_id: str,
    types: AppointmentTypesService = Depends(get_appointment_types_service),
):
    return await types.toggle_active(type_id)
