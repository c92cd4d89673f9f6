from typing import Dict, List, Literal, Optional
from fastapi import APIRouter, Depends, HTTPException, Query
import logging

from ..database import get_records_store
from ..exceptions import ClinicDeskError
from ..application.ports.records_store import RecordsStore
from ..application.services.patients_service import PatientsService
from ..application.view_models import DirectoryFilters, PageState
from ..config import settings
from ..schemas.common.common import PaginatedResponse
from ..schemas.patients.patient import (
    PatientCreate,
    PatientOption,
    PatientRegistrationResponse,
    PatientUpdate,
    VisitStats,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/patients", tags=["Patients"])


def get_patients_service(store: RecordsStore = Depends(get_records_store)) -> PatientsService:
    return PatientsService(store=store)


@router.get("/", response_model=PaginatedResponse)
async def list_patients(
    status: Literal["all", "active", "inactive"] = "all",
    search: str = "",
    page: int = Query(1, ge=1),
    page_size: int = Query(settings.DIRECTORY_PAGE_SIZE, ge=1, le=100),
    patients: PatientsService = Depends(get_patients_service),
):
    try:
        return await patients.list(DirectoryFilters(status=status, search=search), PageState(page=page, page_size=page_size))
    except ClinicDeskError:
        raise
    except Exception as e:
        logger.error(f"Error retrieving patients: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to fetch patients")


@router.get("/search", response_model=List[PatientOption])
async def search_patients(q: str = "", patients: PatientsService = Depends(get_patients_service)):
    return await patients.search(q)


@router.get("/stats", response_model=Dict[str, VisitStats])
async def visit_stats(
    ids: List[str] = Query(default=[]),
    patients: PatientsService = Depends(get_patients_service),
):
    stats = await patients.visit_stats(ids)
    return {
        pid: VisitStats(
            count=entry["count"],
            last_at=entry["last_at"].isoformat() if entry["last_at"] else None,
            total_balance=entry["total_balance"],
            balance_display=entry["balance_display"],
        )
        for pid, entry in stats.items()
    }


@router.post("/", response_model=PatientRegistrationResponse)
async def register_patient(
    payload: PatientCreate,
    patients: PatientsService = Depends(get_patients_service),
):
    try:
        return await patients.register(payload.model_dump())
    except ClinicDeskError:
        raise
    except Exception as e:
        logger.error(f"Error creating patient: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to create patient")


@router.put("/{patient_id}")
async def update_patient(
    patient_id: str,
    payload: PatientUpdate,
    patients: PatientsService = Depends(get_patients_service),
):
    try:
        return await patients.update_profile(patient_id, payload.model_dump())
    except ClinicDeskError:
        raise
    except Exception as e:
        logger.error(f"Error updating patient {patient_id}: {str(e)}")
        raise HTTPException(status_code=500, detail="Save failed")


@router.post("/{patient_id}/toggle-status")
async def toggle_patient_status(
    patient_id: str,
    patients: PatientsService = Depends(get_patients_service),
):
    patient = await patients.get(patient_id)
    if not patient:
        raise HTTPException(status_code=404, detail="Patient not found")
    return await patients.toggle_status(patient)
