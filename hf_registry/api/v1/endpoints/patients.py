# hf_registry/api/v1/endpoints/patients.py
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from hf_registry.core.config import get_settings
from hf_registry.dependencies.registry import get_effective_criteria, get_registry
from hf_registry.schemas.filters import PatientFilter
from hf_registry.schemas.patient import Patient
from hf_registry.schemas.stats import PatientPage
from hf_registry.services.admission_service import PatientValidationError
from hf_registry.services.registry_service import PatientRegistry
from hf_registry.services.stats_service import paginate

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("", response_model=PatientPage)
def list_patients(
    page: int = Query(1, ge=1),
    page_size: Optional[int] = Query(None, alias="pageSize", ge=1, le=500),
    criteria: PatientFilter = Depends(get_effective_criteria),
    registry: PatientRegistry = Depends(get_registry),
) -> PatientPage:
    """
    Filtered patient list, newest registrations first, one page at a time.

    Query-string filter dimensions override the saved filter for this request only.
    """
    page_size = page_size or get_settings().items_per_page
    return paginate(registry.filtered_patients(criteria), page, page_size)


@router.get("/lookup", response_model=Patient)
def lookup_patient_by_hn(
    hn: str = Query(..., min_length=1),
    registry: PatientRegistry = Depends(get_registry),
) -> Patient:
    """
    Find an already registered patient by hospital number, so the entry
    form can switch to editing that record.
    """
    patient = registry.find_by_hn(hn)
    if not patient:
        raise HTTPException(status_code=404, detail="Patient not found")
    return patient


@router.get("/{patient_id}", response_model=Patient)
def get_patient(
    patient_id: str,
    registry: PatientRegistry = Depends(get_registry),
) -> Patient:
    patient = registry.get_patient(patient_id)
    if not patient:
        raise HTTPException(status_code=404, detail="Patient not found")
    return patient


@router.post("", response_model=Patient)
async def save_patient(
    payload: Patient,
    registry: PatientRegistry = Depends(get_registry),
) -> Patient:
    """
    Save a patient (create when `id` is empty, otherwise update).

    Rules:
    - HN and name are required; IPD also requires etiology and AN
    - IPD counters (admission count, fiscal year, 30-day readmission) are
      derived here and any client-sent values are overwritten
    - An IPD save with a next-appointment date discharges the patient to OPD
    """
    try:
        saved = await registry.save_patient(payload)
    except PatientValidationError as e:
        logger.warning(f"Rejected patient save (hn={payload.hn!r}): {e}")
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail={"message": str(e), "missing_fields": e.missing_fields},
        )

    if saved is None:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Could not persist patient. Please try again.",
        )
    return saved


@router.delete("/{patient_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_patient(
    patient_id: str,
    registry: PatientRegistry = Depends(get_registry),
) -> None:
    if not registry.get_patient(patient_id):
        raise HTTPException(status_code=404, detail="Patient not found")

    if not await registry.delete_patient(patient_id):
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Could not delete patient. Please try again.",
        )


@router.post("/reload")
async def reload_patients(
    registry: PatientRegistry = Depends(get_registry),
) -> dict:
    """Re-read the registry from the store."""
    if not await registry.load():
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Could not load patients from the store.",
        )
    return {"total": len(registry.patients)}
