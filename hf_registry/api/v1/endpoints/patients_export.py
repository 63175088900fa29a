# hf_registry/api/v1/endpoints/patients_export.py
import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import Response

from hf_registry.dependencies.registry import get_effective_criteria, get_registry
from hf_registry.schemas.filters import PatientFilter
from hf_registry.services.export_service import (
    BACKUP_MEDIA_TYPE,
    CSV_FILENAME,
    CSV_MEDIA_TYPE,
    backup_filename,
    export_backup,
    export_csv,
)
from hf_registry.services.registry_service import MalformedImportError, PatientRegistry

router = APIRouter()
logger = logging.getLogger(__name__)


def _attachment(filename: str) -> dict:
    return {"Content-Disposition": f'attachment; filename="{filename}"'}


@router.get("/export/csv")
def export_patients_csv(
    criteria: PatientFilter = Depends(get_effective_criteria),
    registry: PatientRegistry = Depends(get_registry),
) -> Response:
    """
    Export the filtered patients to CSV.
    """
    content = export_csv(registry.filtered_patients(criteria))
    return Response(
        content=content,
        media_type=CSV_MEDIA_TYPE,
        headers=_attachment(CSV_FILENAME),
    )


@router.get("/export/backup")
def export_patients_backup(
    registry: PatientRegistry = Depends(get_registry),
) -> Response:
    """
    Full backup of every patient record (ignores the filter).
    """
    return Response(
        content=export_backup(registry.patients),
        media_type=BACKUP_MEDIA_TYPE,
        headers=_attachment(backup_filename()),
    )


@router.post("/import")
async def import_patients(
    request: Request,
    registry: PatientRegistry = Depends(get_registry),
) -> dict:
    """
    Replace the registry with a backup. The request body is the JSON array
    produced by /export/backup.
    """
    body = await request.body()
    try:
        imported = await registry.import_database(body.decode("utf-8-sig"))
    except UnicodeDecodeError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Import must be UTF-8 text.",
        )
    except MalformedImportError as e:
        logger.warning(f"Rejected import: {e}")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    if not imported:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Could not import patients. Registry unchanged.",
        )
    return {"total": len(registry.patients)}
