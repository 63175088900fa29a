# hf_registry/api/v1/router.py
from fastapi import APIRouter

from hf_registry.api.v1.endpoints import (
    dashboard,
    filters,
    patients,
    patients_export,
)

api_router = APIRouter()

api_router.include_router(patients_export.router, prefix="/patients", tags=["patients"])
api_router.include_router(patients.router, prefix="/patients", tags=["patients"])
api_router.include_router(filters.router, prefix="/filters", tags=["filters"])
api_router.include_router(dashboard.router, prefix="/dashboard", tags=["dashboard"])
