# hf_registry/api/v1/endpoints/dashboard.py
from typing import Optional

from fastapi import APIRouter, Depends, Query

from hf_registry.dependencies.registry import get_effective_criteria, get_registry
from hf_registry.schemas.filters import PatientFilter
from hf_registry.schemas.stats import (
    CalendarMonth,
    DashboardMedications,
    Distributions,
    LocationCount,
    Lookups,
    RegistryStats,
)
from hf_registry.services import stats_service
from hf_registry.services.registry_service import PatientRegistry
from hf_registry.services.stats_service import LocationLevel
from hf_registry.utils.datetime_utils import utc_today

router = APIRouter()


@router.get("/stats", response_model=RegistryStats)
def get_registry_stats(
    criteria: PatientFilter = Depends(get_effective_criteria),
    registry: PatientRegistry = Depends(get_registry),
) -> RegistryStats:
    """
    KPI header.

    total / ipdActive / readmission30d / lvefLess50 always cover the whole
    registry; respiFailureCount / diureticAdjustCount / appointmentCount
    follow the filter.
    """
    return registry.registry_stats(criteria)


@router.get("/medications", response_model=DashboardMedications)
def get_medication_stats(
    criteria: PatientFilter = Depends(get_effective_criteria),
    registry: PatientRegistry = Depends(get_registry),
) -> DashboardMedications:
    return DashboardMedications(
        ipd=registry.medication_stats(criteria),
        opd=registry.opd_medication_stats(),
    )


@router.get("/distributions", response_model=Distributions)
def get_distributions(
    criteria: PatientFilter = Depends(get_effective_criteria),
    registry: PatientRegistry = Depends(get_registry),
) -> Distributions:
    """
    Chart data. LVEF, age and insurance cover the whole registry;
    etiology follows the filter.
    """
    everyone = registry.patients
    return Distributions(
        lvef=stats_service.lvef_distribution(everyone),
        age=stats_service.age_distribution(everyone),
        insurance=stats_service.insurance_distribution(everyone),
        etiology=stats_service.etiology_distribution(registry.filtered_patients(criteria)),
    )


@router.get("/locations", response_model=list[LocationCount])
def get_location_distribution(
    level: LocationLevel = Query(LocationLevel.PROVINCE),
    criteria: PatientFilter = Depends(get_effective_criteria),
    registry: PatientRegistry = Depends(get_registry),
) -> list[dict]:
    """
    Drill-down counts: pick a province (filter `province`), then show
    level=district, and so on.
    """
    return stats_service.location_distribution(registry.filtered_patients(criteria), level)


@router.get("/lookups", response_model=Lookups)
def get_lookups(registry: PatientRegistry = Depends(get_registry)) -> Lookups:
    everyone = registry.patients
    return Lookups(
        provinces=stats_service.unique_values(everyone, LocationLevel.PROVINCE),
        districts=stats_service.unique_values(everyone, LocationLevel.DISTRICT),
        sub_districts=stats_service.unique_values(everyone, LocationLevel.SUB_DISTRICT),
        insurances=stats_service.unique_insurances(everyone),
    )


@router.get("/calendar", response_model=CalendarMonth)
def get_appointment_calendar(
    year: Optional[int] = Query(None, ge=1900, le=2999),
    month: Optional[int] = Query(None, ge=1, le=12),
    criteria: PatientFilter = Depends(get_effective_criteria),
    registry: PatientRegistry = Depends(get_registry),
) -> CalendarMonth:
    """
    Days with OPD follow-ups in a month (current month by default).
    Honours the appointment-location filter only.
    """
    today = utc_today()
    year = year or today.year
    month = month or today.month
    return CalendarMonth(
        year=year,
        month=month,
        appointment_days=stats_service.appointment_days(
            registry.patients,
            year,
            month,
            location=criteria.appointment_location,
        ),
    )
