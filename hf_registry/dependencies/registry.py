# hf_registry/dependencies/registry.py
from datetime import date
from typing import Optional

from fastapi import Depends, Query, Request

from hf_registry.schemas.filters import AgeGroup, LvefGroup, MedicationFilter, PatientFilter
from hf_registry.schemas.patient import PatientStatus
from hf_registry.services.filter_service import merge_criteria
from hf_registry.services.registry_service import PatientRegistry


def get_registry(request: Request) -> PatientRegistry:
    """
    The process-wide registry created in main.create_app().
    """
    return request.app.state.registry


def get_query_criteria(
    status: Optional[PatientStatus] = Query(None),
    is_active_ipd: Optional[bool] = Query(None, alias="isActiveIpd"),
    date_range_start: Optional[date] = Query(None, alias="dateRangeStart"),
    date_range_end: Optional[date] = Query(None, alias="dateRangeEnd"),
    is_readmit_30d: Optional[bool] = Query(None, alias="isReadmit30d"),
    lvef_group: Optional[LvefGroup] = Query(None, alias="lvefGroup"),
    is_lvef_less_50: Optional[bool] = Query(None, alias="isLvefLess50"),
    province: Optional[str] = Query(None),
    district: Optional[str] = Query(None),
    sub_district: Optional[str] = Query(None, alias="subDistrict"),
    etiology: Optional[str] = Query(None),
    insurance: Optional[str] = Query(None),
    age_group: Optional[AgeGroup] = Query(None, alias="ageGroup"),
    appointment_date: Optional[date] = Query(None, alias="appointmentDate"),
    appointment_location: Optional[str] = Query(None, alias="appointmentLocation"),
    medication: Optional[MedicationFilter] = Query(None),
    is_triple_therapy: Optional[bool] = Query(None, alias="isTripleTherapy"),
    is_respi_failure: Optional[bool] = Query(None, alias="isRespiFailure"),
    is_diuretic_adjust: Optional[bool] = Query(None, alias="isDiureticAdjust"),
    has_next_appointment: Optional[bool] = Query(None, alias="hasNextAppointment"),
) -> PatientFilter:
    """Filter dimensions given on the query string."""
    return PatientFilter(
        status=status,
        is_active_ipd=is_active_ipd,
        date_range_start=date_range_start,
        date_range_end=date_range_end,
        is_readmit_30d=is_readmit_30d,
        lvef_group=lvef_group,
        is_lvef_less_50=is_lvef_less_50,
        province=province,
        district=district,
        sub_district=sub_district,
        etiology=etiology,
        insurance=insurance,
        age_group=age_group,
        appointment_date=appointment_date,
        appointment_location=appointment_location,
        medication=medication,
        is_triple_therapy=is_triple_therapy,
        is_respi_failure=is_respi_failure,
        is_diuretic_adjust=is_diuretic_adjust,
        has_next_appointment=has_next_appointment,
    )


def get_effective_criteria(
    query_criteria: PatientFilter = Depends(get_query_criteria),
    registry: PatientRegistry = Depends(get_registry),
) -> PatientFilter:
    """
    The registry's saved filter with any query-string dimensions laid over it.
    """
    return merge_criteria(registry.criteria, query_criteria)
