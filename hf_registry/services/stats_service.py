# hf_registry/services/stats_service.py
"""
Aggregation over patient snapshots for the dashboard.

All functions are pure. Callers choose the population: the KPI header uses
the whole registry for some counts and the filtered view for others.
"""

import calendar
import math
from collections import Counter
from datetime import date
from enum import Enum
from typing import Callable, Iterable, Optional, Sequence

from hf_registry.schemas.filters import LvefGroup
from hf_registry.schemas.patient import Patient, PatientStatus
from hf_registry.schemas.stats import MedicationStats, PatientPage, RegistryStats
from hf_registry.services.filter_service import lvef_group_of

UNSPECIFIED_LOCATION = "ไม่ระบุ"
UNSPECIFIED_CATEGORY = "Other"

DEFAULT_INSURANCES = [
    "บัตรทอง (UC)",
    "ประกันสังคม",
    "ข้าราชการ (เบิกจ่ายตรง)",
    "ชำระเงินเอง",
]


class LocationLevel(str, Enum):
    PROVINCE = "province"
    DISTRICT = "district"
    SUB_DISTRICT = "subDistrict"


def _count(patients: Iterable[Patient], predicate: Callable[[Patient], bool]) -> int:
    return sum(1 for p in patients if predicate(p))


def calculate_medication_stats(patients: Sequence[Patient]) -> MedicationStats:
    """
    Percentage of `patients` on each drug class.
    An empty list reports 0% everywhere.
    """
    total = max(1, len(patients))

    def pct(predicate: Callable[[Patient], bool]) -> float:
        return _count(patients, predicate) / total * 100

    return MedicationStats(
        acei_arb=pct(lambda p: p.meds.acei_arb),
        arni=pct(lambda p: p.meds.arni),
        acei_arb_arni=pct(lambda p: p.meds.acei_arb_arni),
        beta_blocker=pct(lambda p: p.meds.beta_blocker),
        mra=pct(lambda p: p.meds.mra),
        sglt2i=pct(lambda p: p.meds.sglt2i),
        triple_therapy_count=_count(patients, lambda p: p.meds.is_triple_therapy),
    )


def calculate_opd_medication_stats(all_patients: Sequence[Patient]) -> MedicationStats:
    """Medication coverage of every OPD patient, whatever the active filter."""
    return calculate_medication_stats(
        [p for p in all_patients if p.status == PatientStatus.OPD]
    )


def calculate_registry_stats(
    all_patients: Sequence[Patient],
    filtered_patients: Sequence[Patient],
) -> RegistryStats:
    """
    KPI header.

    total / ipd_active / readmission_30d / lvef_less_50 come from the whole
    registry; the respiratory-failure, diuretic and appointment counts come
    from the filtered view.
    """
    return RegistryStats(**headline_counts(all_patients), **drilldown_counts(filtered_patients))


def headline_counts(all_patients: Sequence[Patient]) -> dict[str, int]:
    """Registry-wide half of the KPI header."""
    return {
        "total": len(all_patients),
        "ipd_active": _count(all_patients, lambda p: p.is_active_ipd),
        "readmission_30d": _count(all_patients, lambda p: bool(p.is_readmission)),
        "lvef_less_50": _count(all_patients, lambda p: p.lvef is not None and p.lvef < 50),
    }


def drilldown_counts(filtered_patients: Sequence[Patient]) -> dict[str, int]:
    """Half of the KPI header that follows the active filter."""
    return {
        "respi_failure_count": _count(filtered_patients, lambda p: bool(p.is_respi_failure)),
        "diuretic_adjust_count": _count(filtered_patients, lambda p: bool(p.is_diuretic_adjust)),
        "appointment_count": _count(filtered_patients, lambda p: p.appointment_date is not None),
    }


def lvef_distribution(patients: Iterable[Patient]) -> dict[str, int]:
    counts = {group.value: 0 for group in LvefGroup}
    for p in patients:
        group = lvef_group_of(p.lvef)
        if group is not None:
            counts[group.value] += 1
    return counts


def _age_chart_bin(age: int) -> str:
    # Chart bins are closed on the right, so 40 is charted as "<40"
    if age <= 40:
        return "<40"
    if age <= 60:
        return "41-60"
    if age <= 80:
        return "61-80"
    return ">80"


def age_distribution(patients: Iterable[Patient]) -> dict[str, int]:
    counts = {"<40": 0, "41-60": 0, "61-80": 0, ">80": 0}
    for p in patients:
        if p.age is not None:
            counts[_age_chart_bin(p.age)] += 1
    return counts


def insurance_distribution(patients: Iterable[Patient]) -> dict[str, int]:
    return dict(Counter(p.insurance or UNSPECIFIED_CATEGORY for p in patients))


def etiology_distribution(patients: Iterable[Patient]) -> dict[str, int]:
    return dict(Counter(p.etiology or UNSPECIFIED_CATEGORY for p in patients))


def _location_of(patient: Patient, level: LocationLevel) -> str:
    if level == LocationLevel.PROVINCE:
        value = patient.address.province
    elif level == LocationLevel.DISTRICT:
        value = patient.address.district
    else:
        value = patient.address.sub_district
    return value or UNSPECIFIED_LOCATION


def location_distribution(
    patients: Iterable[Patient],
    level: LocationLevel = LocationLevel.PROVINCE,
) -> list[dict]:
    """
    Patient counts per location at one drill-down level, largest first.
    """
    counts = Counter(_location_of(p, level) for p in patients)
    return [{"key": key, "value": value} for key, value in counts.most_common()]


def unique_values(patients: Iterable[Patient], level: LocationLevel) -> list[str]:
    """Sorted distinct non-blank address values, for form auto-complete."""
    return sorted(
        {_location_of(p, level) for p in patients} - {UNSPECIFIED_LOCATION}
    )


def unique_insurances(patients: Iterable[Patient]) -> list[str]:
    """Payer types in use plus the default ones."""
    return sorted(set(DEFAULT_INSURANCES) | {p.insurance for p in patients if p.insurance})


def appointment_days(
    patients: Iterable[Patient],
    year: int,
    month: int,
    location: Optional[str] = None,
) -> list[date]:
    """
    Days of a month with at least one OPD follow-up booked,
    optionally limited to one clinic.
    """
    _, days_in_month = calendar.monthrange(year, month)
    first = date(year, month, 1)
    last = date(year, month, days_in_month)

    booked = set()
    for p in patients:
        day = p.appointment_date
        if day is None or p.status != PatientStatus.OPD:
            continue
        if location and p.next_appointment.location != location:
            continue
        if first <= day <= last:
            booked.add(day)
    return sorted(booked)


def paginate(patients: Sequence[Patient], page: int, page_size: int) -> PatientPage:
    """
    One page of the list. Pages are 1-based; an out-of-range page is empty.
    """
    total = len(patients)
    start = (page - 1) * page_size
    return PatientPage(
        items=list(patients[start : start + page_size]),
        total=total,
        page=page,
        page_size=page_size,
        total_pages=math.ceil(total / page_size),
    )
