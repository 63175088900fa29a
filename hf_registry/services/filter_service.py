# hf_registry/services/filter_service.py
"""
Filter predicate engine for the patient list.

Each filter dimension maps to one predicate in FILTER_PREDICATES. A patient
matches a PatientFilter when every active dimension's predicate holds, so the
result does not depend on the order in which criteria were set.
"""

from typing import Any, Callable, Iterable, Optional

from hf_registry.schemas.filters import AgeGroup, LvefGroup, MedicationFilter, PatientFilter
from hf_registry.schemas.patient import Patient

Predicate = Callable[[Patient, Any], bool]

# Half-open [lower, upper) LVEF buckets; None means unbounded.
LVEF_BUCKETS: dict[LvefGroup, tuple[Optional[float], Optional[float]]] = {
    LvefGroup.BELOW_20: (None, 20),
    LvefGroup.FROM_20_TO_30: (20, 30),
    LvefGroup.FROM_30_TO_40: (30, 40),
    LvefGroup.FROM_40_TO_50: (40, 50),
    LvefGroup.ABOVE_50: (50, None),
}

# NOTE: age 40 belongs to no bucket.
AGE_BUCKETS: dict[AgeGroup, Callable[[int], bool]] = {
    AgeGroup.BELOW_40: lambda age: age < 40,
    AgeGroup.FROM_41_TO_60: lambda age: 41 <= age <= 60,
    AgeGroup.FROM_61_TO_80: lambda age: 61 <= age <= 80,
    AgeGroup.ABOVE_80: lambda age: age > 80,
}

MEDICATION_FLAGS: dict[MedicationFilter, Callable[[Patient], bool]] = {
    MedicationFilter.ACEI_ARB: lambda p: p.meds.acei_arb,
    MedicationFilter.ARNI: lambda p: p.meds.arni,
    MedicationFilter.ACEI_ARB_ARNI: lambda p: p.meds.acei_arb_arni,
    MedicationFilter.BETA_BLOCKER: lambda p: p.meds.beta_blocker,
    MedicationFilter.MRA: lambda p: p.meds.mra,
    MedicationFilter.SGLT2I: lambda p: p.meds.sglt2i,
}


def lvef_group_of(lvef: Optional[float]) -> Optional[LvefGroup]:
    if lvef is None:
        return None
    for group, (lower, upper) in LVEF_BUCKETS.items():
        if (lower is None or lvef >= lower) and (upper is None or lvef < upper):
            return group
    return None


def _in_lvef_group(patient: Patient, group: LvefGroup) -> bool:
    return patient.lvef is not None and lvef_group_of(patient.lvef) == group


def _in_age_group(patient: Patient, group: AgeGroup) -> bool:
    return patient.age is not None and AGE_BUCKETS[group](patient.age)


def _admitted_on_or_after(patient: Patient, start) -> bool:
    return patient.last_admission is not None and patient.last_admission >= start


def _admitted_on_or_before(patient: Patient, end) -> bool:
    return patient.last_admission is not None and patient.last_admission <= end


def _appointment_location(patient: Patient) -> Optional[str]:
    if patient.next_appointment is None:
        return None
    return patient.next_appointment.location


FILTER_PREDICATES: dict[str, Predicate] = {
    "status": lambda p, v: p.status == v,
    "is_active_ipd": lambda p, v: p.is_active_ipd,
    "date_range_start": _admitted_on_or_after,
    "date_range_end": _admitted_on_or_before,
    "is_readmit_30d": lambda p, v: bool(p.is_readmission),
    "lvef_group": _in_lvef_group,
    "is_lvef_less_50": lambda p, v: p.lvef is not None and p.lvef < 50,
    "province": lambda p, v: p.address.province == v,
    "district": lambda p, v: p.address.district == v,
    "sub_district": lambda p, v: p.address.sub_district == v,
    "etiology": lambda p, v: p.etiology == v,
    "insurance": lambda p, v: p.insurance == v,
    "age_group": _in_age_group,
    "appointment_date": lambda p, v: p.appointment_date == v,
    "appointment_location": lambda p, v: _appointment_location(p) == v,
    "medication": lambda p, v: MEDICATION_FLAGS[v](p),
    "is_triple_therapy": lambda p, v: p.meds.is_triple_therapy,
    "is_respi_failure": lambda p, v: bool(p.is_respi_failure),
    "is_diuretic_adjust": lambda p, v: bool(p.is_diuretic_adjust),
    "has_next_appointment": lambda p, v: p.appointment_date is not None,
}


def matches(patient: Patient, criteria: PatientFilter) -> bool:
    """True when the patient satisfies every active dimension."""
    return all(
        FILTER_PREDICATES[name](patient, value)
        for name, value in criteria.active_criteria().items()
    )


def filter_patients(patients: Iterable[Patient], criteria: PatientFilter) -> list[Patient]:
    """
    Patients matching all active criteria, in input order.
    With no active criteria this is the whole collection.
    """
    active = criteria.active_criteria()
    if not active:
        return list(patients)

    predicates = [(FILTER_PREDICATES[name], value) for name, value in active.items()]
    return [p for p in patients if all(pred(p, value) for pred, value in predicates)]


def with_criterion(criteria: PatientFilter, key: str, value: Any) -> PatientFilter:
    """
    Return a copy of `criteria` with one dimension set (or cleared with None).

    `key` may be the attribute name or its camelCase alias.

    Raises:
        KeyError: unknown filter dimension
        pydantic.ValidationError: value does not fit the dimension
    """
    name = _dimension_name(key)
    data = criteria.model_dump()
    data[name] = value
    return PatientFilter.model_validate(data)


def clear_criteria() -> PatientFilter:
    return PatientFilter()


def _dimension_name(key: str) -> str:
    if key in FILTER_PREDICATES:
        return key
    for name, field in PatientFilter.model_fields.items():
        if field.alias == key:
            return name
    raise KeyError(f"Unknown filter dimension: {key}")


def merge_criteria(base: PatientFilter, overrides: PatientFilter) -> PatientFilter:
    """`base` with every active dimension of `overrides` laid over it."""
    active = overrides.active_criteria()
    if not active:
        return base
    return base.model_copy(update=active)
