# hf_registry/services/admission_service.py
"""
Admission event processing.

On every save the IPD counters of a patient are re-derived from the stored
record (if any) and the incoming edit:
- fiscal year of the admission (the year starts on October 1st)
- admissions counted within that fiscal year
- 30-day readmission flag
An IPD save that already carries a next-appointment date is also the
discharge: the record leaves as OPD with a discharge date.
"""

import logging
import math
from datetime import date
from typing import Iterable, Optional

from hf_registry.core.config import get_settings
from hf_registry.schemas.patient import Patient, PatientStatus
from hf_registry.utils.datetime_utils import days_between, utc_today
from hf_registry.utils.id_generators import generate_patient_id

logger = logging.getLogger(__name__)


class PatientValidationError(ValueError):
    """Save rejected before any derivation; nothing was changed."""

    def __init__(self, missing_fields: list[str]):
        self.missing_fields = missing_fields
        super().__init__(f"Missing required field(s): {', '.join(missing_fields)}")


def fiscal_year_for(day: date, start_month: Optional[int] = None) -> str:
    """
    Fiscal year label of a date.
    Months from `start_month` (October by default) to December belong to next year's label.
    """
    if start_month is None:
        start_month = get_settings().fiscal_year_start_month
    year = day.year + 1 if day.month >= start_month else day.year
    return str(year)


def _is_blank(value: Optional[str]) -> bool:
    return not (value or "").strip()


def validate_patient(patient: Patient) -> None:
    """
    Raises:
        PatientValidationError: naming every missing required field
    """
    missing = []
    if _is_blank(patient.hn):
        missing.append("hn")
    if _is_blank(patient.first_name):
        missing.append("firstName")
    if _is_blank(patient.last_name):
        missing.append("lastName")

    if patient.status == PatientStatus.IPD:
        if _is_blank(patient.etiology):
            missing.append("etiology")
        if _is_blank(patient.an):
            missing.append("an")

    if missing:
        raise PatientValidationError(missing)


def _is_readmission(
    previous: Patient,
    incoming: Patient,
    admission_date: date,
    window_days: int,
) -> bool:
    prior_discharge = previous.discharge_date or previous.last_admission
    if prior_discharge is None:
        # nothing to compare against
        return bool(incoming.is_readmission)

    is_new_episode = previous.status == PatientStatus.OPD or previous.an != incoming.an
    if not is_new_episode:
        # re-edit of the same open admission
        return bool(previous.is_readmission)

    gap_days = math.ceil(days_between(admission_date, prior_discharge))
    return gap_days < window_days


def _admission_count(previous: Patient, incoming: Patient, fiscal_year: str) -> int:
    if previous.fiscal_year != fiscal_year:
        return 1
    previous_count = previous.admission_count or 0
    if previous.an != incoming.an:
        return previous_count + 1
    return previous_count


def finalize_patient(
    previous: Optional[Patient],
    incoming: Patient,
    *,
    today: Optional[date] = None,
    existing_ids: Iterable[str] = (),
) -> Patient:
    """
    Produce the record to persist from the stored record and the clinician's edit.

    Pure: neither argument is modified. `today` defaults to the UTC date and
    stands in for "now" both as the fallback admission date and as the
    implicit discharge date. `existing_ids` keeps fresh ids unique.

    Raises:
        PatientValidationError: required fields are missing
    """
    validate_patient(incoming)

    settings = get_settings()
    today = today or utc_today()
    updates: dict = {}

    if incoming.status == PatientStatus.IPD:
        admission_date = incoming.last_admission or today
        fiscal_year = fiscal_year_for(admission_date, settings.fiscal_year_start_month)

        if previous is None:
            admission_count = 1
            is_readmission = False
        else:
            admission_count = _admission_count(previous, incoming, fiscal_year)
            is_readmission = _is_readmission(
                previous,
                incoming,
                admission_date,
                settings.readmission_window_days,
            )

        updates.update(
            admission_count=admission_count,
            fiscal_year=fiscal_year,
            is_readmission=is_readmission,
        )

        # Appointment booked at save time: this save is also the discharge
        if incoming.appointment_date is not None:
            updates["status"] = PatientStatus.OPD
            if incoming.discharge_date is None:
                updates["discharge_date"] = today

    if not incoming.id:
        updates["id"] = generate_patient_id(existing_ids)

    finalized = incoming.model_copy(update=updates, deep=True)
    logger.debug(
        f"Finalized patient {finalized.id} (hn={finalized.hn}, status={finalized.status.value}, "
        f"admission_count={finalized.admission_count}, readmission={finalized.is_readmission})"
    )
    return finalized
