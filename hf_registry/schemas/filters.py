# hf_registry/schemas/filters.py
from datetime import date
from enum import Enum
from typing import Any, Optional

from pydantic import Field, field_validator

from hf_registry.schemas.patient import PatientStatus, RegistryModel
from hf_registry.utils.datetime_utils import parse_iso_date


class LvefGroup(str, Enum):
    BELOW_20 = "<20%"
    FROM_20_TO_30 = "20-30%"
    FROM_30_TO_40 = "30-40%"
    FROM_40_TO_50 = "40-50%"
    ABOVE_50 = ">50%"


class AgeGroup(str, Enum):
    BELOW_40 = "<40"
    FROM_41_TO_60 = "41-60"
    FROM_61_TO_80 = "61-80"
    ABOVE_80 = ">80"


class MedicationFilter(str, Enum):
    ACEI_ARB = "acei_arb"
    ARNI = "arni"
    ACEI_ARB_ARNI = "acei_arb_arni"
    BETA_BLOCKER = "betaBlocker"
    MRA = "mra"
    SGLT2I = "sglt2i"


class PatientFilter(RegistryModel):
    """
    Sparse filter criteria for the patient list.

    Every field is one filter dimension. A dimension left as None, False
    or "" is unconstrained; all set dimensions are AND-ed.
    """

    status: Optional[PatientStatus] = None
    is_active_ipd: Optional[bool] = Field(default=None, alias="isActiveIpd")
    date_range_start: Optional[date] = Field(default=None, alias="dateRangeStart")
    date_range_end: Optional[date] = Field(default=None, alias="dateRangeEnd")
    is_readmit_30d: Optional[bool] = Field(default=None, alias="isReadmit30d")
    lvef_group: Optional[LvefGroup] = Field(default=None, alias="lvefGroup")
    is_lvef_less_50: Optional[bool] = Field(default=None, alias="isLvefLess50")
    province: Optional[str] = None
    district: Optional[str] = None
    sub_district: Optional[str] = Field(default=None, alias="subDistrict")
    etiology: Optional[str] = None
    insurance: Optional[str] = None
    age_group: Optional[AgeGroup] = Field(default=None, alias="ageGroup")
    appointment_date: Optional[date] = Field(default=None, alias="appointmentDate")
    appointment_location: Optional[str] = Field(default=None, alias="appointmentLocation")
    medication: Optional[MedicationFilter] = None
    is_triple_therapy: Optional[bool] = Field(default=None, alias="isTripleTherapy")
    is_respi_failure: Optional[bool] = Field(default=None, alias="isRespiFailure")
    is_diuretic_adjust: Optional[bool] = Field(default=None, alias="isDiureticAdjust")
    has_next_appointment: Optional[bool] = Field(default=None, alias="hasNextAppointment")

    @field_validator("date_range_start", "date_range_end", "appointment_date", mode="before")
    @classmethod
    def blank_date_is_none(cls, v):
        return parse_iso_date(v)

    def active_criteria(self) -> dict[str, Any]:
        """Set dimensions only, keyed by attribute name."""
        return {
            name: value
            for name, value in self
            if value is not None and value is not False and value != ""
        }
