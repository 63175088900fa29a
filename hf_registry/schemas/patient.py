# hf_registry/schemas/patient.py
from datetime import date
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from hf_registry.utils.datetime_utils import parse_iso_date


class PatientStatus(str, Enum):
    OPD = "OPD"
    IPD = "IPD"


class Gender(str, Enum):
    MALE = "ชาย"
    FEMALE = "หญิง"


class RegistryModel(BaseModel):
    """
    Base for registry schemas.

    Attributes are snake_case; JSON (API bodies, backups, the store payload)
    uses the camelCase aliases.
    """

    model_config = ConfigDict(populate_by_name=True)


class Address(RegistryModel):
    number: str = ""
    sub_district: str = Field(default="", alias="subDistrict")
    district: str = ""
    province: str = ""


class Medications(RegistryModel):
    acei_arb: bool = False
    arni: bool = False  # clinically exclusive with acei_arb, not enforced
    beta_blocker: bool = Field(default=False, alias="betaBlocker")
    mra: bool = False
    sglt2i: bool = False

    @property
    def acei_arb_arni(self) -> bool:
        """ACEi/ARB/ARNi class: either flag counts."""
        return self.acei_arb or self.arni

    @property
    def is_triple_therapy(self) -> bool:
        return self.acei_arb_arni and self.beta_blocker and self.mra


class TargetDoseReached(RegistryModel):
    acei_arb_arni: bool = False
    beta_blocker: bool = Field(default=False, alias="betaBlocker")
    mra: bool = False


class NextAppointment(RegistryModel):
    appointment_date: Optional[date] = Field(default=None, alias="date")
    location: str = ""
    detail: Optional[str] = None

    @field_validator("appointment_date", mode="before")
    @classmethod
    def blank_date_is_none(cls, v):
        return parse_iso_date(v)


class Patient(RegistryModel):
    """
    A heart-failure registry entry.

    `admission_count`, `fiscal_year` and `is_readmission` are derived on
    save (see services.admission_service) and are only meaningful once the
    patient has been admitted.
    """

    # Identity
    id: Optional[str] = None
    hn: str = ""
    an: Optional[str] = None

    # Demographics
    first_name: str = Field(default="", alias="firstName")
    last_name: str = Field(default="", alias="lastName")
    age: Optional[int] = Field(default=None, ge=0)
    gender: Gender = Gender.MALE
    insurance: str = ""
    address: Address = Field(default_factory=Address)

    # Clinical status
    status: PatientStatus = PatientStatus.OPD
    lvef: Optional[float] = None
    etiology: Optional[str] = None

    # Derived admission counters (IPD only)
    admission_count: Optional[int] = Field(default=None, ge=0, alias="admissionCount")
    fiscal_year: Optional[str] = Field(default=None, alias="fiscalYear")
    is_readmission: Optional[bool] = Field(default=None, alias="isReadmission")

    # Dates
    last_admission: Optional[date] = Field(default=None, alias="lastAdmission")
    discharge_date: Optional[date] = Field(default=None, alias="dischargeDate")

    # Admission details
    admit_ward: Optional[str] = Field(default=None, alias="admitWard")
    is_respi_failure: Optional[bool] = Field(default=None, alias="isRespiFailure")
    is_diuretic_adjust: Optional[bool] = Field(default=None, alias="isDiureticAdjust")
    admission_note: Optional[str] = Field(default=None, alias="admissionNote")

    # Medications
    meds: Medications = Field(default_factory=Medications)
    target_dose_reached: Optional[TargetDoseReached] = Field(
        default=None, alias="targetDoseReached"
    )

    next_appointment: Optional[NextAppointment] = Field(
        default=None, alias="nextAppointment"
    )
    notes: Optional[str] = None

    @field_validator("last_admission", "discharge_date", mode="before")
    @classmethod
    def blank_date_is_none(cls, v):
        return parse_iso_date(v)

    @field_validator("lvef", "age", mode="before")
    @classmethod
    def blank_number_is_none(cls, v):
        # the entry form posts "" / null for fields not filled in yet
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    @property
    def appointment_date(self) -> Optional[date]:
        if self.next_appointment is None:
            return None
        return self.next_appointment.appointment_date

    @property
    def is_active_ipd(self) -> bool:
        return self.status == PatientStatus.IPD and self.discharge_date is None

    def to_json_dict(self) -> dict:
        """camelCase, JSON-safe representation used by the store and backups."""
        return self.model_dump(mode="json", by_alias=True)
