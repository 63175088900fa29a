# hf_registry/schemas/stats.py
from datetime import date

from pydantic import Field

from hf_registry.schemas.patient import Patient, RegistryModel


class MedicationStats(RegistryModel):
    """Share of patients (0-100) on each drug class."""

    acei_arb: float = Field(default=0.0, alias="aceiArb")
    arni: float = 0.0
    acei_arb_arni: float = Field(default=0.0, alias="aceiArbArni")
    beta_blocker: float = Field(default=0.0, alias="betaBlocker")
    mra: float = 0.0
    sglt2i: float = 0.0
    triple_therapy_count: int = Field(default=0, alias="tripleTherapyCount")


class RegistryStats(RegistryModel):
    # Registry-wide: ignore the active filter
    total: int = 0
    ipd_active: int = Field(default=0, alias="ipdActive")
    readmission_30d: int = Field(default=0, alias="readmission30d")
    lvef_less_50: int = Field(default=0, alias="lvefLess50")

    # Follow the active filter
    respi_failure_count: int = Field(default=0, alias="respiFailureCount")
    diuretic_adjust_count: int = Field(default=0, alias="diureticAdjustCount")
    appointment_count: int = Field(default=0, alias="appointmentCount")


class DashboardMedications(RegistryModel):
    # ipd: the filtered view (IPD tracking panel); opd: every OPD patient
    ipd: MedicationStats
    opd: MedicationStats


class Distributions(RegistryModel):
    lvef: dict[str, int]
    age: dict[str, int]
    insurance: dict[str, int]
    etiology: dict[str, int]


class LocationCount(RegistryModel):
    key: str
    value: int


class Lookups(RegistryModel):
    provinces: list[str]
    districts: list[str]
    sub_districts: list[str] = Field(alias="subDistricts")
    insurances: list[str]


class CalendarMonth(RegistryModel):
    year: int
    month: int
    appointment_days: list[date] = Field(alias="appointmentDays")


class PatientPage(RegistryModel):
    items: list[Patient]
    total: int
    page: int
    page_size: int = Field(alias="pageSize")
    total_pages: int = Field(alias="totalPages")
