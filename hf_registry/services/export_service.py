# hf_registry/services/export_service.py
import csv
import json
from datetime import date
from io import StringIO
from typing import Iterable, Optional

from hf_registry.schemas.patient import Patient
from hf_registry.utils.datetime_utils import utc_today

CSV_HEADERS = [
    "HN",
    "AN",
    "ชื่อ-สกุล",
    "อายุ",
    "เพศ",
    "สิทธิการรักษา",
    "สถานะ",
    "Admit Count",
    "Re-admit(30d)",
    "Ward",
    "RespiFail",
    "LVEF",
    "ที่อยู่",
    "ยา",
    "วันที่ Admit ล่าสุด",
    "วันนัดถัดไป",
    "สถานที่นัด",
]

MEDICATION_LABELS = [
    ("acei_arb", "ACEI/ARB"),
    ("arni", "ARNi"),
    ("beta_blocker", "BB"),
    ("mra", "MRA"),
    ("sglt2i", "SGLT2i"),
]

CSV_FILENAME = "hf_registry_export.csv"
CSV_MEDIA_TYPE = "text/csv; charset=utf-8"
BACKUP_MEDIA_TYPE = "application/json"
UTF8_BOM = "\ufeff"


def _text(value: object) -> str:
    if value is None:
        return ""
    if isinstance(value, float):
        return f"{value:g}"
    if isinstance(value, date):
        return value.isoformat()
    return str(value)


def _yes_no(flag: Optional[bool]) -> str:
    return "Yes" if flag else "No"


def format_address(patient: Patient) -> str:
    a = patient.address
    return f"{a.number} ต.{a.sub_district} อ.{a.district} จ.{a.province}"


def format_medications(patient: Patient) -> str:
    return "|".join(label for attr, label in MEDICATION_LABELS if getattr(patient.meds, attr))


def csv_row(patient: Patient) -> list[str]:
    appointment = patient.next_appointment
    return [
        _text(patient.hn),
        _text(patient.an),
        patient.full_name,
        _text(patient.age),
        patient.gender.value,
        _text(patient.insurance),
        patient.status.value,
        _text(patient.admission_count or 1),
        _yes_no(patient.is_readmission),
        patient.admit_ward or "-",
        _yes_no(patient.is_respi_failure),
        _text(patient.lvef),
        format_address(patient),
        format_medications(patient),
        _text(patient.last_admission),
        _text(patient.appointment_date),
        (appointment.location if appointment else "") or "-",
    ]


def export_csv(patients: Iterable[Patient]) -> str:
    """
    Delimited export of the given patients (normally the filtered view).
    Data cells are quoted; the text starts with a UTF-8 BOM.
    """
    output = StringIO()
    output.write(UTF8_BOM)
    writer = csv.writer(output, quoting=csv.QUOTE_ALL, lineterminator="\n")
    output.write(",".join(CSV_HEADERS) + "\n")
    for patient in patients:
        writer.writerow(csv_row(patient))
    return output.getvalue()


def export_backup(patients: Iterable[Patient]) -> str:
    """Full-record backup: a human-readable JSON array in the import format."""
    return json.dumps(
        [p.to_json_dict() for p in patients],
        ensure_ascii=False,
        indent=2,
    )


def backup_filename(today: Optional[date] = None) -> str:
    return f"hf_registry_backup_{(today or utc_today()).isoformat()}.json"
