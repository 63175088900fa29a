# hf_registry/utils/id_generators.py
import uuid
from typing import Iterable


def generate_patient_id(existing_ids: Iterable[str] = ()) -> str:
    """
    Generate a unique patient id in format: P-{random}

    Where:
    - P = literal "P" for Patient
    - {random} = first 10 hex characters of a UUID4, upper-cased

    Ids are assigned once and never reused, so a candidate that collides
    with an id already in the registry is discarded.

    Example: P-3F9A1C02BE
    """
    taken = set(existing_ids)
    while True:
        candidate = f"P-{uuid.uuid4().hex[:10].upper()}"
        if candidate not in taken:
            return candidate
