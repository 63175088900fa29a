# hf_registry/services/registry_service.py
"""
In-memory patient registry backed by a PatientStore.

The registry holds an immutable snapshot of the collection plus the active
filter. Mutations (save, delete, import) run one at a time and only replace
the snapshot once the store has confirmed the write. Every read view is
computed on demand from the latest snapshot.
"""

import asyncio
import json
import logging
import uuid
from typing import Any, Optional

from pydantic import TypeAdapter, ValidationError

from hf_registry.core.config import get_settings
from hf_registry.core.redis import get_cached_json, set_cached_json, stats_cache_key
from hf_registry.schemas.filters import PatientFilter
from hf_registry.schemas.patient import Patient
from hf_registry.schemas.stats import MedicationStats, RegistryStats
from hf_registry.services import stats_service
from hf_registry.services.admission_service import finalize_patient
from hf_registry.services.filter_service import clear_criteria, filter_patients, with_criterion
from hf_registry.services.patient_store import PatientStore
from hf_registry.utils.id_generators import generate_patient_id

logger = logging.getLogger(__name__)

_patient_list = TypeAdapter(list[Patient])


class MalformedImportError(ValueError):
    """Import payload is not an array of patient records; nothing was changed."""


class PatientRegistry:
    def __init__(self, store: PatientStore):
        self.store = store
        self._patients: tuple[Patient, ...] = ()
        self._criteria = PatientFilter()
        self._version = 0
        self._instance = uuid.uuid4().hex[:8]
        self._write_lock = asyncio.Lock()

    # ------------------------------------------------------------------
    # Snapshot
    # ------------------------------------------------------------------
    @property
    def patients(self) -> tuple[Patient, ...]:
        return self._patients

    @property
    def criteria(self) -> PatientFilter:
        return self._criteria

    @property
    def version(self) -> int:
        """Bumped on every confirmed mutation."""
        return self._version

    def _replace_snapshot(self, patients: tuple[Patient, ...]) -> None:
        self._patients = patients
        self._version += 1

    def get_patient(self, patient_id: str) -> Optional[Patient]:
        return next((p for p in self._patients if p.id == patient_id), None)

    def find_by_hn(self, hn: str) -> Optional[Patient]:
        """First registered patient with this hospital number."""
        return next((p for p in self._patients if p.hn == hn), None)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------
    async def load(self) -> bool:
        """Replace the snapshot from the store. Keeps the current one on failure."""
        async with self._write_lock:
            patients = await self.store.load_all()
            if patients is None:
                logger.warning("Patient store could not be read; keeping current snapshot.")
                return False
            self._replace_snapshot(tuple(patients))
            logger.info(f"Loaded {len(patients)} patient records.")
            return True

    async def save_patient(self, incoming: Patient) -> Optional[Patient]:
        """
        Finalize and persist one edit.

        Returns the finalized record, or None if the store rejected it
        (the snapshot is unchanged in that case).

        Raises:
            PatientValidationError: required fields missing; nothing is derived or written
        """
        async with self._write_lock:
            previous = self.get_patient(incoming.id) if incoming.id else None
            finalized = finalize_patient(
                previous,
                incoming,
                existing_ids=(p.id for p in self._patients),
            )

            if not await self.store.save(finalized):
                logger.warning(f"Store rejected save of patient {finalized.id}.")
                return None

            if previous is not None:
                self._replace_snapshot(
                    tuple(finalized if p.id == finalized.id else p for p in self._patients)
                )
            else:
                self._replace_snapshot((finalized,) + self._patients)
            return finalized

    async def delete_patient(self, patient_id: str) -> bool:
        async with self._write_lock:
            if not await self.store.delete(patient_id):
                logger.warning(f"Store rejected delete of patient {patient_id}.")
                return False
            self._replace_snapshot(tuple(p for p in self._patients if p.id != patient_id))
            return True

    async def import_database(self, json_text: str) -> bool:
        """
        Replace the whole registry with a JSON backup (an array of records).

        Records without an id get a fresh one; no other derivation happens.

        Raises:
            MalformedImportError: text is not JSON, not an array, or holds invalid records
        """
        patients = parse_backup(json_text)

        async with self._write_lock:
            taken = {p.id for p in patients if p.id}
            for index, patient in enumerate(patients):
                if not patient.id:
                    new_id = generate_patient_id(taken)
                    taken.add(new_id)
                    patients[index] = patient.model_copy(update={"id": new_id})

            if not await self.store.save_all(patients):
                logger.warning("Store rejected import; registry unchanged.")
                return False
            self._replace_snapshot(tuple(patients))
            logger.info(f"Imported {len(patients)} patient records.")
            return True

    # ------------------------------------------------------------------
    # Filter
    # ------------------------------------------------------------------
    def set_filter(self, key: str, value: Any) -> PatientFilter:
        self._criteria = with_criterion(self._criteria, key, value)
        return self._criteria

    def clear_filter(self) -> PatientFilter:
        self._criteria = clear_criteria()
        return self._criteria

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------
    def filtered_patients(self, criteria: Optional[PatientFilter] = None) -> list[Patient]:
        if criteria is None:
            criteria = self._criteria
        return filter_patients(self._patients, criteria)

    def registry_stats(self, criteria: Optional[PatientFilter] = None) -> RegistryStats:
        """
        KPI header. The registry-wide half is cached per snapshot version
        when Redis is available.
        """
        cache_key = stats_cache_key(self._instance, self._version)
        headline = get_cached_json(cache_key)
        if headline is None:
            headline = stats_service.headline_counts(self._patients)
            set_cached_json(cache_key, headline, ttl=get_settings().stats_cache_ttl_seconds)

        drilldown = stats_service.drilldown_counts(self.filtered_patients(criteria))
        return RegistryStats(**headline, **drilldown)

    def medication_stats(self, criteria: Optional[PatientFilter] = None) -> MedicationStats:
        return stats_service.calculate_medication_stats(self.filtered_patients(criteria))

    def opd_medication_stats(self) -> MedicationStats:
        return stats_service.calculate_opd_medication_stats(self._patients)


def parse_backup(json_text: str) -> list[Patient]:
    """
    Raises:
        MalformedImportError: text is not a JSON array of patient records,
            or two records carry the same id
    """
    try:
        data = json.loads(json_text)
    except json.JSONDecodeError as e:
        raise MalformedImportError(f"Import is not valid JSON: {e}") from e

    if not isinstance(data, list):
        raise MalformedImportError("Invalid JSON format: Expected an array.")

    try:
        patients = _patient_list.validate_python(data)
    except ValidationError as e:
        raise MalformedImportError(f"Import contains invalid patient records: {e}") from e

    seen: set[str] = set()
    duplicates = []
    for patient in patients:
        if not patient.id:
            continue
        if patient.id in seen:
            duplicates.append(patient.id)
        seen.add(patient.id)
    if duplicates:
        raise MalformedImportError(
            f"Import repeats patient id(s): {', '.join(sorted(set(duplicates)))}"
        )
    return patients
