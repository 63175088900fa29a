# hf_registry/services/patient_store.py
"""
Persistence for finalized patient records.

The registry only talks to the PatientStore interface. Every operation
reports failure as a value (False / None) instead of raising, and the
registry does not advance its snapshot until the store has confirmed.
load_all() returns records in snapshot order: newest first, with an
updated record keeping its place.
"""

import logging
from abc import ABC, abstractmethod
from typing import Optional

from fastapi.concurrency import run_in_threadpool
from pydantic import ValidationError
from sqlalchemy import delete, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from hf_registry.models.patient import PatientRecord
from hf_registry.schemas.patient import Patient

logger = logging.getLogger(__name__)


class PatientStore(ABC):
    @abstractmethod
    async def load_all(self) -> Optional[list[Patient]]:
        """All stored records, or None if the store could not be read."""

    @abstractmethod
    async def save(self, patient: Patient) -> bool:
        """Insert or replace one finalized record."""

    @abstractmethod
    async def delete(self, patient_id: str) -> bool:
        """Remove one record."""

    @abstractmethod
    async def save_all(self, patients: list[Patient]) -> bool:
        """Replace the whole collection."""


class InMemoryPatientStore(PatientStore):
    """
    Dictionary-backed store for local development and tests.
    Set `fail = True` to make every operation report failure.
    """

    def __init__(self, patients: Optional[list[Patient]] = None):
        self._records: dict[str, dict] = {}
        self.fail = False
        for patient in patients or []:
            self._records[patient.id] = patient.to_json_dict()

    async def load_all(self) -> Optional[list[Patient]]:
        if self.fail:
            return None
        return [Patient.model_validate(data) for data in self._records.values()]

    async def save(self, patient: Patient) -> bool:
        if self.fail:
            return False
        if patient.id in self._records:
            self._records[patient.id] = patient.to_json_dict()
        else:
            self._records = {patient.id: patient.to_json_dict(), **self._records}
        return True

    async def delete(self, patient_id: str) -> bool:
        if self.fail:
            return False
        self._records.pop(patient_id, None)
        return True

    async def save_all(self, patients: list[Patient]) -> bool:
        if self.fail:
            return False
        self._records = {p.id: p.to_json_dict() for p in patients}
        return True


def _to_row(patient: Patient, position: int) -> PatientRecord:
    return PatientRecord(
        id=patient.id,
        hn=patient.hn,
        status=patient.status.value,
        position=position,
        payload=patient.to_json_dict(),
    )


class SqlPatientStore(PatientStore):
    """
    SQLAlchemy-backed store (table `hf_patients`).

    Session work is blocking, so each call runs in the threadpool.
    """

    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    async def load_all(self) -> Optional[list[Patient]]:
        return await run_in_threadpool(self._load_all)

    async def save(self, patient: Patient) -> bool:
        return await run_in_threadpool(self._save, patient)

    async def delete(self, patient_id: str) -> bool:
        return await run_in_threadpool(self._delete, patient_id)

    async def save_all(self, patients: list[Patient]) -> bool:
        return await run_in_threadpool(self._save_all, patients)

    def _load_all(self) -> Optional[list[Patient]]:
        db: Session = self._session_factory()
        try:
            rows = db.scalars(
                select(PatientRecord).order_by(
                    PatientRecord.position.desc(), PatientRecord.id
                )
            ).all()
            return [Patient.model_validate(row.payload) for row in rows]
        except SQLAlchemyError as e:
            logger.error(f"Could not load patients: {e}", exc_info=True)
            return None
        except ValidationError as e:
            logger.error(f"Stored patient payload is not a valid record: {e}")
            return None
        finally:
            db.close()

    def _save(self, patient: Patient) -> bool:
        db: Session = self._session_factory()
        try:
            row = db.get(PatientRecord, patient.id)
            if row is None:
                top = db.scalar(select(func.max(PatientRecord.position))) or 0
                db.add(_to_row(patient, position=top + 1))
            else:
                row.hn = patient.hn
                row.status = patient.status.value
                row.payload = patient.to_json_dict()
            db.commit()
            return True
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Could not save patient {patient.id}: {e}", exc_info=True)
            return False
        finally:
            db.close()

    def _delete(self, patient_id: str) -> bool:
        db: Session = self._session_factory()
        try:
            db.execute(delete(PatientRecord).where(PatientRecord.id == patient_id))
            db.commit()
            return True
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Could not delete patient {patient_id}: {e}", exc_info=True)
            return False
        finally:
            db.close()

    def _save_all(self, patients: list[Patient]) -> bool:
        db: Session = self._session_factory()
        try:
            db.execute(delete(PatientRecord))
            # first item of the list is the newest
            db.add_all(
                [_to_row(p, position=len(patients) - i) for i, p in enumerate(patients)]
            )
            db.commit()
            return True
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Could not replace patient collection: {e}", exc_info=True)
            return False
        finally:
            db.close()
