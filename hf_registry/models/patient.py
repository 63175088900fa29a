# hf_registry/models/patient.py
from datetime import datetime

from sqlalchemy import JSON, DateTime, Integer, String, text
from sqlalchemy.orm import Mapped, mapped_column

from hf_registry.models.base import Base
from hf_registry.utils.datetime_utils import utc_now


class PatientRecord(Base):
    """
    Persisted registry entry.

    NOTE:
    - The finalized record is stored whole in `payload` (camelCase JSON).
    - `hn` and `status` are copied out for look-ups; they are never
      the source of truth.
    - `position` orders the collection newest first; an update keeps
      the row where it is.
    """

    __tablename__ = "hf_patients"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)

    hn: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    status: Mapped[str] = mapped_column(String(3), nullable=False, index=True)
    position: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default=text("0"), index=True
    )

    payload: Mapped[dict] = mapped_column(
        JSON,
        nullable=False,
        doc="Full patient record as produced by Patient.model_dump(by_alias=True)",
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=text("CURRENT_TIMESTAMP"),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=text("CURRENT_TIMESTAMP"),
        onupdate=utc_now,
    )
