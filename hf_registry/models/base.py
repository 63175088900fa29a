# hf_registry/models/base.py
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """
    Declarative base for the registry tables.

    alembic/env.py autogenerates against Base.metadata, so every model
    module must be imported there.
    """

    pass
