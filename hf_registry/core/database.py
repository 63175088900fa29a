from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from hf_registry.core.config import get_settings

settings = get_settings()


def _connect_args(database_url: str) -> dict:
    # SQLite connections are handed across threadpool workers
    if database_url.startswith("sqlite"):
        return {"check_same_thread": False}
    return {}


# Main SQLAlchemy engine
engine = create_engine(
    str(settings.database_url),
    future=True,
    pool_pre_ping=True,
    connect_args=_connect_args(str(settings.database_url)),
)

# Session factory
SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
    future=True,
)
