from logging.config import fileConfig

from sqlalchemy import create_engine, pool
from alembic import context

from hf_registry.core.config import get_settings
from hf_registry.models.base import Base
from hf_registry.models import patient  # noqa: F401  (registers hf_patients)

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata

# The registry database is whatever DATABASE_URL the app runs against;
# alembic.ini carries no sqlalchemy.url of its own.
DATABASE_URL = get_settings().database_url


def _configure(**kwargs) -> None:
    context.configure(target_metadata=target_metadata, **kwargs)
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_offline() -> None:
    """Emit the migration SQL for DATABASE_URL without connecting."""
    _configure(
        url=DATABASE_URL,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        render_as_batch=DATABASE_URL.startswith("sqlite"),
    )


def run_migrations_online() -> None:
    engine = create_engine(DATABASE_URL, future=True, poolclass=pool.NullPool)
    with engine.connect() as connection:
        # SQLite cannot ALTER most columns in place; batch mode copies the table
        _configure(
            connection=connection,
            compare_type=True,
            render_as_batch=connection.dialect.name == "sqlite",
        )


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
