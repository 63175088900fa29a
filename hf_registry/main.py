import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from hf_registry.api.v1.router import api_router
from hf_registry.core.config import get_settings
from hf_registry.services.patient_store import SqlPatientStore
from hf_registry.services.registry_service import PatientRegistry

settings = get_settings()
logger = logging.getLogger(__name__)


def _default_registry() -> PatientRegistry:
    from hf_registry.core.database import SessionLocal, engine
    from hf_registry.models.base import Base

    # Ensure the patients table exists (migrations own it outside local setups)
    Base.metadata.create_all(bind=engine)
    return PatientRegistry(SqlPatientStore(SessionLocal))


def create_app(registry: Optional[PatientRegistry] = None) -> FastAPI:
    """
    Build the API. Tests pass their own registry (usually over an in-memory store).
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if app.state.registry is None:
            app.state.registry = _default_registry()
        # Startup: load the current snapshot
        if not await app.state.registry.load():
            logger.error("Initial patient load failed; starting with an empty registry.")
        yield

    app = FastAPI(
        title="Heart Failure Registry Backend",
        lifespan=lifespan,
    )
    app.state.registry = registry

    @app.get("/health", tags=["health"])
    async def root_health() -> dict:
        """
        Global health check endpoint.
        """
        return {"status": "ok"}

    # Mount versioned API router
    app.include_router(api_router, prefix=settings.api_v1_prefix)
    return app


logging.basicConfig(level=settings.log_level)
app = create_app()
