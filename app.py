"""
Application factory: wires the repository and analytics services.

This is the ASGI application object imported by uvicorn.
It wires the data repository and every analytics service, registers the
capacity router, and runs startup initialization.

Usage (via launcher):
    python main.py

Usage (direct uvicorn):
    uvicorn app:app --reload
"""

from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI

from capacity_engine.controllers.capacity_controller import router as capacity_router
from capacity_engine.repository.data_repository import DataRepository
from capacity_engine.services.bottleneck_service import BottleneckService
from capacity_engine.services.forecast_service import CapacityForecastService
from capacity_engine.services.intelligence_service import CapacityIntelligenceService
from capacity_engine.services.optimization_service import OptimizationService
from capacity_engine.services.pattern_service import PatternAnalysisService
from capacity_engine.services.scenario_service import ScenarioService
from capacity_engine.services.skill_service import SkillForecastService
from capacity_engine.services.utilization_service import UtilizationService
from capacity_engine.utils.config import Settings, get_settings
from capacity_engine.utils.logger import get_logger


logger = get_logger(__name__)


def create_app(settings: Settings | None = None) -> FastAPI:
    """
    Build and wire the FastAPI application.

    Every service receives the same repository instance through its
    constructor and is exposed on app.state for dependency resolution.
    """
    settings = settings or get_settings()

    # --- Repository (single SQLite connection factory) ---
    repository = DataRepository(settings)

    # --- Services (analytics logic, reads go through the gateway protocol) ---
    utilization_service = UtilizationService(gateway=repository, settings=settings)
    bottleneck_service = BottleneckService(gateway=repository, settings=settings)
    forecast_service = CapacityForecastService(gateway=repository, settings=settings)
    skill_service = SkillForecastService(gateway=repository, settings=settings)
    pattern_service = PatternAnalysisService(gateway=repository, settings=settings)
    optimization_service = OptimizationService(gateway=repository, settings=settings)
    scenario_service = ScenarioService(
        gateway=repository,
        settings=settings,
        utilization_service=utilization_service,
        bottleneck_service=bottleneck_service,
    )
    intelligence_service = CapacityIntelligenceService(
        gateway=repository,
        settings=settings,
        utilization_service=utilization_service,
        bottleneck_service=bottleneck_service,
        forecast_service=forecast_service,
        skill_service=skill_service,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Run startup initialization before accepting requests."""
        _startup(app)
        yield

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        lifespan=lifespan,
    )

    app.include_router(capacity_router)

    app.state.repository = repository
    app.state.utilization_service = utilization_service
    app.state.bottleneck_service = bottleneck_service
    app.state.forecast_service = forecast_service
    app.state.skill_service = skill_service
    app.state.pattern_service = pattern_service
    app.state.optimization_service = optimization_service
    app.state.scenario_service = scenario_service
    app.state.intelligence_service = intelligence_service

    return app


def _startup(app: FastAPI) -> None:
    """
    Idempotent startup sequence. Safe to re-run on server restarts.

    Schema must exist before seeding; seeding is skipped when data exists.
    """
    repository: DataRepository = app.state.repository

    logger.info("Startup: initializing database schema")
    repository.initialize_database()

    logger.info("Startup: seeding synthetic capacity history")
    repository.seed_synthetic_data()

    logger.info("Startup complete, analytics engine ready")


# Module-level app object for uvicorn
app = create_app()
