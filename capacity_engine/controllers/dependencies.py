"""Shared FastAPI dependency providers for controller layer."""

from __future__ import annotations

from fastapi import HTTPException, Request, status

from capacity_engine.services.bottleneck_service import BottleneckService
from capacity_engine.services.forecast_service import CapacityForecastService
from capacity_engine.services.intelligence_service import CapacityIntelligenceService
from capacity_engine.services.optimization_service import OptimizationService
from capacity_engine.services.pattern_service import PatternAnalysisService
from capacity_engine.services.scenario_service import ScenarioService
from capacity_engine.services.skill_service import SkillForecastService


def _service_unavailable(label: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail=f"{label} is not initialized",
    )


def get_intelligence_service(request: Request) -> CapacityIntelligenceService:
    service = getattr(request.app.state, "intelligence_service", None)
    if service is None:
        raise _service_unavailable("Capacity intelligence service")
    return service


def get_forecast_service(request: Request) -> CapacityForecastService:
    service = getattr(request.app.state, "forecast_service", None)
    if service is None:
        raise _service_unavailable("Forecast service")
    return service


def get_bottleneck_service(request: Request) -> BottleneckService:
    service = getattr(request.app.state, "bottleneck_service", None)
    if service is None:
        raise _service_unavailable("Bottleneck service")
    return service


def get_scenario_service(request: Request) -> ScenarioService:
    service = getattr(request.app.state, "scenario_service", None)
    if service is None:
        raise _service_unavailable("Scenario service")
    return service


def get_pattern_service(request: Request) -> PatternAnalysisService:
    service = getattr(request.app.state, "pattern_service", None)
    if service is None:
        raise _service_unavailable("Pattern analysis service")
    return service


def get_skill_service(request: Request) -> SkillForecastService:
    service = getattr(request.app.state, "skill_service", None)
    if service is None:
        raise _service_unavailable("Skill forecast service")
    return service


def get_optimization_service(request: Request) -> OptimizationService:
    service = getattr(request.app.state, "optimization_service", None)
    if service is None:
        raise _service_unavailable("Optimization service")
    return service
