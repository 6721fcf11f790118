"""HTTP controller layer for capacity analytics."""

from __future__ import annotations

from dataclasses import asdict
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from capacity_engine.controllers.dependencies import (
    get_bottleneck_service,
    get_forecast_service,
    get_intelligence_service,
    get_optimization_service,
    get_pattern_service,
    get_scenario_service,
    get_skill_service,
)
from capacity_engine.controllers.schemas import (
    BottleneckReportResponse,
    CapacityIntelligenceResponse,
    CapacityPredictionResponse,
    DemandForecastResponse,
    OptimizationResponse,
    OptimizeRequest,
    PatternAnalysisResponse,
    ScenarioRequest,
    ScenarioResultResponse,
    SkillForecastResponse,
)
from capacity_engine.domain.errors import AnalyticsValidationError, InsufficientDataError
from capacity_engine.domain.models import ScenarioChange
from capacity_engine.repository.gateway import AllocationRecord, GatewayError
from capacity_engine.services.bottleneck_service import BottleneckService
from capacity_engine.services.forecast_service import CapacityForecastService
from capacity_engine.services.intelligence_service import CapacityIntelligenceService
from capacity_engine.services.optimization_service import OptimizationService
from capacity_engine.services.pattern_service import PatternAnalysisService
from capacity_engine.services.scenario_service import AnalysisOptions, ScenarioService
from capacity_engine.services.skill_service import SkillForecastService
from capacity_engine.utils.logger import get_logger


logger = get_logger(__name__)

router = APIRouter(prefix="/capacity", tags=["capacity"])


def _bad_request(exc: Exception) -> HTTPException:
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))


def _gateway_unavailable(exc: Exception) -> HTTPException:
    return HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc))


@router.get(
    "/intelligence",
    response_model=CapacityIntelligenceResponse,
    status_code=status.HTTP_200_OK,
)
async def get_capacity_intelligence(
    department: Optional[str] = Query(default=None),
    timeframe: Optional[str] = Query(default=None),
    service: CapacityIntelligenceService = Depends(get_intelligence_service),
) -> CapacityIntelligenceResponse:
    """Full report; sections that could not be read are listed in degraded_sections."""
    try:
        report = await service.get_capacity_intelligence(department=department, timeframe=timeframe)
        return CapacityIntelligenceResponse(**asdict(report))
    except AnalyticsValidationError as exc:
        raise _bad_request(exc) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected capacity intelligence failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to build capacity intelligence report",
        ) from exc


@router.get(
    "/predictions",
    response_model=list[CapacityPredictionResponse],
    status_code=status.HTTP_200_OK,
)
async def get_capacity_predictions(
    horizon: Optional[str] = Query(default=None),
    scenarios: list[str] = Query(default=["realistic"]),
    service: CapacityForecastService = Depends(get_forecast_service),
) -> list[CapacityPredictionResponse]:
    try:
        predictions = await service.get_capacity_predictions(horizon=horizon, scenarios=scenarios)
        return [CapacityPredictionResponse(**asdict(item)) for item in predictions]
    except AnalyticsValidationError as exc:
        raise _bad_request(exc) from exc
    except GatewayError as exc:
        raise _gateway_unavailable(exc) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected capacity prediction failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to generate capacity predictions",
        ) from exc


@router.get(
    "/demand-forecast",
    response_model=DemandForecastResponse,
    status_code=status.HTTP_200_OK,
)
async def forecast_demand(
    periods: int = Query(default=6, ge=1, le=24),
    service: CapacityForecastService = Depends(get_forecast_service),
) -> DemandForecastResponse:
    try:
        forecast = await service.forecast_demand(periods=periods)
        return DemandForecastResponse(**asdict(forecast))
    except InsufficientDataError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=str(exc),
        ) from exc
    except GatewayError as exc:
        raise _gateway_unavailable(exc) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected demand forecast failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to forecast demand",
        ) from exc


@router.get(
    "/bottlenecks",
    response_model=BottleneckReportResponse,
    status_code=status.HTTP_200_OK,
)
async def identify_bottlenecks(
    severity: Optional[str] = Query(default=None),
    service: BottleneckService = Depends(get_bottleneck_service),
) -> BottleneckReportResponse:
    try:
        report = await service.identify_bottlenecks(severity=severity)
        return BottleneckReportResponse(**asdict(report))
    except AnalyticsValidationError as exc:
        raise _bad_request(exc) from exc
    except GatewayError as exc:
        raise _gateway_unavailable(exc) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected bottleneck analysis failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to identify bottlenecks",
        ) from exc


@router.post(
    "/scenarios",
    response_model=ScenarioResultResponse,
    status_code=status.HTTP_200_OK,
)
async def run_scenario_analysis(
    payload: ScenarioRequest,
    service: ScenarioService = Depends(get_scenario_service),
) -> ScenarioResultResponse:
    """Simulate in memory; nothing is written back to the data store."""
    try:
        result = await service.run_scenario_analysis(
            changes=[ScenarioChange(type=item.type, details=item.details) for item in payload.changes],
            analysis_options=AnalysisOptions(cost_impact=payload.analysis_options.cost_impact),
        )
        return ScenarioResultResponse(**asdict(result))
    except AnalyticsValidationError as exc:
        raise _bad_request(exc) from exc
    except GatewayError as exc:
        raise _gateway_unavailable(exc) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected scenario simulation failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to run scenario analysis",
        ) from exc


@router.get(
    "/utilization-patterns",
    response_model=PatternAnalysisResponse,
    status_code=status.HTTP_200_OK,
)
async def analyze_utilization_patterns(
    period: Optional[str] = Query(default=None),
    granularity: str = Query(default="monthly"),
    service: PatternAnalysisService = Depends(get_pattern_service),
) -> PatternAnalysisResponse:
    try:
        analysis = await service.analyze_utilization_patterns(period=period, granularity=granularity)
        return PatternAnalysisResponse(**asdict(analysis))
    except AnalyticsValidationError as exc:
        raise _bad_request(exc) from exc
    except GatewayError as exc:
        raise _gateway_unavailable(exc) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected pattern analysis failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to analyze utilization patterns",
        ) from exc


@router.get(
    "/skill-demand",
    response_model=SkillForecastResponse,
    status_code=status.HTTP_200_OK,
)
async def forecast_skill_demand(
    horizon: Optional[str] = Query(default=None),
    service: SkillForecastService = Depends(get_skill_service),
) -> SkillForecastResponse:
    try:
        result = await service.forecast_skill_demand(horizon=horizon)
        return SkillForecastResponse(**asdict(result))
    except AnalyticsValidationError as exc:
        raise _bad_request(exc) from exc
    except GatewayError as exc:
        raise _gateway_unavailable(exc) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected skill demand failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to forecast skill demand",
        ) from exc


@router.post(
    "/optimize",
    response_model=OptimizationResponse,
    status_code=status.HTTP_200_OK,
)
async def optimize_allocation(
    payload: OptimizeRequest,
    service: OptimizationService = Depends(get_optimization_service),
) -> OptimizationResponse:
    """Evaluate the posted allocations, or the upcoming ones when none are posted."""
    try:
        records = [
            AllocationRecord(
                employee_id=item.employee_id,
                project_id=item.project_id,
                allocated_hours=item.allocated_hours,
                default_hours=item.default_hours,
                employee_skills=tuple(item.employee_skills),
                required_skills=tuple(item.required_skills),
                department=item.department,
            )
            for item in payload.allocations
        ]
        result = await service.optimize_allocation(allocations=records)
        return OptimizationResponse(**asdict(result))
    except AnalyticsValidationError as exc:
        raise _bad_request(exc) from exc
    except GatewayError as exc:
        raise _gateway_unavailable(exc) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected allocation optimization failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to optimize allocations",
        ) from exc
