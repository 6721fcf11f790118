"""Request and response DTOs for the capacity analytics endpoints."""

from __future__ import annotations

from typing import Any, Literal, Optional

from pydantic import BaseModel, Field


Severity = Literal["low", "medium", "high", "critical"]
RiskLevel = Literal["low", "medium", "high"]
TrendDirection = Literal["increasing", "decreasing", "stable"]


class ScenarioChangeRequest(BaseModel):
    """Change types outside the known set are accepted and reported as warnings."""

    type: str = Field(min_length=1)
    details: dict[str, Any] = Field(default_factory=dict)


class AnalysisOptionsRequest(BaseModel):
    cost_impact: bool = False


class ScenarioRequest(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    changes: list[ScenarioChangeRequest] = Field(default_factory=list)
    analysis_options: AnalysisOptionsRequest = Field(default_factory=AnalysisOptionsRequest)


class AllocationRecordRequest(BaseModel):
    employee_id: int = Field(gt=0)
    project_id: int = Field(gt=0)
    allocated_hours: float = Field(ge=0.0)
    default_hours: float = Field(ge=0.0)
    employee_skills: list[str] = Field(default_factory=list)
    required_skills: list[str] = Field(default_factory=list)
    department: Optional[str] = None


class OptimizeRequest(BaseModel):
    allocations: list[AllocationRecordRequest] = Field(default_factory=list)


class DepartmentUtilizationResponse(BaseModel):
    department: str
    utilization: float = Field(ge=0.0, le=100.0)
    available: float = Field(ge=0.0)
    committed: float = Field(ge=0.0)


class SkillUtilizationResponse(BaseModel):
    skill: str
    utilization: float = Field(ge=0.0, le=100.0)
    available_resources: int = Field(ge=0)


class UtilizationSnapshotResponse(BaseModel):
    period: str
    overall: float = Field(ge=0.0, le=100.0)
    by_department: list[DepartmentUtilizationResponse]
    by_skill: list[SkillUtilizationResponse]
    is_fallback: bool


class CapacityTrendPointResponse(BaseModel):
    period: str
    utilization: float
    capacity: float
    demand: float


class BottleneckResponse(BaseModel):
    type: Literal["skill", "department", "resource", "time"]
    affected_resource: str
    severity: Severity
    impact: float = Field(ge=0.0, le=100.0)
    affected_projects: list[int]
    estimated_duration: int = Field(ge=0)
    root_causes: list[str]
    recommended_actions: list[str]
    status: Literal["active", "predicted", "resolved"]
    bottleneck_id: Optional[int] = None


class BottleneckReportResponse(BaseModel):
    current: list[BottleneckResponse]
    predicted: list[BottleneckResponse]
    historical: list[BottleneckResponse]


class CapacityRecommendationResponse(BaseModel):
    type: str
    priority: str
    title: str
    description: str
    expected_impact: float
    cost: float = Field(ge=0.0)
    time_to_implement: str
    success_metrics: list[str]


class CapacityPredictionResponse(BaseModel):
    scenario: str
    period: str
    predicted_capacity: float
    predicted_demand: float
    predicted_utilization: float
    confidence: float = Field(ge=0.0, le=100.0)
    key_factors: list[str]
    is_fallback: bool


class RiskFactorResponse(BaseModel):
    factor: str
    level: RiskLevel
    description: str
    mitigation: str


class CapacityIntelligenceResponse(BaseModel):
    generated_at: str
    department: Optional[str]
    timeframe: str
    current_utilization: UtilizationSnapshotResponse
    capacity_trends: list[CapacityTrendPointResponse]
    bottleneck_analysis: BottleneckReportResponse
    predictions: list[CapacityPredictionResponse]
    recommendations: list[CapacityRecommendationResponse]
    risk_factors: list[RiskFactorResponse]
    degraded_sections: list[str]


class DepartmentImpactResponse(BaseModel):
    department: str
    capacity_change: float
    demand_change: float
    baseline_utilization: float
    new_utilization: float = Field(ge=0.0, le=100.0)
    utilization_change: float


class CapacityImpactResponse(BaseModel):
    total_capacity_change: float
    total_demand_change: float
    baseline_utilization: float
    new_overall_utilization: float = Field(ge=0.0, le=100.0)
    department_impacts: list[DepartmentImpactResponse]


class BottleneckAnalysisResponse(BaseModel):
    new_bottlenecks: list[BottleneckResponse]
    resolved_bottlenecks: list[BottleneckResponse]
    impact_summary: str


class RiskEntryResponse(BaseModel):
    risk: str
    probability: float = Field(ge=0.0, le=1.0)
    impact: str
    mitigation: str


class RiskAssessmentResponse(BaseModel):
    risk_level: Literal["medium", "high", "critical"]
    risks: list[RiskEntryResponse]


class ScenarioResultResponse(BaseModel):
    scenario_id: str
    capacity_impact: CapacityImpactResponse
    bottleneck_analysis: BottleneckAnalysisResponse
    recommendations: list[CapacityRecommendationResponse]
    risk_assessment: RiskAssessmentResponse
    warnings: list[str]
    estimated_cost: Optional[float] = None


class MonthlyAverageResponse(BaseModel):
    month: int = Field(ge=1, le=12)
    month_name: str
    average: float


class SeasonalityResponse(BaseModel):
    has_seasonality: bool
    peak_months: list[str]
    low_months: list[str]
    seasonality_strength: float = Field(ge=0.0)
    monthly_averages: list[MonthlyAverageResponse]


class PeriodUtilizationResponse(BaseModel):
    period: str
    utilization_rate: float


class UtilizationPatternsResponse(BaseModel):
    peak_periods: list[PeriodUtilizationResponse]
    low_periods: list[PeriodUtilizationResponse]
    average_utilization: float


class UtilizationTrendResponse(BaseModel):
    direction: TrendDirection
    slope: float
    rate: float = Field(ge=0.0)
    r_squared: float = Field(ge=0.0, le=1.0)
    periods: int = Field(ge=0)


class UtilizationAnomalyResponse(BaseModel):
    period: str
    actual_utilization: float
    expected_utilization: float
    deviation: float = Field(ge=0.0)
    possible_causes: list[str]


class PatternAnalysisResponse(BaseModel):
    period: str
    granularity: Literal["monthly", "weekly"]
    patterns: UtilizationPatternsResponse
    seasonality: SeasonalityResponse
    trends: UtilizationTrendResponse
    anomalies: list[UtilizationAnomalyResponse]
    insufficient_data: bool


class SkillDemandResponse(BaseModel):
    skill: str
    current_supply: int = Field(ge=0)
    forecasted_demand: int = Field(ge=0)
    gap: int = Field(ge=0)
    confidence: float = Field(ge=0.0, le=1.0)
    trend_direction: TrendDirection
    trend_source: Literal["regression", "category_heuristic"]


class SkillGapResponse(BaseModel):
    skill: str
    gap: int = Field(gt=0)
    severity: Severity
    time_to_fill: int = Field(ge=4)
    business_impact: str


class HiringRecommendationResponse(BaseModel):
    skill: str
    recommended_hires: int = Field(gt=0)
    urgency: Severity
    justification: str
    estimated_cost: float = Field(ge=0.0)


class TrainingRecommendationResponse(BaseModel):
    skill: str
    priority: Severity
    candidate_employees: int = Field(ge=0)
    candidate_ids: list[int]
    candidate_source: Literal["matched", "sizing_heuristic"]
    training_weeks: int = Field(gt=0)
    estimated_cost: float = Field(ge=0.0)


class SkillForecastResponse(BaseModel):
    horizon: str
    skill_demand: list[SkillDemandResponse]
    skill_gaps: list[SkillGapResponse]
    hiring_recommendations: list[HiringRecommendationResponse]
    training_recommendations: list[TrainingRecommendationResponse]


class OptimizationSuggestionResponse(BaseModel):
    type: Literal["capacity_adjustment", "reassignment"]
    employee_id: int
    project_id: int
    adjustment: Optional[float] = None
    reason: str
    expected_improvement: float
    confidence: float = Field(ge=0.0, le=1.0)
    risk_level: RiskLevel


class OptimizationRiskResponse(BaseModel):
    type: str
    severity: RiskLevel
    description: str
    probability: float = Field(ge=0.0, le=1.0)


class OptimizationRiskAssessmentResponse(BaseModel):
    overall_risk: RiskLevel
    risks: list[OptimizationRiskResponse]
    mitigation_strategies: list[str]


class ImplementationPhaseResponse(BaseModel):
    phase: int = Field(ge=1, le=3)
    name: str
    duration: str
    actions: list[str] = Field(min_length=1)


class ImplementationPlanResponse(BaseModel):
    phases: list[ImplementationPhaseResponse]
    timeline: str
    dependencies: list[str]


class OptimizationResponse(BaseModel):
    suggestions: list[OptimizationSuggestionResponse]
    expected_improvement: float
    risk_assessment: OptimizationRiskAssessmentResponse
    implementation: ImplementationPlanResponse


class TrendEstimateResponse(BaseModel):
    slope: float
    intercept: float
    r_squared: float = Field(ge=0.0, le=1.0)
    periods: int = Field(ge=0)


class DemandForecastPointResponse(BaseModel):
    period: str
    predicted_demand: float
    lower_bound: float = Field(ge=0.0)
    upper_bound: float
    confidence: float = Field(ge=0.5, le=1.0)


class DemandForecastResponse(BaseModel):
    points: list[DemandForecastPointResponse]
    trend: TrendEstimateResponse
    trend_direction: TrendDirection
    overall_confidence: float = Field(ge=0.0, le=1.0)
    seasonal_adjustment: bool
