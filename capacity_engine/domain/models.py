"""Domain models returned by the capacity analytics services."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Optional


@dataclass(frozen=True)
class DepartmentUtilization:
    department: str
    utilization: float
    available: float
    committed: float


@dataclass(frozen=True)
class SkillUtilization:
    skill: str
    utilization: float
    available_resources: int


@dataclass(frozen=True)
class UtilizationSnapshot:
    period: str
    overall: float
    by_department: list[DepartmentUtilization]
    by_skill: list[SkillUtilization]
    is_fallback: bool = False


@dataclass(frozen=True)
class CapacityTrendPoint:
    period: str
    utilization: float
    capacity: float
    demand: float


@dataclass(frozen=True)
class TrendEstimate:
    slope: float
    intercept: float
    r_squared: float
    periods: int


@dataclass(frozen=True)
class Bottleneck:
    type: str
    affected_resource: str
    severity: str
    impact: float
    affected_projects: list[int]
    estimated_duration: int
    root_causes: list[str]
    recommended_actions: list[str]
    status: str
    bottleneck_id: Optional[int] = None


@dataclass(frozen=True)
class BottleneckReport:
    current: list[Bottleneck]
    predicted: list[Bottleneck]
    historical: list[Bottleneck]


@dataclass(frozen=True)
class ScenarioChange:
    type: str
    details: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class DepartmentImpact:
    department: str
    capacity_change: float
    demand_change: float
    baseline_utilization: float
    new_utilization: float
    utilization_change: float


@dataclass(frozen=True)
class CapacityImpact:
    total_capacity_change: float
    total_demand_change: float
    baseline_utilization: float
    new_overall_utilization: float
    department_impacts: list[DepartmentImpact]


@dataclass(frozen=True)
class BottleneckAnalysis:
    new_bottlenecks: list[Bottleneck]
    resolved_bottlenecks: list[Bottleneck]
    impact_summary: str


@dataclass(frozen=True)
class CapacityRecommendation:
    type: str
    priority: str
    title: str
    description: str
    expected_impact: float
    cost: float
    time_to_implement: str
    success_metrics: list[str]


@dataclass(frozen=True)
class RiskEntry:
    risk: str
    probability: float
    impact: str
    mitigation: str


@dataclass(frozen=True)
class RiskAssessment:
    risk_level: str
    risks: list[RiskEntry]


@dataclass(frozen=True)
class ScenarioResult:
    scenario_id: str
    capacity_impact: CapacityImpact
    bottleneck_analysis: BottleneckAnalysis
    recommendations: list[CapacityRecommendation]
    risk_assessment: RiskAssessment
    warnings: list[str]
    estimated_cost: Optional[float] = None


@dataclass(frozen=True)
class CapacityPrediction:
    scenario: str
    period: str
    predicted_capacity: float
    predicted_demand: float
    predicted_utilization: float
    confidence: float
    key_factors: list[str]
    is_fallback: bool = False


@dataclass(frozen=True)
class DemandForecastPoint:
    period: str
    predicted_demand: float
    lower_bound: float
    upper_bound: float
    confidence: float


@dataclass(frozen=True)
class DemandForecast:
    points: list[DemandForecastPoint]
    trend: TrendEstimate
    trend_direction: str
    overall_confidence: float
    seasonal_adjustment: bool


@dataclass(frozen=True)
class MonthlyAverage:
    month: int
    month_name: str
    average: float


@dataclass(frozen=True)
class SeasonalityResult:
    has_seasonality: bool
    peak_months: list[str]
    low_months: list[str]
    seasonality_strength: float
    monthly_averages: list[MonthlyAverage]


@dataclass(frozen=True)
class UtilizationAnomaly:
    period: str
    actual_utilization: float
    expected_utilization: float
    deviation: float
    possible_causes: list[str]


@dataclass(frozen=True)
class PeriodUtilization:
    period: str
    utilization_rate: float


@dataclass(frozen=True)
class UtilizationPatterns:
    peak_periods: list[PeriodUtilization]
    low_periods: list[PeriodUtilization]
    average_utilization: float


@dataclass(frozen=True)
class UtilizationTrend:
    direction: str
    slope: float
    rate: float
    r_squared: float
    periods: int


@dataclass(frozen=True)
class PatternAnalysis:
    period: str
    granularity: str
    patterns: UtilizationPatterns
    seasonality: SeasonalityResult
    trends: UtilizationTrend
    anomalies: list[UtilizationAnomaly]
    insufficient_data: bool = False


@dataclass(frozen=True)
class SkillDemandForecast:
    skill: str
    current_supply: int
    forecasted_demand: int
    gap: int
    confidence: float
    trend_direction: str
    trend_source: str


@dataclass(frozen=True)
class SkillGap:
    skill: str
    gap: int
    severity: str
    time_to_fill: int
    business_impact: str


@dataclass(frozen=True)
class HiringRecommendation:
    skill: str
    recommended_hires: int
    urgency: str
    justification: str
    estimated_cost: float


@dataclass(frozen=True)
class TrainingRecommendation:
    skill: str
    priority: str
    candidate_employees: int
    candidate_ids: list[int]
    candidate_source: str
    training_weeks: int
    estimated_cost: float


@dataclass(frozen=True)
class SkillForecastResult:
    horizon: str
    skill_demand: list[SkillDemandForecast]
    skill_gaps: list[SkillGap]
    hiring_recommendations: list[HiringRecommendation]
    training_recommendations: list[TrainingRecommendation]


@dataclass(frozen=True)
class OptimizationSuggestion:
    type: str
    employee_id: int
    project_id: int
    adjustment: Optional[float]
    reason: str
    expected_improvement: float
    confidence: float
    risk_level: str


@dataclass(frozen=True)
class OptimizationRisk:
    type: str
    severity: str
    description: str
    probability: float


@dataclass(frozen=True)
class OptimizationRiskAssessment:
    overall_risk: str
    risks: list[OptimizationRisk]
    mitigation_strategies: list[str]


@dataclass(frozen=True)
class ImplementationPhase:
    phase: int
    name: str
    duration: str
    actions: list[str]


@dataclass(frozen=True)
class ImplementationPlan:
    phases: list[ImplementationPhase]
    timeline: str
    dependencies: list[str]


@dataclass(frozen=True)
class OptimizationResult:
    suggestions: list[OptimizationSuggestion]
    expected_improvement: float
    risk_assessment: OptimizationRiskAssessment
    implementation: ImplementationPlan


@dataclass(frozen=True)
class RiskFactor:
    factor: str
    level: str
    description: str
    mitigation: str


@dataclass(frozen=True)
class CapacityIntelligenceReport:
    generated_at: str
    department: Optional[str]
    timeframe: str
    current_utilization: UtilizationSnapshot
    capacity_trends: list[CapacityTrendPoint]
    bottleneck_analysis: BottleneckReport
    predictions: list[CapacityPrediction]
    recommendations: list[CapacityRecommendation]
    risk_factors: list[RiskFactor]
    degraded_sections: list[str]
