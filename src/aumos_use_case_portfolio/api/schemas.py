"""Pydantic request/response schemas for the use-case portfolio API.

All API inputs and outputs are strictly typed Pydantic v2 models. Response
models read engine results through ``from_attributes`` so no raw dicts are
returned from any endpoint.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, StrictInt

from aumos_use_case_portfolio.core.governance import GateState, UseCaseAttributes
from aumos_use_case_portfolio.core.scoring import Quadrant, ScoreOverride
from aumos_use_case_portfolio.core.services.evaluation_service import UseCaseEvaluationInput
from aumos_use_case_portfolio.core.value import InvestmentData


class _DomainModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)


# ---------------------------------------------------------------------------
# Inputs
# ---------------------------------------------------------------------------


class LeverScoresSchema(BaseModel):
    """Lever scores, 1-5 integers. Absent levers are left as None.

    Range checks happen in the engine so every offending lever is reported
    in a single error list.
    """

    model_config = ConfigDict(extra="forbid")

    revenue_impact: StrictInt | None = None
    cost_savings: StrictInt | None = None
    risk_reduction: StrictInt | None = None
    partner_experience: StrictInt | None = None
    strategic_fit: StrictInt | None = None
    data_readiness: StrictInt | None = None
    technical_complexity: StrictInt | None = None
    change_impact: StrictInt | None = None
    model_risk: StrictInt | None = None
    adoption_readiness: StrictInt | None = None
    explainability_bias: StrictInt | None = None
    regulatory_compliance: StrictInt | None = None

    def present(self) -> dict[str, int]:
        return {name: value for name, value in self.model_dump().items() if value is not None}


class ScoreOverrideSchema(_DomainModel):
    manual_impact_score: float | None = None
    manual_effort_score: float | None = None
    manual_quadrant: Quadrant | None = None
    reason: str | None = None

    def to_domain(self) -> ScoreOverride:
        return ScoreOverride(
            manual_impact_score=self.manual_impact_score,
            manual_effort_score=self.manual_effort_score,
            manual_quadrant=self.manual_quadrant,
            reason=self.reason,
        )


class ScoreRequest(BaseModel):
    levers: LeverScoresSchema
    override: ScoreOverrideSchema | None = None


class UseCaseAttributesSchema(BaseModel):
    """Attributes of a use case as supplied by the calling application."""

    model_config = ConfigDict(extra="forbid")

    primary_business_owner: str | None = None
    business_function: str | None = None
    use_case_status: str | None = None
    deployment_status: str | None = None
    levers: LeverScoresSchema = Field(default_factory=LeverScoresSchema)
    explainability_required: bool | None = None
    customer_harm_risk: str | None = None
    human_accountability: bool | None = None
    data_outside_uk_eu: bool | None = None
    third_party_model: bool | None = None
    title: str | None = None
    description: str | None = None
    processes: list[str] = Field(default_factory=list)
    rai_risk_tier: str | None = None
    rai_questionnaire_complete: bool = False
    investment_cost: float | None = None
    selected_kpis: list[str] = Field(default_factory=list)
    created_at: datetime | None = None
    legacy_activation: bool = False

    def to_domain(self) -> UseCaseAttributes:
        data = self.model_dump(exclude={"levers", "processes", "selected_kpis"})
        return UseCaseAttributes(
            **data,
            levers=self.levers.present(),
            processes=tuple(self.processes),
            selected_kpis=tuple(self.selected_kpis),
        )

    def to_updates(self) -> dict[str, Any]:
        """Return only the explicitly supplied fields, converted to domain values.

        A supplied ``levers`` object replaces the whole lever set.
        """
        domain = self.to_domain()
        return {name: getattr(domain, name) for name in self.model_fields_set}


class InvestmentSchema(_DomainModel):
    initial_investment: float = Field(default=0.0, ge=0)
    ongoing_monthly_cost: float = Field(default=0.0, ge=0)
    currency: str = "GBP"


class UseCaseInputSchema(BaseModel):
    use_case_id: str = Field(..., min_length=1, max_length=200)
    attributes: UseCaseAttributesSchema
    override: ScoreOverrideSchema | None = None
    phase_override: str | None = None
    investment: InvestmentSchema | None = None
    realised_value: float | None = None

    def to_domain(self) -> UseCaseEvaluationInput:
        return UseCaseEvaluationInput(
            use_case_id=self.use_case_id,
            attributes=self.attributes.to_domain(),
            override=self.override.to_domain() if self.override else None,
            phase_override=self.phase_override,
            investment=(
                InvestmentData(**self.investment.model_dump()) if self.investment else None
            ),
            realised_value=self.realised_value,
        )


class ActivationCheckRequest(BaseModel):
    """Proposed status change, optionally with the attribute updates that go with it."""

    attributes: UseCaseAttributesSchema
    target_status: str = Field(..., min_length=1)
    updates: UseCaseAttributesSchema | None = Field(
        default=None,
        description="Attribute updates to check for governance regression",
    )


class PhaseTransitionRequest(BaseModel):
    from_phase_id: str | None = None
    to_phase_id: str | None = None
    justification: str | None = None


class PhaseRequest(BaseModel):
    attributes: UseCaseAttributesSchema
    phase_override: str | None = None
    transition: PhaseTransitionRequest | None = None


class ValueSummaryRequest(BaseModel):
    use_cases: list[UseCaseInputSchema] = Field(default_factory=list, max_length=5000)
    include_evaluations: bool = False


# ---------------------------------------------------------------------------
# Outputs
# ---------------------------------------------------------------------------


class ScoresSchema(_DomainModel):
    impact_score: float
    effort_score: float
    quadrant: Quadrant


class ScoreResultSchema(_DomainModel):
    """Computed and effective scores side by side.

    Attributes:
        computed: Scores derived from levers and weights.
        effective: Scores downstream consumers should use.
        override: The manual override, if any.
        has_override: True when any override value is set.
        discrepancies: Fields where effective differs from computed.
        threshold: Quadrant threshold used.
    """

    computed: ScoresSchema
    effective: ScoresSchema
    override: ScoreOverrideSchema | None
    has_override: bool
    discrepancies: list[str]
    threshold: float


class SizeConditionSchema(_DomainModel):
    impact_min: float | None
    impact_max: float | None
    effort_min: float | None
    effort_max: float | None


class SizingRuleSchema(_DomainModel):
    name: str
    condition: SizeConditionSchema
    target_size: str
    priority: int


class CostSchema(_DomainModel):
    amount: float
    currency: str
    labour_cost: float
    overhead_multiplier: float


class BenefitSchema(_DomainModel):
    low: float
    high: float
    base: float
    currency: str


class SizeEstimateSchema(_DomainModel):
    size: str
    matched_rule: SizingRuleSchema
    cost: CostSchema
    benefit: BenefitSchema
    min_weeks: int | None
    max_weeks: int | None
    team_size_min: int | None
    team_size_max: int | None


class ScoreResponse(BaseModel):
    scores: ScoreResultSchema
    size: SizeEstimateSchema


class GovernanceGateSchema(_DomainModel):
    gate_id: str
    name: str
    state: GateState
    passed: bool
    progress: int = Field(..., ge=0, le=100)
    completed_fields: list[str]
    missing_fields: list[str]


class GovernanceSchema(_DomainModel):
    operating_model: GovernanceGateSchema
    intake: GovernanceGateSchema
    responsible_ai: GovernanceGateSchema
    can_activate: bool
    overall_progress: int
    blocking_gate: str | None
    missing_fields: list[str]


class RegressionSchema(_DomainModel):
    should_deactivate: bool
    reason: str | None
    regressed_gate: str | None
    is_legacy: bool


class ActivationCheckResponse(BaseModel):
    blocked: bool
    reason: str | None
    governance: GovernanceSchema | None
    regression: RegressionSchema | None = None


class DerivedPhaseSchema(_DomainModel):
    phase_id: str | None
    name: str
    is_override: bool
    matched_by: str


class PhaseTransitionSchema(_DomainModel):
    from_phase_id: str | None
    to_phase_id: str | None
    met_requirements: list[str]
    pending_requirements: list[str]
    requires_justification: bool
    allowed: bool
    is_exiting_unphased: bool


class PhaseResponse(BaseModel):
    phase: DerivedPhaseSchema
    transition: PhaseTransitionSchema | None = None


class RangeSchema(_DomainModel):
    min: float
    max: float


class ConditionSchema(_DomainModel):
    min: float | None
    max: float | None


class MatchedConditionSchema(_DomainModel):
    lever: str
    actual: int
    required: ConditionSchema


class BenchmarkSchema(_DomainModel):
    baseline_value: float
    baseline_unit: str
    baseline_source: str
    improvement_range: RangeSchema
    improvement_unit: str
    typical_timeline: str


class KpiEstimateSchema(_DomainModel):
    kpi_id: str
    kpi_name: str
    process: str
    value_range: RangeSchema
    confidence: str
    maturity_level: str
    matched_conditions: list[MatchedConditionSchema]
    benchmark: BenchmarkSchema | None
    annual_value: RangeSchema | None


class EvaluationResponse(_DomainModel):
    use_case_id: str
    scores: ScoreResultSchema | None
    size: SizeEstimateSchema | None
    governance: GovernanceSchema
    phase: DerivedPhaseSchema
    kpi_estimates: list[KpiEstimateSchema]
    estimated_annual_value: RangeSchema | None
    unscored_levers: list[str]


class ValueBreakdownSchema(_DomainModel):
    investment: float
    value: float
    count: int


class PortfolioValueSchema(_DomainModel):
    """Portfolio value rollup. ROI and breakeven are null when there is no investment."""

    total_investment: float
    cumulative_value: float
    estimated_value_min: float
    estimated_value_max: float
    roi_pct: float | None
    avg_breakeven_months: float | None
    use_cases_with_value: int
    by_phase: dict[str, ValueBreakdownSchema]
    by_quadrant: dict[str, ValueBreakdownSchema]


class PortfolioSummaryResponse(_DomainModel):
    value: PortfolioValueSchema
    phase_counts: dict[str, int]
    quadrant_counts: dict[str, int]
    activation_ready: int
    evaluations: list[EvaluationResponse]


class LeverWeightSchema(_DomainModel):
    weight: float
    invert: bool


class PhaseConfigSchema(_DomainModel):
    phase_id: str
    name: str
    mapped_statuses: list[str]
    mapped_deployments: list[str]
    priority: int
    manual_only: bool
    exit_requirements: list[str]
    governance_body: str | None
    expected_duration_weeks: int | None


class ConfigSummaryResponse(BaseModel):
    """The active engine configuration, for audit and display."""

    version: str
    generation: int
    quadrant_threshold: float
    impact_weights: dict[str, LeverWeightSchema]
    effort_weights: dict[str, LeverWeightSchema]
    sizing_rules: list[SizingRuleSchema]
    currency: str
    phases: list[PhaseConfigSchema]
    phase_match_order: list[str]
    phase_fallback: str
    kpi_ids: list[str]
