"""Service layer running the engine components for use cases and portfolios.

Per use case:
    1. validate levers      (absent levers defer scoring, invalid ones fail)
    2. compute_scores()     impact, effort, quadrant, override
    3. estimate_size()      size tier, cost, benefit
    4. evaluate_governance()
    5. resolve_phase()
    6. estimate_kpis()      KPI ranges and annual value

Each call reads the configuration snapshot exactly once, so a concurrent
reload can never mix two rule sets inside one evaluation. No FastAPI
imports belong here.
"""

from collections import Counter
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field, fields
from datetime import datetime
from typing import Any

import structlog

from aumos_use_case_portfolio.core.engine_config import EngineConfig
from aumos_use_case_portfolio.core.errors import ValidationError
from aumos_use_case_portfolio.core.governance import (
    DEFAULT_ACTIVATION_STATUSES,
    GOVERNANCE_ENFORCEMENT_DATE,
    ActivationDecision,
    GovernanceStatus,
    RegressionResult,
    UseCaseAttributes,
    check_activation,
    check_governance_regression,
    evaluate_governance,
)
from aumos_use_case_portfolio.core.interfaces import IEngineConfigProvider
from aumos_use_case_portfolio.core.levers import (
    ALL_LEVERS,
    LEVER_MAX,
    LEVER_MIN,
    LeverProfile,
    is_scored,
)
from aumos_use_case_portfolio.core.phases import (
    DerivedPhase,
    PhaseTransitionCheck,
    check_phase_transition,
    count_phases,
    resolve_phase,
)
from aumos_use_case_portfolio.core.scoring import ScoreOverride, ScoreResult, compute_scores
from aumos_use_case_portfolio.core.sizing import SizeEstimate, estimate_size
from aumos_use_case_portfolio.core.value import (
    InvestmentData,
    KpiEstimate,
    PortfolioValueSummary,
    UseCaseValueInput,
    ValuationOptions,
    ValueRange,
    aggregate,
    estimate_kpis,
)

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class UseCaseEvaluationInput:
    """Everything the engine needs about one use case.

    Attributes:
        use_case_id: Caller's identifier, echoed back.
        attributes: Governance, phase and lever attributes.
        override: Manual score override, if any.
        phase_override: Manually assigned phase id, if any.
        investment: Tracked investment, if any.
        realised_value: Tracked annual value, if any.
    """

    use_case_id: str
    attributes: UseCaseAttributes
    override: ScoreOverride | None = None
    phase_override: str | None = None
    investment: InvestmentData | None = None
    realised_value: float | None = None


@dataclass(frozen=True)
class UseCaseEvaluation:
    use_case_id: str
    scores: ScoreResult | None
    size: SizeEstimate | None
    governance: GovernanceStatus
    phase: DerivedPhase
    kpi_estimates: tuple[KpiEstimate, ...]
    estimated_annual_value: ValueRange | None
    unscored_levers: tuple[str, ...] = ()


@dataclass(frozen=True)
class PortfolioSummary:
    value: PortfolioValueSummary
    phase_counts: Mapping[str, int]
    quadrant_counts: Mapping[str, int]
    activation_ready: int
    evaluations: tuple[UseCaseEvaluation, ...] = field(default=())


def _lever_profile(levers: Mapping[str, Any]) -> tuple[LeverProfile | None, tuple[str, ...]]:
    """Return a profile when every lever is present, else the absent ones.

    Raises:
        ValidationError: If any present lever is out of range.
    """
    absent = tuple(name for name in ALL_LEVERS if levers.get(name) is None)
    if not absent:
        return LeverProfile.from_mapping(levers), ()
    invalid = [
        f"{name} must be an integer between {LEVER_MIN} and {LEVER_MAX}, got {levers[name]!r}"
        for name in ALL_LEVERS
        if levers.get(name) is not None and not is_scored(levers[name])
    ]
    if invalid:
        raise ValidationError("Invalid lever profile", invalid)
    return None, absent


class PortfolioEvaluationService:
    """Evaluates use cases and rolls them up into a portfolio view.

    Depends on an IEngineConfigProvider injected at construction time.
    Contains no framework-specific code.
    """

    def __init__(
        self,
        config_provider: IEngineConfigProvider,
        activation_statuses: Sequence[str] = DEFAULT_ACTIVATION_STATUSES,
        enforcement_date: datetime = GOVERNANCE_ENFORCEMENT_DATE,
        valuation: ValuationOptions | None = None,
    ) -> None:
        """Initialise the service.

        Args:
            config_provider: Source of the current engine configuration.
            activation_statuses: Statuses gated by governance.
            enforcement_date: Cut-off separating legacy use cases.
            valuation: KPI annual value settings.
        """
        self._config_provider = config_provider
        self._activation_statuses = tuple(activation_statuses)
        self._enforcement_date = enforcement_date
        self._valuation = valuation or ValuationOptions()

    def score_levers(
        self,
        levers: Mapping[str, Any],
        override: ScoreOverride | None = None,
    ) -> tuple[ScoreResult, SizeEstimate]:
        """Score a complete lever set and size the result.

        Raises:
            ValidationError: If any lever is absent or out of range.
        """
        config = self._config_provider.current()
        profile = LeverProfile.from_mapping(levers)
        scores = compute_scores(profile, config.weights, override)
        return scores, estimate_size(scores.effective, config.sizing)

    def resolve_phase(
        self,
        status: str | None,
        deployment_status: str | None,
        phase_override: str | None = None,
    ) -> DerivedPhase:
        config = self._config_provider.current()
        return resolve_phase(
            status, deployment_status, phase_override, config.phases, config.phase_derivation
        )

    def evaluate_use_case(self, request: UseCaseEvaluationInput) -> UseCaseEvaluation:
        """Run every engine component for a single use case.

        Scoring, sizing and KPI estimation are skipped (None or empty) while
        levers are still absent; governance and phase are always computed.

        Raises:
            ValidationError: If a lever or override value is out of range.
            ConfigurationError: If the loaded rules cannot produce a result.
        """
        return self._evaluate(request, self._config_provider.current())

    def _evaluate(
        self, request: UseCaseEvaluationInput, config: EngineConfig
    ) -> UseCaseEvaluation:
        attributes = request.attributes
        profile, unscored = _lever_profile(attributes.levers)

        scores: ScoreResult | None = None
        size: SizeEstimate | None = None
        estimates: list[KpiEstimate] = []
        annual: ValueRange | None = None
        if profile is not None:
            scores = compute_scores(profile, config.weights, request.override)
            size = estimate_size(scores.effective, config.sizing)
            estimates = estimate_kpis(
                attributes.processes, profile, config.kpi_library, self._valuation
            )
            if estimates:
                annual = ValueRange(
                    min=sum(e.annual_value.min for e in estimates if e.annual_value),
                    max=sum(e.annual_value.max for e in estimates if e.annual_value),
                )

        governance = evaluate_governance(attributes)
        phase = resolve_phase(
            attributes.use_case_status,
            attributes.deployment_status,
            request.phase_override,
            config.phases,
            config.phase_derivation,
        )

        logger.info(
            "Use case evaluated",
            use_case_id=request.use_case_id,
            quadrant=scores.effective.quadrant.value if scores else None,
            size=size.size if size else None,
            can_activate=governance.can_activate,
            phase=phase.phase_id,
            kpi_count=len(estimates),
            unscored_lever_count=len(unscored),
        )
        return UseCaseEvaluation(
            use_case_id=request.use_case_id,
            scores=scores,
            size=size,
            governance=governance,
            phase=phase,
            kpi_estimates=tuple(estimates),
            estimated_annual_value=annual,
            unscored_levers=unscored,
        )

    def summarize_portfolio(
        self,
        requests: Sequence[UseCaseEvaluationInput],
        include_evaluations: bool = False,
    ) -> PortfolioSummary:
        """Evaluate a set of use cases against one snapshot and roll them up.

        Args:
            requests: Use cases to evaluate.
            include_evaluations: Attach per-use-case evaluations to the result.

        Returns:
            PortfolioSummary with value rollup and phase/quadrant counts.
        """
        config = self._config_provider.current()
        evaluations = [self._evaluate(request, config) for request in requests]

        value_inputs = [
            UseCaseValueInput(
                use_case_id=evaluation.use_case_id,
                estimates=evaluation.kpi_estimates,
                investment=request.investment,
                realised_value=request.realised_value,
                phase_id=evaluation.phase.phase_id,
                quadrant=(
                    evaluation.scores.effective.quadrant.value if evaluation.scores else None
                ),
            )
            for request, evaluation in zip(requests, evaluations)
        ]
        phase_counts = count_phases(
            (evaluation.phase.phase_id for evaluation in evaluations), config.phases
        )
        quadrant_counts = Counter(
            evaluation.scores.effective.quadrant.value
            for evaluation in evaluations
            if evaluation.scores is not None
        )

        return PortfolioSummary(
            value=aggregate(value_inputs),
            phase_counts=phase_counts,
            quadrant_counts=dict(quadrant_counts),
            activation_ready=sum(1 for e in evaluations if e.governance.can_activate),
            evaluations=tuple(evaluations) if include_evaluations else (),
        )

    def evaluate_governance(self, attributes: UseCaseAttributes) -> GovernanceStatus:
        return evaluate_governance(attributes)

    def check_activation(
        self, attributes: UseCaseAttributes, target_status: str
    ) -> ActivationDecision:
        return check_activation(attributes, target_status, self._activation_statuses)

    def check_regression(
        self, current: UseCaseAttributes, updates: Mapping[str, Any]
    ) -> RegressionResult:
        """Check whether applying updates would break an active use case's governance.

        Raises:
            ValidationError: If updates names an unknown attribute.
        """
        known = {f.name for f in fields(UseCaseAttributes)}
        unknown = sorted(set(updates) - known)
        if unknown:
            raise ValidationError(
                "Unknown use case attributes", [f"{name} is not an attribute" for name in unknown]
            )
        return check_governance_regression(
            current, updates, self._activation_statuses, self._enforcement_date
        )

    def check_phase_transition(
        self,
        attributes: UseCaseAttributes,
        from_phase_id: str | None,
        to_phase_id: str | None,
        justification: str | None = None,
    ) -> PhaseTransitionCheck:
        config = self._config_provider.current()
        return check_phase_transition(
            attributes, from_phase_id, to_phase_id, config.phases, justification
        )
