"""FastAPI router for the use-case portfolio engine.

All routes are thin: they convert request schemas to domain inputs,
delegate to PortfolioEvaluationService, and serialise the results. The
service keeps no state between calls; every request carries the full
attribute set of the use cases it is about.

API prefix: /api/v1/portfolio
"""

import structlog
from fastapi import APIRouter, Depends, HTTPException, Request, status

from aumos_use_case_portfolio.adapters.config_store import EngineConfigStore
from aumos_use_case_portfolio.api.schemas import (
    ActivationCheckRequest,
    ActivationCheckResponse,
    ConfigSummaryResponse,
    DerivedPhaseSchema,
    EvaluationResponse,
    GovernanceSchema,
    LeverWeightSchema,
    PhaseConfigSchema,
    PhaseRequest,
    PhaseResponse,
    PhaseTransitionSchema,
    PortfolioSummaryResponse,
    RegressionSchema,
    ScoreRequest,
    ScoreResponse,
    ScoreResultSchema,
    SizeEstimateSchema,
    SizingRuleSchema,
    UseCaseAttributesSchema,
    UseCaseInputSchema,
    ValueSummaryRequest,
)
from aumos_use_case_portfolio.core.errors import ConfigurationError
from aumos_use_case_portfolio.core.services import PortfolioEvaluationService

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/portfolio", tags=["Use-Case Portfolio"])


# ---------------------------------------------------------------------------
# Dependency factories
# ---------------------------------------------------------------------------


def get_config_store(request: Request) -> EngineConfigStore:
    """Return the process-wide configuration store built at startup."""
    return request.app.state.config_store


def get_evaluation_service(request: Request) -> PortfolioEvaluationService:
    """Return the evaluation service bound to the configuration store."""
    return request.app.state.evaluation_service


# ---------------------------------------------------------------------------
# Scoring and governance endpoints
# ---------------------------------------------------------------------------


@router.post("/scores", response_model=ScoreResponse)
async def score_use_case(
    body: ScoreRequest,
    service: PortfolioEvaluationService = Depends(get_evaluation_service),
) -> ScoreResponse:
    """Compute impact, effort, quadrant and size from a complete lever set.

    All twelve levers are required; missing or out-of-range levers are
    reported together with a 422.
    """
    scores, size = service.score_levers(
        body.levers.present(),
        body.override.to_domain() if body.override else None,
    )
    return ScoreResponse(
        scores=ScoreResultSchema.model_validate(scores),
        size=SizeEstimateSchema.model_validate(size),
    )


@router.post("/governance", response_model=GovernanceSchema)
async def evaluate_governance(
    body: UseCaseAttributesSchema,
    service: PortfolioEvaluationService = Depends(get_evaluation_service),
) -> GovernanceSchema:
    """Evaluate the three governance gates for a use case."""
    governance = service.evaluate_governance(body.to_domain())
    return GovernanceSchema.model_validate(governance)


@router.post("/activation-check", response_model=ActivationCheckResponse)
async def check_activation(
    body: ActivationCheckRequest,
    service: PortfolioEvaluationService = Depends(get_evaluation_service),
) -> ActivationCheckResponse:
    """Decide whether a status change may proceed.

    When ``updates`` is given, also reports whether applying those updates
    to an already active use case would break its governance.
    """
    attributes = body.attributes.to_domain()
    decision = service.check_activation(attributes, body.target_status)
    regression = (
        service.check_regression(attributes, body.updates.to_updates())
        if body.updates is not None
        else None
    )
    return ActivationCheckResponse(
        blocked=decision.blocked,
        reason=decision.reason,
        governance=(
            GovernanceSchema.model_validate(decision.governance)
            if decision.governance is not None
            else None
        ),
        regression=RegressionSchema.model_validate(regression) if regression else None,
    )


# ---------------------------------------------------------------------------
# Phase endpoints
# ---------------------------------------------------------------------------


@router.post("/phase", response_model=PhaseResponse)
async def resolve_phase(
    body: PhaseRequest,
    service: PortfolioEvaluationService = Depends(get_evaluation_service),
) -> PhaseResponse:
    """Derive the lifecycle phase and optionally check a phase transition.

    A transition without ``to_phase_id`` targets the phase resolved for
    this request.
    """
    attributes = body.attributes.to_domain()
    phase = service.resolve_phase(
        attributes.use_case_status,
        attributes.deployment_status,
        body.phase_override,
    )
    transition = None
    if body.transition is not None:
        transition = service.check_phase_transition(
            attributes,
            body.transition.from_phase_id,
            body.transition.to_phase_id or phase.phase_id,
            body.transition.justification,
        )
    return PhaseResponse(
        phase=DerivedPhaseSchema.model_validate(phase),
        transition=(
            PhaseTransitionSchema.model_validate(transition) if transition else None
        ),
    )


# ---------------------------------------------------------------------------
# Evaluation and value endpoints
# ---------------------------------------------------------------------------


@router.post("/evaluate", response_model=EvaluationResponse)
async def evaluate_use_case(
    body: UseCaseInputSchema,
    service: PortfolioEvaluationService = Depends(get_evaluation_service),
) -> EvaluationResponse:
    """Run scoring, sizing, governance, phase and KPI estimation for one use case."""
    evaluation = service.evaluate_use_case(body.to_domain())
    return EvaluationResponse.model_validate(evaluation)


@router.post("/value-summary", response_model=PortfolioSummaryResponse)
async def summarize_portfolio(
    body: ValueSummaryRequest,
    service: PortfolioEvaluationService = Depends(get_evaluation_service),
) -> PortfolioSummaryResponse:
    """Roll a set of use cases up into portfolio value, phase and quadrant counts."""
    summary = service.summarize_portfolio(
        [use_case.to_domain() for use_case in body.use_cases],
        include_evaluations=body.include_evaluations,
    )
    logger.info(
        "Portfolio summary served",
        use_case_count=len(body.use_cases),
        activation_ready=summary.activation_ready,
    )
    return PortfolioSummaryResponse.model_validate(summary)


# ---------------------------------------------------------------------------
# Configuration endpoints
# ---------------------------------------------------------------------------


def _config_summary(store: EngineConfigStore) -> ConfigSummaryResponse:
    config = store.current()
    return ConfigSummaryResponse(
        version=config.version,
        generation=store.generation,
        quadrant_threshold=config.weights.quadrant_threshold,
        impact_weights={
            lever: LeverWeightSchema.model_validate(weight)
            for lever, weight in config.weights.impact.items()
        },
        effort_weights={
            lever: LeverWeightSchema.model_validate(weight)
            for lever, weight in config.weights.effort.items()
        },
        sizing_rules=[SizingRuleSchema.model_validate(rule) for rule in config.sizing.rules],
        currency=config.sizing.currency,
        phases=[PhaseConfigSchema.model_validate(phase) for phase in config.phases],
        phase_match_order=list(config.phase_derivation.match_order),
        phase_fallback=config.phase_derivation.fallback,
        kpi_ids=[kpi.kpi_id for kpi in config.kpi_library],
    )


@router.get("/config/summary", response_model=ConfigSummaryResponse)
async def get_config_summary(
    store: EngineConfigStore = Depends(get_config_store),
) -> ConfigSummaryResponse:
    """Return the active weights, rules and phases for audit and display."""
    return _config_summary(store)


@router.post("/config/reload", response_model=ConfigSummaryResponse)
async def reload_config(
    store: EngineConfigStore = Depends(get_config_store),
) -> ConfigSummaryResponse:
    """Reload the engine configuration from its source.

    An invalid configuration is rejected with 409 and the previous snapshot
    stays active.
    """
    try:
        store.reload()
    except ConfigurationError as exc:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=str(exc),
        ) from exc
    return _config_summary(store)
