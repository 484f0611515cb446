"""Pure computation entry points of the portfolio engine.

Nothing in this package imports FastAPI or touches I/O.
"""

from aumos_use_case_portfolio.core.errors import (
    ConfigurationError,
    PortfolioEngineError,
    ValidationError,
)
from aumos_use_case_portfolio.core.governance import (
    UseCaseAttributes,
    check_activation,
    check_governance_regression,
    evaluate_governance,
)
from aumos_use_case_portfolio.core.levers import LeverProfile
from aumos_use_case_portfolio.core.phases import (
    check_phase_transition,
    derive_phase,
    phase_summary,
    resolve_phase,
)
from aumos_use_case_portfolio.core.scoring import Quadrant, WeightConfig, compute_scores
from aumos_use_case_portfolio.core.sizing import (
    estimate_benefit,
    estimate_cost,
    estimate_size,
    match_size,
)
from aumos_use_case_portfolio.core.value import aggregate, estimate_kpi, estimate_kpis

__all__ = [
    "ConfigurationError",
    "LeverProfile",
    "PortfolioEngineError",
    "Quadrant",
    "UseCaseAttributes",
    "ValidationError",
    "WeightConfig",
    "aggregate",
    "check_activation",
    "check_governance_regression",
    "check_phase_transition",
    "compute_scores",
    "derive_phase",
    "estimate_benefit",
    "estimate_cost",
    "estimate_kpi",
    "estimate_kpis",
    "estimate_size",
    "evaluate_governance",
    "match_size",
    "phase_summary",
    "resolve_phase",
]
