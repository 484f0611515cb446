"""Built-in engine configuration used when no config file is supplied.

Sizing:
    Four overlapping score regions plus a catch-all, daily rates for three
    delivery roles and a 35% overhead. Benefit is a per-size amount per
    impact point with a +/-20% spread.

Phases:
    Foundation -> Strategic -> Transition -> Steady State. Steady State is
    manual-only; use cases reach it only through an explicit override.
"""

from aumos_use_case_portfolio.core.phases import PhaseDerivationRules, PhaseMappingRule
from aumos_use_case_portfolio.core.scoring import WeightConfig
from aumos_use_case_portfolio.core.sizing import (
    SizeCondition,
    SizeDefinition,
    SizingConfig,
    SizingRule,
)

DEFAULT_SIZING_RULES: tuple[SizingRule, ...] = (
    SizingRule(
        name="Quick Win - High Impact, Low Effort",
        condition=SizeCondition(impact_min=3.5, effort_max=2.5),
        target_size="S",
        priority=100,
    ),
    SizingRule(
        name="Strategic Bet - High Impact, Medium Effort",
        condition=SizeCondition(impact_min=3.0, effort_min=2.5, effort_max=3.5),
        target_size="M",
        priority=90,
    ),
    SizingRule(
        name="Complex Strategic - High Impact, High Effort",
        condition=SizeCondition(impact_min=2.5, effort_min=3.5),
        target_size="L",
        priority=80,
    ),
    SizingRule(
        name="Small Experiment - Low to Medium Impact",
        condition=SizeCondition(impact_max=3.0, effort_max=3.0),
        target_size="XS",
        priority=70,
    ),
    SizingRule(
        name="Unclassified - Medium Default",
        condition=SizeCondition(),
        target_size="M",
        priority=0,
    ),
)

DEFAULT_SIZES: tuple[SizeDefinition, ...] = (
    SizeDefinition("XS", 1, 3, 1, 2, "Quick fixes and small enhancements"),
    SizeDefinition("S", 2, 6, 2, 3, "Small projects and proof of concepts"),
    SizeDefinition("M", 4, 12, 3, 5, "Medium-sized initiatives"),
    SizeDefinition("L", 8, 24, 5, 8, "Large strategic projects"),
    SizeDefinition("XL", 16, 52, 8, 12, "Major transformation initiatives"),
)

DEFAULT_ROLE_RATES: dict[str, float] = {
    "Developer": 400.0,
    "Analyst": 350.0,
    "PM": 500.0,
}

# FTE-weeks per role for each size tier
DEFAULT_ROLE_MIX_BY_SIZE: dict[str, dict[str, float]] = {
    "XS": {"Developer": 2.0, "Analyst": 1.0, "PM": 0.5},
    "S": {"Developer": 6.0, "Analyst": 3.0, "PM": 1.5},
    "M": {"Developer": 20.0, "Analyst": 8.0, "PM": 4.0},
    "L": {"Developer": 64.0, "Analyst": 24.0, "PM": 16.0},
    "XL": {"Developer": 200.0, "Analyst": 80.0, "PM": 40.0},
}

DEFAULT_BENEFIT_MULTIPLIERS: dict[str, float] = {
    "XS": 25_000.0,
    "S": 50_000.0,
    "M": 100_000.0,
    "L": 200_000.0,
    "XL": 400_000.0,
}

DEFAULT_SIZING_CONFIG = SizingConfig(
    rules=DEFAULT_SIZING_RULES,
    sizes=DEFAULT_SIZES,
    role_rates=DEFAULT_ROLE_RATES,
    role_mix_by_size=DEFAULT_ROLE_MIX_BY_SIZE,
    overhead_multiplier=1.35,
    benefit_multipliers=DEFAULT_BENEFIT_MULTIPLIERS,
    benefit_spread_pct=0.2,
    benefit_scales_with_impact=True,
    currency="GBP",
)

DEFAULT_WEIGHTS = WeightConfig()

DEFAULT_PHASES: tuple[PhaseMappingRule, ...] = (
    PhaseMappingRule(
        phase_id="foundation",
        name="Foundation",
        mapped_statuses=("Discovery", "Backlog", "On Hold"),
        priority=1,
        exit_requirements=(
            "use_case_defined",
            "business_owner_assigned",
            "processes_mapped",
            "operating_model_gate_passed",
        ),
        governance_body="ai_steerco",
        expected_duration_weeks=8,
    ),
    PhaseMappingRule(
        phase_id="strategic",
        name="Strategic",
        mapped_statuses=("In-flight",),
        mapped_deployments=("PoC", "Pilot"),
        priority=2,
        exit_requirements=(
            "intake_gate_passed",
            "rai_gate_passed",
            "rai_assessment_complete",
            "risk_tier_assigned",
            "investment_tracked",
        ),
        governance_body="working_group",
        expected_duration_weeks=16,
    ),
    PhaseMappingRule(
        phase_id="transition",
        name="Transition",
        mapped_statuses=("Implemented",),
        mapped_deployments=("Production",),
        priority=3,
        exit_requirements=("kpis_selected", "deployed_to_production"),
        governance_body="business_owner",
        expected_duration_weeks=12,
    ),
    PhaseMappingRule(
        phase_id="steady_state",
        name="Steady State",
        priority=4,
        manual_only=True,
    ),
)

DEFAULT_PHASE_DERIVATION = PhaseDerivationRules()
