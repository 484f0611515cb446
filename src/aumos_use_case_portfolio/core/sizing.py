"""T-shirt sizing, cost and benefit estimation.

Sizing rules map an (impact, effort) score pair to a size tier XS-XL. Rules
may overlap on purpose, for example a narrow "Critical Quick Fix" inside a
broader "Standard Quick Win"; the highest priority wins and equal priorities
resolve to the rule declared first. One catch-all rule with no bounds and
the lowest priority keeps matching total.

Cost is a point estimate:

    cost = sum(fte_weeks * 5 days * daily_rate) * overhead_multiplier

Benefit is a range around a per-size base amount:

    low  = base * (1 - spread)
    high = base * (1 + spread)
"""

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field

import structlog

from aumos_use_case_portfolio.core.errors import ConfigurationError
from aumos_use_case_portfolio.core.scoring import Scores

logger = structlog.get_logger(__name__)

SIZE_TIERS: tuple[str, ...] = ("XS", "S", "M", "L", "XL")
WORKING_DAYS_PER_WEEK: int = 5


@dataclass(frozen=True)
class SizeCondition:
    """Inclusive bounds on impact and effort; None means unconstrained."""

    impact_min: float | None = None
    impact_max: float | None = None
    effort_min: float | None = None
    effort_max: float | None = None

    @property
    def is_catch_all(self) -> bool:
        return all(
            bound is None
            for bound in (self.impact_min, self.impact_max, self.effort_min, self.effort_max)
        )

    def holds(self, impact_score: float, effort_score: float) -> bool:
        if self.impact_min is not None and impact_score < self.impact_min:
            return False
        if self.impact_max is not None and impact_score > self.impact_max:
            return False
        if self.effort_min is not None and effort_score < self.effort_min:
            return False
        if self.effort_max is not None and effort_score > self.effort_max:
            return False
        return True


@dataclass(frozen=True)
class SizingRule:
    """A named mapping from a score region to a size tier.

    Attributes:
        name: Human-readable rule name.
        condition: Score bounds the rule applies to.
        target_size: Size tier assigned on match (XS, S, M, L, XL).
        priority: Higher wins among overlapping matches.
    """

    name: str
    condition: SizeCondition
    target_size: str
    priority: int


@dataclass(frozen=True)
class SizeDefinition:
    """Timeline and team-size envelope for a size tier."""

    name: str
    min_weeks: int
    max_weeks: int
    team_size_min: int
    team_size_max: int
    description: str = ""


@dataclass(frozen=True)
class CostEstimate:
    """Point cost estimate with its components kept for explanation."""

    amount: float
    currency: str
    labour_cost: float
    overhead_multiplier: float


@dataclass(frozen=True)
class BenefitRange:
    """Annual benefit range around a base amount."""

    low: float
    high: float
    base: float
    currency: str


@dataclass(frozen=True)
class SizeEstimate:
    """Size tier for a use case with its cost, benefit and timeline."""

    size: str
    matched_rule: SizingRule
    cost: CostEstimate
    benefit: BenefitRange
    min_weeks: int | None
    max_weeks: int | None
    team_size_min: int | None
    team_size_max: int | None


@dataclass(frozen=True)
class SizingConfig:
    """Everything needed to size and cost a use case.

    Attributes:
        rules: Sizing rules in declaration order.
        sizes: Timeline/team envelope per tier.
        role_rates: Role to daily rate.
        role_mix_by_size: Size tier to role to FTE-weeks.
        overhead_multiplier: Applied to total labour cost.
        benefit_multipliers: Size tier to base annual benefit.
        benefit_spread_pct: Symmetric spread as a fraction (0.2 = +/-20%).
        benefit_scales_with_impact: Multiply the base by the impact score.
        currency: ISO currency code for cost and benefit amounts.
    """

    rules: tuple[SizingRule, ...]
    sizes: tuple[SizeDefinition, ...] = ()
    role_rates: Mapping[str, float] = field(default_factory=dict)
    role_mix_by_size: Mapping[str, Mapping[str, float]] = field(default_factory=dict)
    overhead_multiplier: float = 1.0
    benefit_multipliers: Mapping[str, float] = field(default_factory=dict)
    benefit_spread_pct: float = 0.2
    benefit_scales_with_impact: bool = False
    currency: str = "GBP"

    def size_definition(self, size: str) -> SizeDefinition | None:
        return next((s for s in self.sizes if s.name == size), None)

    def validate(self) -> None:
        """Check the sizing invariants.

        Raises:
            ConfigurationError: On a missing, duplicated or out-of-order
                catch-all rule, unknown size tiers, rates for roles that do
                not exist, or a negative spread or overhead.
        """
        validate_sizing_rules(self.rules)
        problems: list[str] = []
        for size, mix in self.role_mix_by_size.items():
            if size not in SIZE_TIERS:
                problems.append(f"role mix defined for unknown size {size!r}")
            unknown_roles = [role for role in mix if role not in self.role_rates]
            if unknown_roles:
                problems.append(f"role mix for {size} uses roles without a rate: {unknown_roles}")
        for size in self.benefit_multipliers:
            if size not in SIZE_TIERS:
                problems.append(f"benefit multiplier defined for unknown size {size!r}")
        for rule in self.rules:
            if rule.target_size not in self.role_mix_by_size:
                problems.append(f"rule {rule.name!r} targets {rule.target_size} which has no role mix")
            if rule.target_size not in self.benefit_multipliers:
                problems.append(
                    f"rule {rule.name!r} targets {rule.target_size} which has no benefit multiplier"
                )
        if self.overhead_multiplier <= 0:
            problems.append("overhead_multiplier must be positive")
        if not 0 <= self.benefit_spread_pct < 1:
            problems.append("benefit_spread_pct must be within [0, 1)")
        if problems:
            raise ConfigurationError("Invalid sizing configuration: " + "; ".join(problems))


def validate_sizing_rules(rules: Sequence[SizingRule]) -> None:
    """Ensure exactly one catch-all exists and it has the strictly lowest priority.

    Raises:
        ConfigurationError: If the rule set cannot guarantee a match.
    """
    if not rules:
        raise ConfigurationError("At least one sizing rule is required")
    unknown = [rule.name for rule in rules if rule.target_size not in SIZE_TIERS]
    if unknown:
        raise ConfigurationError(f"Sizing rules target unknown sizes: {unknown}")
    catch_alls = [rule for rule in rules if rule.condition.is_catch_all]
    if len(catch_alls) != 1:
        raise ConfigurationError(
            f"Exactly one catch-all sizing rule is required, found {len(catch_alls)}"
        )
    catch_all = catch_alls[0]
    others = [rule for rule in rules if rule is not catch_all]
    if any(rule.priority <= catch_all.priority for rule in others):
        raise ConfigurationError(
            f"Catch-all sizing rule {catch_all.name!r} must have the lowest priority"
        )


def match_size(
    impact_score: float,
    effort_score: float,
    rules: Sequence[SizingRule],
) -> SizingRule:
    """Select the sizing rule for a score pair.

    Rules are ordered by descending priority, then by declaration order,
    and the first rule whose condition holds is returned.

    Args:
        impact_score: Effective impact score.
        effort_score: Effective effort score.
        rules: Sizing rules in declaration order.

    Returns:
        The winning SizingRule.

    Raises:
        ConfigurationError: If no rule matches, which means the catch-all
            is missing.
    """
    ordered = sorted(enumerate(rules), key=lambda item: (-item[1].priority, item[0]))
    for _, rule in ordered:
        if rule.condition.holds(impact_score, effort_score):
            return rule
    raise ConfigurationError(
        f"No sizing rule matched impact={impact_score} effort={effort_score}; "
        "the catch-all rule is missing"
    )


def estimate_cost(
    role_mix: Mapping[str, float],
    rates: Mapping[str, float],
    overhead_multiplier: float,
    currency: str = "GBP",
) -> CostEstimate:
    """Cost a role mix expressed in FTE-weeks.

    Raises:
        ConfigurationError: If the mix names a role with no daily rate.
    """
    labour = 0.0
    for role, fte_weeks in role_mix.items():
        if role not in rates:
            raise ConfigurationError(f"No daily rate configured for role {role!r}")
        labour += fte_weeks * WORKING_DAYS_PER_WEEK * rates[role]
    return CostEstimate(
        amount=round(labour * overhead_multiplier, 2),
        currency=currency,
        labour_cost=round(labour, 2),
        overhead_multiplier=overhead_multiplier,
    )


def estimate_benefit(
    size: str,
    benefit_multipliers: Mapping[str, float],
    spread_pct: float,
    impact_score: float | None = None,
    currency: str = "GBP",
) -> BenefitRange:
    """Turn a size tier into a symmetric annual benefit range.

    Args:
        size: Size tier.
        benefit_multipliers: Size tier to base annual benefit.
        spread_pct: Fractional spread, e.g. 0.2 for +/-20%.
        impact_score: When given, the base is scaled by the impact score.
        currency: Currency of the amounts.

    Raises:
        ConfigurationError: If size has no benefit multiplier.
    """
    if size not in benefit_multipliers:
        raise ConfigurationError(f"No benefit multiplier configured for size {size!r}")
    base = benefit_multipliers[size]
    if impact_score is not None:
        base *= impact_score
    return BenefitRange(
        low=round(base * (1 - spread_pct), 2),
        high=round(base * (1 + spread_pct), 2),
        base=round(base, 2),
        currency=currency,
    )


def estimate_size(scores: Scores, config: SizingConfig) -> SizeEstimate:
    """Size, cost and value a use case from its effective scores."""
    rule = match_size(scores.impact_score, scores.effort_score, config.rules)
    size = rule.target_size
    if size not in config.role_mix_by_size:
        raise ConfigurationError(f"No role mix configured for size {size!r}")

    cost = estimate_cost(
        config.role_mix_by_size[size],
        config.role_rates,
        config.overhead_multiplier,
        config.currency,
    )
    benefit = estimate_benefit(
        size,
        config.benefit_multipliers,
        config.benefit_spread_pct,
        impact_score=scores.impact_score if config.benefit_scales_with_impact else None,
        currency=config.currency,
    )
    definition = config.size_definition(size)

    logger.debug(
        "Use case sized",
        impact_score=scores.impact_score,
        effort_score=scores.effort_score,
        rule=rule.name,
        size=size,
        cost=cost.amount,
    )
    return SizeEstimate(
        size=size,
        matched_rule=rule,
        cost=cost,
        benefit=benefit,
        min_weeks=definition.min_weeks if definition else None,
        max_weeks=definition.max_weeks if definition else None,
        team_size_min=definition.team_size_min if definition else None,
        team_size_max=definition.team_size_max if definition else None,
    )
