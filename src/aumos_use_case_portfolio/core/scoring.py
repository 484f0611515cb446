"""Weighted impact/effort aggregation and quadrant assignment.

Impact and effort are plain weighted sums over their five levers:

    score = sum(lever_value * weight) / 100

Weights are percentages per lever and each group must sum to 100. A lever
can be configured as inverted, in which case ``6 - value`` enters the sum.
Inversion lives in the weight table rather than in code so that the score
of any use case can be reproduced from configuration alone.

Quadrants split the impact/effort plane at a single threshold T. A score
exactly equal to T falls on the high side of its axis:

    Quick Win      impact >= T, effort <  T
    Strategic Bet  impact >= T, effort >= T
    Experimental   impact <  T, effort <  T
    Watchlist      impact <  T, effort >= T

Manual overrides never overwrite computed values. ``ScoreResult`` carries
both, and downstream consumers read ``effective``.
"""

import math
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum

import structlog

from aumos_use_case_portfolio.core.errors import ConfigurationError, ValidationError
from aumos_use_case_portfolio.core.levers import (
    EFFORT_LEVERS,
    IMPACT_LEVERS,
    LEVER_MAX,
    LEVER_MIN,
    LeverProfile,
)

logger = structlog.get_logger(__name__)

DEFAULT_QUADRANT_THRESHOLD: float = 3.0
WEIGHT_TOTAL: float = 100.0
_WEIGHT_TOLERANCE: float = 1e-6
_SCORE_PRECISION: int = 2


class Quadrant(str, Enum):
    """Impact/effort classification bucket."""

    QUICK_WIN = "Quick Win"
    STRATEGIC_BET = "Strategic Bet"
    EXPERIMENTAL = "Experimental"
    WATCHLIST = "Watchlist"


@dataclass(frozen=True)
class LeverWeight:
    """Weight of a single lever within its group.

    Attributes:
        weight: Percentage contribution, 0-100.
        invert: Feed ``6 - value`` into the sum instead of the raw value.
    """

    weight: float
    invert: bool = False


def _equal_weights(levers: tuple[str, ...]) -> dict[str, LeverWeight]:
    share = WEIGHT_TOTAL / len(levers)
    return {lever: LeverWeight(weight=share) for lever in levers}


@dataclass(frozen=True)
class WeightConfig:
    """Lever weights for both scoring groups plus the quadrant threshold.

    Defaults to 20% per lever with no inversion and a threshold of 3.0.
    Call ``validate()`` at configuration load; the aggregator does not
    re-check weights on every call.
    """

    impact: Mapping[str, LeverWeight] = field(
        default_factory=lambda: _equal_weights(IMPACT_LEVERS)
    )
    effort: Mapping[str, LeverWeight] = field(
        default_factory=lambda: _equal_weights(EFFORT_LEVERS)
    )
    quadrant_threshold: float = DEFAULT_QUADRANT_THRESHOLD

    def validate(self) -> None:
        """Check every weight-table invariant.

        Raises:
            ConfigurationError: If a group is missing a lever, names an
                unknown lever, has a negative weight, or does not sum to 100,
                or if the threshold is outside the lever scale.
        """
        problems: list[str] = []
        for group_name, group, levers in (
            ("impact", self.impact, IMPACT_LEVERS),
            ("effort", self.effort, EFFORT_LEVERS),
        ):
            missing = [lever for lever in levers if lever not in group]
            unknown = [lever for lever in group if lever not in levers]
            if missing:
                problems.append(f"{group_name} weights missing levers: {missing}")
            if unknown:
                problems.append(f"{group_name} weights name unknown levers: {unknown}")
            negative = [lever for lever, w in group.items() if w.weight < 0]
            if negative:
                problems.append(f"{group_name} weights must be non-negative: {negative}")
            total = sum(w.weight for w in group.values())
            if not math.isclose(total, WEIGHT_TOTAL, abs_tol=_WEIGHT_TOLERANCE):
                problems.append(f"{group_name} weights sum to {total}, expected 100")
        if not LEVER_MIN <= self.quadrant_threshold <= LEVER_MAX:
            problems.append(
                f"quadrant_threshold must be within {LEVER_MIN}-{LEVER_MAX}, "
                f"got {self.quadrant_threshold}"
            )
        if problems:
            raise ConfigurationError("Invalid weight configuration: " + "; ".join(problems))


@dataclass(frozen=True)
class Scores:
    """An impact/effort pair and its quadrant."""

    impact_score: float
    effort_score: float
    quadrant: Quadrant


@dataclass(frozen=True)
class ScoreOverride:
    """Manually entered values that supersede computed scores for display.

    Any field may be None, meaning "not overridden".
    """

    manual_impact_score: float | None = None
    manual_effort_score: float | None = None
    manual_quadrant: Quadrant | None = None
    reason: str | None = None

    def __post_init__(self) -> None:
        errors: list[str] = []
        for name in ("manual_impact_score", "manual_effort_score"):
            value = getattr(self, name)
            if value is not None and not LEVER_MIN <= value <= LEVER_MAX:
                errors.append(f"{name} must be between {LEVER_MIN} and {LEVER_MAX}, got {value!r}")
        if self.manual_quadrant is not None and not isinstance(self.manual_quadrant, Quadrant):
            try:
                object.__setattr__(self, "manual_quadrant", Quadrant(self.manual_quadrant))
            except ValueError:
                errors.append(f"manual_quadrant is not a known quadrant: {self.manual_quadrant!r}")
        if errors:
            raise ValidationError("Invalid score override", errors)

    @property
    def is_empty(self) -> bool:
        return (
            self.manual_impact_score is None
            and self.manual_effort_score is None
            and self.manual_quadrant is None
        )


@dataclass(frozen=True)
class ScoreResult:
    """Computed scores plus an optional override, kept side by side.

    Attributes:
        computed: Scores derived from the levers and weights.
        override: Manual override, or None.
        threshold: Quadrant threshold used for this evaluation.
    """

    computed: Scores
    override: ScoreOverride | None = None
    threshold: float = DEFAULT_QUADRANT_THRESHOLD

    @property
    def has_override(self) -> bool:
        return self.override is not None and not self.override.is_empty

    @property
    def effective(self) -> Scores:
        """Scores every downstream consumer should read."""
        override = self.override
        if override is None or override.is_empty:
            return self.computed
        impact = (
            override.manual_impact_score
            if override.manual_impact_score is not None
            else self.computed.impact_score
        )
        effort = (
            override.manual_effort_score
            if override.manual_effort_score is not None
            else self.computed.effort_score
        )
        quadrant = override.manual_quadrant or assign_quadrant(impact, effort, self.threshold)
        return Scores(impact_score=impact, effort_score=effort, quadrant=quadrant)

    @property
    def discrepancies(self) -> list[str]:
        """Names of the fields where the effective value differs from computed."""
        effective = self.effective
        return [
            name
            for name in ("impact_score", "effort_score", "quadrant")
            if getattr(effective, name) != getattr(self.computed, name)
        ]


def assign_quadrant(
    impact_score: float,
    effort_score: float,
    threshold: float = DEFAULT_QUADRANT_THRESHOLD,
) -> Quadrant:
    """Classify an impact/effort pair; equality counts as the high side."""
    high_impact = impact_score >= threshold
    high_effort = effort_score >= threshold
    if high_impact and not high_effort:
        return Quadrant.QUICK_WIN
    if high_impact and high_effort:
        return Quadrant.STRATEGIC_BET
    if not high_impact and not high_effort:
        return Quadrant.EXPERIMENTAL
    return Quadrant.WATCHLIST


def weighted_score(levers: LeverProfile, weights: Mapping[str, LeverWeight]) -> float:
    """Compute the weighted sum of one lever group, rounded to 2 decimals.

    Args:
        levers: Validated lever profile.
        weights: Lever name to weight for a single group.

    Returns:
        The group score on the 1-5 scale.
    """
    total = 0.0
    for lever, lever_weight in weights.items():
        value = levers.value(lever)
        if lever_weight.invert:
            value = (LEVER_MAX + LEVER_MIN) - value
        total += value * lever_weight.weight
    return round(total / WEIGHT_TOTAL, _SCORE_PRECISION)


def compute_scores(
    levers: LeverProfile,
    weights: WeightConfig,
    override: ScoreOverride | None = None,
) -> ScoreResult:
    """Aggregate levers into impact/effort scores and a quadrant.

    Args:
        levers: Validated lever profile.
        weights: Validated weight configuration.
        override: Optional manual override, returned alongside the
            computed values.

    Returns:
        ScoreResult carrying computed scores and the override.
    """
    impact = weighted_score(levers, weights.impact)
    effort = weighted_score(levers, weights.effort)
    computed = Scores(
        impact_score=impact,
        effort_score=effort,
        quadrant=assign_quadrant(impact, effort, weights.quadrant_threshold),
    )
    result = ScoreResult(
        computed=computed,
        override=override,
        threshold=weights.quadrant_threshold,
    )

    if result.has_override and result.discrepancies:
        logger.info(
            "Manual score override differs from computed scores",
            computed_impact=impact,
            computed_effort=effort,
            computed_quadrant=computed.quadrant.value,
            effective_quadrant=result.effective.quadrant.value,
            discrepancies=result.discrepancies,
            reason=override.reason if override else None,
        )
    return result
