"""Lever score model.

A use case is rated on ten 1-5 levers, five describing business impact and
five describing implementation effort, plus two governance levers. The
profile is validated once at the boundary: a missing lever is rejected, never
defaulted, because a silent default would bias every score derived from it.
"""

from collections.abc import Mapping
from dataclasses import dataclass, fields
from typing import Any

from aumos_use_case_portfolio.core.errors import ValidationError

LEVER_MIN: int = 1
LEVER_MAX: int = 5

IMPACT_LEVERS: tuple[str, ...] = (
    "revenue_impact",
    "cost_savings",
    "risk_reduction",
    "partner_experience",
    "strategic_fit",
)

EFFORT_LEVERS: tuple[str, ...] = (
    "data_readiness",
    "technical_complexity",
    "change_impact",
    "model_risk",
    "adoption_readiness",
)

GOVERNANCE_LEVERS: tuple[str, ...] = (
    "explainability_bias",
    "regulatory_compliance",
)

SCORING_LEVERS: tuple[str, ...] = IMPACT_LEVERS + EFFORT_LEVERS
ALL_LEVERS: tuple[str, ...] = SCORING_LEVERS + GOVERNANCE_LEVERS

LEVER_LABELS: dict[str, str] = {
    "revenue_impact": "Revenue Impact",
    "cost_savings": "Cost Savings",
    "risk_reduction": "Risk Reduction",
    "partner_experience": "Broker/Partner Experience",
    "strategic_fit": "Strategic Fit",
    "data_readiness": "Data Readiness",
    "technical_complexity": "Technical Complexity",
    "change_impact": "Change Impact",
    "model_risk": "Model Risk",
    "adoption_readiness": "Adoption Readiness",
    "explainability_bias": "Explainability & Bias",
    "regulatory_compliance": "Regulatory Compliance",
}


def is_scored(value: object) -> bool:
    """Return True if value is an integer lever score within 1-5.

    Booleans are rejected even though they are ints in Python.
    """
    return (
        isinstance(value, int)
        and not isinstance(value, bool)
        and LEVER_MIN <= value <= LEVER_MAX
    )


@dataclass(frozen=True)
class LeverProfile:
    """The complete, validated set of lever scores for one use case.

    Attributes:
        revenue_impact: Impact lever, 1-5.
        cost_savings: Impact lever, 1-5.
        risk_reduction: Impact lever, 1-5.
        partner_experience: Impact lever, 1-5.
        strategic_fit: Impact lever, 1-5.
        data_readiness: Effort lever, 1-5.
        technical_complexity: Effort lever, 1-5.
        change_impact: Effort lever, 1-5.
        model_risk: Effort lever, 1-5.
        adoption_readiness: Effort lever, 1-5.
        explainability_bias: Governance lever, 1-5.
        regulatory_compliance: Governance lever, 1-5.
    """

    revenue_impact: int
    cost_savings: int
    risk_reduction: int
    partner_experience: int
    strategic_fit: int
    data_readiness: int
    technical_complexity: int
    change_impact: int
    model_risk: int
    adoption_readiness: int
    explainability_bias: int
    regulatory_compliance: int

    def __post_init__(self) -> None:
        errors = [
            f"{field.name} must be an integer between {LEVER_MIN} and {LEVER_MAX}, "
            f"got {getattr(self, field.name)!r}"
            for field in fields(self)
            if not is_scored(getattr(self, field.name))
        ]
        if errors:
            raise ValidationError("Invalid lever profile", errors)

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> "LeverProfile":
        """Build a profile from a mapping of lever name to score.

        Every lever is checked before raising so the caller sees all
        problems at once. Unknown keys are ignored.

        Args:
            values: Lever name to 1-5 integer score.

        Returns:
            A validated LeverProfile.

        Raises:
            ValidationError: If any lever is absent, None or out of range.
        """
        errors: list[str] = []
        for name in ALL_LEVERS:
            if values.get(name) is None:
                errors.append(f"{name} is required")
            elif not is_scored(values[name]):
                errors.append(
                    f"{name} must be an integer between {LEVER_MIN} and {LEVER_MAX}, "
                    f"got {values[name]!r}"
                )
        if errors:
            raise ValidationError("Invalid lever profile", errors)
        return cls(**{name: values[name] for name in ALL_LEVERS})

    def value(self, lever: str) -> int:
        """Return the score for a lever by name.

        Raises:
            KeyError: If lever is not a known lever name.
        """
        if lever not in ALL_LEVERS:
            raise KeyError(lever)
        return getattr(self, lever)

    def as_dict(self) -> dict[str, int]:
        """Return all twelve lever scores keyed by lever name."""
        return {name: getattr(self, name) for name in ALL_LEVERS}
