"""Lifecycle phase derivation from operational status signals.

Phases come from an ordered list of mapping rules. Each rule maps use-case
statuses and deployment statuses to a phase id. Derivation checks the
signals in the configured match order. The first signal that yields
candidates decides. The other signal only narrows between several
candidates, and any remaining tie goes to the lowest priority value and
then to declaration order.

Manual-only phases never come out of derivation; the only way into them is
an explicit override.
"""

from collections import Counter
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass

import structlog

from aumos_use_case_portfolio.core.errors import ConfigurationError
from aumos_use_case_portfolio.core.governance import (
    GovernanceStatus,
    UseCaseAttributes,
    evaluate_governance,
)

logger = structlog.get_logger(__name__)

SIGNAL_STATUS: str = "use_case_status"
SIGNAL_DEPLOYMENT: str = "deployment_status"
FALLBACK_LOWEST_PRIORITY: str = "lowest_priority"
FALLBACK_NONE: str = "none"
UNMAPPED_PHASE_ID: str = "unmapped"

_SIGNAL_LABELS: dict[str, str] = {SIGNAL_STATUS: "status", SIGNAL_DEPLOYMENT: "deployment"}


@dataclass(frozen=True)
class PhaseMappingRule:
    """One lifecycle phase and the signals that map to it.

    Attributes:
        phase_id: Stable identifier, e.g. ``foundation``.
        name: Display name.
        mapped_statuses: Use-case statuses that place a use case here.
        mapped_deployments: Deployment statuses that place a use case here.
        priority: Lower values come earlier in the lifecycle.
        manual_only: Excluded from automatic derivation.
        exit_requirements: Requirement ids checked when leaving the phase.
        governance_body: Body that signs off the phase, if any.
        expected_duration_weeks: Planning estimate, None when open-ended.
    """

    phase_id: str
    name: str
    mapped_statuses: tuple[str, ...] = ()
    mapped_deployments: tuple[str, ...] = ()
    priority: int = 0
    manual_only: bool = False
    exit_requirements: tuple[str, ...] = ()
    governance_body: str | None = None
    expected_duration_weeks: int | None = None


@dataclass(frozen=True)
class PhaseDerivationRules:
    match_order: tuple[str, ...] = (SIGNAL_STATUS, SIGNAL_DEPLOYMENT)
    fallback: str = FALLBACK_LOWEST_PRIORITY

    def validate(self) -> None:
        """Raise ConfigurationError for unknown signals or fallback modes."""
        if not self.match_order:
            raise ConfigurationError("Phase match_order must name at least one signal")
        unknown = [s for s in self.match_order if s not in _SIGNAL_LABELS]
        if unknown:
            raise ConfigurationError(f"Unknown phase match signals: {unknown}")
        if len(set(self.match_order)) != len(self.match_order):
            raise ConfigurationError("Phase match_order contains duplicates")
        if self.fallback not in (FALLBACK_LOWEST_PRIORITY, FALLBACK_NONE):
            raise ConfigurationError(f"Unknown phase fallback: {self.fallback!r}")


@dataclass(frozen=True)
class DerivedPhase:
    """The phase assigned to a use case and how it was chosen.

    ``matched_by`` is one of status, deployment, priority, manual, fallback
    or unmapped. ``phase_id`` is None only when unmapped.
    """

    phase_id: str | None
    name: str
    is_override: bool
    matched_by: str


@dataclass(frozen=True)
class PhaseSignals:
    """The inputs phase resolution needs for one use case."""

    use_case_status: str | None = None
    deployment_status: str | None = None
    phase_override: str | None = None


@dataclass(frozen=True)
class PhaseTransitionCheck:
    from_phase_id: str | None
    to_phase_id: str | None
    met_requirements: tuple[str, ...]
    pending_requirements: tuple[str, ...]
    requires_justification: bool
    allowed: bool
    is_exiting_unphased: bool = False


_RequirementCheck = Callable[[UseCaseAttributes, GovernanceStatus], bool]


def _text(value: str | None) -> bool:
    return bool(value and value.strip())


# Requirement id to (label, check). Phases reference these ids as exit requirements.
PHASE_REQUIREMENTS: dict[str, tuple[str, _RequirementCheck]] = {
    "use_case_defined": (
        "Use case title and description",
        lambda uc, gov: _text(uc.title) and _text(uc.description),
    ),
    "business_owner_assigned": (
        "Business owner assigned",
        lambda uc, gov: _text(uc.primary_business_owner),
    ),
    "processes_mapped": ("Business processes mapped", lambda uc, gov: bool(uc.processes)),
    "operating_model_gate_passed": (
        "Operating Model gate passed",
        lambda uc, gov: gov.operating_model.passed,
    ),
    "intake_gate_passed": (
        "Intake & Prioritization gate passed",
        lambda uc, gov: gov.intake.passed,
    ),
    "rai_gate_passed": ("Responsible AI gate passed", lambda uc, gov: gov.responsible_ai.passed),
    "rai_assessment_complete": (
        "RAI assessment complete",
        lambda uc, gov: uc.rai_questionnaire_complete,
    ),
    "risk_tier_assigned": ("RAI risk tier assigned", lambda uc, gov: _text(uc.rai_risk_tier)),
    "investment_tracked": (
        "Investment cost tracked",
        lambda uc, gov: uc.investment_cost is not None and uc.investment_cost > 0,
    ),
    "kpis_selected": ("KPIs selected", lambda uc, gov: bool(uc.selected_kpis)),
    "deployed_to_production": (
        "Deployed to production",
        lambda uc, gov: uc.deployment_status == "Production",
    ),
}


def validate_phase_rules(rules: Sequence[PhaseMappingRule]) -> None:
    """Check phase ids are unique and exit requirements are known.

    Raises:
        ConfigurationError: On an empty rule list, duplicate or reserved
            ids, or an unknown exit requirement.
    """
    if not rules:
        raise ConfigurationError("At least one phase must be configured")
    counts = Counter(rule.phase_id for rule in rules)
    duplicates = sorted(phase_id for phase_id, count in counts.items() if count > 1)
    if duplicates:
        raise ConfigurationError(f"Duplicate phase ids: {duplicates}")
    if UNMAPPED_PHASE_ID in counts:
        raise ConfigurationError(f"Phase id {UNMAPPED_PHASE_ID!r} is reserved")
    for rule in rules:
        unknown = [req for req in rule.exit_requirements if req not in PHASE_REQUIREMENTS]
        if unknown:
            raise ConfigurationError(
                f"Phase {rule.phase_id!r} has unknown exit requirements: {unknown}"
            )


def _signal_matches(rule: PhaseMappingRule, signal: str, value: str) -> bool:
    if signal == SIGNAL_STATUS:
        return value in rule.mapped_statuses
    return value in rule.mapped_deployments


def _by_priority(candidates: list[tuple[int, PhaseMappingRule]]) -> PhaseMappingRule:
    return min(candidates, key=lambda item: (item[1].priority, item[0]))[1]


def _match(
    status: str | None,
    deployment_status: str | None,
    rules: Sequence[PhaseMappingRule],
    derivation: PhaseDerivationRules,
) -> tuple[PhaseMappingRule | None, str]:
    automatic = [(index, rule) for index, rule in enumerate(rules) if not rule.manual_only]
    signals = {SIGNAL_STATUS: status, SIGNAL_DEPLOYMENT: deployment_status}

    for signal in derivation.match_order:
        value = signals[signal]
        if not value:
            continue
        candidates = [(i, r) for i, r in automatic if _signal_matches(r, signal, value)]
        if not candidates:
            continue
        if len(candidates) == 1:
            return candidates[0][1], _SIGNAL_LABELS[signal]

        for other in derivation.match_order:
            other_value = signals[other]
            if other == signal or not other_value:
                continue
            narrowed = [(i, r) for i, r in candidates if _signal_matches(r, other, other_value)]
            if len(narrowed) == 1:
                return narrowed[0][1], _SIGNAL_LABELS[other]
            if narrowed:
                candidates = narrowed
        return _by_priority(candidates), "priority"

    if derivation.fallback == FALLBACK_LOWEST_PRIORITY and automatic:
        return _by_priority(automatic), "fallback"
    return None, "unmapped"


def derive_phase(
    status: str | None,
    deployment_status: str | None,
    rules: Sequence[PhaseMappingRule],
    derivation: PhaseDerivationRules | None = None,
) -> str | None:
    """Derive a phase id from status signals.

    A missing deployment status is treated as not applicable, never as a
    mismatch.

    Args:
        status: Use-case status, e.g. "In-flight".
        deployment_status: Deployment status, e.g. "Pilot", or None.
        rules: Phase mapping rules in declaration order.
        derivation: Match order and fallback policy; defaults apply if None.

    Returns:
        The phase id, or None when nothing matched and the fallback is "none".
    """
    rule, _ = _match(status, deployment_status, rules, derivation or PhaseDerivationRules())
    return rule.phase_id if rule else None


def resolve_phase(
    status: str | None,
    deployment_status: str | None,
    phase_override: str | None,
    rules: Sequence[PhaseMappingRule],
    derivation: PhaseDerivationRules | None = None,
) -> DerivedPhase:
    """Resolve the phase for display, honouring a manual override.

    An override naming an unconfigured phase is ignored and derivation runs
    as usual.
    """
    if phase_override:
        chosen = next((rule for rule in rules if rule.phase_id == phase_override), None)
        if chosen is not None:
            return DerivedPhase(
                phase_id=chosen.phase_id, name=chosen.name, is_override=True, matched_by="manual"
            )
        logger.warning("Ignoring override to unknown phase", phase_override=phase_override)

    rule, matched_by = _match(
        status, deployment_status, rules, derivation or PhaseDerivationRules()
    )
    if rule is None:
        return DerivedPhase(
            phase_id=None, name="Unmapped", is_override=False, matched_by=matched_by
        )
    return DerivedPhase(
        phase_id=rule.phase_id, name=rule.name, is_override=False, matched_by=matched_by
    )


def check_phase_transition(
    attributes: UseCaseAttributes,
    from_phase_id: str | None,
    to_phase_id: str | None,
    rules: Sequence[PhaseMappingRule],
    justification: str | None = None,
    governance: GovernanceStatus | None = None,
) -> PhaseTransitionCheck:
    """Report the exit requirements of the origin phase.

    This never blocks on its own. ``allowed`` is False only when exit
    requirements are pending and no justification was given; the caller
    decides what to do with that.

    Args:
        attributes: Current use-case attributes.
        from_phase_id: Phase being left; None or unknown means unphased.
        to_phase_id: Phase being entered.
        rules: Configured phases.
        justification: Free-text reason for moving on with pending requirements.
        governance: Precomputed governance status, computed here if None.

    Returns:
        PhaseTransitionCheck with met and pending requirement labels.
    """
    origin = next((rule for rule in rules if rule.phase_id == from_phase_id), None)
    if origin is None:
        return PhaseTransitionCheck(
            from_phase_id=from_phase_id,
            to_phase_id=to_phase_id,
            met_requirements=(),
            pending_requirements=(),
            requires_justification=False,
            allowed=True,
            is_exiting_unphased=True,
        )
    if from_phase_id == to_phase_id:
        return PhaseTransitionCheck(
            from_phase_id=from_phase_id,
            to_phase_id=to_phase_id,
            met_requirements=(),
            pending_requirements=(),
            requires_justification=False,
            allowed=True,
        )

    governance = governance or evaluate_governance(attributes)
    met: list[str] = []
    pending: list[str] = []
    for requirement_id in origin.exit_requirements:
        label, check = PHASE_REQUIREMENTS[requirement_id]
        (met if check(attributes, governance) else pending).append(label)

    justified = bool(justification and justification.strip())
    allowed = not pending or justified
    if pending:
        logger.info(
            "Phase transition with pending exit requirements",
            from_phase=from_phase_id,
            to_phase=to_phase_id,
            pending=pending,
            justified=justified,
        )
    return PhaseTransitionCheck(
        from_phase_id=from_phase_id,
        to_phase_id=to_phase_id,
        met_requirements=tuple(met),
        pending_requirements=tuple(pending),
        requires_justification=bool(pending),
        allowed=allowed,
    )


def phase_summary(
    use_cases: Iterable[PhaseSignals],
    rules: Sequence[PhaseMappingRule],
    derivation: PhaseDerivationRules | None = None,
) -> dict[str, int]:
    """Count use cases per phase id.

    Every configured phase appears in the result, plus ``unmapped``.
    """
    return count_phases(
        (
            resolve_phase(
                signals.use_case_status,
                signals.deployment_status,
                signals.phase_override,
                rules,
                derivation,
            ).phase_id
            for signals in use_cases
        ),
        rules,
    )


def count_phases(
    phase_ids: Iterable[str | None], rules: Sequence[PhaseMappingRule]
) -> dict[str, int]:
    """Tally resolved phase ids, counting None as unmapped."""
    counts: dict[str, int] = {rule.phase_id: 0 for rule in rules}
    counts[UNMAPPED_PHASE_ID] = 0
    for phase_id in phase_ids:
        counts[phase_id or UNMAPPED_PHASE_ID] += 1
    return counts

