"""Governance gate evaluation for use-case activation.

Three gates guard entry into the active portfolio:

    Gate 1  Operating Model          owner, business function, status past Discovery
    Gate 2  Intake & Prioritization  all ten impact/effort levers scored 1-5
    Gate 3  Responsible AI           five RAI questions answered

Each gate's progress is computed from its own fields only, so a later gate
can show progress while an earlier gate is still open. The sequential
dependency applies to the activation decision: nothing activates until
gates 1, 2 and 3 have all passed, and ``blocking_gate`` names the first one
that has not.

Everything here is recomputed from the current attributes on every read.
There is no stored "current gate".
"""

import dataclasses
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

import structlog

from aumos_use_case_portfolio.core.levers import LEVER_LABELS, SCORING_LEVERS, is_scored

logger = structlog.get_logger(__name__)

DISCOVERY_STATUS: str = "Discovery"

# Statuses that put a use case into the active portfolio.
DEFAULT_ACTIVATION_STATUSES: tuple[str, ...] = ("In-flight", "Implemented")

# Use cases activated before this instant are warned, not deactivated, on regression.
GOVERNANCE_ENFORCEMENT_DATE: datetime = datetime(2026, 1, 24, tzinfo=timezone.utc)


class GateState(str, Enum):
    """Progress state of a single gate."""

    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    PASSED = "passed"


@dataclass(frozen=True)
class UseCaseAttributes:
    """The attribute set governance and phase readiness are computed from.

    All fields are optional; absence is what the gates measure.
    """

    primary_business_owner: str | None = None
    business_function: str | None = None
    use_case_status: str | None = None
    deployment_status: str | None = None
    levers: Mapping[str, Any] = field(default_factory=dict)
    explainability_required: bool | None = None
    customer_harm_risk: str | None = None
    human_accountability: bool | None = None
    data_outside_uk_eu: bool | None = None
    third_party_model: bool | None = None
    title: str | None = None
    description: str | None = None
    processes: tuple[str, ...] = ()
    rai_risk_tier: str | None = None
    rai_questionnaire_complete: bool = False
    investment_cost: float | None = None
    selected_kpis: tuple[str, ...] = ()
    created_at: datetime | None = None
    legacy_activation: bool = False


@dataclass(frozen=True)
class GovernanceGateStatus:
    """Completeness of one gate.

    Attributes:
        gate_id: Stable identifier, e.g. ``gate1_operating_model``.
        name: Display name.
        state: NOT_STARTED, IN_PROGRESS or PASSED.
        passed: True only when progress is 100 and the gate's rules hold.
        progress: Percentage of required fields present, 0-100.
        completed_fields: Labels of present fields, in declaration order.
        missing_fields: Labels of absent fields, in declaration order.
    """

    gate_id: str
    name: str
    state: GateState
    passed: bool
    progress: int
    completed_fields: tuple[str, ...]
    missing_fields: tuple[str, ...]


@dataclass(frozen=True)
class GovernanceStatus:
    """All three gates plus the activation decision."""

    operating_model: GovernanceGateStatus
    intake: GovernanceGateStatus
    responsible_ai: GovernanceGateStatus
    can_activate: bool
    overall_progress: int
    blocking_gate: str | None

    @property
    def gates(self) -> tuple[GovernanceGateStatus, ...]:
        return (self.operating_model, self.intake, self.responsible_ai)

    @property
    def missing_fields(self) -> list[str]:
        return [label for gate in self.gates for label in gate.missing_fields]


@dataclass(frozen=True)
class ActivationDecision:
    blocked: bool
    reason: str | None = None
    governance: GovernanceStatus | None = None


@dataclass(frozen=True)
class RegressionResult:
    should_deactivate: bool
    reason: str | None = None
    regressed_gate: str | None = None
    is_legacy: bool = False


def _has_text(value: object) -> bool:
    return isinstance(value, str) and value.strip() != ""


def _is_answered(value: object) -> bool:
    if isinstance(value, str):
        return value.strip() != ""
    return value is not None


_Requirement = tuple[str, Callable[[UseCaseAttributes], bool]]

_OPERATING_MODEL_REQUIREMENTS: tuple[_Requirement, ...] = (
    ("Primary Business Owner", lambda uc: _has_text(uc.primary_business_owner)),
    ("Business Function", lambda uc: _has_text(uc.business_function)),
    (
        "Use Case Status (beyond Discovery)",
        lambda uc: _has_text(uc.use_case_status) and uc.use_case_status != DISCOVERY_STATUS,
    ),
)

_INTAKE_REQUIREMENTS: tuple[_Requirement, ...] = tuple(
    (LEVER_LABELS[lever], lambda uc, lever=lever: is_scored(uc.levers.get(lever)))
    for lever in SCORING_LEVERS
)

_RAI_REQUIREMENTS: tuple[_Requirement, ...] = (
    ("Explainability Required", lambda uc: _is_answered(uc.explainability_required)),
    ("Customer Harm Risk", lambda uc: _is_answered(uc.customer_harm_risk)),
    ("Human Accountability", lambda uc: _is_answered(uc.human_accountability)),
    ("Data Outside UK/EU", lambda uc: _is_answered(uc.data_outside_uk_eu)),
    ("Third-Party Model", lambda uc: _is_answered(uc.third_party_model)),
)


def _evaluate_gate(
    gate_id: str,
    name: str,
    requirements: Sequence[_Requirement],
    attributes: UseCaseAttributes,
) -> GovernanceGateStatus:
    completed: list[str] = []
    missing: list[str] = []
    for label, check in requirements:
        (completed if check(attributes) else missing).append(label)

    progress = round(len(completed) / len(requirements) * 100)
    passed = progress == 100 and not missing
    if passed:
        state = GateState.PASSED
    elif progress == 0:
        state = GateState.NOT_STARTED
    else:
        state = GateState.IN_PROGRESS

    return GovernanceGateStatus(
        gate_id=gate_id,
        name=name,
        state=state,
        passed=passed,
        progress=progress,
        completed_fields=tuple(completed),
        missing_fields=tuple(missing),
    )


def evaluate_operating_model_gate(attributes: UseCaseAttributes) -> GovernanceGateStatus:
    return _evaluate_gate(
        "gate1_operating_model", "Operating Model", _OPERATING_MODEL_REQUIREMENTS, attributes
    )


def evaluate_intake_gate(attributes: UseCaseAttributes) -> GovernanceGateStatus:
    return _evaluate_gate(
        "gate2_intake", "Intake & Prioritization", _INTAKE_REQUIREMENTS, attributes
    )


def evaluate_rai_gate(attributes: UseCaseAttributes) -> GovernanceGateStatus:
    return _evaluate_gate("gate3_rai", "Responsible AI", _RAI_REQUIREMENTS, attributes)


def evaluate_governance(attributes: UseCaseAttributes) -> GovernanceStatus:
    """Evaluate all three gates and the activation decision.

    Args:
        attributes: The use case's current attribute set.

    Returns:
        GovernanceStatus with per-gate completeness, ``can_activate``, the
        unweighted mean progress and the first gate blocking activation.
    """
    operating_model = evaluate_operating_model_gate(attributes)
    intake = evaluate_intake_gate(attributes)
    responsible_ai = evaluate_rai_gate(attributes)
    gates = (operating_model, intake, responsible_ai)

    blocking = next((gate.gate_id for gate in gates if not gate.passed), None)
    overall = round(sum(gate.progress for gate in gates) / len(gates))

    return GovernanceStatus(
        operating_model=operating_model,
        intake=intake,
        responsible_ai=responsible_ai,
        can_activate=blocking is None,
        overall_progress=overall,
        blocking_gate=blocking,
    )


def check_activation(
    attributes: UseCaseAttributes,
    target_status: str,
    activation_statuses: Sequence[str] = DEFAULT_ACTIVATION_STATUSES,
    governance: GovernanceStatus | None = None,
) -> ActivationDecision:
    """Decide whether a status change may proceed.

    Only moves into an activation status are gated. Use cases flagged as
    legacy activations bypass the check.

    Args:
        attributes: Current attributes of the use case.
        target_status: Status the caller wants to set.
        activation_statuses: Statuses that require all gates to pass.
        governance: Precomputed governance status, computed here if None.

    Returns:
        ActivationDecision; ``blocked`` must stop the update, not warn.
    """
    if target_status not in activation_statuses:
        return ActivationDecision(blocked=False)
    if attributes.legacy_activation:
        return ActivationDecision(blocked=False, reason="LEGACY_ACTIVATION")

    governance = governance or evaluate_governance(attributes)
    if governance.can_activate:
        return ActivationDecision(blocked=False, governance=governance)

    logger.info(
        "Activation blocked by incomplete governance",
        target_status=target_status,
        blocking_gate=governance.blocking_gate,
        overall_progress=governance.overall_progress,
        missing_field_count=len(governance.missing_fields),
    )
    return ActivationDecision(
        blocked=True,
        reason="GOVERNANCE_INCOMPLETE",
        governance=governance,
    )


def check_governance_regression(
    current: UseCaseAttributes,
    updates: Mapping[str, Any],
    activation_statuses: Sequence[str] = DEFAULT_ACTIVATION_STATUSES,
    enforcement_date: datetime = GOVERNANCE_ENFORCEMENT_DATE,
) -> RegressionResult:
    """Detect an update that would break governance on an active use case.

    Args:
        current: Attributes before the update.
        updates: Field name to new value.
        activation_statuses: Statuses considered active.
        enforcement_date: Use cases created before this are legacy; their
            regressions are logged but do not deactivate them.

    Returns:
        RegressionResult telling the caller whether to deactivate.

    Raises:
        TypeError: If updates names a field UseCaseAttributes does not have.
    """
    if current.use_case_status not in activation_statuses:
        return RegressionResult(should_deactivate=False)

    before = evaluate_governance(current)
    after = evaluate_governance(dataclasses.replace(current, **updates))
    if not (before.can_activate and not after.can_activate):
        return RegressionResult(should_deactivate=False)

    regressed = next(
        (old.name for old, new in zip(before.gates, after.gates) if old.passed and not new.passed),
        "Unknown",
    )
    created_at = current.created_at
    if created_at is not None and created_at.tzinfo is None:
        created_at = created_at.replace(tzinfo=timezone.utc)
    is_legacy = created_at is not None and created_at < enforcement_date

    if is_legacy:
        logger.warning(
            "Legacy active use case would fail governance",
            regressed_gate=regressed,
            use_case_status=current.use_case_status,
        )
        return RegressionResult(
            should_deactivate=False,
            reason=f"Legacy use case would fail governance: {regressed} no longer passes",
            regressed_gate=regressed,
            is_legacy=True,
        )

    logger.info("Governance regression detected", regressed_gate=regressed)
    return RegressionResult(
        should_deactivate=True,
        reason=f"Governance regression detected: {regressed} no longer passes",
        regressed_gate=regressed,
        is_legacy=False,
    )
