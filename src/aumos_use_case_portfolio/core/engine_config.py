"""Engine configuration snapshot and its dictionary form.

An EngineConfig is immutable and validated as a whole before anything uses
it. ``engine_config_from_dict`` checks a decoded JSON document against the
document models below, then builds the frozen rule tables from it; sections
left out of the document fall back to the built-in defaults.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Literal

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictBool,
    StrictFloat,
    StrictInt,
)
from pydantic import ValidationError as PydanticValidationError

from aumos_use_case_portfolio.core.defaults import (
    DEFAULT_PHASE_DERIVATION,
    DEFAULT_PHASES,
    DEFAULT_SIZING_CONFIG,
    DEFAULT_WEIGHTS,
)
from aumos_use_case_portfolio.core.errors import ConfigurationError
from aumos_use_case_portfolio.core.kpi_library import DEFAULT_KPI_LIBRARY
from aumos_use_case_portfolio.core.phases import (
    PhaseDerivationRules,
    PhaseMappingRule,
    validate_phase_rules,
)
from aumos_use_case_portfolio.core.scoring import LeverWeight, WeightConfig
from aumos_use_case_portfolio.core.sizing import (
    SizeCondition,
    SizeDefinition,
    SizingConfig,
    SizingRule,
)
from aumos_use_case_portfolio.core.value import (
    Condition,
    IndustryBenchmark,
    KpiDefinition,
    MaturityRule,
    ValueRange,
    validate_kpi_library,
)


@dataclass(frozen=True)
class EngineConfig:
    """Every rule table the engine evaluates against.

    Attributes:
        weights: Lever weights and quadrant threshold.
        sizing: Sizing rules, rates and benefit table.
        phases: Lifecycle phases in declaration order.
        phase_derivation: Signal match order and fallback policy.
        kpi_library: KPI definitions in precedence order.
        version: Free-form label reported by the config summary endpoint.
    """

    weights: WeightConfig = field(default_factory=lambda: DEFAULT_WEIGHTS)
    sizing: SizingConfig = field(default_factory=lambda: DEFAULT_SIZING_CONFIG)
    phases: tuple[PhaseMappingRule, ...] = DEFAULT_PHASES
    phase_derivation: PhaseDerivationRules = field(
        default_factory=lambda: DEFAULT_PHASE_DERIVATION
    )
    kpi_library: tuple[KpiDefinition, ...] = DEFAULT_KPI_LIBRARY
    version: str = "builtin"

    def kpi(self, kpi_id: str) -> KpiDefinition | None:
        return next((kpi for kpi in self.kpi_library if kpi.kpi_id == kpi_id), None)


def validate_engine_config(config: EngineConfig) -> EngineConfig:
    """Validate every section and return the config unchanged.

    Raises:
        ConfigurationError: On the first section that violates an invariant.
    """
    config.weights.validate()
    config.sizing.validate()
    validate_phase_rules(config.phases)
    config.phase_derivation.validate()
    validate_kpi_library(config.kpi_library)
    return config


# ---------------------------------------------------------------------------
# Document models
# ---------------------------------------------------------------------------

Number = StrictInt | StrictFloat
SizeTier = Literal["XS", "S", "M", "L", "XL"]


class _Document(BaseModel):
    model_config = ConfigDict(extra="forbid")


class RangeDocument(_Document):
    min: Number
    max: Number

    def to_domain(self) -> ValueRange:
        return ValueRange(min=float(self.min), max=float(self.max))


class LeverWeightDocument(_Document):
    weight: Number
    invert: StrictBool = False


class WeightsDocument(_Document):
    """Lever weights per group; a bare number is a weight with no inversion.

    Attributes:
        impact: Impact lever name to weight.
        effort: Effort lever name to weight.
        quadrant_threshold: Score at which an axis counts as high.
    """

    impact: dict[str, Number | LeverWeightDocument] | None = None
    effort: dict[str, Number | LeverWeightDocument] | None = None
    quadrant_threshold: Number | None = None

    @staticmethod
    def _group(raw: dict[str, Number | LeverWeightDocument]) -> dict[str, LeverWeight]:
        parsed: dict[str, LeverWeight] = {}
        for lever, value in raw.items():
            if isinstance(value, LeverWeightDocument):
                parsed[lever] = LeverWeight(weight=float(value.weight), invert=value.invert)
            else:
                parsed[lever] = LeverWeight(weight=float(value))
        return parsed

    def to_domain(self) -> WeightConfig:
        default = DEFAULT_WEIGHTS
        return WeightConfig(
            impact=self._group(self.impact) if self.impact is not None else default.impact,
            effort=self._group(self.effort) if self.effort is not None else default.effort,
            quadrant_threshold=(
                float(self.quadrant_threshold)
                if self.quadrant_threshold is not None
                else default.quadrant_threshold
            ),
        )


class SizeConditionDocument(_Document):
    impact_min: Number | None = None
    impact_max: Number | None = None
    effort_min: Number | None = None
    effort_max: Number | None = None

    def to_domain(self) -> SizeCondition:
        return SizeCondition(
            **{name: float(value) for name, value in self.model_dump().items() if value is not None}
        )


class SizingRuleDocument(_Document):
    name: str
    condition: SizeConditionDocument = Field(default_factory=SizeConditionDocument)
    target_size: SizeTier
    priority: StrictInt


class SizeDefinitionDocument(_Document):
    name: SizeTier
    min_weeks: StrictInt
    max_weeks: StrictInt
    team_size_min: StrictInt
    team_size_max: StrictInt
    description: str = ""


class SizingDocument(_Document):
    """Sizing section; every key left out keeps its built-in value."""

    rules: list[SizingRuleDocument] | None = None
    sizes: list[SizeDefinitionDocument] | None = None
    role_rates: dict[str, Number] | None = None
    role_mix_by_size: dict[SizeTier, dict[str, Number]] | None = None
    overhead_multiplier: Number | None = None
    benefit_multipliers: dict[SizeTier, Number] | None = None
    benefit_spread_pct: Number | None = None
    benefit_scales_with_impact: StrictBool | None = None
    currency: str | None = None

    def to_domain(self) -> SizingConfig:
        default = DEFAULT_SIZING_CONFIG
        rules = default.rules
        if self.rules is not None:
            rules = tuple(
                SizingRule(
                    name=rule.name,
                    condition=rule.condition.to_domain(),
                    target_size=rule.target_size,
                    priority=rule.priority,
                )
                for rule in self.rules
            )
        sizes = default.sizes
        if self.sizes is not None:
            sizes = tuple(SizeDefinition(**size.model_dump()) for size in self.sizes)
        return SizingConfig(
            rules=rules,
            sizes=sizes,
            role_rates=(
                {role: float(rate) for role, rate in self.role_rates.items()}
                if self.role_rates is not None
                else default.role_rates
            ),
            role_mix_by_size=(
                {
                    size: {role: float(weeks) for role, weeks in mix.items()}
                    for size, mix in self.role_mix_by_size.items()
                }
                if self.role_mix_by_size is not None
                else default.role_mix_by_size
            ),
            overhead_multiplier=(
                float(self.overhead_multiplier)
                if self.overhead_multiplier is not None
                else default.overhead_multiplier
            ),
            benefit_multipliers=(
                {size: float(amount) for size, amount in self.benefit_multipliers.items()}
                if self.benefit_multipliers is not None
                else default.benefit_multipliers
            ),
            benefit_spread_pct=(
                float(self.benefit_spread_pct)
                if self.benefit_spread_pct is not None
                else default.benefit_spread_pct
            ),
            benefit_scales_with_impact=(
                self.benefit_scales_with_impact
                if self.benefit_scales_with_impact is not None
                else default.benefit_scales_with_impact
            ),
            currency=self.currency if self.currency is not None else default.currency,
        )


class PhaseDocument(_Document):
    phase_id: str
    name: str
    mapped_statuses: list[str] = Field(default_factory=list)
    mapped_deployments: list[str] = Field(default_factory=list)
    priority: StrictInt = 0
    manual_only: StrictBool = False
    exit_requirements: list[str] = Field(default_factory=list)
    governance_body: str | None = None
    expected_duration_weeks: StrictInt | None = None

    def to_domain(self) -> PhaseMappingRule:
        return PhaseMappingRule(
            phase_id=self.phase_id,
            name=self.name,
            mapped_statuses=tuple(self.mapped_statuses),
            mapped_deployments=tuple(self.mapped_deployments),
            priority=self.priority,
            manual_only=self.manual_only,
            exit_requirements=tuple(self.exit_requirements),
            governance_body=self.governance_body,
            expected_duration_weeks=self.expected_duration_weeks,
        )


class PhaseDerivationDocument(_Document):
    match_order: list[Literal["use_case_status", "deployment_status"]] | None = None
    fallback: Literal["lowest_priority", "none"] | None = None

    def to_domain(self) -> PhaseDerivationRules:
        default = DEFAULT_PHASE_DERIVATION
        return PhaseDerivationRules(
            match_order=(
                tuple(self.match_order) if self.match_order is not None else default.match_order
            ),
            fallback=self.fallback if self.fallback is not None else default.fallback,
        )


class ConditionDocument(_Document):
    min: Number | None = None
    max: Number | None = None

    def to_domain(self) -> Condition:
        return Condition(
            min=float(self.min) if self.min is not None else None,
            max=float(self.max) if self.max is not None else None,
        )


class MaturityRuleDocument(_Document):
    level: Literal["advanced", "developing", "foundational"]
    conditions: dict[str, ConditionDocument] = Field(default_factory=dict)
    value_range: RangeDocument
    confidence: Literal["high", "medium", "low"]

    def to_domain(self) -> MaturityRule:
        return MaturityRule(
            level=self.level,
            conditions={lever: bounds.to_domain() for lever, bounds in self.conditions.items()},
            value_range=self.value_range.to_domain(),
            confidence=self.confidence,
        )


class BenchmarkDocument(_Document):
    baseline_value: Number
    baseline_unit: str
    baseline_source: str = ""
    improvement_range: RangeDocument
    improvement_unit: str = ""
    typical_timeline: str = ""
    maturity_tiers: dict[str, RangeDocument] = Field(default_factory=dict)

    def to_domain(self) -> IndustryBenchmark:
        return IndustryBenchmark(
            baseline_value=float(self.baseline_value),
            baseline_unit=self.baseline_unit,
            baseline_source=self.baseline_source,
            improvement_range=self.improvement_range.to_domain(),
            improvement_unit=self.improvement_unit,
            typical_timeline=self.typical_timeline,
            maturity_tiers={level: tier.to_domain() for level, tier in self.maturity_tiers.items()},
        )


class KpiDocument(_Document):
    """One KPI definition.

    An empty ``maturity_rules`` list parses here and is rejected by KPI
    validation so the error names the KPI.
    """

    kpi_id: str
    name: str
    unit: str = ""
    direction: Literal["increase", "decrease"] = "increase"
    applicable_processes: list[str] = Field(default_factory=list)
    maturity_rules: list[MaturityRuleDocument] = Field(default_factory=list)
    industry_benchmarks: dict[str, BenchmarkDocument] = Field(default_factory=dict)
    description: str = ""

    def to_domain(self) -> KpiDefinition:
        return KpiDefinition(
            kpi_id=self.kpi_id,
            name=self.name,
            unit=self.unit,
            direction=self.direction,
            applicable_processes=tuple(self.applicable_processes),
            maturity_rules=tuple(rule.to_domain() for rule in self.maturity_rules),
            industry_benchmarks={
                process: benchmark.to_domain()
                for process, benchmark in self.industry_benchmarks.items()
            },
            description=self.description,
        )


class EngineConfigDocument(_Document):
    """Top-level engine configuration document.

    Attributes:
        version: Free-form label; "custom" when omitted.
        weights: Lever weights and quadrant threshold.
        sizing: Sizing rules, rates and benefit table.
        phases: Lifecycle phases, replacing the built-in list when given.
        phase_derivation: Signal match order and fallback policy.
        kpi_library: KPI definitions, replacing the built-in library when given.
    """

    version: str = "custom"
    weights: WeightsDocument | None = None
    sizing: SizingDocument | None = None
    phases: list[PhaseDocument] | None = None
    phase_derivation: PhaseDerivationDocument | None = None
    kpi_library: list[KpiDocument] | None = None

    def to_domain(self) -> EngineConfig:
        return EngineConfig(
            weights=self.weights.to_domain() if self.weights is not None else DEFAULT_WEIGHTS,
            sizing=self.sizing.to_domain() if self.sizing is not None else DEFAULT_SIZING_CONFIG,
            phases=(
                tuple(phase.to_domain() for phase in self.phases)
                if self.phases is not None
                else DEFAULT_PHASES
            ),
            phase_derivation=(
                self.phase_derivation.to_domain()
                if self.phase_derivation is not None
                else DEFAULT_PHASE_DERIVATION
            ),
            kpi_library=(
                tuple(kpi.to_domain() for kpi in self.kpi_library)
                if self.kpi_library is not None
                else DEFAULT_KPI_LIBRARY
            ),
            version=self.version,
        )


def _describe(exc: PydanticValidationError) -> list[str]:
    return [
        f"{'.'.join(str(part) for part in error['loc']) or 'document'}: {error['msg']}"
        for error in exc.errors()
    ]


def engine_config_from_dict(data: Mapping[str, Any]) -> EngineConfig:
    """Build and validate an EngineConfig from a decoded JSON document.

    Values are type-checked without coercion: a quoted number or a quoted
    boolean is an error, not a conversion.

    Args:
        data: Mapping with any of the keys ``weights``, ``sizing``,
            ``phases``, ``phase_derivation``, ``kpi_library`` and ``version``.

    Returns:
        A validated EngineConfig.

    Raises:
        ConfigurationError: If the document is malformed or violates an
            invariant.
    """
    try:
        document = EngineConfigDocument.model_validate(data)
    except PydanticValidationError as exc:
        raise ConfigurationError(
            "Malformed engine configuration: " + "; ".join(_describe(exc))
        ) from exc
    return validate_engine_config(document.to_domain())
