"""KPI maturity estimation and portfolio value rollup.

A KPI applies to a use case when one of the use case's business processes
matches one of the KPI's applicable processes. Its maturity rules form a
precedence list, most advanced first; the first rule whose lever conditions
all hold supplies the estimate range and confidence unchanged. Industry
benchmarks ride along for display and for turning a percentage range into
an annual currency amount.

Annual value of an estimate:

    monetary benchmark unit:  baseline * range% * volume_multiplier
    anything else:            range (hours/month) * hourly_rate * 12

Portfolio ROI and breakeven never divide by zero; they are None instead.
"""

import re
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field

import structlog

from aumos_use_case_portfolio.core.errors import ConfigurationError
from aumos_use_case_portfolio.core.levers import ALL_LEVERS, LeverProfile

logger = structlog.get_logger(__name__)

MATURITY_ADVANCED: str = "advanced"
MATURITY_DEVELOPING: str = "developing"
MATURITY_FOUNDATIONAL: str = "foundational"
MATURITY_LEVELS: tuple[str, ...] = (MATURITY_ADVANCED, MATURITY_DEVELOPING, MATURITY_FOUNDATIONAL)
CONFIDENCE_LEVELS: tuple[str, ...] = ("high", "medium", "low")
DIRECTIONS: tuple[str, ...] = ("increase", "decrease")

DEFAULT_HOURLY_RATE: float = 45.0
DEFAULT_VOLUME_MULTIPLIER: float = 1000.0
MONTHS_PER_YEAR: int = 12
UNPHASED: str = "unphased"
UNCLASSIFIED: str = "unclassified"

_MONETARY_UNITS: tuple[str, ...] = ("gbp", "usd", "eur", "£", "$", "€")


@dataclass(frozen=True)
class Condition:
    """Inclusive lever bounds; None means unconstrained."""

    min: float | None = None
    max: float | None = None

    def holds(self, value: float) -> bool:
        if self.min is not None and value < self.min:
            return False
        if self.max is not None and value > self.max:
            return False
        return True


@dataclass(frozen=True)
class ValueRange:
    min: float
    max: float

    @property
    def midpoint(self) -> float:
        return (self.min + self.max) / 2


@dataclass(frozen=True)
class MaturityRule:
    """One tier of a KPI's precedence list.

    Attributes:
        level: advanced, developing or foundational.
        conditions: Lever name to bounds; empty means always matches.
        value_range: Expected KPI improvement for this tier.
        confidence: high, medium or low.
    """

    level: str
    conditions: Mapping[str, Condition]
    value_range: ValueRange
    confidence: str


@dataclass(frozen=True)
class IndustryBenchmark:
    """Published baseline for a KPI within one business process."""

    baseline_value: float
    baseline_unit: str
    baseline_source: str
    improvement_range: ValueRange
    improvement_unit: str
    typical_timeline: str
    maturity_tiers: Mapping[str, ValueRange] = field(default_factory=dict)

    @property
    def is_monetary(self) -> bool:
        unit = self.baseline_unit.lower()
        return any(marker in unit for marker in _MONETARY_UNITS)


@dataclass(frozen=True)
class KpiDefinition:
    """A KPI with its applicability, benchmarks and maturity rules."""

    kpi_id: str
    name: str
    unit: str
    direction: str
    applicable_processes: tuple[str, ...]
    maturity_rules: tuple[MaturityRule, ...]
    industry_benchmarks: Mapping[str, IndustryBenchmark] = field(default_factory=dict)
    description: str = ""

    def validate(self) -> None:
        """Raise ConfigurationError if the KPI cannot produce an estimate."""
        problems: list[str] = []
        if not self.maturity_rules:
            problems.append("maturity rules must not be empty")
        if self.direction not in DIRECTIONS:
            problems.append(f"direction must be one of {DIRECTIONS}, got {self.direction!r}")
        for rule in self.maturity_rules:
            if rule.level not in MATURITY_LEVELS:
                problems.append(f"unknown maturity level {rule.level!r}")
            if rule.confidence not in CONFIDENCE_LEVELS:
                problems.append(f"unknown confidence {rule.confidence!r} on {rule.level} rule")
            if rule.value_range.min > rule.value_range.max:
                problems.append(f"{rule.level} range has min above max")
            unknown = [lever for lever in rule.conditions if lever not in ALL_LEVERS]
            if unknown:
                problems.append(f"{rule.level} rule references unknown levers {unknown}")
        for process in self.industry_benchmarks:
            if process not in self.applicable_processes:
                problems.append(f"benchmark for non-applicable process {process!r}")
        if problems:
            raise ConfigurationError(f"Invalid KPI {self.kpi_id!r}: " + "; ".join(problems))


def validate_kpi_library(library: Sequence[KpiDefinition]) -> None:
    seen: set[str] = set()
    for kpi in library:
        if kpi.kpi_id in seen:
            raise ConfigurationError(f"Duplicate KPI id {kpi.kpi_id!r}")
        seen.add(kpi.kpi_id)
        kpi.validate()


@dataclass(frozen=True)
class ValuationOptions:
    hourly_rate: float = DEFAULT_HOURLY_RATE
    volume_multiplier: float = DEFAULT_VOLUME_MULTIPLIER
    currency: str = "GBP"


@dataclass(frozen=True)
class MatchedCondition:
    lever: str
    actual: int
    required: Condition


@dataclass(frozen=True)
class KpiEstimate:
    """Estimated improvement for one KPI on one use case.

    Attributes:
        kpi_id: KPI identifier.
        kpi_name: KPI display name.
        process: Canonical process name the KPI matched on.
        value_range: Range taken verbatim from the selected maturity rule.
        confidence: Confidence of the selected rule.
        maturity_level: Level of the selected rule.
        matched_conditions: Conditions that held; empty on fallback.
        benchmark: Industry benchmark for the process, display only.
        annual_value: Annual currency value derived from value_range.
    """

    kpi_id: str
    kpi_name: str
    process: str
    value_range: ValueRange
    confidence: str
    maturity_level: str
    matched_conditions: tuple[MatchedCondition, ...]
    benchmark: IndustryBenchmark | None
    annual_value: ValueRange | None


@dataclass(frozen=True)
class InvestmentData:
    initial_investment: float = 0.0
    ongoing_monthly_cost: float = 0.0
    currency: str = "GBP"

    @property
    def first_year_total(self) -> float:
        return self.initial_investment + self.ongoing_monthly_cost * MONTHS_PER_YEAR


@dataclass(frozen=True)
class UseCaseValueInput:
    """Per-use-case input to the portfolio rollup.

    ``realised_value`` is a manually tracked annual value; when set it wins
    over the estimates.
    """

    use_case_id: str
    estimates: tuple[KpiEstimate, ...] = ()
    investment: InvestmentData | None = None
    realised_value: float | None = None
    phase_id: str | None = None
    quadrant: str | None = None


@dataclass
class ValueBreakdown:
    investment: float = 0.0
    value: float = 0.0
    count: int = 0


@dataclass(frozen=True)
class PortfolioValueSummary:
    total_investment: float
    cumulative_value: float
    estimated_value_min: float
    estimated_value_max: float
    roi_pct: float | None
    avg_breakeven_months: float | None
    use_cases_with_value: int
    by_phase: Mapping[str, ValueBreakdown]
    by_quadrant: Mapping[str, ValueBreakdown]


def normalize_process_name(name: str) -> str:
    """Lowercase, drop parentheticals, spell out '&' and collapse separators."""
    normalized = name.lower()
    normalized = re.sub(r"\s*\([^)]*\)", "", normalized)
    normalized = normalized.replace("&", "and")
    normalized = re.sub(r"[-_]", " ", normalized)
    return re.sub(r"\s+", " ", normalized).strip()


def match_process(process: str, applicable_processes: Sequence[str]) -> str | None:
    """Find the canonical process a free-text process name refers to.

    Tries an exact match first, then a normalised match, then containment
    either way round.

    Returns:
        The canonical name from applicable_processes, or None.
    """
    if process in applicable_processes:
        return process
    wanted = normalize_process_name(process)
    if not wanted:
        return None
    for candidate in applicable_processes:
        if normalize_process_name(candidate) == wanted:
            return candidate
    for candidate in applicable_processes:
        normalized = normalize_process_name(candidate)
        if wanted in normalized or normalized in wanted:
            return candidate
    return None


def select_maturity_rule(
    rules: Sequence[MaturityRule],
    levers: LeverProfile,
) -> tuple[MaturityRule, tuple[MatchedCondition, ...]]:
    """Pick the first rule whose conditions all hold.

    Falls back to the foundational rule, or the last rule when none is
    tagged foundational, with no matched conditions.

    Raises:
        ConfigurationError: If rules is empty.
    """
    if not rules:
        raise ConfigurationError("KPI has no maturity rules")
    for rule in rules:
        matched = []
        for lever, condition in rule.conditions.items():
            actual = levers.value(lever)
            if not condition.holds(actual):
                break
            matched.append(MatchedCondition(lever=lever, actual=actual, required=condition))
        else:
            return rule, tuple(matched)

    fallback = next((r for r in rules if r.level == MATURITY_FOUNDATIONAL), rules[-1])
    return fallback, ()


def estimate_annual_value(
    value_range: ValueRange,
    benchmark: IndustryBenchmark | None,
    valuation: ValuationOptions,
) -> ValueRange:
    """Convert an estimate range into an annual currency range."""
    if benchmark is not None and benchmark.is_monetary:
        factor = benchmark.baseline_value * valuation.volume_multiplier / 100
    else:
        factor = valuation.hourly_rate * MONTHS_PER_YEAR
    return ValueRange(
        min=round(value_range.min * factor, 2),
        max=round(value_range.max * factor, 2),
    )


def estimate_kpi(
    kpi: KpiDefinition,
    process: str,
    levers: LeverProfile,
    valuation: ValuationOptions | None = None,
) -> KpiEstimate | None:
    """Estimate one KPI for one process.

    Args:
        kpi: KPI definition with validated maturity rules.
        process: Business process name, matched loosely.
        levers: Validated lever profile of the use case.
        valuation: Annual value conversion settings; defaults apply if None.

    Returns:
        KpiEstimate, or None when the KPI does not apply to the process.
    """
    canonical = match_process(process, kpi.applicable_processes)
    if canonical is None:
        return None

    rule, matched = select_maturity_rule(kpi.maturity_rules, levers)
    benchmark = kpi.industry_benchmarks.get(canonical)
    return KpiEstimate(
        kpi_id=kpi.kpi_id,
        kpi_name=kpi.name,
        process=canonical,
        value_range=rule.value_range,
        confidence=rule.confidence,
        maturity_level=rule.level,
        matched_conditions=matched,
        benchmark=benchmark,
        annual_value=estimate_annual_value(
            rule.value_range, benchmark, valuation or ValuationOptions()
        ),
    )


def estimate_kpis(
    processes: Sequence[str],
    levers: LeverProfile,
    library: Sequence[KpiDefinition],
    valuation: ValuationOptions | None = None,
) -> list[KpiEstimate]:
    """Estimate every applicable KPI once, in library order.

    When several of the use case's processes match a KPI, the first process
    in the use case's own order wins.
    """
    estimates: list[KpiEstimate] = []
    for kpi in library:
        for process in processes:
            estimate = estimate_kpi(kpi, process, levers, valuation)
            if estimate is not None:
                estimates.append(estimate)
                break
    logger.debug(
        "KPI estimates derived",
        process_count=len(processes),
        kpi_count=len(estimates),
    )
    return estimates


def calculate_roi(value: float, investment: float) -> float | None:
    """Return ROI as a percentage, or None when there is no investment."""
    if investment <= 0:
        return None
    return round((value - investment) / investment * 100, 2)


def calculate_breakeven_months(investment: float, monthly_value: float) -> float | None:
    """Return months to recover investment, or None when undefined."""
    if investment <= 0 or monthly_value <= 0:
        return None
    return investment / monthly_value


def _estimated_total(estimates: Iterable[KpiEstimate]) -> ValueRange:
    low = high = 0.0
    for estimate in estimates:
        if estimate.annual_value is not None:
            low += estimate.annual_value.min
            high += estimate.annual_value.max
    return ValueRange(min=low, max=high)


def aggregate(use_cases: Iterable[UseCaseValueInput]) -> PortfolioValueSummary:
    """Roll use-case value up to portfolio, phase and quadrant level.

    Use cases with neither an estimate nor a tracked investment are left
    out. A use case's value is its realised value when tracked, otherwise
    the midpoint of its summed annual estimates.

    Args:
        use_cases: Per-use-case estimates, investment and grouping keys.

    Returns:
        PortfolioValueSummary; ROI and breakeven are None when total
        investment is zero.
    """
    total_investment = 0.0
    cumulative_value = 0.0
    estimated_min = 0.0
    estimated_max = 0.0
    included = 0
    breakevens: list[float] = []
    by_phase: dict[str, ValueBreakdown] = {}
    by_quadrant: dict[str, ValueBreakdown] = {}

    for use_case in use_cases:
        if not use_case.estimates and use_case.investment is None:
            continue
        included += 1

        investment = use_case.investment.first_year_total if use_case.investment else 0.0
        estimated = _estimated_total(use_case.estimates)
        value = (
            use_case.realised_value
            if use_case.realised_value is not None
            else estimated.midpoint
        )

        total_investment += investment
        cumulative_value += value
        estimated_min += estimated.min
        estimated_max += estimated.max

        months = calculate_breakeven_months(investment, value / MONTHS_PER_YEAR)
        if months is not None:
            breakevens.append(months)

        for key, groups in (
            (use_case.phase_id or UNPHASED, by_phase),
            (use_case.quadrant or UNCLASSIFIED, by_quadrant),
        ):
            bucket = groups.setdefault(key, ValueBreakdown())
            bucket.investment += investment
            bucket.value += value
            bucket.count += 1

    avg_breakeven = None
    if total_investment > 0 and breakevens:
        avg_breakeven = round(sum(breakevens) / len(breakevens), 1)

    summary = PortfolioValueSummary(
        total_investment=round(total_investment, 2),
        cumulative_value=round(cumulative_value, 2),
        estimated_value_min=round(estimated_min, 2),
        estimated_value_max=round(estimated_max, 2),
        roi_pct=calculate_roi(cumulative_value, total_investment),
        avg_breakeven_months=avg_breakeven,
        use_cases_with_value=included,
        by_phase=by_phase,
        by_quadrant=by_quadrant,
    )
    logger.info(
        "Portfolio value aggregated",
        use_cases_with_value=included,
        total_investment=summary.total_investment,
        cumulative_value=summary.cumulative_value,
        roi_pct=summary.roi_pct,
    )
    return summary
