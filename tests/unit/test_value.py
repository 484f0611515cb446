"""Unit tests for KPI estimation and portfolio value aggregation.

Tests cover:
- Loose business-process matching
- Maturity rule precedence and fallback
- Annual value conversion (monetary vs hour-based baselines)
- ROI and breakeven guards against zero investment
- Portfolio rollup by phase and quadrant
"""

import pytest

from aumos_use_case_portfolio.core.errors import ConfigurationError
from aumos_use_case_portfolio.core.kpi_library import CLAIMS, DEFAULT_KPI_LIBRARY, SALES
from aumos_use_case_portfolio.core.levers import LeverProfile
from aumos_use_case_portfolio.core.value import (
    Condition,
    InvestmentData,
    KpiDefinition,
    MaturityRule,
    UseCaseValueInput,
    ValuationOptions,
    ValueRange,
    aggregate,
    calculate_breakeven_months,
    calculate_roi,
    estimate_kpi,
    estimate_kpis,
    match_process,
    normalize_process_name,
    select_maturity_rule,
    validate_kpi_library,
)


def _kpi(kpi_id: str) -> KpiDefinition:
    return next(kpi for kpi in DEFAULT_KPI_LIBRARY if kpi.kpi_id == kpi_id)


@pytest.fixture()
def advanced_profile(quick_win_levers: dict[str, int]) -> LeverProfile:
    """Meets the advanced tier of both cycle time and cost per transaction."""
    quick_win_levers.update(
        data_readiness=4, technical_complexity=2, adoption_readiness=4, change_impact=2
    )
    return LeverProfile.from_mapping(quick_win_levers)


@pytest.fixture()
def weak_profile(quick_win_levers: dict[str, int]) -> LeverProfile:
    """Meets no conditioned tier: data readiness 1."""
    quick_win_levers.update(data_readiness=1, technical_complexity=5)
    return LeverProfile.from_mapping(quick_win_levers)


# ---------------------------------------------------------------------------
# Process matching
# ---------------------------------------------------------------------------


class TestMatchProcess:
    def test_exact(self) -> None:
        assert match_process(CLAIMS, (CLAIMS,)) == CLAIMS

    def test_case_and_separator_insensitive(self) -> None:
        assert match_process("claims-management", (CLAIMS,)) == CLAIMS

    def test_ampersand_and_parenthetical(self) -> None:
        assert normalize_process_name(SALES) == "sales and distribution"
        assert match_process("Sales and Distribution", (SALES,)) == SALES

    def test_containment(self) -> None:
        assert match_process("Claims", (CLAIMS,)) == CLAIMS

    def test_no_match(self) -> None:
        assert match_process("Payroll", (CLAIMS,)) is None
        assert match_process("", (CLAIMS,)) is None


# ---------------------------------------------------------------------------
# Maturity rules
# ---------------------------------------------------------------------------


class TestSelectMaturityRule:
    def test_advanced_rule_checked_first(self, advanced_profile: LeverProfile) -> None:
        rule, matched = select_maturity_rule(
            _kpi("cycle_time_reduction").maturity_rules, advanced_profile
        )
        assert rule.level == "advanced"
        assert {m.lever for m in matched} == {
            "data_readiness",
            "technical_complexity",
            "adoption_readiness",
        }

    def test_unconditioned_foundational_catches_the_rest(
        self, weak_profile: LeverProfile
    ) -> None:
        rule, matched = select_maturity_rule(
            _kpi("cycle_time_reduction").maturity_rules, weak_profile
        )
        assert rule.level == "foundational"
        assert rule.confidence == "low"
        assert matched == ()

    def test_falls_back_to_foundational_when_nothing_matches(
        self, weak_profile: LeverProfile
    ) -> None:
        rules = (
            MaturityRule("advanced", {"data_readiness": Condition(min=5)}, ValueRange(5, 9), "high"),
            MaturityRule("foundational", {"data_readiness": Condition(min=3)}, ValueRange(1, 2), "low"),
        )
        rule, _ = select_maturity_rule(rules, weak_profile)
        assert rule.level == "foundational"

    def test_empty_rules_raise(self, weak_profile: LeverProfile) -> None:
        with pytest.raises(ConfigurationError):
            select_maturity_rule((), weak_profile)


# ---------------------------------------------------------------------------
# KPI estimation
# ---------------------------------------------------------------------------


class TestEstimateKpi:
    def test_hour_based_baseline(self, advanced_profile: LeverProfile) -> None:
        estimate = estimate_kpi(_kpi("cycle_time_reduction"), "Claims", advanced_profile)

        assert estimate is not None
        assert estimate.process == CLAIMS
        assert estimate.value_range == ValueRange(60, 70)
        assert estimate.confidence == "high"
        # 45 minutes baseline is not monetary: hourly rate 45 x 12 months
        assert estimate.annual_value == ValueRange(32_400.0, 37_800.0)

    def test_monetary_baseline(self, advanced_profile: LeverProfile) -> None:
        estimate = estimate_kpi(_kpi("cost_per_transaction"), CLAIMS, advanced_profile)

        assert estimate is not None
        assert estimate.benchmark is not None
        assert estimate.benchmark.is_monetary
        # 125 GBP x 1000 volume / 100
        assert estimate.annual_value == ValueRange(31_250.0, 43_750.0)

    def test_valuation_options_applied(self, advanced_profile: LeverProfile) -> None:
        estimate = estimate_kpi(
            _kpi("cycle_time_reduction"),
            CLAIMS,
            advanced_profile,
            ValuationOptions(hourly_rate=10.0),
        )
        assert estimate is not None
        assert estimate.annual_value == ValueRange(7_200.0, 8_400.0)

    def test_not_applicable_is_none(self, advanced_profile: LeverProfile) -> None:
        assert estimate_kpi(_kpi("cost_per_transaction"), "Human Resources", advanced_profile) is None

    def test_estimate_kpis_once_per_kpi_in_library_order(
        self, advanced_profile: LeverProfile
    ) -> None:
        estimates = estimate_kpis(["Claims", "Claims Management"], advanced_profile, DEFAULT_KPI_LIBRARY)
        ids = [e.kpi_id for e in estimates]
        assert len(ids) == len(set(ids))
        library_order = [kpi.kpi_id for kpi in DEFAULT_KPI_LIBRARY]
        assert ids == [kpi_id for kpi_id in library_order if kpi_id in ids]
        assert ids[:2] == ["cycle_time_reduction", "cost_per_transaction"]

    def test_no_processes_no_estimates(self, advanced_profile: LeverProfile) -> None:
        assert estimate_kpis([], advanced_profile, DEFAULT_KPI_LIBRARY) == []


class TestKpiLibrary:
    def test_default_library_is_valid(self) -> None:
        validate_kpi_library(DEFAULT_KPI_LIBRARY)
        assert len(DEFAULT_KPI_LIBRARY) == 9

    def test_empty_maturity_rules_rejected(self) -> None:
        kpi = KpiDefinition("k", "K", "%", "increase", (CLAIMS,), ())
        with pytest.raises(ConfigurationError, match="maturity rules"):
            validate_kpi_library([kpi])

    def test_duplicate_ids_rejected(self) -> None:
        with pytest.raises(ConfigurationError, match="Duplicate"):
            validate_kpi_library([DEFAULT_KPI_LIBRARY[0], DEFAULT_KPI_LIBRARY[0]])


# ---------------------------------------------------------------------------
# ROI and aggregation
# ---------------------------------------------------------------------------


class TestRoiAndBreakeven:
    def test_roi(self) -> None:
        assert calculate_roi(150_000.0, 100_000.0) == 50.0

    def test_zero_investment_roi_is_none(self) -> None:
        assert calculate_roi(150_000.0, 0.0) is None

    def test_breakeven(self) -> None:
        assert calculate_breakeven_months(60_000.0, 10_000.0) == 6.0

    @pytest.mark.parametrize(("investment", "monthly"), [(0.0, 10.0), (100.0, 0.0)])
    def test_breakeven_undefined(self, investment: float, monthly: float) -> None:
        assert calculate_breakeven_months(investment, monthly) is None


class TestAggregate:
    def test_empty_portfolio(self) -> None:
        summary = aggregate([])
        assert summary.total_investment == 0.0
        assert summary.roi_pct is None
        assert summary.avg_breakeven_months is None
        assert summary.use_cases_with_value == 0

    def test_estimates_without_investment_have_no_roi(
        self, advanced_profile: LeverProfile
    ) -> None:
        estimates = tuple(estimate_kpis([CLAIMS], advanced_profile, DEFAULT_KPI_LIBRARY[:1]))
        summary = aggregate([UseCaseValueInput(use_case_id="uc-1", estimates=estimates)])

        assert summary.use_cases_with_value == 1
        assert summary.estimated_value_min == 32_400.0
        assert summary.estimated_value_max == 37_800.0
        assert summary.cumulative_value == 35_100.0
        assert summary.roi_pct is None

    def test_realised_value_and_investment(self) -> None:
        summary = aggregate(
            [
                UseCaseValueInput(
                    use_case_id="uc-1",
                    investment=InvestmentData(initial_investment=60_000.0, ongoing_monthly_cost=5_000.0),
                    realised_value=240_000.0,
                    phase_id="transition",
                    quadrant="Quick Win",
                ),
                UseCaseValueInput(use_case_id="uc-2"),
            ]
        )

        # investment = 60k + 12 x 5k = 120k; monthly value = 20k
        assert summary.use_cases_with_value == 1
        assert summary.total_investment == 120_000.0
        assert summary.roi_pct == 100.0
        assert summary.avg_breakeven_months == 6.0
        assert summary.by_phase["transition"].count == 1
        assert summary.by_quadrant["Quick Win"].value == 240_000.0

    def test_missing_grouping_keys(self) -> None:
        summary = aggregate(
            [UseCaseValueInput(use_case_id="uc-1", investment=InvestmentData(initial_investment=10.0))]
        )
        assert summary.by_phase["unphased"].investment == 10.0
        assert summary.by_quadrant["unclassified"].count == 1
        assert summary.roi_pct == -100.0
        assert summary.avg_breakeven_months is None
