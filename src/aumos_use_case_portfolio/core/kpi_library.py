"""Default KPI library for insurance operations use cases.

Nine KPIs with the business processes they apply to, published industry
baselines per process and a three-tier maturity precedence list. Tier
conditions reference lever names; a foundational tier with no conditions
closes every list.
"""

from aumos_use_case_portfolio.core.value import (
    MATURITY_ADVANCED,
    MATURITY_DEVELOPING,
    MATURITY_FOUNDATIONAL,
    Condition,
    IndustryBenchmark,
    KpiDefinition,
    MaturityRule,
    ValueRange,
)

CLAIMS = "Claims Management"
UNDERWRITING = "Underwriting & Triage"
SUBMISSION = "Submission & Quote"
POLICY_SERVICING = "Policy Servicing"
BILLING = "Billing"
FINANCE = "Financial Management"
REGULATORY = "Regulatory & Compliance"
REINSURANCE = "Reinsurance"
CUSTOMER_SERVICING = "Customer Servicing"
PRODUCT = "Product & Rating"
HR = "Human Resources"
RISK_CONSULTING = "Risk Consulting"
SALES = "Sales & Distribution (Including Broker Relationships)"
GENERAL = "General"


def _tiers(
    advanced: dict[str, Condition],
    advanced_range: tuple[float, float],
    developing: dict[str, Condition],
    developing_range: tuple[float, float],
    foundational_range: tuple[float, float],
) -> tuple[MaturityRule, ...]:
    return (
        MaturityRule(MATURITY_ADVANCED, advanced, ValueRange(*advanced_range), "high"),
        MaturityRule(MATURITY_DEVELOPING, developing, ValueRange(*developing_range), "medium"),
        MaturityRule(MATURITY_FOUNDATIONAL, {}, ValueRange(*foundational_range), "low"),
    )


def _benchmark(
    baseline: float,
    unit: str,
    source: str,
    improvement: tuple[float, float],
    improvement_unit: str,
    timeline: str,
    foundational: tuple[float, float],
    developing: tuple[float, float],
    advanced: tuple[float, float],
) -> IndustryBenchmark:
    return IndustryBenchmark(
        baseline_value=baseline,
        baseline_unit=unit,
        baseline_source=source,
        improvement_range=ValueRange(*improvement),
        improvement_unit=improvement_unit,
        typical_timeline=timeline,
        maturity_tiers={
            MATURITY_FOUNDATIONAL: ValueRange(*foundational),
            MATURITY_DEVELOPING: ValueRange(*developing),
            MATURITY_ADVANCED: ValueRange(*advanced),
        },
    )


_MCKINSEY = "McKinsey Insurance Operations 2024"
_BCG = "BCG Insurance Benchmarks 2024"
_DELOITTE = "Deloitte Insurance Study 2023"
_INDUSTRY = "Industry Average"

DEFAULT_KPI_LIBRARY: tuple[KpiDefinition, ...] = (
    KpiDefinition(
        kpi_id="cycle_time_reduction",
        name="Cycle Time Reduction",
        description="Reduction in end-to-end processing time",
        unit="%",
        direction="decrease",
        applicable_processes=(
            CLAIMS, UNDERWRITING, SUBMISSION, POLICY_SERVICING, BILLING, FINANCE,
            REGULATORY, REINSURANCE, CUSTOMER_SERVICING, PRODUCT, HR,
        ),
        industry_benchmarks={
            CLAIMS: _benchmark(45, "minutes", _MCKINSEY, (40, 70), "%", "6-12 months",
                               (20, 30), (40, 50), (60, 70)),
            UNDERWRITING: _benchmark(120, "minutes", _BCG, (30, 60), "%", "9-18 months",
                                     (15, 25), (30, 45), (50, 60)),
            SUBMISSION: _benchmark(60, "minutes", _DELOITTE, (35, 65), "%", "6-12 months",
                                   (20, 30), (35, 50), (55, 65)),
        },
        maturity_rules=_tiers(
            {
                "data_readiness": Condition(min=4),
                "technical_complexity": Condition(max=2),
                "adoption_readiness": Condition(min=4),
            },
            (60, 70),
            {"data_readiness": Condition(min=3), "technical_complexity": Condition(max=3)},
            (40, 50),
            (20, 30),
        ),
    ),
    KpiDefinition(
        kpi_id="cost_per_transaction",
        name="Cost Per Transaction Reduction",
        description="Reduction in cost to process each transaction",
        unit="%",
        direction="decrease",
        applicable_processes=(
            CLAIMS, UNDERWRITING, SUBMISSION, POLICY_SERVICING, BILLING, FINANCE, REINSURANCE,
        ),
        industry_benchmarks={
            CLAIMS: _benchmark(125, "GBP", _MCKINSEY, (20, 35), "%", "6-12 months",
                               (8, 15), (20, 28), (30, 35)),
            UNDERWRITING: _benchmark(450, "GBP", _BCG, (15, 30), "%", "9-18 months",
                                     (8, 12), (15, 22), (25, 30)),
            BILLING: _benchmark(35, "GBP", _DELOITTE, (25, 45), "%", "3-6 months",
                                (15, 22), (28, 36), (40, 45)),
        },
        maturity_rules=_tiers(
            {"data_readiness": Condition(min=4), "change_impact": Condition(max=2)},
            (25, 35),
            {"data_readiness": Condition(min=3)},
            (15, 25),
            (8, 15),
        ),
    ),
    KpiDefinition(
        kpi_id="fte_efficiency",
        name="FTE Efficiency Gain",
        description="FTE hours saved or reallocated per month",
        unit="hours/month",
        direction="increase",
        applicable_processes=(
            CLAIMS, UNDERWRITING, SUBMISSION, POLICY_SERVICING, BILLING, FINANCE, REGULATORY,
            RISK_CONSULTING, SALES, CUSTOMER_SERVICING, GENERAL, PRODUCT, HR,
        ),
        industry_benchmarks={
            CLAIMS: _benchmark(160, "hours/FTE/month", _INDUSTRY, (15, 40), "%", "6-12 months",
                               (50, 100), (200, 400), (500, 800)),
            UNDERWRITING: _benchmark(160, "hours/FTE/month", _INDUSTRY, (20, 45), "%",
                                     "9-18 months", (80, 150), (250, 450), (600, 1000)),
        },
        maturity_rules=_tiers(
            {"data_readiness": Condition(min=4), "adoption_readiness": Condition(min=4)},
            (500, 1000),
            {"data_readiness": Condition(min=3)},
            (200, 500),
            (50, 200),
        ),
    ),
    KpiDefinition(
        kpi_id="accuracy_improvement",
        name="Accuracy Improvement",
        description="Improvement in decision or data accuracy",
        unit="%",
        direction="increase",
        applicable_processes=(
            CLAIMS, UNDERWRITING, POLICY_SERVICING, BILLING, FINANCE, REGULATORY,
            REINSURANCE, PRODUCT,
        ),
        industry_benchmarks={
            CLAIMS: _benchmark(85, "% accuracy", _INDUSTRY, (5, 12), "percentage points",
                               "6-12 months", (2, 4), (5, 8), (10, 12)),
            UNDERWRITING: _benchmark(82, "% accuracy", _BCG, (8, 15), "percentage points",
                                     "12-18 months", (3, 6), (8, 11), (13, 15)),
        },
        maturity_rules=_tiers(
            {"data_readiness": Condition(min=4), "technical_complexity": Condition(max=3)},
            (10, 15),
            {"data_readiness": Condition(min=3)},
            (5, 10),
            (2, 5),
        ),
    ),
    KpiDefinition(
        kpi_id="loss_ratio_reduction",
        name="Loss Ratio Reduction",
        description="Reduction in claims loss ratio",
        unit="percentage points",
        direction="decrease",
        applicable_processes=(CLAIMS, RISK_CONSULTING, UNDERWRITING),
        industry_benchmarks={
            CLAIMS: _benchmark(65, "% loss ratio", _MCKINSEY, (1, 5), "percentage points",
                               "12-24 months", (0.5, 1.5), (2, 3.5), (4, 5)),
        },
        maturity_rules=_tiers(
            {"data_readiness": Condition(min=4), "adoption_readiness": Condition(min=4)},
            (4, 5),
            {"data_readiness": Condition(min=3)},
            (2, 3.5),
            (0.5, 1.5),
        ),
    ),
    KpiDefinition(
        kpi_id="customer_satisfaction",
        name="Customer/Broker Satisfaction",
        description="Improvement in NPS or satisfaction scores",
        unit="NPS points",
        direction="increase",
        applicable_processes=(CUSTOMER_SERVICING, SALES, RISK_CONSULTING, CLAIMS),
        industry_benchmarks={
            CUSTOMER_SERVICING: _benchmark(35, "NPS", _INDUSTRY, (5, 20), "NPS points",
                                           "6-12 months", (3, 7), (8, 14), (15, 20)),
        },
        maturity_rules=_tiers(
            {"adoption_readiness": Condition(min=4), "change_impact": Condition(max=2)},
            (15, 20),
            {"adoption_readiness": Condition(min=3)},
            (8, 14),
            (3, 7),
        ),
    ),
    KpiDefinition(
        kpi_id="decision_consistency",
        name="Decision Consistency",
        description="Improvement in consistency of underwriting decisions",
        unit="%",
        direction="increase",
        applicable_processes=(UNDERWRITING, CLAIMS),
        industry_benchmarks={
            UNDERWRITING: _benchmark(72, "% consistency", _INDUSTRY, (10, 25),
                                     "percentage points", "6-12 months",
                                     (5, 10), (12, 18), (20, 25)),
        },
        maturity_rules=_tiers(
            {"data_readiness": Condition(min=4), "technical_complexity": Condition(max=2)},
            (20, 25),
            {"data_readiness": Condition(min=3)},
            (12, 18),
            (5, 10),
        ),
    ),
    KpiDefinition(
        kpi_id="conversion_rate",
        name="Conversion Rate Improvement",
        description="Improvement in quote-to-bind or lead-to-policy conversion",
        unit="percentage points",
        direction="increase",
        applicable_processes=(SUBMISSION, SALES),
        industry_benchmarks={
            SUBMISSION: _benchmark(25, "% conversion", _INDUSTRY, (3, 10), "percentage points",
                                   "6-12 months", (1, 3), (4, 7), (8, 10)),
        },
        maturity_rules=_tiers(
            {"data_readiness": Condition(min=4), "adoption_readiness": Condition(min=4)},
            (8, 10),
            {"data_readiness": Condition(min=3)},
            (4, 7),
            (1, 3),
        ),
    ),
    KpiDefinition(
        kpi_id="compliance_rate",
        name="Compliance Rate Improvement",
        description="Improvement in regulatory compliance and audit pass rates",
        unit="%",
        direction="increase",
        applicable_processes=(REGULATORY,),
        industry_benchmarks={
            REGULATORY: _benchmark(88, "% compliance", _INDUSTRY, (5, 10), "percentage points",
                                   "6-12 months", (2, 4), (5, 7), (8, 10)),
        },
        maturity_rules=_tiers(
            {"data_readiness": Condition(min=4)},
            (8, 10),
            {"data_readiness": Condition(min=3)},
            (5, 7),
            (2, 4),
        ),
    ),
)
