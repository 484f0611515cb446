"""Unit tests for PortfolioEvaluationService.

The service is built against a fixed configuration snapshot; no HTTP layer
is involved.
"""

import dataclasses
from collections.abc import Callable
from datetime import datetime, timezone

import pytest

from aumos_use_case_portfolio.core.engine_config import EngineConfig
from aumos_use_case_portfolio.core.errors import ValidationError
from aumos_use_case_portfolio.core.governance import UseCaseAttributes
from aumos_use_case_portfolio.core.scoring import Quadrant, ScoreOverride, WeightConfig
from aumos_use_case_portfolio.core.services import (
    PortfolioEvaluationService,
    UseCaseEvaluationInput,
)
from aumos_use_case_portfolio.core.value import InvestmentData


class TestEvaluateUseCase:
    def test_full_evaluation(
        self,
        service: PortfolioEvaluationService,
        governed_attributes: UseCaseAttributes,
    ) -> None:
        evaluation = service.evaluate_use_case(
            UseCaseEvaluationInput(use_case_id="uc-1", attributes=governed_attributes)
        )

        assert evaluation.use_case_id == "uc-1"
        assert evaluation.scores is not None
        assert evaluation.scores.effective.quadrant is Quadrant.QUICK_WIN
        assert evaluation.size is not None
        assert evaluation.size.size == "M"
        assert evaluation.governance.can_activate
        assert evaluation.phase.phase_id == "strategic"
        assert evaluation.kpi_estimates
        assert evaluation.estimated_annual_value is not None
        assert evaluation.unscored_levers == ()

    def test_incomplete_levers_skip_scoring(self, service: PortfolioEvaluationService) -> None:
        attributes = UseCaseAttributes(
            use_case_status="Discovery", levers={"revenue_impact": 4}, processes=("Claims",)
        )
        evaluation = service.evaluate_use_case(
            UseCaseEvaluationInput(use_case_id="uc-2", attributes=attributes)
        )

        assert evaluation.scores is None
        assert evaluation.size is None
        assert evaluation.kpi_estimates == ()
        assert len(evaluation.unscored_levers) == 11
        assert evaluation.governance.intake.progress == 10
        assert evaluation.phase.phase_id == "foundation"

    def test_invalid_present_lever_raises(self, service: PortfolioEvaluationService) -> None:
        attributes = UseCaseAttributes(levers={"revenue_impact": 9})
        with pytest.raises(ValidationError) as exc_info:
            service.evaluate_use_case(UseCaseEvaluationInput(use_case_id="x", attributes=attributes))
        assert "revenue_impact" in exc_info.value.errors[0]

    def test_override_flows_to_sizing(
        self,
        service: PortfolioEvaluationService,
        governed_attributes: UseCaseAttributes,
    ) -> None:
        evaluation = service.evaluate_use_case(
            UseCaseEvaluationInput(
                use_case_id="uc-3",
                attributes=governed_attributes,
                override=ScoreOverride(manual_impact_score=2.0, manual_effort_score=2.0),
            )
        )
        assert evaluation.scores is not None
        assert evaluation.scores.computed.quadrant is Quadrant.QUICK_WIN
        assert evaluation.scores.effective.quadrant is Quadrant.EXPERIMENTAL
        assert evaluation.size is not None
        assert evaluation.size.size == "XS"

    def test_phase_override(
        self,
        service: PortfolioEvaluationService,
        governed_attributes: UseCaseAttributes,
    ) -> None:
        evaluation = service.evaluate_use_case(
            UseCaseEvaluationInput(
                use_case_id="uc-4", attributes=governed_attributes, phase_override="steady_state"
            )
        )
        assert evaluation.phase.is_override
        assert evaluation.phase.phase_id == "steady_state"

    def test_uses_injected_configuration(
        self,
        make_service: Callable[..., PortfolioEvaluationService],
        governed_attributes: UseCaseAttributes,
    ) -> None:
        service = make_service(EngineConfig(weights=WeightConfig(quadrant_threshold=5.0)))
        evaluation = service.evaluate_use_case(
            UseCaseEvaluationInput(use_case_id="uc-5", attributes=governed_attributes)
        )
        assert evaluation.scores is not None
        assert evaluation.scores.effective.quadrant is Quadrant.QUICK_WIN
        assert evaluation.scores.threshold == 5.0


class TestScoreLevers:
    def test_requires_every_lever(self, service: PortfolioEvaluationService) -> None:
        with pytest.raises(ValidationError) as exc_info:
            service.score_levers({"revenue_impact": 3})
        assert len(exc_info.value.errors) == 11

    def test_scores_and_size(
        self, service: PortfolioEvaluationService, quick_win_levers: dict[str, int]
    ) -> None:
        scores, size = service.score_levers(quick_win_levers)
        assert scores.computed.impact_score == 5.0
        assert size.size == "M"


class TestSummarizePortfolio:
    def test_counts_and_value(
        self,
        service: PortfolioEvaluationService,
        governed_attributes: UseCaseAttributes,
    ) -> None:
        requests = [
            UseCaseEvaluationInput(
                use_case_id="uc-1",
                attributes=governed_attributes,
                investment=InvestmentData(initial_investment=50_000.0),
            ),
            UseCaseEvaluationInput(
                use_case_id="uc-2",
                attributes=UseCaseAttributes(use_case_status="Discovery"),
            ),
        ]
        summary = service.summarize_portfolio(requests)

        assert summary.phase_counts["strategic"] == 1
        assert summary.phase_counts["foundation"] == 1
        assert summary.phase_counts["unmapped"] == 0
        assert summary.quadrant_counts == {"Quick Win": 1}
        assert summary.activation_ready == 1
        assert summary.value.use_cases_with_value == 1
        assert summary.value.total_investment == 50_000.0
        assert summary.value.roi_pct is not None
        assert summary.evaluations == ()

    def test_include_evaluations(
        self,
        service: PortfolioEvaluationService,
        governed_attributes: UseCaseAttributes,
    ) -> None:
        summary = service.summarize_portfolio(
            [UseCaseEvaluationInput(use_case_id="uc-1", attributes=governed_attributes)],
            include_evaluations=True,
        )
        assert [e.use_case_id for e in summary.evaluations] == ["uc-1"]

    def test_empty_portfolio(self, service: PortfolioEvaluationService) -> None:
        summary = service.summarize_portfolio([])
        assert summary.activation_ready == 0
        assert summary.value.roi_pct is None
        assert set(summary.phase_counts) == {
            "foundation",
            "strategic",
            "transition",
            "steady_state",
            "unmapped",
        }


class TestGovernanceChecks:
    def test_activation_uses_configured_statuses(
        self, make_service: Callable[..., PortfolioEvaluationService]
    ) -> None:
        service = make_service(activation_statuses=("Live",))
        assert not service.check_activation(UseCaseAttributes(), "In-flight").blocked
        assert service.check_activation(UseCaseAttributes(), "Live").blocked

    def test_regression_rejects_unknown_attributes(
        self,
        service: PortfolioEvaluationService,
        governed_attributes: UseCaseAttributes,
    ) -> None:
        with pytest.raises(ValidationError) as exc_info:
            service.check_regression(governed_attributes, {"owner": "x"})
        assert exc_info.value.errors == ["owner is not an attribute"]

    def test_regression_respects_enforcement_date(
        self,
        make_service: Callable[..., PortfolioEvaluationService],
        governed_attributes: UseCaseAttributes,
    ) -> None:
        service = make_service(enforcement_date=datetime(2027, 1, 1, tzinfo=timezone.utc))
        result = service.check_regression(governed_attributes, {"business_function": None})
        assert result.is_legacy
        assert not result.should_deactivate

    def test_phase_transition(
        self,
        service: PortfolioEvaluationService,
        governed_attributes: UseCaseAttributes,
    ) -> None:
        attributes = dataclasses.replace(governed_attributes, rai_risk_tier=None)
        check = service.check_phase_transition(attributes, "strategic", "transition")
        assert check.pending_requirements == ("RAI risk tier assigned",)
        assert not check.allowed
