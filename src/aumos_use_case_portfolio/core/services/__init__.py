"""Services package for the AumOS Use-Case Portfolio service."""

from aumos_use_case_portfolio.core.services.evaluation_service import (
    PortfolioEvaluationService,
    PortfolioSummary,
    UseCaseEvaluation,
    UseCaseEvaluationInput,
)

__all__ = [
    "PortfolioEvaluationService",
    "PortfolioSummary",
    "UseCaseEvaluation",
    "UseCaseEvaluationInput",
]
