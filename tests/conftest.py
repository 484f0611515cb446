"""Test fixtures for aumos-use-case-portfolio.

Engine tests run against the built-in configuration or small hand-built
rule sets; API tests drive the real application through httpx.
"""

from collections.abc import AsyncGenerator, Callable
from datetime import datetime, timezone
from typing import Any

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from aumos_use_case_portfolio.core.engine_config import EngineConfig
from aumos_use_case_portfolio.core.governance import UseCaseAttributes
from aumos_use_case_portfolio.core.levers import LeverProfile
from aumos_use_case_portfolio.core.services import PortfolioEvaluationService
from aumos_use_case_portfolio.main import create_app
from aumos_use_case_portfolio.settings import Settings


class FixedConfigProvider:
    """IEngineConfigProvider returning one fixed snapshot."""

    def __init__(self, config: EngineConfig | None = None) -> None:
        self.config = config or EngineConfig()

    def current(self) -> EngineConfig:
        return self.config


# ---------------------------------------------------------------------------
# Lever and attribute fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def quick_win_levers() -> dict[str, int]:
    """Levers giving impact 5.0 and effort 2.6 under equal weights."""
    return {
        "revenue_impact": 5,
        "cost_savings": 5,
        "risk_reduction": 5,
        "partner_experience": 5,
        "strategic_fit": 5,
        "data_readiness": 5,
        "technical_complexity": 1,
        "change_impact": 1,
        "model_risk": 1,
        "adoption_readiness": 5,
        "explainability_bias": 3,
        "regulatory_compliance": 3,
    }


@pytest.fixture()
def quick_win_profile(quick_win_levers: dict[str, int]) -> LeverProfile:
    return LeverProfile.from_mapping(quick_win_levers)


@pytest.fixture()
def governed_attributes(quick_win_levers: dict[str, int]) -> UseCaseAttributes:
    """A use case that passes all three governance gates."""
    return UseCaseAttributes(
        primary_business_owner="Head of Claims",
        business_function="Claims",
        use_case_status="In-flight",
        deployment_status="Pilot",
        levers=quick_win_levers,
        explainability_required=True,
        customer_harm_risk="Low",
        human_accountability=True,
        data_outside_uk_eu=False,
        third_party_model=False,
        title="Claims triage assistant",
        description="Routes first notification of loss to the right handler",
        processes=("Claims Management",),
        rai_risk_tier="Medium",
        rai_questionnaire_complete=True,
        investment_cost=120_000.0,
        selected_kpis=("cycle_time_reduction",),
        created_at=datetime(2026, 3, 1, tzinfo=timezone.utc),
    )


def _attributes_payload(**overrides: Any) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "primary_business_owner": "Head of Claims",
        "business_function": "Claims",
        "use_case_status": "In-flight",
        "deployment_status": "Pilot",
        "levers": {
            "revenue_impact": 5,
            "cost_savings": 5,
            "risk_reduction": 5,
            "partner_experience": 5,
            "strategic_fit": 5,
            "data_readiness": 5,
            "technical_complexity": 1,
            "change_impact": 1,
            "model_risk": 1,
            "adoption_readiness": 5,
            "explainability_bias": 3,
            "regulatory_compliance": 3,
        },
        "explainability_required": True,
        "customer_harm_risk": "Low",
        "human_accountability": True,
        "data_outside_uk_eu": False,
        "third_party_model": False,
        "processes": ["Claims Management"],
    }
    payload.update(overrides)
    return payload


# ---------------------------------------------------------------------------
# Service and API fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def service() -> PortfolioEvaluationService:
    """Evaluation service bound to the built-in configuration."""
    return PortfolioEvaluationService(config_provider=FixedConfigProvider())


@pytest.fixture()
def settings() -> Settings:
    return Settings(log_json=False)


@pytest_asyncio.fixture()
async def client(settings: Settings) -> AsyncGenerator[AsyncClient, None]:
    """Async test client against a freshly built application."""
    app = create_app(settings)
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://testserver",
    ) as test_client:
        yield test_client


@pytest.fixture()
def make_attributes_payload() -> Callable[..., dict[str, Any]]:
    """Factory for the JSON body of a fully governed use case, with field overrides."""
    return _attributes_payload


@pytest.fixture()
def make_service() -> Callable[..., PortfolioEvaluationService]:
    """Factory for a service bound to a fixed configuration snapshot."""

    def _make(config: EngineConfig | None = None, **kwargs: Any) -> PortfolioEvaluationService:
        return PortfolioEvaluationService(config_provider=FixedConfigProvider(config), **kwargs)

    return _make
