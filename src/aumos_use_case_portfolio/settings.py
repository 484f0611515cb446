"""Service settings for the use-case portfolio engine.

Repo-specific settings use the AUMOS_PORTFOLIO_ env prefix. Rule tables
(weights, sizing, phases, KPI library) are not settings; they live in the
engine configuration file named by ``engine_config_path``.
"""

from datetime import datetime, timezone

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings for aumos-use-case-portfolio.

    Environment variable prefix: AUMOS_PORTFOLIO_
    """

    service_name: str = "aumos-use-case-portfolio"

    # Engine configuration; empty means built-in defaults
    engine_config_path: str = ""

    # Governance enforcement
    activation_statuses: list[str] = ["In-flight", "Implemented"]
    governance_enforcement_date: datetime = datetime(2026, 1, 24, tzinfo=timezone.utc)

    # KPI valuation
    kpi_hourly_rate: float = 45.0
    kpi_volume_multiplier: float = 1000.0
    currency: str = "GBP"

    # Logging
    log_level: str = "INFO"
    log_json: bool = True

    model_config = SettingsConfigDict(env_prefix="AUMOS_PORTFOLIO_")
