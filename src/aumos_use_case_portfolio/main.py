"""AumOS Use-Case Portfolio service entry point."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from aumos_use_case_portfolio import __version__
from aumos_use_case_portfolio.adapters.config_file_source import JsonEngineConfigSource
from aumos_use_case_portfolio.adapters.config_store import EngineConfigStore
from aumos_use_case_portfolio.api.router import router
from aumos_use_case_portfolio.core.errors import ConfigurationError, ValidationError
from aumos_use_case_portfolio.core.services import PortfolioEvaluationService
from aumos_use_case_portfolio.core.value import ValuationOptions
from aumos_use_case_portfolio.observability import configure_logging
from aumos_use_case_portfolio.settings import Settings

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Log startup and shutdown.

    Args:
        app: The FastAPI application instance.

    Yields:
        None
    """
    store: EngineConfigStore = app.state.config_store
    logger.info(
        "Service started",
        service=app.title,
        config_version=store.current().version,
    )
    yield
    logger.info("Service stopped", service=app.title)


async def _validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"detail": str(exc), "errors": exc.errors},
    )


async def _configuration_error_handler(request: Request, exc: ConfigurationError) -> JSONResponse:
    logger.error("Engine configuration error", path=request.url.path, error=str(exc))
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": str(exc)},
    )


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the FastAPI application.

    The configuration store is loaded here rather than in the lifespan, so
    an invalid engine configuration stops the process before it serves
    anything.

    Args:
        settings: Service settings; read from the environment if None.

    Returns:
        The configured FastAPI application.

    Raises:
        ConfigurationError: If the engine configuration is invalid.
    """
    settings = settings or Settings()
    configure_logging(settings.log_level, settings.log_json)

    store = EngineConfigStore(JsonEngineConfigSource(settings.engine_config_path))
    service = PortfolioEvaluationService(
        config_provider=store,
        activation_statuses=settings.activation_statuses,
        enforcement_date=settings.governance_enforcement_date,
        valuation=ValuationOptions(
            hourly_rate=settings.kpi_hourly_rate,
            volume_multiplier=settings.kpi_volume_multiplier,
            currency=settings.currency,
        ),
    )

    app = FastAPI(title=settings.service_name, version=__version__, lifespan=lifespan)
    app.state.settings = settings
    app.state.config_store = store
    app.state.evaluation_service = service
    app.add_exception_handler(ValidationError, _validation_error_handler)
    app.add_exception_handler(ConfigurationError, _configuration_error_handler)
    app.include_router(router, prefix="/api/v1")
    return app


app: FastAPI = create_app()
