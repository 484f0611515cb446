"""Engine configuration loaded from a JSON file.

An empty path means "use the built-in defaults". The document is decoded,
converted into immutable dataclasses and validated before it is returned,
so callers never see a partially valid configuration.
"""

import json
from pathlib import Path

import structlog

from aumos_use_case_portfolio.core.engine_config import (
    EngineConfig,
    engine_config_from_dict,
    validate_engine_config,
)
from aumos_use_case_portfolio.core.errors import ConfigurationError

logger = structlog.get_logger(__name__)


class JsonEngineConfigSource:
    """Reads the engine configuration from a JSON document on disk."""

    def __init__(self, path: str | Path | None = None) -> None:
        """Initialise with the config file path.

        Args:
            path: JSON file to read. None or "" selects the built-in defaults.
        """
        self._path = Path(path) if path else None

    @property
    def path(self) -> Path | None:
        return self._path

    def load(self) -> EngineConfig:
        """Read, convert and validate the configuration.

        Returns:
            A validated EngineConfig.

        Raises:
            ConfigurationError: If the file is unreadable, is not a JSON
                object, or violates an invariant.
        """
        if self._path is None:
            logger.info("Using built-in engine configuration")
            return validate_engine_config(EngineConfig())

        try:
            raw = json.loads(self._path.read_text(encoding="utf-8"))
        except OSError as exc:
            raise ConfigurationError(f"Cannot read engine config {self._path}: {exc}") from exc
        except json.JSONDecodeError as exc:
            raise ConfigurationError(f"Engine config {self._path} is not valid JSON: {exc}") from exc

        if not isinstance(raw, dict):
            raise ConfigurationError(f"Engine config {self._path} must be a JSON object")

        config = engine_config_from_dict(raw)
        logger.info(
            "Engine configuration loaded",
            path=str(self._path),
            version=config.version,
            sizing_rule_count=len(config.sizing.rules),
            phase_count=len(config.phases),
            kpi_count=len(config.kpi_library),
        )
        return config
