"""Process-wide holder of the current engine configuration snapshot.

Readers take the reference once per evaluation. ``reload()`` builds and
validates the replacement outside the lock and swaps the reference inside
it; a failed reload leaves the previous snapshot in place.
"""

import threading

import structlog

from aumos_use_case_portfolio.core.engine_config import EngineConfig
from aumos_use_case_portfolio.core.errors import ConfigurationError
from aumos_use_case_portfolio.core.interfaces import IEngineConfigSource

logger = structlog.get_logger(__name__)


class EngineConfigStore:
    """Atomic, hot-reloadable engine configuration.

    Satisfies IEngineConfigProvider.
    """

    def __init__(self, source: IEngineConfigSource) -> None:
        """Load the initial snapshot.

        Args:
            source: Where configuration comes from.

        Raises:
            ConfigurationError: If the initial configuration is invalid.
        """
        self._source = source
        self._lock = threading.Lock()
        self._config: EngineConfig = source.load()
        self._generation = 1

    @property
    def generation(self) -> int:
        """Number of snapshots installed so far, starting at 1."""
        with self._lock:
            return self._generation

    def current(self) -> EngineConfig:
        with self._lock:
            return self._config

    def reload(self) -> EngineConfig:
        """Load a new snapshot and install it.

        Returns:
            The newly installed configuration.

        Raises:
            ConfigurationError: If the new configuration is invalid; the
                current snapshot is kept.
        """
        try:
            config = self._source.load()
        except ConfigurationError as exc:
            logger.error("Engine configuration reload rejected", error=str(exc))
            raise

        with self._lock:
            self._config = config
            self._generation += 1
            generation = self._generation

        logger.info(
            "Engine configuration reloaded",
            version=config.version,
            generation=generation,
        )
        return config
