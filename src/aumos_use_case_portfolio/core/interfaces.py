"""Abstract interfaces (Protocol classes) for the portfolio engine.

Services depend on these interfaces, not on the concrete config store, so
they can be tested against a fixed snapshot.
"""

from typing import Protocol, runtime_checkable

from aumos_use_case_portfolio.core.engine_config import EngineConfig


@runtime_checkable
class IEngineConfigProvider(Protocol):
    """Hands out the current immutable engine configuration snapshot."""

    def current(self) -> EngineConfig:
        """Return the snapshot to use for one whole evaluation."""
        ...


@runtime_checkable
class IEngineConfigSource(Protocol):
    """Produces a freshly loaded and validated engine configuration."""

    def load(self) -> EngineConfig:
        """Load the configuration.

        Raises:
            ConfigurationError: If the configuration is unreadable or invalid.
        """
        ...
